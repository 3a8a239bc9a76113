from django.contrib import admin

from .models import Subject


@admin.register(Subject)
class SubjectAdmin(admin.ModelAdmin):
    list_display = ("id", "code", "name", "coefficient", "campus")
    list_filter = ("campus",)
    search_fields = ("code", "name")
