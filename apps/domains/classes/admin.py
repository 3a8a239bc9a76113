from django.contrib import admin

from .models import SchoolClass


@admin.register(SchoolClass)
class SchoolClassAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "campus", "academic_year")
    list_filter = ("campus", "academic_year")
    search_fields = ("name",)
    filter_horizontal = ("students",)
