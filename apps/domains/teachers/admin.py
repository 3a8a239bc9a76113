from django.contrib import admin

from .models import Teacher


@admin.register(Teacher)
class TeacherAdmin(admin.ModelAdmin):
    list_display = ("id", "first_name", "last_name", "campus", "user", "is_active")
    list_filter = ("campus", "is_active")
    search_fields = ("first_name", "last_name", "email")
