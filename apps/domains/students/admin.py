from django.contrib import admin

from .models import Student


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "matricule",
        "first_name",
        "last_name",
        "campus",
        "is_active",
        "created_at",
    )
    list_filter = ("campus", "is_active")
    search_fields = ("first_name", "last_name", "matricule")
