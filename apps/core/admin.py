# PATH: apps/core/admin.py
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from apps.core.models import Campus, Counter, User


@admin.register(Campus)
class CampusAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "code", "max_students", "max_classes", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "code")


@admin.register(User)
class CampusUserAdmin(UserAdmin):
    list_display = ("id", "username", "name", "role", "campus", "is_active")
    list_filter = ("role", "campus", "is_active")
    fieldsets = UserAdmin.fieldsets + (
        ("Campus", {"fields": ("name", "phone", "role", "campus")}),
    )


@admin.register(Counter)
class CounterAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "seq")
    search_fields = ("name",)
    readonly_fields = ("name", "seq")
