from django.contrib import admin

from .models import FinalTranscript, GradingScale, Result, ResultAuditEntry


class ResultAuditEntryInline(admin.TabularInline):
    """append-only: 읽기 전용"""
    model = ResultAuditEntry
    extra = 0
    can_delete = False
    readonly_fields = (
        "field",
        "old_value",
        "new_value",
        "reason",
        "modified_by",
        "modified_at",
        "ip_address",
    )

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(GradingScale)
class GradingScaleAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "campus", "system", "max_score", "pass_mark", "is_default", "is_active")
    list_filter = ("campus", "system", "is_default", "is_active")
    search_fields = ("name",)


@admin.register(Result)
class ResultAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "reference",
        "student",
        "subject",
        "evaluation_type",
        "evaluation_title",
        "academic_year",
        "semester",
        "score",
        "max_score",
        "normalized_score",
        "status",
        "period_locked",
        "is_deleted",
    )
    list_filter = ("campus", "status", "evaluation_type", "semester", "period_locked", "is_deleted")
    search_fields = ("reference", "evaluation_title", "student__matricule", "student__last_name")
    readonly_fields = (
        "reference",
        "normalized_score",
        "grade_band",
        "verification_token",
        "dropout_risk_score",
        "status",
        "submitted_at",
        "submitted_by",
        "published_at",
        "published_by",
        "archived_at",
        "archived_by",
        "period_locked",
        "deleted_at",
        "deleted_by",
    )
    inlines = [ResultAuditEntryInline]

    def has_delete_permission(self, request, obj=None):
        # soft delete 만 허용 (API 경로)
        return False


@admin.register(FinalTranscript)
class FinalTranscriptAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "student",
        "school_class",
        "academic_year",
        "semester",
        "general_average",
        "class_rank",
        "class_total",
        "status",
    )
    list_filter = ("campus", "status", "academic_year", "semester")
    search_fields = ("student__matricule", "student__last_name")
    readonly_fields = (
        "subjects",
        "general_average",
        "class_rank",
        "class_total",
        "verification_token",
        "validated_at",
        "validated_by",
        "sealed_at",
        "sealed_by",
        "parent_signature",
        "generated_by",
        "generated_at",
    )
