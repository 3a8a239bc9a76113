# PATH: apps/domains/results/serializers/result.py
from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from apps.core.models import Campus
from apps.domains.classes.models import SchoolClass
from apps.domains.results.models import GradingScale, Result, ResultAuditEntry, Semester
from apps.domains.results.models.result import ACADEMIC_YEAR_RE
from apps.domains.students.models import Student
from apps.domains.subjects.models import Subject
from apps.domains.teachers.models import Teacher

SCORE = dict(max_digits=8, decimal_places=2)


def _academic_year(**kwargs):
    return serializers.RegexField(
        ACADEMIC_YEAR_RE,
        error_messages={"invalid": "Academic year must be in format YYYY-YYYY (e.g. 2024-2025)."},
        **kwargs,
    )


# ==================================================
# read
# ==================================================

class ResultAuditEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = ResultAuditEntry
        fields = [
            "id",
            "field",
            "old_value",
            "new_value",
            "reason",
            "modified_by",
            "modified_at",
            "ip_address",
        ]


class ResultSerializer(serializers.ModelSerializer):
    score_on_20 = serializers.DecimalField(max_digits=5, decimal_places=2, read_only=True)
    weighted_normalized_score = serializers.DecimalField(max_digits=8, decimal_places=2, read_only=True)
    student_name = serializers.SerializerMethodField()
    subject_name = serializers.CharField(source="subject.name", read_only=True)
    school_class_name = serializers.CharField(source="school_class.name", read_only=True)

    class Meta:
        model = Result
        fields = [
            "id",
            "reference",
            "campus",
            "student",
            "student_name",
            "school_class",
            "school_class_name",
            "subject",
            "subject_name",
            "teacher",
            "evaluation_type",
            "evaluation_title",
            "academic_year",
            "semester",
            "score",
            "max_score",
            "coefficient",
            "normalized_score",
            "score_on_20",
            "weighted_normalized_score",
            "grading_scale",
            "grade_band",
            "exam_date",
            "exam_period",
            "exam_week",
            "exam_month",
            "exam_attendance",
            "special_circumstances",
            "teacher_remarks",
            "class_manager_remarks",
            "class_manager",
            "strengths",
            "improvements",
            "status",
            "submitted_at",
            "submitted_by",
            "published_at",
            "published_by",
            "archived_at",
            "archived_by",
            "period_locked",
            "retake_of",
            "is_retake_eligible",
            "dropout_risk_score",
            "verification_token",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_student_name(self, obj):
        return f"{obj.student.first_name} {obj.student.last_name}".strip()


class ResultDetailSerializer(ResultSerializer):
    audit_entries = ResultAuditEntrySerializer(many=True, read_only=True)

    class Meta(ResultSerializer.Meta):
        fields = ResultSerializer.Meta.fields + ["audit_entries"]
        read_only_fields = fields


# ==================================================
# write
# ==================================================

class ResultCreateSerializer(serializers.Serializer):
    campus = serializers.PrimaryKeyRelatedField(queryset=Campus.objects.all(), required=False)
    student = serializers.PrimaryKeyRelatedField(queryset=Student.objects.all())
    school_class = serializers.PrimaryKeyRelatedField(queryset=SchoolClass.objects.all())
    subject = serializers.PrimaryKeyRelatedField(queryset=Subject.objects.all())
    teacher = serializers.PrimaryKeyRelatedField(queryset=Teacher.objects.all())

    evaluation_type = serializers.ChoiceField(choices=Result.EvaluationType.choices)
    evaluation_title = serializers.CharField(max_length=200)
    academic_year = _academic_year()
    semester = serializers.ChoiceField(choices=Semester.choices)

    score = serializers.DecimalField(min_value=Decimal("0"), **SCORE)
    max_score = serializers.DecimalField(min_value=Decimal("1"), **SCORE)
    coefficient = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=Decimal("0"), required=False, default=Decimal("1"),
    )
    grading_scale = serializers.PrimaryKeyRelatedField(
        queryset=GradingScale.objects.all(), required=False, allow_null=True,
    )

    exam_date = serializers.DateField(required=False, allow_null=True)
    exam_period = serializers.ChoiceField(choices=Result.ExamPeriod.choices, required=False)
    exam_week = serializers.IntegerField(min_value=1, max_value=52, required=False, allow_null=True)
    exam_month = serializers.ChoiceField(choices=Result.Month.choices, required=False, allow_blank=True)
    exam_attendance = serializers.ChoiceField(choices=Result.Attendance.choices, required=False)
    special_circumstances = serializers.CharField(max_length=200, required=False, allow_blank=True)

    teacher_remarks = serializers.CharField(max_length=1000, required=False, allow_blank=True)
    strengths = serializers.CharField(max_length=500, required=False, allow_blank=True)
    improvements = serializers.CharField(max_length=500, required=False, allow_blank=True)

    retake_of = serializers.PrimaryKeyRelatedField(
        queryset=Result.objects.all(), required=False, allow_null=True,
    )

    def validate_evaluation_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Evaluation title is required.")
        return value

    def validate(self, attrs):
        score, max_score = attrs.get("score"), attrs.get("max_score")
        if score is not None and max_score is not None and score > max_score:
            raise serializers.ValidationError({"score": [f"Score must be within [0, {max_score}]."]})
        return attrs


class ResultUpdateSerializer(serializers.Serializer):
    score = serializers.DecimalField(min_value=Decimal("0"), required=False, **SCORE)
    max_score = serializers.DecimalField(min_value=Decimal("1"), required=False, **SCORE)
    coefficient = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=Decimal("0"), required=False)
    teacher_remarks = serializers.CharField(max_length=1000, required=False, allow_blank=True)
    class_manager_remarks = serializers.CharField(max_length=1000, required=False, allow_blank=True)
    strengths = serializers.CharField(max_length=500, required=False, allow_blank=True)
    improvements = serializers.CharField(max_length=500, required=False, allow_blank=True)
    grading_scale = serializers.PrimaryKeyRelatedField(
        queryset=GradingScale.objects.all(), required=False, allow_null=True,
    )
    evaluation_title = serializers.CharField(max_length=200, required=False)
    exam_date = serializers.DateField(required=False, allow_null=True)
    exam_period = serializers.ChoiceField(choices=Result.ExamPeriod.choices, required=False)
    exam_attendance = serializers.ChoiceField(choices=Result.Attendance.choices, required=False)
    special_circumstances = serializers.CharField(max_length=200, required=False, allow_blank=True)

    def validate_evaluation_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Evaluation title cannot be empty.")
        return value

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("No updatable field provided.")
        return attrs


# ==================================================
# bulk / import
# ==================================================

class BulkHeaderSerializer(serializers.Serializer):
    campus = serializers.PrimaryKeyRelatedField(queryset=Campus.objects.all(), required=False)
    school_class = serializers.PrimaryKeyRelatedField(queryset=SchoolClass.objects.all())
    subject = serializers.PrimaryKeyRelatedField(queryset=Subject.objects.all())
    teacher = serializers.PrimaryKeyRelatedField(queryset=Teacher.objects.all())
    evaluation_type = serializers.ChoiceField(choices=Result.EvaluationType.choices)
    evaluation_title = serializers.CharField(max_length=200)
    academic_year = _academic_year()
    semester = serializers.ChoiceField(choices=Semester.choices)
    max_score = serializers.DecimalField(min_value=Decimal("1"), **SCORE)
    exam_date = serializers.DateField(required=False, allow_null=True)
    exam_period = serializers.ChoiceField(choices=Result.ExamPeriod.choices, required=False)
    grading_scale = serializers.PrimaryKeyRelatedField(
        queryset=GradingScale.objects.all(), required=False, allow_null=True,
    )

    def validate_evaluation_title(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Evaluation title is required.")
        return value


class BulkCreateSerializer(BulkHeaderSerializer):
    # 행 검증은 IngestionService 에서 (부분 성공)
    results = serializers.ListField(child=serializers.DictField(), allow_empty=False)


class UploadSerializer(BulkHeaderSerializer):
    file = serializers.FileField()


# ==================================================
# workflow
# ==================================================

class BatchFilterSerializer(serializers.Serializer):
    school_class = serializers.IntegerField(min_value=1)
    subject = serializers.IntegerField(min_value=1)
    evaluation_title = serializers.CharField(max_length=200)
    academic_year = _academic_year()
    semester = serializers.ChoiceField(choices=Semester.choices)


class ReturnSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class LockSemesterSerializer(serializers.Serializer):
    academic_year = _academic_year()
    semester = serializers.ChoiceField(choices=Semester.choices)
    campus = serializers.IntegerField(min_value=1, required=False)


class AuditCorrectionSerializer(serializers.Serializer):
    score = serializers.DecimalField(min_value=Decimal("0"), required=False, **SCORE)
    teacher_remarks = serializers.CharField(max_length=1000, required=False, allow_blank=True)
    reason = serializers.CharField(max_length=500, trim_whitespace=True)
