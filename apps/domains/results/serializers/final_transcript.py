# PATH: apps/domains/results/serializers/final_transcript.py
from __future__ import annotations

from rest_framework import serializers

from apps.domains.results.models import FinalTranscript, Semester
from apps.domains.results.models.result import ACADEMIC_YEAR_RE


class FinalTranscriptSerializer(serializers.ModelSerializer):
    student_name = serializers.SerializerMethodField()
    school_class_name = serializers.CharField(source="school_class.name", read_only=True)

    class Meta:
        model = FinalTranscript
        fields = [
            "id",
            "campus",
            "student",
            "student_name",
            "school_class",
            "school_class_name",
            "academic_year",
            "semester",
            "subjects",
            "general_average",
            "class_rank",
            "class_total",
            "decision",
            "general_appreciation",
            "verification_token",
            "status",
            "validated_at",
            "validated_by",
            "sealed_at",
            "sealed_by",
            "parent_signature",
            "generated_by",
            "generated_at",
        ]
        read_only_fields = fields

    def get_student_name(self, obj):
        return f"{obj.student.first_name} {obj.student.last_name}".strip()


class FinalTranscriptQuerySerializer(serializers.Serializer):
    academic_year = serializers.RegexField(ACADEMIC_YEAR_RE)
    semester = serializers.ChoiceField(choices=Semester.choices)


class ValidateTranscriptSerializer(serializers.Serializer):
    decision = serializers.CharField(max_length=200, required=False, allow_blank=True)
    general_appreciation = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class SignTranscriptSerializer(serializers.Serializer):
    signed_by = serializers.CharField(max_length=200)
    method = serializers.ChoiceField(
        choices=FinalTranscript.SignatureMethod.choices,
        required=False,
        default=FinalTranscript.SignatureMethod.CLICK,
    )
