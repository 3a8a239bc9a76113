# PATH: apps/domains/results/models/final_transcript.py
"""
FinalTranscript (학기 마감 시 생성되는 학생별 성적표 스냅샷)

- DRAFT     : lock_semester 가 생성 (재생성 시 덮어씀)
- VALIDATED : 매니저 검증, verification_token 발급
- SEALED    : 봉인, 이후 어떤 변경도 불가 (보호자 서명 제외: 서명은 VALIDATED/SEALED 에서만)

subjects: [{
    subject, subject_name, subject_code, coefficient, average, is_passing,
    grade_band, evaluations: [{evaluation_type, evaluation_title, exam_period,
    score, max_score, normalized_score, coefficient, grade_band, teacher_remarks}]
}]
"""
from __future__ import annotations

from django.conf import settings
from django.db import models

from apps.api.common.models import BaseModel
from apps.core.db.campus_queryset import CampusQuerySet
from apps.domains.results.models.result import Semester, academic_year_validator


class FinalTranscript(BaseModel):

    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        VALIDATED = "VALIDATED", "Validated"
        SEALED = "SEALED", "Sealed"

    class SignatureMethod(models.TextChoices):
        CLICK = "click", "Click"
        OTP = "otp", "One-time password"
        BIOMETRIC = "biometric", "Biometric"

    campus = models.ForeignKey(
        "core.Campus",
        on_delete=models.PROTECT,
        related_name="final_transcripts",
    )
    student = models.ForeignKey(
        "students.Student",
        on_delete=models.PROTECT,
        related_name="final_transcripts",
    )
    school_class = models.ForeignKey(
        "classes.SchoolClass",
        on_delete=models.PROTECT,
        related_name="final_transcripts",
    )
    academic_year = models.CharField(max_length=9, validators=[academic_year_validator])
    semester = models.CharField(max_length=10, choices=Semester.choices)

    # ---------- 사전 계산 ----------
    subjects = models.JSONField(default=list, blank=True)
    general_average = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    class_rank = models.PositiveIntegerField(null=True, blank=True)
    class_total = models.PositiveIntegerField(null=True, blank=True)

    # ---------- 교무 결정 ----------
    decision = models.CharField(max_length=200, blank=True)
    general_appreciation = models.CharField(max_length=1000, blank=True)

    verification_token = models.CharField(max_length=64, unique=True, null=True, blank=True)

    # ---------- workflow ----------
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.DRAFT,
        db_index=True,
    )
    validated_at = models.DateTimeField(null=True, blank=True)
    validated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+",
    )
    sealed_at = models.DateTimeField(null=True, blank=True)
    sealed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+",
    )

    # ---------- 보호자 서명 ----------
    # {signed_at, signed_by, ip_address, method}
    parent_signature = models.JSONField(null=True, blank=True)

    generated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+",
    )
    generated_at = models.DateTimeField(null=True, blank=True)

    objects = CampusQuerySet.as_manager()

    class Meta:
        ordering = ["-academic_year", "semester", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["student", "academic_year", "semester"],
                name="uniq_transcript_per_student_period",
            ),
        ]
        indexes = [
            models.Index(fields=["campus", "academic_year", "semester", "status"], name="results_fin_campus__a27c5b_idx"),
        ]

    def __str__(self):
        return f"Transcript<{self.student_id} {self.academic_year} {self.semester}>"

    @property
    def is_sealed(self) -> bool:
        return self.status == self.Status.SEALED

    @property
    def is_signed(self) -> bool:
        return bool(self.parent_signature and self.parent_signature.get("signed_at"))
