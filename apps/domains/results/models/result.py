# PATH: apps/domains/results/models/result.py
"""
Result (학생 1명 × 과목 1개 × 평가 1건)

상태: DRAFT → SUBMITTED → PUBLISHED → ARCHIVED  (+ SUBMITTED → DRAFT 반려)
- 전이 테이블: TRANSITIONS
- period_locked 는 상태와 독립된 래치 (학기 마감)
- grade_band 는 publish 시점 스냅샷, 이후 불변
- 물리 삭제 없음 (SoftDeleteModel), uniqueness 는 is_deleted=False 에만 적용
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.db import models
from django.db.models import Q

from apps.api.common.models import SoftDeleteModel
from apps.core.db.campus_queryset import CampusQuerySet
from apps.core.principal import Principal
from apps.domains.results.utils.numbers import normalize_on_20, round2, to_decimal

logger = logging.getLogger(__name__)

ACADEMIC_YEAR_RE = r"^\d{4}-\d{4}$"

academic_year_validator = RegexValidator(
    regex=ACADEMIC_YEAR_RE,
    message="Academic year must be in format YYYY-YYYY (e.g. 2024-2025).",
)

PASSING_ON_20 = Decimal("10")


class Semester(models.TextChoices):
    S1 = "S1", "Semester 1"
    S2 = "S2", "Semester 2"
    ANNUAL = "Annual", "Annual"


class ResultQuerySet(CampusQuerySet):

    def alive(self):
        return self.filter(is_deleted=False)

    def released(self):
        """PUBLISHED + ARCHIVED"""
        return self.filter(status__in=Result.RELEASED_STATUSES)

    def counted(self):
        """평균 계산 대상: 삭제 안 됨 + 공개됨 + excused 제외"""
        return (
            self.alive()
            .released()
            .exclude(exam_attendance=Result.Attendance.EXCUSED)
        )

    def without_replaced_originals(self):
        """
        RETAKE 가 공개된 원본은 평균에서 제외.
        retake 행 자신(retake_of 있음)은 그대로 남는다.
        excused retake 는 점수가 없으므로 원본을 대체하지 않는다.
        """
        replacing = (
            Result.objects
            .filter(
                retake_of=models.OuterRef("pk"),
                is_deleted=False,
                status__in=Result.RELEASED_STATUSES,
            )
            .exclude(exam_attendance=Result.Attendance.EXCUSED)
        )
        return self.exclude(models.Exists(replacing))


class Result(SoftDeleteModel):

    class Status(models.TextChoices):
        DRAFT = "DRAFT", "Draft"
        SUBMITTED = "SUBMITTED", "Submitted"
        PUBLISHED = "PUBLISHED", "Published"
        ARCHIVED = "ARCHIVED", "Archived"

    class EvaluationType(models.TextChoices):
        CC = "CC", "Continuous assessment"
        EXAM = "EXAM", "Exam"
        RETAKE = "RETAKE", "Retake"
        PROJECT = "PROJECT", "Project"
        PRACTICAL = "PRACTICAL", "Practical"

    class ExamPeriod(models.TextChoices):
        MIDTERM = "Midterm", "Midterm"
        FINAL = "Final", "Final"
        QUIZ = "Quiz", "Quiz"
        ASSIGNMENT = "Assignment", "Assignment"
        PROJECT = "Project", "Project"
        PRACTICAL = "Practical", "Practical"

    class Attendance(models.TextChoices):
        PRESENT = "present", "Present"
        ABSENT = "absent", "Absent"
        EXCUSED = "excused", "Excused"

    class Month(models.TextChoices):
        JANUARY = "January", "January"
        FEBRUARY = "February", "February"
        MARCH = "March", "March"
        APRIL = "April", "April"
        MAY = "May", "May"
        JUNE = "June", "June"
        JULY = "July", "July"
        AUGUST = "August", "August"
        SEPTEMBER = "September", "September"
        OCTOBER = "October", "October"
        NOVEMBER = "November", "November"
        DECEMBER = "December", "December"

    RELEASED_STATUSES = (Status.PUBLISHED, Status.ARCHIVED)

    # (from, to) 허용 전이
    TRANSITIONS = frozenset({
        (Status.DRAFT, Status.SUBMITTED),
        (Status.SUBMITTED, Status.PUBLISHED),
        (Status.SUBMITTED, Status.DRAFT),
        (Status.PUBLISHED, Status.ARCHIVED),
    })

    # =========================
    # ownership
    # =========================
    campus = models.ForeignKey(
        "core.Campus",
        on_delete=models.PROTECT,
        related_name="results",
    )
    student = models.ForeignKey(
        "students.Student",
        on_delete=models.PROTECT,
        related_name="results",
    )
    school_class = models.ForeignKey(
        "classes.SchoolClass",
        on_delete=models.PROTECT,
        related_name="results",
    )
    subject = models.ForeignKey(
        "subjects.Subject",
        on_delete=models.PROTECT,
        related_name="results",
    )
    teacher = models.ForeignKey(
        "teachers.Teacher",
        on_delete=models.PROTECT,
        related_name="results",
    )

    # =========================
    # evaluation identity
    # =========================
    evaluation_type = models.CharField(max_length=20, choices=EvaluationType.choices)
    evaluation_title = models.CharField(max_length=200)
    academic_year = models.CharField(
        max_length=9,
        validators=[academic_year_validator],
        db_index=True,
    )
    semester = models.CharField(max_length=10, choices=Semester.choices, db_index=True)

    # =========================
    # score
    # =========================
    score = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    max_score = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("1"))],
    )
    coefficient = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("1"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    normalized_score = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)

    grading_scale = models.ForeignKey(
        "results.GradingScale",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="results",
    )
    grade_band = models.JSONField(null=True, blank=True)

    # =========================
    # exam meta
    # =========================
    exam_date = models.DateField(null=True, blank=True)
    exam_period = models.CharField(
        max_length=20,
        choices=ExamPeriod.choices,
        default=ExamPeriod.MIDTERM,
    )
    exam_week = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(52)],
    )
    exam_month = models.CharField(max_length=10, choices=Month.choices, blank=True)
    exam_attendance = models.CharField(
        max_length=10,
        choices=Attendance.choices,
        default=Attendance.PRESENT,
    )
    special_circumstances = models.CharField(max_length=200, blank=True)

    # =========================
    # pedagogical prose
    # =========================
    teacher_remarks = models.CharField(max_length=1000, blank=True)
    class_manager_remarks = models.CharField(max_length=1000, blank=True)
    class_manager = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    strengths = models.CharField(max_length=500, blank=True)
    improvements = models.CharField(max_length=500, blank=True)

    # =========================
    # workflow
    # =========================
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.DRAFT,
        db_index=True,
    )
    submitted_at = models.DateTimeField(null=True, blank=True)
    submitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+",
    )
    published_at = models.DateTimeField(null=True, blank=True)
    published_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+",
    )
    archived_at = models.DateTimeField(null=True, blank=True)
    archived_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+",
    )
    period_locked = models.BooleanField(default=False, db_index=True)

    # =========================
    # retake / risk / authenticity
    # =========================
    retake_of = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="retakes",
    )
    is_retake_eligible = models.BooleanField(default=False, db_index=True)
    dropout_risk_score = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MaxValueValidator(100)],
    )
    verification_token = models.CharField(max_length=64, unique=True, null=True, blank=True)
    reference = models.CharField(max_length=32, unique=True)

    objects = ResultQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=[
                    "student",
                    "subject",
                    "evaluation_type",
                    "evaluation_title",
                    "academic_year",
                    "semester",
                ],
                condition=Q(is_deleted=False),
                name="uniq_result_per_evaluation_alive",
            ),
        ]
        indexes = [
            models.Index(fields=["campus", "academic_year", "semester"], name="results_res_campus__6b1c2e_idx"),
            models.Index(fields=["school_class", "subject", "academic_year"], name="results_res_school__3f0a9d_idx"),
            models.Index(fields=["student", "academic_year", "semester"], name="results_res_student_8d4e71_idx"),
        ]

    def __str__(self):
        return f"{self.reference} {self.evaluation_type}:{self.evaluation_title}"

    # --------------------------------------------------
    # derived values
    # --------------------------------------------------

    @property
    def is_released(self) -> bool:
        return self.status in self.RELEASED_STATUSES

    @property
    def score_on_20(self) -> Optional[Decimal]:
        return self.normalized_score

    @property
    def weighted_normalized_score(self) -> Optional[Decimal]:
        if self.normalized_score is None:
            return None
        return round2(to_decimal(self.normalized_score) * to_decimal(self.coefficient))

    def resolve_scale(self):
        from apps.domains.results.models.grading_scale import GradingScale

        if self.grading_scale_id:
            return self.grading_scale
        if self.campus_id:
            return GradingScale.get_for_campus(self.campus_id)
        return None

    def score_on_scale(self, scale) -> Optional[Decimal]:
        """normalized (/20) projected onto the scale's max_score"""
        if self.normalized_score is None:
            return None
        return round2(to_decimal(self.normalized_score) / 20 * to_decimal(scale.max_score))

    def resolve_grade_band(self, scale=None) -> Optional[dict]:
        scale = scale if scale is not None else self.resolve_scale()
        if scale is None or self.normalized_score is None:
            return None
        return scale.resolve_band(self.score_on_scale(scale))

    def apply_derived_fields(self) -> None:
        """
        save() 훅:
        - absent → score = 0, normalized = 0 (경고 로그)
        - normalized = round2(score / max_score × 20)
        - 공개 전: grading_scale 이 있으면 grade_band 해석
        - retake 대상 여부 (excused 는 항상 제외)
        """
        if self.exam_attendance == self.Attendance.ABSENT:
            if self.score is None or to_decimal(self.score) != 0:
                logger.warning(
                    "result %s: exam_attendance=absent, forcing score %s -> 0",
                    self.reference or "<new>",
                    self.score,
                )
            self.score = Decimal("0")
            self.normalized_score = Decimal("0.00")
        elif self.score is not None and self.max_score:
            self.normalized_score = normalize_on_20(self.score, self.max_score)

        scale = self.grading_scale if self.grading_scale_id else None

        if not self.is_released and scale is not None:
            self.grade_band = self.resolve_grade_band(scale)

        if self.exam_attendance == self.Attendance.EXCUSED or self.normalized_score is None:
            self.is_retake_eligible = False
        elif scale is not None:
            self.is_retake_eligible = not scale.is_passing(self.score_on_scale(scale))
        else:
            self.is_retake_eligible = to_decimal(self.normalized_score) < PASSING_ON_20

    def save(self, *args, **kwargs):
        self.apply_derived_fields()
        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = set(update_fields) | {
                "score",
                "normalized_score",
                "grade_band",
                "is_retake_eligible",
                "updated_at",
            }
        super().save(*args, **kwargs)

    # --------------------------------------------------
    # state machine
    # --------------------------------------------------

    @classmethod
    def can_transition(cls, current: str, target: str) -> bool:
        return (current, target) in cls.TRANSITIONS

    def is_owned_by(self, principal: Principal) -> bool:
        if not self.teacher_id:
            return False
        return getattr(self.teacher, "user_id", None) == principal.user_id

    def can_modify(self, principal: Principal) -> tuple[bool, str]:
        """
        (ok, reason)
        - deleted              → no
        - period_locked        → global only
        - PUBLISHED / ARCHIVED → global only, through the audit path
        - SUBMITTED            → managers
        - DRAFT                → managers or the owning teacher
        """
        if self.is_deleted:
            return False, "Result has been deleted."

        if self.period_locked and not principal.is_global:
            return False, "This semester is locked."

        if self.is_released:
            if principal.is_global:
                return False, "Published results can only be corrected through the audit endpoint."
            return False, "Published results can only be corrected by an administrator or director."

        if self.status == self.Status.SUBMITTED:
            if principal.is_manager:
                return True, ""
            return False, "Submitted results can only be modified by a manager."

        if principal.is_manager:
            return True, ""
        if principal.is_teacher and self.is_owned_by(principal):
            return True, ""
        return False, "Only the owning teacher or a manager can modify this draft."
