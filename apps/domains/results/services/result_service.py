# apps/domains/results/services/result_service.py
"""
Result CRUD (draft capture, update, soft delete) + visibility rules.

- 모든 조회는 visible_results() 에서 출발 (campus isolation + 학생 본인/공개분만)
- reference 는 sequencer 로 발급, 동시 할당 충돌 시 재시도
"""
from __future__ import annotations

import logging
from typing import Optional

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied

from apps.api.common.exceptions import Conflict, InvalidTransition
from apps.core.campus import effective_campus_id, require_campus_id
from apps.core.principal import Principal
from apps.core.services.sequencer import next_reference
from apps.domains.results.models import GradingScale, Result
from apps.domains.results.utils.numbers import to_decimal

logger = logging.getLogger(__name__)

MAX_REFERENCE_ATTEMPTS = 5

UPDATABLE_FIELDS = (
    "score",
    "max_score",
    "coefficient",
    "teacher_remarks",
    "class_manager_remarks",
    "strengths",
    "improvements",
    "grading_scale",
    "evaluation_title",
    "exam_date",
    "exam_period",
    "exam_attendance",
    "special_circumstances",
)


# --------------------------------------------------
# visibility
# --------------------------------------------------

def visible_results(principal: Principal, requested_campus_id: Optional[int] = None):
    qs = Result.objects.alive().for_principal(principal, requested_campus_id)
    if principal.is_student:
        qs = qs.filter(
            student__user_id=principal.user_id,
            status__in=Result.RELEASED_STATUSES,
        )
    return qs


def get_visible_result(
    principal: Principal,
    result_id: int,
    requested_campus_id: Optional[int] = None,
) -> Result:
    result = (
        Result.objects
        .alive()
        .select_related("student", "subject", "school_class", "teacher", "grading_scale")
        .filter(pk=result_id)
        .first()
    )
    if result is None:
        raise NotFound("Result not found.")

    campus_id = effective_campus_id(principal, requested_campus_id)
    if campus_id is not None and result.campus_id != campus_id:
        raise PermissionDenied("Access denied.")

    if principal.is_student:
        if result.student.user_id != principal.user_id:
            raise PermissionDenied("Access denied.")
        if not result.is_released:
            raise NotFound("Result not found or not yet published.")

    return result


# --------------------------------------------------
# validation helpers
# --------------------------------------------------

def check_score_range(score, max_score) -> None:
    if score is None or max_score is None:
        return
    if to_decimal(max_score) < 1:
        raise ValidationError({"max_score": ["max_score must be at least 1."]})
    if to_decimal(score) < 0 or to_decimal(score) > to_decimal(max_score):
        raise ValidationError({"score": [f"Score must be within [0, {max_score}]."]})


def check_same_campus(campus_id: int, **objs) -> None:
    errors = {}
    for name, obj in objs.items():
        if obj is not None and obj.campus_id != campus_id:
            errors[name] = ["Does not belong to this campus."]
    if errors:
        raise ValidationError(errors)


def check_grading_scale(scale: Optional[GradingScale], campus_id: int) -> None:
    if scale is None:
        return
    if scale.campus_id != campus_id or not scale.is_active:
        raise ValidationError({"grading_scale": ["Grading scale is not active on this campus."]})


def _check_retake_link(data: dict, campus_id: int) -> None:
    original = data.get("retake_of")
    if original is None:
        return
    if data.get("evaluation_type") != Result.EvaluationType.RETAKE:
        raise ValidationError({"retake_of": ["retake_of requires evaluation_type RETAKE."]})
    if (
        original.is_deleted
        or original.campus_id != campus_id
        or original.student_id != data["student"].pk
        or original.subject_id != data["subject"].pk
    ):
        raise ValidationError({"retake_of": [
            "Original result must exist for the same student, subject and campus."
        ]})


def duplicate_exists(*, student_id, subject_id, evaluation_type, evaluation_title, academic_year, semester,
                     exclude_pk=None) -> bool:
    qs = Result.objects.alive().filter(
        student_id=student_id,
        subject_id=subject_id,
        evaluation_type=evaluation_type,
        evaluation_title=evaluation_title,
        academic_year=academic_year,
        semester=semester,
    )
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return qs.exists()


# --------------------------------------------------
# insert with reference
# --------------------------------------------------

def insert_with_reference(result: Result) -> Result:
    """
    Allocate a reference and insert. A collision on the reference itself
    (counter reset / manual import) is retried; any other uniqueness
    failure is a duplicate evaluation.
    """
    year = timezone.now().year
    for _attempt in range(MAX_REFERENCE_ATTEMPTS):
        result.reference = next_reference(year)
        try:
            with transaction.atomic():
                result.save(force_insert=True)
            return result
        except IntegrityError:
            if Result.objects.filter(reference=result.reference).exists():
                logger.warning("reference collision on %s, retrying", result.reference)
                result.pk = None
                continue
            raise Conflict("A result already exists for this evaluation.")
    raise Conflict("Could not allocate a unique result reference.")


# --------------------------------------------------
# service
# --------------------------------------------------

class ResultService:

    @staticmethod
    def resolve_write_campus(principal: Principal, requested_campus_id: Optional[int], payload_campus_id=None) -> int:
        requested = requested_campus_id if requested_campus_id is not None else payload_campus_id
        return require_campus_id(principal, requested)

    @staticmethod
    @transaction.atomic
    def create(
        *,
        principal: Principal,
        data: dict,
        requested_campus_id: Optional[int] = None,
    ) -> Result:
        """
        data: validated serializer payload (model instances for FKs)
        """
        campus = data.get("campus")
        campus_id = ResultService.resolve_write_campus(
            principal,
            requested_campus_id,
            campus.pk if campus is not None else None,
        )

        check_same_campus(
            campus_id,
            student=data["student"],
            school_class=data["school_class"],
            subject=data["subject"],
            teacher=data["teacher"],
        )
        if principal.is_teacher and data["teacher"].user_id != principal.user_id:
            raise PermissionDenied("Teachers can only record results in their own name.")

        check_score_range(data.get("score"), data.get("max_score"))
        check_grading_scale(data.get("grading_scale"), campus_id)
        _check_retake_link(data, campus_id)

        if duplicate_exists(
            student_id=data["student"].pk,
            subject_id=data["subject"].pk,
            evaluation_type=data["evaluation_type"],
            evaluation_title=data["evaluation_title"],
            academic_year=data["academic_year"],
            semester=data["semester"],
        ):
            raise Conflict("A result already exists for this evaluation.")

        fields = {k: v for k, v in data.items() if k != "campus"}
        result = Result(campus_id=campus_id, status=Result.Status.DRAFT, **fields)
        return insert_with_reference(result)

    @staticmethod
    @transaction.atomic
    def update(*, principal: Principal, result: Result, data: dict) -> Result:
        result = Result.objects.select_for_update().get(pk=result.pk)

        ok, reason = result.can_modify(principal)
        if not ok:
            raise PermissionDenied(reason)

        if "class_manager_remarks" in data and not principal.is_manager:
            raise PermissionDenied("Only managers can add class manager remarks.")

        for field in UPDATABLE_FIELDS:
            if field in data:
                setattr(result, field, data[field])

        if "class_manager_remarks" in data:
            result.class_manager_id = principal.user_id

        check_score_range(result.score, result.max_score)
        if "grading_scale" in data:
            check_grading_scale(data["grading_scale"], result.campus_id)

        if "evaluation_title" in data and duplicate_exists(
            student_id=result.student_id,
            subject_id=result.subject_id,
            evaluation_type=result.evaluation_type,
            evaluation_title=result.evaluation_title,
            academic_year=result.academic_year,
            semester=result.semester,
            exclude_pk=result.pk,
        ):
            raise Conflict("A result already exists for this evaluation.")

        result.save()
        return result

    @staticmethod
    @transaction.atomic
    def delete(*, principal: Principal, result: Result) -> Result:
        result = Result.objects.select_for_update().get(pk=result.pk)

        if not principal.is_global:
            if result.period_locked:
                raise PermissionDenied("This semester is locked.")
            if result.status != Result.Status.DRAFT:
                raise InvalidTransition(
                    "Only DRAFT results can be deleted. Use administrator access for published results."
                )
            if principal.is_teacher and not result.is_owned_by(principal):
                raise PermissionDenied("Only the owning teacher or a manager can delete this draft.")

        result.soft_delete(by_id=principal.user_id)
        return result
