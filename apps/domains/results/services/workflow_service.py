# apps/domains/results/services/workflow_service.py
"""
Workflow controller

DRAFT ──submit──▶ SUBMITTED ──publish──▶ PUBLISHED ──archive──▶ ARCHIVED
  ▲                   │
  └──────return───────┘

- 단건 전이: select_for_update 후 상태 확인 → 전이 (한 트랜잭션)
- RETAKE publish: 원본 확인 + 상태 변경이 같은 트랜잭션
- lock_semester: 행 잠금(period_locked) → 학생별 FinalTranscript 생성 (병렬 제한) → class rank
- audit_correction: 공개 이후 정정, ADMIN/DIRECTOR 만, 변경 필드마다 audit entry
"""
from __future__ import annotations

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import connection, transaction
from django.utils import timezone
from rest_framework.exceptions import APIException, NotFound, PermissionDenied

from apps.api.common.exceptions import InvalidTransition
from apps.core.campus import campus_filter, effective_campus_id
from apps.core.principal import Principal
from apps.domains.results.models import Result, ResultAuditEntry
from apps.domains.results.services.result_service import check_score_range
from apps.domains.results.services.transcript_service import (
    assign_class_ranks,
    generate_for_student,
)
from apps.domains.results.tasks.dropout_risk_tasks import compute_dropout_risk_task

logger = logging.getLogger(__name__)

MAX_TRANSCRIPT_WORKERS = 10
MIN_AUDIT_REASON_LENGTH = 10

BATCH_KEYS = ("school_class", "subject", "evaluation_title", "academic_year", "semester")


# --------------------------------------------------
# helpers
# --------------------------------------------------

def _locked_result(principal: Principal, result_id: int, requested_campus_id: Optional[int]) -> Result:
    result = Result.objects.select_for_update().filter(pk=result_id, is_deleted=False).first()
    if result is None:
        raise NotFound("Result not found.")

    campus_id = effective_campus_id(principal, requested_campus_id)
    if campus_id is not None and result.campus_id != campus_id:
        raise PermissionDenied("Access denied.")
    return result


def _check_transition(result: Result, target: str, principal: Principal) -> None:
    if result.period_locked and not principal.is_global:
        raise PermissionDenied("This semester is locked.")
    if not Result.can_transition(result.status, target):
        raise InvalidTransition(
            f"Cannot move a result from {result.status} to {target}."
        )


def _batch_queryset(principal: Principal, filters: dict, requested_campus_id: Optional[int]):
    qs = (
        Result.objects
        .alive()
        .filter(campus_filter(principal, requested_campus_id))
        .filter(
            school_class_id=filters["school_class"],
            subject_id=filters["subject"],
            evaluation_title=filters["evaluation_title"],
            academic_year=filters["academic_year"],
            semester=filters["semester"],
        )
    )
    if not principal.is_global:
        qs = qs.filter(period_locked=False)
    return qs


def schedule_dropout_risk(result_id: int) -> None:
    """on_commit 콜백: 큐잉 실패는 로그만 (publish 는 이미 커밋됨)"""
    try:
        compute_dropout_risk_task.delay(result_id)
    except Exception:
        logger.exception("failed to schedule dropout risk for result %s", result_id)


def _run_generation(job: dict) -> int:
    try:
        transcript = generate_for_student(**job)
        return transcript.school_class_id
    finally:
        # 워커 스레드마다 커넥션이 따로 열린다
        if getattr(settings, "RESULTS_TRANSCRIPT_MAX_WORKERS", MAX_TRANSCRIPT_WORKERS) > 1:
            connection.close()


class WorkflowService:

    # ==================================================
    # submit / return
    # ==================================================

    @staticmethod
    @transaction.atomic
    def submit(*, principal: Principal, result_id: int, requested_campus_id: Optional[int] = None) -> Result:
        result = _locked_result(principal, result_id, requested_campus_id)

        if principal.is_teacher and not result.is_owned_by(principal):
            raise PermissionDenied("Teachers can only submit their own results.")
        _check_transition(result, Result.Status.SUBMITTED, principal)

        result.status = Result.Status.SUBMITTED
        result.submitted_at = timezone.now()
        result.submitted_by_id = principal.user_id
        result.save(update_fields=["status", "submitted_at", "submitted_by"])
        return result

    @staticmethod
    @transaction.atomic
    def submit_batch(*, principal: Principal, filters: dict, requested_campus_id: Optional[int] = None) -> int:
        qs = _batch_queryset(principal, filters, requested_campus_id).filter(status=Result.Status.DRAFT)
        if principal.is_teacher:
            qs = qs.filter(teacher__user_id=principal.user_id)

        now = timezone.now()
        return qs.update(
            status=Result.Status.SUBMITTED,
            submitted_at=now,
            submitted_by_id=principal.user_id,
            updated_at=now,
        )

    @staticmethod
    @transaction.atomic
    def return_to_draft(
        *,
        principal: Principal,
        result_id: int,
        reason: str = "",
        requested_campus_id: Optional[int] = None,
    ) -> Result:
        result = _locked_result(principal, result_id, requested_campus_id)
        _check_transition(result, Result.Status.DRAFT, principal)

        result.status = Result.Status.DRAFT
        result.submitted_at = None
        result.submitted_by = None
        result.save(update_fields=["status", "submitted_at", "submitted_by"])

        logger.info(
            "result %s returned to draft by user %s%s",
            result.reference,
            principal.user_id,
            f": {reason.strip()}" if reason and reason.strip() else "",
        )
        return result

    # ==================================================
    # publish
    # ==================================================

    @staticmethod
    @transaction.atomic
    def publish(*, principal: Principal, result_id: int, requested_campus_id: Optional[int] = None) -> Result:
        peek = (
            Result.objects
            .filter(pk=result_id, is_deleted=False)
            .values("evaluation_type", "retake_of_id", "campus_id")
            .first()
        )
        if peek is None:
            raise NotFound("Result not found.")

        # RETAKE: 원본 먼저 잠금 → retake 잠금 (같은 원본에 대한 동시 publish 직렬화)
        if peek["evaluation_type"] == Result.EvaluationType.RETAKE and peek["retake_of_id"]:
            original = (
                Result.objects
                .select_for_update()
                .filter(pk=peek["retake_of_id"], is_deleted=False, campus_id=peek["campus_id"])
                .first()
            )
            if original is None:
                raise ValidationError({"retake_of": ["Original result for this retake no longer exists."]})

        result = _locked_result(principal, result_id, requested_campus_id)
        _check_transition(result, Result.Status.PUBLISHED, principal)

        now = timezone.now()
        if not result.verification_token:
            result.verification_token = str(uuid.uuid4())
        if not result.published_at:
            result.published_at = now
        result.published_by_id = principal.user_id

        # 공개 시점 band 스냅샷 (이후 scale 이 바뀌어도 유지)
        result.grade_band = result.resolve_grade_band()
        result.status = Result.Status.PUBLISHED
        result.save(update_fields=[
            "status",
            "verification_token",
            "published_at",
            "published_by",
            "grade_band",
        ])

        transaction.on_commit(lambda: schedule_dropout_risk(result.pk))

        logger.info("result %s published by user %s", result.reference, principal.user_id)
        return result

    @staticmethod
    def publish_batch(*, principal: Principal, filters: dict, requested_campus_id: Optional[int] = None) -> dict:
        """
        SUBMITTED 행마다 publish() 를 따로 실행 (행 단위 원자성).
        실패한 행은 errors 에 모으고 나머지는 계속 진행.
        """
        ids = list(
            _batch_queryset(principal, filters, requested_campus_id)
            .filter(status=Result.Status.SUBMITTED)
            .order_by("id")
            .values_list("id", flat=True)
        )

        published = 0
        errors = []
        for result_id in ids:
            try:
                WorkflowService.publish(
                    principal=principal,
                    result_id=result_id,
                    requested_campus_id=requested_campus_id,
                )
                published += 1
            except (APIException, ValidationError) as exc:
                errors.append({"result": result_id, "error": str(getattr(exc, "detail", exc))})

        return {"matched": len(ids), "published": published, "errors": errors}

    # ==================================================
    # archive
    # ==================================================

    @staticmethod
    @transaction.atomic
    def archive(*, principal: Principal, result_id: int, requested_campus_id: Optional[int] = None) -> Result:
        result = _locked_result(principal, result_id, requested_campus_id)
        _check_transition(result, Result.Status.ARCHIVED, principal)

        result.status = Result.Status.ARCHIVED
        result.archived_at = timezone.now()
        result.archived_by_id = principal.user_id
        result.save(update_fields=["status", "archived_at", "archived_by"])

        logger.info("result %s archived by user %s", result.reference, principal.user_id)
        return result

    # ==================================================
    # semester closure
    # ==================================================

    @staticmethod
    def lock_semester(
        *,
        principal: Principal,
        academic_year: str,
        semester: str,
        requested_campus_id: Optional[int] = None,
    ) -> dict:
        """
        1) 공개(PUBLISHED/ARCHIVED) 행 period_locked=True
        2) 학생별 FinalTranscript 생성 (동시 최대 10)
        3) class rank
        """
        campus_id = effective_campus_id(principal, requested_campus_id)

        with transaction.atomic():
            qs = Result.objects.alive().released().filter(academic_year=academic_year, semester=semester)
            if campus_id is not None:
                qs = qs.filter(campus_id=campus_id)

            locked = qs.update(period_locked=True, updated_at=timezone.now())
            targets = list(
                qs.order_by("student_id", "campus_id")
                .values_list("student_id", "campus_id")
                .distinct()
            )

        jobs = [
            {
                "student_id": student_id,
                "campus_id": target_campus_id,
                "academic_year": academic_year,
                "semester": semester,
                "generated_by_id": principal.user_id,
            }
            for student_id, target_campus_id in targets
        ]

        generated = 0
        failures = []
        classes = set()

        workers = min(
            MAX_TRANSCRIPT_WORKERS,
            int(getattr(settings, "RESULTS_TRANSCRIPT_MAX_WORKERS", MAX_TRANSCRIPT_WORKERS)),
        )

        def _record_failure(job, exc):
            logger.exception(
                "transcript generation failed for student %s (%s %s)",
                job["student_id"],
                academic_year,
                semester,
                exc_info=exc,
            )
            failures.append({"student": job["student_id"], "error": str(getattr(exc, "detail", exc))})

        if workers <= 1:
            for job in jobs:
                try:
                    classes.add(_run_generation(job))
                    generated += 1
                except Exception as exc:
                    _record_failure(job, exc)
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                future_to_job = {executor.submit(_run_generation, job): job for job in jobs}
                for future in as_completed(future_to_job):
                    job = future_to_job[future]
                    try:
                        classes.add(future.result())
                        generated += 1
                    except Exception as exc:
                        _record_failure(job, exc)

        for school_class_id in sorted(classes):
            assign_class_ranks(
                school_class_id=school_class_id,
                academic_year=academic_year,
                semester=semester,
            )

        logger.info(
            "semester %s %s locked (campus=%s): locked=%s generated=%s errors=%s",
            academic_year,
            semester,
            campus_id if campus_id is not None else "all",
            locked,
            generated,
            len(failures),
        )
        return {
            "locked": locked,
            "students": len(jobs),
            "generated": generated,
            "errors": len(failures),
            "failures": failures,
        }

    # ==================================================
    # post-publication correction
    # ==================================================

    @staticmethod
    @transaction.atomic
    def audit_correction(
        *,
        principal: Principal,
        result_id: int,
        reason: str,
        changes: dict,
        ip_address: Optional[str] = None,
        requested_campus_id: Optional[int] = None,
    ) -> Result:
        """
        changes: {"score"?: Decimal, "teacher_remarks"?: str}
        변경된 필드마다 audit entry 를 먼저 남기고 값을 바꾼다.
        """
        if not principal.is_global:
            raise PermissionDenied("Only an administrator or director can correct published results.")

        reason = (reason or "").strip()
        if len(reason) < MIN_AUDIT_REASON_LENGTH:
            raise ValidationError({"reason": [
                f"A reason of at least {MIN_AUDIT_REASON_LENGTH} characters is required."
            ]})

        fields = {k: v for k, v in changes.items() if k in ("score", "teacher_remarks") and v is not None}
        if not fields:
            raise ValidationError({"non_field_errors": ["Nothing to correct: provide score or teacher_remarks."]})

        result = _locked_result(principal, result_id, requested_campus_id)
        if result.status == Result.Status.DRAFT:
            raise InvalidTransition("DRAFT results are edited directly, not through the audit path.")

        if "score" in fields:
            check_score_range(fields["score"], result.max_score)
            if result.exam_attendance == Result.Attendance.ABSENT:
                raise ValidationError({"score": ["An absent result keeps a score of 0."]})

        entries = 0
        for field, new_value in fields.items():
            old_value = getattr(result, field)
            if field == "score":
                old_json, new_json = float(old_value), float(new_value)
            else:
                old_json, new_json = old_value or "", str(new_value)
            if old_json == new_json:
                continue

            ResultAuditEntry.objects.create(
                result=result,
                modified_by_id=principal.user_id,
                field=field,
                old_value=old_json,
                new_value=new_json,
                reason=reason,
                ip_address=ip_address,
            )
            setattr(result, field, new_value)
            entries += 1

        if entries:
            result.save()

        logger.info(
            "result %s corrected by user %s (%s field(s)): %s",
            result.reference,
            principal.user_id,
            entries,
            reason,
        )
        return result
