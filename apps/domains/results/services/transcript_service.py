# apps/domains/results/services/transcript_service.py
"""
Final transcript store

- aggregate_semester(): 과목별 평균 + 가중 종합 평균 (저장 없이 계산, analytics 와 공유)
- generate_for_student(): (student, year, semester) 단위 upsert, 항상 DRAFT
- assign_class_ranks(): 같은 (class, year, semester) 안에서 dense rank
- validate / sign / seal: 상태 전이
"""
from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound

from apps.api.common.exceptions import Conflict, InvalidTransition
from apps.core.campus import effective_campus_id
from apps.core.principal import Principal
from apps.domains.results.models import FinalTranscript, GradingScale, Result
from apps.domains.results.utils.numbers import as_float, round2, to_decimal

logger = logging.getLogger(__name__)

PASSING_AVERAGE = Decimal("10")


# --------------------------------------------------
# aggregation
# --------------------------------------------------

def counted_rows(*, student_id: int, academic_year: str, semester: Optional[str] = None,
                 campus_id: Optional[int] = None):
    """
    평균 대상 행:
    - 삭제 안 됨, PUBLISHED/ARCHIVED, excused 제외
    - RETAKE 가 공개된 원본 제외 (retake 행이 원본을 대체)
    """
    qs = (
        Result.objects
        .counted()
        .without_replaced_originals()
        .filter(student_id=student_id, academic_year=academic_year)
    )
    if semester is not None:
        qs = qs.filter(semester=semester)
    if campus_id is not None:
        qs = qs.filter(campus_id=campus_id)
    return qs.select_related("subject").order_by("subject__name", "subject_id", "created_at", "id")


def _evaluation_snapshot(r: Result) -> dict:
    return {
        "result": r.pk,
        "evaluation_type": r.evaluation_type,
        "evaluation_title": r.evaluation_title,
        "exam_period": r.exam_period,
        "score": as_float(r.score),
        "max_score": as_float(r.max_score),
        "normalized_score": as_float(r.normalized_score),
        "coefficient": as_float(r.coefficient),
        "grade_band": r.grade_band,
        "teacher_remarks": r.teacher_remarks,
    }


def _subject_band(scale: Optional[GradingScale], average: Decimal) -> Optional[dict]:
    if scale is None:
        return None
    return scale.resolve_band(round2(average / 20 * to_decimal(scale.max_score)))


def aggregate_rows(rows, scale: Optional[GradingScale] = None) -> dict:
    """
    rows -> {"subjects": [...], "general_average": float|None}

    subject average = round2(avg(score / max_score × 20))
    coefficient     = subject.coefficient, else first row's coefficient
    general average = round2(Σ avg × coef / Σ coef)
    """
    groups: "OrderedDict[int, list[Result]]" = OrderedDict()
    for r in rows:
        groups.setdefault(r.subject_id, []).append(r)

    subjects = []
    weighted_sum = Decimal("0")
    coef_sum = Decimal("0")

    for subject_id, items in groups.items():
        subject = items[0].subject
        raw = [to_decimal(r.score) / to_decimal(r.max_score) * 20 for r in items]
        average = round2(sum(raw, Decimal("0")) / len(raw))

        coefficient = subject.coefficient if subject.coefficient is not None else items[0].coefficient
        coefficient = to_decimal(coefficient)

        weighted_sum += average * coefficient
        coef_sum += coefficient

        subjects.append({
            "subject": subject_id,
            "subject_name": subject.name,
            "subject_code": subject.code,
            "coefficient": float(coefficient),
            "average": float(average),
            "is_passing": average >= PASSING_AVERAGE,
            "grade_band": _subject_band(scale, average),
            "evaluations": [_evaluation_snapshot(r) for r in items],
        })

    general_average = None
    if subjects and coef_sum > 0:
        general_average = float(round2(weighted_sum / coef_sum))

    return {"subjects": subjects, "general_average": general_average}


# --------------------------------------------------
# generation
# --------------------------------------------------

def _class_for(student_id: int, academic_year: str, semester: str, campus_id: int) -> Optional[int]:
    return (
        Result.objects
        .alive()
        .released()
        .filter(student_id=student_id, academic_year=academic_year, semester=semester, campus_id=campus_id)
        .order_by("-published_at", "-id")
        .values_list("school_class_id", flat=True)
        .first()
    )


@transaction.atomic
def generate_for_student(
    *,
    student_id: int,
    campus_id: int,
    academic_year: str,
    semester: str,
    generated_by_id: Optional[int] = None,
    school_class_id: Optional[int] = None,
) -> FinalTranscript:
    existing = (
        FinalTranscript.objects
        .select_for_update()
        .filter(student_id=student_id, academic_year=academic_year, semester=semester)
        .first()
    )
    if existing is not None and existing.is_sealed:
        raise InvalidTransition("Sealed transcripts cannot be regenerated.")

    school_class_id = school_class_id or _class_for(student_id, academic_year, semester, campus_id)
    if school_class_id is None:
        raise NotFound("No published results for this student in this period.")

    scale = GradingScale.get_for_campus(campus_id)
    rows = counted_rows(
        student_id=student_id,
        academic_year=academic_year,
        semester=semester,
        campus_id=campus_id,
    )
    agg = aggregate_rows(rows, scale)

    transcript = existing or FinalTranscript(
        student_id=student_id,
        academic_year=academic_year,
        semester=semester,
    )
    transcript.campus_id = campus_id
    transcript.school_class_id = school_class_id
    transcript.subjects = agg["subjects"]
    transcript.general_average = (
        None if agg["general_average"] is None else round2(agg["general_average"])
    )
    transcript.status = FinalTranscript.Status.DRAFT
    transcript.generated_by_id = generated_by_id
    transcript.generated_at = timezone.now()
    transcript.save()
    return transcript


@transaction.atomic
def assign_class_ranks(*, school_class_id: int, academic_year: str, semester: str) -> int:
    """
    Dense rank on descending general_average (ties share a rank).
    Transcripts without an average get no rank. Returns the class total.
    """
    transcripts = list(
        FinalTranscript.objects
        .select_for_update()
        .filter(school_class_id=school_class_id, academic_year=academic_year, semester=semester)
        .order_by("id")
    )
    total = len(transcripts)

    averages = sorted(
        {t.general_average for t in transcripts if t.general_average is not None},
        reverse=True,
    )
    rank_of = {avg: i + 1 for i, avg in enumerate(averages)}

    for t in transcripts:
        if t.is_sealed:
            continue
        t.class_rank = rank_of.get(t.general_average) if t.general_average is not None else None
        t.class_total = total or None
        t.save(update_fields=["class_rank", "class_total", "updated_at"])

    return total


# --------------------------------------------------
# read / transitions
# --------------------------------------------------

def visible_transcripts(principal: Principal, requested_campus_id: Optional[int] = None):
    qs = FinalTranscript.objects.for_principal(principal, requested_campus_id)
    if principal.is_student:
        qs = qs.filter(
            student__user_id=principal.user_id,
            status__in=(FinalTranscript.Status.VALIDATED, FinalTranscript.Status.SEALED),
        )
    return qs


def get_transcript_for_manager(
    principal: Principal,
    transcript_id: int,
    requested_campus_id: Optional[int] = None,
) -> FinalTranscript:
    campus_id = effective_campus_id(principal, requested_campus_id)
    qs = FinalTranscript.objects.select_for_update().filter(pk=transcript_id)
    if campus_id is not None:
        qs = qs.filter(campus_id=campus_id)
    transcript = qs.first()
    if transcript is None:
        raise NotFound("Final transcript not found.")
    return transcript


class TranscriptService:

    @staticmethod
    @transaction.atomic
    def validate(
        *,
        principal: Principal,
        transcript_id: int,
        decision: Optional[str] = None,
        general_appreciation: Optional[str] = None,
        requested_campus_id: Optional[int] = None,
    ) -> FinalTranscript:
        transcript = get_transcript_for_manager(principal, transcript_id, requested_campus_id)
        if transcript.status != FinalTranscript.Status.DRAFT:
            raise InvalidTransition(
                f"Only DRAFT transcripts can be validated. Current status: {transcript.status}"
            )

        if decision is not None:
            transcript.decision = decision.strip()
        if general_appreciation is not None:
            transcript.general_appreciation = general_appreciation.strip()

        transcript.status = FinalTranscript.Status.VALIDATED
        transcript.validated_at = timezone.now()
        transcript.validated_by_id = principal.user_id
        if not transcript.verification_token:
            transcript.verification_token = str(uuid.uuid4())
        transcript.save()

        logger.info("final transcript %s validated by user %s", transcript.pk, principal.user_id)
        return transcript

    @staticmethod
    @transaction.atomic
    def seal(
        *,
        principal: Principal,
        transcript_id: int,
        requested_campus_id: Optional[int] = None,
    ) -> FinalTranscript:
        transcript = get_transcript_for_manager(principal, transcript_id, requested_campus_id)
        if transcript.status != FinalTranscript.Status.VALIDATED:
            raise InvalidTransition(
                f"Only VALIDATED transcripts can be sealed. Current status: {transcript.status}"
            )
        transcript.status = FinalTranscript.Status.SEALED
        transcript.sealed_at = timezone.now()
        transcript.sealed_by_id = principal.user_id
        transcript.save()

        logger.info("final transcript %s sealed by user %s", transcript.pk, principal.user_id)
        return transcript

    @staticmethod
    @transaction.atomic
    def sign(
        *,
        transcript_id: int,
        signed_by: str,
        method: str = FinalTranscript.SignatureMethod.CLICK,
        ip_address: Optional[str] = None,
    ) -> FinalTranscript:
        transcript = FinalTranscript.objects.select_for_update().filter(pk=transcript_id).first()
        if transcript is None:
            raise NotFound("Final transcript not found.")
        if transcript.is_signed:
            raise Conflict("This transcript has already been signed.")
        if transcript.status not in (FinalTranscript.Status.VALIDATED, FinalTranscript.Status.SEALED):
            raise InvalidTransition("Only VALIDATED or SEALED transcripts can be signed.")

        transcript.parent_signature = {
            "signed_at": timezone.now().isoformat(),
            "signed_by": signed_by,
            "ip_address": ip_address,
            "method": method,
        }
        transcript.save(update_fields=["parent_signature", "updated_at"])
        return transcript
