# apps/domains/results/services/analytics_service.py
"""
Read-side analytics (no writes except the advisory dropout-risk score)

- get_transcript        : on-the-fly bulletin, 학기별
- class_distribution    : 평가 1건의 통계 + 히스토그램
- retake_list           : 재시험 대상 학생별 그룹
- campus_overview       : 캠퍼스 facet 집계
- verify_result / verify_transcript : 공개 검증 (principal 없음)
- compute_dropout_risk  : publish 후 비동기 계산
"""
from __future__ import annotations

import logging
import math
from collections import OrderedDict
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.db.models import Avg, Count, F, Q
from rest_framework.exceptions import NotFound, PermissionDenied

from apps.core.campus import campus_filter, effective_campus_id
from apps.core.principal import Principal
from apps.domains.results.models import FinalTranscript, GradingScale, Result
from apps.domains.results.services.transcript_service import aggregate_rows
from apps.domains.results.utils.numbers import as_float, round2, round_half_up, to_decimal
from apps.domains.students.models import Student

logger = logging.getLogger(__name__)

PASSING_ON_20 = Decimal("10")
AT_RISK_THRESHOLD = 60
HISTOGRAM_BUCKETS = 10
ONE_DP = Decimal("0.1")

SCORE_COLORS = (
    (Decimal("7"), "#ef4444"),   # red
    (Decimal("10"), "#f97316"),  # orange
    (Decimal("14"), "#3b82f6"),  # blue
)
SCORE_COLOR_DEFAULT = "#10b981"  # green


def score_color(normalized) -> str:
    value = to_decimal(normalized)
    for upper, color in SCORE_COLORS:
        if value < upper:
            return color
    return SCORE_COLOR_DEFAULT


def _percent(part: int, total: int) -> Optional[float]:
    if not total:
        return None
    return float(round_half_up(Decimal(part) * 100 / Decimal(total), ONE_DP))


def _semester_sort_key(item: dict):
    return item["semester"]


# ==================================================
# transcript (on the fly)
# ==================================================

def get_transcript(
    *,
    principal: Principal,
    student_id: int,
    academic_year: Optional[str] = None,
    requested_campus_id: Optional[int] = None,
) -> dict:
    student = Student.objects.filter(pk=student_id).first()
    if student is None:
        raise NotFound("Student not found.")

    if principal.is_student and student.user_id != principal.user_id:
        raise PermissionDenied("Access denied.")

    campus_id = effective_campus_id(principal, requested_campus_id)
    if campus_id is not None and student.campus_id != campus_id:
        raise PermissionDenied("Access denied.")

    rows = (
        Result.objects
        .counted()
        .without_replaced_originals()
        .filter(student_id=student.pk, campus_id=student.campus_id)
        .select_related("subject")
        .order_by("subject__name", "subject_id", "created_at", "id")
    )
    if academic_year:
        rows = rows.filter(academic_year=academic_year)

    periods: "OrderedDict[tuple, list]" = OrderedDict()
    for r in rows:
        periods.setdefault((r.academic_year, r.semester), []).append(r)

    scale = GradingScale.get_for_campus(student.campus_id)

    semesters = []
    for (year, semester), items in periods.items():
        agg = aggregate_rows(items, scale)
        semesters.append({
            "academic_year": year,
            "semester": semester,
            "general_average": agg["general_average"],
            "subjects": agg["subjects"],
        })

    # year desc, semester asc
    semesters.sort(key=_semester_sort_key)
    semesters.sort(key=lambda s: s["academic_year"], reverse=True)

    return {
        "student": {
            "id": student.pk,
            "first_name": student.first_name,
            "last_name": student.last_name,
            "matricule": student.matricule,
        },
        "semesters": semesters,
        "verification_url": settings.RESULTS_VERIFICATION_BASE_URL,
    }


# ==================================================
# class distribution
# ==================================================

def class_distribution(
    *,
    principal: Principal,
    school_class_id: int,
    subject_id: int,
    evaluation_title: str,
    academic_year: str,
    semester: str,
    requested_campus_id: Optional[int] = None,
) -> dict:
    """
    non-deleted, non-archived, present (absent/excused 제외)

    histogram: [0,2) [2,4) ... [16,18) [18,20]  (마지막 구간만 양끝 포함)
    """
    scores = list(
        Result.objects
        .alive()
        .filter(campus_filter(principal, requested_campus_id))
        .filter(
            school_class_id=school_class_id,
            subject_id=subject_id,
            evaluation_title=evaluation_title,
            academic_year=academic_year,
            semester=semester,
        )
        .exclude(status=Result.Status.ARCHIVED)
        .exclude(exam_attendance__in=(Result.Attendance.ABSENT, Result.Attendance.EXCUSED))
        .exclude(normalized_score__isnull=True)
        .values_list("normalized_score", flat=True)
    )

    n = len(scores)
    if n == 0:
        raise NotFound("No results found for this evaluation.")

    values = [to_decimal(s) for s in scores]
    mean = sum(values, Decimal("0")) / n
    variance = sum(((v - mean) ** 2 for v in values), Decimal("0")) / n
    passing = sum(1 for v in values if v >= PASSING_ON_20)

    buckets = [0] * HISTOGRAM_BUCKETS
    for v in values:
        idx = min(int(v // 2), HISTOGRAM_BUCKETS - 1)
        buckets[max(idx, 0)] += 1

    histogram = []
    for i, count in enumerate(buckets):
        low, high = i * 2, i * 2 + 2
        last = i == HISTOGRAM_BUCKETS - 1
        histogram.append({
            "range": f"[{low}, {high}]" if last else f"[{low}, {high})",
            "min": low,
            "max": high,
            "count": count,
        })

    return {
        "n": n,
        "mean": float(round2(mean)),
        "min": float(min(values)),
        "max": float(max(values)),
        "std_dev": float(round2(math.sqrt(variance))),
        "passing_rate": _percent(passing, n),
        "histogram": histogram,
    }


# ==================================================
# retake list
# ==================================================

def retake_list(
    *,
    principal: Principal,
    school_class_id: int,
    academic_year: str,
    semester: str,
    subject_id: Optional[int] = None,
    requested_campus_id: Optional[int] = None,
) -> dict:
    qs = (
        Result.objects
        .alive()
        .released()
        .filter(campus_filter(principal, requested_campus_id))
        .filter(
            school_class_id=school_class_id,
            academic_year=academic_year,
            semester=semester,
            is_retake_eligible=True,
            retake_of__isnull=True,
        )
        .exclude(exam_attendance=Result.Attendance.EXCUSED)
        .select_related("student", "subject")
        .order_by("normalized_score", "id")
    )
    if subject_id:
        qs = qs.filter(subject_id=subject_id)

    by_student: "OrderedDict[int, dict]" = OrderedDict()
    for r in qs:
        entry = by_student.get(r.student_id)
        if entry is None:
            entry = by_student[r.student_id] = {
                "student": {
                    "id": r.student_id,
                    "first_name": r.student.first_name,
                    "last_name": r.student.last_name,
                    "matricule": r.student.matricule,
                },
                "failed_subjects": [],
            }
        entry["failed_subjects"].append({
            "result": r.pk,
            "subject": {"id": r.subject_id, "name": r.subject.name, "code": r.subject.code},
            "score": as_float(r.score),
            "max_score": as_float(r.max_score),
            "normalized_score": as_float(r.normalized_score),
            "grade_band": r.grade_band,
            "evaluation_type": r.evaluation_type,
            "evaluation_title": r.evaluation_title,
            "score_color": score_color(r.normalized_score or 0),
        })

    return {"total": len(by_student), "students": list(by_student.values())}


# ==================================================
# campus overview
# ==================================================

def _facet(qs, field: str) -> dict:
    rows = qs.exclude(**{f"{field}__in": ("", None)}).values(field).annotate(count=Count("id")).order_by(field)
    return {row[field]: row["count"] for row in rows}


def campus_overview(
    *,
    principal: Principal,
    academic_year: Optional[str] = None,
    semester: Optional[str] = None,
    requested_campus_id: Optional[int] = None,
) -> dict:
    qs = Result.objects.alive().filter(campus_filter(principal, requested_campus_id))
    if academic_year:
        qs = qs.filter(academic_year=academic_year)
    if semester:
        qs = qs.filter(semester=semester)

    released = qs.released()
    stats = released.aggregate(
        total_published=Count("id"),
        average_normalized=Avg("normalized_score"),
        passing=Count("id", filter=Q(normalized_score__gte=PASSING_ON_20)),
        retake_eligible=Count("id", filter=Q(is_retake_eligible=True)),
        at_risk=Count("id", filter=Q(dropout_risk_score__gte=AT_RISK_THRESHOLD)),
        absent_students=Count("id", filter=Q(exam_attendance=Result.Attendance.ABSENT)),
    )

    average = stats["average_normalized"]
    return {
        "by_status": _facet(qs, "status"),
        "by_evaluation_type": _facet(qs, "evaluation_type"),
        "by_exam_period": _facet(qs, "exam_period"),
        "average_normalized": None if average is None else float(round2(average)),
        "passing_rate": _percent(stats["passing"], stats["total_published"]),
        "total_published": stats["total_published"],
        "retake_eligible": stats["retake_eligible"],
        "at_risk": stats["at_risk"],
        "absent_students": stats["absent_students"],
    }


# ==================================================
# public verification
# ==================================================

def verify_result(token: str) -> dict:
    """
    deleted / DRAFT / unknown token 은 모두 같은 NotFound.
    반환 필드는 아래 whitelist 뿐.
    """
    result = (
        Result.objects
        .alive()
        .exclude(status=Result.Status.DRAFT)
        .select_related("student", "subject", "school_class")
        .filter(verification_token=token)
        .first()
        if token else None
    )
    if result is None:
        raise NotFound("Invalid or expired verification token.")

    return {
        "is_authentic": True,
        "student": {
            "first_name": result.student.first_name,
            "last_name": result.student.last_name,
            "matricule": result.student.matricule,
        },
        "subject": {"name": result.subject.name, "code": result.subject.code},
        "school_class": {"name": result.school_class.name},
        "academic_year": result.academic_year,
        "semester": result.semester,
        "evaluation_type": result.evaluation_type,
        "evaluation_title": result.evaluation_title,
        "exam_period": result.exam_period,
        "score_on_20": as_float(result.normalized_score),
        "grade_band": result.grade_band,
        "published_at": result.published_at.isoformat() if result.published_at else None,
    }


def verify_transcript(token: str) -> dict:
    transcript = (
        FinalTranscript.objects
        .filter(
            verification_token=token,
            status__in=(FinalTranscript.Status.VALIDATED, FinalTranscript.Status.SEALED),
        )
        .select_related("student", "school_class")
        .first()
        if token else None
    )
    if transcript is None:
        raise NotFound("Invalid or expired verification token.")

    return {
        "is_authentic": True,
        "student": {
            "first_name": transcript.student.first_name,
            "last_name": transcript.student.last_name,
            "matricule": transcript.student.matricule,
        },
        "school_class": {"name": transcript.school_class.name},
        "academic_year": transcript.academic_year,
        "semester": transcript.semester,
        "general_average": as_float(transcript.general_average),
        "class_rank": transcript.class_rank,
        "class_total": transcript.class_total,
        "decision": transcript.decision,
        "status": transcript.status,
        "validated_at": transcript.validated_at.isoformat() if transcript.validated_at else None,
    }


# ==================================================
# dropout risk
# ==================================================

def _slope(ys: list[float]) -> float:
    n = len(ys)
    x_mean = (n - 1) / 2
    y_mean = sum(ys) / n
    num = sum((x - x_mean) * (y - y_mean) for x, y in enumerate(ys))
    den = sum((x - x_mean) ** 2 for x in range(n))
    return num / den if den else 0.0


def dropout_risk_from_scores(scores: list[float]) -> int:
    """
    scores: 시간순 (오래된 것 → 최근), /20

    trend  : slope < -1 → 40, slope < 0 → 20
    level  : mean < 7 → 40, < 10 → 25, < 12 → 10
    failure: round(fail_rate × 20)
    """
    n = len(scores)
    if n < 2:
        return 0

    slope = _slope(scores)
    mean = sum(scores) / n
    fail_rate = sum(1 for s in scores if s < 10) / n

    risk = 0
    if slope < -1:
        risk += 40
    elif slope < 0:
        risk += 20

    if mean < 7:
        risk += 40
    elif mean < 10:
        risk += 25
    elif mean < 12:
        risk += 10

    risk += int(round_half_up(Decimal(str(fail_rate)) * 20, Decimal("1")))
    return min(risk, 100)


def compute_dropout_risk(student_id: int, campus_id: int) -> int:
    window = getattr(settings, "RESULTS_DROPOUT_RISK_WINDOW", 10)
    recent = list(
        Result.objects
        .alive()
        .released()
        .exclude(exam_attendance=Result.Attendance.EXCUSED)
        .filter(student_id=student_id, campus_id=campus_id)
        .order_by(F("published_at").desc(nulls_last=True), "-id")
        [:window]
    )

    scores = []
    for r in reversed(recent):
        if r.normalized_score is not None:
            scores.append(float(r.normalized_score))
        elif r.score is not None and r.max_score:
            scores.append(float(to_decimal(r.score) / to_decimal(r.max_score) * 20))

    return dropout_risk_from_scores(scores)


def refresh_dropout_risk(result_id: int) -> Optional[int]:
    """Stores the score on the published row. Returns None if the row is gone."""
    row = Result.objects.alive().filter(pk=result_id).values("student_id", "campus_id").first()
    if row is None:
        return None
    risk = compute_dropout_risk(row["student_id"], row["campus_id"])
    # update(): save() 훅(grade_band 등)을 타지 않음
    Result.objects.filter(pk=result_id).update(dropout_risk_score=risk)
    return risk
