# apps/domains/results/services/ingestion_service.py
"""
Bulk ingestion (한 평가 × 한 반)

- 행 단위 검증 → 유효 행만 insert (행마다 savepoint)
- 부분 성공이 정상: {inserted, skipped, errors: [{index, student_id, error}]}
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from django.db import transaction
from rest_framework.exceptions import PermissionDenied

from apps.api.common.exceptions import Conflict
from apps.core.principal import Principal
from apps.domains.results.models import Result
from apps.domains.results.services.result_service import (
    ResultService,
    check_grading_scale,
    check_same_campus,
    insert_with_reference,
)

logger = logging.getLogger(__name__)

DUPLICATE_ERROR = "Duplicate result for this evaluation."


def _parse_int(value) -> Optional[int]:
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return parsed if parsed > 0 else None


def _parse_decimal(value) -> Optional[Decimal]:
    if value is None or str(value).strip() == "":
        return None
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


class IngestionService:

    @staticmethod
    @transaction.atomic
    def create_bulk(
        *,
        principal: Principal,
        header: dict,
        entries: list[dict],
        requested_campus_id: Optional[int] = None,
    ) -> dict:
        """
        header : validated evaluation context (school_class, subject, teacher, evaluation_type,
                 evaluation_title, academic_year, semester, max_score, exam_date?, exam_period?,
                 grading_scale?, campus?)
        entries: raw rows [{student_id, score, coefficient?, teacher_remarks?, exam_attendance?,
                 strengths?, improvements?}]
        """
        campus = header.get("campus")
        campus_id = ResultService.resolve_write_campus(
            principal,
            requested_campus_id,
            campus.pk if campus is not None else None,
        )

        school_class = header["school_class"]
        if school_class.campus_id != campus_id:
            raise PermissionDenied("Class does not belong to your campus.")
        check_same_campus(campus_id, subject=header["subject"], teacher=header["teacher"])
        check_grading_scale(header.get("grading_scale"), campus_id)

        if principal.is_teacher and header["teacher"].user_id != principal.user_id:
            raise PermissionDenied("Teachers can only record results in their own name.")

        max_score = Decimal(str(header["max_score"]))
        title = header["evaluation_title"].strip()

        enrolled = set(school_class.students.values_list("id", flat=True))
        existing = set(
            Result.objects.alive().filter(
                subject=header["subject"],
                evaluation_type=header["evaluation_type"],
                evaluation_title=title,
                academic_year=header["academic_year"],
                semester=header["semester"],
            ).values_list("student_id", flat=True)
        )

        errors = []
        to_insert: list[tuple[int, int, Result]] = []
        seen: set[int] = set()

        for index, entry in enumerate(entries):
            raw_id = entry.get("student_id")
            student_id = _parse_int(raw_id)
            if student_id is None:
                errors.append({"index": index, "student_id": raw_id, "error": "Invalid student_id."})
                continue
            if student_id not in enrolled:
                errors.append({"index": index, "student_id": student_id, "error": "Student not enrolled in this class."})
                continue

            attendance = entry.get("exam_attendance") or Result.Attendance.PRESENT
            attendance = str(attendance).strip().lower()
            if attendance not in Result.Attendance.values:
                errors.append({
                    "index": index,
                    "student_id": student_id,
                    "error": f"exam_attendance must be one of {', '.join(Result.Attendance.values)}.",
                })
                continue

            score = _parse_decimal(entry.get("score"))
            if score is None and attendance == Result.Attendance.ABSENT:
                score = Decimal("0")
            if score is None or score < 0 or score > max_score:
                errors.append({"index": index, "student_id": student_id, "error": f"Score must be 0-{max_score}."})
                continue

            coefficient = _parse_decimal(entry.get("coefficient"))
            if entry.get("coefficient") not in (None, "") and (coefficient is None or coefficient < 0):
                errors.append({"index": index, "student_id": student_id, "error": "Invalid coefficient."})
                continue

            if student_id in existing or student_id in seen:
                errors.append({"index": index, "student_id": student_id, "error": DUPLICATE_ERROR})
                continue
            seen.add(student_id)

            to_insert.append((index, student_id, Result(
                campus_id=campus_id,
                student_id=student_id,
                school_class=school_class,
                subject=header["subject"],
                teacher=header["teacher"],
                evaluation_type=header["evaluation_type"],
                evaluation_title=title,
                academic_year=header["academic_year"],
                semester=header["semester"],
                score=score,
                max_score=max_score,
                coefficient=coefficient if coefficient is not None else Decimal("1"),
                grading_scale=header.get("grading_scale"),
                exam_date=header.get("exam_date"),
                exam_period=header.get("exam_period") or Result.ExamPeriod.MIDTERM,
                exam_attendance=attendance,
                teacher_remarks=str(entry.get("teacher_remarks") or "")[:1000],
                strengths=str(entry.get("strengths") or "")[:500],
                improvements=str(entry.get("improvements") or "")[:500],
                status=Result.Status.DRAFT,
            )))

        inserted = 0
        for index, student_id, result in to_insert:
            try:
                insert_with_reference(result)
                inserted += 1
            except Conflict:
                # 사전 확인 이후 동시에 들어온 같은 평가
                errors.append({"index": index, "student_id": student_id, "error": DUPLICATE_ERROR})

        errors.sort(key=lambda e: e["index"])

        logger.info(
            "bulk create %s/%s (%s %s): inserted=%s skipped=%s",
            header["evaluation_type"],
            title,
            header["academic_year"],
            header["semester"],
            inserted,
            len(errors),
        )
        return {"inserted": inserted, "skipped": len(errors), "errors": errors}
