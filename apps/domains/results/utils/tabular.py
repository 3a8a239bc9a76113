# apps/domains/results/utils/tabular.py
"""
Tabular import (CSV / XLSX) → bulk entries

- 첫 행 = 헤더
- 헤더 별칭: snake_case / camelCase 둘 다 인식
- 빈 행은 건너뜀
"""
from __future__ import annotations

import csv
import io
from typing import Any

from django.core.exceptions import ValidationError

XLSX_CONTENT_TYPES = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
)

HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "student_id": ("student_id", "studentid", "student"),
    "score": ("score",),
    "coefficient": ("coefficient", "coef"),
    "teacher_remarks": ("teacher_remarks", "teacherremarks"),
    "exam_attendance": ("exam_attendance", "examattendance", "attendance"),
    "strengths": ("strengths",),
    "improvements": ("improvements",),
}


def _normalize_header(label: Any) -> str:
    return str(label or "").strip().lower().replace(" ", "_")


def _header_key(label: Any):
    norm = _normalize_header(label)
    for key, aliases in HEADER_ALIASES.items():
        if norm in aliases:
            return key
    return None


def _cell(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def is_xlsx(upload) -> bool:
    name = (getattr(upload, "name", "") or "").lower()
    content_type = getattr(upload, "content_type", "") or ""
    return name.endswith(".xlsx") or content_type in XLSX_CONTENT_TYPES


def _csv_rows(raw: bytes) -> list[list[Any]]:
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError({"file": ["CSV file must be UTF-8 encoded."]})
    try:
        return [row for row in csv.reader(io.StringIO(text))]
    except csv.Error as exc:
        raise ValidationError({"file": [f"CSV parsing error: {exc}"]})


def _xlsx_rows(raw: bytes) -> list[list[Any]]:
    import openpyxl
    from openpyxl.utils.exceptions import InvalidFileException
    from zipfile import BadZipFile

    try:
        wb = openpyxl.load_workbook(io.BytesIO(raw), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError) as exc:
        raise ValidationError({"file": [f"Excel parsing error: {exc}"]})

    ws = wb.active
    if ws is None:
        wb.close()
        raise ValidationError({"file": ["Workbook has no active sheet."]})

    rows: list[list[Any]] = []
    for row in ws.iter_rows(values_only=True):
        rows.append(list(row) if row else [])
    wb.close()
    return rows


def read_entries(upload) -> list[dict]:
    """
    upload (UploadedFile) → [{student_id, score, coefficient?, teacher_remarks?,
                              exam_attendance?, strengths?, improvements?}]
    """
    raw = upload.read()
    rows = _xlsx_rows(raw) if is_xlsx(upload) else _csv_rows(raw)

    rows = [r for r in rows if any(_cell(c) is not None for c in r)]
    if not rows:
        raise ValidationError({"file": ["File is empty."]})

    header = [_header_key(c) for c in rows[0]]
    if "student_id" not in header or "score" not in header:
        raise ValidationError({"file": ["Header must contain student_id and score columns."]})

    entries = []
    for row in rows[1:]:
        entry = {}
        for idx, key in enumerate(header):
            if key is None or idx >= len(row):
                continue
            value = _cell(row[idx])
            if value is not None:
                entry[key] = value
        if entry:
            entries.append(entry)

    if not entries:
        raise ValidationError({"file": ["File has a header but no data rows."]})
    return entries
