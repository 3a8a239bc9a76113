# PATH: apps/domains/results/models/grading_scale.py
"""
GradingScale (campus 단위 배점표)

bands: [{min, max, label, letter_grade?, gpa?, ects_grade?, ects_credits?, color?}]
- 양끝 포함 구간, min 오름차순, 서로 겹치지 않음, 각 구간은 [0, max_score] 안
- 저장 시마다 4dp 정규화 + 검증 (위반 시 ValidationError)
- campus 당 is_default & is_active 는 최대 1개 (partial unique + service 에서 강등)
"""
from __future__ import annotations

import logging
import re
from decimal import Decimal
from typing import Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from apps.api.common.models import BaseModel
from apps.core.db.campus_queryset import CampusQuerySet
from apps.domains.results.utils.numbers import round2, round4, to_decimal

logger = logging.getLogger(__name__)

ECTS_GRADES = ("A", "B", "C", "D", "E", "FX", "F")
_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")

BAND_KEYS = (
    "min",
    "max",
    "label",
    "letter_grade",
    "gpa",
    "ects_grade",
    "ects_credits",
    "color",
)


def _num(value) -> float:
    return float(round4(value))


def normalize_bands(bands, max_score: Decimal) -> list[dict]:
    """
    Canonicalize + validate bands. Returns the sorted band list.

    Raises ValidationError({"bands": [...]}) on the first violation.
    """
    if bands is None:
        return []
    if not isinstance(bands, (list, tuple)):
        raise ValidationError({"bands": ["Bands must be a list."]})

    cleaned = []
    for i, raw in enumerate(bands):
        if not isinstance(raw, dict):
            raise ValidationError({"bands": [f"Band at index {i} must be an object."]})
        if raw.get("min") is None or raw.get("max") is None:
            raise ValidationError({"bands": [f"Band at index {i}: min and max are required."]})
        label = str(raw.get("label") or "").strip()
        if not label:
            raise ValidationError({"bands": [f"Band at index {i}: label is required."]})

        try:
            b_min = round4(raw["min"])
            b_max = round4(raw["max"])
        except ArithmeticError:
            raise ValidationError({"bands": [f"Band at index {i}: min and max must be numbers."]})

        if b_min >= b_max:
            raise ValidationError({"bands": [
                f"Band at index {i} is invalid: min ({b_min}) must be strictly less than max ({b_max})."
            ]})
        if b_min < 0 or b_max > max_score:
            raise ValidationError({"bands": [
                f"Band at index {i} [{b_min}-{b_max}] is out of range [0, {max_score}]."
            ]})

        band = {"min": float(b_min), "max": float(b_max), "label": label}

        letter = str(raw.get("letter_grade") or "").strip().upper()
        if letter:
            band["letter_grade"] = letter

        if raw.get("gpa") is not None:
            gpa = _num(raw["gpa"])
            if gpa < 0 or gpa > 4:
                raise ValidationError({"bands": [f"Band at index {i}: gpa must be within [0, 4]."]})
            band["gpa"] = gpa

        ects = raw.get("ects_grade")
        if ects:
            if ects not in ECTS_GRADES:
                raise ValidationError({"bands": [f"Band at index {i}: '{ects}' is not a valid ECTS grade."]})
            band["ects_grade"] = ects

        if raw.get("ects_credits") is not None:
            credits = _num(raw["ects_credits"])
            if credits < 0:
                raise ValidationError({"bands": [f"Band at index {i}: ects_credits cannot be negative."]})
            band["ects_credits"] = credits

        color = raw.get("color")
        if color:
            if not _HEX_COLOR.match(str(color)):
                raise ValidationError({"bands": [
                    f"Band at index {i}: color must be a 6-digit hex (e.g. #FF5733)."
                ]})
            band["color"] = str(color)

        cleaned.append(band)

    cleaned.sort(key=lambda b: b["min"])

    for i in range(len(cleaned) - 1):
        cur, nxt = cleaned[i], cleaned[i + 1]
        if to_decimal(cur["max"]) >= to_decimal(nxt["min"]):
            raise ValidationError({"bands": [
                f"Bands overlap: [{cur['min']}-{cur['max']}] and [{nxt['min']}-{nxt['max']}]."
            ]})

    return cleaned


class GradingScale(BaseModel):

    class System(models.TextChoices):
        NUMERIC_20 = "NUMERIC_20", "Out of 20"
        NUMERIC_100 = "NUMERIC_100", "Out of 100"
        LETTER = "LETTER", "Letter"
        GPA = "GPA", "GPA"

    campus = models.ForeignKey(
        "core.Campus",
        on_delete=models.PROTECT,
        related_name="grading_scales",
    )

    name = models.CharField(max_length=100)
    description = models.CharField(max_length=300, blank=True)

    system = models.CharField(max_length=20, choices=System.choices)
    max_score = models.DecimalField(max_digits=10, decimal_places=4)
    pass_mark = models.DecimalField(max_digits=10, decimal_places=4)

    bands = models.JSONField(default=list, blank=True)

    is_default = models.BooleanField(default=False, db_index=True)
    is_active = models.BooleanField(default=True, db_index=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    objects = CampusQuerySet.as_manager()

    class Meta:
        ordering = ["-is_default", "name", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["campus", "name"],
                name="uniq_grading_scale_name_per_campus",
            ),
            models.UniqueConstraint(
                fields=["campus"],
                condition=Q(is_default=True, is_active=True),
                name="uniq_default_grading_scale_per_campus",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.system})"

    # --------------------------------------------------
    # invariants
    # --------------------------------------------------

    def normalize(self) -> None:
        """4dp canonicalization + band validation. Raises ValidationError."""
        if self.max_score is None or self.pass_mark is None:
            raise ValidationError({"max_score": ["max_score and pass_mark are required."]})

        self.max_score = round4(self.max_score)
        self.pass_mark = round4(self.pass_mark)

        if self.max_score <= 0:
            raise ValidationError({"max_score": ["Max score must be positive."]})
        if self.pass_mark < 0:
            raise ValidationError({"pass_mark": ["Pass mark cannot be negative."]})
        if self.pass_mark > self.max_score:
            raise ValidationError({"pass_mark": [
                f"pass_mark ({self.pass_mark}) cannot exceed max_score ({self.max_score})."
            ]})

        self.bands = normalize_bands(self.bands, self.max_score)

        if self.bands and self.resolve_band(self.pass_mark) is None:
            logger.warning(
                "grading scale %r: pass_mark=%s is not covered by any band",
                self.name,
                self.pass_mark,
            )

    def save(self, *args, **kwargs):
        self.normalize()
        super().save(*args, **kwargs)

    # --------------------------------------------------
    # resolution
    # --------------------------------------------------

    def resolve_band(self, score) -> Optional[dict]:
        if score is None:
            return None
        s = round4(score)
        for band in self.bands or []:
            if to_decimal(band["min"]) <= s <= to_decimal(band["max"]):
                return dict(band)
        return None

    def convert_to(self, score, target_max) -> Decimal:
        return round2(to_decimal(score) / to_decimal(self.max_score) * to_decimal(target_max))

    def is_passing(self, score) -> bool:
        return round4(score) >= to_decimal(self.pass_mark)

    @classmethod
    def get_for_campus(cls, campus_id) -> Optional["GradingScale"]:
        """default active -> oldest active -> None"""
        qs = cls.objects.filter(campus_id=campus_id, is_active=True)
        default = qs.filter(is_default=True).first()
        if default is not None:
            return default
        return qs.order_by("created_at", "id").first()
