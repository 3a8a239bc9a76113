# apps/domains/results/services/grading_scale_service.py
from __future__ import annotations

from typing import Optional

from django.db import IntegrityError, transaction
from rest_framework.exceptions import NotFound

from apps.api.common.exceptions import Conflict
from apps.core.campus import require_campus_id
from apps.core.principal import Principal
from apps.domains.results.models import GradingScale

EDITABLE_FIELDS = (
    "name",
    "description",
    "pass_mark",
    "bands",
    "is_default",
    "is_active",
)


class GradingScaleService:
    """
    Grading scale registry.

    - list: active scales of the campus, default first then name
    - create / update: band invariants enforced by GradingScale.save()
    - single default per campus: other defaults are demoted in the same transaction
    """

    @staticmethod
    def list_for(principal: Principal, requested_campus_id: Optional[int] = None):
        return (
            GradingScale.objects
            .for_principal(principal, requested_campus_id)
            .filter(is_active=True)
            .order_by("-is_default", "name", "id")
        )

    @staticmethod
    def get(principal: Principal, scale_id: int, requested_campus_id: Optional[int] = None) -> GradingScale:
        scale = (
            GradingScale.objects
            .for_principal(principal, requested_campus_id)
            .filter(pk=scale_id)
            .first()
        )
        if scale is None:
            raise NotFound("Grading scale not found.")
        return scale

    @staticmethod
    def _demote_other_defaults(scale: GradingScale) -> None:
        (
            GradingScale.objects
            .select_for_update()
            .filter(campus_id=scale.campus_id, is_default=True)
            .exclude(pk=scale.pk)
            .update(is_default=False)
        )

    @staticmethod
    def _save(scale: GradingScale) -> GradingScale:
        if scale.is_default and scale.is_active:
            GradingScaleService._demote_other_defaults(scale)
        try:
            with transaction.atomic():
                scale.save()
        except IntegrityError:
            raise Conflict("A grading scale with this name already exists on this campus.")
        return scale

    @staticmethod
    @transaction.atomic
    def create(*, principal: Principal, attrs: dict, requested_campus_id: Optional[int] = None) -> GradingScale:
        campus_id = require_campus_id(principal, requested_campus_id)
        scale = GradingScale(
            campus_id=campus_id,
            name=attrs["name"],
            description=attrs.get("description", ""),
            system=attrs["system"],
            max_score=attrs["max_score"],
            pass_mark=attrs["pass_mark"],
            bands=attrs.get("bands") or [],
            is_default=bool(attrs.get("is_default", False)),
            is_active=bool(attrs.get("is_active", True)),
            created_by_id=principal.user_id,
            updated_by_id=principal.user_id,
        )
        return GradingScaleService._save(scale)

    @staticmethod
    @transaction.atomic
    def update(*, principal: Principal, scale: GradingScale, attrs: dict) -> GradingScale:
        scale = GradingScale.objects.select_for_update().get(pk=scale.pk)
        for field in EDITABLE_FIELDS:
            if field in attrs:
                setattr(scale, field, attrs[field])
        scale.updated_by_id = principal.user_id
        return GradingScaleService._save(scale)
