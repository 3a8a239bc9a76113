# ======================================================================
# PATH: apps/core/db/campus_queryset.py
# ======================================================================
from __future__ import annotations

from typing import Optional

from django.db import models

from apps.core.campus.isolation import campus_filter
from apps.core.principal import Principal


class CampusQuerySet(models.QuerySet):
    """
    Campus-aware QuerySet (SSOT)

    규칙:
    - 모든 list / fetch / update / delete / aggregation 은 for_principal 에서 출발
    - campus FK 이름은 "campus" 고정
    """

    def for_principal(self, principal: Principal, requested_campus_id: Optional[int] = None):
        return self.filter(campus_filter(principal, requested_campus_id))

    def for_campus(self, campus_id: int):
        return self.filter(campus_id=campus_id)
