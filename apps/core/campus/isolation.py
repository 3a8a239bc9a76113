# ======================================================================
# PATH: apps/core/campus/isolation.py
# ======================================================================
from __future__ import annotations

from typing import Optional

from django.db.models import Q
from rest_framework.exceptions import PermissionDenied, ValidationError

from apps.core.principal import Principal


def effective_campus_id(principal: Principal, requested_campus_id: Optional[int] = None) -> Optional[int]:
    """
    Campus every read/write of this principal is pinned to.

    - global: requested campus, or None (no restriction)
    - others: their own campus; asking for another one is forbidden
    """
    if principal.is_global:
        return requested_campus_id

    if principal.campus_id is None:
        raise PermissionDenied("No campus assigned to this account.")

    if requested_campus_id is not None and int(requested_campus_id) != int(principal.campus_id):
        raise PermissionDenied("Access to another campus is forbidden.")

    return principal.campus_id


def campus_filter(
    principal: Principal,
    requested_campus_id: Optional[int] = None,
    *,
    field: str = "campus",
) -> Q:
    campus_id = effective_campus_id(principal, requested_campus_id)
    if campus_id is None:
        return Q()
    return Q(**{f"{field}_id": campus_id})


def require_campus_id(principal: Principal, requested_campus_id: Optional[int] = None) -> int:
    """
    Campus for a write. Global principals without a requested campus
    must name one explicitly.
    """
    campus_id = effective_campus_id(principal, requested_campus_id)
    if campus_id is None:
        raise ValidationError({"campus": ["Campus is required for this operation."]})
    return campus_id
