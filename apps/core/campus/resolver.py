# ======================================================================
# PATH: apps/core/campus/resolver.py
# ======================================================================
from __future__ import annotations

from typing import Optional

from django.conf import settings

from apps.core.campus.exceptions import CampusResolutionError
from apps.core.models import Campus


def _normalize(v: object) -> str:
    return str(v or "").strip()


def _header_name() -> str:
    return str(getattr(settings, "CAMPUS_HEADER_NAME", "X-Campus-Id") or "X-Campus-Id").strip()


def _query_name() -> str:
    return str(getattr(settings, "CAMPUS_QUERY_PARAM_NAME", "campus_id") or "campus_id").strip()


def _parse_id(raw: str) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise CampusResolutionError(
            code="campus_invalid",
            message=f"Campus id '{raw}' is not valid",
            http_status=400,
        )
    if value <= 0:
        raise CampusResolutionError(
            code="campus_invalid",
            message=f"Campus id '{raw}' is not valid",
            http_status=400,
        )
    return value


def _ensure_exists(campus_id: int) -> int:
    campus = Campus.objects.filter(pk=campus_id).only("id", "is_active").first()
    if campus is None:
        raise CampusResolutionError(
            code="campus_not_found",
            message=f"Campus '{campus_id}' not found",
            http_status=404,
        )
    if not campus.is_active:
        raise CampusResolutionError(
            code="campus_inactive",
            message=f"Campus '{campus_id}' is inactive",
            http_status=403,
        )
    return campus.pk


def resolve_requested_campus_id(request) -> Optional[int]:
    """
    Returns:
      - requested campus id (header first, then query param), or
      - None when the request names no campus

    Raises:
      - CampusResolutionError

    Whether the principal may use that campus is decided later by
    apps.core.campus.isolation.campus_filter.
    """
    raw = _normalize(request.headers.get(_header_name()))
    if not raw:
        raw = _normalize(request.GET.get(_query_name()))
    if not raw:
        return None
    return _ensure_exists(_parse_id(raw))
