# PATH: apps/domains/results/views/mixins.py
from __future__ import annotations

from typing import Optional

from apps.core.principal import Principal, get_principal


def client_ip(request) -> Optional[str]:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.META.get("REMOTE_ADDR") or None


class CampusScopedMixin:
    """
    principal + requested campus (CampusMiddleware 가 header / query 에서 해석)
    """

    @property
    def principal(self) -> Principal:
        return get_principal(self.request)

    @property
    def requested_campus_id(self) -> Optional[int]:
        return getattr(self.request, "requested_campus_id", None)

    def requested_campus_or(self, payload_campus) -> Optional[int]:
        if self.requested_campus_id is not None:
            return self.requested_campus_id
        if payload_campus is None:
            return None
        return getattr(payload_campus, "pk", payload_campus)
