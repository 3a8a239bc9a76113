# PATH: apps/core/principal.py
"""
Request principal (identity & authorization context)

{user_id, role, campus_id} derived from the authenticated User.
Role drives every policy branch; no class hierarchy per role.

- global  = ADMIN, DIRECTOR              (cross-campus, post-publication corrections)
- manager = global + CAMPUS_MANAGER      (publish / archive / lock / validate / scales)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from rest_framework.exceptions import NotAuthenticated

ADMIN = "ADMIN"
DIRECTOR = "DIRECTOR"
CAMPUS_MANAGER = "CAMPUS_MANAGER"
TEACHER = "TEACHER"
STUDENT = "STUDENT"

GLOBAL_ROLES = frozenset({ADMIN, DIRECTOR})
MANAGER_ROLES = GLOBAL_ROLES | {CAMPUS_MANAGER}
STAFF_ROLES = MANAGER_ROLES | {TEACHER}


@dataclass(frozen=True)
class Principal:
    user_id: int
    role: str
    campus_id: Optional[int] = None

    @classmethod
    def from_user(cls, user) -> "Principal":
        if user is None or not getattr(user, "is_authenticated", False):
            raise NotAuthenticated()
        role = getattr(user, "role", None) or STUDENT
        # superuser 는 role 과 무관하게 ADMIN 취급
        if getattr(user, "is_superuser", False):
            role = ADMIN
        return cls(user_id=user.pk, role=role, campus_id=getattr(user, "campus_id", None))

    @property
    def is_global(self) -> bool:
        return self.role in GLOBAL_ROLES

    @property
    def is_manager(self) -> bool:
        return self.role in MANAGER_ROLES

    @property
    def is_teacher(self) -> bool:
        return self.role == TEACHER

    @property
    def is_student(self) -> bool:
        return self.role == STUDENT


def get_principal(request) -> Principal:
    """DRF request -> Principal (cached on the request)."""
    cached = getattr(request, "_principal", None)
    if cached is not None:
        return cached
    principal = Principal.from_user(getattr(request, "user", None))
    request._principal = principal
    return principal
