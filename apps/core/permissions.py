# PATH: apps/core/permissions.py

from rest_framework.permissions import BasePermission

from apps.core.principal import GLOBAL_ROLES, MANAGER_ROLES, STAFF_ROLES, get_principal


class _RolePermission(BasePermission):
    roles = frozenset()

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return get_principal(request).role in self.roles


class IsGlobalRole(_RolePermission):
    """
    ADMIN / DIRECTOR 전용 (사후 정정, 캠퍼스 교차)
    """
    message = "Administrator or director role required."
    roles = GLOBAL_ROLES


class IsManager(_RolePermission):
    """
    ADMIN / DIRECTOR / CAMPUS_MANAGER
    """
    message = "Manager role required."
    roles = MANAGER_ROLES


class IsManagerOrTeacher(_RolePermission):
    message = "Manager or teacher role required."
    roles = STAFF_ROLES


class IsManagerOrReadOnlyTeacher(BasePermission):
    """
    Grading scales: 읽기는 교사까지, 쓰기는 매니저만
    """
    message = "Manager role required."

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        role = get_principal(request).role
        if request.method in ("GET", "HEAD", "OPTIONS"):
            return role in STAFF_ROLES
        return role in MANAGER_ROLES
