"""
Role based permission classes.

Professionals carry their roles through ``UserRole``; patients are
identified by the :class:`~clinic.authentication.PatientPrincipal`
produced by the cookie authentication.
"""
from rest_framework.permissions import BasePermission

from clinic.authentication import PatientPrincipal
from clinic.models import Role, User

PROFESSIONAL_ROLES = {Role.ADMIN, Role.PROFESSIONAL}


def _roles(request) -> set[str]:
    user = getattr(request, "user", None)
    if not isinstance(user, User) or not user.is_active:
        return set()
    # Cache on the request; several checks may run per view
    cached = getattr(request, "_clinic_roles", None)
    if cached is None:
        cached = user.role_names()
        request._clinic_roles = cached
    return cached


class IsProfessional(BasePermission):
    """Allow access only to users with the admin or professional role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return bool(_roles(request) & PROFESSIONAL_ROLES)


class IsAdmin(BasePermission):
    """Allow access only to administrators."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return Role.ADMIN in _roles(request)


class IsPatient(BasePermission):
    """Allow access only to requests carrying a patient session."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return isinstance(getattr(request, "user", None), PatientPrincipal)


class IsStaffUser(BasePermission):
    """Any authenticated professional account, with or without roles."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return isinstance(user, User) and user.is_active
