"""Custom permissions for REST API v1."""
from __future__ import annotations

from rest_framework.permissions import BasePermission

from accounts.models import Role


def _profile(request):
    return getattr(request.user, "profile", None)


class IsActiveUser(BasePermission):
    """Signed in and not blocked by an administrator."""

    message = "Account has been blocked. Please contact administrator."

    def has_permission(self, request, view):
        if not (request.user and request.user.is_authenticated):
            return False
        return not getattr(_profile(request), "is_blocked", False)


class IsAdmin(IsActiveUser):
    message = "Admin access required."

    def has_permission(self, request, view):
        return super().has_permission(request, view) and getattr(_profile(request), "role", None) == Role.ADMIN


class IsStudent(IsActiveUser):
    message = "Student access required."

    def has_permission(self, request, view):
        return super().has_permission(request, view) and getattr(_profile(request), "role", None) == Role.STUDENT
