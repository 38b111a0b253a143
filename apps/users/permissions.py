"""Permission classes shared by the API apps."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


def is_administrator(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
        return True
    return hasattr(user, "is_administrator") and user.is_administrator()


class IsAdministratorOrReadOnly(permissions.BasePermission):
    """
    Anyone may read; only administrators may write.
    """

    def has_permission(self, request, view) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        return is_administrator(request.user)

