from typing import Tuple

from rest_framework.permissions import BasePermission

from users.roles import has_any_permission
from .constants import MSG_FORBIDDEN


# ---- Permission classes -----------------------------------------------


class HasProgramPermission(BasePermission):
    """
    Passes when the authenticated user's role grants ANY of
    ``required_permissions``. Build concrete classes with
    ``require_permission(...)``.
    """
    required_permissions: Tuple[str, ...] = ()
    message = MSG_FORBIDDEN

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return has_any_permission(user, self.required_permissions)


def require_permission(*names: str):
    """
    Usage:
        permission_classes = [IsAuthenticated, require_permission("project_management")]
    """
    return type(
        "RequirePermission",
        (HasProgramPermission,),
        {"required_permissions": tuple(names)},
    )
