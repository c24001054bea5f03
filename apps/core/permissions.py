"""
DRF permission classes driven by the role resolved in APIKeyMiddleware.
"""

from rest_framework.permissions import BasePermission

from apps.core.middleware import ROLE_ADMIN


class IsAdminRole(BasePermission):
    """Allow only callers holding an admin API key."""

    message = 'Administrator access required.'

    def has_permission(self, request, view):
        return getattr(request, 'api_role', None) == ROLE_ADMIN
