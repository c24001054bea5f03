"""
API key authentication middleware.

Every endpoint except /health/ and the Django admin requires a valid API key
in the X-API-KEY header. Each key carries a role ("admin" or "customer")
which is stored on the request as ``api_role`` for the permission classes.
"""

import logging

from django.conf import settings
from django.http import JsonResponse

logger = logging.getLogger(__name__)

ROLE_ADMIN = 'admin'
ROLE_CUSTOMER = 'customer'

EXEMPT_PATHS = (
    '/health/',
    '/admin/',
)


def _error(status_code, detail, code):
    return JsonResponse(
        {
            'error': True,
            'status_code': status_code,
            'code': code,
            'detail': detail,
        },
        status=status_code,
    )


class APIKeyMiddleware:
    """
    Resolve the caller's role from the X-API-KEY header.

    With no API_KEYS configured (local development and tests) the check is
    disabled and every request is treated as an administrator.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.path.startswith(EXEMPT_PATHS):
            request.api_role = None
            return self.get_response(request)

        api_keys = getattr(settings, 'API_KEYS', {})
        if not api_keys:
            request.api_role = ROLE_ADMIN
            return self.get_response(request)

        provided_key = request.META.get('HTTP_X_API_KEY', '')

        if not provided_key:
            logger.warning("Request to %s rejected: missing API key", request.path)
            return _error(
                401,
                'Authentication required. Provide X-API-KEY header.',
                'not_authenticated',
            )

        role = api_keys.get(provided_key)
        if role is None:
            logger.warning("Request to %s rejected: invalid API key", request.path)
            return _error(403, 'Invalid API key.', 'invalid_api_key')

        request.api_role = role
        return self.get_response(request)
