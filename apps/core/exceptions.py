"""
Custom exceptions and DRF exception handler for the AquaTrack billing service.
"""

import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class CustomerNotFoundError(APIException):
    """Raised when a customer does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Customer not found.'
    default_code = 'customer_not_found'


class BillNotFoundError(APIException):
    """Raised when a bill does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Bill not found.'
    default_code = 'bill_not_found'


class UserNotFoundError(APIException):
    """Raised when a user account or its profile does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'User not found.'
    default_code = 'user_not_found'


class LedgerValidationError(APIException):
    """Base class for rejected ledger input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'validation_error'


class InvalidReadingError(LedgerValidationError):
    """Raised when a meter reading does not advance past the last one."""

    default_detail = 'New reading must be higher than the last reading.'
    default_code = 'invalid_reading'


class DuplicateAccountError(LedgerValidationError):
    """Raised when an account number, meter number or email is already taken."""

    default_detail = 'An account with these details already exists.'
    default_code = 'duplicate_account'


class ReadingsFileError(LedgerValidationError):
    """Raised when an uploaded readings file cannot be used."""

    default_detail = (
        'Invalid file format. Please ensure the file has '
        '"accountNumber" and "newReading" columns.'
    )
    default_code = 'invalid_readings_file'


class InvalidCredentialsError(APIException):
    """Raised when a login email and password do not match an account."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Invalid email or password.'
    default_code = 'invalid_credentials'


class IneligibleTransitionError(APIException):
    """Raised when a bill status change is not allowed from its current state."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Bill status change not allowed.'
    default_code = 'ineligible_transition'


class SmsDeliveryError(Exception):
    """Raised by an SMS backend when a message cannot be delivered."""

    pass


def custom_exception_handler(exc, context):
    """
    Custom DRF exception handler that returns consistent error responses.

    Every error body carries ``error``, ``status_code``, ``code`` and
    ``detail``. Unhandled exceptions are logged and turned into a 500.
    """
    response = exception_handler(exc, context)

    if response is not None:
        code = getattr(exc, 'default_code', None)
        if isinstance(exc, APIException):
            codes = exc.get_codes()
            if isinstance(codes, str):
                code = codes
        response.data = {
            'error': True,
            'status_code': response.status_code,
            'code': code or 'error',
            'detail': response.data.get('detail', response.data)
            if isinstance(response.data, dict) else response.data,
        }
        return response

    logger.exception(
        "Unhandled exception in %s",
        context.get('view', 'unknown'),
        exc_info=exc,
    )
    return Response(
        {
            'error': True,
            'status_code': 500,
            'code': 'server_error',
            'detail': 'An unexpected error occurred. Please try again later.',
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
