"""
Global exception handler for consistent API error responses.
Follows DRF convention and returns uniform structure.
"""
import logging
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.core.exceptions import PermissionDenied, ValidationError as DjangoValidationError
from django.conf import settings

logger = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """
    Custom exception handler that returns:
    { "detail": str, "code": str, "errors": dict (optional) }
    """
    response = exception_handler(exc, context)
    if response is not None:
        if isinstance(response.data, dict) and 'detail' not in response.data:
            # Serializer field errors: keep them under "errors"
            data = {'detail': _first_error(response.data), 'errors': response.data}
        elif isinstance(response.data, dict):
            data = {'detail': str(response.data['detail'])}
        else:
            data = {'detail': str(response.data)}
        data.setdefault('code', _get_code(exc))
        if response.status_code >= 500:
            logger.error('%s: %s', type(exc).__name__, data['detail'])
        response.data = data
        return response

    if isinstance(exc, PermissionDenied):
        return Response(
            {'detail': str(exc) or 'Permission denied', 'code': 'permission_denied'},
            status=status.HTTP_403_FORBIDDEN
        )
    if isinstance(exc, DjangoValidationError):
        return Response(
            {'detail': '; '.join(exc.messages), 'code': 'validation_error'},
            status=status.HTTP_400_BAD_REQUEST
        )

    logger.exception('Unhandled exception: %s', exc)
    error_detail = 'An internal error occurred.'
    if settings.DEBUG:
        error_detail = f'An internal error occurred: {str(exc)}'
    # Never expose stack traces to frontend; use standard API error format
    return Response(
        {'detail': error_detail, 'code': 'internal_error'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def _first_error(errors):
    for field, messages in errors.items():
        if isinstance(messages, (list, tuple)) and messages:
            return f'{field}: {messages[0]}'
        return f'{field}: {messages}'
    return 'Invalid request'


def _get_code(exc):
    default_code = getattr(exc, 'default_code', None)
    codes = {
        'AuthenticationFailed': 'invalid_credentials',
        'NotAuthenticated': 'not_authenticated',
        'PermissionDenied': 'permission_denied',
        'ValidationError': 'validation_error',
    }
    return codes.get(type(exc).__name__) or default_code or 'error'
