"""
Global exception handler for consistent API error responses.
Follows DRF convention and returns { "detail": str, "code": str }.
Engine errors map to: validation 400, not found 404, invalid state 409,
transaction 500 (opaque).
"""
import logging
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.core.exceptions import PermissionDenied, ValidationError as DjangoValidationError
from django.conf import settings

from core.exceptions import (
    EngineError,
    NotFoundError,
    StateError,
    TransactionError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ENGINE_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StateError: status.HTTP_409_CONFLICT,
}


def custom_exception_handler(exc, context):
    """
    Custom exception handler that returns:
    { "detail": str, "code": str (optional), "errors": dict (optional) }
    """
    if isinstance(exc, EngineError):
        return _engine_error_response(exc, context)

    response = exception_handler(exc, context)
    if response is not None:
        data = response.data if isinstance(response.data, dict) else {'detail': str(response.data)}
        if 'detail' not in data and response.data:
            data = {'detail': 'Invalid input.', 'errors': data}
        data.setdefault('detail', _get_detail(exc))
        data.setdefault('code', _get_code(exc))
        response.data = data
        return response

    if isinstance(exc, PermissionDenied):
        return Response(
            {'detail': str(exc) or 'Permission denied', 'code': 'permission_denied'},
            status=status.HTTP_403_FORBIDDEN
        )
    if isinstance(exc, DjangoValidationError):
        return Response(
            {'detail': str(exc), 'code': 'validation_error'},
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


def _engine_error_response(exc, context):
    request = context.get('request') if context else None
    path = request.path if request else 'unknown'
    if isinstance(exc, TransactionError):
        logger.error(f'[api] {path} transaction failed: {exc.message} {exc.context}')
        return Response(
            {'detail': 'The operation failed and no changes were saved.', 'code': exc.code},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    for error_class, http_status in ENGINE_STATUS.items():
        if isinstance(exc, error_class):
            logger.info(f'[api] {path} {exc.code}: {exc.message}')
            return Response({'detail': exc.message, 'code': exc.code}, status=http_status)
    logger.error(f'[api] {path} unmapped engine error {type(exc).__name__}: {exc.message}')
    return Response(
        {'detail': 'An internal error occurred.', 'code': exc.code},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def _get_detail(exc):
    if hasattr(exc, 'detail'):
        d = exc.detail
        if isinstance(d, list):
            return d[0] if d else 'Error'
        if isinstance(d, dict):
            return d.get('detail', str(d))
        return str(d)
    return str(exc)


def _get_code(exc):
    codes = {
        'AuthenticationFailed': 'invalid_credentials',
        'NotAuthenticated': 'not_authenticated',
        'NotFound': 'not_found',
        'PermissionDenied': 'permission_denied',
        'ValidationError': 'validation_error',
    }
    return codes.get(type(exc).__name__, 'error')
