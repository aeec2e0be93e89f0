"""
Error responses for the API.

Every failure leaves the service as ``{"error": "<message>"}`` with the
matching status code; validation failures also carry the per-field
messages under ``errors``.
"""
import logging

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import JsonResponse
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ConflictError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'
    default_code = 'conflict'


def first_message(detail):
    """Flatten a DRF error structure down to its first human readable message."""
    if isinstance(detail, dict):
        for field, value in detail.items():
            message = first_message(value)
            if field in ('non_field_errors', 'detail'):
                return message
            return f'{field}: {message}'
        return 'Invalid input.'
    if isinstance(detail, (list, tuple)):
        return first_message(detail[0]) if detail else 'Invalid input.'
    return str(detail)


def api_exception_handler(exc, context):
    """DRF exception handler producing the ``{error: ...}`` envelope."""
    if isinstance(exc, IntegrityError):
        logger.warning(f'Integrity error mapped to conflict: {exc}')
        exc = ConflictError()
    elif isinstance(exc, DjangoValidationError):
        exc = ValidationError(detail=exc.message_dict if hasattr(exc, 'error_dict') else exc.messages)

    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.error(
            f'Unhandled error in {view.__class__.__name__ if view else "unknown view"}: {exc}',
            exc_info=exc,
        )
        body = {'error': 'Internal server error'}
        if settings.DEBUG:
            body['details'] = str(exc)
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, ValidationError):
        request = context.get('request')
        if request is not None:
            payload = getattr(request, 'data', None)
            # dict args so ScrubFilter masks credentials in the payload
            logger.info(
                'Validation failed on %s %s: %s',
                request.method, request.path, payload if isinstance(payload, dict) else {},
            )
        response.data = {'error': first_message(response.data), 'errors': response.data}
    else:
        detail = response.data.get('detail', response.data) if isinstance(response.data, dict) else response.data
        response.data = {'error': first_message(detail)}

    if response.status_code >= 500:
        logger.error(f'API error {response.status_code}: {response.data["error"]}')
    elif response.status_code in (401, 403):
        logger.warning(f'Access refused ({response.status_code}): {response.data["error"]}')
    return response


def route_not_found(request, exception=None):
    return JsonResponse({'error': 'Route not found'}, status=404)


def server_error(request):
    return JsonResponse({'error': 'Internal server error'}, status=500)
