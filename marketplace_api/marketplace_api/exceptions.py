import logging

from django.db import IntegrityError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ConflictError(APIException):
    """
    Raised when a request collides with existing state (e.g. default milestones
    requested for a project that already has some, or a proposal accepted twice).

    Rendered as a 400 like every other client-side failure.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'The request conflicts with the current state of the resource.'
    default_code = 'conflict'


def _first_message(detail):
    if isinstance(detail, dict):
        for key, value in detail.items():
            message = _first_message(value)
            if key == 'non_field_errors' or key == 'detail':
                return message
            return f"{key}: {message}"
        return ''
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else ''
    return str(detail)


def envelope_exception_handler(exc, context):
    """
    Render every API failure as ``{"success": false, "error": <message>}``.

    Validation errors keep their field breakdown under ``details``. Integrity
    errors from the database surface as a generic 400.
    """
    if isinstance(exc, IntegrityError):
        logger.warning("Database constraint violation: %s", exc)
        return Response(
            {'success': False, 'error': 'Database constraint violation'},
            status=status.HTTP_400_BAD_REQUEST,
        )

    response = exception_handler(exc, context)
    if response is None:
        return None

    view = context.get('view')
    logger.warning(
        "%s rejected with %s: %s",
        view.__class__.__name__ if view else 'request',
        response.status_code,
        exc,
    )

    body = {'success': False, 'error': _first_message(response.data)}
    if isinstance(exc, ValidationError):
        body['details'] = response.data
    response.data = body
    return response
