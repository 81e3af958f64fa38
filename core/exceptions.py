"""
API error types and the REST framework exception handler.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.serializers import as_serializer_error
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class Conflict(APIException):
    """The request is valid but clashes with the current state of a resource."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The resource is not in a state that allows this action.'
    default_code = 'conflict'


def api_exception_handler(exc, context):
    """
    Extend DRF's default handler with model-level validation errors.

    ``django.core.exceptions.ValidationError`` raised from ``Model.clean()`` or
    ``full_clean()`` becomes a 400 with field-level errors instead of a 500.
    """
    if isinstance(exc, DjangoValidationError):
        exc = ValidationError(detail=as_serializer_error(exc))

    response = exception_handler(exc, context)

    if response is not None and response.status_code == status.HTTP_409_CONFLICT:
        view = context.get('view')
        logger.info(
            f"Conflict in {view.__class__.__name__ if view else 'unknown view'}: {exc}"
        )

    return response
