# PATH: apps/api/common/exceptions.py
"""
Error taxonomy + DRF exception handler.

| error              | status |
|--------------------|--------|
| ValidationError    | 400    |
| InvalidTransition  | 400    |
| NotAuthenticated   | 401    |
| PermissionDenied   | 403    |
| NotFound           | 404    |
| Conflict           | 409    |
| Throttled          | 429    |
| anything else      | 500 (UnhandledExceptionMiddleware / handler fallback)
"""
from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import Http404
from rest_framework import status as drf_status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.api.common.responses import failure_body

logger = logging.getLogger(__name__)


class InvalidTransition(APIException):
    status_code = drf_status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid state transition."
    default_code = "invalid_transition"


class Conflict(APIException):
    status_code = drf_status.HTTP_409_CONFLICT
    default_detail = "Resource already exists."
    default_code = "conflict"


def _django_validation_detail(exc: DjangoValidationError):
    if hasattr(exc, "error_dict"):
        return exc.message_dict
    return {"non_field_errors": exc.messages}


def _first_message(detail) -> str:
    """Flatten a DRF detail structure into one human message."""
    if isinstance(detail, dict):
        if "detail" in detail:
            return _first_message(detail["detail"])
        for key, value in detail.items():
            msg = _first_message(value)
            if key in ("non_field_errors",):
                return msg
            return f"{key}: {msg}"
        return ""
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else ""
    return str(detail)


def envelope_exception_handler(exc, context):
    if isinstance(exc, DjangoValidationError):
        exc = ValidationError(detail=_django_validation_detail(exc))
    elif isinstance(exc, IntegrityError):
        logger.warning("integrity error surfaced as conflict: %s", exc)
        exc = Conflict()
    elif isinstance(exc, Http404):
        from rest_framework.exceptions import NotFound
        exc = NotFound()

    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.exception(
            "Unhandled exception in %s",
            view.__class__.__name__ if view else "view",
            exc_info=exc,
        )
        return Response(
            failure_body("Internal server error."),
            status=drf_status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    detail = response.data
    message = _first_message(detail) or "Request failed."
    errors = None
    if isinstance(exc, ValidationError):
        errors = detail
        if isinstance(detail, dict) and "errors" in detail:
            errors = detail["errors"]
            message = _first_message(detail.get("detail")) or message

    response.data = failure_body(message, errors)
    return response
