"""
Centralized error handling for the REST API.

Registered as REST_FRAMEWORK["EXCEPTION_HANDLER"]. Domain errors, DRF
errors and unexpected failures all leave the API as

    {"error": "<message>", "code": "<machine code>", "details": {...}}

so views stay thin and never build error responses by hand.
"""

from __future__ import annotations

import logging

from django.core.exceptions import PermissionDenied  # type: ignore
from django.core.exceptions import ValidationError as DjangoValidationError  # type: ignore
from django.http import Http404  # type: ignore
from rest_framework import exceptions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore

from shared.domain.exceptions import DomainError

logger = logging.getLogger(__name__)

MSG_INTERNAL_ERROR = "Internal server error."
MSG_VALIDATION_FAILED = "Validation failed."


def _error_body(message: str, code: str, details=None) -> dict:
    body = {"error": message, "code": code}
    if details:
        body["details"] = details
    return body


def _first_message(detail) -> str:
    """Pull a human readable message out of a DRF error detail structure."""

    if isinstance(detail, list) and detail:
        return _first_message(detail[0])
    if isinstance(detail, dict) and detail:
        key, value = next(iter(detail.items()))
        message = _first_message(value)
        if key in ("non_field_errors", "detail"):
            return message
        return f"{key}: {message}"
    return str(detail)


def domain_exception_handler(exc, context):
    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else "unknown"

    if isinstance(exc, DomainError):
        if exc.status_code >= 500:
            logger.error(f"{view_name}: {exc.code}: {exc.message}")
        else:
            logger.info(f"{view_name}: {exc.code}: {exc.message}")
        return Response(
            _error_body(exc.message, exc.code, exc.details),
            status=exc.status_code,
        )

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, PermissionDenied):
        exc = exceptions.PermissionDenied()
    elif isinstance(exc, DjangoValidationError):
        exc = exceptions.ValidationError(
            detail=exc.message_dict if hasattr(exc, "error_dict") else exc.messages
        )

    response = drf_exception_handler(exc, context)
    if response is None:
        logger.exception(f"Unhandled error in {view_name}", exc_info=exc)
        return Response(
            _error_body(MSG_INTERNAL_ERROR, "internal_error"),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, exceptions.ValidationError):
        response.data = _error_body(
            _first_message(exc.detail) or MSG_VALIDATION_FAILED,
            "validation_error",
            exc.detail,
        )
        return response

    code = exc.get_codes() if isinstance(exc, exceptions.APIException) else "error"
    if not isinstance(code, str):
        code = "error"
    message = response.data.get("detail", MSG_INTERNAL_ERROR) if isinstance(response.data, dict) else str(response.data)
    response.data = _error_body(str(message), code)
    return response
