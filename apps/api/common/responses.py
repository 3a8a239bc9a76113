# PATH: apps/api/common/responses.py
"""
Response envelope (API contract)

success: {success: true, message, data?, meta?, pagination?}
failure: {success: false, message, errors?}   -> exceptions.envelope_exception_handler
"""
from __future__ import annotations

from typing import Any, Optional

from rest_framework import status as drf_status
from rest_framework.response import Response


def envelope(
    message: str,
    data: Any = None,
    *,
    status: int = drf_status.HTTP_200_OK,
    meta: Optional[dict] = None,
    pagination: Optional[dict] = None,
) -> Response:
    body: dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    if meta is not None:
        body["meta"] = meta
    if pagination is not None:
        body["pagination"] = pagination
    return Response(body, status=status)


def created(message: str, data: Any = None) -> Response:
    return envelope(message, data, status=drf_status.HTTP_201_CREATED)


def multi_status(message: str, data: Any = None) -> Response:
    return envelope(message, data, status=drf_status.HTTP_207_MULTI_STATUS)


def failure_body(message: str, errors: Any = None) -> dict:
    body: dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body
