"""
Custom exception hierarchy for the Ramadan tracker.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing human messages.

Gated-out selections are NOT errors: they travel back to the caller as
`IneligibleSelection` records (see services/eligibility.py).
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from ramadan_tracker.schemas.common import (
    ErrorResponse,
    FieldError,
    ValidationErrorDetails,
    ValidationErrorResponse,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class TrackerException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ReportValidationError(TrackerException):
    """Submission is well-formed JSON but semantically invalid. Nothing is stored."""
    http_status = 422
    code = "REPORT_VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message=message,
            details={"field": field} if field else {},
        )


class InvalidKultumVideoError(ReportValidationError):
    code = "INVALID_KULTUM_VIDEO"

    def __init__(self, teacher_video_id: int):
        super().__init__(
            message="Kultum video is invalid or no longer active.",
            field="kultum_report.teacher_video_id",
        )
        self.details["teacher_video_id"] = teacher_video_id


class UserNotFoundError(TrackerException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "USER_NOT_FOUND"

    def __init__(self, user_id: str):
        super().__init__(
            message=f"User {user_id} not found.",
            details={"user_id": user_id},
        )


class ConflictError(TrackerException):
    """History changed under us while recomputing. The caller may retry."""
    http_status = status.HTTP_409_CONFLICT
    code = "CONCURRENT_MODIFICATION"

    def __init__(self, user_id: str, report_date: date | None = None):
        details: dict[str, Any] = {"user_id": user_id}
        if report_date is not None:
            details["report_date"] = str(report_date)
        super().__init__(
            message="Progress was modified concurrently; retry the submission.",
            details=details,
        )


class ConfigurationError(TrackerException):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "CATALOG_MISCONFIGURED"

    def __init__(self, missing_codes: Iterable[str]):
        missing = sorted(missing_codes)
        super().__init__(
            message=(
                "Active mission catalog is missing required codes: "
                + ", ".join(missing)
            ),
            details={"missing_codes": missing},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def tracker_exception_handler(request: Request, exc: TrackerException) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("%s on %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    body = ValidationErrorResponse(
        message="Request validation failed.",
        details=ValidationErrorDetails(errors=[
            FieldError(
                field=".".join(str(loc) for loc in error["loc"] if loc != "body"),
                message=error["msg"],
                type=error["type"],
            )
            for error in exc.errors()
        ]),
    )
    return JSONResponse(
        status_code=422,
        content=body.model_dump(),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = ErrorResponse(code="INTERNAL_ERROR", message="An unexpected error occurred.")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(exclude_none=True),
    )
