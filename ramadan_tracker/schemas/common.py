"""
Error envelope models, used for OpenAPI `responses=` and by the 422 handler
in core/errors.py.
"""
from typing import Any, Optional
from pydantic import BaseModel, Field


class FieldError(BaseModel):
    """One failed field in a request body, query or path."""
    field: str = Field(examples=["tadarus_report.ayat_to"])
    message: str
    type: str = Field(examples=["value_error"])


class ErrorResponse(BaseModel):
    """`{code, message, details}` body returned for every 4xx/5xx."""
    code: str = Field(examples=["USER_NOT_FOUND"])
    message: str
    details: Optional[dict[str, Any]] = None


class ValidationErrorDetails(BaseModel):
    errors: list[FieldError]


class ValidationErrorResponse(ErrorResponse):
    code: str = Field(default="VALIDATION_ERROR", examples=["VALIDATION_ERROR"])
    details: ValidationErrorDetails
