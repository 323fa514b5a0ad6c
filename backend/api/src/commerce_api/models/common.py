"""Shared API request/response models.

Error response wrappers and validation error formatting used by the
exception handlers.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from commerce.models.errors import ERROR_MESSAGES, ERROR_RECOVERY, ErrorCode, ErrorResponse

__all__ = [
    "ErrorCode",
    "ErrorResponse",
    "ValidationErrorResponse",
    "ValidationErrorDetail",
    "format_validation_errors",
]


class ValidationErrorDetail(BaseModel):
    """Detail of a single validation error."""

    model_config = ConfigDict(strict=True)

    loc: list[str | int] = Field(
        ...,
        description="Path to the field that failed validation",
        examples=[["body", "entityId"]],
    )
    msg: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Field required"],
    )
    type: str = Field(
        ...,
        description="Error type identifier",
        examples=["missing"],
    )


class ValidationErrorResponse(BaseModel):
    """Response format for request validation errors (HTTP 400).

    Same shape as ErrorResponse, with one detail entry per failed field.
    """

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: str = ErrorCode.INVALID_REQUEST.value
    message: str = ERROR_MESSAGES[ErrorCode.INVALID_REQUEST]
    recovery: str = ERROR_RECOVERY[ErrorCode.INVALID_REQUEST]
    details: list[ValidationErrorDetail] = Field(default_factory=list)


def format_validation_errors(
    errors: list[dict[str, Any]],
    code: ErrorCode = ErrorCode.INVALID_REQUEST,
) -> ValidationErrorResponse:
    """Convert Pydantic validation errors to ValidationErrorResponse.

    Args:
        errors: List of error dicts from Pydantic's ValidationError.errors()
        code: Error code reported for the request as a whole

    Returns:
        ValidationErrorResponse ready for JSON serialization.
    """
    details = [
        ValidationErrorDetail(
            loc=[str(loc) for loc in error.get("loc", [])],
            msg=str(error.get("msg", "")),
            type=str(error.get("type", "")),
        )
        for error in errors
    ]
    return ValidationErrorResponse(
        error_code=code.value,
        message=ERROR_MESSAGES[code],
        recovery=ERROR_RECOVERY[code],
        details=details,
    )
