"""
VideoTube Backend — Shared Response Envelopes
===============================================

What:  The ApiResponse success envelope, the error envelope and the health payload.
Why:   Every endpoint answers with the same outer shape so clients can check
       `success` and read `data` without knowing the route.

Envelope:
    {
        "statuscode": 201,
        "data": {...},
        "message": "User registered successfully",
        "success": true          ← always statuscode < 400
    }
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field, model_validator

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Success envelope returned by every non-error endpoint.

    `success` is derived from `statuscode`; any value supplied for it is overwritten.
    """
    statuscode: int = Field(description="HTTP status code of the response")
    data: Optional[T] = Field(default=None, description="Endpoint payload")
    message: str = Field(default="Success", description="Human-readable message")
    success: bool = Field(default=True, description="True when statuscode < 400")

    @model_validator(mode="after")
    def derive_success(self) -> "ApiResponse[T]":
        self.success = self.statuscode < 400
        return self


class ErrorResponse(BaseModel):
    """
    Error envelope produced by the global exception handlers.

    Example:
        {
            "statuscode": 400,
            "error": "validation_error",
            "message": "Avatar file is required",
            "details": {"field": "avatar"},
            "success": false,
            "request_id": "a1b2c3d4"
        }
    """
    statuscode: int = Field(description="HTTP status code")
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    success: bool = Field(default=False)
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check payload for load balancers and Docker."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    cloudinary: str = Field(description="Remote store status: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")


def error_body(
    statuscode: int,
    error: str,
    message: str,
    request_id: str,
    details: Optional[Any] = None,
) -> dict:
    """Serialized ErrorResponse used by exception handlers and middleware."""
    return ErrorResponse(
        statuscode=statuscode,
        error=error,
        message=message,
        details=details,
        request_id=request_id,
    ).model_dump()
