"""
Flock Backend — Shared Response Schemas
========================================

What:  Error, message and health payloads used by every route module.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Fields:
        error: Short human-readable description ("Invalid credentials")
        code: Machine-readable error code ("unauthorized", "validation_error")
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "error": "Email is already taken",
            "code": "validation_error",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Human-readable error description")
    code: str = Field(description="Machine-readable error code")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(BaseModel):
    """Acknowledgement for operations that have nothing else to return."""
    message: str


class HealthResponse(BaseModel):
    """
    Health check response showing service and dependency status.
    Returned by GET /health for monitoring and load balancer health checks.
    """
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Image storage: writable, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
