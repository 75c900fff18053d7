"""Pydantic schemas for API responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Machine-readable rejection details."""

    type: str = Field(..., description="Error kind: configuration_error or authentication_error")
    code: str = Field(..., description="Specific authentication outcome")
    message: str


class ErrorResponse(BaseModel):
    """Error body returned when a request is rejected."""

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str


class KeyInfoResponse(BaseModel):
    """Non-secret information about the key used for a request."""

    id: str
    name: str
    enabled: bool
    created_at: datetime


class AuthStatusResponse(BaseModel):
    """Authentication status summary."""

    enabled: bool
    is_disabled: bool
    key_count: int
    message: str
    key: Optional[KeyInfoResponse] = None
