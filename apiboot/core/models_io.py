"""Pydantic request/response schemas used by the API.

`ErrorResponse` is the single shape every failed request is rendered in,
whether it failed validation, raised an HTTP error, or crashed in a handler.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class FieldViolation(BaseModel):
    """One rejected input field."""
    field: str    # Dotted location, e.g. "body.repeat"
    message: str
    type: str     # Machine-readable error code from pydantic


class ErrorResponse(BaseModel):
    """
    The error body we send back to callers.

    Stable across all failure kinds; `violations` is only set for
    validation failures.
    """
    status_code: int
    error: str                      # HTTP reason phrase
    message: str
    path: str
    timestamp: str                  # ISO-8601, UTC
    violations: Optional[List[FieldViolation]] = None


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    uptime_seconds: float


class EchoRequest(BaseModel):
    """
    Diagnostic payload used to check the validation stage end to end.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    message: str = Field(..., min_length=1, max_length=1000)
    repeat: int = Field(1, ge=1, le=10, description="How many times to repeat the message")
    uppercase: bool = False


class EchoQuery(BaseModel):
    separator: str = Field(" ", max_length=5)


class EchoResponse(BaseModel):
    message: str
    repeat: int
    uppercase: bool
    echoed: str
