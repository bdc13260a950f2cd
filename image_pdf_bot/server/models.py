"""Pydantic response models for the HTTP API.

WHY: FastAPI uses these schemas to serialize responses and to build the
OpenAPI document served at /docs.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class WebhookResponse(BaseModel):
    """Acknowledgement returned to the LINE platform.

    RULES:
    - Returned with 200 for every signed, well-formed delivery, even when
      individual events were ignored or failed
    """

    status: str = Field(description="Always 'ok' for an accepted delivery.")
    events: int = Field(description="Number of events in the delivery.")
    handled: int = Field(description="Number of events that matched a conversation step.")

    model_config = {"json_schema_extra": {
        "examples": [{"status": "ok", "events": 1, "handled": 1}]
    }}


class ErrorResponse(BaseModel):
    """Standard error response body."""

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="Service version string.", json_schema_extra={"example": "0.1.0"})
    sessions: int = Field(description="Number of users currently awaiting a file name.")
