"""Request/response models for the development collector."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class EnvelopeModel(BaseModel):
    """One envelope as posted by a client. Kind-specific keys pass through."""
    type: Literal["event", "measurement", "error", "log"]
    timestamp: int = Field(ge=0)
    attributes: dict[str, Any] = Field(default_factory=dict)
    session: dict[str, Any] = Field(default_factory=dict)
    user: dict[str, Any] = Field(default_factory=dict)
    name: str | None = None
    message: str | None = None

    model_config = {"extra": "allow"}


class AcceptedResponse(BaseModel):
    status: str = "accepted"


class EventsResponse(BaseModel):
    events: list[dict[str, Any]]
    count: int


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    environment: str
    store: dict[str, Any]
