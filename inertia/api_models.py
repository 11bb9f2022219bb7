"""Pydantic request/response models for the Inertia HTTP API.

Separated from the route modules to keep routing logic distinct from data
contracts.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class IntegrationEnabledRequest(BaseModel):
    enabled: bool


class MotionBatchRequest(BaseModel):
    """Raw motion events in arrival order; each is normalized individually.

    An event may carry ``t_ms``, its arrival time in session-clock
    milliseconds.  Events without it are stamped with the current clock.
    """

    events: list[dict[str, Any]] = Field(min_length=1, max_length=1000)


class OrientationReading(BaseModel):
    alpha: float | None = None
    beta: float | None = None
    gamma: float | None = None


class OrientationBatchRequest(BaseModel):
    readings: list[OrientationReading] = Field(min_length=1, max_length=1000)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    sample_count: int
    pending_timers: int
    timer_loop_state: str
    timer_loop_failures: int


class IngestResponse(BaseModel):
    accepted: int
    rejected: int
    errors: list[str] = Field(default_factory=list)


class CommandResponse(BaseModel):
    ok: bool
    state: str | None = None


class RecordingStatusResponse(BaseModel):
    recording: bool
    sample_count: int


class RecordedSamplesResponse(BaseModel):
    samples: list[dict[str, Any]]


class EventsResponse(BaseModel):
    events: list[dict[str, Any]]

