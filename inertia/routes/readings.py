"""Read-only statistics endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Query

from ..api_models import EventsResponse, RecordedSamplesResponse, RecordingStatusResponse
from ..json_utils import sanitize_value

if TYPE_CHECKING:
    from ..app import RuntimeState
    from ..session import Session


def create_reading_routes(state: RuntimeState) -> APIRouter:
    router = APIRouter()

    # Reads also fire due timers so a finished window is reflected immediately.
    def _session() -> Session:
        state.session.poll()
        return state.session

    @router.get("/api/snapshot")
    async def get_snapshot(history: bool = Query(default=False)) -> dict[str, Any]:
        return sanitize_value(_session().snapshot(include_history=history))

    @router.get("/api/timing")
    async def get_timing() -> dict[str, Any]:
        return sanitize_value(_session().timing_snapshot())

    @router.get("/api/noise")
    async def get_noise() -> dict[str, Any]:
        return sanitize_value(_session().noise_snapshot())

    @router.get("/api/latency")
    async def get_latency() -> dict[str, Any]:
        return sanitize_value(_session().latency_snapshot())

    @router.get("/api/orientation")
    async def get_orientation(history: bool = Query(default=True)) -> dict[str, Any]:
        return sanitize_value(_session().orientation_snapshot(include_history=history))

    @router.get("/api/integration")
    async def get_integration(history: bool = Query(default=True)) -> dict[str, Any]:
        return sanitize_value(_session().integration_snapshot(include_history=history))

    @router.get("/api/recording", response_model=RecordingStatusResponse)
    async def get_recording() -> RecordingStatusResponse:
        return _session().recording_snapshot()

    @router.get("/api/recording/samples", response_model=RecordedSamplesResponse)
    async def get_recorded_samples() -> RecordedSamplesResponse:
        samples = _session().recorded_samples()
        return {"samples": sanitize_value([s.to_dict() for s in samples])}

    @router.get("/api/events", response_model=EventsResponse)
    async def get_events() -> EventsResponse:
        return {"events": sanitize_value([e.to_dict() for e in _session().events()])}

    return router
