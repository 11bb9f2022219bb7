"""Command endpoints: one-shot diagnostics, resets and recording control."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from ..api_models import CommandResponse, IntegrationEnabledRequest, RecordingStatusResponse

if TYPE_CHECKING:
    from ..app import RuntimeState


def create_command_routes(state: RuntimeState) -> APIRouter:
    router = APIRouter()

    @router.post("/api/latency/tap", response_model=CommandResponse)
    async def tap_latency() -> CommandResponse:
        started = state.session.tap_latency()
        return {"ok": started, "state": str(state.session.latency.state)}

    @router.post("/api/latency/reset", response_model=CommandResponse)
    async def reset_latency() -> CommandResponse:
        state.session.reset_latency()
        return {"ok": True, "state": str(state.session.latency.state)}

    @router.post("/api/noise/start", response_model=CommandResponse)
    async def start_noise_capture() -> CommandResponse:
        started = state.session.start_noise_capture()
        return {"ok": started, "state": str(state.session.noise.state)}

    @router.post("/api/orientation/zero", response_model=CommandResponse)
    async def zero_orientation() -> CommandResponse:
        state.session.reset_orientation()
        return {"ok": True}

    @router.post("/api/integration/reset", response_model=CommandResponse)
    async def reset_integration() -> CommandResponse:
        state.session.reset_integration()
        return {"ok": True, "state": str(state.session.integrator.state)}

    @router.post("/api/integration/enabled", response_model=CommandResponse)
    async def set_integration_enabled(req: IntegrationEnabledRequest) -> CommandResponse:
        state.session.set_integration_enabled(req.enabled)
        return {"ok": True, "state": str(state.session.integrator.state)}

    @router.post("/api/recording/start", response_model=RecordingStatusResponse)
    async def start_recording() -> RecordingStatusResponse:
        state.session.start_recording()
        return state.session.recording_snapshot()

    @router.post("/api/recording/stop", response_model=RecordingStatusResponse)
    async def stop_recording() -> RecordingStatusResponse:
        state.session.stop_recording()
        return state.session.recording_snapshot()

    @router.post("/api/session/reset", response_model=CommandResponse)
    async def reset_session() -> CommandResponse:
        state.session.reset_session()
        return {"ok": True}

    return router
