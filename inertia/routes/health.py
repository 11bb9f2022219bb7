"""Health check endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from .. import __version__
from ..api_models import HealthResponse

if TYPE_CHECKING:
    from ..app import RuntimeState


def create_health_routes(state: RuntimeState) -> APIRouter:
    router = APIRouter()

    @router.get("/api/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return {
            "status": "ok",
            "version": __version__,
            "sample_count": state.session.sample_count,
            "pending_timers": len(state.session.timers),
            "timer_loop_state": state.timer_loop_state,
            "timer_loop_failures": state.timer_loop_failures,
        }

    return router
