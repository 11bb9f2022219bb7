"""Route package: assembles domain-specific sub-routers into one APIRouter.

Each sub-module defines a ``create_*_routes(state)`` function that returns
an ``APIRouter`` with endpoints scoped to a single concern.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter

from .commands import create_command_routes
from .health import create_health_routes
from .ingest import create_ingest_routes
from .readings import create_reading_routes

if TYPE_CHECKING:
    from ..app import RuntimeState


def create_router(state: RuntimeState) -> APIRouter:
    """Assemble all route groups into one router."""
    router = APIRouter()
    router.include_router(create_health_routes(state))
    router.include_router(create_reading_routes(state))
    router.include_router(create_command_routes(state))
    router.include_router(create_ingest_routes(state))
    return router
