"""Sensor intake: HTTP batch endpoints and the ``/ws/ingest`` stream."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..api_models import IngestResponse, MotionBatchRequest, OrientationBatchRequest
from ..json_utils import safe_json_dumps, safe_json_loads
from ..processing import SampleFormatError

if TYPE_CHECKING:
    from ..app import RuntimeState

LOGGER = logging.getLogger(__name__)

MAX_REPORTED_ERRORS = 10


def _arrival_time(raw: dict[str, Any]) -> float | None:
    """Optional per-event ``t_ms`` in session-clock milliseconds."""
    value = raw.get("t_ms")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SampleFormatError("t_ms must be a number")
    try:
        t_ms = float(value)
    except OverflowError as exc:
        raise SampleFormatError("t_ms is out of range") from exc
    if not math.isfinite(t_ms):
        raise SampleFormatError("t_ms must be finite")
    return t_ms


def create_ingest_routes(state: RuntimeState) -> APIRouter:
    router = APIRouter()

    @router.post("/api/ingest/motion", response_model=IngestResponse)
    async def ingest_motion(req: MotionBatchRequest) -> IngestResponse:
        accepted = 0
        errors: list[str] = []
        for index, raw in enumerate(req.events):
            try:
                state.session.ingest_motion(raw, now=_arrival_time(raw))
            except SampleFormatError as exc:
                if len(errors) < MAX_REPORTED_ERRORS:
                    errors.append(f"events[{index}]: {exc}")
                continue
            accepted += 1
        rejected = len(req.events) - accepted
        if rejected:
            LOGGER.debug("Rejected %d of %d motion event(s)", rejected, len(req.events))
        return {"accepted": accepted, "rejected": rejected, "errors": errors}

    @router.post("/api/ingest/orientation", response_model=IngestResponse)
    async def ingest_orientation(req: OrientationBatchRequest) -> IngestResponse:
        for reading in req.readings:
            state.session.ingest_orientation(reading.model_dump())
        return {"accepted": len(req.readings), "rejected": 0, "errors": []}

    def _handle_message(payload: dict[str, Any]) -> dict[str, Any] | None:
        kind = payload.get("type")
        if kind == "motion":
            try:
                state.session.ingest_motion(payload)
            except SampleFormatError as exc:
                return {"type": "error", "detail": str(exc)}
            return None
        if kind == "orientation":
            state.session.ingest_orientation(payload)
            return None
        if kind == "snapshot":
            state.session.poll()
            history = bool(payload.get("history", False))
            return {"type": "snapshot", "data": state.session.snapshot(include_history=history)}
        return {"type": "error", "detail": f"unknown message type {kind!r}"}

    @router.websocket("/ws/ingest")
    async def ws_ingest(ws: WebSocket) -> None:
        await ws.accept()
        try:
            while True:
                message = await ws.receive_text()
                payload = safe_json_loads(message, context="ws ingest")
                if not isinstance(payload, dict):
                    LOGGER.debug("Ignoring malformed WS ingest message")
                    continue
                try:
                    reply = _handle_message(payload)
                except Exception:
                    LOGGER.warning("Error processing WS ingest message", exc_info=True)
                    reply = {"type": "error", "detail": "message could not be processed"}
                if reply is not None:
                    await ws.send_text(safe_json_dumps(reply))
        except WebSocketDisconnect:
            LOGGER.debug("Ingest WebSocket client disconnected")
        except Exception:
            LOGGER.warning("Ingest WebSocket handler error", exc_info=True)

    return router
