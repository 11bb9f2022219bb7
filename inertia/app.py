"""FastAPI wiring around a single diagnostics :class:`~inertia.session.Session`.

The app owns one session, one background task that fires due timers while
no requests arrive, and the routers from :mod:`inertia.routes`.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

import uvicorn
from fastapi import FastAPI

from .config import AppConfig, load_config
from .routes import create_router
from .session import Clock, Session, monotonic_ms

LOGGER = logging.getLogger(__name__)

MAX_CONSECUTIVE_FAILURES = 25
FAILURE_BACKOFF_S = 30
MAX_RETRY_DELAY_S = 5.0


def _retry_delay(interval_s: float, failures: int) -> float:
    """Exponential backoff after a failed tick, capped at MAX_RETRY_DELAY_S."""
    if failures == 0:
        return interval_s
    return min(MAX_RETRY_DELAY_S, interval_s * (2 ** min(6, failures)))


@dataclass
class RuntimeState:
    config: AppConfig
    session: Session
    tasks: list[asyncio.Task] = field(default_factory=list)
    timer_loop_state: str = "ok"
    timer_loop_failures: int = 0


def create_app(config_path: Path | None = None, *, clock: Clock = monotonic_ms) -> FastAPI:
    config = load_config(config_path)
    runtime = RuntimeState(config=config, session=Session(config, clock=clock))

    async def timer_loop() -> None:
        # Timers also fire on every request; this loop covers idle periods.
        interval = 1.0 / max(1, config.runtime.timer_tick_hz)
        consecutive_failures = 0
        while True:
            try:
                runtime.session.poll()
                consecutive_failures = 0
                runtime.timer_loop_state = "ok"
            except Exception:
                consecutive_failures += 1
                runtime.timer_loop_failures += 1
                is_fatal = consecutive_failures >= MAX_CONSECUTIVE_FAILURES
                runtime.timer_loop_state = "fatal" if is_fatal else "degraded"
                LOGGER.warning("Timer loop tick failed; will retry.", exc_info=True)
                if is_fatal:
                    LOGGER.error(
                        "Timer loop failed %d times in a row; pausing %d s",
                        MAX_CONSECUTIVE_FAILURES,
                        FAILURE_BACKOFF_S,
                    )
                    await asyncio.sleep(FAILURE_BACKOFF_S)
                    consecutive_failures = 0
                    runtime.timer_loop_state = "degraded"
            await asyncio.sleep(_retry_delay(interval, consecutive_failures))

    async def start_runtime() -> None:
        runtime.tasks = [asyncio.create_task(timer_loop(), name="timer-loop")]
        LOGGER.info("Runtime started; timer loop at %d Hz", config.runtime.timer_tick_hz)

    async def stop_runtime() -> None:
        for task in runtime.tasks:
            task.cancel()
        await asyncio.gather(*runtime.tasks, return_exceptions=True)
        runtime.tasks.clear()
        if runtime.session.recording:
            runtime.session.stop_recording()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await start_runtime()
        try:
            yield
        finally:
            await stop_runtime()

    app = FastAPI(title="Inertia", lifespan=lifespan)
    app.state.runtime = runtime
    app.include_router(create_router(runtime))
    return app


app: FastAPI | None = (
    create_app()
    if __name__ != "__main__" and os.getenv("INERTIA_DISABLE_AUTO_APP", "0") != "1"
    else None
)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the Inertia diagnostics server")
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    args = parser.parse_args()

    runtime_app = create_app(config_path=args.config)
    runtime: RuntimeState = runtime_app.state.runtime
    host = runtime.config.server.host
    port = runtime.config.server.port
    try:
        uvicorn.run(runtime_app, host=host, port=port, log_level="info")
    except OSError:
        LOGGER.error("Failed to bind to %s:%d.", host, port, exc_info=True)
        raise


if __name__ == "__main__":
    main()
