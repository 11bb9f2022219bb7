from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from . import constants as C

PACKAGE_DIR = Path(__file__).resolve().parent
"""Directory of the ``inertia`` package."""

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "server": {"host": "0.0.0.0", "port": 8000},
    "timing": {
        "expected_interval_ms": C.EXPECTED_INTERVAL_MS,
        "drop_factor": C.DROP_FACTOR,
        "history_size": C.INTERVAL_HISTORY_SIZE,
        "min_stats_samples": C.MIN_STATS_SAMPLES,
    },
    "noise": {
        "window_ms": C.NOISE_WINDOW_MS,
        "min_samples": C.NOISE_MIN_SAMPLES,
    },
    "latency": {
        "threshold_ms2": C.LATENCY_THRESHOLD_MS2,
        "timeout_ms": C.LATENCY_TIMEOUT_MS,
        "max_latency_ms": C.LATENCY_MAX_MS,
        "default_baseline_ms2": C.DEFAULT_BASELINE_MS2,
    },
    "orientation": {"history_size": C.ORIENTATION_HISTORY_SIZE},
    "integration": {
        "calibration_window_ms": C.CALIBRATION_WINDOW_MS,
        "deadzone_ms2": C.DEADZONE_MS2,
        "max_dt_s": C.MAX_INTEGRATION_DT_S,
        "height_history_size": C.HEIGHT_HISTORY_SIZE,
        "trace_history_size": C.TRACE_HISTORY_SIZE,
        "default_gravity": list(C.DEFAULT_GRAVITY_MS2),
        "enabled_on_start": False,
    },
    "recording": {"auto_start": True},
    "runtime": {
        "timer_tick_hz": C.TIMER_TICK_HZ,
        "event_history_size": C.EVENT_HISTORY_SIZE,
    },
}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _clamp_min(section: str, obj: object, fields: dict[str, float]) -> None:
    """Clamp each field of *obj* up to its minimum, logging every change."""
    for field_name, minimum in fields.items():
        val = getattr(obj, field_name)
        if val < minimum:
            LOGGER.warning(
                "%s.%s=%s is below minimum %s; clamped to %s",
                section,
                field_name,
                val,
                minimum,
                minimum,
            )
            object.__setattr__(obj, field_name, type(val)(minimum))


@dataclass(slots=True)
class ServerConfig:
    host: str
    port: int

    def __post_init__(self) -> None:
        if not isinstance(self.port, int) or not (1 <= self.port <= 65535):
            raise ValueError(f"server.port must be 1-65535, got {self.port!r}")


@dataclass(slots=True)
class TimingConfig:
    expected_interval_ms: float
    drop_factor: float
    history_size: int
    min_stats_samples: int

    def __post_init__(self) -> None:
        if self.expected_interval_ms <= 0:
            LOGGER.warning(
                "timing.expected_interval_ms=%s is not positive; using %s",
                self.expected_interval_ms,
                C.EXPECTED_INTERVAL_MS,
            )
            self.expected_interval_ms = C.EXPECTED_INTERVAL_MS
        _clamp_min(
            "timing",
            self,
            {"drop_factor": 1.0, "history_size": 1, "min_stats_samples": 0},
        )


@dataclass(slots=True)
class NoiseConfig:
    window_ms: float
    min_samples: int

    def __post_init__(self) -> None:
        _clamp_min("noise", self, {"window_ms": 1.0, "min_samples": 1})


@dataclass(slots=True)
class LatencyConfig:
    threshold_ms2: float
    timeout_ms: float
    max_latency_ms: float
    default_baseline_ms2: float

    def __post_init__(self) -> None:
        _clamp_min(
            "latency",
            self,
            {"threshold_ms2": 0.0, "timeout_ms": 1.0, "max_latency_ms": 1.0},
        )


@dataclass(slots=True)
class OrientationConfig:
    history_size: int

    def __post_init__(self) -> None:
        _clamp_min("orientation", self, {"history_size": 1})


@dataclass(slots=True)
class IntegrationConfig:
    calibration_window_ms: float
    deadzone_ms2: float
    max_dt_s: float
    height_history_size: int
    trace_history_size: int
    default_gravity: tuple[float, float, float]
    enabled_on_start: bool

    def __post_init__(self) -> None:
        _clamp_min(
            "integration",
            self,
            {
                "calibration_window_ms": 0.0,
                "deadzone_ms2": 0.0,
                "max_dt_s": 0.001,
                "height_history_size": 1,
                "trace_history_size": 1,
            },
        )


@dataclass(slots=True)
class RecordingConfig:
    auto_start: bool


@dataclass(slots=True)
class RuntimeConfig:
    timer_tick_hz: int
    event_history_size: int

    def __post_init__(self) -> None:
        _clamp_min("runtime", self, {"timer_tick_hz": 1, "event_history_size": 1})


@dataclass(slots=True)
class AppConfig:
    server: ServerConfig
    timing: TimingConfig
    noise: NoiseConfig
    latency: LatencyConfig
    orientation: OrientationConfig
    integration: IntegrationConfig
    recording: RecordingConfig
    runtime: RuntimeConfig
    config_path: Path | None = None


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a YAML object at the top level.")
        return data


def _parse_gravity(value: Any) -> tuple[float, float, float]:
    if (
        isinstance(value, (list, tuple))
        and len(value) == 3
        and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value)
    ):
        return (float(value[0]), float(value[1]), float(value[2]))
    raise ValueError(f"integration.default_gravity must be a list of 3 numbers, got {value!r}")


def build_config(
    raw: dict[str, Any] | None = None, *, config_path: Path | None = None
) -> AppConfig:
    """Build an :class:`AppConfig` from *raw* overrides merged over the defaults."""
    merged = _deep_merge(deepcopy(DEFAULT_CONFIG), raw or {})
    for section in DEFAULT_CONFIG:
        if not isinstance(merged.get(section), dict):
            raise ValueError(f"Config section {section!r} must be a mapping.")


    timing = merged["timing"]
    noise = merged["noise"]
    latency = merged["latency"]
    integration = merged["integration"]
    runtime = merged["runtime"]
    return AppConfig(
        server=ServerConfig(host=str(merged["server"]["host"]), port=int(merged["server"]["port"])),
        timing=TimingConfig(
            expected_interval_ms=float(timing["expected_interval_ms"]),
            drop_factor=float(timing["drop_factor"]),
            history_size=int(timing["history_size"]),
            min_stats_samples=int(timing["min_stats_samples"]),
        ),
        noise=NoiseConfig(
            window_ms=float(noise["window_ms"]),
            min_samples=int(noise["min_samples"]),
        ),
        latency=LatencyConfig(
            threshold_ms2=float(latency["threshold_ms2"]),
            timeout_ms=float(latency["timeout_ms"]),
            max_latency_ms=float(latency["max_latency_ms"]),
            default_baseline_ms2=float(latency["default_baseline_ms2"]),
        ),
        orientation=OrientationConfig(
            history_size=int(merged["orientation"]["history_size"]),
        ),
        integration=IntegrationConfig(
            calibration_window_ms=float(integration["calibration_window_ms"]),
            deadzone_ms2=float(integration["deadzone_ms2"]),
            max_dt_s=float(integration["max_dt_s"]),
            height_history_size=int(integration["height_history_size"]),
            trace_history_size=int(integration["trace_history_size"]),
            default_gravity=_parse_gravity(integration["default_gravity"]),
            enabled_on_start=bool(integration["enabled_on_start"]),
        ),
        recording=RecordingConfig(auto_start=bool(merged["recording"]["auto_start"])),
        runtime=RuntimeConfig(
            timer_tick_hz=int(runtime["timer_tick_hz"]),
            event_history_size=int(runtime["event_history_size"]),
        ),
        config_path=config_path,
    )


def load_config(config_path: Path | None = None) -> AppConfig:
    path = (config_path or (PACKAGE_DIR.parent / "config.yaml")).resolve()
    override = _read_config_file(path)
    app_config = build_config(override, config_path=path)
    LOGGER.info(
        "Loaded config=%s expected_interval_ms=%s timer_tick_hz=%s",
        app_config.config_path,
        app_config.timing.expected_interval_ms,
        app_config.runtime.timer_tick_hz,
    )
    return app_config
