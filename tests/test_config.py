from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from inertia.config import DEFAULT_CONFIG, PACKAGE_DIR, ServerConfig, build_config, load_config


def _write_config(path: Path, payload: object) -> None:
    path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")


def test_missing_file_means_defaults(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "absent.yaml")
    assert cfg.timing.expected_interval_ms == pytest.approx(16.67)
    assert cfg.noise.window_ms == 3000.0
    assert cfg.latency.default_baseline_ms2 == pytest.approx(9.8)
    assert cfg.integration.default_gravity == (0.0, 0.0, 9.81)
    assert cfg.recording.auto_start is True
    assert cfg.config_path == (tmp_path / "absent.yaml").resolve()


def test_partial_override_is_deep_merged(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    _write_config(config_path, {"latency": {"threshold_ms2": 3.5}})
    cfg = load_config(config_path)
    assert cfg.latency.threshold_ms2 == 3.5
    assert cfg.latency.timeout_ms == 500.0


def test_example_config_matches_defaults() -> None:
    example = load_config(PACKAGE_DIR.parent / "config.example.yaml")
    defaults = build_config()
    assert example.server == defaults.server
    assert example.timing == defaults.timing
    assert example.noise == defaults.noise
    assert example.latency == defaults.latency
    assert example.integration == defaults.integration
    assert example.runtime == defaults.runtime


def test_top_level_must_be_mapping(tmp_path: Path) -> None:
    config_path = tmp_path / "config.yaml"
    _write_config(config_path, [1, 2, 3])
    with pytest.raises(ValueError, match="YAML object"):
        load_config(config_path)


def test_section_must_be_mapping() -> None:
    with pytest.raises(ValueError, match="'noise' must be a mapping"):
        build_config({"noise": 5})


@pytest.mark.parametrize("port", [0, 70000])
def test_invalid_port_rejected(port: int) -> None:
    with pytest.raises(ValueError, match="server.port"):
        build_config({"server": {"port": port}})


def test_server_config_checks_port_on_construction() -> None:
    with pytest.raises(ValueError, match="server.port must be 1-65535"):
        ServerConfig(host="127.0.0.1", port=0)


def test_invalid_gravity_rejected() -> None:
    with pytest.raises(ValueError, match="default_gravity"):
        build_config({"integration": {"default_gravity": [0, 9.81]}})


def test_out_of_range_values_are_clamped(caplog: pytest.LogCaptureFixture) -> None:
    cfg = build_config(
        {
            "timing": {"expected_interval_ms": -5, "history_size": 0},
            "noise": {"window_ms": 0, "min_samples": 0},
            "runtime": {"timer_tick_hz": 0},
        }
    )
    assert cfg.timing.expected_interval_ms == pytest.approx(16.67)
    assert cfg.timing.history_size == 1
    assert cfg.noise.window_ms == 1.0
    assert cfg.noise.min_samples == 1
    assert cfg.runtime.timer_tick_hz == 1
    assert "clamped" in caplog.text


def test_defaults_are_not_mutated() -> None:
    build_config({"integration": {"default_gravity": [1.0, 2.0, 3.0]}})
    assert DEFAULT_CONFIG["integration"]["default_gravity"] == [0.0, 0.0, 9.81]
