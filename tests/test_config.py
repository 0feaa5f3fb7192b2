from __future__ import annotations

import pytest

from pystride.config import SimulationParameters, StrideConfig
from pystride.exceptions import StrideConfigError, StrideError

_ENV_KEYS = (
    "STRIDE_WINDOW_SIZE_MS",
    "STRIDE_BASE_SPEED",
    "STRIDE_MIN_SPEED",
    "STRIDE_MIN_INTERVAL_MS",
    "STRIDE_MILESTONES",
    "STRIDE_FORCE_SIMULATION",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = StrideConfig()

    assert config.window_size_ms == 1000
    assert config.simulation == SimulationParameters(base_speed=1.8, min_speed=0.3, min_interval_ms=200)
    assert config.milestones == (1000, 5000, 10000)
    assert config.force_simulation is False


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STRIDE_WINDOW_SIZE_MS", "2000")
    monkeypatch.setenv("STRIDE_BASE_SPEED", "2.2")
    monkeypatch.setenv("STRIDE_MIN_INTERVAL_MS", "250")
    monkeypatch.setenv("STRIDE_MILESTONES", "500, 100,,500")
    monkeypatch.setenv("STRIDE_FORCE_SIMULATION", "yes")

    config = StrideConfig.from_env()

    assert config.window_size_ms == 2000
    assert config.simulation.base_speed == 2.2
    assert config.simulation.min_speed == 0.3
    assert config.simulation.min_interval_ms == 250
    assert config.milestones == (100, 500)
    assert config.force_simulation is True


def test_overrides_take_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STRIDE_WINDOW_SIZE_MS", "2000")
    monkeypatch.setenv("STRIDE_BASE_SPEED", "2.2")

    config = StrideConfig.from_env(window_size_ms=500, simulation={"base_speed": 1.0})

    assert config.window_size_ms == 500
    assert config.simulation.base_speed == 1.0


def test_simulation_override_instance_replaces_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STRIDE_MIN_SPEED", "0.5")
    params = SimulationParameters(base_speed=1.2)

    assert StrideConfig.from_env(simulation=params).simulation == params


def test_unparseable_number_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STRIDE_BASE_SPEED", "fast")

    with pytest.raises(StrideConfigError) as excinfo:
        StrideConfig.from_env()
    assert excinfo.value.field == "STRIDE_BASE_SPEED"


def test_unparseable_milestones_raise(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STRIDE_MILESTONES", "10,lots")

    with pytest.raises(StrideConfigError):
        StrideConfig.from_env()


@pytest.mark.parametrize(
    ("kwargs", "field"),
    [
        ({"window_size_ms": 0}, "window_size_ms"),
        ({"milestones": (10, -1)}, "milestones"),
    ],
)
def test_invalid_config_rejected(kwargs: dict[str, object], field: str) -> None:
    with pytest.raises(StrideConfigError) as excinfo:
        StrideConfig(**kwargs)  # type: ignore[arg-type]
    assert excinfo.value.field == field
    assert isinstance(excinfo.value, StrideError)


@pytest.mark.parametrize(
    "kwargs",
    [{"base_speed": 0}, {"min_speed": -0.1}, {"min_interval_ms": -1}],
)
def test_invalid_simulation_parameters_rejected(kwargs: dict[str, float]) -> None:
    with pytest.raises(StrideConfigError):
        SimulationParameters(**kwargs)  # type: ignore[arg-type]
