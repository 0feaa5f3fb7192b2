"""Engine configuration for pystride."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pystride.exceptions import StrideConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, raw: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise StrideConfigError(f"{env_key} must be a number, got {raw!r}", field=env_key) from exc


def _parse_milestones(raw: str) -> tuple[int, ...]:
    parts = [part.strip() for part in raw.split(",")]
    try:
        return tuple(int(part) for part in parts if part)
    except ValueError as exc:
        raise StrideConfigError(
            f"STRIDE_MILESTONES must be comma separated integers, got {raw!r}",
            field="STRIDE_MILESTONES",
        ) from exc


@dataclasses.dataclass(frozen=True)
class SimulationParameters:
    """Cadence model for the synthetic step generator.

    Parameters
    ----------
    base_speed : float
        Typical walking cadence in steps per second.
    min_speed : float
        Lower bound on the drawn cadence, in steps per second.
    min_interval_ms : int
        Lower bound on the delay between two synthetic steps.
    """

    base_speed: float = 1.8
    min_speed: float = 0.3
    min_interval_ms: int = 200

    def __post_init__(self) -> None:
        if self.base_speed <= 0:
            raise StrideConfigError("base_speed must be positive", field="base_speed")
        if self.min_speed <= 0:
            raise StrideConfigError("min_speed must be positive", field="min_speed")
        if self.min_interval_ms < 0:
            raise StrideConfigError("min_interval_ms must not be negative", field="min_interval_ms")


@dataclasses.dataclass(frozen=True)
class StrideConfig:
    """Engine configuration, built once and injected into the session.

    Parameters
    ----------
    window_size_ms : int
        Length of the trailing window used for the steps-per-second
        figure. The reported rate is the number of steps inside it.
    simulation : SimulationParameters
        Cadence model used when no hardware step source is usable.
    milestones : tuple of int
        Cumulative step counts that trigger a milestone alert.
    force_simulation : bool
        Ignore any hardware source and always run the synthetic
        generator. Handy on development machines and emulators.
    """

    window_size_ms: int = 1000
    simulation: SimulationParameters = dataclasses.field(default_factory=SimulationParameters)
    milestones: tuple[int, ...] = (1000, 5000, 10000)
    force_simulation: bool = False

    def __post_init__(self) -> None:
        if self.window_size_ms <= 0:
            raise StrideConfigError("window_size_ms must be positive", field="window_size_ms")
        if any(value <= 0 for value in self.milestones):
            raise StrideConfigError("milestones must be positive step counts", field="milestones")
        # Store thresholds sorted and de-duplicated so watchers can walk them in order.
        object.__setattr__(self, "milestones", tuple(sorted(set(self.milestones))))

    @classmethod
    def from_env(cls, **overrides: Any) -> StrideConfig:
        """Create configuration from environment variables.

        Reads ``STRIDE_WINDOW_SIZE_MS``, ``STRIDE_MILESTONES`` and
        ``STRIDE_FORCE_SIMULATION``, plus the simulation fields
        ``STRIDE_BASE_SPEED``, ``STRIDE_MIN_SPEED`` and
        ``STRIDE_MIN_INTERVAL_MS``. Explicit keyword arguments override
        environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.
            ``simulation`` may be a :class:`SimulationParameters` or a
            dict of its fields.

        Returns
        -------
        StrideConfig
            Populated configuration.

        Raises
        ------
        StrideConfigError
            If a numeric variable cannot be parsed or a value is out of range.
        """
        env = os.environ

        simulation_kwargs: dict[str, Any] = {}
        _ENV_SIMULATION_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "STRIDE_BASE_SPEED": ("base_speed", float),
            "STRIDE_MIN_SPEED": ("min_speed", float),
            "STRIDE_MIN_INTERVAL_MS": ("min_interval_ms", int),
        }
        for env_key, (field_name, cast) in _ENV_SIMULATION_MAP.items():
            val = env.get(env_key)
            if val is not None:
                simulation_kwargs[field_name] = _env_number(env_key, val, cast)

        simulation_overrides = overrides.pop("simulation", None)
        if isinstance(simulation_overrides, dict):
            simulation_kwargs.update(simulation_overrides)
        elif isinstance(simulation_overrides, SimulationParameters):
            simulation_kwargs = dataclasses.asdict(simulation_overrides)

        config_kwargs: dict[str, Any] = {"simulation": SimulationParameters(**simulation_kwargs)}

        window_env = env.get("STRIDE_WINDOW_SIZE_MS")
        if window_env is not None and "window_size_ms" not in overrides:
            config_kwargs["window_size_ms"] = _env_number("STRIDE_WINDOW_SIZE_MS", window_env, int)

        milestones_env = env.get("STRIDE_MILESTONES")
        if milestones_env is not None and "milestones" not in overrides:
            config_kwargs["milestones"] = _parse_milestones(milestones_env)

        if "force_simulation" not in overrides:
            config_kwargs["force_simulation"] = _env_bool(env.get("STRIDE_FORCE_SIMULATION"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
