"""Tests for the pydantic snapshot models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from pystride.models import SessionState, SessionStats, StepEvent, StepSource


class TestSessionState:
    def test_defaults_are_idle_baseline(self) -> None:
        state = SessionState()
        assert state.cumulative_steps == 0
        assert state.steps_per_second == 0.0
        assert state.is_tracking is False
        assert state.is_simulating is False

    def test_dump_uses_camel_case_aliases(self) -> None:
        state = SessionState(cumulative_steps=12, steps_per_second=2.0, is_tracking=True)
        assert state.model_dump(by_alias=True) == {
            "cumulativeSteps": 12,
            "stepsPerSecond": 2.0,
            "isTracking": True,
            "isSimulating": False,
        }

    def test_accepts_camel_case_input(self) -> None:
        state = SessionState.model_validate({"cumulativeSteps": 3, "isSimulating": True})
        assert state.cumulative_steps == 3
        assert state.is_simulating is True

    def test_frozen(self) -> None:
        state = SessionState()
        with pytest.raises(ValidationError):
            state.cumulative_steps = 5  # type: ignore[misc]

    def test_rejects_negative_values(self) -> None:
        with pytest.raises(ValidationError):
            SessionState(cumulative_steps=-1)
        with pytest.raises(ValidationError):
            SessionState(steps_per_second=-0.5)


class TestSessionStats:
    def test_average_is_zero_without_elapsed_time(self) -> None:
        assert SessionStats(cumulative_steps=10).average_steps_per_second == 0.0

    def test_average(self) -> None:
        assert SessionStats(cumulative_steps=90, elapsed_seconds=60).average_steps_per_second == 1.5

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "00:00:00"), (59.9, "00:00:59"), (3725, "01:02:05"), (36000, "10:00:00")],
    )
    def test_format_elapsed(self, seconds: float, expected: str) -> None:
        assert SessionStats(elapsed_seconds=seconds).format_elapsed() == expected


class TestStepEvent:
    def test_source_from_string(self) -> None:
        event = StepEvent.model_validate({"timestampMs": 5, "source": "simulated"})
        assert event.source is StepSource.SIMULATED
        assert event.timestamp_ms == 5

    def test_unknown_keys_ignored(self) -> None:
        event = StepEvent.model_validate({"timestampMs": 1, "source": "detector", "accuracy": 3})
        assert event.model_dump() == {"timestamp_ms": 1, "source": StepSource.DETECTOR}
