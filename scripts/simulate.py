#!/usr/bin/env python3
"""Run a tracking session and print every snapshot as a JSON line.

Two sources are supported:

- ``simulated`` (default): no hardware, the synthetic generator walks.
- ``replay``: a JSON file of ``{"t": <ms offset>, "total": <int>}`` or
  ``{"t": <ms offset>, "step": true}`` records is pushed through a
  manual sensor, honouring the recorded offsets.

Configuration is read from ``STRIDE_*`` environment variables; see
``StrideConfig.from_env``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pystride import (  # noqa: E402
    ManualStepSensor,
    MilestoneWatcher,
    SessionState,
    StatePublisher,
    StrideConfig,
    TrackingSession,
)


def _emit(kind: str, payload: dict[str, Any]) -> None:
    print(json.dumps({"ts": round(time.time(), 3), "kind": kind, **payload}), flush=True)


def _on_state(state: SessionState) -> None:
    _emit("state", state.model_dump(by_alias=True))


def _on_milestone(threshold: int, state: SessionState) -> None:
    _emit("milestone", {"threshold": threshold, "cumulativeSteps": state.cumulative_steps})


def _load_replay(path: Path) -> list[dict[str, Any]]:
    records = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(records, list):
        raise SystemExit(f"{path}: expected a JSON list of readings")
    return sorted(records, key=lambda record: int(record.get("t", 0)))


async def _replay(sensor: ManualStepSensor, records: list[dict[str, Any]]) -> None:
    started = time.monotonic()
    for record in records:
        delay = int(record.get("t", 0)) / 1000 - (time.monotonic() - started)
        if delay > 0:
            await asyncio.sleep(delay)
        if "total" in record:
            sensor.report_total(int(record["total"]))
        elif record.get("step"):
            sensor.step()


async def _run(args: argparse.Namespace) -> int:
    config = StrideConfig.from_env()
    sensor: ManualStepSensor | None = None
    records: list[dict[str, Any]] = []
    if args.replay is not None:
        records = _load_replay(args.replay)
        sensor = ManualStepSensor(
            step_detector=any(record.get("step") for record in records),
            step_counter=any("total" in record for record in records),
        )

    session = TrackingSession(config, sensors=sensor)
    publisher = StatePublisher(session)
    publisher.subscribe(_on_state)
    watcher = MilestoneWatcher(publisher, config.milestones, _on_milestone)

    async with session:
        replay_task = asyncio.create_task(_replay(sensor, records)) if sensor is not None else None
        deadline = time.monotonic() + args.seconds
        while time.monotonic() < deadline:
            await asyncio.sleep(args.refresh)
            publisher.session.refresh_rate()
        if replay_task is not None:
            replay_task.cancel()

    stats = publisher.session.stats()
    _emit(
        "summary",
        {
            "cumulativeSteps": stats.cumulative_steps,
            "elapsed": stats.format_elapsed(),
            "averageStepsPerSecond": round(stats.average_steps_per_second, 2),
        },
    )
    watcher.close()
    publisher.close()
    return 0


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--seconds", type=float, default=10.0, help="How long to track (default: 10)")
    parser.add_argument("--refresh", type=float, default=1.0, help="Rate refresh period in seconds (default: 1)")
    parser.add_argument("--replay", type=Path, default=None, help="JSON file of recorded sensor readings")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
