#!/usr/bin/env python3
"""Replay a recorded track through the livetrack pipeline.

Each line of the input file is one JSON event::

    {"at": 0.0, "fix": {"latitude": 13.7563, "longitude": 100.5018, "speed": 0}}
    {"at": 0.4, "compass": {"webkitCompassHeading": 87}}
    {"at": 1.0, "remote": {"type": "INSERT", "record": {"latitude": 13.77, "longitude": 100.51}}}

``at`` is seconds since the start of the replay. Camera commands, route
snapshots and voice prompts are printed as they happen.

Usage
-----
::

    export LIVETRACK_DIRECTIONS_API_KEY="..."
    python scripts/replay_track.py track.jsonl

Options::

    --speed N        Replay N times faster than recorded (default: 1)
    --offline        Use a straight-line router instead of the directions API
    --verbose, -v    Enable debug logs
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from livetrack import LatLng, RouteResult, RouteSnapshot, TrackerConfig, TrackingSession  # noqa: E402
from livetrack.geo import haversine_m  # noqa: E402

_LOG = logging.getLogger("replay_track")


class PrintingViewport:
    """Viewport that only remembers and prints camera commands."""

    def __init__(self) -> None:
        self._center: LatLng | None = None
        self._heading: float | None = None

    def pan_to(self, point: LatLng) -> None:
        self._center = point
        print(f"[camera] pan_to {point.as_query()}")

    def set_heading(self, degrees: float) -> None:
        self._heading = degrees
        print(f"[camera] heading {degrees:.1f}")

    def set_zoom(self, level: int) -> None:
        print(f"[camera] zoom {level}")

    def get_center(self) -> LatLng | None:
        return self._center

    def get_heading(self) -> float | None:
        return self._heading


class StraightLineRouter:
    """Great-circle distance at a fixed speed; enough to exercise the throttle offline."""

    def __init__(self, speed_mps: float = 10.0) -> None:
        self._speed = speed_mps

    async def route(self, origin: LatLng, destination: LatLng) -> RouteResult:
        meters = haversine_m(origin, destination)
        seconds = meters / self._speed
        return RouteResult(
            distance_text=f"{meters / 1000:.1f} km",
            duration_text=f"{max(1, round(seconds / 60))} mins",
            distance_m=meters,
            duration_s=seconds,
        )


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay a JSON-lines track through livetrack.")
    parser.add_argument("track", type=Path, help="JSON-lines file with fix/compass/remote events.")
    parser.add_argument("--speed", type=float, default=1.0, help="Replay speed multiplier.")
    parser.add_argument("--offline", action="store_true", help="Use a straight-line router.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logs.")
    return parser.parse_args()


def _load_events(path: Path) -> list[dict[str, Any]]:
    events: list[dict[str, Any]] = []
    with path.open(encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                _LOG.warning("Skipping invalid JSON on line %d", lineno)
                continue
            if isinstance(event, dict):
                events.append(event)
    events.sort(key=lambda e: float(e.get("at", 0.0)))
    return events


def _print_route(snapshot: RouteSnapshot) -> None:
    result = snapshot.result
    if result is None:
        print(f"[route] {snapshot.state}")
        return
    stale = " (stale)" if snapshot.stale else ""
    eta = snapshot.eta.strftime("%H:%M:%S") if snapshot.eta else "-"
    print(f"[route] {snapshot.state} {result.distance_text} / {result.duration_text} eta={eta}{stale}")


async def _replay(args: argparse.Namespace, events: list[dict[str, Any]]) -> None:
    config = TrackerConfig.from_env()
    router = StraightLineRouter() if args.offline else None
    loop = asyncio.get_running_loop()
    started = loop.time()

    async with TrackingSession(
        config,
        PrintingViewport(),
        router=router,
        speak=lambda message: print(f"[voice] {message}"),
        on_route=_print_route,
    ) as session:
        for event in events:
            due = started + float(event.get("at", 0.0)) / args.speed
            delay = due - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)
            if "fix" in event:
                session.handle_fix(event["fix"])
            elif "compass" in event:
                session.handle_compass(event["compass"])
            elif "remote" in event:
                session.handle_remote_insert(event["remote"])
            else:
                _LOG.debug("Ignoring event without fix/compass/remote: %s", event)

        # let the last glide and any pending route settle
        await asyncio.sleep(config.destination_debounce + config.animation_duration)
        await session.throttle.drain()
        if session.navigation_url():
            print(f"[navigate] {session.navigation_url()}")


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.speed <= 0:
        print("--speed must be positive", file=sys.stderr)
        return 2
    events = _load_events(args.track)
    if not events:
        print(f"No events in {args.track}", file=sys.stderr)
        return 1
    try:
        asyncio.run(_replay(args, events))
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
