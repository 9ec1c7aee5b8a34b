from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import pytest
from fakes import BANGKOK, FakeRouter, ManualScheduler, make_result, offset

from livetrack.config import TrackerConfig
from livetrack.exceptions import RoutingError
from livetrack.models.route import RouteSnapshot, ThrottleState
from livetrack.pipeline.throttle import RouteThrottle

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
REMOTE = offset(BANGKOK, north=2000.0)


def _throttle(
    router: FakeRouter,
    scheduler: ManualScheduler,
    updates: list[RouteSnapshot] | None = None,
    **overrides: object,
) -> RouteThrottle:
    return RouteThrottle(
        router,
        scheduler,
        config=TrackerConfig(**overrides),  # type: ignore[arg-type]
        on_update=updates.append if updates is not None else None,
        clock=lambda: NOW,
    )


@pytest.mark.asyncio
async def test_nothing_requested_without_both_endpoints(router: FakeRouter, scheduler: ManualScheduler) -> None:
    throttle = _throttle(router, scheduler)
    assert throttle.offer_origin(BANGKOK) is True
    await asyncio.sleep(0)

    assert router.calls == []
    assert throttle.state == ThrottleState.IDLE


@pytest.mark.asyncio
async def test_seeded_destination_requests_immediately(router: FakeRouter, scheduler: ManualScheduler) -> None:
    updates: list[RouteSnapshot] = []
    throttle = _throttle(router, scheduler, updates)
    throttle.seed_destination(REMOTE)
    throttle.offer_origin(BANGKOK)
    assert throttle.in_flight
    assert throttle.state == ThrottleState.REQUESTING

    await throttle.drain()

    assert router.calls == [(BANGKOK, REMOTE, 0.0)]
    assert throttle.state == ThrottleState.READY
    assert throttle.result == make_result()
    assert throttle.eta == NOW + timedelta(seconds=300)
    assert updates[-1].result == throttle.result
    assert updates[-1].commit is not None
    assert updates[-1].commit.destination == REMOTE


@pytest.mark.asyncio
async def test_origin_commits_only_past_epsilon(router: FakeRouter, scheduler: ManualScheduler) -> None:
    throttle = _throttle(router, scheduler)
    commits = [
        throttle.offer_origin(BANGKOK),
        throttle.offer_origin(offset(BANGKOK, north=25.0)),
        throttle.offer_origin(offset(BANGKOK, north=30.0)),
        throttle.offer_origin(offset(BANGKOK, north=55.0)),
    ]

    assert commits == [True, True, False, True]
    assert throttle.origin == offset(BANGKOK, north=55.0)


@pytest.mark.asyncio
async def test_requests_spaced_by_min_interval(router: FakeRouter, scheduler: ManualScheduler) -> None:
    throttle = _throttle(router, scheduler)
    throttle.seed_destination(REMOTE)
    throttle.offer_origin(BANGKOK)
    await throttle.drain()

    scheduler.advance(3.0)
    assert throttle.offer_origin(offset(BANGKOK, north=30.0))
    assert throttle.state == ThrottleState.RATE_LIMITED
    scheduler.advance(3.0)
    assert throttle.offer_origin(offset(BANGKOK, north=60.0))
    await asyncio.sleep(0)
    assert len(router.calls) == 1

    scheduler.advance(4.0)
    await throttle.drain()

    assert [call[2] for call in router.calls] == [0.0, 10.0]
    # The held request carries the latest committed origin.
    assert router.calls[1][0] == offset(BANGKOK, north=60.0)
    assert throttle.request_count == 2


@pytest.mark.asyncio
async def test_destination_debounced_until_quiet(router: FakeRouter, scheduler: ManualScheduler) -> None:
    throttle = _throttle(router, scheduler, min_route_interval=0.0)
    throttle.offer_origin(BANGKOK)

    for step in range(3):
        throttle.offer_destination(offset(REMOTE, east=50.0 * step))
        assert throttle.state == ThrottleState.PENDING_DESTINATION
        scheduler.advance(1.0)

    scheduler.advance_to(4.9)
    assert throttle.destination is None
    scheduler.advance_to(5.0)
    await throttle.drain()

    assert throttle.destination == offset(REMOTE, east=100.0)
    assert router.calls == [(BANGKOK, offset(REMOTE, east=100.0), 5.0)]


@pytest.mark.asyncio
async def test_close_together_pushes_commit_only_the_last(router: FakeRouter, scheduler: ManualScheduler) -> None:
    throttle = _throttle(router, scheduler, min_route_interval=0.0)
    throttle.offer_origin(BANGKOK)
    pushes = [REMOTE, offset(REMOTE, north=4.0), offset(REMOTE, north=8.0)]

    for at, position in enumerate(pushes):
        scheduler.advance_to(float(at))
        throttle.offer_destination(position)

    scheduler.advance_to(4.9)
    assert throttle.destination is None
    assert router.calls == []

    scheduler.advance_to(5.0)
    await throttle.drain()

    assert throttle.destination == pushes[-1]
    assert router.calls == [(BANGKOK, pushes[-1], 5.0)]
    assert throttle.request_count == 1


@pytest.mark.asyncio
async def test_snapshots_published_on_every_transition(router: FakeRouter, scheduler: ManualScheduler) -> None:
    updates: list[RouteSnapshot] = []
    throttle = _throttle(router, scheduler, updates)

    throttle.offer_destination(REMOTE)
    assert updates[-1].state == ThrottleState.PENDING_DESTINATION

    throttle.offer_origin(BANGKOK)
    scheduler.advance(3.0)
    assert updates[-1].state == ThrottleState.REQUESTING

    await throttle.drain()
    assert updates[-1].state == ThrottleState.READY
    assert updates[-1].eta == NOW + timedelta(seconds=300)


@pytest.mark.asyncio
async def test_small_destination_move_not_committed(router: FakeRouter, scheduler: ManualScheduler) -> None:
    throttle = _throttle(router, scheduler, min_route_interval=0.0)
    throttle.seed_destination(REMOTE)
    throttle.offer_origin(BANGKOK)
    await throttle.drain()

    throttle.offer_destination(offset(REMOTE, north=5.0))
    scheduler.advance(3.0)
    await asyncio.sleep(0)

    assert throttle.destination == REMOTE
    assert throttle.request_count == 1


@pytest.mark.asyncio
async def test_failure_keeps_result_and_marks_stale(router: FakeRouter, scheduler: ManualScheduler) -> None:
    throttle = _throttle(router, scheduler)
    throttle.seed_destination(REMOTE)
    throttle.offer_origin(BANGKOK)
    await throttle.drain()
    previous = throttle.result

    router.fail_with = RoutingError("Route request failed: ZERO_RESULTS", status="ZERO_RESULTS")
    scheduler.advance(10.0)
    throttle.offer_origin(offset(BANGKOK, north=40.0))
    await throttle.drain()

    assert throttle.result is previous
    assert throttle.stale is True
    assert throttle.state == ThrottleState.FAILED
    assert "ZERO_RESULTS" in (throttle.snapshot().error or "")

    # No automatic retry.
    scheduler.advance(60.0)
    await asyncio.sleep(0)
    assert throttle.request_count == 2


@pytest.mark.asyncio
async def test_unexpected_router_error_marks_stale(router: FakeRouter, scheduler: ManualScheduler) -> None:
    updates: list[RouteSnapshot] = []
    throttle = _throttle(router, scheduler, updates)
    throttle.seed_destination(REMOTE)
    throttle.offer_origin(BANGKOK)
    await throttle.drain()
    previous = throttle.result

    router.fail_with = RuntimeError("connection pool exhausted")
    scheduler.advance(10.0)
    throttle.offer_origin(offset(BANGKOK, north=40.0))
    await throttle.drain()

    assert throttle.result is previous
    assert throttle.stale is True
    assert throttle.state == ThrottleState.FAILED
    assert updates[-1].state == ThrottleState.FAILED
    assert updates[-1].stale is True
    assert updates[-1].error == "connection pool exhausted"
    assert not throttle.in_flight


@pytest.mark.asyncio
async def test_first_failure_is_not_stale(router: FakeRouter, scheduler: ManualScheduler) -> None:
    router.fail_with = TimeoutError()
    throttle = _throttle(router, scheduler)
    throttle.seed_destination(REMOTE)
    throttle.offer_origin(BANGKOK)
    await throttle.drain()

    assert throttle.result is None
    assert throttle.stale is False
    assert throttle.state == ThrottleState.FAILED


@pytest.mark.asyncio
async def test_single_request_in_flight(scheduler: ManualScheduler) -> None:
    gate = asyncio.Event()
    router = FakeRouter(scheduler=scheduler, gate=gate)
    throttle = _throttle(router, scheduler)
    throttle.seed_destination(REMOTE)
    throttle.offer_origin(BANGKOK)
    await asyncio.sleep(0)

    scheduler.advance(20.0)
    throttle.offer_origin(offset(BANGKOK, north=30.0))
    scheduler.advance(20.0)
    throttle.offer_origin(offset(BANGKOK, north=60.0))
    await asyncio.sleep(0)
    assert len(router.calls) == 1

    gate.set()
    await throttle.drain()

    assert len(router.calls) == 2
    assert router.calls[1][0] == offset(BANGKOK, north=60.0)


@pytest.mark.asyncio
async def test_close_cancels_timers_and_ignores_late_result(scheduler: ManualScheduler) -> None:
    gate = asyncio.Event()
    router = FakeRouter(scheduler=scheduler, gate=gate)
    throttle = _throttle(router, scheduler)
    throttle.seed_destination(REMOTE)
    throttle.offer_origin(BANGKOK)
    throttle.offer_destination(offset(REMOTE, north=500.0))
    await asyncio.sleep(0)

    throttle.close()
    assert scheduler.pending == 0

    gate.set()
    await throttle.drain()
    assert throttle.result is None
    assert throttle.offer_origin(offset(BANGKOK, north=100.0)) is False
