"""Distance-, debounce- and rate-gated route requests."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Protocol

from livetrack._scheduling import Cancellable, Scheduler
from livetrack.config import TrackerConfig
from livetrack.exceptions import LiveTrackError
from livetrack.geo import haversine_m
from livetrack.models.geo import LatLng
from livetrack.models.route import RouteCommit, RouteResult, RouteSnapshot, ThrottleState

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Router(Protocol):
    """Structural routing interface.

    :class:`~livetrack._api.directions.DirectionsRouter` is the production
    implementation; tests pass simple doubles.
    """

    async def route(self, origin: LatLng, destination: LatLng) -> RouteResult:
        ...


class RouteThrottle:
    """Decide when the route between the device and the remote entity is recomputed.

    * The origin commits only after moving ``origin_epsilon`` from the last
      committed origin.
    * The destination commits after ``destination_debounce`` seconds without
      a newer remote update, and only if it moved ``destination_epsilon``.
    * Requests are spaced at least ``min_route_interval`` apart; a commit
      during the cooldown is held and issued when it ends.
    * Only one request is in flight. Failures keep the last result and mark
      it stale; the next qualifying movement retries naturally.
    """

    def __init__(
        self,
        router: Router,
        scheduler: Scheduler,
        *,
        config: TrackerConfig | None = None,
        on_update: Callable[[RouteSnapshot], None] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._router = router
        self._scheduler = scheduler
        self._config = config or TrackerConfig()
        self._on_update = on_update
        self._clock = clock

        self._origin: LatLng | None = None
        self._destination: LatLng | None = None
        self._pending_destination: LatLng | None = None
        self._dirty = False
        self._last_issued_at: float | None = None
        self._debounce: Cancellable | None = None
        self._cooldown: Cancellable | None = None
        self._inflight: asyncio.Task[None] | None = None
        self._closed = False

        self._result: RouteResult | None = None
        self._failed = False
        self._stale = False
        self._eta: datetime | None = None
        self._error: str | None = None
        self._request_count = 0

    # ------------------------------------------------------------------
    # Observed state
    # ------------------------------------------------------------------

    @property
    def origin(self) -> LatLng | None:
        return self._origin

    @property
    def destination(self) -> LatLng | None:
        return self._destination

    @property
    def result(self) -> RouteResult | None:
        return self._result

    @property
    def stale(self) -> bool:
        return self._stale

    @property
    def eta(self) -> datetime | None:
        return self._eta

    @property
    def request_count(self) -> int:
        return self._request_count

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None

    @property
    def state(self) -> ThrottleState:
        if self._inflight is not None:
            return ThrottleState.REQUESTING
        if self._cooldown is not None:
            return ThrottleState.RATE_LIMITED
        if self._debounce is not None:
            return ThrottleState.PENDING_DESTINATION
        if self._failed:
            return ThrottleState.FAILED
        if self._result is not None:
            return ThrottleState.READY
        return ThrottleState.IDLE

    def snapshot(self) -> RouteSnapshot:
        commit = None
        if self._origin is not None and self._destination is not None:
            commit = RouteCommit(origin=self._origin, destination=self._destination)
        return RouteSnapshot(
            state=self.state,
            result=self._result,
            stale=self._stale,
            eta=self._eta,
            commit=commit,
            error=self._error,
        )

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def offer_origin(self, position: LatLng) -> bool:
        """Offer a new origin candidate; return ``True`` if it committed."""
        if self._closed:
            return False
        if self._origin is not None and haversine_m(self._origin, position) <= self._config.origin_epsilon:
            return False
        self._origin = position
        _logger.debug("Route origin committed %s", position.as_query())
        self._mark_dirty()
        return True

    def offer_destination(self, position: LatLng) -> None:
        """Record a remote update and restart the debounce timer."""
        if self._closed:
            return
        self._pending_destination = position
        if self._debounce is not None:
            self._debounce.cancel()
        self._debounce = self._scheduler.call_later(self._config.destination_debounce, self._on_debounce)
        self._notify()

    def seed_destination(self, position: LatLng) -> None:
        """Commit the initially fetched remote position without debouncing."""
        if self._closed:
            return
        self._destination = position
        self._mark_dirty()

    def close(self) -> None:
        """Cancel timers and ignore any late completion."""
        self._closed = True
        for handle in (self._debounce, self._cooldown):
            if handle is not None:
                handle.cancel()
        self._debounce = None
        self._cooldown = None

    async def drain(self) -> None:
        """Wait for the in-flight request, if any, to complete."""
        while self._inflight is not None:
            await asyncio.shield(self._inflight)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _on_debounce(self) -> None:
        self._debounce = None
        pending = self._pending_destination
        self._pending_destination = None
        if pending is None:
            return
        current = self._destination
        if current is not None and haversine_m(current, pending) <= self._config.destination_epsilon:
            _logger.debug("Debounced destination within epsilon, not committed")
            self._notify()
            return
        self._destination = pending
        _logger.debug("Route destination committed %s", pending.as_query())
        self._mark_dirty()

    def _on_cooldown(self) -> None:
        self._cooldown = None
        self._maybe_issue()

    def _mark_dirty(self) -> None:
        self._dirty = True
        self._maybe_issue()

    def _maybe_issue(self) -> None:
        if self._closed or not self._dirty or self._origin is None or self._destination is None:
            self._notify()
            return
        if self._inflight is not None:
            # Re-evaluated when the request completes.
            self._notify()
            return
        if self._cooldown is not None:
            self._notify()
            return

        now = self._scheduler.time()
        if self._last_issued_at is not None:
            remaining = self._config.min_route_interval - (now - self._last_issued_at)
            if remaining > 0:
                _logger.debug("Route request held for %.2fs cooldown", remaining)
                self._cooldown = self._scheduler.call_later(remaining, self._on_cooldown)
                self._notify()
                return

        commit = RouteCommit(origin=self._origin, destination=self._destination)
        self._dirty = False
        self._last_issued_at = now
        self._request_count += 1
        _logger.debug(
            "Route request #%d origin=%s destination=%s",
            self._request_count,
            commit.origin.as_query(),
            commit.destination.as_query(),
        )
        self._inflight = asyncio.get_running_loop().create_task(self._request(commit))
        self._notify()

    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update(self.snapshot())

    async def _request(self, commit: RouteCommit) -> None:
        try:
            result = await self._router.route(commit.origin, commit.destination)
        except asyncio.CancelledError:
            self._inflight = None
            raise
        except Exception as exc:
            self._inflight = None
            if self._closed:
                return
            if isinstance(exc, (LiveTrackError, TimeoutError)):
                _logger.warning("Route request failed: %s", exc)
            else:
                _logger.warning("Route request failed unexpectedly: %s", exc, exc_info=True)
            self._failed = True
            self._stale = self._result is not None
            self._error = str(exc) or type(exc).__name__
            self._maybe_issue()
            return

        self._inflight = None
        if self._closed:
            return
        self._result = result
        self._failed = False
        self._stale = False
        self._error = None
        seconds = result.travel_seconds
        self._eta = self._clock() + timedelta(seconds=seconds) if seconds is not None else None
        self._maybe_issue()
