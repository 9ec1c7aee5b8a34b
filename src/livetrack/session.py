"""High-level async tracking session."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

import aiohttp

from livetrack._api.directions import DirectionsRouter, navigation_url
from livetrack._api.locations import fetch_latest_location
from livetrack._mqtt import MqttLocationFeed, RemoteFeed
from livetrack._redact import redact_for_log
from livetrack._scheduling import LoopScheduler, Scheduler
from livetrack._transport import JsonTransport, Transport
from livetrack.config import TrackerConfig
from livetrack.exceptions import LiveTrackError, PayloadError
from livetrack.ingestion.payloads import parse_compass, parse_fix, parse_remote_insert
from livetrack.models.fix import FilteredPosition
from livetrack.models.remote import RemoteLocation
from livetrack.models.route import RouteResult, RouteSnapshot
from livetrack.models.sensor import SensorErrorCode, SensorStatus
from livetrack.models.visual import VisualState
from livetrack.pipeline.animator import PositionAnimator
from livetrack.pipeline.filter import GeoSampleFilter
from livetrack.pipeline.guidance import GuidanceAnnouncer
from livetrack.pipeline.heading import HeadingFusion
from livetrack.pipeline.throttle import Router, RouteThrottle
from livetrack.pipeline.viewport import Viewport, ViewportController
from livetrack.sensors import LocationSensor

_logger = logging.getLogger(__name__)


class TrackingSession:
    """Wire the tracking pipeline to its collaborators.

    Usage::

        async with TrackingSession(config, viewport, sensor=sensor) as session:
            ...
            session.recenter()

    Every ``handle_*`` method must be called on the session's event loop;
    the MQTT feed and the stream sensor already deliver there. That single
    thread is what serializes all writes to filter, heading and throttle
    state.
    """

    def __init__(
        self,
        config: TrackerConfig,
        viewport: Viewport,
        *,
        sensor: LocationSensor | None = None,
        remote_feed: RemoteFeed | None = None,
        router: Router | None = None,
        transport: Transport | None = None,
        http_session: aiohttp.ClientSession | None = None,
        scheduler: Scheduler | None = None,
        speak: Callable[[str], None] | None = None,
        on_local_frame: Callable[[VisualState], None] | None = None,
        on_remote_frame: Callable[[VisualState], None] | None = None,
        on_route: Callable[[RouteSnapshot], None] | None = None,
    ) -> None:
        self._config = config
        self._viewport = viewport
        self._sensor = sensor
        self._remote_feed = remote_feed
        self._router = router
        self._transport = transport
        self._external_session = http_session is not None
        self._http_session = http_session
        self._scheduler = scheduler
        self._speak = speak
        self._on_local_frame_cb = on_local_frame
        self._on_remote_frame_cb = on_remote_frame
        self._on_route_cb = on_route
        self._loop: asyncio.AbstractEventLoop | None = None
        self._owned_feed = False
        self._closed = False

        self._filter = GeoSampleFilter(config)
        self._heading = HeadingFusion(config)
        self._controller = ViewportController(viewport, config)
        self._local: PositionAnimator | None = None
        self._remote: PositionAnimator | None = None
        self._throttle: RouteThrottle | None = None
        self._guidance: GuidanceAnnouncer | None = None
        self._guided_result: RouteResult | None = None

        self._sensor_status = SensorStatus.IDLE
        self._sensor_error: SensorErrorCode | None = None
        self._remote_location: RemoteLocation | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TrackingSession:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def start(self) -> None:
        """Build the pipeline, seed the remote position and subscribe to both sources."""
        loop = asyncio.get_running_loop()
        self._loop = loop
        scheduler = self._scheduler or LoopScheduler(loop)
        self._scheduler = scheduler
        cfg = self._config

        if self._transport is None and (self._router is None or cfg.locations_rest_url):
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = JsonTransport(self._http_session, timeout=cfg.request_timeout)
        if self._router is None:
            if self._transport is None:
                raise LiveTrackError("No transport available for the default router")
            self._router = DirectionsRouter(cfg, self._transport)

        self._local = PositionAnimator(
            scheduler,
            duration=cfg.animation_duration,
            frame_interval=cfg.frame_interval,
            on_frame=self._on_local_frame,
            name="local",
        )
        remote = PositionAnimator(
            scheduler,
            duration=cfg.animation_duration,
            frame_interval=cfg.frame_interval,
            on_frame=self._on_remote_frame,
            name="remote",
        )
        throttle = RouteThrottle(self._router, scheduler, config=cfg, on_update=self._on_route)
        self._remote = remote
        self._throttle = throttle
        if self._speak is not None:
            self._guidance = GuidanceAnnouncer(self._speak, scheduler, config=cfg)

        if cfg.locations_rest_url and self._transport is not None:
            await self._seed_remote(self._transport, remote, throttle)

        if self._remote_feed is None and cfg.mqtt_enabled:
            self._remote_feed = MqttLocationFeed(cfg.mqtt, loop=loop)
            self._owned_feed = True
        if self._remote_feed is not None:
            try:
                # paho's connect() blocks on the network
                await loop.run_in_executor(None, self._remote_feed.start, self.handle_remote_insert)
            except OSError:
                _logger.warning("Remote feed start failed; showing last known position only", exc_info=True)

        if self._sensor is not None:
            self._sensor_status = SensorStatus.LOCATING
            self._sensor.start(self.handle_fix, self.handle_sensor_error)

    async def _seed_remote(self, transport: Transport, remote: PositionAnimator, throttle: RouteThrottle) -> None:
        try:
            row = await fetch_latest_location(self._config, transport)
        except LiveTrackError:
            _logger.warning("Seed fetch of the remote position failed", exc_info=True)
            return
        if row is None:
            return
        self._remote_location = row
        remote.set_target(row.position)
        throttle.seed_destination(row.position)

    async def close(self) -> None:
        """Unsubscribe both sources and cancel every timer and frame."""
        if self._closed:
            return
        self._closed = True
        if self._sensor is not None:
            self._sensor.stop()
        feed = self._remote_feed
        if feed is not None:
            try:
                if self._loop is not None:
                    await self._loop.run_in_executor(None, feed.stop)
                else:
                    feed.stop()
            except OSError:
                _logger.debug("Remote feed stop failed", exc_info=True)
        if self._throttle is not None:
            self._throttle.close()
        for animator in (self._local, self._remote):
            if animator is not None:
                animator.cancel()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._loop = None

    # ------------------------------------------------------------------
    # Observed state
    # ------------------------------------------------------------------

    @property
    def sensor_status(self) -> SensorStatus:
        return self._sensor_status

    @property
    def sensor_error(self) -> SensorErrorCode | None:
        return self._sensor_error

    @property
    def filtered_position(self) -> FilteredPosition | None:
        return self._filter.current

    @property
    def heading(self) -> float | None:
        return self._heading.heading

    @property
    def local_visual(self) -> VisualState | None:
        return self._local.visual if self._local is not None else None

    @property
    def remote_visual(self) -> VisualState | None:
        return self._remote.visual if self._remote is not None else None

    @property
    def remote_location(self) -> RemoteLocation | None:
        return self._remote_location

    @property
    def route(self) -> RouteSnapshot | None:
        return self._throttle.snapshot() if self._throttle is not None else None

    @property
    def throttle(self) -> RouteThrottle:
        if self._throttle is None:
            raise LiveTrackError("Session not started. Use 'async with TrackingSession(...) as session:'")
        return self._throttle

    @property
    def guidance(self) -> GuidanceAnnouncer | None:
        return self._guidance

    def navigation_url(self) -> str | None:
        """Maps deep link to the remote entity's last known position."""
        if self._remote_location is None:
            return None
        return navigation_url(self._remote_location.position)

    # ------------------------------------------------------------------
    # Event handlers (event loop only)
    # ------------------------------------------------------------------

    def handle_fix(self, payload: Mapping[str, Any]) -> None:
        """Apply one location-sensor payload."""
        if self._closed or self._local is None:
            return
        try:
            fix = parse_fix(payload)
        except PayloadError as exc:
            _logger.warning("Dropping malformed fix: %s payload=%s", exc, redact_for_log(payload))
            return

        self._sensor_status = SensorStatus.ACTIVE
        self._sensor_error = None

        fused = self._heading.offer_course(fix.heading, fix.speed)
        filtered = self._filter.accept(fix)
        if filtered is None:
            if fused is not None:
                self._local.set_heading(fused)
            return
        self._local.set_target(filtered.position, self._heading.heading)
        self.throttle.offer_origin(filtered.position)

    def handle_compass(self, payload: Mapping[str, Any] | float) -> None:
        """Apply one device-orientation reading."""
        if self._closed or self._local is None:
            return
        try:
            reading = parse_compass(payload)
        except PayloadError as exc:
            _logger.warning("Dropping malformed compass reading: %s", exc)
            return
        fused = self._heading.offer_compass(reading)
        if fused is not None:
            self._local.set_heading(fused)

    def handle_sensor_error(self, code: SensorErrorCode) -> None:
        """Record a sensor failure; the last filtered position is kept."""
        code = SensorErrorCode(code)
        self._sensor_status = SensorStatus.ERROR
        self._sensor_error = code
        _logger.warning("Location sensor error: %s", code.message)

    def resubscribe_sensor(self) -> None:
        """Restart the location subscription after an error."""
        if self._closed or self._sensor is None:
            return
        self._sensor.stop()
        self._sensor_status = SensorStatus.LOCATING
        self._sensor_error = None
        self._sensor.start(self.handle_fix, self.handle_sensor_error)

    def handle_remote_insert(self, payload: Mapping[str, Any]) -> None:
        """Apply one remote insert event."""
        if self._closed or self._remote is None:
            return
        try:
            row = parse_remote_insert(payload)
        except PayloadError as exc:
            _logger.warning("Dropping malformed remote insert: %s payload=%s", exc, redact_for_log(payload))
            return
        self._remote_location = row
        self._remote.set_target(row.position)
        self.throttle.offer_destination(row.position)

    def recenter(self) -> bool:
        """Snap the camera to the local marker; ``False`` while there is no position yet."""
        visual = self.local_visual
        if visual is None:
            return False
        self._controller.recenter(visual, self._heading.heading)
        return True

    # ------------------------------------------------------------------
    # Pipeline callbacks
    # ------------------------------------------------------------------

    def _on_local_frame(self, visual: VisualState) -> None:
        self._controller.follow(visual, self._heading.heading)
        if self._on_local_frame_cb is not None:
            self._on_local_frame_cb(visual)

    def _on_remote_frame(self, visual: VisualState) -> None:
        if self._on_remote_frame_cb is not None:
            self._on_remote_frame_cb(visual)

    def _on_route(self, snapshot: RouteSnapshot) -> None:
        result = snapshot.result
        if self._guidance is not None and result is not None and result is not self._guided_result:
            self._guided_result = result
            self._guidance.update(result)
        if self._on_route_cb is not None:
            self._on_route_cb(snapshot)
