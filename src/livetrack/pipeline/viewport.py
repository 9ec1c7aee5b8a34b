"""Deadzone camera control for the map surface."""

from __future__ import annotations

import logging
from typing import Protocol

from livetrack.config import TrackerConfig
from livetrack.geo import angle_delta, haversine_m
from livetrack.models.geo import LatLng
from livetrack.models.visual import VisualState

_logger = logging.getLogger(__name__)


class Viewport(Protocol):
    """Imperative camera interface of the map renderer."""

    def pan_to(self, point: LatLng) -> None:
        ...

    def set_heading(self, degrees: float) -> None:
        ...

    def set_zoom(self, level: int) -> None:
        ...

    def get_center(self) -> LatLng | None:
        ...

    def get_heading(self) -> float | None:
        ...


class ViewportController:
    """Keep the camera on the animated marker without micro-corrections.

    The camera only pans once the marker leaves a ``pan_threshold`` radius
    around the current center, and only rotates once the bearing differs by
    more than ``rotation_epsilon``. :meth:`recenter` ignores both.
    """

    def __init__(self, viewport: Viewport, config: TrackerConfig | None = None) -> None:
        self._viewport = viewport
        self._config = config or TrackerConfig()

    def follow(self, visual: VisualState, heading: float | None = None) -> tuple[bool, bool]:
        """Apply deadzone pan/rotate for one animated frame.

        *heading* defaults to the visual heading. Returns ``(panned, rotated)``.
        """
        target = visual.position
        center = self._viewport.get_center()
        panned = False
        if center is None or haversine_m(center, target) > self._config.pan_threshold:
            self._viewport.pan_to(target)
            panned = True

        bearing = visual.heading if heading is None else heading
        current = self._viewport.get_heading() or 0.0
        rotated = False
        if abs(angle_delta(current, bearing)) > self._config.rotation_epsilon:
            self._viewport.set_heading(bearing)
            rotated = True
        return panned, rotated

    def recenter(self, visual: VisualState, heading: float | None = None) -> None:
        """Snap the camera to the marker at close zoom, facing the heading."""
        bearing = visual.heading if heading is None else heading
        _logger.debug("Recenter to %s heading=%.1f", visual.position.as_query(), bearing)
        self._viewport.pan_to(visual.position)
        self._viewport.set_zoom(self._config.recenter_zoom)
        self._viewport.set_heading(bearing)
