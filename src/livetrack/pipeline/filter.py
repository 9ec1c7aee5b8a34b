"""Jitter rejection and speed-adaptive smoothing of raw fixes."""

from __future__ import annotations

import logging

from livetrack.config import TrackerConfig
from livetrack.geo import haversine_m, lerp
from livetrack.models.fix import FilteredPosition, RawFix

_logger = logging.getLogger(__name__)


class GeoSampleFilter:
    """Low-pass filter over positional fixes.

    The first fix is taken as-is. Every later fix is either discarded as
    jitter (closer than ``jitter_threshold`` to the current estimate) or
    blended into the estimate with a weight that grows with speed: at
    walking pace the history dominates, at driving speed the new fix does.
    """

    def __init__(self, config: TrackerConfig | None = None) -> None:
        self._config = config or TrackerConfig()
        self._current: FilteredPosition | None = None

    @property
    def current(self) -> FilteredPosition | None:
        return self._current

    def blend_factor(self, speed: float | None) -> float:
        """Weight of a new fix given its reported speed (unknown speed is mid-band)."""
        cfg = self._config
        if speed is None:
            return cfg.default_alpha
        if speed > cfg.fast_speed:
            return cfg.fast_alpha
        if speed < cfg.slow_speed:
            return cfg.slow_alpha
        return cfg.default_alpha

    def accept(self, fix: RawFix) -> FilteredPosition | None:
        """Feed one fix; return the new filtered position or ``None`` if discarded."""
        prior = self._current
        if prior is None:
            self._current = FilteredPosition(latitude=fix.latitude, longitude=fix.longitude, timestamp=fix.timestamp)
            return self._current

        if fix.timestamp < prior.timestamp:
            _logger.debug("Stale fix ignored ts=%s current_ts=%s", fix.timestamp, prior.timestamp)
            return None

        distance = haversine_m(prior.position, fix.position)
        if distance < self._config.jitter_threshold:
            return None

        alpha = self.blend_factor(fix.speed)
        self._current = FilteredPosition(
            latitude=lerp(prior.latitude, fix.latitude, alpha),
            longitude=lerp(prior.longitude, fix.longitude, alpha),
            timestamp=fix.timestamp,
        )
        _logger.debug("Fix accepted moved=%.2fm alpha=%.2f", distance, alpha)
        return self._current

    def reset(self) -> None:
        self._current = None
