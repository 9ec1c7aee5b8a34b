"""Compass/course heading fusion."""

from __future__ import annotations

import math
from collections import deque

from livetrack.config import TrackerConfig
from livetrack.geo import circular_mean


class HeadingFusion:
    """Blend headings from two sources into one stable bearing.

    While moving at or above ``course_min_speed`` the sensor's course over
    ground is trusted and compass readings are ignored; below it the compass
    is used and course values are ignored. The source switches as soon as
    the speed crosses the boundary, but the buffer is kept, so the output
    turns over the next few samples instead of jumping.
    """

    def __init__(self, config: TrackerConfig | None = None) -> None:
        self._config = config or TrackerConfig()
        self._buffer: deque[float] = deque(maxlen=self._config.heading_buffer_size)
        self._speed = 0.0
        self._heading: float | None = None

    @property
    def heading(self) -> float | None:
        """Smoothed heading, or ``None`` before the first accepted sample."""
        return self._heading

    @property
    def buffer(self) -> tuple[float, ...]:
        return tuple(self._buffer)

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def course_preferred(self) -> bool:
        return self._speed >= self._config.course_min_speed

    def update_speed(self, speed: float | None) -> None:
        # Unknown speed counts as stationary.
        self._speed = speed if speed is not None and math.isfinite(speed) and speed > 0 else 0.0

    def offer_course(self, heading: float | None, speed: float | None) -> float | None:
        """Offer a course heading reported with a fix.

        Returns the new smoothed heading, or ``None`` if the value was not used.
        """
        self.update_speed(speed)
        if heading is None or not math.isfinite(heading) or not self.course_preferred:
            return None
        return self._push(heading)

    def offer_compass(self, heading: float | None) -> float | None:
        """Offer a compass reading; only used while (nearly) stationary."""
        if heading is None or not math.isfinite(heading) or self.course_preferred:
            return None
        return self._push(heading)

    def _push(self, heading: float) -> float | None:
        self._buffer.append(heading % 360.0)
        mean = circular_mean(tuple(self._buffer))
        if mean is not None:
            self._heading = mean
        return self._heading

    def reset(self) -> None:
        self._buffer.clear()
        self._speed = 0.0
        self._heading = None
