"""Continuous marker interpolation between sparse targets."""

from __future__ import annotations

import logging
from collections.abc import Callable

from livetrack._scheduling import Cancellable, Scheduler
from livetrack.geo import lerp, lerp_heading, normalize_heading
from livetrack.models.geo import LatLng
from livetrack.models.visual import AnimationState, AnimatorPhase, VisualState

_logger = logging.getLogger(__name__)


def ease_out_quad(progress: float) -> float:
    return 1 - (1 - progress) * (1 - progress)


class PositionAnimator:
    """Glide a marker towards each new target instead of snapping.

    Usage::

        animator = PositionAnimator(scheduler, on_frame=marker.update)
        animator.set_target(position, heading)
        ...
        animator.cancel()

    Frames are requested one at a time through the scheduler; a superseding
    target or :meth:`cancel` drops the pending frame before anything else
    happens, so at most one frame is ever scheduled.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        duration: float = 0.8,
        frame_interval: float = 1 / 60,
        on_frame: Callable[[VisualState], None] | None = None,
        name: str = "marker",
    ) -> None:
        if duration <= 0:
            raise ValueError("duration must be positive")
        self._scheduler = scheduler
        self._duration = duration
        self._frame_interval = frame_interval
        self._on_frame = on_frame
        self._name = name
        self._phase = AnimatorPhase.IDLE
        self._visual: VisualState | None = None
        self._animation: AnimationState | None = None
        self._progress = 0.0
        self._frame: Cancellable | None = None

    @property
    def phase(self) -> AnimatorPhase:
        return self._phase

    @property
    def visual(self) -> VisualState | None:
        return self._visual

    @property
    def animation(self) -> AnimationState | None:
        return self._animation

    @property
    def progress(self) -> float:
        return self._progress

    @property
    def frame_pending(self) -> bool:
        return self._frame is not None

    def set_target(self, position: LatLng, heading: float | None = None) -> None:
        """Start gliding towards *position*; ``heading=None`` keeps the current heading."""
        current = self._visual
        if current is None:
            target = VisualState(
                latitude=position.latitude,
                longitude=position.longitude,
                heading=normalize_heading(heading) if heading is not None else 0.0,
            )
            self._visual = target
            self._progress = 1.0
            self._phase = AnimatorPhase.SETTLED
            _logger.debug("%s snapped to first target", self._name)
            self._publish(target)
            return

        target = VisualState(
            latitude=position.latitude,
            longitude=position.longitude,
            heading=normalize_heading(heading) if heading is not None else current.heading,
        )
        self._cancel_frame()
        # current is an immutable snapshot; later frames never touch it
        self._animation = AnimationState(
            from_state=current,
            to_state=target,
            start_time=self._scheduler.time(),
            duration=self._duration,
        )
        self._progress = 0.0
        self._phase = AnimatorPhase.ANIMATING
        self._request_frame()

    def set_heading(self, heading: float) -> None:
        """Retarget only the heading, keeping the position target."""
        if self._visual is None:
            return
        base = self._animation.to_state if self._phase == AnimatorPhase.ANIMATING and self._animation else self._visual
        self.set_target(base.position, heading)

    def cancel(self) -> None:
        """Stop animating; the visual value stays where it is."""
        self._cancel_frame()
        if self._phase == AnimatorPhase.ANIMATING:
            self._phase = AnimatorPhase.SETTLED
            self._animation = None

    def _request_frame(self) -> None:
        if self._frame is not None:
            return
        self._frame = self._scheduler.call_later(self._frame_interval, self._tick)

    def _cancel_frame(self) -> None:
        frame = self._frame
        self._frame = None
        if frame is not None:
            frame.cancel()

    def _tick(self) -> None:
        self._frame = None
        animation = self._animation
        if self._phase != AnimatorPhase.ANIMATING or animation is None:
            return

        elapsed = self._scheduler.time() - animation.start_time
        progress = min(max(elapsed / animation.duration, 0.0), 1.0)
        self._progress = max(self._progress, progress)

        if self._progress >= 1.0:
            self._visual = animation.to_state
            self._phase = AnimatorPhase.SETTLED
            self._animation = None
            self._publish(animation.to_state)
            return

        eased = ease_out_quad(self._progress)
        start = animation.from_state
        end = animation.to_state
        state = VisualState(
            latitude=lerp(start.latitude, end.latitude, eased),
            longitude=lerp(start.longitude, end.longitude, eased),
            heading=lerp_heading(start.heading, end.heading, eased),
        )
        self._visual = state
        self._publish(state)
        self._request_frame()

    def _publish(self, state: VisualState) -> None:
        if self._on_frame is not None:
            self._on_frame(state)
