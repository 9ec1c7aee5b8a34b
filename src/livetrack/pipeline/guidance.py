"""Spoken turn-by-turn and arrival announcements."""

from __future__ import annotations

import logging
from collections.abc import Callable

from livetrack._scheduling import Scheduler
from livetrack.config import TrackerConfig
from livetrack.models.route import RouteResult

_logger = logging.getLogger(__name__)

DEFAULT_STEP_TEMPLATE = "In {distance}, {instruction}"
DEFAULT_ARRIVAL_MESSAGE = "You are close to the tracked location."


class GuidanceAnnouncer:
    """Turn route results into throttled voice prompts.

    A new first-step instruction is always announced. The same instruction
    is repeated only after ``announce_interval`` seconds and only when the
    turn is urgent or being approached. The arrival prompt fires once per
    approach and re-arms after moving ``arrival_reset_distance`` away.
    """

    def __init__(
        self,
        speak: Callable[[str], None],
        scheduler: Scheduler,
        *,
        config: TrackerConfig | None = None,
        step_template: str = DEFAULT_STEP_TEMPLATE,
        arrival_message: str = DEFAULT_ARRIVAL_MESSAGE,
    ) -> None:
        self._speak = speak
        self._scheduler = scheduler
        self._config = config or TrackerConfig()
        self._step_template = step_template
        self._arrival_message = arrival_message
        self._last_instruction = ""
        self._last_spoken_at: float | None = None
        self._arrival_spoken = False
        self.muted = False

    @property
    def last_instruction(self) -> str:
        return self._last_instruction

    @property
    def arrival_spoken(self) -> bool:
        return self._arrival_spoken

    def update(self, result: RouteResult) -> list[str]:
        """Feed a fresh route result; return the messages announced."""
        spoken: list[str] = []
        if result.steps:
            message = self._step_message(result)
            if message is not None:
                spoken.append(message)

        distance = result.distance_m
        if distance is not None:
            if distance <= self._config.arrival_distance and not self._arrival_spoken:
                self._say(self._arrival_message)
                spoken.append(self._arrival_message)
                self._arrival_spoken = True
            elif distance > self._config.arrival_reset_distance:
                self._arrival_spoken = False
        return spoken

    def _step_message(self, result: RouteResult) -> str | None:
        cfg = self._config
        step = result.steps[0]
        if not step.instruction:
            return None
        now = self._scheduler.time()
        since_last = None if self._last_spoken_at is None else now - self._last_spoken_at
        step_distance = step.distance_m or 0.0
        urgent = step_distance <= cfg.urgent_distance
        approaching = cfg.approach_min_distance < step_distance <= cfg.approach_max_distance

        changed = step.instruction != self._last_instruction
        repeat_due = since_last is not None and since_last > cfg.announce_interval and (urgent or approaching)
        if not (changed or repeat_due):
            return None

        message = self._step_template.format(distance=step.distance_text, instruction=step.instruction).strip()
        self._say(message)
        self._last_instruction = step.instruction
        self._last_spoken_at = now
        return message

    def _say(self, message: str) -> None:
        if self.muted:
            _logger.debug("Muted announcement: %s", message)
            return
        self._speak(message)
