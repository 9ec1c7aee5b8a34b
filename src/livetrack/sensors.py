"""Location sensor subscriptions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Mapping
from typing import Any, Protocol

from livetrack.config import TrackerConfig
from livetrack.exceptions import SensorError
from livetrack.models.sensor import SensorErrorCode

_logger = logging.getLogger(__name__)

FixCallback = Callable[[Mapping[str, Any]], None]
ErrorCallback = Callable[[SensorErrorCode], None]


class LocationSensor(Protocol):
    """Continuous location subscription.

    ``on_fix`` receives raw payload mappings; ``on_error`` receives a
    classified code. Both are invoked on the event loop thread.
    """

    def start(self, on_fix: FixCallback, on_error: ErrorCallback) -> None:
        ...

    def stop(self) -> None:
        ...


def classify_sensor_error(exc: BaseException) -> SensorErrorCode:
    """Map an exception raised by a fix source onto a sensor error code."""
    if isinstance(exc, SensorError):
        return exc.code
    if isinstance(exc, TimeoutError):
        return SensorErrorCode.TIMEOUT
    if isinstance(exc, PermissionError):
        return SensorErrorCode.PERMISSION_DENIED
    if isinstance(exc, (ConnectionError, OSError)):
        return SensorErrorCode.POSITION_UNAVAILABLE
    return SensorErrorCode.UNKNOWN


class StreamLocationSensor:
    """Adapt an async iterator of fix payloads into a :class:`LocationSensor`.

    *factory* is called on every :meth:`start`, so a session can resubscribe
    after an error with a fresh stream. A fix source that stays silent for
    longer than *timeout* seconds ends the subscription with ``TIMEOUT``.
    """

    def __init__(
        self,
        factory: Callable[[], AsyncIterator[Mapping[str, Any]]],
        *,
        timeout: float | None = 5.0,
    ) -> None:
        self._factory = factory
        self._timeout = timeout
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def from_config(
        cls,
        factory: Callable[[], AsyncIterator[Mapping[str, Any]]],
        config: TrackerConfig,
    ) -> StreamLocationSensor:
        """Build a sensor whose silence timeout is ``config.fix_timeout``."""
        return cls(factory, timeout=config.fix_timeout)

    @property
    def timeout(self) -> float | None:
        return self._timeout

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, on_fix: FixCallback, on_error: ErrorCallback) -> None:
        self.stop()
        self._task = asyncio.get_running_loop().create_task(self._run(on_fix, on_error))

    def stop(self) -> None:
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()

    async def _run(self, on_fix: FixCallback, on_error: ErrorCallback) -> None:
        stream = self._factory()
        try:
            while True:
                try:
                    payload = await asyncio.wait_for(anext(stream), self._timeout)
                except StopAsyncIteration:
                    _logger.debug("Fix stream ended")
                    return
                on_fix(payload)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            code = classify_sensor_error(exc)
            _logger.warning("Location sensor failed: %s (%s)", code.name, exc)
            on_error(code)
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                try:
                    await aclose()
                except Exception:
                    _logger.debug("Fix stream close failed", exc_info=True)
