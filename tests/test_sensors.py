from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import pytest

from livetrack.config import TrackerConfig
from livetrack.exceptions import SensorError
from livetrack.models.sensor import SensorErrorCode
from livetrack.sensors import StreamLocationSensor, classify_sensor_error


@pytest.mark.parametrize(
    ("exc", "code"),
    [
        (SensorError("denied", code=SensorErrorCode.PERMISSION_DENIED), SensorErrorCode.PERMISSION_DENIED),
        (TimeoutError(), SensorErrorCode.TIMEOUT),
        (PermissionError(), SensorErrorCode.PERMISSION_DENIED),
        (ConnectionResetError(), SensorErrorCode.POSITION_UNAVAILABLE),
        (OSError("no fix"), SensorErrorCode.POSITION_UNAVAILABLE),
        (ValueError("boom"), SensorErrorCode.UNKNOWN),
    ],
)
def test_classify_sensor_error(exc: BaseException, code: SensorErrorCode) -> None:
    assert classify_sensor_error(exc) == code


async def _fixes(*payloads: dict[str, Any], then: BaseException | None = None) -> AsyncIterator[dict[str, Any]]:
    for payload in payloads:
        yield payload
    if then is not None:
        raise then


@pytest.mark.asyncio
async def test_stream_delivers_fixes_in_order() -> None:
    fixes: list[dict[str, Any]] = []
    errors: list[SensorErrorCode] = []
    sensor = StreamLocationSensor(lambda: _fixes({"n": 1}, {"n": 2}))

    sensor.start(fixes.append, errors.append)
    await asyncio.sleep(0.01)

    assert fixes == [{"n": 1}, {"n": 2}]
    assert errors == []
    assert not sensor.is_running


@pytest.mark.asyncio
async def test_stream_error_is_classified() -> None:
    errors: list[SensorErrorCode] = []
    sensor = StreamLocationSensor(lambda: _fixes({"n": 1}, then=PermissionError("denied")))

    sensor.start(lambda _payload: None, errors.append)
    await asyncio.sleep(0.01)

    assert errors == [SensorErrorCode.PERMISSION_DENIED]


@pytest.mark.asyncio
async def test_silent_stream_times_out() -> None:
    async def silent() -> AsyncIterator[dict[str, Any]]:
        await asyncio.sleep(10)
        yield {}

    errors: list[SensorErrorCode] = []
    sensor = StreamLocationSensor(silent, timeout=0.01)
    sensor.start(lambda _payload: None, errors.append)
    await asyncio.sleep(0.1)

    assert errors == [SensorErrorCode.TIMEOUT]


@pytest.mark.asyncio
async def test_stop_cancels_subscription() -> None:
    stream_started = asyncio.Event()

    async def endless() -> AsyncIterator[dict[str, Any]]:
        stream_started.set()
        while True:
            await asyncio.sleep(10)
            yield {}

    errors: list[SensorErrorCode] = []
    sensor = StreamLocationSensor(endless, timeout=None)
    sensor.start(lambda _payload: None, errors.append)
    await stream_started.wait()
    assert sensor.is_running

    sensor.stop()
    await asyncio.sleep(0)

    assert not sensor.is_running
    assert errors == []


@pytest.mark.asyncio
async def test_restart_uses_fresh_stream() -> None:
    calls = 0

    def factory() -> AsyncIterator[dict[str, Any]]:
        nonlocal calls
        calls += 1
        return _fixes({"n": calls})

    fixes: list[dict[str, Any]] = []
    sensor = StreamLocationSensor(factory)
    sensor.start(fixes.append, lambda _code: None)
    await asyncio.sleep(0.01)
    sensor.start(fixes.append, lambda _code: None)
    await asyncio.sleep(0.01)

    assert fixes == [{"n": 1}, {"n": 2}]


def test_timeout_comes_from_config() -> None:
    sensor = StreamLocationSensor.from_config(lambda: _fixes(), TrackerConfig(fix_timeout=2.5))
    assert sensor.timeout == 2.5


@pytest.mark.asyncio
async def test_config_timeout_applies_to_silent_stream() -> None:
    async def silent() -> AsyncIterator[dict[str, Any]]:
        await asyncio.sleep(10)
        yield {}

    errors: list[SensorErrorCode] = []
    sensor = StreamLocationSensor.from_config(silent, TrackerConfig(fix_timeout=0.01))
    sensor.start(lambda _payload: None, errors.append)
    await asyncio.sleep(0.1)

    assert errors == [SensorErrorCode.TIMEOUT]
