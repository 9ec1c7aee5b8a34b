from __future__ import annotations

import pytest
from fakes import FakeRouter, FakeViewport, ManualScheduler


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def viewport() -> FakeViewport:
    return FakeViewport()


@pytest.fixture
def router(scheduler: ManualScheduler) -> FakeRouter:
    return FakeRouter(scheduler=scheduler)
