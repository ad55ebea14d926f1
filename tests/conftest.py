import pytest

import config
from helpers import UTC, FakeRealTime, at


@pytest.fixture
def tz():
    return UTC


@pytest.fixture(autouse=True)
def utc_timezone(monkeypatch):
    monkeypatch.setattr(config, 'TIMER_TIMEZONE', 'UTC')


@pytest.fixture
def real_time():
    return FakeRealTime(at(8, 0))
