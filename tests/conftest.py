from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from telemhub.core.channel_manager import ChannelManager
from telemhub.core.schemas import Reading
from telemhub.main import create_app

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def ts(seconds: float) -> datetime:
    return T0 + timedelta(seconds=seconds)


def reading(seconds: float, **values) -> Reading:
    return Reading(timestamp=ts(seconds), values=values or {'value': float(seconds)})


@pytest.fixture
def manager():
    m = ChannelManager(tz=timezone.utc)
    m.add_channel('barometer', capacity=3)
    m.add_channel('color')
    return m


@pytest.fixture
def client(manager):
    with TestClient(create_app(manager=manager)) as c:
        yield c
