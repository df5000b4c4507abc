import pytest

from tests.support import FakeClock, RecordingStorage


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def events():
    return []


@pytest.fixture
def storage(events):
    return RecordingStorage(events)
