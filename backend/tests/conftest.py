import threading

import pytest
from fastapi.testclient import TestClient

from loadgen.deps import get_sink_state
from loadgen.main import app
from loadgen.services.sink import SinkState


class FakeClock:
    """Manual monotonic clock; `sleep` advances it instead of blocking."""

    def __init__(self, start: float = 0.0):
        self.t = start
        self.sleeps = []
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            return self.t

    def advance(self, dt: float) -> None:
        with self._lock:
            self.t += dt

    def sleep(self, dt: float) -> None:
        self.sleeps.append(dt)
        self.advance(dt)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sink_state() -> SinkState:
    return SinkState(seed=0)


@pytest.fixture
def client(sink_state: SinkState):
    app.dependency_overrides[get_sink_state] = lambda: sink_state
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
