"""
deps.py

Purpose:
  Dependency container for the ingest sink API.

Pattern:
  - `lru_cache` keeps one `SinkState` per process so counters persist
    across requests.
  - Tests swap it via `app.dependency_overrides[get_sink_state]` or
    `get_sink_state.cache_clear()`.
"""
from __future__ import annotations

from functools import lru_cache

from loadgen.config import env_float
from loadgen.services.sink import SinkState


@lru_cache(maxsize=1)
def get_sink_state() -> SinkState:
    return SinkState(
        error_rate=env_float("SINK_ERROR_RATE", 0.0),
        delay_ms=env_float("SINK_DELAY_MS", 0.0),
    )
