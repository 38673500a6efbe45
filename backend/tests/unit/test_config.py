import pytest
from pydantic import ValidationError

from loadgen.config import DEFAULT_ENDPOINT, RunSettings, env_flag, env_float, env_int


def test_env_helpers(monkeypatch):
    monkeypatch.setenv("X_FLAG", " Yes ")
    monkeypatch.setenv("X_INT", "42")
    monkeypatch.setenv("X_BAD_INT", "forty")
    monkeypatch.setenv("X_FLOAT", "2.5")

    assert env_flag("X_FLAG") is True
    assert env_flag("X_MISSING", True) is True
    assert env_int("X_INT", 1) == 42
    assert env_int("X_BAD_INT", 7) == 7
    assert env_float("X_FLOAT", 0.0) == 2.5


def test_defaults(monkeypatch):
    for name in ("LOADGEN_ENDPOINT", "LOADGEN_RATE", "LOADGEN_DURATION_S", "LOADGEN_SEED", "LOG_DIR"):
        monkeypatch.delenv(name, raising=False)

    s = RunSettings.from_env()
    assert s.endpoint == DEFAULT_ENDPOINT
    assert s.rate == 600
    assert s.duration_s == 900.0
    assert s.seed is None
    assert s.timeout_s == 3.0
    assert s.max_idle_connections == 2000
    assert s.target_total == 540_000


def test_env_then_overrides(monkeypatch):
    monkeypatch.setenv("LOADGEN_RATE", "50")
    monkeypatch.setenv("LOADGEN_SEED", "11")
    monkeypatch.setenv("LOADGEN_ENDPOINT", "http://ingest:9000/api/data")

    s = RunSettings.from_env(rate=5, duration_s=None)
    assert s.rate == 5
    assert s.seed == 11
    assert s.endpoint == "http://ingest:9000/api/data"


@pytest.mark.parametrize("field, value", [("rate", 0), ("duration_s", 0), ("timeout_s", -1)])
def test_rejects_invalid(field, value):
    with pytest.raises(ValidationError):
        RunSettings(**{field: value})
