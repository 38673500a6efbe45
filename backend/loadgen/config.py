from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, Field

_TRUE = {"1", "true", "yes", "on"}

DEFAULT_ENDPOINT = "http://localhost:8080/api/data"


def env_flag(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in _TRUE


def env_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None:
        return default
    try:
        return int(val.strip())
    except Exception:
        return default


def env_float(name: str, default: float) -> float:
    val = os.getenv(name)
    if val is None:
        return default
    try:
        return float(val.strip())
    except Exception:
        return default


def env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return val.strip()


class RunSettings(BaseModel):
    """
    Run parameters for one load generation run.

    Defaults mirror the reference deployment: 600 req/s for 15 minutes,
    3s per-request timeout, 2000 pooled connections.
    """
    endpoint: str = DEFAULT_ENDPOINT
    rate: int = Field(600, ge=1, description="Requests per wall-clock second")
    duration_s: float = Field(900.0, gt=0, description="Total run time (seconds)")
    seed: Optional[int] = Field(None, description="Deterministic RNG seed")

    timeout_s: float = Field(3.0, gt=0)
    max_idle_connections: int = Field(2000, ge=1)
    max_workers: int = Field(2000, ge=1)

    # 0 disables the periodic progress line
    progress_interval_s: float = Field(10.0, ge=0)
    log_dir: Optional[str] = None

    @property
    def target_total(self) -> int:
        return int(self.rate * self.duration_s)

    @classmethod
    def from_env(cls, **overrides) -> "RunSettings":
        seed_raw = env_str("LOADGEN_SEED")
        values = {
            "endpoint": env_str("LOADGEN_ENDPOINT", DEFAULT_ENDPOINT),
            "rate": env_int("LOADGEN_RATE", 600),
            "duration_s": env_float("LOADGEN_DURATION_S", 900.0),
            "seed": int(seed_raw) if seed_raw and seed_raw.lstrip("-").isdigit() else None,
            "timeout_s": env_float("LOADGEN_TIMEOUT_S", 3.0),
            "max_idle_connections": env_int("LOADGEN_MAX_IDLE_CONNECTIONS", 2000),
            "max_workers": env_int("LOADGEN_MAX_WORKERS", 2000),
            "progress_interval_s": env_float("LOADGEN_PROGRESS_INTERVAL_S", 10.0),
            "log_dir": env_str("LOG_DIR"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
