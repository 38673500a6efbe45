"""
sink.py

Purpose:
  In-process state for the local ingest sink: counts accepted payloads per
  shape and applies the configured fault knobs.

Fault Knobs:
  - `error_rate`: probability (0..1) of answering a valid payload with 500.
  - `delay_ms`: latency added before answering.
"""
from __future__ import annotations

import random
import threading
import time
from typing import Optional

from loadgen.models.domain import SinkStats, Shape


class SinkState:
    def __init__(self, error_rate: float = 0.0, delay_ms: float = 0.0, seed: Optional[int] = None):
        self.error_rate = max(0.0, min(1.0, float(error_rate)))
        self.delay_ms = max(0.0, float(delay_ms))
        self._rng = random.Random(seed)
        self._lock = threading.Lock()
        self._accepted = [0] * len(Shape)
        self._rejected = 0
        self._forced = 0
        self.started_at = time.monotonic()

    @property
    def uptime_s(self) -> float:
        return time.monotonic() - self.started_at

    def should_fail(self) -> bool:
        if self.error_rate <= 0.0:
            return False
        with self._lock:
            fail = self._rng.random() < self.error_rate
            if fail:
                self._forced += 1
        return fail

    def accept(self, shape: Shape) -> None:
        with self._lock:
            self._accepted[int(shape)] += 1

    def reject(self) -> None:
        with self._lock:
            self._rejected += 1

    def stats(self) -> SinkStats:
        with self._lock:
            return SinkStats(
                accepted=sum(self._accepted),
                rejected=self._rejected,
                forced_errors=self._forced,
                per_shape={s.label: self._accepted[int(s)] for s in Shape},
            )
