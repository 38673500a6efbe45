from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict

from loadgen.models.domain import SHAPE_COUNT, Shape


@dataclass(frozen=True)
class CounterSnapshot:
    succeeded: int = 0
    failed: int = 0
    per_shape: Dict[Shape, int] = field(default_factory=dict)
    failure_reasons: Dict[str, int] = field(default_factory=dict)

    @property
    def attempted(self) -> int:
        return self.succeeded + self.failed


class OutcomeAggregator:
    """
    Run-wide outcome counters shared by every dispatch unit.

    The lock guards only the increment itself (never a network call), so
    `snapshot()` blocks writers for a handful of dict copies at most.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._succeeded = 0
        self._failed = 0
        self._per_shape = [0] * SHAPE_COUNT
        self._reasons: Counter = Counter()

    def record_success(self, shape: Shape) -> None:
        idx = int(shape)
        with self._lock:
            self._succeeded += 1
            self._per_shape[idx] += 1

    def record_failure(self, reason: str = "unknown") -> None:
        with self._lock:
            self._failed += 1
            self._reasons[reason] += 1

    def snapshot(self) -> CounterSnapshot:
        with self._lock:
            succeeded = self._succeeded
            failed = self._failed
            per_shape = list(self._per_shape)
            reasons = dict(self._reasons)
        return CounterSnapshot(
            succeeded=succeeded,
            failed=failed,
            per_shape={s: per_shape[int(s)] for s in Shape},
            failure_reasons=reasons,
        )
