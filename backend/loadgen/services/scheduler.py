"""
scheduler.py

Purpose:
  Fires exactly `rate` dispatches per wall-clock second until the run
  window closes.

Tick Loop:
  1. Record tick start.
  2. Launch `rate` tickets; ticket `i` of second `s` has global index
     `s * rate + i` and shape `index % SHAPE_COUNT` (round-robin continues
     across second boundaries).
  3. Advance the second index.
  4. Sleep whatever is left of the second. An overrun tick proceeds at once:
     no negative sleep and no catch-up burst, so an overloaded run simply
     emits fewer than `rate * duration` requests.

The scheduler never waits on the dispatches it launched; draining them is the
driver's job.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from loadgen.models.domain import SHAPE_COUNT, Shape

logger = logging.getLogger(__name__)

TICK_S = 1.0


@dataclass(frozen=True)
class DispatchTicket:
    index: int
    shape: Shape


def shape_for(index: int) -> Shape:
    return Shape(index % SHAPE_COUNT)


@dataclass
class RunWindow:
    start: float
    duration_s: float
    second: int = 0

    @property
    def end(self) -> float:
        return self.start + self.duration_s

    def is_open(self, now: float) -> bool:
        return now < self.end


@dataclass
class SchedulerStats:
    ticks: int = 0
    launched: int = 0
    overruns: int = 0


class PacingScheduler:
    def __init__(
        self,
        rate: int,
        duration_s: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if rate < 1:
            raise ValueError(f"rate must be >= 1, got {rate}")
        if duration_s <= 0:
            raise ValueError(f"duration_s must be > 0, got {duration_s}")
        self.rate = int(rate)
        self.duration_s = float(duration_s)
        self.clock = clock
        self.sleep = sleep

    def run(self, launch: Callable[[DispatchTicket], None]) -> SchedulerStats:
        stats = SchedulerStats()
        window = RunWindow(start=self.clock(), duration_s=self.duration_s)

        while window.is_open(self.clock()):
            tick_start = self.clock()

            base = window.second * self.rate
            for i in range(self.rate):
                index = base + i
                launch(DispatchTicket(index=index, shape=shape_for(index)))
            stats.launched += self.rate

            window.second += 1
            stats.ticks += 1

            elapsed = self.clock() - tick_start
            if elapsed < TICK_S:
                self.sleep(TICK_S - elapsed)
            else:
                stats.overruns += 1
                logger.debug("tick %d overran by %.3fs", window.second, elapsed - TICK_S)

        return stats
