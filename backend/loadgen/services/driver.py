"""
driver.py

Purpose:
  Owns one load generation run: builds the transport, drives the pacing
  scheduler, fans every ticket out to a dispatch thread, drains in-flight
  requests after the deadline and produces the final `RunReport`.

Dispatch Unit (one per request, on the worker pool):
  synthesize -> send -> record outcome -> WaitGroup.done()

Lifecycle:
  1. `build_client()`: the only fatal failure point (`TransportInitError`).
  2. `PacingScheduler.run()`: submits tickets, never waits on them.
  3. `WaitGroup.wait()`: full drain; requests started in the last tick may
     still be in flight when the scheduler returns.
  4. Report from the aggregator, read only after drain.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

import httpx

from loadgen.config import RunSettings
from loadgen.errors import TransportInitError
from loadgen.models.domain import RunReport, Shape
from loadgen.services.aggregator import CounterSnapshot, OutcomeAggregator
from loadgen.services.scheduler import DispatchTicket, PacingScheduler, SchedulerStats
from loadgen.services.sender import RequestSender
from loadgen.services.synthesizer import rng_for, synthesize

logger = logging.getLogger(__name__)

INTERNAL_FAILURE = "internal"


class WaitGroup:
    """Counting barrier: `add` per launched unit, `done` when it ends, `wait` for zero."""

    def __init__(self):
        self._cond = threading.Condition()
        self._count = 0

    def add(self, n: int = 1) -> None:
        with self._cond:
            self._count += n

    def done(self) -> None:
        with self._cond:
            self._count -= 1
            if self._count < 0:
                raise RuntimeError("WaitGroup counter went negative")
            if self._count == 0:
                self._cond.notify_all()

    @property
    def pending(self) -> int:
        with self._cond:
            return self._count

    def wait(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._count == 0, timeout=timeout)


class ProgressReporter(threading.Thread):
    """Logs a read-only counter snapshot every `interval_s` until stopped."""

    def __init__(
        self,
        aggregator: OutcomeAggregator,
        interval_s: float,
        started_at: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(name="progress", daemon=True)
        self.aggregator = aggregator
        self.interval_s = interval_s
        self.started_at = started_at
        self.clock = clock
        self._stop_evt = threading.Event()

    def run(self) -> None:
        while not self._stop_evt.wait(self.interval_s):
            snap = self.aggregator.snapshot()
            elapsed = max(self.clock() - self.started_at, 1e-9)
            logger.info(
                "Sent=%d | Failed=%d | Rate=%.2f/s",
                snap.succeeded, snap.failed, snap.succeeded / elapsed,
            )

    def stop(self) -> None:
        self._stop_evt.set()


def build_client(settings: RunSettings, transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    try:
        url = httpx.URL(settings.endpoint)
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"endpoint must be an absolute http(s) URL, got {settings.endpoint!r}")
        limits = httpx.Limits(
            max_keepalive_connections=settings.max_idle_connections,
            max_connections=max(settings.max_workers, settings.max_idle_connections),
            keepalive_expiry=90.0,
        )
        return httpx.Client(timeout=settings.timeout_s, limits=limits, transport=transport)
    except Exception as e:
        raise TransportInitError(f"Failed to initialize HTTP transport: {e}") from e


def build_report(
    settings: RunSettings,
    snap: CounterSnapshot,
    sched: SchedulerStats,
    elapsed_s: float,
) -> RunReport:
    return RunReport(
        endpoint=settings.endpoint,
        rate=settings.rate,
        duration_s=settings.duration_s,
        sent=snap.succeeded,
        failed=snap.failed,
        attempted=snap.attempted,
        elapsed_s=round(elapsed_s, 3),
        achieved_rate=round(snap.succeeded / elapsed_s, 2) if elapsed_s > 0 else 0.0,
        ticks=sched.ticks,
        launched=sched.launched,
        overruns=sched.overruns,
        per_shape={s.label: snap.per_shape.get(s, 0) for s in Shape},
        failure_reasons=dict(snap.failure_reasons),
    )


class RunDriver:
    def __init__(
        self,
        settings: RunSettings,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        aggregator: Optional[OutcomeAggregator] = None,
    ):
        self.settings = settings
        self.transport = transport
        self.clock = clock
        self.sleep = sleep
        self.aggregator = aggregator or OutcomeAggregator()
        self.inflight = WaitGroup()
        self.sender: Optional[RequestSender] = None

    def _dispatch(self, ticket: DispatchTicket) -> None:
        try:
            payload = synthesize(ticket.shape, rng_for(self.settings.seed, ticket.index))
            outcome = self.sender.send(payload)
            if outcome.ok:
                self.aggregator.record_success(ticket.shape)
            else:
                self.aggregator.record_failure(outcome.reason or "unknown")
        except Exception:
            logger.exception("dispatch %d crashed", ticket.index)
            self.aggregator.record_failure(INTERNAL_FAILURE)
        finally:
            self.inflight.done()

    def run(self) -> RunReport:
        s = self.settings
        client = build_client(s, self.transport)
        self.sender = RequestSender(client, s.endpoint)

        logger.info(
            "Starting multi-format inverter simulator: %d records/sec across %d formats -> %s",
            s.rate, len(Shape), s.endpoint,
        )
        logger.info("Target: %d total records in %.0fs", s.target_total, s.duration_s)

        scheduler = PacingScheduler(s.rate, s.duration_s, clock=self.clock, sleep=self.sleep)
        started_at = self.clock()

        progress = None
        if s.progress_interval_s > 0:
            progress = ProgressReporter(self.aggregator, s.progress_interval_s, started_at, self.clock)
            progress.start()

        try:
            with client, ThreadPoolExecutor(max_workers=s.max_workers, thread_name_prefix="dispatch") as pool:

                def launch(ticket: DispatchTicket) -> None:
                    self.inflight.add()
                    try:
                        pool.submit(self._dispatch, ticket)
                    except Exception:
                        self.inflight.done()
                        raise

                sched_stats = scheduler.run(launch)
                logger.info("Scheduling finished after %d ticks, draining %d in-flight", sched_stats.ticks, self.inflight.pending)
                self.inflight.wait()
        finally:
            if progress is not None:
                progress.stop()
                progress.join()

        elapsed = self.clock() - started_at
        report = build_report(s, self.aggregator.snapshot(), sched_stats, elapsed)
        logger.info("Finished after %.3fs: sent=%d failed=%d", report.elapsed_s, report.sent, report.failed)
        return report


def run(endpoint: str, rate: int, duration_s: float, **overrides) -> RunReport:
    settings = RunSettings.from_env(endpoint=endpoint, rate=rate, duration_s=duration_s, **overrides)
    return RunDriver(settings).run()
