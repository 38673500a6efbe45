from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from loadgen.config import RunSettings, env_flag, env_int, env_str
from loadgen.errors import TransportInitError
from loadgen.logs import configure_logging
from loadgen.models.domain import RunReport
from loadgen.services.driver import RunDriver

logger = logging.getLogger(__name__)


def format_report(report: RunReport) -> str:
    lines = [
        "",
        f"Finished after {report.elapsed_s:.3f}s",
        f"   Total Sent: {report.sent} | Failed: {report.failed}",
        f"   Actual rate: {report.achieved_rate:.2f}/sec",
    ]
    for label, count in report.per_shape.items():
        lines.append(f"   {label}: {count}")
    if report.failure_reasons:
        reasons = ", ".join(f"{k}={v}" for k, v in sorted(report.failure_reasons.items()))
        lines.append(f"   Failure reasons: {reasons}")
    if report.overruns:
        lines.append(f"   Overrun ticks: {report.overruns}/{report.ticks}")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--log-level",
        default="DEBUG" if env_flag("LOADGEN_DEBUG") else "INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )

    ap = argparse.ArgumentParser(
        prog="inverter-loadgen",
        description="Rate-paced multi-format inverter telemetry generator",
    )
    sub = ap.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", parents=[common], help="send paced traffic to an endpoint")
    run.add_argument("--endpoint", type=str, default=None, help="destination URL")
    run.add_argument("--rate", type=int, default=None, help="requests per second")
    run.add_argument("--duration", type=float, default=None, help="total run time (seconds)")
    run.add_argument("--seed", type=int, default=None, help="deterministic RNG seed")
    run.add_argument("--timeout", type=float, default=None, help="per-request timeout (seconds)")
    run.add_argument("--max-workers", type=int, default=None, help="dispatch thread pool size")
    run.add_argument("--progress-interval", type=float, default=None, help="seconds between progress lines, 0 disables")
    run.add_argument("--log-dir", type=str, default=None, help="also write JSON-lines logs here")
    run.add_argument("--json", action="store_true", help="print the final report as JSON")

    sink = sub.add_parser("sink", parents=[common], help="serve the local ingest sink")
    sink.add_argument("--host", default=env_str("SINK_HOST", "127.0.0.1"))
    sink.add_argument("--port", type=int, default=env_int("SINK_PORT", 8080))

    return ap


def cmd_run(args: argparse.Namespace) -> int:
    try:
        settings = load_settings(args)
    except ValidationError as e:
        print(f"invalid run parameters:\n{e}", file=sys.stderr)
        return 2
    configure_logging(args.log_level, settings.log_dir)

    try:
        report = RunDriver(settings).run()
    except TransportInitError as e:
        logger.error("%s", e)
        return 1

    if args.json:
        print(report.model_dump_json(indent=2))
    else:
        print(format_report(report))
    return 0


def load_settings(args: argparse.Namespace) -> RunSettings:
    return RunSettings.from_env(
        endpoint=args.endpoint,
        rate=args.rate,
        duration_s=args.duration,
        seed=args.seed,
        timeout_s=args.timeout,
        max_workers=args.max_workers,
        progress_interval_s=args.progress_interval,
        log_dir=args.log_dir,
    )


def cmd_sink(args: argparse.Namespace) -> int:
    import uvicorn

    configure_logging(args.log_level)
    uvicorn.run("loadgen.main:app", host=args.host, port=args.port, log_level=args.log_level.lower())
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "run":
        return cmd_run(args)
    return cmd_sink(args)


if __name__ == "__main__":
    sys.exit(main())
