from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import sys
from pathlib import Path
from typing import Sequence

from attackreport.config import CollectorConfig, PlotConfig, ReportConfig
from attackreport.errors import DecodeError, ReportError
from attackreport.reporters import REPORTER_NAMES, get_reporter, write_report
from attackreport.results import Result, gather_results

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="attackreport",
        description="Merge attack result streams and render a report",
    )
    parser.add_argument("inputs", nargs="*", type=Path, help="Result files (default: stdin)")
    parser.add_argument("-r", "--reporter", choices=REPORTER_NAMES, default="text")
    parser.add_argument("-o", "--output", type=Path, default=None, help="Output file (default: stdout)")
    parser.add_argument("--buffer-size", type=int, default=64)
    parser.add_argument(
        "--max-consecutive-errors",
        type=int,
        default=64,
        help="Abandon a source after this many decode errors in a row (0 retries forever)",
    )
    parser.add_argument("--title", default="Attack Plot")
    parser.add_argument("--linear", action="store_true", help="Linear latency axis in plots")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def config_from_args(args: argparse.Namespace) -> ReportConfig:
    collector = CollectorConfig(
        buffer_size=args.buffer_size,
        max_consecutive_errors=args.max_consecutive_errors or None,
    )
    plot = PlotConfig(title=args.title, log_scale=not args.linear)
    return ReportConfig(
        reporter=args.reporter,
        output=args.output,
        inputs=tuple(args.inputs),
        collector=collector,
        plot=plot,
    )


async def _collect(config: ReportConfig) -> tuple[list[Result], list[DecodeError]]:
    with contextlib.ExitStack() as stack:
        if config.inputs:
            sources = [stack.enter_context(path.open("rb")) for path in config.inputs]
        else:
            sources = [sys.stdin.buffer]
        return await gather_results(*sources, config=config.collector)


def run_report(config: ReportConfig) -> int:
    logger.debug("Report config: %s", config.to_metadata())
    results, errors = asyncio.run(_collect(config))
    if errors:
        logger.warning("%d record(s) could not be decoded", len(errors))
    logger.info("Collected %d result(s)", len(results))

    reporter = get_reporter(config.reporter, config.plot)
    sink = config.output if config.output is not None else sys.stdout.buffer
    return write_report(reporter, results, sink)


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    try:
        config = config_from_args(args)
        run_report(config)
    except (ReportError, OSError, ValueError) as exc:
        logger.error("Report failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
