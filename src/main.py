"""mm-throughput-graph command-line entry point.

Reads a link trace (from a file or stdin), bins arrivals, capacity samples
and departures into ``ms_per_bin`` millisecond bins, prints summary
diagnostics on stderr, and writes a throughput chart to stdout::

    mm-throughput-graph 500 downlink.log > downlink.svg

Run in two phases: the whole trace is ingested first, then statistics and the
per-bin series are derived. Nothing is written to stdout unless both phases
succeed.

Environment:

* ``MM_GRAPH_WIDTH_PX`` / ``MM_GRAPH_HEIGHT_PX``: chart size (1024x560)
* ``MM_GRAPH_FORMAT``: ``svg`` (default), ``pdf`` or ``png``
* ``MM_LOG_LEVEL``: logging level (WARNING)
* ``MM_LOG_DIR``: also write a log file to this directory
"""

from __future__ import annotations

import argparse
import io
import os
import sys
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import BinaryIO, Optional, TextIO

from mm_throughput.aggregator import TraceAggregator
from mm_throughput.errors import ConfigError, FileAccessError, ThroughputGraphError, UsageError
from mm_throughput.events import read_events
from mm_throughput.renderer import SUPPORTED_FORMATS, ChartSettings, render_chart
from mm_throughput.series import format_data_block, materialize, to_dataframe
from mm_throughput.statistics import format_diagnostics, summarize
from mm_utils.logging_config import get_component_logger, setup_component_logging

PROG = "mm-throughput-graph"
COMPONENT_NAME = "mm_throughput"
LOGGER = get_component_logger(COMPONENT_NAME)


@dataclass(frozen=True)
class LoggingSettings:
    """Where and how verbosely the tool logs."""

    level: str = "WARNING"
    log_dir: Optional[str] = None


@dataclass(frozen=True)
class GraphConfig:
    """Aggregate environment configuration."""

    chart: ChartSettings = field(default_factory=ChartSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


@dataclass(frozen=True)
class RunOptions:
    """Options taken from the command line."""

    ms_per_bin: int
    logfile: Optional[str] = None
    data_only: bool = False
    output: Optional[str] = None


def _env_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        LOGGER.warning("Ignoring invalid int for %s: %s", name, value)
        return default
    if parsed <= 0:
        LOGGER.warning("Ignoring non-positive value for %s: %s", name, value)
        return default
    return parsed


def load_config() -> GraphConfig:
    """Derive chart and logging configuration from the environment."""

    image_format = os.getenv("MM_GRAPH_FORMAT", "svg").strip().lower()
    if image_format not in SUPPORTED_FORMATS:
        raise ConfigError(
            f"MM_GRAPH_FORMAT must be one of {', '.join(SUPPORTED_FORMATS)}, got {image_format!r}"
        )

    chart = ChartSettings(
        width_px=_env_positive_int("MM_GRAPH_WIDTH_PX", 1024),
        height_px=_env_positive_int("MM_GRAPH_HEIGHT_PX", 560),
        image_format=image_format,
    )
    logging_settings = LoggingSettings(
        level=os.getenv("MM_LOG_LEVEL", "WARNING"),
        log_dir=os.getenv("MM_LOG_DIR") or None,
    )
    return GraphConfig(chart=chart, logging=logging_settings)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Plot link capacity and measured throughput from a packet trace",
    )
    parser.add_argument(
        "ms_per_bin",
        nargs="?",
        help="Bin width in milliseconds (positive integer)",
    )
    parser.add_argument(
        "logfile",
        nargs="?",
        help="Trace file to read (default: standard input)",
    )
    parser.add_argument(
        "--data",
        action="store_true",
        dest="data_only",
        help="Write the per-bin data block instead of a chart",
    )
    parser.add_argument(
        "--output",
        "-o",
        help="Write the chart to this file instead of standard output",
    )
    return parser


def parse_args(argv: Optional[list[str]] = None) -> RunOptions:
    """
    Parse command-line arguments into ``RunOptions``.

    Raises:
        UsageError: ``ms_per_bin`` is missing.
        ConfigError: ``ms_per_bin`` is not a positive integer.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.ms_per_bin is None:
        raise UsageError(f"missing ms_per_bin\n{parser.format_usage().rstrip()}")
    try:
        ms_per_bin = int(args.ms_per_bin)
    except ValueError:
        raise ConfigError(f"ms_per_bin must be an integer, got {args.ms_per_bin!r}") from None
    if ms_per_bin <= 0:
        raise ConfigError(f"ms_per_bin must be positive, got {ms_per_bin}")

    return RunOptions(
        ms_per_bin=ms_per_bin,
        logfile=args.logfile,
        data_only=args.data_only,
        output=args.output,
    )


def run(
    options: RunOptions,
    config: GraphConfig,
    stdin: TextIO,
    stdout: BinaryIO,
    stderr: TextIO,
) -> None:
    """Ingest the trace, report diagnostics and write the chart or data block."""

    with ExitStack() as stack:
        if options.logfile is None:
            source = stdin
            LOGGER.info("Reading trace from standard input")
        else:
            try:
                source = stack.enter_context(open(options.logfile, encoding="utf-8"))
            except OSError as e:
                raise FileAccessError(f"Cannot open {options.logfile}: {e}") from e
            LOGGER.info("Reading trace from %s", options.logfile)

        aggregator = TraceAggregator(options.ms_per_bin).consume(read_events(source))

    summary = summarize(aggregator)
    points = materialize(aggregator)
    LOGGER.info(
        "%d events over %.3f s in %d bins of %d ms",
        aggregator.event_count,
        summary.duration_seconds,
        len(points),
        options.ms_per_bin,
    )

    for line in format_diagnostics(summary):
        print(line, file=stderr)

    if options.data_only:
        stdout.write(format_data_block(points).encode("utf-8"))
        stdout.flush()
        return

    frame = to_dataframe(points)
    if options.output is None:
        render_chart(frame, summary, config.chart, stdout)
        return

    # the target file is only created once the image is complete
    image = io.BytesIO()
    render_chart(frame, summary, config.chart, image)
    try:
        with open(options.output, "wb") as out:
            out.write(image.getvalue())
    except OSError as e:
        raise FileAccessError(f"Cannot write {options.output}: {e}") from e
    LOGGER.info("Chart written to %s", options.output)


def main(argv: Optional[list[str]] = None) -> int:
    """Command-line entry point. Returns the process exit status."""

    try:
        options = parse_args(argv)
        config = load_config()
        setup_component_logging(
            component_name=COMPONENT_NAME,
            log_level=config.logging.level,
            log_dir=config.logging.log_dir,
        )
        run(options, config, sys.stdin, sys.stdout.buffer, sys.stderr)
    except UsageError as e:
        print(f"{PROG}: {e}", file=sys.stderr)
        return 2
    except ThroughputGraphError as e:
        LOGGER.debug("Aborting on %s", type(e).__name__, exc_info=True)
        print(f"{PROG}: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
