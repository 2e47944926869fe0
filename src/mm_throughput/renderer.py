"""
Chart rendering for throughput series.

Draws link capacity as a filled area and measured traffic as a line over the
same rows, with summary figures in the legend and title, and writes a
fixed-size image to a binary stream.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import BinaryIO

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402

from mm_throughput.errors import RenderError  # noqa: E402
from mm_throughput.statistics import TraceSummary  # noqa: E402

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("svg", "pdf", "png")
DPI = 100


@dataclass(frozen=True)
class ChartSettings:
    """Appearance of the rendered chart."""

    width_px: int = 1024
    height_px: int = 560
    image_format: str = "svg"
    xlabel: str = "time (s)"
    ylabel: str = "throughput (Mbits/s)"
    legend_loc: str = "upper left"
    capacity_color: str = "#bbbbbb"
    traffic_color: str = "#d62728"


def chart_labels(summary: TraceSummary) -> dict[str, str]:
    """Build the legend and title strings that embed the summary figures."""
    return {
        "capacity": f"Capacity (mean {summary.average_capacity_mbps:.2f} Mbits/s)",
        "traffic": f"Traffic ingress (mean {summary.average_ingress_mbps:.2f} Mbits/s)",
        "title": (
            f"mean throughput {summary.average_throughput_mbps:.2f} Mbits/s "
            f"({summary.utilization_percent:.1f}% utilization), "
            f"95th percentile per-packet queueing delay {summary.delay_p95_ms:.0f} ms"
        ),
    }


def render_chart(
    frame: pd.DataFrame,
    summary: TraceSummary,
    settings: ChartSettings,
    stream: BinaryIO,
) -> None:
    """
    Draw the throughput chart and write it to ``stream``.

    Args:
        frame: Series rows with ``time_s``, ``capacity_mbps`` and ``arrival_mbps`` columns.
        summary: Whole-trace figures shown in the legend and title.
        settings: Chart size, format and styling.
        stream: Binary output, e.g. ``sys.stdout.buffer``.

    Raises:
        RenderError: The image could not be drawn or written.
    """
    if settings.image_format not in SUPPORTED_FORMATS:
        raise RenderError(f"Unsupported image format: {settings.image_format}")

    labels = chart_labels(summary)
    fig, ax = plt.subplots(figsize=(settings.width_px / DPI, settings.height_px / DPI), dpi=DPI)
    try:
        ax.fill_between(
            frame["time_s"],
            frame["capacity_mbps"],
            color=settings.capacity_color,
            linewidth=0.5,
            label=labels["capacity"],
        )
        ax.plot(
            frame["time_s"],
            frame["arrival_mbps"],
            color=settings.traffic_color,
            linewidth=1.75,
            label=labels["traffic"],
        )
        ax.set_xlabel(settings.xlabel)
        ax.set_ylabel(settings.ylabel)
        ax.set_title(labels["title"], fontsize=10)
        ax.set_ylim(bottom=0)
        ax.grid(True, alpha=0.3)
        ax.legend(loc=settings.legend_loc)
        fig.tight_layout()

        fig.savefig(stream, format=settings.image_format, dpi=DPI)
        stream.flush()
    except (OSError, ValueError) as e:
        raise RenderError(f"Failed to render chart: {e}") from e
    finally:
        plt.close(fig)

    logger.debug(
        "Rendered %s chart (%dx%d px, %d bins)",
        settings.image_format,
        settings.width_px,
        settings.height_px,
        len(frame),
    )
