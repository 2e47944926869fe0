"""Dense per-bin throughput series built from a trace aggregator."""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from mm_throughput.aggregator import TraceAggregator
from mm_throughput.statistics import BITS_PER_MEGABIT, MS_PER_SECOND

SERIES_COLUMNS = [
    "time_s",
    "capacity_mbps",
    "arrival_mbps",
    "departure_mbps",
    "buffer_bits",
]


@dataclass(frozen=True)
class SeriesPoint:
    """Rates and buffer occupancy for one time bin."""

    time_s: float
    capacity_mbps: float
    arrival_mbps: float
    departure_mbps: float
    buffer_bits: int


def bin_to_seconds(bin_index: int, ms_per_bin: int) -> str:
    """Format the start of a bin in seconds with millisecond precision."""
    return f"{bin_index * ms_per_bin / MS_PER_SECOND:.3f}"


def materialize(aggregator: TraceAggregator) -> list[SeriesPoint]:
    """
    Walk every bin from the earliest to the latest populated one.

    Bins with no events contribute zero rates. Buffer occupancy is a running
    sum of arrival bits minus departure bits; it is not clamped, so a trace
    that starts mid-flight can show negative occupancy.
    """
    bin_range = aggregator.bin_range()
    if bin_range is None:
        return []

    earliest, latest = bin_range
    bin_seconds = aggregator.ms_per_bin / MS_PER_SECOND
    bits_in = aggregator.bits_in

    points = []
    occupancy = 0
    for bin_index in range(earliest, latest + 1):
        capacity_bits = bits_in(aggregator.capacity, bin_index)
        arrival_bits = bits_in(aggregator.arrivals, bin_index)
        departure_bits = bits_in(aggregator.departures, bin_index)

        occupancy += arrival_bits - departure_bits

        points.append(
            SeriesPoint(
                time_s=float(bin_to_seconds(bin_index, aggregator.ms_per_bin)),
                capacity_mbps=capacity_bits / bin_seconds / BITS_PER_MEGABIT,
                arrival_mbps=arrival_bits / bin_seconds / BITS_PER_MEGABIT,
                departure_mbps=departure_bits / bin_seconds / BITS_PER_MEGABIT,
                buffer_bits=occupancy,
            )
        )

    aggregator.logger.debug("Materialized %d bins (%d..%d)", len(points), earliest, latest)
    return points


def format_data_block(points: list[SeriesPoint]) -> str:
    """Render points as whitespace-separated rows, one per bin."""
    lines = [
        f"{p.time_s:.3f} {p.capacity_mbps:.15g} {p.arrival_mbps:.15g} {p.departure_mbps:.15g} {p.buffer_bits}"
        for p in points
    ]
    return "".join(line + "\n" for line in lines)


def to_dataframe(points: list[SeriesPoint]) -> pd.DataFrame:
    """Build a DataFrame with one row per bin and the ``SERIES_COLUMNS`` columns."""
    return pd.DataFrame(
        [
            (p.time_s, p.capacity_mbps, p.arrival_mbps, p.departure_mbps, p.buffer_bits)
            for p in points
        ],
        columns=SERIES_COLUMNS,
    )
