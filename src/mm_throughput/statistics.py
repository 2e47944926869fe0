"""
Summary statistics over an ingested trace.

Rates are reported in Mbits/s over the span between the first and the last
event. The delay percentile uses the nearest-rank method on the sorted
samples (``sorted[int(n * p)]``), without interpolation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from mm_throughput.aggregator import TraceAggregator
from mm_throughput.errors import NoCapacity, NoDepartures, NoEvents, ZeroDuration

MS_PER_SECOND = 1000.0
BITS_PER_MEGABIT = 1_000_000.0
DELAY_PERCENTILE = 0.95


@dataclass(frozen=True)
class TraceSummary:
    """Figures reported for a whole trace."""

    duration_seconds: float
    average_capacity_mbps: float
    average_throughput_mbps: float
    average_ingress_mbps: float
    utilization_percent: float
    delay_p95_ms: float


def nearest_rank_percentile(samples: Sequence[float], fraction: float) -> float:
    """
    Return the nearest-rank percentile of ``samples``.

    The samples are sorted ascending and the element at index
    ``int(fraction * len(samples))`` is returned, clamped to the last element
    so that ``fraction=1.0`` yields the maximum.
    """
    if not samples:
        raise ValueError("percentile of an empty sample set")
    ordered = sorted(samples)
    index = min(int(fraction * len(ordered)), len(ordered) - 1)
    return ordered[index]


def _mbps(bits: int, seconds: float) -> float:
    return bits / seconds / BITS_PER_MEGABIT


def summarize(aggregator: TraceAggregator) -> TraceSummary:
    """
    Derive the summary figures from a fully ingested aggregator.

    Raises:
        NoEvents: Nothing was ingested.
        NoDepartures: There are no delay samples.
        ZeroDuration: First and last timestamps coincide.
        NoCapacity: No capacity samples were seen.
    """
    if aggregator.first_timestamp is None:
        raise NoEvents("trace contains no events")
    if not aggregator.delays:
        raise NoDepartures("trace contains no departures; cannot compute queueing delay")

    duration = (aggregator.last_timestamp - aggregator.first_timestamp) / MS_PER_SECOND
    if duration <= 0:
        raise ZeroDuration(f"all events share timestamp {aggregator.first_timestamp}")
    if aggregator.capacity_sum == 0:
        raise NoCapacity("trace contains no capacity samples; utilization is undefined")

    average_capacity = _mbps(aggregator.capacity_sum, duration)
    average_throughput = _mbps(aggregator.departure_sum, duration)

    return TraceSummary(
        duration_seconds=duration,
        average_capacity_mbps=average_capacity,
        average_throughput_mbps=average_throughput,
        average_ingress_mbps=_mbps(aggregator.arrival_sum, duration),
        utilization_percent=100.0 * average_throughput / average_capacity,
        delay_p95_ms=nearest_rank_percentile(aggregator.delays, DELAY_PERCENTILE),
    )


def format_diagnostics(summary: TraceSummary) -> list[str]:
    """Render the operator-facing diagnostic lines for a summary."""
    return [
        f"Average capacity: {summary.average_capacity_mbps:.2f} Mbits/s",
        (
            f"Average throughput of measured protocol: {summary.average_throughput_mbps:.2f} Mbits/s "
            f"({summary.utilization_percent:.1f}% utilization)"
        ),
        f"95th percentile per-packet queueing delay: {summary.delay_p95_ms:.0f} ms",
    ]
