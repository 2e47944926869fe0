"""Tests for trace summary statistics."""

import random

import pytest

from mm_throughput.aggregator import TraceAggregator
from mm_throughput.errors import NoCapacity, NoDepartures, NoEvents, StatisticsError, ZeroDuration
from mm_throughput.events import Event, EventKind
from mm_throughput.statistics import (
    TraceSummary,
    format_diagnostics,
    nearest_rank_percentile,
    summarize,
)


def cap(t, bits):
    return Event(timestamp=t, kind=EventKind.CAPACITY, bits=bits)


def dep(t, bits, delay):
    return Event(timestamp=t, kind=EventKind.DEPARTURE, bits=bits, delay=delay)


def arr(t, bits):
    return Event(timestamp=t, kind=EventKind.ARRIVAL, bits=bits)


class TestNearestRankPercentile:
    """Tests for nearest_rank_percentile."""

    def test_ten_samples(self):
        """p95 of 1..10 is index 9, i.e. 10."""
        assert nearest_rank_percentile(list(range(1, 11)), 0.95) == 10

    def test_twenty_samples(self):
        """p95 of 1..20 is index 19, i.e. 20."""
        assert nearest_rank_percentile(list(range(1, 21)), 0.95) == 20

    def test_hundred_samples_not_interpolated(self):
        """p95 of 0..99 is the element at index 95."""
        assert nearest_rank_percentile(list(range(100)), 0.95) == 95

    def test_single_sample(self):
        """One sample is its own percentile."""
        assert nearest_rank_percentile([7.5], 0.95) == 7.5

    def test_order_independent(self):
        """Shuffling the samples does not change the result."""
        samples = [float(x) for x in range(1, 38)]
        expected = nearest_rank_percentile(samples, 0.95)

        rng = random.Random(1234)
        for _ in range(10):
            shuffled = samples[:]
            rng.shuffle(shuffled)
            assert nearest_rank_percentile(shuffled, 0.95) == expected

    def test_does_not_mutate_input(self):
        """Input is sorted into a copy."""
        samples = [3.0, 1.0, 2.0]
        nearest_rank_percentile(samples, 0.5)

        assert samples == [3.0, 1.0, 2.0]

    def test_full_fraction_is_maximum(self):
        """fraction=1.0 returns the largest sample."""
        assert nearest_rank_percentile([1, 5, 3], 1.0) == 5

    def test_empty(self):
        """Empty input has no percentile."""
        with pytest.raises(ValueError):
            nearest_rank_percentile([], 0.95)


class TestSummarize:
    """Tests for summarize."""

    def test_average_capacity(self):
        """Two 1 Mbit capacity samples one second apart give 2.0 Mbits/s."""
        agg = TraceAggregator(100).consume([
            cap(0, 1_000_000),
            cap(1000, 1_000_000),
            dep(500, 500_000, 4.0),
        ])

        summary = summarize(agg)

        assert summary.duration_seconds == 1.0
        assert summary.average_capacity_mbps == 2.0
        assert summary.average_throughput_mbps == 0.5
        assert summary.utilization_percent == 25.0
        assert summary.delay_p95_ms == 4.0

    def test_ingress_average(self):
        """Arrival bits feed the ingress mean."""
        agg = TraceAggregator(100).consume([
            cap(0, 4_000_000),
            arr(0, 3_000_000),
            dep(2000, 2_000_000, 1.0),
        ])

        summary = summarize(agg)

        assert summary.duration_seconds == 2.0
        assert summary.average_ingress_mbps == 1.5
        assert summary.average_throughput_mbps == 1.0
        assert summary.utilization_percent == 50.0

    def test_duration_uses_first_not_minimum(self):
        """Duration runs from the first event seen to the maximum timestamp."""
        agg = TraceAggregator(100).consume([
            cap(1000, 8_000_000),
            cap(0, 0),
            dep(3000, 1, 1.0),
        ])

        assert summarize(agg).duration_seconds == 2.0

    def test_percentile_from_departures(self):
        """The delay percentile covers every departure."""
        events = [cap(0, 1000)]
        events += [dep(t, 8, float(d)) for t, d in zip(range(1, 11), [5, 3, 9, 1, 10, 2, 8, 4, 7, 6])]
        agg = TraceAggregator(10).consume(events)

        assert summarize(agg).delay_p95_ms == 10.0

    def test_no_events(self):
        """An empty trace is a precondition violation."""
        with pytest.raises(NoEvents):
            summarize(TraceAggregator(10))

    def test_no_departures(self):
        """Zero departures cannot produce a delay percentile."""
        agg = TraceAggregator(10).consume([cap(0, 100), cap(1000, 100), arr(5, 100)])

        with pytest.raises(NoDepartures):
            summarize(agg)

    def test_zero_duration(self):
        """All events at one instant give no duration."""
        agg = TraceAggregator(10).consume([cap(5, 100), dep(5, 100, 1.0)])

        with pytest.raises(ZeroDuration):
            summarize(agg)

    def test_no_capacity(self):
        """Utilization needs capacity samples."""
        agg = TraceAggregator(10).consume([dep(0, 100, 1.0), dep(1000, 100, 1.0)])

        with pytest.raises(NoCapacity):
            summarize(agg)

    def test_errors_share_base_class(self):
        """All summary failures are statistics errors."""
        for exc in (NoEvents, NoDepartures, ZeroDuration, NoCapacity):
            assert issubclass(exc, StatisticsError)


class TestFormatDiagnostics:
    """Tests for format_diagnostics."""

    def test_lines(self):
        """Diagnostics use fixed precision and wording."""
        summary = TraceSummary(
            duration_seconds=10.0,
            average_capacity_mbps=12.3456,
            average_throughput_mbps=6.1,
            average_ingress_mbps=7.0,
            utilization_percent=49.4104,
            delay_p95_ms=87.6,
        )

        assert format_diagnostics(summary) == [
            "Average capacity: 12.35 Mbits/s",
            "Average throughput of measured protocol: 6.10 Mbits/s (49.4% utilization)",
            "95th percentile per-packet queueing delay: 88 ms",
        ]
