"""
Time-bin aggregation of trace events.

``TraceAggregator`` owns all state accumulated while reading a trace: the
per-bin bit tables for each event kind, running bit sums, the delay samples
and the first/last timestamps. It is filled in a single pass and then handed
to the statistics and series code.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from mm_throughput.errors import ConfigError
from mm_throughput.events import Event, EventKind


class TraceAggregator:
    """Accumulates trace events into fixed-width time bins."""

    def __init__(self, ms_per_bin: int, logger: Optional[logging.Logger] = None):
        """
        Initialize an empty aggregator.

        Args:
            ms_per_bin: Bin width in milliseconds. Must be positive.
            logger: Optional logger instance. If not provided, a module-level logger is used.
        """
        if isinstance(ms_per_bin, bool) or not isinstance(ms_per_bin, int) or ms_per_bin <= 0:
            raise ConfigError(f"ms_per_bin must be a positive integer, got {ms_per_bin!r}")

        self.logger = logger or logging.getLogger(__name__)
        self.ms_per_bin = ms_per_bin

        self.arrivals: dict[int, int] = {}
        self.capacity: dict[int, int] = {}
        self.departures: dict[int, int] = {}
        self.delays: list[float] = []

        self.arrival_sum = 0
        self.capacity_sum = 0
        self.departure_sum = 0
        self.event_count = 0

        self.first_timestamp: Optional[int] = None
        self.last_timestamp: Optional[int] = None

    def bin_of(self, timestamp: int) -> int:
        """Return the bin index for a timestamp in milliseconds."""
        return timestamp // self.ms_per_bin

    @staticmethod
    def bits_in(table: dict[int, int], bin_index: int) -> int:
        """Get the bits recorded in ``table`` for a bin, 0 if the bin is absent."""
        return table.get(bin_index, 0)

    def add(self, event: Event) -> None:
        """Fold one event into the aggregate state."""
        if self.first_timestamp is None:
            self.first_timestamp = event.timestamp
            self.last_timestamp = event.timestamp
        self.last_timestamp = max(event.timestamp, self.last_timestamp)
        self.event_count += 1

        bin_index = self.bin_of(event.timestamp)

        if event.kind is EventKind.ARRIVAL:
            self.arrivals[bin_index] = self.bits_in(self.arrivals, bin_index) + event.bits
            self.arrival_sum += event.bits
        elif event.kind is EventKind.CAPACITY:
            self.capacity[bin_index] = self.bits_in(self.capacity, bin_index) + event.bits
            self.capacity_sum += event.bits
        else:
            self.departures[bin_index] = self.bits_in(self.departures, bin_index) + event.bits
            self.delays.append(event.delay)
            self.departure_sum += event.bits

    def consume(self, events: Iterable[Event]) -> "TraceAggregator":
        """
        Add every event from an iterable.

        Returns:
            The aggregator itself, so ingest can be chained into the derive phase.
        """
        for event in events:
            self.add(event)

        self.logger.debug(
            "Ingested %d events: %d capacity bins, %d arrival bins, %d departure bins, %d delay samples",
            self.event_count,
            len(self.capacity),
            len(self.arrivals),
            len(self.departures),
            len(self.delays),
        )
        return self

    def bin_range(self) -> Optional[tuple[int, int]]:
        """
        Get the earliest and latest populated bin across all three tables.

        Returns:
            ``(earliest, latest)`` or None when no bin has been populated.
        """
        populated = set(self.arrivals) | set(self.capacity) | set(self.departures)
        if not populated:
            return None
        return min(populated), max(populated)
