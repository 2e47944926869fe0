"""
Event parsing for link traces.

A trace is a text log with one event per line::

    <timestamp_ms> <marker> <num_bytes> [<delay_ms>]

where the marker is ``+`` for a packet arrival, ``#`` for a capacity sample
(a delivery opportunity on the link) and ``-`` for a packet departure. Only
departures carry a delay. Lines starting with ``#`` are header comments; the
``# base timestamp: N`` header shifts every later timestamp by ``-N``.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional

from mm_throughput.errors import (
    DepartureFormatError,
    DuplicateBaseTimestamp,
    FormatError,
    InvalidByteCount,
    InvalidDelay,
    InvalidTimestamp,
    UnknownEventType,
)

logger = logging.getLogger(__name__)

BITS_PER_BYTE = 8

_UINT_RE = re.compile(r"[0-9]+")
_BASE_TIMESTAMP_RE = re.compile(r"^# base timestamp: ([0-9]+)")


class EventKind(Enum):
    """Kinds of trace events, valued by their log marker."""

    ARRIVAL = "+"
    CAPACITY = "#"
    DEPARTURE = "-"


@dataclass(frozen=True)
class Event:
    """A single typed trace event."""

    timestamp: int
    kind: EventKind
    bits: int
    delay: Optional[float] = None

    def __post_init__(self):
        if (self.delay is not None) != (self.kind is EventKind.DEPARTURE):
            raise ValueError("delay must be set for departures and only for departures")


def _to_uint(token: str, error_cls: type, label: str) -> int:
    if _UINT_RE.fullmatch(token) is None:
        raise error_cls(f"Invalid {label}: {token}")
    try:
        return int(token)
    except ValueError:
        # longer than the interpreter's int string conversion limit
        raise error_cls(f"Invalid {label}: {len(token)}-digit value") from None


def parse_line(line: str) -> Event:
    """
    Parse one event line into an ``Event``.

    Args:
        line: Raw trace line (trailing newline allowed).

    Returns:
        The parsed event, with the byte count converted to bits.

    Raises:
        FormatError: Fewer than three fields.
        InvalidTimestamp: Timestamp is not a non-negative integer.
        InvalidByteCount: Byte count is not a non-negative integer.
        UnknownEventType: Marker is not ``+``, ``#`` or ``-``.
        DepartureFormatError: Departure without a delay field.
        InvalidDelay: Departure delay is not a finite number.
    """
    fields = line.split()
    if len(fields) < 3:
        raise FormatError(f"Format: timestamp event_type num_bytes [delay], got {line.strip()!r}")

    timestamp, event_type, num_bytes = fields[:3]
    timestamp_ms = _to_uint(timestamp, InvalidTimestamp, "timestamp")
    byte_count = _to_uint(num_bytes, InvalidByteCount, "byte count")

    try:
        kind = EventKind(event_type)
    except ValueError:
        raise UnknownEventType(f"Unknown event type: {event_type}") from None

    delay = None
    if kind is EventKind.DEPARTURE:
        if len(fields) < 4:
            raise DepartureFormatError("Departure format: timestamp - num_bytes delay")
        try:
            delay = float(fields[3])
        except ValueError:
            raise InvalidDelay(f"Invalid delay: {fields[3]}") from None
        if not math.isfinite(delay):
            raise InvalidDelay(f"Invalid delay: {fields[3]}")

    return Event(
        timestamp=timestamp_ms,
        kind=kind,
        bits=byte_count * BITS_PER_BYTE,
        delay=delay,
    )


def read_events(lines: Iterable[str]) -> Iterator[Event]:
    """
    Yield events from trace lines, handling ``#`` header lines.

    Timestamps are rebased on the ``# base timestamp`` header when one is
    present; the header must come before the first event. Any parse error is
    re-raised with its 1-based line number.
    """
    base_timestamp: Optional[int] = None
    seen_event = False

    for line_no, line in enumerate(lines, start=1):
        if line.startswith("#"):
            match = _BASE_TIMESTAMP_RE.match(line)
            if match:
                if base_timestamp is not None:
                    raise DuplicateBaseTimestamp(f"line {line_no}: base timestamp multiply defined")
                if seen_event:
                    raise FormatError(f"line {line_no}: base timestamp after first event")
                try:
                    base_timestamp = _to_uint(match.group(1), InvalidTimestamp, "base timestamp")
                except InvalidTimestamp as e:
                    raise InvalidTimestamp(f"line {line_no}: {e}") from e
                logger.debug("Base timestamp %d from line %d", base_timestamp, line_no)
            continue

        try:
            event = parse_line(line)
        except FormatError as e:
            raise type(e)(f"line {line_no}: {e}") from e
        seen_event = True

        if base_timestamp is not None:
            if event.timestamp < base_timestamp:
                raise InvalidTimestamp(
                    f"line {line_no}: timestamp {event.timestamp} precedes base timestamp {base_timestamp}"
                )
            event = Event(
                timestamp=event.timestamp - base_timestamp,
                kind=event.kind,
                bits=event.bits,
                delay=event.delay,
            )

        yield event
