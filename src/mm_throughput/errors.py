"""
Exception hierarchy for mm-throughput-graph.

Every failure in the tool is fatal. The CLI catches ``ThroughputGraphError``
at the top level, reports the message on stderr, and exits non-zero.
"""


class ThroughputGraphError(Exception):
    """Base class for all errors raised by the throughput graph tool."""


class UsageError(ThroughputGraphError):
    """A required command-line argument is missing."""


class ConfigError(ThroughputGraphError):
    """A configuration value (bin width, image format, ...) is invalid."""


class FileAccessError(ThroughputGraphError):
    """A trace or output file could not be opened."""


# ============================================================================
# Trace parsing
# ============================================================================

class FormatError(ThroughputGraphError):
    """An event line does not have the expected shape."""


class DepartureFormatError(FormatError):
    """A departure line is missing its delay field."""


class InvalidDelay(FormatError):
    """A departure delay is not a number."""


class DuplicateBaseTimestamp(FormatError):
    """The trace declares its base timestamp more than once."""


class InvalidTimestamp(FormatError):
    """The timestamp field is not a non-negative integer."""


class InvalidByteCount(FormatError):
    """The byte count field is not a non-negative integer."""


class UnknownEventType(FormatError):
    """The event marker is not one of arrival, capacity or departure."""


# ============================================================================
# Statistics
# ============================================================================

class StatisticsError(ThroughputGraphError):
    """Summary statistics cannot be derived from the ingested trace."""


class NoEvents(StatisticsError):
    """The trace contained no events."""


class NoDepartures(StatisticsError):
    """The trace contained no departures, so there are no delay samples."""


class ZeroDuration(StatisticsError):
    """All events share one timestamp, so no rate can be computed."""


class NoCapacity(StatisticsError):
    """The trace contained no capacity samples."""


class RenderError(ThroughputGraphError):
    """The chart could not be produced or written."""
