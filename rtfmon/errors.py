from __future__ import annotations


class RtfMonError(ValueError):
    """Base class for errors raised by the statistics engine."""


class InvalidSampleError(RtfMonError):
    """A sample was NaN or infinite."""


class InvalidRangeError(RtfMonError):
    """Histogram bin count or range is unusable."""


class InvalidCapacityError(RtfMonError):
    """Window capacity is not a positive integer."""


class MalformedRecordError(RtfMonError):
    """Persisted record text does not follow the expected layout."""
