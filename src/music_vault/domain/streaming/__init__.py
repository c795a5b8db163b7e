"""Streaming domain - HTTP byte-range resolution."""

from .ranges import ByteRange, RangeNotSatisfiableError, resolve_range

__all__ = ["ByteRange", "RangeNotSatisfiableError", "resolve_range"]
