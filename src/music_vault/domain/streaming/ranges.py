"""
HTTP byte-range resolution.

Translates a Range header plus a known file size into a single inclusive
byte window. Multi-range requests are coalesced into the tightest covering
interval instead of a multipart response.
"""

import re
from dataclasses import dataclass
from typing import Optional

RANGE_UNIT = "bytes"

_SPEC_RE = re.compile(r"^([0-9]*)-([0-9]*)$")


class RangeNotSatisfiableError(Exception):
    """Raised when no part of a Range header can be served (HTTP 416)."""

    def __init__(self, header: str, size: int):
        self.header = header
        self.size = size
        super().__init__(f"Range not satisfiable: {header!r} (size={size})")


@dataclass(frozen=True)
class ByteRange:
    """Inclusive byte window [start, end]."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, size: int) -> str:
        return f"bytes {self.start}-{self.end}/{size}"


def _parse_spec(spec: str, size: int) -> Optional[ByteRange]:
    """Resolve one sub-range against size. Returns None if unsatisfiable.

    Raises:
        ValueError: If the sub-range is syntactically invalid
    """
    match = _SPEC_RE.match(spec)
    if not match or match.group(0) == "-":
        raise ValueError(f"Malformed range spec: {spec!r}")

    first, last = match.groups()

    if first == "":
        # Suffix form: last N bytes
        suffix = int(last)
        if suffix == 0 or size == 0:
            return None
        return ByteRange(max(0, size - suffix), size - 1)

    start = int(first)
    end = int(last) if last else size - 1
    end = min(end, size - 1)

    if start >= size or start > end:
        return None

    return ByteRange(start, end)


def resolve_range(size: int, header: Optional[str]) -> Optional[ByteRange]:
    """Pure function - compute the byte window to serve.

    Args:
        size: Total file size in bytes
        header: Raw Range header value, e.g. "bytes=0-99,50-149"

    Returns:
        None when no range was requested (serve the full body),
        otherwise the single coalesced ByteRange.

    Raises:
        RangeNotSatisfiableError: Malformed header, unsupported unit,
            or no sub-range intersects [0, size)

    Example:
        resolve_range(1000, "bytes=0-99,50-149") -> ByteRange(0, 149)
    """
    if header is None or not header.strip():
        return None

    unit, sep, specs = header.strip().partition("=")
    if not sep or unit.strip().lower() != RANGE_UNIT:
        raise RangeNotSatisfiableError(header, size)

    satisfiable = []
    for spec in specs.split(","):
        spec = spec.strip()
        if not spec:
            continue
        try:
            resolved = _parse_spec(spec, size)
        except ValueError:
            raise RangeNotSatisfiableError(header, size)
        if resolved is not None:
            satisfiable.append(resolved)

    if not satisfiable:
        raise RangeNotSatisfiableError(header, size)

    return ByteRange(
        start=min(r.start for r in satisfiable),
        end=max(r.end for r in satisfiable),
    )
