"""
Elapsed time calculation from time spans and timestamp pairs.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional
from xml.etree.ElementTree import Element

from .exceptions import OptionalMetadataError
from .models import Extraction

logger = logging.getLogger(__name__)

# [-][d.]hh:mm[:ss[.fffffff]]
_TIMESPAN_RE = re.compile(
    r"^\s*(?P<sign>-)?(?:(?P<days>\d+)\.)?"
    r"(?P<hours>\d{1,2}):(?P<minutes>\d{1,2})"
    r"(?::(?P<seconds>\d{1,2})(?:\.(?P<fraction>\d{1,7}))?)?\s*$"
)

_TIMESTAMP_RE = re.compile(
    r"^\s*(?P<date>\d{4}-\d{2}-\d{2})[T ](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<tz>Z|[+-]\d{2}:?\d{2})?\s*$"
)

_TICKS_PER_MS = 10_000
_ONE_MS = timedelta(milliseconds=1)


def parse_timespan(text: Optional[str]) -> Optional[float]:
    """
    Parse a .NET style time span into milliseconds.

    Args:
        text: Time span such as "00:00:01.5000000" or "1.02:03:04"

    Returns:
        Milliseconds as a float, or None when the text is not a time span
    """
    if not text:
        return None
    match = _TIMESPAN_RE.match(text)
    if not match:
        return None

    hours = int(match.group("hours"))
    minutes = int(match.group("minutes"))
    seconds = int(match.group("seconds") or 0)
    if hours > 23 or minutes > 59 or seconds > 59:
        return None

    days = int(match.group("days") or 0)
    whole_seconds = ((days * 24 + hours) * 60 + minutes) * 60 + seconds
    ticks = int((match.group("fraction") or "").ljust(7, "0"))
    total = whole_seconds * 1000 + ticks / _TICKS_PER_MS
    return -total if match.group("sign") else total


def parse_timestamp(text: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp with up to 7 fractional digits."""
    if not text:
        return None
    match = _TIMESTAMP_RE.match(text)
    if not match:
        return None

    try:
        value = datetime.strptime(f"{match.group('date')}T{match.group('time')}", "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return None

    fraction = match.group("fraction")
    if fraction:
        value = value.replace(microsecond=int(fraction[:6].ljust(6, "0")))

    tz = match.group("tz")
    if tz == "Z":
        value = value.replace(tzinfo=timezone.utc)
    elif tz:
        sign = -1 if tz[0] == "-" else 1
        digits = tz[1:].replace(":", "")
        offset = timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
        value = value.replace(tzinfo=timezone(sign * offset))
    return value


def difference_in_milliseconds(start: Optional[str], end: Optional[str]) -> float:
    """
    Return end - start in milliseconds.

    Raises:
        ValueError: If either timestamp is unparseable, or only one has an offset
    """
    start_time = parse_timestamp(start)
    end_time = parse_timestamp(end)
    if start_time is None or end_time is None:
        raise ValueError(f"Unparseable timestamp pair: start={start!r}, end={end!r}")
    if (start_time.tzinfo is None) != (end_time.tzinfo is None):
        raise ValueError(f"Cannot compare timestamps with and without offset: {start!r}, {end!r}")
    return (end_time - start_time) / _ONE_MS


class DurationResolver:
    """Resolves test and run durations in milliseconds."""

    def __init__(self, clamp_negative: bool = True, log: Optional[logging.Logger] = None):
        self.clamp_negative = clamp_negative
        self.logger = log or logger

    def resolve(
        self,
        duration: Optional[str],
        start: Optional[str],
        end: Optional[str],
        field: str = "duration",
    ) -> Extraction[float]:
        """
        Resolve an explicit duration, falling back to a start/end pair.

        Args:
            duration: Explicit time span text, if any
            start: Start timestamp, if any
            end: End timestamp, if any
            field: Name used when reporting a problem

        Returns:
            Extraction whose value is always set; zero when nothing usable exists
        """
        explicit = parse_timespan(duration)
        if explicit is not None:
            return self._checked(explicit, field, f"negative duration {duration}")

        if start is None or end is None:
            return Extraction(0.0)

        try:
            elapsed = difference_in_milliseconds(start, end)
        except ValueError as e:
            return Extraction(0.0, OptionalMetadataError(field, str(e)))

        return self._checked(elapsed, field, f"end {end} precedes start {start}")

    def _checked(self, value: float, field: str, reason: str) -> Extraction[float]:
        if value >= 0:
            return Extraction(value)
        if self.clamp_negative:
            return Extraction(0.0, OptionalMetadataError(field, f"{reason}; clamped to 0"))
        return Extraction(value, OptionalMetadataError(field, reason))

    def resolve_test(self, record: Element) -> Extraction[float]:
        """Resolve the duration of a UnitTestResult record."""
        name = record.get("testName") or record.get("testId") or "?"
        return self.resolve(
            record.get("duration"),
            record.get("startTime"),
            record.get("endTime"),
            field=f"duration of {name}",
        )

    def resolve_run(self, times: Optional[Element]) -> Extraction[float]:
        """Resolve the run duration from a Times element; zero when absent."""
        if times is None:
            return Extraction(0.0)

        start = times.get("start")
        finish = times.get("finish")
        if start is None or finish is None:
            missing = "start" if start is None else "finish"
            return Extraction(
                0.0, OptionalMetadataError("run duration", f"Times node has no {missing} attribute")
            )
        return self.resolve(None, start, finish, field="run duration")
