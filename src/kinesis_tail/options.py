"""Resolve the starting position for a tail from user input."""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union

from .errors import ParseError
from .models import TailOptions

logger = logging.getLogger(__name__)

_RFC3339_RE = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})T([0-9]{2}):([0-9]{2}):([0-9]{2})(?:\.([0-9]+))?"
    r"(Z|[+-][0-9]{2}:[0-9]{2})"
)

_DURATION_RE = re.compile(
    r"[-+]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:ns|us|µs|μs|ms|s|m|h))+"
)
_DURATION_PART_RE = re.compile(r"([0-9]+\.?[0-9]*|\.[0-9]+)(ns|us|µs|μs|ms|s|m|h)")

# Microseconds per unit
_UNITS = {
    "ns": 0.001,
    "us": 1.0,
    "µs": 1.0,
    "μs": 1.0,
    "ms": 1000.0,
    "s": 1000000.0,
    "m": 60 * 1000000.0,
    "h": 3600 * 1000000.0,
}

Clock = Union[datetime, Callable[[], datetime]]


def parse_timestamp(value: str) -> datetime:
    """
    Parse an RFC3339 instant such as ``2021-09-10T11:12:13Z``.

    The date/time separator must be ``T`` and the zone must be ``Z`` or a
    numeric ``+hh:mm`` offset. Fractional seconds beyond microsecond
    precision are truncated.

    Raises:
        ParseError: If the value is not a valid RFC3339 timestamp
    """
    match = _RFC3339_RE.fullmatch(value)
    if not match:
        raise ParseError(f"invalid RFC3339 timestamp: {value!r}")

    year, month, day, hour, minute, second, fraction, zone = match.groups()
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))

    try:
        if zone == "Z":
            tzinfo = timezone.utc
        else:
            sign = -1 if zone[0] == "-" else 1
            offset = timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6]))
            tzinfo = timezone(sign * offset)

        return datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second),
            microsecond, tzinfo=tzinfo
        )
    except ValueError as e:
        raise ParseError(f"invalid RFC3339 timestamp: {value!r}: {e}") from e


def parse_duration(value: str) -> timedelta:
    """
    Parse a duration such as ``90s``, ``1h30m`` or ``1.5h``.

    Valid units are ns, us (or µs), ms, s, m and h. A leading sign is allowed
    and a bare ``0`` means zero.

    Raises:
        ParseError: If the value is not a valid duration
    """
    if value in ("0", "+0", "-0"):
        return timedelta(0)

    if not _DURATION_RE.fullmatch(value):
        raise ParseError(f"invalid duration: {value!r}")

    total_us = 0.0
    for number, unit in _DURATION_PART_RE.findall(value):
        total_us += float(number) * _UNITS[unit]

    if value.startswith("-"):
        total_us = -total_us

    try:
        return timedelta(microseconds=total_us)
    except OverflowError as e:
        raise ParseError(f"duration out of range: {value!r}") from e


def _current_time(now: Optional[Clock]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if callable(now):
        return now()
    return now


def resolve_tail_options(
    timestamp: Optional[str] = None,
    from_: Optional[str] = None,
    now: Optional[Clock] = None
) -> TailOptions:
    """
    Turn the ``--timestamp`` / ``--from`` inputs into a single starting point.

    An explicit timestamp wins over a relative duration. A duration is
    resolved against ``now`` once, so every shard starts from the same
    instant. With neither input the tail starts at the trim horizon.

    Args:
        timestamp: RFC3339 instant to start at
        from_: Duration to look back from ``now``
        now: Fixed datetime or zero-argument callable used as the current time

    Returns:
        TailOptions: The resolved, immutable options

    Raises:
        ParseError: If either input is malformed
    """
    if timestamp:
        at_timestamp = parse_timestamp(timestamp)
        logger.debug(f"Starting at explicit timestamp {at_timestamp.isoformat()}")
        return TailOptions(at_timestamp=at_timestamp)

    if from_:
        duration = parse_duration(from_)
        try:
            at_timestamp = _current_time(now) - duration
        except OverflowError as e:
            raise ParseError(f"duration out of range: {from_!r}") from e
        logger.debug(f"Starting {from_} ago at {at_timestamp.isoformat()}")
        return TailOptions(at_timestamp=at_timestamp)

    logger.debug("No start time given, starting at trim horizon")
    return TailOptions()
