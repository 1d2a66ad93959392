"""Timestamp conversions between Python dates and InfluxDB time formats.

InfluxDB speaks three time formats:

- RFC3339 strings with up to nanosecond fractions (query results without
  an ``epoch``),
- integer unix timestamps in a given precision (writes and ``epoch``
  queries),
- its own quoted literal format inside InfluxQL.

``datetime`` stops at microseconds, so nanosecond values are carried in a
``NanoDate``: a millisecond instant plus the exact decimal nanosecond string.
All arithmetic is done on Python ints, which never lose precision.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Union
import re

from ..exceptions import InfluxDBValidationError
from .ds import is_numeric

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Precision:
    """Available InfluxDB time precisions."""

    HOURS = "h"
    MINUTES = "m"
    SECONDS = "s"
    MILLISECONDS = "ms"
    MICROSECONDS = "u"
    NANOSECONDS = "n"


NS_PER = {
    "n": 1,
    "u": 10**3,
    "ms": 10**6,
    "s": 10**9,
    "m": 60 * 10**9,
    "h": 3600 * 10**9,
}

# Precisions at which results are returned as plain datetimes.
COARSE_PRECISIONS = frozenset({"ms", "s", "m", "h"})

_ISO_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[T ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:?\d{2})?$"
)


@dataclass(frozen=True)
class NanoDate:
    """A point in time with nanosecond precision."""

    millis: int
    nano_time: str

    @classmethod
    def from_nanos(cls, nanos: int) -> "NanoDate":
        return cls(millis=nanos // NS_PER["ms"], nano_time=str(nanos))

    @property
    def nanos(self) -> int:
        return int(self.nano_time)

    def get_time(self) -> int:
        """Unix timestamp in milliseconds."""
        return self.millis

    def get_nano_time(self) -> str:
        """Unix timestamp in nanoseconds, as a string."""
        return self.nano_time

    def to_datetime(self) -> datetime:
        """Aware UTC datetime, truncated to microseconds."""
        return EPOCH + timedelta(microseconds=self.nanos // NS_PER["u"])

    def to_nano_iso_string(self) -> str:
        seconds, fraction = divmod(self.nanos, NS_PER["s"])
        base = EPOCH + timedelta(seconds=seconds)
        return f"{base:%Y-%m-%dT%H:%M:%S}.{fraction:09d}Z"

    def __str__(self) -> str:
        return self.to_nano_iso_string()


DateLike = Union[datetime, NanoDate]


def _check_precision(precision: str) -> None:
    if precision not in NS_PER:
        raise InfluxDBValidationError(f"Unknown precision '{precision}'!")


def _datetime_to_nanos(date: datetime) -> int:
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return ((date - EPOCH) // timedelta(microseconds=1)) * NS_PER["u"]


def _to_nanos(date: DateLike) -> int:
    if isinstance(date, NanoDate):
        return date.nanos
    if isinstance(date, datetime):
        return _datetime_to_nanos(date)
    raise InfluxDBValidationError(f"Expected a datetime or NanoDate, but got {type(date).__name__}")


def to_nano_date(timestamp: str) -> NanoDate:
    """Convert a unix nanosecond timestamp string to a NanoDate.

    >>> to_nano_date("1475985480231035600").to_nano_iso_string()
    '2016-10-09T03:58:00.231035600Z'
    """
    try:
        nanos = int(str(timestamp).strip())
    except ValueError as exc:
        raise InfluxDBValidationError(
            f"Expected an integer nanosecond timestamp, but got '{timestamp}'!"
        ) from exc
    return NanoDate.from_nanos(nanos)


def format_date(date: DateLike) -> str:
    """Format a date as an InfluxQL time literal."""
    if isinstance(date, NanoDate):
        base = date.to_datetime()
        fraction = f"{date.nanos % NS_PER['s']:09d}"
    else:
        base = date if date.tzinfo is None else date.astimezone(timezone.utc)
        if base.microsecond % 1000 == 0:
            fraction = f"{base.microsecond // 1000:03d}"
        else:
            fraction = f"{base.microsecond:06d}"
    return f'"{base:%Y-%m-%d %H:%M:%S}.{fraction}"'


def date_to_time(date: DateLike, precision: str) -> str:
    """Convert a date to a unix timestamp string in ``precision``."""
    _check_precision(precision)
    return str(_to_nanos(date) // NS_PER[precision])


def _iso_to_nanos(stamp: str) -> int:
    match = _ISO_RE.match(stamp.strip())
    if match is None:
        raise InfluxDBValidationError(f"Could not parse timestamp '{stamp}'")
    day, clock, fraction, offset = match.groups()
    base = datetime.strptime(f"{day}T{clock}", "%Y-%m-%dT%H:%M:%S").replace(tzinfo=timezone.utc)
    seconds = (base - EPOCH) // timedelta(seconds=1)
    if offset and offset != "Z":
        sign = -1 if offset[0] == "-" else 1
        digits = offset[1:].replace(":", "")
        seconds -= sign * (int(digits[:2]) * 3600 + int(digits[2:]) * 60)
    return seconds * NS_PER["s"] + int((fraction or "")[:9].ljust(9, "0"))


def iso_or_time_to_date(stamp: Union[str, int, float], precision: str = "n") -> NanoDate:
    """Convert an RFC3339 string or a unix timestamp in ``precision`` to a NanoDate."""
    if isinstance(stamp, str):
        return NanoDate.from_nanos(_iso_to_nanos(stamp))
    if isinstance(stamp, bool):
        raise InfluxDBValidationError(f"Expected a timestamp, but got {stamp!r}")
    _check_precision(precision)
    if isinstance(stamp, int):
        return NanoDate.from_nanos(stamp * NS_PER[precision])
    return NanoDate.from_nanos(int(Decimal(repr(stamp)) * NS_PER[precision]))


def cast_timestamp(timestamp: Union[str, int, float, DateLike], precision: str) -> str:
    """Convert a timestamp to a string in the write precision.

    Strings and numbers are assumed to already be in ``precision``.
    """
    if isinstance(timestamp, str):
        if not is_numeric(timestamp):
            raise InfluxDBValidationError(
                f"Expected numeric value for timestamp, but got '{timestamp}'!"
            )
        return timestamp
    if isinstance(timestamp, bool):
        raise InfluxDBValidationError(f"Expected a timestamp, but got {timestamp!r}")
    if isinstance(timestamp, int):
        return str(timestamp)
    if isinstance(timestamp, float):
        if not timestamp.is_integer():
            raise InfluxDBValidationError(
                f"Expected an integral timestamp, but got {timestamp!r}"
            )
        return str(int(timestamp))
    return date_to_time(timestamp, precision)
