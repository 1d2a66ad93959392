"""Serialization of points into the InfluxDB line protocol.

    <measurement>[,<tag>=<value>...] <field>=<value>[,<field>=<value>...] [<timestamp>]
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Union
import re

from .exceptions import InfluxDBValidationError
from .grammar import cast_timestamp, escape
from .models import Point
from .schema import Schema, coerce_badly

PointLike = Union[Point, Mapping[str, Any]]

_UNESCAPE_RE = re.compile(r"\\(.)")


def _as_point(point: PointLike) -> Point:
    if isinstance(point, Point):
        return point
    return Point.from_mapping(point)


def serialize_point(
    point: PointLike,
    precision: str = "n",
    schema: Optional[Mapping[str, Schema]] = None,
) -> str:
    """Serialize one point, using the measurement's schema when one exists."""
    point = _as_point(point)
    if not point.measurement:
        raise InfluxDBValidationError("Points must have a measurement name")

    measurement_schema = schema.get(point.measurement) if schema else None
    tags = {k: v for k, v in point.tags.items() if v is not None and v != ""}
    if measurement_schema is not None:
        field_pairs = measurement_schema.coerce_fields(point.fields)
        tag_names = measurement_schema.check_tags(tags)
    else:
        field_pairs = coerce_badly(point.fields)
        tag_names = list(tags)

    if not field_pairs:
        raise InfluxDBValidationError(
            f"Point in measurement {point.measurement} has no field values to write"
        )

    line = escape.measurement(point.measurement)
    for name in tag_names:
        line += "," + escape.tag(name) + "=" + escape.tag(str(tags[name]))
    line += " " + ",".join(escape.tag(name) + "=" + value for name, value in field_pairs)
    if point.timestamp is not None:
        line += " " + cast_timestamp(point.timestamp, precision)
    return line


def serialize_points(
    points: Iterable[PointLike],
    precision: str = "n",
    schema: Optional[Mapping[str, Schema]] = None,
) -> str:
    """Serialize points into a newline-joined payload."""
    return "\n".join(serialize_point(p, precision=precision, schema=schema) for p in points)


def _split(text: str, sep: str, limit: int = -1, quotes: bool = False) -> List[str]:
    """Split on ``sep`` where it is not escaped (nor quoted, with ``quotes``)."""
    parts: List[str] = []
    current: List[str] = []
    escaped = False
    quoted = False
    for char in text:
        if escaped:
            current.append(char)
            escaped = False
        elif char == "\\":
            current.append(char)
            escaped = True
        elif char == '"' and quotes:
            current.append(char)
            quoted = not quoted
        elif char == sep and not quoted and (limit < 0 or len(parts) < limit):
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


def _unescape(value: str) -> str:
    return _UNESCAPE_RE.sub(r"\1", value)


def _parse_field_value(raw: str) -> Any:
    if len(raw) >= 2 and raw.startswith('"') and raw.endswith('"'):
        return _unescape(raw[1:-1])
    if raw in ("t", "T", "true", "True", "TRUE"):
        return True
    if raw in ("f", "F", "false", "False", "FALSE"):
        return False
    if raw.endswith("i"):
        try:
            return int(raw[:-1])
        except ValueError:
            pass
    try:
        return float(raw)
    except ValueError as exc:
        raise InfluxDBValidationError(f"Invalid field value '{raw}'") from exc


def parse_line(line: str) -> Point:
    """Parse a single line-protocol line back into a Point."""
    sections = _split(line.strip(), " ", limit=1)
    if len(sections) != 2:
        raise InfluxDBValidationError(f"Malformed line: {line!r}")
    sections[1:] = _split(sections[1].strip(), " ", limit=1, quotes=True)

    key, *tag_pairs = _split(sections[0], ",")
    point = Point(measurement=_unescape(key))
    for pair in tag_pairs:
        parts = _split(pair, "=", limit=1)
        if len(parts) != 2:
            raise InfluxDBValidationError(f"Malformed tag '{pair}' in line: {line!r}")
        point.tags[_unescape(parts[0])] = _unescape(parts[1])

    for pair in _split(sections[1], ",", quotes=True):
        parts = _split(pair, "=", limit=1, quotes=True)
        if len(parts) != 2:
            raise InfluxDBValidationError(f"Malformed field '{pair}' in line: {line!r}")
        point.fields[_unescape(parts[0])] = _parse_field_value(parts[1])

    if len(sections) == 3:
        point.timestamp = sections[2].strip()
    return point
