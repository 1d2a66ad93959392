"""Basic data types shared by the grammar helpers."""

from __future__ import annotations

from enum import Enum
import math


class FieldType(Enum):
    """InfluxDB field data types."""

    FLOAT = 0
    INTEGER = 1
    STRING = 2
    BOOLEAN = 3


def is_numeric(value: object) -> bool:
    """Return True if ``value`` is a finite number or a string holding one."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return False
    return math.isfinite(parsed)


class Raw:
    """Wraps a string so that it is passed into queries without escaping."""

    def __init__(self, value: str) -> None:
        self.value = value

    def get_value(self) -> str:
        return self.value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Raw) and other.value == self.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        return f"Raw({self.value!r})"
