"""Data models for influxdb_cluster."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from .grammar.ds import FieldType
from .grammar.times import NanoDate

Timestamp = Union[datetime, NanoDate, str, int]


@dataclass(frozen=True)
class MeasurementSchema:
    """Declared field types and tag names for one measurement."""

    measurement: str
    fields: Dict[str, FieldType]
    tags: List[str] = field(default_factory=list)
    database: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "MeasurementSchema":
        fields = {}
        for name, typ in dict(data.get("fields") or {}).items():
            fields[name] = typ if isinstance(typ, FieldType) else FieldType[str(typ).upper()]
        return cls(
            measurement=data["measurement"],
            fields=fields,
            tags=list(data.get("tags") or []),
            database=data.get("database"),
        )


@dataclass
class Point:
    """A single point to be written through the line protocol."""

    measurement: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)
    fields: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[Timestamp] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Point":
        return cls(
            measurement=data.get("measurement"),
            tags=dict(data.get("tags") or {}),
            fields=dict(data.get("fields") or {}),
            timestamp=data.get("timestamp", data.get("time")),
        )


@dataclass(frozen=True)
class PingStats:
    """Liveness report for one host."""

    url: str
    online: bool
    rtt: float
    version: Optional[str] = None
    status_code: Optional[int] = None


@dataclass(frozen=True)
class WriteResult:
    """Result of a write operation."""

    success: bool
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
