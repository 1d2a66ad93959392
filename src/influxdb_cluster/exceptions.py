"""Exceptions for influxdb_cluster."""

from __future__ import annotations

from typing import Optional


class InfluxDBError(Exception):
    """Base exception for influxdb_cluster."""


class InfluxDBConfigError(InfluxDBError):
    """Client configuration is invalid or incomplete."""


class InfluxDBValidationError(InfluxDBError, ValueError):
    """A point, tag, field or timestamp was rejected before sending."""


class InfluxDBConnectionError(InfluxDBError):
    """Connection to InfluxDB failed (refused, reset or timed out)."""


class ServiceNotAvailableError(InfluxDBConnectionError):
    """A host answered with a 5xx status code."""


class NoHostAvailableError(ServiceNotAvailableError):
    """Every host in the pool is currently quarantined."""

    def __init__(self, message: str = "No host available") -> None:
        super().__init__(message)


class RequestError(InfluxDBError):
    """A host answered with a 3xx or 4xx status code."""

    def __init__(self, status_code: int, reason: Optional[str], body: str) -> None:
        status = f"{status_code} {reason}" if reason else str(status_code)
        super().__init__(f"A {status} error occurred: {body}")
        self.status_code = status_code
        self.reason = reason
        self.body = body


class InfluxDBAuthenticationError(RequestError):
    """The server rejected the credentials (401 or 403)."""


class InfluxDBQueryError(InfluxDBError):
    """Query execution failed."""


class ResultError(InfluxDBQueryError):
    """The response envelope carries a query-level error."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Error from InfluxDB: {message}")
