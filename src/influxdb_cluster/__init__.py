"""influxdb_cluster package."""

from .backoff import BackoffStrategy, ConstantBackoff, ExponentialBackoff
from .client import InfluxDB
from .config import ClientConfig, HostConfig, PoolOptions, config_from_env, load_env, resolve_config
from .exceptions import (
    InfluxDBAuthenticationError,
    InfluxDBConfigError,
    InfluxDBConnectionError,
    InfluxDBError,
    InfluxDBQueryError,
    InfluxDBValidationError,
    NoHostAvailableError,
    RequestError,
    ResultError,
    ServiceNotAvailableError,
)
from .grammar import FieldType, NanoDate, Precision, Raw, escape, to_nano_date
from .host import Host
from .line_protocol import parse_line, serialize_point, serialize_points
from .models import MeasurementSchema, PingStats, Point, WriteResult
from .pool import Pool, PoolRequest
from .results import Results, SeriesGroup, parse, parse_csv, parse_single
from .schema import Schema

__all__ = [
    "BackoffStrategy",
    "ConstantBackoff",
    "ExponentialBackoff",
    "InfluxDB",
    "ClientConfig",
    "HostConfig",
    "PoolOptions",
    "config_from_env",
    "load_env",
    "resolve_config",
    "InfluxDBAuthenticationError",
    "InfluxDBConfigError",
    "InfluxDBConnectionError",
    "InfluxDBError",
    "InfluxDBQueryError",
    "InfluxDBValidationError",
    "NoHostAvailableError",
    "RequestError",
    "ResultError",
    "ServiceNotAvailableError",
    "FieldType",
    "NanoDate",
    "Precision",
    "Raw",
    "escape",
    "to_nano_date",
    "Host",
    "parse_line",
    "serialize_point",
    "serialize_points",
    "MeasurementSchema",
    "PingStats",
    "Point",
    "WriteResult",
    "Pool",
    "PoolRequest",
    "Results",
    "SeriesGroup",
    "parse",
    "parse_csv",
    "parse_single",
    "Schema",
]
