"""Escaping, data types and time handling for the InfluxDB wire formats."""

from .ds import FieldType, Raw, is_numeric
from .escape import (
    Escaper,
    escape,
    measurement_escaper,
    quote_escaper,
    string_lit_escaper,
    tag_escaper,
)
from .times import (
    NanoDate,
    Precision,
    cast_timestamp,
    date_to_time,
    format_date,
    iso_or_time_to_date,
    to_nano_date,
)

__all__ = [
    "FieldType",
    "Raw",
    "is_numeric",
    "Escaper",
    "escape",
    "measurement_escaper",
    "quote_escaper",
    "string_lit_escaper",
    "tag_escaper",
    "NanoDate",
    "Precision",
    "cast_timestamp",
    "date_to_time",
    "format_date",
    "iso_or_time_to_date",
    "to_nano_date",
]
