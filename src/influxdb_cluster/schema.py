"""Per-measurement schemas and field coercion for the line protocol."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Tuple
import math

from .exceptions import InfluxDBConfigError, InfluxDBValidationError
from .grammar import FieldType, is_numeric, quote_escaper
from .models import MeasurementSchema

FieldPair = Tuple[str, str]


class Schema:
    """Validates and coerces the fields and tags of one measurement."""

    def __init__(self, options: MeasurementSchema) -> None:
        self.options = options
        # Sorted so that coerce_fields emits fields in a stable order.
        self._field_names = sorted(options.fields)
        self._tag_names = frozenset(options.tags)

    @property
    def measurement(self) -> str:
        return self.options.measurement

    @property
    def database(self) -> Optional[str]:
        return self.options.database

    def coerce_fields(self, fields: Mapping[str, Any]) -> List[FieldPair]:
        """Convert field values to literals that need no further escaping."""
        extraneous = [name for name in fields if name not in self.options.fields]
        if extraneous:
            raise InfluxDBValidationError(
                f"Extraneous fields detected for writing InfluxDB point in "
                f"{self._ref()}: `{'`, `'.join(extraneous)}`."
            )

        output: List[FieldPair] = []
        for name in self._field_names:
            if name not in fields or fields[name] is None:
                continue
            output.append((name, self._coerce(name, fields[name])))
        return output

    def check_tags(self, tags: Mapping[str, str]) -> List[str]:
        """Return the tag names, raising if any are not declared."""
        names = list(tags)
        extraneous = [tag for tag in names if tag not in self._tag_names]
        if extraneous:
            raise InfluxDBValidationError(
                f"Extraneous tags detected for writing InfluxDB point in "
                f"{self._ref()}: `{'`, `'.join(extraneous)}`."
            )
        return names

    def _coerce(self, name: str, value: Any) -> str:
        field_type = self.options.fields[name]
        if field_type is FieldType.STRING:
            return quote_escaper.escape(str(value))

        if field_type is FieldType.INTEGER:
            self._require_numeric(name, value)
            return _as_integer(value) + "i"

        if field_type is FieldType.FLOAT:
            self._require_numeric(name, value)
            return value.strip() if isinstance(value, str) else str(value)

        if field_type is FieldType.BOOLEAN:
            if not isinstance(value, bool):
                raise InfluxDBValidationError(
                    f"Expected boolean value for {self._ref(name)}, but got a {type(value).__name__}!"
                )
            return "T" if value else "F"

        raise InfluxDBValidationError(
            f"Unknown field type {field_type!r} for {name} in {self._ref()}. "
            "Please ensure that your configuration is correct."
        )

    def _require_numeric(self, name: str, value: Any) -> None:
        if not is_numeric(value):
            raise InfluxDBValidationError(
                f'Expected numeric value for {self._ref(name)}, but got "{value}"!'
            )

    def _ref(self, field: str = "") -> str:
        out = f"{self.options.database}.{self.options.measurement}"
        if field:
            out += "." + field
        return out


def _as_integer(value: Any) -> str:
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        try:
            return str(int(value.strip()))
        except ValueError:
            pass
    return str(math.floor(float(value)))


def coerce_badly(fields: Mapping[str, Any]) -> List[FieldPair]:
    """Best-effort coercion for measurements without a schema."""
    output: List[FieldPair] = []
    for name in sorted(fields):
        value = fields[name]
        if value is None:
            continue
        if isinstance(value, str):
            output.append((name, quote_escaper.escape(value)))
        elif isinstance(value, bool):
            output.append((name, "true" if value else "false"))
        else:
            output.append((name, str(value)))
    return output


def build_schemas(
    schemas: List[MeasurementSchema], default_database: Optional[str] = None
) -> Dict[str, Dict[str, Schema]]:
    """Index schemas by database and measurement name."""
    indexed: Dict[str, Dict[str, Schema]] = {}
    for options in schemas:
        database = options.database or default_database
        if not database:
            raise InfluxDBConfigError(
                f"Schema {options.measurement} doesn't have a database specified, "
                "and no default database is provided!"
            )
        if options.database != database:
            options = replace(options, database=database)
        indexed.setdefault(database, {})[options.measurement] = Schema(options)
    return indexed
