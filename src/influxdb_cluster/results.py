"""Parsing of InfluxDB query responses into row collections.

There are three response shapes to cover:

1. a single query without groups, like ``select * from perf``,
2. a single query grouped by tags (``group by host``); grouping by time is
   case 1,
3. several semicolon-joined queries of types 1 and 2.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from io import StringIO
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
import logging

import pandas as pd

from .exceptions import InfluxDBQueryError, ResultError
from .grammar.times import COARSE_PRECISIONS, NanoDate, iso_or_time_to_date

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
Tags = Dict[str, str]


@dataclass
class SeriesGroup:
    """The rows of one series together with its tag set."""

    name: Optional[str]
    tags: Tags
    rows: List[Row] = field(default_factory=list)


class Results(list):
    """Flat list of rows with lookup of the series they came from."""

    def __init__(self, rows: Sequence[Row] = (), groups: Sequence[SeriesGroup] = ()) -> None:
        super().__init__(rows)
        self._groups = list(groups)
        self._group_tag_keys = list(self._groups[0].tags) if self._groups else []

    def group(self, matcher: Mapping[str, str]) -> List[Row]:
        """Return the rows of the first series whose tags equal ``matcher``.

        Tag keys are the same for every series of a result, so a matcher with
        a different number of keys can never match.
        """
        keys = self._group_tag_keys
        if not keys or len(keys) != len(matcher):
            return []
        for group in self._groups:
            if all(k in matcher and group.tags.get(k) == matcher[k] for k in keys):
                return group.rows
        return []

    def groups(self) -> List[SeriesGroup]:
        return self._groups

    def to_dataframe(self) -> pd.DataFrame:
        """Rows as a DataFrame with ``time`` first and in UTC."""
        df = pd.DataFrame(list(self))
        if df.empty or "time" not in df.columns:
            return df
        df["time"] = pd.to_datetime([_to_timestamp(t) for t in df["time"]], utc=True)
        cols = ["time"] + [c for c in df.columns if c != "time"]
        return df.reindex(columns=cols)


def _to_timestamp(value: Any) -> Any:
    if isinstance(value, NanoDate):
        return pd.Timestamp(value.nanos, unit="ns", tz="UTC")
    return value


def _row_time(raw: Any, precision: Optional[str]) -> Any:
    if raw is None:
        return None
    date = iso_or_time_to_date(raw, precision or "n")
    if precision in COARSE_PRECISIONS:
        return date.to_datetime()
    return date


def parse_series(series: Optional[Sequence[Mapping[str, Any]]], precision: Optional[str] = None) -> Results:
    """Unpack the series of one statement into a Results list."""
    rows: List[Row] = []
    groups: List[SeriesGroup] = []
    for entry in series or []:
        columns = list(entry.get("columns") or [])
        tags = dict(entry.get("tags") or {})
        group = SeriesGroup(name=entry.get("name"), tags=tags)
        for values in entry.get("values") or []:
            row: Row = {}
            for column, value in zip(columns, values):
                if column == "time":
                    row["time"] = _row_time(value, precision)
                else:
                    row[column] = value
            row.update(tags)
            group.rows.append(row)
        rows.extend(group.rows)
        groups.append(group)
    return Results(rows, groups)


def assert_no_errors(response: Mapping[str, Any]) -> Mapping[str, Any]:
    """Raise ResultError if any statement in the response failed."""
    if response.get("error"):
        raise ResultError(response["error"])
    for result in response.get("results") or []:
        if result.get("error"):
            raise ResultError(result["error"])
    return response


def parse(response: Mapping[str, Any], precision: Optional[str] = None) -> Union[Results, List[Results]]:
    """Parse a response into one Results per statement.

    A single statement yields its Results directly rather than a list.
    """
    assert_no_errors(response)
    results = response.get("results") or []
    if len(results) == 1:
        return parse_series(results[0].get("series"), precision)
    return [parse_series(result.get("series"), precision) for result in results]


def parse_single(response: Mapping[str, Any], precision: Optional[str] = None) -> Results:
    """Parse a response that must contain exactly one statement."""
    assert_no_errors(response)
    results = response.get("results") or []
    if len(results) != 1:
        raise InfluxDBQueryError(
            f"Expected the results length to equal 1, but it was {len(results)}"
        )
    return parse_series(results[0].get("series"), precision)


def _csv_value(raw: str) -> Any:
    if raw == "":
        return None
    if raw in ("true", "false"):
        return raw == "true"
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            continue
    return raw


def _csv_tags(raw: str) -> Tags:
    tags: Tags = {}
    for pair in raw.split(","):
        if "=" in pair:
            key, value = pair.split("=", 1)
            tags[key] = value
    return tags


def parse_csv(text: str, precision: Optional[str] = None) -> Union[Results, List[Results]]:
    """Parse an ``application/csv`` query response.

    Blocks separated by blank lines each start with their own
    ``name,tags,time,...`` header and become one Results apiece.
    """
    blocks = [b for b in text.replace("\r\n", "\n").split("\n\n") if b.strip()]
    parsed: List[Results] = []
    for block in blocks:
        frame = pd.read_csv(StringIO(block), dtype=str, keep_default_na=False)
        value_columns = [c for c in frame.columns if c not in ("name", "tags")]
        series: List[Dict[str, Any]] = []
        current: Optional[Dict[str, Any]] = None
        for record in frame.to_dict(orient="records"):
            name = record.get("name")
            tags = _csv_tags(record.get("tags", ""))
            if current is None or current["name"] != name or current["tags"] != tags:
                current = {"name": name, "tags": tags, "columns": value_columns, "values": []}
                series.append(current)
            current["values"].append([_csv_value(record[c]) for c in value_columns])
        parsed.append(parse_series(series, precision))
    logger.debug("Parsed %d CSV result block(s)", len(parsed))
    if not parsed:
        return Results()
    if len(parsed) == 1:
        return parsed[0]
    return parsed
