from __future__ import annotations

from datetime import datetime, timezone

import pandas as pd
import pytest

from influxdb_cluster.exceptions import InfluxDBQueryError, ResultError
from influxdb_cluster.grammar import NanoDate
from influxdb_cluster.results import Results, SeriesGroup, parse, parse_csv, parse_single


def _utc_ms(millis: int) -> datetime:
    return datetime.fromtimestamp(millis // 1000, tz=timezone.utc).replace(microsecond=(millis % 1000) * 1000)


GROUPED = {
    "results": [
        {
            "series": [
                {"name": "test_series", "tags": {"tag": "a"}, "columns": ["mean"], "values": [[1], [2]]},
                {"name": "test_series", "tags": {"tag": "b"}, "columns": ["mean"], "values": [[3], [4]]},
            ]
        }
    ]
}


def test_parses_empty_result() -> None:
    response = {"results": [{"series": [{"name": "s", "columns": ["time", "mean"], "values": []}]}]}
    assert list(parse(response)) == []
    assert list(parse_single({"results": [{}]})) == []
    assert list(parse_single({"results": [{"series": [{"columns": ["user", "admin"]}]}]})) == []


def test_parses_simple_table() -> None:
    response = {
        "results": [
            {
                "series": [
                    {
                        "name": "test_series",
                        "columns": ["time", "mean"],
                        "values": [["2016-09-25T16:12:51.787Z", 42], ["2016-09-25T16:34:31.999Z", 44]],
                    }
                ]
            }
        ]
    }
    rows = parse_single(response)
    assert [r["mean"] for r in rows] == [42, 44]
    assert isinstance(rows[0]["time"], NanoDate)
    assert rows[0]["time"].get_time() == 1474819971787
    assert rows.groups() == [SeriesGroup(name="test_series", tags={}, rows=list(rows))]
    assert rows.group({"tag": "a"}) == []


def test_keeps_nanoseconds_without_epoch() -> None:
    response = {
        "results": [{"series": [{"columns": ["time", "v"], "values": [["2015-08-18T00:00:00Z", 1]]}]}]
    }
    assert parse_single(response)[0]["time"].get_nano_time() == "1439856000000000000"


def test_parses_alternate_epochs() -> None:
    ms = {"results": [{"series": [{"columns": ["time", "mean"], "values": [[1474819971787, 42]]}]}]}
    assert parse_single(ms, "ms")[0] == {"time": _utc_ms(1474819971787), "mean": 42}

    us = {"results": [{"series": [{"columns": ["time", "mean"], "values": [[1474819971787000, 42]]}]}]}
    assert parse_single(us, "u")[0]["time"].get_time() == 1474819971787

    s = {"results": [{"series": [{"columns": ["time", "mean"], "values": [[1474819971, 42]]}]}]}
    assert parse_single(s, "s")[0]["time"] == _utc_ms(1474819971000)


def test_parses_grouped_results() -> None:
    rows = parse_single(GROUPED)
    assert list(rows) == [
        {"mean": 1, "tag": "a"},
        {"mean": 2, "tag": "a"},
        {"mean": 3, "tag": "b"},
        {"mean": 4, "tag": "b"},
    ]
    assert rows.group({"tag": "a"}) == [{"mean": 1, "tag": "a"}, {"mean": 2, "tag": "a"}]
    assert rows.group({"tag": "b"}) == [{"mean": 3, "tag": "b"}, {"mean": 4, "tag": "b"}]
    assert rows.group({"tag": "c"}) == []


def test_group_requires_exact_tag_keys() -> None:
    rows = parse_single(GROUPED)
    assert rows.group({"tag2": "a"}) == []
    assert rows.group({"tag": "a", "other": "x"}) == []


def test_group_with_several_tag_keys() -> None:
    response = {
        "results": [
            {
                "series": [
                    {"tags": {"host": "a", "dc": "eu"}, "columns": ["v"], "values": [[1]]},
                    {"tags": {"host": "a", "dc": "us"}, "columns": ["v"], "values": [[2]]},
                ]
            }
        ]
    }
    rows = parse_single(response)
    assert rows.group({"host": "a", "dc": "us"}) == [{"v": 2, "host": "a", "dc": "us"}]
    assert rows.group({"host": "a"}) == []


def test_parse_unwraps_a_single_statement_only() -> None:
    single = parse(GROUPED)
    assert isinstance(single, Results)

    both = parse({"results": GROUPED["results"] * 2})
    assert isinstance(both, list) and len(both) == 2
    assert all(isinstance(r, Results) for r in both)


def test_raises_on_statement_error() -> None:
    with pytest.raises(ResultError, match="user already exists"):
        parse_single({"results": [{"error": "user already exists"}]})
    with pytest.raises(ResultError, match="bad"):
        parse({"error": "bad"})


def test_parse_single_rejects_several_statements() -> None:
    with pytest.raises(InfluxDBQueryError, match="equal 1"):
        parse_single({"results": [{}, {}]})


def test_to_dataframe_moves_time_first() -> None:
    response = {
        "results": [
            {
                "series": [
                    {
                        "columns": ["mean", "time"],
                        "values": [[42, "2016-10-09T03:58:00.231035677Z"], [44, "2016-10-09T03:58:01Z"]],
                    }
                ]
            }
        ]
    }
    df = parse_single(response).to_dataframe()
    assert list(df.columns) == ["time", "mean"]
    assert df["time"].iloc[0] == pd.Timestamp(1475985480231035677, unit="ns", tz="UTC")
    assert df["mean"].tolist() == [42, 44]


def test_parse_csv_groups_by_tags() -> None:
    text = (
        "name,tags,time,mean\n"
        "cpu,host=a,1474819971787,1.5\n"
        "cpu,host=a,1474819971788,2\n"
        "cpu,host=b,1474819971789,true\n"
    )
    rows = parse_csv(text, "ms")
    assert [r["mean"] for r in rows] == [1.5, 2, True]
    assert rows.group({"host": "b"})[0]["time"] == _utc_ms(1474819971789)
    assert len(rows.groups()) == 2


def test_parse_csv_splits_statements() -> None:
    text = "name,tags,value\nm1,,1\n\nname,tags,value\nm2,,x\n"
    first, second = parse_csv(text)
    assert list(first) == [{"value": 1}]
    assert list(second) == [{"value": "x"}]


def test_parse_csv_empty_body() -> None:
    assert list(parse_csv("")) == []
