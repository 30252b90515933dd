from __future__ import annotations

from xml.etree import ElementTree as ET

import pytest

from sdbxml.columns import parse_int, parse_strict, render_like, row_values, split_loop_columns
from sdbxml.errors import ColumnMismatchError, MalformedNumericError, MissingElementError


def test_split_loop_columns_keeps_order_and_ignores_unmarked() -> None:
    parent = ET.fromstring(
        '<Service>\n<Zeta loop="2">\na\nb\n</Zeta>\n<Other>x</Other>\n<Alpha loop="2">\n1\n2\n</Alpha>\n</Service>'
    )
    columns = split_loop_columns(parent)
    assert list(columns) == ["Zeta", "Alpha"]
    assert columns["Zeta"] == ["a", "b"]
    assert columns["Alpha"] == ["1", "2"]


def test_empty_block_yields_no_rows() -> None:
    parent = ET.fromstring('<P><A loop="0">\n</A><B loop="0"></B></P>')
    assert split_loop_columns(parent) == {"A": [], "B": []}


def test_only_one_line_break_is_trimmed_per_side() -> None:
    parent = ET.fromstring('<P><Name loop="3">\nFirst\n\nLast\n</Name><Tail loop="2">\nx\n\n</Tail></P>')
    columns = split_loop_columns(parent)
    assert columns["Name"] == ["First", "", "Last"]
    assert columns["Tail"] == ["x", ""]


def test_missing_parent_yields_empty_mapping() -> None:
    assert split_loop_columns(None) == {}


def test_row_values_detects_short_columns() -> None:
    assert row_values({"Id": ["1", "2"], "Name": ["a", "b"]}, 1, 2) == {"Id": "2", "Name": "b"}
    columns = {"Id": ["1", "2"], "Name": ["a"]}
    with pytest.raises(ColumnMismatchError) as excinfo:
        row_values(columns, 1, 2, "SDBT")
    assert isinstance(excinfo.value, MissingElementError)
    assert excinfo.value.expected == 2
    assert excinfo.value.actual == 1


def test_parse_int_is_lenient() -> None:
    assert parse_int("0x64") == 100
    assert parse_int("0X1f") == 31
    assert parse_int("42") == 42
    assert parse_int("") == 0
    assert parse_int("   ") == 0
    assert parse_int(None) == 0
    assert parse_int("garbage") == 0


def test_parse_strict_raises_on_garbage() -> None:
    assert parse_strict("0x02", "Flag") == 2
    assert parse_strict("-152") == -152
    with pytest.raises(MalformedNumericError) as excinfo:
        parse_strict("", "No")
    assert excinfo.value.field == "No"
    with pytest.raises(MalformedNumericError):
        parse_strict("12a")


def test_render_like_keeps_hex_notation() -> None:
    assert render_like("5", 7) == "7"
    assert render_like("0x02", 3) == "0x03"
    assert render_like("0x02", 0x1A) == "0x1A"
    assert render_like("0x0a", 0x0B) == "0x0b"
    assert render_like("0x1", 0x123) == "0x123"
