"""
Helpers for the columnar "loop" blocks of sdb.xml.

A loop block is an element carrying a ``loop`` attribute whose text holds one
value per line. A parent element groups several of them, one per column, so a
table is stored column by column rather than row by row.

Deutsch:
    Hilfsfunktionen für die spaltenweise gespeicherten "loop"-Blöcke.
"""

from __future__ import annotations

from typing import Dict, List, Optional
from xml.etree import ElementTree as ET

from .errors import ColumnMismatchError, MalformedNumericError, MissingElementError

Columns = Dict[str, List[str]]


def is_loop_block(element: ET.Element) -> bool:
    return isinstance(element.tag, str) and element.get("loop") is not None


def split_loop_columns(parent: Optional[ET.Element]) -> Columns:
    """
    Turn the loop children of ``parent`` into ``{column: [cells]}``.

    The dict keeps the document order of the columns. Writers always wrap the
    values in one leading and one trailing line break, exactly one of each is
    removed before splitting. A block without values yields an empty list.
    Children without a ``loop`` attribute are ignored.
    """

    columns: Columns = {}
    if parent is None:
        return columns
    for child in parent:
        if not is_loop_block(child):
            continue
        text = child.text or ""
        if text.startswith("\n"):
            text = text[1:]
        if text.endswith("\n"):
            text = text[:-1]
        columns[child.tag] = text.split("\n") if text else []
    return columns


def require_column(
    columns: Columns, name: str, context: Optional[str] = None, expected: Optional[int] = None
) -> List[str]:
    values = columns.get(name)
    if values is None:
        raise MissingElementError(name, context)
    if expected is not None and len(values) < expected:
        raise ColumnMismatchError(name, expected, len(values), context)
    return values


def row_values(columns: Columns, index: int, expected: int, context: Optional[str] = None) -> Dict[str, str]:
    """
    Collect the cells of row ``index`` from every column, in column order.

    ``expected`` is the length of the id column the caller iterates over; a
    column holding fewer values raises :class:`ColumnMismatchError`.
    """

    row: Dict[str, str] = {}
    for name, values in columns.items():
        if len(values) < expected:
            raise ColumnMismatchError(name, expected, len(values), context)
        row[name] = values[index]
    return row


def parse_int(value: Optional[str]) -> int:
    """
    Lenient integer parser for cells that are known to be blank at times.

    Accepts decimal and ``0x`` prefixed hex; blank or garbage input yields 0.
    """

    if value is None:
        return 0
    text = value.strip()
    if not text:
        return 0
    try:
        if len(text) > 2 and text[0] == "0" and text[1] in "xX":
            return int(text[2:], 16)
        return int(text)
    except ValueError:
        return 0


def parse_strict(value: Optional[str], field: Optional[str] = None) -> int:
    """Parse a decimal or ``0x`` hex integer, raising :class:`MalformedNumericError` otherwise."""

    text = (value or "").strip()
    try:
        if len(text) > 2 and text[0] == "0" and text[1] in "xX":
            return int(text[2:], 16)
        return int(text)
    except ValueError as exc:
        raise MalformedNumericError(value or "", field) from exc


def render_like(original: str, value: int) -> str:
    """
    Render ``value`` the way ``original`` was written.

    Cells using ``0x`` hex notation keep their prefix, digit width and letter
    case; everything else is written as plain decimal.
    """

    text = original.strip()
    if len(text) > 2 and text[0] == "0" and text[1] in "xX" and value >= 0:
        digits = text[2:]
        rendered = f"{value:0{len(digits)}x}"
        if digits == digits.lower() and any(ch in "abcdef" for ch in digits):
            return text[:2] + rendered
        return text[:2] + rendered.upper()
    return str(value)
