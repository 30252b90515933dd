"""
Exception taxonomy for loading and saving sdb.xml channel databases.

Deutsch:
    Fehlerklassen für das Laden und Speichern von sdb.xml Senderlisten.
"""

from __future__ import annotations

from typing import Optional


class SdbError(Exception):
    """Base class for all codec errors. / Basisklasse aller Codec-Fehler."""


class UnsupportedFormatError(SdbError):
    """Raised when the root structure or version marker is not recognised. / Unbekanntes Format."""

    def __init__(self, message: str, version: Optional[str] = None):
        super().__init__(message)
        self.version = version


class MissingElementError(SdbError):
    """Raised when a mandatory sub-block is absent. / Pflichtelement fehlt."""

    def __init__(self, element: str, context: Optional[str] = None):
        message = f"missing {element} XML element"
        if context:
            message = f"{message} in {context}"
        super().__init__(message)
        self.element = element
        self.context = context


class ColumnMismatchError(MissingElementError):
    """Raised when a loop column holds fewer cells than its id column."""

    def __init__(self, column: str, expected: int, actual: int, context: Optional[str] = None):
        super().__init__(column, context)
        self.args = (f"loop column {column} has {actual} values, expected {expected}" + (f" in {context}" if context else ""),)
        self.expected = expected
        self.actual = actual


class ChecksumMismatchError(SdbError):
    """Raised when the stored checksum does not match the document. / Prüfsumme ungültig."""

    def __init__(self, expected: int, computed: int):
        super().__init__(f"invalid checksum: expected 0x{expected:08x}, calculated 0x{computed:08x}")
        self.expected = expected
        self.computed = computed


class MalformedNumericError(SdbError):
    """Raised when a strictly parsed numeric cell is not a number. / Ungültiger Zahlenwert."""

    def __init__(self, value: str, field: Optional[str] = None):
        where = f" in column {field}" if field else ""
        super().__init__(f"malformed numeric value {value!r}{where}")
        self.value = value
        self.field = field
