"""
Integrity checksum of sdb.xml files.

The checksum is the one's complement of an MSB-first CRC-32 (polynomial
0x04C11DB7, initial register 0xFFFFFFFF, no reflection) over the ``<SdbXml>``
element. The two dialects disagree on the exact range:

* E-Format: the raw file bytes from ``<SdbXml>`` up to and including the byte
  following ``</SdbXml>``. Stored as lowercase hex without prefix.
* Legacy: the text from ``<SdbXml>`` through ``</SdbXml>`` with CRLF turned into
  LF, UTF-8 encoded. Stored as ``0x`` plus uppercase hex.

Deutsch:
    Prüfsumme von sdb.xml Dateien (CRC-32, MSB-first, invertiert).
"""

from __future__ import annotations

import logging
from typing import List

from .dialect import Dialect
from .errors import ChecksumMismatchError, MalformedNumericError, MissingElementError

log = logging.getLogger(__name__)

CRC32_POLY = 0x04C11DB7
START_TAG = "<SdbXml>"
END_TAG = "</SdbXml>"
CHECKSUM_END_TAG = "</CheckSum>"


def _make_table(poly: int) -> List[int]:
    table: List[int] = []
    for byte in range(256):
        crc = byte << 24
        for _ in range(8):
            crc = ((crc << 1) ^ poly) if crc & 0x80000000 else crc << 1
        table.append(crc & 0xFFFFFFFF)
    return table


_TABLE = _make_table(CRC32_POLY)


def crc32_msb(data: bytes, crc: int = 0xFFFFFFFF) -> int:
    """Raw MSB-first CRC-32 register after feeding ``data``."""

    for byte in data:
        crc = ((crc << 8) & 0xFFFFFFFF) ^ _TABLE[((crc >> 24) ^ byte) & 0xFF]
    return crc


def checksum_range(dialect: Dialect, data: bytes, text: str) -> bytes:
    """Return the exact bytes the checksum of ``dialect`` covers."""

    if dialect.traits.binary_checksum:
        # byte search: the range ends one byte after the end tag and must see the raw newline
        start = data.find(START_TAG.encode("ascii"))
        end = data.find(END_TAG.encode("ascii"))
        if start < 0 or end < 0:
            raise MissingElementError("SdbXml")
        return data[start : end + len(END_TAG) + 1]

    start = text.find(START_TAG)
    end = text.find(END_TAG)
    if start < 0 or end < 0:
        raise MissingElementError("SdbXml")
    # the TV computes the checksum with LF newlines only
    section = text[start : end + len(END_TAG)].replace("\r\n", "\n")
    return section.encode("utf-8")


def calc_checksum(dialect: Dialect, data: bytes, text: str) -> int:
    return ~crc32_msb(checksum_range(dialect, data, text)) & 0xFFFFFFFF


def format_checksum(dialect: Dialect, value: int) -> str:
    traits = dialect.traits
    digits = f"{value:X}" if traits.checksum_uppercase else f"{value:x}"
    return traits.checksum_prefix + digits


def parse_checksum(dialect: Dialect, stored: str) -> int:
    text = stored.strip()
    prefix = dialect.traits.checksum_prefix
    if prefix and text[: len(prefix)].lower() == prefix.lower():
        text = text[len(prefix) :]
    try:
        return int(text, 16)
    except ValueError as exc:
        raise MalformedNumericError(stored, "CheckSum") from exc


def verify_checksum(dialect: Dialect, data: bytes, text: str, stored: str) -> int:
    """
    Compare the stored checksum with the computed one.

    Raises :class:`ChecksumMismatchError` on mismatch, returns the checksum otherwise.
    """

    expected = parse_checksum(dialect, stored)
    computed = calc_checksum(dialect, data, text)
    if computed != expected:
        raise ChecksumMismatchError(expected, computed)
    log.debug("checksum %s verified", format_checksum(dialect, computed))
    return computed


def patch_checksum(dialect: Dialect, xml: str) -> str:
    """
    Compute the checksum of the serialised ``xml`` and splice it into its ``<CheckSum>`` element.

    Only the checksum value changes, the rest of the text is kept as is.
    """

    crc = calc_checksum(dialect, xml.encode("utf-8"), xml)
    end = xml.rfind(CHECKSUM_END_TAG)
    if end < 0:
        raise MissingElementError("CheckSum")
    start = xml.rfind(">", 0, end)
    return xml[: start + 1] + format_checksum(dialect, crc) + xml[end:]
