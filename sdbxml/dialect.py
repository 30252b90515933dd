"""
Format version detection for sdb.xml files.

There are four known variants of the format. Three of them declare
``<FormatVer>`` with the versions 1.0.0, 1.1.0 and 1.2.0 and only differ in
details the codec does not touch. The fourth declares the misspelled
``<FormateVer>1.1.0</FormateVer>`` and uses different element names, unit
scaling and checksum rules. It is reported as ``e1.1.0``.

Deutsch:
    Erkennung der Formatversion einer sdb.xml Datei.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from xml.etree import ElementTree as ET

from .errors import UnsupportedFormatError

log = logging.getLogger(__name__)


class Dialect(Enum):
    LEGACY_100 = "1.0.0"
    LEGACY_110 = "1.1.0"
    LEGACY_120 = "1.2.0"
    E_FORMAT = "e1.1.0"

    @property
    def traits(self) -> "DialectTraits":
        return DIALECT_TRAITS[self]

    @property
    def is_e_format(self) -> bool:
        return self is Dialect.E_FORMAT


@dataclass(frozen=True)
class DialectTraits:
    """
    Constants that differ between the E-Format and the legacy dialects.

    Deutsch:
        Konstanten, in denen sich E-Format und ältere Formate unterscheiden.
    """

    mux_id_column: str
    has_programme_block: bool
    binary_checksum: bool
    checksum_prefix: str
    checksum_uppercase: bool
    compact_empty_tags: bool


_LEGACY_TRAITS = DialectTraits(
    mux_id_column="MuxRowId",
    has_programme_block=True,
    binary_checksum=False,
    checksum_prefix="0x",
    checksum_uppercase=True,
    compact_empty_tags=False,
)

DIALECT_TRAITS = {
    Dialect.LEGACY_100: _LEGACY_TRAITS,
    Dialect.LEGACY_110: _LEGACY_TRAITS,
    Dialect.LEGACY_120: _LEGACY_TRAITS,
    Dialect.E_FORMAT: DialectTraits(
        mux_id_column="MuxID",
        has_programme_block=False,
        binary_checksum=True,
        checksum_prefix="",
        checksum_uppercase=False,
        compact_empty_tags=True,
    ),
}

SUPPORTED_VERSIONS = {dialect.value: dialect for dialect in Dialect}


@dataclass(frozen=True)
class FormatVersion:
    dialect: Dialect
    version: str


def detect_dialect(sdb_xml: Optional[ET.Element]) -> FormatVersion:
    """
    Classify the ``<SdbXml>`` element by its version marker.

    Raises :class:`UnsupportedFormatError` when the marker is missing or the
    version is not one of ``e1.1.0``, ``1.0.0``, ``1.1.0`` and ``1.2.0``.
    """

    if sdb_xml is None:
        raise UnsupportedFormatError("missing SdbXml element")

    version = ""
    marker = sdb_xml.find("FormatVer")
    if marker is not None:
        version = (marker.text or "").strip()
    else:
        marker = sdb_xml.find("FormateVer")
        if marker is not None:
            version = "e" + (marker.text or "").strip()

    dialect = SUPPORTED_VERSIONS.get(version)
    if dialect is None:
        raise UnsupportedFormatError(f"unsupported file format version: {version!r}", version=version)
    log.debug("detected sdb.xml format version %s (%s)", version, dialect.name)
    return FormatVersion(dialect=dialect, version=version)
