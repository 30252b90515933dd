"""
Load/save facade for Sony sdb.xml channel lists.

Deutsch:
    Laden und Speichern von Sony sdb.xml Senderlisten.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from .checksum import verify_checksum
from .dialect import FormatVersion, detect_dialect
from .document import SdbDocument, read_document
from .errors import MissingElementError
from .models import LIST_KINDS, UNSUPPORTED_COLUMNS, ChannelDatabase, ChannelList, list_kind_for_section
from .services import assemble_channels
from .topology import build_satellites, build_transponders
from .writer import render_document

log = logging.getLogger(__name__)

PathLike = Union[str, Path]


class SdbSerializer:
    """
    Reads an sdb.xml file into a :class:`ChannelDatabase` and writes the
    edited channels back into the same document.

    Deutsch:
        Liest eine sdb.xml in eine :class:`ChannelDatabase` und schreibt
        geänderte Sender in dasselbe Dokument zurück.
    """

    def __init__(self, path: PathLike):
        self.path = Path(path)
        self.database = ChannelDatabase()
        self.document: Optional[SdbDocument] = None

    @property
    def format(self) -> Optional[FormatVersion]:
        return self.document.format if self.document else None

    def load(self) -> ChannelDatabase:
        """
        Parse the file, build all channel lists and verify the checksum.

        Nothing is published to :attr:`database` unless every step succeeds.
        """

        document = read_document(self.path)
        sdb_xml = document.sdb_xml
        fmt = detect_dialect(sdb_xml)
        document.format = fmt

        database = ChannelDatabase()
        for kind in LIST_KINDS:
            database.add_channel_list(ChannelList(kind=kind))

        for section in sdb_xml:
            if not isinstance(section.tag, str):
                continue
            kind = list_kind_for_section(section.tag)
            if kind is None:
                continue
            channel_list = database.get_channel_list(kind.name)
            channel_list.read_only = section.findtext("Editable") == "F"
            build_satellites(section, kind, database)
            build_transponders(section, kind, fmt, database)
            document.blocks[kind.name] = assemble_channels(section, channel_list, fmt, database)

        self._configure_columns(database, fmt)

        checksum_node = document.root.find("CheckSum")
        if checksum_node is None:
            raise MissingElementError("CheckSum")
        verify_checksum(fmt.dialect, document.content, document.text, checksum_node.text or "")

        database.metadata["format_version"] = fmt.version
        database.metadata["newline"] = "CRLF" if document.newline == "\r\n" else "LF"
        self.document = document
        self.database = database
        log.info(
            "loaded %s (format %s): %d channels, %d transponders, %d satellites",
            self.path,
            fmt.version,
            sum(1 for _ in database.iter_channels()),
            len(database.transponders),
            len(database.satellites),
        )
        return database

    def save(self, output_path: Optional[PathLike] = None) -> Path:
        """
        Write the document with regenerated loop blocks and a fresh checksum.

        The in-memory model is not validated.
        """

        if self.document is None:
            raise RuntimeError("load() must be called before save()")
        target = Path(output_path) if output_path is not None else self.path
        xml = render_document(self.document, self.database)
        # newline="" keeps the document's own line endings
        with target.open("w", encoding="utf-8", newline="") as fh:
            fh.write(xml)
        log.info("saved %s", target)
        return target

    @staticmethod
    def _configure_columns(database: ChannelDatabase, fmt: FormatVersion) -> None:
        for channel_list in database.channel_lists.values():
            channel_list.hide_columns(UNSUPPORTED_COLUMNS)
            if not fmt.dialect.is_e_format and channel_list.kind.delivery == "sat":
                channel_list.hide_columns(("Hidden", "Satellite"))
