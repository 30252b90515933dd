"""
Write-back of edited channel lists into the sdb.xml document.

Only the loop blocks of ``Service`` (and ``Programme`` in the legacy formats)
are regenerated. Every row is rebuilt from the channel's overlay map, so columns
the codec does not understand are written back exactly as they were read.

Deutsch:
    Zurückschreiben der bearbeiteten Senderlisten in das XML-Dokument.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List
from xml.etree import ElementTree as ET

from .checksum import patch_checksum
from .columns import is_loop_block, parse_int, render_like
from .dialect import Dialect
from .document import SdbDocument, serialize_document
from .models import Channel, ChannelDatabase, ChannelList
from .services import FLAG_FAVORITES, NW_MASK_VISIBLE, PROGRAM_NUMBER_LOW_MASK, PROGRAM_NUMBER_SHIFT, SectionBlocks

log = logging.getLogger(__name__)

ValueFunc = Callable[[Channel, str, str], str]


def render_document(document: SdbDocument, database: ChannelDatabase) -> str:
    """
    Update all loop blocks from ``database`` and return the complete file text
    including the recomputed checksum.
    """

    if document.format is None:
        raise ValueError("document has not been loaded")
    dialect = document.format.dialect
    for name, blocks in document.blocks.items():
        update_channel_list(dialect, database.get_channel_list(name), blocks)

    xml = serialize_document(document, dialect.traits.compact_empty_tags)
    return patch_checksum(dialect, xml)


def update_channel_list(dialect: Dialect, channel_list: ChannelList, blocks: SectionBlocks) -> None:
    channels = channel_list.channels
    if dialect.is_e_format or any(channel.name_modified for channel in channels):
        service_value = _e_format_service_value if dialect.is_e_format else _legacy_service_value
        count = update_block(
            blocks.service,
            sorted(channels, key=lambda ch: ch.record_order),
            accept=lambda ch: True,
            get_data=lambda ch: ch.service_data,
            get_value=service_value,
        )
        log.debug("%s: wrote %d service rows", channel_list.name, count)

    if blocks.programme is not None:
        columns = [child.tag for child in blocks.programme if is_loop_block(child)]
        count = update_block(
            blocks.programme,
            sorted(channels, key=lambda ch: (ch.new_program_number, ch.programme_order)),
            accept=lambda ch: not ch.deleted and ch.new_program_number >= 0,
            get_data=lambda ch: ch.programme_data or _new_programme_row(ch, columns),
            get_value=_programme_value,
        )
        log.debug("%s: wrote %d programme rows", channel_list.name, count)


def update_block(
    parent: ET.Element,
    channels: Iterable[Channel],
    accept: Callable[[Channel], bool],
    get_data: Callable[[Channel], Dict[str, str]],
    get_value: ValueFunc,
) -> int:
    """
    Rebuild the loop children of ``parent`` from the accepted channels.

    Returns the number of rows written; every loop attribute is set to it.
    """

    lines: Dict[str, List[str]] = {child.tag: [] for child in parent if is_loop_block(child)}
    count = 0
    for channel in channels:
        if not accept(channel):
            continue
        for column, value in get_data(channel).items():
            lines[column].append(get_value(channel, column, value))
        count += 1

    for child in parent:
        if not is_loop_block(child):
            continue
        child.text = "\n" + "".join(value + "\n" for value in lines[child.tag])
        child.set("loop", str(count))
    return count


def _legacy_service_value(channel: Channel, column: str, value: str) -> str:
    if column == "Name":
        return channel.name if channel.name_modified else value
    return value


def _e_format_service_value(channel: Channel, column: str, value: str) -> str:
    if column == "Name":
        return channel.name if channel.name_modified else value
    if column == "b_deleted_by_user":
        # 1 = not deleted
        return "0" if channel.deleted else "1"
    if column == "No":
        if channel.new_program_number < 0:
            return value
        old = parse_int(value)
        packed = ((channel.new_program_number << PROGRAM_NUMBER_SHIFT) | (old & PROGRAM_NUMBER_LOW_MASK)) & 0xFFFFFFFF
        if value.strip().lower().startswith("0x"):
            return render_like(value, packed)
        return str(_to_int32(packed))
    if column == "ui4_nw_mask":
        old = parse_int(value)
        mask = (channel.favorites << 4) | (0 if channel.hidden else NW_MASK_VISIBLE) | (old & ~0xF8)
        return render_like(value, mask)
    return value


def _programme_value(channel: Channel, column: str, value: str) -> str:
    if column == "No":
        return render_like(value, channel.new_program_number)
    if column == "Flag":
        return render_like(value, (parse_int(value) & ~FLAG_FAVORITES) | (channel.favorites & FLAG_FAVORITES))
    return value


def _new_programme_row(channel: Channel, columns: List[str]) -> Dict[str, str]:
    # a channel restored from the deleted state has no programme row to start from
    row = {column: "0" for column in columns}
    if "ServiceRowId" in row:
        row["ServiceRowId"] = str(channel.record_id)
    return row


def _to_int32(value: int) -> int:
    """The ``No`` cell is a signed 32 bit integer, program numbers above 8191 make it negative."""

    return value - (1 << 32) if value >= 1 << 31 else value
