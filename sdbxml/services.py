"""
Channel assembly from the Service and Programme blocks.

The E-Format keeps everything in one ``Service`` block (plus its ``dvb_info``
sub-block). The legacy formats split the data into ``Service`` (what exists in
the database) and ``Programme`` (what is visible in the programme list), joined
through the ``ServiceRowId`` column.

Deutsch:
    Aufbau der Sender aus den Service- und Programme-Blöcken.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional
from xml.etree import ElementTree as ET

from . import lookup
from .columns import parse_int, parse_strict, require_column, row_values, split_loop_columns
from .dialect import FormatVersion
from .errors import MissingElementError
from .models import Channel, ChannelDatabase, ChannelList, ListKind

log = logging.getLogger(__name__)

PROGRAM_NUMBER_SHIFT = 18
PROGRAM_NUMBER_LOW_MASK = (1 << PROGRAM_NUMBER_SHIFT) - 1
NW_MASK_VISIBLE = 0x08
NW_MASK_FAVORITES = 0xF0
ATTRIBUTE_ENCRYPTED = 0x08
FLAG_FAVORITES = 0x0F

E_SERVICE_COLUMNS = ("ui2_svl_rec_id", "No", "b_deleted_by_user", "ui4_nw_mask", "ui2_prog_id", "Name", "MuxID")
LEGACY_SERVICE_COLUMNS = ("ServiceRowId", "Type", "Onid", "Tsid", "Sid", "Name", "MuxRowId", "Attribute")
PROGRAMME_COLUMNS = ("ServiceRowId", "No", "Flag")


@dataclass
class SectionBlocks:
    """The elements of one section that are rewritten on save."""

    service: ET.Element
    programme: Optional[ET.Element] = None


def assemble_channels(
    section: ET.Element,
    channel_list: ChannelList,
    fmt: FormatVersion,
    database: ChannelDatabase,
) -> SectionBlocks:
    if fmt.dialect.traits.has_programme_block:
        return _assemble_legacy(section, channel_list, database)
    return _assemble_e_format(section, channel_list, database)


def _assemble_e_format(section: ET.Element, channel_list: ChannelList, database: ChannelDatabase) -> SectionBlocks:
    kind = channel_list.kind
    service_node = section.find("Service")
    if service_node is None:
        raise MissingElementError("Service", kind.section)
    svc_data = split_loop_columns(service_node)
    dvb_data = split_loop_columns(service_node.find("dvb_info"))

    for name in E_SERVICE_COLUMNS:
        require_column(svc_data, name, kind.section)
    rec_ids = svc_data["ui2_svl_rec_id"]
    count = len(rec_ids)
    free_ca_mode = require_column(dvb_data, "t_free_ca_mode", kind.section, count)
    service_types = require_column(dvb_data, "ui1_sdt_service_type", kind.section, count)

    for index in range(count):
        row = row_values(svc_data, index, count, kind.section)
        channel = Channel(list_kind=kind, record_order=index, record_id=parse_strict(rec_ids[index], "ui2_svl_rec_id"))
        channel.old_program_number = (parse_int(row["No"]) & 0xFFFFFFFF) >> PROGRAM_NUMBER_SHIFT
        channel.deleted = row["b_deleted_by_user"] != "1"
        nw_mask = parse_strict(row["ui4_nw_mask"], "ui4_nw_mask")
        channel.hidden = (nw_mask & NW_MASK_VISIBLE) == 0
        channel.favorites = (nw_mask & NW_MASK_FAVORITES) >> 4
        channel.encrypted = free_ca_mode[index] == "1"
        channel.service_id = parse_strict(row["ui2_prog_id"], "ui2_prog_id")
        channel.name = row["Name"]

        transponder = database.transponders.get(parse_strict(row["MuxID"], "MuxID") + kind.offset)
        if transponder is not None:
            channel.copy_tuning(transponder)
            channel.original_network_id = transponder.original_network_id
            channel.transport_stream_id = transponder.transport_stream_id
            channel.dvb_channel = _dvb_channel(kind, channel)
        else:
            log.warning("%s: channel %s references unknown multiplex %s", kind.name, channel.name, row["MuxID"])
            channel.original_network_id = parse_int(_cell(dvb_data, "ui2_on_id", index))
            channel.transport_stream_id = parse_int(_cell(dvb_data, "ui2_ts_id", index))

        channel.service_type = parse_strict(service_types[index], "ui1_sdt_service_type")
        channel.signal_type = lookup.classify_service_type(channel.service_type)
        channel.new_program_number = channel.old_program_number
        channel.service_data = row
        database.add_channel(channel_list, channel)

    log.debug("%s: %d services", kind.name, count)
    return SectionBlocks(service=service_node)


def _assemble_legacy(section: ET.Element, channel_list: ChannelList, database: ChannelDatabase) -> SectionBlocks:
    kind = channel_list.kind
    service_node = section.find("Service")
    if service_node is None:
        raise MissingElementError("Service", kind.section)
    programme_node = section.find("Programme")
    if programme_node is None:
        raise MissingElementError("Programme", kind.section)
    svc_data = split_loop_columns(service_node)
    prog_data = split_loop_columns(programme_node)

    for name in LEGACY_SERVICE_COLUMNS:
        require_column(svc_data, name, kind.section)
    for name in PROGRAMME_COLUMNS:
        require_column(prog_data, name, kind.section)

    by_row_id: Dict[int, Channel] = {}
    row_ids = svc_data["ServiceRowId"]
    count = len(row_ids)
    for index in range(count):
        row = row_values(svc_data, index, count, kind.section)
        row_id = parse_strict(row["ServiceRowId"], "ServiceRowId")
        # present in the database but not in the programme list until proven otherwise
        channel = Channel(list_kind=kind, record_order=index, record_id=row_id, deleted=True)
        channel.service_type = parse_strict(row["Type"], "Type")
        channel.original_network_id = parse_int(row["Onid"])
        channel.transport_stream_id = parse_int(row["Tsid"])
        channel.service_id = parse_int(row["Sid"])
        channel.name = row["Name"]
        transponder = database.transponders.get(parse_strict(row["MuxRowId"], "MuxRowId") + kind.offset)
        if transponder is not None:
            channel.copy_tuning(transponder)
            channel.dvb_channel = _dvb_channel(kind, channel)
        channel.signal_type = lookup.classify_service_type(channel.service_type)
        channel.encrypted = (parse_int(row["Attribute"]) & ATTRIBUTE_ENCRYPTED) != 0
        channel.service_data = row
        by_row_id[row_id] = channel
        database.add_channel(channel_list, channel)

    prog_row_ids = prog_data["ServiceRowId"]
    prog_count = len(prog_row_ids)
    for index in range(prog_count):
        row = row_values(prog_data, index, prog_count, kind.section)
        channel = by_row_id.get(parse_strict(row["ServiceRowId"], "ServiceRowId"))
        if channel is None:
            log.debug("%s: programme row %d references unknown service %s", kind.name, index, row["ServiceRowId"])
            continue
        channel.deleted = False
        channel.old_program_number = parse_strict(row["No"], "No")
        channel.favorites = parse_strict(row["Flag"], "Flag") & FLAG_FAVORITES
        channel.programme_order = index
        channel.programme_data = row

    for channel in channel_list.channels:
        channel.new_program_number = channel.old_program_number
    log.debug("%s: %d services, %d programmes", kind.name, count, prog_count)
    return SectionBlocks(service=service_node, programme=programme_node)


def _cell(columns: Dict[str, List[str]], name: str, index: int) -> Optional[str]:
    values = columns.get(name)
    if values is None or index >= len(values):
        return None
    return values[index]


def _dvb_channel(kind: ListKind, channel: Channel) -> str:
    if kind.delivery == "cable":
        return lookup.dvbc_channel_name(channel.frequency)
    if kind.delivery == "terrestrial":
        number = lookup.dvbt_channel(channel.frequency)
        return str(number) if number else ""
    return ""
