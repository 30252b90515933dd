"""
Satellite and transponder construction from the Multiplex blocks.

Deutsch:
    Aufbau von Satelliten und Transpondern aus den Multiplex-Blöcken.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List
from xml.etree import ElementTree as ET

from .columns import Columns, parse_int, parse_strict, require_column, split_loop_columns
from .dialect import FormatVersion
from .errors import MissingElementError
from .models import ChannelDatabase, ListKind, Satellite, Transponder, format_orbital_position

log = logging.getLogger(__name__)


def build_satellites(section: ET.Element, kind: ListKind, database: ChannelDatabase) -> List[Satellite]:
    """
    Read the list-local ``SATL_REC`` block. Sections without one have no satellites.
    """

    block = section.find("SATL_REC")
    if block is None:
        return []
    data = split_loop_columns(block)
    ids = require_column(data, "ui2_satl_rec_id", kind.section)
    names = require_column(data, "ac_sat_name", kind.section, len(ids))
    positions = require_column(data, "i2_orb_pos", kind.section, len(ids))

    satellites: List[Satellite] = []
    for index, raw_id in enumerate(ids):
        satellite = Satellite(
            id=parse_strict(raw_id, "ui2_satl_rec_id") + kind.offset,
            name=names[index],
            orbital_position=format_orbital_position(parse_strict(positions[index], "i2_orb_pos")),
        )
        database.add_satellite(satellite)
        satellites.append(satellite)
    log.debug("%s: %d satellites", kind.name, len(satellites))
    return satellites


def build_transponders(
    section: ET.Element,
    kind: ListKind,
    fmt: FormatVersion,
    database: ChannelDatabase,
) -> List[Transponder]:
    """
    Read the mandatory ``Multiplex`` block of a section.
    """

    mux = section.find("Multiplex")
    if mux is None:
        raise MissingElementError("Multiplex", kind.section)

    data = split_loop_columns(mux)
    mux_ids = require_column(data, fmt.dialect.traits.mux_id_column, kind.section)
    if fmt.dialect.is_e_format:
        transponders = _build_e_format(data, mux_ids, kind, database)
        _apply_ts_descr(section, transponders, kind)
    else:
        transponders = _build_legacy(mux, data, mux_ids, kind)

    for transponder in transponders:
        database.add_transponder(transponder)
    log.debug("%s: %d transponders", kind.name, len(transponders))
    return transponders


def _build_e_format(data: Columns, mux_ids: List[str], kind: ListKind, database: ChannelDatabase) -> List[Transponder]:
    freq_column = "ui4_freq" if "ui4_freq" in data else "SysFreq"
    expected = len(mux_ids)
    frequencies = require_column(data, freq_column, kind.section, expected)
    symbol_rates = require_column(data, "ui4_sym_rate", kind.section, expected) if "ui4_sym_rate" in data else None
    is_sat = kind.delivery == "sat"
    if is_sat:
        polarities = require_column(data, "e_pol", kind.section, expected)
        sat_ids = require_column(data, "ui2_satl_rec_id", kind.section, expected)

    transponders: List[Transponder] = []
    for index, raw_id in enumerate(mux_ids):
        frequency = Decimal(parse_strict(frequencies[index], freq_column))
        symbol_rate = parse_strict(symbol_rates[index], "ui4_sym_rate") if symbol_rates is not None else 0
        transponder = Transponder(
            id=parse_strict(raw_id, "MuxID") + kind.offset,
            frequency=frequency,
            symbol_rate=symbol_rate,
        )
        if is_sat:
            transponder.polarity = "H" if polarities[index] == "1" else "V"
            sat_id = parse_strict(sat_ids[index], "ui2_satl_rec_id") + kind.offset
            satellite = database.satellites.get(sat_id)
            if satellite is None:
                raise MissingElementError(f"satellite {sat_id - kind.offset}", kind.section)
            transponder.satellite = satellite
        else:
            # stored in Hz and sym/s
            transponder.frequency = frequency / 1_000_000
            transponder.symbol_rate = symbol_rate // 1000
        transponders.append(transponder)
    return transponders


def _apply_ts_descr(section: ET.Element, transponders: List[Transponder], kind: ListKind) -> None:
    # TS_Descr has no key column, its rows are matched to Multiplex rows by position
    block = section.find("TS_Descr")
    if block is None:
        return
    data = split_loop_columns(block)
    onids = data.get("Onid", [])
    tsids = data.get("Tsid", [])
    if len(onids) != len(transponders) or len(tsids) != len(transponders):
        log.debug(
            "%s: TS_Descr has %d rows for %d multiplexes, ignored", kind.name, len(onids), len(transponders)
        )
        return
    for transponder, onid, tsid in zip(transponders, onids, tsids):
        transponder.original_network_id = parse_int(onid)
        transponder.transport_stream_id = parse_int(tsid)


def _build_legacy(mux: ET.Element, data: Columns, mux_ids: List[str], kind: ListKind) -> List[Transponder]:
    rf_param = mux.find("RfParam")
    if rf_param is None:
        raise MissingElementError("RfParam", kind.section)
    rf_data = split_loop_columns(rf_param)
    system_data = split_loop_columns(rf_param.find(kind.system))
    expected = len(mux_ids)
    frequencies = require_column(rf_data, "Freq", kind.section, expected)
    onids = require_column(data, "Onid", kind.section, expected)
    tsids = require_column(data, "Tsid", kind.section, expected)
    polarities = require_column(system_data, "Pola", kind.section, expected) if "Pola" in system_data else None
    symbol_rates = (
        require_column(system_data, "SymbolRate", kind.section, expected) if "SymbolRate" in system_data else None
    )

    transponders: List[Transponder] = []
    for index, raw_id in enumerate(mux_ids):
        transponder = Transponder(
            id=parse_strict(raw_id, "MuxRowId") + kind.offset,
            # stored in kHz
            frequency=Decimal(parse_strict(frequencies[index], "Freq") // 1000),
            original_network_id=parse_int(onids[index]),
            transport_stream_id=parse_int(tsids[index]),
        )
        if polarities is not None:
            transponder.polarity = "H" if polarities[index] == "H_L" else "V"
        if symbol_rates is not None:
            transponder.symbol_rate = parse_strict(symbol_rates[index], "SymbolRate") // 1000
        transponders.append(transponder)
    return transponders
