from __future__ import annotations

import logging
from decimal import Decimal
from itertools import combinations
from pathlib import Path
from xml.etree import ElementTree as ET

import pytest

from sdbxml.columns import split_loop_columns
from sdbxml.dialect import Dialect
from sdbxml.errors import ColumnMismatchError, MalformedNumericError, MissingElementError, UnsupportedFormatError
from sdbxml.models import ID_SPACE_PER_KIND, LIST_KINDS, format_orbital_position
from sdbxml.serializer import SdbSerializer

from sdb_fixtures import SdbFactory, block, e_format_text, legacy_text, loop


def test_legacy_service_joined_with_programme(legacy_path: Path) -> None:
    database = SdbSerializer(legacy_path).load()
    terrestrial = database.get_channel_list("DVB-T")
    channel = terrestrial.find_by_record_id(10)
    assert channel is not None
    assert channel.service_type == 1
    assert channel.original_network_id == 1
    assert channel.transport_stream_id == 2
    assert channel.service_id == 100
    assert channel.old_program_number == 5
    assert channel.new_program_number == 5
    assert channel.favorites == 0b0010
    assert channel.favorite_letters == "B"
    assert not channel.deleted
    assert not channel.encrypted
    assert channel.signal_type == "tv"
    assert channel.frequency == Decimal(482)
    assert channel.dvb_channel == "22"
    assert channel.transponder is database.transponders[3]


def test_legacy_channel_without_programme_row_is_deleted(legacy_path: Path) -> None:
    database = SdbSerializer(legacy_path).load()
    channel = database.get_channel_list("DVB-T").find_by_record_id(12)
    assert channel is not None
    assert channel.deleted
    assert channel.old_program_number == -1
    assert channel.new_program_number == -1
    assert channel.programme_data == {}


def test_legacy_flags_and_satellite_tuning(legacy_path: Path) -> None:
    database = SdbSerializer(legacy_path).load()
    radio = database.get_channel_list("DVB-T").find_by_record_id(11)
    assert radio is not None
    assert radio.name == "Radio Eins & Zwei"
    assert radio.signal_type == "radio"
    assert radio.encrypted
    assert radio.favorites == 0

    sat_list = database.get_channel_list("DVB-S")
    assert "Hidden" not in sat_list.visible_columns
    assert "PcrPid" not in sat_list.visible_columns
    prosieben = sat_list.channels[0]
    assert prosieben.polarity == "H"
    assert prosieben.symbol_rate == 22000
    assert prosieben.frequency == Decimal(11494)
    assert database.transponders[0x20001].transport_stream_id == 0x44D
    assert database.get_channel_list("DVB-C").read_only
    assert not database.get_channel_list("DVB-T").read_only
    assert database.metadata["format_version"] == "1.1.0"


def test_overlay_keys_match_source_columns(legacy_path: Path, e_format_path: Path) -> None:
    database = SdbSerializer(legacy_path).load()
    channel = database.get_channel_list("DVB-T").find_by_record_id(10)
    assert list(channel.service_data) == [
        "ServiceRowId", "Type", "Onid", "Tsid", "Sid", "MuxRowId", "Name", "Attribute", "LogoId",
    ]
    assert channel.service_data["LogoId"] == "7"
    assert list(channel.programme_data) == ["ServiceRowId", "No", "Flag", "Lock"]
    assert channel.programme_data["Flag"] == "0x02"

    e_database = SdbSerializer(e_format_path).load()
    e_channel = e_database.get_channel_list("DVB-T").channels[0]
    root = ET.parse(e_format_path).getroot()
    service = root.find("SdbXml/SDBT/Service")
    assert list(e_channel.service_data) == list(split_loop_columns(service))
    assert "dvb_info" not in e_channel.service_data
    assert e_channel.programme_data == {}


def test_e_format_terrestrial(e_format_path: Path) -> None:
    database = SdbSerializer(e_format_path).load()
    channels = database.get_channel_list("DVB-T").channels
    assert [ch.old_program_number for ch in channels] == [1, 2, 3]

    first, second, third = channels
    assert first.favorites == 1
    assert not first.hidden
    assert not first.deleted
    assert not first.encrypted
    assert first.frequency == Decimal(474)
    assert first.symbol_rate == 6900
    assert first.original_network_id == 8468
    assert first.transport_stream_id == 12289
    assert first.dvb_channel == "21"

    # free CA mode is authoritative, the 2048 bit of the network mask is not
    assert second.encrypted
    assert second.favorites == 0

    assert third.deleted
    assert third.hidden
    assert third.signal_type == "radio"
    assert third.transport_stream_id == 12290


def test_e_format_satellites(e_format_path: Path) -> None:
    database = SdbSerializer(e_format_path).load()
    assert database.satellites[0x20001].orbital_position == "19.2E"
    assert database.satellites[0x20002].orbital_position == "15.2W"
    channel = database.get_channel_list("DVB-S").channels[0]
    assert channel.polarity == "H"
    assert channel.frequency == Decimal(11494)
    assert channel.symbol_rate == 22000
    assert channel.satellite == "Astra 1KR"
    assert channel.orbital_position == "19.2E"
    assert "Hidden" in database.get_channel_list("DVB-S").visible_columns
    assert database.metadata["format_version"] == "e1.1.0"


def test_orbital_position_rendering() -> None:
    assert format_orbital_position(-152) == "15.2W"
    assert format_orbital_position(192) == "19.2E"
    assert format_orbital_position(130) == "13E"
    assert format_orbital_position(1800) == "180E"


def test_id_offsets_never_collide() -> None:
    offsets = [kind.offset for kind in LIST_KINDS]
    assert len(set(offsets)) == len(offsets)
    for first, second in combinations(LIST_KINDS, 2):
        first_range = range(first.offset, first.offset + ID_SPACE_PER_KIND)
        second_range = range(second.offset, second.offset + ID_SPACE_PER_KIND)
        assert first_range.stop <= second_range.start or second_range.stop <= first_range.start


def test_ts_descr_ignored_when_row_count_differs(make_e_format: SdbFactory) -> None:
    text = e_format_text().replace(
        block("TS_Descr", loop("Onid", 8468, 8468), loop("Tsid", 12289, 12290)),
        block("TS_Descr", loop("Onid", 8468), loop("Tsid", 12289)),
    )
    database = SdbSerializer(make_e_format(text=text)).load()
    assert database.transponders[1].original_network_id == 0
    assert database.transponders[1].transport_stream_id == 0


def test_unresolved_satellite_is_fatal(make_e_format: SdbFactory) -> None:
    text = e_format_text().replace(
        loop("e_pol", 1) + "\n" + loop("ui2_satl_rec_id", 1),
        loop("e_pol", 1) + "\n" + loop("ui2_satl_rec_id", 9),
    )
    with pytest.raises(MissingElementError):
        SdbSerializer(make_e_format(text=text)).load()


def test_missing_multiplex_is_fatal(make_legacy: SdbFactory) -> None:
    text = legacy_text()
    start = text.index("<Multiplex>")
    end = text.index("</Multiplex>") + len("</Multiplex>\n")
    with pytest.raises(MissingElementError) as excinfo:
        SdbSerializer(make_legacy(text=text[:start] + text[end:])).load()
    assert excinfo.value.element == "Multiplex"
    assert excinfo.value.context == "SDBT"


def test_missing_programme_is_fatal(make_legacy: SdbFactory) -> None:
    text = legacy_text()
    start = text.index("<Programme>")
    end = text.index("</Programme>") + len("</Programme>\n")
    with pytest.raises(MissingElementError):
        SdbSerializer(make_legacy(text=text[:start] + text[end:])).load()


def test_section_without_satellites_is_legal(legacy_path: Path) -> None:
    database = SdbSerializer(legacy_path).load()
    assert database.satellites == {}
    assert sorted(database.transponders) == [1, 3, 0x20001]


@pytest.mark.parametrize(
    "content",
    [
        b"<NotSony><SdbXml/></NotSony>",
        b"<SdbRoot><SdbXml>",
        b"\xff\xfe garbage",
        b'<?xml version="1.0"?>\n<SdbRoot>\n<SdbXml>\n<FormatVer>9.9.9</FormatVer>\n</SdbXml>\n</SdbRoot>\n',
    ],
)
def test_unsupported_files(tmp_path: Path, content: bytes) -> None:
    path = tmp_path / "sdb.xml"
    path.write_bytes(content)
    with pytest.raises(UnsupportedFormatError):
        SdbSerializer(path).load()


def test_missing_checksum_element(tmp_path: Path) -> None:
    path = tmp_path / "sdb.xml"
    path.write_text(legacy_text().replace("<CheckSum>0</CheckSum>\n", ""), encoding="utf-8")
    with pytest.raises(MissingElementError):
        SdbSerializer(path).load()


def test_dialect_recorded_on_serializer(e_format_path: Path) -> None:
    serializer = SdbSerializer(e_format_path)
    assert serializer.format is None
    serializer.load()
    assert serializer.format is not None
    assert serializer.format.dialect is Dialect.E_FORMAT


def test_unknown_e_format_multiplex_falls_back_to_dvb_info(
    make_e_format: SdbFactory, caplog: pytest.LogCaptureFixture
) -> None:
    text = (
        e_format_text()
        .replace(loop("MuxID", 1, 1, 2), loop("MuxID", 1, 1, 9))
        .replace(loop("ui2_on_id", 0, 0, 0), loop("ui2_on_id", 0, 0, 8468))
        .replace(loop("ui2_ts_id", 0, 0, 0), loop("ui2_ts_id", 0, 0, 12345))
    )
    with caplog.at_level(logging.WARNING, logger="sdbxml.services"):
        database = SdbSerializer(make_e_format(text=text)).load()

    channel = database.get_channel_list("DVB-T").channels[2]
    assert channel.transponder is None
    assert channel.original_network_id == 8468
    assert channel.transport_stream_id == 12345
    assert "unknown multiplex 9" in caplog.text
    assert database.get_channel_list("DVB-T").channels[0].transponder is database.transponders[1]


@pytest.mark.parametrize(
    "dialect_text, original, broken, column",
    [
        ("e", loop("ui4_nw_mask", 24, 2056, 0), loop("ui4_nw_mask", 24, "abc", 0), "ui4_nw_mask"),
        ("legacy", loop("Type", 1, 2, 1), loop("Type", 1, "tv", 1), "Type"),
    ],
)
def test_malformed_strict_column_is_fatal(
    make_e_format: SdbFactory, make_legacy: SdbFactory, dialect_text: str, original: str, broken: str, column: str
) -> None:
    if dialect_text == "e":
        path = make_e_format(text=e_format_text().replace(original, broken))
    else:
        path = make_legacy(text=legacy_text().replace(original, broken))
    serializer = SdbSerializer(path)
    with pytest.raises(MalformedNumericError) as excinfo:
        serializer.load()
    assert excinfo.value.field == column
    assert serializer.document is None


def test_malformed_lenient_column_reads_as_zero(make_legacy: SdbFactory) -> None:
    text = legacy_text().replace(loop("Onid", "0x1", "0x1", "0x1"), loop("Onid", "0x1", "n/a", "0x1"))
    terrestrial = SdbSerializer(make_legacy(text=text)).load().get_channel_list("DVB-T")
    assert terrestrial.find_by_record_id(11).original_network_id == 0
    assert terrestrial.find_by_record_id(10).original_network_id == 1


def test_short_column_aborts_load_without_publishing(make_legacy: SdbFactory) -> None:
    text = legacy_text().replace(
        loop("Name", "Das Erste", "Radio Eins &amp; Zwei", "Shop TV"),
        loop("Name", "Das Erste", "Radio Eins &amp; Zwei"),
    )
    serializer = SdbSerializer(make_legacy(text=text))
    with pytest.raises(ColumnMismatchError) as excinfo:
        serializer.load()
    assert excinfo.value.element == "Name"
    assert excinfo.value.expected == 3
    assert excinfo.value.actual == 2
    assert serializer.document is None
    assert serializer.format is None
    assert not serializer.database.channel_lists
