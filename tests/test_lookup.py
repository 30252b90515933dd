from __future__ import annotations

from decimal import Decimal

from sdbxml import lookup


def test_classify_service_type() -> None:
    assert lookup.classify_service_type(1) == "tv"
    assert lookup.classify_service_type(0x19) == "tv"
    assert lookup.classify_service_type(2) == "radio"
    assert lookup.classify_service_type(0x0A) == "radio"
    assert lookup.classify_service_type(0x0C) == "data"


def test_dvbc_channel_names() -> None:
    assert lookup.dvbc_channel_name(306) == "S21"
    assert lookup.dvbc_channel_name(Decimal("466")) == "S41"
    assert lookup.dvbc_channel_name(474) == "K21"
    assert lookup.dvbc_channel_name(Decimal("858.5")) == "K69"
    assert lookup.dvbc_channel_name(231) == "S11"
    assert lookup.dvbc_channel_name(100) == ""


def test_dvbt_channel_numbers() -> None:
    assert lookup.dvbt_channel(Decimal("177.5")) == 5
    assert lookup.dvbt_channel(Decimal("226.5")) == 12
    assert lookup.dvbt_channel(474) == 21
    assert lookup.dvbt_channel(858) == 69
    assert lookup.dvbt_channel(100) == 0
