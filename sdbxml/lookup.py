"""
Lookup tables for DVB channel numbers and service type classification.

Deutsch:
    Nachschlagetabellen für Kanalnummern und Service-Typen.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Union

logger = logging.getLogger(__name__)

Number = Union[int, Decimal]

# Service types (ETSI EN 300 468, service_descriptor)
RADIO_SERVICE_TYPES = {
    0x02,  # digital radio sound
    0x07,  # FM radio
    0x0A,  # advanced codec digital radio sound
}

TV_SERVICE_TYPES = {
    0x01,  # digital television
    0x04,  # NVOD reference
    0x05,  # NVOD time-shifted
    0x06,  # mosaic
    0x0B,  # advanced codec mosaic
    0x11,  # MPEG-2 HD
    0x16,  # advanced codec SD
    0x17,  # advanced codec SD NVOD time-shifted
    0x18,  # advanced codec SD NVOD reference
    0x19,  # advanced codec HD
    0x1A,  # advanced codec HD NVOD time-shifted
    0x1B,  # advanced codec HD NVOD reference
    0x1C,  # advanced codec frame compatible 3D
    0x1F,  # HEVC
    0x20,  # HEVC UHD
}

# Cable channel plan (centre frequency in MHz -> channel name)
DVBC_CHANNELS: Dict[int, str] = {}
for _number in range(5, 13):
    DVBC_CHANNELS[177 + 7 * (_number - 5)] = f"K{_number:02d}"
for _number in range(11, 21):
    DVBC_CHANNELS[231 + 7 * (_number - 11)] = f"S{_number:02d}"
for _number in range(21, 42):
    DVBC_CHANNELS[306 + 8 * (_number - 21)] = f"S{_number:02d}"
for _number in range(21, 70):
    DVBC_CHANNELS[474 + 8 * (_number - 21)] = f"K{_number:02d}"


def classify_service_type(service_type: int) -> str:
    """
    Map a DVB service type to ``"tv"``, ``"radio"`` or ``"data"``.
    """

    if service_type in RADIO_SERVICE_TYPES:
        return "radio"
    if service_type in TV_SERVICE_TYPES:
        return "tv"
    logger.debug("service type %d classified as data", service_type)
    return "data"


def dvbc_channel_name(frequency: Number) -> str:
    """
    Return the cable channel name (``"S21"``, ``"K45"``, ...) for a frequency in MHz.

    Frequencies more than 1 MHz away from a channel centre yield an empty string.
    """

    rounded = int(Decimal(frequency).to_integral_value())
    for candidate in (rounded, rounded - 1, rounded + 1):
        name = DVBC_CHANNELS.get(candidate)
        if name and abs(Decimal(frequency) - candidate) <= 1:
            return name
    return ""


def dvbt_channel(frequency: Number) -> int:
    """
    Return the terrestrial channel number for a frequency in MHz, 0 when unknown.

    Band III uses a 7 MHz raster starting with channel 5 at 177.5 MHz, bands
    IV/V an 8 MHz raster starting with channel 21 at 474 MHz.
    """

    freq = Decimal(frequency)
    if 174 <= freq < 230:
        return int(((freq - Decimal("177.5")) / 7).to_integral_value()) + 5
    if 470 <= freq <= 862:
        return int(((freq - 306) / 8).to_integral_value())
    return 0
