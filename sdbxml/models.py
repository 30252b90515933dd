"""
Shared data models for the sdbxml codec.

Deutsch:
    Gemeinsame Datenmodelle: Listenarten, Satelliten, Transponder, Sender.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

DeliverySystem = str  # "sat", "cable", "terrestrial"

FAVORITE_LETTERS = "ABCD"

DEFAULT_VISIBLE_COLUMNS: List[str] = [
    "OldPosition",
    "Position",
    "Name",
    "Favorites",
    "Deleted",
    "Hidden",
    "Encrypted",
    "ServiceType",
    "ServiceId",
    "OriginalNetworkId",
    "TransportStreamId",
    "Frequency",
    "SymbolRate",
    "Polarity",
    "Channel",
    "Satellite",
    "SatPosition",
    "PcrPid",
    "VideoPid",
    "AudioPid",
    "Lock",
    "Skip",
    "ShortName",
    "Provider",
]

# columns the file format has no data for
UNSUPPORTED_COLUMNS = ("PcrPid", "VideoPid", "AudioPid", "Lock", "Skip", "ShortName", "Provider")


@dataclass(frozen=True)
class ListKind:
    """
    One of the five channel list sections of an sdb.xml file.

    ``offset`` keeps satellite and transponder ids of different sections apart
    in the shared id space of a :class:`ChannelDatabase`.

    Deutsch:
        Eine der fünf Listenarten einer sdb.xml Datei.
    """

    section: str
    name: str
    system: str
    delivery: DeliverySystem
    offset: int


LIST_KINDS: List[ListKind] = [
    ListKind(section="SDBT", name="DVB-T", system="DvbT", delivery="terrestrial", offset=0x00000),
    ListKind(section="SDBC", name="DVB-C", system="DvbC", delivery="cable", offset=0x10000),
    ListKind(section="SDBGS", name="DVB-S", system="DvbS", delivery="sat", offset=0x20000),
    ListKind(section="SDBPS", name="DVB-S Preset", system="DvbS", delivery="sat", offset=0x30000),
    ListKind(section="SDBCIS", name="DVB-S Ci", system="DvbS", delivery="sat", offset=0x40000),
]

ID_SPACE_PER_KIND = 0x10000


def list_kind_for_section(tag: str) -> Optional[ListKind]:
    lowered = tag.lower()
    for kind in LIST_KINDS:
        if kind.section.lower() == lowered:
            return kind
    return None


def format_orbital_position(raw: int) -> str:
    """
    Render a tenths-of-degree orbital position, e.g. ``-152`` -> ``"15.2W"``.
    """

    degrees = abs(Decimal(raw) / 10)
    return f"{degrees}{'W' if raw < 0 else 'E'}"


def favorites_to_letters(mask: int) -> str:
    return "".join(letter for bit, letter in enumerate(FAVORITE_LETTERS) if mask & (1 << bit))


def letters_to_favorites(letters: str) -> int:
    mask = 0
    for letter in letters.upper():
        index = FAVORITE_LETTERS.find(letter)
        if index < 0:
            raise ValueError(f"unknown favorites list {letter!r}")
        mask |= 1 << index
    return mask


@dataclass(frozen=True)
class Satellite:
    id: int
    name: str
    orbital_position: str


@dataclass(eq=False)
class Transponder:
    """
    Multiplex/transponder of one channel list.

    Deutsch:
        Transponder bzw. Multiplex einer Senderliste.
    """

    id: int
    frequency: Decimal
    symbol_rate: int = 0
    polarity: str = " "
    original_network_id: int = 0
    transport_stream_id: int = 0
    satellite: Optional[Satellite] = None


@dataclass(eq=False)
class Channel:
    """
    A single service of a channel list.

    ``service_data`` and ``programme_data`` hold every cell of the source rows
    keyed by column name, in document column order. They are written back
    verbatim except for the fields the editor is allowed to change.

    Deutsch:
        Ein Sender einer Senderliste inkl. der Originalwerte aller Spalten.
    """

    list_kind: ListKind
    record_order: int
    record_id: int
    name: str = ""
    service_id: int = 0
    service_type: int = 0
    signal_type: str = "tv"
    old_program_number: int = -1
    new_program_number: int = -1
    deleted: bool = False
    hidden: bool = False
    encrypted: bool = False
    favorites: int = 0
    transponder: Optional[Transponder] = None
    frequency: Decimal = Decimal(0)
    symbol_rate: int = 0
    polarity: str = " "
    original_network_id: int = 0
    transport_stream_id: int = 0
    satellite: Optional[str] = None
    orbital_position: Optional[str] = None
    dvb_channel: str = ""
    programme_order: int = -1
    name_modified: bool = False
    service_data: Dict[str, str] = field(default_factory=dict)
    programme_data: Dict[str, str] = field(default_factory=dict)

    def rename(self, name: str) -> None:
        if name != self.name:
            self.name = name
            self.name_modified = True

    def copy_tuning(self, transponder: Transponder) -> None:
        self.transponder = transponder
        self.frequency = transponder.frequency
        self.symbol_rate = transponder.symbol_rate
        self.polarity = transponder.polarity
        if transponder.satellite is not None:
            self.satellite = transponder.satellite.name
            self.orbital_position = transponder.satellite.orbital_position

    @property
    def favorite_letters(self) -> str:
        return favorites_to_letters(self.favorites)


@dataclass
class ChannelList:
    kind: ListKind
    channels: List[Channel] = field(default_factory=list)
    read_only: bool = False
    visible_columns: List[str] = field(default_factory=lambda: list(DEFAULT_VISIBLE_COLUMNS))

    @property
    def name(self) -> str:
        return self.kind.name

    def hide_columns(self, names: Iterable[str]) -> None:
        hidden = set(names)
        self.visible_columns = [name for name in self.visible_columns if name not in hidden]

    def find_by_record_id(self, record_id: int) -> Optional[Channel]:
        for channel in self.channels:
            if channel.record_id == record_id:
                return channel
        return None

    def find_by_name(self, name: str) -> List[Channel]:
        return [channel for channel in self.channels if channel.name == name]


@dataclass
class ChannelDatabase:
    """
    Container for all channel lists, satellites and transponders of a file.

    Deutsch:
        Container für alle Senderlisten, Satelliten und Transponder.
    """

    channel_lists: Dict[str, ChannelList] = field(default_factory=dict)
    satellites: Dict[int, Satellite] = field(default_factory=dict)
    transponders: Dict[int, Transponder] = field(default_factory=dict)
    metadata: Dict[str, str] = field(default_factory=dict)

    def add_channel_list(self, channel_list: ChannelList) -> ChannelList:
        self.channel_lists[channel_list.name] = channel_list
        return channel_list

    def get_channel_list(self, name: str) -> ChannelList:
        try:
            return self.channel_lists[name]
        except KeyError:
            raise KeyError(f"channel list {name} not present") from None

    def add_satellite(self, satellite: Satellite) -> None:
        self.satellites[satellite.id] = satellite

    def add_transponder(self, transponder: Transponder) -> None:
        self.transponders[transponder.id] = transponder

    def add_channel(self, channel_list: ChannelList, channel: Channel) -> None:
        channel_list.channels.append(channel)

    def iter_channels(self) -> Iterable[Channel]:
        for channel_list in self.channel_lists.values():
            yield from channel_list.channels
