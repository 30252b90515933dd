"""
Codec for Sony sdb.xml channel lists.

Deutsch:
    Codec für Sony sdb.xml Senderlisten.
"""

from __future__ import annotations

__version__ = "0.3.0"

from .dialect import Dialect, FormatVersion, detect_dialect
from .errors import (
    ChecksumMismatchError,
    ColumnMismatchError,
    MalformedNumericError,
    MissingElementError,
    SdbError,
    UnsupportedFormatError,
)
from .models import Channel, ChannelDatabase, ChannelList, ListKind, Satellite, Transponder
from .serializer import SdbSerializer

__all__ = [
    "__version__",
    "Channel",
    "ChannelDatabase",
    "ChannelList",
    "ChecksumMismatchError",
    "ColumnMismatchError",
    "Dialect",
    "FormatVersion",
    "ListKind",
    "MalformedNumericError",
    "MissingElementError",
    "Satellite",
    "SdbError",
    "SdbSerializer",
    "Transponder",
    "UnsupportedFormatError",
    "detect_dialect",
]
