"""MiniFinder GPS tracker protocol decoding."""

from minifinder.decoder import MiniFinderDecoder
from minifinder.protocol import (
    AttributeKey,
    DecodeEvent,
    DecodeEventKind,
    Position,
)
from minifinder.session import ConnectionContext, DeviceRegistry, DeviceSession
from minifinder.transport import SentenceReader

__all__ = [
    "AttributeKey",
    "ConnectionContext",
    "DecodeEvent",
    "DecodeEventKind",
    "DeviceRegistry",
    "DeviceSession",
    "MiniFinderDecoder",
    "Position",
    "SentenceReader",
]
