"""MiniFinder sentence decoding."""

from minifinder.protocol.builder import PatternBuilder, SentencePattern
from minifinder.protocol.fields import DateTimeFormat, FieldParser
from minifinder.protocol.flags import DecodedFlags, decode_flags
from minifinder.protocol.framing import extract_marker, split_frames, strip_frame
from minifinder.protocol.patterns import PATTERNS
from minifinder.protocol.types import (
    Alarm,
    AttributeKey,
    DecodeEvent,
    DecodeEventKind,
    Position,
)

__all__ = [
    "PATTERNS",
    "Alarm",
    "AttributeKey",
    "DateTimeFormat",
    "DecodeEvent",
    "DecodeEventKind",
    "DecodedFlags",
    "FieldParser",
    "PatternBuilder",
    "Position",
    "SentencePattern",
    "decode_flags",
    "extract_marker",
    "split_frames",
    "strip_frame",
]
