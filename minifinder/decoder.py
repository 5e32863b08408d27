"""MiniFinder sentence decoder.

Turns one delimited sentence into at most one ``Position``. The decoder is
stateless: everything connection-specific lives in the ``DeviceSession`` the
registry hands back, so one instance can serve every connection from any
number of threads.

Decoding steps:
    1. Strip the frame and extract the type marker
    2. Registration (marker 1): bind the connection, produce nothing
    3. Check status (marker 4): report as unsupported
    4. Full-match the marker's pattern
    5. Resolve the connection's device; drop silently if there is none
    6. Build the record for the sentence type

Steps 1, 3 and 4 report a ``DecodeEvent`` when they reject a sentence. An
unresolved device is expected while a connection is waiting for its
registration sentence and is not reported.
"""

import dataclasses
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from minifinder.protocol.fields import DateTimeFormat, FieldParser
from minifinder.protocol.flags import decode_flags
from minifinder.protocol.framing import extract_marker, strip_frame
from minifinder.protocol.patterns import (
    PATTERNS,
    REGISTRATION_MARKER,
    SUPPORTED_MARKERS,
    UNSUPPORTED_MARKERS,
)
from minifinder.protocol.types import (
    AttributeKey,
    DecodeEvent,
    DecodeEventKind,
    Position,
)
from minifinder.session.registry import DeviceRegistry
from minifinder.session.types import ConnectionContext, DeviceSession

__all__ = ["MiniFinderDecoder"]

logger = logging.getLogger(__name__)

# 1 knot = 1.852 km/h
_KILOMETERS_PER_HOUR_PER_KNOT = 1.852

_PERIODIC_FIX_MARKERS = frozenset({"B", "D"})
_FIX_MARKERS = _PERIODIC_FIX_MARKERS | {"A", "C"}
_KNOWN_MARKERS = SUPPORTED_MARKERS | UNSUPPORTED_MARKERS

_EVENT_MESSAGES = {
    DecodeEventKind.UNRECOGNIZED: "Unrecognized sentence: %s",
    DecodeEventKind.INVALID: "Invalid sentence: %s",
    DecodeEventKind.UNSUPPORTED: "Unsupported sentence: %s",
}


def _knots_from_kph(speed: float) -> float:
    return speed / _KILOMETERS_PER_HOUR_PER_KNOT


def _extract_unique_id(sentence: str) -> str:
    """Return the identifier of a '!1,<id>[,...]' registration sentence."""
    start = len("!1,")
    end = sentence.find(",", start)
    if end < 0:
        end = len(sentence)
    return sentence[start:end]


def _decode_fix(position: Position, parser: FieldParser, session: DeviceSession) -> None:
    position.time = parser.next_date_time(
        DateTimeFormat.DMY_HMS,
        session.time_zone or timezone.utc,
    )
    position.latitude = parser.next_double(0.0)
    position.longitude = parser.next_double(0.0)


def _decode_state(position: Position, parser: FieldParser) -> None:
    position.speed = _knots_from_kph(parser.next_double(0.0))
    position.set_course(parser.next_double(0.0))
    decode_flags(parser.next_hex_int(0)).apply(position)
    position.altitude = parser.next_double(0.0)
    position.set(AttributeKey.BATTERY_LEVEL, parser.next_int(0))


def _fill_last_location(position: Position, session: DeviceSession) -> None:
    """Complete a record that carries no fix from the session's last fix."""
    position.outdated = True
    last = session.last_position
    if last is None:
        position.time = datetime.now(timezone.utc)
        return
    position.time = last.time
    position.valid = last.valid
    position.latitude = last.latitude
    position.longitude = last.longitude
    position.altitude = last.altitude


class MiniFinderDecoder:
    """Decodes MiniFinder sentences into ``Position`` records.

    Usage::

        decoder = MiniFinderDecoder(DeviceRegistry())
        context = ConnectionContext(connection_id=1)
        decoder.decode("!1,860719020212696", context)  # -> None, binds device
        position = decoder.decode("!D,22/2/17,13:40:2,...", context)

    Args:
        registry: Identity resolver shared by all connections.
        on_event: Called with a ``DecodeEvent`` for every reported drop, in
            addition to the warning logged for it.
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        on_event: Callable[[DecodeEvent], None] | None = None,
    ) -> None:
        self._registry = registry
        self._on_event = on_event

    def _report(self, kind: DecodeEventKind, sentence: str) -> None:
        logger.warning(_EVENT_MESSAGES[kind], sentence)
        if self._on_event is not None:
            self._on_event(DecodeEvent(kind=kind, sentence=sentence))

    def _register(self, sentence: str, raw: str, context: ConnectionContext) -> None:
        unique_id = _extract_unique_id(sentence)
        if not unique_id:
            self._report(DecodeEventKind.INVALID, raw)
            return
        self._registry.resolve(context, unique_id)

    def _build(
        self,
        marker: str,
        parser: FieldParser,
        session: DeviceSession,
    ) -> Position:
        position = Position(device_id=session.device_id)
        position.set(AttributeKey.TYPE, marker)

        if marker in _FIX_MARKERS:
            _decode_fix(position, parser, session)
            if marker != "A":
                _decode_state(position, parser)
            if marker in _PERIODIC_FIX_MARKERS:
                position.set(AttributeKey.SATELLITES, parser.next_int(0))
                position.set(AttributeKey.SATELLITES_VISIBLE, parser.next_int(0))
                position.set(AttributeKey.HDOP, parser.next_double(0.0))
            # Snapshot, so callers may modify the returned record
            session.last_position = dataclasses.replace(
                position,
                attributes=dict(position.attributes),
            )
            return position

        if marker == "3":
            position.set(AttributeKey.STATUS, parser.next())
        elif marker == "5":
            position.set(AttributeKey.RSSI, parser.next_int(0))
            position.set(AttributeKey.GPS, parser.next())
        elif marker == "7":
            position.set(AttributeKey.STATUS, parser.next())  # firmware version
            position.set(AttributeKey.RSSI, parser.next_int(0))

        _fill_last_location(position, session)
        return position

    def decode(self, sentence: str, context: ConnectionContext) -> Position | None:
        """Decode one sentence received on *context*.

        Never raises for bad input: every rejected sentence yields None.

        Args:
            sentence: One sentence, with or without its ';' delimiter.
            context: The connection the sentence arrived on.

        Returns:
            A fully populated ``Position``, or None if the sentence was a
            registration, was rejected, or its device is not resolved.
        """
        raw = sentence
        sentence = strip_frame(raw)
        marker = extract_marker(sentence)

        if marker is None or marker not in _KNOWN_MARKERS:
            self._report(DecodeEventKind.UNRECOGNIZED, raw)
            return None

        if marker == REGISTRATION_MARKER:
            self._register(sentence, raw, context)
            return None

        if marker in UNSUPPORTED_MARKERS:
            self._report(DecodeEventKind.UNSUPPORTED, raw)
            return None

        parser = FieldParser(PATTERNS[marker], sentence)
        if not parser.matches():
            self._report(DecodeEventKind.INVALID, raw)
            return None

        session = self._registry.resolve(context)
        if session is None:
            return None

        try:
            return self._build(marker, parser, session)
        except ValueError:
            # Digits the pattern accepts can still form an impossible date
            self._report(DecodeEventKind.INVALID, raw)
            return None
