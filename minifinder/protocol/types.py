"""Data types for decoded MiniFinder sentences.

This module defines the canonical telemetry record produced by the decoder
and the small enumerations it is keyed by.

Design Decisions:
    1. Enumerated attribute keys: auxiliary values (alarm, battery, RSSI, ...)
       live in an ordered mapping keyed by ``AttributeKey`` rather than free
       strings, so a typo is an ``AttributeError`` instead of a silently
       missing field. The string values match the wire names downstream
       consumers already use ("batteryLevel", "satVisible", ...).

    2. Speed in knots: the device reports km/h; the record always stores
       knots so that every protocol feeding the same consumers agrees on one
       unit.

    3. Separate valid and outdated flags: ``valid`` is the receiver's own
       fix validity. ``outdated`` marks records whose position was copied
       from the last known fix because the sentence itself carried none.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

PROTOCOL_NAME = "minifinder"

AttributeValue = int | float | str | bool


class AttributeKey(str, Enum):
    """Keys of the auxiliary attribute mapping on a ``Position``."""

    TYPE = "type"
    ALARM = "alarm"
    BATTERY_LEVEL = "batteryLevel"
    RSSI = "rssi"
    HDOP = "hdop"
    SATELLITES = "sat"
    SATELLITES_VISIBLE = "satVisible"
    STATUS = "status"
    GPS = "gps"
    APPROXIMATE = "approximate"
    CHARGE = "charge"


class Alarm(str, Enum):
    """Alarm values carried in the packed flags of a state block."""

    FAULT = "fault"
    SOS = "sos"
    OVERSPEED = "overspeed"
    FALL_DOWN = "fallDown"
    GEOFENCE = "geofence"
    LOW_BATTERY = "lowBattery"
    MOVEMENT = "movement"


class DecodeEventKind(str, Enum):
    """Why a sentence was dropped without producing a record."""

    UNRECOGNIZED = "unrecognized"
    INVALID = "invalid"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class DecodeEvent:
    """Diagnostic event reported for a dropped sentence.

    Attributes:
        kind: Category of the failure.
        sentence: The offending raw sentence, unmodified.
    """

    kind: DecodeEventKind
    sentence: str


@dataclass
class Position:
    """A decoded telemetry record.

    Attributes:
        protocol: Name of the protocol that produced the record.

        device_id: Internal numeric id of the transmitting device.

        time: Fix time, timezone-aware UTC. For records without a fix of
            their own this is the time of the last known fix, or the decode
            time when there is none.

        valid: Receiver fix validity. Always False for records whose
            sentence type carries no validity information.

        outdated: True when latitude/longitude/time were copied from the
            last known fix instead of being decoded from this sentence.

        latitude: Decimal degrees, positive=North.

        longitude: Decimal degrees, positive=East.

        altitude: Meters.

        speed: Knots. Converted from the device's km/h.

        course: Degrees in [0, 360]. Values above 360 are reported as 0.

        attributes: Auxiliary values keyed by ``AttributeKey``, in the order
            they were decoded.

    Example:
        >>> position = Position(device_id=1)
        >>> position.set(AttributeKey.BATTERY_LEVEL, 87)
        >>> position.get(AttributeKey.BATTERY_LEVEL)
        87
    """

    protocol: str = PROTOCOL_NAME
    device_id: int | None = None
    time: datetime | None = None
    valid: bool = False
    outdated: bool = False
    latitude: float = 0.0
    longitude: float = 0.0
    altitude: float = 0.0
    speed: float = 0.0
    course: float = 0.0
    attributes: dict[AttributeKey, AttributeValue] = field(default_factory=dict)

    def set(self, key: AttributeKey, value: AttributeValue) -> None:
        """Store an auxiliary attribute, replacing any previous value."""
        self.attributes[key] = value

    def get(
        self,
        key: AttributeKey,
        default: AttributeValue | None = None,
    ) -> AttributeValue | None:
        """Return an auxiliary attribute, or *default* if it is not set."""
        return self.attributes.get(key, default)

    def set_course(self, course: float) -> None:
        """Set the course, mapping out-of-range values above 360 to 0."""
        self.course = 0.0 if course > 360 else course
