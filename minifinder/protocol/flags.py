"""Decoding of the packed status flags in a MiniFinder state block.

The flags field is a hexadecimal integer whose bits carry independent
meanings:

    bit  0-1   fix validity (valid when the two-bit value is non-zero)
    bit  1     approximate fix
    bit  2     fault alarm
    bit  6     SOS alarm
    bit  7     overspeed alarm
    bit  8     fall-down alarm
    bit  9-11  geofence alarm (any of the three)
    bit 12     low battery alarm
    bit 14-15  movement alarm (either)
    bit 16-20  signal strength (RSSI)
    bit 22     charging

Several alarm bits may be set at once, but a record carries a single alarm.
The alarm table is evaluated in the order above and the last matching entry
wins, so e.g. SOS together with low battery is reported as low battery. This
order is kept for compatibility with existing consumers; it is not known to
reflect an intended priority.
"""

from dataclasses import dataclass

from minifinder.protocol.types import Alarm, AttributeKey, Position

__all__ = ["ALARM_TABLE", "DecodedFlags", "decode_flags"]


def _bits(*positions: int) -> int:
    mask = 0
    for position in positions:
        mask |= 1 << position
    return mask


def _between(value: int, start: int, end: int) -> int:
    """Return bits ``start`` up to (not including) ``end`` as an integer."""
    return (value >> start) & ((1 << (end - start)) - 1)


_VALIDITY_BITS = 2
_APPROXIMATE_MASK = _bits(1)
_RSSI_START = 16
_RSSI_END = 21
_CHARGE_MASK = _bits(22)

# Evaluated top to bottom; a later match overwrites an earlier one
ALARM_TABLE: tuple[tuple[int, Alarm], ...] = (
    (_bits(2), Alarm.FAULT),
    (_bits(6), Alarm.SOS),
    (_bits(7), Alarm.OVERSPEED),
    (_bits(8), Alarm.FALL_DOWN),
    (_bits(9, 10, 11), Alarm.GEOFENCE),
    (_bits(12), Alarm.LOW_BATTERY),
    (_bits(14, 15), Alarm.MOVEMENT),
)


@dataclass(frozen=True)
class DecodedFlags:
    """Sub-fields extracted from one packed flags value.

    Attributes:
        valid: Fix validity from the two least significant bits.
        approximate: True when the device marks the fix as approximate.
        alarm: The last alarm matched in ``ALARM_TABLE`` order, or None.
        rssi: Signal strength from bits 16-20.
        charge: True while the battery is charging.
    """

    valid: bool
    approximate: bool
    alarm: Alarm | None
    rssi: int
    charge: bool

    def apply(self, position: Position) -> None:
        """Write the decoded sub-fields onto *position*.

        ``approximate`` and ``alarm`` are only set when present, so a record
        without alarms has no alarm attribute at all.
        """
        position.valid = self.valid
        if self.approximate:
            position.set(AttributeKey.APPROXIMATE, True)
        if self.alarm is not None:
            position.set(AttributeKey.ALARM, self.alarm.value)
        position.set(AttributeKey.RSSI, self.rssi)
        position.set(AttributeKey.CHARGE, self.charge)


def decode_flags(flags: int) -> DecodedFlags:
    """Decode a packed flags value.

    Example:
        >>> decoded = decode_flags(0x400041)
        >>> decoded.valid, decoded.alarm, decoded.charge
        (True, <Alarm.SOS: 'sos'>, True)
    """
    alarm = None
    for mask, candidate in ALARM_TABLE:
        if flags & mask:
            alarm = candidate

    return DecodedFlags(
        valid=_between(flags, 0, _VALIDITY_BITS) > 0,
        approximate=bool(flags & _APPROXIMATE_MASK),
        alarm=alarm,
        rssi=_between(flags, _RSSI_START, _RSSI_END),
        charge=bool(flags & _CHARGE_MASK),
    )
