"""Sequential typed access to the captures of a matched sentence.

A ``FieldParser`` walks the named groups of a ``SentencePattern`` in the
order the pattern declares them. Groups may be absent (optional parts of an
expression that did not participate) or empty; the numeric accessors then
return the caller's default, so "no data" never becomes an exception.

Malformed numbers cannot reach this stage: a token the pattern would not
accept fails the match, and the sentence is rejected before any accessor is
called.
"""

from datetime import datetime, timezone, tzinfo
from enum import Enum

from minifinder.protocol.builder import CaptureGroup, GroupKind, SentencePattern

__all__ = ["DateTimeFormat", "FieldParser"]

# Two-digit years are taken to be in this century
_CENTURY = 2000


class DateTimeFormat(Enum):
    """Order of the six date/time components in a pattern.

    DMY_HMS = day, month, year, hour, minute, second
    HMS_DMY = hour, minute, second, day, month, year
    """

    DMY_HMS = "dmy_hms"
    HMS_DMY = "hms_dmy"


def parse_int_field(value: str | None, base: int = 10) -> int | None:
    """Parse a captured token to int, returning None if absent or empty.

    Example:
        >>> parse_int_field("08")
        8
        >>> parse_int_field("b0001", base=16)
        720897
        >>> parse_int_field("") is None
        True
    """
    if not value:
        return None
    return int(value, base)


def parse_float_field(value: str | None) -> float | None:
    """Parse a captured token to float, returning None if absent or empty."""
    if not value:
        return None
    return float(value)


class FieldParser:
    """Ordered cursor over the captures of one sentence.

    Usage::

        parser = FieldParser(PATTERNS["C"], sentence)
        if parser.matches():
            time = parser.next_date_time()
            latitude = parser.next_double(0.0)

    Accessors must be called in the pattern's declaration order. Reading past
    the last group, or reading a group with an accessor for a different kind
    (``next_hex_int`` on a decimal group, say), is a programming error and
    raises ``RuntimeError``.

    Args:
        pattern: Compiled pattern to match against.
        sentence: Stripped sentence text.
    """

    def __init__(self, pattern: SentencePattern, sentence: str) -> None:
        self._pattern = pattern
        self._sentence = sentence
        self._values: dict[str, str | None] | None = None
        self._index = 0

    def matches(self) -> bool:
        """Match the whole sentence and reset the cursor."""
        match = self._pattern.match(self._sentence)
        self._values = match.groupdict() if match is not None else None
        self._index = 0
        return self._values is not None

    @property
    def remaining(self) -> int:
        """Number of groups not yet consumed."""
        return len(self._pattern.groups) - self._index

    def _advance(self, *kinds: GroupKind) -> str | None:
        if self._values is None:
            raise RuntimeError(
                f"{self._pattern.name} pattern has not matched; call matches() first."
            )
        if self._index >= len(self._pattern.groups):
            raise RuntimeError(f"All {self._pattern.name} groups already consumed.")
        group: CaptureGroup = self._pattern.groups[self._index]
        if kinds and group.kind not in kinds:
            raise RuntimeError(
                f"Group {group.name!r} of {self._pattern.name} is {group.kind.value}, "
                f"expected {' or '.join(kind.value for kind in kinds)}."
            )
        self._index += 1
        return self._values[group.name]

    def next(self) -> str | None:
        """Return the next raw token unmodified (None if the group is absent)."""
        return self._advance()

    def next_int(self, default: int | None = None) -> int | None:
        value = parse_int_field(self._advance(GroupKind.NUMBER))
        return default if value is None else value

    def next_hex_int(self, default: int | None = None) -> int | None:
        value = parse_int_field(self._advance(GroupKind.HEX), base=16)
        return default if value is None else value

    def next_double(self, default: float | None = None) -> float | None:
        value = parse_float_field(self._advance(GroupKind.NUMBER))
        return default if value is None else value

    def next_date_time(
        self,
        date_time_format: DateTimeFormat = DateTimeFormat.DMY_HMS,
        tz: tzinfo = timezone.utc,
    ) -> datetime:
        """Combine the next six numeric groups into a UTC timestamp.

        Components are read in the order given by *date_time_format*; years
        below 100 are placed in the 2000s. The wall-clock time is interpreted
        in *tz* and the result is converted to UTC.

        Raises:
            ValueError: If the components do not form a real date
                (e.g. month 13). The pattern only checks that they are digits.
        """
        first = [self.next_int(0) for _ in range(3)]
        second = [self.next_int(0) for _ in range(3)]
        if date_time_format is DateTimeFormat.DMY_HMS:
            (day, month, year), (hour, minute, second_) = first, second
        else:
            (hour, minute, second_), (day, month, year) = first, second

        if year < 100:
            year += _CENTURY

        try:
            local = datetime(year, month, day, hour, minute, second_, tzinfo=tz)
            return local.astimezone(timezone.utc)
        except OverflowError as e:
            raise ValueError(f"Date/time out of range in {self._pattern.name}") from e
