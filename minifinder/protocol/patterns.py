"""MiniFinder sentence patterns, one per type marker.

Sentence Formats (fields after the marker):
    !1,<id>[,...]                                  registration (no pattern)
    !A,<fix>,...                                   minimal fix
    !B,<fix>,<state>,<sat>,<satVisible>,<hdop>     buffered fix
    !C,<fix>,<state>,...                           secondary fix
    !D,<fix>,<state>,<sat>,<satVisible>,<hdop>     live fix
    !3,ok|error                                    result of last set command
    !4,f1,...,f9                                   check status (unsupported)
    !5,<csq>,<sta>                                 signal report
    !7,<version>,<csq>                             firmware info

Shared blocks:
    fix:   dd/mm/yy,hh:mm:ss,<lat>,<lon>,
    state: <speed km/h>,<course>,<flags hex>,<altitude m>,<battery %>,

CSQ is the modem signal quality (0-31). STA is 'A' when the receiver has a
GPS signal and 'V' when it does not.
"""

from types import MappingProxyType

from minifinder.protocol.builder import PatternBuilder, SentencePattern

__all__ = [
    "PATTERNS",
    "PATTERN_FIX",
    "PATTERN_STATE",
    "REGISTRATION_MARKER",
    "SUPPORTED_MARKERS",
    "UNSUPPORTED_MARKERS",
]

REGISTRATION_MARKER = "1"

PATTERN_FIX = (
    PatternBuilder()
    .number("(d+)/(d+)/(d+),", "day", "month", "year")
    .number("(d+):(d+):(d+),", "hour", "minute", "second")
    .number("(-?d+.d+),", "latitude")
    .number("(-?d+.d+),", "longitude")
    .compile("fix")
)

PATTERN_STATE = (
    PatternBuilder()
    .number("(d+.?d*),", "speed")  # km/h
    .number("(d+.?d*),", "course")
    .hex("(x+),", "flags")
    .number("(-?d+.d+),", "altitude")  # meters
    .number("(d+),", "battery")  # percent
    .compile("state")
)

_PATTERN_A = (
    PatternBuilder()
    .literal("!A,")
    .expression(PATTERN_FIX)
    .any()  # unknown trailing fields
    .compile("minimal fix")
)

_PATTERN_BD = (
    PatternBuilder()
    .text("![BD],")  # B - buffered, D - live
    .expression(PATTERN_FIX)
    .expression(PATTERN_STATE)
    .number("(d+),", "satellites")
    .number("(d+),", "satellites_visible")
    .number("(d+.?d*)", "hdop")
    .compile("periodic fix")
)

_PATTERN_C = (
    PatternBuilder()
    .literal("!C,")
    .expression(PATTERN_FIX)
    .expression(PATTERN_STATE)
    .any()  # unknown trailing fields
    .compile("secondary fix")
)

_PATTERN_3 = (
    PatternBuilder()
    .literal("!3,")
    .text("(ok|error)", "result")
    .compile("command result")
)

_PATTERN_5 = (
    PatternBuilder()
    .literal("!5,")
    .number("(d+),", "csq")
    .text("([^;]+)", "sta")
    .compile("signal report")
)

_PATTERN_7 = (
    PatternBuilder()
    .literal("!7,")
    .text("([^,]+)", "version")
    .literal(",")
    .number("(d+)", "csq")
    .compile("firmware info")
)

PATTERNS: MappingProxyType[str, SentencePattern] = MappingProxyType({
    "A": _PATTERN_A,
    "B": _PATTERN_BD,
    "C": _PATTERN_C,
    "D": _PATTERN_BD,
    "3": _PATTERN_3,
    "5": _PATTERN_5,
    "7": _PATTERN_7,
})

# Known to the device but intentionally not decoded
UNSUPPORTED_MARKERS = frozenset({"4"})

SUPPORTED_MARKERS = frozenset(PATTERNS) | {REGISTRATION_MARKER}
