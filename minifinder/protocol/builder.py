"""Composable sentence pattern builder.

Patterns are assembled from small fragments and compiled once into an
immutable ``SentencePattern``. Every capture group is named and tagged with
the kind of value it holds, so the order in which a ``FieldParser`` must
consume groups is part of the compiled pattern rather than a convention kept
in comments.

Numeric fragments use a compact printf-like notation:
    d   one decimal digit      -> \\d
    x   one hexadecimal digit  -> [0-9a-fA-F]
    .   a literal dot          -> \\.

Example:
    >>> pattern = (
    ...     PatternBuilder()
    ...     .literal("!5,")
    ...     .number("(d+),", "csq")
    ...     .text("([^;]+)", "sta")
    ...     .compile("signal")
    ... )
    >>> [group.name for group in pattern.groups]
    ['csq', 'sta']
"""

import re
from dataclasses import dataclass
from enum import Enum

__all__ = ["CaptureGroup", "GroupKind", "PatternBuilder", "SentencePattern"]


class GroupKind(str, Enum):
    """Kind of value a capture group holds."""

    NUMBER = "number"
    HEX = "hex"
    TEXT = "text"


@dataclass(frozen=True)
class CaptureGroup:
    name: str
    kind: GroupKind


@dataclass(frozen=True)
class SentencePattern:
    """A compiled, immutable sentence matcher.

    Attributes:
        name: Human-readable pattern name used in diagnostics.
        regex: Compiled expression; every capture is a named group.
        groups: Capture groups in declaration order.
    """

    name: str
    regex: re.Pattern[str]
    groups: tuple[CaptureGroup, ...]

    def match(self, sentence: str) -> re.Match[str] | None:
        """Match the whole sentence; partial matches are rejected."""
        return self.regex.fullmatch(sentence)


def _translate_number(notation: str) -> str:
    return notation.replace(".", r"\.").replace("d", r"\d").replace("x", "[0-9a-fA-F]")


def _capture_positions(fragment: str) -> list[int]:
    """Return the indices of every capturing '(' in a regex fragment.

    Escaped parentheses, parentheses inside character classes and
    extension groups such as ``(?:...)`` are skipped.
    """
    positions = []
    escaped = False
    in_class = False
    for index, character in enumerate(fragment):
        if escaped:
            escaped = False
        elif character == "\\":
            escaped = True
        elif in_class:
            in_class = character != "]"
        elif character == "[":
            in_class = True
        elif character == "(" and not fragment.startswith("?", index + 1):
            positions.append(index)
    return positions


def _name_groups(fragment: str, names: tuple[str, ...]) -> str:
    positions = _capture_positions(fragment)
    if len(positions) != len(names):
        raise ValueError(
            f"Fragment {fragment!r} has {len(positions)} capture groups "
            f"but {len(names)} names were given"
        )
    # Rewrite from the end so earlier indices stay valid
    for position, name in zip(reversed(positions), reversed(names)):
        fragment = f"{fragment[: position + 1]}?P<{name}>{fragment[position + 1 :]}"
    return fragment


class PatternBuilder:
    """Fluent builder for ``SentencePattern`` objects.

    Fragments are concatenated in call order. A fragment's capture groups
    must be named one-to-one by the names passed with it; a mismatch is
    reported as ``ValueError`` when the fragment is added, and duplicate
    names are reported by ``compile``.
    """

    def __init__(self) -> None:
        self._fragments: list[str] = []
        self._groups: list[CaptureGroup] = []

    def _add(self, fragment: str, names: tuple[str, ...], kind: GroupKind) -> "PatternBuilder":
        self._fragments.append(_name_groups(fragment, names))
        self._groups.extend(CaptureGroup(name, kind) for name in names)
        return self

    def literal(self, text: str) -> "PatternBuilder":
        """Match *text* exactly."""
        self._fragments.append(re.escape(text))
        return self

    def number(self, notation: str, *names: str) -> "PatternBuilder":
        """Match numeric tokens written in ``d``/``x``/``.`` notation."""
        return self._add(_translate_number(notation), names, GroupKind.NUMBER)

    def hex(self, notation: str, *names: str) -> "PatternBuilder":
        """Match hexadecimal tokens; groups are read with ``next_hex_int``."""
        return self._add(_translate_number(notation), names, GroupKind.HEX)

    def text(self, notation: str, *names: str) -> "PatternBuilder":
        """Match a raw regular expression fragment, e.g. ``([^,]+)``."""
        return self._add(notation, names, GroupKind.TEXT)

    def any(self) -> "PatternBuilder":
        """Consume and discard the rest of the sentence."""
        self._fragments.append(".*")
        return self

    def expression(self, pattern: SentencePattern) -> "PatternBuilder":
        """Embed a compiled pattern verbatim, keeping its named groups."""
        self._fragments.append(pattern.regex.pattern)
        self._groups.extend(pattern.groups)
        return self

    def compile(self, name: str) -> SentencePattern:
        """Compile the accumulated fragments into an immutable pattern.

        Raises:
            ValueError: If two capture groups share a name.
        """
        names = [group.name for group in self._groups]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate capture group names in {name!r}: {duplicates}")
        return SentencePattern(
            name=name,
            # Devices only send ASCII; \d must not accept other digit scripts
            regex=re.compile("".join(self._fragments), re.ASCII),
            groups=tuple(self._groups),
        )
