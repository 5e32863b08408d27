"""Tests for sequential field parsing."""

from datetime import datetime, timedelta, timezone

import pytest

from minifinder.protocol.builder import PatternBuilder
from minifinder.protocol.fields import DateTimeFormat, FieldParser
from minifinder.protocol.patterns import PATTERNS

PERIODIC = "!D,22/2/17,13:40:2,56.899393,14.815748,0,0,b0001,179.3,78,8,10,1.3"

_OPTIONAL = (
    PatternBuilder()
    .literal("!X,")
    .number("(d+)?,", "count")
    .number("(d*.?d*),", "level")
    .hex("(x*)", "flags")
    .compile("optional")
)

_TIME_FIRST = (
    PatternBuilder()
    .number("(d+):(d+):(d+) ", "hour", "minute", "second")
    .number("(d+)-(d+)-(d+)", "day", "month", "year")
    .compile("time first")
)


class TestFieldParser:
    """Tests for FieldParser accessors."""

    def test_periodic_fix_in_declaration_order(self):
        parser = FieldParser(PATTERNS["D"], PERIODIC)
        assert parser.matches() is True
        assert parser.next_date_time() == datetime(2017, 2, 22, 13, 40, 2, tzinfo=timezone.utc)
        assert parser.next_double() == pytest.approx(56.899393)
        assert parser.next_double() == pytest.approx(14.815748)
        assert parser.next_double() == 0.0
        assert parser.next_double() == 0.0
        assert parser.next_hex_int() == 0xB0001
        assert parser.next_double() == pytest.approx(179.3)
        assert parser.next_int() == 78
        assert parser.next_int() == 8
        assert parser.next_int() == 10
        assert parser.next_double() == pytest.approx(1.3)
        assert parser.remaining == 0

    def test_no_match(self):
        parser = FieldParser(PATTERNS["A"], "!A,not,a,real,fix")
        assert parser.matches() is False

    def test_absent_and_empty_groups_use_default(self):
        parser = FieldParser(_OPTIONAL, "!X,,,")
        assert parser.matches() is True
        assert parser.next_int(7) == 7
        assert parser.next_double(1.5) == 1.5
        assert parser.next_hex_int(3) == 3

    def test_absent_group_without_default_is_none(self):
        parser = FieldParser(_OPTIONAL, "!X,,,")
        assert parser.matches() is True
        assert parser.next_int() is None
        assert parser.next() == ""
        assert parser.next() == ""

    def test_present_groups_ignore_default(self):
        parser = FieldParser(_OPTIONAL, "!X,5,2.5,ff")
        assert parser.matches() is True
        assert parser.next_int(7) == 5
        assert parser.next_double(1.5) == 2.5
        assert parser.next_hex_int(3) == 255

    def test_next_returns_raw_token(self):
        parser = FieldParser(PATTERNS["7"], "!7,V1.2.3,25")
        assert parser.matches() is True
        assert parser.next() == "V1.2.3"
        assert parser.next() == "25"

    def test_time_first_format(self):
        parser = FieldParser(_TIME_FIRST, "08:30:15 05-03-21")
        assert parser.matches() is True
        result = parser.next_date_time(DateTimeFormat.HMS_DMY)
        assert result == datetime(2021, 3, 5, 8, 30, 15, tzinfo=timezone.utc)

    def test_four_digit_year_kept(self):
        parser = FieldParser(_TIME_FIRST, "08:30:15 05-03-1999")
        assert parser.matches() is True
        assert parser.next_date_time(DateTimeFormat.HMS_DMY).year == 1999

    def test_time_zone_converted_to_utc(self):
        parser = FieldParser(PATTERNS["A"], "!A,01/01/21,01:00:00,10.0,20.0,")
        assert parser.matches() is True
        result = parser.next_date_time(tz=timezone(timedelta(hours=2)))
        assert result == datetime(2020, 12, 31, 23, 0, 0, tzinfo=timezone.utc)
        assert result.tzinfo == timezone.utc

    def test_impossible_date_raises_value_error(self):
        parser = FieldParser(PATTERNS["A"], "!A,32/13/21,00:00:00,10.0,20.0,")
        assert parser.matches() is True
        with pytest.raises(ValueError):
            parser.next_date_time()

    def test_oversized_year_raises_value_error(self):
        parser = FieldParser(PATTERNS["A"], "!A,01/01/99999999999999999999,00:00:00,10.0,20.0,")
        assert parser.matches() is True
        with pytest.raises(ValueError):
            parser.next_date_time()


class TestFieldParserMisuse:
    """Out-of-order or excess reads are programming errors."""

    def test_read_before_match(self):
        parser = FieldParser(PATTERNS["3"], "!3,ok")
        with pytest.raises(RuntimeError):
            parser.next()

    def test_read_past_end(self):
        parser = FieldParser(PATTERNS["3"], "!3,ok")
        assert parser.matches() is True
        parser.next()
        with pytest.raises(RuntimeError):
            parser.next()

    def test_wrong_kind_for_group(self):
        parser = FieldParser(PATTERNS["D"], PERIODIC)
        assert parser.matches() is True
        with pytest.raises(RuntimeError, match="day"):
            parser.next_hex_int()

    def test_matches_resets_cursor(self):
        parser = FieldParser(PATTERNS["5"], "!5,17,A")
        assert parser.matches() is True
        parser.next_int()
        assert parser.matches() is True
        assert parser.next_int() == 17
