"""Tests for start position resolution."""

from datetime import datetime, timedelta, timezone

import pytest

from kinesis_tail.errors import ParseError
from kinesis_tail.models import IteratorType
from kinesis_tail.options import parse_duration, parse_timestamp, resolve_tail_options

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestParseTimestamp:
    """Test strict RFC3339 parsing."""

    def test_utc_instant(self):
        assert parse_timestamp("2021-09-10T11:12:13Z") == datetime(
            2021, 9, 10, 11, 12, 13, tzinfo=timezone.utc
        )

    def test_numeric_offset(self):
        parsed = parse_timestamp("2021-09-10T13:12:13+02:00")
        assert parsed == datetime(2021, 9, 10, 11, 12, 13, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(hours=2)

    def test_fractional_seconds_truncated_to_microseconds(self):
        parsed = parse_timestamp("2021-09-10T11:12:13.123456789Z")
        assert parsed.microsecond == 123456

    def test_short_fraction(self):
        assert parse_timestamp("2021-09-10T11:12:13.5Z").microsecond == 500000

    @pytest.mark.parametrize("value", [
        "",
        "yesterday",
        "2021-09-10",
        "2021-09-10T11:12:13",
        "2021-09-10 11:12:13Z",
        "2021-13-10T11:12:13Z",
        "2021-09-10T25:12:13Z",
        "2021-09-10T11:12:13+0200",
        "1631272333",
        "2021-09-10T11:12:13Z\n",
        "\u0662\u0660\u0662\u0661-09-10T11:12:13Z",
    ])
    def test_invalid_timestamps_raise_parse_error(self, value):
        with pytest.raises(ParseError):
            parse_timestamp(value)


class TestParseDuration:
    """Test relative duration parsing."""

    @pytest.mark.parametrize("value,expected", [
        ("1h", timedelta(hours=1)),
        ("90s", timedelta(seconds=90)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("1.5h", timedelta(minutes=90)),
        ("300ms", timedelta(milliseconds=300)),
        ("2us", timedelta(microseconds=2)),
        ("-5m", timedelta(minutes=-5)),
        ("0", timedelta(0)),
    ])
    def test_valid_durations(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "1", "h", "1x", "1h 30m", "one hour", "1d", "1h\n", "\u0661h"])
    def test_invalid_durations_raise_parse_error(self, value):
        with pytest.raises(ParseError):
            parse_duration(value)


class TestResolveTailOptions:
    """Test option precedence and the resolved start point."""

    def test_explicit_timestamp(self):
        options = resolve_tail_options(timestamp="2021-09-10T11:12:13Z", now=NOW)

        assert options.at_timestamp == datetime(2021, 9, 10, 11, 12, 13, tzinfo=timezone.utc)
        assert options.iterator_type == IteratorType.AT_TIMESTAMP

    def test_timestamp_wins_over_from(self):
        options = resolve_tail_options(timestamp="2021-09-10T11:12:13Z", from_="not-a-duration")
        assert options.at_timestamp.year == 2021

    def test_from_is_relative_to_now(self):
        options = resolve_tail_options(from_="90m", now=NOW)

        assert options.at_timestamp == datetime(2024, 1, 1, 10, 30, tzinfo=timezone.utc)
        assert options.iterator_type == IteratorType.AT_TIMESTAMP

    def test_now_may_be_a_callable(self):
        options = resolve_tail_options(from_="1h", now=lambda: NOW)
        assert options.at_timestamp == NOW - timedelta(hours=1)

    def test_from_uses_current_time_by_default(self):
        before = datetime.now(timezone.utc)
        options = resolve_tail_options(from_="1h")
        after = datetime.now(timezone.utc)

        assert before - timedelta(hours=1) <= options.at_timestamp <= after - timedelta(hours=1)

    def test_no_input_means_trim_horizon(self):
        options = resolve_tail_options()

        assert options.at_timestamp is None
        assert options.iterator_type == IteratorType.TRIM_HORIZON

    def test_invalid_timestamp(self):
        with pytest.raises(ParseError):
            resolve_tail_options(timestamp="2021-09-10")

    def test_invalid_from(self):
        with pytest.raises(ParseError):
            resolve_tail_options(from_="ten minutes")

    def test_parse_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            resolve_tail_options(from_="10")
