"""Tests for time sources."""

from datetime import datetime, timedelta, timezone

from librarian.clock import FixedClock, SystemClock, as_utc, format_timestamp, parse_timestamp


class TestClocks:
    """Tests for the clock implementations."""

    def test_system_clock_is_utc(self):
        """Test the wall clock returns aware UTC times."""
        assert SystemClock().now().tzinfo == timezone.utc

    def test_fixed_clock_advance(self):
        """Test moving a fixed clock forward."""
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        clock = FixedClock(start)

        assert clock.now() == start
        assert clock.advance(days=2, hours=3) == start + timedelta(days=2, hours=3)
        assert clock.now() == start + timedelta(days=2, hours=3)


class TestTimestamps:
    """Tests for timestamp helpers."""

    def test_naive_treated_as_utc(self):
        """Test naive datetimes are read as UTC."""
        assert as_utc(datetime(2024, 1, 1)) == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_aware_converted(self):
        """Test aware datetimes are converted to UTC."""
        plus_two = timezone(timedelta(hours=2))
        value = as_utc(datetime(2024, 1, 1, 12, tzinfo=plus_two))
        assert value == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
        assert value.tzinfo == timezone.utc

    def test_round_trip(self):
        """Test stored timestamps parse back to the same instant."""
        value = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
        assert parse_timestamp(format_timestamp(value)) == value
        assert parse_timestamp(None) is None
