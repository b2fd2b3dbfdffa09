"""Tests for notification sinks."""

import io

import pytest
from rich.console import Console

from librarian.errors import LibraryError, NotOnLoan
from librarian.notify import (
    ConsoleNotifier,
    MemoryNotifier,
    NullNotifier,
    Severity,
    report_errors,
)


class TestMemoryNotifier:
    """Tests for MemoryNotifier."""

    def test_records_in_order(self):
        """Test notifications are kept in order."""
        notifier = MemoryNotifier()
        notifier.notify("one")
        notifier.notify("two", Severity.ERROR)

        assert notifier.messages() == ["one", "two"]
        assert notifier.messages(Severity.ERROR) == ["two"]
        assert notifier.notifications[0].severity == Severity.INFO

    def test_clear(self):
        """Test clearing recorded notifications."""
        notifier = MemoryNotifier()
        notifier.notify("one")
        notifier.clear()
        assert notifier.messages() == []


class TestConsoleNotifier:
    """Tests for ConsoleNotifier."""

    def test_prints_with_prefix(self):
        """Test messages are printed with their severity."""
        output = io.StringIO()
        notifier = ConsoleNotifier(Console(file=output, no_color=True, width=120))

        notifier.notify("Item returned", Severity.SUCCESS)
        notifier.notify("Item is late", Severity.WARNING)

        text = output.getvalue()
        assert "Success: Item returned" in text
        assert "Warning: Item is late" in text


class TestReportErrors:
    """Tests for report_errors."""

    def test_library_errors_reported(self):
        """Test library failures are sent to the sink and re-raised."""
        notifier = MemoryNotifier()

        with pytest.raises(NotOnLoan):
            with report_errors(notifier):
                raise NotOnLoan()

        assert notifier.messages(Severity.ERROR) == [NotOnLoan.message]

    def test_custom_message(self):
        """Test a custom message replaces the default."""
        notifier = MemoryNotifier()

        with pytest.raises(LibraryError):
            with report_errors(notifier):
                raise LibraryError("Something specific")

        assert notifier.messages() == ["Something specific"]

    def test_other_errors_pass_through(self):
        """Test unrelated exceptions are not reported."""
        notifier = MemoryNotifier()

        with pytest.raises(KeyError):
            with report_errors(notifier):
                raise KeyError("x")

        assert notifier.messages() == []

    def test_null_notifier(self):
        """Test the null sink accepts anything."""
        with pytest.raises(NotOnLoan):
            with report_errors(NullNotifier()):
                raise NotOnLoan()
