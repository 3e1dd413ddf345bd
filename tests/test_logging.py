"""Tests for the disk logging and audit system.

The logger records structured entries for disk events, giving an
audit trail of what was opened, written, and refused.
"""

import pytest

from py_vramdisk.logging import DEFAULT_LOG_CAPACITY, LogEntry, Logger, LogLevel


class TestLogLevel:
    """Verify log level ordering."""

    def test_levels_are_ordered(self) -> None:
        """DEBUG < INFO < WARNING < ERROR."""
        assert LogLevel.DEBUG < LogLevel.INFO
        assert LogLevel.INFO < LogLevel.WARNING
        assert LogLevel.WARNING < LogLevel.ERROR


class TestLogEntry:
    """Verify log entry structure."""

    def test_entry_has_fields(self) -> None:
        """A log entry stores level, message, source, and fd."""
        entry = LogEntry(level=LogLevel.INFO, message="opened", source="open", fd=4)
        assert entry.level is LogLevel.INFO
        assert entry.message == "opened"
        assert entry.source == "open"
        expected_fd = 4
        assert entry.fd == expected_fd

    def test_fd_is_optional(self) -> None:
        """Events not tied to a descriptor carry fd None."""
        entry = LogEntry(level=LogLevel.INFO, message="reset", source="disk")
        assert entry.fd is None

    def test_str_format(self) -> None:
        """str() renders level, source, message and the fd tag."""
        entry = LogEntry(level=LogLevel.WARNING, message="bad fd", source="io", fd=9)
        assert str(entry) == "[WARNING] io: bad fd (fd 9)"

    def test_str_without_fd(self) -> None:
        """No fd means no tag."""
        entry = LogEntry(level=LogLevel.INFO, message="Disk reset", source="disk")
        assert str(entry) == "[INFO] disk: Disk reset"


class TestLogger:
    """Verify logging, filtering, and clearing."""

    def test_starts_empty(self) -> None:
        """A new logger has no entries."""
        assert Logger().entries == []

    def test_log_appends_in_order(self) -> None:
        """Entries come back in the order they were logged."""
        logger = Logger()
        logger.log(LogLevel.INFO, "first", source="open")
        logger.log(LogLevel.DEBUG, "second", source="io", fd=4)
        assert [e.message for e in logger.entries] == ["first", "second"]

    def test_entries_is_a_copy(self) -> None:
        """Mutating the returned list does not touch the log."""
        logger = Logger()
        logger.log(LogLevel.INFO, "kept", source="disk")
        logger.entries.clear()
        assert len(logger.entries) == 1

    def test_filter_by_level(self) -> None:
        """min_level keeps entries at or above the threshold."""
        logger = Logger()
        logger.log(LogLevel.DEBUG, "noise", source="io")
        logger.log(LogLevel.WARNING, "refused", source="open")
        logger.log(LogLevel.ERROR, "broken", source="disk")
        result = logger.filter(min_level=LogLevel.WARNING)
        assert [e.message for e in result] == ["refused", "broken"]

    def test_filter_by_source(self) -> None:
        """source keeps entries from one subsystem."""
        logger = Logger()
        logger.log(LogLevel.INFO, "a", source="open")
        logger.log(LogLevel.INFO, "b", source="io")
        assert [e.message for e in logger.filter(source="io")] == ["b"]

    def test_filter_combined(self) -> None:
        """Both criteria must hold."""
        logger = Logger()
        logger.log(LogLevel.DEBUG, "a", source="io")
        logger.log(LogLevel.WARNING, "b", source="io")
        logger.log(LogLevel.WARNING, "c", source="open")
        result = logger.filter(min_level=LogLevel.WARNING, source="io")
        assert [e.message for e in result] == ["b"]

    def test_filter_by_fd(self) -> None:
        """fd keeps records about one descriptor."""
        logger = Logger()
        logger.log(LogLevel.INFO, "opened", source="open", fd=4)
        logger.log(LogLevel.INFO, "opened", source="open", fd=5)
        logger.log(LogLevel.INFO, "Disk reset", source="disk")
        expected_fd = 5
        assert [e.fd for e in logger.filter(fd=expected_fd)] == [expected_fd]

    def test_filter_without_criteria_is_a_copy(self) -> None:
        """An unfiltered result is a fresh list."""
        logger = Logger()
        logger.log(LogLevel.INFO, "a", source="disk")
        logger.filter().clear()
        assert len(logger) == 1

    def test_lines(self) -> None:
        """lines() renders records as text, optionally by level."""
        logger = Logger()
        logger.log(LogLevel.DEBUG, "noise", source="io")
        logger.log(LogLevel.WARNING, "refused", source="open", fd=4)
        assert logger.lines(min_level=LogLevel.WARNING) == ["[WARNING] open: refused (fd 4)"]
        expected_count = 2
        assert len(logger.lines()) == expected_count

    def test_clear(self) -> None:
        """clear() removes everything and resets the dropped count."""
        logger = Logger(capacity=1)
        logger.log(LogLevel.INFO, "a", source="disk")
        logger.log(LogLevel.INFO, "b", source="disk")
        logger.clear()
        assert logger.entries == []
        assert logger.dropped == 0


class TestLoggerCapacity:
    """Verify the log behaves as a bounded ring."""

    def test_default_capacity(self) -> None:
        """A logger holds a generous number of records by default."""
        assert Logger().capacity == DEFAULT_LOG_CAPACITY

    def test_oldest_records_are_evicted(self) -> None:
        """Past capacity, the oldest records fall off the front."""
        capacity = 3
        logger = Logger(capacity=capacity)
        for i in range(5):
            logger.log(LogLevel.INFO, f"event {i}", source="io")
        assert [e.message for e in logger] == ["event 2", "event 3", "event 4"]
        expected_dropped = 2
        assert logger.dropped == expected_dropped

    def test_no_drops_below_capacity(self) -> None:
        """Nothing is dropped while there is room."""
        logger = Logger(capacity=2)
        logger.log(LogLevel.INFO, "a", source="io")
        logger.log(LogLevel.INFO, "b", source="io")
        assert logger.dropped == 0

    def test_invalid_capacity(self) -> None:
        """A ring must hold at least one record."""
        with pytest.raises(ValueError, match="positive"):
            Logger(capacity=0)
