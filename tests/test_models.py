"""Tests for netmonitor.models invariants."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from netmonitor.models import (
    NO_DELAY,
    CycleTimestamp,
    DelayStats,
    LossStats,
    MeasurementResult,
)


class TestMeasurementResult:
    """Test MeasurementResult defaults for missing statistics."""

    def test_missing_loss_reads_as_total_loss(self):
        """Test loss_percent is 100 when no loss statistics exist."""
        result = MeasurementResult(target="bad.host")

        assert result.loss is None
        assert result.loss_percent == 100

    def test_missing_delay_reads_as_zero(self):
        """Test delays read as 0.000 when no delay statistics exist."""
        result = MeasurementResult(target="10.9.9.9", loss=LossStats(10, 0, 100))

        assert result.delay_min == NO_DELAY
        assert result.delay_max == NO_DELAY
        assert str(result.delay_max) == "0.000"

    def test_present_statistics(self):
        """Test values pass through when statistics exist."""
        result = MeasurementResult(
            target="8.8.8.8",
            loss=LossStats(15, 15, 0),
            delay=DelayStats(Decimal("3.82"), Decimal("4.75"), Decimal("5.67")),
        )

        assert result.loss_percent == 0
        assert result.delay_min == Decimal("3.82")
        assert result.delay_max == Decimal("5.67")

    def test_unreachable(self):
        """Test unreachable() has both triads absent."""
        result = MeasurementResult.unreachable("x")

        assert result.target == "x"
        assert result.loss is None
        assert result.delay is None


class TestCycleTimestamp:
    """Test timestamp formatting."""

    def test_from_aware_datetime(self):
        """Test date, time and zone columns."""
        moment = datetime(2023, 1, 1, 13, 5, 9, tzinfo=timezone(timedelta(hours=-5), "EST"))

        ts = CycleTimestamp.from_datetime(moment)

        # Converted to local time; only the formats are checked
        assert len(ts.date) == 10 and ts.date.count("-") == 2
        assert len(ts.time) == 8 and ts.time.count(":") == 2
        assert ts.timezone

    def test_now(self):
        """Test now() returns a populated timestamp."""
        ts = CycleTimestamp.now()

        assert ts.date and ts.time
