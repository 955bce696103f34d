"""Data models for NetMonitor measurement cycles."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

NO_DELAY = Decimal("0.000")
TOTAL_LOSS = 100


@dataclass(frozen=True)
class LossStats:
    """Packet counters reported after the ``xmt/rcv/%loss`` marker."""

    transmitted: int
    received: int
    loss_percent: int


@dataclass(frozen=True)
class DelayStats:
    """Round-trip times reported after the ``min/avg/max`` marker (ms)."""

    minimum: Decimal
    average: Decimal
    maximum: Decimal


@dataclass(frozen=True)
class MeasurementResult:
    """Per-target probe result for one cycle.

    The loss and delay statistics are parsed independently; either may be
    None when the probe printed no statistics for that target.
    """

    target: str
    loss: LossStats | None = None
    delay: DelayStats | None = None

    @property
    def loss_percent(self) -> int:
        """Loss percentage, 100 when no loss statistics were reported."""
        if self.loss is None:
            return TOTAL_LOSS
        return self.loss.loss_percent

    @property
    def delay_min(self) -> Decimal:
        return NO_DELAY if self.delay is None else self.delay.minimum

    @property
    def delay_max(self) -> Decimal:
        return NO_DELAY if self.delay is None else self.delay.maximum

    @classmethod
    def unreachable(cls, target: str) -> "MeasurementResult":
        """Result for a target the probe produced no statistics for."""
        return cls(target=target)


@dataclass(frozen=True)
class CycleTimestamp:
    """End-of-probe time, captured once per cycle."""

    date: str
    time: str
    timezone: str

    @classmethod
    def from_datetime(cls, moment: datetime) -> "CycleTimestamp":
        moment = moment.astimezone()
        return cls(
            date=moment.strftime("%Y-%m-%d"),
            time=moment.strftime("%H:%M:%S"),
            timezone=moment.strftime("%Z"),
        )

    @classmethod
    def now(cls) -> "CycleTimestamp":
        return cls.from_datetime(datetime.now())


@dataclass(frozen=True)
class ProbeOutcome:
    """Raw output and exit details of one probe invocation."""

    output: str
    returncode: int
    elapsed: float
    resolution_failure: bool = False
    error: str | None = None


@dataclass(frozen=True)
class CycleRecord:
    """Everything recorded about one measurement cycle."""

    timestamp: CycleTimestamp
    host_address: str
    results: tuple[MeasurementResult, ...]
    has_event: bool
    raw_output: str = ""
    resolution_failure: bool = False


class LcdColor(str, Enum):
    """Backlight colors understood by lcdwrite ``-c``."""

    NONE = "0"
    RED = "r"
    YELLOW = "y"
    GREEN = "g"
    WHITE = "w"
