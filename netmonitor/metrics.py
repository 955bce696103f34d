"""Event and display values derived from measurement results."""

from decimal import Decimal
from typing import Iterable

from netmonitor.config import ColorMode
from netmonitor.models import TOTAL_LOSS, LcdColor, MeasurementResult

DEFAULT_DELAY_RANGE_MS = 30


def delay_range_ms(result: MeasurementResult) -> int:
    """Whole-millisecond spread between the max and min delay.

    Both values are truncated before subtracting, so 34.00 - 3.82 gives 31.
    """
    return int(result.delay_max) - int(result.delay_min)


def has_event(result: MeasurementResult, threshold: int = DEFAULT_DELAY_RANGE_MS) -> bool:
    """True when the target lost packets or its delay range reached ``threshold``."""
    return result.loss_percent != 0 or delay_range_ms(result) >= threshold


def cycle_has_event(
    results: Iterable[MeasurementResult], threshold: int = DEFAULT_DELAY_RANGE_MS
) -> bool:
    return any(has_event(result, threshold) for result in results)


def display_values(result: MeasurementResult) -> tuple[int, Decimal]:
    """Loss percent and max delay as shown on the display."""
    return result.loss_percent, result.delay_max


def severity_color(loss_percent: int, mode: ColorMode) -> LcdColor | None:
    """Backlight color for a loss percentage, or None when coloring is off.

    Zero loss is green in NORMAL mode and uncolored in ERRORS mode; total
    loss is red; anything in between is yellow.
    """
    if mode == ColorMode.NONE:
        return None
    if loss_percent == 0:
        return LcdColor.GREEN if mode == ColorMode.NORMAL else LcdColor.NONE
    if loss_percent == TOTAL_LOSS:
        return LcdColor.RED
    return LcdColor.YELLOW
