"""LCD output: the lcdwrite backend and the one-target-per-cycle rotator."""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

from netmonitor.config import ColorMode
from netmonitor.metrics import display_values, severity_color
from netmonitor.models import LcdColor, MeasurementResult

logger = logging.getLogger(__name__)

HOST_LABEL = "Local IP Address"


class DisplayBackend(Protocol):
    """Protocol for a two-line display with a colored backlight."""

    def set_color(self, color: LcdColor) -> None:
        """Change the backlight color."""
        ...

    def show(self, line1: str, line2: str, color: LcdColor | None = None) -> None:
        """Replace both lines, optionally changing the color first."""
        ...


class LcdWriteDisplay:
    """Display backend that drives the external ``lcdwrite`` helper.

    Failures are logged and otherwise ignored: the display is the operator
    channel of last resort and must never stop a measurement cycle.
    """

    def __init__(self, lcdwrite: Path | str, timeout_s: float = 5.0):
        self.lcdwrite = str(lcdwrite)
        self.timeout_s = timeout_s

    def set_color(self, color: LcdColor) -> None:
        self._run(["-c", color.value])

    def show(self, line1: str, line2: str, color: LcdColor | None = None) -> None:
        args = ["-f"]
        if color is not None:
            args.extend(["-c", color.value])
        args.extend(["-1", line1, "-2", line2])
        self._run(args)

    def _run(self, args: list[str]) -> None:
        cmd = [self.lcdwrite, *args]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
                shell=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("lcdwrite failed: cmd=%s, error=%s", cmd, e)
            return
        if result.returncode != 0:
            logger.warning(
                "lcdwrite returned %d: cmd=%s, stderr=%s",
                result.returncode,
                cmd,
                result.stderr.strip(),
            )


class LoggingDisplay:
    """Display backend that only logs, for hosts without an LCD."""

    def set_color(self, color: LcdColor) -> None:
        logger.debug("Display color: %s", color.name)

    def show(self, line1: str, line2: str, color: LcdColor | None = None) -> None:
        logger.info("Display: %s | %s", line1, line2.strip())


def show_info(display: DisplayBackend, line1: str, line2: str) -> None:
    """Show a white informational message."""
    display.show(line1, line2, LcdColor.WHITE)


def show_error(display: DisplayBackend, line1: str, line2: str) -> None:
    """Show a red error message."""
    display.show(line1, line2, LcdColor.RED)


@dataclass(frozen=True)
class TargetState:
    """Showing the target at 1-based ``index``."""

    index: int


@dataclass(frozen=True)
class HostState:
    """Showing the host's own address."""


DisplayState = TargetState | HostState

INITIAL_STATE = TargetState(1)


def next_state(state: DisplayState, target_count: int) -> DisplayState:
    """Advance the rotation: targets 1..n in order, then the host, then 1 again."""
    if isinstance(state, HostState) or target_count < 1:
        return INITIAL_STATE
    if state.index < target_count:
        return TargetState(state.index + 1)
    return HostState()


def format_result_lines(result: MeasurementResult) -> tuple[str, str]:
    loss_percent, delay_max = display_values(result)
    return result.target, f"  {loss_percent}%  {delay_max}ms"


class DisplayRotator:
    """Shows one target per cycle, then the host address, round-robin.

    The backlight color is only re-sent when it differs from the last color
    this rotator set.
    """

    def __init__(self, display: DisplayBackend, host_address: str, mode: ColorMode = ColorMode.NORMAL):
        self.display = display
        self.host_address = host_address
        self.mode = mode
        self.state: DisplayState = INITIAL_STATE
        self.last_color: LcdColor | None = None

    def invalidate_color(self) -> None:
        """Forget the backlight color after something else changed it."""
        self.last_color = None

    def show_cycle(self, results: Sequence[MeasurementResult]) -> DisplayState:
        """Display this cycle's selection and advance. Returns the state shown."""
        shown = self.state
        if isinstance(shown, TargetState) and shown.index > len(results):
            # Target list shrank underneath us; fall back to the host view
            shown = HostState()

        if isinstance(shown, TargetState):
            result = results[shown.index - 1]
            self._apply_color(result.loss_percent)
            line1, line2 = format_result_lines(result)
            self.display.show(line1, line2)
        else:
            self.display.show(HOST_LABEL, self.host_address)

        self.state = next_state(shown, len(results))
        return shown

    def _apply_color(self, loss_percent: int) -> None:
        color = severity_color(loss_percent, self.mode)
        if color is None:
            return
        if color != self.last_color:
            self.display.set_color(color)
            self.last_color = color
