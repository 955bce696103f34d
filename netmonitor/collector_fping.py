"""Probe collector that runs fping over the whole target list."""

import logging
import subprocess
import time
from pathlib import Path

from netmonitor.errors import ProbeError
from netmonitor.models import ProbeOutcome

logger = logging.getLogger(__name__)

# fping exit statuses
EXIT_ALL_ALIVE = 0
EXIT_SOME_UNREACHABLE = 1
EXIT_NAME_RESOLUTION = 2

RESOLUTION_FAILURE_NOTE = "DNS:Failure(s)"


class FpingCollector:
    """Collector that runs ``fping -q -r 0 -c <count>`` once per cycle.

    Targets are written to fping's stdin, one per line. With ``-q`` fping
    prints only the per-target summary lines, on stderr, so both streams are
    captured together.

    Exit status 2 (name resolution failure) still yields the lines for the
    targets that resolved; a note is appended to the output and the outcome
    is flagged so the scheduler can keep the cycle period. Any other failure
    is reported through ``ProbeOutcome.error``.
    """

    def __init__(self, fping: Path | str, count: int = 10, period_ms: int = 1000):
        if count <= 0:
            raise ValueError("count must be positive")
        if period_ms <= 0:
            raise ValueError("period_ms must be positive")

        self.fping = str(fping)
        self.count = count
        self.period_ms = period_ms

        logger.debug("FpingCollector initialized: fping=%s, count=%d", self.fping, count)

    def expected_duration(self) -> float:
        return self.count * self.period_ms / 1000.0

    def build_command(self) -> list[str]:
        cmd = [self.fping, "-q", "-r", "0", "-c", str(self.count)]
        if self.period_ms != 1000:
            cmd.extend(["-p", str(self.period_ms)])
        return cmd

    def probe(self, targets: list[str]) -> ProbeOutcome:
        started = time.monotonic()
        try:
            output, returncode = self._execute(targets)
        except ProbeError as e:
            elapsed = time.monotonic() - started
            logger.error("Probe failed after %.1fs: %s", elapsed, e)
            return ProbeOutcome(output="", returncode=-1, elapsed=elapsed, error=str(e))

        elapsed = time.monotonic() - started
        logger.debug("fping completed: returncode=%d, elapsed=%.1fs", returncode, elapsed)

        if returncode == EXIT_NAME_RESOLUTION:
            logger.warning("fping reported name resolution failure(s)")
            if output and not output.endswith("\n"):
                output += "\n"
            output += RESOLUTION_FAILURE_NOTE + "\n"
            return ProbeOutcome(
                output=output, returncode=returncode, elapsed=elapsed, resolution_failure=True
            )

        if returncode not in (EXIT_ALL_ALIVE, EXIT_SOME_UNREACHABLE):
            detail = output.strip().splitlines()[-1] if output.strip() else "no output"
            return ProbeOutcome(
                output=output,
                returncode=returncode,
                elapsed=elapsed,
                error=f"fping exited with status {returncode}: {detail}",
            )

        return ProbeOutcome(output=output, returncode=returncode, elapsed=elapsed)

    def _execute(self, targets: list[str]) -> tuple[str, int]:
        cmd = self.build_command()
        stdin = "".join(f"{target}\n" for target in targets)
        # Generous bound: fping itself finishes after count * period plus timeouts
        timeout_s = self.expected_duration() * 2 + 30

        try:
            result = subprocess.run(
                cmd,
                input=stdin,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=timeout_s,
                shell=False,
            )
        except subprocess.TimeoutExpired:
            raise ProbeError(f"fping timed out after {timeout_s:.0f}s") from None
        except OSError as e:
            raise ProbeError(f"cannot run {self.fping}: {e}") from e

        return result.stdout or "", result.returncode
