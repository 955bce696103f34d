"""Collector abstraction for NetMonitor probe sources."""

from typing import Protocol

from netmonitor.models import ProbeOutcome


class Collector(Protocol):
    """Protocol for anything that probes a target list once per cycle."""

    def expected_duration(self) -> float:
        """Nominal seconds one probe run takes."""
        ...

    def probe(self, targets: list[str]) -> ProbeOutcome:
        """Probe every target once and return the raw summary output."""
        ...
