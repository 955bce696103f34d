"""Simulated fping output for NetMonitor testing and demos."""

import random
import time

from netmonitor.models import ProbeOutcome


class FakeProbe:
    """Generates fping-formatted summary lines without touching the network."""

    def __init__(self, count: int = 10, seed: int | None = None, delay_s: float = 0.0):
        """Initialize with optional random seed for deterministic behavior.

        Args:
            count: Packets per target reported in each summary line.
            seed: Random seed.
            delay_s: Seconds to sleep per probe, to mimic fping's run time.
        """
        self._random = random.Random(seed)
        self.count = count
        self.delay_s = delay_s

        # Simulation parameters
        self.base_latency = 25.0
        self.latency_variance = 5.0
        self.spike_probability = 0.05
        self.spike_multiplier = 3.0
        self.loss_probability = 0.02
        self.outage_probability = 0.01

    def expected_duration(self) -> float:
        return self.delay_s

    def probe(self, targets: list[str]) -> ProbeOutcome:
        started = time.monotonic()
        if self.delay_s:
            time.sleep(self.delay_s)
        lines = [self.summary_line(target) for target in targets]
        output = "".join(f"{line}\n" for line in lines)
        return ProbeOutcome(output=output, returncode=0, elapsed=time.monotonic() - started)

    def summary_line(self, target: str) -> str:
        if self._random.random() < self.outage_probability:
            return f"{target} : xmt/rcv/%loss = {self.count}/0/100%"

        received = sum(
            1 for _ in range(self.count) if self._random.random() >= self.loss_probability
        )
        if received == 0:
            return f"{target} : xmt/rcv/%loss = {self.count}/0/100%"

        samples = [self._latency() for _ in range(received)]
        loss_percent = round((self.count - received) * 100 / self.count)
        return (
            f"{target} : xmt/rcv/%loss = {self.count}/{received}/{loss_percent}%, "
            f"min/avg/max = {min(samples):.2f}/{sum(samples) / len(samples):.2f}/{max(samples):.2f}"
        )

    def _latency(self) -> float:
        latency = self.base_latency + self._random.gauss(0, self.latency_variance)
        if self._random.random() < self.spike_probability:
            latency *= self.spike_multiplier
        return max(0.1, latency)
