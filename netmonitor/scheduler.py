"""Cycle scheduler: one probe run at a time, back to back, on a Qt event loop."""

import logging

from PySide6.QtCore import QObject, QThreadPool, QTimer

from netmonitor.collector import Collector
from netmonitor.cycle import CycleProcessor
from netmonitor.models import ProbeOutcome
from netmonitor.workers import ProbeWorker

logger = logging.getLogger(__name__)


def next_cycle_delay_ms(outcome: ProbeOutcome | None, expected_s: float) -> int:
    """Milliseconds to wait before the next probe run.

    A healthy probe run already took the whole cycle period, so the next run
    starts immediately. A failed run (name resolution, probe error or a
    worker crash, signalled by ``outcome=None``) that returned early waits
    out the rest of the period.
    """
    if outcome is None:
        return int(expected_s * 1000)
    if not (outcome.resolution_failure or outcome.error):
        return 0
    remaining = expected_s - outcome.elapsed
    return max(0, int(remaining * 1000))


class MonitorScheduler(QObject):
    """Runs measurement cycles forever, never overlapping.

    Key features:
    - The probe runs in a QThreadPool worker; the rest of the cycle runs on
      the main thread when the outcome signal arrives
    - The next cycle is armed by a single-shot timer only after the worker
      finished
    - Results from a worker started before stop_monitoring() are ignored

    Thread-safe: All state access on Qt main thread via signals/slots.
    """

    def __init__(self, collector: Collector, processor: CycleProcessor, parent=None):
        """Initialize the scheduler.

        Args:
            collector: Collector that runs the probe
            processor: Cycle processor fed with each probe outcome
            parent: Qt parent object
        """
        super().__init__(parent)

        self.collector = collector
        self.processor = processor

        self._in_flight = False
        self._next_delay_ms = 0

        # Generation ID for invalidating stale results
        self._generation_id = 0

        # Threading
        self.thread_pool = QThreadPool.globalInstance()

        # Timer arming the next cycle
        self.timer = QTimer(self)
        self.timer.setSingleShot(True)
        self.timer.timeout.connect(self._start_cycle)

        # Monitoring state
        self.is_monitoring = False

    @property
    def targets(self) -> list[str]:
        return self.processor.targets

    def start_monitoring(self):
        """Start the cycle loop with an immediate first cycle."""
        if self.is_monitoring:
            return

        self.is_monitoring = True
        if not self._in_flight:
            self.timer.start(0)
        logger.info("Monitoring started: %d targets", len(self.targets))

    def stop_monitoring(self):
        """Stop the loop and invalidate an in-flight probe run."""
        if not self.is_monitoring:
            return

        self.is_monitoring = False
        self.timer.stop()
        self._generation_id += 1
        logger.info("Monitoring stopped (generation_id=%d)", self._generation_id)

    def _start_cycle(self):
        if not self.is_monitoring or self._in_flight:
            return

        self._in_flight = True
        self._next_delay_ms = 0
        generation_id = self._generation_id

        worker = ProbeWorker(self.collector, self.targets, generation_id)
        worker.signals.outcome_ready.connect(self._on_outcome_ready)
        worker.signals.error.connect(self._on_worker_error)
        worker.signals.finished.connect(self._on_worker_finished)

        self.thread_pool.start(worker)

    def _on_outcome_ready(self, outcome, generation_id):
        """Handle a probe outcome from the worker.

        Args:
            outcome: ProbeOutcome
            generation_id: Generation ID when the worker was started
        """
        if generation_id != self._generation_id:
            logger.debug(
                "Ignoring stale outcome: generation_id=%d (current=%d)",
                generation_id,
                self._generation_id,
            )
            return

        self._next_delay_ms = next_cycle_delay_ms(outcome, self.collector.expected_duration())

        try:
            self.processor.process(outcome)
        except Exception as e:
            logger.exception("Cycle processing failed: %s", e)
            self.processor.report_error("Cycle Failure", type(e).__name__, str(e))

    def _on_worker_error(self, error_msg):
        logger.error("Probe worker error: %s", error_msg)
        self._next_delay_ms = next_cycle_delay_ms(None, self.collector.expected_duration())
        self.processor.report_error("Probe Failure", "Worker Error", error_msg)

    def _on_worker_finished(self):
        """Clear the in-flight flag and arm the next cycle."""
        self._in_flight = False
        if self.is_monitoring:
            if self._next_delay_ms:
                logger.debug("Next cycle in %dms", self._next_delay_ms)
            self.timer.start(self._next_delay_ms)
