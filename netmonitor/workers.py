"""Worker classes for running the probe off the Qt main thread."""

import logging

from PySide6.QtCore import QObject, QRunnable, Signal

from netmonitor.collector import Collector

logger = logging.getLogger(__name__)


class WorkerSignals(QObject):
    """Signals for communicating between worker threads and main thread."""

    outcome_ready = Signal(object, int)  # Emits (ProbeOutcome, generation_id)
    error = Signal(str)  # Emits error message
    finished = Signal()  # Emits when worker completes


class ProbeWorker(QRunnable):
    """Worker that executes collector.probe() in a background thread."""

    def __init__(self, collector: Collector, targets: list[str], generation_id: int):
        super().__init__()
        self.collector = collector
        self.targets = list(targets)
        self.generation_id = generation_id
        self.signals = WorkerSignals()

    def run(self):
        """Execute the probe in a background thread."""
        try:
            logger.debug(
                "Worker starting: targets=%d, generation_id=%d",
                len(self.targets),
                self.generation_id,
            )

            # Blocks for the whole probe run (count x interval)
            outcome = self.collector.probe(self.targets)

            self.signals.outcome_ready.emit(outcome, self.generation_id)

            logger.debug(
                "Worker completed: generation_id=%d, returncode=%d",
                self.generation_id,
                outcome.returncode,
            )

        except Exception as e:
            logger.exception(
                "Worker exception: generation_id=%d, error=%s", self.generation_id, str(e)
            )
            self.signals.error.emit(str(e))

        finally:
            # Always signal completion
            self.signals.finished.emit()
