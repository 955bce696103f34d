"""One measurement cycle: parse, derive, display, record, store, prune."""

import logging
from typing import Callable

from netmonitor.config import Settings
from netmonitor.display import DisplayBackend, DisplayRotator, show_error
from netmonitor.errors import StorageWriteFailure
from netmonitor.metrics import cycle_has_event
from netmonitor.models import CycleRecord, CycleTimestamp, ProbeOutcome
from netmonitor.probe_parser import align_results, parse_probe_output
from netmonitor.records import build_header, build_row
from netmonitor.storage import StorageManager

logger = logging.getLogger(__name__)


class CycleProcessor:
    """Turns one probe outcome into display updates and stored records.

    Nothing in here is fatal: storage and probe failures are reported on
    the display, in the errors file and in the log, and the next cycle
    proceeds normally.
    """

    def __init__(
        self,
        targets: list[str],
        host_address: str,
        display: DisplayBackend,
        rotator: DisplayRotator,
        storage: StorageManager,
        delay_range: int = 30,
        clock: Callable[[], CycleTimestamp] = CycleTimestamp.now,
    ):
        if not targets:
            raise ValueError("targets must not be empty")

        self.targets = list(targets)
        self.host_address = host_address
        self.display = display
        self.rotator = rotator
        self.storage = storage
        self.delay_range = delay_range
        self.clock = clock
        self.cycles = 0

    def process(self, outcome: ProbeOutcome) -> CycleRecord:
        results = tuple(align_results(parse_probe_output(outcome.output), self.targets))
        record = CycleRecord(
            timestamp=self.clock(),
            host_address=self.host_address,
            results=results,
            has_event=cycle_has_event(results, self.delay_range),
            raw_output=outcome.output,
            resolution_failure=outcome.resolution_failure,
        )
        self.cycles += 1

        shown = self.rotator.show_cycle(results)
        logger.debug("Cycle %d: displayed %s, event=%s", self.cycles, shown, record.has_event)

        self._store(record)
        self.storage.prune()

        if outcome.error:
            self.report_error("Probe Failure", f"Status {outcome.returncode}", outcome.error)

        return record

    def report_error(self, title: str, detail: str, extra: str = "") -> None:
        """Surface an error on every operator channel available."""
        logger.error("%s: %s %s", title, detail, extra)
        lines = [f"{title} {detail}"]
        if extra:
            lines.append(extra)
        try:
            self.storage.write_error(lines)
        except StorageWriteFailure as e:
            logger.error("Cannot record error: %s", e)
        show_error(self.display, title, detail)
        self.rotator.invalidate_color()

    def _store(self, record: CycleRecord) -> None:
        row = build_row(record)
        steps = [
            lambda: self.storage.write_latest_results(record.raw_output),
            lambda: self.storage.append_daily(record.timestamp.date, row),
        ]
        if record.has_event:
            steps.append(lambda: self.storage.append_summary(row))

        for step in steps:
            try:
                step()
            except StorageWriteFailure as e:
                self.report_error("Storage Failure", e.path.name, str(e.error))


def create_processor(
    settings: Settings,
    targets: list[str],
    host_address: str,
    display: DisplayBackend,
    clock: Callable[[], CycleTimestamp] = CycleTimestamp.now,
) -> CycleProcessor:
    """Wire a processor, rotator and storage manager from settings."""
    storage = StorageManager(
        settings.csvdir,
        header=build_header(len(targets)),
        host_address=host_address,
        retention_days=settings.retention_days,
    )
    rotator = DisplayRotator(display, host_address, settings.lcdmode)
    return CycleProcessor(
        targets,
        host_address,
        display,
        rotator,
        storage,
        delay_range=settings.delayrng,
        clock=clock,
    )
