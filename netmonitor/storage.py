"""Flat-file storage of cycle records: daily CSV, event summary, latest logs."""

import logging
import re
import time
from pathlib import Path

from netmonitor.errors import PruneFailure, StorageWriteFailure
from netmonitor.records import format_csv_line

logger = logging.getLogger(__name__)

RESULTS_FILENAME = "Latest_NetMonitor_Results.log"
ERRORS_FILENAME = "Latest_NetMonitor_Errors.log"
SUMMARY_FILENAME = "NetMonitor_Event_Summary.csv"
DAILY_PREFIX = "NetMonitor"
PRUNE_PATTERN = "*.csv"
DEFAULT_RETENTION_DAYS = 30

_SECONDS_PER_DAY = 86400


def daily_filename(record_date: str, host_address: str) -> str:
    """Daily file name, e.g. ``NetMonitor_2023-01-01_192-168-1-20.csv``."""
    return f"{DAILY_PREFIX}_{record_date}_{re.sub(r'[.:]', '-', host_address)}.csv"


def ensure_directory(directory: Path | str) -> None:
    directory = Path(directory)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageWriteFailure(directory, e) from e


def write_error_log(directory: Path | str, lines: list[str]) -> None:
    """Overwrite the latest errors file in ``directory``."""
    _write_text(Path(directory) / ERRORS_FILENAME, "".join(f"{line}\n" for line in lines))


def _write_text(path: Path, text: str) -> None:
    try:
        with path.open("w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        raise StorageWriteFailure(path, e) from e


class StorageManager:
    """Owns every file NetMonitor writes in its storage directory.

    CSV files get their header once. The first write to a path in this
    process adopts an existing non-empty file (for example after a restart
    mid-day) instead of writing a second header.
    """

    def __init__(
        self,
        directory: Path | str,
        header: list[str],
        host_address: str,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        prune_pattern: str = PRUNE_PATTERN,
    ):
        self.directory = Path(directory)
        self.header = list(header)
        self.header_line = format_csv_line(self.header)
        self.host_address = host_address
        self.retention_days = retention_days
        self.prune_pattern = prune_pattern
        self._initialized: set[Path] = set()

    @property
    def results_path(self) -> Path:
        return self.directory / RESULTS_FILENAME

    @property
    def errors_path(self) -> Path:
        return self.directory / ERRORS_FILENAME

    @property
    def summary_path(self) -> Path:
        return self.directory / SUMMARY_FILENAME

    def daily_path(self, record_date: str) -> Path:
        return self.directory / daily_filename(record_date, self.host_address)

    def write_latest_results(self, raw_output: str) -> None:
        """Overwrite the latest results file with the raw probe output."""
        _write_text(self.results_path, raw_output)

    def write_error(self, lines: list[str]) -> None:
        """Overwrite the latest errors file."""
        write_error_log(self.directory, lines)

    def append_daily(self, record_date: str, row: list[str]) -> Path:
        path = self.daily_path(record_date)
        self._append_row(path, row)
        return path

    def append_summary(self, row: list[str]) -> Path:
        path = self.summary_path
        self._append_row(path, row)
        return path

    def prune(self, now: float | None = None) -> list[Path]:
        """Delete matching files older than the retention window.

        Deletion failures are logged and skipped. Returns the removed paths.
        """
        if now is None:
            now = time.time()
        cutoff = now - self.retention_days * _SECONDS_PER_DAY

        removed = []
        try:
            candidates = sorted(self.directory.glob(self.prune_pattern))
        except OSError as e:
            logger.warning("Prune skipped: %s", PruneFailure(self.directory, e))
            return removed

        for path in candidates:
            try:
                if not path.is_file() or path.stat().st_mtime >= cutoff:
                    continue
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning("%s", PruneFailure(path, e))
                continue
            logger.info("Pruned expired file: %s", path.name)
            self._initialized.discard(path)
            removed.append(path)
        return removed

    def _append_row(self, path: Path, row: list[str]) -> None:
        try:
            needs_header = self._needs_header(path)
            with path.open("a", encoding="utf-8", newline="") as f:
                if needs_header:
                    f.write(self.header_line)
                f.write(format_csv_line(row))
        except (OSError, UnicodeDecodeError) as e:
            # A header that is not UTF-8 means the file is not ours to extend
            raise StorageWriteFailure(path, e) from e

        if needs_header:
            logger.info("Started CSV file: %s", path.name)
        self._initialized.add(path)

    def _needs_header(self, path: Path) -> bool:
        if path in self._initialized:
            return False
        try:
            if path.stat().st_size == 0:
                return True
        except FileNotFoundError:
            return True

        with path.open("r", encoding="utf-8", newline="") as f:
            existing = f.readline()
        if existing != self.header_line:
            logger.warning("Existing header of %s differs from current targets", path.name)
        return False
