"""CSV header and row construction for cycle records."""

import csv
import io

from netmonitor.models import CycleRecord, MeasurementResult

TIMESTAMP_COLUMNS = ("Date", "Time", "Timezone")
HOST_COLUMN = "IPAddress"
TARGET_COLUMNS = (
    "Target",
    "Transmit",
    "Receive",
    "LossPct",
    "DelayMin",
    "DelayAvg",
    "DelayMax",
)


def build_header(target_count: int) -> list[str]:
    """Column names for ``target_count`` targets (targets numbered from 1)."""
    header = [*TIMESTAMP_COLUMNS, HOST_COLUMN]
    for number in range(1, target_count + 1):
        header.extend(f"{column}{number}" for column in TARGET_COLUMNS)
    return header


def _text(value) -> str:
    return "" if value is None else str(value)


def result_fields(result: MeasurementResult) -> list[str]:
    """The seven per-target columns; empty strings for missing statistics."""
    loss = result.loss
    delay = result.delay
    return [
        result.target,
        _text(loss and loss.transmitted),
        _text(loss and loss.received),
        _text(loss and loss.loss_percent),
        _text(delay and delay.minimum),
        _text(delay and delay.average),
        _text(delay and delay.maximum),
    ]


def build_row(record: CycleRecord) -> list[str]:
    ts = record.timestamp
    row = [ts.date, ts.time, ts.timezone, record.host_address]
    for result in record.results:
        row.extend(result_fields(result))
    return row


def format_csv_line(fields: list[str]) -> str:
    """Serialize fields as one CSV line, quoting only when needed."""
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(fields)
    return buffer.getvalue()
