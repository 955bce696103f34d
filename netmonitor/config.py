"""Runtime settings for NetMonitor, read from NETMONITOR_* environment variables."""

import logging
import os
from dataclasses import dataclass, replace
from enum import IntEnum
from pathlib import Path

from netmonitor.errors import ConfigError

logger = logging.getLogger(__name__)

VERSION = "1.0"
ENV_PREFIX = "NETMONITOR_"


class ColorMode(IntEnum):
    """LCD backlight coloring (``lcdmode``)."""

    NONE = 0  # never send color commands
    ERRORS = 1  # color only loss, no green
    NORMAL = 2  # green on zero loss


@dataclass(frozen=True)
class Settings:
    """NetMonitor configuration.

    Attributes:
        timecnt: Probe count per target per cycle; also the nominal cycle
            length in seconds. Values below 5 are accepted with a warning.
        delayrng: Delay range (max - min, whole ms) that counts as an event.
        lcdmode: Backlight coloring mode.
        usedefgw: Probe the default gateway first when it answers.
        tz: Timezone to enforce; empty means geolocate.
        suiddir: Directory holding the fping, lcdwrite and timedatectl binaries.
        csvdir: Directory for CSV files and latest result/error logs.
        retention_days: Age after which CSV files are pruned.
        info_pause: Seconds each startup message stays on the display.
        probe: "fping" for the real probe, "fake" for simulated output.
    """

    timecnt: int = 10
    delayrng: int = 30
    lcdmode: ColorMode = ColorMode.NORMAL
    usedefgw: bool = True
    tz: str = ""
    suiddir: Path = Path("/usr/local/bin")
    csvdir: Path = Path("/dev/shm/netmonitor")
    retention_days: int = 30
    info_pause: float = 5.0
    probe: str = "fping"

    def __post_init__(self):
        if self.timecnt < 1:
            raise ConfigError("timecnt must be positive")
        if self.delayrng < 0:
            raise ConfigError("delayrng must not be negative")
        if self.retention_days < 1:
            raise ConfigError("retention_days must be positive")
        if self.info_pause < 0:
            raise ConfigError("info_pause must not be negative")
        if self.probe not in ("fping", "fake"):
            raise ConfigError(f"unknown probe: {self.probe}")
        if self.timecnt < 5:
            logger.warning("timecnt=%d is below the recommended minimum of 5", self.timecnt)

    def binary(self, name: str) -> Path:
        """Path of a helper binary inside ``suiddir``."""
        return self.suiddir / name

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with the non-None ``changes`` applied."""
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes) if changes else self

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """Build settings from NETMONITOR_* variables, defaulting the rest.

        Raises:
            ConfigError: A variable holds an invalid value.
        """
        if environ is None:
            environ = os.environ

        def get(name):
            value = environ.get(ENV_PREFIX + name)
            if value is None or not value.strip():
                return None
            return value.strip()

        values = {}
        for name, field in (
            ("TIMECNT", "timecnt"),
            ("DELAYRNG", "delayrng"),
            ("RETENTION_DAYS", "retention_days"),
        ):
            raw = get(name)
            if raw is not None:
                values[field] = _to_int(ENV_PREFIX + name, raw)

        raw = get("LCDMODE")
        if raw is not None:
            try:
                values["lcdmode"] = ColorMode(_to_int(ENV_PREFIX + "LCDMODE", raw))
            except ValueError:
                raise ConfigError(f"{ENV_PREFIX}LCDMODE must be 0, 1 or 2, got {raw!r}") from None

        raw = get("USEDEFGW")
        if raw is not None:
            values["usedefgw"] = _to_bool(ENV_PREFIX + "USEDEFGW", raw)

        raw = get("INFO_PAUSE")
        if raw is not None:
            try:
                values["info_pause"] = float(raw)
            except ValueError:
                raise ConfigError(f"{ENV_PREFIX}INFO_PAUSE must be a number, got {raw!r}") from None

        for name, field in (("SUIDDIR", "suiddir"), ("CSVDIR", "csvdir")):
            raw = get(name)
            if raw is not None:
                values[field] = Path(raw)

        raw = get("TZ")
        if raw is not None:
            values["tz"] = raw

        raw = get("PROBE")
        if raw is not None:
            values["probe"] = raw.lower()

        return cls(**values)


def _to_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _to_bool(name: str, raw: str) -> bool:
    lowered = raw.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")
