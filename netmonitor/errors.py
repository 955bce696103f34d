"""Exception types raised by NetMonitor components."""


class NetMonitorError(Exception):
    """Base class for NetMonitor errors."""


class ConfigError(NetMonitorError, ValueError):
    """Invalid configuration value."""


class BootstrapError(NetMonitorError):
    """Fatal startup condition (missing targets, no local address, bad timezone)."""

    def __init__(self, title: str, detail: str, extra: str = ""):
        super().__init__(f"{title}: {detail}")
        self.title = title
        self.detail = detail
        self.extra = extra


class ProbeError(NetMonitorError):
    """The probe process could not be run or failed unexpectedly."""


class ParseAnomaly(NetMonitorError, ValueError):
    """A probe output marker was present but its value could not be parsed."""

    def __init__(self, marker: str, value: str):
        super().__init__(f"unparseable value for {marker}: {value!r}")
        self.marker = marker
        self.value = value


class StorageWriteFailure(NetMonitorError):
    """Writing a storage artifact failed."""

    def __init__(self, path, error: OSError | UnicodeDecodeError):
        super().__init__(f"write to {path} failed: {error}")
        self.path = path
        self.error = error


class PruneFailure(NetMonitorError):
    """Removing an expired storage artifact failed."""

    def __init__(self, path, error: OSError):
        super().__init__(f"prune of {path} failed: {error}")
        self.path = path
        self.error = error
