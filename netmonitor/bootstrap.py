"""One-shot startup sequence run before the first measurement cycle.

Waits for the network, finds the local address, optionally adds the default
gateway as the first target, waits for time sync and makes sure the
timezone is right. Every step reports progress on the display.
"""

import logging
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

import requests

from netmonitor.config import VERSION, Settings
from netmonitor.display import DisplayBackend, show_error, show_info
from netmonitor.errors import BootstrapError, StorageWriteFailure
from netmonitor.storage import write_error_log

logger = logging.getLogger(__name__)

GEOLOCATION_URL = "https://ipinfo.io/timezone"
TIME_SYNC_TIMEOUT_S = 300


@dataclass(frozen=True)
class BootstrapResult:
    host_address: str
    targets: list[str]
    gateway: str | None = None
    timezone: str = ""


def _run(cmd: list[str], timeout: float = 10.0) -> subprocess.CompletedProcess:
    return subprocess.run(cmd, capture_output=True, text=True, timeout=timeout, shell=False)


def report_error(settings: Settings, display: DisplayBackend, title: str, detail: str, extra: str = "") -> None:
    """Show a startup error and record it in the errors file when possible."""
    logger.error("%s: %s %s", title, detail, extra)
    lines = [f"{title} {detail}"]
    if extra:
        lines.append(extra)
    try:
        write_error_log(settings.csvdir, lines)
    except StorageWriteFailure as e:
        logger.error("Cannot record error: %s", e)
    show_error(display, title, detail)


def load_targets(path: Path | str) -> list[str]:
    """Read the target file: one address or hostname per line.

    Blank lines and ``#`` comments are skipped.

    Raises:
        BootstrapError: The file is missing, unreadable or has no targets.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise BootstrapError("Target File", "Empty or Missing", str(path)) from e

    targets = []
    for line in text.splitlines():
        entry = line.split("#", 1)[0].strip()
        if entry:
            targets.append(entry)

    if not targets:
        raise BootstrapError("Target File", "Empty or Missing", str(path))

    logger.info("Loaded %d targets from %s", len(targets), path)
    return targets


def pause(settings: Settings, seconds: float | None = None) -> None:
    time.sleep(settings.info_pause if seconds is None else seconds)


def show_banner(display: DisplayBackend, settings: Settings) -> None:
    show_info(display, f"NetMonitor v{VERSION}", "  monitor-io.com")
    pause(settings)


def count_routes(routes: str) -> int:
    """Routes other than IPv4 link-local ones."""
    return sum(1 for line in routes.splitlines() if line.strip() and "169.254." not in line)


def read_routes() -> str:
    try:
        result = _run(["ip", "route", "show"])
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("ip route show failed: %s", e)
        return ""
    return result.stdout if result.returncode == 0 else ""


def await_network(display: DisplayBackend, poll_s: float = 1.0, max_attempts: int | None = None) -> str:
    """Block until a default and a LAN route exist; returns the route table.

    Raises:
        BootstrapError: ``max_attempts`` polls passed without routes.
    """
    attempt = 1
    while True:
        routes = read_routes()
        if count_routes(routes) >= 2:
            logger.info("Network routes available after %d attempt(s)", attempt)
            return routes
        if max_attempts is not None and attempt >= max_attempts:
            raise BootstrapError("Awaiting Network", "No Routes")
        show_info(display, "Awaiting Network", str(attempt))
        time.sleep(poll_s)
        attempt += 1


def local_ip_address() -> str:
    """First address reported by ``hostname -I``.

    Raises:
        BootstrapError: No address is configured.
    """
    try:
        result = _run(["hostname", "-I"])
    except (OSError, subprocess.TimeoutExpired) as e:
        raise BootstrapError("Local IP Address", "Unknown", str(e)) from e

    addresses = result.stdout.split()
    if result.returncode != 0 or not addresses:
        raise BootstrapError("Local IP Address", "Unknown", result.stderr.strip())
    return addresses[0]


def default_gateway(routes: str) -> str | None:
    """Gateway from a ``default via 192.168.1.1 dev eth0 ...`` route."""
    for line in routes.splitlines():
        fields = line.split()
        if len(fields) >= 3 and fields[0] == "default" and fields[1] == "via":
            return fields[2]
    return None


def gateway_reachable(settings: Settings, gateway: str) -> bool:
    try:
        result = _run([str(settings.binary("fping")), "-q", gateway], timeout=30)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("Gateway check failed: gateway=%s, error=%s", gateway, e)
        return False
    return result.returncode == 0


def gateway_target(settings: Settings, routes: str, display: DisplayBackend) -> str | None:
    """The default gateway when configured for use and answering pings."""
    if not settings.usedefgw:
        return None
    gateway = default_gateway(routes)
    if gateway is None:
        logger.info("No default gateway route found")
        return None
    if not gateway_reachable(settings, gateway):
        logger.info("Default gateway %s does not answer; not probing it", gateway)
        return None
    show_info(display, "DefGW 1st Target", gateway)
    pause(settings)
    return gateway


def _timedatectl_value(settings: Settings, prop: str) -> str:
    try:
        result = _run([str(settings.binary("timedatectl")), "show", "-p", prop, "--value"])
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("timedatectl show %s failed: %s", prop, e)
        return ""
    return result.stdout.strip()


def await_time_sync(
    settings: Settings,
    display: DisplayBackend,
    timeout_s: int = TIME_SYNC_TIMEOUT_S,
    poll_s: float = 1.0,
) -> bool:
    """Wait up to ``timeout_s`` polls for NTP sync. Returns True when synced."""
    for remaining in range(timeout_s, 0, -1):
        if _timedatectl_value(settings, "NTPSynchronized") == "yes":
            logger.info("Time synchronized")
            return True
        show_info(display, "TimeSync Pending", str(remaining))
        time.sleep(poll_s)

    report_error(
        settings,
        display,
        "TimeSync Failure",
        "Date/Time/TZ = ?",
        "CSV files may have inaccurate Date, Time, and/or Timezone",
    )
    pause(settings, settings.info_pause * 2)
    return False


def geolocate_timezone(timeout_s: float = 10.0) -> str | None:
    """Timezone name for this host's public address, or None."""
    try:
        response = requests.get(GEOLOCATION_URL, timeout=timeout_s)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.warning("IP geolocation failed: %s", e)
        return None

    fields = response.text.split()
    if len(fields) != 1:
        logger.warning("IP geolocation returned unexpected text: %r", response.text[:100])
        return None
    return fields[0]


def configure_timezone(settings: Settings, synced: bool, display: DisplayBackend) -> str:
    """Apply the configured (or geolocated) timezone if it differs.

    Returns the timezone in effect.

    Raises:
        BootstrapError: timedatectl rejected the timezone.
    """
    label = "Timezone"
    current = _timedatectl_value(settings, "Timezone")
    wanted = settings.tz

    if wanted != current:
        if not wanted and synced:
            wanted = geolocate_timezone() or ""
            if not wanted:
                report_error(settings, display, "IP Geolocation", "Failure")
                pause(settings, settings.info_pause * 2)

        if wanted and wanted != current:
            try:
                result = _run([str(settings.binary("timedatectl")), "set-timezone", wanted])
            except (OSError, subprocess.TimeoutExpired) as e:
                raise BootstrapError("Invalid Timezone", wanted, str(e)) from e
            if result.returncode != 0:
                raise BootstrapError("Invalid Timezone", wanted, (result.stdout + result.stderr).strip())
            # localtime() keeps the zone it read at startup until told to re-read it
            time.tzset()
            logger.info("Timezone changed: %s -> %s", current or "(unknown)", wanted)
            label = "Timezone Updated"
            current = _timedatectl_value(settings, "Timezone") or wanted

    show_info(display, label, current)
    pause(settings)
    return current


def run_bootstrap(settings: Settings, targets_path: Path | str, display: DisplayBackend) -> BootstrapResult:
    """Run the full startup sequence.

    Raises:
        BootstrapError: A fatal startup condition.
    """
    targets = load_targets(targets_path)
    show_banner(display, settings)

    routes = await_network(display)

    host_address = local_ip_address()
    show_info(display, "Local IP Address", host_address)
    pause(settings)
    show_info(display, "For SSH and Web", host_address)
    pause(settings)

    gateway = gateway_target(settings, routes, display)
    if gateway is not None:
        targets = [gateway, *targets]

    synced = await_time_sync(settings, display)
    timezone = configure_timezone(settings, synced, display)

    return BootstrapResult(host_address=host_address, targets=targets, gateway=gateway, timezone=timezone)
