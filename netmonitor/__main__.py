"""Entry point for NetMonitor."""

import argparse
import logging
import shutil
import signal
import sys
from pathlib import Path

from PySide6.QtCore import QCoreApplication, QTimer

from netmonitor.bootstrap import report_error, run_bootstrap
from netmonitor.config import VERSION, Settings
from netmonitor.cycle import create_processor
from netmonitor.display import LcdWriteDisplay, LoggingDisplay, show_error, show_info
from netmonitor.errors import BootstrapError, ConfigError, StorageWriteFailure
from netmonitor.logging_config import configure_logging
from netmonitor.scheduler import MonitorScheduler
from netmonitor.storage import ensure_directory

# Configure logging early
configure_logging()
logger = logging.getLogger(__name__)


def build_argparser():
    ap = argparse.ArgumentParser(
        prog="netmonitor",
        description="Probe targets with fping, rotate results on the LCD and record CSV history",
    )
    ap.add_argument("targets", type=Path, help="File listing one target address or hostname per line")
    ap.add_argument("--csvdir", type=Path, help="Directory for CSV and latest result files")
    ap.add_argument("--timecnt", type=int, help="Probes per target per cycle (cycle length in seconds)")
    ap.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return ap


def select_display(settings: Settings):
    lcdwrite = settings.binary("lcdwrite")
    if lcdwrite.exists():
        return LcdWriteDisplay(lcdwrite)
    logger.warning("lcdwrite not found at %s; display output goes to the log", lcdwrite)
    return LoggingDisplay()


def select_collector(settings: Settings):
    """fping collector, or the simulated probe when requested or unavailable."""
    if settings.probe == "fping":
        fping = settings.binary("fping")
        if fping.exists() or shutil.which(str(fping)):
            from netmonitor.collector_fping import FpingCollector

            logger.info("Using FpingCollector: %s", fping)
            return FpingCollector(fping, count=settings.timecnt)
        logger.warning("fping not found at %s; using simulated probe output", fping)
    else:
        logger.info("Simulated probe explicitly requested via NETMONITOR_PROBE")

    from netmonitor.fake_probe import FakeProbe

    return FakeProbe(count=settings.timecnt, delay_s=settings.timecnt)


def install_signal_handlers(app, scheduler, interval_ms=500):
    """Stop monitoring and leave the event loop on SIGINT or SIGTERM.

    Returns the timer that hands control back to Python so the handlers
    run while Qt waits for events.
    """

    def shutdown(signum, frame):
        logger.info("Received %s; stopping", signal.Signals(signum).name)
        scheduler.stop_monitoring()
        app.quit()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    wakeup = QTimer(app)
    wakeup.timeout.connect(lambda: None)
    wakeup.start(interval_ms)
    return wakeup


def main(argv=None):
    """Main entry point for NetMonitor."""
    args = build_argparser().parse_args(argv)

    try:
        settings = Settings.from_env().with_overrides(csvdir=args.csvdir, timecnt=args.timecnt)
    except ConfigError as e:
        logger.error("Configuration invalid: %s", e)
        return 1

    display = select_display(settings)

    try:
        ensure_directory(settings.csvdir)
    except StorageWriteFailure as e:
        logger.error("Cannot create %s: %s", settings.csvdir, e.error)
        show_error(display, "CSV Directory", "Not Writable")
        return 1

    try:
        boot = run_bootstrap(settings, args.targets, display)
    except BootstrapError as e:
        report_error(settings, display, e.title, e.detail, e.extra)
        return 1

    processor = create_processor(settings, boot.targets, boot.host_address, display)

    app = QCoreApplication(sys.argv[:1])
    scheduler = MonitorScheduler(select_collector(settings), processor)
    install_signal_handlers(app, scheduler)

    # Shown during the first probe run
    show_info(display, "Displayed Values", "LossPct DelayMax")
    scheduler.start_monitoring()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
