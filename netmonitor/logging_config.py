"""Logging configuration for NetMonitor."""

import logging
import os
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging() -> None:
    """Configure process-wide logging.

    Respects NETMONITOR_LOG_LEVEL environment variable (default: INFO).
    Logs to stderr, which the supervisor (systemd, runit) collects.

    Environment Variables:
        NETMONITOR_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL.
                              Unknown values fall back to INFO.

    Examples:
        $ NETMONITOR_LOG_LEVEL=DEBUG python -m netmonitor targets.txt
    """
    log_level_str = os.environ.get("NETMONITOR_LOG_LEVEL", "INFO").upper()

    log_level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    log_level = log_level_map.get(log_level_str, logging.INFO)

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,  # Override any existing configuration
    )

    logger = logging.getLogger(__name__)
    logger.info("Logging configured: level=%s", logging.getLevelName(log_level))
