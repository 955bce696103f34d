"""Parsing of fping summary output into per-target measurement results.

fping in quiet count mode (``fping -q -c N``) prints one summary line per
target, for example::

    192.168.1.1    : xmt/rcv/%loss = 15/15/0%, min/avg/max = 0.416/0.539/1.11
    10.9.9.9       : xmt/rcv/%loss = 15/0/100%
    bad.host: Name or service not known

The loss and delay statistics are located by their literal marker tokens and
parsed independently. All functions here are pure so they can be tested
without running fping.
"""

import logging
import re
from collections import defaultdict, deque
from decimal import Decimal, InvalidOperation

from netmonitor.errors import ParseAnomaly
from netmonitor.models import DelayStats, LossStats, MeasurementResult

logger = logging.getLogger(__name__)

LOSS_MARKER = "xmt/rcv/%loss"
DELAY_MARKER = "min/avg/max"

_LOSS_SPLIT = re.compile(r"[/%,]")


def _marker_value(tokens: list[str], marker: str) -> str | None:
    """Return the token holding the value for ``marker``, or None if absent.

    The value follows the marker, skipping the ``=`` separator when present.
    """
    try:
        index = tokens.index(marker, 1)
    except ValueError:
        return None

    position = index + 1
    if position < len(tokens) and tokens[position] == "=":
        position += 1
    if position >= len(tokens):
        # Marker without a value is malformed, not absent
        raise ParseAnomaly(marker, "")
    return tokens[position]


def parse_loss_value(value: str) -> LossStats:
    """Parse a ``15/15/0%,`` triple into loss statistics."""
    parts = [part for part in _LOSS_SPLIT.split(value) if part]
    if len(parts) != 3:
        raise ParseAnomaly(LOSS_MARKER, value)
    try:
        transmitted, received, loss_percent = (int(part) for part in parts)
    except ValueError:
        raise ParseAnomaly(LOSS_MARKER, value) from None
    return LossStats(transmitted=transmitted, received=received, loss_percent=loss_percent)


def parse_delay_value(value: str) -> DelayStats:
    """Parse a ``3.82/4.75/5.67`` triple into delay statistics."""
    parts = value.rstrip(",").split("/")
    if len(parts) != 3:
        raise ParseAnomaly(DELAY_MARKER, value)
    try:
        minimum, average, maximum = (Decimal(part) for part in parts)
    except InvalidOperation:
        raise ParseAnomaly(DELAY_MARKER, value) from None
    if not all(v.is_finite() for v in (minimum, average, maximum)):
        raise ParseAnomaly(DELAY_MARKER, value)
    return DelayStats(minimum=minimum, average=average, maximum=maximum)


def _target_token(token: str) -> str:
    # Error lines read "host: message"; keep IPv6 "::" suffixes intact
    if token.endswith(":") and not token.endswith("::") and len(token) > 1:
        return token[:-1]
    return token


def parse_probe_line(line: str) -> MeasurementResult:
    """Parse one fping summary line.

    Missing markers produce None statistics. A marker whose value cannot be
    parsed is logged as an anomaly and treated as missing. A line without
    any token yields an unreachable result with an empty target.

    Examples:
        >>> parse_probe_line("8.8.8.8 : xmt/rcv/%loss = 15/15/0%, min/avg/max = 6.25/6.25/6.25").loss
        LossStats(transmitted=15, received=15, loss_percent=0)
        >>> parse_probe_line("bad.host: Name or service not known").loss_percent
        100
    """
    tokens = line.split() if line else []
    if not tokens:
        logger.warning("Probe line without target: %r", line)
        return MeasurementResult.unreachable("")

    target = _target_token(tokens[0])

    loss = None
    try:
        value = _marker_value(tokens, LOSS_MARKER)
        if value is not None:
            loss = parse_loss_value(value)
    except ParseAnomaly as e:
        logger.warning("Parse anomaly: target=%s, %s", target, e)

    delay = None
    try:
        value = _marker_value(tokens, DELAY_MARKER)
        if value is not None:
            delay = parse_delay_value(value)
    except ParseAnomaly as e:
        logger.warning("Parse anomaly: target=%s, %s", target, e)

    return MeasurementResult(target=target, loss=loss, delay=delay)


def parse_probe_output(output: str) -> list[MeasurementResult]:
    """Parse every non-blank line of probe output, preserving order."""
    if not output:
        return []
    return [parse_probe_line(line) for line in output.splitlines() if line.strip()]


def align_results(
    results: list[MeasurementResult], targets: list[str]
) -> list[MeasurementResult]:
    """Return exactly one result per probed target, in target order.

    Targets the probe printed nothing for are reported as unreachable.
    Lines naming a target that was not probed (such as failure notes) are
    dropped. A target listed twice consumes its lines in order.
    """
    wanted = set(targets)
    by_target = defaultdict(deque)
    for result in results:
        if result.target in wanted:
            by_target[result.target].append(result)
        else:
            logger.debug("Ignoring probe line for unknown target: %r", result.target)

    aligned = []
    for target in targets:
        pending = by_target[target]
        if pending:
            aligned.append(pending.popleft())
        else:
            logger.debug("No probe output for target: %s", target)
            aligned.append(MeasurementResult.unreachable(target))
    return aligned
