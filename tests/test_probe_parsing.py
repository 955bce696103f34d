"""Unit tests for fping summary parsing (pure function tests).

Tests parse_probe_line(), parse_probe_output() and align_results() against
fping output without running fping.
"""

import logging
from decimal import Decimal

from netmonitor.models import DelayStats, LossStats, MeasurementResult
from netmonitor.probe_parser import (
    align_results,
    parse_delay_value,
    parse_loss_value,
    parse_probe_line,
    parse_probe_output,
)

FULL_LINE = "8.8.8.8        : xmt/rcv/%loss = 15/15/0%, min/avg/max = 6.25/6.25/6.25"
GATEWAY_LINE = "192.168.1.1    : xmt/rcv/%loss = 15/15/0%, min/avg/max = 0.416/0.539/1.11"
PARTIAL_LOSS_LINE = "www.google.com : xmt/rcv/%loss = 15/12/20%, min/avg/max = 3.82/4.75/5.67"
TOTAL_LOSS_LINE = "10.9.9.9       : xmt/rcv/%loss = 15/0/100%"


class TestParseProbeLineComplete:
    """Test lines carrying both the loss and the delay marker."""

    def test_full_line(self):
        """Test the canonical 8.8.8.8 example line."""
        result = parse_probe_line(FULL_LINE)

        assert result.target == "8.8.8.8"
        assert result.loss == LossStats(transmitted=15, received=15, loss_percent=0)
        assert result.delay == DelayStats(
            minimum=Decimal("6.25"), average=Decimal("6.25"), maximum=Decimal("6.25")
        )
        assert result.loss_percent == 0

    def test_delay_precision_kept(self):
        """Test delay values keep their printed precision."""
        result = parse_probe_line(GATEWAY_LINE)

        assert str(result.delay.minimum) == "0.416"
        assert str(result.delay.average) == "0.539"
        assert str(result.delay.maximum) == "1.11"

    def test_partial_loss(self):
        """Test a line reporting partial loss."""
        result = parse_probe_line(PARTIAL_LOSS_LINE)

        assert result.target == "www.google.com"
        assert result.loss.transmitted == 15
        assert result.loss.received == 12
        assert result.loss_percent == 20
        assert result.delay_max == Decimal("5.67")

    def test_no_padding(self):
        """Test a line without column padding."""
        result = parse_probe_line("1.1.1.1 : xmt/rcv/%loss = 5/5/0%, min/avg/max = 1/2/3")

        assert result.loss_percent == 0
        assert result.delay.maximum == Decimal("3")


class TestParseProbeLineMissingMarkers:
    """Test lines where fping printed no statistics."""

    def test_total_loss_has_no_delay(self):
        """Test total loss: loss triad present, delay triad absent."""
        result = parse_probe_line(TOTAL_LOSS_LINE)

        assert result.loss == LossStats(transmitted=15, received=0, loss_percent=100)
        assert result.delay is None
        assert result.delay_min == Decimal("0.000")
        assert result.delay_max == Decimal("0.000")
        assert str(result.delay_max) == "0.000"

    def test_resolution_failure_line(self):
        """Test 'host: Name or service not known' yields a total-loss result."""
        result = parse_probe_line("bad.host: Name or service not known")

        assert result.target == "bad.host"
        assert result.loss is None
        assert result.delay is None
        assert result.loss_percent == 100

    def test_failure_note_line(self):
        """Test the appended DNS:Failure(s) note parses without crashing."""
        result = parse_probe_line("DNS:Failure(s)")

        assert result.target == "DNS:Failure(s)"
        assert result.loss_percent == 100

    def test_target_only(self):
        """Test a line holding only a target."""
        result = parse_probe_line("8.8.4.4")

        assert result == MeasurementResult(target="8.8.4.4")

    def test_empty_line(self):
        """Test a line without any token."""
        result = parse_probe_line("   ")

        assert result.target == ""
        assert result.loss_percent == 100
        assert result.delay_max == Decimal("0.000")

    def test_none_line(self):
        """Test None input is treated as an empty line."""
        assert parse_probe_line(None).loss_percent == 100

    def test_ipv6_target_kept(self):
        """Test an IPv6 target ending in '::' is not truncated."""
        result = parse_probe_line("fe80:: : xmt/rcv/%loss = 3/3/0%")

        assert result.target == "fe80::"


class TestParseProbeLineAnomalies:
    """Test markers present but followed by garbage."""

    def test_bad_loss_value(self, caplog):
        """Test unparseable loss triple is logged and treated as absent."""
        line = "8.8.8.8 : xmt/rcv/%loss = x/y/z%, min/avg/max = 1.0/2.0/3.0"
        with caplog.at_level(logging.WARNING, logger="netmonitor.probe_parser"):
            result = parse_probe_line(line)

        assert result.loss is None
        assert result.loss_percent == 100
        assert result.delay.maximum == Decimal("3.0")
        assert "Parse anomaly" in caplog.text

    def test_bad_delay_value(self, caplog):
        """Test unparseable delay triple is logged and treated as absent."""
        line = "8.8.8.8 : xmt/rcv/%loss = 5/5/0%, min/avg/max = 1.0/abc/3.0"
        with caplog.at_level(logging.WARNING, logger="netmonitor.probe_parser"):
            result = parse_probe_line(line)

        assert result.loss_percent == 0
        assert result.delay is None
        assert "min/avg/max" in caplog.text

    def test_marker_without_value(self, caplog):
        """Test a truncated line ending in a marker."""
        with caplog.at_level(logging.WARNING, logger="netmonitor.probe_parser"):
            result = parse_probe_line("8.8.8.8 : xmt/rcv/%loss =")

        assert result.loss is None
        assert "Parse anomaly" in caplog.text

    def test_short_delay_triple(self):
        """Test a delay value with only two parts."""
        result = parse_probe_line("8.8.8.8 : xmt/rcv/%loss = 5/5/0%, min/avg/max = 1.0/2.0")

        assert result.delay is None
        assert result.loss_percent == 0

    def test_nan_delay_rejected(self):
        """Test non-finite decimals are rejected."""
        result = parse_probe_line("8.8.8.8 : xmt/rcv/%loss = 5/5/0%, min/avg/max = NaN/1/2")

        assert result.delay is None


class TestValueParsers:
    """Test the triple parsers directly."""

    def test_loss_value_with_trailing_comma(self):
        assert parse_loss_value("10/10/0%,") == LossStats(10, 10, 0)

    def test_loss_value_without_comma(self):
        assert parse_loss_value("10/0/100%") == LossStats(10, 0, 100)

    def test_delay_value(self):
        assert parse_delay_value("3.82/4.75/5.67") == DelayStats(
            Decimal("3.82"), Decimal("4.75"), Decimal("5.67")
        )


class TestParseProbeOutput:
    """Test parsing of a whole cycle's output."""

    def test_one_result_per_line_in_order(self):
        """Test results follow the line order."""
        output = "\n".join([GATEWAY_LINE, FULL_LINE, PARTIAL_LOSS_LINE]) + "\n"

        results = parse_probe_output(output)

        assert [r.target for r in results] == ["192.168.1.1", "8.8.8.8", "www.google.com"]

    def test_blank_lines_skipped(self):
        """Test blank lines do not produce results."""
        results = parse_probe_output(f"\n{FULL_LINE}\n\n")

        assert len(results) == 1

    def test_empty_output(self):
        """Test empty or None output yields no results."""
        assert parse_probe_output("") == []
        assert parse_probe_output(None) == []


class TestAlignResults:
    """Test reconciling parsed lines with the probed target list."""

    def test_matching_output(self):
        """Test output covering every target keeps target order."""
        results = parse_probe_output(f"{FULL_LINE}\n{GATEWAY_LINE}\n")

        aligned = align_results(results, ["192.168.1.1", "8.8.8.8"])

        assert [r.target for r in aligned] == ["192.168.1.1", "8.8.8.8"]
        assert aligned[0].delay.maximum == Decimal("1.11")

    def test_missing_target_synthesized(self):
        """Test a target without a line is reported as unreachable."""
        results = parse_probe_output(FULL_LINE)

        aligned = align_results(results, ["8.8.8.8", "bad.host"])

        assert len(aligned) == 2
        assert aligned[1] == MeasurementResult.unreachable("bad.host")

    def test_unknown_lines_dropped(self):
        """Test lines for targets that were not probed are dropped."""
        output = f"bad.host: Name or service not known\n{FULL_LINE}\nDNS:Failure(s)\n"

        aligned = align_results(parse_probe_output(output), ["bad.host", "8.8.8.8"])

        assert [r.target for r in aligned] == ["bad.host", "8.8.8.8"]
        assert aligned[0].loss_percent == 100
        assert aligned[1].loss_percent == 0

    def test_duplicate_targets_consume_in_order(self):
        """Test a target listed twice gets its two lines in order."""
        output = "8.8.8.8 : xmt/rcv/%loss = 5/5/0%\n8.8.8.8 : xmt/rcv/%loss = 5/0/100%\n"

        aligned = align_results(parse_probe_output(output), ["8.8.8.8", "8.8.8.8"])

        assert [r.loss_percent for r in aligned] == [0, 100]

    def test_no_output(self):
        """Test a probe that printed nothing yields all-unreachable results."""
        aligned = align_results([], ["a", "b", "c"])

        assert [r.loss_percent for r in aligned] == [100, 100, 100]
