"""Unit tests for output sinks and sink selection."""

from io import StringIO

import pytest
from rich.console import Console
from structlog.testing import capture_logs

from tradeperf.libraries.performance.exceptions import ConfigurationError
from tradeperf.services.reporting.sinks import LogSink, RelaySink, create_sink
from tradeperf.system import AnalyzerConfig


@pytest.fixture
def buy(make_trade):
    return make_trade("buy", 0, 100.0, balance=1000.0, asset=10.0)


@pytest.fixture
def roundtrip(make_roundtrip):
    return make_roundtrip(0, 1000.0, 1100.0, hours=3)


class TestCreateSink:
    """Test sink selection from configuration."""

    def test_log_is_default(self):
        """Test default configuration builds a LogSink."""
        assert isinstance(create_sink(AnalyzerConfig()), LogSink)

    def test_relay_with_send(self):
        """Test relay configuration builds a RelaySink."""
        sink = create_sink(AnalyzerConfig(sink="relay"), send=lambda payload: None)

        assert isinstance(sink, RelaySink)

    def test_relay_without_send_raises(self):
        """Test relay needs somewhere to send events."""
        with pytest.raises(ConfigurationError, match="send callable"):
            create_sink(AnalyzerConfig(sink="relay"))


class TestLogSink:
    """Test event display logging."""

    def test_handle_trade_logs_event_display(self, buy, sample_report):
        """Test trades are logged with running balance and return."""
        # Arrange
        sink = LogSink()

        # Act
        with capture_logs() as logs:
            sink.handle_trade(buy, sample_report)

        # Assert
        assert len(logs) == 1
        entry = logs[0]
        assert entry["event"] == "event.display"
        assert entry["event_type"] == "trade"
        assert entry["action"] == "buy"
        assert entry["price"] == 100.0
        assert entry["balance"] == sample_report.balance
        assert entry["timestamp"] == "2024-01-01T00:00:00+00:00"

    def test_handle_roundtrip_logs_humanized_duration(self, roundtrip):
        """Test round trips are logged with id, P&L and duration."""
        sink = LogSink()

        with capture_logs() as logs:
            sink.handle_roundtrip(roundtrip)

        entry = logs[0]
        assert entry["event_type"] == "roundtrip"
        assert entry["roundtrip_id"] == 0
        assert entry["pnl"] == 100.0
        assert entry["duration"] == "3 hours"

    def test_finalize_logs_report(self, sample_report):
        """Test the final report is logged without rendering tables by default."""
        string_io = StringIO()
        sink = LogSink(console=Console(file=string_io))

        with capture_logs() as logs:
            sink.finalize(sample_report)

        assert logs[0]["event_type"] == "report"
        assert logs[0]["sharpe"] == sample_report.sharpe
        assert string_io.getvalue() == ""

    def test_finalize_displays_report_when_enabled(self, sample_report):
        """Test display_report renders the Rich tables."""
        string_io = StringIO()
        sink = LogSink(display_report=True, console=Console(file=string_io, width=120))

        sink.finalize(sample_report)

        assert "Performance Summary" in string_io.getvalue()


class TestRelaySink:
    """Test relay event envelopes."""

    @pytest.fixture
    def sent(self) -> list:
        return []

    @pytest.fixture
    def sink(self, sent) -> RelaySink:
        return RelaySink(sent.append, correlation_id="run-1")

    def test_handle_trade_sends_trade_event(self, sink, sent, buy, sample_report):
        """Test trade and running report travel in one JSON-ready envelope."""
        # Act
        sink.handle_trade(buy, sample_report)

        # Assert
        assert len(sent) == 1
        payload = sent[0]
        assert payload["event_type"] == "trade"
        assert payload["correlation_id"] == "run-1"
        assert payload["source_service"] == "performance_analyzer"
        assert payload["occurred_at"].endswith("Z")
        assert payload["trade"]["action"] == "buy"
        assert payload["report"]["max_drawdown"] == "-5.0"

    def test_handle_roundtrip_sends_roundtrip_event(self, sink, sent, roundtrip):
        sink.handle_roundtrip(roundtrip)

        assert sent[0]["event_type"] == "roundtrip"
        assert sent[0]["roundtrip"]["id"] == 0
        assert sent[0]["roundtrip"]["exit_balance"] == 1100.0

    def test_finalize_sends_report_event(self, sink, sent, sample_report):
        sink.finalize(sample_report)

        assert sent[0]["event_type"] == "report"
        assert sent[0]["report"]["relative_profit"] == 4.5

    def test_events_have_unique_ids(self, sink, sent, roundtrip, sample_report):
        """Test every envelope gets its own id."""
        sink.handle_roundtrip(roundtrip)
        sink.finalize(sample_report)

        assert sent[0]["event_id"] != sent[1]["event_id"]
