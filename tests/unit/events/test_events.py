"""Unit tests for relay event envelopes."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from tradeperf.events import BaseEvent, FinalReportEvent, RoundTripEvent, TradeReportEvent
from tradeperf.libraries.performance.models import PerformanceReport


class TestBaseEvent:
    """Test envelope fields."""

    def test_defaults(self):
        """Test id, version, source and UTC timestamp are filled in."""
        event = BaseEvent()

        assert event.event_type == "base"
        assert event.event_version == 1
        assert event.source_service == "performance_analyzer"
        assert event.correlation_id is None
        assert event.occurred_at.tzinfo == timezone.utc
        assert len(event.event_id) == 36

    def test_occurred_at_normalized_to_utc(self):
        """Test aware timestamps are converted to UTC."""
        event = BaseEvent(occurred_at=datetime(2024, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2))))

        assert event.occurred_at == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_naive_occurred_at_treated_as_utc(self):
        event = BaseEvent(occurred_at="2024-01-01T12:00:00")

        assert event.occurred_at.tzinfo == timezone.utc

    def test_serializes_with_z_suffix(self):
        """Test RFC3339 serialization."""
        event = BaseEvent(occurred_at=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))

        assert event.model_dump(mode="json")["occurred_at"] == "2024-01-01T12:00:00Z"

    def test_extra_fields_forbidden(self):
        with pytest.raises(ValidationError):
            BaseEvent(unexpected="value")

    def test_frozen(self):
        event = BaseEvent()

        with pytest.raises(ValidationError):
            event.correlation_id = "changed"  # type: ignore[misc]


class TestPayloadEvents:
    """Test typed relay events."""

    def test_trade_report_event(self, make_trade):
        """Test trade events carry the trade with a report."""
        # Arrange
        report = PerformanceReport(
            currency="USDT",
            asset="BTC",
            start_time="2024-01-01 00:00:00",
            end_time="2024-01-01 00:00:00",
            timespan="a few seconds",
            market=0.0,
            balance=1000.0,
            profit=0.0,
            relative_profit=0.0,
            max_drawdown=Decimal("0.0"),
            yearly_profit=Decimal("0E-8"),
            relative_yearly_profit=Decimal("0E-8"),
            start_price=100.0,
            end_price=100.0,
            trades=1,
            start_balance=1000.0,
            sharpe=None,
            profitable_trips=Decimal("0.0"),
            average_profit=Decimal("0.0"),
            max_profit=Decimal("0.0"),
            average_loss=Decimal("0.0"),
            max_loss=Decimal("0.0"),
            alpha=0.0,
        )
        trade = make_trade("buy", 0, 100.0, balance=1000.0, asset=10.0)

        # Act
        data = TradeReportEvent(trade=trade, report=report).model_dump(mode="json")

        # Assert
        assert data["event_type"] == "trade"
        assert data["trade"]["price"] == 100.0
        assert data["report"]["sharpe"] is None
        assert FinalReportEvent(report=report).event_type == "report"

    def test_roundtrip_event(self, make_roundtrip):
        event = RoundTripEvent(roundtrip=make_roundtrip(0, 1000.0, 1100.0), correlation_id="run-7")

        data = event.model_dump(mode="json")

        assert data["event_type"] == "roundtrip"
        assert data["correlation_id"] == "run-7"
        assert data["roundtrip"]["entry_balance"] == 1000.0
