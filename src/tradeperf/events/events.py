"""
Relay events for tradeperf - immutable Pydantic envelopes.

Every emission of the analyzer (trade report, round trip, final report) is
wrapped in an event envelope before it crosses a process boundary, so the
receiving side can dispatch on event_type and correlate messages of one run.

Wire form is model_dump(mode="json"); occurred_at is RFC3339 with a Z suffix.
"""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_serializer, field_validator

from tradeperf.libraries.performance.models import PerformanceReport, RoundTrip, Trade, to_utc


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BaseEvent(BaseModel):
    """Envelope fields shared by every relay event."""

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: str = "base"
    event_version: int = Field(default=1, description="Schema major version")
    occurred_at: datetime = Field(default_factory=_utc_now, description="Emission time (UTC)")
    correlation_id: Optional[str] = Field(default=None, description="Run identifier shared by all events of a run")
    source_service: str = "performance_analyzer"

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("occurred_at", mode="before")
    @classmethod
    def normalize_occurred_at(cls, v: Any) -> datetime:
        return to_utc(v)

    @field_serializer("occurred_at")
    def _rfc3339(self, v: datetime) -> str:
        return v.isoformat().replace("+00:00", "Z")


class TradeReportEvent(BaseEvent):
    """A trade together with the running report computed right after it."""

    event_type: str = "trade"
    trade: Trade
    report: PerformanceReport


class RoundTripEvent(BaseEvent):
    """A finalized round trip."""

    event_type: str = "roundtrip"
    roundtrip: RoundTrip


class FinalReportEvent(BaseEvent):
    """The final report emitted once by finalize()."""

    event_type: str = "report"
    report: PerformanceReport
