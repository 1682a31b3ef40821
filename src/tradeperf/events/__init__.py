"""
Event envelopes for relaying analyzer output to another process.

- BaseEvent: Envelope fields only (id, type, version, occurred_at, source)
- TradeReportEvent: Trade plus running report
- RoundTripEvent: Finalized round trip
- FinalReportEvent: Final report
"""

from tradeperf.events.events import BaseEvent, FinalReportEvent, RoundTripEvent, TradeReportEvent

__all__ = [
    "BaseEvent",
    "TradeReportEvent",
    "RoundTripEvent",
    "FinalReportEvent",
]
