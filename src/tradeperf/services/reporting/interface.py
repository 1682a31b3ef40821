"""Output sink interface (Protocol).

Defines the contract every consumer of analyzer output must satisfy.
The analyzer depends only on this protocol, so sinks can be swapped by
configuration and replaced by simple doubles in tests.
"""

from typing import Protocol

from tradeperf.libraries.performance.models import PerformanceReport, RoundTrip, Trade


class IOutputSink(Protocol):
    """Receives trade reports, round trips and the final report.

    Core responsibilities:
    - Deliver each emission to its destination (log, another process)

    NOT responsible for:
    - Computing or mutating statistics (PerformanceAnalyzer does this)
    - Ordering events (emissions arrive in processing order)
    """

    def handle_trade(self, trade: Trade, report: PerformanceReport) -> None:
        """Called after every trade with the running report.

        Args:
            trade: The processed trade
            report: Running report including that trade
        """
        ...

    def handle_roundtrip(self, roundtrip: RoundTrip) -> None:
        """Called once per finalized round trip.

        Args:
            roundtrip: Newly finalized round trip
        """
        ...

    def finalize(self, report: PerformanceReport) -> None:
        """Called once with the final report.

        Args:
            report: Final report
        """
        ...
