"""
Anomaly Scan Service - Runs the security rules over recent activity.

Designed to be triggered repeatedly (timer or on demand); the ledger keeps
overlapping runs from re-reporting the same anomaly.
"""

import logging
from datetime import datetime, timedelta, timezone

from logisentry.core.domain.security import AnomalyRecord
from logisentry.core.domain.settings import SystemSettings
from logisentry.core.engines.anomaly import AnomalyRuleEngine
from logisentry.core.ports.event_source import SecurityEventSource
from logisentry.core.ports.result_sink import ResultSink
from logisentry.core.services.frames import anomalies_to_frame
from logisentry.core.services.ledger import ReportedAnomalyLedger

logger = logging.getLogger(__name__)


class AnomalyScanLoop:
    """
    Core service that executes a single anomaly scan.
    """

    def __init__(
        self,
        source: SecurityEventSource,
        sink: ResultSink,
        engine: AnomalyRuleEngine | None = None,
        ledger: ReportedAnomalyLedger | None = None,
        window_minutes: int = 15,
    ):
        self.source = source
        self.sink = sink
        self.engine = engine or AnomalyRuleEngine()
        self.ledger = ledger or ReportedAnomalyLedger()
        self.window_minutes = window_minutes

    @classmethod
    def from_settings(
        cls, settings: SystemSettings, source: SecurityEventSource, sink: ResultSink
    ) -> "AnomalyScanLoop":
        return cls(
            source,
            sink,
            engine=AnomalyRuleEngine(settings.rules),
            ledger=ReportedAnomalyLedger(ttl_minutes=settings.ledger_ttl_minutes),
            window_minutes=settings.event_window_minutes,
        )

    async def run(self, now: datetime | None = None) -> list[AnomalyRecord]:
        """
        Fetch recent activity, evaluate the rules and write new anomalies.

        Args:
            now: Evaluation time (default: current UTC time)

        Returns:
            Anomalies not reported by an earlier run within the ledger TTL
        """
        now = now or datetime.now(timezone.utc)
        start = now - timedelta(minutes=self.window_minutes)

        logger.info(f"Scanning activity start={start} end={now}")
        accounts = await self.source.fetch_accounts()
        logins = await self.source.fetch_logins(start, now)
        accesses = await self.source.fetch_accesses(start, now)

        if not logins and not accesses:
            logger.warning("No recent activity to scan")
            return []

        anomalies = self.engine.evaluate(
            accounts,
            logins,
            accesses,
            as_of=now,
            already_reported=self.ledger.active_keys(now),
        )
        if not anomalies:
            return []

        self.ledger.remember(anomalies, now)
        logger.info(f"Writing {len(anomalies)} anomalies")
        await self.sink.write_anomalies(anomalies_to_frame(anomalies))
        return anomalies
