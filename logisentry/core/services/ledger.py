"""
Reported Anomaly Ledger - Remembers recently emitted dedup keys.

The rule engine is stateless; when it is re-run every few seconds over
overlapping windows the scan loop passes these keys back in so the same
condition is not reported twice. Entries expire after a caller-supplied TTL.
"""

import threading
from datetime import datetime, timedelta
from typing import Iterable

from logisentry.core.domain.security import AnomalyRecord, DedupKey
from logisentry.core.windowing import as_utc


class ReportedAnomalyLedger:

    def __init__(self, ttl_minutes: float = 30):
        self.ttl = timedelta(minutes=ttl_minutes)
        self._reported: dict[DedupKey, datetime] = {}
        self._lock = threading.Lock()

    def active_keys(self, now: datetime) -> frozenset[DedupKey]:
        """Keys reported within the TTL; expired keys are forgotten."""
        cutoff = as_utc(now) - self.ttl
        with self._lock:
            expired = [k for k, ts in self._reported.items() if ts < cutoff]
            for k in expired:
                del self._reported[k]
            return frozenset(self._reported)

    def remember(self, records: Iterable[AnomalyRecord], now: datetime) -> None:
        reported_at = as_utc(now)
        with self._lock:
            for record in records:
                self._reported[record.dedup_key] = reported_at

    def __len__(self) -> int:
        with self._lock:
            return len(self._reported)
