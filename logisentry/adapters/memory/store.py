"""
In-Memory Store Adapter - Process-local implementation of every port.

Useful for replaying recorded activity and for demos; all state lives on
the instance.
"""

from dataclasses import dataclass
from datetime import datetime

import pandas as pd

from logisentry.core.domain.security import AccessEvent, AccountProfile, LoginAttempt
from logisentry.core.domain.shipment import ActiveShipment
from logisentry.core.ports.event_source import SecurityEventSource
from logisentry.core.ports.result_sink import ResultSink
from logisentry.core.ports.shipment_source import ShipmentHistorySource
from logisentry.core.windowing import as_utc


@dataclass
class ShipmentRow:
    shipment_id: str
    route_id: str
    expected_time: datetime
    created_at: datetime
    actual_time: datetime | None = None


class InMemoryStore(ShipmentHistorySource, SecurityEventSource, ResultSink):
    """
    Store that keeps shipments, accounts, activity and written results in lists.
    """

    def __init__(self):
        self.shipments: list[ShipmentRow] = []
        self._accounts: dict[str, AccountProfile] = {}
        self.logins: list[LoginAttempt] = []
        self.accesses: list[AccessEvent] = []
        self.prediction_frames: list[pd.DataFrame] = []
        self.anomaly_frames: list[pd.DataFrame] = []

    # --- Writes from the host application ---

    def add_shipment(self, row: ShipmentRow) -> None:
        self.shipments.append(row)

    def add_account(self, account: AccountProfile) -> None:
        self._accounts[account.id] = account

    def record_login(self, attempt: LoginAttempt) -> None:
        self.logins.append(attempt)

    def record_access(self, event: AccessEvent) -> None:
        self.accesses.append(event)

    # --- ShipmentHistorySource ---

    async def fetch_completed(self, limit: int, route_id: str | None = None) -> pd.DataFrame:
        rows = [
            s for s in self._route(route_id) if s.actual_time is not None
        ]
        rows.sort(key=lambda s: as_utc(s.created_at), reverse=True)
        rows = rows[:limit]
        return pd.DataFrame(
            [
                {"shipment_id": s.shipment_id, "expected_time": s.expected_time, "actual_time": s.actual_time}
                for s in rows
            ],
            columns=["shipment_id", "expected_time", "actual_time"],
        )

    async def fetch_active(self, route_id: str | None = None) -> ActiveShipment | None:
        active = [s for s in self._route(route_id) if s.actual_time is None]
        if not active:
            return None
        latest = max(active, key=lambda s: as_utc(s.created_at))
        return ActiveShipment(
            expected_time=latest.expected_time,
            shipment_id=latest.shipment_id,
            route_id=latest.route_id,
        )

    def _route(self, route_id: str | None) -> list[ShipmentRow]:
        if route_id is None:
            return list(self.shipments)
        return [s for s in self.shipments if s.route_id == route_id]

    # --- SecurityEventSource ---

    async def fetch_accounts(self) -> list[AccountProfile]:
        return list(self._accounts.values())

    async def fetch_logins(self, start: datetime, end: datetime) -> list[LoginAttempt]:
        lo, hi = as_utc(start), as_utc(end)
        return [a for a in self.logins if lo <= as_utc(a.timestamp) <= hi]

    async def fetch_accesses(self, start: datetime, end: datetime) -> list[AccessEvent]:
        lo, hi = as_utc(start), as_utc(end)
        return [e for e in self.accesses if lo <= as_utc(e.timestamp) <= hi]

    # --- ResultSink ---

    async def write_predictions(self, df: pd.DataFrame) -> None:
        self.prediction_frames.append(df)

    async def write_anomalies(self, df: pd.DataFrame) -> None:
        self.anomaly_frames.append(df)
