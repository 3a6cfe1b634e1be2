"""
Tests for InMemoryStore.
"""
from datetime import timedelta

import pandas as pd
import pytest

from logisentry.adapters.memory.store import InMemoryStore, ShipmentRow
from logisentry.core.domain.security import AccessEvent, AccountProfile, LoginAttempt
from tests.helpers import AS_OF


@pytest.fixture
def store():
    store = InMemoryStore()
    for i in range(5):
        created = AS_OF - timedelta(hours=5 - i)
        store.add_shipment(ShipmentRow(
            shipment_id=f"R1-{i}",
            route_id="R1" if i % 2 == 0 else "R2",
            expected_time=created + timedelta(hours=1),
            created_at=created,
            actual_time=created + timedelta(hours=1, minutes=i) if i < 4 else None,
        ))
    return store


@pytest.mark.asyncio
async def test_fetch_completed_newest_first(store):
    df = await store.fetch_completed(limit=2)
    assert list(df["shipment_id"]) == ["R1-3", "R1-2"]
    assert list(df.columns) == ["shipment_id", "expected_time", "actual_time"]


@pytest.mark.asyncio
async def test_fetch_completed_by_route(store):
    df = await store.fetch_completed(limit=10, route_id="R2")
    assert list(df["shipment_id"]) == ["R1-3", "R1-1"]
    assert (await store.fetch_completed(limit=10, route_id="nope")).empty


@pytest.mark.asyncio
async def test_fetch_active(store):
    active = await store.fetch_active()
    assert active.shipment_id == "R1-4"
    assert await store.fetch_active(route_id="R2") is None


@pytest.mark.asyncio
async def test_activity_windows():
    store = InMemoryStore()
    store.add_account(AccountProfile(id="A", role="analyst"))
    store.record_login(LoginAttempt("A", False, AS_OF - timedelta(minutes=1)))
    store.record_login(LoginAttempt("A", False, AS_OF - timedelta(minutes=30)))
    store.record_access(AccessEvent("A", "read", "Users", AS_OF, size_estimate_mb=3.0))

    start = AS_OF - timedelta(minutes=15)
    assert len(await store.fetch_logins(start, AS_OF)) == 1
    assert len(await store.fetch_accesses(start, AS_OF)) == 1
    assert [a.id for a in await store.fetch_accounts()] == ["A"]


@pytest.mark.asyncio
async def test_sink_collects_frames():
    store = InMemoryStore()
    await store.write_predictions(pd.DataFrame([{"x": 1}]))
    await store.write_anomalies(pd.DataFrame([{"y": 2}]))
    assert len(store.prediction_frames) == 1
    assert len(store.anomaly_frames) == 1
