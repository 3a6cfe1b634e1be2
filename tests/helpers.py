"""
Builders for engine inputs shared across test modules.
"""
from datetime import datetime, timedelta, timezone

from logisentry.core.domain.security import AccessEvent, LoginAttempt
from logisentry.core.domain.shipment import HistoricalDelaySample

AS_OF = datetime(2025, 3, 14, 12, 0, 30, tzinfo=timezone.utc)


def make_history(delays: list[float], end: datetime = AS_OF) -> list[HistoricalDelaySample]:
    """Samples for ``delays`` given oldest first; returned newest first."""
    samples = []
    for i, delay in enumerate(delays):
        expected = end - timedelta(hours=len(delays) - i)
        samples.append(HistoricalDelaySample(
            expected_time=expected,
            actual_time=expected + timedelta(minutes=delay),
            shipment_id=f"s{i + 1}",
        ))
    return list(reversed(samples))


def failed_logins(account_id: str, count: int, end: datetime = AS_OF) -> list[LoginAttempt]:
    return [
        LoginAttempt(account_id=account_id, succeeded=False, timestamp=end - timedelta(seconds=20 * i))
        for i in range(count)
    ]


def access(account_id, action, resource, size=None, ago_seconds=30, end: datetime = AS_OF) -> AccessEvent:
    return AccessEvent(
        account_id=account_id,
        action=action,
        resource_name=resource,
        size_estimate_mb=size,
        timestamp=end - timedelta(seconds=ago_seconds),
    )
