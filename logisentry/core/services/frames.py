"""
DataFrame conversions between the ports and the engines.
"""

import logging
from datetime import datetime

import pandas as pd

from logisentry.core.domain.security import AnomalyRecord
from logisentry.core.domain.shipment import DelayAlert, HistoricalDelaySample, PredictionResult

logger = logging.getLogger(__name__)

HISTORY_COLUMNS = ["shipment_id", "expected_time", "actual_time"]
ANOMALY_COLUMNS = ["detected_at", "account_id", "kind", "severity", "description"]


def samples_from_frame(df: pd.DataFrame) -> list[HistoricalDelaySample]:
    """
    Convert a completed-shipment frame into delay samples, keeping row order.

    Rows whose timestamps cannot be parsed are dropped.
    """
    if df.empty:
        return []
    missing = {"expected_time", "actual_time"} - set(df.columns)
    if missing:
        raise ValueError(f"History frame is missing columns: {sorted(missing)}")

    expected = pd.to_datetime(df["expected_time"], errors="coerce", utc=True)
    actual = pd.to_datetime(df["actual_time"], errors="coerce", utc=True)
    ids = df["shipment_id"] if "shipment_id" in df.columns else pd.Series([None] * len(df), index=df.index)

    samples = []
    dropped = 0
    for exp, act, shipment_id in zip(expected, actual, ids):
        if pd.isna(exp) or pd.isna(act):
            dropped += 1
            continue
        samples.append(HistoricalDelaySample(
            expected_time=exp.to_pydatetime(),
            actual_time=act.to_pydatetime(),
            shipment_id=None if pd.isna(shipment_id) else str(shipment_id),
        ))
    if dropped:
        logger.debug(f"Dropped {dropped} history rows with unparsable timestamps")
    return samples


def prediction_to_frame(
    result: PredictionResult,
    computed_at: datetime,
    route_id: str | None = None,
    shipment_id: str | None = None,
    alert: DelayAlert | None = None,
) -> pd.DataFrame:
    """Single-row frame describing one prediction run."""
    row = {
        "computed_at": pd.Timestamp(computed_at),
        "route_id": route_id,
        "shipment_id": shipment_id,
        **result.to_dict(),
        "alert_severity": alert.severity if alert else None,
        "alert_description": alert.description if alert else None,
    }
    return pd.DataFrame([row])


def anomalies_to_frame(records: list[AnomalyRecord]) -> pd.DataFrame:
    if not records:
        return pd.DataFrame(columns=ANOMALY_COLUMNS)
    return pd.DataFrame([
        {
            "detected_at": pd.Timestamp(r.detected_at),
            "account_id": r.account_id,
            "kind": r.kind.value,
            "severity": r.severity.value,
            "description": r.description,
        }
        for r in records
    ], columns=ANOMALY_COLUMNS)
