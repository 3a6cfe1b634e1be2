"""
Tests for DataFrame conversions.
"""
import pandas as pd
import pytest

from logisentry.core.domain.security import AnomalyKind, AnomalyRecord, Severity
from logisentry.core.engines.delay import DelayPredictor
from logisentry.core.services.frames import (
    ANOMALY_COLUMNS,
    anomalies_to_frame,
    prediction_to_frame,
    samples_from_frame,
)
from tests.helpers import AS_OF


def test_samples_from_frame_parses_and_drops_bad_rows():
    df = pd.DataFrame({
        "shipment_id": ["s3", "s2", "s1"],
        "expected_time": ["2025-03-14T10:00:00Z", "not-a-date", "2025-03-14T08:00:00Z"],
        "actual_time": ["2025-03-14T10:30:00Z", "2025-03-14T09:10:00Z", "2025-03-14T07:50:00Z"],
    })

    samples = samples_from_frame(df)

    assert [s.shipment_id for s in samples] == ["s3", "s1"]
    assert samples[0].delay_minutes == pytest.approx(30.0)
    assert samples[1].delay_minutes == pytest.approx(-10.0)


def test_samples_from_frame_empty_and_missing_columns():
    assert samples_from_frame(pd.DataFrame()) == []
    with pytest.raises(ValueError):
        samples_from_frame(pd.DataFrame({"expected_time": ["2025-03-14T10:00:00Z"]}))


def test_prediction_to_frame():
    result = DelayPredictor().predict([], None, 30)
    frame = prediction_to_frame(result, AS_OF, route_id="R1")

    assert len(frame) == 1
    assert frame["method"].iloc[0] == "insufficient_data"
    assert frame["confidence"].iloc[0] == "low"
    assert frame["alert_severity"].iloc[0] is None


def test_anomalies_to_frame():
    records = [
        AnomalyRecord(AnomalyKind.RBAC_VIOLATION, Severity.HIGH, "violation", AS_OF, "B"),
        AnomalyRecord(AnomalyKind.EXPORT_SPIKE, Severity.CRITICAL, "export", AS_OF, None),
    ]
    frame = anomalies_to_frame(records)

    assert list(frame.columns) == ANOMALY_COLUMNS
    assert list(frame["kind"]) == ["RBAC_VIOLATION", "EXPORT_SPIKE"]
    assert list(frame["severity"]) == ["high", "critical"]
    assert anomalies_to_frame([]).empty
