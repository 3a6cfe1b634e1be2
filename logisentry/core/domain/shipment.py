"""
Shipment Domain Models - Historical delay samples and prediction results.
"""

import math
import numbers
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Confidence(str, Enum):
    """Coarse indicator of how much history backed a prediction."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]


_CONFIDENCE_RANK = {Confidence.LOW: 0, Confidence.MEDIUM: 1, Confidence.HIGH: 2}


class PredictionMethod(str, Enum):
    COMBINED = "combined"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class HistoricalDelaySample:
    """One completed shipment with both an expected and an actual arrival."""

    expected_time: datetime
    actual_time: datetime
    shipment_id: str | None = None

    @property
    def delay_minutes(self) -> float:
        """Signed delay in minutes; negative means early."""
        return (self.actual_time - self.expected_time).total_seconds() / 60.0


@dataclass(frozen=True)
class ActiveShipment:
    """An in-flight shipment; only the expected arrival is known."""

    expected_time: datetime
    shipment_id: str | None = None
    route_id: str | None = None


@dataclass(frozen=True)
class PredictionResult:
    """Output of the delay predictor. Minute values are rounded to 2 places."""

    predicted_delay_minutes: float
    confidence: Confidence
    moving_average_component: float
    linear_regression_component: float
    r_squared: float
    threshold_minutes: float
    method: PredictionMethod
    data_points: int
    current_deviation_minutes: float | None = None
    alert_triggered: bool = False

    def to_dict(self) -> dict:
        return {
            "predicted_delay_minutes": self.predicted_delay_minutes,
            "confidence": self.confidence.value,
            "moving_average_component": self.moving_average_component,
            "linear_regression_component": self.linear_regression_component,
            "r_squared": self.r_squared,
            "current_deviation_minutes": self.current_deviation_minutes,
            "alert_triggered": self.alert_triggered,
            "threshold_minutes": self.threshold_minutes,
            "method": self.method.value,
            "data_points": self.data_points,
        }


@dataclass(frozen=True)
class DelayAlert:
    """Predictive warning raised when an in-flight shipment drifts too far."""

    shipment_ref: str
    severity: str  # "medium" or "high"
    description: str
    deviation_minutes: float
    threshold_minutes: float
    kind: str = "Predictive Warning"


def is_finite_minutes(value: float) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)
