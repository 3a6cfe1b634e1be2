"""
Delay Predictor - Forecasts how late the next shipment will be.

Combines a trailing moving average with a linear trend fitted over the
recent completed shipments, then compares an in-flight shipment's elapsed
delay with the forecast:

1. Drop malformed samples
2. Rank the usable samples oldest=1 .. newest=N
3. Moving average over the most recent min(10, N // 3) delays
4. OLS trend over (rank, delay), projected to rank N + 1
5. Blend 0.7 * average + 0.3 * trend
6. Flag the active shipment when |elapsed delay - forecast| > threshold
"""

import logging
from datetime import datetime
from typing import Sequence

from logisentry.core.domain.config import PredictorConfig, require_positive
from logisentry.core.domain.shipment import (
    ActiveShipment,
    Confidence,
    DelayAlert,
    HistoricalDelaySample,
    PredictionMethod,
    PredictionResult,
    is_finite_minutes,
)
from logisentry.core.errors import InvalidConfiguration
from logisentry.core.stats import linear_regression, moving_average, trailing_window_size
from logisentry.core.windowing import as_utc, is_sane_timestamp

logger = logging.getLogger(__name__)

MIN_SAMPLES = 3
MOVING_AVERAGE_WEIGHT = 0.7
REGRESSION_WEIGHT = 0.3
MOVING_AVERAGE_CAP = 10
HIGH_CONFIDENCE_SAMPLES = 20
MEDIUM_CONFIDENCE_SAMPLES = 10
HIGH_SEVERITY_FACTOR = 1.5


def confidence_for(n: int) -> Confidence:
    if n >= HIGH_CONFIDENCE_SAMPLES:
        return Confidence.HIGH
    if n >= MEDIUM_CONFIDENCE_SAMPLES:
        return Confidence.MEDIUM
    return Confidence.LOW


def _round2(value: float) -> float:
    return round(value, 2)


class DelayPredictor:
    """
    Stateless delay forecaster.

    The instance only holds configuration; every call recomputes from the
    history it is given.
    """

    def __init__(self, config: PredictorConfig | None = None):
        self.config = config or PredictorConfig()

    def predict(
        self,
        history: Sequence[HistoricalDelaySample],
        active_sample: ActiveShipment | None = None,
        threshold_minutes: float | None = None,
        *,
        as_of: datetime | None = None,
    ) -> PredictionResult:
        """
        Predict the next delay from ``history`` (most recent first).

        Args:
            history: Completed shipments, newest first
            active_sample: In-flight shipment to compare against the forecast
            threshold_minutes: Allowed deviation before alerting (default from config)
            as_of: Evaluation time; required when ``active_sample`` is given

        Raises:
            InvalidConfiguration: threshold is not positive, or an active
                shipment was supplied without ``as_of``
        """
        threshold = self.config.threshold_minutes if threshold_minutes is None else threshold_minutes
        require_positive("threshold_minutes", threshold)
        threshold = float(threshold)
        if active_sample is not None and as_of is None:
            raise InvalidConfiguration("as_of is required when an active shipment is supplied")

        delays = self._usable_delays(history)
        n = len(delays)
        if n < MIN_SAMPLES:
            logger.debug(f"Only {n} usable delay samples; returning insufficient-data result")
            return self._insufficient(threshold, n)

        # delays are newest-first; rank 1 is the oldest sample
        ranks = [n - i for i in range(n)]

        ma_component = moving_average(delays, trailing_window_size(n, cap=MOVING_AVERAGE_CAP))
        fit = linear_regression(ranks, delays)
        lr_component = fit.project(n + 1)
        predicted = MOVING_AVERAGE_WEIGHT * ma_component + REGRESSION_WEIGHT * lr_component

        deviation = None
        alert = False
        if active_sample is not None:
            deviation = self._deviation(active_sample, predicted, as_of)
            alert = deviation is not None and deviation > threshold

        return PredictionResult(
            predicted_delay_minutes=_round2(predicted),
            confidence=confidence_for(n),
            moving_average_component=_round2(ma_component),
            linear_regression_component=_round2(lr_component),
            r_squared=round(fit.r_squared, 3),
            threshold_minutes=threshold,
            method=PredictionMethod.COMBINED,
            data_points=n,
            current_deviation_minutes=None if deviation is None else _round2(deviation),
            alert_triggered=alert,
        )

    def _usable_delays(self, history: Sequence[HistoricalDelaySample]) -> list[float]:
        delays = []
        for index, sample in enumerate(history):
            expected = getattr(sample, "expected_time", None)
            actual = getattr(sample, "actual_time", None)
            if not (is_sane_timestamp(expected) and is_sane_timestamp(actual)):
                logger.debug(f"Skipping history sample {index}: malformed timestamps")
                continue
            try:
                delay = (as_utc(actual) - as_utc(expected)).total_seconds() / 60.0
            except (TypeError, OverflowError) as e:
                logger.debug(f"Skipping history sample {index}: {e}")
                continue
            if not is_finite_minutes(delay):
                logger.debug(f"Skipping history sample {index}: non-finite delay")
                continue
            delays.append(delay)
        return delays

    def _deviation(
        self, active: ActiveShipment, predicted: float, as_of: datetime
    ) -> float | None:
        if not is_sane_timestamp(active.expected_time):
            logger.warning(f"Active shipment {active.shipment_id} has no usable expected time")
            return None
        current_delay = (as_utc(as_of) - as_utc(active.expected_time)).total_seconds() / 60.0
        return abs(current_delay - predicted)

    @staticmethod
    def _insufficient(threshold: float, n: int) -> PredictionResult:
        return PredictionResult(
            predicted_delay_minutes=0.0,
            confidence=Confidence.LOW,
            moving_average_component=0.0,
            linear_regression_component=0.0,
            r_squared=0.0,
            threshold_minutes=threshold,
            method=PredictionMethod.INSUFFICIENT_DATA,
            data_points=n,
        )


def predict(
    history: Sequence[HistoricalDelaySample],
    active_sample: ActiveShipment | None = None,
    threshold_minutes: float = 30.0,
    *,
    as_of: datetime | None = None,
) -> PredictionResult:
    """Functional entry point for :meth:`DelayPredictor.predict`."""
    return DelayPredictor().predict(history, active_sample, threshold_minutes, as_of=as_of)


def derive_delay_alert(result: PredictionResult, shipment_ref: str) -> DelayAlert | None:
    """Build a predictive warning for a triggered prediction, else None."""
    if not result.alert_triggered or result.current_deviation_minutes is None:
        return None
    deviation = result.current_deviation_minutes
    threshold = result.threshold_minutes
    severity = "high" if deviation > threshold * HIGH_SEVERITY_FACTOR else "medium"
    return DelayAlert(
        shipment_ref=shipment_ref,
        severity=severity,
        description=(
            f"Predicted delay deviation of {round(deviation)} minutes exceeds threshold "
            f"of {threshold:g} minutes. Expected delay: "
            f"{round(result.predicted_delay_minutes)} minutes."
        ),
        deviation_minutes=deviation,
        threshold_minutes=threshold,
    )
