"""
Forecast Loop Service - Runs one delay prediction for a route.

1. Fetch completed shipment history (newest first)
2. Fetch the latest in-flight shipment
3. Predict and derive a predictive alert
4. Write the result row to the sink
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from logisentry.core.domain.settings import SystemSettings
from logisentry.core.domain.shipment import ActiveShipment, DelayAlert, PredictionResult
from logisentry.core.engines.delay import DelayPredictor, derive_delay_alert
from logisentry.core.ports.result_sink import ResultSink
from logisentry.core.ports.shipment_source import ShipmentHistorySource
from logisentry.core.services.frames import prediction_to_frame, samples_from_frame

logger = logging.getLogger(__name__)


@dataclass
class ForecastRun:
    """Result of a forecast loop iteration."""

    prediction: PredictionResult
    computed_at: datetime
    active_shipment: ActiveShipment | None = None
    alert: DelayAlert | None = None


class ForecastLoop:
    """
    Service that executes a single prediction for a route.
    """

    def __init__(
        self,
        source: ShipmentHistorySource,
        sink: ResultSink,
        predictor: DelayPredictor | None = None,
    ):
        """
        Initialize the forecast loop.

        Args:
            source: Port to read shipment history
            sink: Port to write prediction rows
            predictor: Delay predictor (default: default thresholds)
        """
        self.source = source
        self.sink = sink
        self.predictor = predictor or DelayPredictor()

    @classmethod
    def from_settings(
        cls, settings: SystemSettings, source: ShipmentHistorySource, sink: ResultSink
    ) -> "ForecastLoop":
        return cls(source, sink, DelayPredictor(settings.predictor))

    async def run(
        self,
        route_id: str | None = None,
        threshold_minutes: float | None = None,
        now: datetime | None = None,
    ) -> ForecastRun:
        """
        Execute the prediction.

        Args:
            route_id: Route to predict for (default: all routes)
            threshold_minutes: Override the configured alert threshold
            now: Evaluation time (default: current UTC time)
        """
        now = now or datetime.now(timezone.utc)
        limit = self.predictor.config.history_limit

        logger.info(f"Fetching up to {limit} completed shipments for route={route_id}")
        history_df = await self.source.fetch_completed(limit=limit, route_id=route_id)
        samples = samples_from_frame(history_df)
        if not samples:
            logger.warning(f"No usable shipment history for route={route_id}")

        active = await self.source.fetch_active(route_id=route_id)

        prediction = self.predictor.predict(samples, active, threshold_minutes, as_of=now)
        shipment_id = active.shipment_id if active else None
        alert = derive_delay_alert(prediction, shipment_id or route_id or "unknown")
        if alert:
            logger.info(f"Predictive alert ({alert.severity}) for shipment {alert.shipment_ref}")

        frame = prediction_to_frame(prediction, now, route_id=route_id, shipment_id=shipment_id, alert=alert)
        await self.sink.write_predictions(frame)
        logger.info(
            f"Predicted delay {prediction.predicted_delay_minutes}m "
            f"({prediction.confidence.value}, {prediction.data_points} samples) for route={route_id}"
        )
        return ForecastRun(prediction=prediction, computed_at=now, active_shipment=active, alert=alert)
