from pydantic import BaseModel, Field

from logisentry.core.domain.config import PredictorConfig, RuleConfig


class SystemSettings(BaseModel):
    """
    Host configuration for the forecast and anomaly scan loops.
    """
    predictor: PredictorConfig = Field(default_factory=PredictorConfig, description="Delay predictor thresholds")
    rules: RuleConfig = Field(default_factory=RuleConfig, description="Anomaly rule thresholds")

    event_window_minutes: int = Field(default=15, gt=0, description="Activity fetched per anomaly scan")
    ledger_ttl_minutes: int = Field(default=30, gt=0, description="How long reported anomalies stay suppressed")
