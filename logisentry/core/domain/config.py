"""
Engine Configuration - Thresholds for the delay predictor and the rule engine.

Uses Pydantic for coercion and defaults. Unusable values raise
InvalidConfiguration directly instead of a pydantic ValidationError so the
caller sees one error type regardless of where the value came from.
"""

import math
import numbers
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from logisentry.core.domain.security import Role
from logisentry.core.errors import InvalidConfiguration

DEFAULT_SENSITIVE_RESOURCES = frozenset({"Users", "Billing", "Analyses", "Alerts"})
DEFAULT_OPERATOR_RESTRICTED = frozenset({"Users", "Billing"})


def _default_restrictions() -> dict[Role, frozenset[str]]:
    return {Role.OPERATOR: DEFAULT_OPERATOR_RESTRICTED}


def is_real_number(value: Any) -> bool:
    """Any real scalar, numpy ones included, but not a bool."""
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def require_positive(name: str, value: Any) -> None:
    """Raise InvalidConfiguration unless ``value`` is a finite real number > 0."""
    if not is_real_number(value) or not math.isfinite(value) or not value > 0:
        raise InvalidConfiguration(f"{name} must be a positive number, got {value!r}")


class PredictorConfig(BaseModel):
    """Configuration for the delay predictor."""

    model_config = ConfigDict(frozen=True)

    threshold_minutes: float = 30.0
    history_limit: int = 50  # completed shipments fetched per prediction

    @model_validator(mode="after")
    def _check_positive(self) -> "PredictorConfig":
        require_positive("threshold_minutes", self.threshold_minutes)
        require_positive("history_limit", self.history_limit)
        return self


class RuleConfig(BaseModel):
    """Configuration for the anomaly rule engine."""

    model_config = ConfigDict(frozen=True)

    brute_force_failure_threshold: int = 5
    sensitive_burst_mb: float = 100.0
    export_spike_mb: float = 200.0
    sensitive_resources: frozenset[str] = DEFAULT_SENSITIVE_RESOURCES
    restricted_resources_by_role: dict[Role, frozenset[str]] = Field(
        default_factory=_default_restrictions
    )
    detect_new_geo_login: bool = False

    @model_validator(mode="before")
    @classmethod
    def _normalize_restrictions(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "restricted_resources_by_role" not in data:
            return data
        raw = data["restricted_resources_by_role"]
        if raw is None:
            return {**data, "restricted_resources_by_role": {}}
        if not isinstance(raw, dict):
            raise InvalidConfiguration(
                f"restricted_resources_by_role must be a mapping, got {type(raw).__name__}"
            )
        normalized: dict[Role, frozenset[str]] = {}
        for raw_role, resources in raw.items():
            role = Role.parse(raw_role)
            if role is None:
                raise InvalidConfiguration(f"Unknown role in restricted resources: {raw_role!r}")
            if isinstance(resources, str) or not hasattr(resources, "__iter__"):
                raise InvalidConfiguration(
                    f"Restricted resources for {role.value} must be a collection of names"
                )
            names = list(resources)
            if not all(isinstance(name, str) and name for name in names):
                raise InvalidConfiguration(
                    f"Restricted resources for {role.value} must be non-empty strings"
                )
            normalized[role] = frozenset(names)
        return {**data, "restricted_resources_by_role": normalized}

    @model_validator(mode="after")
    def _check_thresholds(self) -> "RuleConfig":
        require_positive("brute_force_failure_threshold", self.brute_force_failure_threshold)
        require_positive("sensitive_burst_mb", self.sensitive_burst_mb)
        require_positive("export_spike_mb", self.export_spike_mb)
        return self

    def restricted_for(self, role: Role | None) -> frozenset[str]:
        if role is None:
            return frozenset()
        return self.restricted_resources_by_role.get(role, frozenset())
