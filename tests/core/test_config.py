"""
Tests for engine configuration models.
"""
import numpy as np
import pytest

from logisentry.core.domain.config import PredictorConfig, RuleConfig
from logisentry.core.domain.security import AccessAction, Role
from logisentry.core.engines.delay import DelayPredictor
from logisentry.core.errors import InvalidConfiguration
from tests.helpers import make_history


def test_rule_config_defaults():
    config = RuleConfig()
    assert config.brute_force_failure_threshold == 5
    assert config.sensitive_burst_mb == 100.0
    assert config.export_spike_mb == 200.0
    assert config.sensitive_resources == {"Users", "Billing", "Analyses", "Alerts"}
    assert config.restricted_for(Role.OPERATOR) == {"Users", "Billing"}
    assert config.restricted_for(Role.ADMIN) == frozenset()
    assert config.restricted_for(None) == frozenset()
    assert config.detect_new_geo_login is False


@pytest.mark.parametrize("field", ["brute_force_failure_threshold", "sensitive_burst_mb", "export_spike_mb"])
@pytest.mark.parametrize("value", [0, -1])
def test_rule_config_rejects_non_positive(field, value):
    with pytest.raises(InvalidConfiguration):
        RuleConfig(**{field: value})


@pytest.mark.parametrize("mapping", [
    {"superuser": ["Users"]},
    {"operator": "Users"},
    {"operator": ["Users", 42]},
    {"operator": [""]},
    ["operator"],
])
def test_rule_config_rejects_malformed_role_map(mapping):
    with pytest.raises(InvalidConfiguration):
        RuleConfig(restricted_resources_by_role=mapping)


def test_rule_config_normalizes_role_names():
    config = RuleConfig(restricted_resources_by_role={"OPERATOR": ["Users"], Role.ANALYST: {"Billing"}})
    assert config.restricted_for(Role.OPERATOR) == {"Users"}
    assert config.restricted_for(Role.ANALYST) == {"Billing"}


def test_empty_role_map_disables_rbac():
    assert RuleConfig(restricted_resources_by_role=None).restricted_resources_by_role == {}


def test_predictor_config():
    assert PredictorConfig().threshold_minutes == 30.0
    assert PredictorConfig().history_limit == 50
    with pytest.raises(InvalidConfiguration):
        PredictorConfig(threshold_minutes=0)
    with pytest.raises(InvalidConfiguration):
        PredictorConfig(history_limit=0)


@pytest.mark.parametrize("raw,expected", [
    ("SELECT", AccessAction.READ),
    ("read", AccessAction.READ),
    ("UPDATE", AccessAction.WRITE),
    ("DELETE", AccessAction.DELETE),
    (" Export ", AccessAction.EXPORT),
    ("TRUNCATE", None),
    (None, None),
])
def test_access_action_parse(raw, expected):
    assert AccessAction.parse(raw) is expected


def test_role_parse():
    assert Role.parse("ANALYST") is Role.ANALYST
    assert Role.parse("intern") is None


@pytest.mark.parametrize("value", [np.int64(30), np.float64(12.5), np.int32(1)])
def test_numpy_scalars_are_valid_thresholds(value):
    result = DelayPredictor().predict(make_history([1, 2, 3]), None, value)
    assert result.threshold_minutes == float(value)
    assert isinstance(result.threshold_minutes, float)


@pytest.mark.parametrize("value", [True, float("nan"), float("inf"), "30"])
def test_non_numeric_or_non_finite_threshold_rejected(value):
    with pytest.raises(InvalidConfiguration):
        DelayPredictor().predict(make_history([1, 2, 3]), None, value)
