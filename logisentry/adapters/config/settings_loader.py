import os
import yaml
from logisentry.core.domain.settings import SystemSettings

# env var -> (section, key); section None means top level
ENV_OVERRIDES = {
    "LOGISENTRY_DELAY_THRESHOLD": ("predictor", "threshold_minutes"),
    "LOGISENTRY_HISTORY_LIMIT": ("predictor", "history_limit"),
    "LOGISENTRY_BRUTE_FORCE_THRESHOLD": ("rules", "brute_force_failure_threshold"),
    "LOGISENTRY_SENSITIVE_BURST_MB": ("rules", "sensitive_burst_mb"),
    "LOGISENTRY_EXPORT_SPIKE_MB": ("rules", "export_spike_mb"),
    "LOGISENTRY_EVENT_WINDOW_MINUTES": (None, "event_window_minutes"),
    "LOGISENTRY_LEDGER_TTL_MINUTES": (None, "ledger_ttl_minutes"),
}


def load_settings(path: str | None = None) -> SystemSettings:
    """
    Load system settings from a YAML file.
    Falls back to environment variables if file doesn't exist or is not provided.

    Args:
        path: Path to config.yaml. Defaults to LOGISENTRY_CONFIG_FILE env var or "config.yaml".

    Raises:
        RuntimeError: the file exists but cannot be parsed
        InvalidConfiguration: a threshold or the restricted-resource map is unusable
    """
    if path is None:
        path = os.getenv("LOGISENTRY_CONFIG_FILE", "config.yaml")

    config_data = {}

    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                config_data = yaml.safe_load(f) or {}
        except Exception as e:
            raise RuntimeError(f"Failed to load configuration from {path}: {e}")
        if not isinstance(config_data, dict):
            raise RuntimeError(f"Failed to load configuration from {path}: expected a mapping")

    # Env vars > File > Defaults
    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if not value:
            continue
        if section is None:
            config_data[key] = value
        else:
            config_data[section] = {**(config_data.get(section) or {}), key: value}

    return SystemSettings(**config_data)
