"""
Configuration loaders.

App config:  reads config.yaml, resolves the alert webhook from env.
Thresholds:  reads thresholds.default.json (or override), validates against JSON Schema.
"""

from config.loader import (
    AlertingConfig,
    AppConfig,
    FillLogConfig,
    JournalConfig,
    ThresholdsConfig,
    load_config,
    resolve_config,
)
from config.thresholds import (
    Thresholds,
    ThresholdsError,
    load_thresholds,
)

__all__ = [
    # App config (YAML)
    "AlertingConfig",
    "AppConfig",
    "FillLogConfig",
    "JournalConfig",
    "ThresholdsConfig",
    "load_config",
    "resolve_config",
    # Thresholds (JSON + schema)
    "Thresholds",
    "ThresholdsError",
    "load_thresholds",
]
