"""Application configuration helpers."""

from __future__ import annotations

from .batch import BatchConfig, get_batch_config
from .env import env_bool, env_int, require_env_vars
from .errors import ConfigurationError, InputFileError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .panels import PanelsConfig, PanelServerConfig, get_panels_config
from .risk import get_risk_policy

__all__ = [
    "BatchConfig",
    "ConfigurationError",
    "InputFileError",
    "MissingConfigurationError",
    "PanelServerConfig",
    "PanelsConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "configure_logging",
    "env_bool",
    "env_int",
    "get_batch_config",
    "get_panels_config",
    "get_risk_policy",
    "require_env_vars",
]
