"""Configuration module for the browser test harness."""
from config.models import (
    BrowserConfig,
    HarnessConfig,
    ReportingConfig,
    RetryConfig,
    WaitConfig,
    load_config,
)
from config.reader import ConfigReader

__all__ = [
    "BrowserConfig",
    "ConfigReader",
    "HarnessConfig",
    "ReportingConfig",
    "RetryConfig",
    "WaitConfig",
    "load_config",
]
