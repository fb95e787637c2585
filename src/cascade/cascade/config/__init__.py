# ABOUTME: Configuration package initialization
# ABOUTME: Exports configuration classes and logging utilities for the cascade kernel

from cascade.config.settings import CoreSettings, get_settings
from cascade.config.logging import (
    LoggerConfig,
    LoggingSettings,
    setup_logging,
    setup_request_logging,
    get_logger,
    configure_for_testing,
    configure_for_production,
    configure_for_development,
    configure_logging,
)

__all__ = [
    "CoreSettings",
    "get_settings",
    "LoggerConfig",
    "LoggingSettings",
    "setup_logging",
    "setup_request_logging",
    "get_logger",
    "configure_for_testing",
    "configure_for_production",
    "configure_for_development",
    "configure_logging",
]
