"""
Core module for lastfm-scrobbler.

This module provides the foundational components used throughout the package:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - logger: Logging setup for applications using the library

Usage:
    from lastfm_scrobbler.core import (
        Config, load_config,
        setup_logging, get_logger,
        ScrobblerError, ConfigError, ApiError
    )
"""

from lastfm_scrobbler.core.config import (
    Config,
    LastFmConfig,
    LoggingConfig,
    ServerConfig,
    load_config,
)
from lastfm_scrobbler.core.exceptions import (
    ApiError,
    AuthConfigurationError,
    ConfigError,
    DecodingError,
    InvalidParameterError,
    ScrobblerError,
    TransportError,
    UrlConfigurationError,
)
from lastfm_scrobbler.core.logger import (
    get_logger,
    log_scrobble_failure,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "LastFmConfig",
    "ServerConfig",
    "LoggingConfig",
    "load_config",
    # Exceptions
    "ScrobblerError",
    "ConfigError",
    "UrlConfigurationError",
    "TransportError",
    "DecodingError",
    "ApiError",
    "AuthConfigurationError",
    "InvalidParameterError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_scrobble_failure",
    "shutdown_logging",
]
