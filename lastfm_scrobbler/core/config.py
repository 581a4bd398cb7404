"""
Configuration management for lastfm-scrobbler.

This module loads credentials and logging settings from config.yaml and the
environment, validates them, and returns a frozen Config. The library never
writes configuration back; saving a session key is up to the user.

Configuration sources, later ones win:
    1. config.yaml (in the current working directory unless a path is given)
    2. A .env file, loaded with python-dotenv (never overrides real env vars)
    3. Environment variables:
        LASTFM_API_KEY, LASTFM_API_SECRET, LASTFM_SESSION_KEY
        SCROBBLE_SERVER_URL, SCROBBLE_SERVER_TOKEN

Exactly one backend must be configured: either Last.fm API credentials or
a token-mode server.

Example config.yaml:
    lastfm:
      api_key: "your_api_key_here"
      api_secret: "your_api_secret_here"
      session_key: null  # Filled in after running `scrobble auth`

    # Or, for a self-hosted server (not both):
    # server:
    #   base_url: "https://scrob.example.com/api/"
    #   token: "your_token_here"

    logging:
      directory: null  # Optional: write log files here
      level: "INFO"
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from lastfm_scrobbler.core.exceptions import ConfigError
from lastfm_scrobbler.lastfm.auth_mode import AuthMode, KeyedAuth, TokenAuth


# Default configuration file name (looked up in current working directory)
CONFIG_FILENAME = "config.yaml"

ENV_API_KEY = "LASTFM_API_KEY"
ENV_API_SECRET = "LASTFM_API_SECRET"
ENV_SESSION_KEY = "LASTFM_SESSION_KEY"
ENV_SERVER_URL = "SCROBBLE_SERVER_URL"
ENV_SERVER_TOKEN = "SCROBBLE_SERVER_TOKEN"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class LastFmConfig:
    """
    Last.fm API credentials.

    Obtained from https://www.last.fm/api/account/create.

    Attributes:
        api_key: The application's public API key.
        api_secret: The shared secret used for request signing.
        session_key: Session key from a completed auth flow, or None.
    """
    api_key: str
    api_secret: str
    session_key: str | None = None

    def __repr__(self) -> str:
        return f"LastFmConfig(api_key={self.api_key!r}, has_session_key={self.session_key is not None})"


@dataclass(frozen=True)
class ServerConfig:
    """
    Token-mode scrobble server.

    Attributes:
        base_url: Absolute base URL of the server API.
        token: Bearer token.
    """
    base_url: str
    token: str

    def __repr__(self) -> str:
        return f"ServerConfig(base_url={self.base_url!r})"


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging settings for applications built on the library.

    Attributes:
        directory: Where setup_logging() writes log files, or None for
                   console-only logging.
        level: Console log level name.
    """
    directory: Path | None = None
    level: str = "INFO"


@dataclass(frozen=True)
class Config:
    """
    Complete configuration.

    Exactly one of `lastfm` and `server` is set.

    Example:
        config = load_config()
        client = LastFmClient.from_config(config)
    """
    lastfm: LastFmConfig | None
    server: ServerConfig | None
    logging: LoggingConfig

    def auth_mode(self) -> AuthMode:
        """
        Build the AuthMode for the configured backend.

        Raises:
            UrlConfigurationError: If the server base URL is not usable.
        """
        if self.lastfm is not None:
            return KeyedAuth(
                api_key=self.lastfm.api_key,
                api_secret=self.lastfm.api_secret,
                session_key=self.lastfm.session_key,
            )
        if self.server is not None:
            return TokenAuth.from_url(self.server.base_url, self.server.token)
        raise ConfigError("No Last.fm or server credentials configured")

    def masked_api_key(self) -> str:
        """
        API key rendering that is safe to log or display.

        Returns:
            "abc***xyz", "****hidden****" for very short keys, or
            "Not configured" in token mode.
        """
        if self.lastfm is None:
            return "Not configured"

        api_key = self.lastfm.api_key
        if len(api_key) <= 6:
            return "****hidden****"
        return f"{api_key[:3]}***{api_key[-3:]}"


def load_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    use_dotenv: bool = True
) -> Config:
    """
    Load and validate configuration from config.yaml and the environment.

    Args:
        config_path: Optional explicit path to config file. If given, the
                     file must exist. If None, config.yaml in the current
                     working directory is used when present.
        environ: Environment to read overrides from. Defaults to os.environ.
        use_dotenv: Load a .env file into os.environ first. Only applies
                    when reading os.environ; an explicit `environ` is
                    left untouched.

    Returns:
        Config: A frozen dataclass with validated values.

    Raises:
        ConfigError: If an explicit file is missing, the YAML is invalid,
                     a field has the wrong type, or not exactly one backend
                     is configured.
        UrlConfigurationError: If the server base URL is not absolute.

    Example:
        try:
            config = load_config()
        except ConfigError as e:
            print(f"Configuration error: {e.message}")
            sys.exit(1)
    """
    if environ is None:
        if use_dotenv:
            load_dotenv()
        environ = os.environ

    raw_config = _read_config_file(config_path)

    lastfm_section = _section(raw_config, "lastfm")
    server_section = _section(raw_config, "server")

    lastfm_config = _parse_lastfm_config(lastfm_section, environ)
    server_config = _parse_server_config(server_section, environ)

    if lastfm_config is not None and server_config is not None:
        raise ConfigError(
            "Configure either Last.fm credentials or a scrobble server, not both",
            details={"sections": ["lastfm", "server"]}
        )
    if lastfm_config is None and server_config is None:
        raise ConfigError(
            f"No credentials found. Set {ENV_API_KEY} and {ENV_API_SECRET}, "
            f"or {ENV_SERVER_URL} and {ENV_SERVER_TOKEN}, or add a "
            f"'lastfm' or 'server' section to {CONFIG_FILENAME}"
        )

    config = Config(
        lastfm=lastfm_config,
        server=server_config,
        logging=_parse_logging_config(_section(raw_config, "logging")),
    )

    # Fail early on a bad URL rather than at the first request
    if server_config is not None:
        config.auth_mode()

    return config


def _read_config_file(config_path: Path | None) -> dict[str, Any]:
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME
        if not config_path.exists():
            return {}
    elif not config_path.exists():
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    # An empty file parses to None
    if raw_config is None:
        return {}

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )
    return raw_config


def _section(raw_config: dict[str, Any], name: str) -> dict[str, Any]:
    section = raw_config.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(
            f"Section '{name}' must be a dictionary",
            details={"section": name}
        )
    return section


def _string_field(
    section: dict[str, Any],
    field: str,
    environ: Mapping[str, str],
    env_name: str,
    qualified_name: str
) -> str | None:
    """Environment value if set, else the file value; None when neither is given."""
    value = environ.get(env_name) or section.get(field)
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(
            f"'{qualified_name}' must be a non-empty string",
            details={"field": qualified_name}
        )
    return value.strip()


def _parse_lastfm_config(
    section: dict[str, Any],
    environ: Mapping[str, str]
) -> LastFmConfig | None:
    api_key = _string_field(section, "api_key", environ, ENV_API_KEY, "lastfm.api_key")
    api_secret = _string_field(section, "api_secret", environ, ENV_API_SECRET, "lastfm.api_secret")
    session_key = _string_field(section, "session_key", environ, ENV_SESSION_KEY, "lastfm.session_key")

    if api_key is None and api_secret is None:
        if session_key is not None:
            raise ConfigError(
                "A session key was given without an API key and secret",
                details={"field": "lastfm.session_key"}
            )
        return None

    if api_key is None or api_secret is None:
        missing = "lastfm.api_key" if api_key is None else "lastfm.api_secret"
        raise ConfigError(
            f"'{missing}' is required when Last.fm credentials are configured",
            details={"field": missing}
        )

    return LastFmConfig(api_key=api_key, api_secret=api_secret, session_key=session_key)


def _parse_server_config(
    section: dict[str, Any],
    environ: Mapping[str, str]
) -> ServerConfig | None:
    base_url = _string_field(section, "base_url", environ, ENV_SERVER_URL, "server.base_url")
    token = _string_field(section, "token", environ, ENV_SERVER_TOKEN, "server.token")

    if base_url is None and token is None:
        return None

    if base_url is None or token is None:
        missing = "server.base_url" if base_url is None else "server.token"
        raise ConfigError(
            f"'{missing}' is required when a scrobble server is configured",
            details={"field": missing}
        )

    return ServerConfig(base_url=base_url, token=token)


def _parse_logging_config(section: dict[str, Any]) -> LoggingConfig:
    """
    Parse the optional logging section.

    Defaults: no log directory, level INFO.

    Raises:
        ConfigError: If directory is not a string or level is unknown.
    """
    directory = None
    raw_directory = section.get("directory")
    if raw_directory is not None:
        if not isinstance(raw_directory, str) or not raw_directory.strip():
            raise ConfigError(
                "'logging.directory' must be a non-empty string or null",
                details={"field": "logging.directory"}
            )
        directory = Path(raw_directory.strip()).expanduser().resolve()

    level = section.get("level", "INFO")
    if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
        raise ConfigError(
            f"'logging.level' must be one of {', '.join(VALID_LOG_LEVELS)}",
            details={"field": "logging.level", "value": level}
        )

    return LoggingConfig(directory=directory, level=level.upper())
