"""
lastfm-scrobbler: async Last.fm scrobbling client.

This package authenticates a desktop application against Last.fm, reports
"now playing" status, submits scrobble batches and looks up track metadata.
The same client can instead target a self-hosted, Last.fm-like scrobble
server that uses a static bearer token.

Architecture:
    core/       - Configuration, logging, exceptions
    lastfm/     - Request signing, auth modes, models, the HTTP client
    cli.py      - Command-line interface (`scrobble`)

Usage:
    Command Line:
        scrobble auth
        scrobble now-playing "Kendrick Lamar" "Wesley's Theory"
        scrobble track "Kendrick Lamar" "Wesley's Theory" --album "To Pimp a Butterfly"
        scrobble import plays.yaml
        scrobble info "Kendrick Lamar" "Wesley's Theory"

    Python API:
        from lastfm_scrobbler import LastFmClient, NowPlaying, Scrobble

        async with LastFmClient.for_lastfm(api_key, api_secret, session_key) as client:
            await client.update_now_playing(NowPlaying("Kendrick Lamar", "Wesley's Theory"))
            result = await client.scrobble(
                [Scrobble("Kendrick Lamar", "Wesley's Theory", timestamp=started_at)]
            )

Configuration:
    See lastfm_scrobbler.core.config for the config.yaml layout and the
    environment variables it honours.

Dependencies:
    - aiohttp / yarl: HTTP transport and URL handling
    - pyyaml: Configuration file parsing
    - python-dotenv: .env support for credentials
    - click / rich-click: CLI
    - tqdm: Import progress bar
"""

__version__ = "0.1.0"
__author__ = "lastfm-scrobbler"
__license__ = "MIT"

# Convenience imports for common usage
from lastfm_scrobbler.core import (
    ApiError,
    AuthConfigurationError,
    Config,
    ConfigError,
    DecodingError,
    InvalidParameterError,
    ScrobblerError,
    TransportError,
    UrlConfigurationError,
    get_logger,
    load_config,
    setup_logging,
)
from lastfm_scrobbler.lastfm import (
    AuthToken,
    LastFmClient,
    NowPlaying,
    Scrobble,
    ScrobbleResponse,
    SessionKey,
    TrackInfo,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    # Exceptions
    "ScrobblerError",
    "ConfigError",
    "UrlConfigurationError",
    "TransportError",
    "DecodingError",
    "ApiError",
    "AuthConfigurationError",
    "InvalidParameterError",
    # Client and models
    "LastFmClient",
    "AuthToken",
    "SessionKey",
    "NowPlaying",
    "Scrobble",
    "ScrobbleResponse",
    "TrackInfo",
]
