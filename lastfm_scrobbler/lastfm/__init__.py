"""
Last.fm API module for lastfm-scrobbler.

This module provides everything needed to talk to Last.fm or a compatible
self-hosted scrobble server:
    - LastFmClient: Async client for auth, now playing, scrobbling and lookups
    - KeyedAuth, TokenAuth: The two authentication modes
    - AuthToken, SessionKey: Desktop auth flow values
    - NowPlaying, Scrobble, ScrobbleResponse: Scrobbling payloads and results
    - TrackInfo (+ Artist, Album, Tag, Wiki, Image): track.getInfo metadata
    - signature: api_sig computation

Usage:
    from lastfm_scrobbler.lastfm import LastFmClient, Scrobble

    async with LastFmClient.for_lastfm(api_key, api_secret, session_key) as client:
        await client.scrobble([Scrobble("Artist", "Title", timestamp)])
"""

from lastfm_scrobbler.lastfm import signature
from lastfm_scrobbler.lastfm.auth_mode import AuthMode, KeyedAuth, TokenAuth
from lastfm_scrobbler.lastfm.client import (
    API_BASE,
    AUTH_URL,
    MAX_SCROBBLES_PER_REQUEST,
    LastFmClient,
)
from lastfm_scrobbler.lastfm.models import (
    AuthToken,
    NowPlaying,
    Scrobble,
    ScrobbleResponse,
    SessionKey,
)
from lastfm_scrobbler.lastfm.track import (
    Album,
    Artist,
    Image,
    Streamable,
    Tag,
    TrackInfo,
    Wiki,
)

__all__ = [
    # Client
    "LastFmClient",
    "API_BASE",
    "AUTH_URL",
    "MAX_SCROBBLES_PER_REQUEST",
    "signature",
    # Auth modes
    "AuthMode",
    "KeyedAuth",
    "TokenAuth",
    # Models
    "AuthToken",
    "SessionKey",
    "NowPlaying",
    "Scrobble",
    "ScrobbleResponse",
    "TrackInfo",
    "Artist",
    "Album",
    "Image",
    "Tag",
    "Wiki",
    "Streamable",
]
