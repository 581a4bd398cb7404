"""
Data models for authentication and scrobbling.

This module defines immutable dataclasses for the values that flow through
the auth flow and the write calls:

    AuthToken        - auth.getToken result, valid for ~60 minutes
    SessionKey       - auth.getSession result, valid until revoked
    NowPlaying       - track.updateNowPlaying payload
    Scrobble         - one track.scrobble record
    ScrobbleResponse - accepted/ignored counts for a submitted batch

Each payload model knows its two wire shapes: indexed form parameters for
the Last.fm API (to_params) and a JSON object for token-mode servers
(to_json). Parsing helpers (from_api) accept the raw decoded JSON and raise
DecodingError on anything unexpected.

Usage:
    from lastfm_scrobbler.lastfm.models import NowPlaying, Scrobble

    now = NowPlaying("Kendrick Lamar", "Wesley's Theory", album="To Pimp a Butterfly")
    play = Scrobble("Kendrick Lamar", "Wesley's Theory", timestamp=1700000000)
"""

from dataclasses import asdict, dataclass
from typing import Any, Mapping

from lastfm_scrobbler.core.exceptions import DecodingError, InvalidParameterError


# Optional payload fields and their Last.fm parameter names.
# `player` has no Last.fm counterpart and only travels in token mode.
LASTFM_OPTIONAL_PARAMS = (
    ("album", "album"),
    ("track_number", "trackNumber"),
    ("duration", "duration"),
    ("album_artist", "albumArtist"),
)


@dataclass(frozen=True)
class AuthToken:
    """
    Unauthorized request token from auth.getToken.

    The user authorizes it in the browser (see LastFmClient.get_auth_url),
    then it is exchanged once for a SessionKey. Last.fm expires it after
    60 minutes.
    """
    token: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "AuthToken":
        token = data.get("token")
        if not isinstance(token, str):
            raise DecodingError(
                "Token in auth.getToken response is not a string",
                details={"method": "auth.getToken"}
            )
        return cls(token=token)


@dataclass(frozen=True)
class SessionKey:
    """
    Long-lived session credential from auth.getSession.

    Attributes:
        key: The session key to pass as `sk` on write calls.
        name: The Last.fm username the session belongs to.
    """
    key: str
    name: str

    def __repr__(self) -> str:
        return f"SessionKey(name={self.name!r})"

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "SessionKey":
        """
        Parse the `session` object of an auth.getSession response.

        Raises:
            DecodingError: If key or name is missing.
        """
        session = data.get("session")
        if not isinstance(session, dict):
            raise DecodingError(
                "Missing session object in auth.getSession response",
                details={"method": "auth.getSession"}
            )

        key = session.get("key")
        name = session.get("name")
        if not isinstance(key, str) or not isinstance(name, str):
            raise DecodingError(
                "Session object lacks key or name",
                details={"method": "auth.getSession", "keys": sorted(session)}
            )
        return cls(key=key, name=name)


@dataclass(frozen=True)
class NowPlaying:
    """
    "Now playing" notification. Not stored by Last.fm, only displayed.

    Attributes:
        artist: Track artist.
        track: Track title.
        album: Album title.
        track_number: Position on the album.
        duration: Track length in seconds.
        album_artist: Album artist, when different from the track artist.
        player: Name of the player application (token mode only).
    """
    artist: str
    track: str
    album: str | None = None
    track_number: int | None = None
    duration: int | None = None
    album_artist: str | None = None
    player: str | None = None

    def to_params(self) -> dict[str, str]:
        """Form parameters for track.updateNowPlaying (without method/keys)."""
        params = {"artist": self.artist, "track": self.track}
        params.update(_optional_params(self))
        return params

    def to_json(self) -> dict[str, Any]:
        """JSON object for token-mode servers; absent fields are null."""
        return asdict(self)


@dataclass(frozen=True)
class Scrobble:
    """
    A single play to add to the user's listening history.

    Attributes:
        artist: Track artist.
        track: Track title.
        timestamp: When the track started playing, Unix epoch seconds (UTC).
        album, track_number, duration, album_artist, player: As NowPlaying.
    """
    artist: str
    track: str
    timestamp: int
    album: str | None = None
    track_number: int | None = None
    duration: int | None = None
    album_artist: str | None = None
    player: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Scrobble":
        """
        Build a Scrobble from a plain mapping, e.g. one entry of an import file.

        Accepts the same keys as the constructor. Numeric fields may be
        given as numbers or numeric strings.

        Raises:
            InvalidParameterError: If artist, track or timestamp is missing,
                                   or a numeric field is not a number.
        """
        artist = data.get("artist")
        track = data.get("track")
        if not artist or not track:
            raise InvalidParameterError(
                "Scrobble needs both 'artist' and 'track'",
                details={"record": dict(data)}
            )
        if data.get("timestamp") is None:
            raise InvalidParameterError(
                f"Scrobble for {artist} - {track} has no 'timestamp'",
                details={"record": dict(data)}
            )

        try:
            return cls(
                artist=str(artist),
                track=str(track),
                timestamp=int(data["timestamp"]),
                album=data.get("album"),
                track_number=_optional_int(data.get("track_number")),
                duration=_optional_int(data.get("duration")),
                album_artist=data.get("album_artist"),
                player=data.get("player"),
            )
        except (TypeError, ValueError) as e:
            raise InvalidParameterError(
                f"Invalid numeric field in scrobble for {artist} - {track}: {e}",
                details={"record": dict(data)}
            ) from e

    def to_params(self, index: int) -> dict[str, str]:
        """
        Indexed form parameters for track.scrobble.

        Args:
            index: Position of this record in the batch (0-based). Every
                   parameter name gets the suffix [index] so Last.fm can
                   group fields per play.
        """
        params = {
            "artist": self.artist,
            "track": self.track,
            "timestamp": str(self.timestamp),
        }
        params.update(_optional_params(self))
        return {f"{name}[{index}]": value for name, value in params.items()}

    def to_json(self) -> dict[str, Any]:
        """JSON object for token-mode servers; absent fields are null."""
        return asdict(self)


@dataclass(frozen=True)
class ScrobbleResponse:
    """
    Outcome of a scrobble batch.

    Attributes:
        accepted: Plays added to the history.
        ignored: Plays Last.fm dropped (too old, filtered artist, ...).
    """
    accepted: int
    ignored: int

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "ScrobbleResponse":
        """
        Parse the counts from {"scrobbles": {"@attr": {"accepted": .., "ignored": ..}}}.

        Raises:
            DecodingError: If the nested counts are missing or not numeric.
        """
        try:
            attr = data["scrobbles"]["@attr"]
            return cls(accepted=int(attr["accepted"]), ignored=int(attr["ignored"]))
        except (KeyError, TypeError, ValueError) as e:
            raise DecodingError(
                "Unexpected response format for track.scrobble",
                details={"method": "track.scrobble", "original_error": repr(e)}
            ) from e


def _optional_params(payload: NowPlaying | Scrobble) -> dict[str, str]:
    params = {}
    for field_name, param_name in LASTFM_OPTIONAL_PARAMS:
        value = getattr(payload, field_name)
        if value is not None:
            params[param_name] = str(value)
    return params


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)
