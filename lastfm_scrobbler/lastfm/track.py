"""
Track metadata returned by track.getInfo.

Last.fm encodes most numbers as strings and is not consistent about it
("listeners": "123456", "duration": "0", sometimes "" or missing
entirely). Parsing is deliberately lenient:

    - Required counters (listeners, playcount) fall back to 0
    - Optional counters (duration, userplaycount, userloved) fall back to None

Only the structural fields (track name/url, artist name/url) are required;
their absence raises DecodingError.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping

from lastfm_scrobbler.core.exceptions import DecodingError


def parse_count(value: Any) -> int:
    """Parse a string-encoded counter, defaulting to 0 when unparsable."""
    parsed = parse_optional_count(value)
    return parsed if parsed is not None else 0


def parse_optional_count(value: Any) -> int | None:
    """Parse a string-encoded counter, defaulting to None when unparsable or absent."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if not isinstance(value, str) or not value.isdigit():
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _required_str(data: Mapping[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise DecodingError(
            f"Missing '{key}' in {where}",
            details={"method": "track.getInfo", "object": where}
        )
    return value


def _as_list(value: Any) -> list:
    # Last.fm collapses one-element lists into a bare object
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return [value]
    return []


@dataclass(frozen=True)
class Image:
    """Artwork URL in one size ("small", "medium", "large", "extralarge")."""
    url: str
    size: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Image":
        return cls(url=data.get("#text", ""), size=data.get("size", ""))


@dataclass(frozen=True)
class Artist:
    name: str
    url: str
    mbid: str = ""

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Artist":
        return cls(
            name=_required_str(data, "name", "artist"),
            url=_required_str(data, "url", "artist"),
            mbid=data.get("mbid", ""),
        )


@dataclass(frozen=True)
class Album:
    """
    Album the track appears on.

    Attributes:
        artist: Album artist name.
        title: Album title.
        url: Last.fm album page.
        mbid: MusicBrainz release ID, "" if unknown.
        images: Cover art, smallest first.
        position: Track position on the album (from "@attr"), if given.
    """
    artist: str
    title: str
    url: str
    mbid: str = ""
    images: tuple[Image, ...] = field(default_factory=tuple)
    position: str | None = None

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Album":
        attr = data.get("@attr")
        return cls(
            artist=_required_str(data, "artist", "album"),
            title=_required_str(data, "title", "album"),
            url=_required_str(data, "url", "album"),
            mbid=data.get("mbid", ""),
            images=tuple(Image.from_api(i) for i in _as_list(data.get("image"))),
            position=attr.get("position") if isinstance(attr, dict) else None,
        )


@dataclass(frozen=True)
class Tag:
    name: str
    url: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Tag":
        return cls(name=data.get("name", ""), url=data.get("url", ""))


@dataclass(frozen=True)
class Wiki:
    published: str
    summary: str
    content: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Wiki":
        return cls(
            published=data.get("published", ""),
            summary=data.get("summary", ""),
            content=data.get("content", ""),
        )


@dataclass(frozen=True)
class Streamable:
    text: str
    fulltrack: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Streamable":
        return cls(text=data.get("#text", ""), fulltrack=data.get("fulltrack", ""))


@dataclass(frozen=True)
class TrackInfo:
    """
    Immutable mirror of a track.getInfo response.

    Attributes:
        name: Track title as corrected by Last.fm.
        url: Last.fm track page.
        artist: Track artist.
        mbid: MusicBrainz recording ID, "" if unknown.
        duration: Length in milliseconds, None if unknown.
        listeners: Distinct listeners (0 if unparsable).
        playcount: Total plays (0 if unparsable).
        album: Album info, if Last.fm knows one.
        userplaycount: Plays by the user passed as `username`, if any.
        userloved: 1 if that user loved the track, 0 if not, None if not asked.
        tags: Top tags, most popular first.
        wiki: Wiki summary/content, if written.
        streamable: Legacy streamable flags, if present.

    Example:
        info = TrackInfo.from_api(response_json)
        print(f"{info.name} by {info.artist.name}: {info.listeners} listeners")
    """
    name: str
    url: str
    artist: Artist
    mbid: str = ""
    duration: int | None = None
    listeners: int = 0
    playcount: int = 0
    album: Album | None = None
    userplaycount: int | None = None
    userloved: int | None = None
    tags: tuple[Tag, ...] = field(default_factory=tuple)
    wiki: Wiki | None = None
    streamable: Streamable | None = None

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "TrackInfo":
        """
        Create a TrackInfo from a decoded track.getInfo response.

        Args:
            data: The whole response ({"track": {...}}).

        Raises:
            DecodingError: If the track object or a structural field is missing.
        """
        track = data.get("track")
        if not isinstance(track, dict):
            raise DecodingError(
                "Missing track object in track.getInfo response",
                details={"method": "track.getInfo"}
            )

        artist = track.get("artist")
        if not isinstance(artist, dict):
            raise DecodingError(
                "Missing artist object in track.getInfo response",
                details={"method": "track.getInfo"}
            )

        album = track.get("album")
        toptags = track.get("toptags")
        wiki = track.get("wiki")
        streamable = track.get("streamable")

        return cls(
            name=_required_str(track, "name", "track"),
            url=_required_str(track, "url", "track"),
            artist=Artist.from_api(artist),
            mbid=track.get("mbid", ""),
            duration=parse_optional_count(track.get("duration")),
            listeners=parse_count(track.get("listeners")),
            playcount=parse_count(track.get("playcount")),
            album=Album.from_api(album) if isinstance(album, dict) else None,
            userplaycount=parse_optional_count(track.get("userplaycount")),
            userloved=parse_optional_count(track.get("userloved")),
            tags=tuple(
                Tag.from_api(t)
                for t in _as_list(toptags.get("tag") if isinstance(toptags, dict) else None)
            ),
            wiki=Wiki.from_api(wiki) if isinstance(wiki, dict) else None,
            streamable=Streamable.from_api(streamable) if isinstance(streamable, dict) else None,
        )
