"""
Authentication modes for LastFmClient.

A client talks to exactly one kind of backend for its whole lifetime:

    KeyedAuth: the public Last.fm API. Requests are signed with the shared
               secret; write calls also need a session key obtained through
               the desktop auth flow.
    TokenAuth: a self-hosted, Last.fm-like scrobble server. No signing;
               a static bearer token and JSON bodies instead.

AuthMode is the union of the two. Dispatch sites branch with isinstance()
and raise on anything else, so adding a third mode fails loudly.

Both classes expose the same accessors. Fields that do not exist in a mode
read as None there, which is how the client tells "not applicable" apart
from a real value.
"""

from dataclasses import dataclass
from typing import Union

from yarl import URL

from lastfm_scrobbler.core.exceptions import UrlConfigurationError


@dataclass
class KeyedAuth:
    """
    Last.fm API key + shared secret, with an optional session key.

    Attributes:
        api_key: Public API key from https://www.last.fm/api/account/create.
        api_secret: Shared secret used to sign requests. Never sent.
        session_key: Session key from auth.getSession, or None before the
                     desktop auth flow has completed.
    """
    api_key: str
    api_secret: str
    session_key: str | None = None

    def __repr__(self) -> str:
        # Secrets stay out of reprs, tracebacks and logs
        return f"KeyedAuth(api_key={self.api_key!r}, has_session_key={self.session_key is not None})"

    def set_session_key(self, key: str) -> None:
        self.session_key = key

    @property
    def base_url(self) -> None:
        return None

    @property
    def token(self) -> None:
        return None


@dataclass(frozen=True)
class TokenAuth:
    """
    Bearer-token credentials for a custom scrobble server.

    Attributes:
        base_url: Absolute base URL; `now` and `scrob` are resolved against it.
                  Keep the trailing slash if the endpoints live below a path
                  (https://scrob.example.com/api/ -> .../api/now).
        token: Static bearer token sent in the Authorization header.
    """
    base_url: URL
    token: str

    def __repr__(self) -> str:
        return f"TokenAuth(base_url={str(self.base_url)!r})"

    @classmethod
    def from_url(cls, base_url: str, token: str) -> "TokenAuth":
        """
        Build a TokenAuth from a user-supplied URL string.

        Raises:
            UrlConfigurationError: If the URL cannot be parsed or is not an
                                   absolute http(s) URL with a host.
        """
        try:
            url = URL(base_url)
        except (TypeError, ValueError) as e:
            raise UrlConfigurationError(
                f"Invalid base URL: {base_url}",
                details={"base_url": base_url, "original_error": str(e)}
            ) from e

        if not url.is_absolute() or url.scheme not in ("http", "https") or not url.host:
            raise UrlConfigurationError(
                f"Base URL must be an absolute http(s) URL: {base_url}",
                details={"base_url": base_url}
            )

        return cls(base_url=url, token=token)

    def set_session_key(self, key: str) -> None:
        """Session keys do not apply to token mode; ignored."""

    def endpoint(self, path: str) -> URL:
        return self.base_url.join(URL(path))

    @property
    def api_key(self) -> None:
        return None

    @property
    def api_secret(self) -> None:
        return None

    @property
    def session_key(self) -> None:
        return None


AuthMode = Union[KeyedAuth, TokenAuth]
