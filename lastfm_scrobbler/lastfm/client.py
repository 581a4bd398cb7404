"""
Asynchronous Last.fm API client.

LastFmClient talks to one of two backends, chosen at construction:

    Last.fm mode (KeyedAuth):
        Requests go to https://ws.audioscrobbler.com/2.0/, carry
        `format=json`, and are signed with the shared secret (see
        signature.generate). Auth calls and lookups use GET query strings,
        write calls use form-encoded POST bodies.

    Token mode (TokenAuth):
        Requests go to `<base_url>/now` and `<base_url>/scrob` on a
        self-hosted server, with a bearer token and JSON bodies. There is
        no auth flow and no signature.

Desktop auth flow (Last.fm mode only):
    1. token = await client.get_token()
    2. Send the user to client.get_auth_url(token) to approve the app
    3. session = await client.get_session(token)
    4. client.set_session_key(session.key); keep session.key for next time

Every network operation performs exactly one HTTP exchange. Nothing is
retried, throttled or cached; failures surface immediately as
ScrobblerError subclasses.

Usage:
    async with LastFmClient.for_lastfm(api_key, api_secret, session_key) as client:
        await client.update_now_playing(NowPlaying("Artist", "Title"))
        result = await client.scrobble([Scrobble("Artist", "Title", timestamp)])
        print(result.accepted, result.ignored)
"""

import asyncio
import json
from typing import TYPE_CHECKING, Any, Sequence

import aiohttp
from yarl import URL

from lastfm_scrobbler.core.exceptions import (
    ApiError,
    AuthConfigurationError,
    DecodingError,
    InvalidParameterError,
    TransportError,
)
from lastfm_scrobbler.core.logger import get_logger
from lastfm_scrobbler.lastfm import signature
from lastfm_scrobbler.lastfm.auth_mode import AuthMode, KeyedAuth, TokenAuth
from lastfm_scrobbler.lastfm.models import (
    AuthToken,
    NowPlaying,
    Scrobble,
    ScrobbleResponse,
    SessionKey,
)
from lastfm_scrobbler.lastfm.track import TrackInfo

if TYPE_CHECKING:
    from lastfm_scrobbler.core.config import Config


logger = get_logger(__name__)

CLIENT_VERSION = "0.1.0"
USER_AGENT = f"lastfm-scrobbler/{CLIENT_VERSION}"

API_BASE = "https://ws.audioscrobbler.com/2.0/"
AUTH_URL = "http://www.last.fm/api/auth/"

# Token-mode endpoints, relative to the configured base URL
NOW_PLAYING_PATH = "now"
SCROBBLE_PATH = "scrob"

MAX_SCROBBLES_PER_REQUEST = 50
REQUEST_TIMEOUT = 30


class LastFmClient:
    """
    Last.fm / scrobble server client.

    Construct it with one of the classmethods:
        LastFmClient.for_lastfm(api_key, api_secret, session_key=None)
        LastFmClient.with_token(base_url, token)
        LastFmClient.from_config(config)

    Attributes:
        auth: The client's AuthMode (KeyedAuth or TokenAuth).

    HTTP Session:
        An aiohttp.ClientSession can be injected and is then shared, never
        closed by the client. Otherwise the client creates one lazily on the
        first request (inside the running event loop) and closes it in
        close() / on leaving `async with`.

    Thread Safety:
        Concurrent calls on one client are fine; they share the session and
        are not ordered relative to each other. set_session_key() is not
        synchronized against in-flight calls.
    """

    def __init__(
        self,
        auth: AuthMode,
        *,
        session: aiohttp.ClientSession | None = None,
        timeout: float = REQUEST_TIMEOUT
    ) -> None:
        """
        Args:
            auth: KeyedAuth for the Last.fm API, TokenAuth for a custom server.
            session: Optional aiohttp session to use instead of creating one.
            timeout: Total per-request timeout in seconds for a session the
                     client creates itself. Ignored when `session` is given.
        """
        self._auth = auth
        self._session = session
        self._owns_session = session is None
        self._timeout = timeout

    @classmethod
    def for_lastfm(
        cls,
        api_key: str,
        api_secret: str,
        session_key: str | None = None,
        **kwargs: Any
    ) -> "LastFmClient":
        """Create a client for the public Last.fm API."""
        return cls(KeyedAuth(api_key, api_secret, session_key), **kwargs)

    @classmethod
    def with_token(cls, base_url: str, token: str, **kwargs: Any) -> "LastFmClient":
        """
        Create a client for a self-hosted scrobble server.

        Raises:
            UrlConfigurationError: If base_url is not an absolute http(s) URL.
        """
        return cls(TokenAuth.from_url(base_url, token), **kwargs)

    @classmethod
    def from_config(cls, config: "Config", **kwargs: Any) -> "LastFmClient":
        """Create a client for whichever backend the configuration describes."""
        return cls(config.auth_mode(), **kwargs)

    @property
    def auth(self) -> AuthMode:
        return self._auth

    def set_session_key(self, key: str) -> None:
        """Set the session key used by write calls. No-op in token mode."""
        self._auth.set_session_key(key)

    def with_session_key(self, key: str) -> "LastFmClient":
        self.set_session_key(key)
        return self

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def _get_session(self) -> aiohttp.ClientSession:
        """
        Return the HTTP session, creating one if the client owns it.

        Raises:
            TransportError: If an injected session was already closed by its owner.
        """
        if self._session is not None and not self._owns_session and self._session.closed:
            raise TransportError(
                "The injected HTTP session is closed",
                details={"session": "injected"}
            )
        if self._session is None or (self._owns_session and self._session.closed):
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if the client created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "LastFmClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Authentication (Last.fm mode only)
    # ------------------------------------------------------------------

    async def get_token(self) -> AuthToken:
        """
        Step 1 of the desktop auth flow: fetch an unauthorized request token.

        Returns:
            AuthToken valid for 60 minutes.

        Raises:
            AuthConfigurationError: In token mode (no request is made).
            ApiError: If Last.fm reports an error (e.g. invalid API key).
            DecodingError: If the response has neither `token` nor `error`.
            TransportError: On network failure or unexpected HTTP status.
        """
        auth = self._require_keyed("get_token")

        data = await self._call_lastfm("GET", {
            "method": "auth.getToken",
            "api_key": auth.api_key,
        })

        if "token" not in data:
            raise _unexpected_format("auth.getToken", data)
        return AuthToken.from_api(data)

    def get_auth_url(self, token: AuthToken) -> str:
        """
        Step 2: URL where the user approves the application.

        No request is made; open the URL in a browser and wait for the user
        before calling get_session().

        Raises:
            AuthConfigurationError: In token mode.
        """
        auth = self._require_keyed("get_auth_url")
        return f"{AUTH_URL}?api_key={auth.api_key}&token={token.token}"

    async def get_session(self, token: AuthToken) -> SessionKey:
        """
        Step 3: exchange an authorized token for a session key.

        The returned key does not expire; store it and pass it to
        set_session_key() (or for_lastfm()) on later runs. The client does
        not set it on itself.

        Raises:
            AuthConfigurationError: In token mode (no request is made).
            ApiError: If Last.fm rejects the token (code 14: not authorized
                      yet, code 15: expired).
            DecodingError: If the response has neither `session` nor `error`.
            TransportError: On network failure or unexpected HTTP status.
        """
        auth = self._require_keyed("get_session")

        data = await self._call_lastfm("GET", {
            "method": "auth.getSession",
            "api_key": auth.api_key,
            "token": token.token,
        })

        if "session" not in data:
            raise _unexpected_format("auth.getSession", data)

        session = SessionKey.from_api(data)
        logger.info(f"Authorized Last.fm session for user {session.name}")
        return session

    # ------------------------------------------------------------------
    # Scrobbling (both modes)
    # ------------------------------------------------------------------

    async def update_now_playing(self, now_playing: NowPlaying) -> None:
        """
        Tell the service what is playing right now.

        Raises:
            AuthConfigurationError: Last.fm mode without a session key
                                    (no request is made).
            ApiError: If Last.fm reports an error.
            TransportError: On network failure or non-2xx HTTP status.
            DecodingError: If Last.fm answers with invalid JSON.
        """
        auth = self._auth

        if isinstance(auth, KeyedAuth):
            session_key = _require_session_key(auth, "track.updateNowPlaying")
            params = {
                "method": "track.updateNowPlaying",
                "api_key": auth.api_key,
                "sk": session_key,
            }
            params.update(now_playing.to_params())
            await self._call_lastfm("POST", params)

        elif isinstance(auth, TokenAuth):
            await self._call_server(auth, NOW_PLAYING_PATH, now_playing.to_json())

        else:
            raise _unsupported_mode(auth)

        logger.debug(f"Now playing: {now_playing.artist} - {now_playing.track}")

    async def scrobble(self, scrobbles: Sequence[Scrobble]) -> ScrobbleResponse:
        """
        Submit a batch of 1 to 50 plays.

        In Last.fm mode the order of `scrobbles` defines the [i] suffix of
        each record's parameters. In token mode the server returns no
        counts, so every submitted play is reported as accepted once the
        server answers with a 2xx status.

        Args:
            scrobbles: The plays to submit, oldest first by convention.

        Returns:
            ScrobbleResponse with accepted/ignored counts.

        Raises:
            InvalidParameterError: Empty batch or more than 50 plays
                                   (checked before anything else).
            AuthConfigurationError: Last.fm mode without a session key.
            ApiError: If Last.fm reports an error.
            DecodingError: If the Last.fm response lacks the counts.
            TransportError: On network failure or non-2xx HTTP status.
        """
        count = len(scrobbles)
        if count == 0:
            raise InvalidParameterError("No scrobbles provided", details={"count": 0})
        if count > MAX_SCROBBLES_PER_REQUEST:
            raise InvalidParameterError(
                f"Maximum {MAX_SCROBBLES_PER_REQUEST} scrobbles per request, got {count}",
                details={"count": count}
            )

        auth = self._auth

        if isinstance(auth, KeyedAuth):
            session_key = _require_session_key(auth, "track.scrobble")
            params = {
                "method": "track.scrobble",
                "api_key": auth.api_key,
                "sk": session_key,
            }
            for index, record in enumerate(scrobbles):
                params.update(record.to_params(index))

            data = await self._call_lastfm("POST", params)
            result = ScrobbleResponse.from_api(data)

        elif isinstance(auth, TokenAuth):
            await self._call_server(
                auth, SCROBBLE_PATH, [record.to_json() for record in scrobbles]
            )
            result = ScrobbleResponse(accepted=count, ignored=0)

        else:
            raise _unsupported_mode(auth)

        logger.info(f"Scrobbled {count} play(s): {result.accepted} accepted, {result.ignored} ignored")
        return result

    # ------------------------------------------------------------------
    # Metadata (Last.fm mode only)
    # ------------------------------------------------------------------

    async def get_track_info(
        self,
        artist: str,
        track: str,
        mbid: str | None = None,
        *,
        username: str | None = None,
        autocorrect: bool = False
    ) -> TrackInfo:
        """
        Look up track metadata (track.getInfo). Unsigned, no session needed.

        Args:
            artist: Artist name.
            track: Track title.
            mbid: MusicBrainz recording ID to disambiguate; Last.fm prefers
                  it over artist/track when given.
            username: Include this user's playcount and loved flag.
            autocorrect: Let Last.fm correct misspelled artist/track names.

        Raises:
            AuthConfigurationError: In token mode (an API key is required).
            ApiError: If Last.fm reports an error (code 6: track not found).
            DecodingError: If the response lacks the track structure.
            TransportError: On network failure or unexpected HTTP status.
        """
        auth = self._require_keyed("get_track_info")

        params = {
            "method": "track.getInfo",
            "api_key": auth.api_key,
            "artist": artist,
            "track": track,
        }
        if mbid:
            params["mbid"] = mbid
        if username:
            params["username"] = username
        if autocorrect:
            params["autocorrect"] = "1"

        data = await self._call_lastfm("GET", params, sign=False)
        return TrackInfo.from_api(data)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _require_keyed(self, operation: str) -> KeyedAuth:
        if isinstance(self._auth, KeyedAuth):
            return self._auth
        raise AuthConfigurationError(
            f"{operation}() is only available in Last.fm mode",
            details={"operation": operation, "mode": type(self._auth).__name__}
        )

    async def _call_lastfm(
        self,
        http_method: str,
        params: dict[str, str],
        sign: bool = True
    ) -> dict[str, Any]:
        """
        Perform one Last.fm API call and return the decoded JSON object.

        Adds api_sig (when signing) and format=json. GET sends the parameters
        as a query string, POST as a form-encoded body.

        Raises:
            ApiError: If the body carries an `error` field, whatever the status.
            TransportError: Non-2xx status without a Last.fm error body.
            DecodingError: 2xx status with a body that is not a JSON object.
        """
        method = params["method"]
        request_params = dict(params)

        if sign:
            request_params["api_sig"] = signature.generate(request_params, self._auth.api_secret)
        request_params["format"] = "json"

        if http_method == "GET":
            status, body = await self._send(
                "GET", API_BASE, method=method, params=request_params
            )
        else:
            status, body = await self._send(
                "POST", API_BASE, method=method, data=request_params
            )

        if not 200 <= status < 300:
            try:
                data = _decode_json_object(body, method)
            except DecodingError as e:
                raise TransportError(
                    f"Last.fm returned HTTP {status} for {method}",
                    details={"method": method, "body": body[:200].decode("utf-8", "replace")},
                    status=status
                ) from e
            if "error" not in data:
                raise TransportError(
                    f"Last.fm returned HTTP {status} for {method}",
                    details={"method": method},
                    status=status
                )
        else:
            data = _decode_json_object(body, method)

        if "error" in data:
            raise _api_error(method, data)

        return data

    async def _call_server(self, auth: TokenAuth, path: str, payload: Any) -> None:
        """POST a JSON payload to a token-mode endpoint. The body of the answer is ignored."""
        url = auth.endpoint(path)
        status, _ = await self._send(
            "POST",
            url,
            method=path,
            json_body=payload,
            headers={"Authorization": f"Bearer {auth.token}"},
        )

        if not 200 <= status < 300:
            raise TransportError(
                f"HTTP {status} from {url}",
                details={"url": str(url)},
                status=status
            )

    async def _send(
        self,
        http_method: str,
        url: str | URL,
        *,
        method: str,
        params: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
        json_body: Any = None,
        headers: dict[str, str] | None = None
    ) -> tuple[int, bytes]:
        """
        Issue a single HTTP request and read the whole body.

        The body is returned undecoded; only Last.fm responses are parsed.

        Returns:
            (status, raw body bytes)

        Raises:
            TransportError: Connection failure, timeout, or unreadable body.
        """
        request_headers = {"User-Agent": USER_AGENT}
        if headers:
            request_headers.update(headers)

        session = self._get_session()

        logger.debug(
            f"{http_method} {url} ({method})",
            extra={
                "api_method": method,
                "params_count": len(params or data or {}),
            }
        )

        try:
            async with session.request(
                http_method,
                url,
                params=params,
                data=data,
                json=json_body,
                headers=request_headers,
            ) as response:
                body = await response.read()
                status = response.status
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"Request for {method} timed out",
                details={"url": str(url), "method": method}
            ) from e
        except aiohttp.ClientError as e:
            raise TransportError(
                f"Request for {method} failed: {e}",
                details={"url": str(url), "method": method, "original_error": str(e)}
            ) from e

        logger.debug(f"{method}: HTTP {status}", extra={"api_method": method, "status_code": status})
        return status, body


def _require_session_key(auth: KeyedAuth, method: str) -> str:
    if auth.session_key is None:
        raise AuthConfigurationError(
            f"Session key required for {method}",
            details={"method": method}
        )
    return auth.session_key


def _decode_json_object(body: bytes, method: str) -> dict[str, Any]:
    try:
        data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodingError(
            f"Last.fm returned invalid JSON for {method}",
            details={"method": method, "original_error": str(e)}
        ) from e

    if not isinstance(data, dict):
        raise _unexpected_format(method, data)
    return data


def _api_error(method: str, data: dict[str, Any]) -> ApiError:
    raw_code = data.get("error")
    try:
        error_code = int(raw_code)
    except (TypeError, ValueError):
        error_code = None

    message = data.get("message") or f"Last.fm error {raw_code}"

    logger.warning(
        f"Last.fm API error for {method}: {message}",
        extra={"api_method": method, "error_code": error_code}
    )
    return ApiError(message, details={"method": method, "response": data}, error_code=error_code)


def _unexpected_format(method: str, data: Any) -> DecodingError:
    keys = sorted(data) if isinstance(data, dict) else type(data).__name__
    return DecodingError(
        f"Unexpected response format for {method}",
        details={"method": method, "keys": keys}
    )


def _unsupported_mode(auth: Any) -> AuthConfigurationError:
    return AuthConfigurationError(
        f"Unsupported auth mode: {type(auth).__name__}",
        details={"mode": type(auth).__name__}
    )
