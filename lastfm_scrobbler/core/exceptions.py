"""
Exception classes for lastfm-scrobbler.

This module defines all custom exceptions raised by the library. Each
exception carries a human-readable message plus a details dictionary, and
the class tells the caller what to do next: re-authenticate, resubmit a
smaller batch, or retry later.

Exception Hierarchy:
    ScrobblerError (base)
        ConfigError - Configuration file / environment issues
            UrlConfigurationError - Malformed token-mode base URL
        TransportError - Network failures and non-2xx HTTP statuses
        DecodingError - Invalid JSON or unexpected response shape
        ApiError - The remote service answered with an `error` field
        AuthConfigurationError - Operation used in the wrong auth mode,
                                 or session key missing
        InvalidParameterError - Batch size violations, malformed records
"""


# Last.fm error codes that mean "the credentials are no good, re-authenticate".
# 4: Authentication failed, 9: Invalid session key, 10: Invalid API key,
# 14: Token not authorized, 15: Token expired
AUTH_ERROR_CODES = frozenset({4, 9, 10, 14, 15})


class ScrobblerError(Exception):
    """
    Base exception for all lastfm-scrobbler errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch every library failure with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (method, URL, ...).

    Example:
        try:
            await client.scrobble(batch)
        except ScrobblerError as e:
            logger.error(f"Scrobble failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'method': Last.fm API method involved in the error
                     - 'url': URL that caused the error
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(ScrobblerError):
    """
    Raised when there's an issue with the configuration.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - config.yaml has invalid YAML syntax
        - Neither Last.fm nor server credentials are available
        - Both Last.fm and server credentials are configured at once
        - Invalid field values (e.g., unknown log level)

    Example:
        raise ConfigError(
            "'lastfm.api_secret' must be a non-empty string",
            details={'field': 'lastfm.api_secret'}
        )
    """
    pass


class UrlConfigurationError(ConfigError):
    """
    Raised when a token-mode base URL cannot be used.

    The base URL must be absolute (http or https, with a host) because the
    `now` and `scrob` endpoints are resolved relative to it.

    Example:
        raise UrlConfigurationError(
            "Base URL must be absolute: not a url",
            details={'base_url': 'not a url'}
        )
    """
    pass


class TransportError(ScrobblerError):
    """
    Raised when the HTTP exchange itself fails.

    This covers connection errors, timeouts and non-success HTTP statuses.
    These are usually transient: the caller may retry later. The library
    never retries on its own.

    Attributes:
        status: HTTP status code, or None if no response was received.

    Example:
        raise TransportError(
            "HTTP 502 from https://scrob.example.com/api/scrob",
            details={'url': url},
            status=502
        )
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        status: int | None = None
    ) -> None:
        super().__init__(message, details)
        self.status = status


class DecodingError(ScrobblerError):
    """
    Raised when a response body is not valid JSON or lacks the expected shape.

    Example:
        raise DecodingError(
            "Unexpected response format for auth.getToken",
            details={'method': 'auth.getToken', 'keys': ['foo']}
        )
    """
    pass


class ApiError(ScrobblerError):
    """
    Raised when the remote service reports an error in its JSON body.

    Last.fm error responses look like {"error": 9, "message": "Invalid session key"}.

    Attributes:
        error_code: The numeric Last.fm error code, if one was given.
        is_auth_error: True if the code means the credentials must be renewed.

    Example:
        raise ApiError(
            "Invalid session key - Please re-authenticate",
            details={'method': 'track.scrobble'},
            error_code=9
        )
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        error_code: int | None = None
    ) -> None:
        """
        Initialize API error with the remote error code.

        Args:
            message: The remote error message.
            details: Optional dictionary with additional context.
            error_code: Numeric Last.fm error code. Codes in AUTH_ERROR_CODES
                        mark the error as an authentication problem.
        """
        super().__init__(message, details)
        self.error_code = error_code

    @property
    def is_auth_error(self) -> bool:
        return self.error_code in AUTH_ERROR_CODES


class AuthConfigurationError(ScrobblerError):
    """
    Raised when an operation does not fit the client's authentication setup.

    Raised before any network activity, for example:
        - get_token(), get_auth_url() or get_session() on a token-mode client
        - update_now_playing() or scrobble() on a keyed client with no session key

    Example:
        raise AuthConfigurationError(
            "Session key required for track.scrobble",
            details={'method': 'track.scrobble'}
        )
    """
    pass


class InvalidParameterError(ScrobblerError):
    """
    Raised when the caller supplied arguments the API cannot accept.

    Common causes:
        - Empty scrobble batch
        - More than 50 scrobbles in one batch
        - A scrobble record without artist, track or timestamp

    Example:
        raise InvalidParameterError(
            "Maximum 50 scrobbles per request",
            details={'count': 51}
        )
    """
    pass
