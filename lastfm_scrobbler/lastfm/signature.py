"""
Request signing for the Last.fm API.

Every write call and every auth call must carry an `api_sig` parameter:

    1. Drop the `format` parameter (it is never signed)
    2. Sort the remaining parameters by name
    3. Concatenate them as <name><value> with no separators
    4. Append the shared secret
    5. MD5 the UTF-8 bytes and render as 32 lowercase hex characters

See https://www.last.fm/api/authspec#_8-signing-calls
"""

import hashlib
from typing import Mapping


# Never part of the signature, whatever its value
UNSIGNED_PARAM = "format"


def generate(params: Mapping[str, str], secret: str) -> str:
    """
    Compute the api_sig for a set of request parameters.

    Args:
        params: Request parameters (without api_sig). May contain `format`,
                which is skipped.
        secret: The application's shared secret.

    Returns:
        32-character lowercase hex MD5 digest.

    Example:
        >>> generate({"method": "test", "format": "json"}, "secret") == \\
        ...     hashlib.md5(b"methodtestsecret").hexdigest()
        True
    """
    signature_string = "".join(
        f"{key}{value}"
        for key, value in sorted(params.items())
        if key != UNSIGNED_PARAM
    )
    signature_string += secret

    return hashlib.md5(signature_string.encode("utf-8")).hexdigest()
