"""OAuth 1.0a request signing (HMAC-SHA1).

Produces the ``Authorization: OAuth ...`` header value for a request made
with legacy user-context credentials, following :rfc:`5849` section 3:

1. Collect the protocol parameters (``oauth_consumer_key``, ``oauth_nonce``,
   ``oauth_signature_method``, ``oauth_timestamp``, ``oauth_token``,
   ``oauth_version``) and merge in the request parameters.
2. Normalize: percent-encode every key and value, sort by key (then value),
   join as ``k=v`` pairs with ``&``.
3. Signature base string: ``METHOD&enc(url)&enc(normalized)``.
4. Sign with HMAC-SHA1 keyed by ``enc(consumer_secret)&enc(token_secret)``
   and base64-encode.

Only query or form parameters belong in *params*; JSON request bodies are
not part of the signature.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import time
from typing import Mapping, Optional
from urllib.parse import quote

from xauth.auth.pkce import random_bytes
from xauth.models import LegacyCredentials

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"


def percent_encode(value: str) -> str:
    """Percent-encode *value* per :rfc:`3986`, keeping only unreserved characters."""
    return quote(value, safe="~")


def generate_nonce() -> str:
    """Return a fresh nonce: base64 of 32 random bytes with ``+``, ``/`` and ``=`` removed."""
    encoded = base64.b64encode(random_bytes(32)).decode("ascii")
    return encoded.replace("+", "").replace("/", "").replace("=", "")


def normalize_parameters(params: Mapping[str, str]) -> str:
    """Encode, sort and join *params* into the normalized parameter string."""
    encoded = sorted((percent_encode(k), percent_encode(v)) for k, v in params.items())
    return "&".join(f"{k}={v}" for k, v in encoded)


def signature_base_string(method: str, url: str, params: Mapping[str, str]) -> str:
    """Build the signature base string for a request."""
    return "&".join(
        [
            method.upper(),
            percent_encode(url),
            percent_encode(normalize_parameters(params)),
        ]
    )


def hmac_sha1_signature(base_string: str, consumer_secret: str, token_secret: str) -> str:
    """Sign *base_string* and return the base64-encoded HMAC-SHA1 digest."""
    key = f"{percent_encode(consumer_secret)}&{percent_encode(token_secret)}"
    digest = hmac.new(key.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def sign_request(
    method: str,
    url: str,
    credentials: LegacyCredentials,
    params: Optional[Mapping[str, str]] = None,
    *,
    nonce: Optional[str] = None,
    timestamp: Optional[int] = None,
) -> str:
    """Compute the OAuth 1.0a ``Authorization`` header value for a request.

    Args:
        method: HTTP method (any case).
        url: Request URL without query string.
        credentials: Consumer and access-token key pairs.
        params: Query or form parameters that are part of the request.
        nonce: Override the random nonce (for reproducible signatures).
        timestamp: Override the Unix timestamp (for reproducible signatures).

    Returns:
        A header value of the form ``OAuth oauth_consumer_key="...", ...``
        listing every ``oauth_*`` parameter, signature included, sorted by
        name with percent-encoded values.

    Raises:
        EntropyError: If no nonce is given and secure random bytes are
            unavailable.
    """
    oauth_params = {
        "oauth_consumer_key": credentials.consumer_key,
        "oauth_nonce": nonce if nonce is not None else generate_nonce(),
        "oauth_signature_method": SIGNATURE_METHOD,
        "oauth_timestamp": str(timestamp if timestamp is not None else int(time.time())),
        "oauth_token": credentials.access_token,
        "oauth_version": OAUTH_VERSION,
    }

    base_string = signature_base_string(method, url, {**(params or {}), **oauth_params})
    oauth_params["oauth_signature"] = hmac_sha1_signature(
        base_string, credentials.consumer_secret, credentials.access_token_secret
    )

    return "OAuth " + ", ".join(
        f'{percent_encode(k)}="{percent_encode(v)}"' for k, v in sorted(oauth_params.items())
    )
