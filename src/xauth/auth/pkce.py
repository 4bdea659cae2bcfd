"""PKCE (Proof Key for Code Exchange) session parameters.

Implements the client side of :rfc:`7636` with the ``S256`` method. A
:class:`PkceSession` bundles the per-attempt random values (``state`` and
``code_verifier``) with the derived ``code_challenge`` and the client
identity the attempt runs under. A session is created at the start of one
authorization attempt and discarded after its token exchange; the verifier
is never reused.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
from dataclasses import dataclass, field

from xauth.exceptions import EntropyError

CODE_CHALLENGE_METHOD = "S256"

STATE_BYTES = 80
VERIFIER_BYTES = 32


def base64url(data: bytes) -> str:
    """Encode *data* as unpadded base64url (:rfc:`4648` section 5)."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def random_bytes(length: int) -> bytes:
    """Return *length* bytes from the OS CSPRNG.

    Raises:
        EntropyError: If the platform has no secure randomness source.
    """
    try:
        return secrets.token_bytes(length)
    except (NotImplementedError, OSError) as exc:
        raise EntropyError(f"Secure random source unavailable: {exc}") from exc


def derive_code_challenge(code_verifier: str) -> str:
    """Derive the ``S256`` code challenge for *code_verifier*.

    ``BASE64URL(SHA256(ASCII(code_verifier)))`` without padding.
    """
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64url(digest)


@dataclass(frozen=True)
class PkceSession:
    """Immutable parameters of one PKCE authorization attempt.

    Use :meth:`generate` rather than the constructor so that ``state`` and
    ``code_verifier`` come from the secure random source.
    """

    state: str
    code_verifier: str
    code_challenge: str
    redirect_uri: str
    client_id: str
    client_secret: str = field(default="", repr=False)
    code_challenge_method: str = CODE_CHALLENGE_METHOD

    @classmethod
    def generate(
        cls,
        redirect_uri: str,
        client_id: str,
        client_secret: str = "",
    ) -> PkceSession:
        """Create a session with fresh ``state`` and ``code_verifier``.

        Args:
            redirect_uri: The redirect URI registered for the client; it is
                sent in both the authorization request and the exchange.
            client_id: OAuth 2.0 client identifier.
            client_secret: OAuth 2.0 client secret, empty for public clients.

        Returns:
            A new :class:`PkceSession`.

        Raises:
            EntropyError: If secure random bytes cannot be obtained.
        """
        state = base64url(random_bytes(STATE_BYTES))
        code_verifier = base64url(random_bytes(VERIFIER_BYTES))
        return cls(
            state=state,
            code_verifier=code_verifier,
            code_challenge=derive_code_challenge(code_verifier),
            redirect_uri=redirect_uri,
            client_id=client_id,
            client_secret=client_secret,
        )
