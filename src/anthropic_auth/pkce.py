"""PKCE (:rfc:`7636`) verifier/challenge pairs and CSRF state tokens.

All randomness comes from :mod:`secrets`, which draws from the operating
system's CSPRNG. The state token is generated independently of the
verifier so that a leaked state never reveals anything about the secret
needed to redeem the authorization code.
"""

from __future__ import annotations

import base64
import hashlib
import re
import secrets

from anthropic_auth.exceptions import RandomSourceUnavailableError
from anthropic_auth.models import PKCEMaterial

VERIFIER_BYTES = 32
"""Entropy drawn for a verifier; encodes to 43 base64url characters."""

STATE_BYTES = 32
"""Entropy drawn for a state token (256 bits)."""

CHALLENGE_METHOD = "S256"

# RFC 7636 section 4.1: unreserved characters, 43-128 long
_VERIFIER_RE = re.compile(r"^[A-Za-z0-9\-._~]{43,128}$")


def _random_bytes(n: int) -> bytes:
    try:
        return secrets.token_bytes(n)
    except (NotImplementedError, OSError) as exc:
        raise RandomSourceUnavailableError(
            f"Secure random source unavailable: {exc}"
        ) from exc


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_verifier() -> str:
    """Return a fresh 43-character PKCE code verifier."""
    return _b64url(_random_bytes(VERIFIER_BYTES))


def compute_challenge(verifier: str) -> str:
    """Derive the S256 code challenge for *verifier*.

    ``BASE64URL(SHA256(ASCII(verifier)))`` without padding. Deterministic,
    so a stored verifier always reproduces the challenge that was sent.
    """
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return _b64url(digest)


def generate_state() -> str:
    """Return a fresh CSRF state token carrying 256 bits of entropy."""
    return _b64url(_random_bytes(STATE_BYTES))


def is_valid_verifier(verifier: str) -> bool:
    """Check *verifier* against the RFC 7636 verifier grammar."""
    return bool(_VERIFIER_RE.match(verifier))


def generate_pkce() -> PKCEMaterial:
    """Generate a verifier, its challenge, and an unrelated state token.

    Raises:
        RandomSourceUnavailableError: If the OS random source cannot be read.
    """
    verifier = generate_verifier()
    return PKCEMaterial(
        verifier=verifier,
        challenge=compute_challenge(verifier),
        state=generate_state(),
    )
