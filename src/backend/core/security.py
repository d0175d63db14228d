"""Security utilities for token hashing and admin authorization.

PeerPulse has two bearer token classes with different verification access
patterns, so they use different hash families:

- Voter tokens: slow, salted PBKDF2 (a fresh salt per call). Verification
  cannot use an index on this hash, so a keyed HMAC digest is stored next to
  it as the lookup key and the slow hash is verified on the matched row.
- Candidate access tokens: fast, deterministic SHA-256 used directly as an
  indexed lookup key. The 128-bit random plaintext is the primary defense.

Admin identity is an opaque capability carried by a JWT.
"""

import hashlib
import hmac
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from core.config import settings

# Token issuer and audience for validation
TOKEN_ISSUER = "peerpulse-api"
TOKEN_AUDIENCE = "peerpulse-admin"

VOTER_HASH_SCHEME = "pbkdf2_sha256"
_VOTER_SALT_BYTES = 16
_VOTER_TOKEN_ALPHABET = string.ascii_lowercase + string.digits


# =============================================================================
# Token Generation
# =============================================================================


def generate_voter_token(length: int | None = None) -> str:
    """Generate a random voter token plaintext."""
    size = length or settings.VOTER_TOKEN_LENGTH
    return "".join(secrets.choice(_VOTER_TOKEN_ALPHABET) for _ in range(size))


def generate_candidate_token() -> str:
    """Generate a 128-bit (by default) random candidate access token."""
    return secrets.token_hex(settings.CANDIDATE_TOKEN_BYTES)


# =============================================================================
# Voter Token Hashing (slow, salted)
# =============================================================================


def hash_voter_token(plaintext: str, iterations: int | None = None) -> str:
    """
    Hash a voter token with PBKDF2-HMAC-SHA256 and a random salt.

    Two calls with the same plaintext return different hashes.

    Returns:
        "pbkdf2_sha256$<iterations>$<salt_hex>$<digest_hex>"
    """
    rounds = iterations or settings.VOTER_TOKEN_HASH_ITERATIONS
    salt = secrets.token_bytes(_VOTER_SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", plaintext.encode("utf-8"), salt, rounds)
    return f"{VOTER_HASH_SCHEME}${rounds}${salt.hex()}${digest.hex()}"


def verify_voter_token(plaintext: str, stored_hash: str) -> bool:
    """
    Check a presented voter token against a stored slow hash.

    Malformed stored hashes compare as a mismatch.
    """
    try:
        scheme, rounds, salt_hex, digest_hex = stored_hash.split("$")
        if scheme != VOTER_HASH_SCHEME:
            return False
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(digest_hex)
        iterations = int(rounds)
    except (AttributeError, ValueError):
        return False

    candidate = hashlib.pbkdf2_hmac("sha256", plaintext.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(candidate, expected)


def compute_token_lookup(plaintext: str) -> str:
    """
    Compute the deterministic lookup digest of a voter token.

    HMAC-SHA256 keyed with SECRET_KEY, so the digest cannot be brute forced
    without the server secret. Stored indexed next to the slow hash.
    """
    return hmac.new(
        settings.SECRET_KEY.encode("utf-8"),
        plaintext.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


# =============================================================================
# Candidate Token Hashing (fast, deterministic)
# =============================================================================


def hash_candidate_token(plaintext: str) -> str:
    """Hash a candidate access token with plain SHA-256 (hex)."""
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


# =============================================================================
# Admin JWT
# =============================================================================


def create_admin_token(
    subject: str,
    role: str = "admin",
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT carrying the admin capability."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ADMIN_TOKEN_EXPIRE_MINUTES))
    to_encode: dict[str, Any] = {
        "sub": subject,
        "role": role,
        "exp": expire,
        "iat": now,
        "type": "admin",
        "iss": TOKEN_ISSUER,
        "aud": TOKEN_AUDIENCE,
        "jti": secrets.token_urlsafe(16),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, expected_type: str | None = None) -> dict[str, Any] | None:
    """
    Decode and validate a JWT token.

    Args:
        token: The JWT token to decode
        expected_type: If provided, validates the token type matches

    Returns:
        The decoded payload or None if invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            issuer=TOKEN_ISSUER,
            audience=TOKEN_AUDIENCE,
        )
        if expected_type and payload.get("type") != expected_type:
            return None
        return payload
    except JWTError:
        return None
