"""
auth/tokens.py -- Session token codec and the password accessor.

Token design:
  Three dot-separated segments, header.payload.signature, each independently
  standard-base64 encoded JSON (the signature is a fixed placeholder). The
  payload carries id, email, role and exp (epoch seconds).

  THE TOKEN IS UNSIGNED. The header says alg "none" and the signature segment
  is constant text. Anyone with access to local storage can forge a token, so
  nothing may treat a decoded token as proof of identity -- it only carries
  the expiry that decides whether a persisted session may be restored.
  Tokens minted by earlier builds (alg "HS256", different placeholder) decode
  the same way because the signature segment is never inspected.

  Decoding raises MalformedToken on any structural problem. is_live() turns
  every decode failure into False: an unreadable token is an expired token.

Passwords:
  Secrets are stored as plaintext in this demo. store_password() and
  verify_password() are the only functions that know that; a real
  deployment replaces both with a password hash and nothing else changes.

Layer rule: no imports from core/ -- the codec has no configuration.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import json
import math
import time

from auth.errors import MalformedToken
from auth.models import PublicUser, TokenClaims

TOKEN_TTL_SECONDS = 24 * 60 * 60  # 24 hours

_HEADER = {"alg": "none", "typ": "JWT"}
_SIGNATURE_PLACEHOLDER = "unsigned"


# ---------------------------------------------------------------------------
# Segment helpers
# ---------------------------------------------------------------------------


def _encode_segment(value: dict | str) -> str:
    raw = value if isinstance(value, str) else json.dumps(value, separators=(",", ":"))
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def _decode_segment(segment: str) -> object:
    try:
        raw = base64.b64decode(segment, validate=True)
        return json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise MalformedToken("Session token payload could not be decoded.") from exc


# ---------------------------------------------------------------------------
# Encode / decode
# ---------------------------------------------------------------------------


def encode_session_token(user: PublicUser, ttl_seconds: int = TOKEN_TTL_SECONDS, now: float | None = None) -> str:
    """Mint a session token for user that expires ttl_seconds from now.

    Args:
        user:        The authenticated user. Only id, email and role are embedded.
        ttl_seconds: Lifetime in seconds. Fixed at 24 hours for sessions.
        now:         Epoch seconds to count from. Defaults to time.time();
                     tests pass a fixed value.
    """
    issued = time.time() if now is None else now
    payload = {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "exp": int(issued) + int(ttl_seconds),
    }
    return ".".join(
        (
            _encode_segment(_HEADER),
            _encode_segment(payload),
            _encode_segment(_SIGNATURE_PLACEHOLDER),
        )
    )


def decode_session_token(token: str) -> TokenClaims:
    """Parse a session token into its claims. Raises MalformedToken on any failure.

    Only the structure and the payload are checked. There is no signature to
    verify (see module docstring).
    """
    if not isinstance(token, str):
        raise MalformedToken()
    segments = token.split(".")
    if len(segments) != 3:
        raise MalformedToken(f"Session token must have 3 segments, got {len(segments)}.")

    payload = _decode_segment(segments[1])
    if not isinstance(payload, dict):
        raise MalformedToken("Session token payload is not an object.")

    exp = payload.get("exp")
    # bool is an int subclass; a payload of {"exp": true} is not an expiry.
    # JSON also admits NaN and Infinity, which have no integer value.
    if isinstance(exp, bool) or not isinstance(exp, (int, float)) or not math.isfinite(exp):
        raise MalformedToken("Session token has no usable expiry.")
    try:
        return TokenClaims(
            subject_id=str(payload["id"]),
            email=str(payload["email"]),
            role=str(payload["role"]),
            expires_at=int(exp),
        )
    except KeyError as exc:
        raise MalformedToken(f"Session token is missing the {exc.args[0]!r} claim.") from exc


def is_live(token: str, now: float | None = None) -> bool:
    """Return True if token decodes and has not yet expired at now.

    Fail-closed: a token that cannot be decoded is reported as not live.
    """
    try:
        claims = decode_session_token(token)
    except MalformedToken:
        return False
    current = time.time() if now is None else now
    return claims.expires_at > current


# ---------------------------------------------------------------------------
# Password accessor
# ---------------------------------------------------------------------------


def store_password(plain: str) -> str:
    """Return the secret to persist for a newly registered password."""
    return plain


def verify_password(plain: str, secret: str) -> bool:
    """Return True if the submitted password matches the stored secret."""
    return hmac.compare_digest(plain.encode("utf-8"), secret.encode("utf-8"))
