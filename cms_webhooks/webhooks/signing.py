"""HMAC-SHA256 signing and secret generation."""

import hashlib
import hmac
import secrets

DEFAULT_SECRET_PREFIX = "whsec_"
DEFAULT_SECRET_BYTES = 24


def sign_payload(payload: str, secret: str) -> str:
    """Generate HMAC-SHA256 signature for a serialized payload.

    Args:
        payload: JSON-encoded payload string, exactly as sent on the wire
        secret: Webhook signing secret

    Returns:
        Lowercase hex digest (64 chars)
    """
    return hmac.new(
        secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def verify_signature(payload: str, signature: str, secret: str) -> bool:
    """Check a received signature against the payload and shared secret.

    Receivers must pass the raw request body, not a re-serialized copy.
    """
    expected = sign_payload(payload, secret)
    return hmac.compare_digest(expected, signature)


def generate_secret(
    prefix: str = DEFAULT_SECRET_PREFIX,
    num_bytes: int = DEFAULT_SECRET_BYTES,
) -> str:
    """Generate a self-identifying signing secret: prefix + random hex."""
    return f"{prefix}{secrets.token_hex(num_bytes)}"
