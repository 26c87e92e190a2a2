"""Unit tests for HMAC signing and secret generation."""

import hashlib
import hmac
import re

from cms_webhooks.webhooks.signing import generate_secret, sign_payload, verify_signature


class TestSignPayload:
    """Tests for sign_payload."""

    def test_matches_reference_hmac(self) -> None:
        """Signature is the lowercase hex HMAC-SHA256 of the exact body."""
        payload = '{"event":"page_published"}'
        secret = "whsec_test"

        expected = hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()

        assert sign_payload(payload, secret) == expected

    def test_is_64_lowercase_hex_chars(self) -> None:
        signature = sign_payload("body", "secret")
        assert re.fullmatch(r"[0-9a-f]{64}", signature)

    def test_deterministic(self) -> None:
        """Same payload and secret always produce the same signature."""
        assert sign_payload("body", "secret") == sign_payload("body", "secret")

    def test_whitespace_changes_signature(self) -> None:
        """Signatures cover bytes, not JSON semantics."""
        assert sign_payload('{"a":1}', "s") != sign_payload('{"a": 1}', "s")

    def test_signs_utf8_bytes(self) -> None:
        payload = '{"entityName":"Café"}'
        expected = hmac.new(b"s", payload.encode("utf-8"), hashlib.sha256).hexdigest()
        assert sign_payload(payload, "s") == expected


class TestVerifySignature:
    """Tests for verify_signature."""

    def test_accepts_valid_signature(self) -> None:
        signature = sign_payload("body", "secret")
        assert verify_signature("body", signature, "secret") is True

    def test_rejects_wrong_secret(self) -> None:
        signature = sign_payload("body", "secret")
        assert verify_signature("body", signature, "other") is False

    def test_rejects_tampered_body(self) -> None:
        signature = sign_payload("body", "secret")
        assert verify_signature("body!", signature, "secret") is False


class TestGenerateSecret:
    """Tests for generate_secret."""

    def test_default_shape(self) -> None:
        """Secrets are whsec_ followed by 48 hex chars."""
        assert re.fullmatch(r"whsec_[0-9a-f]{48}", generate_secret())

    def test_custom_prefix_and_length(self) -> None:
        assert re.fullmatch(r"sk_[0-9a-f]{8}", generate_secret("sk_", 4))

    def test_unique(self) -> None:
        assert len({generate_secret() for _ in range(100)}) == 100
