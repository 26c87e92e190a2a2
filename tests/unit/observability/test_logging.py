"""Tests for structured logging."""

import json
from io import StringIO

import pytest
import structlog

from cms_webhooks.observability.logging import (
    PIIRedactor,
    get_logger,
    setup_logging,
)


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_json_format(self) -> None:
        """Should configure JSON format for production."""
        setup_logging(level="INFO", format="json", redact_pii=False)
        logger = get_logger("test")
        # Should not raise
        logger.info("test_message")

    def test_setup_console_format(self) -> None:
        """Should configure console format for development."""
        setup_logging(level="DEBUG", format="console", redact_pii=False)
        logger = get_logger("test")
        logger.debug("test_message")

    def test_setup_with_redaction(self) -> None:
        """Should configure redaction when enabled."""
        setup_logging(level="INFO", format="json", redact_pii=True)
        logger = get_logger("test")
        logger.info("test_message", secret="whsec_" + "ab" * 24)


class TestPIIRedactor:
    """Tests for secret and PII redaction."""

    @pytest.fixture
    def redactor(self) -> PIIRedactor:
        """Create a PIIRedactor instance."""
        return PIIRedactor()

    def test_redacts_secret_by_key(self, redactor: PIIRedactor) -> None:
        """Should redact webhook secrets logged under known keys."""
        event_dict = {"secret": "whsec_abc", "new_secret": "whsec_def", "webhook_id": "w1"}
        result = redactor(None, None, event_dict)  # type: ignore
        assert result["secret"] == "[REDACTED]"
        assert result["new_secret"] == "[REDACTED]"
        assert result["webhook_id"] == "w1"

    def test_redacts_signature_headers(self, redactor: PIIRedactor) -> None:
        """Should redact signature values inside nested header maps."""
        event_dict = {
            "headers": {
                "X-Webhook-Signature": "deadbeef",
                "X-Webhook-Event": "page_published",
                "Authorization": "Bearer abc",
            }
        }
        result = redactor(None, None, event_dict)  # type: ignore
        assert result["headers"]["X-Webhook-Signature"] == "[REDACTED]"
        assert result["headers"]["Authorization"] == "[REDACTED]"
        assert result["headers"]["X-Webhook-Event"] == "page_published"

    def test_redacts_secret_pattern_in_string_value(self, redactor: PIIRedactor) -> None:
        """Should mask secrets that leak into free-text values."""
        leaked = "whsec_" + "0f" * 24
        event_dict = {"error": f"bad config {leaked}"}
        result = redactor(None, None, event_dict)  # type: ignore
        assert leaked not in result["error"]

    def test_redacts_email_pattern_in_string_value(self, redactor: PIIRedactor) -> None:
        """Should redact email patterns found in string values."""
        event_dict = {"message": "Contact user@example.com for help"}
        result = redactor(None, None, event_dict)  # type: ignore
        assert "user@example.com" not in result["message"]
        assert "[EMAIL]" in result["message"]

    def test_preserves_non_sensitive_data(self, redactor: PIIRedactor) -> None:
        """Should leave ordinary delivery context untouched."""
        event_dict = {
            "event": "webhook_delivered",
            "duration_ms": 150,
            "status_code": 200,
            "attempt": 1,
        }
        result = redactor(None, None, event_dict)  # type: ignore
        assert result == event_dict


class TestJSONLogging:
    """Tests for JSON log output format."""

    def test_json_output_is_valid_json(self) -> None:
        """Should produce valid JSON output with redaction applied."""
        output = StringIO()
        structlog.configure(
            processors=[
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                PIIRedactor(),
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(0),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(output),
            cache_logger_on_first_use=False,
        )

        logger = structlog.get_logger("test")
        logger.info("webhook_secret_rotated", webhook_id="w1", secret="whsec_abc")

        parsed = json.loads(output.getvalue().strip())
        assert parsed["event"] == "webhook_secret_rotated"
        assert parsed["webhook_id"] == "w1"
        assert parsed["secret"] == "[REDACTED]"
        assert "timestamp" in parsed
        assert "level" in parsed
