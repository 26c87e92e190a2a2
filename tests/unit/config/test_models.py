"""Unit tests for configuration Pydantic models."""

import pytest
from pydantic import ValidationError

from cms_webhooks.config.models import (
    DeliveryConfig,
    JobsConfig,
    LogRetentionConfig,
    SecretConfig,
)


class TestDeliveryConfig:
    """Tests for DeliveryConfig model."""

    def test_defaults(self) -> None:
        """Default values are correct."""
        config = DeliveryConfig()
        assert config.dispatch_timeout_ms == 30000
        assert config.test_timeout_ms == 10000
        assert config.max_retries == 3
        assert config.response_body_limit == 10000

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            DeliveryConfig(dispatch_timeout_ms=0)

    def test_max_retries_cannot_be_negative(self) -> None:
        with pytest.raises(ValidationError):
            DeliveryConfig(max_retries=-1)


class TestLogRetentionConfig:
    """Tests for LogRetentionConfig model."""

    def test_defaults(self) -> None:
        config = LogRetentionConfig()
        assert config.retention_days == 30
        assert config.stats_window_days == 7
        assert config.recent_entries == 10


class TestSecretConfig:
    """Tests for SecretConfig model."""

    def test_defaults(self) -> None:
        config = SecretConfig()
        assert config.prefix == "whsec_"
        assert config.random_bytes == 24


class TestJobsConfig:
    """Tests for JobsConfig model."""

    def test_defaults(self) -> None:
        config = JobsConfig()
        assert config.cron_cleanup_logs == "0 3 * * *"
        assert config.cron_drain_outbox == "* * * * *"
        assert config.outbox_batch_size == 100
        assert config.outbox_lease_seconds == 300

    def test_batch_size_bounds(self) -> None:
        with pytest.raises(ValidationError):
            JobsConfig(outbox_batch_size=0)
        with pytest.raises(ValidationError):
            JobsConfig(outbox_lease_seconds=0)
