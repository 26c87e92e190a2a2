"""Configuration model exports.

    from cms_webhooks.config.models import DeliveryConfig, LogRetentionConfig
"""

from cms_webhooks.config.models.api import APIConfig
from cms_webhooks.config.models.delivery import (
    DeliveryConfig,
    LogRetentionConfig,
    SecretConfig,
)
from cms_webhooks.config.models.jobs import JobsConfig
from cms_webhooks.config.models.observability import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
)

__all__ = [
    "APIConfig",
    "DeliveryConfig",
    "JobsConfig",
    "LogRetentionConfig",
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "SecretConfig",
]
