"""Root settings model for webhook dispatcher configuration."""

from typing import Any, Literal

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from cms_webhooks.config.models.api import APIConfig
from cms_webhooks.config.models.delivery import (
    DeliveryConfig,
    LogRetentionConfig,
    SecretConfig,
)
from cms_webhooks.config.models.jobs import JobsConfig
from cms_webhooks.config.models.observability import ObservabilityConfig

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# TOML config captured by get_settings() for the custom settings source
_toml_config: dict[str, Any] = {}


def set_toml_config(config: dict[str, Any]) -> None:
    """Set the TOML configuration to be used by Settings."""
    global _toml_config
    _toml_config = config


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that reads from TOML configuration."""

    def get_field_value(
        self, field: Any, field_name: str  # noqa: ARG002
    ) -> tuple[Any, str, bool]:
        """Get field value from TOML config."""
        value = _toml_config.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        """Return the TOML config values."""
        return _toml_config.copy()


class Settings(BaseSettings):
    """Root configuration object containing all nested configuration sections.

    Configuration is loaded in this order:
    1. Pydantic model defaults (in code)
    2. config/default.toml (base configuration)
    3. config/{CMS_WEBHOOKS_ENV}.toml (environment overrides)
    4. CMS_WEBHOOKS_* environment variables (runtime overrides)
    """

    model_config = SettingsConfigDict(
        env_prefix="CMS_WEBHOOKS_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="cms-webhooks", description="Application name for logging")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: LogLevel = Field(default="INFO", description="Logging level")

    api: APIConfig = Field(default_factory=APIConfig, description="HTTP API configuration")
    delivery: DeliveryConfig = Field(
        default_factory=DeliveryConfig,
        description="Outbound delivery configuration",
    )
    logs: LogRetentionConfig = Field(
        default_factory=LogRetentionConfig,
        description="Delivery log retention and statistics",
    )
    secrets: SecretConfig = Field(
        default_factory=SecretConfig,
        description="Signing secret generation",
    )
    jobs: JobsConfig = Field(default_factory=JobsConfig, description="Scheduled jobs")
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Observability configuration",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include TOML config.

        Priority order (highest to lowest):
        1. init_settings (constructor arguments)
        2. env_settings (CMS_WEBHOOKS_* environment variables)
        3. toml_settings (config/*.toml files)
        4. (defaults from model)
        """
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )
