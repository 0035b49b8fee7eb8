"""Application settings with Pydantic Settings validation.

Secrets (bot token, proxy credentials) are loaded from .env file.
Non-sensitive configuration is loaded from config/main.yaml and config/*.yaml files.
All configs are automatically merged and validated against JSON schemas.
"""

import json
from pathlib import Path
from typing import Any, Final, cast

from jsonschema import ValidationError as JSONSchemaValidationError
from jsonschema import validate
from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.adapters.slack_client import DEFAULT_HISTORY_PAGE_SIZE, DEFAULT_SLACK_BASE_URL
from src.config.logging_config import get_logger
from src.config.yaml_files import load_yaml_mapping
from src.domain.exceptions import ConfigurationError

SLACK_HISTORY_PAGE_SIZE_MAX: Final[int] = 999
NOTIFICATION_TEMPLATES_FILE_DEFAULT: Final[str] = "config/notifications/templates.yaml"

logger = cast(Any, get_logger(__name__))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge into base (takes precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_schema(schema_name: str) -> dict[str, Any]:
    """Load JSON Schema from config/schemas/.

    Args:
        schema_name: Schema name without extension (e.g., "main")

    Returns:
        JSON Schema dictionary or empty dict if not found
    """
    schema_path = Path("config/schemas") / f"{schema_name}.schema.json"
    if not schema_path.exists():
        return {}

    try:
        with open(schema_path, encoding="utf-8") as f:
            return cast(dict[str, Any], json.load(f))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(
            "config_schema_load_failed",
            schema=schema_name,
            error=str(e),
        )
        return {}


def validate_config_section(
    config: dict[str, Any], schema_name: str, file_path: str = ""
) -> None:
    """Validate config section against JSON Schema.

    Args:
        config: Configuration dictionary to validate
        schema_name: Name of schema to validate against
        file_path: Optional file path for error messages

    Raises:
        ConfigurationError: If validation fails
    """
    schema = load_schema(schema_name)
    if not schema:
        return

    try:
        validate(instance=config, schema=schema)
        logger.debug("config_validation_succeeded", schema=schema_name)
    except JSONSchemaValidationError as e:
        error_msg = f"Config validation failed for {schema_name}"
        if file_path:
            error_msg += f" (file: {file_path})"
        error_msg += f": {e.message}"
        raise ConfigurationError(error_msg) from e


def load_all_configs() -> dict[str, Any]:
    """Load and merge all YAML configs from config/ directory.

    Loading order (later overrides earlier):
    1. config/main.yaml (main config)
    2. All other config/*.yaml files (sorted alphabetically)

    Files in subdirectories (templates, knowledge base) are not merged.
    Each config is validated against its JSON Schema if available.

    Returns:
        Merged configuration dictionary

    Raises:
        ConfigurationError: If a file fails schema validation
    """
    merged_config: dict[str, Any] = {}
    config_dir = Path("config")
    if not config_dir.is_dir():
        logger.info("config_load_complete", file_count=0)
        return merged_config

    main_path = config_dir / "main.yaml"
    yaml_files = sorted(f for f in config_dir.glob("*.yaml") if f.name != "main.yaml")
    if main_path.exists():
        yaml_files.insert(0, main_path)

    loaded = 0
    for yaml_file in yaml_files:
        try:
            file_config = load_yaml_mapping(yaml_file)
        except ConfigurationError as e:
            logger.warning(
                "config_file_load_failed",
                path=str(yaml_file),
                error=str(e),
            )
            continue

        schema_name = yaml_file.stem
        try:
            validate_config_section(file_config, schema_name, str(yaml_file))
        except ConfigurationError as e:
            logger.error(
                "config_validation_failed",
                path=str(yaml_file),
                schema=schema_name,
                error=str(e),
            )
            raise

        merged_config = deep_merge(merged_config, file_config)
        loaded += 1

    logger.info("config_load_complete", file_count=loaded)
    return merged_config


class Settings(BaseSettings):
    """Application settings.

    Secrets are loaded from .env file.
    Non-sensitive config is loaded from config/*.yaml with fallback to defaults.
    """

    model_config = SettingsConfigDict(
        env_file=".env" if Path(".env").exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === SECRETS (from .env) ===

    slack_bot_token: SecretStr = Field(
        ..., description="Slack Bot User OAuth Token (from .env)"
    )
    slack_proxy_user: str | None = Field(
        default=None, description="HTTP proxy user name (from .env, optional)"
    )
    slack_proxy_password: SecretStr | None = Field(
        default=None, description="HTTP proxy password (from .env, optional)"
    )

    @field_validator("slack_bot_token", mode="before")
    @classmethod
    def _ensure_secret(
        cls, value: SecretStr | str | None, info: ValidationInfo
    ) -> SecretStr:
        if value is None:
            raise ValueError(f"{info.field_name} must be provided")

        if isinstance(value, SecretStr):
            secret_value = value.get_secret_value()
        else:
            secret_value = str(value)

        if not secret_value.strip():
            raise ValueError(f"{info.field_name} must not be empty")

        return value if isinstance(value, SecretStr) else SecretStr(secret_value)

    # === NON-SENSITIVE CONFIG (from config/*.yaml or defaults) ===

    slack_base_url: str = Field(
        default=DEFAULT_SLACK_BASE_URL, description="Slack Web API base URL"
    )
    slack_users_pattern: str = Field(
        default=".*",
        description="Regex of query users that receive notifications (full match)",
    )
    slack_email_template: str = Field(
        default="${USER}@example.com",
        description="Recipient email template; ${USER} is the query user",
    )
    slack_http_proxy: str | None = Field(
        default=None, description="HTTP proxy as host:port"
    )
    slack_history_page_size: int = Field(
        default=DEFAULT_HISTORY_PAGE_SIZE,
        ge=1,
        le=SLACK_HISTORY_PAGE_SIZE_MAX,
        description="Messages requested per IM history page",
    )

    notification_templates_file: str = Field(
        default=NOTIFICATION_TEMPLATES_FILE_DEFAULT,
        description="Path to notification templates YAML",
    )
    knowledge_base_file: str | None = Field(
        default=None, description="Path to failure knowledge base YAML (optional)"
    )

    # Observability
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Emit JSON logs")
    metrics_exporter_enabled: bool = Field(
        default=False, description="Start the Prometheus exporter on startup"
    )

    def __init__(self, **data: Any):
        """Initialize settings with auto-loaded configs from all YAML files."""
        config = load_all_configs()

        super().__init__(**data)
        self._apply_yaml_defaults(config)

    def _apply_yaml_defaults(self, config: dict[str, Any]) -> None:
        """Apply YAML-sourced defaults without overriding env-provided values."""

        fields_from_env = set(self.model_fields_set)

        def _assign(field_name: str, value: Any) -> None:
            if value is None:
                return
            if field_name in fields_from_env:
                return

            object.__setattr__(self, field_name, value)
            self.model_fields_set.add(field_name)

        slack_config = config.get("slack") or {}
        _assign("slack_base_url", slack_config.get("base_url"))
        _assign("slack_users_pattern", slack_config.get("users_pattern"))
        _assign("slack_email_template", slack_config.get("email_template"))
        _assign("slack_http_proxy", slack_config.get("http_proxy"))
        _assign("slack_history_page_size", slack_config.get("history_page_size"))

        notifications_config = config.get("notifications") or {}
        _assign("notification_templates_file", notifications_config.get("templates_file"))
        _assign("knowledge_base_file", notifications_config.get("knowledge_base_file"))

        logging_config = config.get("logging") or {}
        _assign("log_level", logging_config.get("level"))
        _assign("log_json", logging_config.get("json"))

        metrics_config = config.get("metrics") or {}
        _assign("metrics_exporter_enabled", metrics_config.get("exporter_enabled"))

    @property
    def proxy_password(self) -> str | None:
        if self.slack_proxy_password is None:
            return None
        return self.slack_proxy_password.get_secret_value()


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()  # type: ignore[call-arg]
    return _settings
