"""Configuration settings using Pydantic for validation."""

from typing import Any, Optional
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import os
import re

from ..errors import ConfigurationError


class AWSConfig(BaseModel):
    """AWS connection configuration."""
    region: Optional[str] = Field(default=None, description="AWS region (falls back to the AWS environment)")
    profile: Optional[str] = Field(default=None, description="Named AWS profile")

    # LocalStack overrides for local development
    endpoint_url: Optional[str] = Field(default=None, description="Kinesis endpoint URL, e.g. LocalStack")

    # botocore transport settings
    max_attempts: int = Field(default=3, description="botocore retry attempts per API call")
    connect_timeout: int = Field(default=10, description="Connect timeout in seconds")
    read_timeout: int = Field(default=30, description="Read timeout in seconds")


class TailConfig(BaseModel):
    """Shard polling configuration."""
    poll_interval_seconds: float = Field(default=2.0, description="Pause between GetRecords calls per shard")
    max_records_per_request: Optional[int] = Field(default=None, description="GetRecords Limit; service default if unset")
    queue_maxsize: int = Field(default=0, description="Output queue bound; 0 means unbounded")

    @field_validator('poll_interval_seconds')
    @classmethod
    def validate_poll_interval(cls, v):
        if v < 0:
            raise ValueError("Poll interval must not be negative")
        return v

    @field_validator('max_records_per_request')
    @classmethod
    def validate_max_records(cls, v):
        if v is not None and not 1 <= v <= 10000:
            raise ValueError("max_records_per_request must be between 1 and 10000")
        return v

    @field_validator('queue_maxsize')
    @classmethod
    def validate_queue_maxsize(cls, v):
        if v < 0:
            raise ValueError("queue_maxsize must not be negative")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="WARNING", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")
    output: str = Field(default="stderr", description="Log output destination: stderr or a file path")

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        if v.upper() not in ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
            raise ValueError("Level must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return v.upper()

    @field_validator('format')
    @classmethod
    def validate_format(cls, v):
        if v.lower() not in ['json', 'text']:
            raise ValueError("Format must be 'json' or 'text'")
        return v.lower()


class TailSettings(BaseSettings):
    """Main kinesis-tail settings."""

    service_name: str = Field(default="kinesis-tail", description="Service name used in log records")

    # Component configurations
    aws: AWSConfig = Field(default_factory=AWSConfig)
    tail: TailConfig = Field(default_factory=TailConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="KIN_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )


def substitute_env_vars(obj: Any) -> Any:
    """
    Recursively substitute environment variables in configuration objects.

    Supports syntax:
    - ${VAR_NAME} - Required variable (raises error if not found)
    - ${VAR_NAME:-default} - Optional variable with default value

    Raises:
        ValueError: If required environment variable is not found
    """
    if isinstance(obj, dict):
        return {key: substitute_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [substitute_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        def replace_env_var(match):
            var_expr = match.group(1)

            if ':-' in var_expr:
                var_name, default_value = var_expr.split(':-', 1)
                return os.getenv(var_name.strip(), default_value)
            else:
                var_name = var_expr.strip()
                value = os.getenv(var_name)
                if value is None:
                    raise ValueError(f"Required environment variable '{var_name}' is not set")
                return value

        return re.sub(r'\$\{([^}]+)\}', replace_env_var, obj)
    else:
        return obj


def load_settings(config_file: Optional[str] = None) -> TailSettings:
    """
    Load settings from an optional YAML file and environment variables.

    The config file supports environment variable substitution using
    ${VAR_NAME} syntax. Without a file, settings come from KIN_* environment
    variables (e.g. KIN_TAIL__POLL_INTERVAL_SECONDS) and defaults.

    Raises:
        ValueError: If required environment variables are missing
        FileNotFoundError: If config file doesn't exist
        ConfigurationError: If the file is not a YAML mapping
    """
    if config_file and os.path.exists(config_file):
        import yaml

        try:
            with open(config_file, 'r') as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e

        if not isinstance(raw_config, dict):
            raise ConfigurationError(
                f"Configuration file {config_file} must contain a mapping, "
                f"got {type(raw_config).__name__}"
            )

        config_data = substitute_env_vars(raw_config)
        return TailSettings(**config_data)

    elif config_file:
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    return TailSettings()
