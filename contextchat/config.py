"""
Configuration loading and validation for contextchat.

Handles:
- TOML config file loading
- Configuration validation
- Defaults for every section
- Default config initialization
"""

import tomllib
from datetime import timedelta
from pathlib import Path
from typing import Any

from .compat import get_config_dir
from .context import BudgetConfig, EstimatorConfig, ThresholdConfig
from .exceptions import ConfigNotFoundError, ConfigValidationError
from .session.manager import DEFAULT_SYSTEM_PROMPT, ChatConfig
from .session.store import DEFAULT_CONVERSATION_ID

__all__ = [
    "load_config",
    "load_config_or_defaults",
    "validate_config",
    "init_config",
    "get_config_path",
    "get_context_config",
    "get_chat_config",
    "get_transport_config",
    "get_storage_config",
    "get_logging_config",
    "build_estimator_config",
    "build_budget_config",
    "build_threshold_config",
    "build_chat_config",
    "MINIMAL_CONFIG",
]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def get_config_path() -> Path:
    """Get path to config.toml file."""
    return get_config_dir() / "config.toml"


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """
    Load and validate configuration from TOML file.

    Args:
        config_path: Optional custom config path. Uses default if not provided.

    Returns:
        Parsed configuration dictionary

    Raises:
        ConfigNotFoundError: If config file doesn't exist
        ConfigValidationError: If config is invalid
    """
    path = config_path or get_config_path()

    if not path.exists():
        raise ConfigNotFoundError(str(path))

    with open(path, "rb") as f:
        try:
            config = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e

    validate_config(config)
    return config


def load_config_or_defaults(config_path: Path | None = None) -> dict[str, Any]:
    """
    Load the config file, falling back to built-in defaults.

    An explicitly given path must exist; the default location may not.
    """
    if config_path is None and not get_config_path().exists():
        return {}
    return load_config(config_path)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: dict[str, Any]) -> None:
    """
    Validate configuration structure.

    Every section is optional; present values must be well-typed.

    Args:
        config: Configuration dictionary to validate

    Raises:
        ConfigValidationError: If validation fails
    """
    for section in ("context", "chat", "transport", "storage", "logging"):
        if section in config and not isinstance(config[section], dict):
            raise ConfigValidationError(
                f"'{section}' must be a table",
                field=section
            )

    if "context" in config:
        _validate_context_config(config["context"])

    if "chat" in config:
        _validate_chat_config(config["chat"])

    if "transport" in config:
        _validate_transport_config(config["transport"])

    if "logging" in config:
        _validate_logging_config(config["logging"])


def _validate_context_config(context_config: dict[str, Any]) -> None:
    """Validate context configuration section."""
    for key in ("chars_per_token", "max_context_tokens"):
        if key in context_config:
            value = context_config[key]
            if not _is_int(value) or value < 1:
                raise ConfigValidationError(
                    f"context.{key} must be a positive integer",
                    field=f"context.{key}"
                )

    for key in ("image_token_cost", "per_message_overhead"):
        if key in context_config:
            value = context_config[key]
            if not _is_int(value) or value < 0:
                raise ConfigValidationError(
                    f"context.{key} must be a non-negative integer",
                    field=f"context.{key}"
                )

    for key in ("safety_ratio", "warn_ratio"):
        if key in context_config:
            value = context_config[key]
            if not _is_number(value) or not (0 < value <= 1.0):
                raise ConfigValidationError(
                    f"context.{key} must be a number in (0, 1]",
                    field=f"context.{key}"
                )


def _validate_chat_config(chat_config: dict[str, Any]) -> None:
    """Validate chat configuration section."""
    if "system_prompt" in chat_config:
        if not isinstance(chat_config["system_prompt"], str):
            raise ConfigValidationError(
                "chat.system_prompt must be a string",
                field="chat.system_prompt"
            )

    if "max_message_length" in chat_config:
        value = chat_config["max_message_length"]
        if not _is_int(value) or value < 1:
            raise ConfigValidationError(
                "chat.max_message_length must be a positive integer",
                field="chat.max_message_length"
            )

    for key in ("image_max_age_minutes", "request_timeout"):
        if key in chat_config:
            value = chat_config[key]
            if not _is_number(value) or value <= 0:
                raise ConfigValidationError(
                    f"chat.{key} must be a positive number",
                    field=f"chat.{key}"
                )


def _validate_transport_config(transport_config: dict[str, Any]) -> None:
    """Validate transport configuration section."""
    if "max_tokens" in transport_config:
        value = transport_config["max_tokens"]
        if not _is_int(value) or value < 1:
            raise ConfigValidationError(
                "transport.max_tokens must be a positive integer",
                field="transport.max_tokens"
            )

    if "temperature" in transport_config:
        value = transport_config["temperature"]
        if not _is_number(value) or value < 0:
            raise ConfigValidationError(
                "transport.temperature must be a non-negative number",
                field="transport.temperature"
            )

    if "top_p" in transport_config:
        value = transport_config["top_p"]
        if not _is_number(value) or not (0 < value <= 1.0):
            raise ConfigValidationError(
                "transport.top_p must be a number in (0, 1]",
                field="transport.top_p"
            )


def _validate_logging_config(logging_config: dict[str, Any]) -> None:
    """Validate logging configuration section."""
    if "level" in logging_config:
        level = logging_config["level"]
        if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
            raise ConfigValidationError(
                f"logging.level must be one of {', '.join(LOG_LEVELS)}",
                field="logging.level"
            )


def get_context_config(config: dict[str, Any]) -> dict[str, Any]:
    """
    Get context configuration with defaults.

    Args:
        config: Full configuration dictionary

    Returns:
        Context configuration with defaults applied
    """
    defaults = {
        "chars_per_token": EstimatorConfig.chars_per_token,
        "image_token_cost": EstimatorConfig.image_token_cost,
        "per_message_overhead": EstimatorConfig.per_message_overhead,
        "max_context_tokens": BudgetConfig.max_context_tokens,
        "safety_ratio": BudgetConfig.safety_ratio,
        "warn_ratio": ThresholdConfig.warn,
    }
    return {**defaults, **config.get("context", {})}


def get_chat_config(config: dict[str, Any]) -> dict[str, Any]:
    """Get chat configuration with defaults."""
    defaults = {
        "system_prompt": DEFAULT_SYSTEM_PROMPT,
        "max_message_length": ChatConfig.max_message_length,
        "image_max_age_minutes": 30,
        "request_timeout": ChatConfig.request_timeout,
    }
    return {**defaults, **config.get("chat", {})}


def get_transport_config(config: dict[str, Any]) -> dict[str, Any]:
    """Get transport configuration with defaults."""
    defaults = {
        "base_url": "https://router.huggingface.co/v1",
        "api_key_env": "HF_TOKEN",
        "model": "meta-llama/Llama-3.2-11B-Vision-Instruct",
        "max_tokens": 1000,
        "temperature": 0.7,
        "top_p": 0.95,
    }
    return {**defaults, **config.get("transport", {})}


def get_storage_config(config: dict[str, Any]) -> dict[str, Any]:
    """Get storage configuration with defaults."""
    defaults = {
        "enabled": True,
        "db_path": str(get_config_dir() / "history.db"),
        "conversation_id": DEFAULT_CONVERSATION_ID,
    }
    return {**defaults, **config.get("storage", {})}


def get_logging_config(config: dict[str, Any]) -> dict[str, Any]:
    """Get logging configuration with defaults."""
    defaults = {
        "level": "WARNING",
        "file": None,
    }
    return {**defaults, **config.get("logging", {})}


def build_estimator_config(context_config: dict[str, Any]) -> EstimatorConfig:
    """Build the token estimator calibration from the [context] section."""
    return EstimatorConfig(
        chars_per_token=context_config["chars_per_token"],
        image_token_cost=context_config["image_token_cost"],
        per_message_overhead=context_config["per_message_overhead"],
    )


def build_budget_config(context_config: dict[str, Any]) -> BudgetConfig:
    """Build the token budget from the [context] section."""
    return BudgetConfig(
        max_context_tokens=context_config["max_context_tokens"],
        safety_ratio=context_config["safety_ratio"],
    )


def build_threshold_config(context_config: dict[str, Any]) -> ThresholdConfig:
    """Build usage thresholds from the [context] section."""
    return ThresholdConfig(warn=context_config["warn_ratio"])


def build_chat_config(chat_config: dict[str, Any]) -> ChatConfig:
    """Build the chat loop configuration from the [chat] section."""
    return ChatConfig(
        system_prompt=chat_config["system_prompt"],
        max_message_length=chat_config["max_message_length"],
        image_max_age=timedelta(minutes=chat_config["image_max_age_minutes"]),
        request_timeout=float(chat_config["request_timeout"]),
    )


def init_config(force: bool = False) -> Path:
    """
    Write the default configuration to the user's config directory.

    Args:
        force: If True, overwrite existing configuration

    Returns:
        Path of the config file
    """
    config_dir = get_config_dir()
    config_file = get_config_path()

    if not config_dir.exists():
        config_dir.mkdir(parents=True)
        print(f"Created {config_dir}")

    if not config_file.exists() or force:
        config_file.write_text(MINIMAL_CONFIG, encoding="utf-8")
        print(f"Created config at {config_file}")
    else:
        print(f"Config already exists: {config_file}")

    print(f"\nConfig location: {config_dir}")
    print("Edit config.toml to customize.")
    return config_file


# Minimal config for bootstrapping
MINIMAL_CONFIG = """# contextchat configuration
# Every value below is the built-in default.

[context]
# Token estimate: ceil(chars / chars_per_token) + image cost + overhead
chars_per_token = 3
image_token_cost = 650
per_message_overhead = 4
# Model context ceiling and the fraction of it actually filled
max_context_tokens = 4000
safety_ratio = 0.85
# Suggest clearing history above this share of the ceiling
warn_ratio = 0.90

[chat]
max_message_length = 900
image_max_age_minutes = 30
request_timeout = 30
# system_prompt = "You are a helpful assistant."

[transport]
base_url = "https://router.huggingface.co/v1"
api_key_env = "HF_TOKEN"
model = "meta-llama/Llama-3.2-11B-Vision-Instruct"
max_tokens = 1000
temperature = 0.7
top_p = 0.95

[storage]
enabled = true
# db_path = "~/.config/contextchat/history.db"
conversation_id = "default"

[logging]
level = "WARNING"
# file = "~/.config/contextchat/contextchat.log"
"""
