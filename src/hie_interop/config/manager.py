"""Configuration manager for loading and managing configuration.

This module provides the main configuration loading and management functionality,
including support for JSON configuration files, environment variable overrides,
and configuration validation.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from hie_interop.config.defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_PATH
from hie_interop.config.schema import Config, NodeConfig
from hie_interop.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Environment variable prefix for all configuration overrides
ENV_PREFIX = "HIE_INTEROP_"

# (environment suffix, config section, field, converter)
_ENV_OVERRIDES: list[tuple[str, str, str, Callable[[str], Any]]] = [
    ("BROKER_HOST", "broker", "host", str),
    ("BROKER_PORT", "broker", "port", int),
    ("BROKER_DB_PATH", "broker", "db_path", str),
    ("PORTAL_HOST", "portal", "host", str),
    ("PORTAL_PORT", "portal", "port", int),
    ("PORTAL_DB_PATH", "portal", "db_path", str),
    ("TIMEOUT_CONNECT", "transport", "timeout_connect", float),
    ("TIMEOUT_READ", "transport", "timeout_read", float),
    ("MAX_CONNECTIONS", "transport", "max_connections", int),
    ("LOG_LEVEL", "logging", "level", str),
    ("LOG_FILE", "logging", "log_file", str),
    ("REDACT_PII", "logging", "redact_pii", lambda v: _parse_bool(v)),
]


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. CLI arguments (handled by caller)
    2. Environment variables (HIE_INTEROP_* prefix)
    3. Configuration file (JSON)
    4. Default values

    Top-level sections missing from the file (``broker``, ``nodes``, ...) fall
    back to the default demo network.

    Args:
        config_path: Path to configuration file. If None, uses ./config/config.json

    Returns:
        Validated Config instance

    Raises:
        ConfigurationError: If configuration is invalid or malformed

    Example:
        >>> config = load_config(Path("custom/config.json"))
        >>> broker_port = config.broker.port
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_PATH)

    config_dict = _load_config_file(config_path)
    config_dict = _apply_env_overrides(config_dict)

    try:
        return Config(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed:\n{e}\n\n"
            f"Fix: Check your configuration file at {config_path} and ensure all "
            f"values match the expected format."
        )


def _default_config() -> dict[str, Any]:
    # Deep copy of defaults to avoid mutation
    return json.loads(json.dumps(DEFAULT_CONFIG))


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Load configuration file or return defaults.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If JSON is malformed or the file is unreadable
    """
    if not config_path.exists():
        logger.info(
            f"Config file not found: {config_path}. Using default configuration."
        )
        return _default_config()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            file_dict = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in config file: {config_path}\n"
            f"Error: {e}\n"
            f"Fix: Check JSON syntax at line {e.lineno}, column {e.colno}"
        )
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read config file: {config_path}\n"
            f"Error: {e}\n"
            f"Fix: Check file permissions and path"
        )

    if not isinstance(file_dict, dict):
        raise ConfigurationError(
            f"Config file must contain a JSON object: {config_path}"
        )

    logger.info(f"Loaded configuration from {config_path}")
    config_dict = _default_config()
    config_dict.update(file_dict)
    return config_dict


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides with HIE_INTEROP_ prefix.

    Environment variables follow the pattern: HIE_INTEROP_<SECTION>_<FIELD>
    For example: HIE_INTEROP_BROKER_PORT, HIE_INTEROP_LOG_LEVEL

    Args:
        config_dict: Configuration dictionary to update

    Returns:
        Updated configuration dictionary with environment overrides applied

    Raises:
        ConfigurationError: If a numeric override cannot be converted
    """
    for suffix, section, field, convert in _ENV_OVERRIDES:
        env_key = f"{ENV_PREFIX}{suffix}"
        raw = os.getenv(env_key)
        if not raw:
            continue
        try:
            value = convert(raw)
        except ValueError:
            raise ConfigurationError(
                f"Invalid value for {env_key}: '{raw}'. "
                f"Fix: Provide a value of the expected type."
            )
        config_dict.setdefault(section, {})[field] = value
        logger.debug(f"Override: {section}.{field} from environment")

    return config_dict


def _parse_bool(value: str) -> bool:
    """Parse boolean value from string (case-insensitive)."""
    return value.lower() in ("true", "1", "yes", "on")


def get_node_config(config: Config, name: str) -> NodeConfig:
    """Get a node's configuration by name (case-insensitive).

    Args:
        config: Configuration instance
        name: Node name, e.g. "Hospital-B" or "hospital-b"

    Returns:
        NodeConfig for the named node

    Raises:
        ConfigurationError: If no node has that name

    Example:
        >>> config = load_config()
        >>> node = get_node_config(config, "hospital-b")
        >>> node.port
        3002
    """
    for node in config.nodes:
        if node.name.lower() == name.lower():
            return node
    known = ", ".join(node.name for node in config.nodes) or "none"
    raise ConfigurationError(
        f"Unknown node: {name}. Configured nodes: {known}"
    )
