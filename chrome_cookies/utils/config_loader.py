"""Configuration loader with environment variable substitution."""
import os
import re
from typing import Any, Dict, Optional, TypedDict

import yaml


class ConfigurationError(Exception):
    """
    Custom exception for configuration-related errors.

    Provides clear error messages about invalid configuration values
    and how to fix them.
    """
    pass


class BrowserSection(TypedDict, total=False):
    """Browser configuration section."""
    user_data_dir: Optional[str]
    executable: Optional[str]
    default_profile: str
    launch_timeout: float
    command_timeout: float
    close_timeout: float
    connect_attempts: int
    connect_retry_delay: float


class CookiesSection(TypedDict):
    """Saved cookie configuration section."""
    output_dir: str


class LoggingSection(TypedDict, total=False):
    """Logging configuration section."""
    level: str
    file: Optional[str]


class ConfigType(TypedDict):
    """Main configuration type."""
    browser: BrowserSection
    cookies: CookiesSection
    logging: LoggingSection


DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "browser": {
        "user_data_dir": None,
        "executable": None,
        "default_profile": "Default",
        "launch_timeout": 30,
        "command_timeout": 30,
        "close_timeout": 5,
        "connect_attempts": 3,
        "connect_retry_delay": 0.5,
    },
    "cookies": {
        "output_dir": "data/cookies",
    },
    "logging": {
        "level": "INFO",
        "file": None,
    },
}

_TIMEOUT_KEYS = ("launch_timeout", "command_timeout", "close_timeout")


def load_config(config_path: Optional[str] = None) -> ConfigType:
    """Load configuration with environment variable substitution.

    A missing ``config_path`` (None) yields the defaults.
    """
    config: Dict[str, Any] = {}

    if config_path is not None:
        with open(config_path, "r") as f:
            content = f.read()

        # Find all ${VAR} or ${VAR:default} patterns
        pattern = r"\$\{(\w+)(?::([^}]*))?\}"

        def replace_env_var(match):
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.environ.get(var_name, default_value)
            if value is None:
                # Keep the placeholder if no value
                return match.group(0)
            return value

        content = re.sub(pattern, replace_env_var, content)
        config = yaml.safe_load(content) or {}

        if not isinstance(config, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping at the top level")

        process_config_dict(config)

    apply_defaults(config)
    validate_browser_config(config)

    return config


def process_config_dict(config: Dict[str, Any]):
    """Process config dict recursively to resolve leftover placeholders."""
    for key, value in config.items():
        if isinstance(value, dict):
            process_config_dict(value)
        elif isinstance(value, str):
            # Unset variable without a default: treat as not configured
            if value.startswith("${") and value.endswith("}"):
                var_name = value[2:-1]
                if ":" in var_name:
                    var_name, default_value = var_name.split(":", 1)
                    config[key] = os.environ.get(var_name, default_value)
                else:
                    config[key] = os.environ.get(var_name)


def apply_defaults(config: Dict[str, Any]):
    """Fill in every missing section and key from DEFAULT_CONFIG."""
    for section, defaults in DEFAULT_CONFIG.items():
        current = config.get(section)
        if current is None:
            current = config[section] = {}
        elif not isinstance(current, dict):
            raise ConfigurationError(f"'{section}' section must be a mapping")
        for key, value in defaults.items():
            if current.get(key) in (None, ""):
                current[key] = value


def validate_browser_config(config: Dict[str, Any]):
    """Validate browser timeouts and handshake settings."""
    browser = config.get("browser", {})

    for key in _TIMEOUT_KEYS:
        try:
            value = float(browser[key])
        except (TypeError, ValueError):
            raise ConfigurationError(
                f"browser.{key} must be a number of seconds, got {browser[key]!r}"
            )
        if value <= 0:
            raise ConfigurationError(
                f"browser.{key} must be greater than 0.\n"
                "To fix this:\n"
                f"1. Set {key} to a positive number of seconds in config.yaml\n"
                "2. Or remove the key to use the default"
            )
        browser[key] = value

    try:
        attempts = int(browser["connect_attempts"])
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"browser.connect_attempts must be an integer, got {browser['connect_attempts']!r}"
        )
    if attempts < 1:
        raise ConfigurationError("browser.connect_attempts must be at least 1")
    browser["connect_attempts"] = attempts

    try:
        browser["connect_retry_delay"] = float(browser["connect_retry_delay"])
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"browser.connect_retry_delay must be a number, got {browser['connect_retry_delay']!r}"
        )
