"""
Configuration management and loading.

Handles assistant settings, the optional YAML config file and environment variables.
"""

import os
from dataclasses import dataclass, fields, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

CONFIG_ENV_VAR = "DASHAI_CONFIG"

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class AssistantConfig:
    """Fixed constants for the assistant request pipeline."""
    daily_call_limit: int = 2000
    model: str = "gpt-3.5-turbo"
    max_tokens: int = 1000
    temperature: float = 0.7
    price_per_1k_tokens: Decimal = Decimal("0.002")
    fallback_timezone: str = "UTC"
    history_limit: int = 10
    lookahead_days: int = 7
    db_path: str = ".dashai.db"
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate limits, sampling settings and the fallback timezone."""
        if self.daily_call_limit <= 0:
            raise ValueError("daily_call_limit must be > 0")
        if not self.model or not self.model.strip():
            raise ValueError("model is required and cannot be empty")
        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be > 0")
        if not 0 <= self.temperature <= 2:
            raise ValueError("temperature must be between 0 and 2")
        if self.price_per_1k_tokens < 0:
            raise ValueError("price_per_1k_tokens must be >= 0")
        if self.history_limit < 0:
            raise ValueError("history_limit must be >= 0")
        if self.lookahead_days < 0:
            raise ValueError("lookahead_days must be >= 0")
        if not self.db_path:
            raise ValueError("db_path is required and cannot be empty")
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {sorted(VALID_LOG_LEVELS)}")
        try:
            ZoneInfo(self.fallback_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"fallback_timezone is not a valid IANA zone: {self.fallback_timezone}")


_INT_KEYS = {"daily_call_limit", "max_tokens", "history_limit", "lookahead_days"}
_STR_KEYS = {"model", "fallback_timezone", "db_path", "log_level"}


def load_config(path: Optional[str] = None) -> AssistantConfig:
    """Load the assistant configuration.

    Uses ``path`` when given, otherwise the file named by ``DASHAI_CONFIG``.
    With neither set, the built-in defaults are returned.

    Raises:
        FileNotFoundError: If the named config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return AssistantConfig()
    return load_assistant_config(path)


def load_assistant_config(path: str) -> AssistantConfig:
    """Load and validate assistant configuration from YAML file.

    Every key is optional and falls back to the defaults on
    ``AssistantConfig``, but unknown keys and wrongly typed values are
    rejected so a typo can't silently lift the daily call ceiling.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated AssistantConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Assistant config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_keys = {f.name for f in fields(AssistantConfig)}
    unknown_keys = set(raw_config.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    return replace(AssistantConfig(), **_parse_values(raw_config))


def _parse_values(data: Dict[str, Any]) -> Dict[str, Any]:
    """Coerce raw YAML values into the types AssistantConfig expects.

    Raises:
        ValueError: If a value has the wrong type
    """
    values: Dict[str, Any] = {}
    for key, value in data.items():
        if key in _INT_KEYS:
            # bool is an int subclass; reject it explicitly
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"'{key}' must be an integer")
            values[key] = value
        elif key in _STR_KEYS:
            if not isinstance(value, str):
                raise ValueError(f"'{key}' must be a string")
            values[key] = value.upper() if key == "log_level" else value
        elif key == "temperature":
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError("'temperature' must be a number")
            values[key] = float(value)
        elif key == "price_per_1k_tokens":
            if isinstance(value, bool) or not isinstance(value, (int, float, str)):
                raise ValueError("'price_per_1k_tokens' must be a number")
            try:
                values[key] = Decimal(str(value))
            except InvalidOperation:
                raise ValueError("'price_per_1k_tokens' must be a number")
    return values
