"""Configuration loading utilities."""

import json
import os
import re
from pathlib import Path
from typing import Any, Callable

from loguru import logger
from pydantic import ValidationError

from jellyzap.config.schema import Config


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".jellyzap" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file, environment and .env.

    Values in the config file win over JELLYZAP_* variables. The plain PORT and
    WHATSAPP_GROUP_ID variables are honoured when nothing else sets those keys.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()
    data: dict[str, Any] = {}

    if path.exists():
        try:
            with open(path) as f:
                data = convert_keys(json.load(f))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Failed to load config from {path}: {e}. Using defaults.")
            data = {}

    try:
        config = Config(**data)
    except ValidationError as e:
        logger.warning(f"Invalid config in {path}: {e}. Using defaults.")
        config = Config()

    _apply_legacy_env(config)
    return config


def save_config(config: Config, config_path: Path | None = None) -> None:
    """
    Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Optional path to save to. Uses default if not provided.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = convert_to_camel(config.model_dump())

    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def _apply_legacy_env(config: Config) -> None:
    """Fill port and group id from PORT / WHATSAPP_GROUP_ID when still at their defaults."""
    wa = config.channels.whatsapp
    group_id = os.environ.get("WHATSAPP_GROUP_ID", "").strip()
    if group_id and not wa.group_id:
        wa.group_id = group_id

    port = os.environ.get("PORT", "").strip()
    if port and "port" not in config.gateway.model_fields_set:
        try:
            config.gateway.port = int(port)
        except ValueError:
            logger.warning(f"Ignoring invalid PORT={port!r}")


def convert_keys(data: Any) -> Any:
    """camelCase keys (config file) -> snake_case keys (Config fields)."""
    return _rekey(data, camel_to_snake)


def convert_to_camel(data: Any) -> Any:
    """snake_case keys -> camelCase keys, for writing the config file."""
    return _rekey(data, snake_to_camel)


def _rekey(data: Any, rename: Callable[[str], str]) -> Any:
    if isinstance(data, dict):
        return {rename(k): _rekey(v, rename) for k, v in data.items()}
    if isinstance(data, list):
        return [_rekey(item, rename) for item in data]
    return data


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def camel_to_snake(name: str) -> str:
    """groupId -> group_id; already-snake names pass through unchanged."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def snake_to_camel(name: str) -> str:
    """json_logs -> jsonLogs."""
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)
