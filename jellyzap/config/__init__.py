"""Configuration module for jellyzap."""

from jellyzap.config.loader import load_config, get_config_path
from jellyzap.config.schema import Config

__all__ = ["Config", "load_config", "get_config_path"]
