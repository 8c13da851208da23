"""Configuration: environment settings and the on-disk config file."""

from synthtext.config.files import (
    ConfigFile,
    default_config_dir,
    default_config_path,
    load_config_file,
    load_settings,
    write_config_file,
)
from synthtext.config.settings import Settings, get_settings

__all__ = [
    "ConfigFile",
    "Settings",
    "default_config_dir",
    "default_config_path",
    "get_settings",
    "load_config_file",
    "load_settings",
    "write_config_file",
]
