"""On-disk JSON configuration file holding the API key and engine definition."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from synthtext.config.settings import Settings
from synthtext.schemas.engine import EngineDefinition, EnginePreset
from synthtext.utils.exceptions import ConfigError

logger = logging.getLogger(__name__)

APPLICATION = "synthtext"
CONFIG_FILENAME = "config.json"


class ConfigFile(BaseModel):
    """Contents of ``config.json``."""

    model_config = ConfigDict(extra="ignore")

    api_key: str = Field(..., min_length=1)
    engine_definition: EngineDefinition = EnginePreset.GPTJ_6B

    def to_json(self) -> str:
        return self.model_dump_json(indent=2) + "\n"


def default_config_dir() -> Path:
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg_config_home) if xdg_config_home else (Path.home() / ".config")
    return base / APPLICATION


def default_config_path() -> Path:
    """Location of the config file, whether or not it exists."""
    return default_config_dir() / CONFIG_FILENAME


def load_config_file(path: Optional[Path] = None) -> ConfigFile:
    location = path or default_config_path()
    try:
        contents = location.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"failed to read path '{location}'", path=str(location)) from exc

    try:
        return ConfigFile.model_validate_json(contents)
    except PydanticValidationError as exc:
        raise ConfigError(
            f"failed to parse contents of path '{location}' as a configuration file",
            path=str(location),
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc


def write_config_file(config: ConfigFile, path: Optional[Path] = None, *, overwrite: bool = False) -> Path:
    """Write ``config`` atomically; refuses to replace an existing file unless ``overwrite``."""
    location = path or default_config_path()
    if location.exists() and not overwrite:
        raise ConfigError(
            f"configuration file already exists at '{location}'; pass overwrite to replace it",
            path=str(location),
        )

    tmp_path: Optional[Path] = None
    try:
        location.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(location.parent),
            delete=False,
            prefix=".config.",
            suffix=".tmp",
        ) as f:
            f.write(config.to_json())
            tmp_path = Path(f.name)
        tmp_path.replace(location)
    except OSError as exc:
        raise ConfigError(f"failed to write configuration to '{location}'", path=str(location)) from exc
    finally:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)

    logger.info("Wrote configuration file to %s", location)
    return location


def load_settings(path: Optional[Path] = None, *, read_file: bool = True) -> Settings:
    """Build settings from the environment, overlaid with the config file.

    Values from the file take precedence over the environment. An explicit
    ``path`` must exist; the default location is optional, and when it is
    missing only the environment is used.
    """
    overrides: dict = {}
    location = path or default_config_path()
    if read_file and (path is not None or location.exists()):
        config = load_config_file(location)
        logger.debug("Loaded configuration file %s", location)
        overrides = {"api_key": config.api_key, "engine_definition": config.engine_definition}
    elif read_file:
        logger.debug("No configuration file at %s; using environment only", location)

    try:
        return Settings(**overrides)
    except PydanticValidationError as exc:
        raise ConfigError(
            "invalid settings in the environment",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc
