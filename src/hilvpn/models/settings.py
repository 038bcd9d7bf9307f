"""Runtime settings of the privileged helper."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from hilvpn import config
from hilvpn.exceptions import ConfigError

logger = logging.getLogger("hilvpn")


class PrivopSettings(BaseModel):
    """Define the settings data structure."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Substituted verbatim into the up hook of every generated config.
    libexec_dir: Path = config.LIBEXEC_DIR
    config_dir: Path = config.OPENVPN_CONFIG_DIR
    openvpn_bin: str = config.OPENVPN_BIN
    keygen_timeout: float | None = Field(default=config.KEYGEN_TIMEOUT, gt=0)
    log_level: str = "INFO"
    log_file: Path | None = None

    @field_validator("libexec_dir", "config_dir")
    @classmethod
    def _validate_absolute(cls, v: Path) -> Path:
        if not v.is_absolute():
            err = f"'{v}' must be an absolute path"
            raise ValueError(err)
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def _coerce_log_level(cls, v: str) -> str:
        level = str(v).upper()
        if not isinstance(logging.getLevelName(level), int):
            err = f"Unknown log level '{v}'"
            raise ValueError(err)
        return level


def load_settings(path: Path = config.PRIVOP_CONFIG_PATH) -> PrivopSettings:
    """Load the settings from a YAML file, falling back to the defaults."""
    if not path.exists():
        logger.debug("Settings file %s not found. Using defaults.", path)
        return PrivopSettings()

    logger.debug("Loading settings from %s.", path)
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as err:
        msg = f"Unable to read settings from '{path}': {err}"
        raise ConfigError(msg) from err

    if data is None:
        return PrivopSettings()
    if not isinstance(data, dict):
        msg = f"Settings in '{path}' must be a mapping."
        raise ConfigError(msg)

    try:
        return PrivopSettings(**data)
    except ValidationError as err:
        msg = f"Invalid settings in '{path}': {err}"
        raise ConfigError(msg) from err
