"""
Runtime settings.

Read from a YAML file (``$WEBBUILDER_CONFIG`` when no path is given); any key
left out keeps its default. Example::

    auto_execute_after: 5
    step_timeout: 120
    pages_dir: data/pages
    checkpoint_log: data/checkpoints.jsonl

Every field can also be set through a ``WEBBUILDER_``-prefixed environment
variable (``WEBBUILDER_STEP_TIMEOUT=30``), which wins over the file.
"""

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ENV_PREFIX = "WEBBUILDER_"
CONFIG_ENV_VAR = f"{ENV_PREFIX}CONFIG"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="forbid",
    )

    auto_execute: bool = True
    auto_execute_after: float = Field(default=5.0, ge=0)
    step_timeout: Optional[float] = Field(default=None, gt=0)
    pages_dir: Path = Path("data/pages")
    checkpoint_log: Optional[Path] = None  # None keeps checkpoints in memory
    catalog_file: Optional[Path] = None  # None uses the built-in catalog

    @classmethod
    def settings_customise_sources(cls, settings_cls, init_settings, env_settings,
                                   dotenv_settings, file_secret_settings):
        # environment first, then values from the YAML file / constructor
        return env_settings, init_settings


class _ConfigLocation(BaseSettings):
    """ Where the YAML settings file lives (``$WEBBUILDER_CONFIG``). """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, case_sensitive=False, extra="ignore")

    config: Optional[Path] = None


def load_settings(path=None) -> Settings:
    if path is None:
        path = _ConfigLocation().config

    data = {}
    if path:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Invalid settings in {path}: expected a mapping")

    try:
        settings = Settings(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid settings in {path or 'environment'}: {e}")
    if path:
        logger.info(f"Loaded settings from {path}")
    return settings
