"""Filesystem locations for Scrapbook's user data."""

import os
from pathlib import Path

ENV_HOME = "SCRAPBOOK_HOME"
DEFAULT_DIR_NAME = ".scrapbook"


def get_user_data_dir() -> Path:
    """Directory holding config.yaml.

    ``SCRAPBOOK_HOME`` overrides the default ``~/.scrapbook``.
    """
    override = os.environ.get(ENV_HOME)
    if override:
        return Path(override).expanduser()
    return Path.home() / DEFAULT_DIR_NAME


def get_config_file() -> Path:
    return get_user_data_dir() / "config.yaml"
