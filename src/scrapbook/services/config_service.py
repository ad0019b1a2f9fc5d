"""Configuration service - YAML-backed settings with environment overrides.

The file lives at ``~/.scrapbook/config.yaml`` unless another path is given.
Environment variables (credentials, OLLAMA_HOST, UVX_PATH) take precedence
over values in the file but are never written back to it.
"""

import logging
from pathlib import Path
from typing import Mapping, Optional, Union

import yaml

from scrapbook.app_utils.config_schema import ScrapbookConfig
from scrapbook.app_utils.paths import get_config_file

logger = logging.getLogger(__name__)


class ConfigService:
    """Service for loading and saving Scrapbook configuration."""

    def __init__(
        self,
        config_file: Optional[Union[str, Path]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """Initialize config service.

        Args:
            config_file: Path to config file. Defaults to ~/.scrapbook/config.yaml
            environ: Environment mapping used for overrides. Defaults to os.environ.
        """
        self.config_file = Path(config_file) if config_file else get_config_file()
        self.config_dir = self.config_file.parent
        self._environ = environ

    def load_file(self) -> ScrapbookConfig:
        """Load configuration from the YAML file only, without env overrides.

        Creates the default config file if it doesn't exist.
        """
        if not self.config_file.exists():
            config = ScrapbookConfig.create_default()
            self.save(config)
            return config

        try:
            with open(self.config_file, "r") as f:
                data = yaml.safe_load(f) or {}
            return ScrapbookConfig.from_dict(data)
        except (yaml.YAMLError, IOError, KeyError, TypeError) as e:
            logger.warning(f"Could not read {self.config_file}, using defaults: {e}")
            return ScrapbookConfig.create_default()

    def load(self) -> ScrapbookConfig:
        """Load configuration with environment overrides applied.

        Returns:
            ScrapbookConfig instance.
        """
        return self.load_file().apply_env(
            dict(self._environ) if self._environ is not None else None
        )

    def save(self, config: ScrapbookConfig) -> None:
        """Save configuration to YAML file.

        Args:
            config: ScrapbookConfig to save.
        """
        self.config_dir.mkdir(parents=True, exist_ok=True)

        with open(self.config_file, "w") as f:
            yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
