"""Unit tests for the configuration schema and ConfigService."""

import logging
from pathlib import Path

import pytest
import yaml

from scrapbook.app_utils.config_schema import ScrapbookConfig
from scrapbook.app_utils.logging_config import configure_logging
from scrapbook.app_utils.paths import get_config_file, get_user_data_dir
from scrapbook.core.constants import DEFAULT_OLLAMA_BASE_URL
from scrapbook.services.config_service import ConfigService


@pytest.fixture
def temp_config_file(tmp_path: Path) -> Path:
    """Create a temporary config file path."""
    return tmp_path / "config.yaml"


@pytest.fixture
def config_service(temp_config_file: Path) -> ConfigService:
    """Create a ConfigService with a temp file and an empty environment."""
    return ConfigService(temp_config_file, environ={})


class TestConfigSchema:
    """Tests for ScrapbookConfig."""

    def test_defaults(self):
        config = ScrapbookConfig.create_default()
        assert config.ollama.base_url == DEFAULT_OLLAMA_BASE_URL
        assert config.twitter.auth_token is None
        assert config.reddit.user_agent == "Scrapbook/1.0"
        assert config.extraction.max_upload_bytes == 25 * 1024 * 1024

    def test_from_dict_ignores_unknown_keys(self):
        config = ScrapbookConfig.from_dict(
            {"ollama": {"base_url": "http://gpu:11434", "bogus": 1}, "unknown_section": {}}
        )
        assert config.ollama.base_url == "http://gpu:11434"

    def test_round_trip_through_dict(self):
        config = ScrapbookConfig.create_default()
        config.llm.default_model = "qwen2.5:14b"
        assert ScrapbookConfig.from_dict(config.to_dict()) == config

    def test_apply_env(self):
        config = ScrapbookConfig.create_default().apply_env(
            {
                "OLLAMA_HOST": "http://remote:11434",
                "TWITTER_AUTH_TOKEN": "tok",
                "REDDIT_CLIENT_ID": "",
                "UVX_PATH": "/opt/uvx",
            }
        )
        assert config.ollama.base_url == "http://remote:11434"
        assert config.twitter.auth_token == "tok"
        assert config.reddit.client_id is None
        assert config.markitdown.uvx_path == "/opt/uvx"


class TestConfigServiceLoad:
    """Tests for ConfigService.load()."""

    def test_load_creates_default_when_missing(
        self, config_service: ConfigService, temp_config_file: Path
    ):
        """Load creates default config when file doesn't exist."""
        config = config_service.load()
        assert config.ollama.base_url == DEFAULT_OLLAMA_BASE_URL
        assert temp_config_file.exists()

    def test_load_existing_config(self, config_service: ConfigService, temp_config_file: Path):
        """Load reads existing config correctly."""
        temp_config_file.write_text(
            yaml.safe_dump(
                {
                    "ollama": {"base_url": "http://custom:11434", "timeout": 600},
                    "extraction": {"max_upload_bytes": 1024},
                    "reddit": {"client_id": "abc"},
                }
            )
        )
        config = config_service.load()
        assert config.ollama.timeout == 600
        assert config.extraction.max_upload_bytes == 1024
        assert config.reddit.client_id == "abc"
        assert config.llm.default_temperature == 0.3

    def test_env_overrides_file(self, temp_config_file: Path):
        """Environment values win over the file but are not written back."""
        temp_config_file.write_text(yaml.safe_dump({"twitter": {"ct0": "from-file"}}))
        service = ConfigService(temp_config_file, environ={"TWITTER_CT0": "from-env"})

        assert service.load().twitter.ct0 == "from-env"
        assert service.load_file().twitter.ct0 == "from-file"

    def test_invalid_yaml_falls_back_to_defaults(
        self, config_service: ConfigService, temp_config_file: Path
    ):
        temp_config_file.write_text("ollama: [unclosed")
        config = config_service.load()
        assert config.ollama.base_url == DEFAULT_OLLAMA_BASE_URL


class TestConfigServiceSave:
    """Tests for ConfigService.save()."""

    def test_save_writes_yaml(self, config_service: ConfigService, temp_config_file: Path):
        config = ScrapbookConfig.create_default()
        config.markitdown.timeout = 90
        config_service.save(config)
        data = yaml.safe_load(temp_config_file.read_text())
        assert data["markitdown"]["timeout"] == 90

    def test_default_file_does_not_contain_env_credentials(self, temp_config_file: Path):
        service = ConfigService(temp_config_file, environ={"REDDIT_PASSWORD": "hunter2-from-env"})

        assert service.load().reddit.password == "hunter2-from-env"
        assert temp_config_file.exists()
        assert "hunter2-from-env" not in temp_config_file.read_text()


class TestAppUtils:
    """Tests for paths and logging setup."""

    def test_paths(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SCRAPBOOK_HOME", str(tmp_path / "data"))
        assert get_user_data_dir() == tmp_path / "data"
        assert get_config_file() == tmp_path / "data" / "config.yaml"

        monkeypatch.delenv("SCRAPBOOK_HOME")
        assert get_user_data_dir() == Path.home() / ".scrapbook"

    def test_configure_logging_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert configure_logging() == logging.DEBUG
        assert configure_logging("warning") == logging.WARNING
        assert configure_logging("nonsense") == logging.INFO
        assert logging.getLogger("httpx").level >= logging.WARNING
