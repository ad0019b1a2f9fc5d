"""Configuration schema and default values for Scrapbook."""

import os
from dataclasses import asdict, dataclass, fields
from typing import Dict, Optional

from scrapbook.core.constants import (
    DEFAULT_EMBEDDING_MODEL,
    DEFAULT_MODEL,
    DEFAULT_OLLAMA_BASE_URL,
    MARKITDOWN_TIMEOUT,
    MAX_LINK_CONTENT_CHARS,
    MAX_UPLOAD_BYTES,
    SOCIAL_FETCH_TIMEOUT,
)


@dataclass
class OllamaConfig:
    """Ollama service configuration."""

    base_url: str = DEFAULT_OLLAMA_BASE_URL
    timeout: int = 300


@dataclass
class LLMConfig:
    """LLM generation defaults."""

    default_model: str = DEFAULT_MODEL
    default_temperature: float = 0.3
    default_context_window: int = 8192


@dataclass
class EmbeddingConfig:
    """HuggingFace embedding model settings."""

    model: str = DEFAULT_EMBEDDING_MODEL
    device: str = "cpu"
    batch_size: int = 16


@dataclass
class ExtractionConfig:
    """Limits applied while extracting content."""

    max_upload_bytes: int = MAX_UPLOAD_BYTES
    max_link_content_chars: int = MAX_LINK_CONTENT_CHARS
    request_deadline_seconds: float = 120.0


@dataclass
class TwitterConfig:
    """Credentials for the ``bird`` CLI. Either auth_token + ct0 or an API key."""

    auth_token: Optional[str] = None
    ct0: Optional[str] = None
    sweetistics_api_key: Optional[str] = None
    bird_path: str = "bird"
    timeout: int = SOCIAL_FETCH_TIMEOUT


@dataclass
class RedditConfig:
    """Reddit script-app credentials."""

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    user_agent: str = "Scrapbook/1.0"
    timeout: int = SOCIAL_FETCH_TIMEOUT


@dataclass
class MarkitdownConfig:
    """External markitdown converter settings."""

    uvx_path: Optional[str] = None
    timeout: int = MARKITDOWN_TIMEOUT


# Environment variable -> (section, attribute). Environment wins over the file.
ENV_OVERRIDES: Dict[str, tuple] = {
    "OLLAMA_HOST": ("ollama", "base_url"),
    "TWITTER_AUTH_TOKEN": ("twitter", "auth_token"),
    "TWITTER_CT0": ("twitter", "ct0"),
    "SWEETISTICS_API_KEY": ("twitter", "sweetistics_api_key"),
    "REDDIT_CLIENT_ID": ("reddit", "client_id"),
    "REDDIT_CLIENT_SECRET": ("reddit", "client_secret"),
    "REDDIT_USERNAME": ("reddit", "username"),
    "REDDIT_PASSWORD": ("reddit", "password"),
    "UVX_PATH": ("markitdown", "uvx_path"),
}


@dataclass
class ScrapbookConfig:
    """Main configuration for Scrapbook."""

    ollama: OllamaConfig
    llm: LLMConfig
    embedding: EmbeddingConfig
    extraction: ExtractionConfig
    twitter: TwitterConfig
    reddit: RedditConfig
    markitdown: MarkitdownConfig

    def to_dict(self) -> dict:
        """Convert config to dictionary for YAML serialization."""
        return {
            "ollama": asdict(self.ollama),
            "llm": asdict(self.llm),
            "embedding": asdict(self.embedding),
            "extraction": asdict(self.extraction),
            "twitter": asdict(self.twitter),
            "reddit": asdict(self.reddit),
            "markitdown": asdict(self.markitdown),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ScrapbookConfig":
        """Create config from dictionary (loaded from YAML)."""

        def _filter(cls_, data_):
            """Filter dict to only include known dataclass fields."""
            known = {f.name for f in fields(cls_)}
            return {k: v for k, v in (data_ or {}).items() if k in known}

        return cls(
            ollama=OllamaConfig(**_filter(OllamaConfig, data.get("ollama"))),
            llm=LLMConfig(**_filter(LLMConfig, data.get("llm"))),
            embedding=EmbeddingConfig(**_filter(EmbeddingConfig, data.get("embedding"))),
            extraction=ExtractionConfig(
                **_filter(ExtractionConfig, data.get("extraction"))
            ),
            twitter=TwitterConfig(**_filter(TwitterConfig, data.get("twitter"))),
            reddit=RedditConfig(**_filter(RedditConfig, data.get("reddit"))),
            markitdown=MarkitdownConfig(
                **_filter(MarkitdownConfig, data.get("markitdown"))
            ),
        )

    @classmethod
    def create_default(cls) -> "ScrapbookConfig":
        """Create default configuration."""
        return cls.from_dict({})

    def apply_env(self, environ: Optional[Dict[str, str]] = None) -> "ScrapbookConfig":
        """Overlay non-empty environment variables onto this config in place."""
        environ = os.environ if environ is None else environ
        for var, (section, attr) in ENV_OVERRIDES.items():
            value = environ.get(var)
            if value:
                setattr(getattr(self, section), attr, value)
        return self
