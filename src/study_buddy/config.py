"""
study-buddy configuration

All magic numbers, model choices, storage location and behavior settings live here.
Environment variables override defaults for deployment flexibility.
"""

import os
from dataclasses import dataclass, field
from typing import Literal


@dataclass
class ModelConfig:
    """Text generation provider selection"""
    provider: Literal["cloudflare", "claude", "deepseek", "mock"] = os.getenv("STUDY_BUDDY_PROVIDER", "cloudflare")
    model: str = os.getenv("STUDY_BUDDY_MODEL", "")  # Empty = use provider default

    # Default models per provider
    PROVIDER_DEFAULTS = {
        "cloudflare": "@cf/meta/llama-3.1-8b-instruct",
        "claude": "claude-3-5-haiku-20241022",
        "deepseek": "deepseek-chat",
        "mock": "mock-model-v1",
    }

    def get_model(self) -> str:
        """Get model, falling back to provider default."""
        return self.model or self.PROVIDER_DEFAULTS.get(self.provider, "")


@dataclass
class GenerationConfig:
    """Output length and sampling per handler"""
    summary_max_tokens: int = int(os.getenv("SUMMARY_MAX_TOKENS", "500"))
    summary_temperature: float = float(os.getenv("SUMMARY_TEMPERATURE", "0.7"))
    summary_word_limit: int = 300
    quiz_max_tokens: int = int(os.getenv("QUIZ_MAX_TOKENS", "800"))
    quiz_temperature: float = float(os.getenv("QUIZ_TEMPERATURE", "0.8"))  # variety over determinism
    chat_max_tokens: int = int(os.getenv("CHAT_MAX_TOKENS", "200"))
    chat_temperature: float = float(os.getenv("CHAT_TEMPERATURE", "0.7"))
    chat_word_limit: int = 100


@dataclass
class QuizConfig:
    """Quiz shape and listing"""
    question_count: int = int(os.getenv("QUIZ_QUESTIONS", "3"))
    distractor_count: int = 3
    list_limit: int = int(os.getenv("QUIZ_LIST_LIMIT", "5"))
    default_topic: str = "general knowledge"


@dataclass
class StorageConfig:
    """Relational store settings"""
    database_url: str = os.getenv("STUDY_BUDDY_DATABASE_URL", "sqlite+aiosqlite:///study_buddy.db")
    echo: bool = os.getenv("STUDY_BUDDY_DB_ECHO", "false").lower() == "true"


@dataclass
class Config:
    """Master config, import this"""
    models: ModelConfig = field(default_factory=ModelConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    quiz: QuizConfig = field(default_factory=QuizConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    @classmethod
    def offline_mode(cls) -> "Config":
        """For development and testing: mock provider, no API keys needed"""
        cfg = cls()
        cfg.models.provider = "mock"
        cfg.models.model = ""
        return cfg


# Singleton
config = Config()
