"""
Configuration management for BranchChat API
Uses pydantic-settings for environment variable validation
"""

from pydantic_settings import BaseSettings
from pydantic import model_validator
from typing import List
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str = "sqlite:///./branchchat.db"
    DEBUG: bool = False

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_RELOAD: bool = True

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Application
    APP_NAME: str = "BranchChat"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"  # development or production

    # LLM Provider (LiteLLM format: provider/model)
    LLM_PROVIDER: str = "gemini"  # openai, anthropic, gemini, groq, ollama, etc.
    CHAT_MODEL: str = "gemini-2.5-flash"
    LLM_MODEL_STRING: str = ""  # Optional: override full model string (e.g., "openai/gpt-4o-mini")
    LLM_API_KEY: str = ""
    LLM_API_BASE: str = ""  # Optional: custom API base URL
    LLM_TIMEOUT: int = 60  # Timeout in seconds for LLM requests

    # Generation
    CHAT_TEMPERATURE: float = 0.7
    CHAT_MAX_TOKENS: int = 2000
    SYSTEM_PROMPT: str = "You are a helpful AI assistant. Be friendly, concise, and helpful."

    # Title generation (empty TITLE_MODEL = use the chat model)
    TITLE_MODEL: str = ""
    TITLE_MAX_TOKENS: int = 30

    # Chats and branches
    DEFAULT_CHAT_TITLE: str = "New Chat"
    TITLE_FALLBACK_LENGTH: int = 50  # Characters of the first message used when title generation fails
    BRANCH_ALLOCATION_MAX_ATTEMPTS: int = 5

    @model_validator(mode='after')
    def warn_missing_credentials(self):
        """
        Warn about missing LLM credentials without failing startup

        Local providers (ollama) and custom API bases can run without a key,
        so a missing key only disables generation at request time.
        """
        if not self.LLM_API_KEY and not self.LLM_API_BASE and self.LLM_PROVIDER != "ollama":
            logger.warning("LLM_API_KEY is not set - text and title generation will fail")

        if self.TITLE_FALLBACK_LENGTH < 1:
            raise ValueError("TITLE_FALLBACK_LENGTH must be positive")

        if self.BRANCH_ALLOCATION_MAX_ATTEMPTS < 1:
            raise ValueError("BRANCH_ALLOCATION_MAX_ATTEMPTS must be positive")

        return self

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
