"""Configuration settings for the HealthGuard analysis service."""

from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Inference backend
    INFERENCE_BACKEND: Literal["http", "openai"] = "http"
    INFERENCE_URL: str = "https://api.a0.dev/ai/llm"
    REQUEST_TIMEOUT: Optional[float] = None  # None = wait indefinitely

    # OpenAI backend
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: Optional[str] = None
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TEMPERATURE: float = 0.1

    # Analysis Configuration
    PLATFORM: str = "healthguard-api"
    REJECT_EMPTY_INPUT: bool = True
    REASONING_CHAR_LIMIT: int = 500
    DEGRADED_CONFIDENCE: float = 0.5
    FAILURE_CONFIDENCE: float = 0.2

    # API Configuration
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Security Configuration
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8000"  # Comma-separated list
    API_KEY: str = ""  # Optional API key for authentication
    RATE_LIMIT_REQUESTS: int = 30  # Requests per window
    RATE_LIMIT_WINDOW: int = 60  # Window in seconds
    MAX_TEXT_LENGTH: int = 10000  # Maximum input text length
    MAX_HISTORY_STORED: int = 500  # Maximum analyses kept in memory
    DEBUG_MODE: bool = False  # Set to True only in development

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()
