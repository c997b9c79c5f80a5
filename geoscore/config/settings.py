# geoscore/config/settings.py
from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import List
import logging

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    # API Configuration
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    DEBUG: bool = False
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"

    # LLM Configuration
    LLM_PROVIDER: str = "ollama"  # "ollama" or "workers_ai"
    OLLAMA_HOST: str = "http://localhost:11434"
    CLOUDFLARE_ACCOUNT_ID: str = ""
    CLOUDFLARE_API_TOKEN: str = ""
    CLOUDFLARE_API_BASE: str = "https://api.cloudflare.com/client/v4"
    LLM_MODEL: str = "llama3.1:8b"
    LLM_MAX_TOKENS: int = 1500
    LLM_TEMPERATURE: float = 0.1
    LLM_TIMEOUT: int = 30

    # Content reader (Jina)
    JINA_API_KEY: str = ""
    JINA_READER_URL: str = "https://r.jina.ai"
    JINA_SEARCH_URL: str = "https://s.jina.ai"
    CONTENT_FETCH_TIMEOUT: int = 30

    # Limits
    MAX_CONTENT_SIZE: int = 1_000_000
    MIN_COMPARE_URLS: int = 2
    MAX_COMPARE_URLS: int = 5

    # Security
    ALLOWED_ORIGINS: List[str] = ["*"]

    # Monitoring
    LOG_LEVEL: str = "INFO"

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("DEBUG", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower() in ("true", "1", "yes", "on")
        return v

    @field_validator("LLM_PROVIDER", mode="before")
    @classmethod
    def normalize_provider(cls, v):
        if isinstance(v, str):
            return v.strip().lower().replace("-", "_")
        return v

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore"  # Ignore unknown env vars
    }

settings = Settings()

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
