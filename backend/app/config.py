"""
backend/app/config.py

Purpose:
    Central settings loading for the analysis backend.

Dependencies:
    - pydantic-settings
    - pathlib
"""

from pathlib import Path

from pydantic_settings import BaseSettings

# Prefer backend/.env, fallback to project-root .env.
_BACKEND_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
_ROOT_ENV_FILE = Path(__file__).resolve().parent.parent.parent / ".env"


class Settings(BaseSettings):
    # LLM provider selection ("openrouter" or "openai")
    LLM_PROVIDER: str = "openrouter"

    # OpenRouter
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_MODEL: str = "mistralai/mistral-7b-instruct"
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    HTTP_REFERER: str = "https://betlogic.ro"
    APP_TITLE: str = "BetLogic"

    # Any OpenAI-compatible chat completion endpoint
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"

    # Upstream call policy
    LLM_MAX_ATTEMPTS: int = 3
    LLM_BASE_TIMEOUT_SECONDS: float = 22.0
    LLM_TIMEOUT_STEP_SECONDS: float = 4.0  # added per attempt after the first
    LLM_BACKOFF_SECONDS: float = 0.35  # multiplied by the attempt index
    LLM_TEMPERATURE: float = 0.5
    LLM_RETRY_TEMPERATURE: float = 0.2
    LLM_MAX_TOKENS: int = 650

    # Analysis pipeline
    ANALYSIS_PROMPT_TEMPLATE: str = "ro_match_analysis"
    ANALYSIS_CACHE_TTL_SECONDS: int = 600  # 10 minutes

    # HTTP surface
    BETLOGIC_INTERNAL_KEY: str = ""  # empty disables the bearer check
    WP_ORIGIN: str = "*"
    DEBUG_ERRORS: bool = False
    LOG_LEVEL: str = "INFO"

    # API-Football (fixtures)
    APISPORTS_KEY: str = ""
    APISPORTS_BASE_URL: str = "https://v3.football.api-sports.io"
    APISPORTS_TIMEOUT_SECONDS: float = 15.0

    model_config = {
        "env_file": (str(_BACKEND_ENV_FILE), str(_ROOT_ENV_FILE)),
        "extra": "ignore",
    }


settings = Settings()
