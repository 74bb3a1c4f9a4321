from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
import yaml
from pathlib import Path
from typing import Dict, Any

class Settings(BaseSettings):
    DATA_DIR: str = Field("./data/source-docs/people", description="Root directory of the file store")
    DB_PATH: str = Field("./source_docs.sqlite", description="Path to SQLite database")
    STORAGE_BACKEND: str = Field("file", description="Document store backend: 'file' or 'sqlite'")
    LOG_LEVEL: str = "INFO"

    # External language model (OpenAI-compatible endpoint, OpenRouter by default)
    LLM_API_KEY: str = Field("", description="API key for the chat completion endpoint")
    LLM_BASE_URL: str = Field("https://openrouter.ai/api/v1", description="OpenAI-compatible base URL")
    LLM_MODEL: str = "anthropic/claude-3-sonnet"
    LLM_TEMPERATURE: float = 0.3
    LLM_MAX_TOKENS: int = 4096

    REDACTION_RULES_PATH: str = Field("data/redaction_rules.yaml", description="Optional redaction overrides")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

@lru_cache()
def get_settings() -> Settings:
    return Settings()

def load_redaction_rules() -> Dict[str, Any]:
    path = Path(get_settings().REDACTION_RULES_PATH)
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}
