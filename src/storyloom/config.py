from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Provider API keys ---
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    # Point at a local OpenAI-compatible server, e.g. http://localhost:8080/v1/
    openai_base_url: str | None = None

    # --- Default provider & model tier ---
    default_provider: str = "openai"  # openai | anthropic

    default_strong_temperature: float = 0.5
    default_fast_temperature: float = 0.3
    # Narration runs a little hotter than structured generation
    narration_temperature: float = 0.6

    # --- Prompt logging ---
    log_prompts: bool = False
    log_responses: bool = False

    # --- Data paths ---
    prompts_dir: str = str(Path(__file__).resolve().parent / "prompts" / "templates")

    # --- Database ---
    database_url: str = f"sqlite+aiosqlite:///{_PROJECT_ROOT / 'storyloom.db'}"
    state_key: str = "default"

    # --- Event history ---
    history_page_size: int = 5


settings = Settings()
