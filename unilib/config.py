"""Application settings loaded from the environment."""

from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreBackend(str, Enum):
    SUPABASE = "supabase"
    SQL = "sql"


class LLMProvider(str, Enum):
    GATEWAY = "gateway"
    OPENAI = "openai"
    MOCK = "mock"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Backing store ──────────────────────────────
    store_backend: StoreBackend = StoreBackend.SUPABASE
    database_url: str = "sqlite+aiosqlite:///./unilib.db"
    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = ""

    # ── AI completion ──────────────────────────────
    llm_provider: LLMProvider = LLMProvider.GATEWAY
    ai_gateway_url: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    ai_gateway_api_key: str = ""
    ai_model: str = "google/gemini-2.5-flash"
    ai_request_timeout: float = 60.0
    openai_api_key: str = ""

    # ── Book metadata search ───────────────────────
    book_search_url: str = "https://www.googleapis.com/books/v1/volumes"
    book_search_api_key: str = ""

    # ── Recommendation context ─────────────────────
    history_context_limit: int = 10
    catalog_context_limit: int = 50
    catalog_snippet_chars: int = 100


settings = Settings()
