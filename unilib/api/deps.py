"""Adapter wiring: one instance of each collaborator per process."""

from functools import lru_cache

from unilib.adapters.auth.supabase import SupabaseAuthAdapter
from unilib.adapters.llm.gateway import GatewayLLMAdapter
from unilib.adapters.llm.mock import MockLLMAdapter
from unilib.adapters.llm.openai_adapter import OpenAILLMAdapter
from unilib.adapters.realtime.memory import InProcessChangeFeed
from unilib.adapters.search.google_books import GoogleBooksAdapter
from unilib.adapters.store.sql import SqlStoreAdapter
from unilib.adapters.store.supabase import SupabaseStoreAdapter
from unilib.config import LLMProvider, StoreBackend, settings
from unilib.ports.auth import AuthPort
from unilib.ports.book_search import BookSearchPort
from unilib.ports.llm import LLMPort
from unilib.ports.realtime import ChangeFeedPort
from unilib.ports.store import StorePort
from unilib.services.realtime import RealtimeHub


@lru_cache
def get_change_feed() -> ChangeFeedPort:
    return InProcessChangeFeed()


@lru_cache
def get_realtime_hub() -> RealtimeHub:
    return RealtimeHub(get_change_feed())


@lru_cache
def get_base_store() -> StorePort:
    if settings.store_backend is StoreBackend.SQL:
        from unilib.database import async_session_factory

        return SqlStoreAdapter(async_session_factory, feed=get_change_feed())
    return SupabaseStoreAdapter(
        settings.supabase_url, settings.supabase_anon_key, feed=get_change_feed()
    )


@lru_cache
def get_auth() -> AuthPort:
    return SupabaseAuthAdapter(settings.supabase_url, settings.supabase_anon_key)


@lru_cache
def get_llm() -> LLMPort:
    if settings.llm_provider is LLMProvider.OPENAI:
        return OpenAILLMAdapter(api_key=settings.openai_api_key, model=settings.ai_model)
    if settings.llm_provider is LLMProvider.MOCK:
        return MockLLMAdapter()
    return GatewayLLMAdapter(
        url=settings.ai_gateway_url,
        api_key=settings.ai_gateway_api_key,
        model=settings.ai_model,
        timeout=settings.ai_request_timeout,
    )


@lru_cache
def get_book_search() -> BookSearchPort:
    return GoogleBooksAdapter(settings.book_search_url, settings.book_search_api_key)
