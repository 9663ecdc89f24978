"""AI recommendation proxy: prompt assembly and the single upstream call."""

import logging
from dataclasses import dataclass

from unilib.domain.records import Book, HistoryEntry, UserPreferences, parse_rows
from unilib.ports.auth import Principal
from unilib.ports.llm import LLMPort
from unilib.ports.store import Order, StorePort
from unilib.prompts.templates import (
    GENERAL_RECOMMENDATION,
    SIMILAR_BOOKS,
    render_general_prompt,
    render_similar_books_prompt,
)
from unilib.services.library import history_with_books, load_preferences

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = "I couldn't generate a recommendation at this time."


@dataclass(frozen=True)
class CurrentBook:
    title: str
    author: str | None = None


class RecommendationService:
    """Builds the system prompt, makes exactly one completion call, returns its text."""

    def __init__(
        self,
        llm: LLMPort,
        store: StorePort,
        history_limit: int = 10,
        catalog_limit: int = 50,
        snippet_chars: int = 100,
    ) -> None:
        self._llm = llm
        self._store = store
        self._history_limit = history_limit
        self._catalog_limit = catalog_limit
        self._snippet_chars = snippet_chars

    async def top_rated(self) -> list[Book]:
        rows = await self._store.select(
            "books",
            order=[Order("rating", ascending=False, nulls_last=True)],
            limit=self._catalog_limit,
        )
        return parse_rows(Book, rows)

    async def caller_context(self, principal: Principal) -> tuple[list[HistoryEntry], UserPreferences | None]:
        history = await history_with_books(self._store, principal.id, limit=self._history_limit)
        preferences = await load_preferences(self._store, principal.id)
        return history, preferences

    async def recommend(
        self,
        query: str,
        current_book: CurrentBook | None = None,
        principal: Principal | None = None,
    ) -> str:
        if current_book is not None:
            prompt = render_similar_books_prompt(query, current_book.title, current_book.author)
            logger.info("Prompt %s v%s for %r", SIMILAR_BOOKS.name, SIMILAR_BOOKS.version, current_book.title)
        else:
            history: list[HistoryEntry] = []
            preferences: UserPreferences | None = None
            if principal is not None:
                history, preferences = await self.caller_context(principal)
            catalog = await self.top_rated()
            prompt = render_general_prompt(
                query, history, preferences, catalog, snippet_chars=self._snippet_chars
            )
            logger.info(
                "Prompt %s v%s: %d history rows, %d catalog rows",
                GENERAL_RECOMMENDATION.name,
                GENERAL_RECOMMENDATION.version,
                len(history),
                len(catalog),
            )

        text = await self._llm.complete(prompt["system"], prompt["user"])
        return text or FALLBACK_RESPONSE
