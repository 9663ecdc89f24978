"""
Structured, reusable, versioned prompt templates for the recommendation proxy.

Design Principles:
  1. Prompts are immutable dataclass objects; no inline strings in services.
  2. Each template is versioned for traceability.
  3. Templates are adapter-agnostic: same template works with the gateway, OpenAI, etc.
  4. Context rendering (history, preferences, catalog snapshot) lives here,
     including the per-book description truncation.
"""

from dataclasses import dataclass, field

from unilib.domain.records import Book, HistoryEntry, UserPreferences


def snippet(text: str | None, max_chars: int) -> str:
    """First ``max_chars`` characters of ``text`` with an ellipsis when cut."""
    if not text:
        return ""
    text = " ".join(text.split())
    if len(text) <= max_chars:
        return text
    return text[:max_chars].rstrip() + "..."


# ── Prompt Template ──────────────────────────────────────────────

@dataclass(frozen=True)
class PromptTemplate:
    """
    Immutable prompt template with a system persona and a user turn.

    Attributes:
        name:            Unique identifier for logging and tracking.
        version:         Semantic version for prompt iteration tracking.
        system_template: System message with {variable} placeholders.
        user_template:   User message template; the raw query by default.
        tags:            Metadata tags for categorization.
    """

    name: str
    version: str
    system_template: str
    user_template: str = "{query}"
    tags: tuple[str, ...] = field(default_factory=tuple)

    def render(self, **kwargs: str) -> dict[str, str]:
        """Render template with variables, returning system + user messages."""
        return {
            "system": self.system_template.format(**kwargs),
            "user": self.user_template.format(**kwargs),
        }


# ── Similar Books Prompt ─────────────────────────────────────────

SIMILAR_BOOKS = PromptTemplate(
    name="similar_books",
    version="1.0.0",
    system_template=(
        "You are a book recommendation assistant. The user is currently reading or "
        'interested in: "{title}" by {author}.\n\n'
        "Recommend 3-5 similar books that they might enjoy. For each recommendation:\n"
        "1. Include the book title and author\n"
        "2. Explain why it's similar or complementary\n"
        "3. Mention the genre\n"
        "4. Keep it concise and engaging\n\n"
        "Format: Use clear paragraphs with book titles in quotes."
    ),
    tags=("recommendation", "similar"),
)


# ── General Recommendation Prompt ────────────────────────────────

GENERAL_RECOMMENDATION = PromptTemplate(
    name="general_recommendation",
    version="1.1.0",
    system_template=(
        "You are a book recommendation assistant for a university digital library. "
        "Provide personalized book suggestions based on the user's query.\n\n"
        "For each recommendation:\n"
        "1. Include the book title and author\n"
        "2. Brief description (2-3 sentences)\n"
        "3. Why it matches their request\n"
        "4. Genre information\n\n"
        "Be conversational and enthusiastic. Format with clear paragraphs."
        "{context_section}"
    ),
    tags=("recommendation", "general"),
)


# ── Context Rendering ────────────────────────────────────────────

def format_history(entries: list[HistoryEntry]) -> str:
    lines = []
    for item in entries:
        if item.book is None:
            continue
        line = f'- "{item.book.title}" by {item.book.author} ({item.entry.status.value.replace("_", " ")}'
        if item.entry.rating is not None:
            line += f", rated {item.entry.rating}/5"
        lines.append(line + ")")
    return "\n".join(lines)


def format_preferences(prefs: UserPreferences | None) -> str:
    if prefs is None:
        return ""
    lines = []
    if prefs.favorite_genres:
        lines.append(f"- Favorite genres: {', '.join(prefs.favorite_genres)}")
    if prefs.reading_pace:
        lines.append(f"- Reading pace: {prefs.reading_pace}")
    if prefs.interests:
        lines.append(f"- Interests: {', '.join(prefs.interests)}")
    return "\n".join(lines)


def format_catalog(books: list[Book], snippet_chars: int = 100) -> str:
    lines = []
    for book in books:
        parts = [f'"{book.title}" by {book.author}']
        if book.genre:
            parts.append(f"genre: {book.genre}")
        if book.rating is not None:
            parts.append(f"rating: {book.rating:.1f}")
        if book.published_year:
            parts.append(f"year: {book.published_year}")
        line = "- " + ", ".join(parts)
        desc = snippet(book.description, snippet_chars)
        if desc:
            line += f": {desc}"
        lines.append(line)
    return "\n".join(lines)


# ── Rendering Helpers ────────────────────────────────────────────

def render_similar_books_prompt(query: str, title: str, author: str | None) -> dict[str, str]:
    """Render the similar-books prompt for a book the user is looking at."""
    return SIMILAR_BOOKS.render(query=query, title=title, author=author or "an unknown author")


def render_general_prompt(
    query: str,
    history: list[HistoryEntry],
    preferences: UserPreferences | None,
    catalog: list[Book],
    snippet_chars: int = 100,
) -> dict[str, str]:
    """
    Render the general recommendation prompt with optional context sections.

    Args:
        query:         The user's raw question, sent verbatim as the user turn.
        history:       Recent reading-history entries joined with their books.
        preferences:   The caller's stored preferences, or None.
        catalog:       Top-rated catalog books to bias answers toward the library.
        snippet_chars: Description characters kept per catalog book.
    """
    sections = []
    history_text = format_history(history)
    if history_text:
        sections.append("The user's recent reading history:\n" + history_text)
    prefs_text = format_preferences(preferences)
    if prefs_text:
        sections.append("The user's reading preferences:\n" + prefs_text)
    catalog_text = format_catalog(catalog, snippet_chars)
    if catalog_text:
        sections.append(
            "Books available in the library catalog (prefer these when they fit "
            "the request, and say they are available in the library):\n" + catalog_text
        )

    context_section = "".join(f"\n\n{section}" for section in sections)
    return GENERAL_RECOMMENDATION.render(query=query, context_section=context_section)
