"""Per-user library: saved books, reading history, feedback, preferences."""

from datetime import datetime, timezone

from fastapi import HTTPException, status

from unilib.domain.records import (
    Book,
    BookBrief,
    BookIssue,
    Feedback,
    FeedbackType,
    HistoryEntry,
    IssueEntry,
    ReadingHistory,
    ReadingStatus,
    UserPreferences,
    parse_row,
    parse_rows,
)
from unilib.ports.store import Order, StorePort, eq, in_


async def books_by_id(store: StorePort, ids: list[str]) -> dict[str, Book]:
    """Fetch the given books in one query, keyed by id."""
    unique = list(dict.fromkeys(ids))
    if not unique:
        return {}
    rows = await store.select("books", [in_("id", unique)])
    return {book.id: book for book in parse_rows(Book, rows)}


async def history_with_books(
    store: StorePort, user_id: str, limit: int | None = None
) -> list[HistoryEntry]:
    """A user's reading history, newest first, joined with book title/author."""
    rows = await store.select(
        "reading_history",
        [eq("user_id", user_id)],
        order=[Order("created_at", ascending=False)],
        limit=limit,
    )
    entries = parse_rows(ReadingHistory, rows)
    books = await books_by_id(store, [e.book_id for e in entries])
    return [
        HistoryEntry(
            entry=e,
            book=BookBrief.of(books[e.book_id]) if e.book_id in books else None,
        )
        for e in entries
    ]


async def load_preferences(store: StorePort, user_id: str) -> UserPreferences | None:
    rows = await store.select("user_preferences", [eq("user_id", user_id)], limit=1)
    return parse_row(UserPreferences, rows[0]) if rows else None


class LibraryService:
    """Operations on the signed-in user's own library."""

    def __init__(self, store: StorePort, user_id: str) -> None:
        self._store = store
        self._user_id = user_id

    async def _require_book(self, book_id: str) -> Book:
        rows = await self._store.select("books", [eq("id", book_id)], limit=1)
        if not rows:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")
        return parse_row(Book, rows[0])

    async def save_book(self, book_id: str) -> tuple[ReadingHistory, bool]:
        """
        Put a book on the user's want-to-read list.

        Returns the history row and whether it was newly created. A book
        that already has a history row for this user is left as is.
        """
        await self._require_book(book_id)
        existing = await self._store.select(
            "reading_history",
            [eq("user_id", self._user_id), eq("book_id", book_id)],
            limit=1,
        )
        if existing:
            return parse_row(ReadingHistory, existing[0]), False

        row = await self._store.insert(
            "reading_history",
            {
                "user_id": self._user_id,
                "book_id": book_id,
                "status": ReadingStatus.WANT_TO_READ.value,
            },
        )
        return parse_row(ReadingHistory, row), True

    async def unsave_book(self, book_id: str) -> None:
        removed = await self._store.delete(
            "reading_history",
            [
                eq("user_id", self._user_id),
                eq("book_id", book_id),
                eq("status", ReadingStatus.WANT_TO_READ.value),
            ],
        )
        if not removed:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book is not saved")

    async def saved_books(self) -> list[Book]:
        rows = await self._store.select(
            "reading_history",
            [eq("user_id", self._user_id), eq("status", ReadingStatus.WANT_TO_READ.value)],
            order=[Order("created_at", ascending=False)],
        )
        ids = list(dict.fromkeys(r["book_id"] for r in rows))
        books = await books_by_id(self._store, ids)
        return [books[i] for i in ids if i in books]

    async def history(self) -> list[HistoryEntry]:
        return await history_with_books(self._store, self._user_id)

    async def update_entry(
        self,
        entry_id: str,
        new_status: ReadingStatus | None = None,
        rating: int | None = None,
        notes: str | None = None,
    ) -> ReadingHistory:
        """Update status, rating or notes of one of the user's history rows."""
        rows = await self._store.select(
            "reading_history", [eq("id", entry_id), eq("user_id", self._user_id)], limit=1
        )
        if not rows:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="History entry not found")
        entry = parse_row(ReadingHistory, rows[0])

        now = datetime.now(timezone.utc)
        values: dict = {"updated_at": now}
        if new_status is not None:
            values["status"] = new_status.value
            if new_status in (ReadingStatus.READING, ReadingStatus.COMPLETED) and entry.started_at is None:
                values["started_at"] = now
            if new_status is ReadingStatus.COMPLETED and entry.completed_at is None:
                values["completed_at"] = now
        if rating is not None:
            values["rating"] = rating
        if notes is not None:
            values["notes"] = notes

        updated = await self._store.update("reading_history", values, [eq("id", entry_id)])
        return parse_row(ReadingHistory, updated[0])

    async def give_feedback(
        self, book_id: str, feedback_type: FeedbackType, recommendation_id: str | None = None
    ) -> Feedback:
        await self._require_book(book_id)
        row = await self._store.insert(
            "feedback",
            {
                "user_id": self._user_id,
                "book_id": book_id,
                "feedback_type": feedback_type.value,
                "recommendation_id": recommendation_id,
            },
        )
        return parse_row(Feedback, row)

    async def get_preferences(self) -> UserPreferences:
        prefs = await load_preferences(self._store, self._user_id)
        return prefs or UserPreferences(user_id=self._user_id)

    async def update_preferences(self, changes: dict) -> UserPreferences:
        """Merge ``changes`` into the stored preferences (upsert on user_id)."""
        row = {"user_id": self._user_id, "updated_at": datetime.now(timezone.utc), **changes}
        stored = await self._store.upsert("user_preferences", row, on_conflict=("user_id",))
        return parse_row(UserPreferences, stored)

    async def my_issues(self) -> list[IssueEntry]:
        rows = await self._store.select(
            "book_issues",
            [eq("user_id", self._user_id)],
            order=[Order("issue_date", ascending=False)],
        )
        issues = parse_rows(BookIssue, rows)
        books = await books_by_id(self._store, [i.book_id for i in issues])
        return [
            IssueEntry(issue=i, book=BookBrief.of(books[i.book_id]) if i.book_id in books else None)
            for i in issues
        ]
