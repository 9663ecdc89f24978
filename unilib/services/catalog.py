"""Catalog browsing, statistics and staff-side book/category maintenance."""

import logging
from datetime import datetime, timezone

from fastapi import HTTPException, status
from pydantic import BaseModel, ValidationError

from unilib.domain.records import Book, Category, parse_row, parse_rows
from unilib.ports.store import Order, StorePort, eq
from unilib.services.related import related_books

logger = logging.getLogger(__name__)

SEMESTER_COUNT = 8


def check_book(row: dict) -> None:
    """Reject a book row the store would hand back as invalid."""
    try:
        Book.model_validate(row)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=exc.errors()[0]["msg"]
        ) from exc


class CatalogStats(BaseModel):
    total_books: int
    total_departments: int
    average_rating: float
    total_semesters: int = SEMESTER_COUNT


class CatalogService:
    def __init__(self, store: StorePort) -> None:
        self._store = store

    # ── Books ──────────────────────────────────────

    async def list_books(
        self,
        department: str | None = None,
        semester: int | None = None,
        category_id: str | None = None,
        limit: int = 12,
    ) -> list[Book]:
        """Catalog books, highest rated first."""
        filters = []
        if department:
            filters.append(eq("department", department))
        if semester is not None:
            filters.append(eq("semester", semester))
        if category_id:
            filters.append(eq("category_id", category_id))
        rows = await self._store.select(
            "books",
            filters,
            order=[Order("rating", ascending=False, nulls_last=True)],
            limit=limit,
        )
        return parse_rows(Book, rows)

    async def get_book(self, book_id: str) -> Book:
        rows = await self._store.select("books", [eq("id", book_id)], limit=1)
        if not rows:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")
        return parse_row(Book, rows[0])

    async def related(self, book_id: str) -> list[Book]:
        return await related_books(self._store, await self.get_book(book_id))

    async def create_book(self, data: dict, created_by: str) -> Book:
        check_book({"id": "", **data, "created_by": created_by})
        row = await self._store.insert("books", {**data, "created_by": created_by})
        book = parse_row(Book, row)
        logger.info("Book created: %s (%s)", book.id, book.title)
        return book

    async def update_book(self, book_id: str, changes: dict) -> Book:
        """Apply a partial update, checked against the book it would produce."""
        current = await self.get_book(book_id)
        if not changes:
            return current
        check_book({**current.model_dump(), **changes})
        rows = await self._store.update(
            "books", {**changes, "updated_at": datetime.now(timezone.utc)}, [eq("id", book_id)]
        )
        if not rows:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")
        return parse_row(Book, rows[0])

    async def delete_book(self, book_id: str) -> None:
        rows = await self._store.delete("books", [eq("id", book_id)])
        if not rows:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")
        logger.info("Book deleted: %s", book_id)

    async def stats(self) -> CatalogStats:
        rows = await self._store.select("books", columns=["department", "rating"])
        departments = {r["department"] for r in rows if r.get("department")}
        ratings = [r["rating"] for r in rows if r.get("rating") is not None]
        return CatalogStats(
            total_books=len(rows),
            total_departments=len(departments),
            average_rating=sum(ratings) / len(ratings) if ratings else 0.0,
        )

    # ── Categories ─────────────────────────────────

    async def list_categories(self) -> list[Category]:
        rows = await self._store.select("categories", order=[Order("name")])
        return parse_rows(Category, rows)

    async def create_category(self, name: str, description: str | None = None) -> Category:
        row = await self._store.insert("categories", {"name": name, "description": description})
        return parse_row(Category, row)

    async def update_category(self, category_id: str, changes: dict) -> Category:
        rows = await self._store.update(
            "categories", {**changes, "updated_at": datetime.now(timezone.utc)}, [eq("id", category_id)]
        )
        if not rows:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
        return parse_row(Category, rows[0])

    async def delete_category(self, category_id: str) -> None:
        rows = await self._store.delete("categories", [eq("id", category_id)])
        if not rows:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
