"""Issue/return tracking and circulation reports."""

import logging
from collections import Counter
from datetime import date, datetime, timezone

from fastapi import HTTPException, status
from pydantic import BaseModel

from unilib.domain.records import (
    Book,
    BookBrief,
    BookIssue,
    BorrowCount,
    IssueEntry,
    IssueStatus,
    Profile,
    parse_row,
    parse_rows,
)
from unilib.ports.store import Order, StorePort, eq, in_
from unilib.services.library import books_by_id

logger = logging.getLogger(__name__)

TOP_BORROWED_LIMIT = 10


class CirculationReport(BaseModel):
    issued: list[IssueEntry]
    overdue: list[IssueEntry]
    top_borrowed: list[BorrowCount]


class CirculationService:
    def __init__(self, store: StorePort) -> None:
        self._store = store

    async def _join(self, issues: list[BookIssue]) -> list[IssueEntry]:
        books = await books_by_id(self._store, [i.book_id for i in issues])
        user_ids = list(dict.fromkeys(i.user_id for i in issues))
        profiles: dict[str, Profile] = {}
        if user_ids:
            rows = await self._store.select("profiles", [in_("id", user_ids)])
            profiles = {p.id: p for p in parse_rows(Profile, rows)}
        return [
            IssueEntry(
                issue=i,
                book=BookBrief.of(books[i.book_id]) if i.book_id in books else None,
                borrower=profiles.get(i.user_id),
            )
            for i in issues
        ]

    async def _get_issue(self, issue_id: str) -> BookIssue:
        rows = await self._store.select("book_issues", [eq("id", issue_id)], limit=1)
        if not rows:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Issue not found")
        return parse_row(BookIssue, rows[0])

    async def issue_book(
        self,
        issued_by: str,
        book_id: str,
        user_id: str,
        due_date: date,
        notes: str | None = None,
    ) -> BookIssue:
        """
        Record that staff member ``issued_by`` lent ``book_id`` to ``user_id``.

        Decrementing the available copy count is left to the store.
        """
        rows = await self._store.select("books", [eq("id", book_id)], limit=1)
        if not rows:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")
        book = parse_row(Book, rows[0])
        if book.available_copies is not None and book.available_copies <= 0:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No copies available")

        issued_at = datetime.now(timezone.utc)
        if due_date < issued_at.date():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Due date must not precede the issue date",
            )

        row = await self._store.insert(
            "book_issues",
            {
                "book_id": book_id,
                "user_id": user_id,
                "issued_by": issued_by,
                "issue_date": issued_at,
                "due_date": due_date,
                "status": IssueStatus.ISSUED.value,
                "notes": notes,
            },
        )
        logger.info("Issued book %s to %s (due %s)", book_id, user_id, due_date)
        return parse_row(BookIssue, row)

    async def return_book(self, issue_id: str) -> BookIssue:
        issue = await self._get_issue(issue_id)
        if issue.status is IssueStatus.RETURNED:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Book already returned")

        now = datetime.now(timezone.utc)
        rows = await self._store.update(
            "book_issues",
            {"status": IssueStatus.RETURNED.value, "return_date": now, "updated_at": now},
            [eq("id", issue_id)],
        )
        logger.info("Returned issue %s", issue_id)
        return parse_row(BookIssue, rows[0])

    async def list_issues(self, issue_status: IssueStatus | None = None) -> list[IssueEntry]:
        filters = [eq("status", issue_status.value)] if issue_status else []
        rows = await self._store.select(
            "book_issues", filters, order=[Order("issue_date", ascending=False)]
        )
        return await self._join(parse_rows(BookIssue, rows))

    async def top_borrowed(self, limit: int = TOP_BORROWED_LIMIT) -> list[BorrowCount]:
        rows = await self._store.select("book_issues", columns=["book_id"])
        counts = Counter(r["book_id"] for r in rows).most_common(limit)
        books = await books_by_id(self._store, [book_id for book_id, _ in counts])
        return [
            BorrowCount(
                book_id=book_id,
                book=BookBrief.of(books[book_id]) if book_id in books else None,
                count=count,
            )
            for book_id, count in counts
        ]

    async def report(self) -> CirculationReport:
        overdue_rows = await self._store.select(
            "book_issues",
            [eq("status", IssueStatus.OVERDUE.value)],
            order=[Order("due_date")],
        )
        return CirculationReport(
            issued=await self.list_issues(IssueStatus.ISSUED),
            overdue=await self._join(parse_rows(BookIssue, overdue_rows)),
            top_borrowed=await self.top_borrowed(),
        )
