from datetime import date, datetime

import pytest

from unilib.domain.records import (
    Book,
    BookIssue,
    IssueStatus,
    ReadingHistory,
    UserPreferences,
    UserRole,
    parse_row,
)
from unilib.errors import RecordValidationError

BOOK = {"id": "b1", "title": "Dune", "author": "Frank Herbert", "genre": "Science Fiction"}


def test_book_accepts_store_row_with_extra_columns():
    book = parse_row(Book, {**BOOK, "rating": 4.5, "semester": 3, "search_vector": "..."})
    assert book.rating == 4.5
    assert book.semester == 3


@pytest.mark.parametrize(
    "fields",
    [
        {"rating": 5.5},
        {"rating": -1},
        {"semester": 0},
        {"semester": 9},
        {"total_copies": -1},
        {"total_copies": 2, "available_copies": 3},
    ],
)
def test_book_constraints(fields):
    with pytest.raises(RecordValidationError) as exc:
        parse_row(Book, {**BOOK, **fields})
    assert exc.value.table == "books"


def test_issue_due_date_keeps_date_part():
    issue = parse_row(
        BookIssue,
        {
            "id": "i1",
            "book_id": "b1",
            "user_id": "u1",
            "issued_by": "s1",
            "issue_date": "2025-03-01T10:00:00+00:00",
            "due_date": "2025-03-15T00:00:00+00:00",
        },
    )
    assert issue.due_date == date(2025, 3, 15)
    assert issue.status is IssueStatus.ISSUED


def test_issue_due_before_issue_is_rejected():
    with pytest.raises(RecordValidationError):
        parse_row(
            BookIssue,
            {
                "id": "i1",
                "book_id": "b1",
                "user_id": "u1",
                "issued_by": "s1",
                "issue_date": datetime(2025, 3, 10, 9, 0),
                "due_date": date(2025, 3, 9),
            },
        )


def test_unknown_role_is_rejected():
    with pytest.raises(RecordValidationError):
        parse_row(UserRole, {"user_id": "u1", "role": "superuser"})


def test_history_rating_range():
    row = {"id": "h1", "user_id": "u1", "book_id": "b1"}
    assert parse_row(ReadingHistory, {**row, "rating": 5}).rating == 5
    with pytest.raises(RecordValidationError):
        parse_row(ReadingHistory, {**row, "rating": 0})


def test_preferences_null_lists_are_empty():
    prefs = parse_row(UserPreferences, {"user_id": "u1", "favorite_genres": None, "interests": None})
    assert prefs.favorite_genres == []
    assert prefs.interests == []
