"""
Typed records for rows read from the backing store.

Every row that crosses the store boundary is parsed into one of these
records, so constraint violations surface once, at construction time,
instead of leaking half-shaped dicts into the services.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from unilib.errors import RecordValidationError


class Role(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"
    USER = "user"


class IssueStatus(str, Enum):
    ISSUED = "issued"
    RETURNED = "returned"
    OVERDUE = "overdue"


class ReadingStatus(str, Enum):
    WANT_TO_READ = "want_to_read"
    READING = "reading"
    COMPLETED = "completed"


class FeedbackType(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"


class Record(BaseModel):
    model_config = ConfigDict(extra="ignore", use_enum_values=False)

    table_name: ClassVar[str] = ""


class Category(Record):
    table_name: ClassVar[str] = "categories"

    id: str
    name: str
    description: str | None = None
    created_at: datetime | None = None


class Book(Record):
    table_name: ClassVar[str] = "books"

    id: str
    title: str
    author: str
    description: str | None = None
    genre: str | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    published_year: int | None = None
    cover_url: str | None = None
    department: str | None = None
    semester: int | None = Field(default=None, ge=1, le=8)
    course_code: str | None = None
    isbn: str | None = None
    pdf_url: str | None = None
    total_copies: int | None = Field(default=None, ge=0)
    available_copies: int | None = Field(default=None, ge=0)
    category_id: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="after")
    def _copies_within_total(self) -> "Book":
        if (
            self.total_copies is not None
            and self.available_copies is not None
            and self.available_copies > self.total_copies
        ):
            raise ValueError("available_copies exceeds total_copies")
        return self


class BookIssue(Record):
    table_name: ClassVar[str] = "book_issues"

    id: str
    book_id: str
    user_id: str
    issued_by: str
    issue_date: datetime | None = None
    due_date: date
    return_date: datetime | None = None
    status: IssueStatus = IssueStatus.ISSUED
    notes: str | None = None
    created_at: datetime | None = None

    @field_validator("due_date", mode="before")
    @classmethod
    def _date_part(cls, value: Any) -> Any:
        # the hosted store may hand back a full timestamp for date columns
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str) and "T" in value:
            return value.split("T", 1)[0]
        return value

    @model_validator(mode="after")
    def _due_after_issue(self) -> "BookIssue":
        if self.issue_date is not None and self.due_date < self.issue_date.date():
            raise ValueError("due_date precedes issue_date")
        return self


class Profile(Record):
    table_name: ClassVar[str] = "profiles"

    id: str
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    member_since: datetime | None = None


class UserRole(Record):
    table_name: ClassVar[str] = "user_roles"

    id: str | None = None
    user_id: str | None = None
    role: Role
    created_at: datetime | None = None


class ReadingHistory(Record):
    table_name: ClassVar[str] = "reading_history"

    id: str
    user_id: str
    book_id: str
    status: ReadingStatus = ReadingStatus.WANT_TO_READ
    rating: int | None = Field(default=None, ge=1, le=5)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    notes: str | None = None
    created_at: datetime | None = None


class Feedback(Record):
    table_name: ClassVar[str] = "feedback"

    id: str
    user_id: str
    book_id: str
    feedback_type: FeedbackType
    recommendation_id: str | None = None
    created_at: datetime | None = None


class UserPreferences(Record):
    table_name: ClassVar[str] = "user_preferences"

    id: str | None = None
    user_id: str
    favorite_genres: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    preferred_length: str | None = None
    reading_pace: str | None = None

    @field_validator("favorite_genres", "interests", mode="before")
    @classmethod
    def _null_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class Recommendation(Record):
    table_name: ClassVar[str] = "recommendations"

    id: str
    user_id: str
    book_id: str
    reason: str
    confidence_score: float | None = None


R = TypeVar("R", bound=Record)


def parse_row(record_cls: type[R], row: dict[str, Any]) -> R:
    """Build a record from a raw store row, raising RecordValidationError on bad data."""
    try:
        return record_cls.model_validate(row)
    except ValidationError as exc:
        raise RecordValidationError(record_cls.table_name, str(exc)) from exc


def parse_rows(record_cls: type[R], rows: list[dict[str, Any]]) -> list[R]:
    return [parse_row(record_cls, row) for row in rows]


# ── Joined views ─────────────────────────────────────────────────


class BookBrief(BaseModel):
    id: str
    title: str
    author: str
    genre: str | None = None
    cover_url: str | None = None

    @classmethod
    def of(cls, book: Book) -> "BookBrief":
        return cls(id=book.id, title=book.title, author=book.author, genre=book.genre, cover_url=book.cover_url)


class HistoryEntry(BaseModel):
    entry: ReadingHistory
    book: BookBrief | None = None


class IssueEntry(BaseModel):
    issue: BookIssue
    book: BookBrief | None = None
    borrower: Profile | None = None


class StaffEntry(BaseModel):
    role: UserRole
    profile: Profile | None = None


class BorrowCount(BaseModel):
    book: BookBrief | None = None
    book_id: str
    count: int
