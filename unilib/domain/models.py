"""SQLAlchemy table definitions mirroring the hosted store's schema."""

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Book(Base):
    __tablename__ = "books"
    __table_args__ = (
        CheckConstraint("rating IS NULL OR (rating >= 0 AND rating <= 5)", name="ck_books_rating"),
        CheckConstraint("semester IS NULL OR (semester BETWEEN 1 AND 8)", name="ck_books_semester"),
        CheckConstraint("available_copies <= total_copies", name="ck_books_copies"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(500), nullable=False, index=True)
    author = Column(String(300), nullable=False, index=True)
    description = Column(Text, nullable=True)
    genre = Column(String(100), nullable=False)
    rating = Column(Float, nullable=True)
    published_year = Column(Integer, nullable=True)
    cover_url = Column(String(1000), nullable=True)
    department = Column(String(200), nullable=True, index=True)
    semester = Column(Integer, nullable=True)
    course_code = Column(String(50), nullable=True)
    isbn = Column(String(20), nullable=True)
    pdf_url = Column(String(1000), nullable=True)
    total_copies = Column(Integer, nullable=True, default=1)
    available_copies = Column(Integer, nullable=True, default=1)
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class BookIssue(Base):
    __tablename__ = "book_issues"
    __table_args__ = (
        CheckConstraint("status IN ('issued', 'returned', 'overdue')", name="ck_book_issues_status"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    book_id = Column(String(36), ForeignKey("books.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), nullable=False, index=True)
    issued_by = Column(String(36), nullable=False)
    issue_date = Column(DateTime, default=datetime.utcnow)
    due_date = Column(Date, nullable=False)
    return_date = Column(DateTime, nullable=True)
    status = Column(String(20), default="issued")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    full_name = Column(String(300), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    member_since = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = (CheckConstraint("role IN ('admin', 'staff', 'user')", name="ck_user_roles_role"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), nullable=False, index=True)
    role = Column(String(20), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class ReadingHistory(Base):
    __tablename__ = "reading_history"
    __table_args__ = (
        CheckConstraint("rating IS NULL OR (rating BETWEEN 1 AND 5)", name="ck_reading_history_rating"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), nullable=False, index=True)
    book_id = Column(String(36), ForeignKey("books.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), default="want_to_read")
    rating = Column(Integer, nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Recommendation(Base):
    __tablename__ = "recommendations"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), nullable=False)
    book_id = Column(String(36), ForeignKey("books.id", ondelete="CASCADE"), nullable=False)
    reason = Column(Text, nullable=False)
    confidence_score = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), nullable=False)
    book_id = Column(String(36), ForeignKey("books.id", ondelete="CASCADE"), nullable=False)
    feedback_type = Column(String(20), nullable=False)
    recommendation_id = Column(String(36), ForeignKey("recommendations.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class UserPreferences(Base):
    __tablename__ = "user_preferences"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), unique=True, nullable=False)
    favorite_genres = Column(JSON, default=list)
    interests = Column(JSON, default=list)
    preferred_length = Column(String(50), nullable=True)
    reading_pace = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
