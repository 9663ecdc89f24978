"""Initial schema.

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

import sqlalchemy as sa

from alembic import op

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Categories
    op.create_table(
        "categories",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        *_timestamps(),
    )

    # Books
    op.create_table(
        "books",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(500), nullable=False, index=True),
        sa.Column("author", sa.String(300), nullable=False, index=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("genre", sa.String(100), nullable=False),
        sa.Column("rating", sa.Float, nullable=True),
        sa.Column("published_year", sa.Integer, nullable=True),
        sa.Column("cover_url", sa.String(1000), nullable=True),
        sa.Column("department", sa.String(200), nullable=True, index=True),
        sa.Column("semester", sa.Integer, nullable=True),
        sa.Column("course_code", sa.String(50), nullable=True),
        sa.Column("isbn", sa.String(20), nullable=True),
        sa.Column("pdf_url", sa.String(1000), nullable=True),
        sa.Column("total_copies", sa.Integer, server_default="1"),
        sa.Column("available_copies", sa.Integer, server_default="1"),
        sa.Column(
            "category_id",
            sa.String(36),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_by", sa.String(36), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("rating IS NULL OR (rating >= 0 AND rating <= 5)", name="ck_books_rating"),
        sa.CheckConstraint("semester IS NULL OR (semester BETWEEN 1 AND 8)", name="ck_books_semester"),
        sa.CheckConstraint("available_copies <= total_copies", name="ck_books_copies"),
    )

    # Book issues
    op.create_table(
        "book_issues",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "book_id",
            sa.String(36),
            sa.ForeignKey("books.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(36), nullable=False, index=True),
        sa.Column("issued_by", sa.String(36), nullable=False),
        sa.Column("issue_date", sa.DateTime, server_default=sa.func.now()),
        sa.Column("due_date", sa.Date, nullable=False),
        sa.Column("return_date", sa.DateTime, nullable=True),
        sa.Column("status", sa.String(20), server_default="issued"),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('issued', 'returned', 'overdue')", name="ck_book_issues_status"
        ),
    )

    # Profiles
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("full_name", sa.String(300), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("member_since", sa.DateTime, server_default=sa.func.now()),
        *_timestamps(),
    )

    # User roles
    op.create_table(
        "user_roles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False, index=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.CheckConstraint("role IN ('admin', 'staff', 'user')", name="ck_user_roles_role"),
    )

    # Reading history
    op.create_table(
        "reading_history",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False, index=True),
        sa.Column(
            "book_id",
            sa.String(36),
            sa.ForeignKey("books.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String(20), server_default="want_to_read"),
        sa.Column("rating", sa.Integer, nullable=True),
        sa.Column("started_at", sa.DateTime, nullable=True),
        sa.Column("completed_at", sa.DateTime, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
        sa.CheckConstraint("rating IS NULL OR (rating BETWEEN 1 AND 5)", name="ck_reading_history_rating"),
    )

    # Recommendations
    op.create_table(
        "recommendations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column(
            "book_id",
            sa.String(36),
            sa.ForeignKey("books.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("reason", sa.Text, nullable=False),
        sa.Column("confidence_score", sa.Float, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )

    # Feedback
    op.create_table(
        "feedback",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column(
            "book_id",
            sa.String(36),
            sa.ForeignKey("books.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("feedback_type", sa.String(20), nullable=False),
        sa.Column(
            "recommendation_id",
            sa.String(36),
            sa.ForeignKey("recommendations.id"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )

    # User preferences
    op.create_table(
        "user_preferences",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), unique=True, nullable=False),
        sa.Column("favorite_genres", sa.JSON, nullable=True),
        sa.Column("interests", sa.JSON, nullable=True),
        sa.Column("preferred_length", sa.String(50), nullable=True),
        sa.Column("reading_pace", sa.String(50), nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("user_preferences")
    op.drop_table("feedback")
    op.drop_table("recommendations")
    op.drop_table("reading_history")
    op.drop_table("user_roles")
    op.drop_table("profiles")
    op.drop_table("book_issues")
    op.drop_table("books")
    op.drop_table("categories")
