"""Request and response bodies for the HTTP API."""

from datetime import date

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from unilib.domain.records import FeedbackType, Profile, ReadingStatus, Role

# ── Auth ────────────────────────────────────────────


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SignupResponse(BaseModel):
    id: str
    email: str | None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    user_id: str


class OAuthUrlResponse(BaseModel):
    url: str


class ProfileResponse(BaseModel):
    id: str
    email: str | None
    profile: Profile | None
    role: Role | None
    is_admin: bool
    is_staff: bool
    is_user: bool


# ── Books & categories ──────────────────────────────


class BookFields(BaseModel):
    description: str | None = None
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

    @model_validator(mode="after")
    def _copies_within_total(self):
        if (
            self.total_copies is not None
            and self.available_copies is not None
            and self.available_copies > self.total_copies
        ):
            raise ValueError("available_copies must not exceed total_copies")
        return self


class BookCreateRequest(BookFields):
    title: str = Field(min_length=1)
    author: str = Field(min_length=1)
    genre: str = Field(min_length=1)


class BookUpdateRequest(BookFields):
    title: str | None = Field(default=None, min_length=1)
    author: str | None = Field(default=None, min_length=1)
    genre: str | None = Field(default=None, min_length=1)


class CategoryCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None


class CategoryUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None


# ── Personal library ────────────────────────────────


class HistoryUpdateRequest(BaseModel):
    status: ReadingStatus | None = None
    rating: int | None = Field(default=None, ge=1, le=5)
    notes: str | None = None


class FeedbackRequest(BaseModel):
    feedback_type: FeedbackType = FeedbackType.LIKE
    recommendation_id: str | None = None


class PreferencesRequest(BaseModel):
    favorite_genres: list[str] | None = None
    interests: list[str] | None = None
    preferred_length: str | None = None
    reading_pace: str | None = None


# ── Circulation & administration ────────────────────


class IssueCreateRequest(BaseModel):
    book_id: str
    user_id: str
    due_date: date
    notes: str | None = None


class RoleAssignRequest(BaseModel):
    user_id: str
    role: Role


# ── Recommendation proxy ────────────────────────────


class CurrentBookPayload(BaseModel):
    title: str
    author: str | None = None


class RecommendationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str | None = None
    current_book: CurrentBookPayload | None = Field(default=None, alias="currentBook")


class RecommendationResponse(BaseModel):
    response: str
