"""The signed-in user's saved books, reading history, feedback and preferences."""

from fastapi import APIRouter, Depends, Response, status

from unilib.api.middleware.auth import get_principal, get_store
from unilib.api.schemas import FeedbackRequest, HistoryUpdateRequest, PreferencesRequest
from unilib.domain.records import (
    Book,
    Feedback,
    HistoryEntry,
    IssueEntry,
    ReadingHistory,
    UserPreferences,
)
from unilib.ports.auth import Principal
from unilib.ports.store import StorePort
from unilib.services.library import LibraryService

router = APIRouter(tags=["Library"])


def get_library(
    principal: Principal = Depends(get_principal),
    store: StorePort = Depends(get_store),
) -> LibraryService:
    return LibraryService(store, principal.id)


@router.post("/books/{book_id}/save", response_model=ReadingHistory, status_code=status.HTTP_201_CREATED)
async def save_book(
    book_id: str,
    response: Response,
    library: LibraryService = Depends(get_library),
) -> ReadingHistory:
    """Add a book to the want-to-read list; 200 when it is already there."""
    entry, created = await library.save_book(book_id)
    if not created:
        response.status_code = status.HTTP_200_OK
    return entry


@router.delete("/books/{book_id}/save", status_code=status.HTTP_204_NO_CONTENT)
async def unsave_book(book_id: str, library: LibraryService = Depends(get_library)) -> None:
    await library.unsave_book(book_id)


@router.post("/books/{book_id}/feedback", response_model=Feedback, status_code=status.HTTP_201_CREATED)
async def give_feedback(
    book_id: str,
    data: FeedbackRequest,
    library: LibraryService = Depends(get_library),
) -> Feedback:
    return await library.give_feedback(book_id, data.feedback_type, data.recommendation_id)


@router.get("/me/saved", response_model=list[Book])
async def saved_books(library: LibraryService = Depends(get_library)) -> list[Book]:
    return await library.saved_books()


@router.get("/me/history", response_model=list[HistoryEntry])
async def reading_history(library: LibraryService = Depends(get_library)) -> list[HistoryEntry]:
    return await library.history()


@router.patch("/me/history/{entry_id}", response_model=ReadingHistory)
async def update_history(
    entry_id: str,
    data: HistoryUpdateRequest,
    library: LibraryService = Depends(get_library),
) -> ReadingHistory:
    return await library.update_entry(entry_id, data.status, data.rating, data.notes)


@router.get("/me/preferences", response_model=UserPreferences)
async def get_preferences(library: LibraryService = Depends(get_library)) -> UserPreferences:
    return await library.get_preferences()


@router.put("/me/preferences", response_model=UserPreferences)
async def update_preferences(
    data: PreferencesRequest,
    library: LibraryService = Depends(get_library),
) -> UserPreferences:
    return await library.update_preferences(data.model_dump(exclude_unset=True))


@router.get("/me/issues", response_model=list[IssueEntry])
async def my_issues(library: LibraryService = Depends(get_library)) -> list[IssueEntry]:
    """Books currently or previously issued to the caller."""
    return await library.my_issues()
