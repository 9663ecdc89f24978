"""Catalog routes: browsing, stats, related books and staff-side book CRUD."""

from fastapi import APIRouter, Depends, Query, status

from unilib.api.middleware.auth import get_store, require_staff
from unilib.api.schemas import BookCreateRequest, BookUpdateRequest
from unilib.domain.records import Book
from unilib.ports.auth import Principal
from unilib.ports.store import StorePort
from unilib.services.catalog import CatalogService, CatalogStats

router = APIRouter(prefix="/books", tags=["Books"])


@router.get("", response_model=list[Book])
async def list_books(
    department: str | None = None,
    semester: int | None = Query(None, ge=1, le=8),
    category_id: str | None = None,
    limit: int = Query(12, ge=1, le=100),
    store: StorePort = Depends(get_store),
) -> list[Book]:
    """Catalog books, highest rated first."""
    return await CatalogService(store).list_books(department, semester, category_id, limit)


@router.get("/stats", response_model=CatalogStats)
async def catalog_stats(store: StorePort = Depends(get_store)) -> CatalogStats:
    return await CatalogService(store).stats()


@router.get("/{book_id}", response_model=Book)
async def get_book(book_id: str, store: StorePort = Depends(get_store)) -> Book:
    return await CatalogService(store).get_book(book_id)


@router.get("/{book_id}/related", response_model=list[Book])
async def related_books(book_id: str, store: StorePort = Depends(get_store)) -> list[Book]:
    """Up to eight books from the same department, most relevant first."""
    return await CatalogService(store).related(book_id)


@router.post("", response_model=Book, status_code=status.HTTP_201_CREATED)
async def create_book(
    data: BookCreateRequest,
    principal: Principal = Depends(require_staff),
    store: StorePort = Depends(get_store),
) -> Book:
    return await CatalogService(store).create_book(data.model_dump(), created_by=principal.id)


@router.put("/{book_id}", response_model=Book)
async def update_book(
    book_id: str,
    data: BookUpdateRequest,
    _staff: Principal = Depends(require_staff),
    store: StorePort = Depends(get_store),
) -> Book:
    return await CatalogService(store).update_book(book_id, data.model_dump(exclude_unset=True))


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_book(
    book_id: str,
    _staff: Principal = Depends(require_staff),
    store: StorePort = Depends(get_store),
) -> None:
    await CatalogService(store).delete_book(book_id)
