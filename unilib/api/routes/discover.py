"""External book-metadata search (Google Books)."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from unilib.api.deps import get_book_search
from unilib.ports.book_search import BookSearchPort, VolumeSummary

router = APIRouter(prefix="/discover", tags=["Discover"])


@router.get("/search", response_model=list[VolumeSummary])
async def search(
    q: str = Query(..., min_length=1),
    max_results: int = Query(40, ge=1, le=40),
    search: BookSearchPort = Depends(get_book_search),
) -> list[VolumeSummary]:
    return await search.search(q, max_results)


@router.get("/trending", response_model=list[VolumeSummary])
async def trending(search: BookSearchPort = Depends(get_book_search)) -> list[VolumeSummary]:
    return await search.trending()


@router.get("/categories/{category}", response_model=list[VolumeSummary])
async def by_category(
    category: str,
    max_results: int = Query(40, ge=1, le=40),
    search: BookSearchPort = Depends(get_book_search),
) -> list[VolumeSummary]:
    return await search.by_category(category, max_results)


@router.get("/volumes/{volume_id}", response_model=VolumeSummary)
async def get_volume(
    volume_id: str,
    search: BookSearchPort = Depends(get_book_search),
) -> VolumeSummary:
    volume = await search.get_volume(volume_id)
    if volume is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")
    return volume
