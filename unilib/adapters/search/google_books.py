"""Google Books volumes API adapter."""

import logging
from typing import Any

import httpx

from unilib.errors import BookSearchError
from unilib.ports.book_search import BookSearchPort, VolumeSummary

logger = logging.getLogger(__name__)


def _https(link: str | None) -> str | None:
    return link.replace("http:", "https:", 1) if link else link


def to_summary(item: dict[str, Any]) -> VolumeSummary:
    """Flatten a volumes API item into a VolumeSummary."""
    info = item.get("volumeInfo") or {}
    access = item.get("accessInfo") or {}
    images = info.get("imageLinks") or {}
    pdf = access.get("pdf") or {}
    epub = access.get("epub") or {}
    return VolumeSummary(
        id=item["id"],
        title=info.get("title", "Untitled"),
        authors=info.get("authors") or [],
        description=info.get("description"),
        categories=info.get("categories") or [],
        thumbnail=_https(images.get("thumbnail") or images.get("smallThumbnail")),
        published_date=info.get("publishedDate"),
        page_count=info.get("pageCount"),
        average_rating=info.get("averageRating"),
        preview_link=info.get("previewLink"),
        info_link=info.get("infoLink"),
        pdf_available=bool(pdf.get("isAvailable")),
        pdf_link=pdf.get("downloadLink"),
        epub_available=bool(epub.get("isAvailable")),
        epub_link=epub.get("downloadLink"),
    )


class GoogleBooksAdapter(BookSearchPort):
    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._transport = transport

    async def _get(self, path: str, params: dict[str, Any]) -> httpx.Response:
        if self._api_key:
            params["key"] = self._api_key
        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                return await client.get(f"{self._base_url}{path}", params=params)
            except httpx.HTTPError as exc:
                logger.error("Book search request failed: %s", exc)
                raise BookSearchError(f"Book search unavailable: {exc}") from exc

    async def search(self, query: str, max_results: int = 40) -> list[VolumeSummary]:
        resp = await self._get(
            "", {"q": query, "maxResults": max_results, "orderBy": "relevance"}
        )
        if resp.is_error:
            logger.error("Book search error: %d %s", resp.status_code, resp.text)
            raise BookSearchError("Failed to search books")
        items = resp.json().get("items") or []
        logger.info("Book search %r: %d results", query, len(items))
        return [to_summary(item) for item in items]

    async def get_volume(self, volume_id: str) -> VolumeSummary | None:
        resp = await self._get(f"/{volume_id}", {})
        if resp.status_code == 404:
            return None
        if resp.is_error:
            logger.error("Book lookup error: %d %s", resp.status_code, resp.text)
            raise BookSearchError("Failed to fetch book details")
        return to_summary(resp.json())
