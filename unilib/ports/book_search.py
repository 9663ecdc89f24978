"""Book-metadata search port."""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field


class VolumeSummary(BaseModel):
    """A book as described by the external metadata service."""

    id: str
    title: str
    authors: list[str] = Field(default_factory=list)
    description: str | None = None
    categories: list[str] = Field(default_factory=list)
    thumbnail: str | None = None
    published_date: str | None = None
    page_count: int | None = None
    average_rating: float | None = None
    preview_link: str | None = None
    info_link: str | None = None
    pdf_available: bool = False
    pdf_link: str | None = None
    epub_available: bool = False
    epub_link: str | None = None


class BookSearchPort(ABC):
    @abstractmethod
    async def search(self, query: str, max_results: int = 40) -> list[VolumeSummary]:
        ...

    @abstractmethod
    async def get_volume(self, volume_id: str) -> VolumeSummary | None:
        ...

    async def by_category(self, category: str, max_results: int = 40) -> list[VolumeSummary]:
        return await self.search(f"subject:{category}", max_results)

    async def trending(self) -> list[VolumeSummary]:
        return await self.search("bestseller 2024", 40)
