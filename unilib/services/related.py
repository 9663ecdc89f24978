"""Related-books heuristic for the "more like this" panels."""

import logging

from unilib.domain.records import Book, parse_rows
from unilib.ports.store import StorePort, eq, neq

logger = logging.getLogger(__name__)

RELATED_LIMIT = 8
NARROW_MIN_MATCHES = 4
SEMESTER_WEIGHT = 2
GENRE_WEIGHT = 1


def _genre_match(reference: Book, candidate: Book) -> bool:
    return reference.genre is not None and candidate.genre == reference.genre


def _semester_match(reference: Book, candidate: Book) -> bool:
    return reference.semester is not None and candidate.semester == reference.semester


def genre_first(reference: Book, candidates: list[Book]) -> list[Book]:
    """Genre-matching candidates before the rest, original order kept otherwise."""
    return sorted(candidates, key=lambda c: 0 if _genre_match(reference, c) else 1)


def score(reference: Book, candidate: Book) -> int:
    return (
        SEMESTER_WEIGHT * _semester_match(reference, candidate)
        + GENRE_WEIGHT * _genre_match(reference, candidate)
    )


def by_weighted_score(reference: Book, candidates: list[Book]) -> list[Book]:
    """Highest (2 x same semester + 1 x same genre) first, stable for ties."""
    return sorted(candidates, key=lambda c: -score(reference, c))


async def related_books(store: StorePort, reference: Book) -> list[Book]:
    """
    Rank up to eight catalog siblings of ``reference``, most relevant first.

    Same department and semester is tried first. When that yields fewer than
    four books, the search widens to the whole department and ranks by the
    weighted score. Books without a department have no siblings.
    """
    if not reference.department:
        return []

    if reference.semester is not None:
        rows = await store.select(
            "books",
            [
                eq("department", reference.department),
                eq("semester", reference.semester),
                neq("id", reference.id),
            ],
            limit=RELATED_LIMIT,
        )
        narrow = parse_rows(Book, rows)
        if len(narrow) >= NARROW_MIN_MATCHES:
            return genre_first(reference, narrow)
        logger.debug(
            "Only %d semester siblings for %s; widening to department", len(narrow), reference.id
        )

    rows = await store.select(
        "books",
        [eq("department", reference.department), neq("id", reference.id)],
        limit=RELATED_LIMIT,
    )
    return by_weighted_score(reference, parse_rows(Book, rows))
