import pytest

from unilib.domain.records import Book, parse_row
from unilib.services.related import (
    RELATED_LIMIT,
    by_weighted_score,
    genre_first,
    related_books,
    score,
)


def _book(book_id, genre="General", semester=None, department="CS"):
    return Book(id=book_id, title=book_id, author="A", genre=genre, semester=semester, department=department)


# ── Pure ranking ─────────────────────────────────


def test_genre_first_keeps_relative_order():
    ref = _book("ref", genre="AI", semester=3)
    candidates = [_book("a"), _book("b", genre="AI"), _book("c"), _book("d", genre="AI")]
    assert [b.id for b in genre_first(ref, candidates)] == ["b", "d", "a", "c"]


def test_weighted_score():
    ref = _book("ref", genre="AI", semester=3)
    assert score(ref, _book("x", genre="AI", semester=3)) == 3
    assert score(ref, _book("x", genre="Math", semester=3)) == 2
    assert score(ref, _book("x", genre="AI", semester=5)) == 1
    assert score(ref, _book("x", genre="Math", semester=None)) == 0


def test_by_weighted_score_is_stable():
    ref = _book("ref", genre="AI", semester=3)
    candidates = [
        _book("genre", genre="AI", semester=1),
        _book("none-1", genre="Math"),
        _book("both", genre="AI", semester=3),
        _book("semester", genre="Math", semester=3),
        _book("none-2", genre="Math"),
    ]
    ranked = [b.id for b in by_weighted_score(ref, candidates)]
    assert ranked == ["both", "semester", "genre", "none-1", "none-2"]


# ── Against the store ────────────────────────────


@pytest.mark.asyncio
async def test_enough_semester_siblings_are_genre_first(store, make_book):
    reference = parse_row(
        Book, await make_book(title="B1", department="CS", semester=3, genre="AI")
    )
    for i in range(5):
        await make_book(
            title=f"S{i}", department="CS", semester=3, genre="AI" if i in (1, 3) else "Systems"
        )
    await make_book(title="Elsewhere", department="Physics", semester=3, genre="AI")

    related = await related_books(store, reference)

    assert len(related) == 5
    assert reference.id not in {b.id for b in related}
    assert [b.genre for b in related[:2]] == ["AI", "AI"]
    assert all(b.genre == "Systems" for b in related[2:])
    assert all(b.department == "CS" and b.semester == 3 for b in related)


@pytest.mark.asyncio
async def test_few_semester_siblings_widen_to_department(store, make_book):
    reference = parse_row(
        Book, await make_book(title="B1", department="CS", semester=3, genre="AI")
    )
    await make_book(title="Sib1", department="CS", semester=3, genre="AI")
    await make_book(title="Sib2", department="CS", semester=3, genre="Systems")
    for i in range(10):
        await make_book(title=f"Dept{i}", department="CS", semester=5, genre="AI" if i % 2 else "Math")

    related = await related_books(store, reference)

    assert 0 < len(related) <= RELATED_LIMIT
    assert reference.id not in {b.id for b in related}
    assert all(b.department == "CS" for b in related)
    scores = [score(reference, b) for b in related]
    assert scores == sorted(scores, reverse=True)


@pytest.mark.asyncio
async def test_no_department_means_no_related_books(store, make_book):
    reference = parse_row(Book, await make_book(title="Loose", department=None, semester=2))
    await make_book(title="Other", department=None, semester=2)
    assert await related_books(store, reference) == []


@pytest.mark.asyncio
async def test_no_semester_searches_department_only(store, make_book):
    reference = parse_row(Book, await make_book(title="Ref", department="Law", semester=None, genre="Civil"))
    await make_book(title="L1", department="Law", semester=1, genre="Criminal")
    await make_book(title="L2", department="Law", semester=2, genre="Civil")

    related = await related_books(store, reference)

    assert [b.title for b in related] == ["L2", "L1"]


@pytest.mark.asyncio
async def test_related_route(client, make_book):
    ref = await make_book(title="B1", department="CS", semester=1)
    await make_book(title="B2", department="CS", semester=1)

    resp = await client.get(f"/books/{ref['id']}/related")
    assert resp.status_code == 200
    assert [b["title"] for b in resp.json()] == ["B2"]

    resp = await client.get("/books/missing/related")
    assert resp.status_code == 404
