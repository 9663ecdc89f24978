import json

import httpx
import pytest

from conftest import bearer
from unilib.adapters.llm.gateway import GatewayLLMAdapter
from unilib.adapters.llm.mock import MockLLMAdapter
from unilib.api.deps import get_llm
from unilib.domain.records import Book
from unilib.main import app
from unilib.prompts.templates import format_catalog, snippet
from unilib.services.recommendation import FALLBACK_RESPONSE, CurrentBook, RecommendationService

GATEWAY_URL = "https://gateway.test/v1/chat/completions"


def _gateway(handler, api_key="test-key"):
    return GatewayLLMAdapter(
        url=GATEWAY_URL,
        api_key=api_key,
        model="google/gemini-2.5-flash",
        transport=httpx.MockTransport(handler),
    )


# ── Request validation & CORS ────────────────────


@pytest.mark.asyncio
async def test_missing_query_is_rejected(client, llm):
    resp = await client.post("/book-recommendations", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Query is required"}
    assert llm.calls == []


@pytest.mark.asyncio
async def test_blank_query_is_rejected(client):
    resp = await client.post("/book-recommendations", json={"query": "   "})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Query is required"


@pytest.mark.asyncio
async def test_non_string_query_is_rejected(client, llm):
    resp = await client.post("/book-recommendations", json={"query": 5})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Query is required"}
    assert llm.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [b"{not json", b'{"query": "\xff\xfe"}'])
async def test_malformed_body_is_a_server_error(client, content):
    resp = await client.post(
        "/book-recommendations",
        content=content,
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 500
    assert "error" in resp.json()


@pytest.mark.asyncio
async def test_preflight_returns_empty_ok(client):
    resp = await client.options("/book-recommendations")
    assert resp.status_code == 200
    assert resp.content == b""
    assert resp.headers["access-control-allow-origin"] == "*"
    assert "authorization" in resp.headers["access-control-allow-headers"]


@pytest.mark.asyncio
async def test_responses_carry_cors_headers(client):
    resp = await client.post("/book-recommendations", json={"query": "anything"})
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"


# ── Prompt selection ─────────────────────────────


@pytest.mark.asyncio
async def test_similar_books_prompt_for_current_book(client, llm):
    resp = await client.post(
        "/book-recommendations",
        json={
            "query": "Find books similar to Dune",
            "currentBook": {"title": "Dune", "author": "Frank Herbert"},
        },
    )

    assert resp.status_code == 200
    text = resp.json()["response"]
    assert text and '"' in text

    system, user = llm.calls[-1]
    assert '"Dune" by Frank Herbert' in system
    assert "Recommend 3-5 similar books" in system
    assert user == "Find books similar to Dune"


@pytest.mark.asyncio
async def test_general_prompt_includes_caller_context(client, llm, store, make_book):
    read = await make_book(title="Neuromancer", author="William Gibson", genre="Cyberpunk", rating=4.2)
    await make_book(
        title="Top Pick",
        author="Ada Author",
        genre="Fantasy",
        rating=4.9,
        description="x" * 150,
    )
    await store.insert(
        "reading_history",
        {"user_id": "u1", "book_id": read["id"], "status": "completed", "rating": 5},
    )
    await store.insert(
        "user_preferences",
        {"user_id": "u1", "favorite_genres": ["Fantasy", "Sci-Fi"], "reading_pace": "fast"},
    )

    resp = await client.post(
        "/book-recommendations", json={"query": "Something epic"}, headers=bearer("u1")
    )

    assert resp.status_code == 200
    system, user = llm.calls[-1]
    assert user == "Something epic"
    assert '"Neuromancer" by William Gibson (completed, rated 5/5)' in system
    assert "Favorite genres: Fantasy, Sci-Fi" in system
    assert "Reading pace: fast" in system
    assert '"Top Pick" by Ada Author' in system
    assert "x" * 100 + "..." in system
    assert "x" * 101 not in system


@pytest.mark.asyncio
async def test_anonymous_general_prompt_has_catalog_only(client, llm, make_book):
    await make_book(title="Catalog Book", rating=4.0)

    resp = await client.post("/book-recommendations", json={"query": "surprise me"})

    assert resp.status_code == 200
    system, _ = llm.calls[-1]
    assert "recent reading history" not in system
    assert "reading preferences" not in system
    assert '"Catalog Book"' in system


@pytest.mark.asyncio
async def test_unknown_token_is_treated_as_anonymous(client, llm):
    resp = await client.post(
        "/book-recommendations",
        json={"query": "surprise me"},
        headers={"Authorization": "Bearer garbage"},
    )
    assert resp.status_code == 200
    assert "recent reading history" not in llm.calls[-1][0]


# ── Upstream outcomes ────────────────────────────


@pytest.mark.asyncio
async def test_gateway_failure_is_reported(client):
    app.dependency_overrides[get_llm] = lambda: _gateway(lambda request: httpx.Response(503, text="overloaded"))

    resp = await client.post("/book-recommendations", json={"query": "Sci-fi please"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to get AI recommendation"}


@pytest.mark.asyncio
async def test_missing_gateway_key_is_reported(client):
    app.dependency_overrides[get_llm] = lambda: _gateway(lambda request: httpx.Response(200), api_key="")

    resp = await client.post("/book-recommendations", json={"query": "Sci-fi please"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "AI gateway API key is not configured"}


@pytest.mark.asyncio
async def test_gateway_success_round_trip(client):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": 'Try "Hyperion".'}}]})

    app.dependency_overrides[get_llm] = lambda: _gateway(handler)

    resp = await client.post(
        "/book-recommendations",
        json={"query": "More like Dune", "currentBook": {"title": "Dune", "author": "Frank Herbert"}},
    )

    assert resp.status_code == 200
    assert resp.json() == {"response": 'Try "Hyperion".'}
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["model"] == "google/gemini-2.5-flash"
    assert [m["role"] for m in seen["body"]["messages"]] == ["system", "user"]
    assert seen["body"]["messages"][1]["content"] == "More like Dune"


@pytest.mark.asyncio
async def test_empty_completion_uses_fallback(store):
    gateway = _gateway(lambda request: httpx.Response(200, json={"choices": []}))
    service = RecommendationService(gateway, store)

    text = await service.recommend("anything", CurrentBook("Dune", "Frank Herbert"))

    assert text == FALLBACK_RESPONSE


@pytest.mark.asyncio
async def test_empty_mock_reply_uses_fallback(store):
    service = RecommendationService(MockLLMAdapter(reply=""), store)
    assert await service.recommend("anything") == FALLBACK_RESPONSE


# ── Catalog snapshot ─────────────────────────────


@pytest.mark.asyncio
async def test_catalog_snapshot_is_top_rated_and_limited(store, make_book):
    await make_book(title="Unrated", rating=None)
    for rating in (3.0, 4.5, 1.0, 5.0):
        await make_book(title=f"Rated {rating}", rating=rating)

    service = RecommendationService(MockLLMAdapter(), store, catalog_limit=3)
    books = await service.top_rated()

    assert [b.title for b in books] == ["Rated 5.0", "Rated 4.5", "Rated 3.0"]


def test_snippet_truncates_with_ellipsis():
    assert snippet(None, 10) == ""
    assert snippet("short", 10) == "short"
    assert snippet("a  b\nc", 10) == "a b c"
    assert snippet("abcdefghijkl", 10) == "abcdefghij..."


def test_format_catalog_line():
    book = Book(
        id="b1",
        title="Dune",
        author="Frank Herbert",
        genre="Science Fiction",
        rating=4.5,
        published_year=1965,
        description="Desert planet.",
    )
    assert format_catalog([book]) == (
        '- "Dune" by Frank Herbert, genre: Science Fiction, rating: 4.5, year: 1965: Desert planet.'
    )
