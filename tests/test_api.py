"""Integration tests for the UniLib API."""

from datetime import date, timedelta

import pytest
from httpx import AsyncClient

from conftest import BrokenStore, bearer
from unilib.api.deps import get_base_store
from unilib.main import app

NEW_BOOK = {
    "title": "Operating Systems",
    "author": "A. Silberschatz",
    "genre": "Systems",
    "department": "CS",
    "semester": 4,
    "total_copies": 2,
    "available_copies": 2,
}


# ── Health & auth ──────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_signup_and_login(client: AsyncClient):
    resp = await client.post(
        "/auth/signup",
        json={"email": "student@example.com", "password": "securepass123", "full_name": "Stu Dent"},
    )
    assert resp.status_code == 201
    user_id = resp.json()["id"]

    resp = await client.post("/auth/login", json={"email": "student@example.com", "password": "securepass123"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["user_id"] == user_id
    assert data["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_signup_duplicate_email(client: AsyncClient):
    payload = {"email": "dup@example.com", "password": "securepass123"}
    await client.post("/auth/signup", json=payload)
    resp = await client.post("/auth/signup", json=payload)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient):
    await client.post("/auth/signup", json={"email": "wrong@example.com", "password": "securepass123"})
    resp = await client.post("/auth/login", json={"email": "wrong@example.com", "password": "nope"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_signout(client: AsyncClient, auth):
    resp = await client.post("/auth/signout", headers=bearer("u1"))
    assert resp.status_code == 204
    assert auth.signed_out == ["token-u1"]


@pytest.mark.asyncio
async def test_oauth_url(client: AsyncClient):
    resp = await client.get("/auth/oauth/google")
    assert resp.status_code == 200
    assert "provider=google" in resp.json()["url"]


@pytest.mark.asyncio
async def test_profile_reports_effective_role(client: AsyncClient, store, grant):
    await store.insert("profiles", {"id": "u1", "full_name": "Ada Admin", "email": "ada@example.com"})
    await grant("u1", "user")
    await grant("u1", "admin")

    resp = await client.get("/auth/profile", headers=bearer("u1"))
    assert resp.status_code == 200
    data = resp.json()
    assert data["role"] == "admin"
    assert data["is_admin"] and data["is_staff"] and data["is_user"]
    assert data["profile"]["full_name"] == "Ada Admin"


@pytest.mark.asyncio
async def test_profile_requires_auth(client: AsyncClient):
    resp = await client.get("/auth/profile")
    assert resp.status_code == 401


# ── Catalog ────────────────────────────────────────


@pytest.mark.asyncio
async def test_list_books_highest_rated_first(client: AsyncClient, make_book):
    await make_book(title="Low", rating=2.0, department="CS")
    await make_book(title="High", rating=4.8, department="CS")
    await make_book(title="Other dept", rating=5.0, department="Math")

    resp = await client.get("/books", params={"department": "CS"})
    assert resp.status_code == 200
    assert [b["title"] for b in resp.json()] == ["High", "Low"]


@pytest.mark.asyncio
async def test_get_book_not_found(client: AsyncClient):
    resp = await client.get("/books/does-not-exist")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_catalog_stats(client: AsyncClient, make_book):
    await make_book(department="CS", rating=4.0)
    await make_book(department="CS", rating=2.0)
    await make_book(department="Law", rating=None)

    resp = await client.get("/books/stats")
    assert resp.status_code == 200
    assert resp.json() == {
        "total_books": 3,
        "total_departments": 2,
        "average_rating": 3.0,
        "total_semesters": 8,
    }


@pytest.mark.asyncio
async def test_book_crud_requires_staff(client: AsyncClient, grant):
    resp = await client.post("/books", json=NEW_BOOK)
    assert resp.status_code == 401

    resp = await client.post("/books", json=NEW_BOOK, headers=bearer("reader"))
    assert resp.status_code == 403

    await grant("librarian", "staff")
    resp = await client.post("/books", json=NEW_BOOK, headers=bearer("librarian"))
    assert resp.status_code == 201
    book = resp.json()
    assert book["created_by"] == "librarian"

    resp = await client.put(
        f"/books/{book['id']}", json={"rating": 4.5}, headers=bearer("librarian")
    )
    assert resp.status_code == 200
    assert resp.json()["rating"] == 4.5
    assert resp.json()["title"] == NEW_BOOK["title"]

    resp = await client.delete(f"/books/{book['id']}", headers=bearer("librarian"))
    assert resp.status_code == 204
    resp = await client.get(f"/books/{book['id']}")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_create_book_rejects_bad_copies(client: AsyncClient, grant):
    await grant("librarian", "staff")
    resp = await client.post(
        "/books",
        json={**NEW_BOOK, "total_copies": 1, "available_copies": 3},
        headers=bearer("librarian"),
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_partial_update_checks_copies_against_stored_total(
    client: AsyncClient, make_book, grant
):
    await grant("librarian", "staff")
    book = await make_book(total_copies=2, available_copies=2)

    resp = await client.put(
        f"/books/{book['id']}", json={"available_copies": 9}, headers=bearer("librarian")
    )
    assert resp.status_code == 400
    assert "available_copies exceeds total_copies" in resp.json()["detail"]

    resp = await client.get(f"/books/{book['id']}")
    assert resp.json()["available_copies"] == 2

    resp = await client.get("/books")
    assert resp.status_code == 200
    resp = await client.post("/book-recommendations", json={"query": "something on algorithms"})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_categories(client: AsyncClient, grant):
    await grant("librarian", "staff")
    for name in ("Science", "Arts"):
        resp = await client.post("/categories", json={"name": name}, headers=bearer("librarian"))
        assert resp.status_code == 201

    resp = await client.get("/categories")
    assert [c["name"] for c in resp.json()] == ["Arts", "Science"]

    resp = await client.post("/categories", json={"name": "Nope"}, headers=bearer("reader"))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_store_failure_is_bad_gateway(client: AsyncClient):
    app.dependency_overrides[get_base_store] = lambda: BrokenStore()
    resp = await client.get("/books")
    assert resp.status_code == 502
    assert "connection refused" in resp.json()["detail"]


# ── Personal library ───────────────────────────────


@pytest.mark.asyncio
async def test_saved_books_require_auth(client: AsyncClient):
    resp = await client.get("/me/saved")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_save_book_appears_exactly_once(client: AsyncClient, make_book):
    book = await make_book(title="Clean Code")

    resp = await client.post(f"/books/{book['id']}/save", headers=bearer("u1"))
    assert resp.status_code == 201
    assert resp.json()["status"] == "want_to_read"

    resp = await client.post(f"/books/{book['id']}/save", headers=bearer("u1"))
    assert resp.status_code == 200

    resp = await client.get("/me/saved", headers=bearer("u1"))
    assert [b["id"] for b in resp.json()] == [book["id"]]

    resp = await client.get("/me/saved", headers=bearer("u2"))
    assert resp.json() == []


@pytest.mark.asyncio
async def test_unsave_book(client: AsyncClient, make_book):
    book = await make_book()
    await client.post(f"/books/{book['id']}/save", headers=bearer("u1"))

    resp = await client.delete(f"/books/{book['id']}/save", headers=bearer("u1"))
    assert resp.status_code == 204
    resp = await client.delete(f"/books/{book['id']}/save", headers=bearer("u1"))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_save_unknown_book(client: AsyncClient):
    resp = await client.post("/books/nope/save", headers=bearer("u1"))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_history_progress_and_rating(client: AsyncClient, make_book):
    book = await make_book(title="SICP")
    resp = await client.post(f"/books/{book['id']}/save", headers=bearer("u1"))
    entry_id = resp.json()["id"]

    resp = await client.patch(
        f"/me/history/{entry_id}", json={"status": "reading"}, headers=bearer("u1")
    )
    assert resp.status_code == 200
    assert resp.json()["started_at"] is not None
    assert resp.json()["completed_at"] is None

    resp = await client.patch(
        f"/me/history/{entry_id}", json={"status": "completed", "rating": 5}, headers=bearer("u1")
    )
    data = resp.json()
    assert data["status"] == "completed"
    assert data["rating"] == 5
    assert data["completed_at"] is not None

    resp = await client.get("/me/history", headers=bearer("u1"))
    [item] = resp.json()
    assert item["book"]["title"] == "SICP"
    assert item["entry"]["status"] == "completed"

    # completed books are no longer on the saved list
    resp = await client.get("/me/saved", headers=bearer("u1"))
    assert resp.json() == []


@pytest.mark.asyncio
async def test_history_rating_out_of_range(client: AsyncClient, make_book):
    book = await make_book()
    resp = await client.post(f"/books/{book['id']}/save", headers=bearer("u1"))
    resp = await client.patch(
        f"/me/history/{resp.json()['id']}", json={"rating": 6}, headers=bearer("u1")
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_cannot_touch_someone_elses_history(client: AsyncClient, make_book):
    book = await make_book()
    resp = await client.post(f"/books/{book['id']}/save", headers=bearer("u1"))
    resp = await client.patch(
        f"/me/history/{resp.json()['id']}", json={"status": "reading"}, headers=bearer("u2")
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_feedback(client: AsyncClient, make_book):
    book = await make_book()
    resp = await client.post(
        f"/books/{book['id']}/feedback", json={"feedback_type": "dislike"}, headers=bearer("u1")
    )
    assert resp.status_code == 201
    assert resp.json()["feedback_type"] == "dislike"
    assert resp.json()["user_id"] == "u1"


@pytest.mark.asyncio
async def test_preferences_round_trip(client: AsyncClient):
    resp = await client.get("/me/preferences", headers=bearer("u1"))
    assert resp.status_code == 200
    assert resp.json()["favorite_genres"] == []

    resp = await client.put(
        "/me/preferences",
        json={"favorite_genres": ["Fantasy"], "reading_pace": "slow"},
        headers=bearer("u1"),
    )
    assert resp.status_code == 200

    resp = await client.put("/me/preferences", json={"interests": ["AI"]}, headers=bearer("u1"))
    data = resp.json()
    assert data["favorite_genres"] == ["Fantasy"]
    assert data["interests"] == ["AI"]
    assert data["reading_pace"] == "slow"


# ── Circulation ────────────────────────────────────


@pytest.mark.asyncio
async def test_issue_and_return(client: AsyncClient, make_book, grant, store):
    await grant("librarian", "staff")
    await store.insert("profiles", {"id": "u1", "full_name": "Stu Dent"})
    book = await make_book(title="Networks")
    due = (date.today() + timedelta(days=14)).isoformat()

    resp = await client.post(
        "/admin/issues",
        json={"book_id": book["id"], "user_id": "u1", "due_date": due},
        headers=bearer("librarian"),
    )
    assert resp.status_code == 201
    issue = resp.json()
    assert issue["status"] == "issued"
    assert issue["issued_by"] == "librarian"

    resp = await client.get("/admin/issues", params={"status": "issued"}, headers=bearer("librarian"))
    [entry] = resp.json()
    assert entry["book"]["title"] == "Networks"
    assert entry["borrower"]["full_name"] == "Stu Dent"

    resp = await client.get("/me/issues", headers=bearer("u1"))
    assert [i["issue"]["id"] for i in resp.json()] == [issue["id"]]

    resp = await client.post(f"/admin/issues/{issue['id']}/return", headers=bearer("librarian"))
    assert resp.status_code == 200
    assert resp.json()["status"] == "returned"
    assert resp.json()["return_date"] is not None

    resp = await client.post(f"/admin/issues/{issue['id']}/return", headers=bearer("librarian"))
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_issue_requires_available_copy(client: AsyncClient, make_book, grant):
    await grant("librarian", "staff")
    book = await make_book(total_copies=1, available_copies=0)
    resp = await client.post(
        "/admin/issues",
        json={"book_id": book["id"], "user_id": "u1", "due_date": date.today().isoformat()},
        headers=bearer("librarian"),
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_issue_due_date_in_past(client: AsyncClient, make_book, grant):
    await grant("librarian", "staff")
    book = await make_book()
    resp = await client.post(
        "/admin/issues",
        json={"book_id": book["id"], "user_id": "u1", "due_date": "2000-01-01"},
        headers=bearer("librarian"),
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_circulation_is_staff_only(client: AsyncClient):
    resp = await client.get("/admin/issues", headers=bearer("reader"))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_reports_top_borrowed(client: AsyncClient, make_book, grant):
    await grant("librarian", "staff")
    popular = await make_book(title="Popular")
    niche = await make_book(title="Niche")
    due = (date.today() + timedelta(days=7)).isoformat()
    for book, times in ((popular, 3), (niche, 1)):
        for n in range(times):
            await client.post(
                "/admin/issues",
                json={"book_id": book["id"], "user_id": f"reader-{n}", "due_date": due},
                headers=bearer("librarian"),
            )

    resp = await client.get("/admin/reports", headers=bearer("librarian"))
    assert resp.status_code == 200
    data = resp.json()
    assert len(data["issued"]) == 4
    assert data["overdue"] == []
    assert [(t["book"]["title"], t["count"]) for t in data["top_borrowed"]] == [
        ("Popular", 3),
        ("Niche", 1),
    ]


# ── Administration ─────────────────────────────────


@pytest.mark.asyncio
async def test_members_are_admin_only(client: AsyncClient, grant, store):
    await grant("librarian", "staff")
    await grant("boss", "admin")
    await store.insert("profiles", {"id": "u1", "full_name": "Stu Dent"})

    resp = await client.get("/admin/members", headers=bearer("librarian"))
    assert resp.status_code == 403

    resp = await client.get("/admin/members", headers=bearer("boss"))
    assert resp.status_code == 200
    assert [m["id"] for m in resp.json()] == ["u1"]


@pytest.mark.asyncio
async def test_staff_management(client: AsyncClient, grant, store):
    await grant("boss", "admin")
    await store.insert("profiles", {"id": "u1", "full_name": "New Librarian"})

    resp = await client.post(
        "/admin/staff", json={"user_id": "u1", "role": "staff"}, headers=bearer("boss")
    )
    assert resp.status_code == 201
    role_id = resp.json()["id"]

    resp = await client.post(
        "/admin/staff", json={"user_id": "u1", "role": "staff"}, headers=bearer("boss")
    )
    assert resp.status_code == 409

    resp = await client.get("/admin/staff", headers=bearer("boss"))
    names = {(s["role"]["user_id"], s["role"]["role"]) for s in resp.json()}
    assert names == {("boss", "admin"), ("u1", "staff")}
    [librarian] = [s for s in resp.json() if s["role"]["user_id"] == "u1"]
    assert librarian["profile"]["full_name"] == "New Librarian"

    # the new role takes effect on the next request
    resp = await client.get("/admin/issues", headers=bearer("u1"))
    assert resp.status_code == 200

    resp = await client.delete(f"/admin/staff/{role_id}", headers=bearer("boss"))
    assert resp.status_code == 204
    resp = await client.delete(f"/admin/staff/{role_id}", headers=bearer("boss"))
    assert resp.status_code == 404


# ── Discover ───────────────────────────────────────


@pytest.mark.asyncio
async def test_discover_search(client: AsyncClient, book_search):
    resp = await client.get("/discover/search", params={"q": "dune"})
    assert resp.status_code == 200
    assert resp.json()[0]["title"] == "Dune"

    await client.get("/discover/categories/Fiction")
    await client.get("/discover/trending")
    assert book_search.queries == ["dune", "subject:Fiction", "bestseller 2024"]


@pytest.mark.asyncio
async def test_discover_volume(client: AsyncClient):
    resp = await client.get("/discover/volumes/vol-1")
    assert resp.status_code == 200
    resp = await client.get("/discover/volumes/missing")
    assert resp.status_code == 404
