"""End-to-end tests for the article endpoints against an in-memory SQLite store."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from handbook.infrastructure.database.session import get_db_session
from handbook.main import app


@pytest_asyncio.fixture
async def client(sqlite_engine: AsyncEngine) -> AsyncGenerator[AsyncClient, None]:
    factory = async_sessionmaker(sqlite_engine, class_=AsyncSession, expire_on_commit=False)

    async def _test_session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _test_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def _body(**overrides) -> dict:
    body = {"title": "T1", "description": "D1", "content": "C1", "edited_by": "alice"}
    body.update(overrides)
    return body


async def _create_and_submit(client: AsyncClient, public_id: str = "a1") -> None:
    response = await client.post("/api/v1/articles", json=_body(public_id=public_id))
    assert response.status_code == 201
    response = await client.post("/api/v1/articles/submitting", json=_body(public_id=public_id))
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_full_lifecycle(client: AsyncClient):
    await _create_and_submit(client)

    response = await client.post(
        "/api/v1/articles/approval/a1", json=_body(title="T2", edited_by="rev", version=0)
    )
    assert response.status_code == 200
    approved = response.json()
    assert approved["version"] == 1
    assert approved["status"] == "APPROVED"
    assert approved["is_editable"] is True

    response = await client.put("/api/v1/articles/a1?version=1", json=_body(title="T3"))
    assert response.status_code == 200
    assert response.json()["version"] == 2
    assert response.json()["status"] == "EDITING"

    response = await client.get("/api/v1/articles/a1")
    assert response.json()["version"] == 1

    response = await client.get("/api/v1/articles/a1/latest")
    assert response.json()["version"] == 2

    response = await client.get("/api/v1/articles/a1/working-copy")
    assert response.json() == {"public_id": "a1", "edited_by": "alice", "version": 2}

    response = await client.get("/api/v1/articles/a1/approved-versions")
    assert [a["version"] for a in response.json()] == [0, 1]

    response = await client.get("/api/v1/articles/approved")
    assert [(a["public_id"], a["version"]) for a in response.json()] == [("a1", 1)]


@pytest.mark.asyncio
async def test_create_uses_editor_header(client: AsyncClient):
    response = await client.post(
        "/api/v1/articles",
        json=_body(public_id="a1", edited_by=None),
        headers={"X-Editor": "dana"},
    )
    assert response.status_code == 201
    assert response.json()["edited_by"] == "dana"


@pytest.mark.asyncio
async def test_create_without_title_is_422(client: AsyncClient):
    response = await client.post("/api/v1/articles", json=_body(title=""))
    assert response.status_code == 422
    assert response.json()["error_code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_decline_returns_article_to_editing(client: AsyncClient):
    await _create_and_submit(client)

    response = await client.post(
        "/api/v1/articles/decline/a1/SUBMITTED", json={"reason": "Please add sources"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "EDITING"
    assert data["deny_text"] == "Please add sources"

    response = await client.get("/api/v1/articles/user/alice")
    assert [a["public_id"] for a in response.json()] == ["a1"]


@pytest.mark.asyncio
async def test_list_submitted_articles(client: AsyncClient):
    await _create_and_submit(client, "a1")
    await client.post("/api/v1/articles", json=_body(public_id="b2"))

    response = await client.get("/api/v1/articles")
    assert [a["public_id"] for a in response.json()] == ["a1"]

    response = await client.get("/api/v1/articles", params={"status": "editing"})
    assert [a["public_id"] for a in response.json()] == ["b2"]


@pytest.mark.asyncio
async def test_unknown_status_is_422(client: AsyncClient):
    response = await client.get("/api/v1/articles", params={"status": "ARCHIVED"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unknown_article_is_404(client: AsyncClient):
    response = await client.get("/api/v1/articles/missing")
    assert response.status_code == 404
    assert response.json()["error_code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_approve_without_submission_is_409(client: AsyncClient):
    await client.post("/api/v1/articles", json=_body(public_id="a1"))

    response = await client.post("/api/v1/articles/approval/a1", json=_body())
    assert response.status_code == 409
    assert response.json()["error_code"] == "INVALID_TRANSITION"


@pytest.mark.asyncio
async def test_approve_stale_version_is_409_conflict(client: AsyncClient):
    await _create_and_submit(client)

    response = await client.post("/api/v1/articles/approval/a1", json=_body(version=3))
    assert response.status_code == 409
    assert response.json()["error_code"] == "CONFLICT"


@pytest.mark.asyncio
async def test_version_lookup_with_status(client: AsyncClient):
    await _create_and_submit(client)

    response = await client.get("/api/v1/articles/a1/versions/0/SUBMITTED")
    assert response.status_code == 200

    response = await client.get("/api/v1/articles/a1/versions/0/APPROVED")
    assert response.status_code == 404

    response = await client.get("/api/v1/articles/a1/status/submitted")
    assert response.json()["version"] == 0
