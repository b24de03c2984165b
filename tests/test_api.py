"""HTTP surface tests using FastAPI's test client."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.config import Settings
from app.database import Database
from app.db_models import Actor
from app.main import register_routes
from app.permissions import Permission
from app.services.medialists import MedialistService


@pytest.fixture
def client(tmp_path):
    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        database = Database(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")
        await database.create_all()
        async with database.session_factory() as session:
            owner = Actor(display_name="owner", permissions=int(Permission.CREATE_LISTS))
            viewer = Actor(display_name="viewer", permissions=int(Permission.VIEW_LISTS))
            session.add_all([owner, viewer])
            await session.commit()
            fastapi_app.state.actor_ids = {"owner": owner.id, "viewer": viewer.id}

        fastapi_app.state.medialist_service = MedialistService(
            Settings(_env_file=None), database.session_factory
        )
        try:
            yield
        finally:
            await database.dispose()

    fastapi_app = FastAPI(lifespan=lifespan)
    register_routes(fastapi_app)
    with TestClient(fastapi_app) as test_client:
        yield test_client


def _as(client: TestClient, who: str) -> dict[str, str]:
    return {"X-Actor-Id": str(client.app.state.actor_ids[who])}


def _create(client: TestClient, body: dict[str, Any], who: str = "owner"):
    return client.post("/lists", json=body, headers=_as(client, who))


def test_healthcheck(client: TestClient) -> None:
    assert client.get("/healthz").json() == {"status": "ok"}


def test_requests_without_known_actor_are_refused(client: TestClient) -> None:
    assert client.get("/lists").status_code == 403
    response = client.get("/lists", headers={"X-Actor-Id": "abc"})
    assert response.json()["detail"] == "Authentication required"
    response = client.get("/lists", headers={"X-Actor-Id": "9999"})
    assert response.status_code == 403
    assert response.json()["detail"] == "Unknown actor"


def test_create_then_add_items(client: TestClient) -> None:
    created = _create(
        client,
        {"name": "Favourites", "sourceUrl": "https://www.imdb.com/list/ls091520106/"},
    )
    assert created.status_code == 200
    body = created.json()
    assert body["source"] == "imdb"
    assert body["sourceType"] == "imdb_list"
    assert body["createdBy"]["displayName"] == "owner"

    response = client.post(
        f"/lists/{body['id']}/items",
        json={"name": "Some Film", "year": 2001, "mediaType": "movie"},
        headers=_as(client, "owner"),
    )
    assert response.status_code == 200
    items = response.json()["medialistItems"]
    assert len(items) == 1
    assert items[0]["name"] == "Some Film"
    assert items[0]["year"] == "2001"
    assert items[0]["media"] is None


def test_item_errors_map_to_statuses(client: TestClient) -> None:
    list_id = _create(client, {"name": "Errors"}).json()["id"]

    empty = client.post(
        f"/lists/{list_id}/items", json={}, headers=_as(client, "owner")
    )
    assert empty.status_code == 403
    assert "insufficient detail" in empty.json()["detail"]

    invalid = client.post(
        f"/lists/{list_id}/items",
        json={"tmdbId": -4},
        headers=_as(client, "owner"),
    )
    assert invalid.status_code == 403

    missing = client.post(
        "/lists/4242/items", json={"name": "x"}, headers=_as(client, "owner")
    )
    assert missing.status_code == 404

    viewer = client.post(
        f"/lists/{list_id}/items", json={"name": "x"}, headers=_as(client, "viewer")
    )
    assert viewer.status_code == 403


def test_create_list_validation_is_forbidden(client: TestClient) -> None:
    assert _create(client, {"name": ""}).status_code == 403
    assert _create(client, {"name": "X", "sourceUrl": "ftp://nowhere"}).status_code == 403
    assert _create(client, {"name": "Y"}, who="viewer").status_code == 403


def test_list_count_get_and_delete(client: TestClient) -> None:
    list_id = _create(client, {"name": "Temporary"}).json()["id"]
    _create(client, {"name": "Keeper"})

    listing = client.get("/lists", params={"take": 1}, headers=_as(client, "viewer"))
    assert listing.status_code == 200
    payload = listing.json()
    assert payload["pageInfo"] == {"pages": 2, "pageSize": 1, "results": 2, "page": 1}
    assert "medialistItems" not in payload["results"][0]

    count = client.get("/lists/count", headers=_as(client, "viewer"))
    assert count.json() == {"total": 2}

    fetched = client.get(f"/lists/{list_id}", headers=_as(client, "viewer"))
    assert fetched.json()["medialistItems"] == []

    refused = client.delete(f"/lists/{list_id}", headers=_as(client, "viewer"))
    assert refused.status_code == 403

    deleted = client.delete(f"/lists/{list_id}", headers=_as(client, "owner"))
    assert deleted.json() == {"id": list_id, "deleted": True}
    assert client.get(f"/lists/{list_id}", headers=_as(client, "owner")).status_code == 404


@pytest.mark.parametrize(
    ("method", "path", "params"),
    [
        ("get", "/lists", {"take": 0}),
        ("get", "/lists", {"createdBy": "abc"}),
        ("post", "/lists/abc/items", None),
    ],
)
def test_malformed_parameters_are_forbidden(
    client: TestClient, method: str, path: str, params: dict[str, Any] | None
) -> None:
    response = client.request(
        method, path, params=params, json={"name": "x"}, headers=_as(client, "owner")
    )

    assert response.status_code == 403
    assert isinstance(response.json()["detail"], list)


def test_undecodable_body_is_forbidden(client: TestClient) -> None:
    list_id = _create(client, {"name": "Bytes"}).json()["id"]

    response = client.post(
        f"/lists/{list_id}/items",
        content=b"\xff\xfe\xfa",
        headers={**_as(client, "owner"), "Content-Type": "application/json"},
    )

    assert response.status_code == 403
