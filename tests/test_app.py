import logging
from typing import Iterator

import pytest
from starlette.testclient import TestClient

import config
from domain.repository import RecipesRepository
from main import CORS_HEADERS, create_app


@pytest.fixture
def client(db_url: str) -> Iterator[TestClient]:
    app = create_app(config.Config(db_url=db_url, env=config.Env.prod))
    with TestClient(app) as c:
        yield c


def assert_cors(headers) -> None:
    for key, value in CORS_HEADERS.items():
        assert headers[key] == value


def test_toast_lifecycle(client: TestClient) -> None:
    resp = client.post("/recipes", json={"name": "Toast", "content": "Bread + butter"})
    assert resp.status_code == 201
    assert_cors(resp.headers)
    created = resp.json()
    assert created["id"]
    assert created["createdAt"]
    assert "updatedAt" not in created

    resp = client.post(
        "/recipes",
        json={
            "id": created["id"],
            "name": "Toast v2",
            "content": "Bread + butter + jam",
        },
    )
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["id"] == created["id"]
    assert updated["createdAt"] == created["createdAt"]
    assert updated["updatedAt"]
    assert updated["content"] == "Bread + butter + jam"

    resp = client.delete(f"/recipes/{created['id']}")
    assert resp.status_code == 204
    assert resp.content == b""
    assert_cors(resp.headers)

    resp = client.get("/recipes")
    assert resp.status_code == 200
    assert resp.json() == []


def test_list_and_search(client: TestClient) -> None:
    for name, content in (
        ("Scrambled eggs", "Whisk and stir."),
        ("Toast", "Bread + butter"),
        ("Omelette", "Beat the egg well."),
    ):
        assert client.post("/recipes", json={"name": name, "content": content}).is_success

    everything = client.get("/recipes").json()
    assert len(everything) == 3
    created = [r["createdAt"] for r in everything]
    assert created == sorted(created, reverse=True)

    resp = client.get("/recipes", params={"search": "egg"})
    assert resp.status_code == 200
    assert_cors(resp.headers)
    names = {r["name"] for r in resp.json()}
    assert names == {"Scrambled eggs", "Omelette"}


def test_get_single(client: TestClient) -> None:
    created = client.post("/recipes", json={"name": "Toast", "content": "Bread"}).json()
    resp = client.get(f"/recipes/{created['id']}")
    assert resp.status_code == 200
    assert resp.json() == created

    resp = client.get("/recipes/nope")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Recipe nope not found"}


@pytest.mark.parametrize(
    "body",
    (
        {"name": "", "content": "anything"},
        {"name": "anything", "content": ""},
        {"name": "anything"},
        ["not", "an", "object"],
    ),
)
def test_upsert_validation(client: TestClient, body: object) -> None:
    resp = client.post("/recipes", json=body)
    assert resp.status_code == 400
    assert "error" in resp.json()
    assert_cors(resp.headers)
    assert client.get("/recipes").json() == []


def test_upsert_invalid_json(client: TestClient) -> None:
    resp = client.post(
        "/recipes", content=b"{nope", headers={"Content-Type": "application/json"}
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "Request body must be valid JSON"}


def test_update_missing(client: TestClient) -> None:
    resp = client.post("/recipes", json={"id": "nope", "name": "a", "content": "b"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Recipe nope not found"}
    assert client.get("/recipes").json() == []


def test_delete_missing_is_success(client: TestClient) -> None:
    resp = client.delete("/recipes/nope")
    assert resp.status_code == 204


@pytest.mark.parametrize("path", ("/recipes", "/recipes/"))
def test_delete_without_id(client: TestClient, path: str) -> None:
    resp = client.delete(path)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Recipe ID is required"}


@pytest.mark.parametrize("path", ("/recipes", "/recipes/abc"))
def test_preflight(client: TestClient, path: str) -> None:
    resp = client.options(path)
    assert resp.status_code == 200
    assert resp.content == b""
    assert_cors(resp.headers)


def test_storage_failure(
    client: TestClient, broken_repository: RecipesRepository
) -> None:
    client.app.state.repo = broken_repository  # pyright: ignore[reportAttributeAccessIssue]

    resp = client.get("/recipes")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to fetch recipes"}
    assert_cors(resp.headers)

    resp = client.post("/recipes", json={"name": "a", "content": "b"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to save recipe"}

    resp = client.delete("/recipes/a")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to delete recipe"}


def test_head(client: TestClient) -> None:
    created = client.post("/recipes", json={"name": "Toast", "content": "Bread"}).json()

    resp = client.head("/recipes")
    assert resp.status_code == 200
    assert_cors(resp.headers)

    resp = client.head(f"/recipes/{created['id']}")
    assert resp.status_code == 200
    assert_cors(resp.headers)

    assert client.head("/recipes/nope").status_code == 404


@pytest.mark.parametrize(
    "method,path",
    (
        ("PUT", "/recipes"),
        ("PATCH", "/recipes/abc"),
        ("POST", "/recipes/abc"),
    ),
)
def test_unsupported_method(client: TestClient, method: str, path: str) -> None:
    resp = client.request(method, path, json={"name": "a", "content": "b"})
    assert resp.status_code == 405
    assert resp.json() == {"error": f"Method {method} not allowed"}
    assert_cors(resp.headers)


def test_storage_failure_logged_once(
    client: TestClient,
    broken_repository: RecipesRepository,
    caplog: pytest.LogCaptureFixture,
) -> None:
    client.app.state.repo = broken_repository  # pyright: ignore[reportAttributeAccessIssue]

    with caplog.at_level(logging.ERROR):
        assert client.get("/recipes").status_code == 500

    errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert len(errors) == 1
    assert errors[0].exc_info is not None
