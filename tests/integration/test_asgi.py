"""End-to-end tests through the ASGI boundary."""

from collections.abc import Generator

import pytest
from starlette.testclient import TestClient

from dispatchkit.api.asgi import create_asgi_app
from dispatchkit.services.dispatcher import Dispatcher


@pytest.fixture
def client(dispatcher: Dispatcher) -> Generator[TestClient, None, None]:
    with TestClient(create_asgi_app(dispatcher)) as test_client:
        yield test_client


@pytest.mark.integration
class TestHttpDispatch:
    def test_get_item(self, client: TestClient) -> None:
        response = client.get("/items/1")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {"id": 1, "name": "hammer", "kind": "tool"}

    def test_query_string(self, client: TestClient) -> None:
        response = client.get("/items", params={"kind": "food"})
        assert [item["name"] for item in response.json()] == ["apple"]

    def test_create_then_fetch(self, client: TestClient) -> None:
        created = client.post("/items", json={"name": "drill", "kind": "tool"})
        assert created.status_code == 201
        location = created.headers["location"]

        fetched = client.get(location)
        assert fetched.status_code == 200
        assert fetched.json()["name"] == "drill"

    def test_delete(self, client: TestClient) -> None:
        response = client.delete("/items/1")
        assert response.status_code == 204
        assert response.content == b""
        assert client.get("/items/1").status_code == 404

    def test_percent_encoded_path(self, client: TestClient) -> None:
        response = client.get("/files/my%20docs/a.txt")
        assert response.json()["path"] == "my docs/a.txt"

    def test_encoded_percent_is_decoded_once(self, client: TestClient) -> None:
        response = client.get("/files/100%2525")
        assert response.json()["path"] == "100%25"

    def test_accept_text(self, client: TestClient) -> None:
        response = client.get("/health", headers={"accept": "text/plain"})
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "ok"

    def test_request_id_round_trip(self, client: TestClient) -> None:
        response = client.get("/health", headers={"x-request-id": "abc-123"})
        assert response.headers["x-request-id"] == "abc-123"


@pytest.mark.integration
class TestHttpErrors:
    def test_not_found(self, client: TestClient) -> None:
        response = client.get("/missing")
        assert response.status_code == 404
        assert response.json()["error"]["type"] == "not_found_error"

    def test_missing_parameter(self, client: TestClient) -> None:
        response = client.get("/items/search")
        assert response.status_code == 400
        assert response.json()["error"]["details"] == {
            "parameter": "type",
            "source": "query",
        }

    def test_bad_json(self, client: TestClient) -> None:
        response = client.post(
            "/items", content=b"{", headers={"content-type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["error"]["type"] == "malformed_body_error"

    def test_not_acceptable(self, client: TestClient) -> None:
        response = client.get("/items/1", headers={"accept": "image/png"})
        assert response.status_code == 406

    def test_unexpected_error(self, client: TestClient) -> None:
        response = client.get("/broken")
        assert response.status_code == 500
        assert "hunter2" not in response.text
