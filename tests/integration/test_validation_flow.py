"""検証ミドルウェアのHTTP経由統合テスト。"""

from collections.abc import AsyncIterator
from pathlib import Path

import httpx
import pytest
from starlette.applications import Starlette

from schemaguard.config import ServerConfig
from schemaguard.models.errors import SchemaValidationError
from schemaguard.server import create_app


@pytest.fixture
def app(server_config: ServerConfig) -> Starlette:
    """サンプルスキーマを読み込んだテスト用アプリ。"""
    return create_app(server_config)


@pytest.fixture
async def client(app: Starlette) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


class TestValidationFlowViaHTTP:
    async def test_health_is_not_validated(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "routes": 4}

    async def test_unknown_route(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/nowhere", json={})
        assert response.status_code == 400
        assert response.text == "Invalid request. Could not find /nowhere"

    async def test_login_success_exposes_sanitized_input(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/login", json={"username": "  alice ", "password": "secret"})
        assert response.status_code == 200
        assert response.json() == {"input": {"username": "alice", "password": "secret"}}

    async def test_login_failure_reports_single_message(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/login", json={"username": "a", "password": ""})
        assert response.status_code == 400
        assert response.text == "password : should not be empty"

    async def test_mandatory_reported_before_datatype(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/users", json={"name": "Bob1", "age": 30, "role": "admin"})
        assert response.status_code == 400
        assert response.text == "address.city : is mandatory"

    async def test_nested_and_membership(self, client: httpx.AsyncClient) -> None:
        body = {
            "name": "Bob",
            "age": "42",
            "role": "owner",
            "address": {"city": "Pune", "pincode": "411001"},
        }
        response = await client.post("/users", json=body)
        assert response.status_code == 400
        assert response.text == "Allowed values for role are admin,editor,viewer"

        body["role"] = "editor"
        response = await client.post("/users", json=body)
        assert response.status_code == 200
        assert response.json()["input"]["age"] == 42

    async def test_age_range(self, client: httpx.AsyncClient) -> None:
        body = {"name": "Bob", "age": 15, "role": "admin", "address": {"city": "Pune", "pincode": "411001"}}
        response = await client.post("/users", json=body)
        assert response.text == "age should be in between 18 and 120"

    async def test_query_and_path_precedence(self, client: httpx.AsyncClient) -> None:
        response = await client.put("/users/3?id=abc", json={"id": "xyz", "email": "X@Y.com"})
        assert response.status_code == 200
        assert response.json() == {"input": {"id": 3, "email": "x@y.com"}}

    async def test_query_overrides_body(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/login?password=fromquery", json={"username": "a", "password": ""})
        assert response.status_code == 200
        assert response.json()["input"]["password"] == "fromquery"

    async def test_form_body(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/orders/9", data={"quantity": "0"})
        assert response.status_code == 400
        assert response.text == "quantity should be in greater than or equal to 1"

        response = await client.post("/orders/9", data={"quantity": "2", "express": "true"})
        assert response.status_code == 200
        assert response.json() == {"input": {"quantity": 2, "express": True, "order_id": 9}}

    async def test_malformed_json(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/login", content=b"{not json", headers={"content-type": "application/json"})
        assert response.status_code == 400
        assert response.text == "Invalid request body: malformed JSON"

    async def test_invalid_utf8_json(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/login", content=b'{"username": "\xff"}', headers={"content-type": "application/json"}
        )
        assert response.status_code == 400
        assert response.text == "Invalid request body: malformed JSON"

    async def test_file_upload_is_echoed_by_name(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/orders/9",
            data={"quantity": "2"},
            files={"invoice": ("invoice.pdf", b"%PDF-1.4", "application/pdf")},
        )
        assert response.status_code == 200
        assert response.json() == {"input": {"quantity": 2, "invoice": "invoice.pdf", "order_id": 9}}


class TestMountPrefix:
    async def test_prefix_is_stripped(self, schema_file: Path) -> None:
        app = create_app(ServerConfig(schema_file=schema_file, mount_prefix="/api"))
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            response = await client.post("/api/login", json={"username": "a", "password": "b"})
            assert response.status_code == 200

            response = await client.post("/api/login", json={"username": "a"})
            assert response.text == "password : is mandatory"

            response = await client.get("/api/health")
            assert response.status_code == 200
            assert response.json()["status"] == "ok"


class TestStartup:
    def test_invalid_schema_aborts_startup(self, tmp_path: Path) -> None:
        schema_path = tmp_path / "schema.yaml"
        schema_path.write_text(
            "schema:\n  /a:\n    x:\n      required: true\n      dataType: integer\n      minLength: 2\n",
            encoding="utf-8",
        )
        with pytest.raises(SchemaValidationError) as exc_info:
            create_app(ServerConfig(schema_file=schema_path))
        assert exc_info.value.errors == [
            "/a.x: Unknown property 'minLength'",
            "/a.x: Invalid dataType 'integer'",
        ]
