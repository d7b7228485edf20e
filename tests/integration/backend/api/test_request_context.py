"""
Integration tests for request ids and timing headers across the API.
"""

import pytest
from httpx import AsyncClient

PROTECTED_READS = ["/api/v1/notes", "/api/v1/notes/trash", "/api/v1/dashboard/stats"]


class TestRequestIdHeader:
    @pytest.mark.asyncio
    async def test_generated_when_absent(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert len(response.headers["X-Request-ID"]) == 36

    @pytest.mark.asyncio
    async def test_caller_id_is_echoed(self, client: AsyncClient):
        response = await client.get("/health", headers={"X-Request-ID": "mobile-7f3a"})
        assert response.headers["X-Request-ID"] == "mobile-7f3a"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", PROTECTED_READS)
    async def test_present_on_authenticated_reads(self, client: AsyncClient, auth_headers, path):
        response = await client.get(path, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["metadata"]["request_id"] == response.headers["X-Request-ID"]


class TestResponseTimeHeader:
    @pytest.mark.asyncio
    async def test_whole_milliseconds(self, client: AsyncClient):
        value = (await client.get("/health")).headers["X-Response-Time"]

        assert value.endswith("ms")
        assert value[:-2].isdigit()

    @pytest.mark.asyncio
    async def test_present_on_errors(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/v1/notes/missing-note", headers=auth_headers)

        assert response.status_code == 404
        assert "X-Response-Time" in response.headers


class TestRequestIdInErrorEnvelope:
    @pytest.mark.asyncio
    async def test_missing_note(self, client: AsyncClient, auth_headers, api):
        response = await client.get(
            "/api/v1/notes/missing-note",
            headers={**auth_headers, "X-Request-ID": "trace-404"},
        )

        body = api.assert_error(response, 404, "RES_NOT_FOUND")
        assert body["metadata"]["request_id"] == "trace-404"

    @pytest.mark.asyncio
    async def test_missing_token(self, client: AsyncClient, api):
        response = await client.get("/api/v1/notes", headers={"X-Request-ID": "trace-401"})

        body = api.assert_error(response, 401)
        assert body["metadata"]["request_id"] == "trace-401"

    @pytest.mark.asyncio
    async def test_invalid_body(self, client: AsyncClient, auth_headers, api):
        response = await client.post(
            "/api/v1/notes",
            json={"title": "Plan", "content": "x", "is_pinned": "sometimes"},
            headers={**auth_headers, "X-Request-ID": "trace-422"},
        )

        body = api.assert_validation_error(response, "is_pinned")
        assert body["metadata"]["request_id"] == "trace-422"

    @pytest.mark.asyncio
    async def test_unknown_route(self, client: AsyncClient, api):
        api.assert_error(await client.get("/api/v1/nothing-here"), 404, "RES_NOT_FOUND")
