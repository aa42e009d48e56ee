"""
Current Visit API: Endpoint Tests
=================================

What:  HTTP-level tests for /current and /health.
How:   test_client (httpx + ASGITransport) over an app built on a temporary
       SQLite store; store faults are simulated by patching the store.

What we test:
    ✅ Help page on bare GET
    ✅ POST then GET by id round trip
    ✅ Fuzzy search end to end, both parameter orders, URL decoding
    ✅ Every malformed query shape returns 400
    ✅ Missing body field returns 400, store failure returns 503
    ✅ X-Request-ID header and health check
"""

import re
import uuid
from unittest.mock import AsyncMock, patch

import pytest

from visitapi.exceptions import StoreError, ValidationError
from visitapi.routes.visits import parse_read_query

VISIT_ID_BODY = re.compile(r'^\{ visitId: "([^"]+)" \}$')


async def post_visit(client, user_id: str, name: str) -> str:
    response = await client.post("/current", content=f'{{ userId: "{user_id}", name: "{name}" }}')
    assert response.status_code == 200
    match = VISIT_ID_BODY.match(response.text)
    assert match, response.text
    return match.group(1)


class TestParseReadQuery:
    """Tests for the raw query-string parser."""

    def test_visit_id(self):
        assert parse_read_query("visitId=abc").visit_id == "abc"

    def test_search_either_order(self):
        a = parse_read_query("userId=u1&searchString=cafe")
        b = parse_read_query("searchString=cafe&userId=u1")
        assert (a.user_id, a.search_string) == ("u1", "cafe")
        assert a == b

    def test_search_string_is_url_decoded(self):
        read = parse_read_query("userId=u1&searchString=caf%C3%A9+rio%21")
        assert read.search_string == "café rio!"

    def test_user_id_is_not_decoded(self):
        assert parse_read_query("userId=a%20b&searchString=x").user_id == "a%20b"

    def test_value_may_contain_equals(self):
        assert parse_read_query("visitId=a=b").visit_id == "a=b"

    def test_trailing_empty_pairs_are_dropped(self):
        assert parse_read_query("visitId=abc&").visit_id == "abc"
        assert parse_read_query("userId=u1&searchString=x&&").user_id == "u1"

    @pytest.mark.parametrize("query", ["&visitId=abc", "visitId=abc&&userId=u1", "&"])
    def test_other_empty_pairs_are_rejected(self, query):
        with pytest.raises(ValidationError):
            parse_read_query(query)


class TestHelpPage:

    @pytest.mark.asyncio
    async def test_get_without_query_returns_html(self, test_client):
        response = await test_client.get("/current")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "<h1>" in response.text


class TestCreateAndFetch:
    """POST /current and GET ?visitId=."""

    @pytest.mark.asyncio
    async def test_post_quoted_json_then_get_by_id(self, test_client):
        response = await test_client.post("/current", content='{"userId":"u","name":"p"}')

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        visit_id = VISIT_ID_BODY.match(response.text).group(1)
        uuid.UUID(visit_id)

        response = await test_client.get("/current", params={"visitId": visit_id})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert response.text == f'[{{ userId: "u", name: "p", visitId: "{visit_id}" }}]'

    @pytest.mark.asyncio
    async def test_get_by_id_with_trailing_ampersand(self, test_client):
        visit_id = await post_visit(test_client, "u", "p")

        response = await test_client.get(f"/current?visitId={visit_id}&")

        assert response.status_code == 200
        assert visit_id in response.text

    @pytest.mark.asyncio
    async def test_get_unknown_visit_id(self, test_client):
        response = await test_client.get("/current?visitId=nope")
        assert response.status_code == 200
        assert response.text == "[]"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ['{ userId: "u" }', '{ name: "p" }', "", "not json at all"])
    async def test_post_missing_field(self, test_client, body):
        response = await test_client.post("/current", content=body)
        assert response.status_code == 400
        assert response.text == "Invalid request"

    @pytest.mark.asyncio
    async def test_post_store_failure(self, test_client, visit_store):
        with patch.object(
            visit_store, "insert", AsyncMock(side_effect=StoreError(message="Update failed"))
        ):
            response = await test_client.post("/current", content='{ userId: "u", name: "p" }')

        assert response.status_code == 503
        assert response.text == "Update failed"

    @pytest.mark.asyncio
    async def test_get_store_failure(self, test_client, visit_store):
        with patch.object(visit_store, "by_id", AsyncMock(side_effect=StoreError())):
            response = await test_client.get("/current?visitId=abc")

        assert response.status_code == 503
        assert response.text == "Query failed"


class TestSearch:
    """GET ?userId=&searchString=."""

    @pytest.mark.asyncio
    async def test_search_returns_visits_to_best_match_newest_first(self, test_client):
        first = await post_visit(test_client, "u1", "3rd name!")
        await post_visit(test_client, "u1", "First Name")
        await post_visit(test_client, "u1", "second.name")
        second = await post_visit(test_client, "u1", "3rd name!")
        await post_visit(test_client, "u2", "3rd name!")

        response = await test_client.get("/current?userId=u1&searchString=NAME")

        assert response.status_code == 200
        assert response.text == (
            f'[{{ userId: "u1", name: "3rd name!", visitId: "{second}" }}, '
            f'{{ userId: "u1", name: "3rd name!", visitId: "{first}" }}]'
        )

    @pytest.mark.asyncio
    async def test_search_parameter_order_and_decoding(self, test_client):
        visit_id = await post_visit(test_client, "u1", "First Name")

        response = await test_client.get("/current?searchString=fi%52st+n&userId=u1")

        assert response.status_code == 200
        assert visit_id in response.text

    @pytest.mark.asyncio
    async def test_search_without_match(self, test_client):
        await post_visit(test_client, "u1", "First Name")

        response = await test_client.get("/current?userId=u1&searchString=am")

        assert response.status_code == 200
        assert response.text == "[]"

    @pytest.mark.asyncio
    async def test_search_only_considers_five_most_recent_names(self, test_client):
        await post_visit(test_client, "u1", "Old Favourite")
        for i in range(5):
            await post_visit(test_client, "u1", f"place number {i}")

        response = await test_client.get("/current?userId=u1&searchString=old+favourite")

        assert response.text == "[]"

    @pytest.mark.asyncio
    async def test_search_store_failure(self, test_client, visit_store):
        with patch.object(visit_store, "recent_names", AsyncMock(side_effect=StoreError())):
            response = await test_client.get("/current?userId=u1&searchString=x")

        assert response.status_code == 503


class TestMalformedQueries:
    """Every unsupported query shape is a client fault."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "query",
        [
            "userId=u1",
            "searchString=x",
            "visitId",
            "foo=bar",
            "userId=u1&userId=u2",
            "searchString=a&searchString=b",
            "userId=u1&foo=bar",
            "userId=u1&searchString",
            "visitId=a&userId=u1",
            "userId=u1&searchString=x&visitId=v",
            "&visitId=a",
        ],
    )
    async def test_bad_query_is_400(self, test_client, query):
        response = await test_client.get(f"/current?{query}")
        assert response.status_code == 400
        assert response.text == "Invalid request"


class TestAmbient:
    """Request id header and health check."""

    @pytest.mark.asyncio
    async def test_request_id_header(self, test_client):
        response = await test_client.get("/current", headers={"X-Request-ID": "abc12345"})
        assert response.headers["X-Request-ID"] == "abc12345"

    @pytest.mark.asyncio
    async def test_request_id_generated_on_errors(self, test_client):
        response = await test_client.get("/current?bogus=1")
        assert response.status_code == 400
        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_health_healthy(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_health_unhealthy(self, test_client, visit_store):
        with patch.object(visit_store, "ping", AsyncMock(return_value=False)):
            response = await test_client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
