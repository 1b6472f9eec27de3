"""Tests for the PostgREST cache store (httpx mocked with respx)."""

from __future__ import annotations

import httpx
import orjson
import pytest
import respx

from vendorsweep.core.cache import CacheGateway, CacheRecord, CacheStoreError, RestCacheStore, UpsertOutcome

BASE = "https://project.supabase.test"
TABLE_URL = f"{BASE}/rest/v1/global_plant_cache"
URL = "https://a.com/p/1"


@pytest.fixture()
async def store():
    s = RestCacheStore(BASE + "/", "service-key", timeout=1, max_attempts=2)
    yield s
    await s.close()


def _record(quality: str = "full") -> CacheRecord:
    return CacheRecord(
        source_url=URL,
        identity_key="pea_green_arrow",
        vendor="a.com",
        scrape_quality=quality,
        extract_data={"type": "Pea"},
        scraped_fields=["sun"],
    )


class TestLookups:
    @respx.mock
    async def test_exists_query_shape(self, store):
        route = respx.get(TABLE_URL).mock(return_value=httpx.Response(200, json=[{"id": 1}]))

        assert await store.exists(URL) is True

        request = route.calls.last.request
        assert request.url.params["source_url"] == f"eq.{URL}"
        assert request.url.params["select"] == "id"
        assert request.url.params["limit"] == "1"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["authorization"] == "Bearer service-key"

    @respx.mock
    async def test_exists_empty(self, store):
        respx.get(TABLE_URL).mock(return_value=httpx.Response(200, json=[]))
        assert await store.exists(URL) is False

    @respx.mock
    async def test_get_quality(self, store):
        respx.get(TABLE_URL).mock(return_value=httpx.Response(200, json=[{"scrape_quality": "partial"}]))
        assert await store.get_quality(URL) == "partial"

    @respx.mock
    async def test_get_quality_null_label(self, store):
        respx.get(TABLE_URL).mock(return_value=httpx.Response(200, json=[{"scrape_quality": None}]))
        assert await store.get_quality(URL) == ""

    @respx.mock
    async def test_http_error_raises_store_error(self, store):
        respx.get(TABLE_URL).mock(return_value=httpx.Response(500))
        with pytest.raises(CacheStoreError) as exc:
            await store.exists(URL)
        assert exc.value.status_code == 500

    @respx.mock
    async def test_transport_error_retried_once(self, store):
        route = respx.get(TABLE_URL).mock(
            side_effect=[httpx.ConnectError("reset"), httpx.Response(200, json=[{"id": 3}])]
        )
        assert await store.exists(URL) is True
        assert route.call_count == 2

    @respx.mock
    async def test_gateway_fails_closed_on_outage(self, store):
        respx.get(TABLE_URL).mock(side_effect=httpx.ConnectError("down"))
        assert await CacheGateway(store).exists(URL) is False


class TestWrite:
    @respx.mock
    async def test_upsert_request(self, store):
        route = respx.post(TABLE_URL).mock(return_value=httpx.Response(201))

        assert await store.write(_record()) is True

        request = route.calls.last.request
        assert request.url.params["on_conflict"] == "source_url"
        assert "resolution=merge-duplicates" in request.headers["prefer"]
        body = orjson.loads(request.content)
        assert body["source_url"] == URL
        assert body["scrape_quality"] == "full"
        assert body["scraped_fields"] == ["sun"]
        assert "updated_at" in body

    @respx.mock
    async def test_gateway_skips_write_for_lower_quality(self, store):
        respx.get(TABLE_URL).mock(return_value=httpx.Response(200, json=[{"scrape_quality": "full"}]))
        post = respx.post(TABLE_URL).mock(return_value=httpx.Response(201))

        outcome = await CacheGateway(store).upsert(URL, "ai_only", _record("ai_only"))

        assert outcome is UpsertOutcome.KEPT
        assert not post.called

    @respx.mock
    async def test_gateway_reports_failed_write(self, store):
        respx.get(TABLE_URL).mock(return_value=httpx.Response(200, json=[]))
        respx.post(TABLE_URL).mock(return_value=httpx.Response(409))

        outcome = await CacheGateway(store).upsert(URL, "full", _record())
        assert outcome is UpsertOutcome.FAILED
