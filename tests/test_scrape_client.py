"""Tests for the HTTP scrape client (httpx mocked with respx)."""

from __future__ import annotations

import httpx
import orjson
import pytest
import respx

from vendorsweep.core.scrape import HttpScrapeClient, ScrapeOptions

ENDPOINT = "http://scraper.test/api/seed/scrape-url"
URL = "https://www.seeds.example/products/cherokee-purple"

FULL_BODY = {
    "plant_name": "Tomato",
    "variety_name": "Cherokee Purple",
    "tags": ["heirloom"],
    "sun": "Full sun",
    "water": "Regular",
    "days_to_germination": 7,
    "harvest_days": "80",
    "imageUrl": "https://cdn.seeds.example/cp.jpg",
    "scrape_status": "Success",
    "unexpected_key": {"ignored": True},
}


@pytest.fixture()
async def client():
    c = HttpScrapeClient(ENDPOINT, timeout=5)
    yield c
    await c.close()


class TestSuccess:
    @respx.mock
    async def test_full_result_builds_record(self, client):
        route = respx.post(ENDPOINT).mock(return_value=httpx.Response(200, json=FULL_BODY))

        result = await client.scrape(URL)

        assert route.called
        assert orjson.loads(route.calls.last.request.content) == {"url": URL}
        assert result.success
        assert result.quality == "full"
        assert result.fields_found == 5
        record = result.record
        assert record.vendor == "seeds.example"
        assert record.identity_key == "tomato_cherokee_purple"
        assert record.original_hero_url == "https://cdn.seeds.example/cp.jpg"
        assert record.extract_data["days_to_germination"] == 7

    @respx.mock
    async def test_skip_ai_fallback_sent_on_wire(self, client):
        route = respx.post(ENDPOINT).mock(return_value=httpx.Response(200, json=FULL_BODY))
        await client.scrape(URL, ScrapeOptions(skip_ai_fallback=True))
        assert orjson.loads(route.calls.last.request.content) == {
            "url": URL,
            "skipAiFallback": True,
        }

    @pytest.mark.parametrize(
        "status,quality",
        [("AI_SEARCH", "ai_only"), ("Partial", "partial"), (None, "partial")],
    )
    @respx.mock
    async def test_status_mapping(self, client, status, quality):
        body = {"plant_name": "Bean", "scrape_status": status}
        respx.post(ENDPOINT).mock(return_value=httpx.Response(200, json=body))
        result = await client.scrape(URL)
        assert result.success
        assert result.quality == quality

    @respx.mock
    async def test_numeric_descriptive_fields_pass_through(self, client):
        body = {
            "plant_name": "Carrot",
            "sowing_depth": 0.25,
            "plant_spacing": 2,
            "sun": "Full sun",
            "tags": ["root", 2024],
            "scrape_status": "Success",
        }
        respx.post(ENDPOINT).mock(return_value=httpx.Response(200, json=body))

        result = await client.scrape(URL)

        assert result.success
        assert result.quality == "full"
        assert result.record.extract_data["sowing_depth"] == 0.25
        assert result.record.extract_data["spacing"] == 2
        assert result.record.extract_data["tags"] == ["root", 2024]
        assert result.fields_found == 2


class TestFailures:
    @respx.mock
    async def test_non_2xx(self, client):
        respx.post(ENDPOINT).mock(return_value=httpx.Response(502, text="bad gateway"))
        result = await client.scrape(URL)
        assert not result.success
        assert result.quality == "failed"
        assert result.error == "HTTP 502"
        assert result.record is None

    @respx.mock
    async def test_error_body_message_preferred(self, client):
        respx.post(ENDPOINT).mock(return_value=httpx.Response(422, json={"error": "blocked by vendor"}))
        result = await client.scrape(URL)
        assert not result.success
        assert result.error == "blocked by vendor"

    @respx.mock
    async def test_truthy_error_on_200(self, client):
        respx.post(ENDPOINT).mock(return_value=httpx.Response(200, json={**FULL_BODY, "error": "oops"}))
        result = await client.scrape(URL)
        assert not result.success
        assert result.quality == "failed"

    @respx.mock
    async def test_non_object_body(self, client):
        respx.post(ENDPOINT).mock(return_value=httpx.Response(200, json=["not", "an", "object"]))
        result = await client.scrape(URL)
        assert not result.success

    @respx.mock
    async def test_unparsable_body(self, client):
        respx.post(ENDPOINT).mock(return_value=httpx.Response(200, text="<html>"))
        result = await client.scrape(URL)
        assert not result.success

    @respx.mock
    async def test_failed_status_is_failure(self, client):
        respx.post(ENDPOINT).mock(
            return_value=httpx.Response(200, json={"plant_name": "Pea", "scrape_status": "Failed"})
        )
        result = await client.scrape(URL)
        assert not result.success
        assert result.quality == "failed"

    @respx.mock
    async def test_timeout_is_failure(self, client):
        respx.post(ENDPOINT).mock(side_effect=httpx.ReadTimeout("slow"))
        result = await client.scrape(URL)
        assert not result.success
        assert "Timed out" in result.error

    @respx.mock
    async def test_transport_error_is_failure(self, client):
        respx.post(ENDPOINT).mock(side_effect=httpx.ConnectError("refused"))
        result = await client.scrape(URL)
        assert not result.success
        assert "Request error" in result.error

    @respx.mock
    async def test_malformed_field_is_failure(self, client):
        body = {"plant_name": {"en": "Kale"}, "scrape_status": "Success"}
        respx.post(ENDPOINT).mock(return_value=httpx.Response(200, json=body))
        result = await client.scrape(URL)
        assert not result.success
        assert "Malformed" in result.error
