"""Tests for cache payload construction from scrape responses."""

from __future__ import annotations

import pytest

from vendorsweep.core.quality import Quality
from vendorsweep.core.scrape import (
    ScrapeResponse,
    build_cache_record,
    build_extract_data,
    build_identity_key,
    collect_scraped_fields,
    quality_from_status,
    vendor_from_url,
)


class TestVendorFromUrl:
    @pytest.mark.parametrize(
        "url,vendor",
        [
            ("https://www.JohnnySeeds.com/vegetables/tomato", "johnnyseeds.com"),
            ("https://shop.example.org/p/1", "shop.example.org"),
            ("http://example.com:8080/x", "example.com"),
            ("not a url", "unknown"),
        ],
    )
    def test_hostname_lowercased_without_www(self, url, vendor):
        assert vendor_from_url(url) == vendor


class TestIdentityKey:
    def test_type_and_variety(self):
        r = ScrapeResponse(plant_name="  Tomato ", variety_name="Cherokee  Purple")
        assert build_identity_key(r) == "tomato_cherokee_purple"

    def test_falls_back_to_og_title(self):
        r = ScrapeResponse(ogTitle="Sweet Basil")
        assert build_identity_key(r) == "sweet_basil"

    def test_variety_only(self):
        assert build_identity_key(ScrapeResponse(variety_name="Genovese")) == "genovese"

    def test_unknown(self):
        assert build_identity_key(ScrapeResponse()) == "unknown"


class TestScrapedFields:
    def test_blank_and_nan_values_skipped(self):
        r = ScrapeResponse(
            sun="Full sun",
            water="   ",
            days_to_germination=float("nan"),
            harvest_days=65,
            latin_name="Ocimum basilicum",
        )
        assert collect_scraped_fields(r) == ["sun", "harvest_days", "latin_name"]


class TestQualityFromStatus:
    @pytest.mark.parametrize(
        "status,quality",
        [
            ("AI_SEARCH", Quality.AI_ONLY),
            ("Failed", Quality.FAILED),
            ("Success", Quality.FULL),
            ("Partial", Quality.PARTIAL),
            ("", Quality.PARTIAL),
            (None, Quality.PARTIAL),
        ],
    )
    def test_mapping(self, status, quality):
        assert quality_from_status(status) is quality


class TestExtractData:
    def test_absent_values_omitted(self):
        r = ScrapeResponse(plant_name="Pepper", sun="Full sun", stock_photo_url="https://img/x.jpg")
        data = build_extract_data("https://a.com/p", "a.com", r)

        assert data == {
            "type": "Pepper",
            "variety": "",
            "vendor": "a.com",
            "tags": [],
            "source_url": "https://a.com/p",
            "sun_requirement": "Full sun",
            "hero_image_url": "https://img/x.jpg",
        }

    def test_hero_prefers_image_url(self):
        r = ScrapeResponse(imageUrl="https://img/a.jpg", hero_image_url="https://img/b.jpg")
        record = build_cache_record("https://www.a.com/p", r)
        assert record.original_hero_url == "https://img/a.jpg"
        assert record.vendor == "a.com"
        assert record.scrape_quality == "partial"
