"""Tests for src.application.catalog."""

from datetime import datetime, timezone

import pytest

from src.application.catalog import (
    CACHE_EMPTY,
    CACHE_RESULTS,
    CatalogService,
    clean_pasted_url,
    parse_limit,
    parse_tags,
    placeholder_id,
)
from tests.conftest import FakeOEmbed

VIDEO = "https://www.tiktok.com/@reviewer/video/111"


def seed(store, title, review_url=VIDEO, tags=None, day=1):
    return store.insert({
        "title": title,
        "platform": "tiktok",
        "publishedAt": datetime(2024, 5, day, tzinfo=timezone.utc),
        "reviewUrl": review_url,
        "affiliateUrl": "",
        "tags": tags or [],
        "aliases": [],
        "pros": [],
        "cons": [],
    })


@pytest.mark.parametrize("raw,expected", [
    (None, 36),
    ("", 36),
    ("10", 10),
    ("12abc", 12),
    ("0", 36),
    ("-5", 36),
    ("abc", 36),
    ("500", 100),
])
def test_parse_limit(raw, expected):
    assert parse_limit(raw) == expected


def test_parse_tags():
    assert parse_tags("a,,b") == ["a", "b"]
    assert parse_tags(None) == []


def test_clean_pasted_url():
    assert clean_pasted_url(f' "{VIDEO}" ') == VIDEO
    assert clean_pasted_url(f"'{VIDEO}'") == VIDEO


def test_placeholder_id_is_stable():
    assert placeholder_id(VIDEO) == placeholder_id(VIDEO)
    assert placeholder_id(VIDEO).startswith("tiktok:")
    assert len(placeholder_id(VIDEO)) == len("tiktok:") + 24


class TestSearch:

    def test_text_search(self, store):
        seed(store, "Serum", review_url="https://youtu.be/1")
        seed(store, "Mouse", review_url="https://youtu.be/2")
        result = CatalogService(store, FakeOEmbed()).search(q=" serum ")
        assert [r.title for r in result.reviews] == ["Serum"]
        assert result.cache_control == CACHE_RESULTS

    def test_empty_text_search_still_cacheable(self, store):
        result = CatalogService(store, FakeOEmbed()).search(q="nothing")
        assert result.reviews == []
        assert result.cache_control == CACHE_RESULTS

    def test_limit(self, store):
        for day in range(1, 6):
            seed(store, f"R{day}", review_url=f"https://youtu.be/{day}", day=day)
        result = CatalogService(store, FakeOEmbed()).search(limit=2)
        assert [r.title for r in result.reviews] == ["R5", "R4"]

    def test_to_json(self, store):
        seed(store, "Serum")
        data = CatalogService(store, FakeOEmbed()).search().to_json()
        assert [r["title"] for r in data["data"]] == ["Serum"]


class TestTikTokLookup:

    def test_exact_video_match(self, store):
        seed(store, "Serum")
        seed(store, "Other", review_url="https://www.tiktok.com/@reviewer/video/222")
        oembed = FakeOEmbed({"title": "unused"})
        result = CatalogService(store, oembed).search(tiktok_url=VIDEO + "?is_from_webapp=1&sender_device=pc")
        assert [r.title for r in result.reviews] == ["Serum"]
        assert result.cache_control == CACHE_RESULTS
        assert oembed.calls == []

    def test_quoted_url_accepted(self, store):
        seed(store, "Serum")
        result = CatalogService(store, FakeOEmbed()).search(tiktok_url=f'"{VIDEO}"')
        assert [r.title for r in result.reviews] == ["Serum"]

    def test_miss_uses_oembed_placeholder(self, store):
        oembed = FakeOEmbed({"title": "Cool video", "thumbnail_url": "https://p16.tiktokcdn.com/t.jpg"})
        result = CatalogService(store, oembed).search(tiktok_url=VIDEO)
        assert oembed.calls == [VIDEO]
        assert result.cache_control == CACHE_RESULTS
        [card] = result.reviews
        assert card.id == placeholder_id(VIDEO)
        assert card.title == "Cool video"
        assert card.platform == "tiktok"
        assert card.reviewUrl == VIDEO
        assert card.productImage == "https://p16.tiktokcdn.com/t.jpg"

    def test_placeholder_default_title(self, store):
        result = CatalogService(store, FakeOEmbed({})).search(tiktok_url=VIDEO)
        assert result.reviews[0].title == "TikTok Video"
        assert result.reviews[0].productImage is None

    def test_miss_without_oembed(self, store):
        result = CatalogService(store, FakeOEmbed(None)).search(tiktok_url=VIDEO)
        assert result.reviews == []
        assert result.cache_control == CACHE_EMPTY

    def test_miss_with_extra_filters_skips_oembed(self, store):
        seed(store, "Serum", tags=["skincare"])
        oembed = FakeOEmbed({"title": "x"})
        result = CatalogService(store, oembed).search(tags=["tech"], tiktok_url=VIDEO)
        assert result.reviews == []
        assert result.cache_control == CACHE_EMPTY
        assert oembed.calls == []

    @pytest.mark.parametrize("raw", [
        "www.tiktok.com/@a/video/1",
        "https://youtube.com/watch?v=1",
        "https://[broken",
        "",
    ])
    def test_non_tiktok_urls_ignored(self, store, raw):
        seed(store, "Serum")
        oembed = FakeOEmbed({"title": "x"})
        result = CatalogService(store, oembed).search(tiktok_url=raw)
        assert [r.title for r in result.reviews] == ["Serum"]
        assert oembed.calls == []
