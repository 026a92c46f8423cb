"""
Catalog Search - Public Review Lookup
=====================================

Orchestrates the public search used by both `/api/reviews` and the home page:

1. A pasted TikTok link narrows the search to that exact video
2. If the video is not in the catalog (and nothing else was asked for),
   TikTok's oEmbed metadata is used to show a temporary card
3. Otherwise: plain text/tag search, newest first

No business rules live here beyond choosing which lookup to run and how long
browsers may cache the answer.
"""

import base64
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import urlsplit

from src.domain.tiktok import is_tiktok_host, normalize_tiktok_url
from src.infrastructure.persistence import Review, ReviewStore, build_search_filter
from src.infrastructure.tiktok import OEmbedClient

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 36
MAX_LIMIT = 100

CACHE_RESULTS = "public, max-age=30, stale-while-revalidate=60"
CACHE_EMPTY = "public, max-age=15"


@dataclass
class SearchResult:
    reviews: List[Review]
    cache_control: str

    def to_json(self) -> dict:
        return {"data": [r.to_json() for r in self.reviews]}


def parse_limit(raw: Optional[str]) -> int:
    """Leading integer of `raw`, capped at MAX_LIMIT; anything unusable means DEFAULT_LIMIT."""
    match = re.match(r"\s*\+?(\d+)", raw or "")
    if not match or int(match.group(1)) < 1:
        return DEFAULT_LIMIT
    return min(int(match.group(1)), MAX_LIMIT)


def parse_tags(raw: Optional[str]) -> List[str]:
    return [t for t in (raw or "").split(",") if t]


def clean_pasted_url(raw: Optional[str]) -> str:
    return re.sub(r"^[\"']|[\"']$", "", (raw or "").strip())


def placeholder_id(video_url: str) -> str:
    return "tiktok:" + base64.urlsafe_b64encode(video_url.encode()).decode().rstrip("=")[:24]


class CatalogService:
    """
    Public catalog queries.

    USAGE:
        catalog = CatalogService(store, OEmbedClient())
        result = catalog.search(q="sunscreen", tags=["skincare"])
        result.to_json()  # {"data": [...]}
    """

    def __init__(self, store: ReviewStore, oembed: Optional[OEmbedClient] = None):
        self._store = store
        self._oembed = oembed or OEmbedClient()

    def search(
        self,
        q: str = "",
        tags: Optional[List[str]] = None,
        limit: int = DEFAULT_LIMIT,
        tiktok_url: str = "",
    ) -> SearchResult:
        q = (q or "").strip()
        tags = tags or []

        video_url = self._tiktok_video_url(tiktok_url)
        if video_url:
            return self._search_video(video_url, q, tags, limit)

        reviews = self._store.find(build_search_filter(q, tags), limit=limit)
        return SearchResult(reviews, CACHE_RESULTS)

    def _tiktok_video_url(self, raw: str) -> Optional[str]:
        """Normalized TikTok URL, or None when `raw` is empty, malformed or not TikTok."""
        raw = clean_pasted_url(raw)
        if not raw:
            return None
        try:
            parts = urlsplit(raw)
            if not parts.scheme or not is_tiktok_host(parts.hostname):
                return None
        except ValueError:
            logger.debug(f"Ignoring malformed tiktokUrl: {raw!r}")
            return None
        return normalize_tiktok_url(raw)

    def _search_video(self, video_url: str, q: str, tags: List[str], limit: int) -> SearchResult:
        reviews = self._store.find(build_search_filter(q, tags, review_url=video_url), limit=limit)
        if reviews:
            return SearchResult(reviews, CACHE_RESULTS)

        # Extra filters that matched nothing: don't invent a card
        if q or tags:
            return SearchResult([], CACHE_EMPTY)

        placeholder = self._oembed_placeholder(video_url)
        if placeholder is None:
            return SearchResult([], CACHE_EMPTY)
        return SearchResult([placeholder], CACHE_RESULTS)

    def _oembed_placeholder(self, video_url: str) -> Optional[Review]:
        meta = self._oembed.fetch(video_url)
        if meta is None:
            return None

        logger.info(f"Catalog miss for {video_url}, using oEmbed metadata")
        return Review(
            id=placeholder_id(video_url),
            title=meta.get("title") or "TikTok Video",
            platform="tiktok",
            publishedAt=datetime.now(timezone.utc),
            reviewUrl=video_url,
            affiliateUrl="",
            productImage=meta.get("thumbnail_url") or None,
        )
