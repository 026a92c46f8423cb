"""
TikTok oEmbed Client
====================

Looks up public metadata (title, thumbnail) for a TikTok video so a pasted
link can still show a card when the video is not in the catalog yet.

FALLBACK BEHAVIOR:
- Network error, non-2xx status or malformed JSON: returns None
"""

import logging
from typing import Optional

import requests

from ..config import get_settings

logger = logging.getLogger(__name__)


class OEmbedClient:
    """
    Thin wrapper around TikTok's public oEmbed endpoint.

    USAGE:
        client = OEmbedClient()
        meta = client.fetch("https://www.tiktok.com/@user/video/123")
        print(meta["title"] if meta else "not found")
    """

    def __init__(self, session: Optional[requests.Session] = None):
        settings = get_settings()
        self._endpoint = settings.tiktok.oembed_url
        self._user_agent = settings.tiktok.user_agent
        self._timeout = settings.tiktok.timeout_seconds
        self._session = session or requests.Session()

    def fetch(self, video_url: str) -> Optional[dict]:
        """
        Fetch oEmbed metadata for a TikTok video URL.

        Returns:
            Parsed oEmbed JSON dict, or None if unavailable.
        """
        try:
            response = self._session.get(
                self._endpoint,
                params={"url": video_url},
                headers={"User-Agent": self._user_agent},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"oEmbed request failed for {video_url}: {e}")
            return None

        if not response.ok:
            logger.warning(f"oEmbed returned {response.status_code} for {video_url}")
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning(f"oEmbed returned invalid JSON for {video_url}")
            return None

        if not isinstance(data, dict):
            return None
        return data
