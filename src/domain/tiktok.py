"""
TikTok URL helpers
==================

Host detection and tracking-parameter cleanup shared by the link resolver,
the review input parser and catalog search.
"""

import re
from typing import Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

TIKTOK_DOMAIN = "tiktok.com"

# Share-sheet noise TikTok appends to copied links
TRACKING_PARAMS = (
    "is_from_webapp",
    "sender_device",
    "sender_web_id",
    "utm_source",
    "utm_medium",
    "utm_campaign",
)

# Placeholder shown in the search box in place of a pasted TikTok link
TIKTOK_TOKEN = "tiktok>"
TIKTOK_URL_RE = re.compile(
    r"\bhttps?://(?:www\.)?(?:m\.)?(?:vt\.)?tiktok\.com/\S+", re.IGNORECASE
)


def is_tiktok_host(hostname: Optional[str]) -> bool:
    """True for tiktok.com itself or any of its subdomains."""
    if not hostname:
        return False
    host = hostname.lower().rstrip(".")
    return host == TIKTOK_DOMAIN or host.endswith("." + TIKTOK_DOMAIN)


def rewrite_query(url: str, drop=(), set_params: Optional[dict] = None) -> str:
    """
    Remove `drop` keys from the query string and set `set_params`.

    Remaining parameters keep their order; a set parameter replaces the first
    occurrence of its key and removes the rest, otherwise it is appended.
    """
    parts = urlsplit(url)
    set_params = set_params or {}
    pairs = []
    placed = set()
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key in drop:
            continue
        if key in set_params:
            if key in placed:
                continue
            value = set_params[key]
            placed.add(key)
        pairs.append((key, value))
    for key, value in set_params.items():
        if key not in placed:
            pairs.append((key, value))
    return urlunsplit(parts._replace(query=urlencode(pairs)))


def normalize_tiktok_url(url: str) -> str:
    """Strip share tracking parameters so the same video always matches."""
    return rewrite_query(url, drop=TRACKING_PARAMS)


def extract_tiktok_url(text: str) -> Tuple[str, Optional[str]]:
    """
    Pull the first TikTok link out of free search text.

    Returns (display_text, normalized_url); the link is replaced by
    TIKTOK_TOKEN in the display text. (text, None) when there is no usable link.
    """
    match = TIKTOK_URL_RE.search(text or "")
    if not match:
        return text, None

    raw = match.group(0).strip("\"'")
    try:
        parts = urlsplit(raw)
        if not parts.hostname:
            return text, None
    except ValueError:
        return text, None

    display = TIKTOK_URL_RE.sub(TIKTOK_TOKEN, text, count=1)
    display = re.sub(r"\s{2,}", " ", display).strip()
    return display, normalize_tiktok_url(raw)


def strip_token(text: str) -> str:
    return (text or "").replace(TIKTOK_TOKEN, "").strip()
