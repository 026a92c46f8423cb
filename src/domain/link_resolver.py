"""
Outbound Link Resolver
======================

Decides what `/go?u=...` does with an outbound link:

- redirect straight to the destination (most links),
- rewrite TikTok links to their browser-renderable "land page" variant,
- or, for TikTok coupon pages opened inside a social app's webview, hand
  back an interstitial so the user can break out to a real browser.

Every failure (missing target, unparseable URL, non-web scheme) falls back
to a redirect to the site root. Nothing here raises for bad input.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlsplit

from .tiktok import is_tiktok_host, rewrite_query

logger = logging.getLogger(__name__)

SITE_ROOT = "/"

ALLOWED_SCHEMES = ("http", "https")
SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
ILLEGAL_HOST_CHARS = frozenset(" \t\r\n<>\"{}|\\^`")

LAND_PAGE_PARAM = "use_land_page"
# These make TikTok's coupon page render blank inside in-app browsers
HIDDEN_BAR_PARAMS = ("hide_nav_bar", "hide_status_bar", "trans_status_bar")
COUPON_PATH_MARKERS = ("voucher", "linkshare")

PRODUCT_PAGE_URL = "https://www.tiktok.com/view/product"
PRODUCT_ID_PARAMS = ("product_id", "productId")
CHAIN_KEY_PARAM = "chain_key"

# Lowercase user-agent fragments of embedded browsers. Extend as new apps show up.
IN_APP_SIGNATURES = (
    "bytedancewebview",   # TikTok
    "musical_ly",         # TikTok (legacy app id)
    "tiktok",
    "instagram",
    "fban",               # Facebook iOS
    "fbav",               # Facebook iOS
    "fb_iab",             # Facebook Android
    " line/",             # LINE
    "twitter",            # Twitter / X
)


class ResolveFailure(Enum):
    """Why a link fell back to the site root."""
    MISSING_TARGET = "missing_target"
    UNPARSEABLE_URL = "unparseable_url"
    DISALLOWED_SCHEME = "disallowed_scheme"


@dataclass(frozen=True)
class Redirect:
    """Send the browser to `location` with a 302."""
    location: str
    failure: Optional[ResolveFailure] = None


@dataclass(frozen=True)
class Interstitial:
    """Render the open-in-browser page instead of redirecting."""
    coupon_url: str
    product_url: Optional[str] = None


Resolution = Union[Redirect, Interstitial]


def is_in_app_browser(user_agent: Optional[str]) -> bool:
    ua = (user_agent or "").lower()
    return any(sig in ua for sig in IN_APP_SIGNATURES)


def is_coupon_path(path: str) -> bool:
    path = (path or "").lower()
    return any(marker in path for marker in COUPON_PATH_MARKERS)


def decode_target(raw: str) -> str:
    """URL-decode once more; malformed UTF-8 escapes keep the raw string."""
    try:
        return unquote(raw, errors="strict")
    except UnicodeDecodeError:
        logger.debug("Could not decode link target, using it as-is")
        return raw


def absolutize(href: str) -> str:
    """Force an http(s) scheme onto schemeless and protocol-relative targets."""
    href = href.strip()
    if not SCHEME_RE.match(href):
        href = "https://" + href.lstrip("/")
    return href


def product_page_url(query: str) -> Optional[str]:
    """Build the TikTok product detail page URL from a coupon link's query, if it names a product."""
    params = dict(parse_qsl(query, keep_blank_values=True))
    product_id = next((params[k] for k in PRODUCT_ID_PARAMS if params.get(k)), None)
    if not product_id:
        return None

    pairs = [("scene", "pdp"), (LAND_PAGE_PARAM, "1")]
    if params.get(CHAIN_KEY_PARAM):
        pairs.append((CHAIN_KEY_PARAM, params[CHAIN_KEY_PARAM]))
    return f"{PRODUCT_PAGE_URL}/{quote(product_id, safe='')}?{urlencode(pairs)}"


def _fallback(reason: ResolveFailure) -> Redirect:
    logger.debug(f"Link fell back to site root: {reason.value}")
    return Redirect(SITE_ROOT, failure=reason)


def resolve(target: Optional[str], user_agent: str = "") -> Resolution:
    """
    Resolve an outbound link for the given client.

    Args:
        target: Raw `u` query value (already form-decoded once by the framework).
        user_agent: Requesting client's User-Agent header.

    Returns:
        Redirect or Interstitial.
    """
    if not target:
        return _fallback(ResolveFailure.MISSING_TARGET)

    href = absolutize(decode_target(target))

    try:
        parts = urlsplit(href)
        parts.port  # raises on a non-numeric or out-of-range port
    except ValueError:
        return _fallback(ResolveFailure.UNPARSEABLE_URL)

    hostname = parts.hostname
    if not hostname or ILLEGAL_HOST_CHARS.intersection(hostname):
        return _fallback(ResolveFailure.UNPARSEABLE_URL)

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        return _fallback(ResolveFailure.DISALLOWED_SCHEME)

    if not is_tiktok_host(hostname):
        return Redirect(href)

    land_page = rewrite_query(href, drop=HIDDEN_BAR_PARAMS, set_params={LAND_PAGE_PARAM: "1"})

    if not is_coupon_path(parts.path) or not is_in_app_browser(user_agent):
        return Redirect(land_page)

    logger.info(f"Serving open-in-browser page for TikTok coupon link: {parts.path}")
    return Interstitial(coupon_url=land_page, product_url=product_page_url(parts.query))
