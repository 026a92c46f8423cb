"""
Review Input Parsing
====================

Turns untrusted JSON / form payloads into clean review documents.

ARCHITECTURAL DECISION:
- Plain parse functions returning a tagged result (Parsed | Invalid)
  instead of raising, so handlers branch on `result.ok`
- Coercions mirror what the admin form sends: numeric strings for rating,
  "" for "not set", ISO strings or epoch milliseconds for dates
- Unknown keys are dropped
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Union
from urllib.parse import urlsplit

from .tiktok import is_tiktok_host, normalize_tiktok_url

PLATFORMS = ("tiktok", "youtube", "reels")
LIST_FIELDS = ("tags", "aliases", "pros", "cons")
MEDIA_FIELDS = ("productImage", "productGif")
REQUIRED_ON_CREATE = ("title", "platform", "publishedAt", "reviewUrl")

HTTP_RE = re.compile(r"^https?://", re.IGNORECASE)


class _Absent:
    """Marker for 'field not supplied' (distinct from None)."""

    def __repr__(self):
        return "ABSENT"


ABSENT = _Absent()


@dataclass
class Parsed:
    value: Dict[str, Any]
    ok: bool = field(default=True, init=False)


@dataclass
class Invalid:
    issues: Dict[str, Any]
    ok: bool = field(default=False, init=False)


ParseResult = Union[Parsed, Invalid]


class FieldError(ValueError):
    """Raised by a single field parser; collected into Invalid.issues."""


# ── Coercion ───────────────────────────────────────────────────────

def absolutize_http(value):
    if not value or not isinstance(value, str) or HTTP_RE.match(value):
        return value
    return "https://" + value.lstrip("/")


def absolutize_media(value, media_base: str):
    if not value or not isinstance(value, str) or HTTP_RE.match(value):
        return value
    if value.startswith("/"):
        return media_base.rstrip("/") + value
    return value


def coerce(raw: dict, media_base: str, normalize_tiktok: bool = False) -> dict:
    """Fix up inputs the way the admin UI expects before validation."""
    data = dict(raw)

    for key in MEDIA_FIELDS:
        if key in data:
            data[key] = absolutize_media(data[key], media_base)
    if "reviewUrl" in data:
        data["reviewUrl"] = absolutize_http(data["reviewUrl"])
    if data.get("rating") == "":
        data["rating"] = ABSENT

    if normalize_tiktok and isinstance(data.get("reviewUrl"), str):
        try:
            if is_tiktok_host(urlsplit(data["reviewUrl"]).hostname):
                data["reviewUrl"] = normalize_tiktok_url(data["reviewUrl"])
        except ValueError:
            pass  # left for the url validator to report

    return data


# ── Field parsers ──────────────────────────────────────────────────

def is_url(value: str) -> bool:
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme and parts.netloc) and not any(c.isspace() for c in value)


def parse_title(value):
    if not isinstance(value, str):
        raise FieldError("Expected string")
    if not value:
        raise FieldError("String must contain at least 1 character(s)")
    return value


def parse_platform(value):
    if value not in PLATFORMS:
        raise FieldError(f"Invalid enum value. Expected {' | '.join(PLATFORMS)}")
    return value


def parse_optional_url(value):
    if value is None or value == "":
        return ABSENT
    return parse_url(value)


def parse_url(value):
    if not isinstance(value, str):
        raise FieldError("Expected string")
    if not is_url(value):
        raise FieldError("Invalid url")
    return value


def parse_string(value):
    if value is None:
        return ABSENT
    if not isinstance(value, str):
        raise FieldError("Expected string")
    return value


def parse_rating(value):
    if value is None or value == "":
        return ABSENT
    if isinstance(value, bool):
        raise FieldError("rating must be 0..5")
    if isinstance(value, str):
        try:
            value = float(value.strip() or "0")
        except ValueError:
            raise FieldError("rating must be 0..5")
    if not isinstance(value, (int, float)) or math.isnan(value) or not 0 <= value <= 5:
        raise FieldError("rating must be 0..5")
    return float(value)


def parse_string_list(value):
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise FieldError("Expected array of strings")
    return value


def parse_date(value) -> datetime:
    """Accept datetime, ISO-8601 string or epoch milliseconds; always returns aware UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise FieldError("publishedAt must be a valid date")
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise FieldError("publishedAt must be a valid date")
    else:
        raise FieldError("publishedAt must be a valid date")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


FIELD_PARSERS: Dict[str, Callable[[Any], Any]] = {
    "title": parse_title,
    "platform": parse_platform,
    "productImage": parse_optional_url,
    "productGif": parse_optional_url,
    "price": parse_string,
    "rating": parse_rating,
    "tags": parse_string_list,
    "aliases": parse_string_list,
    "publishedAt": parse_date,
    "reviewUrl": parse_url,
    "affiliateUrl": parse_string,
    "pros": parse_string_list,
    "cons": parse_string_list,
}


# ── Entry points ───────────────────────────────────────────────────

def _issues(form_errors: List[str], field_errors: Dict[str, List[str]]) -> dict:
    return {"formErrors": form_errors, "fieldErrors": field_errors}


def _parse_fields(data: dict, required=()) -> ParseResult:
    value: Dict[str, Any] = {}
    errors: Dict[str, List[str]] = {}

    for name, parser in FIELD_PARSERS.items():
        raw = data.get(name, ABSENT)
        if raw is ABSENT:
            if name in required:
                errors.setdefault(name, []).append("Required")
            continue
        try:
            parsed = parser(raw)
        except FieldError as e:
            errors.setdefault(name, []).append(str(e))
            continue
        if parsed is not ABSENT:
            value[name] = parsed

    if errors:
        return Invalid(_issues([], errors))
    return Parsed(value)


def parse_review_create(raw: Any, media_base: str) -> ParseResult:
    """Validate a new review. Lists default to [] and affiliateUrl to ""."""
    if not isinstance(raw, dict):
        return Invalid(_issues(["Expected object"], {}))

    result = _parse_fields(coerce(raw, media_base, normalize_tiktok=True), required=REQUIRED_ON_CREATE)
    if isinstance(result, Parsed):
        for name in LIST_FIELDS:
            result.value.setdefault(name, [])
        result.value.setdefault("affiliateUrl", "")
    return result


def parse_review_update(raw: Any, media_base: str) -> ParseResult:
    """Validate a partial update; only supplied fields end up in the result."""
    if not isinstance(raw, dict):
        return Invalid(_issues(["Expected object"], {}))
    return _parse_fields(coerce(raw, media_base))


def join_media(value: str, media_base: str) -> str:
    """Admin form media field -> absolute URL ('img/a.jpg' and '/img/a.jpg' both live under the media base)."""
    value = (value or "").strip()
    if not value or HTTP_RE.match(value):
        return value
    return media_base.rstrip("/") + "/" + value.lstrip("/")


def strip_media(url: str, media_base: str) -> str:
    """Inverse of join_media for prefilling the edit form."""
    base = media_base.rstrip("/")
    if not url:
        return ""
    if url.startswith(base):
        return url[len(base):] or "/"
    return url


def split_csv(text: str) -> List[str]:
    """'a, b,,c' -> ['a', 'b', 'c'] (admin form list inputs)."""
    return [part.strip() for part in (text or "").split(",") if part.strip()]
