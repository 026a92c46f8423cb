"""
MongoDB Review Store - Catalog Persistence
==========================================

Review documents live in a single MongoDB collection. The store is built once
by the web app's startup routine and handed to request handlers; the
MongoClient behind it is created lazily on first use, exactly once.
"""

import logging
import re
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, TEXT, MongoClient
from pymongo.errors import PyMongoError

from ..config.settings import MongoSettings

logger = logging.getLogger(__name__)

PROJECTION = {
    "title": 1,
    "platform": 1,
    "productImage": 1,
    "productGif": 1,
    "price": 1,
    "rating": 1,
    "tags": 1,
    "aliases": 1,
    "publishedAt": 1,
    "reviewUrl": 1,
    "affiliateUrl": 1,
    "pros": 1,
    "cons": 1,
}


class StoreError(Exception):
    """Base exception for review store failures."""
    pass


class StoreConfigurationError(StoreError):
    """The store cannot connect because it is not configured."""
    pass


def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class Review:
    """Review record from the catalog."""
    id: str
    title: str
    platform: str
    publishedAt: Optional[datetime]
    reviewUrl: str
    affiliateUrl: str = ""
    productImage: Optional[str] = None
    productGif: Optional[str] = None
    price: Optional[str] = None
    rating: Optional[float] = None
    tags: List[str] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)
    pros: List[str] = field(default_factory=list)
    cons: List[str] = field(default_factory=list)

    @classmethod
    def from_document(cls, doc: dict) -> "Review":
        return cls(
            id=str(doc["_id"]),
            title=doc.get("title", ""),
            platform=doc.get("platform", ""),
            publishedAt=doc.get("publishedAt"),
            reviewUrl=doc.get("reviewUrl", ""),
            affiliateUrl=doc.get("affiliateUrl") or "",
            productImage=doc.get("productImage"),
            productGif=doc.get("productGif"),
            price=doc.get("price"),
            rating=doc.get("rating"),
            tags=list(doc.get("tags") or []),
            aliases=list(doc.get("aliases") or []),
            pros=list(doc.get("pros") or []),
            cons=list(doc.get("cons") or []),
        )

    def to_json(self) -> Dict[str, Any]:
        """API shape: `_id` string, ISO dates, unset optionals omitted."""
        data = {
            "_id": self.id,
            "title": self.title,
            "platform": self.platform,
            "publishedAt": _iso(self.publishedAt),
            "reviewUrl": self.reviewUrl,
            "affiliateUrl": self.affiliateUrl,
            "tags": self.tags,
            "aliases": self.aliases,
            "pros": self.pros,
            "cons": self.cons,
        }
        for key in ("productImage", "productGif", "price", "rating"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


def build_search_filter(q: str = "", tags: Optional[List[str]] = None, review_url: Optional[str] = None) -> dict:
    """
    Catalog filter: `q` is a case-insensitive literal substring over title,
    aliases and tags; every tag in `tags` must be present.
    """
    where: Dict[str, Any] = {}
    if review_url:
        where["reviewUrl"] = review_url
    if q:
        pattern = {"$regex": re.escape(q), "$options": "i"}
        where["$or"] = [
            {"title": pattern},
            {"aliases": pattern},
            {"tags": pattern},
        ]
    if tags:
        where["tags"] = {"$all": list(tags)}
    return where


class ReviewStore:
    """
    MongoDB repository for reviews.

    Usage:
        store = ReviewStore(get_settings().mongo)
        store.ensure_indexes()

        review_id = store.insert({"title": "...", ...})
        latest = store.find(build_search_filter(q="serum"), limit=36)
    """

    def __init__(self, settings: MongoSettings, client: Optional[MongoClient] = None):
        self._settings = settings
        self._client = client
        self._collection = None
        self._lock = threading.Lock()

    def _get_collection(self):
        """Create the client and resolve the collection once, under the lock."""
        if self._collection is not None:
            return self._collection

        with self._lock:
            if self._collection is None:
                if self._client is None:
                    if not self._settings.uri:
                        raise StoreConfigurationError("Missing MONGODB_URI")
                    self._client = MongoClient(
                        self._settings.uri,
                        maxPoolSize=self._settings.max_pool_size,
                        serverSelectionTimeoutMS=self._settings.server_selection_timeout_ms,
                        tz_aware=True,
                    )
                    logger.info(f"MongoDB client created (db={self._settings.database})")
                self._collection = self._client[self._settings.database][self._settings.collection]
        return self._collection

    @contextmanager
    def _reviews(self):
        """Yield the reviews collection, wrapping driver errors in StoreError."""
        collection = self._get_collection()
        try:
            yield collection
        except PyMongoError as e:
            logger.error(f"MongoDB operation failed: {e}")
            raise StoreError(str(e)) from e

    def close(self):
        with self._lock:
            if self._client is not None:
                self._client.close()
            self._client = None
            self._collection = None

    @staticmethod
    def is_valid_id(review_id: str) -> bool:
        return ObjectId.is_valid(review_id)

    def ensure_indexes(self):
        """Create catalog indexes (idempotent)."""
        with self._reviews() as reviews:
            reviews.create_index([("title", TEXT)])
            reviews.create_index([("aliases", ASCENDING)])
            reviews.create_index([("tags", ASCENDING), ("publishedAt", DESCENDING)])
        logger.info("Review indexes ensured")

    # ── Queries ────────────────────────────────────────────────────

    def find(self, where: Optional[dict] = None, limit: int = 36) -> List[Review]:
        """Newest first, at most `limit` reviews."""
        with self._reviews() as reviews:
            cursor = (
                reviews.find(where or {}, PROJECTION)
                .sort("publishedAt", DESCENDING)
                .limit(limit)
            )
            return [Review.from_document(doc) for doc in cursor]

    def get_by_id(self, review_id: str) -> Optional[Review]:
        if not self.is_valid_id(review_id):
            return None
        with self._reviews() as reviews:
            doc = reviews.find_one({"_id": ObjectId(review_id)}, PROJECTION)
            return Review.from_document(doc) if doc else None

    # ── Writes ─────────────────────────────────────────────────────

    def insert(self, fields: dict) -> str:
        """Insert a validated review document and return its id."""
        now = datetime.now(timezone.utc)
        doc = dict(fields, createdAt=now, updatedAt=now)
        with self._reviews() as reviews:
            result = reviews.insert_one(doc)
        logger.info(f"Review created: {result.inserted_id}")
        return str(result.inserted_id)

    def update_by_id(self, review_id: str, fields: dict) -> bool:
        """$set the given fields. Returns True if a review matched."""
        with self._reviews() as reviews:
            result = reviews.update_one(
                {"_id": ObjectId(review_id)},
                {"$set": dict(fields, updatedAt=datetime.now(timezone.utc))},
            )
        logger.info(f"Review updated: {review_id} ({', '.join(fields) or 'no fields'})")
        return result.matched_count > 0

    def delete_by_id(self, review_id: str) -> bool:
        with self._reviews() as reviews:
            result = reviews.delete_one({"_id": ObjectId(review_id)})
        logger.info(f"Review deleted: {review_id}")
        return result.deleted_count > 0
