from .review_store import (
    Review,
    ReviewStore,
    StoreConfigurationError,
    StoreError,
    build_search_filter,
)

__all__ = [
    "Review",
    "ReviewStore",
    "StoreConfigurationError",
    "StoreError",
    "build_search_filter",
]
