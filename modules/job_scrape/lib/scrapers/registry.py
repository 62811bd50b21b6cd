from __future__ import annotations

from ..sites import FeedType
from .base import BaseExtractor

# Global in-process registry: feed type -> extractor class
_REGISTRY: dict[FeedType, type[BaseExtractor]] = {}


def register(cls: type[BaseExtractor]) -> type[BaseExtractor]:
    """
    Class decorator registering an extractor for its `feed_type`.
    Re-registering the same class is a no-op; a second class for the same
    feed type is rejected.
    """
    feed_type = getattr(cls, "feed_type", None)
    if not isinstance(feed_type, FeedType):
        raise ValueError(f"Cannot register extractor {cls!r}: missing 'feed_type'.")
    if feed_type in _REGISTRY and _REGISTRY[feed_type] is not cls:
        raise ValueError(f"Feed type {feed_type.value!r} already registered to {_REGISTRY[feed_type]!r}.")
    _REGISTRY[feed_type] = cls
    return cls


def get(feed_type: FeedType | str) -> type[BaseExtractor]:
    """
    Look up an extractor class by feed type (enum or its string value).
    Raises KeyError if not found.
    """
    try:
        key = FeedType(feed_type)
    except ValueError as e:
        raise KeyError(f"Unknown feed type {feed_type!r}.") from e
    if key not in _REGISTRY:
        raise KeyError(f"No extractor registered for feed type {key.value!r}.")
    return _REGISTRY[key]


def all_feed_types() -> dict[FeedType, type[BaseExtractor]]:
    return dict(_REGISTRY)
