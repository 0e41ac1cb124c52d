"""
Content Cache for Lungcat.

One slot per (user, content type, language). An entry is served until it
is older than its content type's TTL, or until the user's streak has moved
far enough from the snapshot taken at generation time that the cached
message is no longer relevant.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from lungcat.config import SUPPORTED_LANGUAGES, UsageLimits, get_limits
from lungcat.errors import PersistenceError
from lungcat.models import (
    CacheEntry,
    Content,
    ContentType,
    ProgressSnapshot,
    utc_now,
)
from lungcat.storage import KeyValueStore, InMemoryStore, CACHE_KEY_PREFIX, cache_key

logger = logging.getLogger(__name__)


class ContentCache:
    """
    Age- and progress-aware cache of generated content.

    Example:
        ```python
        cache = ContentCache(store)
        entry = cache.get("user_123", ContentType.MOTIVATION, "en", user.snapshot())
        if entry is None:
            text = generate(...)
            cache.set("user_123", ContentType.MOTIVATION, "en",
                      TextContent(text), user.snapshot(), tokens_used=180, cost=0.0007)
        ```
    """

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        limits: Optional[UsageLimits] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store if store is not None else InMemoryStore()
        self.limits = limits or get_limits()
        self._clock = clock

    def ttl_for(self, content_type: ContentType) -> timedelta:
        """Maximum age an entry of this type may be served at."""
        if content_type == ContentType.MOTIVATION:
            return timedelta(days=self.limits.motivation_cache_days)
        if content_type == ContentType.MISSION:
            return timedelta(days=self.limits.mission_cache_days)
        return timedelta(hours=self.limits.default_cache_ttl_hours)

    def get(
        self,
        user_id: str,
        content_type: ContentType,
        language: str,
        current_context: ProgressSnapshot,
    ) -> Optional[CacheEntry]:
        """
        Return the cached entry if it is still valid, else None.

        An entry is invalid when its age exceeds the TTL or when the streak
        delta since generation reaches the progress threshold. Unreadable or
        corrupt entries are treated as a miss.
        """
        key = cache_key(user_id, content_type.value, language)
        try:
            doc = self.store.get(key)
        except PersistenceError as exc:
            logger.warning("Cache read failed for %s, treating as miss: %s", key, exc)
            return None
        if doc is None:
            return None

        try:
            entry = CacheEntry.from_dict(doc)
        except (KeyError, ValueError, TypeError) as exc:
            logger.warning("Corrupt cache entry %s, treating as miss: %s", key, exc)
            return None

        age = self._clock() - entry.timestamp
        max_age = self.ttl_for(content_type)
        if age > max_age:
            logger.info(
                "Cache expired for %s (%.1fh > %.1fh)",
                key, age.total_seconds() / 3600, max_age.total_seconds() / 3600,
            )
            return None

        delta = abs(current_context.streak - entry.user_context.streak)
        if delta >= self.limits.progress_invalidation_threshold:
            logger.info("Cache invalidated for %s due to significant progress (+%d days)", key, delta)
            return None

        logger.debug("Cache hit for %s", key)
        return entry

    def set(
        self,
        user_id: str,
        content_type: ContentType,
        language: str,
        content: Content,
        user_context: ProgressSnapshot,
        tokens_used: int = 0,
        cost: float = 0.0,
    ) -> CacheEntry:
        """Overwrite the slot for (user, type, language). Write failures are logged."""
        entry = CacheEntry(
            user_id=user_id,
            content_type=content_type,
            language=language,
            content=content,
            timestamp=self._clock(),
            user_context=user_context,
            tokens_used=tokens_used,
            cost=cost,
        )
        key = cache_key(user_id, content_type.value, language)
        try:
            self.store.set(key, entry.to_dict())
            logger.info("Cached %s - tokens=%d cost=$%.6f", key, tokens_used, cost)
        except PersistenceError as exc:
            logger.error("Cache write failed for %s: %s", key, exc)
        return entry

    def clear(self, user_id: str, content_type: ContentType, language: str) -> bool:
        """Drop one slot. Returns True if it existed."""
        key = cache_key(user_id, content_type.value, language)
        try:
            return self.store.delete(key)
        except PersistenceError as exc:
            logger.error("Cache clear failed for %s: %s", key, exc)
            return False

    def clear_user(self, user_id: str) -> int:
        """Drop every slot belonging to a user, e.g. after a language change."""
        removed = 0
        for content_type in ContentType:
            for language in SUPPORTED_LANGUAGES:
                if self.store.delete(cache_key(user_id, content_type.value, language)):
                    removed += 1
        return removed

    def evict_expired(self) -> int:
        """
        Delete every entry older than its TTL.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        removed = 0
        for key in self.store.keys(CACHE_KEY_PREFIX):
            doc = self.store.get(key)
            if doc is None:
                continue
            try:
                entry = CacheEntry.from_dict(doc)
            except (KeyError, ValueError, TypeError):
                self.store.delete(key)
                removed += 1
                continue
            if now - entry.timestamp > self.ttl_for(entry.content_type):
                self.store.delete(key)
                removed += 1
        if removed:
            logger.info("Evicted %d expired cache entries", removed)
        return removed
