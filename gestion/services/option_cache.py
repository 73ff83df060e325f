"""Shared cache of dropdown option lists.

Forms that reference another resource (a product's brand, a batch's
product) read that resource's first page through :class:`OptionCache`.
Entries are keyed by API origin and resource key and expire after ``ttl``
seconds. Every entry has its own lock, so sessions asking for the same list
at the same time wait for a single request instead of each sending one.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from gestion.core.errors import ApiError

logger = logging.getLogger(__name__)

DEFAULT_TTL = 300  # seconds

Options = List[Dict[str, Any]]


@dataclass
class OptionEntry:
    rows: Optional[Options] = None
    loaded_at: Optional[float] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def is_fresh(self, now: float, ttl: float) -> bool:
        return self.rows is not None and self.loaded_at is not None and now - self.loaded_at < ttl


class OptionCache:
    def __init__(self, ttl: float = DEFAULT_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[Tuple[str, str], OptionEntry] = {}
        self._lock = threading.Lock()

    def entry(self, namespace: str, key: str) -> OptionEntry:
        with self._lock:
            return self._entries.setdefault((namespace, key), OptionEntry())

    def get(
        self,
        namespace: str,
        key: str,
        fetch: Callable[[], Options],
        *,
        force: bool = False,
    ) -> Options:
        """Return the options for ``key``, loading them when missing or expired.

        When a reload fails but an earlier list is cached, the earlier list
        is returned and the failure is only logged.
        """

        entry = self.entry(namespace, key)
        with entry.lock:
            now = self.clock()
            if not force and entry.is_fresh(now, self.ttl):
                return entry.rows  # type: ignore[return-value]
            try:
                rows = fetch()
            except ApiError as exc:
                if entry.rows is None:
                    raise
                logger.warning("Keeping cached %s options after failed reload: %s", key, exc)
                return entry.rows
            entry.rows, entry.loaded_at = rows, now
            logger.debug("Loaded %d %s options from %s", len(rows), key, namespace)
            return rows

    def clear(self, namespace: Optional[str] = None) -> None:
        with self._lock:
            for entry_key in list(self._entries):
                if namespace is None or entry_key[0] == namespace:
                    del self._entries[entry_key]


_cache = OptionCache()


def cached_options(
    namespace: str,
    key: str,
    fetch_func: Callable[[], Options],
    *,
    force: bool = False,
) -> Options:
    """Return option rows for ``key`` within ``namespace`` (the API origin)."""
    return _cache.get(namespace, key, fetch_func, force=force)


def clear_options(namespace: Optional[str] = None) -> None:
    _cache.clear(namespace)


__all__ = ["OptionCache", "cached_options", "clear_options"]
