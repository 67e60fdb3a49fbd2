# src/storage/cache_store.py

"""Opaque key -> JSON blob cache with a staleness check."""

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Any, Protocol

from src.config.settings import Settings

logger = logging.getLogger("protein_match.cache")


class CacheStore(Protocol):
    """What the search service needs from a cache backend."""

    def get(self, key: str) -> dict[str, Any] | None: ...

    def set(self, key: str, blob: dict[str, Any]) -> None: ...

    def is_fresh(self, key: str, max_age_ms: int) -> bool: ...

    def timestamp(self, key: str) -> float | None: ...


def _is_fresh(stored_at: float | None, max_age_ms: int) -> bool:
    if stored_at is None:
        return False
    return (time.time() - stored_at) * 1000 < max_age_ms


class MemoryCacheStore:
    """Process-local cache; contents vanish with the process."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[float, dict[str, Any]]] = {}

    def get(self, key: str) -> dict[str, Any] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        # Round-trip through JSON so callers never share the stored object
        return json.loads(json.dumps(entry[1]))

    def set(self, key: str, blob: dict[str, Any]) -> None:
        self._entries[key] = (time.time(), json.loads(json.dumps(blob)))
        logger.debug("Cached blob under '%s' (memory)", key)

    def timestamp(self, key: str) -> float | None:
        entry = self._entries.get(key)
        return entry[0] if entry else None

    def is_fresh(self, key: str, max_age_ms: int) -> bool:
        return _is_fresh(self.timestamp(key), max_age_ms)

    def clear(self) -> int:
        """Purge all entries and return how many were removed."""
        count = len(self._entries)
        self._entries.clear()
        logger.info("Cache manually purged (%d entries removed)", count)
        return count


class FileCacheStore:
    """One JSON file per key under ``cache/``, wrapped with a timestamp.

    File layout: ``{"key": ..., "timestamp": <epoch secs>, "data": {...}}``.
    """

    def __init__(self, cache_dir: Path | None = None) -> None:
        self.cache_dir: Path = cache_dir or Settings.CACHE_DIR
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("FileCacheStore initialised, cache_dir=%s", self.cache_dir)

    def _path(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:16]
        return self.cache_dir / f"{digest}.json"

    def _read(self, key: str) -> dict[str, Any] | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                envelope: dict[str, Any] = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Unreadable cache file %s: %s", path, exc)
            return None
        if envelope.get("key") != key:
            return None
        return envelope

    def get(self, key: str) -> dict[str, Any] | None:
        envelope = self._read(key)
        if envelope is None:
            return None
        data: dict[str, Any] = envelope.get("data") or {}
        return data

    def set(self, key: str, blob: dict[str, Any]) -> None:
        path = self._path(key)
        envelope = {"key": key, "timestamp": time.time(), "data": blob}
        with open(path, "w", encoding="utf-8") as f:
            json.dump(envelope, f, ensure_ascii=False, indent=2)
        logger.info("Cached blob under '%s' at %s", key, path)

    def timestamp(self, key: str) -> float | None:
        envelope = self._read(key)
        if envelope is None:
            return None
        try:
            return float(envelope["timestamp"])
        except (KeyError, TypeError, ValueError):
            return None

    def is_fresh(self, key: str, max_age_ms: int) -> bool:
        return _is_fresh(self.timestamp(key), max_age_ms)
