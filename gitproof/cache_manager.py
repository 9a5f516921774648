"""On-disk cache of enrichment responses"""

import hashlib
import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, Tuple, Union

logger = logging.getLogger(__name__)


class CacheManager:
    """Provider responses keyed by the request that produced them

    Each entry is one JSON file named after the sha256 of the request. Entries
    older than ``ttl_days`` are treated as misses and removed when read.
    """

    def __init__(self, cache_dir: Optional[Union[str, Path]] = None, ttl_days: int = 7,
                 clock: Optional[Callable[[], datetime]] = None):
        if cache_dir is None:
            cache_dir = Path.home() / ".gitproof" / "cache"
        self.cache_dir = Path(cache_dir).expanduser()
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.ttl = timedelta(days=ttl_days)
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    @staticmethod
    def request_key(prompt: str, system_prompt: Optional[str], provider: str,
                    model: Optional[str]) -> str:
        request = {
            "prompt": prompt,
            "system_prompt": system_prompt,
            "provider": provider,
            "model": model,
        }
        return hashlib.sha256(json.dumps(request, sort_keys=True).encode("utf-8")).hexdigest()

    def lookup(self, key: str) -> Optional[str]:
        """Cached response text for ``key``, or None on a miss"""
        path = self._path(key)
        if not path.exists():
            return None

        try:
            entry, stored_at = self._load(path)
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Discarding unreadable cache entry %s: %s", path.name, e)
            path.unlink(missing_ok=True)
            return None

        if self._expired(stored_at):
            logger.debug("Cache entry %s expired", path.name)
            path.unlink(missing_ok=True)
            return None
        return entry["response"]

    def store(self, key: str, response: str, provider: Optional[str] = None,
              model: Optional[str] = None) -> None:
        entry = {
            "response": response,
            "provider": provider,
            "model": model,
            "stored_at": self.clock().isoformat(),
        }
        path = self._path(key)
        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(entry, f, indent=2)
        except OSError as e:
            # A failed write only costs a repeated provider call
            logger.warning("Could not write cache entry %s: %s", path.name, e)

    def prune(self) -> int:
        """Delete expired and unreadable entries; returns how many were removed"""
        removed = 0
        for path in self._entries():
            try:
                _, stored_at = self._load(path)
                stale = self._expired(stored_at)
            except (OSError, ValueError, KeyError, TypeError):
                stale = True
            if stale:
                path.unlink(missing_ok=True)
                removed += 1
        return removed

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    def _entries(self) -> Iterator[Path]:
        return iter(sorted(self.cache_dir.glob("*.json")))

    def _load(self, path: Path) -> Tuple[Dict[str, Any], datetime]:
        with open(path, 'r', encoding='utf-8') as f:
            entry = json.load(f)
        if not isinstance(entry, dict) or not isinstance(entry.get("response"), str):
            raise ValueError("entry has no response text")
        stored_at = datetime.fromisoformat(entry["stored_at"])
        if stored_at.tzinfo is None:
            stored_at = stored_at.replace(tzinfo=timezone.utc)
        return entry, stored_at

    def _expired(self, stored_at: datetime) -> bool:
        return self.clock() - stored_at > self.ttl
