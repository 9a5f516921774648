"""Leaderboard store for scored profiles"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Any, List, Optional, Union

from .errors import PersistenceError
from .models import ProfileAnalysis

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50


def build_entry(analysis: ProfileAnalysis, search_count: int = 1,
                updated_at: Optional[str] = None) -> Dict[str, Any]:
    """Persisted record for a scored profile"""
    return {
        "username": analysis.username,
        "name": analysis.full_name,
        "avatar_url": analysis.record.avatar_url,
        "score": analysis.result.score,
        "grade": analysis.result.grade,
        "search_count": search_count,
        "updated_at": updated_at or analysis.scanned_at,
        "raw_data": analysis.to_dict(),
    }


def rank_entries(entries: List[Dict[str, Any]], limit: int = DEFAULT_LIMIT) -> List[Dict[str, Any]]:
    """Order by score then search count, both descending, tagging 1-based ranks"""
    ordered = sorted(
        entries,
        key=lambda e: (e.get("score", 0), e.get("search_count", 0)),
        reverse=True,
    )
    return [dict(entry, rank=index) for index, entry in enumerate(ordered[:limit], start=1)]


def _previous_searches(entry: Optional[Dict[str, Any]], path: Path) -> int:
    if not entry:
        return 0
    try:
        return int(entry.get("search_count", 0))
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"Leaderboard {path} has a bad search count for {entry.get('username')}: {e}") from e


class LeaderboardStore:
    """JSON file of leaderboard entries keyed by username"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read leaderboard {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"Leaderboard {self.path} is not a JSON object")
        malformed = [name for name, entry in data.items() if not isinstance(entry, dict)]
        if malformed:
            raise PersistenceError(f"Leaderboard {self.path} has malformed entries: {', '.join(malformed)}")
        return data

    def _write(self, data: Dict[str, Dict[str, Any]]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceError(f"Cannot write leaderboard {self.path}: {e}") from e

    def save(self, analysis: ProfileAnalysis) -> Dict[str, Any]:
        """Upsert a profile, incrementing its search count"""
        with self._lock:
            data = self._read()
            existing = data.get(analysis.username)
            search_count = _previous_searches(existing, self.path) + 1
            entry = build_entry(analysis, search_count=search_count)
            data[analysis.username] = entry
            self._write(data)
        logger.debug("Saved %s to leaderboard (searches=%d)", analysis.username, search_count)
        return entry

    def get(self, username: str) -> Optional[Dict[str, Any]]:
        return self._read().get(username)

    def top(self, limit: int = DEFAULT_LIMIT) -> List[Dict[str, Any]]:
        """Ranked entries without the raw profile blob"""
        entries = [
            {key: value for key, value in entry.items() if key != "raw_data"}
            for entry in self._read().values()
        ]
        try:
            return rank_entries(entries, limit)
        except TypeError as e:
            raise PersistenceError(f"Leaderboard {self.path} has non-numeric scores: {e}") from e
