from __future__ import annotations

import json
import logging
import math
import threading
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from keypace import config
from keypace.core.errors import SubmissionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeaderboardEntry:
    id: str
    username: str
    content_id: str
    wpm: float
    accuracy: float
    duration_seconds: int
    error_count: int
    correct_chars: int
    total_chars: int
    completed_at: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LeaderboardEntry":
        return cls(
            id=str(data["id"]),
            username=str(data["username"]),
            content_id=str(data["content_id"]),
            wpm=float(data["wpm"]),
            accuracy=float(data["accuracy"]),
            duration_seconds=int(data["duration_seconds"]),
            error_count=int(data["error_count"]),
            correct_chars=int(data["correct_chars"]),
            total_chars=int(data["total_chars"]),
            completed_at=str(data["completed_at"]),
        )


def _check_count(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise SubmissionError(f"{name} must be a non-negative integer")
    return value


def _check_number(name: str, value: object, upper: Optional[float] = None) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise SubmissionError(f"{name} must be a finite number")
    if value < 0 or (upper is not None and value > upper):
        raise SubmissionError(f"{name} is out of range: {value}")
    return float(value)


class LeaderboardStore:
    """Shared leaderboard persisted as JSON.

    Submissions arrive from a worker thread, so reads and writes go through a
    lock. Ordering is descending by the sort key; ties go to the earlier
    completion, then to the entry id, so listings are stable.
    """

    def __init__(self, file_path: Optional[Path] = None) -> None:
        self._file_path = Path(file_path) if file_path is not None else config.LEADERBOARD_FILE
        self._lock = threading.Lock()
        self._entries: List[LeaderboardEntry] = self._load()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def submit(
        self,
        username: str,
        content_id: str,
        wpm: float,
        accuracy: float,
        duration_seconds: int,
        error_count: int,
        correct_chars: int,
        total_chars: int,
    ) -> LeaderboardEntry:
        """Validate and store one finished session; raises SubmissionError."""
        name = (username or "").strip() if isinstance(username, str) else ""
        if not name:
            raise SubmissionError("username is required")
        if len(name) > config.MAX_USERNAME_LENGTH:
            raise SubmissionError(f"username is longer than {config.MAX_USERNAME_LENGTH} characters")
        if not isinstance(content_id, str) or not content_id:
            raise SubmissionError("content id is required")
        counts = {
            "duration_seconds": _check_count("duration_seconds", duration_seconds),
            "error_count": _check_count("error_count", error_count),
            "correct_chars": _check_count("correct_chars", correct_chars),
            "total_chars": _check_count("total_chars", total_chars),
        }
        if counts["correct_chars"] + counts["error_count"] != counts["total_chars"]:
            raise SubmissionError("correct_chars + error_count must equal total_chars")

        entry = LeaderboardEntry(
            id=str(uuid.uuid4()),
            username=name,
            content_id=content_id,
            wpm=round(_check_number("wpm", wpm), 2),
            accuracy=round(_check_number("accuracy", accuracy, upper=100.0), 2),
            completed_at=datetime.now(timezone.utc).isoformat(),
            **counts,
        )
        with self._lock:
            self._entries.append(entry)
            try:
                self._save()
            except OSError as e:
                self._entries.pop()
                raise SubmissionError(f"could not save leaderboard: {e}") from e
        logger.info("Leaderboard entry %s stored for %s (%.0f wpm)", entry.id, name, entry.wpm)
        return entry

    def list(self, sort_by: str = "wpm", limit: int = config.DEFAULT_LEADERBOARD_LIMIT) -> List[LeaderboardEntry]:
        with self._lock:
            entries = list(self._entries)
        return self._ranked(entries, sort_by)[: max(0, limit)]

    def list_for_content(
        self, content_id: str, limit: int = config.DEFAULT_LEADERBOARD_LIMIT
    ) -> List[LeaderboardEntry]:
        with self._lock:
            entries = [e for e in self._entries if e.content_id == content_id]
        return self._ranked(entries, "wpm")[: max(0, limit)]

    def rank_of(self, entry_id: str, sort_by: str = "wpm") -> Optional[int]:
        """1-based position of an entry on the full board, or None if unknown."""
        with self._lock:
            entries = list(self._entries)
        for position, entry in enumerate(self._ranked(entries, sort_by), start=1):
            if entry.id == entry_id:
                return position
        return None

    @staticmethod
    def _ranked(entries: List[LeaderboardEntry], sort_by: str) -> List[LeaderboardEntry]:
        if sort_by not in config.LEADERBOARD_SORT_KEYS:
            raise ValueError(f"unsupported sort key: {sort_by!r}")
        # stable sorts: tie-breakers first, primary key last
        ordered = sorted(entries, key=lambda e: e.id)
        ordered.sort(key=lambda e: e.completed_at)
        ordered.sort(key=lambda e: getattr(e, sort_by), reverse=True)
        return ordered

    def _load(self) -> List[LeaderboardEntry]:
        entries: List[LeaderboardEntry] = []
        if not self._file_path.exists():
            return entries
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load leaderboard from %s: %s", self._file_path, e)
            return entries
        if not isinstance(payload, dict):
            logger.warning("Unexpected leaderboard file layout in %s", self._file_path)
            return entries

        items = payload.get("entries", [])
        if not isinstance(items, list):
            logger.warning("Ignoring non-list entries in %s", self._file_path)
            return entries

        for item in items:
            try:
                entries.append(LeaderboardEntry.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed leaderboard entry in %s: %s", self._file_path, e)
        return entries

    def _save(self) -> None:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"entries": [e.to_dict() for e in self._entries]}
        self._file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
