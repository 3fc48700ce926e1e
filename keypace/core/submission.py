from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from keypace.core.content import ContentLibrary
from keypace.core.errors import SubmissionError
from keypace.core.leaderboard import LeaderboardEntry, LeaderboardStore
from keypace.core.session import SessionResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionReceipt:
    entry: LeaderboardEntry
    rank: Optional[int]

    def matches(self, result: SessionResult) -> bool:
        """True when the stored entry records exactly this result."""
        entry = self.entry
        return (
            entry.content_id == result.content_id
            and entry.wpm == result.wpm
            and entry.accuracy == result.accuracy
            and entry.duration_seconds == result.duration_seconds
            and entry.error_count == result.error_count
            and entry.correct_chars == result.correct_chars
            and entry.total_chars == result.total_chars
        )


class SubmissionService:
    """Hands finished sessions to the leaderboard.

    The result is never modified, so a failed call can be retried with the
    same object.
    """

    def __init__(self, leaderboard: LeaderboardStore, library: ContentLibrary) -> None:
        self._leaderboard = leaderboard
        self._library = library

    def submit(self, result: SessionResult, username: str) -> SubmissionReceipt:
        if result.content_id not in self._library:
            raise SubmissionError(f"unknown content: {result.content_id}")
        entry = self._leaderboard.submit(
            username=username,
            content_id=result.content_id,
            wpm=result.wpm,
            accuracy=result.accuracy,
            duration_seconds=result.duration_seconds,
            error_count=result.error_count,
            correct_chars=result.correct_chars,
            total_chars=result.total_chars,
        )
        rank = self._leaderboard.rank_of(entry.id)
        logger.info("Submitted result for %s, rank %s", entry.username, rank)
        return SubmissionReceipt(entry=entry, rank=rank)
