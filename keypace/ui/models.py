"""Presentation helpers shared by the screens."""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import List

from keypace.core.leaderboard import LeaderboardEntry
from keypace.core.track import CharacterTrack, CharStatus
from keypace.ui.colors import Palette


def format_duration(seconds: float) -> str:
    """``m:ss`` clock display; negative values show as 0:00."""
    total = max(0, int(seconds))
    return f"{total // 60}:{total % 60:02d}"


def _char_html(ch: str) -> str:
    # keep spaces visible so an incorrect space still shows its background
    return "&nbsp;" if ch == " " else html.escape(ch)


def render_passage_html(track: CharacterTrack) -> str:
    """Rich-text rendering of a track: typed, mistyped, cursor and pending characters."""
    parts: List[str] = []
    cursor = track.cursor
    for index, (ch, status) in enumerate(track.items()):
        text = _char_html(ch)
        if status is CharStatus.CORRECT:
            parts.append(f'<span style="color:{Palette.CHAR_CORRECT};">{text}</span>')
        elif status is CharStatus.INCORRECT:
            parts.append(
                f'<span style="color:{Palette.CHAR_INCORRECT};'
                f'background-color:{Palette.CHAR_INCORRECT_BG};">{text}</span>'
            )
        elif index == cursor:
            parts.append(
                f'<span style="color:{Palette.CHAR_CURSOR};text-decoration:underline;">{text}</span>'
            )
        else:
            parts.append(f'<span style="color:{Palette.CHAR_PENDING};">{text}</span>')
    return "".join(parts)


@dataclass(frozen=True)
class LeaderboardRow:
    """One leaderboard line ready for display."""

    rank: int
    username: str
    wpm: str
    accuracy: str
    duration: str
    errors: str
    completed: str

    @classmethod
    def from_entry(cls, rank: int, entry: LeaderboardEntry) -> "LeaderboardRow":
        return cls(
            rank=rank,
            username=entry.username,
            wpm=f"{entry.wpm:.0f}",
            accuracy=f"{entry.accuracy:.0f}%",
            duration=format_duration(entry.duration_seconds),
            errors=str(entry.error_count),
            completed=entry.completed_at[:10],
        )

    def cells(self) -> List[str]:
        return [str(self.rank), self.username, self.wpm, self.accuracy, self.duration, self.errors, self.completed]


def build_rows(entries: List[LeaderboardEntry]) -> List[LeaderboardRow]:
    return [LeaderboardRow.from_entry(i, e) for i, e in enumerate(entries, start=1)]
