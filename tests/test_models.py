"""Tests for keypace.ui.models – display helpers."""

from __future__ import annotations

import pytest

from keypace.core.leaderboard import LeaderboardEntry
from keypace.core.track import CharacterTrack
from keypace.ui.colors import Palette
from keypace.ui.models import LeaderboardRow, build_rows, format_duration, render_passage_html


@pytest.fixture()
def sample_entry() -> LeaderboardEntry:
    return LeaderboardEntry(
        id="e1",
        username="ana",
        content_id="c1",
        wpm=61.5,
        accuracy=97.0,
        duration_seconds=75,
        error_count=3,
        correct_chars=97,
        total_chars=100,
        completed_at="2024-05-06T07:08:09+00:00",
    )


# ===========================================================================
# format_duration
# ===========================================================================

class TestFormatDuration:
    @pytest.mark.parametrize("seconds, expected", [
        (0, "0:00"),
        (5.9, "0:05"),
        (60, "1:00"),
        (75, "1:15"),
        (3600, "60:00"),
        (-3, "0:00"),
    ])
    def test_values(self, seconds, expected):
        assert format_duration(seconds) == expected


# ===========================================================================
# render_passage_html
# ===========================================================================

class TestRenderPassage:
    def test_pending_and_cursor(self):
        html_text = render_passage_html(CharacterTrack.initialize("ab"))
        assert "underline" in html_text
        assert html_text.count("<span") == 2
        assert Palette.CHAR_PENDING in html_text

    def test_statuses_colored(self):
        t = CharacterTrack.initialize("abc")
        t.apply_key("a")
        t.apply_key("x")
        html_text = render_passage_html(t)
        assert Palette.CHAR_CORRECT in html_text
        assert Palette.CHAR_INCORRECT in html_text

    def test_escapes_markup(self):
        html_text = render_passage_html(CharacterTrack.initialize("<&>"))
        assert "&lt;" in html_text
        assert "&amp;" in html_text
        assert "<&>" not in html_text

    def test_space_visible(self):
        assert "&nbsp;" in render_passage_html(CharacterTrack.initialize("a b"))


# ===========================================================================
# LeaderboardRow
# ===========================================================================

class TestLeaderboardRow:
    def test_from_entry(self, sample_entry: LeaderboardEntry):
        row = LeaderboardRow.from_entry(1, sample_entry)
        assert row.rank == 1
        assert row.username == "ana"
        assert row.accuracy == "97%"
        assert row.duration == "1:15"
        assert row.errors == "3"
        assert row.completed == "2024-05-06"

    def test_cells_order(self, sample_entry: LeaderboardEntry):
        cells = LeaderboardRow.from_entry(4, sample_entry).cells()
        assert cells[0] == "4"
        assert cells[1] == "ana"
        assert len(cells) == 7

    def test_build_rows_numbers_from_one(self, sample_entry: LeaderboardEntry):
        rows = build_rows([sample_entry, sample_entry])
        assert [r.rank for r in rows] == [1, 2]

    def test_build_rows_empty(self):
        assert build_rows([]) == []
