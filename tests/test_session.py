"""Tests for keypace.core.session – session lifecycle and final result."""

from __future__ import annotations

import dataclasses

import pytest

from keypace.core.errors import InvalidInputError
from keypace.core.session import BACKSPACE, SessionController, SessionResult, SessionState
from keypace.core.text import ReferenceText
from keypace.core.track import CharStatus


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


def make_controller(text: str, clock: FakeClock, content_id: str = "c1") -> SessionController:
    return SessionController(ReferenceText(id=content_id, text=text, title="T"), clock=clock)


def type_over(controller: SessionController, clock: FakeClock, keys, seconds: float) -> None:
    """Type keys so the first and last keystrokes are ``seconds`` apart."""
    step = seconds / (len(keys) - 1) if len(keys) > 1 else 0.0
    for i, key in enumerate(keys):
        if i:
            clock.advance(step)
        controller.handle_key(key)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestConstruction:
    def test_starts_idle(self, clock):
        s = make_controller("cat", clock)
        assert s.state is SessionState.IDLE
        assert s.start_instant is None
        assert s.finish_instant is None
        assert s.result is None
        assert s.track.cursor == 0

    def test_empty_reference_rejected(self):
        with pytest.raises(InvalidInputError):
            ReferenceText(id="x", text="")

    def test_non_string_reference_rejected(self):
        with pytest.raises(InvalidInputError):
            ReferenceText(id="x", text=42)  # type: ignore[arg-type]

    def test_live_metrics_before_typing(self, clock):
        s = make_controller("cat", clock)
        m = s.live_metrics()
        assert m.wpm == 0
        assert m.accuracy == 100
        assert m.elapsed_seconds == 0.0


# ---------------------------------------------------------------------------
# Idle -> Running
# ---------------------------------------------------------------------------

class TestStart:
    def test_first_char_starts_clock(self, clock):
        s = make_controller("cat", clock)
        clock.advance(30)  # idle time before typing is not counted
        s.handle_key("c")
        assert s.state is SessionState.RUNNING
        assert s.start_instant == clock.now

    def test_ignored_key_does_not_start(self, clock):
        s = make_controller("cat", clock)
        assert s.handle_key("Shift") is False
        assert s.state is SessionState.IDLE
        assert s.start_instant is None

    def test_backspace_does_not_start(self, clock):
        s = make_controller("cat", clock)
        assert s.handle_key(BACKSPACE) is False
        assert s.state is SessionState.IDLE

    def test_wrong_char_starts_too(self, clock):
        s = make_controller("cat", clock)
        s.handle_key("z")
        assert s.state is SessionState.RUNNING
        assert s.track.status_at(0) is CharStatus.INCORRECT

    def test_live_elapsed_tracks_clock(self, clock):
        s = make_controller("cats", clock)
        s.handle_key("c")
        clock.advance(2.5)
        assert s.elapsed_seconds() == pytest.approx(2.5)


# ---------------------------------------------------------------------------
# End-to-end scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    def test_cat_typed_perfectly(self, clock):
        s = make_controller("cat", clock)
        type_over(s, clock, ["c", "a", "t"], 6.0)
        r = s.result
        assert s.state is SessionState.FINISHED
        assert r is not None
        assert r.correct_chars == 3
        assert r.total_chars == 3
        assert r.error_count == 0
        assert r.accuracy == 100
        assert r.wpm == 6
        assert r.duration_seconds == 6
        assert r.content_id == "c1"

    def test_cat_with_one_error(self, clock):
        s = make_controller("cat", clock)
        type_over(s, clock, ["c", "x", "t"], 6.0)
        r = s.result
        assert s.state is SessionState.FINISHED
        assert r.correct_chars == 2
        assert r.error_count == 1
        assert r.accuracy == 67
        assert r.correct_chars + r.error_count == r.total_chars

    def test_backspace_then_retype(self, clock):
        s = make_controller("cat", clock)
        s.handle_key("c")
        s.handle_key(BACKSPACE)
        s.handle_key("c")
        assert s.track.cursor == 1
        assert s.track.status_at(0) is CharStatus.CORRECT
        assert s.track.statuses()[1:] == (CharStatus.PENDING, CharStatus.PENDING)

    def test_corrected_error_counts_as_correct(self, clock):
        s = make_controller("cat", clock)
        type_over(s, clock, ["c", "x", BACKSPACE, "a", "t"], 4.0)
        assert s.result.error_count == 0
        assert s.result.accuracy == 100

    def test_single_char_text_finishes_immediately(self, clock):
        s = make_controller("a", clock)
        s.handle_key("a")
        assert s.is_finished()
        assert s.result.wpm == 0  # no time elapsed
        assert s.result.duration_seconds == 0

    def test_duration_rounded_wpm_from_exact_elapsed(self, clock):
        s = make_controller("abcdefghij", clock)
        type_over(s, clock, list("abcdefghij"), 10.4)
        r = s.result
        assert r.duration_seconds == 10
        assert r.elapsed_seconds == pytest.approx(10.4)
        # (10 / 5) / (10.4 / 60) = 11.54
        assert r.wpm == 12


# ---------------------------------------------------------------------------
# Finished state
# ---------------------------------------------------------------------------

class TestFinished:
    def test_keys_ignored_after_finish(self, clock):
        s = make_controller("ab", clock)
        type_over(s, clock, ["a", "b"], 1.0)
        result = s.result
        assert s.handle_key("c") is False
        assert s.handle_key(BACKSPACE) is False
        assert s.track.cursor == 2
        assert s.result is result

    def test_finish_instant_set_once(self, clock):
        s = make_controller("ab", clock)
        type_over(s, clock, ["a", "b"], 1.0)
        finished_at = s.finish_instant
        clock.advance(50)
        s.handle_key("x")
        assert s.finish_instant == finished_at
        assert s.start_instant <= s.finish_instant

    def test_elapsed_frozen_after_finish(self, clock):
        s = make_controller("ab", clock)
        type_over(s, clock, ["a", "b"], 3.0)
        clock.advance(100)
        assert s.elapsed_seconds() == pytest.approx(3.0)
        assert s.live_metrics().wpm == s.result.wpm

    def test_listener_called_once(self, clock):
        seen = []
        s = make_controller("ab", clock)
        s.add_finish_listener(seen.append)
        type_over(s, clock, ["a", "b", "c", "d"], 3.0)
        assert seen == [s.result]

    def test_failing_listener_does_not_escape(self, clock):
        seen = []

        def broken(result):
            raise RuntimeError("boom")

        s = make_controller("ab", clock)
        s.add_finish_listener(broken)
        s.add_finish_listener(seen.append)
        s.handle_key("a")
        assert s.handle_key("b") is True
        assert s.is_finished()
        assert s.result is not None
        assert seen == [s.result]

    def test_result_is_immutable(self, clock):
        s = make_controller("a", clock)
        s.handle_key("a")
        with pytest.raises(dataclasses.FrozenInstanceError):
            s.result.wpm = 999  # type: ignore[misc]

    def test_clock_going_backwards(self, clock):
        s = make_controller("ab", clock)
        s.handle_key("a")
        clock.advance(-5)
        s.handle_key("b")
        assert s.result.elapsed_seconds == 0.0
        assert s.result.wpm == 0


# ---------------------------------------------------------------------------
# restart
# ---------------------------------------------------------------------------

class TestRestart:
    def test_restart_after_finish(self, clock):
        seen = []
        s = make_controller("cat", clock)
        s.add_finish_listener(seen.append)
        type_over(s, clock, ["c", "a", "t"], 6.0)
        first = s.result

        s.restart()
        assert s.state is SessionState.IDLE
        assert s.track.cursor == 0
        assert all(st is CharStatus.PENDING for st in s.track.statuses())
        assert s.start_instant is None
        assert s.finish_instant is None
        assert s.result is None
        assert first == SessionResult(
            content_id="c1", wpm=6, accuracy=100, duration_seconds=6,
            error_count=0, correct_chars=3, total_chars=3, elapsed_seconds=first.elapsed_seconds,
        )
        assert seen == [first]

    def test_new_completion_emits_again(self, clock):
        seen = []
        s = make_controller("ab", clock)
        s.add_finish_listener(seen.append)
        type_over(s, clock, ["a", "b"], 1.0)
        s.restart()
        type_over(s, clock, ["a", "x"], 2.0)
        assert len(seen) == 2
        assert seen[0] is not seen[1]
        assert seen[1].error_count == 1

    def test_restart_while_running(self, clock):
        s = make_controller("cat", clock)
        s.handle_key("c")
        s.restart()
        assert s.state is SessionState.IDLE
        assert s.elapsed_seconds() == 0.0

    def test_restart_from_idle(self, clock):
        s = make_controller("cat", clock)
        s.restart()
        assert s.state is SessionState.IDLE

    def test_restart_with_new_reference(self, clock):
        s = make_controller("cat", clock)
        s.handle_key("c")
        s.restart(ReferenceText(id="c2", text="doge"))
        assert s.reference.id == "c2"
        assert s.track.length == 4
        type_over(s, clock, list("doge"), 3.0)
        assert s.result.content_id == "c2"
