from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from keypace.core.metrics import LiveMetrics, compute_accuracy, compute_wpm, measure, round_half_up
from keypace.core.text import ReferenceText
from keypace.core.track import CharacterTrack, is_typeable

logger = logging.getLogger(__name__)

BACKSPACE = "Backspace"


class SessionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass(frozen=True)
class SessionResult:
    """Final, frozen score of one completed pass over a reference text."""

    content_id: str
    wpm: int
    accuracy: int
    duration_seconds: int
    error_count: int
    correct_chars: int
    total_chars: int
    elapsed_seconds: float


FinishListener = Callable[[SessionResult], None]


class SessionController:
    """Drives one typing session from the first keystroke to a scored result.

    Keys are either a single typed character or ``"Backspace"``; anything else
    is dropped. The clock starts on the first character key and the result is
    computed from ``finish_instant - start_instant``, which is what gets
    persisted. Finish listeners are called exactly once per completion.
    """

    def __init__(
        self,
        reference: ReferenceText,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._listeners: List[FinishListener] = []
        self._reference = reference
        self._track = CharacterTrack.initialize(reference.text)
        self._state = SessionState.IDLE
        self._start_instant: Optional[float] = None
        self._finish_instant: Optional[float] = None
        self._result: Optional[SessionResult] = None

    @property
    def reference(self) -> ReferenceText:
        """Text the current track is measured against."""
        return self._reference

    @property
    def track(self) -> CharacterTrack:
        """Per-character state of the current attempt."""
        return self._track

    @property
    def state(self) -> SessionState:
        """Lifecycle state: idle, running or finished."""
        return self._state

    @property
    def start_instant(self) -> Optional[float]:
        """Clock reading at the first accepted character, or None while idle."""
        return self._start_instant

    @property
    def finish_instant(self) -> Optional[float]:
        """Clock reading when the last character was typed, or None."""
        return self._finish_instant

    @property
    def result(self) -> Optional[SessionResult]:
        """The frozen result, or None until the session finishes."""
        return self._result

    def is_running(self) -> bool:
        """Return True between the first keystroke and completion."""
        return self._state is SessionState.RUNNING

    def is_finished(self) -> bool:
        """Return True once the result has been computed."""
        return self._state is SessionState.FINISHED

    def add_finish_listener(self, listener: FinishListener) -> None:
        """Register a callback that receives each new result; failures are logged."""
        self._listeners.append(listener)

    def handle_key(self, key: object) -> bool:
        """Feed one keystroke. Returns True if the session state changed."""
        if self._state is SessionState.FINISHED:
            return False
        if key == BACKSPACE:
            return self._track.apply_backspace()
        if not is_typeable(key):
            logger.debug("Discarding keystroke %r", key)
            return False

        if self._state is SessionState.IDLE:
            self._start_instant = self._clock()
            self._state = SessionState.RUNNING
            logger.info("Session started on content %s", self._reference.id)

        self._track.apply_key(key)
        if self._track.is_complete():
            self._finish()
        return True

    def elapsed_seconds(self) -> float:
        """Seconds since the first keystroke; frozen once finished."""
        if self._start_instant is None:
            return 0.0
        end = self._finish_instant if self._finish_instant is not None else self._clock()
        return max(0.0, end - self._start_instant)

    def live_metrics(self) -> LiveMetrics:
        """WPM, accuracy, elapsed time and progress at this instant."""
        return measure(self._track.snapshot(), self.elapsed_seconds())

    def restart(self, reference: Optional[ReferenceText] = None) -> None:
        """Return to idle with a fresh track; valid from any state."""
        if reference is not None:
            self._reference = reference
        self._track = CharacterTrack.initialize(self._reference.text)
        self._state = SessionState.IDLE
        self._start_instant = None
        self._finish_instant = None
        self._result = None
        logger.debug("Session reset on content %s", self._reference.id)

    def _finish(self) -> None:
        self._finish_instant = max(self._clock(), self._start_instant)
        elapsed = self._finish_instant - self._start_instant
        snapshot = self._track.snapshot()
        self._result = SessionResult(
            content_id=self._reference.id,
            wpm=compute_wpm(snapshot.correct, elapsed),
            accuracy=compute_accuracy(snapshot.correct, snapshot.attempted),
            duration_seconds=round_half_up(elapsed),
            error_count=snapshot.incorrect,
            correct_chars=snapshot.correct,
            total_chars=snapshot.length,
            elapsed_seconds=elapsed,
        )
        self._state = SessionState.FINISHED
        logger.info(
            "Session finished: %d wpm, %d%% accuracy, %d errors",
            self._result.wpm,
            self._result.accuracy,
            self._result.error_count,
        )
        for listener in list(self._listeners):
            try:
                listener(self._result)
            except Exception:
                logger.exception("Finish listener %r failed", listener)
