from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

from keypace.core.errors import InvalidInputError

logger = logging.getLogger(__name__)


class CharStatus(str, Enum):
    PENDING = "pending"
    CORRECT = "correct"
    INCORRECT = "incorrect"


@dataclass(frozen=True)
class TrackSnapshot:
    """Counts read from a track at one instant; input to the metrics functions."""

    cursor: int
    length: int
    correct: int
    incorrect: int

    @property
    def attempted(self) -> int:
        """Characters typed so far, correct or not."""
        return self.correct + self.incorrect


def is_typeable(key: object) -> bool:
    """True for a single printable code point (space included)."""
    return isinstance(key, str) and len(key) == 1 and key.isprintable()


class CharacterTrack:
    """Per-character correctness state for one pass over a reference text.

    Indices before ``cursor`` are correct or incorrect, indices from ``cursor``
    on are pending. Only :meth:`apply_key` and :meth:`apply_backspace` mutate
    the track, and each touches a single index.
    """

    def __init__(self, text: str) -> None:
        if not isinstance(text, str):
            raise InvalidInputError(f"reference text must be a string, got {type(text).__name__}")
        if not text:
            raise InvalidInputError("reference text is empty")
        self._expected: Tuple[str, ...] = tuple(text)
        self._statuses: List[CharStatus] = [CharStatus.PENDING] * len(text)
        self._cursor = 0
        self._correct = 0
        self._incorrect = 0

    @classmethod
    def initialize(cls, text: str) -> "CharacterTrack":
        return cls(text)

    @property
    def cursor(self) -> int:
        """Index of the next character awaiting input."""
        return self._cursor

    @property
    def length(self) -> int:
        """Number of characters in the reference text."""
        return len(self._expected)

    def __len__(self) -> int:
        """Number of characters in the reference text."""
        return len(self._expected)

    @property
    def correct_count(self) -> int:
        """Characters before the cursor typed correctly."""
        return self._correct

    @property
    def incorrect_count(self) -> int:
        """Characters before the cursor typed incorrectly."""
        return self._incorrect

    @property
    def attempted_count(self) -> int:
        """Characters before the cursor, correct or not."""
        return self._correct + self._incorrect

    def expected_at(self, index: int) -> str:
        """Expected character at *index*."""
        return self._expected[index]

    def status_at(self, index: int) -> CharStatus:
        """Status of the character at *index*."""
        return self._statuses[index]

    def statuses(self) -> Tuple[CharStatus, ...]:
        """Statuses of every character in text order."""
        return tuple(self._statuses)

    def items(self) -> List[Tuple[str, CharStatus]]:
        """(expected character, status) pairs in text order."""
        return list(zip(self._expected, self._statuses))

    def is_complete(self) -> bool:
        """Return True once the cursor has reached the end of the text."""
        return self._cursor == len(self._expected)

    def snapshot(self) -> TrackSnapshot:
        """Current cursor and counts for the metrics functions."""
        return TrackSnapshot(
            cursor=self._cursor,
            length=len(self._expected),
            correct=self._correct,
            incorrect=self._incorrect,
        )

    def apply_key(self, key: object) -> bool:
        """Mark the character under the cursor and advance.

        Returns False without touching state when the key is not a typeable
        character or the track is already complete.
        """
        if not is_typeable(key):
            logger.debug("Ignoring non-typeable key %r", key)
            return False
        if self.is_complete():
            return False
        if key == self._expected[self._cursor]:
            self._statuses[self._cursor] = CharStatus.CORRECT
            self._correct += 1
        else:
            self._statuses[self._cursor] = CharStatus.INCORRECT
            self._incorrect += 1
        self._cursor += 1
        return True

    def apply_backspace(self) -> bool:
        """Reset the last typed character to pending. No-op at the start."""
        if self._cursor == 0:
            return False
        self._cursor -= 1
        previous = self._statuses[self._cursor]
        if previous is CharStatus.CORRECT:
            self._correct -= 1
        elif previous is CharStatus.INCORRECT:
            self._incorrect -= 1
        self._statuses[self._cursor] = CharStatus.PENDING
        return True
