"""Speed and accuracy calculations.

Every function here is pure: the same snapshot and elapsed time always give
the same numbers, so callers are free to recompute as often as they like.

  * **WPM** – correct characters / 5, normalised to a per-minute rate.
  * **Accuracy** – percentage of attempted (non-pending) characters that were
    typed correctly; 100 before anything has been typed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from keypace.core.track import TrackSnapshot

CHARS_PER_WORD = 5


@dataclass(frozen=True)
class LiveMetrics:
    wpm: int
    accuracy: int
    elapsed_seconds: float
    progress: float  # percent of the text covered by the cursor


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_wpm(correct_chars: int, elapsed_seconds: float) -> int:
    """Words per minute from correct characters; 0 for any degenerate input."""
    if not math.isfinite(elapsed_seconds) or elapsed_seconds <= 0:
        return 0
    if correct_chars <= 0:
        return 0
    wpm = (correct_chars / CHARS_PER_WORD) / (elapsed_seconds / 60.0)
    if not math.isfinite(wpm):
        return 0
    return max(0, round_half_up(wpm))


def compute_accuracy(correct_chars: int, attempted_chars: int) -> int:
    """Percentage of attempted characters typed correctly, clamped to 0..100."""
    if attempted_chars <= 0:
        return 100
    accuracy = round_half_up(100.0 * correct_chars / attempted_chars)
    return max(0, min(100, accuracy))


def compute_progress(snapshot: TrackSnapshot) -> float:
    if snapshot.length <= 0:
        return 0.0
    return 100.0 * snapshot.cursor / snapshot.length


def measure(snapshot: TrackSnapshot, elapsed_seconds: float) -> LiveMetrics:
    return LiveMetrics(
        wpm=compute_wpm(snapshot.correct, elapsed_seconds),
        accuracy=compute_accuracy(snapshot.correct, snapshot.attempted),
        elapsed_seconds=max(0.0, elapsed_seconds) if math.isfinite(elapsed_seconds) else 0.0,
        progress=compute_progress(snapshot),
    )
