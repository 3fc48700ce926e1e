from __future__ import annotations

from dataclasses import dataclass

from keypace.core.errors import InvalidInputError


@dataclass(frozen=True)
class ReferenceText:
    """The fixed passage a session measures typing against.

    ``id`` is opaque to the engine and is passed through unchanged into the
    session result and the leaderboard entry.
    """

    id: str
    text: str
    title: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise InvalidInputError(f"reference text must be a string, got {type(self.text).__name__}")
        if not self.text:
            raise InvalidInputError("reference text is empty")

    def __len__(self) -> int:
        return len(self.text)
