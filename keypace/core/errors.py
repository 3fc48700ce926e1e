"""Exception types shared across the core package."""


class KeyPaceError(Exception):
    """Base class for application errors."""


class InvalidInputError(KeyPaceError, ValueError):
    """Reference text or passage content is empty or malformed."""


class SubmissionError(KeyPaceError):
    """A finished session could not be stored on the leaderboard."""
