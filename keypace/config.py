"""Application constants and default locations."""

import os
from pathlib import Path

APP_NAME = "KeyPace"

DATA_DIR = Path(os.environ.get("KEYPACE_HOME", Path.home() / ".keypace"))
LEADERBOARD_FILE = DATA_DIR / "leaderboard.json"
CONTENT_FILE = DATA_DIR / "content.json"

LOG_LEVEL = os.environ.get("KEYPACE_LOG_LEVEL", "INFO").upper()

# Live metrics refresh while a session is running
TICK_INTERVAL_MS = 100

# Leaderboard
DEFAULT_LEADERBOARD_LIMIT = 100
LEADERBOARD_LIMIT_CHOICES = (10, 25, 50, 100)
LEADERBOARD_SORT_KEYS = ("wpm", "accuracy")
MAX_USERNAME_LENGTH = 32

# Served when the library holds no passages at all
DEFAULT_PASSAGE_TITLE = "The Quick Brown Fox"
DEFAULT_PASSAGE_TEXT = (
    "The quick brown fox jumps over the lazy dog. This pangram contains every "
    "letter of the English alphabet at least once. It is commonly used for "
    "testing typewriters and computer keyboards, displaying examples of fonts, "
    "and other applications."
)
