"""Application entry point and setup for the KeyPace typing test."""

import logging
import sys

from PySide6.QtWidgets import QApplication

from keypace import config
from keypace.core.content import ContentLibrary
from keypace.core.leaderboard import LeaderboardStore
from keypace.ui.main_window import MainWindow


def configure_logging() -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def run() -> None:
    """Initialize the application, open the stores, and start the main window."""
    configure_logging()
    app = QApplication(sys.argv)
    app.setApplicationName(config.APP_NAME)
    app.setApplicationDisplayName(config.APP_NAME)

    library = ContentLibrary(config.CONTENT_FILE)
    leaderboard = LeaderboardStore(config.LEADERBOARD_FILE)
    logging.info("Data directory: %s", config.DATA_DIR)

    window = MainWindow(library=library, leaderboard=leaderboard)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    run()
