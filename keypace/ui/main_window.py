from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QCloseEvent, QKeyEvent
from PySide6.QtWidgets import (
    QAbstractItemView,
    QComboBox,
    QFileDialog,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QStackedWidget,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from keypace import config
from keypace.core.content import ContentLibrary
from keypace.core.errors import InvalidInputError
from keypace.core.leaderboard import LeaderboardStore
from keypace.core.metrics import LiveMetrics
from keypace.core.session import BACKSPACE, SessionController, SessionResult
from keypace.core.submission import SubmissionReceipt, SubmissionService
from keypace.ui.colors import Palette, accuracy_color
from keypace.ui.models import build_rows, format_duration
from keypace.ui.ticker import MetricsTicker
from keypace.ui.typing_widgets import PassageView, SessionProgressBar, StatTile
from keypace.ui.workers import SubmitWorkerSignals, submit_in_background

logger = logging.getLogger(__name__)

RESULTS_DELAY_MS = 500
LEADERBOARD_COLUMNS = ["#", "User", "WPM", "Accuracy", "Time", "Errors", "Date"]


def _title_label(text: str) -> QLabel:
    label = QLabel(text)
    label.setStyleSheet(f"color: {Palette.TEXT_PRIMARY}; font-size: 28px; font-weight: 700;")
    return label


def _muted_label(text: str = "") -> QLabel:
    label = QLabel(text)
    label.setWordWrap(True)
    label.setStyleSheet(f"color: {Palette.TEXT_SECONDARY}; font-size: 14px;")
    return label


class MainWindow(QMainWindow):
    """Home, typing test, results, leaderboard and add-passage screens.

    The window owns at most one SessionController at a time. The metrics
    ticker runs only while that session is running and is stopped on every
    way out of the typing screen.
    """

    def __init__(self, library: ContentLibrary, leaderboard: LeaderboardStore) -> None:
        super().__init__()
        self._library = library
        self._leaderboard = leaderboard
        self._submissions = SubmissionService(leaderboard, library)
        self._controller: Optional[SessionController] = None
        self._result: Optional[SessionResult] = None
        self._submit_signals: Optional[SubmitWorkerSignals] = None
        self._submitted = False

        self._ticker = MetricsTicker(config.TICK_INTERVAL_MS, self)
        self._ticker.ticked.connect(self._show_live_metrics)

        self.setWindowTitle(config.APP_NAME)
        self.resize(1100, 720)
        self.setStyleSheet(f"QMainWindow {{ background: {Palette.BG}; }}")

        self._stack = QStackedWidget(self)
        self.setCentralWidget(self._stack)
        self._home_screen = self._build_home_screen()
        self._typing_screen = self._build_typing_screen()
        self._results_screen = self._build_results_screen()
        self._leaderboard_screen = self._build_leaderboard_screen()
        self._upload_screen = self._build_upload_screen()
        for screen in (
            self._home_screen,
            self._typing_screen,
            self._results_screen,
            self._leaderboard_screen,
            self._upload_screen,
        ):
            self._stack.addWidget(screen)
        self._typing_screen.installEventFilter(self)
        self._show_home_screen()

    # ------------------------------------------------------------------
    # Screens
    # ------------------------------------------------------------------

    def _build_home_screen(self) -> QWidget:
        screen = QWidget()
        layout = QVBoxLayout(screen)
        layout.setContentsMargins(80, 80, 80, 80)
        layout.addWidget(_title_label(config.APP_NAME))
        layout.addWidget(_muted_label("Type the passage as fast and as accurately as you can."))

        self._username_input = QLineEdit()
        self._username_input.setPlaceholderText("Your name (for the leaderboard)")
        self._username_input.setMaxLength(config.MAX_USERNAME_LENGTH)
        layout.addWidget(self._username_input)

        buttons = QHBoxLayout()
        start_button = QPushButton("Start test")
        start_button.clicked.connect(lambda: self._start_test())
        leaderboard_button = QPushButton("Leaderboard")
        leaderboard_button.clicked.connect(self._show_leaderboard_screen)
        upload_button = QPushButton("Add passage")
        upload_button.clicked.connect(self._show_upload_screen)
        for button in (start_button, leaderboard_button, upload_button):
            buttons.addWidget(button)
        layout.addLayout(buttons)
        layout.addStretch(1)
        return screen

    def _build_typing_screen(self) -> QWidget:
        screen = QWidget()
        screen.setFocusPolicy(Qt.StrongFocus)
        layout = QVBoxLayout(screen)
        layout.setContentsMargins(48, 24, 48, 24)

        top = QHBoxLayout()
        self._timer_label = QLabel("0:00")
        self._timer_label.setStyleSheet(f"color: {Palette.TEXT_PRIMARY}; font-size: 18px; font-family: monospace;")
        self._passage_title_label = _muted_label()
        self._passage_title_label.setAlignment(Qt.AlignCenter)
        restart_button = QPushButton("Restart")
        restart_button.setFocusPolicy(Qt.NoFocus)
        restart_button.clicked.connect(self._restart_test)
        exit_button = QPushButton("Exit")
        exit_button.setFocusPolicy(Qt.NoFocus)
        exit_button.clicked.connect(self._show_home_screen)
        top.addWidget(self._timer_label)
        top.addWidget(self._passage_title_label, 1)
        top.addWidget(restart_button)
        top.addWidget(exit_button)
        layout.addLayout(top)

        self._passage_view = PassageView()
        layout.addWidget(self._passage_view, 1)

        self._progress_bar = SessionProgressBar()
        layout.addWidget(self._progress_bar)

        stats = QHBoxLayout()
        self._wpm_tile = StatTile("WPM")
        self._accuracy_tile = StatTile("ACC")
        self._progress_tile = StatTile("Progress")
        for tile in (self._wpm_tile, self._accuracy_tile, self._progress_tile):
            stats.addWidget(tile)
        layout.addLayout(stats)
        return screen

    def _build_results_screen(self) -> QWidget:
        screen = QWidget()
        layout = QVBoxLayout(screen)
        layout.setContentsMargins(80, 60, 80, 60)
        layout.addWidget(_title_label("Results"))

        tiles = QHBoxLayout()
        self._result_wpm_tile = StatTile("WPM")
        self._result_accuracy_tile = StatTile("Accuracy")
        self._result_time_tile = StatTile("Time")
        self._result_errors_tile = StatTile("Errors")
        for tile in (self._result_wpm_tile, self._result_accuracy_tile, self._result_time_tile, self._result_errors_tile):
            tiles.addWidget(tile)
        layout.addLayout(tiles)
        self._result_chars_label = _muted_label()
        layout.addWidget(self._result_chars_label)

        submit_row = QHBoxLayout()
        self._result_username_input = QLineEdit()
        self._result_username_input.setPlaceholderText("Your name")
        self._result_username_input.setMaxLength(config.MAX_USERNAME_LENGTH)
        self._submit_button = QPushButton("Submit to leaderboard")
        self._submit_button.clicked.connect(self._submit_result)
        submit_row.addWidget(self._result_username_input, 1)
        submit_row.addWidget(self._submit_button)
        layout.addLayout(submit_row)
        self._submit_status_label = _muted_label()
        layout.addWidget(self._submit_status_label)

        buttons = QHBoxLayout()
        again_button = QPushButton("Try another passage")
        again_button.clicked.connect(lambda: self._start_test())
        board_button = QPushButton("Leaderboard")
        board_button.clicked.connect(self._show_leaderboard_screen)
        home_button = QPushButton("Home")
        home_button.clicked.connect(self._show_home_screen)
        for button in (again_button, board_button, home_button):
            buttons.addWidget(button)
        layout.addLayout(buttons)
        layout.addStretch(1)
        return screen

    def _build_leaderboard_screen(self) -> QWidget:
        screen = QWidget()
        layout = QVBoxLayout(screen)
        layout.setContentsMargins(60, 40, 60, 40)
        layout.addWidget(_title_label("Leaderboard"))

        filters = QHBoxLayout()
        self._sort_combo = QComboBox()
        self._sort_combo.addItem("WPM", "wpm")
        self._sort_combo.addItem("Accuracy", "accuracy")
        self._limit_combo = QComboBox()
        for limit in config.LEADERBOARD_LIMIT_CHOICES:
            self._limit_combo.addItem(f"Top {limit}", limit)
        self._limit_combo.setCurrentIndex(len(config.LEADERBOARD_LIMIT_CHOICES) - 1)
        self._content_combo = QComboBox()
        self._sort_combo.currentIndexChanged.connect(self._refresh_leaderboard)
        self._limit_combo.currentIndexChanged.connect(self._refresh_leaderboard)
        self._content_combo.currentIndexChanged.connect(self._refresh_leaderboard)
        filters.addWidget(QLabel("Sort by"))
        filters.addWidget(self._sort_combo)
        filters.addWidget(self._limit_combo)
        filters.addWidget(self._content_combo, 1)
        layout.addLayout(filters)

        self._leaderboard_table = QTableWidget(0, len(LEADERBOARD_COLUMNS))
        self._leaderboard_table.setHorizontalHeaderLabels(LEADERBOARD_COLUMNS)
        self._leaderboard_table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self._leaderboard_table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self._leaderboard_table.verticalHeader().setVisible(False)
        self._leaderboard_table.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        layout.addWidget(self._leaderboard_table, 1)
        self._leaderboard_empty_label = _muted_label("No results yet. Be the first!")
        layout.addWidget(self._leaderboard_empty_label)

        back_button = QPushButton("Back")
        back_button.clicked.connect(self._show_home_screen)
        layout.addWidget(back_button, 0, Qt.AlignLeft)
        return screen

    def _build_upload_screen(self) -> QWidget:
        screen = QWidget()
        layout = QVBoxLayout(screen)
        layout.setContentsMargins(80, 40, 80, 40)
        layout.addWidget(_title_label("Add passage"))
        layout.addWidget(_muted_label("Paste text or import a .txt file to create a new test."))

        self._upload_title_input = QLineEdit()
        self._upload_title_input.setPlaceholderText("Title")
        layout.addWidget(self._upload_title_input)
        self._upload_text_input = QPlainTextEdit()
        self._upload_text_input.setPlaceholderText("Paste your text here")
        self._upload_text_input.textChanged.connect(self._update_upload_counts)
        layout.addWidget(self._upload_text_input, 1)
        self._upload_counts_label = _muted_label("0 words, 0 characters")
        layout.addWidget(self._upload_counts_label)

        buttons = QHBoxLayout()
        create_button = QPushButton("Create test")
        create_button.clicked.connect(self._create_passage_from_text)
        import_button = QPushButton("Import .txt file...")
        import_button.clicked.connect(self._import_passage_file)
        back_button = QPushButton("Back")
        back_button.clicked.connect(self._show_home_screen)
        for button in (create_button, import_button, back_button):
            buttons.addWidget(button)
        layout.addLayout(buttons)
        return screen

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _show_home_screen(self) -> None:
        self._ticker.stop()
        self._stack.setCurrentWidget(self._home_screen)

    def _show_leaderboard_screen(self) -> None:
        self._ticker.stop()
        self._reload_content_filter()
        self._refresh_leaderboard()
        self._stack.setCurrentWidget(self._leaderboard_screen)

    def _show_upload_screen(self) -> None:
        self._ticker.stop()
        self._stack.setCurrentWidget(self._upload_screen)
        self._upload_title_input.setFocus()

    def _show_results_screen(self, result: SessionResult) -> None:
        # a restart or navigation inside the delay makes this result stale
        if self._controller is None or self._controller.result is not result:
            return
        if self._stack.currentWidget() is not self._typing_screen:
            return
        self._result = result
        self._submitted = False
        self._result_wpm_tile.set_value(str(result.wpm))
        self._result_accuracy_tile.set_value(f"{result.accuracy}%", accuracy_color(result.accuracy))
        self._result_time_tile.set_value(format_duration(result.duration_seconds))
        self._result_errors_tile.set_value(str(result.error_count))
        self._result_chars_label.setText(
            f"{result.correct_chars} of {result.total_chars} characters typed correctly."
        )
        self._result_username_input.setText(self._username_input.text().strip())
        self._submit_button.setEnabled(True)
        self._submit_button.setText("Submit to leaderboard")
        self._submit_status_label.setText("")
        self._stack.setCurrentWidget(self._results_screen)
        # submit right away; without a name this only prompts for one
        self._submit_result()

    # ------------------------------------------------------------------
    # Typing session
    # ------------------------------------------------------------------

    def _start_test(self, content_id: Optional[str] = None) -> None:
        self._ticker.stop()
        try:
            reference = self._library.get_reference_text(content_id)
            controller = SessionController(reference)
        except (InvalidInputError, KeyError) as e:
            logger.warning("Could not start a test: %s", e)
            QMessageBox.warning(self, config.APP_NAME, f"Could not load the passage: {e}")
            return
        controller.add_finish_listener(self._on_session_finished)
        self._controller = controller
        self._passage_title_label.setText(reference.title)
        self._stack.setCurrentWidget(self._typing_screen)
        self._typing_screen.setFocus()
        self._refresh_typing_screen()

    def _restart_test(self) -> None:
        self._ticker.stop()
        if self._controller is None:
            return
        self._controller.restart()
        self._typing_screen.setFocus()
        self._refresh_typing_screen()

    def _on_typing_key(self, event: QKeyEvent) -> bool:
        controller = self._controller
        if controller is None:
            return False
        if event.key() == Qt.Key_Escape:
            self._restart_test()
            return True
        key = BACKSPACE if event.key() == Qt.Key_Backspace else event.text()
        if controller.handle_key(key):
            if controller.is_running() and not self._ticker.is_active():
                self._ticker.start(controller)
            self._refresh_typing_screen()
        return True

    def _on_session_finished(self, result: SessionResult) -> None:
        self._ticker.stop()
        self._refresh_typing_screen()
        QTimer.singleShot(RESULTS_DELAY_MS, lambda: self._show_results_screen(result))

    def _refresh_typing_screen(self) -> None:
        if self._controller is None:
            return
        self._passage_view.set_track(self._controller.track)
        self._show_live_metrics(self._controller.live_metrics())

    def _show_live_metrics(self, metrics: LiveMetrics) -> None:
        self._timer_label.setText(format_duration(metrics.elapsed_seconds))
        self._wpm_tile.set_value(str(metrics.wpm))
        self._accuracy_tile.set_value(f"{metrics.accuracy}%", accuracy_color(metrics.accuracy))
        self._progress_tile.set_value(f"{metrics.progress:.0f}%")
        self._progress_bar.set_progress(metrics.progress, metrics.accuracy)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def _submit_result(self) -> None:
        if self._result is None or self._submitted:
            return
        username = self._result_username_input.text().strip()
        if not username:
            self._submit_status_label.setText("Enter a name to join the leaderboard.")
            return
        self._submit_button.setEnabled(False)
        self._submit_status_label.setText("Submitting...")
        self._submit_signals = submit_in_background(
            self._submissions,
            self._result,
            username,
            lambda receipt, result=self._result: self._on_submit_succeeded(result, receipt),
            lambda message, result=self._result: self._on_submit_failed(result, message),
        )

    def _on_submit_succeeded(self, result: SessionResult, receipt: SubmissionReceipt) -> None:
        # a late reply for an earlier result must not touch the current screen
        if result is not self._result or not receipt.matches(result):
            logger.debug("Ignoring submission reply for a previous result")
            return
        self._submit_signals = None
        self._submitted = True
        self._submit_button.setText("Submitted")
        rank = f" You are #{receipt.rank} on the leaderboard." if receipt.rank else ""
        self._submit_status_label.setText(f"Result saved.{rank}")

    def _on_submit_failed(self, result: SessionResult, message: str) -> None:
        if result is not self._result:
            logger.debug("Ignoring submission failure for a previous result: %s", message)
            return
        self._submit_signals = None
        self._submit_button.setEnabled(True)
        self._submit_button.setText("Retry")
        self._submit_status_label.setText(f"Could not save your result: {message}")

    # ------------------------------------------------------------------
    # Leaderboard
    # ------------------------------------------------------------------

    def _reload_content_filter(self) -> None:
        current = self._content_combo.currentData()
        self._content_combo.blockSignals(True)
        self._content_combo.clear()
        self._content_combo.addItem("All passages", None)
        for passage in self._library.all():
            self._content_combo.addItem(passage.title, passage.id)
        index = self._content_combo.findData(current)
        self._content_combo.setCurrentIndex(max(0, index))
        self._content_combo.blockSignals(False)

    def _refresh_leaderboard(self) -> None:
        limit = int(self._limit_combo.currentData() or config.DEFAULT_LEADERBOARD_LIMIT)
        content_id = self._content_combo.currentData()
        if content_id:
            entries = self._leaderboard.list_for_content(content_id, limit)
            self._sort_combo.setEnabled(False)
        else:
            entries = self._leaderboard.list(self._sort_combo.currentData() or "wpm", limit)
            self._sort_combo.setEnabled(True)
        rows = build_rows(entries)
        self._leaderboard_table.setRowCount(len(rows))
        for row_index, row in enumerate(rows):
            for column, text in enumerate(row.cells()):
                item = QTableWidgetItem(text)
                if column != 1:
                    item.setTextAlignment(Qt.AlignCenter)
                self._leaderboard_table.setItem(row_index, column, item)
        self._leaderboard_empty_label.setVisible(not rows)

    # ------------------------------------------------------------------
    # Add passage
    # ------------------------------------------------------------------

    def _update_upload_counts(self) -> None:
        text = self._upload_text_input.toPlainText()
        self._upload_counts_label.setText(f"{len(text.split())} words, {len(text)} characters")

    def _create_passage_from_text(self) -> None:
        try:
            passage = self._library.add(
                self._upload_title_input.text(),
                self._upload_text_input.toPlainText(),
                source_type="paste",
            )
        except InvalidInputError as e:
            QMessageBox.warning(self, config.APP_NAME, str(e))
            return
        self._upload_title_input.clear()
        self._upload_text_input.clear()
        self._start_test(passage.id)

    def _import_passage_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Import text file", str(Path.home()), "Text files (*.txt)")
        if not path:
            return
        try:
            passage = self._library.import_file(Path(path), self._upload_title_input.text())
        except (InvalidInputError, OSError) as e:
            QMessageBox.warning(self, config.APP_NAME, f"Could not import {Path(path).name}: {e}")
            return
        self._upload_title_input.clear()
        self._start_test(passage.id)

    # ------------------------------------------------------------------
    # Qt overrides
    # ------------------------------------------------------------------

    def eventFilter(self, obj, event) -> bool:
        """Route key presses on the typing screen into the session."""
        if obj is self._typing_screen and event.type() == event.Type.KeyPress:
            return self._on_typing_key(event)
        return super().eventFilter(obj, event)

    def closeEvent(self, event: QCloseEvent) -> None:
        self._ticker.stop()
        super().closeEvent(event)
