"""Typing screen widgets: passage view and metric tiles."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QFont
from PySide6.QtWidgets import QFrame, QLabel, QProgressBar, QVBoxLayout, QWidget

from keypace.core.track import CharacterTrack
from keypace.ui.colors import Palette, accuracy_color
from keypace.ui.models import render_passage_html


class PassageView(QLabel):
    """Monospace passage with per-character status colors."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setTextFormat(Qt.RichText)
        self.setWordWrap(True)
        self.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        self.setFocusPolicy(Qt.NoFocus)
        font = QFont("monospace")
        font.setStyleHint(QFont.Monospace)
        font.setPointSize(20)
        self.setFont(font)
        self.setStyleSheet(f"QLabel {{ background: {Palette.CARD_BG}; padding: 24px; border-radius: 12px; }}")

    def set_track(self, track: CharacterTrack) -> None:
        self.setText(render_passage_html(track))


class StatTile(QFrame):
    """Large value with a small caption underneath (WPM, ACC, ...)."""

    def __init__(self, caption: str, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 4, 8, 4)
        self._value = QLabel("0", self)
        self._value.setAlignment(Qt.AlignCenter)
        self._value.setStyleSheet(f"color: {Palette.TEXT_PRIMARY}; font-size: 32px; font-weight: 700;")
        caption_label = QLabel(caption.upper(), self)
        caption_label.setAlignment(Qt.AlignCenter)
        caption_label.setStyleSheet(f"color: {Palette.TEXT_MUTED}; font-size: 11px; letter-spacing: 2px;")
        layout.addWidget(self._value)
        layout.addWidget(caption_label)

    def set_value(self, text: str, color: Optional[str] = None) -> None:
        self._value.setText(text)
        self._value.setStyleSheet(
            f"color: {color or Palette.TEXT_PRIMARY}; font-size: 32px; font-weight: 700;"
        )


class SessionProgressBar(QProgressBar):
    """Thin progress strip shaded by the current accuracy."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setRange(0, 100)
        self.setTextVisible(False)
        self.setFixedHeight(6)
        self.set_progress(0.0, 100)

    def set_progress(self, percent: float, accuracy: float) -> None:
        self.setValue(int(max(0.0, min(100.0, percent))))
        self.setStyleSheet(
            "QProgressBar { background: #e6f0f0; border: none; border-radius: 3px; }"
            f"QProgressBar::chunk {{ background: {accuracy_color(accuracy)}; border-radius: 3px; }}"
        )
