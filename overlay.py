"""Overlay window for session status and notifications."""

from __future__ import annotations

from models import NotificationKind, SessionState

try:
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtWidgets import QApplication, QLabel, QWidget, QVBoxLayout
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QTimer = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QWidget = object  # type: ignore
    QVBoxLayout = object  # type: ignore

STATUS_TEXT = {
    SessionState.RECORDING: "🎙 Listening…",
    SessionState.FINALIZING: "Processing audio…",
    SessionState.AWAITING_TRANSFORM: "Formatting text…",
    SessionState.DELIVERING: "Inserting text…",
}

# Informational notices use the normal style; everything else is an error.
INFO_KINDS = {NotificationKind.SILENT_RECORDING, NotificationKind.EMPTY_TRANSCRIPT}

_BASE_STYLE = "font-size: 18px; padding: 16px; border-radius: 12px;"
NORMAL_STYLE = f"color: white; background: rgba(0,0,0,190); {_BASE_STYLE}"
ERROR_STYLE = f"color: #FF6B6B; background: rgba(0,0,0,210); {_BASE_STYLE}"


def status_text(state: SessionState) -> str:
    return STATUS_TEXT.get(state, "")


class OverlayWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(
            Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool
        )
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setAttribute(Qt.WA_ShowWithoutActivating, True)
        self.setFixedWidth(600)

        self._label = QLabel("")
        self._label.setWordWrap(True)
        self._label.setStyleSheet(NORMAL_STYLE)

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._label)
        self.setLayout(layout)

        self._hide_timer: QTimer | None = None

    def _center_top(self) -> None:
        """Position the window at the top center of the primary screen."""
        if QApplication is None:
            return
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        self.adjustSize()
        x = geom.x() + (geom.width() - self.width()) // 2
        y = geom.y() + 40  # 40px below menu bar
        self.move(x, y)

    def set_text(self, text: str) -> None:
        self._cancel_hide_timer()
        self._label.setText(text)
        self._center_top()
        self.show()

    def show_state(self, state: SessionState) -> None:
        text = status_text(state)
        if not text:
            self.hide_with_delay()
            return
        self._label.setStyleSheet(NORMAL_STYLE)
        self.set_text(text)

    def show_notification(self, kind: NotificationKind, message: str, hide_after_ms: int = 2500) -> None:
        if kind in INFO_KINDS:
            self._label.setStyleSheet(NORMAL_STYLE)
            self.set_text(message)
        else:
            self._label.setStyleSheet(ERROR_STYLE)
            self.set_text(f"⚠️ {message}")
        self.hide_with_delay(hide_after_ms)

    def hide_with_delay(self, delay_ms: int = 400) -> None:
        self._cancel_hide_timer()
        if QTimer is not None:
            self._hide_timer = QTimer()
            self._hide_timer.setSingleShot(True)
            self._hide_timer.timeout.connect(self.hide)
            self._hide_timer.start(delay_ms)

    def _cancel_hide_timer(self) -> None:
        if self._hide_timer is not None:
            self._hide_timer.stop()
            self._hide_timer = None
