"""Application entrypoint."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import threading
from pathlib import Path
from typing import Any, Callable, Coroutine, Optional

from auto_paste import TextDeliveryService
from completion import TranscriptCompletionService
from config import JsonConfigStore
from context_detector import ApplicationContextDetector
from dictionary import JsonDictionaryStore
from errors import ERROR_MESSAGES, PERMISSION_DENIED
from hotkey import GlobalHotkeyAdapter
from models import NotificationKind, SessionState
from orchestrator import ProcessingOrchestrator
from overlay import OverlayWindow
from platforms import detect_automation
from recognizer import DashscopeRecognizerAdapter
from recorder import SoundDeviceRecorder
from session_controller import SessionController
from transcript_store import JsonTranscriptStore
from transformer import DashscopeTextTransformer

try:
    from PySide6.QtCore import QObject, Signal, QSize
    from PySide6.QtGui import QAction, QIcon, QPixmap, QPainter, QColor, QBrush
    from PySide6.QtWidgets import QApplication, QInputDialog, QMenu, QMessageBox, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)

DATA_DIR = Path.home() / ".config" / "context_dictate"


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """File handler at DEBUG, console at WARNING and above."""
    handlers: list[logging.Handler] = []

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
        ))
        handlers.append(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    handlers.append(console_handler)

    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), handlers=handlers, force=True)


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))  # transparent background
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


ICON_IDLE = "#888888"      # grey
ICON_RECORDING = "#FF4444"  # red
ICON_BUSY = "#4488FF"      # blue
ICON_ERROR = "#FF8800"     # orange


class AsyncRunner:
    """Owns the asyncio loop the pipeline runs on, in a daemon thread."""

    def __init__(self) -> None:
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name="pipeline-loop", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def call(self, fn: Callable[..., Any], *args: Any) -> None:
        self.loop.call_soon_threadsafe(fn, *args)

    def submit(self, coro: Coroutine[Any, Any, Any]) -> None:
        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        future.add_done_callback(self._log_failure)

    def stop(self, timeout: float = 2.0) -> None:
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout=timeout)

    @staticmethod
    def _log_failure(future: Any) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Pipeline task failed", exc_info=exc)


class UIBridge(QObject):
    notify_signal = Signal(str, str)  # kind, message
    state_signal = Signal(str, str)  # from_state, to_state


class QtNotifier:
    def __init__(self, bridge: UIBridge) -> None:
        self._bridge = bridge

    def notify(self, kind: NotificationKind, message: str) -> None:
        self._bridge.notify_signal.emit(kind.value, message)


class App:
    def __init__(self, config_store: JsonConfigStore) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store = config_store
        self.overlay = OverlayWindow()
        self.ui = UIBridge()
        self.ui.notify_signal.connect(self._on_notify_ui)
        self.ui.state_signal.connect(self._on_state_change_ui)
        notifier = QtNotifier(self.ui)

        api_key = config_store.get_api_key()
        automation = detect_automation()
        self.detector = ApplicationContextDetector(automation)
        self.dictionary = JsonDictionaryStore(DATA_DIR / "dictionary.json")
        orchestrator = ProcessingOrchestrator(
            detector=self.detector,
            transformer=DashscopeTextTransformer(api_key=api_key, model=config_store.get_transform_model()),
            delivery=TextDeliveryService(
                automation,
                restore_delay_s=config_store.get_clipboard_restore_delay_s(),
            ),
            dictionary=self.dictionary,
            settings_provider=config_store.load_settings,
            notifier=notifier,
        )
        self.controller = SessionController(
            recognizer=DashscopeRecognizerAdapter(api_key=api_key, model=config_store.get_asr_model()),
            orchestrator=orchestrator,
            detector=self.detector,
            completion=TranscriptCompletionService(JsonTranscriptStore(DATA_DIR)),
            notifier=notifier,
            dictionary=self.dictionary,
            language_provider=config_store.get_language,
            timeout_s=config_store.get_transform_timeout_s(),
            on_state_change=self._on_state_change,
        )
        self.recorder = SoundDeviceRecorder()
        self.hotkey = GlobalHotkeyAdapter(
            hotkey_name=config_store.get_hotkey(),
            mode=config_store.get_hotkey_mode(),
        )
        self.runner = AsyncRunner()

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_IDLE))
        self.tray.setToolTip("Context Dictate — Ready")
        self._setup_menu()
        self.tray.show()

    def _setup_menu(self) -> None:
        menu = QMenu()

        api_action = QAction("Set API Key", menu)
        api_action.triggered.connect(self._set_api_key)
        menu.addAction(api_action)

        hotkey_action = QAction("Set Hotkey", menu)
        hotkey_action.triggered.connect(self._set_hotkey)
        menu.addAction(hotkey_action)

        language_action = QAction("Set Language", menu)
        language_action.triggered.connect(self._set_language)
        menu.addAction(language_action)

        detect_action = QAction("Detect Application Context", menu)
        detect_action.setCheckable(True)
        detect_action.setChecked(self.config_store.load_settings().enable_auto_detection)
        detect_action.toggled.connect(
            lambda checked: self.config_store.set_value("enable_auto_detection", bool(checked))
        )
        menu.addAction(detect_action)

        menu.addSeparator()
        sign_out_action = QAction("Sign Out", menu)
        sign_out_action.triggered.connect(self._sign_out)
        menu.addAction(sign_out_action)

        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)

    def _set_api_key(self) -> None:
        value, ok = QInputDialog.getText(None, "API Key", "DashScope API Key")
        if not ok:
            return
        self.config_store.set_api_key(value)
        QMessageBox.information(None, "Saved", "API Key saved. Restart app to apply.")

    def _set_hotkey(self) -> None:
        value, ok = QInputDialog.getText(
            None, "Hotkey", "Use pynput key format, e.g. Key.alt_l"
        )
        if not ok or not value:
            return
        self.config_store.set_hotkey(value)
        QMessageBox.information(None, "Saved", "Hotkey saved. Restart app to apply.")

    def _set_language(self) -> None:
        value, ok = QInputDialog.getText(
            None, "Language", "Spoken language code (e.g. en, hi, es, or auto)",
            text=self.config_store.get_language(),
        )
        if not ok or not value.strip():
            return
        self.config_store.set_language(value.strip().lower())

    def _sign_out(self) -> None:
        self.config_store.set_api_key("")
        self.runner.call(self.controller.sign_out)

    # ------------------------------------------------------------------
    # Callbacks (called from the loop thread -> emit signals for UI thread)
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: SessionState, to_state: SessionState) -> None:
        self.ui.state_signal.emit(from_state.value, to_state.value)

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_notify_ui(self, kind: str, message: str) -> None:
        notification = NotificationKind(kind)
        if notification == NotificationKind.PERMISSION_ERROR:
            self.tray.setIcon(_create_icon(ICON_ERROR))
        self.overlay.show_notification(notification, message)

    def _on_state_change_ui(self, from_state: str, to_state: str) -> None:
        state = SessionState(to_state)
        if state == SessionState.RECORDING:
            self.tray.setIcon(_create_icon(ICON_RECORDING))
            self.tray.setToolTip("Context Dictate — Recording...")
        elif state == SessionState.IDLE:
            self.tray.setIcon(_create_icon(ICON_IDLE))
            self.tray.setToolTip("Context Dictate — Ready")
        elif state == SessionState.TIMED_OUT:
            self.tray.setIcon(_create_icon(ICON_ERROR))
        else:
            self.tray.setIcon(_create_icon(ICON_BUSY))
            self.tray.setToolTip("Context Dictate — Processing...")
        self.overlay.show_state(state)

    # ------------------------------------------------------------------
    # Hotkey handlers (pynput thread)
    # ------------------------------------------------------------------

    def _on_hotkey_start(self) -> None:
        self.runner.call(self._start_recording)

    def _on_hotkey_stop(self) -> None:
        self.runner.submit(self._stop_recording())

    def _start_recording(self) -> None:
        if not self.controller.start():
            return
        try:
            self.recorder.start(lambda chunk: self.runner.call(self.controller.push_chunk, chunk))
        except Exception as exc:
            logger.error(f"Could not start recording: {exc}")
            self.controller.cancel("microphone unavailable")
            self.hotkey.reset()
            self.ui.notify_signal.emit(
                NotificationKind.PERMISSION_ERROR.value, ERROR_MESSAGES[PERMISSION_DENIED]
            )

    async def _stop_recording(self) -> None:
        self.recorder.stop()
        # Let chunks queued by the audio thread land before finalizing.
        await asyncio.sleep(0)
        await self.controller.stop()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        self.runner.start()
        try:
            self.hotkey.start(
                on_start=self._on_hotkey_start,
                on_stop=self._on_hotkey_stop,
            )
        except Exception as exc:
            self.overlay.show_notification(NotificationKind.PERMISSION_ERROR, f"Hotkey disabled: {exc}")
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        self.recorder.stop()
        self.runner.call(self.controller.cancel, "app quit")
        self.runner.stop()
        self.app.quit()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Context-aware voice dictation")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--log-file", type=Path, default=DATA_DIR / "context_dictate.log")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    config_store = JsonConfigStore(path=args.config)
    setup_logging(args.log_level or config_store.get_log_level(), args.log_file)
    logger.info(f"Starting with config {config_store.path}")
    app = App(config_store)
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
