"""Global push-to-talk hotkey based on pynput.

``hold`` mode records while the key is held down. ``toggle`` mode starts on
one press and stops on the next.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore

logger = logging.getLogger(__name__)

HOLD = "hold"
TOGGLE = "toggle"


class GlobalHotkeyAdapter:
    def __init__(self, hotkey_name: str = "Key.alt_l", mode: str = HOLD) -> None:
        if mode not in (HOLD, TOGGLE):
            raise ValueError(f"unknown hotkey mode: {mode}")
        self._hotkey_name = hotkey_name
        self._mode = mode
        self._listener: Optional[object] = None
        self._pressed = False
        self._active = False
        self._lock = threading.Lock()
        self._on_start: Callable[[], None] = lambda: None
        self._on_stop: Callable[[], None] = lambda: None

    @property
    def mode(self) -> str:
        return self._mode

    def start(self, on_start: Callable[[], None], on_stop: Callable[[], None]) -> None:
        if keyboard is None:
            raise RuntimeError("pynput is not installed")
        self._on_start = on_start
        self._on_stop = on_stop
        self._listener = keyboard.Listener(
            on_press=lambda key: self.handle_press(str(key)),
            on_release=lambda key: self.handle_release(str(key)),
        )
        self._listener.start()
        logger.info(f"Listening for {self._hotkey_name} ({self._mode} mode)")

    def stop(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None

    def handle_press(self, key_name: str) -> None:
        if key_name != self._hotkey_name:
            return
        with self._lock:
            # Key repeat delivers many presses while held.
            if self._pressed:
                return
            self._pressed = True
            if self._mode == HOLD:
                fire = self._on_start
            else:
                self._active = not self._active
                fire = self._on_start if self._active else self._on_stop
        fire()

    def handle_release(self, key_name: str) -> None:
        if key_name != self._hotkey_name:
            return
        with self._lock:
            if not self._pressed:
                return
            self._pressed = False
            if self._mode != HOLD:
                return
        self._on_stop()

    def reset(self) -> None:
        """Forget toggle state, e.g. after the session was reset elsewhere."""
        with self._lock:
            self._active = False
