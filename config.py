"""Simple JSON-based config store."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULTS: dict[str, Any] = {
    "api_key": "",
    "hotkey": "Key.alt_l",
    "hotkey_mode": "hold",
    "language": "en",
    "enable_translation": False,
    "target_language": "en",
    "use_ai": True,
    "enable_auto_detection": True,
    "selected_mode": "email",
    "custom_prompt": "",
    "transform_model": "qwen-plus",
    "asr_model": "qwen3-asr-flash",
    "transform_timeout_s": 30.0,
    "clipboard_restore_delay_s": 1.0,
    "log_level": "INFO",
}


@dataclass(frozen=True)
class Settings:
    """Snapshot of the user settings read once per processing run."""

    language: str = "en"
    enable_translation: bool = False
    target_language: str = "en"
    use_ai: bool = True
    enable_auto_detection: bool = True
    selected_mode: str = "email"
    custom_prompt: str = ""

    @property
    def effective_target_language(self) -> str:
        return self.target_language if self.enable_translation else self.language


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "context_dictate" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def get_api_key(self) -> str:
        key = str(self._get("api_key"))
        return key or os.getenv("DASHSCOPE_API_KEY", "")

    def set_api_key(self, key: str) -> None:
        self._set("api_key", key)

    def get_hotkey(self) -> str:
        return str(self._get("hotkey"))

    def set_hotkey(self, hotkey: str) -> None:
        self._set("hotkey", hotkey)

    def get_hotkey_mode(self) -> str:
        mode = str(self._get("hotkey_mode"))
        return mode if mode in ("hold", "toggle") else "hold"

    def get_language(self) -> str:
        return str(self._get("language"))

    def set_language(self, language: str) -> None:
        self._set("language", language)

    def get_transform_model(self) -> str:
        return str(self._get("transform_model"))

    def get_asr_model(self) -> str:
        return str(self._get("asr_model"))

    def get_transform_timeout_s(self) -> float:
        return self._get_float("transform_timeout_s")

    def get_clipboard_restore_delay_s(self) -> float:
        return self._get_float("clipboard_restore_delay_s")

    def get_log_level(self) -> str:
        return str(self._get("log_level")).upper()

    def set_value(self, key: str, value: Any) -> None:
        if key not in DEFAULTS:
            raise KeyError(f"unknown setting: {key}")
        self._set(key, value)

    def load_settings(self) -> Settings:
        data = self._read_all()

        def pick(key: str) -> Any:
            return data.get(key, DEFAULTS[key])

        return Settings(
            language=str(pick("language")),
            enable_translation=bool(pick("enable_translation")),
            target_language=str(pick("target_language")),
            use_ai=bool(pick("use_ai")),
            enable_auto_detection=bool(pick("enable_auto_detection")),
            selected_mode=str(pick("selected_mode")),
            custom_prompt=str(pick("custom_prompt")),
        )

    def _get(self, key: str) -> Any:
        return self._read_all().get(key, DEFAULTS[key])

    def _get_float(self, key: str) -> float:
        try:
            return float(self._get(key))
        except (TypeError, ValueError):
            logger.warning(f"Invalid value for {key}, using default")
            return float(DEFAULTS[key])

    def _set(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.warning(f"Could not read config at {self._path}, using defaults")
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
