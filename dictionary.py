"""Personal dictionary: a local JSON cache of key -> replacement entries."""

from __future__ import annotations

import json
import logging
import re
import uuid
from pathlib import Path
from typing import Iterable, Optional

from models import DictionaryEntry

logger = logging.getLogger(__name__)


def build_pattern(entries: Iterable[DictionaryEntry]) -> tuple[Optional[re.Pattern], dict[str, str]]:
    replacements: dict[str, str] = {}
    for entry in entries:
        key = entry.key.strip()
        if key and key.lower() not in replacements:
            replacements[key.lower()] = entry.value
    if not replacements:
        return None, replacements
    keys = sorted(replacements, key=len, reverse=True)
    alternation = "|".join(re.escape(k) for k in keys)
    return re.compile(rf"(?<!\w)(?:{alternation})(?!\w)", re.IGNORECASE), replacements


def apply_substitutions(text: str, entries: Iterable[DictionaryEntry]) -> str:
    """Replace whole-word keys case-insensitively, longest key first, in one pass."""
    if not text:
        return text
    pattern, replacements = build_pattern(entries)
    if pattern is None:
        return text
    return pattern.sub(lambda m: replacements[m.group(0).lower()], text)


class JsonDictionaryStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "context_dictate" / "dictionary.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._entries: Optional[list[DictionaryEntry]] = None

    def load_entries(self) -> list[DictionaryEntry]:
        if self._entries is None:
            self._entries = self._read()
            logger.debug(f"Loaded {len(self._entries)} dictionary entries from {self._path}")
        return list(self._entries)

    def list_entries(self) -> list[DictionaryEntry]:
        return sorted(self.load_entries(), key=lambda e: e.key.lower())

    def add_entry(self, key: str, value: str) -> DictionaryEntry:
        key, value = _validate(key, value)
        entries = self.load_entries()
        if any(e.key.lower() == key.lower() for e in entries):
            raise ValueError(f"dictionary key already exists: {key}")
        entry = DictionaryEntry(key=key, value=value, id=uuid.uuid4().hex)
        entries.append(entry)
        self._write(entries)
        return entry

    def update_entry(self, entry_id: str, key: str, value: str) -> DictionaryEntry:
        key, value = _validate(key, value)
        entries = self.load_entries()
        for index, entry in enumerate(entries):
            if entry.id == entry_id:
                updated = DictionaryEntry(key=key, value=value, id=entry_id)
                entries[index] = updated
                self._write(entries)
                return updated
        raise KeyError(entry_id)

    def delete_entry(self, entry_id: str) -> bool:
        entries = self.load_entries()
        remaining = [e for e in entries if e.id != entry_id]
        if len(remaining) == len(entries):
            return False
        self._write(remaining)
        return True

    def clear_cache(self) -> None:
        self._entries = None

    def _read(self) -> list[DictionaryEntry]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.warning(f"Could not read dictionary at {self._path}, starting empty")
            return []
        if not isinstance(data, list):
            return []
        entries = []
        for item in data:
            if not isinstance(item, dict):
                continue
            key = str(item.get("key") or "").strip()
            value = str(item.get("value") or "").strip()
            if key and value:
                entries.append(DictionaryEntry(key=key, value=value, id=str(item.get("id") or "")))
        return entries

    def _write(self, entries: list[DictionaryEntry]) -> None:
        payload = [{"id": e.id, "key": e.key, "value": e.value} for e in entries]
        self._path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        self._entries = list(entries)


def _validate(key: str, value: str) -> tuple[str, str]:
    key = (key or "").strip()
    value = (value or "").strip()
    if not key or not value:
        raise ValueError("dictionary key and value must not be empty")
    return key, value
