from __future__ import annotations

import pytest

from hotkey import HOLD, TOGGLE, GlobalHotkeyAdapter


def _wired(mode: str) -> tuple[GlobalHotkeyAdapter, list[str]]:
    events: list[str] = []
    adapter = GlobalHotkeyAdapter("Key.alt_l", mode)
    adapter._on_start = lambda: events.append("start")
    adapter._on_stop = lambda: events.append("stop")
    return adapter, events


def test_hold_mode_records_while_pressed() -> None:
    adapter, events = _wired(HOLD)

    adapter.handle_press("Key.alt_l")
    adapter.handle_press("Key.alt_l")  # key repeat
    adapter.handle_release("Key.alt_l")

    assert events == ["start", "stop"]


def test_toggle_mode_flips_on_each_press() -> None:
    adapter, events = _wired(TOGGLE)

    adapter.handle_press("Key.alt_l")
    adapter.handle_release("Key.alt_l")
    adapter.handle_press("Key.alt_l")
    adapter.handle_release("Key.alt_l")

    assert events == ["start", "stop"]


def test_other_keys_are_ignored() -> None:
    adapter, events = _wired(HOLD)

    adapter.handle_press("'a'")
    adapter.handle_release("Key.alt_l")

    assert events == []


def test_reset_forgets_toggle_state() -> None:
    adapter, events = _wired(TOGGLE)

    adapter.handle_press("Key.alt_l")
    adapter.handle_release("Key.alt_l")
    adapter.reset()
    adapter.handle_press("Key.alt_l")

    assert events == ["start", "start"]


def test_unknown_mode_rejected() -> None:
    with pytest.raises(ValueError):
        GlobalHotkeyAdapter(mode="double-tap")
