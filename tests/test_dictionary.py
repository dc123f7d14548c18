from __future__ import annotations

from pathlib import Path

import pytest

from dictionary import JsonDictionaryStore, apply_substitutions
from models import DictionaryEntry


def _entries(mapping: dict[str, str]) -> list[DictionaryEntry]:
    return [DictionaryEntry(key=k, value=v) for k, v in mapping.items()]


def test_longest_key_wins() -> None:
    entries = _entries({"AI": "Artificial Intelligence", "AI model": "foundation model"})

    assert apply_substitutions("the AI model is great", entries) == "the foundation model is great"


def test_replacement_is_not_resubstituted() -> None:
    entries = _entries({"AI": "Artificial Intelligence", "AI model": "foundation model"})
    once = apply_substitutions("the AI is an AI model", entries)

    assert once == "the Artificial Intelligence is an foundation model"
    assert apply_substitutions(once, entries) == once


def test_case_insensitive_whole_word_and_value_verbatim() -> None:
    entries = _entries({"gpt": "GPT-4o"})

    assert apply_substitutions("Ask GPT, then gpt again", entries) == "Ask GPT-4o, then GPT-4o again"
    assert apply_substitutions("chatgpt stays", entries) == "chatgpt stays"


def test_keys_with_symbols_are_literal() -> None:
    entries = _entries({"c++": "C++", "node.js": "Node.js"})

    assert apply_substitutions("I like c++ and node.js", entries) == "I like C++ and Node.js"
    assert apply_substitutions("nodexjs", entries) == "nodexjs"


def test_no_entries_returns_text_unchanged() -> None:
    assert apply_substitutions("hello", []) == "hello"
    assert apply_substitutions("", _entries({"a": "b"})) == ""


# ---------------------------------------------------------------
# JsonDictionaryStore
# ---------------------------------------------------------------

def test_store_add_list_update_delete(tmp_path: Path) -> None:
    path = tmp_path / "dictionary.json"
    store = JsonDictionaryStore(path)
    assert store.load_entries() == []

    k8s = store.add_entry("  k8s ", " Kubernetes ")
    store.add_entry("AI", "Artificial Intelligence")
    assert k8s.key == "k8s"
    assert k8s.value == "Kubernetes"
    assert k8s.id

    reloaded = JsonDictionaryStore(path)
    assert [e.key for e in reloaded.list_entries()] == ["AI", "k8s"]

    updated = reloaded.update_entry(k8s.id, "k8s", "Kubernetes cluster")
    assert updated.value == "Kubernetes cluster"
    assert reloaded.delete_entry(k8s.id) is True
    assert reloaded.delete_entry(k8s.id) is False
    assert [e.key for e in JsonDictionaryStore(path).load_entries()] == ["AI"]


def test_store_validates_entries(tmp_path: Path) -> None:
    store = JsonDictionaryStore(tmp_path / "dictionary.json")

    with pytest.raises(ValueError):
        store.add_entry("  ", "value")
    with pytest.raises(ValueError):
        store.add_entry("key", "")
    store.add_entry("key", "value")
    with pytest.raises(ValueError):
        store.add_entry("KEY", "other")
    with pytest.raises(KeyError):
        store.update_entry("missing", "a", "b")


def test_store_cache_is_read_once_until_cleared(tmp_path: Path) -> None:
    path = tmp_path / "dictionary.json"
    path.write_text('[{"id": "1", "key": "js", "value": "JavaScript"}]', encoding="utf-8")
    store = JsonDictionaryStore(path)

    assert len(store.load_entries()) == 1
    path.write_text("[]", encoding="utf-8")
    assert len(store.load_entries()) == 1

    store.clear_cache()
    assert store.load_entries() == []


def test_store_invalid_json_falls_back_to_empty(tmp_path: Path) -> None:
    path = tmp_path / "dictionary.json"
    path.write_text("{oops", encoding="utf-8")

    assert JsonDictionaryStore(path).load_entries() == []
