from __future__ import annotations

import asyncio
from typing import Optional

import pytest

from app_mappings import ApplicationMapping, to_application_id
from context_detector import ApplicationContextDetector, match_browser_title
from errors import AutomationError
from models import ContextType, FocusedWindow


class FakeAutomation:
    name = "fake"

    def __init__(self, window: Optional[FocusedWindow] = None, error: Exception | None = None) -> None:
        self.window = window
        self.error = error
        self.queries = 0

    async def query_focused_window(self) -> Optional[FocusedWindow]:
        self.queries += 1
        if self.error is not None:
            raise self.error
        return self.window


def _capture(detector: ApplicationContextDetector):  # noqa: ANN202
    return asyncio.run(detector.capture_context())


def test_bundle_id_match_has_high_confidence() -> None:
    window = FocusedWindow("Code", "electron", "com.microsoft.VSCode", "main.py - project")
    context = _capture(ApplicationContextDetector(FakeAutomation(window)))

    assert context.application_id == "visual-studio-code"
    assert context.context_type == ContextType.CODE_EDITOR
    assert context.confidence == 0.95
    assert context.display_name == "Visual Studio Code"


def test_exact_name_strips_vendor_prefix() -> None:
    context = _capture(ApplicationContextDetector(FakeAutomation(FocusedWindow("Microsoft Outlook"))))

    assert context.application_id == "outlook"
    assert context.context_type == ContextType.EMAIL
    assert context.confidence == 0.95


def test_process_name_match_has_lower_confidence() -> None:
    window = FocusedWindow("Some Window Host", process_name="slack")
    context = _capture(ApplicationContextDetector(FakeAutomation(window)))

    assert context.application_id == "slack"
    assert context.context_type == ContextType.MESSAGING
    assert context.confidence == 0.9


def test_browser_title_pattern_wins() -> None:
    window = FocusedWindow("Google Chrome", "chrome", None, "Inbox (3) - me@example.com - Gmail")
    context = _capture(ApplicationContextDetector(FakeAutomation(window)))

    assert context.application_id == "gmail"
    assert context.context_type == ContextType.EMAIL
    assert context.confidence == 0.75


def test_browser_without_known_site_is_default() -> None:
    window = FocusedWindow("Firefox", "firefox", None, "Weather forecast")
    context = _capture(ApplicationContextDetector(FakeAutomation(window)))

    assert context.application_id == "default"
    assert context.context_type == ContextType.BROWSER
    assert context.confidence == 0.3


def test_browser_keyword_bucket_needs_site_like_title() -> None:
    assert match_browser_title("my chat room") is None
    assert match_browser_title("chat - example.com") == "slack"
    assert match_browser_title("Edit draft - blog.example.org") == "docs"


def test_unknown_app_is_default_context() -> None:
    context = _capture(ApplicationContextDetector(FakeAutomation(FocusedWindow("Zzyzx Tool"))))

    assert context.application_id == "default"
    assert context.context_type == ContextType.UNKNOWN
    assert context.confidence == 0.3
    assert context.display_name == "Default"


def test_os_failure_yields_default_with_low_confidence() -> None:
    detector = ApplicationContextDetector(FakeAutomation(error=AutomationError("osascript not found")))
    context = _capture(detector)

    assert context.application_id == "default"
    assert context.confidence == 0.1
    assert detector.get_cached_context() is context


def test_empty_window_yields_default_with_low_confidence() -> None:
    context = _capture(ApplicationContextDetector(FakeAutomation(None)))

    assert context.confidence == 0.1


def test_cached_context_is_same_object_until_cleared() -> None:
    automation = FakeAutomation(FocusedWindow("Slack"))
    detector = ApplicationContextDetector(automation)
    assert detector.get_cached_context() is None

    _capture(detector)
    first = detector.get_cached_context()
    second = detector.get_cached_context()

    assert first is second
    assert automation.queries == 1

    detector.clear_cache()
    assert detector.get_cached_context() is None


def test_clear_during_capture_discards_result() -> None:
    class SlowAutomation(FakeAutomation):
        async def query_focused_window(self) -> Optional[FocusedWindow]:
            await asyncio.sleep(0.05)
            return FocusedWindow("Slack")

    detector = ApplicationContextDetector(SlowAutomation())

    async def scenario() -> None:
        task = asyncio.create_task(detector.capture_context())
        await asyncio.sleep(0.01)
        detector.clear_cache()
        await task

    asyncio.run(scenario())
    assert detector.get_cached_context() is None


def test_email_title_bonus() -> None:
    window = FocusedWindow("Spark", window_title="Compose - bob@example.com")
    detector = ApplicationContextDetector(FakeAutomation(window))

    best = detector.find_best_match(window)
    assert best is not None
    assert best.mapping.app_name == "Spark"
    # exact 50 + process substring 0 + partial 20 + title 15
    assert best.score == 85


# ---------------------------------------------------------------
# Tie-breaking
# ---------------------------------------------------------------

def test_tie_goes_to_first_table_entry_by_default() -> None:
    window = FocusedWindow("Writer Pro", process_name="writer")
    mappings = (
        ApplicationMapping("Alpha", ContextType.DOCUMENT, process_names=("writer",), aliases=("x",)),
        ApplicationMapping("Beta", ContextType.NOTES, aliases=("writer pro",)),
    )
    # Alpha: process 30. Beta: alias 40. Not a tie; Beta wins on score.
    detector = ApplicationContextDetector(FakeAutomation(window), mappings=mappings)
    assert detector.find_best_match(window).mapping.app_name == "Beta"

    tied = (
        ApplicationMapping("Gamma", ContextType.DOCUMENT, process_names=("writer",)),
        ApplicationMapping("Delta", ContextType.NOTES, process_names=("writer",)),
    )
    detector = ApplicationContextDetector(FakeAutomation(window), mappings=tied)
    best = detector.find_best_match(window)
    assert best.mapping.app_name == "Gamma"
    assert best.score == 30


def test_specific_tie_break_prefers_strongest_signal() -> None:
    # Both score 70: alias (40) + process (30) versus exact name (50) + partial name (20).
    window = FocusedWindow("Ink", process_name="inkwell")
    mappings = (
        ApplicationMapping("Scribe", ContextType.DOCUMENT, aliases=("ink",), process_names=("inkwell",)),
        ApplicationMapping("Ink", ContextType.NOTES),
    )
    first = ApplicationContextDetector(FakeAutomation(window), mappings=mappings)
    specific = ApplicationContextDetector(FakeAutomation(window), mappings=mappings, tie_break="specific")

    assert first.find_best_match(window).score == 70
    assert specific.find_best_match(window).score == 70
    assert first.find_best_match(window).mapping.app_name == "Scribe"
    assert specific.find_best_match(window).mapping.app_name == "Ink"


def test_unknown_tie_break_policy_rejected() -> None:
    with pytest.raises(ValueError):
        ApplicationContextDetector(FakeAutomation(), tie_break="random")


# ---------------------------------------------------------------
# Custom mappings
# ---------------------------------------------------------------

def test_custom_mapping_overrides_table() -> None:
    window = FocusedWindow("Slack")
    detector = ApplicationContextDetector(FakeAutomation(window))
    detector.add_custom_mapping("Slack", ContextType.NOTES)

    context = _capture(detector)
    assert context.context_type == ContextType.NOTES
    assert context.confidence == 0.95

    assert detector.remove_custom_mapping("slack") is True
    assert detector.remove_custom_mapping("slack") is False
    assert _capture(detector).context_type == ContextType.MESSAGING


def test_to_application_id() -> None:
    assert to_application_id("Visual Studio Code") == "visual-studio-code"
    assert to_application_id("Microsoft Word") == "word"
    assert to_application_id("Apple Notes") == "notes"
    assert to_application_id("IntelliJ IDEA") == "intellij-idea"
