from __future__ import annotations

import asyncio
from typing import Optional

from auto_paste import TextDeliveryService
from config import Settings
from context_detector import ApplicationContextDetector
from errors import TransformError
from models import DictionaryEntry, FocusedWindow, NotificationKind, TransformRequest, TransformResult
from orchestrator import ProcessingOrchestrator


class FakeTransformer:
    def __init__(self, reply: str = "", finish_reason: str = "stop", error: Exception | None = None) -> None:
        self.reply = reply
        self.finish_reason = finish_reason
        self.error = error
        self.requests: list[TransformRequest] = []

    async def transform(self, request: TransformRequest) -> TransformResult:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return TransformResult(final_text=self.reply or request.raw_text, finish_reason=self.finish_reason)


class FakeAutomation:
    name = "fake"

    def __init__(self, window: Optional[FocusedWindow] = None, paste_ok: bool = True) -> None:
        self.window = window
        self.paste_ok = paste_ok
        self.clipboard = ""
        self.pasted: list[str] = []

    async def query_focused_window(self) -> Optional[FocusedWindow]:
        return self.window

    def supports_clipboard(self) -> bool:
        return True

    async def get_clipboard(self) -> str:
        return self.clipboard

    async def set_clipboard(self, text: str) -> None:
        self.clipboard = text

    async def send_paste(self) -> None:
        if not self.paste_ok:
            raise RuntimeError("no target")
        self.pasted.append(self.clipboard)

    async def send_keystrokes(self, text: str) -> None:
        raise RuntimeError("no target")


class FakeDictionary:
    def __init__(self, entries: list[DictionaryEntry] | None = None) -> None:
        self.entries = entries or []

    def load_entries(self) -> list[DictionaryEntry]:
        return list(self.entries)


class FakeNotifier:
    def __init__(self) -> None:
        self.calls: list[tuple[NotificationKind, str]] = []

    def notify(self, kind: NotificationKind, message: str) -> None:
        self.calls.append((kind, message))


def _build(
    transformer: FakeTransformer,
    automation: FakeAutomation | None = None,
    entries: list[DictionaryEntry] | None = None,
    settings: Settings | None = None,
):  # noqa: ANN202
    automation = automation or FakeAutomation(FocusedWindow("Slack"))
    detector = ApplicationContextDetector(automation)
    notifier = FakeNotifier()
    orchestrator = ProcessingOrchestrator(
        detector=detector,
        transformer=transformer,
        delivery=TextDeliveryService(automation, restore_delay_s=0.0, pre_delay_s=0.0),
        dictionary=FakeDictionary(entries),
        settings_provider=lambda: settings or Settings(),
        notifier=notifier,
    )
    return orchestrator, detector, automation, notifier


def test_blank_text_never_calls_transformer() -> None:
    transformer = FakeTransformer()
    orchestrator, _, automation, _ = _build(transformer)

    outcome = asyncio.run(orchestrator.process("   ", "en", 3.0))

    assert transformer.requests == []
    assert automation.pasted == []
    assert outcome.delivered is False
    assert outcome.metrics.word_count == 0
    assert outcome.metrics.words_per_minute == 0.0


def test_process_uses_cached_context_and_delivers() -> None:
    transformer = FakeTransformer(reply="Hey team, the build is green. 🔥")
    orchestrator, detector, automation, _ = _build(transformer)

    async def scenario():  # noqa: ANN202
        await detector.capture_context()
        return await orchestrator.process("hey team the build is green fire emoji", "en", 3.0)

    outcome = asyncio.run(scenario())

    assert len(transformer.requests) == 1
    request = transformer.requests[0]
    assert "Slack" in request.context_instructions
    assert request.source_language == request.target_language == "en"
    assert outcome.delivered is True
    assert automation.pasted == ["Hey team, the build is green. 🔥"]
    assert outcome.provenance.context_id == "slack"
    assert outcome.provenance.context_applied is True
    assert outcome.provenance.confidence == 0.95
    assert outcome.provenance.was_translated is False
    assert outcome.provenance.original_text == "hey team the build is green fire emoji"
    assert outcome.metrics.word_count == 7
    assert outcome.metrics.words_per_minute == 140.0


def test_transform_failure_falls_back_to_raw_text() -> None:
    transformer = FakeTransformer(error=TransformError("boom"))
    orchestrator, _, automation, notifier = _build(transformer)

    outcome = asyncio.run(orchestrator.process("ship it", "en", 1.0))

    assert outcome.final_text == "ship it"
    assert outcome.delivered is True
    assert automation.pasted == ["ship it"]
    assert outcome.provenance.transform_degraded is True
    assert outcome.provenance.confidence == 0.0
    assert outcome.provenance.context_applied is False
    assert [kind for kind, _ in notifier.calls] == [NotificationKind.TRANSFORM_DEGRADED]


def test_truncated_transform_has_lower_confidence() -> None:
    orchestrator, _, _, _ = _build(FakeTransformer(reply="partial", finish_reason="length"))

    outcome = asyncio.run(orchestrator.process("some long text", "en", 1.0))
    assert outcome.provenance.confidence == 0.7


def test_translation_and_dictionary_post_pass() -> None:
    transformer = FakeTransformer(reply="the AI model is great")
    settings = Settings(language="hi", enable_translation=True, target_language="en")
    entries = [
        DictionaryEntry("AI", "Artificial Intelligence"),
        DictionaryEntry("AI model", "foundation model"),
    ]
    orchestrator, _, _, _ = _build(transformer, entries=entries, settings=settings)

    outcome = asyncio.run(orchestrator.process("एआई मॉडल बढ़िया है", "hi", 2.0))

    request = transformer.requests[0]
    assert "Translate the text from Hindi into English." in request.context_instructions
    assert request.dictionary_hints == ("Artificial Intelligence", "foundation model")
    assert outcome.final_text == "the foundation model is great"
    assert outcome.provenance.was_translated is True
    assert outcome.provenance.source_language == "hi"
    assert outcome.provenance.target_language == "en"


def test_ai_disabled_skips_transform() -> None:
    transformer = FakeTransformer()
    orchestrator, _, automation, _ = _build(transformer, settings=Settings(use_ai=False))

    outcome = asyncio.run(orchestrator.process("plain words", "en", 1.0))

    assert transformer.requests == []
    assert automation.pasted == ["plain words"]
    assert outcome.provenance.context_applied is False


def test_delivery_failure_notifies_and_keeps_result() -> None:
    automation = FakeAutomation(FocusedWindow("Slack"), paste_ok=False)
    orchestrator, _, _, notifier = _build(FakeTransformer(), automation=automation)

    outcome = asyncio.run(orchestrator.process("hello there", "en", 1.0))

    assert outcome.delivered is False
    assert outcome.final_text == "hello there"
    assert [kind for kind, _ in notifier.calls] == [NotificationKind.DELIVERY_FAILED]


def test_prepare_does_not_deliver() -> None:
    orchestrator, _, automation, _ = _build(FakeTransformer())

    prepared = asyncio.run(orchestrator.prepare("hello there", "en", 1.0))

    assert prepared.final_text == "hello there"
    assert automation.pasted == []


def test_deliver_skips_paste_when_session_is_stale() -> None:
    orchestrator, _, automation, notifier = _build(FakeTransformer())

    async def scenario():  # noqa: ANN202
        prepared = await orchestrator.prepare("hello there", "en", 1.0)
        return await orchestrator.deliver(prepared, is_current=lambda: False)

    outcome = asyncio.run(scenario())

    assert outcome.delivered is False
    assert automation.pasted == []
    assert notifier.calls == []
