"""Protocol interfaces for the collaborators the pipeline depends on."""

from __future__ import annotations

from typing import Optional, Protocol

from models import (
    DictionaryEntry,
    FocusedWindow,
    GlobalMetrics,
    NotificationKind,
    ProvenanceMetadata,
    SpeechMetrics,
    Transcription,
    TransformRequest,
    TransformResult,
)


class Recognizer(Protocol):
    async def transcribe(self, pcm: bytes, language: str) -> Transcription: ...


class TextTransformer(Protocol):
    async def transform(self, request: TransformRequest) -> TransformResult: ...


class OSAutomation(Protocol):
    name: str

    async def query_focused_window(self) -> Optional[FocusedWindow]: ...

    async def get_clipboard(self) -> str: ...

    async def set_clipboard(self, text: str) -> None: ...

    async def send_paste(self) -> None: ...

    async def send_keystrokes(self, text: str) -> None: ...

    def supports_clipboard(self) -> bool: ...


class TranscriptStore(Protocol):
    def save_transcript(
        self,
        text: str,
        metrics: SpeechMetrics,
        provenance: ProvenanceMetadata,
    ) -> str: ...

    def load_metrics(self) -> GlobalMetrics: ...

    def save_metrics(self, metrics: GlobalMetrics) -> None: ...


class DictionarySource(Protocol):
    def load_entries(self) -> list[DictionaryEntry]: ...


class Notifier(Protocol):
    def notify(self, kind: NotificationKind, message: str) -> None: ...
