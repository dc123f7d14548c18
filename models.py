"""Core data models for the dictation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class SessionState(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"
    FINALIZING = "FINALIZING"
    AWAITING_TRANSFORM = "AWAITING_TRANSFORM"
    DELIVERING = "DELIVERING"
    TIMED_OUT = "TIMED_OUT"


class ContextType(str, Enum):
    EMAIL = "email"
    NOTES = "notes"
    CODE_EDITOR = "code_editor"
    MESSAGING = "messaging"
    DOCUMENT = "document"
    BROWSER = "browser"
    TERMINAL = "terminal"
    PRESENTATION = "presentation"
    UNKNOWN = "unknown"


class NotificationKind(str, Enum):
    SILENT_RECORDING = "silent_recording"
    EMPTY_TRANSCRIPT = "empty_transcript"
    PERMISSION_ERROR = "permission_error"
    PROCESSING_TIMEOUT = "processing_timeout"
    DELIVERY_FAILED = "delivery_failed"
    RECOGNITION_FAILED = "recognition_failed"
    TRANSFORM_DEGRADED = "transform_degraded"
    PROCESSING_FAILED = "processing_failed"


@dataclass
class RecordingSession:
    """The single live recording. Never persisted."""

    token: int = 0
    state: SessionState = SessionState.IDLE
    audio_chunks: list[str] = field(default_factory=list)
    started_at: float = 0.0
    finished_at: float = 0.0


@dataclass(frozen=True)
class SilenceVerdict:
    is_silent: bool
    average_amplitude: float
    peak_amplitude: int
    speech_ratio: float = 0.0


@dataclass(frozen=True)
class FocusedWindow:
    app_name: str
    process_name: str = ""
    bundle_id: Optional[str] = None
    window_title: str = ""


@dataclass(frozen=True)
class ApplicationContext:
    application_id: str
    context_type: ContextType
    confidence: float
    display_name: str


@dataclass(frozen=True)
class DictionaryEntry:
    key: str
    value: str
    id: str = ""


@dataclass(frozen=True)
class TransformRequest:
    raw_text: str
    source_language: str
    target_language: str
    context_instructions: str
    dictionary_hints: tuple[str, ...] = ()


@dataclass(frozen=True)
class TransformResult:
    final_text: str
    finish_reason: str = "stop"


@dataclass(frozen=True)
class Transcription:
    text: str
    language: str


@dataclass(frozen=True)
class SpeechMetrics:
    word_count: int
    words_per_minute: float
    duration_seconds: float


@dataclass(frozen=True)
class ProvenanceMetadata:
    was_translated: bool
    source_language: str
    target_language: str
    confidence: float
    word_count_ratio: float
    context_applied: bool
    context_id: str
    original_text: str = ""
    transform_degraded: bool = False


@dataclass(frozen=True)
class PreparedText:
    """Output of the transform stages, not yet delivered."""

    final_text: str
    metrics: SpeechMetrics
    provenance: ProvenanceMetadata


@dataclass(frozen=True)
class ProcessingOutcome:
    final_text: str
    metrics: SpeechMetrics
    provenance: ProvenanceMetadata
    delivered: bool


@dataclass
class DeliveryResult:
    success: bool
    strategy: str
    reason: str
    clipboard_saved: bool = False


@dataclass
class GlobalMetrics:
    total_word_count: int = 0
    average_wpm: float = 0.0
    total_recordings: int = 0
    last_recording_words: int = 0
    last_recording_wpm: float = 0.0
