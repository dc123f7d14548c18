"""Local transcript history (JSON lines) and running speech totals."""

from __future__ import annotations

import json
import logging
import threading
import time
import uuid
from dataclasses import asdict, dataclass
from pathlib import Path

from models import GlobalMetrics, ProvenanceMetadata, SpeechMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranscriptRecord:
    id: str
    created_at: float
    text: str
    original_text: str
    source_language: str
    target_language: str
    was_translated: bool
    confidence: float
    word_count: int
    words_per_minute: float
    duration_seconds: float
    word_count_ratio: float
    context_applied: bool
    context_id: str
    transform_degraded: bool = False


class JsonTranscriptStore:
    def __init__(self, directory: Path | None = None) -> None:
        self._dir = directory or Path.home() / ".config" / "context_dictate"
        self._dir.mkdir(parents=True, exist_ok=True)
        self._transcripts = self._dir / "transcripts.jsonl"
        self._metrics = self._dir / "metrics.json"
        self._lock = threading.Lock()

    def save_transcript(
        self,
        text: str,
        metrics: SpeechMetrics,
        provenance: ProvenanceMetadata,
    ) -> str:
        record = TranscriptRecord(
            id=uuid.uuid4().hex,
            created_at=time.time(),
            text=text,
            original_text=provenance.original_text,
            source_language=provenance.source_language,
            target_language=provenance.target_language,
            was_translated=provenance.was_translated,
            confidence=provenance.confidence,
            word_count=metrics.word_count,
            words_per_minute=metrics.words_per_minute,
            duration_seconds=metrics.duration_seconds,
            word_count_ratio=provenance.word_count_ratio,
            context_applied=provenance.context_applied,
            context_id=provenance.context_id,
            transform_degraded=provenance.transform_degraded,
        )
        line = json.dumps(asdict(record), ensure_ascii=False)
        with self._lock:
            with self._transcripts.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        logger.debug(f"Saved transcript {record.id}")
        return record.id

    def list_transcripts(self, limit: int = 50) -> list[TranscriptRecord]:
        """Most recent first."""
        if not self._transcripts.exists():
            return []
        records = []
        with self._lock:
            lines = self._transcripts.read_text(encoding="utf-8").splitlines()
        for line in reversed(lines):
            if len(records) >= limit:
                break
            try:
                records.append(TranscriptRecord(**json.loads(line)))
            except (json.JSONDecodeError, TypeError):
                logger.warning("Skipping unreadable transcript line")
        return records

    def load_metrics(self) -> GlobalMetrics:
        if not self._metrics.exists():
            return GlobalMetrics()
        try:
            data = json.loads(self._metrics.read_text(encoding="utf-8"))
            return GlobalMetrics(**data)
        except (json.JSONDecodeError, TypeError, OSError):
            logger.warning(f"Could not read metrics at {self._metrics}, starting from zero")
            return GlobalMetrics()

    def save_metrics(self, metrics: GlobalMetrics) -> None:
        with self._lock:
            self._metrics.write_text(json.dumps(asdict(metrics), indent=2), encoding="utf-8")
