from __future__ import annotations

import asyncio
from pathlib import Path

from completion import TranscriptCompletionService
from models import GlobalMetrics, ProcessingOutcome, ProvenanceMetadata, SpeechMetrics
from transcript_store import JsonTranscriptStore


def _outcome(text: str, words: int = 4, wpm: float = 80.0, degraded: bool = False) -> ProcessingOutcome:
    return ProcessingOutcome(
        final_text=text,
        metrics=SpeechMetrics(word_count=words, words_per_minute=wpm, duration_seconds=3.0),
        provenance=ProvenanceMetadata(
            was_translated=False,
            source_language="en",
            target_language="en",
            confidence=0.95,
            word_count_ratio=1.0,
            context_applied=True,
            context_id="slack",
            original_text=text.lower(),
            transform_degraded=degraded,
        ),
        delivered=True,
    )


class BrokenStore:
    def save_transcript(self, text, metrics, provenance):  # noqa: ANN001, ANN201
        raise OSError("disk full")

    def load_metrics(self) -> GlobalMetrics:
        return GlobalMetrics()

    def save_metrics(self, metrics: GlobalMetrics) -> None:
        raise AssertionError("metrics must not be saved when the transcript was not")


def test_completion_persists_transcript_and_totals(tmp_path: Path) -> None:
    store = JsonTranscriptStore(tmp_path)
    service = TranscriptCompletionService(store)

    first = asyncio.run(service.handle_completion(_outcome("Ship it now please")))
    asyncio.run(service.handle_completion(_outcome("Second one here", words=3, wpm=160.0)))

    records = store.list_transcripts()
    assert [r.text for r in records] == ["Second one here", "Ship it now please"]
    assert records[1].id == first
    assert records[1].original_text == "ship it now please"
    assert records[1].context_id == "slack"

    totals = store.load_metrics()
    assert totals.total_recordings == 2
    assert totals.total_word_count == 7
    assert totals.last_recording_wpm == 160.0


def test_blank_outcome_is_not_saved(tmp_path: Path) -> None:
    store = JsonTranscriptStore(tmp_path)
    assert asyncio.run(TranscriptCompletionService(store).handle_completion(_outcome("  "))) is None
    assert store.list_transcripts() == []


def test_store_failure_is_logged_not_raised() -> None:
    service = TranscriptCompletionService(BrokenStore())
    assert asyncio.run(service.handle_completion(_outcome("hello"))) is None


def test_list_transcripts_limit_and_bad_lines(tmp_path: Path) -> None:
    store = JsonTranscriptStore(tmp_path)
    for index in range(3):
        store.save_transcript(f"note {index}", _outcome("x").metrics, _outcome("x").provenance)
    with (tmp_path / "transcripts.jsonl").open("a", encoding="utf-8") as fh:
        fh.write("{broken\n")

    assert [r.text for r in store.list_transcripts(limit=2)] == ["note 2", "note 1"]


def test_unreadable_metrics_start_from_zero(tmp_path: Path) -> None:
    (tmp_path / "metrics.json").write_text("[]", encoding="utf-8")
    assert JsonTranscriptStore(tmp_path).load_metrics() == GlobalMetrics()


def test_degraded_transform_is_recorded(tmp_path: Path) -> None:
    store = JsonTranscriptStore(tmp_path)
    asyncio.run(TranscriptCompletionService(store).handle_completion(_outcome("raw words", degraded=True)))

    (record,) = store.list_transcripts()
    assert record.transform_degraded is True
