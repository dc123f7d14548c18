"""Background work after a dictation is delivered: history and totals."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from interfaces import TranscriptStore
from models import GlobalMetrics, ProcessingOutcome
from speech_metrics import update_global_metrics

logger = logging.getLogger(__name__)


class TranscriptCompletionService:
    def __init__(self, store: TranscriptStore) -> None:
        self._store = store

    async def handle_completion(self, outcome: ProcessingOutcome) -> Optional[str]:
        """Persist one outcome and fold it into the running totals. Never raises."""
        if not outcome.final_text.strip():
            return None
        try:
            transcript_id = await asyncio.to_thread(
                self._store.save_transcript,
                outcome.final_text,
                outcome.metrics,
                outcome.provenance,
            )
        except Exception:
            logger.error("Saving transcript failed", exc_info=True)
            return None

        try:
            await asyncio.to_thread(self._update_metrics, outcome)
        except Exception:
            logger.error("Updating speech metrics failed", exc_info=True)
        logger.info(f"Completed transcript {transcript_id} ({outcome.metrics.word_count} words)")
        return transcript_id

    def _update_metrics(self, outcome: ProcessingOutcome) -> GlobalMetrics:
        updated = update_global_metrics(self._store.load_metrics(), outcome.metrics)
        self._store.save_metrics(updated)
        return updated
