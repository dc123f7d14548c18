"""Turns a raw transcript into delivered, context-formatted text."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from auto_paste import STRATEGY_SKIPPED, TextDeliveryService
from config import Settings
from context_detector import ApplicationContextDetector
from dictionary import apply_substitutions
from errors import ERROR_MESSAGES, NO_ACTIVE_TARGET, TRANSFORM_FAILED
from instructions import compose_instructions, needs_translation, resolve_context_instruction
from interfaces import DictionarySource, Notifier, TextTransformer
from models import (
    DictionaryEntry,
    NotificationKind,
    PreparedText,
    ProcessingOutcome,
    ProvenanceMetadata,
    SpeechMetrics,
    TransformRequest,
)
from speech_metrics import calculate_speech_metrics, word_count_ratio

logger = logging.getLogger(__name__)

CONFIDENCE_COMPLETE = 0.95
CONFIDENCE_TRUNCATED = 0.7
CONFIDENCE_DEGRADED = 0.0
CONFIDENCE_RAW = 1.0


class ProcessingOrchestrator:
    def __init__(
        self,
        detector: ApplicationContextDetector,
        transformer: TextTransformer,
        delivery: TextDeliveryService,
        dictionary: DictionarySource,
        settings_provider: Callable[[], Settings] = Settings,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self._detector = detector
        self._transformer = transformer
        self._delivery = delivery
        self._dictionary = dictionary
        self._settings_provider = settings_provider
        self._notifier = notifier

    async def process(
        self, raw_text: str, source_language: str, elapsed_seconds: float
    ) -> ProcessingOutcome:
        prepared = await self.prepare(raw_text, source_language, elapsed_seconds)
        return await self.deliver(prepared)

    async def prepare(
        self, raw_text: str, source_language: str, elapsed_seconds: float
    ) -> PreparedText:
        settings = self._load_settings()
        source = source_language or settings.language
        target = settings.effective_target_language
        text = (raw_text or "").strip()

        if not text:
            return PreparedText(
                final_text="",
                metrics=SpeechMetrics(word_count=0, words_per_minute=0.0, duration_seconds=max(elapsed_seconds, 0.0)),
                provenance=ProvenanceMetadata(
                    was_translated=False,
                    source_language=source,
                    target_language=target,
                    confidence=0.0,
                    word_count_ratio=1.0,
                    context_applied=False,
                    context_id="",
                ),
            )

        started = time.monotonic()
        context = self._detector.get_cached_context()
        instruction, context_id = resolve_context_instruction(context, settings)
        entries = self._load_dictionary()

        degraded = False
        confidence = CONFIDENCE_RAW
        candidate = text
        if settings.use_ai:
            request = TransformRequest(
                raw_text=text,
                source_language=source,
                target_language=target,
                context_instructions=compose_instructions(source, target, instruction),
                dictionary_hints=tuple(e.value for e in entries),
            )
            try:
                result = await self._transformer.transform(request)
                candidate = result.final_text.strip() or text
                confidence = CONFIDENCE_COMPLETE if result.finish_reason == "stop" else CONFIDENCE_TRUNCATED
            except Exception as exc:
                logger.warning(
                    f"Transform failed for {len(text)} characters, using raw transcript: {exc}"
                )
                candidate = text
                degraded = True
                confidence = CONFIDENCE_DEGRADED

        final_text = apply_substitutions(candidate, entries)
        metrics = calculate_speech_metrics(final_text, elapsed_seconds)
        applied = settings.use_ai and not degraded
        provenance = ProvenanceMetadata(
            was_translated=applied and needs_translation(source, target),
            source_language=source,
            target_language=target,
            confidence=confidence,
            word_count_ratio=word_count_ratio(text, final_text),
            context_applied=applied,
            context_id=context_id,
            original_text=text,
            transform_degraded=degraded,
        )
        logger.info(
            f"Prepared {metrics.word_count} words for {context_id} "
            f"in {time.monotonic() - started:.2f}s (degraded={degraded})"
        )
        return PreparedText(final_text=final_text, metrics=metrics, provenance=provenance)

    async def deliver(
        self, prepared: PreparedText, is_current: Optional[Callable[[], bool]] = None
    ) -> ProcessingOutcome:
        """Insert the prepared text. ``is_current`` is re-checked right before pasting."""
        delivered = False
        if prepared.final_text.strip():
            result = await self._delivery.deliver_detailed(prepared.final_text, is_current)
            delivered = result.success
            if result.strategy == STRATEGY_SKIPPED:
                logger.info("Delivery skipped, session is no longer current")
            elif not delivered:
                logger.warning(f"Delivery failed for {len(prepared.final_text)} characters")
                self._notify(NotificationKind.DELIVERY_FAILED, ERROR_MESSAGES[NO_ACTIVE_TARGET])
            elif prepared.provenance.transform_degraded:
                self._notify(NotificationKind.TRANSFORM_DEGRADED, ERROR_MESSAGES[TRANSFORM_FAILED])
        return ProcessingOutcome(
            final_text=prepared.final_text,
            metrics=prepared.metrics,
            provenance=prepared.provenance,
            delivered=delivered,
        )

    def _load_settings(self) -> Settings:
        try:
            return self._settings_provider()
        except Exception as exc:
            logger.warning(f"Could not load settings, using defaults: {exc}")
            return Settings()

    def _load_dictionary(self) -> list[DictionaryEntry]:
        try:
            return self._dictionary.load_entries()
        except Exception as exc:
            logger.warning(f"Could not load dictionary, skipping substitutions: {exc}")
            return []

    def _notify(self, kind: NotificationKind, message: str) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.notify(kind, message)
        except Exception:
            logger.error(f"Notifier failed for {kind.value}", exc_info=True)
