"""State-machine based session orchestration.

All methods run on the asyncio loop thread. Audio chunks and hotkey events
from other threads are marshalled in with ``loop.call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import time
from typing import Callable, Optional

import silence
from completion import TranscriptCompletionService
from context_detector import ApplicationContextDetector
from dictionary import JsonDictionaryStore
from errors import ERROR_MESSAGES, PERMISSION_DENIED, PROCESSING_FAILED, PROCESSING_TIMEOUT, DictationError
from interfaces import Notifier, Recognizer
from models import NotificationKind, ProcessingOutcome, RecordingSession, SessionState
from orchestrator import ProcessingOrchestrator

logger = logging.getLogger(__name__)

StateCallback = Callable[[SessionState, SessionState], None]

DEFAULT_TIMEOUT_S = 30.0

_IN_FLIGHT = (SessionState.AWAITING_TRANSFORM, SessionState.DELIVERING)


class SessionController:
    def __init__(
        self,
        recognizer: Recognizer,
        orchestrator: ProcessingOrchestrator,
        detector: ApplicationContextDetector,
        completion: Optional[TranscriptCompletionService] = None,
        notifier: Optional[Notifier] = None,
        dictionary: Optional[JsonDictionaryStore] = None,
        language_provider: Callable[[], str] = lambda: "en",
        timeout_s: float = DEFAULT_TIMEOUT_S,
        on_state_change: Optional[StateCallback] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._recognizer = recognizer
        self._orchestrator = orchestrator
        self._detector = detector
        self._completion = completion
        self._notifier = notifier
        self._dictionary = dictionary
        self._language_provider = language_provider
        self._timeout_s = timeout_s
        self._on_state_change = on_state_change
        self._clock = clock

        self._session = RecordingSession()
        self._background: set[asyncio.Task] = set()

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def token(self) -> int:
        return self._session.token

    def start(self) -> bool:
        """Begin recording. No-op unless idle."""
        if self._session.state != SessionState.IDLE:
            logger.debug(f"Ignoring start in state {self._session.state.value}")
            return False
        self._session = RecordingSession(
            token=self._session.token + 1,
            started_at=self._clock(),
        )
        self._transition(SessionState.RECORDING)
        self._spawn(self._detector.capture_context(), "capture context")
        return True

    def push_chunk(self, data: str) -> None:
        if self._session.state != SessionState.RECORDING:
            return
        self._session.audio_chunks.append(data)

    async def stop(self) -> Optional[ProcessingOutcome]:
        if self._session.state != SessionState.RECORDING:
            return None

        chunks, self._session.audio_chunks = self._session.audio_chunks, []
        self._session.finished_at = self._clock()
        if not chunks:
            self._end_session()
            return None

        elapsed = max(self._session.finished_at - self._session.started_at, 0.0)
        self._transition(SessionState.FINALIZING)
        pcm = self._decode(chunks)

        verdict = silence.analyze(pcm)
        if verdict.is_silent:
            logger.info(f"Recording of {elapsed:.1f}s is silent, skipping processing")
            self._end_session()
            self._notify(NotificationKind.SILENT_RECORDING, "No speech detected. Please try again.")
            return None

        token = self._session.token
        self._transition(SessionState.AWAITING_TRANSFORM)
        pipeline = asyncio.get_running_loop().create_task(self._run_pipeline(token, pcm, elapsed))
        done, _ = await asyncio.wait({pipeline}, timeout=self._timeout_s)
        if pipeline in done:
            return pipeline.result()

        # The pipeline keeps running; its result is dropped as stale.
        self._background.add(pipeline)
        pipeline.add_done_callback(self._task_done)
        if self._is_current(token):
            logger.warning(f"Processing exceeded {self._timeout_s:.0f}s, resetting session {token}")
            self._transition(SessionState.TIMED_OUT)
            self._end_session()
            self._notify(NotificationKind.PROCESSING_TIMEOUT, ERROR_MESSAGES[PROCESSING_TIMEOUT])
        return None

    finalize = stop

    def cancel(self, reason: str) -> None:
        if self._session.state == SessionState.IDLE:
            return
        logger.info(f"Cancelling session {self._session.token}: {reason}")
        self._session.audio_chunks = []
        self._end_session()

    def sign_out(self) -> None:
        self.cancel("sign out")
        self._detector.clear_cache()
        if self._dictionary is not None:
            self._dictionary.clear_cache()

    async def wait_background(self) -> None:
        """Wait for detached work (completions, orphaned pipelines)."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _run_pipeline(self, token: int, pcm: bytes, elapsed: float) -> Optional[ProcessingOutcome]:
        stage = "recognition"
        try:
            language = self._language_provider()
            try:
                transcription = await self._recognizer.transcribe(pcm, language)
            except Exception as exc:
                logger.error(f"Recognition failed for {len(pcm)} bytes: {exc}")
                if self._is_current(token):
                    self._end_session()
                    kind = NotificationKind.RECOGNITION_FAILED
                    code = exc.code if isinstance(exc, DictationError) else ""
                    if code == PERMISSION_DENIED:
                        kind = NotificationKind.PERMISSION_ERROR
                    self._notify(kind, ERROR_MESSAGES.get(code, str(exc)))
                return None

            if not self._is_current(token):
                logger.info(f"Dropping stale transcript for session {token}")
                return None

            text = transcription.text.strip()
            if not text:
                self._end_session()
                self._notify(NotificationKind.EMPTY_TRANSCRIPT, "No speech was recognised.")
                return None

            stage = "transform"
            prepared = await self._orchestrator.prepare(text, transcription.language or language, elapsed)
            if not self._is_current(token):
                logger.info(f"Dropping stale result for session {token}")
                return None

            stage = "delivery"
            self._transition(SessionState.DELIVERING)
            outcome = await self._orchestrator.deliver(prepared, lambda: self._is_current(token))
            if not self._is_current(token):
                logger.info(f"Session {token} reset during delivery, skipping completion")
                return None

            stage = "completion"
            self._end_session()
            if self._completion is not None:
                self._spawn(self._completion.handle_completion(outcome), "transcript completion")
            return outcome
        except Exception:
            logger.error(f"Pipeline failed during {stage} for session {token}", exc_info=True)
            if self._is_current(token):
                self._end_session()
                self._notify(NotificationKind.PROCESSING_FAILED, ERROR_MESSAGES[PROCESSING_FAILED])
            return None

    def _decode(self, chunks: list[str]) -> bytes:
        parts = []
        for chunk in chunks:
            try:
                parts.append(base64.b64decode(chunk, validate=True))
            except (binascii.Error, ValueError):
                logger.warning("Skipping undecodable audio chunk")
        return b"".join(parts)

    def _is_current(self, token: int) -> bool:
        return self._session.token == token and self._session.state in _IN_FLIGHT

    def _end_session(self) -> None:
        self._transition(SessionState.IDLE)
        self._detector.clear_cache()

    def _spawn(self, coro, label: str) -> None:  # noqa: ANN001
        task = asyncio.get_running_loop().create_task(coro, name=label)
        self._background.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background task {task.get_name()} failed", exc_info=exc)

    def _notify(self, kind: NotificationKind, message: str) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.notify(kind, message)
        except Exception:
            logger.error(f"Notifier failed for {kind.value}", exc_info=True)

    def _transition(self, to_state: SessionState) -> None:
        from_state = self._session.state
        if from_state == to_state:
            return
        self._session.state = to_state
        logger.info(f"Session {self._session.token}: {from_state.value} -> {to_state.value}")
        if self._on_state_change is None:
            return
        try:
            self._on_state_change(from_state, to_state)
        except Exception:
            logger.error(f"State observer failed for {to_state.value}", exc_info=True)
