"""Microphone recorder adapter.

Each audio block is delivered as a base64 string of little-endian PCM16 so
the session controller can buffer it without caring about the device format.
"""

from __future__ import annotations

import base64
import logging
import threading
from typing import Any, Callable, Optional

import numpy as np

from errors import PERMISSION_DENIED, DictationError

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[str], None]


class SoundDeviceRecorder:
    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 100,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self._stream: Any = None
        self._running = False
        self._lock = threading.Lock()
        self._on_chunk: Optional[ChunkCallback] = None
        self.chunks_emitted = 0

    @property
    def running(self) -> bool:
        return self._running

    def start(self, on_chunk: ChunkCallback) -> None:
        with self._lock:
            if self._running:
                return
            if sd is None:
                raise RuntimeError("sounddevice is not installed")
            self._on_chunk = on_chunk
            self.chunks_emitted = 0
            blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
            try:
                self._stream = sd.InputStream(
                    samplerate=self.sample_rate,
                    channels=self.channels,
                    dtype="int16",
                    blocksize=blocksize,
                    callback=self._on_audio,
                )
                self._stream.start()
            except Exception as exc:
                self._stream = None
                raise DictationError(f"could not open microphone: {exc}", code=PERMISSION_DENIED) from exc
            self._running = True
            logger.debug(f"Recording at {self.sample_rate} Hz, {blocksize} frames per block")

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            if self._stream is not None:
                self._stream.stop()
                self._stream.close()
                self._stream = None
            logger.debug(f"Recorder stopped after {self.chunks_emitted} chunks")

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if status:
            logger.debug(f"Audio status: {status}")
        if not self._running or self._on_chunk is None:
            return
        payload = np.asarray(indata, dtype="<i2").tobytes()
        self.chunks_emitted += 1
        self._on_chunk(base64.b64encode(payload).decode("ascii"))
