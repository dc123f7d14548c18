"""Tests for SoundDeviceRecorder."""

from __future__ import annotations

import base64
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from errors import DictationError
from recorder import SoundDeviceRecorder


def _block(n_samples: int = 1600, value: int = 1200) -> np.ndarray:
    """A (frames, channels) int16 block like sounddevice hands to the callback."""
    return np.full((n_samples, 1), value, dtype=np.int16)


# ---------------------------------------------------------------
# Basic start / stop
# ---------------------------------------------------------------

@patch("recorder.sd")
def test_start_creates_stream_and_runs(mock_sd: MagicMock) -> None:
    mock_stream = MagicMock()
    mock_sd.InputStream.return_value = mock_stream

    recorder = SoundDeviceRecorder()
    recorder.start(lambda chunk: None)

    mock_sd.InputStream.assert_called_once()
    assert mock_sd.InputStream.call_args.kwargs["blocksize"] == 1600
    mock_stream.start.assert_called_once()
    assert recorder.running is True

    recorder.stop()
    mock_stream.stop.assert_called_once()
    mock_stream.close.assert_called_once()
    assert recorder.running is False


@patch("recorder.sd")
def test_start_is_idempotent(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()

    recorder = SoundDeviceRecorder()
    recorder.start(lambda chunk: None)
    recorder.start(lambda chunk: None)  # second call should be no-op

    assert mock_sd.InputStream.call_count == 1
    recorder.stop()


@patch("recorder.sd")
def test_stop_is_idempotent(mock_sd: MagicMock) -> None:
    mock_stream = MagicMock()
    mock_sd.InputStream.return_value = mock_stream

    recorder = SoundDeviceRecorder()
    recorder.start(lambda chunk: None)
    recorder.stop()
    recorder.stop()

    mock_stream.close.assert_called_once()


# ---------------------------------------------------------------
# Audio callback emits base64 chunks
# ---------------------------------------------------------------

@patch("recorder.sd")
def test_callback_emits_base64_pcm(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()
    chunks: list[str] = []

    recorder = SoundDeviceRecorder(sample_rate=16000, channels=1, chunk_ms=100)
    recorder.start(chunks.append)
    recorder._on_audio(_block(1600), frames=1600, time_info=None, status=None)

    assert len(chunks) == 1
    raw = base64.b64decode(chunks[0])
    assert len(raw) == 1600 * 2  # 16-bit = 2 bytes per sample
    assert np.frombuffer(raw, dtype="<i2")[0] == 1200
    assert recorder.chunks_emitted == 1

    recorder.stop()


@patch("recorder.sd")
def test_callback_after_stop_is_noop(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()
    chunks: list[str] = []

    recorder = SoundDeviceRecorder()
    recorder.start(chunks.append)
    recorder.stop()

    recorder._on_audio(_block(), frames=1600, time_info=None, status=None)
    assert chunks == []


# ---------------------------------------------------------------
# Failures
# ---------------------------------------------------------------

def test_start_raises_without_sounddevice(monkeypatch) -> None:  # noqa: ANN001
    import recorder as rec_mod
    monkeypatch.setattr(rec_mod, "sd", None)

    recorder = SoundDeviceRecorder()
    with pytest.raises(RuntimeError, match="sounddevice is not installed"):
        recorder.start(lambda chunk: None)


@patch("recorder.sd")
def test_microphone_open_failure_maps_to_permission_error(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.side_effect = Exception("PortAudio: device unavailable")

    recorder = SoundDeviceRecorder()
    with pytest.raises(DictationError) as info:
        recorder.start(lambda chunk: None)

    assert info.value.code == "PERMISSION_DENIED"
    assert recorder.running is False
