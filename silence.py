"""Silence detection for finished recordings.

A recording is treated as silent when any one of three independent checks
fails: mean absolute amplitude, peak absolute amplitude, or the fraction of
samples louder than the volume threshold. The checks are ORed so a single
loud click inside an otherwise quiet clip still counts as silence.
"""

from __future__ import annotations

import logging

import numpy as np

from models import SilenceVerdict

logger = logging.getLogger(__name__)

# Amplitudes are on the signed 16-bit scale (+/-32767).
VOLUME_THRESHOLD = 300
PEAK_THRESHOLD = 1000
SPEECH_RATIO_THRESHOLD = 0.1


def analyze(
    buffer: bytes,
    volume_threshold: int = VOLUME_THRESHOLD,
    peak_threshold: int = PEAK_THRESHOLD,
    speech_ratio_threshold: float = SPEECH_RATIO_THRESHOLD,
) -> SilenceVerdict:
    """Score little-endian PCM16 audio as silent or not."""
    usable = len(buffer) - (len(buffer) % 2)
    if usable == 0:
        return SilenceVerdict(is_silent=True, average_amplitude=0.0, peak_amplitude=0)

    samples = np.frombuffer(buffer[:usable], dtype="<i2").astype(np.int32)
    magnitudes = np.abs(samples)

    average = float(magnitudes.mean())
    peak = int(magnitudes.max())
    speech_ratio = float(np.count_nonzero(magnitudes > volume_threshold)) / magnitudes.size

    is_silent = (
        average < volume_threshold
        or peak < peak_threshold
        or speech_ratio < speech_ratio_threshold
    )
    logger.debug(
        f"Audio analysis: average={average:.1f} peak={peak} "
        f"speech_ratio={speech_ratio:.3f} silent={is_silent}"
    )
    return SilenceVerdict(
        is_silent=is_silent,
        average_amplitude=average,
        peak_amplitude=peak,
        speech_ratio=speech_ratio,
    )
