"""Word counting, words-per-minute and running totals."""

from __future__ import annotations

import re

from models import GlobalMetrics, SpeechMetrics

MAX_WPM = 1000.0

# Chinese ideographs, hiragana, katakana: one word per character.
CJK_PATTERN = re.compile("[\u4E00-\u9FAF\u3040-\u309F\u30A0-\u30FF]")
_TOKEN_PATTERN = re.compile(r"\S+")


def count_words(text: str) -> int:
    """Whitespace-separated tokens, plus one word per CJK character."""
    if not text or not text.strip():
        return 0
    cjk_count = len(CJK_PATTERN.findall(text))
    rest = CJK_PATTERN.sub(" ", text)
    return cjk_count + len(_TOKEN_PATTERN.findall(rest))


def words_per_minute(word_count: int, duration_seconds: float) -> float:
    if duration_seconds <= 0:
        return 0.0
    return min(word_count / (duration_seconds / 60.0), MAX_WPM)


def calculate_speech_metrics(text: str, duration_seconds: float) -> SpeechMetrics:
    word_count = count_words(text)
    return SpeechMetrics(
        word_count=word_count,
        words_per_minute=round(words_per_minute(word_count, duration_seconds), 2),
        duration_seconds=max(duration_seconds, 0.0),
    )


def word_count_ratio(original: str, final: str) -> float:
    """Final word count over original; 1.0 when the original has no words."""
    original_count = count_words(original)
    if original_count == 0:
        return 1.0
    return count_words(final) / original_count


def update_global_metrics(current: GlobalMetrics, metrics: SpeechMetrics) -> GlobalMetrics:
    total_recordings = current.total_recordings + 1
    if total_recordings == 1:
        average = metrics.words_per_minute
    else:
        average = (current.average_wpm * (total_recordings - 1) + metrics.words_per_minute) / total_recordings
    return GlobalMetrics(
        total_word_count=current.total_word_count + metrics.word_count,
        average_wpm=average,
        total_recordings=total_recordings,
        last_recording_words=metrics.word_count,
        last_recording_wpm=metrics.words_per_minute,
    )
