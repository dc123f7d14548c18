"""Speech-to-text adapter using DashScope qwen3-asr-flash.

The model accepts complete audio as base64 WAV, so the finished recording is
wrapped in a WAV header and sent in a single request. The blocking SDK call
runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import base64
import io
import logging
import os
import wave

from errors import ASR_PROTOCOL_ERROR, AUTH_FAILED, RecognitionError, classify_exception
from models import Transcription

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000


def _pcm_to_wav_base64(
    pcm: bytes,
    sample_rate: int = SAMPLE_RATE,
    channels: int = 1,
    sample_width: int = 2,
) -> str:
    """Convert raw PCM bytes to a base64-encoded WAV string."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return base64.b64encode(buf.getvalue()).decode("ascii")


class DashscopeRecognizerAdapter:
    def __init__(
        self,
        api_key: str,
        model: str = "qwen3-asr-flash",
        request_timeout_s: float = 10.0,
        sample_rate: int = SAMPLE_RATE,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._request_timeout_s = request_timeout_s
        self._sample_rate = sample_rate

    async def transcribe(self, pcm: bytes, language: str) -> Transcription:
        if not pcm:
            return Transcription(text="", language=language)
        wav_b64 = _pcm_to_wav_base64(pcm, self._sample_rate)
        text = await asyncio.to_thread(self._recognize, wav_b64, language)
        logger.info(f"Transcribed {len(pcm)} bytes into {len(text)} characters")
        return Transcription(text=text.strip(), language=language)

    def _recognize(self, wav_base64: str, language: str) -> str:
        if dashscope is None:
            raise RecognitionError("dashscope is not installed", code=ASR_PROTOCOL_ERROR)

        api_key = self._api_key or os.getenv("DASHSCOPE_API_KEY", "")
        if not api_key:
            raise RecognitionError("No API key configured", code=AUTH_FAILED)

        asr_options: dict = {"enable_itn": False}
        if language and language != "auto":
            asr_options["language"] = language

        try:
            response = dashscope.MultiModalConversation.call(
                api_key=api_key,
                model=self._model,
                messages=[
                    {"role": "system", "content": [{"text": ""}]},
                    {"role": "user", "content": [{"audio": f"data:audio/wav;base64,{wav_base64}"}]},
                ],
                result_format="message",
                asr_options=asr_options,
                timeout=self._request_timeout_s,
            )
        except Exception as exc:
            code = classify_exception(exc, ASR_PROTOCOL_ERROR)
            raise RecognitionError(str(exc), code=code) from exc

        if isinstance(response, dict):
            status = response.get("status_code", 200)
            if status != 200:
                message = str(response.get("message") or f"status {status}")
                code = AUTH_FAILED if status == 401 else ASR_PROTOCOL_ERROR
                raise RecognitionError(message, code=code)
        return self._extract_text(response)

    def _extract_text(self, response: object) -> str:
        """Pull text from a dashscope message-format response dict."""
        if isinstance(response, dict):
            output = response.get("output") or {}
            choices = output.get("choices") or []
            if not choices:
                return ""
            message = choices[0].get("message") or {}
            content = message.get("content") or []
            if not content:
                return ""
            value = content[0]
            if isinstance(value, dict):
                return str(value.get("text", ""))
        return ""
