"""Text transform client: one DashScope chat call per dictation."""

from __future__ import annotations

import asyncio
import logging
import os

from errors import AUTH_FAILED, TRANSFORM_FAILED, TransformError, classify_exception
from models import TransformRequest, TransformResult

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore

logger = logging.getLogger(__name__)


def build_messages(request: TransformRequest) -> list[dict]:
    system = request.context_instructions
    if request.dictionary_hints:
        terms = ", ".join(request.dictionary_hints)
        system += f"\n\nKeep these terms spelled exactly as written: {terms}."
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": request.raw_text},
    ]


class DashscopeTextTransformer:
    def __init__(
        self,
        api_key: str,
        model: str = "qwen-plus",
        request_timeout_s: float = 20.0,
        temperature: float = 0.1,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._request_timeout_s = request_timeout_s
        self._temperature = temperature

    async def transform(self, request: TransformRequest) -> TransformResult:
        return await asyncio.to_thread(self._call, request)

    def _call(self, request: TransformRequest) -> TransformResult:
        if dashscope is None:
            raise TransformError("dashscope is not installed")

        api_key = self._api_key or os.getenv("DASHSCOPE_API_KEY", "")
        if not api_key:
            raise TransformError("No API key configured", code=AUTH_FAILED)

        try:
            response = dashscope.Generation.call(
                api_key=api_key,
                model=self._model,
                messages=build_messages(request),
                result_format="message",
                temperature=self._temperature,
                timeout=self._request_timeout_s,
            )
        except Exception as exc:
            code = classify_exception(exc, TRANSFORM_FAILED)
            raise TransformError(str(exc), code=code) from exc

        if not isinstance(response, dict):
            raise TransformError(f"unexpected response type {type(response).__name__}")
        status = response.get("status_code", 200)
        if status != 200:
            message = str(response.get("message") or f"status {status}")
            raise TransformError(message, code=AUTH_FAILED if status == 401 else TRANSFORM_FAILED)

        choices = (response.get("output") or {}).get("choices") or []
        if not choices:
            raise TransformError("response has no choices")
        choice = choices[0]
        text = str((choice.get("message") or {}).get("content") or "").strip()
        if not text:
            raise TransformError("response text is empty")
        finish_reason = str(choice.get("finish_reason") or "stop")
        logger.debug(f"Transform finished ({finish_reason}), {len(text)} characters")
        return TransformResult(final_text=text, finish_reason=finish_reason)
