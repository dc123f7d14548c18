"""Shared error codes, user-facing messages and exception types."""

from __future__ import annotations

PERMISSION_DENIED = "PERMISSION_DENIED"
NETWORK_ERROR = "NETWORK_ERROR"
AUTH_FAILED = "AUTH_FAILED"
NO_ACTIVE_TARGET = "NO_ACTIVE_TARGET"
ASR_PROTOCOL_ERROR = "ASR_PROTOCOL_ERROR"
TRANSFORM_FAILED = "TRANSFORM_FAILED"
PROCESSING_TIMEOUT = "PROCESSING_TIMEOUT"
PROCESSING_FAILED = "PROCESSING_FAILED"

ERROR_MESSAGES = {
    PERMISSION_DENIED: "Accessibility or microphone permission is required.",
    NETWORK_ERROR: "Network failed, please retry.",
    AUTH_FAILED: "API key is invalid.",
    NO_ACTIVE_TARGET: "Could not insert text into the focused application.",
    ASR_PROTOCOL_ERROR: "Speech recognition response format is invalid.",
    TRANSFORM_FAILED: "Text rewriting failed, inserted the raw transcript.",
    PROCESSING_TIMEOUT: "Processing took too long and was reset. Please try again.",
    PROCESSING_FAILED: "Something went wrong while processing. Please try again.",
}


class DictationError(Exception):
    """Base class for pipeline errors raised by adapters."""

    code = ASR_PROTOCOL_ERROR

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class RecognitionError(DictationError):
    code = ASR_PROTOCOL_ERROR


class TransformError(DictationError):
    code = TRANSFORM_FAILED


class AutomationError(DictationError):
    code = NO_ACTIVE_TARGET


def classify_exception(exc: Exception, default_code: str) -> str:
    """Map an SDK/network exception to an error code."""
    low = str(exc).lower()
    if "401" in low or "auth" in low or "api key" in low:
        return AUTH_FAILED
    if "timeout" in low or "network" in low or "connection" in low:
        return NETWORK_ERROR
    return default_code
