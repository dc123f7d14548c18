"""Text delivery into the focused application.

Clipboard paste is tried first; the previous clipboard content is restored
after a short delay. Keystroke synthesis is the fallback.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from errors import NO_ACTIVE_TARGET
from interfaces import OSAutomation
from models import DeliveryResult
from platforms import setup_instructions

logger = logging.getLogger(__name__)

STRATEGY_CLIPBOARD = "clipboard"
STRATEGY_KEYSTROKES = "keystrokes"
STRATEGY_NONE = "none"
STRATEGY_SKIPPED = "skipped"


def normalize_text(text: str) -> str:
    """Turn literal escape sequences into the control characters they name."""
    return text.replace("\\r\\n", "\n").replace("\\n", "\n").replace("\\t", "\t").replace("\\r", "\r")


class TextDeliveryService:
    def __init__(
        self,
        automation: OSAutomation,
        restore_delay_s: float = 1.0,
        pre_delay_s: float = 0.1,
    ) -> None:
        self._automation = automation
        self._restore_delay_s = restore_delay_s
        self._pre_delay_s = pre_delay_s
        self._restore_tasks: set[asyncio.Task] = set()

    async def deliver(self, text: str, is_current: Optional[Callable[[], bool]] = None) -> bool:
        result = await self.deliver_detailed(text, is_current)
        return result.success

    async def deliver_detailed(
        self, text: str, is_current: Optional[Callable[[], bool]] = None
    ) -> DeliveryResult:
        if not text or not text.strip():
            return DeliveryResult(success=False, strategy=STRATEGY_NONE, reason="empty text")

        text = normalize_text(text)
        if self._pre_delay_s > 0:
            await asyncio.sleep(self._pre_delay_s)
        if is_current is not None and not is_current():
            return DeliveryResult(success=False, strategy=STRATEGY_SKIPPED, reason="no longer current")

        clipboard_error = ""
        if self._automation.supports_clipboard():
            result = await self._paste_via_clipboard(text)
            if result.success:
                return result
            clipboard_error = result.reason

        try:
            await self._automation.send_keystrokes(text)
        except Exception as exc:
            logger.error(f"Keystroke fallback failed via {self._automation.name}: {exc}")
            reason = f"{NO_ACTIVE_TARGET}: {exc}"
            if clipboard_error:
                reason = f"{reason} (clipboard: {clipboard_error})"
            return DeliveryResult(success=False, strategy=STRATEGY_NONE, reason=reason)

        logger.info(f"Delivered {len(text)} characters via keystrokes")
        return DeliveryResult(success=True, strategy=STRATEGY_KEYSTROKES, reason="ok")

    async def _paste_via_clipboard(self, text: str) -> DeliveryResult:
        saved: Optional[str] = None
        try:
            saved = await self._automation.get_clipboard()
        except Exception as exc:
            logger.warning(f"Could not save clipboard, it will not be restored: {exc}")

        try:
            await self._automation.set_clipboard(text)
            await self._automation.send_paste()
        except Exception as exc:
            logger.warning(f"Clipboard paste failed via {self._automation.name}: {exc}")
            if saved is not None:
                await self._restore(saved, expected=None)
            return DeliveryResult(
                success=False,
                strategy=STRATEGY_CLIPBOARD,
                reason=str(exc),
                clipboard_saved=saved is not None,
            )

        if saved is not None:
            task = asyncio.get_running_loop().create_task(self._restore_later(saved, text))
            self._restore_tasks.add(task)
            task.add_done_callback(self._restore_tasks.discard)
        logger.info(f"Delivered {len(text)} characters via clipboard paste")
        return DeliveryResult(
            success=True,
            strategy=STRATEGY_CLIPBOARD,
            reason="ok",
            clipboard_saved=saved is not None,
        )

    async def _restore_later(self, saved: str, pasted: str) -> None:
        await asyncio.sleep(self._restore_delay_s)
        await self._restore(saved, expected=pasted)

    async def _restore(self, saved: str, expected: Optional[str]) -> None:
        try:
            if expected is not None:
                current = await self._automation.get_clipboard()
                if current != expected:
                    logger.debug("Clipboard changed since paste; skipping restore")
                    return
            await self._automation.set_clipboard(saved)
        except Exception as exc:
            logger.warning(f"Clipboard restore failed: {exc}")

    async def drain(self) -> None:
        """Wait for pending clipboard restores."""
        if self._restore_tasks:
            await asyncio.gather(*list(self._restore_tasks), return_exceptions=True)

    def setup_instructions(self) -> str:
        return setup_instructions()
