"""Detect which application the user is dictating into."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence

from app_mappings import (
    APPLICATION_MAPPINGS,
    BROWSER_KEYWORD_BUCKETS,
    BROWSER_NAMES,
    BROWSER_PATTERNS,
    CODE_TITLE_KEYWORDS,
    DEFAULT_APPLICATION_ID,
    EMAIL_TITLE_KEYWORDS,
    ApplicationMapping,
    get_application_prompt,
    to_application_id,
)
from interfaces import OSAutomation
from models import ApplicationContext, ContextType, FocusedWindow

logger = logging.getLogger(__name__)

BUNDLE_SCORE = 100
EXACT_NAME_SCORE = 50
ALIAS_SCORE = 40
PROCESS_SCORE = 30
PARTIAL_NAME_SCORE = 20
TITLE_BONUS = 15

EXACT_CONFIDENCE = 0.95
PROCESS_CONFIDENCE = 0.9
BROWSER_CONFIDENCE = 0.75
PARTIAL_CONFIDENCE = 0.5
DEFAULT_CONFIDENCE = 0.3
FAILURE_CONFIDENCE = 0.1

TIE_BREAK_FIRST = "first"
TIE_BREAK_SPECIFIC = "specific"

_SITE_HINTS = (".com", ".org", ".net", ".io", "http", "www.")


@dataclass(frozen=True)
class MatchCandidate:
    mapping: ApplicationMapping
    score: int
    strongest_signal: int
    index: int


def score_mapping(mapping: ApplicationMapping, window: FocusedWindow) -> tuple[int, int]:
    """Return (total score, strongest single signal) for one table entry."""
    app_name = window.app_name.lower().strip()
    name = mapping.app_name.lower()
    signals = []

    if window.bundle_id and window.bundle_id in mapping.bundle_ids:
        signals.append(BUNDLE_SCORE)
    if app_name == name:
        signals.append(EXACT_NAME_SCORE)
    if any(app_name == alias.lower() for alias in mapping.aliases):
        signals.append(ALIAS_SCORE)
    process = window.process_name.lower()
    if process and any(p.lower() in process for p in mapping.process_names):
        signals.append(PROCESS_SCORE)
    if app_name and (name in app_name or app_name in name):
        signals.append(PARTIAL_NAME_SCORE)

    title = window.window_title
    if title:
        low = title.lower()
        if mapping.context_type == ContextType.EMAIL and any(k in low for k in EMAIL_TITLE_KEYWORDS):
            signals.append(TITLE_BONUS)
        if mapping.context_type == ContextType.CODE_EDITOR and any(k in title for k in CODE_TITLE_KEYWORDS):
            signals.append(TITLE_BONUS)

    return sum(signals), max(signals, default=0)


def is_browser(app_name: str) -> bool:
    low = app_name.lower()
    return any(re.search(rf"\b{re.escape(browser)}\b", low) for browser in BROWSER_NAMES)


def match_browser_title(window_title: str) -> Optional[str]:
    """Map a browser tab title to an application id, or None."""
    low = window_title.lower()
    if not low:
        return None
    for pattern in BROWSER_PATTERNS:
        if any(p in low for p in pattern.patterns):
            return pattern.application_id
    if any(hint in low for hint in _SITE_HINTS):
        for application_id, keywords in BROWSER_KEYWORD_BUCKETS:
            if any(k in low for k in keywords):
                return application_id
    return None


class ApplicationContextDetector:
    def __init__(
        self,
        automation: OSAutomation,
        mappings: Sequence[ApplicationMapping] = APPLICATION_MAPPINGS,
        tie_break: str = TIE_BREAK_FIRST,
    ) -> None:
        if tie_break not in (TIE_BREAK_FIRST, TIE_BREAK_SPECIFIC):
            raise ValueError(f"unknown tie_break policy: {tie_break}")
        self._automation = automation
        self._mappings = tuple(mappings)
        self._tie_break = tie_break
        self._custom: dict[str, ApplicationMapping] = {}
        self._cached: Optional[ApplicationContext] = None
        self._generation = 0

    async def capture_context(self) -> ApplicationContext:
        """Query the focused window and cache the resolved context. Never raises."""
        generation = self._generation
        try:
            window = await self._automation.query_focused_window()
        except Exception as exc:
            logger.warning(f"Focused window query failed: {exc}")
            window = None

        if window is None or not window.app_name:
            context = self.default_context(FAILURE_CONFIDENCE)
        else:
            try:
                context = self.resolve(window)
            except Exception:
                logger.error("Context resolution failed", exc_info=True)
                context = self.default_context(FAILURE_CONFIDENCE)

        if generation == self._generation:
            self._cached = context
        else:
            logger.debug("Cache cleared while capturing; discarding context")
        logger.info(
            f"Captured context {context.application_id} "
            f"({context.context_type.value}, confidence={context.confidence})"
        )
        return context

    def get_cached_context(self) -> Optional[ApplicationContext]:
        return self._cached

    def clear_cache(self) -> None:
        self._generation += 1
        self._cached = None

    def add_custom_mapping(self, app_name: str, context_type: ContextType) -> None:
        name = app_name.strip()
        if not name:
            raise ValueError("app_name must not be empty")
        self._custom[name.lower()] = ApplicationMapping(name, context_type)

    def remove_custom_mapping(self, app_name: str) -> bool:
        return self._custom.pop(app_name.strip().lower(), None) is not None

    def resolve(self, window: FocusedWindow) -> ApplicationContext:
        custom = self._custom.get(window.app_name.lower().strip())
        if custom is not None:
            return self._context_for(custom.application_id, custom.context_type, EXACT_CONFIDENCE, custom.app_name)

        if is_browser(window.app_name):
            application_id = match_browser_title(window.window_title)
            if application_id is None:
                return self.default_context(DEFAULT_CONFIDENCE, ContextType.BROWSER)
            prompt = get_application_prompt(application_id)
            context_type = prompt.context_type if prompt else ContextType.BROWSER
            return self._context_for(application_id, context_type, BROWSER_CONFIDENCE, application_id)

        best = self.find_best_match(window)
        if best is None:
            return self.default_context(DEFAULT_CONFIDENCE)
        mapping = best.mapping
        return self._context_for(
            mapping.application_id,
            mapping.context_type,
            self._confidence_for(best),
            mapping.app_name,
        )

    def find_best_match(self, window: FocusedWindow) -> Optional[MatchCandidate]:
        candidates = []
        for index, mapping in enumerate(self._mappings):
            score, strongest = score_mapping(mapping, window)
            if score > 0:
                candidates.append(MatchCandidate(mapping, score, strongest, index))
        if not candidates:
            return None
        if self._tie_break == TIE_BREAK_SPECIFIC:
            candidates.sort(key=lambda c: (-c.score, -c.strongest_signal))
        else:
            candidates.sort(key=lambda c: -c.score)
        best = candidates[0]
        logger.debug(f"Best match {best.mapping.app_name} score={best.score} of {len(candidates)}")
        return best

    def default_context(
        self, confidence: float, context_type: ContextType = ContextType.UNKNOWN
    ) -> ApplicationContext:
        return self._context_for(DEFAULT_APPLICATION_ID, context_type, confidence, "Default")

    def _confidence_for(self, candidate: MatchCandidate) -> float:
        if candidate.strongest_signal >= ALIAS_SCORE:
            return EXACT_CONFIDENCE
        if candidate.strongest_signal == PROCESS_SCORE:
            return PROCESS_CONFIDENCE
        return PARTIAL_CONFIDENCE

    @staticmethod
    def _context_for(
        application_id: str, context_type: ContextType, confidence: float, fallback_name: str
    ) -> ApplicationContext:
        prompt = get_application_prompt(application_id)
        return ApplicationContext(
            application_id=application_id,
            context_type=context_type,
            confidence=confidence,
            display_name=prompt.display_name if prompt else fallback_name,
        )
