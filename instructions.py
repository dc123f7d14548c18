"""Build the instruction set sent with the single text-transform call."""

from __future__ import annotations

from typing import Optional

from app_mappings import (
    CUSTOM_MODE,
    DEFAULT_APPLICATION_ID,
    MODE_PROMPTS,
    get_application_prompt,
    get_default_application_prompt,
)
from config import Settings
from models import ApplicationContext

AUTO_LANGUAGE = "auto"

LANGUAGE_NAMES = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "hi": "Hindi",
    "ur": "Urdu",
    "ta": "Tamil",
    "te": "Telugu",
    "bn": "Bengali",
    "gu": "Gujarati",
    "kn": "Kannada",
    "ml": "Malayalam",
    "pa": "Punjabi",
    "ar": "Arabic",
    "he": "Hebrew",
    "th": "Thai",
    "vi": "Vietnamese",
    "nl": "Dutch",
    "sv": "Swedish",
    "no": "Norwegian",
    "da": "Danish",
    "fi": "Finnish",
    "pl": "Polish",
    "cs": "Czech",
    "hu": "Hungarian",
    "ro": "Romanian",
    "bg": "Bulgarian",
    "hr": "Croatian",
    "sk": "Slovak",
    "sl": "Slovenian",
    "et": "Estonian",
    "lv": "Latvian",
    "lt": "Lithuanian",
    "uk": "Ukrainian",
    "tr": "Turkish",
    "id": "Indonesian",
}

_SCRIPT_LANGUAGES = {
    "hi": "Devanagari script and Hindi",
    "ur": "Urdu script and Urdu",
    "es": "Spanish script and Spanish",
    "fr": "French script and French",
    "ta": "Tamil script and Tamil",
    "te": "Telugu script and Telugu",
    "bn": "Bengali script and Bengali",
    "gu": "Gujarati script and Gujarati",
    "kn": "Kannada script and Kannada",
    "ml": "Malayalam script and Malayalam",
    "pa": "Punjabi script and Punjabi",
}

GRAMMAR_RULE = "Fix spelling errors and grammar mistakes without changing the meaning or intent of the text."
PUNCTUATION_RULE = "Add necessary punctuation and capitalization."
EMOJI_RULE = 'Convert spoken emoji references to actual emojis (for example "fire emoji" becomes 🔥).'
INTENT_RULE = (
    "Never answer questions or add information. If the input is a question, the output must remain "
    "a question; if it is a statement, it must remain a statement."
)
OUTPUT_RULE = "Return ONLY the final text, nothing else."


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, code)


def language_hint(code: str) -> str:
    if code == "en":
        return "The text is in English. Use proper English grammar and punctuation."
    script = _SCRIPT_LANGUAGES.get(code)
    if script:
        name = language_name(code)
        return f"The text is in {name}. Maintain proper {script} grammar rules."
    return "Maintain the original language of the text."


def needs_translation(source_language: str, target_language: str) -> bool:
    if not target_language or target_language == AUTO_LANGUAGE:
        return False
    return source_language != target_language


def resolve_context_instruction(
    context: Optional[ApplicationContext], settings: Settings
) -> tuple[str, str]:
    """Return (formatting instruction, context id) for this run."""
    if settings.selected_mode == CUSTOM_MODE and settings.custom_prompt.strip():
        return settings.custom_prompt.strip(), CUSTOM_MODE

    if not settings.enable_auto_detection:
        mode_prompt = MODE_PROMPTS.get(settings.selected_mode)
        if mode_prompt:
            return mode_prompt, settings.selected_mode
        default = get_default_application_prompt()
        return default.prompt, DEFAULT_APPLICATION_ID

    application_id = context.application_id if context else DEFAULT_APPLICATION_ID
    prompt = get_application_prompt(application_id) or get_default_application_prompt()
    return prompt.prompt, prompt.application_id


def compose_instructions(
    source_language: str,
    target_language: str,
    context_instruction: str,
) -> str:
    """Ordered rules: translation, grammar, punctuation, emoji, context formatting."""
    rules = []
    if needs_translation(source_language, target_language):
        if source_language in ("", AUTO_LANGUAGE):
            rules.append(f"Translate the text into {language_name(target_language)}.")
        else:
            rules.append(
                f"Translate the text from {language_name(source_language)} "
                f"into {language_name(target_language)}."
            )
    rules.append(GRAMMAR_RULE)
    rules.append(PUNCTUATION_RULE)
    rules.append(EMOJI_RULE)
    if context_instruction:
        rules.append(context_instruction)

    lines = [
        "You rewrite dictated text before it is inserted into the user's application.",
        language_hint(target_language or source_language),
        INTENT_RULE,
        "",
    ]
    lines.extend(f"{index}. {rule}" for index, rule in enumerate(rules, start=1))
    lines.extend(["", OUTPUT_RULE])
    return "\n".join(lines)
