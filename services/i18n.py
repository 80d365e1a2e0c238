"""Message lookup for the Korean and English UI tables."""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Mapping, Optional

from locales.en import MESSAGES as EN_MESSAGES
from locales.ko import MESSAGES as KO_MESSAGES

FALLBACK_LOCALE = "ko"
LOCALE_SESSION_KEY = "locale"
MESSAGES: dict[str, dict[str, Any]] = {
    "ko": KO_MESSAGES,
    "en": EN_MESSAGES,
}
SUPPORTED_LOCALES = tuple(MESSAGES)
_PARAM = re.compile(r"\{\{(\w+)\}\}")


def get_messages(locale: Optional[str]) -> dict[str, Any]:
    return MESSAGES.get(locale or "", MESSAGES[FALLBACK_LOCALE])


def is_locale_supported(locale: Optional[str]) -> bool:
    return locale in MESSAGES


def replace_params(template: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Fill ``{{name}}`` placeholders; names without a value are left as written."""
    if not params:
        return template

    def _substitute(match: re.Match) -> str:
        value = params.get(match.group(1))
        return match.group(0) if value is None else str(value)

    return _PARAM.sub(_substitute, template)


def _nested_value(messages: Mapping[str, Any], path: str) -> Any:
    current: Any = messages
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
    return current


def translate(
    messages: Mapping[str, Any], key: str, params: Optional[Mapping[str, Any]] = None
) -> str:
    """Resolve ``key`` directly, then as a dotted path.

    A missing key is returned unchanged so the gap stays visible in the UI.
    """
    value = messages.get(key)
    if not isinstance(value, str):
        value = _nested_value(messages, key)
    if isinstance(value, str):
        return replace_params(value, params)
    logging.warning("Translation missing for key: %s", key)
    return key


def _language_code(language: str) -> str:
    return language.split("-")[0].split(";")[0].strip().lower()


def get_browser_locale(languages: Iterable[str], default: str = FALLBACK_LOCALE) -> str:
    """First supported language of a browser preference list, else ``default``."""
    for language in languages or ():
        code = _language_code(language)
        if is_locale_supported(code):
            return code
    return default


def get_initial_locale(
    stored: Optional[str] = None,
    languages: Iterable[str] = (),
    default: str = FALLBACK_LOCALE,
) -> str:
    """Stored preference wins, then the browser languages, then ``default``."""
    if is_locale_supported(stored):
        return stored
    if not is_locale_supported(default):
        default = FALLBACK_LOCALE
    return get_browser_locale(languages, default)
