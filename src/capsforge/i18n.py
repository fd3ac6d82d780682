from __future__ import annotations

import configparser
import locale
import logging
from enum import Enum
from functools import lru_cache
from importlib import resources
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class Language(str, Enum):
    CHINESE = "Chinese"
    ENGLISH = "English"
    JAPANESE = "Japanese"


def data_text(name: str) -> str:
    return resources.files("capsforge").joinpath("data", name).read_text(encoding="utf-8")


def system_locale() -> Optional[str]:
    """Best-effort system locale tag such as "en_US"; None if unknown."""

    try:
        tag = locale.getlocale()[0]
    except ValueError:
        tag = None
    return tag


def _match_language(text: str) -> Optional[Language]:
    text = text.strip().lower().replace("_", "-")
    if text in ("zh-cn", "zh", "zh-tw", "zh-hant", "zh-hans") or text.startswith("zh-"):
        return Language.CHINESE
    if text in ("ja-jp", "ja"):
        return Language.JAPANESE
    if text.startswith("en"):
        return Language.ENGLISH
    return None


def text_as_language(text: str, *, fallback_locale: Optional[str] = None) -> Language:
    """Map a language setting ("zh", "en-US", "auto", ...) to a Language.

    Unknown settings, including "auto", fall back to the system locale and
    then to English.
    """

    language = _match_language(text)
    if language is not None:
        return language

    tag = fallback_locale if fallback_locale is not None else system_locale()
    if tag:
        language = _match_language(tag)
    return language or Language.ENGLISH


class I18nText:
    """Menu labels for one language."""

    def __init__(self, language: Language, data: Dict[Language, Dict[str, str]] | None = None) -> None:
        self.language = language
        self._data = data if data is not None else _load_labels()

    def get(self, key: str) -> str:
        labels = self._data.get(self.language) or self._data[Language.ENGLISH]
        return labels.get(key) or self._data[Language.ENGLISH][key]

    def reload(self) -> str:
        return self.get("reload")

    def quit(self) -> str:
        return self.get("quit")


@lru_cache(maxsize=1)
def _load_labels() -> Dict[Language, Dict[str, str]]:
    parser = configparser.ConfigParser(interpolation=None)
    parser.read_string(data_text("i18n.ini"))

    data: Dict[Language, Dict[str, str]] = {}
    for section in parser.sections():
        try:
            language = Language(section)
        except ValueError:
            logger.warning("unknown language section %r in i18n.ini", section)
            continue
        data[language] = dict(parser.items(section))
    return data


@lru_cache(maxsize=1)
def _load_comments() -> Dict[Language, str]:
    comments: Dict[Language, list[str]] = {}
    current: Optional[Language] = None
    for line in data_text("config_comment.txt").splitlines():
        stripped = line.strip()
        if stripped.startswith("[") and stripped.endswith("]"):
            try:
                current = Language(stripped[1:-1])
            except ValueError:
                current = None
            else:
                comments[current] = []
            continue
        if current is not None:
            comments[current].append(f"# {line}".rstrip())
    return {language: "\n".join(lines).strip() for language, lines in comments.items()}


def config_comment(language: Language) -> str:
    """Comment block for the shortcut document; English unless Chinese is selected."""

    comments = _load_comments()
    if language is Language.CHINESE:
        return comments[Language.CHINESE]
    return comments[Language.ENGLISH]
