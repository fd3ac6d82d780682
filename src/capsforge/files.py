from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from .errors import LoadError
from .i18n import Language, config_comment, data_text, text_as_language
from .shortcut.frontend import ShortcutFrontend

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "CAPSFORGE_CONFIG_DIR"
SHORTCUT_FILE_NAME = "capslock_forge_config.yaml"
REPLACEMENT_FILE_NAME = "replace_text.ini"


class ConfigPaths(BaseModel):
    config_dir: Path

    @classmethod
    def default(cls, config_dir: str | Path | None = None) -> "ConfigPaths":
        """`config_dir`, else $CAPSFORGE_CONFIG_DIR, else ~/.config/capsforge."""

        if config_dir is None:
            config_dir = os.environ.get(CONFIG_DIR_ENV) or Path.home() / ".config" / "capsforge"
        return cls(config_dir=Path(config_dir).expanduser())

    @property
    def shortcut_file(self) -> Path:
        return self.config_dir / SHORTCUT_FILE_NAME

    @property
    def replacement_file(self) -> Path:
        return self.config_dir / REPLACEMENT_FILE_NAME


def _write_new(path: Path, content: str) -> bool:
    """Create `path` with `content` unless it already exists."""

    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with path.open("x", encoding="utf-8") as f:
            f.write(content)
    except FileExistsError:
        return False
    logger.info("Created default config %s", path)
    return True


def seed_defaults(paths: ConfigPaths, language: Optional[Language] = None) -> list[Path]:
    """Write the built-in documents that are missing; existing files are never touched.

    Returns the files that were created.
    """

    if language is None:
        language = language_or_auto(paths)

    created: list[Path] = []
    if not paths.shortcut_file.is_file():
        content = config_comment(language) + "\n" + data_text(SHORTCUT_FILE_NAME)
        if _write_new(paths.shortcut_file, content):
            created.append(paths.shortcut_file)

    if not paths.replacement_file.is_file():
        if _write_new(paths.replacement_file, data_text(REPLACEMENT_FILE_NAME)):
            created.append(paths.replacement_file)

    return created


def read_language(paths: ConfigPaths) -> Optional[Language]:
    """Language selected in the shortcut document, or None if unset or unreadable."""

    try:
        document = ShortcutFrontend().load_document(paths.shortcut_file)
    except LoadError as exc:
        logger.debug("cannot read language setting: %s", exc)
        return None
    if document is None or document.language is None:
        return None
    return text_as_language(document.language)


def language_or_auto(paths: ConfigPaths) -> Language:
    language = read_language(paths)
    if language is None:
        language = text_as_language("auto")
    return language
