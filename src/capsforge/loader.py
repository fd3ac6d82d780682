from __future__ import annotations

import logging

from .files import ConfigPaths
from .shortcut.frontend import ShortcutFrontend
from .shortcut.ir import Loaded, LoadOutcome, NotConfigured, RuleSet
from .shortcut.replacements import load_replacements

logger = logging.getLogger(__name__)


class ConfigLoader:
    """Build a fresh RuleSet from the shortcut and replacement documents.

    Raises a `LoadError` subclass for any problem; "no rules defined" is the
    `NotConfigured` outcome, not an error.
    """

    def __init__(self, paths: ConfigPaths, frontend: ShortcutFrontend | None = None) -> None:
        self.paths = paths
        self._frontend = frontend or ShortcutFrontend()

    def load(self) -> LoadOutcome:
        document = self._frontend.load_document(self.paths.shortcut_file)
        if document is None:
            return NotConfigured(reason=f"{self.paths.shortcut_file} holds no document")

        rules = self._frontend.parse_document(document)
        if rules is None:
            return NotConfigured(reason=f"{self.paths.shortcut_file} defines no capslock_shortcut")

        replacements = load_replacements(self.paths.replacement_file)
        logger.info("Loaded %d rules and %d replacements", len(rules), len(replacements))
        return Loaded(rule_set=RuleSet(rules=rules, replacements=replacements))
