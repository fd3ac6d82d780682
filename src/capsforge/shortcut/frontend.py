from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, List

import yaml

from capsforge.errors import (
    ConfigDecodeError,
    ConfigNotFoundError,
    ConfigScanError,
    FormatErrorKind,
    RuleFormatError,
)

from .config import Feature, ShortcutDocument
from .dsl import parse_key_step, parse_shortcut
from .ir import Action, ContextSubstitution, KeySequenceMacro, KeyStep, RotatingText, Rule

logger = logging.getLogger(__name__)


def _raw(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _to_string_list(value: Any) -> list[str]:
    """Accept a single string or an array of strings."""

    items: list[str] = []
    if isinstance(value, list):
        items.extend(v if isinstance(v, str) else _raw(v) for v in value)
    elif isinstance(value, str):
        items.append(value)
    if not items:
        raise RuleFormatError(FormatErrorKind.VALUE, _raw(value))
    return items


def _delay_ms(entry: dict[str, Any]) -> int:
    delay = entry.get("delay")
    if delay is None:
        return 0
    if isinstance(delay, bool) or not isinstance(delay, int) or delay < 0:
        logger.warning("invalid delay %r in rule %s, using 0", delay, entry.get("key"))
        return 0
    return delay


class ShortcutFrontend:
    """Parse the shortcut rule document (YAML with an embedded JSON array) into rules."""

    def load_document(self, path: str | Path) -> ShortcutDocument | None:
        """Load the first YAML document of a file; None when the file holds none."""

        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError) as exc:
            raise ConfigNotFoundError(path) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigScanError(f"cannot read {path}: {exc}") from exc
        return self.scan_document(text)

    def scan_document(self, text: str) -> ShortcutDocument | None:
        try:
            documents = list(yaml.safe_load_all(text))
        except yaml.YAMLError as exc:
            raise ConfigScanError(str(exc)) from exc

        if not documents:
            return None

        first = documents[0]
        if not isinstance(first, dict):
            # Not a mapping: there is no rule field to read.
            return ShortcutDocument()
        return ShortcutDocument.model_validate(first)

    def decode_entries(self, payload: str) -> List[Any]:
        try:
            entries = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise ConfigDecodeError(str(exc)) from exc
        if not isinstance(entries, list):
            raise ConfigDecodeError(f"rule payload must be a JSON array, got {type(entries).__name__}")
        return entries

    def parse_document(self, document: ShortcutDocument) -> List[Rule] | None:
        """Rules of a document, or None when it defines no rule field."""

        if document.capslock_shortcut is None:
            return None
        return self.parse_rules(self.decode_entries(document.capslock_shortcut))

    def iter_rule_results(self, entries: Iterable[Any]) -> Iterator[Rule | RuleFormatError]:
        """One independent result per entry; a bad entry does not stop its siblings."""

        for entry in entries:
            try:
                yield self.parse_entry(entry)
            except RuleFormatError as exc:
                yield exc

    def parse_rules(self, entries: Iterable[Any]) -> List[Rule]:
        rules: List[Rule] = []
        for result in self.iter_rule_results(entries):
            if isinstance(result, RuleFormatError):
                raise result
            rules.append(result)
        return rules

    def parse_entry(self, entry: Any) -> Rule:
        if not isinstance(entry, dict):
            raise RuleFormatError(FormatErrorKind.JSON, _raw(entry))

        key_text = entry.get("key")
        if not isinstance(key_text, str):
            raise RuleFormatError(FormatErrorKind.JSON, _raw(entry))

        binding = parse_shortcut(key_text)
        action = self._parse_action(entry)
        return Rule(binding=binding, action=action, source=key_text)

    @staticmethod
    def _parse_action(entry: dict[str, Any]) -> Action:
        raw_feature = entry.get("feature")
        try:
            feature = Feature(raw_feature)
        except ValueError:
            text = raw_feature if isinstance(raw_feature, str) else _raw(raw_feature)
            raise RuleFormatError(FormatErrorKind.FEATURE, text) from None

        if feature is Feature.INPUT_TEXT:
            return RotatingText(items=_to_string_list(entry.get("text")))

        if feature is Feature.INPUT:
            delay_ms = _delay_ms(entry)
            steps: List[KeyStep] = []
            for action_text in _to_string_list(entry.get("action")):
                try:
                    steps.append(parse_key_step(action_text, delay_ms=delay_ms))
                except RuleFormatError:
                    raise RuleFormatError(FormatErrorKind.VALUE, action_text) from None
            return KeySequenceMacro(steps=steps)

        return ContextSubstitution()
