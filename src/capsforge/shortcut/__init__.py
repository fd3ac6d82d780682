from __future__ import annotations

from .config import Feature, ShortcutDocument
from .dsl import parse_key, parse_key_step, parse_shortcut
from .frontend import ShortcutFrontend
from .ir import (
    Action,
    ContextSubstitution,
    Key,
    KeySequenceMacro,
    KeyStep,
    Loaded,
    LoadOutcome,
    ModifierSet,
    NotConfigured,
    ReplacementMap,
    RotatingText,
    Rule,
    RuleSet,
    ShortcutBinding,
    match,
)
from .replacements import load_replacements, parse_replacements

__all__ = [
    "Action",
    "ContextSubstitution",
    "Feature",
    "Key",
    "KeySequenceMacro",
    "KeyStep",
    "LoadOutcome",
    "Loaded",
    "ModifierSet",
    "NotConfigured",
    "ReplacementMap",
    "RotatingText",
    "Rule",
    "RuleSet",
    "ShortcutBinding",
    "ShortcutDocument",
    "ShortcutFrontend",
    "load_replacements",
    "match",
    "parse_key",
    "parse_key_step",
    "parse_replacements",
    "parse_shortcut",
]
