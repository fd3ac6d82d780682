from __future__ import annotations

from pathlib import Path

import pytest

from capsforge.errors import (
    ConfigDecodeError,
    ConfigNotFoundError,
    ConfigScanError,
    FormatErrorKind,
    RuleFormatError,
)
from capsforge.shortcut.frontend import ShortcutFrontend
from capsforge.shortcut.ir import ContextSubstitution, Key, KeySequenceMacro, ModifierSet, RotatingText, Rule


def _kinds(results) -> list[str]:
    return [r.kind.value if isinstance(r, RuleFormatError) else "ok" for r in results]


def test_parse_document_basic() -> None:
    path = Path(__file__).with_name("test_shortcuts.yaml")
    frontend = ShortcutFrontend()
    document = frontend.load_document(path)
    assert document is not None
    assert document.language == "en"

    rules = frontend.parse_document(document)
    assert rules is not None
    assert len(rules) == 4

    text_rule = rules[0]
    assert text_rule.binding.key is Key.A
    assert isinstance(text_rule.action, RotatingText)
    assert text_rule.action.items == ["p", "q", "r"]

    macro_rule = rules[1]
    assert macro_rule.source == "Ctrl+Shift+F1"
    assert macro_rule.binding.modifiers == ModifierSet(ctrl=True, shift=True)
    assert isinstance(macro_rule.action, KeySequenceMacro)
    assert [(s.key, s.modifiers, s.delay_ms) for s in macro_rule.action.steps] == [
        (Key.C, ModifierSet(ctrl=True), 5),
        (Key.RIGHT, ModifierSet(), 5),
    ]

    assert isinstance(rules[2].action, ContextSubstitution)
    assert rules[3].action.items == ["shadowed"]


def test_missing_file_is_not_found(tmp_path) -> None:
    with pytest.raises(ConfigNotFoundError) as info:
        ShortcutFrontend().load_document(tmp_path / "absent.yaml")

    assert info.value.path == tmp_path / "absent.yaml"


def test_broken_yaml_is_scan_error() -> None:
    with pytest.raises(ConfigScanError):
        ShortcutFrontend().scan_document("language: [en\ncapslock_shortcut: '[]'\n")


def test_empty_document_is_not_configured() -> None:
    frontend = ShortcutFrontend()

    assert frontend.scan_document("") is None
    assert frontend.scan_document("# only a comment\n") is None


def test_missing_rule_field_is_not_configured() -> None:
    frontend = ShortcutFrontend()
    document = frontend.scan_document("language: zh\n")

    assert document is not None
    assert frontend.parse_document(document) is None


def test_non_mapping_document_has_no_rules() -> None:
    frontend = ShortcutFrontend()
    document = frontend.scan_document("- just\n- a list\n")

    assert document is not None
    assert frontend.parse_document(document) is None


@pytest.mark.parametrize("payload", ["[{", '{"key": "a"}', "42"])
def test_invalid_rule_array_is_decode_error(payload: str) -> None:
    frontend = ShortcutFrontend()
    document = frontend.scan_document(f"capslock_shortcut: '{payload}'\n")

    with pytest.raises(ConfigDecodeError):
        frontend.parse_document(document)


def test_entry_results_are_independent() -> None:
    entries = [
        {"key": "a", "feature": "input_text", "text": "ok"},
        {"key": "b", "feature": "teleport"},
        "not an object",
        {"feature": "input_text", "text": "no key"},
        {"key": "ctrl+nope", "feature": "multifunctional"},
        {"key": "c", "feature": "input_text", "text": []},
        {"key": "d", "feature": "input", "action": ["ctrl+zz"]},
        {"key": "e", "feature": "multifunctional"},
    ]

    results = list(ShortcutFrontend().iter_rule_results(entries))

    assert _kinds(results) == ["ok", "feature", "json", "json", "key", "value", "value", "ok"]
    assert results[1].raw == "teleport"
    assert results[4].raw == "ctrl+nope"
    assert results[6].raw == "ctrl+zz"


def test_unknown_feature_fails_whole_parse() -> None:
    entries = [
        {"key": "a", "feature": "input_text", "text": "ok"},
        {"key": "b", "feature": "teleport"},
    ]

    with pytest.raises(RuleFormatError) as info:
        ShortcutFrontend().parse_rules(entries)

    assert info.value.kind is FormatErrorKind.FEATURE


def test_missing_feature_is_feature_error() -> None:
    with pytest.raises(RuleFormatError) as info:
        ShortcutFrontend().parse_entry({"key": "a"})

    assert info.value.kind is FormatErrorKind.FEATURE


def test_text_coercion() -> None:
    frontend = ShortcutFrontend()

    single = frontend.parse_entry({"key": "a", "feature": "input_text", "text": "hello"})
    mixed = frontend.parse_entry({"key": "a", "feature": "input_text", "text": ["x", 1, True]})

    assert single.action.items == ["hello"]
    assert mixed.action.items == ["x", "1", "true"]

    with pytest.raises(RuleFormatError) as info:
        frontend.parse_entry({"key": "a", "feature": "input_text", "text": 5})
    assert info.value.kind is FormatErrorKind.VALUE


def test_delay_defaults_to_zero_and_applies_to_every_step() -> None:
    frontend = ShortcutFrontend()

    no_delay = frontend.parse_entry({"key": "a", "feature": "input", "action": "ctrl+v"})
    delayed = frontend.parse_entry({"key": "a", "feature": "input", "action": ["a", "b"], "delay": 20})
    invalid = frontend.parse_entry({"key": "a", "feature": "input", "action": "a", "delay": "soon"})

    assert [s.delay_ms for s in no_delay.action.steps] == [0]
    assert [s.delay_ms for s in delayed.action.steps] == [20, 20]
    assert [s.delay_ms for s in invalid.action.steps] == [0]


def test_parse_entry_returns_rule() -> None:
    rule = ShortcutFrontend().parse_entry({"key": "shift+space", "feature": "multifunctional"})

    assert isinstance(rule, Rule)
    assert rule.binding.key is Key.SPACE
    assert rule.binding.modifiers == ModifierSet(shift=True)
