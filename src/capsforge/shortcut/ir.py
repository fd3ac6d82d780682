from __future__ import annotations

from enum import Enum
from typing import Dict, Iterator, List, Optional, TypeAlias, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class Key(str, Enum):
    """Physical key identifiers (platform-agnostic, lower-case tokens)."""

    A = "a"
    B = "b"
    C = "c"
    D = "d"
    E = "e"
    F = "f"
    G = "g"
    H = "h"
    I = "i"  # noqa: E741
    J = "j"
    K = "k"
    L = "l"
    M = "m"
    N = "n"
    O = "o"  # noqa: E741
    P = "p"
    Q = "q"
    R = "r"
    S = "s"
    T = "t"
    U = "u"
    V = "v"
    W = "w"
    X = "x"
    Y = "y"
    Z = "z"

    NUM_0 = "0"
    NUM_1 = "1"
    NUM_2 = "2"
    NUM_3 = "3"
    NUM_4 = "4"
    NUM_5 = "5"
    NUM_6 = "6"
    NUM_7 = "7"
    NUM_8 = "8"
    NUM_9 = "9"

    F1 = "f1"
    F2 = "f2"
    F3 = "f3"
    F4 = "f4"
    F5 = "f5"
    F6 = "f6"
    F7 = "f7"
    F8 = "f8"
    F9 = "f9"
    F10 = "f10"
    F11 = "f11"
    F12 = "f12"
    F13 = "f13"
    F14 = "f14"
    F15 = "f15"
    F16 = "f16"
    F17 = "f17"
    F18 = "f18"
    F19 = "f19"
    F20 = "f20"
    F21 = "f21"
    F22 = "f22"
    F23 = "f23"
    F24 = "f24"

    SPACE = "space"
    ENTER = "enter"
    TAB = "tab"
    BACKSPACE = "backspace"
    ESCAPE = "escape"
    DELETE = "delete"
    INSERT = "insert"
    HOME = "home"
    END = "end"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    CAPS_LOCK = "caps_lock"
    NUM_LOCK = "num_lock"
    SCROLL_LOCK = "scroll_lock"
    PRINT_SCREEN = "print_screen"
    PAUSE = "pause"
    MENU = "menu"

    MINUS = "minus"
    EQUAL = "equal"
    LEFT_BRACKET = "left_bracket"
    RIGHT_BRACKET = "right_bracket"
    BACKSLASH = "backslash"
    SEMICOLON = "semicolon"
    QUOTE = "quote"
    COMMA = "comma"
    DOT = "dot"
    SLASH = "slash"
    BACKQUOTE = "backquote"

    CTRL_L = "ctrl_l"
    CTRL_R = "ctrl_r"
    SHIFT_L = "shift_l"
    SHIFT_R = "shift_r"
    ALT_L = "alt_l"
    ALT_R = "alt_r"
    META_L = "meta_l"
    META_R = "meta_r"

    MEDIA_PLAY_PAUSE = "media_play_pause"
    MEDIA_NEXT = "media_next"
    MEDIA_PREVIOUS = "media_previous"
    MEDIA_VOLUME_UP = "media_volume_up"
    MEDIA_VOLUME_DOWN = "media_volume_down"
    MEDIA_VOLUME_MUTE = "media_volume_mute"


class ModifierSet(BaseModel):
    """ctrl/shift/alt/meta state; equal only when all four flags are equal."""

    model_config = ConfigDict(frozen=True)

    ctrl: bool = False
    shift: bool = False
    alt: bool = False
    meta: bool = False

    def matches(self, ctrl: bool, shift: bool, alt: bool, meta: bool) -> bool:
        return self.ctrl == ctrl and self.shift == shift and self.alt == alt and self.meta == meta

    def active(self) -> Iterator[Key]:
        """Modifier keys to hold down when synthesizing this state."""

        if self.ctrl:
            yield Key.CTRL_L
        if self.shift:
            yield Key.SHIFT_L
        if self.alt:
            yield Key.ALT_L
        if self.meta:
            yield Key.META_L

    def tokens(self) -> List[str]:
        return [name for name in ("ctrl", "shift", "alt", "meta") if getattr(self, name)]


class ShortcutBinding(BaseModel):
    """A key plus the exact modifier state it must be pressed with."""

    model_config = ConfigDict(frozen=True)

    key: Key
    modifiers: ModifierSet = Field(default_factory=ModifierSet)

    def matches(self, key: Key, ctrl: bool, shift: bool, alt: bool, meta: bool) -> bool:
        return self.key is key and self.modifiers.matches(ctrl, shift, alt, meta)

    def __str__(self) -> str:
        return "+".join([*self.modifiers.tokens(), self.key.value])


def match(binding: ShortcutBinding, key: Key, modifiers: ModifierSet) -> bool:
    """Exact match of an observed key event against a binding."""

    return binding.key is key and binding.modifiers == modifiers


class KeyStep(BaseModel):
    """One macro step: press+release `key` while holding `modifiers`, then wait."""

    model_config = ConfigDict(frozen=True)

    key: Key
    modifiers: ModifierSet = Field(default_factory=ModifierSet)
    delay_ms: int = Field(default=0, ge=0)


class Action(BaseModel):
    """Base type for rule actions."""


class RotatingText(Action):
    """Type the next text of a list, cycling back to the first one."""

    items: List[str] = Field(min_length=1)
    _cursor: int = PrivateAttr(default=0)

    @property
    def cursor(self) -> int:
        return self._cursor

    def advance(self) -> str:
        text = self.items[self._cursor]
        self._cursor = (self._cursor + 1) % len(self.items)
        return text


class KeySequenceMacro(Action):
    """Replay a sequence of key presses."""

    steps: List[KeyStep] = Field(min_length=1)


class ContextSubstitution(Action):
    """Replace the selected text using the replacement map."""


ReplacementMap: TypeAlias = Dict[str, str]


class Rule(BaseModel):
    """A binding paired with the action it triggers."""

    binding: ShortcutBinding
    action: Action
    source: Optional[str] = None


class RuleSet(BaseModel):
    """All rules plus the replacement map, swapped as a whole on reload."""

    rules: List[Rule] = Field(default_factory=list)
    replacements: ReplacementMap = Field(default_factory=dict)

    def find(self, key: Key, ctrl: bool, shift: bool, alt: bool, meta: bool) -> Rule | None:
        for rule in self.rules:
            if rule.binding.matches(key, ctrl, shift, alt, meta):
                return rule
        return None

    def duplicate_bindings(self) -> List[ShortcutBinding]:
        seen: set[ShortcutBinding] = set()
        duplicates: List[ShortcutBinding] = []
        for rule in self.rules:
            if rule.binding in seen and rule.binding not in duplicates:
                duplicates.append(rule.binding)
            seen.add(rule.binding)
        return duplicates


class NotConfigured(BaseModel):
    """The rule document holds no rules (feature disabled, not an error)."""

    reason: str


class Loaded(BaseModel):
    rule_set: RuleSet


LoadOutcome: TypeAlias = Union[NotConfigured, Loaded]
