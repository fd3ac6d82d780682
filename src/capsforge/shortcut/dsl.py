from __future__ import annotations

import logging

from capsforge.errors import FormatErrorKind, RuleFormatError

from .ir import Key, KeyStep, ModifierSet, ShortcutBinding

logger = logging.getLogger(__name__)


_MODIFIER_TOKENS = ("ctrl", "shift", "alt", "meta")

_KEY_ALIASES: dict[str, Key] = {
    "esc": Key.ESCAPE,
    "return": Key.ENTER,
    "bksp": Key.BACKSPACE,
    "del": Key.DELETE,
    "ins": Key.INSERT,
    "pgup": Key.PAGE_UP,
    "pageup": Key.PAGE_UP,
    "pgdn": Key.PAGE_DOWN,
    "pagedown": Key.PAGE_DOWN,
    "capslock": Key.CAPS_LOCK,
    "numlock": Key.NUM_LOCK,
    "scrolllock": Key.SCROLL_LOCK,
    "printscreen": Key.PRINT_SCREEN,
    "prtsc": Key.PRINT_SCREEN,
    "apps": Key.MENU,
    "ctrl": Key.CTRL_L,
    "control": Key.CTRL_L,
    "shift": Key.SHIFT_L,
    "alt": Key.ALT_L,
    "meta": Key.META_L,
    "win": Key.META_L,
    "super": Key.META_L,
    "cmd": Key.META_L,
    "-": Key.MINUS,
    "=": Key.EQUAL,
    "[": Key.LEFT_BRACKET,
    "]": Key.RIGHT_BRACKET,
    "\\": Key.BACKSLASH,
    ";": Key.SEMICOLON,
    "'": Key.QUOTE,
    ",": Key.COMMA,
    ".": Key.DOT,
    "period": Key.DOT,
    "/": Key.SLASH,
    "`": Key.BACKQUOTE,
    "grave": Key.BACKQUOTE,
    "play_pause": Key.MEDIA_PLAY_PAUSE,
    "volume_up": Key.MEDIA_VOLUME_UP,
    "volume_down": Key.MEDIA_VOLUME_DOWN,
    "volume_mute": Key.MEDIA_VOLUME_MUTE,
}


def _lookup_key(token: str) -> Key | None:
    token = token.strip().lower()
    if not token:
        return None
    try:
        return Key(token)
    except ValueError:
        pass
    return _KEY_ALIASES.get(token) or _KEY_ALIASES.get(token.replace("-", "_").replace(" ", "_"))


def parse_key(token: str) -> Key:
    """Resolve a single key name (case-insensitive, aliases allowed)."""

    key = _lookup_key(token)
    if key is None:
        raise RuleFormatError(FormatErrorKind.KEY, token)
    return key


def parse_shortcut(text: str) -> ShortcutBinding:
    """Parse "ctrl+shift+f1" style text into a ShortcutBinding.

    Scanning stops at the first non-modifier segment; anything after the key
    is ignored.
    """

    original = text
    segments = [s.strip() for s in text.strip().split("+")]

    if len(segments) == 1:
        return ShortcutBinding(key=parse_key(segments[0]))

    flags = dict.fromkeys(_MODIFIER_TOKENS, False)
    key: Key | None = None
    for index, segment in enumerate(segments):
        token = segment.lower()
        if token in flags:
            flags[token] = True
            continue
        key = _lookup_key(token)
        if key is None:
            raise RuleFormatError(FormatErrorKind.KEY, original)
        ignored = segments[index + 1:]
        if ignored:
            logger.debug("ignoring segments after key in %r: %r", original, ignored)
        break

    if key is None:
        raise RuleFormatError(FormatErrorKind.KEY, original)

    return ShortcutBinding(key=key, modifiers=ModifierSet(**flags))


def parse_key_step(text: str, *, delay_ms: int = 0) -> KeyStep:
    """Parse one macro step; the step may carry its own modifiers."""

    binding = parse_shortcut(text)
    return KeyStep(key=binding.key, modifiers=binding.modifiers, delay_ms=delay_ms)
