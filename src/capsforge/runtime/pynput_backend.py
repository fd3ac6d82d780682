"""
pynput/pyperclip implementations of the input collaborators.

Importing this module loads pynput's platform backend, which needs a display
(X11) or the relevant OS permissions; only the CLI imports it.

Per-event suppression of the physical key only works on Windows, through
pynput's ``win32_event_filter``. Elsewhere the rules still fire but the
original key event also reaches the focused window. The Windows filter
ignores events flagged as injected, our own typing and macros included.
"""

from __future__ import annotations

import logging
import sys
import threading
import time
import uuid
from typing import Any, Optional

import pyperclip
from pynput import keyboard

from capsforge.errors import InjectionError
from capsforge.shortcut.ir import Key

from .interfaces import KeyPredicate

logger = logging.getLogger(__name__)

IS_WINDOWS = sys.platform == "win32"

WM_KEYDOWN = 0x0100
WM_SYSKEYDOWN = 0x0104
VK_CAPITAL = 0x14
LLKHF_INJECTED = 0x10

_CHAR_KEYS: dict[Key, str] = {
    **{k: k.value for k in Key if len(k.value) == 1},
    Key.MINUS: "-",
    Key.EQUAL: "=",
    Key.LEFT_BRACKET: "[",
    Key.RIGHT_BRACKET: "]",
    Key.BACKSLASH: "\\",
    Key.SEMICOLON: ";",
    Key.QUOTE: "'",
    Key.COMMA: ",",
    Key.DOT: ".",
    Key.SLASH: "/",
    Key.BACKQUOTE: "`",
}

# US layout shifted characters, so shift+1 reported as "!" still resolves.
_SHIFTED_CHARS: dict[str, Key] = {
    "!": Key.NUM_1,
    "@": Key.NUM_2,
    "#": Key.NUM_3,
    "$": Key.NUM_4,
    "%": Key.NUM_5,
    "^": Key.NUM_6,
    "&": Key.NUM_7,
    "*": Key.NUM_8,
    "(": Key.NUM_9,
    ")": Key.NUM_0,
    "_": Key.MINUS,
    "+": Key.EQUAL,
    "{": Key.LEFT_BRACKET,
    "}": Key.RIGHT_BRACKET,
    "|": Key.BACKSLASH,
    ":": Key.SEMICOLON,
    '"': Key.QUOTE,
    "<": Key.COMMA,
    ">": Key.DOT,
    "?": Key.SLASH,
    "~": Key.BACKQUOTE,
}

_SPECIAL_NAMES: dict[Key, str] = {
    **{k: k.value for k in Key if k.value.startswith("f") and k.value[1:].isdigit()},
    Key.SPACE: "space",
    Key.ENTER: "enter",
    Key.TAB: "tab",
    Key.BACKSPACE: "backspace",
    Key.ESCAPE: "esc",
    Key.DELETE: "delete",
    Key.INSERT: "insert",
    Key.HOME: "home",
    Key.END: "end",
    Key.PAGE_UP: "page_up",
    Key.PAGE_DOWN: "page_down",
    Key.UP: "up",
    Key.DOWN: "down",
    Key.LEFT: "left",
    Key.RIGHT: "right",
    Key.CAPS_LOCK: "caps_lock",
    Key.NUM_LOCK: "num_lock",
    Key.SCROLL_LOCK: "scroll_lock",
    Key.PRINT_SCREEN: "print_screen",
    Key.PAUSE: "pause",
    Key.MENU: "menu",
    Key.CTRL_L: "ctrl_l",
    Key.CTRL_R: "ctrl_r",
    Key.SHIFT_L: "shift_l",
    Key.SHIFT_R: "shift_r",
    Key.ALT_L: "alt_l",
    Key.ALT_R: "alt_r",
    Key.META_L: "cmd_l",
    Key.META_R: "cmd_r",
    Key.MEDIA_PLAY_PAUSE: "media_play_pause",
    Key.MEDIA_NEXT: "media_next",
    Key.MEDIA_PREVIOUS: "media_previous",
    Key.MEDIA_VOLUME_UP: "media_volume_up",
    Key.MEDIA_VOLUME_DOWN: "media_volume_down",
    Key.MEDIA_VOLUME_MUTE: "media_volume_mute",
}

# Not every pynput platform backend defines every special key.
_PYNPUT_SPECIAL: dict[Key, keyboard.Key] = {
    key: getattr(keyboard.Key, name)
    for key, name in _SPECIAL_NAMES.items()
    if hasattr(keyboard.Key, name)
}
_FROM_PYNPUT_SPECIAL: dict[Any, Key] = {v: k for k, v in _PYNPUT_SPECIAL.items()}
_FROM_PYNPUT_SPECIAL.update(
    {
        keyboard.Key.ctrl: Key.CTRL_L,
        keyboard.Key.shift: Key.SHIFT_L,
        keyboard.Key.alt: Key.ALT_L,
        keyboard.Key.cmd: Key.META_L,
    }
)
_FROM_CHAR: dict[str, Key] = {c: k for k, c in _CHAR_KEYS.items()}

_CTRL = {Key.CTRL_L, Key.CTRL_R}
_SHIFT = {Key.SHIFT_L, Key.SHIFT_R}
_ALT = {Key.ALT_L, Key.ALT_R}
_META = {Key.META_L, Key.META_R}
_MODIFIER_KEYS = _CTRL | _SHIFT | _ALT | _META

_VK_KEYS: dict[int, Key] = {
    **{0x41 + i: Key(chr(ord("a") + i)) for i in range(26)},
    **{0x30 + i: Key(str(i)) for i in range(10)},
    **{0x70 + i: Key(f"f{i + 1}") for i in range(24)},
    0x20: Key.SPACE,
    0x0D: Key.ENTER,
    0x09: Key.TAB,
    0x08: Key.BACKSPACE,
    0x1B: Key.ESCAPE,
    0x2E: Key.DELETE,
    0x2D: Key.INSERT,
    0x24: Key.HOME,
    0x23: Key.END,
    0x21: Key.PAGE_UP,
    0x22: Key.PAGE_DOWN,
    0x25: Key.LEFT,
    0x26: Key.UP,
    0x27: Key.RIGHT,
    0x28: Key.DOWN,
    0x90: Key.NUM_LOCK,
    0x91: Key.SCROLL_LOCK,
    0x2C: Key.PRINT_SCREEN,
    0x13: Key.PAUSE,
    0x5D: Key.MENU,
    0xBD: Key.MINUS,
    0xBB: Key.EQUAL,
    0xDB: Key.LEFT_BRACKET,
    0xDD: Key.RIGHT_BRACKET,
    0xDC: Key.BACKSLASH,
    0xBA: Key.SEMICOLON,
    0xDE: Key.QUOTE,
    0xBC: Key.COMMA,
    0xBE: Key.DOT,
    0xBF: Key.SLASH,
    0xC0: Key.BACKQUOTE,
    0xA2: Key.CTRL_L,
    0xA3: Key.CTRL_R,
    0x11: Key.CTRL_L,
    0xA0: Key.SHIFT_L,
    0xA1: Key.SHIFT_R,
    0x10: Key.SHIFT_L,
    0xA4: Key.ALT_L,
    0xA5: Key.ALT_R,
    0x12: Key.ALT_L,
    0x5B: Key.META_L,
    0x5C: Key.META_R,
    0xB3: Key.MEDIA_PLAY_PAUSE,
    0xB0: Key.MEDIA_NEXT,
    0xB1: Key.MEDIA_PREVIOUS,
    0xAF: Key.MEDIA_VOLUME_UP,
    0xAE: Key.MEDIA_VOLUME_DOWN,
    0xAD: Key.MEDIA_VOLUME_MUTE,
}


def to_pynput(key: Key) -> keyboard.Key | keyboard.KeyCode:
    if key in _CHAR_KEYS:
        return keyboard.KeyCode.from_char(_CHAR_KEYS[key])
    try:
        return _PYNPUT_SPECIAL[key]
    except KeyError:
        raise InjectionError(f"key {key.value} is not available on this platform") from None


def from_pynput(key: keyboard.Key | keyboard.KeyCode | None) -> Optional[Key]:
    if key is None:
        return None
    if isinstance(key, keyboard.KeyCode):
        char = key.char
        if char and char.isprintable():
            lowered = char.lower()
            return _FROM_CHAR.get(lowered) or _SHIFTED_CHARS.get(char)
        if key.vk is not None:
            return _VK_KEYS.get(key.vk)
        return None
    return _FROM_PYNPUT_SPECIAL.get(key)


class CapsLockListener:
    """Keyboard hook that reports key presses made while CapsLock is held.

    On Windows the CapsLock key itself is swallowed so it acts purely as the
    layer key.
    """

    def __init__(self) -> None:
        self._predicate: Optional[KeyPredicate] = None
        self._frozen = threading.Event()
        self._listener: Optional[keyboard.Listener] = None
        self._lock = threading.Lock()
        self._caps_down = False
        self._held: set[Key] = set()

    def set_predicate(self, predicate: KeyPredicate) -> None:
        self._predicate = predicate

    def clear(self) -> None:
        self._predicate = None

    def freeze(self) -> None:
        self._frozen.set()

    def unfreeze(self) -> None:
        self._frozen.clear()

    def run(self) -> None:
        listener = keyboard.Listener(
            on_press=None if IS_WINDOWS else self._on_press,
            on_release=None if IS_WINDOWS else self._on_release,
            win32_event_filter=self._win32_event_filter,
        )
        with self._lock:
            self._listener = listener
        if not IS_WINDOWS:
            logger.info("Key suppression is only supported on Windows; matched keys also reach the focused window")
        with listener:
            listener.join()

    def stop(self) -> None:
        with self._lock:
            listener = self._listener
        if listener is not None:
            listener.stop()

    def _dispatch(self, key: Key) -> bool:
        predicate = self._predicate
        if predicate is None or self._frozen.is_set():
            return False
        held = self._held
        return predicate(
            key,
            bool(held & _CTRL),
            bool(held & _SHIFT),
            bool(held & _ALT),
            bool(held & _META),
        )

    def _track(self, key: Key, down: bool) -> bool:
        """Update CapsLock/modifier state; True if the key was a state key."""

        if key is Key.CAPS_LOCK:
            self._caps_down = down
            return True
        if key in _MODIFIER_KEYS:
            if down:
                self._held.add(key)
            else:
                self._held.discard(key)
            return True
        return False

    def _win32_event_filter(self, msg: int, data: Any) -> bool:
        if data.flags & LLKHF_INJECTED:
            # Synthetic input, ours included, never dispatches or changes modifier state.
            return True
        down = msg in (WM_KEYDOWN, WM_SYSKEYDOWN)
        if data.vkCode == VK_CAPITAL:
            self._caps_down = down
            self._listener.suppress_event()
        key = _VK_KEYS.get(data.vkCode)
        if key is None or self._track(key, down):
            return True
        if down and self._caps_down and self._dispatch(key):
            self._listener.suppress_event()
        return True

    def _on_press(self, pynput_key) -> None:
        key = from_pynput(pynput_key)
        if key is None or self._track(key, True):
            return
        if self._caps_down:
            self._dispatch(key)

    def _on_release(self, pynput_key) -> None:
        key = from_pynput(pynput_key)
        if key is not None:
            self._track(key, False)


class PynputInjector:
    """Synthetic input through a pynput keyboard controller."""

    def __init__(self, controller: Optional[keyboard.Controller] = None) -> None:
        self._controller = controller or keyboard.Controller()

    def type_text(self, text: str) -> None:
        try:
            self._controller.type(text)
        except (
            keyboard.Controller.InvalidCharacterException,
            keyboard.Controller.InvalidKeyException,
        ) as exc:
            raise InjectionError(str(exc)) from exc

    def press(self, key: Key) -> None:
        try:
            self._controller.press(to_pynput(key))
        except keyboard.Controller.InvalidKeyException as exc:
            raise InjectionError(str(exc)) from exc

    def release(self, key: Key) -> None:
        try:
            self._controller.release(to_pynput(key))
        except keyboard.Controller.InvalidKeyException as exc:
            raise InjectionError(str(exc)) from exc


class ClipboardSelection:
    """Read the selected text by copying it and reading the clipboard.

    The previous clipboard content is restored afterwards.
    """

    def __init__(
        self,
        controller: Optional[keyboard.Controller] = None,
        *,
        timeout: float = 0.4,
        poll_interval: float = 0.02,
    ) -> None:
        self._controller = controller or keyboard.Controller()
        self._timeout = timeout
        self._poll_interval = poll_interval

    def get_text(self) -> str:
        try:
            saved = pyperclip.paste()
        except pyperclip.PyperclipException as exc:
            logger.warning("Clipboard is not available: %s", exc)
            return ""

        sentinel = f"capsforge-{uuid.uuid4().hex}"
        try:
            pyperclip.copy(sentinel)
            with self._controller.pressed(keyboard.Key.ctrl):
                self._controller.tap("c")

            deadline = time.monotonic() + self._timeout
            text = sentinel
            while time.monotonic() < deadline:
                text = pyperclip.paste()
                if text != sentinel:
                    break
                time.sleep(self._poll_interval)
            return "" if text == sentinel else text
        except pyperclip.PyperclipException as exc:
            logger.warning("Could not read the selection: %s", exc)
            return ""
        finally:
            try:
                pyperclip.copy(saved)
            except pyperclip.PyperclipException as exc:
                logger.warning("Could not restore the clipboard: %s", exc)
