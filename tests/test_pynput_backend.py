from __future__ import annotations

from types import SimpleNamespace

import pytest

try:
    from capsforge.runtime.pynput_backend import LLKHF_INJECTED, VK_CAPITAL, WM_KEYDOWN, CapsLockListener
except Exception as exc:  # pynput needs a display or an input backend to import
    pytest.skip(f"pynput backend unavailable: {exc}", allow_module_level=True)

from capsforge.shortcut.ir import Key

WM_KEYUP = 0x0101
VK_A = 0x41
VK_LCONTROL = 0xA2


class _HookStub:
    def __init__(self) -> None:
        self.suppressed = 0

    def suppress_event(self) -> None:
        self.suppressed += 1


def _make_listener(calls: list[tuple]) -> tuple[CapsLockListener, _HookStub]:
    listener = CapsLockListener()
    hook = _HookStub()
    listener._listener = hook

    def predicate(key: Key, ctrl: bool, shift: bool, alt: bool, meta: bool) -> bool:
        calls.append((key, ctrl, shift, alt, meta))
        return True

    listener.set_predicate(predicate)
    return listener, hook


def _event(vk: int, *, injected: bool = False) -> SimpleNamespace:
    return SimpleNamespace(vkCode=vk, flags=LLKHF_INJECTED if injected else 0)


def test_injected_keys_are_not_dispatched() -> None:
    calls: list[tuple] = []
    listener, hook = _make_listener(calls)

    listener._win32_event_filter(WM_KEYDOWN, _event(VK_CAPITAL))
    listener._win32_event_filter(WM_KEYDOWN, _event(VK_A))
    listener._win32_event_filter(WM_KEYDOWN, _event(VK_A, injected=True))

    assert calls == [(Key.A, False, False, False, False)]
    assert hook.suppressed == 2


def test_injected_modifiers_do_not_stick() -> None:
    calls: list[tuple] = []
    listener, _ = _make_listener(calls)

    listener._win32_event_filter(WM_KEYDOWN, _event(VK_CAPITAL))
    # A synthetic ctrl press whose release was never delivered.
    listener._win32_event_filter(WM_KEYDOWN, _event(VK_LCONTROL, injected=True))
    listener._win32_event_filter(WM_KEYDOWN, _event(VK_A))
    listener._win32_event_filter(WM_KEYDOWN, _event(VK_LCONTROL))
    listener._win32_event_filter(WM_KEYDOWN, _event(VK_A))
    listener._win32_event_filter(WM_KEYUP, _event(VK_LCONTROL))
    listener._win32_event_filter(WM_KEYDOWN, _event(VK_A))

    assert calls == [
        (Key.A, False, False, False, False),
        (Key.A, True, False, False, False),
        (Key.A, False, False, False, False),
    ]
