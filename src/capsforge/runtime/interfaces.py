from __future__ import annotations

from enum import Enum
from typing import Callable, Protocol

from capsforge.shortcut.ir import Key

KeyPredicate = Callable[[Key, bool, bool, bool, bool], bool]
"""(key, ctrl, shift, alt, meta) -> True to suppress the physical event."""


class EventSource(Protocol):
    """Low-level keyboard hook delivering CapsLock-layer key events."""

    def set_predicate(self, predicate: KeyPredicate) -> None: ...

    def clear(self) -> None: ...

    def run(self) -> None: ...

    def stop(self) -> None: ...

    def freeze(self) -> None: ...

    def unfreeze(self) -> None: ...


class Injector(Protocol):
    """Synthetic keyboard input; every method may raise InjectionError."""

    def type_text(self, text: str) -> None: ...

    def press(self, key: Key) -> None: ...

    def release(self, key: Key) -> None: ...


class SelectionReader(Protocol):
    def get_text(self) -> str: ...


class TrayStatus(str, Enum):
    OK = "ok"
    CONFIG_ERROR = "config_error"


class StatusSurface(Protocol):
    """Menu surface showing load status and the reload/quit entries."""

    def set_status(self, status: TrayStatus) -> None: ...

    def set_labels(self, reload: str, quit: str) -> None: ...
