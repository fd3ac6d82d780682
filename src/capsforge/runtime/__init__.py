from __future__ import annotations

from .actions import ActionExecutor
from .engine import DispatchEngine, EngineState
from .guard import ReentrancyGuard
from .interfaces import EventSource, Injector, KeyPredicate, SelectionReader, StatusSurface, TrayStatus

__all__ = [
    "ActionExecutor",
    "DispatchEngine",
    "EngineState",
    "EventSource",
    "Injector",
    "KeyPredicate",
    "ReentrancyGuard",
    "SelectionReader",
    "StatusSurface",
    "TrayStatus",
]
