from __future__ import annotations

import logging
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable, Sequence

from capsforge.errors import InjectionError
from capsforge.shortcut.ir import (
    Action,
    ContextSubstitution,
    Key,
    KeySequenceMacro,
    KeyStep,
    ReplacementMap,
    RotatingText,
)

from .guard import ReentrancyGuard
from .interfaces import EventSource, Injector, SelectionReader

logger = logging.getLogger(__name__)


class ActionExecutor:
    """Run actions against the injector, selection reader and event source.

    Anything that injects input or reads the selection runs on a
    single-worker executor, so the hook thread never waits on it.
    """

    def __init__(
        self,
        injector: Injector,
        selection: SelectionReader,
        event_source: EventSource,
        guard: ReentrancyGuard,
        *,
        text_executor: Executor | None = None,
        macro_executor: Executor | None = None,
    ) -> None:
        self._injector = injector
        self._selection = selection
        self._event_source = event_source
        self._guard = guard
        self._text_executor = text_executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="capsforge-text"
        )
        self._macro_executor = macro_executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="capsforge-macro"
        )

    def execute(self, action: Action, replacements: ReplacementMap) -> None:
        if isinstance(action, RotatingText):
            self._submit_text(action.advance())
        elif isinstance(action, KeySequenceMacro):
            self._start_macro(action.steps)
        elif isinstance(action, ContextSubstitution):
            # Reading the selection synthesizes a copy and waits on the clipboard.
            self._text_executor.submit(
                _logged, "selection substitution", self._substitute_selection, replacements
            )
        else:
            raise TypeError(f"unsupported action: {type(action).__name__}")

    def shutdown(self, wait: bool = True) -> None:
        self._text_executor.shutdown(wait=wait)
        self._macro_executor.shutdown(wait=wait)

    def _submit_text(self, text: str) -> None:
        # Typed keys may match rules too; engaged before they can be observed.
        self._guard.engage()
        try:
            self._text_executor.submit(self._inject_text, text)
        except RuntimeError:
            self._guard.release()
            raise

    def _inject_text(self, text: str) -> None:
        """Type `text` on a worker; releases the guard engaged for it."""

        try:
            self._injector.type_text(text)
        except InjectionError as exc:
            logger.warning("Could not type text %r: %s", text, exc)
        except Exception:
            logger.exception("Text injection failed")
        finally:
            self._guard.release()

    def _start_macro(self, steps: Sequence[KeyStep]) -> None:
        # Engaged before the first synthetic event can be observed.
        self._guard.engage()
        try:
            self._macro_executor.submit(self._replay, list(steps))
        except RuntimeError:
            self._guard.release()
            raise

    def _replay(self, steps: Sequence[KeyStep]) -> None:
        try:
            for step in steps:
                modifiers = list(step.modifiers.active())
                for modifier in modifiers:
                    self._send(self._injector.press, modifier)
                self._send(self._injector.press, step.key)
                self._send(self._injector.release, step.key)
                for modifier in modifiers:
                    self._send(self._injector.release, modifier)
                if step.delay_ms:
                    time.sleep(step.delay_ms / 1000)
        except Exception:
            logger.exception("Key sequence replay failed")
        finally:
            self._guard.release()

    @staticmethod
    def _send(send: Callable[[Key], None], key: Key) -> None:
        try:
            send(key)
        except InjectionError as exc:
            logger.warning("Could not send %s: %s", key.value, exc)

    def _substitute_selection(self, replacements: ReplacementMap) -> None:
        self._event_source.freeze()
        try:
            selected = self._selection.get_text()
            target = replacements.get(selected)
            if target is None:
                logger.debug("No replacement for selection %r", selected)
                return
            self._guard.engage()
            self._inject_text(target)
        finally:
            self._event_source.unfreeze()


def _logged(what: str, func: Callable[..., None], *args) -> None:
    try:
        func(*args)
    except Exception:
        logger.exception("Background %s failed", what)
