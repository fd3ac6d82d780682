"""
Dispatch engine: binds the loaded rule set to the live key event stream.

The engine owns the active RuleSet and the re-entrancy guard. A reload builds
a complete new RuleSet before installing it with a single assignment, so the
hook thread sees either the old or the new set. A failed reload fails closed:
the event source is cleared and no rules stay active.

In-flight macros are not cancelled by a reload; a long macro started under
the old rules may still be replaying after the new rules are installed.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum

from capsforge.errors import LoadError
from capsforge.loader import ConfigLoader
from capsforge.shortcut.ir import Key, Loaded, LoadOutcome, RuleSet

from .actions import ActionExecutor
from .guard import ReentrancyGuard
from .interfaces import EventSource

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"
    ERROR = "error"


class DispatchEngine:
    def __init__(
        self,
        loader: ConfigLoader,
        event_source: EventSource,
        executor: ActionExecutor,
        guard: ReentrancyGuard,
    ) -> None:
        self._loader = loader
        self._event_source = event_source
        self._executor = executor
        self._guard = guard
        self._rule_set: RuleSet | None = None
        self._state = EngineState.UNLOADED
        self._reload_lock = threading.Lock()

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def rule_set(self) -> RuleSet | None:
        return self._rule_set

    def load(self) -> LoadOutcome:
        """(Re)load the configuration and install it.

        Raises the loader's `LoadError` after clearing all matching logic.
        """

        with self._reload_lock:
            try:
                outcome = self._loader.load()
            except LoadError:
                self.clear()
                self._state = EngineState.ERROR
                raise

            if isinstance(outcome, Loaded):
                rule_set = outcome.rule_set
            else:
                logger.info("No shortcut rules configured: %s", outcome.reason)
                rule_set = RuleSet()

            for binding in rule_set.duplicate_bindings():
                logger.warning("Shortcut %s is bound more than once; the first rule wins", binding)

            self._rule_set = rule_set
            self._event_source.set_predicate(self.handle_event)
            self._state = EngineState.LOADED
            return outcome

    def handle_event(self, key: Key, ctrl: bool, shift: bool, alt: bool, meta: bool) -> bool:
        """Hook-thread predicate; True suppresses the physical event."""

        if self._guard.active:
            return False

        rule_set = self._rule_set
        if rule_set is None:
            return False

        rule = rule_set.find(key, ctrl, shift, alt, meta)
        if rule is None:
            return False

        logger.debug("Shortcut %s triggered", rule.binding)
        try:
            self._executor.execute(rule.action, rule_set.replacements)
        except Exception:
            logger.exception("Action for %s failed", rule.binding)
        return True

    def run(self) -> None:
        """Block delivering events until the event source stops."""

        self._event_source.run()

    def stop(self) -> None:
        """Make a blocking `run()` return."""

        self._event_source.stop()

    def clear(self) -> None:
        self._event_source.clear()
        self._rule_set = None

    def close(self) -> None:
        self.clear()
        self.stop()
        self._executor.shutdown(wait=False)
