from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from capsforge.errors import InjectionError
from capsforge.files import ConfigPaths
from capsforge.loader import ConfigLoader
from capsforge.runtime.actions import ActionExecutor
from capsforge.runtime.engine import DispatchEngine
from capsforge.runtime.guard import ReentrancyGuard
from capsforge.shortcut.ir import Key


class FakeEventSource:
    def __init__(self) -> None:
        self.predicate = None
        self.frozen = False
        self.freeze_calls = 0
        self.unfreeze_calls = 0
        self.cleared = 0
        self._stopped = threading.Event()

    def set_predicate(self, predicate) -> None:
        self.predicate = predicate

    def clear(self) -> None:
        self.predicate = None
        self.cleared += 1

    def run(self) -> None:
        self._stopped.wait(timeout=5)

    def stop(self) -> None:
        self._stopped.set()

    def freeze(self) -> None:
        self.frozen = True
        self.freeze_calls += 1

    def unfreeze(self) -> None:
        self.frozen = False
        self.unfreeze_calls += 1

    def fire(self, key: Key, *, ctrl: bool = False, shift: bool = False, alt: bool = False, meta: bool = False) -> bool:
        if self.predicate is None:
            return False
        return self.predicate(key, ctrl, shift, alt, meta)


class RecordingInjector:
    def __init__(self, *, gate: Optional[threading.Event] = None, fail_on: Optional[Key] = None) -> None:
        self.events: list[tuple[str, Any]] = []
        self._gate = gate
        self._fail_on = fail_on

    def type_text(self, text: str) -> None:
        self.events.append(("text", text))

    def press(self, key: Key) -> None:
        if self._gate is not None:
            self._gate.wait(timeout=5)
        if key is self._fail_on:
            raise InjectionError(f"cannot press {key.value}")
        self.events.append(("press", key))

    def release(self, key: Key) -> None:
        self.events.append(("release", key))


class EchoInjector(RecordingInjector):
    """Feeds every typed character back to the event source, as a hook sees it."""

    def __init__(self, source: FakeEventSource) -> None:
        super().__init__()
        self._source = source
        self.echoes: list[bool] = []

    def type_text(self, text: str) -> None:
        super().type_text(text)
        for char in text:
            self.echoes.append(self._source.fire(Key(char)))


class FakeSelection:
    def __init__(self, text: str = "", *, delay: float = 0.0) -> None:
        self.text = text
        self.reads = 0
        self._delay = delay

    def get_text(self) -> str:
        if self._delay:
            time.sleep(self._delay)
        self.reads += 1
        return self.text


def wait_until(condition: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


def write_config(config_dir: Path, rules: Any, replacements: str = "[Multifunctional]\n") -> ConfigPaths:
    paths = ConfigPaths(config_dir=config_dir)
    config_dir.mkdir(parents=True, exist_ok=True)
    payload = rules if isinstance(rules, str) else json.dumps(rules)
    indented = "\n".join("  " + line for line in payload.splitlines())
    paths.shortcut_file.write_text(f"language: en\ncapslock_shortcut: |\n{indented}\n", encoding="utf-8")
    paths.replacement_file.write_text(replacements, encoding="utf-8")
    return paths


class EngineHarness:
    def __init__(
        self,
        paths: ConfigPaths,
        injector: RecordingInjector,
        selection: FakeSelection,
        source: Optional[FakeEventSource] = None,
    ) -> None:
        self.paths = paths
        self.source = source or FakeEventSource()
        self.guard = ReentrancyGuard()
        self.injector = injector
        self.selection = selection
        self.executor = ActionExecutor(injector, selection, self.source, self.guard)
        self.engine = DispatchEngine(ConfigLoader(paths), self.source, self.executor, self.guard)

    def drain(self) -> None:
        self.executor.shutdown(wait=True)


@pytest.fixture
def make_harness(tmp_path):
    harnesses: list[EngineHarness] = []

    def _make(
        rules: Any,
        replacements: str = "[Multifunctional]\n",
        *,
        injector: Optional[RecordingInjector] = None,
        selection: Optional[FakeSelection] = None,
        source: Optional[FakeEventSource] = None,
    ) -> EngineHarness:
        paths = write_config(tmp_path / f"config{len(harnesses)}", rules, replacements)
        harness = EngineHarness(paths, injector or RecordingInjector(), selection or FakeSelection(), source)
        harnesses.append(harness)
        return harness

    yield _make

    for harness in harnesses:
        harness.executor.shutdown(wait=True)
