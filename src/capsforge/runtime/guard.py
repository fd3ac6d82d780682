from __future__ import annotations

import threading


class ReentrancyGuard:
    """Held while an action emits synthetic key events.

    Engaged by the hook thread when an action is queued and released by the
    worker that ran it. Text and macro workers may hold it at the same time,
    so it stays active until every holder has released it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._holders = 0

    @property
    def active(self) -> bool:
        return self._holders > 0

    def engage(self) -> None:
        with self._lock:
            self._holders += 1

    def release(self) -> None:
        with self._lock:
            if self._holders > 0:
                self._holders -= 1
