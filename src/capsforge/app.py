from __future__ import annotations

import logging
import queue
import threading
from enum import Enum, auto
from typing import Optional

from .errors import LoadError
from .files import ConfigPaths, language_or_auto, seed_defaults
from .i18n import I18nText
from .runtime.engine import DispatchEngine
from .runtime.interfaces import StatusSurface, TrayStatus

logger = logging.getLogger(__name__)


class Message(Enum):
    RELOAD = auto()
    QUIT = auto()


class LoggingStatusSurface:
    """Status surface for headless runs: reports status changes in the log."""

    def __init__(self) -> None:
        self.status: Optional[TrayStatus] = None

    def set_status(self, status: TrayStatus) -> None:
        if status is not self.status:
            logger.info("Status: %s", status.value)
        self.status = status

    def set_labels(self, reload: str, quit: str) -> None:
        logger.debug("Menu labels: %s / %s", reload, quit)


class CapsForgeApp:
    """Handles reload and quit messages one at a time on the thread calling `run()`.

    The keyboard listener runs on its own thread and is restarted if it
    stops unexpectedly.
    """

    def __init__(
        self,
        paths: ConfigPaths,
        engine: DispatchEngine,
        surface: Optional[StatusSurface] = None,
        *,
        restart_delay: float = 1.0,
    ) -> None:
        self.paths = paths
        self.engine = engine
        self.surface = surface or LoggingStatusSurface()
        self._restart_delay = restart_delay
        self._messages: "queue.Queue[Message]" = queue.Queue()
        self._quitting = threading.Event()
        self._listener_thread: Optional[threading.Thread] = None

    def request_reload(self) -> None:
        self._messages.put(Message.RELOAD)

    def request_quit(self) -> None:
        self._messages.put(Message.QUIT)

    def start(self) -> bool:
        """Seed missing config files and perform the first load."""

        seed_defaults(self.paths)
        return self.reload()

    def reload(self) -> bool:
        self._update_labels()
        try:
            self.engine.load()
        except LoadError as exc:
            logger.error("Reload error: %s: %s", type(exc).__name__, exc)
            self.surface.set_status(TrayStatus.CONFIG_ERROR)
            return False

        self.surface.set_status(TrayStatus.OK)
        self._ensure_listener()
        return True

    def run(self, poll_interval: float = 0.5) -> None:
        """Handle messages until a quit request arrives."""

        self.start()
        try:
            while True:
                try:
                    message = self._messages.get(timeout=poll_interval)
                except queue.Empty:
                    continue
                if message is Message.QUIT:
                    break
                logger.info("Reload")
                seed_defaults(self.paths)
                self.reload()
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        self._quitting.set()
        self.engine.close()
        thread = self._listener_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)

    def _update_labels(self) -> None:
        text = I18nText(language_or_auto(self.paths))
        self.surface.set_labels(text.reload(), text.quit())

    def _ensure_listener(self) -> None:
        if self._listener_thread is not None and self._listener_thread.is_alive():
            return
        self._listener_thread = threading.Thread(
            target=self._listen, name="capsforge-listener", daemon=True
        )
        self._listener_thread.start()

    def _listen(self) -> None:
        # The hook occasionally stops on its own when input is synthesized; restart it.
        while not self._quitting.is_set():
            logger.info("Starting keyboard listener")
            try:
                self.engine.run()
            except Exception:
                logger.exception("Keyboard listener failed")
            if self._quitting.wait(self._restart_delay):
                break
