from __future__ import annotations

import argparse
import logging
import signal
import sys

from . import __version__
from .errors import LoadError
from .files import ConfigPaths, seed_defaults
from .loader import ConfigLoader
from .shortcut.ir import Loaded

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def run(paths: ConfigPaths) -> int:
    """Start the listener and handle reload/quit until interrupted."""

    # pynput needs a display, so it is only imported when actually running.
    from .app import CapsForgeApp
    from .runtime.actions import ActionExecutor
    from .runtime.engine import DispatchEngine
    from .runtime.guard import ReentrancyGuard
    from .runtime.pynput_backend import CapsLockListener, ClipboardSelection, PynputInjector

    listener = CapsLockListener()
    guard = ReentrancyGuard()
    executor = ActionExecutor(PynputInjector(), ClipboardSelection(), listener, guard)
    engine = DispatchEngine(ConfigLoader(paths), listener, executor, guard)
    app = CapsForgeApp(paths, engine)

    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, lambda signum, frame: app.request_reload())

    logger.info("CapsForge v%s started, config in %s", __version__, paths.config_dir)
    try:
        app.run()
    except KeyboardInterrupt:
        logger.info("Interrupted, quitting")
    return 0


def check(paths: ConfigPaths) -> int:
    """Load the configuration once and report the result."""

    try:
        outcome = ConfigLoader(paths).load()
    except LoadError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1

    if not isinstance(outcome, Loaded):
        print(f"not configured: {outcome.reason}")
        return 0

    rule_set = outcome.rule_set
    for rule in rule_set.rules:
        print(f"{rule.binding}\t{type(rule.action).__name__}")
    for binding in rule_set.duplicate_bindings():
        print(f"warning: {binding} is bound more than once, the first rule wins", file=sys.stderr)
    print(f"{len(rule_set.rules)} rules, {len(rule_set.replacements)} replacements")
    return 0


def init(paths: ConfigPaths) -> int:
    created = seed_defaults(paths)
    for path in created:
        print(f"created {path}")
    if not created:
        print(f"config already present in {paths.config_dir}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="capsforge",
        description="CapsLock layer macros: type text, replay keys, substitute selections.",
    )
    parser.add_argument("--config-dir", help="Config directory (default: $CAPSFORGE_CONFIG_DIR or ~/.config/capsforge)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=("run", "check", "init"),
        help="run the listener (default), check the config, or create default config files",
    )

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    paths = ConfigPaths.default(args.config_dir)

    commands = {"run": run, "check": check, "init": init}
    return commands[args.command](paths)


if __name__ == "__main__":
    raise SystemExit(main())
