from __future__ import annotations

import configparser
import logging
import re
from pathlib import Path
from typing import Callable, Iterable

from capsforge.errors import ReplacementConfigError

from .ir import ReplacementMap

logger = logging.getLogger(__name__)

SECTION = "Multifunctional"


def insert_replacement(replacements: ReplacementMap, trigger: str, target: str) -> None:
    """Insert a mapping; an existing entry is overwritten and reported."""

    previous = replacements.get(trigger)
    if previous == target:
        logger.info("replacement for %r repeated with the same value %r", trigger, target)
    elif previous is not None:
        logger.warning(
            "replacement for %r overrides previous value %r with %r", trigger, previous, target
        )
    replacements[trigger] = target


def add_rotation_group(replacements: ReplacementMap, trigger: str, elements: Iterable[str]) -> None:
    """Chain `trigger -> e0 -> e1 -> ... -> eN -> e0`."""

    elements = [e.strip() for e in elements]
    head = elements[0]
    insert_replacement(replacements, trigger, head)
    for current, following in zip(elements, elements[1:] + [head]):
        insert_replacement(replacements, current, following)


def _bracket_elements(value: str) -> list[str] | None:
    if value.startswith("[") and value.endswith("]"):
        return value[1:-1].split(",")
    return None


def _first_section_only(text: str, section: str) -> str:
    """Cut the text at a repeated header of `section` so it is never scanned."""

    header = re.compile(r"^\s*\[\s*" + re.escape(section) + r"\s*\]\s*$")
    seen = False
    lines = text.splitlines(keepends=True)
    for index, line in enumerate(lines):
        if header.match(line):
            if seen:
                return "".join(lines[:index])
            seen = True
    return text


class _OptionLog(dict):
    """configparser section storage that keeps every option write.

    While reading, configparser stores each option line as a list of value
    lines and merges repeated options by plain assignment; `writes` keeps
    them all in document order. `name` is the section this dict holds.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.name: str | None = None
        self.writes: list[tuple[str, list[str]]] = []

    def __setitem__(self, key, value) -> None:
        if isinstance(value, list):
            self.writes.append((key, value))
        elif isinstance(value, _OptionLog):
            value.name = key
        super().__setitem__(key, value)


def _make_parser() -> tuple[configparser.RawConfigParser, Callable[[str], _OptionLog | None]]:
    created: list[_OptionLog] = []

    def option_log(*args, **kwargs) -> _OptionLog:
        log = _OptionLog(*args, **kwargs)
        created.append(log)
        return log

    def section_log(name: str) -> _OptionLog | None:
        return next((log for log in created if log.name == name), None)

    parser = configparser.RawConfigParser(
        dict_type=option_log,
        delimiters=("=",),
        comment_prefixes=("#", ";"),
        strict=False,
        default_section="",
        interpolation=None,
    )
    parser.optionxform = str  # keep trigger text case
    return parser, section_log


def parse_replacements(text: str, *, section: str = SECTION) -> ReplacementMap:
    """Build the replacement map from the first `section` of an INI text.

    `a = [x, y, z]` becomes the rotation group a -> x, x -> y, y -> z,
    z -> x; any other value is stored as written. Repeated triggers are
    overwritten in document order and reported.
    """

    parser, section_log = _make_parser()
    try:
        parser.read_string(_first_section_only(text, section))
    except configparser.Error as exc:
        raise ReplacementConfigError(str(exc)) from exc

    replacements: ReplacementMap = {}
    log = section_log(section)
    if log is None:
        logger.info("no [%s] section, replacement map is empty", section)
        return replacements

    for trigger, lines in log.writes:
        value = "\n".join(lines).rstrip()
        elements = _bracket_elements(value)
        if elements is not None and len(elements) > 1:
            add_rotation_group(replacements, trigger, elements)
        else:
            insert_replacement(replacements, trigger, value)
    return replacements


def load_replacements(path: str | Path, *, section: str = SECTION) -> ReplacementMap:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ReplacementConfigError(f"cannot read {path}: {exc}") from exc
    return parse_replacements(text, section=section)
