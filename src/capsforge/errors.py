from __future__ import annotations

from enum import Enum
from pathlib import Path


class CapsForgeError(Exception):
    """Base exception for all CapsForge errors."""


class LoadError(CapsForgeError):
    """Base exception for configuration (re)load failures."""


class ConfigNotFoundError(LoadError):
    """Raised when the shortcut rule document does not exist."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(f"config file not found: {self.path}")


class ConfigScanError(LoadError):
    """Raised when the shortcut rule document is not valid YAML."""


class ConfigDecodeError(LoadError):
    """Raised when the embedded rule array is not a valid JSON array."""


class FormatErrorKind(str, Enum):
    JSON = "json"
    KEY = "key"
    VALUE = "value"
    FEATURE = "feature"


class RuleFormatError(LoadError):
    """A single rule entry is semantically invalid; `raw` holds the offending text."""

    def __init__(self, kind: FormatErrorKind, raw: str) -> None:
        self.kind = kind
        self.raw = raw
        super().__init__(f"{kind.value} error: {raw!r}")


class ReplacementConfigError(LoadError):
    """Raised when the replacement-pairs document cannot be read or parsed."""


class InjectionError(CapsForgeError):
    """Raised by an injector when synthetic text or key input fails."""
