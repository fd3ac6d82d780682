from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)


class Feature(str, Enum):
    INPUT_TEXT = "input_text"
    INPUT = "input"
    MULTIFUNCTIONAL = "multifunctional"


class ShortcutDocument(BaseModel):
    """Top-level mapping of the shortcut rule document."""

    model_config = ConfigDict(extra="allow")

    language: Optional[str] = None
    capslock_shortcut: Optional[str] = None

    @field_validator("language", "capslock_shortcut", mode="before")
    @classmethod
    def _non_string_as_absent(cls, value: Any, info) -> Any:
        if value is None or isinstance(value, str):
            return value
        logger.warning("field %r is not a string, ignoring it", info.field_name)
        return None
