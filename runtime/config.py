"""
Editor configuration.

Settings can be passed as keyword arguments or read from a JSON file:

    {
        "content_dir": "content/dialog-trees",
        "debounce_seconds": 0.3,
        "column_width": 300,
        "row_spacing": 150
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationLimits:
    """Advisory thresholds; exceeding one produces a warning, never an error."""
    max_response_chars: int = 200
    max_message_chars: int = 1000
    max_responses: int = 4


class EditorConfig:
    """Configuration for the dialog tree editor."""

    FIELDS = (
        "content_dir",
        "debounce_seconds",
        "column_width",
        "row_spacing",
        "max_response_chars",
        "max_message_chars",
        "max_responses",
        "json_indent",
    )

    def __init__(
        self,
        content_dir: str | Path = "content/dialog-trees",
        debounce_seconds: float = 0.3,
        column_width: float = 300.0,
        row_spacing: float = 150.0,
        max_response_chars: int = 200,
        max_message_chars: int = 1000,
        max_responses: int = 4,
        json_indent: int = 2,
    ):
        self.content_dir = Path(content_dir)
        self.debounce_seconds = float(debounce_seconds)
        self.column_width = float(column_width)
        self.row_spacing = float(row_spacing)
        self.max_response_chars = int(max_response_chars)
        self.max_message_chars = int(max_message_chars)
        self.max_responses = int(max_responses)
        self.json_indent = int(json_indent)

    def validation_limits(self) -> ValidationLimits:
        return ValidationLimits(
            max_response_chars=self.max_response_chars,
            max_message_chars=self.max_message_chars,
            max_responses=self.max_responses,
        )

    def to_dict(self) -> dict:
        """Convert to a JSON-compatible dictionary."""
        data = {name: getattr(self, name) for name in self.FIELDS}
        data["content_dir"] = str(self.content_dir)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EditorConfig:
        """Create from a dictionary; missing keys keep their defaults."""
        unknown = sorted(set(data) - set(cls.FIELDS))
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        return cls(**{key: data[key] for key in cls.FIELDS if key in data})

    @classmethod
    def from_file(cls, path: str | Path) -> EditorConfig:
        """
        Load configuration from a JSON file.

        Raises:
            ValueError: If the file cannot be read or is not a JSON object
        """
        path = Path(path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ValueError(f"Cannot read config {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Config {path} must contain a JSON object")

        config = cls.from_dict(data)
        logger.info("Loaded editor config from %s", path)
        return config
