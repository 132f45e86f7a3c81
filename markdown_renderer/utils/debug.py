"""Helpers to persist intermediate representations for debugging."""
from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from markdown_renderer.model.document_model import Document
from markdown_renderer.model.style_model import StyleSheet


class DebugDumper:
    """Writes intermediate artifacts onto disk for inspection."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def dump(self, document: Document, stylesheet: StyleSheet | None = None) -> None:
        """Persist the document model (and stylesheet) as JSON for offline analysis."""
        self.directory.mkdir(parents=True, exist_ok=True)
        self._write("document_model.json", self.serialize(document))
        if stylesheet is not None:
            self._write("stylesheet.json", self.serialize(stylesheet))

    def _write(self, name: str, payload: Any) -> None:
        text = json.dumps(payload, indent=2, ensure_ascii=False)
        (self.directory / name).write_text(text + "\n", encoding="utf-8")

    def serialize(self, value: Any) -> Any:
        """Convert model values into JSON-compatible data tagged with their type."""
        if is_dataclass(value) and not isinstance(value, type):
            payload = {"type": type(value).__name__}
            for item in fields(value):
                payload[item.name] = self.serialize(getattr(value, item.name))
            return payload
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, Mapping):
            return {str(k): self.serialize(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.serialize(v) for v in value]
        return value
