"""Root document value handed from the reader to every renderer."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from markdown_renderer.model.elements import Block


@dataclass(frozen=True, slots=True)
class Metadata:
    """Typed front-matter record; unknown keys land in ``extensions``."""

    title: Optional[str] = None
    subtitle: Optional[str] = None
    author: Optional[str] = None
    date: Optional[str] = None
    font_size: Optional[int] = None
    extensions: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if self.font_size is not None and self.font_size <= 0:
            raise ValueError(f"font_size must be a positive number of points, got {self.font_size}")
        if not isinstance(self.extensions, MappingProxyType):
            object.__setattr__(self, "extensions", MappingProxyType(dict(self.extensions)))

    @property
    def has_title_block(self) -> bool:
        return any((self.title, self.subtitle, self.author, self.date))


@dataclass(frozen=True, slots=True)
class Document:
    """Immutable document: metadata plus the ordered block sequence."""

    meta: Metadata
    blocks: Tuple[Block, ...]
