"""Style model: the visual decisions every renderer must honour."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True, slots=True)
class HeadingStyle:
    """Resolved look of one heading level (sizes in points)."""

    level: int
    font_size: int
    bold: bool = True
    color: str = "1F4E79"
    space_before: int = 12
    space_after: int = 6


@dataclass(frozen=True, slots=True)
class TableStyle:
    """Borders, header and banding colours for tables (hex colours, no ``#``)."""

    border_width: float = 0.75
    border_color: str = "333333"
    header_fill: str = "1F4E79"
    header_text_color: str = "FFFFFF"
    banded_fill: str = "EDF2F7"
    cell_padding: float = 4.0


@dataclass(frozen=True, slots=True)
class StyleSheet:
    """Resolved styles for one document; shared read-only by all renderers."""

    font_family: str
    font_fallbacks: Tuple[str, ...]
    base_font_size: int
    title_font_size: int
    subtitle_font_size: int
    headings: Tuple[HeadingStyle, ...]
    table: TableStyle
    code_font_family: str
    text_color: str
    link_color: str
    rule_color: str
    quote_color: str
    indent_step: float
    paragraph_space_after: int

    def heading(self, level: int) -> HeadingStyle:
        """Return the style for ``level``, clamped to the 1-6 range."""
        index = min(max(level, 1), len(self.headings)) - 1
        return self.headings[index]
