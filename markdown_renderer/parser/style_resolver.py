"""Turn document metadata into the single ``StyleSheet`` every renderer honours."""
from __future__ import annotations

from markdown_renderer.model.document_model import Metadata
from markdown_renderer.model.style_model import HeadingStyle, StyleSheet, TableStyle
from markdown_renderer.utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_FONT_FAMILY = "Calibri"
DEFAULT_FONT_FALLBACKS = ("Segoe UI", "Arial", "sans-serif")
DEFAULT_FONT_SIZE_PT = 12
CODE_FONT_FAMILY = "Courier New"
TEXT_COLOR = "000000"
HEADING_COLOR = "1F4E79"
LINK_COLOR = "0000FF"
RULE_COLOR = "999999"
QUOTE_COLOR = "555555"
INDENT_STEP_PT = 36.0
PARAGRAPH_SPACE_AFTER_PT = 8

# Size added to the base font size for heading levels 1-6
HEADING_SIZE_OFFSETS = (7, 4, 2, 1, 0, -1)
MIN_FONT_SIZE_PT = 1


def resolve_stylesheet(meta: Metadata) -> StyleSheet:
    """Resolve the styles for a document described by ``meta``."""
    base = meta.font_size if meta.font_size is not None else DEFAULT_FONT_SIZE_PT

    headings = tuple(
        HeadingStyle(
            level=level,
            font_size=max(base + offset, MIN_FONT_SIZE_PT),
            color=HEADING_COLOR,
            space_before=18 if level <= 2 else 12,
            space_after=6,
        )
        for level, offset in enumerate(HEADING_SIZE_OFFSETS, start=1)
    )

    stylesheet = StyleSheet(
        font_family=DEFAULT_FONT_FAMILY,
        font_fallbacks=DEFAULT_FONT_FALLBACKS,
        base_font_size=base,
        title_font_size=base * 2,
        subtitle_font_size=base + 4,
        headings=headings,
        table=TableStyle(),
        code_font_family=CODE_FONT_FAMILY,
        text_color=TEXT_COLOR,
        link_color=LINK_COLOR,
        rule_color=RULE_COLOR,
        quote_color=QUOTE_COLOR,
        indent_step=INDENT_STEP_PT,
        paragraph_space_after=PARAGRAPH_SPACE_AFTER_PT,
    )
    LOGGER.debug("Resolved stylesheet with base font size %dpt", base)
    return stylesheet
