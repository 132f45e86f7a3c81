"""Block and inline vocabulary shared by the reader and every renderer."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from markdown_renderer.model.table_model import TableModel


@dataclass(frozen=True, slots=True)
class Attr:
    """Identifier, classes and key/value pairs attached to a Div or Span."""

    identifier: str = ""
    classes: Tuple[str, ...] = ()
    attributes: Tuple[Tuple[str, str], ...] = ()

    def get(self, key: str, default: str | None = None) -> str | None:
        for name, value in self.attributes:
            if name == key:
                return value
        return default


class QuoteType(Enum):
    SINGLE = "single"
    DOUBLE = "double"


class MathType(Enum):
    INLINE = "inline"
    DISPLAY = "display"


class ListNumberStyle(Enum):
    DECIMAL = "decimal"
    LOWER_ALPHA = "lower-alpha"
    UPPER_ALPHA = "upper-alpha"
    LOWER_ROMAN = "lower-roman"
    UPPER_ROMAN = "upper-roman"


class ListNumberDelim(Enum):
    PERIOD = "period"
    ONE_PAREN = "one-paren"
    TWO_PARENS = "two-parens"


# ----------------------------------------------------------------------
# Inline elements


@dataclass(frozen=True, slots=True)
class Str:
    """A run of text without whitespace."""

    text: str


@dataclass(frozen=True, slots=True)
class Space:
    pass


@dataclass(frozen=True, slots=True)
class SoftBreak:
    pass


@dataclass(frozen=True, slots=True)
class LineBreak:
    pass


@dataclass(frozen=True, slots=True)
class Emph:
    inlines: Tuple["Inline", ...]


@dataclass(frozen=True, slots=True)
class Strong:
    inlines: Tuple["Inline", ...]


@dataclass(frozen=True, slots=True)
class Strikeout:
    inlines: Tuple["Inline", ...]


@dataclass(frozen=True, slots=True)
class Superscript:
    inlines: Tuple["Inline", ...]


@dataclass(frozen=True, slots=True)
class Subscript:
    inlines: Tuple["Inline", ...]


@dataclass(frozen=True, slots=True)
class SmallCaps:
    inlines: Tuple["Inline", ...]


@dataclass(frozen=True, slots=True)
class Code:
    text: str


@dataclass(frozen=True, slots=True)
class Quoted:
    quote_type: QuoteType
    inlines: Tuple["Inline", ...]


@dataclass(frozen=True, slots=True)
class Link:
    url: str
    title: str
    inlines: Tuple["Inline", ...]


@dataclass(frozen=True, slots=True)
class Image:
    url: str
    title: str
    alt: Tuple["Inline", ...]


@dataclass(frozen=True, slots=True)
class Math:
    math_type: MathType
    text: str


@dataclass(frozen=True, slots=True)
class RawInline:
    """Markup passed through verbatim to renderers of the matching format."""

    format: str
    text: str


@dataclass(frozen=True, slots=True)
class Note:
    """Footnote; its content is a block sequence."""

    blocks: Tuple["Block", ...]


@dataclass(frozen=True, slots=True)
class Span:
    attr: Attr
    inlines: Tuple["Inline", ...]


Inline = (
    Str | Space | SoftBreak | LineBreak | Emph | Strong | Strikeout | Superscript | Subscript
    | SmallCaps | Code | Quoted | Link | Image | Math | RawInline | Note | Span
)

INLINE_TYPES = (
    Str, Space, SoftBreak, LineBreak, Emph, Strong, Strikeout, Superscript, Subscript,
    SmallCaps, Code, Quoted, Link, Image, Math, RawInline, Note, Span,
)


# ----------------------------------------------------------------------
# Block elements


@dataclass(frozen=True, slots=True)
class Plain:
    """Inline content not wrapped in a paragraph (tight list items, cells)."""

    inlines: Tuple[Inline, ...]


@dataclass(frozen=True, slots=True)
class Paragraph:
    inlines: Tuple[Inline, ...]


@dataclass(frozen=True, slots=True)
class Header:
    level: int
    identifier: str
    inlines: Tuple[Inline, ...]

    def __post_init__(self) -> None:
        if not 1 <= self.level <= 6:
            raise ValueError(f"Header level must be within 1-6, got {self.level}")


@dataclass(frozen=True, slots=True)
class CodeBlock:
    language: str
    text: str


@dataclass(frozen=True, slots=True)
class BlockQuote:
    blocks: Tuple["Block", ...]


@dataclass(frozen=True, slots=True)
class BulletList:
    items: Tuple[Tuple["Block", ...], ...]


@dataclass(frozen=True, slots=True)
class OrderedList:
    items: Tuple[Tuple["Block", ...], ...]
    start: int = 1
    style: ListNumberStyle = ListNumberStyle.DECIMAL
    delimiter: ListNumberDelim = ListNumberDelim.PERIOD


@dataclass(frozen=True, slots=True)
class Table:
    model: TableModel


@dataclass(frozen=True, slots=True)
class HorizontalRule:
    pass


@dataclass(frozen=True, slots=True)
class RawBlock:
    format: str
    text: str


@dataclass(frozen=True, slots=True)
class Div:
    attr: Attr
    blocks: Tuple["Block", ...]


@dataclass(frozen=True, slots=True)
class LineBlock:
    """One inline sequence per visual line."""

    lines: Tuple[Tuple[Inline, ...], ...]


@dataclass(frozen=True, slots=True)
class DefinitionItem:
    term: Tuple[Inline, ...]
    definitions: Tuple[Tuple["Block", ...], ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class DefinitionList:
    items: Tuple[DefinitionItem, ...]


@dataclass(frozen=True, slots=True)
class PageBreak:
    pass


Block = (
    Plain | Paragraph | Header | CodeBlock | BlockQuote | BulletList | OrderedList | Table
    | HorizontalRule | RawBlock | Div | LineBlock | DefinitionList | PageBreak
)

BLOCK_TYPES = (
    Plain, Paragraph, Header, CodeBlock, BlockQuote, BulletList, OrderedList, Table,
    HorizontalRule, RawBlock, Div, LineBlock, DefinitionList, PageBreak,
)


def stringify(inlines: Tuple[Inline, ...]) -> str:
    """Flatten inline content to plain text (alt text, slugs, docx fallbacks)."""
    parts = []
    for inline in inlines:
        if isinstance(inline, (Str, Code, Math, RawInline)):
            parts.append(inline.text)
        elif isinstance(inline, (Space, SoftBreak)):
            parts.append(" ")
        elif isinstance(inline, LineBreak):
            parts.append("\n")
        elif isinstance(inline, Quoted):
            marks = ("‘", "’") if inline.quote_type is QuoteType.SINGLE else ("“", "”")
            parts.append(marks[0] + stringify(inline.inlines) + marks[1])
        elif isinstance(inline, Image):
            parts.append(stringify(inline.alt))
        elif isinstance(inline, Link):
            parts.append(stringify(inline.inlines) or inline.url)
        elif isinstance(inline, Note):
            parts.append(blocks_to_text(inline.blocks))
        else:
            parts.append(stringify(inline.inlines))
    return "".join(parts)


def blocks_to_text(blocks: Tuple[Block, ...]) -> str:
    """Best-effort plain text of a block sequence."""
    texts = []
    for block in blocks:
        if isinstance(block, (Plain, Paragraph, Header)):
            texts.append(stringify(block.inlines))
        elif isinstance(block, (CodeBlock, RawBlock)):
            texts.append(block.text)
        elif isinstance(block, (BlockQuote, Div)):
            texts.append(blocks_to_text(block.blocks))
        elif isinstance(block, (BulletList, OrderedList)):
            texts.extend(blocks_to_text(item) for item in block.items)
        elif isinstance(block, LineBlock):
            texts.extend(stringify(line) for line in block.lines)
        elif isinstance(block, DefinitionList):
            for item in block.items:
                texts.append(stringify(item.term))
                texts.extend(blocks_to_text(definition) for definition in item.definitions)
    return " ".join(text for text in texts if text).strip()
