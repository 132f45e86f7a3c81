"""Map mistune's AST tokens onto the document model vocabulary."""
from __future__ import annotations

import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import mistune

from markdown_renderer.model.elements import (
    Block,
    BlockQuote,
    BulletList,
    Code,
    CodeBlock,
    DefinitionItem,
    DefinitionList,
    Emph,
    Header,
    HorizontalRule,
    Image,
    Inline,
    LineBreak,
    Link,
    ListNumberDelim,
    Math,
    MathType,
    Note,
    OrderedList,
    PageBreak,
    Paragraph,
    Plain,
    RawBlock,
    RawInline,
    SoftBreak,
    Space,
    Str,
    Strikeout,
    Strong,
    Subscript,
    Superscript,
    Table,
)
from markdown_renderer.model.table_model import Alignment, Cell, ColSpec, Row, TableModel
from markdown_renderer.utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_PLUGINS: Tuple[str, ...] = ("strikethrough", "table", "footnotes", "def_list", "superscript", "math")
WHITESPACE_SPLIT = re.compile(r"(\s+)")
ALIGNMENTS = {"left": Alignment.LEFT, "right": Alignment.RIGHT, "center": Alignment.CENTER}
PAGE_BREAK_HTML = re.compile(r'^<div\s+style="page-break-after:\s*always;?"\s*>\s*</div>$', re.IGNORECASE)
INLINE_TOKEN_TYPES = frozenset(
    {
        "text", "emphasis", "strong", "codespan", "linebreak", "softbreak", "link", "image",
        "inline_html", "strikethrough", "superscript", "subscript", "inline_math", "footnote_ref",
    }
)

Token = Dict[str, Any]


class MarkdownParser:
    """Parse Markdown text into model blocks through mistune's AST renderer."""

    def __init__(self, plugins: Sequence[str] = DEFAULT_PLUGINS) -> None:
        self._plugins = tuple(plugins)
        self._markdown = mistune.create_markdown(renderer="ast", plugins=list(self._plugins))

    @property
    def plugins(self) -> Tuple[str, ...]:
        return self._plugins

    def parse(self, text: str) -> Tuple[Block, ...]:
        tokens: List[Token] = self._markdown(text)
        body = [token for token in tokens if token.get("type") != "footnotes"]
        converter = _TokenConverter()
        for token in tokens:
            if token.get("type") == "footnotes":
                converter.register_footnotes(token.get("children", []))
        return converter.blocks(body)


class _TokenConverter:
    """Converts one parse result; holds the footnote definitions for that call."""

    def __init__(self) -> None:
        self._notes_by_index: Dict[int, Tuple[Block, ...]] = {}
        self._notes_by_key: Dict[str, Tuple[Block, ...]] = {}
        self._block_handlers: Dict[str, Callable[[Token], Optional[Block]]] = {
            "paragraph": self._paragraph,
            "block_text": self._block_text,
            "heading": self._heading,
            "block_code": self._block_code,
            "block_quote": self._block_quote,
            "list": self._list,
            "thematic_break": self._thematic_break,
            "block_html": self._block_html,
            "table": self._table,
            "def_list": self._def_list,
            "block_math": self._block_math,
        }
        self._inline_handlers: Dict[str, Callable[[Token], Iterable[Inline]]] = {
            "text": self._text,
            "emphasis": lambda token: (Emph(self.inlines(token.get("children", []))),),
            "strong": lambda token: (Strong(self.inlines(token.get("children", []))),),
            "strikethrough": lambda token: (Strikeout(self.inlines(token.get("children", []))),),
            "superscript": lambda token: (Superscript(self.inlines(token.get("children", []))),),
            "subscript": lambda token: (Subscript(self.inlines(token.get("children", []))),),
            "codespan": lambda token: (Code(token.get("raw", "")),),
            "linebreak": lambda token: (LineBreak(),),
            "softbreak": lambda token: (SoftBreak(),),
            "link": self._link,
            "image": self._image,
            "inline_html": lambda token: (RawInline("html", token.get("raw", "")),),
            "inline_math": lambda token: (Math(MathType.INLINE, token.get("raw", "").strip()),),
            "footnote_ref": self._footnote_ref,
        }

    def register_footnotes(self, items: Sequence[Token]) -> None:
        for item in items:
            attrs = item.get("attrs", {})
            blocks = self.blocks(item.get("children", []))
            if "index" in attrs:
                self._notes_by_index[int(attrs["index"])] = blocks
            if "key" in attrs:
                self._notes_by_key[str(attrs["key"])] = blocks

    # ------------------------------------------------------------------
    # Blocks
    def blocks(self, tokens: Sequence[Token]) -> Tuple[Block, ...]:
        if tokens and all(token.get("type") in INLINE_TOKEN_TYPES for token in tokens):
            return (Plain(self.inlines(tokens)),)
        converted: List[Block] = []
        for token in tokens:
            token_type = token.get("type", "")
            if token_type == "blank_line":
                continue
            handler = self._block_handlers.get(token_type)
            if handler is None:
                LOGGER.debug("Skipping unsupported block token %r", token_type)
                continue
            block = handler(token)
            if block is not None:
                converted.append(block)
        return tuple(converted)

    def _paragraph(self, token: Token) -> Block:
        return Paragraph(self.inlines(token.get("children", [])))

    def _block_text(self, token: Token) -> Block:
        return Plain(self.inlines(token.get("children", [])))

    def _heading(self, token: Token) -> Block:
        level = int(token.get("attrs", {}).get("level", 1))
        return Header(level=min(max(level, 1), 6), identifier="", inlines=self.inlines(token.get("children", [])))

    def _block_code(self, token: Token) -> Block:
        info = (token.get("attrs", {}).get("info") or "").strip()
        language = info.split()[0] if info else ""
        return CodeBlock(language=language, text=token.get("raw", "").rstrip("\n"))

    def _block_quote(self, token: Token) -> Block:
        return BlockQuote(self.blocks(token.get("children", [])))

    def _list(self, token: Token) -> Block:
        attrs = token.get("attrs", {})
        items = tuple(
            self.blocks(item.get("children", []))
            for item in token.get("children", [])
            if item.get("type") in ("list_item", "task_list_item")
        )
        if not attrs.get("ordered"):
            return BulletList(items)
        delimiter = ListNumberDelim.ONE_PAREN if str(token.get("bullet", ".")).endswith(")") else ListNumberDelim.PERIOD
        return OrderedList(items=items, start=int(attrs.get("start", 1)), delimiter=delimiter)

    def _thematic_break(self, token: Token) -> Block:
        return HorizontalRule()

    def _block_html(self, token: Token) -> Block:
        raw = token.get("raw", "").strip("\n")
        if PAGE_BREAK_HTML.match(raw.strip()):
            return PageBreak()
        return RawBlock("html", raw)

    def _block_math(self, token: Token) -> Block:
        return Paragraph((Math(MathType.DISPLAY, token.get("raw", "").strip()),))

    def _table(self, token: Token) -> Optional[Block]:
        head_cells: List[Token] = []
        body_rows: List[List[Token]] = []
        for part in token.get("children", []):
            if part.get("type") == "table_head":
                head_cells = [cell for cell in part.get("children", []) if cell.get("type") == "table_cell"]
            elif part.get("type") == "table_body":
                for row in part.get("children", []):
                    body_rows.append([cell for cell in row.get("children", []) if cell.get("type") == "table_cell"])

        if not head_cells:
            LOGGER.debug("Skipping pipe table without a header row")
            return None

        col_specs = tuple(
            ColSpec(alignment=ALIGNMENTS.get(cell.get("attrs", {}).get("align") or "", Alignment.DEFAULT))
            for cell in head_cells
        )
        head = (self._table_row(head_cells, len(col_specs)),)
        body = tuple(self._table_row(cells, len(col_specs)) for cells in body_rows)
        return Table(TableModel(col_specs=col_specs, body=body, head=head))

    def _table_row(self, cells: Sequence[Token], column_count: int) -> Row:
        converted = [Cell(blocks=self._cell_blocks(cell)) for cell in cells[:column_count]]
        while len(converted) < column_count:
            converted.append(Cell(blocks=()))
        return Row(tuple(converted))

    def _cell_blocks(self, cell: Token) -> Tuple[Block, ...]:
        inlines = self.inlines(cell.get("children", []))
        return (Plain(inlines),) if inlines else ()

    def _def_list(self, token: Token) -> Block:
        items: List[DefinitionItem] = []
        term: Optional[Tuple[Inline, ...]] = None
        definitions: List[Tuple[Block, ...]] = []
        for child in token.get("children", []):
            child_type = child.get("type")
            if child_type == "def_list_head":
                if term is not None:
                    items.append(DefinitionItem(term=term, definitions=tuple(definitions)))
                term = self.inlines(child.get("children", []))
                definitions = []
            elif child_type == "def_list_item":
                definitions.append(self.blocks(child.get("children", [])))
        if term is not None:
            items.append(DefinitionItem(term=term, definitions=tuple(definitions)))
        return DefinitionList(tuple(items))

    # ------------------------------------------------------------------
    # Inlines
    def inlines(self, tokens: Sequence[Token]) -> Tuple[Inline, ...]:
        converted: List[Inline] = []
        for token in tokens:
            token_type = token.get("type", "")
            handler = self._inline_handlers.get(token_type)
            if handler is None:
                LOGGER.debug("Skipping unsupported inline token %r", token_type)
                continue
            converted.extend(handler(token))
        return tuple(converted)

    @staticmethod
    def _text(token: Token) -> Iterable[Inline]:
        for piece in WHITESPACE_SPLIT.split(token.get("raw", "")):
            if not piece:
                continue
            yield Space() if piece.isspace() else Str(piece)

    def _link(self, token: Token) -> Iterable[Inline]:
        attrs = token.get("attrs", {})
        yield Link(
            url=attrs.get("url", ""),
            title=attrs.get("title") or "",
            inlines=self.inlines(token.get("children", [])),
        )

    def _image(self, token: Token) -> Iterable[Inline]:
        attrs = token.get("attrs", {})
        yield Image(
            url=attrs.get("url", ""),
            title=attrs.get("title") or "",
            alt=self.inlines(token.get("children", [])),
        )

    def _footnote_ref(self, token: Token) -> Iterable[Inline]:
        attrs = token.get("attrs", {})
        blocks = None
        if "index" in attrs:
            blocks = self._notes_by_index.get(int(attrs["index"]))
        if blocks is None:
            blocks = self._notes_by_key.get(str(token.get("raw", "")))
        if blocks is None:
            LOGGER.debug("Footnote reference %r has no definition", token.get("raw"))
            yield Str(f"[^{token.get('raw', '')}]")
            return
        yield Note(blocks)
