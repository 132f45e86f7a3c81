"""Read Markdown source into an immutable ``Document``."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from markdown_renderer.model.document_model import Document
from markdown_renderer.model.elements import Block
from markdown_renderer.parser.block_extensions import BlockExtensionScanner
from markdown_renderer.parser.document_assembler import DocumentAssembler
from markdown_renderer.parser.front_matter import resolve_front_matter
from markdown_renderer.parser.grid_table import GridTableScanner
from markdown_renderer.parser.markdown_parser import DEFAULT_PLUGINS, MarkdownParser
from markdown_renderer.utils.errors import TableStructureError
from markdown_renderer.utils.logger import get_logger
from markdown_renderer.utils.text_normalizer import SourceNormalizer

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class ReaderOptions:
    """Switches for :class:`MarkdownReader`.

    ``strict_tables`` turns malformed grid tables into a hard error instead
    of leaving them as plain text.
    """

    strict_tables: bool = False
    plugins: Tuple[str, ...] = DEFAULT_PLUGINS
    tab_size: int = 4


class MarkdownReader:
    """Runs front matter, block extensions, grid tables, mistune and assembly."""

    def __init__(self, options: Optional[ReaderOptions] = None) -> None:
        self.options = options or ReaderOptions()
        self._normalizer = SourceNormalizer(tab_size=self.options.tab_size)
        self._parser = MarkdownParser(self.options.plugins)
        self._assembler = DocumentAssembler()
        self._tables = GridTableScanner(self._parse_cell)
        self._extensions = BlockExtensionScanner(self._parse_fragment)
        self._table_errors: List[TableStructureError] = []

    @property
    def table_errors(self) -> Tuple[TableStructureError, ...]:
        """Grid-table problems recovered from during the last :meth:`read`."""
        return tuple(self._table_errors)

    def read(self, source: str) -> Document:
        self._table_errors = []
        lines = self._normalizer.split_lines(source)
        meta, split = resolve_front_matter(lines)
        residual, extracted = self._prepare(split.body_lines, split.body_start_line)
        blocks = self._parser.parse(residual)
        document = self._assembler.assemble(blocks, extracted, meta)
        LOGGER.debug(
            "Read %d source lines into %d blocks (%d extracted, %d table errors)",
            len(lines),
            len(document.blocks),
            len(extracted),
            len(self._table_errors),
        )
        return document

    # ------------------------------------------------------------------
    def _prepare(self, lines: Sequence[str], first_line: int) -> Tuple[str, Dict[int, Block]]:
        extensions = self._extensions.scan(lines, first_line)
        tables = self._tables.scan(extensions.residual, first_line)
        if tables.errors:
            if self.options.strict_tables:
                raise tables.errors[0]
            self._table_errors.extend(tables.errors)

        extracted: Dict[int, Block] = dict(extensions.extracted)
        extracted.update(tables.extracted)
        return "\n".join(tables.residual), extracted

    def _parse_fragment(self, lines: List[str], first_line: int) -> Tuple[Block, ...]:
        """Parse nested source (fenced div bodies) without assigning identifiers."""
        residual, extracted = self._prepare(lines, first_line)
        return self._assembler.substitute(self._parser.parse(residual), extracted)

    def _parse_cell(self, text: str) -> Tuple[Block, ...]:
        return self._parse_fragment(text.split("\n"), 1)
