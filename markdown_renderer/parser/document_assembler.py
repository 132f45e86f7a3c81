"""Merge extracted blocks back into the parsed residual and finish the document."""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Mapping, Set, Tuple

from markdown_renderer.model.document_model import Document, Metadata
from markdown_renderer.model.elements import (
    Block,
    BlockQuote,
    BulletList,
    DefinitionItem,
    DefinitionList,
    Div,
    Header,
    OrderedList,
    RawBlock,
    Table,
    stringify,
)
from markdown_renderer.model.table_model import Row, TableModel
from markdown_renderer.parser.scan_utils import placeholder_key
from markdown_renderer.utils.errors import AssemblyError
from markdown_renderer.utils.logger import get_logger
from markdown_renderer.utils.text_normalizer import slugify

LOGGER = get_logger(__name__)


class DocumentAssembler:
    """Substitutes placeholders, assigns heading identifiers and builds ``Document``."""

    def assemble(self, blocks: Tuple[Block, ...], extracted: Mapping[int, Block], meta: Metadata) -> Document:
        merged = self.substitute(blocks, extracted)
        LOGGER.debug("Substituted %d extracted blocks", len(extracted))
        return Document(meta=meta, blocks=self.assign_identifiers(merged))

    # ------------------------------------------------------------------
    def substitute(self, blocks: Tuple[Block, ...], extracted: Mapping[int, Block]) -> Tuple[Block, ...]:
        """Replace every placeholder ``RawBlock`` with its extracted block.

        A placeholder-shaped comment without an extracted block stays a
        ``RawBlock``. Raises ``AssemblyError`` when an extracted block is
        referenced twice or never referenced.
        """
        used: Set[int] = set()
        merged = self._substitute_blocks(blocks, extracted, used)
        unused = sorted(set(extracted) - used)
        if unused:
            raise AssemblyError("extracted block has no placeholder in the parsed text", line=unused[0])
        return merged

    def _substitute_blocks(self, blocks: Tuple[Block, ...], extracted: Mapping[int, Block], used: Set[int]) -> Tuple[Block, ...]:
        result: List[Block] = []
        for block in blocks:
            if isinstance(block, RawBlock) and block.format == "html":
                key = placeholder_key(block.text)
                if key is not None:
                    if key not in extracted:
                        LOGGER.debug("Comment %r has no extracted block; keeping it as raw HTML", block.text)
                        result.append(block)
                        continue
                    if key in used:
                        raise AssemblyError("placeholder referenced twice", line=key, context=block.text)
                    used.add(key)
                    result.append(extracted[key])
                    continue
            result.append(self._map_children(block, lambda children: self._substitute_blocks(children, extracted, used)))
        return tuple(result)

    # ------------------------------------------------------------------
    def assign_identifiers(self, blocks: Tuple[Block, ...]) -> Tuple[Block, ...]:
        """Give every heading a unique slug, in document order."""
        seen: Dict[str, int] = {}
        return self._identify_blocks(blocks, seen)

    def _identify_blocks(self, blocks: Tuple[Block, ...], seen: Dict[str, int]) -> Tuple[Block, ...]:
        result: List[Block] = []
        for block in blocks:
            if isinstance(block, Header):
                base = block.identifier or slugify(stringify(block.inlines))
                identifier = base
                if base in seen:
                    seen[base] += 1
                    identifier = f"{base}-{seen[base]}"
                    while identifier in seen:
                        seen[base] += 1
                        identifier = f"{base}-{seen[base]}"
                seen.setdefault(base, 0)
                seen.setdefault(identifier, 0)
                result.append(replace(block, identifier=identifier))
                continue
            result.append(self._map_children(block, lambda children: self._identify_blocks(children, seen)))
        return tuple(result)

    # ------------------------------------------------------------------
    def _map_children(self, block: Block, transform) -> Block:
        """Rebuild ``block`` with ``transform`` applied to each nested block sequence."""
        if isinstance(block, (BlockQuote, Div)):
            return replace(block, blocks=transform(block.blocks))
        if isinstance(block, (BulletList, OrderedList)):
            return replace(block, items=tuple(transform(item) for item in block.items))
        if isinstance(block, DefinitionList):
            return replace(
                block,
                items=tuple(
                    DefinitionItem(term=item.term, definitions=tuple(transform(d) for d in item.definitions))
                    for item in block.items
                ),
            )
        if isinstance(block, Table):
            return Table(self._map_table(block.model, transform))
        return block

    @staticmethod
    def _map_table(model: TableModel, transform) -> TableModel:
        def rows(group: Tuple[Row, ...]) -> Tuple[Row, ...]:
            return tuple(
                Row(tuple(replace(cell, blocks=transform(cell.blocks)) for cell in row.cells))
                for row in group
            )

        return replace(
            model,
            head=rows(model.head) if model.head is not None else None,
            body=rows(model.body),
            foot=rows(model.foot) if model.foot is not None else None,
        )
