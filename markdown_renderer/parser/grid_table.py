"""Recognize ASCII grid tables in raw source lines and turn them into ``TableModel``s.

Grid tables are found before generic Markdown parsing. Each recognized
region is replaced by a single placeholder line (followed by blank lines so
line numbers stay put); the document assembler later swaps the placeholder
for the extracted ``Table`` block.

Cells are discovered with a corner scan over the character grid: starting
from a ``+`` corner, walk right along the top edge, down the right edge,
left along the bottom edge and back up the left edge. Column and row
boundaries are the sets of offsets and lines where such walks found
corners, which lets cells span several columns or rows.
"""
from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from markdown_renderer.model.elements import Block, Paragraph, Plain, Str, Table
from markdown_renderer.model.table_model import Alignment, Cell, ColSpec, Row, TableModel
from markdown_renderer.parser.scan_utils import FenceTracker, placeholder_line
from markdown_renderer.utils.errors import TableStructureError
from markdown_renderer.utils.logger import get_logger
from markdown_renderer.utils.text_normalizer import collapse_whitespace

LOGGER = get_logger(__name__)

BORDER_PATTERN = re.compile(r"^( {0,3})\+(?::?(?:-+|=+):?\+)+$")
SEGMENT_PATTERN = re.compile(r"(?<=\+)(:?)(-+|=+)(:?)(?=\+)")
PARAGRAPH_BREAK = re.compile(r"\n\s*\n")

CellParser = Callable[[str], Tuple[Block, ...]]


@dataclass(frozen=True, slots=True)
class GridTableMatch:
    """A converted region: 1-based inclusive source line range and its table."""

    start_line: int
    end_line: int
    table: TableModel


@dataclass(slots=True)
class GridTableScan:
    matches: List[GridTableMatch] = field(default_factory=list)
    residual: List[str] = field(default_factory=list)
    errors: List[TableStructureError] = field(default_factory=list)

    @property
    def extracted(self) -> Dict[int, Block]:
        return {match.start_line: Table(match.table) for match in self.matches}


@dataclass(slots=True)
class _ScannedCell:
    top: int
    left: int
    bottom: int
    right: int


def plain_cell_parser(text: str) -> Tuple[Block, ...]:
    """Fallback cell parser: one ``Plain`` block per paragraph, no inline markup."""
    return tuple(Plain((Str(collapse_whitespace(part)),)) for part in PARAGRAPH_BREAK.split(text) if part.strip())


class GridTableScanner:
    """Locate grid-table regions in a list of source lines."""

    def __init__(self, cell_parser: Optional[CellParser] = None) -> None:
        self._cell_parser = cell_parser or plain_cell_parser

    def scan(self, lines: Sequence[str], first_line: int = 1) -> GridTableScan:
        """Scan ``lines`` whose first element is source line ``first_line``."""
        result = GridTableScan(residual=list(lines))
        fences = FenceTracker()
        index = 0
        while index < len(lines):
            line = lines[index]
            if fences.feed(line):
                index += 1
                continue

            opening = BORDER_PATTERN.match(line.rstrip())
            if opening is None:
                index += 1
                continue

            indent = opening.group(1)
            width = len(opening.group(0))
            end = index + 1
            while end < len(lines) and self._continues_region(lines[end], indent):
                if self._starts_next_table(lines, end, width):
                    break
                end += 1

            if end - index == 1:
                LOGGER.debug("Lone border line at source line %d is not a table", first_line + index)
                index = end
                continue

            region = [candidate.rstrip()[len(indent):] for candidate in lines[index:end]]
            start_line = first_line + index
            try:
                table = self._parse_region(region, start_line)
            except TableStructureError as exc:
                LOGGER.warning("Grid table left as text: %s", exc)
                result.errors.append(exc)
            else:
                result.matches.append(GridTableMatch(start_line, first_line + end - 1, table))
                result.residual[index] = placeholder_line(start_line, indent)
                for blank in range(index + 1, end):
                    result.residual[blank] = ""
            index = end

        return result

    # ------------------------------------------------------------------
    @staticmethod
    def _continues_region(line: str, indent: str) -> bool:
        if not line.startswith(indent):
            return False
        rest = line[len(indent):]
        return rest[:1] in ("+", "|")

    @staticmethod
    def _starts_next_table(lines: Sequence[str], index: int, width: int) -> bool:
        """A full border of another width, or a second border in a row, opens a new table."""
        text = lines[index].rstrip()
        if BORDER_PATTERN.match(text) is None:
            return False
        return len(text) != width or BORDER_PATTERN.match(lines[index - 1].rstrip()) is not None

    def _parse_region(self, region: List[str], start_line: int) -> TableModel:
        if BORDER_PATTERN.match(region[-1]) is None:
            raise TableStructureError("unterminated grid table: missing closing border", line=start_line, context=region[0])

        width = len(region[0])
        for offset, text in enumerate(region):
            if len(text) != width or text[-1] not in "+|":
                raise TableStructureError(
                    "ragged grid table: line does not end at the table's right edge",
                    line=start_line + offset,
                    context=text,
                )

        top_alignments = self._segment_alignments(region[0])
        grid = [self._normalize_border(text) for text in region]

        cells = self._scan_cells(grid, start_line)
        row_bounds = sorted({cell.top for cell in cells} | {cell.bottom for cell in cells})
        col_bounds = sorted({cell.left for cell in cells} | {cell.right for cell in cells})
        row_index = {line: position for position, line in enumerate(row_bounds)}
        col_index = {offset: position for position, offset in enumerate(col_bounds)}
        separators = self._find_separators(region, cells, start_line)

        head_end, foot_start = self._group_boundaries(separators, region, cells, row_index, start_line)

        separator_alignments: Dict[Tuple[int, int], Alignment] = {}
        if head_end is not None:
            separator_alignments = self._segment_alignments(region[row_bounds[head_end]])
        col_specs = self._column_specs(col_bounds, top_alignments, separator_alignments)

        rows: List[List[Cell]] = [[] for _ in range(len(row_bounds) - 1)]
        for scanned in sorted(cells, key=lambda c: (c.top, c.left)):
            text = self._cell_text(region, scanned)
            rows[row_index[scanned.top]].append(
                Cell(
                    blocks=self._parse_cell(text),
                    col_span=col_index[scanned.right] - col_index[scanned.left],
                    row_span=row_index[scanned.bottom] - row_index[scanned.top],
                )
            )

        built = tuple(Row(tuple(row)) for row in rows)
        head_rows = built[:head_end] if head_end else None
        body_start = head_end or 0
        body_end = foot_start if foot_start is not None else len(built)
        foot_rows = built[foot_start:] if foot_start is not None else None
        table = TableModel(col_specs=col_specs, body=built[body_start:body_end], head=head_rows, foot=foot_rows)
        try:
            table.validate()
        except ValueError as exc:
            raise TableStructureError(f"ragged grid table: {exc}", line=start_line, context=region[0]) from exc
        return table

    # ------------------------------------------------------------------
    def _find_separators(self, region: List[str], cells: List[_ScannedCell], start_line: int) -> List[int]:
        """Return the offsets of lines holding ``=`` segments on cell edges.

        Partial lines (``|   +===+``) count too, so a cell spanning across
        the separator is caught by the crossing check. Segments inside a
        cell's interior, such as the borders of a nested table, are content.
        """
        edges: Dict[int, List[Tuple[int, int]]] = {}
        for cell in cells:
            edges.setdefault(cell.top, []).append((cell.left, cell.right))
            edges.setdefault(cell.bottom, []).append((cell.left, cell.right))

        separators = []
        for offset, text in enumerate(region):
            if "=" not in text or offset not in edges:
                continue
            fills = {
                match.group(2)[0]
                for match in SEGMENT_PATTERN.finditer(text)
                if any(left <= match.start() - 1 and match.end() <= right for left, right in edges[offset])
            }
            if "=" not in fills:
                continue
            if BORDER_PATTERN.match(text) is not None and len(fills) > 1:
                raise TableStructureError(
                    "ragged grid table: border mixes '=' and '-' segments",
                    line=start_line + offset,
                    context=text,
                )
            if offset == 0:
                continue
            separators.append(offset)
        return separators

    def _group_boundaries(
        self,
        separators: List[int],
        region: List[str],
        cells: List[_ScannedCell],
        row_index: Dict[int, int],
        start_line: int,
    ) -> Tuple[Optional[int], Optional[int]]:
        """Translate separator lines into (head end, foot start) row indexes."""
        last = len(region) - 1
        interior = [offset for offset in separators if offset != last]
        foot_line = None
        if last in separators and interior:
            foot_line = interior.pop()

        if len(interior) > 1:
            raise TableStructureError(
                "duplicate header separator in grid table",
                line=start_line + interior[1],
                context=region[interior[1]],
            )

        head_line = interior[0] if interior else None
        for boundary in (head_line, foot_line):
            if boundary is None:
                continue
            crossing = any(cell.top < boundary < cell.bottom for cell in cells)
            if crossing or boundary not in row_index:
                raise TableStructureError(
                    "grid table cell crosses the header separator",
                    line=start_line + boundary,
                    context=region[boundary],
                )

        head_end = row_index[head_line] if head_line is not None else None
        foot_start = row_index[foot_line] if foot_line is not None else None
        return head_end, foot_start

    @staticmethod
    def _normalize_border(text: str) -> str:
        return SEGMENT_PATTERN.sub(lambda match: "-" * len(match.group(0)), text)

    @staticmethod
    def _segment_alignments(text: str) -> Dict[Tuple[int, int], Alignment]:
        alignments: Dict[Tuple[int, int], Alignment] = {}
        for match in SEGMENT_PATTERN.finditer(text):
            left_mark, _fill, right_mark = match.groups()
            if left_mark and right_mark:
                alignment = Alignment.CENTER
            elif left_mark:
                alignment = Alignment.LEFT
            elif right_mark:
                alignment = Alignment.RIGHT
            else:
                alignment = Alignment.DEFAULT
            alignments[(match.start() - 1, match.end())] = alignment
        return alignments

    @staticmethod
    def _column_specs(
        col_bounds: List[int],
        top_alignments: Dict[Tuple[int, int], Alignment],
        separator_alignments: Dict[Tuple[int, int], Alignment],
    ) -> Tuple[ColSpec, ...]:
        spans = list(zip(col_bounds, col_bounds[1:]))
        total = sum(right - left - 1 for left, right in spans)
        specs = []
        for span in spans:
            alignment = top_alignments.get(span, Alignment.DEFAULT)
            if alignment is Alignment.DEFAULT:
                alignment = separator_alignments.get(span, Alignment.DEFAULT)
            specs.append(ColSpec(alignment=alignment, width=(span[1] - span[0] - 1) / total))
        return tuple(specs)

    # ------------------------------------------------------------------
    # Corner scan
    def _scan_cells(self, grid: List[str], start_line: int) -> List[_ScannedCell]:
        bottom = len(grid) - 1
        right = len(grid[0]) - 1
        done = [-1] * len(grid[0])
        cells: List[_ScannedCell] = []
        corners = [(0, 0)]
        while corners:
            top, left = corners.pop(0)
            if top == bottom or left == right or top <= done[left]:
                continue
            found = self._scan_right(grid, top, left)
            if found is None:
                continue
            cell_bottom, cell_right = found
            for column in range(left, cell_right):
                done[column] = cell_bottom - 1
            cells.append(_ScannedCell(top, left, cell_bottom, cell_right))
            corners.extend([(top, cell_right), (cell_bottom, left)])
            corners.sort()

        uncovered = [done[column] for column in range(right) if done[column] != bottom - 1]
        if uncovered:
            offset = min(min(uncovered) + 1, bottom)
            raise TableStructureError(
                "ragged grid table: cell boundaries do not line up",
                line=start_line + offset,
                context=grid[offset],
            )
        return cells

    def _scan_right(self, grid: List[str], top: int, left: int) -> Optional[Tuple[int, int]]:
        line = grid[top]
        for column in range(left + 1, len(line)):
            char = line[column]
            if char == "+":
                bottom = self._scan_down(grid, top, left, column)
                if bottom is not None:
                    return bottom, column
            elif char != "-":
                return None
        return None

    def _scan_down(self, grid: List[str], top: int, left: int, right: int) -> Optional[int]:
        for row in range(top + 1, len(grid)):
            char = grid[row][right]
            if char == "+":
                if self._scan_left(grid, top, left, row, right):
                    return row
            elif char != "|":
                return None
        return None

    def _scan_left(self, grid: List[str], top: int, left: int, bottom: int, right: int) -> bool:
        line = grid[bottom]
        for column in range(right - 1, left, -1):
            if line[column] not in "+-":
                return False
        if line[left] != "+":
            return False
        return self._scan_up(grid, top, left, bottom)

    @staticmethod
    def _scan_up(grid: List[str], top: int, left: int, bottom: int) -> bool:
        for row in range(bottom - 1, top, -1):
            if grid[row][left] not in "+|":
                return False
        return True

    # ------------------------------------------------------------------
    @staticmethod
    def _cell_text(region: List[str], cell: _ScannedCell) -> str:
        """Cell interior as Markdown lines, dedented by the cell's common padding."""
        lines = [region[row][cell.left + 1:cell.right].rstrip() for row in range(cell.top + 1, cell.bottom)]
        return textwrap.dedent("\n".join(lines)).strip("\n")

    def _parse_cell(self, text: str) -> Tuple[Block, ...]:
        if not text:
            return ()
        blocks = tuple(self._cell_parser(text))
        if len(blocks) == 1 and isinstance(blocks[0], Paragraph):
            return (Plain(blocks[0].inlines),)
        return blocks
