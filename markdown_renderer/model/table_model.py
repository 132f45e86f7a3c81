"""Structured table representation produced by the grid-table and pipe-table readers."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterator, List, Optional, Tuple

if TYPE_CHECKING:
    from markdown_renderer.model.elements import Block, Inline


class Alignment(Enum):
    DEFAULT = "default"
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"


@dataclass(frozen=True, slots=True)
class ColSpec:
    """Column alignment and relative width (fraction of the table width)."""

    alignment: Alignment = Alignment.DEFAULT
    width: Optional[float] = None

    def __post_init__(self) -> None:
        if self.width is not None and not 0.0 < self.width <= 1.0:
            raise ValueError(f"Column width must be a fraction in (0, 1], got {self.width}")


@dataclass(frozen=True, slots=True)
class Cell:
    """Single table cell; content is itself a block sequence."""

    blocks: Tuple["Block", ...]
    col_span: int = 1
    row_span: int = 1

    def __post_init__(self) -> None:
        if self.col_span < 1 or self.row_span < 1:
            raise ValueError("Cell spans must be positive")


@dataclass(frozen=True, slots=True)
class Row:
    """Row with a sequence of cells."""

    cells: Tuple[Cell, ...]


@dataclass(frozen=True, slots=True)
class TableModel:
    """Column specs plus head, body and foot row groups."""

    col_specs: Tuple[ColSpec, ...]
    body: Tuple[Row, ...]
    head: Optional[Tuple[Row, ...]] = None
    foot: Optional[Tuple[Row, ...]] = None
    caption: Optional[Tuple["Inline", ...]] = None

    @property
    def column_count(self) -> int:
        return len(self.col_specs)

    def all_rows(self) -> Iterator[Row]:
        """Iterate head, body and foot rows in display order."""
        yield from self.head or ()
        yield from self.body
        yield from self.foot or ()

    def validate(self) -> None:
        """Check that every row covers exactly ``column_count`` columns.

        Columns occupied by a cell spanning down from an earlier row count
        towards the rows it covers. Raises ``ValueError`` on a mismatch.
        """
        for group_name, rows in (("head", self.head or ()), ("body", self.body), ("foot", self.foot or ())):
            widths = [0] * len(rows)
            for row_index, _column, cell in place_cells(rows, self.column_count):
                for covered in range(row_index, min(row_index + cell.row_span, len(rows))):
                    widths[covered] += cell.col_span
            for index, width in enumerate(widths):
                if width != self.column_count:
                    raise ValueError(
                        f"{group_name} row {index} spans {width} columns, expected {self.column_count}"
                    )


def place_cells(rows: Tuple[Row, ...], column_count: int) -> Iterator[Tuple[int, int, Cell]]:
    """Yield ``(row_index, column_index, cell)`` for every cell of ``rows``.

    A cell starts at the first column of its row not still covered by a
    cell spanning down from a previous row.
    """
    pending: List[int] = [0] * column_count
    for row_index, row in enumerate(rows):
        column = 0
        for cell in row.cells:
            while column < column_count and pending[column] > 0:
                column += 1
            yield row_index, column, cell
            for offset in range(cell.col_span):
                if column + offset < column_count:
                    pending[column + offset] = cell.row_span
            column += cell.col_span
        pending = [max(remaining - 1, 0) for remaining in pending]
