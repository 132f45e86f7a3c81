"""Unit tests for grid-table recognition and parsing."""
import unittest

from markdown_renderer.model.elements import Attr, BulletList, Div, Paragraph, Plain, Str, Strong, Table
from markdown_renderer.model.table_model import Alignment
from markdown_renderer.parser.grid_table import GridTableScanner
from markdown_renderer.parser.markdown_reader import MarkdownReader, ReaderOptions
from markdown_renderer.parser.scan_utils import placeholder_line
from markdown_renderer.utils.errors import TableStructureError


SIMPLE_TABLE = [
    "+-----+-----+",
    "| A   | B   |",
    "+=====+=====+",
    "| 1   | 2   |",
    "+-----+-----+",
    "| 3   | 4   |",
    "+-----+-----+",
]


def cell_text(cell) -> str:
    return " ".join(block.inlines[0].text for block in cell.blocks)


class GridTableScannerTest(unittest.TestCase):
    """Region detection, head/body/foot grouping and spans."""

    def setUp(self) -> None:
        self.scanner = GridTableScanner()

    def test_header_separator_splits_head_and_body(self) -> None:
        result = self.scanner.scan(SIMPLE_TABLE)
        self.assertEqual(len(result.matches), 1)
        table = result.matches[0].table
        self.assertEqual(table.column_count, 2)
        self.assertEqual(len(table.head), 1)
        self.assertEqual(len(table.body), 2)
        self.assertIsNone(table.foot)
        self.assertEqual([cell_text(c) for c in table.head[0].cells], ["A", "B"])
        self.assertEqual([cell_text(c) for c in table.body[1].cells], ["3", "4"])

    def test_residual_keeps_line_numbers(self) -> None:
        lines = ["Intro", ""] + SIMPLE_TABLE + ["", "Outro"]
        result = self.scanner.scan(lines)
        self.assertEqual(len(result.residual), len(lines))
        self.assertEqual(result.residual[2], placeholder_line(3))
        self.assertTrue(all(line == "" for line in result.residual[3:9]))
        self.assertEqual(result.residual[-1], "Outro")
        match = result.matches[0]
        self.assertEqual((match.start_line, match.end_line), (3, 9))
        self.assertIsInstance(result.extracted[3], Table)

    def test_rescanning_residual_finds_nothing(self) -> None:
        first = self.scanner.scan(["Text", ""] + SIMPLE_TABLE)
        second = self.scanner.scan(first.residual)
        self.assertEqual(second.matches, [])
        self.assertEqual(second.errors, [])

    def test_column_count_follows_top_border(self) -> None:
        lines = [
            "+---+---+---+",
            "| a | b | c |",
            "+---+---+---+",
        ]
        table = self.scanner.scan(lines).matches[0].table
        self.assertEqual(table.column_count, lines[0].count("+") - 1)
        for row in table.all_rows():
            self.assertEqual(sum(cell.col_span for cell in row.cells), 3)

    def test_missing_interior_corner_makes_column_span(self) -> None:
        lines = [
            "+-----+-----+",
            "| wide      |",
            "+-----+-----+",
            "| 1   | 2   |",
            "+-----+-----+",
        ]
        table = self.scanner.scan(lines).matches[0].table
        self.assertEqual(table.column_count, 2)
        first, second = table.body
        self.assertEqual(len(first.cells), 1)
        self.assertEqual(first.cells[0].col_span, 2)
        self.assertEqual([cell.col_span for cell in second.cells], [1, 1])

    def test_row_span(self) -> None:
        lines = [
            "+-----+-----+",
            "| tall| x   |",
            "|     +-----+",
            "|     | y   |",
            "+-----+-----+",
        ]
        table = self.scanner.scan(lines).matches[0].table
        self.assertEqual(len(table.body), 2)
        tall = table.body[0].cells[0]
        self.assertEqual(tall.row_span, 2)
        self.assertEqual(cell_text(tall), "tall")
        self.assertEqual([cell_text(c) for c in table.body[1].cells], ["y"])

    def test_alignment_markers(self) -> None:
        lines = [
            "+:----+----:+:---:+-----+",
            "| a   | b   | c   | d   |",
            "+-----+-----+-----+-----+",
        ]
        table = self.scanner.scan(lines).matches[0].table
        self.assertEqual(
            [spec.alignment for spec in table.col_specs],
            [Alignment.LEFT, Alignment.RIGHT, Alignment.CENTER, Alignment.DEFAULT],
        )

    def test_alignment_from_header_separator(self) -> None:
        lines = [
            "+-----+-----+",
            "| a   | b   |",
            "+====:+:===:+",
            "| 1   | 2   |",
            "+-----+-----+",
        ]
        table = self.scanner.scan(lines).matches[0].table
        self.assertEqual([spec.alignment for spec in table.col_specs], [Alignment.RIGHT, Alignment.CENTER])
        self.assertEqual(len(table.head), 1)

    def test_relative_widths(self) -> None:
        lines = [
            "+---+------+",
            "| a | b    |",
            "+---+------+",
        ]
        table = self.scanner.scan(lines).matches[0].table
        widths = [spec.width for spec in table.col_specs]
        self.assertAlmostEqual(widths[0], 1 / 3)
        self.assertAlmostEqual(widths[1], 2 / 3)
        self.assertAlmostEqual(sum(widths), 1.0)

    def test_multi_line_cells_and_paragraphs(self) -> None:
        lines = [
            "+----------+",
            "| first    |",
            "| line     |",
            "|          |",
            "| second   |",
            "+----------+",
        ]
        cell = self.scanner.scan(lines).matches[0].table.body[0].cells[0]
        self.assertEqual(cell.blocks, (Plain((Str("first line"),)), Plain((Str("second"),))))

    def test_footer_after_last_separator(self) -> None:
        lines = [
            "+---+",
            "| h |",
            "+===+",
            "| b |",
            "+===+",
            "| f |",
            "+===+",
        ]
        table = self.scanner.scan(lines).matches[0].table
        self.assertEqual(len(table.head), 1)
        self.assertEqual(len(table.body), 1)
        self.assertEqual(len(table.foot), 1)
        self.assertEqual(cell_text(table.foot[0].cells[0]), "f")

    def test_indented_table(self) -> None:
        lines = ["  " + line for line in SIMPLE_TABLE]
        result = self.scanner.scan(lines)
        self.assertEqual(len(result.matches), 1)
        self.assertEqual(result.residual[0], placeholder_line(1, "  "))

    def test_table_inside_code_fence_is_ignored(self) -> None:
        lines = ["```"] + SIMPLE_TABLE + ["```"]
        result = self.scanner.scan(lines)
        self.assertEqual(result.matches, [])
        self.assertEqual(result.residual, lines)

    def test_lone_border_is_not_a_table(self) -> None:
        result = self.scanner.scan(["+---+", "", "text"])
        self.assertEqual(result.matches, [])
        self.assertEqual(result.errors, [])

    def test_adjacent_tables_of_different_widths(self) -> None:
        lines = ["+---+", "| a |", "+---+", "+-----+", "| bb  |", "+-----+"]
        result = self.scanner.scan(lines)
        self.assertEqual(result.errors, [])
        self.assertEqual([(m.start_line, m.end_line) for m in result.matches], [(1, 3), (4, 6)])
        self.assertEqual(cell_text(result.matches[1].table.body[0].cells[0]), "bb")

    def test_adjacent_tables_of_the_same_width(self) -> None:
        lines = ["+---+", "| a |", "+---+", "+---+", "| b |", "+---+"]
        result = self.scanner.scan(lines)
        self.assertEqual([(m.start_line, m.end_line) for m in result.matches], [(1, 3), (4, 6)])
        self.assertEqual([len(m.table.body) for m in result.matches], [1, 1])

    def test_equals_signs_inside_a_cell_are_content(self) -> None:
        lines = [
            "+---------+",
            "| a       |",
            "| +===+   |",
            "| b       |",
            "+---------+",
        ]
        table = self.scanner.scan(lines).matches[0].table
        self.assertIsNone(table.head)
        self.assertEqual(cell_text(table.body[0].cells[0]), "a +===+ b")


class GridTableErrorTest(unittest.TestCase):
    """Malformed regions are reported with their source line and stay text."""

    def setUp(self) -> None:
        self.scanner = GridTableScanner()

    def test_unterminated_table_reports_opening_line(self) -> None:
        lines = ["Intro", "", "+---+---+", "| a | b |"]
        result = self.scanner.scan(lines)
        self.assertEqual(result.matches, [])
        self.assertEqual(len(result.errors), 1)
        self.assertEqual(result.errors[0].line, 3)
        self.assertIn("unterminated", str(result.errors[0]))
        self.assertEqual(result.residual, lines)

    def test_ragged_row(self) -> None:
        lines = [
            "+---+---+",
            "| a | b |",
            "| c |",
            "+---+---+",
        ]
        error = self.scanner.scan(lines, first_line=10).errors[0]
        self.assertEqual(error.line, 12)
        self.assertIn("ragged", str(error))

    def test_duplicate_header_separator(self) -> None:
        lines = [
            "+---+",
            "| a |",
            "+===+",
            "| b |",
            "+===+",
            "| c |",
            "+---+",
        ]
        error = self.scanner.scan(lines).errors[0]
        self.assertEqual(error.line, 5)
        self.assertIn("duplicate", str(error))

    def test_cell_crossing_separator(self) -> None:
        lines = [
            "+-----+-----+",
            "| a   | b   |",
            "|     +=====+",
            "| c   | d   |",
            "+-----+-----+",
        ]
        error = self.scanner.scan(lines).errors[0]
        self.assertEqual(error.line, 3)
        self.assertIsInstance(error, TableStructureError)

    def test_mixed_border_fill_is_ragged(self) -> None:
        lines = [
            "+---+---+",
            "| a | b |",
            "+===+---+",
            "| 1 | 2 |",
            "+---+---+",
        ]
        error = self.scanner.scan(lines).errors[0]
        self.assertEqual(error.line, 3)
        self.assertIn("ragged", str(error))


class GridTableReaderTest(unittest.TestCase):
    """Grid tables inside the full reading pipeline."""

    SOURCE = "\n".join(
        [
            "Before",
            "",
            "+----------+-------+",
            "| **Name** | Qty   |",
            "+==========+=======+",
            "| apple    | 3     |",
            "+----------+-------+",
            "",
            "After",
        ]
    )

    def test_cells_are_parsed_as_markdown(self) -> None:
        document = MarkdownReader().read(self.SOURCE)
        self.assertIsInstance(document.blocks[0], Paragraph)
        table = document.blocks[1]
        self.assertIsInstance(table, Table)
        head_cell = table.model.head[0].cells[0]
        self.assertEqual(head_cell.blocks, (Plain((Strong((Str("Name"),)),)),))
        self.assertIsInstance(document.blocks[2], Paragraph)

    def test_nested_grid_table_in_a_cell(self) -> None:
        source = "\n".join(
            [
                "+-----------------+",
                "| +---+---+       |",
                "| | h | i |       |",
                "| +===+===+       |",
                "| | a | b |       |",
                "| +---+---+       |",
                "+-----------------+",
            ]
        )
        outer = MarkdownReader().read(source).blocks[0]
        self.assertIsInstance(outer, Table)
        self.assertIsNone(outer.model.head)
        (inner,) = outer.model.body[0].cells[0].blocks
        self.assertIsInstance(inner, Table)
        self.assertEqual(len(inner.model.head), 1)
        self.assertEqual(inner.model.body[0].cells[1].blocks, (Plain((Str("b"),)),))

    def test_list_in_a_cell(self) -> None:
        source = "+--------+\n| - one  |\n| - two  |\n+--------+\n"
        table = MarkdownReader().read(source).blocks[0]
        (items,) = table.model.body[0].cells[0].blocks
        self.assertIsInstance(items, BulletList)
        self.assertEqual(len(items.items), 2)

    def test_fenced_div_in_a_cell(self) -> None:
        source = "+--------------+\n| ::: note     |\n| inside       |\n| :::          |\n+--------------+\n"
        table = MarkdownReader().read(source).blocks[0]
        self.assertEqual(
            table.model.body[0].cells[0].blocks,
            (Div(Attr(classes=("note",)), (Paragraph((Str("inside"),)),)),),
        )

    def test_cell_lines_join_with_a_soft_break(self) -> None:
        source = "+----------+\n| first    |\n| line     |\n+----------+\n"
        table = MarkdownReader().read(source).blocks[0]
        (plain,) = table.model.body[0].cells[0].blocks
        self.assertIsInstance(plain, Plain)
        self.assertEqual(plain.inlines[0], Str("first"))
        self.assertEqual(plain.inlines[-1], Str("line"))

    def test_malformed_table_falls_back_to_text(self) -> None:
        source = "Intro\n\n+---+---+\n| a | b |\n"
        reader = MarkdownReader()
        document = reader.read(source)
        self.assertFalse(any(isinstance(block, Table) for block in document.blocks))
        self.assertEqual(len(reader.table_errors), 1)
        self.assertEqual(reader.table_errors[0].line, 3)

    def test_strict_mode_raises(self) -> None:
        source = "---\ntitle: T\n---\n\n+---+---+\n| a | b |\n"
        reader = MarkdownReader(ReaderOptions(strict_tables=True))
        with self.assertRaises(TableStructureError) as ctx:
            reader.read(source)
        self.assertEqual(ctx.exception.line, 5)
        self.assertIn("line 5", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
