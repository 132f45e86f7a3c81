"""Unit tests for the mistune token adapter."""
import unittest

from markdown_renderer.model.elements import (
    BlockQuote,
    BulletList,
    Code,
    CodeBlock,
    DefinitionList,
    Emph,
    Header,
    HorizontalRule,
    Image,
    Link,
    Math,
    MathType,
    Note,
    OrderedList,
    PageBreak,
    Paragraph,
    Plain,
    RawBlock,
    Space,
    Str,
    Strikeout,
    Strong,
    Superscript,
    Table,
    blocks_to_text,
    stringify,
)
from markdown_renderer.model.table_model import Alignment
from markdown_renderer.parser.markdown_parser import MarkdownParser
from markdown_renderer.parser.scan_utils import placeholder_line


class MarkdownParserTest(unittest.TestCase):
    """Each Markdown construct maps onto its model node."""

    def setUp(self) -> None:
        self.parser = MarkdownParser()

    def test_heading_and_paragraph(self) -> None:
        blocks = self.parser.parse("# Title\n\nSome *emph* and **strong** text.")
        self.assertEqual(blocks[0], Header(level=1, identifier="", inlines=(Str("Title"),)))
        self.assertEqual(
            blocks[1],
            Paragraph(
                (
                    Str("Some"), Space(), Emph((Str("emph"),)), Space(), Str("and"), Space(),
                    Strong((Str("strong"),)), Space(), Str("text."),
                )
            ),
        )

    def test_code_block_language(self) -> None:
        blocks = self.parser.parse("```python\nprint(1)\n```")
        self.assertEqual(blocks, (CodeBlock(language="python", text="print(1)"),))

    def test_inline_code(self) -> None:
        (paragraph,) = self.parser.parse("Use `make`.")
        self.assertIn(Code("make"), paragraph.inlines)

    def test_lists(self) -> None:
        bullet, ordered = self.parser.parse("- a\n- b\n\ntext\n\n3. x\n4. y")[0::2]
        self.assertIsInstance(bullet, BulletList)
        self.assertEqual(bullet.items[0], (Plain((Str("a"),)),))
        self.assertIsInstance(ordered, OrderedList)
        self.assertEqual(ordered.start, 3)
        self.assertEqual(len(ordered.items), 2)

    def test_block_quote_and_rule(self) -> None:
        quote, rule = self.parser.parse("> quoted\n\n---")
        self.assertIsInstance(quote, BlockQuote)
        self.assertEqual(blocks_to_text(quote.blocks), "quoted")
        self.assertIsInstance(rule, HorizontalRule)

    def test_links_and_images(self) -> None:
        (paragraph,) = self.parser.parse('[site](https://example.com "Home") ![logo](img/logo.png)')
        link = paragraph.inlines[0]
        self.assertEqual(link, Link(url="https://example.com", title="Home", inlines=(Str("site"),)))
        image = paragraph.inlines[-1]
        self.assertIsInstance(image, Image)
        self.assertEqual(image.url, "img/logo.png")
        self.assertEqual(stringify(image.alt), "logo")

    def test_pipe_table(self) -> None:
        (table,) = self.parser.parse("| a | b |\n|:--|--:|\n| 1 | 2 |")
        self.assertIsInstance(table, Table)
        model = table.model
        self.assertEqual([spec.alignment for spec in model.col_specs], [Alignment.LEFT, Alignment.RIGHT])
        self.assertTrue(all(spec.width is None for spec in model.col_specs))
        self.assertEqual(len(model.head), 1)
        self.assertEqual(len(model.body), 1)
        self.assertEqual(model.body[0].cells[1].blocks, (Plain((Str("2"),)),))

    def test_footnote_becomes_note(self) -> None:
        (paragraph,) = self.parser.parse("Text[^1].\n\n[^1]: Note body.")
        notes = [inline for inline in paragraph.inlines if isinstance(inline, Note)]
        self.assertEqual(len(notes), 1)
        self.assertEqual(blocks_to_text(notes[0].blocks), "Note body.")

    def test_extension_inlines(self) -> None:
        (paragraph,) = self.parser.parse("~~gone~~ x^2^ $e=mc^2$")
        self.assertIsInstance(paragraph.inlines[0], Strikeout)
        self.assertTrue(any(isinstance(inline, Superscript) for inline in paragraph.inlines))
        self.assertIn(Math(MathType.INLINE, "e=mc^2"), paragraph.inlines)

    def test_display_math(self) -> None:
        (paragraph,) = self.parser.parse("$$\na + b\n$$")
        self.assertEqual(paragraph, Paragraph((Math(MathType.DISPLAY, "a + b"),)))

    def test_definition_list(self) -> None:
        (definitions,) = self.parser.parse("Term\n: Definition")
        self.assertIsInstance(definitions, DefinitionList)
        self.assertEqual(stringify(definitions.items[0].term), "Term")
        self.assertEqual(blocks_to_text(definitions.items[0].definitions[0]), "Definition")

    def test_placeholder_is_raw_html(self) -> None:
        blocks = self.parser.parse(f"Before\n\n{placeholder_line(3)}\n\nAfter")
        self.assertEqual(blocks[1], RawBlock("html", placeholder_line(3)))

    def test_page_break_div(self) -> None:
        blocks = self.parser.parse('one\n\n<div style="page-break-after: always;"></div>\n\ntwo')
        self.assertEqual(blocks[1], PageBreak())
        (other,) = self.parser.parse('<div style="color: red"></div>')
        self.assertEqual(other, RawBlock("html", '<div style="color: red"></div>'))

    def test_parse_calls_are_independent(self) -> None:
        self.parser.parse("A[^n].\n\n[^n]: first")
        (paragraph,) = self.parser.parse("B[^n].\n\n[^n]: second")
        note = next(inline for inline in paragraph.inlines if isinstance(inline, Note))
        self.assertEqual(blocks_to_text(note.blocks), "second")


if __name__ == "__main__":
    unittest.main()
