"""Unit tests for the DOCX renderer."""
import base64
import io
import tempfile
import unittest
import zipfile
from pathlib import Path

import docx
from docx.shared import Pt

from markdown_renderer.model.document_model import Document, Metadata
from markdown_renderer.model.elements import Paragraph, RawBlock, RawInline, Str
from markdown_renderer.parser.markdown_reader import MarkdownReader
from markdown_renderer.parser.style_resolver import resolve_stylesheet
from markdown_renderer.renderer.docx_renderer import DocxRenderer
from markdown_renderer.utils.errors import EncodingError


# 1x1 transparent PNG
PIXEL_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)

SAMPLE = """---
title: Report
subtitle: Second quarter
author: Dana
date: 2024-01-15
fontsize: 11
---

# Overview

See [usage](#usage) or [the site](https://example.com)[^1].

- first
- second

1. one
2. two

## Usage

+-------+-------+
| Both columns  |
+=======+=======+
| 1     | 2     |
+-------+-------+
| 3     | 4     |
+-------+-------+

```
code line
```

[^1]: Footnote text.
"""


def render_bytes(source: str, resource_dir=None) -> bytes:
    document = MarkdownReader().read(source)
    return DocxRenderer(resolve_stylesheet(document.meta), resource_dir=resource_dir).render(document)


def load(data: bytes):
    return docx.Document(io.BytesIO(data))


def document_xml(data: bytes) -> str:
    with zipfile.ZipFile(io.BytesIO(data)) as package:
        return package.read("word/document.xml").decode("utf-8")


class DocxRendererTest(unittest.TestCase):
    """Package validity, styles and block mapping."""

    @classmethod
    def setUpClass(cls) -> None:
        cls.data = render_bytes(SAMPLE)
        cls.doc = load(cls.data)
        cls.texts = [paragraph.text for paragraph in cls.doc.paragraphs]

    def test_output_is_a_zip_package(self) -> None:
        self.assertEqual(self.data[:2], b"PK")
        with zipfile.ZipFile(io.BytesIO(self.data)) as package:
            self.assertIn("word/document.xml", package.namelist())
            self.assertTrue(all(info.date_time == (1980, 1, 1, 0, 0, 0) for info in package.infolist()))

    def test_rendering_is_deterministic(self) -> None:
        self.assertEqual(render_bytes(SAMPLE), self.data)

    def test_title_block_and_properties(self) -> None:
        first = self.doc.paragraphs[0]
        self.assertEqual(first.text, "Report")
        self.assertEqual(first.style.name, "Title")
        self.assertEqual(self.doc.paragraphs[1].style.name, "Subtitle")
        self.assertEqual(self.doc.core_properties.title, "Report")
        self.assertEqual(self.doc.core_properties.author, "Dana")
        self.assertEqual(self.doc.core_properties.created.year, 2024)

    def test_base_font_size(self) -> None:
        self.assertEqual(self.doc.styles["Normal"].font.size, Pt(11))
        self.assertEqual(self.doc.styles["Heading 1"].font.size, Pt(18))

    def test_headings_in_order(self) -> None:
        headings = [(p.style.name, p.text) for p in self.doc.paragraphs if p.style.name.startswith("Heading")]
        self.assertEqual(headings, [("Heading 1", "Overview"), ("Heading 2", "Usage")])

    def test_links_and_bookmarks(self) -> None:
        xml = document_xml(self.data)
        self.assertIn('w:anchor="usage"', xml)
        self.assertIn('w:name="usage"', xml)
        self.assertEqual(xml.count("<w:hyperlink"), 2)
        rels = self.doc.part.rels.values()
        self.assertTrue(any(rel.is_external and rel.target_ref == "https://example.com" for rel in rels))

    def test_list_markers(self) -> None:
        self.assertIn("• first", self.texts)
        self.assertIn("2. two", self.texts)

    def test_grid_table(self) -> None:
        (table,) = self.doc.tables
        self.assertEqual(len(table.rows), 3)
        self.assertEqual(len(table.columns), 2)
        self.assertEqual(table.cell(0, 0).text, "Both columns")
        # merged cells share one element
        self.assertIs(table.cell(0, 0)._tc, table.cell(0, 1)._tc)
        self.assertEqual(table.cell(2, 1).text, "4")

    def test_code_block_and_notes(self) -> None:
        self.assertIn("code line", self.texts)
        self.assertEqual(self.texts[-1], "1. Footnote text.")
        see = next(text for text in self.texts if text.startswith("See"))
        self.assertTrue(see.endswith("1."))

    def test_renderer_is_total(self) -> None:
        self.assertEqual(DocxRenderer.missing_handlers(), [])


class DocxRawAndImageTest(unittest.TestCase):
    def render_blocks(self, *blocks) -> bytes:
        document = Document(meta=Metadata(), blocks=tuple(blocks))
        return DocxRenderer(resolve_stylesheet(document.meta)).render(document)

    def test_raw_openxml_is_inserted_and_html_dropped(self) -> None:
        data = self.render_blocks(
            RawBlock("openxml", "<w:p><w:r><w:t>raw block</w:t></w:r></w:p>"),
            RawBlock("html", "<p>html only</p>"),
            Paragraph((Str("inline"), RawInline("openxml", "<w:r><w:t>-xml</w:t></w:r>"))),
        )
        texts = [paragraph.text for paragraph in load(data).paragraphs]
        self.assertIn("raw block", texts)
        self.assertIn("inline-xml", texts)
        self.assertNotIn("html only", document_xml(data))

    def test_html_page_break_div_breaks_the_page(self) -> None:
        data = render_bytes('one\n\n<div style="page-break-after: always;"></div>\n\ntwo')
        self.assertIn('w:type="page"', document_xml(data))
        texts = [paragraph.text for paragraph in load(data).paragraphs]
        self.assertEqual([texts[0], texts[-1]], ["one", "two"])

    def test_malformed_openxml(self) -> None:
        with self.assertRaises(EncodingError):
            self.render_blocks(RawBlock("openxml", "<w:p>"))

    def test_missing_image_falls_back_to_alt_text(self) -> None:
        data = render_bytes("![company logo](missing.png)")
        self.assertIn("[company logo]", [paragraph.text for paragraph in load(data).paragraphs])

    def test_image_is_embedded(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            Path(tmp, "pixel.png").write_bytes(PIXEL_PNG)
            data = render_bytes("![pixel](pixel.png)", resource_dir=Path(tmp))
        self.assertEqual(len(load(data).inline_shapes), 1)


if __name__ == "__main__":
    unittest.main()
