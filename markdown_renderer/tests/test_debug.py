"""Tests for the debug JSON dump."""
import json
import tempfile
import unittest
from pathlib import Path

from markdown_renderer.parser.markdown_reader import MarkdownReader
from markdown_renderer.parser.style_resolver import resolve_stylesheet
from markdown_renderer.utils.debug import DebugDumper


class DebugDumperTest(unittest.TestCase):
    def test_dump_writes_model_and_stylesheet(self) -> None:
        document = MarkdownReader().read("---\ntitle: T\nlang: de\n---\n# Head\n\n1. item\n")
        with tempfile.TemporaryDirectory() as tmp:
            directory = Path(tmp) / "debug"
            DebugDumper(directory).dump(document, resolve_stylesheet(document.meta))
            model = json.loads((directory / "document_model.json").read_text(encoding="utf-8"))
            styles = json.loads((directory / "stylesheet.json").read_text(encoding="utf-8"))

        self.assertEqual(model["type"], "Document")
        self.assertEqual(model["meta"]["title"], "T")
        self.assertEqual(model["meta"]["extensions"], {"lang": "de"})
        header, ordered = model["blocks"]
        self.assertEqual(header["type"], "Header")
        self.assertEqual(header["identifier"], "head")
        self.assertEqual(ordered["style"], "decimal")
        self.assertEqual(styles["base_font_size"], 12)
        self.assertEqual(len(styles["headings"]), 6)


if __name__ == "__main__":
    unittest.main()
