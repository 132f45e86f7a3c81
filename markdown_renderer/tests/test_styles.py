"""Unit tests for style resolution edge cases."""
import unittest

from markdown_renderer.model.document_model import Metadata
from markdown_renderer.model.elements import ListNumberDelim, ListNumberStyle
from markdown_renderer.parser.style_resolver import DEFAULT_FONT_SIZE_PT, resolve_stylesheet
from markdown_renderer.renderer.utils import list_marker, rules_to_css, stylesheet_rules
from markdown_renderer.utils.units import points_to_eighths, points_to_twips


class StyleResolverTest(unittest.TestCase):
    """Ensure metadata becomes one consistent stylesheet."""

    def test_default_base_size(self) -> None:
        styles = resolve_stylesheet(Metadata())
        self.assertEqual(styles.base_font_size, DEFAULT_FONT_SIZE_PT)
        self.assertEqual(styles.title_font_size, 24)

    def test_heading_sizes_never_increase_with_level(self) -> None:
        for size in (1, 2, 8, 11, 12, 30):
            styles = resolve_stylesheet(Metadata(font_size=size))
            sizes = [styles.heading(level).font_size for level in range(1, 7)]
            self.assertEqual(sizes, sorted(sizes, reverse=True), size)
            self.assertTrue(all(value >= 1 for value in sizes))
            self.assertGreater(styles.heading(1).font_size, styles.base_font_size)

    def test_heading_level_is_clamped(self) -> None:
        styles = resolve_stylesheet(Metadata(font_size=10))
        self.assertEqual(styles.heading(0), styles.heading(1))
        self.assertEqual(styles.heading(9).level, 6)

    def test_css_follows_stylesheet(self) -> None:
        styles = resolve_stylesheet(Metadata(font_size=11))
        css = rules_to_css(stylesheet_rules(styles))
        self.assertIn("font-size: 11pt", css)
        self.assertIn(f"h1 {{ font-size: {styles.heading(1).font_size}pt", css)
        self.assertIn('"Calibri", "Segoe UI", "Arial", sans-serif', css)


class ListMarkerTest(unittest.TestCase):
    def test_markers(self) -> None:
        self.assertEqual(list_marker(3, ListNumberStyle.DECIMAL, ListNumberDelim.PERIOD), "3.")
        self.assertEqual(list_marker(3, ListNumberStyle.LOWER_ALPHA, ListNumberDelim.ONE_PAREN), "c)")
        self.assertEqual(list_marker(4, ListNumberStyle.LOWER_ROMAN, ListNumberDelim.TWO_PARENS), "(iv)")
        self.assertEqual(list_marker(28, ListNumberStyle.UPPER_ALPHA, ListNumberDelim.PERIOD), "AB.")
        self.assertEqual(list_marker(1994, ListNumberStyle.UPPER_ROMAN, ListNumberDelim.PERIOD), "MCMXCIV.")


class UnitsTest(unittest.TestCase):
    def test_conversions(self) -> None:
        self.assertEqual(points_to_eighths(0.75), 6)
        self.assertEqual(points_to_twips(4), 80)


if __name__ == "__main__":
    unittest.main()
