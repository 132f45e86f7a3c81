"""Test cases for source normalization and slug generation."""

import unittest

from markdown_renderer.utils.text_normalizer import SourceNormalizer, collapse_whitespace, slugify


class SourceNormalizerTest(unittest.TestCase):
    """Test source text normalization."""

    def setUp(self):
        """Set up test fixtures."""
        self.normalizer = SourceNormalizer(tab_size=4)

    def test_line_endings(self):
        """Windows and old Mac line endings become newlines."""
        test_cases = [
            ('a\r\nb', 'a\nb'),
            ('a\rb', 'a\nb'),
            ('a\r\n\r\nb', 'a\n\nb'),
            ('a\nb', 'a\nb'),
        ]

        for input_text, expected in test_cases:
            result = self.normalizer.normalize_text(input_text)
            self.assertEqual(result, expected, f"Failed for input: {repr(input_text)}")

    def test_byte_order_mark_is_dropped(self):
        self.assertEqual(self.normalizer.normalize_text('\ufeff---\ntitle: x'), '---\ntitle: x')

    def test_tabs_expand_to_columns(self):
        """Grid tables depend on character offsets, so tabs must expand by column."""
        self.assertEqual(self.normalizer.normalize_text('a\tb'), 'a   b')
        self.assertEqual(self.normalizer.normalize_text('\t|'), '    |')
        self.assertEqual(SourceNormalizer(tab_size=2).normalize_text('\tx'), '  x')

    def test_control_character_removal(self):
        """Test removal of control characters."""
        input_text = 'text\x00with\x08control\x1fchars'
        expected = 'textwithcontrolchars'

        result = self.normalizer.normalize_text(input_text)
        self.assertEqual(result, expected)

    def test_split_lines(self):
        self.assertEqual(self.normalizer.split_lines('one\r\ntwo\n'), ['one', 'two', ''])
        self.assertEqual(self.normalizer.split_lines(''), [])

    def test_invalid_tab_size(self):
        with self.assertRaises(ValueError):
            SourceNormalizer(tab_size=0)


class SlugifyTest(unittest.TestCase):
    """Test heading identifier generation."""

    def test_slugs(self):
        test_cases = [
            ('Hello, World!', 'hello-world'),
            ('  Spaced   Out  ', 'spaced-out'),
            ('1.2 Numbered Section', 'numbered-section'),
            ('Café au lait', 'cafe-au-lait'),
            ('snake_case and dots.v2', 'snake_case-and-dots.v2'),
            ('!!!', 'section'),
        ]

        for input_text, expected in test_cases:
            self.assertEqual(slugify(input_text), expected, f"Failed for input: {input_text}")

    def test_fallback(self):
        self.assertEqual(slugify('', fallback='heading'), 'heading')

    def test_collapse_whitespace(self):
        self.assertEqual(collapse_whitespace('  multiple \t\n spaces  '), 'multiple spaces')


if __name__ == '__main__':
    unittest.main()
