"""
Text normalization utilities for Markdown sources.

Handles line-ending cleanup, byte-order marks, tab expansion (grid-table
column offsets are measured in characters) and the slug rules used for
heading identifiers.
"""

import re
import unicodedata


class SourceNormalizer:
    """Normalizes raw Markdown text before any scanning happens."""

    # Byte order marks and other invisible prefixes that break line matching
    INVISIBLE_PREFIXES = ('\ufeff', '\u200b')

    # Regex for removing control characters (except tabs and newlines)
    CONTROL_CHARS_PATTERN = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')

    def __init__(self, tab_size: int = 4):
        """Initialize source normalizer.

        Args:
            tab_size: Column width a tab character expands to. Grid tables
                      are matched on character offsets, so tabs must be
                      expanded consistently before scanning.
        """
        if tab_size < 1:
            raise ValueError("tab_size must be positive")
        self.tab_size = tab_size

    def normalize_text(self, text: str) -> str:
        """Return ``text`` with unified line endings and expanded tabs."""
        if not text:
            return text

        for prefix in self.INVISIBLE_PREFIXES:
            if text.startswith(prefix):
                text = text[len(prefix):]

        # \r\n and lone \r both become \n
        text = text.replace('\r\n', '\n').replace('\r', '\n')
        text = self.CONTROL_CHARS_PATTERN.sub('', text)
        return '\n'.join(line.expandtabs(self.tab_size) for line in text.split('\n'))

    def split_lines(self, text: str) -> list:
        """Normalize ``text`` and split it into lines without terminators."""
        normalized = self.normalize_text(text)
        if not normalized:
            return []
        return normalized.split('\n')


WHITESPACE_PATTERN = re.compile(r'\s+')
SLUG_INVALID_PATTERN = re.compile(r'[^\w\s.-]')
SLUG_LEADING_PATTERN = re.compile(r'^[^a-z]+')


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace to single spaces and trim."""
    return WHITESPACE_PATTERN.sub(' ', text).strip()


def slugify(text: str, fallback: str = 'section') -> str:
    """Turn heading text into an identifier.

    Lowercases, drops punctuation other than ``-``, ``_`` and ``.``,
    replaces whitespace with ``-`` and strips everything up to the first
    letter. Returns ``fallback`` when nothing is left.
    """
    folded = unicodedata.normalize('NFKD', text)
    folded = ''.join(ch for ch in folded if not unicodedata.combining(ch)).lower()
    folded = SLUG_INVALID_PATTERN.sub('', folded)
    folded = WHITESPACE_PATTERN.sub('-', folded.strip())
    folded = SLUG_LEADING_PATTERN.sub('', folded)
    return folded or fallback
