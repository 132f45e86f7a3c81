"""Helpers shared by the line scanners that run before Markdown parsing."""
from __future__ import annotations

import re
from typing import Optional

PLACEHOLDER_PREFIX = "markdown-renderer:block:"
PLACEHOLDER_PATTERN = re.compile(r"^\s*<!--\s*markdown-renderer:block:(\d+)\s*-->\s*$")
FENCE_PATTERN = re.compile(r"^ {0,3}(`{3,}|~{3,})")


def placeholder_line(start_line: int, indent: str = "") -> str:
    """Return the residual line standing in for a block extracted at ``start_line``."""
    return f"{indent}<!-- {PLACEHOLDER_PREFIX}{start_line} -->"


def placeholder_key(text: str) -> Optional[int]:
    """Return the start line encoded in a placeholder, or None for other text."""
    match = PLACEHOLDER_PATTERN.match(text)
    if match is None:
        return None
    return int(match.group(1))


class FenceTracker:
    """Tracks whether successive lines fall inside a fenced code block.

    Call :meth:`feed` for every line in order; it returns True when the line
    belongs to a fence (including the opening and closing fence lines).
    """

    def __init__(self) -> None:
        self._marker: Optional[str] = None

    @property
    def inside(self) -> bool:
        return self._marker is not None

    def feed(self, line: str) -> bool:
        match = FENCE_PATTERN.match(line)
        if self._marker is None:
            if match is None:
                return False
            # backtick fences may not carry backticks in the info string
            if match.group(1)[0] == "`" and "`" in line[match.end():]:
                return False
            self._marker = match.group(1)
            return True

        if match is not None:
            fence = match.group(1)
            rest = line[match.end():].strip()
            if fence[0] == self._marker[0] and len(fence) >= len(self._marker) and not rest:
                self._marker = None
        return True
