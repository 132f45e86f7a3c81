"""Line-level block extensions Markdown grammars do not know about.

* fenced divs: ``::: {#id .class key=value}`` (or ``::: word``) ... ``:::``
* ``\\newpage`` on a line of its own becomes a page break
* a line holding a single backslash is dropped
* a comment that already reads like a placeholder is kept as raw HTML

Recognized constructs are replaced by placeholder lines, exactly like grid
tables, and the blocks they stand for are returned keyed by start line.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from markdown_renderer.model.elements import Attr, Block, Div, PageBreak, RawBlock
from markdown_renderer.parser.scan_utils import FenceTracker, placeholder_key, placeholder_line
from markdown_renderer.utils.logger import get_logger

LOGGER = get_logger(__name__)

DIV_OPEN_PATTERN = re.compile(r"^ {0,3}:{3,}\s*(\{[^}]*\}|[\w-]+)\s*:*\s*$")
DIV_CLOSE_PATTERN = re.compile(r"^ {0,3}:{3,}\s*$")
PAGE_BREAK_PATTERN = re.compile(r"^ {0,3}\\newpage\s*$")
LONE_BACKSLASH_PATTERN = re.compile(r"^\s*\\\s*$")
LEADING_SPACES = re.compile(r"^ {0,3}(?! )")
ATTRIBUTE_PATTERN = re.compile(
    r"""\#(?P<id>[^\s}#.]+)
       |\.(?P<cls>[^\s}#.]+)
       |(?P<key>[\w:-]+)=(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s}]+))""",
    re.VERBOSE,
)

FragmentParser = Callable[[List[str], int], Tuple[Block, ...]]


@dataclass(slots=True)
class ExtensionScan:
    residual: List[str] = field(default_factory=list)
    extracted: Dict[int, Block] = field(default_factory=dict)


def parse_attributes(text: str) -> Attr:
    """Parse ``{#id .class key=value}`` or a bare class word into ``Attr``."""
    text = text.strip()
    if not text.startswith("{"):
        return Attr(classes=(text,))

    identifier = ""
    classes: List[str] = []
    attributes: List[Tuple[str, str]] = []
    for match in ATTRIBUTE_PATTERN.finditer(text[1:-1]):
        if match.group("id"):
            identifier = match.group("id")
        elif match.group("cls"):
            classes.append(match.group("cls"))
        else:
            value = next(
                (group for group in (match.group("dq"), match.group("sq"), match.group("bare")) if group is not None),
                "",
            )
            attributes.append((match.group("key"), value))
    return Attr(identifier=identifier, classes=tuple(classes), attributes=tuple(attributes))


class BlockExtensionScanner:
    """Replace fenced divs and page breaks with placeholders."""

    def __init__(self, fragment_parser: FragmentParser) -> None:
        self._fragment_parser = fragment_parser

    def scan(self, lines: Sequence[str], first_line: int = 1) -> ExtensionScan:
        result = ExtensionScan(residual=list(lines))
        fences = FenceTracker()
        index = 0
        while index < len(lines):
            line = lines[index]
            if fences.feed(line):
                index += 1
                continue

            start_line = first_line + index
            if PAGE_BREAK_PATTERN.match(line):
                result.residual[index] = placeholder_line(start_line)
                result.extracted[start_line] = PageBreak()
            elif LONE_BACKSLASH_PATTERN.match(line):
                result.residual[index] = ""
            elif placeholder_key(line) is not None and LEADING_SPACES.match(line):
                # source text must not be mistaken for a scanner placeholder
                result.residual[index] = placeholder_line(start_line, LEADING_SPACES.match(line).group(0))
                result.extracted[start_line] = RawBlock("html", line.strip())
            else:
                opening = DIV_OPEN_PATTERN.match(line)
                if opening is not None:
                    end = self._find_close(lines, index)
                    if end is None:
                        LOGGER.warning("Unclosed fenced div at line %d left as text", start_line)
                    else:
                        inner = list(lines[index + 1:end])
                        blocks = self._fragment_parser(inner, start_line + 1)
                        result.extracted[start_line] = Div(parse_attributes(opening.group(1)), blocks)
                        result.residual[index] = placeholder_line(start_line)
                        for blank in range(index + 1, end + 1):
                            result.residual[blank] = ""
                        index = end
            index += 1
        return result

    @staticmethod
    def _find_close(lines: Sequence[str], opening: int) -> Optional[int]:
        depth = 1
        fences = FenceTracker()
        for index in range(opening + 1, len(lines)):
            line = lines[index]
            if fences.feed(line):
                continue
            if DIV_OPEN_PATTERN.match(line):
                depth += 1
            elif DIV_CLOSE_PATTERN.match(line):
                depth -= 1
                if depth == 0:
                    return index
        return None
