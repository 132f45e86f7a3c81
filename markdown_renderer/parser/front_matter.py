"""Split the leading YAML block from a Markdown source and build ``Metadata``."""
from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import yaml

from markdown_renderer.model.document_model import Metadata
from markdown_renderer.utils.errors import FrontMatterError
from markdown_renderer.utils.logger import get_logger

LOGGER = get_logger(__name__)

OPENING_DELIMITER = "---"
CLOSING_DELIMITERS = ("---", "...")
FONT_SIZE_KEYS = ("fontsize", "fontSize", "font-size", "font_size")
FONT_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*(?:pt)?\s*$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class FrontMatterSplit:
    """Result of separating the header block from the body.

    ``body_start_line`` is the 1-based source line the body begins on, so
    later stages can report positions relative to the source file.
    ``header_start_line`` is the source line of the first header line.
    """

    header: Optional[str]
    body_lines: Tuple[str, ...]
    body_start_line: int
    header_start_line: int = 2


def split_front_matter(lines: List[str]) -> FrontMatterSplit:
    """Separate a ``---`` delimited header from the remaining lines.

    A header only exists when the first non-blank line is ``---`` and a
    later line is ``---`` or ``...``; otherwise every line is body.
    """
    start = 0
    while start < len(lines) and not lines[start].strip():
        start += 1
    if start == len(lines) or lines[start].rstrip() != OPENING_DELIMITER:
        return FrontMatterSplit(header=None, body_lines=tuple(lines), body_start_line=1)

    for index in range(start + 1, len(lines)):
        if lines[index].rstrip() in CLOSING_DELIMITERS:
            header = "\n".join(lines[start + 1:index])
            return FrontMatterSplit(
                header=header,
                body_lines=tuple(lines[index + 1:]),
                body_start_line=index + 2,
                header_start_line=start + 2,
            )

    LOGGER.debug("Opening front-matter delimiter without a closing one; treating it as body text")
    return FrontMatterSplit(header=None, body_lines=tuple(lines), body_start_line=1)


def load_header(header: Optional[str], first_line: int = 2) -> Any:
    """Deserialize the header block; ``None`` when it is absent or empty.

    ``first_line`` is the source line of the header's first line, used to
    report YAML errors at their position in the file.
    """
    if header is None or not header.strip():
        return None

    try:
        return yaml.safe_load(header)
    except yaml.YAMLError as exc:
        line = None
        mark = getattr(exc, "problem_mark", None)
        if mark is not None:
            line = mark.line + first_line
        problem = getattr(exc, "problem", None) or str(exc)
        raise FrontMatterError(f"malformed front matter: {problem}", line=line) from exc


def parse_metadata(header: Optional[str], first_line: int = 2) -> Metadata:
    """Deserialize the header block and map it onto ``Metadata``.

    A header that is not a mapping carries no metadata.
    """
    return build_metadata(load_header(header, first_line))


def build_metadata(data: Any) -> Metadata:
    if not isinstance(data, dict):
        return Metadata()

    fields: Dict[str, Any] = {}
    extensions: Dict[str, str] = {}
    for raw_key, value in data.items():
        key = str(raw_key)
        if key in ("title", "subtitle", "date"):
            fields[key] = _to_text(value)
        elif key == "author":
            fields["author"] = _to_text(value)
        elif key in FONT_SIZE_KEYS:
            fields["font_size"] = _parse_font_size(value)
        else:
            extensions[key] = _to_text(value)

    return Metadata(extensions=extensions, **fields)


def resolve_front_matter(lines: List[str]) -> Tuple[Metadata, FrontMatterSplit]:
    """Split ``lines`` and parse the header in one step.

    When the delimited block is not a YAML mapping (a thematic break
    followed by a setext heading, say) the lines stay body text.
    """
    split = split_front_matter(lines)
    data = load_header(split.header, split.header_start_line)
    if data is not None and not isinstance(data, dict):
        LOGGER.debug("Front matter is a %s, not a mapping; treating it as body text", type(data).__name__)
        return Metadata(), FrontMatterSplit(header=None, body_lines=tuple(lines), body_start_line=1)
    return build_metadata(data), split


def _parse_font_size(value: Any) -> int:
    if isinstance(value, bool):
        raise FrontMatterError(f"font size must be a positive number of points, got {value!r}")
    if isinstance(value, int):
        size = value
    elif isinstance(value, float) and value.is_integer():
        size = int(value)
    else:
        match = FONT_SIZE_PATTERN.match(str(value))
        if match is None:
            raise FrontMatterError(f"font size must be a positive number of points, got {value!r}")
        size = int(match.group(1))
    if size <= 0:
        raise FrontMatterError(f"font size must be a positive number of points, got {value!r}")
    return size


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ", ".join(_to_text(item) for item in value)
    if isinstance(value, dict):
        return yaml.safe_dump(value, default_flow_style=True, sort_keys=True).strip()
    return str(value)
