"""Error hierarchy raised while reading, assembling and rendering documents."""
from __future__ import annotations

from typing import Optional


class ConversionError(Exception):
    """Base class for every failure of a conversion attempt.

    ``line`` is the 1-based source line the problem was found on and
    ``context`` a short excerpt of the offending text; both are folded into
    the message so a user can locate the problem in the source.
    """

    def __init__(self, message: str, *, line: Optional[int] = None, context: Optional[str] = None) -> None:
        self.message = message
        self.line = line
        self.context = context
        super().__init__(self._format())

    def _format(self) -> str:
        text = self.message
        if self.line is not None:
            text = f"line {self.line}: {text}"
        if self.context:
            excerpt = self.context if len(self.context) <= 60 else self.context[:57] + "..."
            text = f"{text} (near {excerpt!r})"
        return text


class FrontMatterError(ConversionError):
    """The leading metadata block could not be deserialized or validated."""


class TableStructureError(ConversionError):
    """A grid-table region is unterminated, ragged or has a duplicate separator."""


class UnsupportedConstruct(ConversionError):
    """A model node has no mapping in the selected renderer."""

    def __init__(self, construct: str, target: str) -> None:
        self.construct = construct
        self.target = target
        super().__init__(f"{construct} has no mapping for the {target!r} renderer")


class EncodingError(ConversionError):
    """The output container could not be produced."""


class AssemblyError(ConversionError):
    """Extracted blocks and residual placeholders disagree."""


class UnsupportedFormatError(ConversionError):
    """An input or output format name is not known."""
