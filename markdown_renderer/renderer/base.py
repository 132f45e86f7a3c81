"""Dispatch shared by every renderer of the document model."""
from __future__ import annotations

import re
from typing import Any, List

from markdown_renderer.model.document_model import Document
from markdown_renderer.model.elements import BLOCK_TYPES, INLINE_TYPES
from markdown_renderer.model.style_model import StyleSheet
from markdown_renderer.utils.errors import UnsupportedConstruct
from markdown_renderer.utils.logger import get_logger

LOGGER = get_logger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def handler_suffix(node_type: type) -> str:
    """``BlockQuote`` -> ``block_quote``."""
    return _CAMEL_BOUNDARY.sub("_", node_type.__name__).lower()


class DocumentRenderer:
    """Base class: maps every block and inline variant to a handler method.

    Subclasses define ``_block_<name>`` and ``_inline_<name>`` methods for
    each model variant (``_block_code_block``, ``_inline_str`` ...). Raw
    content is only emitted when its format equals ``raw_format``.
    """

    target = "abstract"
    raw_format = ""

    def __init__(self, stylesheet: StyleSheet) -> None:
        self._styles = stylesheet

    @property
    def stylesheet(self) -> StyleSheet:
        return self._styles

    def render(self, document: Document) -> bytes:
        raise NotImplementedError

    @classmethod
    def missing_handlers(cls) -> List[str]:
        """Names of model variants this renderer has no handler for."""
        missing = []
        for prefix, variants in (("_block_", BLOCK_TYPES), ("_inline_", INLINE_TYPES)):
            for variant in variants:
                if not callable(getattr(cls, prefix + handler_suffix(variant), None)):
                    missing.append(variant.__name__)
        return missing

    # ------------------------------------------------------------------
    def _dispatch_block(self, block: Any, *args: Any) -> Any:
        return self._handler("_block_", block)(block, *args)

    def _dispatch_inline(self, inline: Any, *args: Any) -> Any:
        return self._handler("_inline_", inline)(inline, *args)

    def _handler(self, prefix: str, node: Any):
        handler = getattr(self, prefix + handler_suffix(type(node)), None)
        if handler is None:
            raise UnsupportedConstruct(type(node).__name__, self.target)
        return handler

    def _accepts_raw(self, raw_format: str) -> bool:
        if raw_format.lower() == self.raw_format:
            return True
        LOGGER.debug("Dropping raw %s content in the %s renderer", raw_format, self.target)
        return False
