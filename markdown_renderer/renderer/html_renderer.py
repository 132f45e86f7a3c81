"""Render the document model into a standalone HTML5 document."""
from __future__ import annotations

import html
from typing import Dict, List, Tuple

from markdown_renderer.model.document_model import Document, Metadata
from markdown_renderer.model.elements import (
    Attr,
    Block,
    BlockQuote,
    BulletList,
    Code,
    CodeBlock,
    DefinitionList,
    Div,
    Emph,
    Header,
    HorizontalRule,
    Image,
    Inline,
    LineBlock,
    LineBreak,
    Link,
    ListNumberStyle,
    Math,
    MathType,
    Note,
    OrderedList,
    PageBreak,
    Paragraph,
    Plain,
    QuoteType,
    Quoted,
    RawBlock,
    RawInline,
    SmallCaps,
    SoftBreak,
    Space,
    Span,
    Str,
    Strikeout,
    Strong,
    Subscript,
    Superscript,
    Table,
    stringify,
)
from markdown_renderer.model.table_model import Row, TableModel, place_cells
from markdown_renderer.renderer.base import DocumentRenderer
from markdown_renderer.renderer.utils import alignment_to_css, declarations, rules_to_css, stylesheet_rules

ORDERED_TYPES = {
    ListNumberStyle.DECIMAL: "1",
    ListNumberStyle.LOWER_ALPHA: "a",
    ListNumberStyle.UPPER_ALPHA: "A",
    ListNumberStyle.LOWER_ROMAN: "i",
    ListNumberStyle.UPPER_ROMAN: "I",
}


def _text(value: str) -> str:
    return html.escape(value, quote=False)


def _attr(value: str) -> str:
    return html.escape(value, quote=True)


class HtmlRenderer(DocumentRenderer):
    """Produce a styled HTML document whose CSS comes from the ``StyleSheet``."""

    target = "html"
    raw_format = "html"

    def render(self, document: Document) -> bytes:
        body = self._render_blocks(document.blocks)
        return self._build_html(document.meta, body).encode("utf-8")

    def _build_html(self, meta: Metadata, body: str) -> str:
        title = meta.title or "Document"
        lang = meta.extensions.get("lang", "en")
        head_meta = ""
        if meta.author:
            head_meta += f'\n  <meta name="author" content="{_attr(meta.author)}" />'
        if meta.date:
            head_meta += f'\n  <meta name="dcterms.date" content="{_attr(meta.date)}" />'
        title_block = self._title_block(meta)
        return f"""<!DOCTYPE html>
<html lang="{_attr(lang)}">
<head>
  <meta charset="utf-8" />{head_meta}
  <title>{_text(title)}</title>
  <style>
{rules_to_css(stylesheet_rules(self._styles))}
  </style>
</head>
<body>
{title_block}{body}
</body>
</html>
"""

    @staticmethod
    def _title_block(meta: Metadata) -> str:
        if not meta.has_title_block:
            return ""
        lines = ['<header class="title-block">']
        for css_class, value in (
            ("title", meta.title),
            ("subtitle", meta.subtitle),
            ("author", meta.author),
            ("date", meta.date),
        ):
            if value:
                lines.append(f'<p class="{css_class}">{_text(value)}</p>')
        lines.append("</header>\n")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Blocks
    def _render_blocks(self, blocks: Tuple[Block, ...]) -> str:
        rendered = (self._dispatch_block(block) for block in blocks)
        return "\n".join(part for part in rendered if part)

    def _render_inlines(self, inlines: Tuple[Inline, ...]) -> str:
        return "".join(self._dispatch_inline(inline) for inline in inlines)

    def _block_plain(self, block: Plain) -> str:
        return self._render_inlines(block.inlines)

    def _block_paragraph(self, block: Paragraph) -> str:
        return f"<p>{self._render_inlines(block.inlines)}</p>"

    def _block_header(self, block: Header) -> str:
        identifier = f' id="{_attr(block.identifier)}"' if block.identifier else ""
        return f"<h{block.level}{identifier}>{self._render_inlines(block.inlines)}</h{block.level}>"

    def _block_code_block(self, block: CodeBlock) -> str:
        css_class = f' class="language-{_attr(block.language)}"' if block.language else ""
        return f"<pre><code{css_class}>{_text(block.text)}</code></pre>"

    def _block_block_quote(self, block: BlockQuote) -> str:
        return f"<blockquote>\n{self._render_blocks(block.blocks)}\n</blockquote>"

    def _block_bullet_list(self, block: BulletList) -> str:
        return f"<ul>\n{self._list_items(block.items)}\n</ul>"

    def _block_ordered_list(self, block: OrderedList) -> str:
        attributes = ""
        if block.start != 1:
            attributes += f' start="{block.start}"'
        if block.style is not ListNumberStyle.DECIMAL:
            attributes += f' type="{ORDERED_TYPES[block.style]}"'
        return f"<ol{attributes}>\n{self._list_items(block.items)}\n</ol>"

    def _list_items(self, items: Tuple[Tuple[Block, ...], ...]) -> str:
        return "\n".join(f"<li>{self._render_blocks(item)}</li>" for item in items)

    def _block_table(self, block: Table) -> str:
        model = block.model
        parts = ["<table>"]
        if model.caption:
            parts.append(f"<caption>{self._render_inlines(model.caption)}</caption>")
        if any(spec.width is not None for spec in model.col_specs):
            parts.append("<colgroup>")
            for spec in model.col_specs:
                width = f' style="width: {spec.width * 100:.2f}%"' if spec.width is not None else ""
                parts.append(f"<col{width} />")
            parts.append("</colgroup>")
        for tag, rows, cell_tag in (
            ("thead", model.head, "th"),
            ("tbody", model.body, "td"),
            ("tfoot", model.foot, "td"),
        ):
            if rows:
                parts.append(f"<{tag}>")
                parts.extend(self._table_rows(model, rows, cell_tag))
                parts.append(f"</{tag}>")
        parts.append("</table>")
        return "\n".join(parts)

    def _table_rows(self, model: TableModel, rows: Tuple[Row, ...], cell_tag: str) -> List[str]:
        cells_by_row: Dict[int, List[str]] = {index: [] for index in range(len(rows))}
        for row_index, column, cell in place_cells(rows, model.column_count):
            attributes = ""
            if cell.col_span > 1:
                attributes += f' colspan="{cell.col_span}"'
            if cell.row_span > 1:
                attributes += f' rowspan="{cell.row_span}"'
            if column < model.column_count:
                style = alignment_to_css(model.col_specs[column].alignment)
                if style:
                    attributes += f' style="{declarations(style)}"'
            cells_by_row[row_index].append(
                f"<{cell_tag}{attributes}>{self._render_blocks(cell.blocks)}</{cell_tag}>"
            )
        return [f"<tr>{''.join(cells_by_row[index])}</tr>" for index in range(len(rows))]

    def _block_horizontal_rule(self, block: HorizontalRule) -> str:
        return "<hr />"

    def _block_raw_block(self, block: RawBlock) -> str:
        return block.text if self._accepts_raw(block.format) else ""

    def _block_div(self, block: Div) -> str:
        return f"<div{self._attributes(block.attr)}>\n{self._render_blocks(block.blocks)}\n</div>"

    def _block_line_block(self, block: LineBlock) -> str:
        lines = "<br />\n".join(self._render_inlines(line) for line in block.lines)
        return f'<div class="line-block">{lines}</div>'

    def _block_definition_list(self, block: DefinitionList) -> str:
        parts = ["<dl>"]
        for item in block.items:
            parts.append(f"<dt>{self._render_inlines(item.term)}</dt>")
            for definition in item.definitions:
                parts.append(f"<dd>{self._render_blocks(definition)}</dd>")
        parts.append("</dl>")
        return "\n".join(parts)

    def _block_page_break(self, block: PageBreak) -> str:
        return '<div class="page-break"></div>'

    @staticmethod
    def _attributes(attr: Attr) -> str:
        rendered = ""
        if attr.identifier:
            rendered += f' id="{_attr(attr.identifier)}"'
        if attr.classes:
            rendered += f' class="{_attr(" ".join(attr.classes))}"'
        for key, value in attr.attributes:
            rendered += f' data-{_attr(key)}="{_attr(value)}"'
        return rendered

    # ------------------------------------------------------------------
    # Inlines
    def _inline_str(self, inline: Str) -> str:
        return _text(inline.text)

    def _inline_space(self, inline: Space) -> str:
        return " "

    def _inline_soft_break(self, inline: SoftBreak) -> str:
        return "\n"

    def _inline_line_break(self, inline: LineBreak) -> str:
        return "<br />\n"

    def _inline_emph(self, inline: Emph) -> str:
        return f"<em>{self._render_inlines(inline.inlines)}</em>"

    def _inline_strong(self, inline: Strong) -> str:
        return f"<strong>{self._render_inlines(inline.inlines)}</strong>"

    def _inline_strikeout(self, inline: Strikeout) -> str:
        return f"<del>{self._render_inlines(inline.inlines)}</del>"

    def _inline_superscript(self, inline: Superscript) -> str:
        return f"<sup>{self._render_inlines(inline.inlines)}</sup>"

    def _inline_subscript(self, inline: Subscript) -> str:
        return f"<sub>{self._render_inlines(inline.inlines)}</sub>"

    def _inline_small_caps(self, inline: SmallCaps) -> str:
        return f'<span class="smallcaps">{self._render_inlines(inline.inlines)}</span>'

    def _inline_code(self, inline: Code) -> str:
        return f"<code>{_text(inline.text)}</code>"

    def _inline_quoted(self, inline: Quoted) -> str:
        opening, closing = ("&lsquo;", "&rsquo;") if inline.quote_type is QuoteType.SINGLE else ("&ldquo;", "&rdquo;")
        return f"{opening}{self._render_inlines(inline.inlines)}{closing}"

    def _inline_link(self, inline: Link) -> str:
        title = f' title="{_attr(inline.title)}"' if inline.title else ""
        return f'<a href="{_attr(inline.url)}"{title}>{self._render_inlines(inline.inlines)}</a>'

    def _inline_image(self, inline: Image) -> str:
        title = f' title="{_attr(inline.title)}"' if inline.title else ""
        alt = _attr(stringify(inline.alt))
        return f'<img src="{_attr(inline.url)}" alt="{alt}"{title} />'

    def _inline_math(self, inline: Math) -> str:
        if inline.math_type is MathType.DISPLAY:
            return f'<span class="math display">\\[{_text(inline.text)}\\]</span>'
        return f'<span class="math inline">\\({_text(inline.text)}\\)</span>'

    def _inline_raw_inline(self, inline: RawInline) -> str:
        return inline.text if self._accepts_raw(inline.format) else ""

    def _inline_note(self, inline: Note) -> str:
        parts = []
        for block in inline.blocks:
            if isinstance(block, (Paragraph, Plain)):
                parts.append(self._render_inlines(block.inlines))
            else:
                parts.append(self._dispatch_block(block))
        return f'<span class="footnote">{" ".join(part for part in parts if part)}</span>'

    def _inline_span(self, inline: Span) -> str:
        return f"<span{self._attributes(inline.attr)}>{self._render_inlines(inline.inlines)}</span>"
