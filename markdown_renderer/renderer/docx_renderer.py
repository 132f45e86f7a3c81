"""Render the document model into a DOCX package with python-docx."""
from __future__ import annotations

import datetime
import io
import zipfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, List, Optional, Tuple

import docx
from docx.enum.style import WD_STYLE_TYPE
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_BREAK
from docx.image.exceptions import UnrecognizedImageError
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml.ns import qn
from docx.shared import Emu, Pt, RGBColor

from markdown_renderer.model.document_model import Document, Metadata
from markdown_renderer.model.elements import (
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
from markdown_renderer.model.style_model import StyleSheet
from markdown_renderer.model.table_model import Alignment, place_cells
from markdown_renderer.renderer.base import DocumentRenderer
from markdown_renderer.renderer.utils import bullet_marker, list_marker
from markdown_renderer.utils.errors import EncodingError
from markdown_renderer.utils.logger import get_logger
from markdown_renderer.utils.xml_utils import (
    add_bookmark,
    adopt_following_runs,
    clear_theme_fonts,
    mark_header_row,
    parse_fragment,
    set_bottom_border,
    set_cell_margins,
    set_table_borders,
    shade_cell,
    start_hyperlink,
)

LOGGER = get_logger(__name__)

ZIP_TIMESTAMP = (1980, 1, 1, 0, 0, 0)
DEFAULT_CREATED = datetime.datetime(2000, 1, 1, tzinfo=datetime.timezone.utc)
MAX_BOOKMARK_LENGTH = 40
PARAGRAPH_ALIGNMENT = {
    Alignment.LEFT: WD_ALIGN_PARAGRAPH.LEFT,
    Alignment.RIGHT: WD_ALIGN_PARAGRAPH.RIGHT,
    Alignment.CENTER: WD_ALIGN_PARAGRAPH.CENTER,
}


@dataclass(frozen=True, slots=True)
class RunFormat:
    """Character formatting accumulated while descending into inline containers."""

    bold: bool = False
    italic: bool = False
    strike: bool = False
    superscript: bool = False
    subscript: bool = False
    small_caps: bool = False
    underline: bool = False
    monospace: bool = False
    color: Optional[str] = None


@dataclass(slots=True)
class _BuildState:
    """Per-call output state; one instance per :meth:`DocxRenderer.render`."""

    doc: Any
    bookmark_id: int = 0
    notes: List[Tuple[Block, ...]] = field(default_factory=list)
    pending_marker: Optional[str] = None
    last_run: Optional[Tuple[Any, RunFormat]] = None


@dataclass(frozen=True, slots=True)
class _Frame:
    """Where blocks go (document body or table cell) and how they are indented."""

    state: _BuildState
    container: Any
    indent: int = 0
    list_depth: int = 0
    style: Optional[str] = None
    run_format: RunFormat = field(default_factory=RunFormat)


class DocxRenderer(DocumentRenderer):
    """Produce a WordprocessingML package styled from the ``StyleSheet``.

    ``resource_dir`` is where relative image paths are resolved; images that
    cannot be found are replaced by their alt text.
    """

    target = "docx"
    raw_format = "openxml"

    def __init__(self, stylesheet: StyleSheet, resource_dir: Optional[Path] = None) -> None:
        super().__init__(stylesheet)
        self._resource_dir = resource_dir

    def render(self, document: Document) -> bytes:
        doc = docx.Document()
        state = _BuildState(doc=doc)
        self._configure_styles(doc)
        self._set_core_properties(doc, document.meta)
        self._add_title_block(doc, document.meta)

        frame = _Frame(state=state, container=doc)
        for block in document.blocks:
            self._dispatch_block(block, frame)
        self._add_notes(frame)
        return self._save(doc)

    # ------------------------------------------------------------------
    # Document level
    def _configure_styles(self, doc) -> None:
        styles = self._styles
        normal = doc.styles["Normal"]
        normal.font.name = styles.font_family
        normal.font.size = Pt(styles.base_font_size)
        normal.font.color.rgb = RGBColor.from_string(styles.text_color)
        clear_theme_fonts(normal)
        normal.paragraph_format.space_after = Pt(styles.paragraph_space_after)

        for heading in styles.headings:
            style = self._paragraph_style(doc, f"Heading {heading.level}")
            style.font.name = styles.font_family
            style.font.size = Pt(heading.font_size)
            style.font.bold = heading.bold
            style.font.italic = False
            style.font.color.rgb = RGBColor.from_string(heading.color)
            clear_theme_fonts(style)
            style.paragraph_format.space_before = Pt(heading.space_before)
            style.paragraph_format.space_after = Pt(heading.space_after)
            style.paragraph_format.keep_with_next = True

        for name, size in (("Title", styles.title_font_size), ("Subtitle", styles.subtitle_font_size)):
            style = self._paragraph_style(doc, name)
            style.font.name = styles.font_family
            style.font.size = Pt(size)
            clear_theme_fonts(style)
            style.paragraph_format.alignment = WD_ALIGN_PARAGRAPH.CENTER

    @staticmethod
    def _paragraph_style(doc, name: str):
        if name in doc.styles:
            return doc.styles[name]
        style = doc.styles.add_style(name, WD_STYLE_TYPE.PARAGRAPH)
        style.base_style = doc.styles["Normal"]
        return style

    @staticmethod
    def _set_core_properties(doc, meta: Metadata) -> None:
        core = doc.core_properties
        core.title = meta.title or ""
        core.author = meta.author or ""
        core.subject = meta.subtitle or ""
        core.keywords = meta.extensions.get("keywords", "")
        core.last_modified_by = meta.author or ""
        core.revision = 1
        created = DEFAULT_CREATED
        if meta.date:
            try:
                created = datetime.datetime.fromisoformat(meta.date)
            except ValueError:
                LOGGER.debug("Date %r is not ISO formatted; not used as creation time", meta.date)
        core.created = created
        core.modified = created

    @staticmethod
    def _add_title_block(doc, meta: Metadata) -> None:
        if meta.title:
            doc.add_paragraph(meta.title, style="Title")
        if meta.subtitle:
            doc.add_paragraph(meta.subtitle, style="Subtitle")
        for value in (meta.author, meta.date):
            if value:
                doc.add_paragraph(value).alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _add_notes(self, frame: _Frame) -> None:
        notes = frame.state.notes
        if not notes:
            return
        set_bottom_border(frame.container.add_paragraph(), self._styles.rule_color)
        index = 0
        while index < len(notes):
            frame.state.pending_marker = f"{index + 1}."
            self._render_blocks(notes[index], frame)
            index += 1

    def _save(self, doc) -> bytes:
        buffer = io.BytesIO()
        try:
            doc.save(buffer)
            return self._normalize_package(buffer.getvalue())
        except (OSError, ValueError, KeyError, zipfile.BadZipFile) as exc:
            raise EncodingError(f"could not write the DOCX package: {exc}") from exc

    @staticmethod
    def _normalize_package(data: bytes) -> bytes:
        """Rewrite the zip with fixed timestamps so identical input gives identical bytes."""
        output = io.BytesIO()
        with zipfile.ZipFile(io.BytesIO(data)) as source, zipfile.ZipFile(output, "w") as target:
            for info in source.infolist():
                entry = zipfile.ZipInfo(info.filename, date_time=ZIP_TIMESTAMP)
                entry.compress_type = zipfile.ZIP_DEFLATED
                entry.external_attr = 0o644 << 16
                target.writestr(entry, source.read(info.filename))
        return output.getvalue()

    # ------------------------------------------------------------------
    # Helpers
    def _render_blocks(self, blocks: Tuple[Block, ...], frame: _Frame) -> None:
        for block in blocks:
            self._dispatch_block(block, frame)

    def _render_inlines(self, inlines: Tuple[Inline, ...], paragraph, fmt: RunFormat, frame: _Frame) -> None:
        for inline in inlines:
            self._dispatch_inline(inline, paragraph, fmt, frame)

    def _new_paragraph(self, frame: _Frame, style: Optional[str] = None):
        paragraph = frame.container.add_paragraph(style=style or frame.style)
        if frame.indent:
            paragraph.paragraph_format.left_indent = Pt(self._styles.indent_step * frame.indent)
        marker = frame.state.pending_marker
        if marker is not None:
            frame.state.pending_marker = None
            paragraph.add_run(f"{marker} ")
        frame.state.last_run = None
        return paragraph

    def _add_text(self, paragraph, text: str, fmt: RunFormat, frame: _Frame) -> None:
        last = frame.state.last_run
        if last is not None and last[1] == fmt and len(paragraph._p) and paragraph._p[-1] is last[0]._r:
            last[0].text = last[0].text + text
            return
        run = paragraph.add_run(text)
        self._apply_format(run, fmt)
        frame.state.last_run = (run, fmt)

    def _apply_format(self, run, fmt: RunFormat) -> None:
        if fmt.bold:
            run.bold = True
        if fmt.italic:
            run.italic = True
        if fmt.underline:
            run.underline = True
        if fmt.strike:
            run.font.strike = True
        if fmt.superscript:
            run.font.superscript = True
        if fmt.subscript:
            run.font.subscript = True
        if fmt.small_caps:
            run.font.small_caps = True
        if fmt.monospace:
            run.font.name = self._styles.code_font_family
        if fmt.color:
            run.font.color.rgb = RGBColor.from_string(fmt.color)

    def _available_width(self, doc) -> int:
        section = doc.sections[0]
        return section.page_width - section.left_margin - section.right_margin

    @staticmethod
    def _bookmark_name(identifier: str) -> str:
        return identifier[:MAX_BOOKMARK_LENGTH]

    # ------------------------------------------------------------------
    # Blocks
    def _block_plain(self, block: Plain, frame: _Frame) -> None:
        paragraph = self._new_paragraph(frame)
        self._render_inlines(block.inlines, paragraph, frame.run_format, frame)

    def _block_paragraph(self, block: Paragraph, frame: _Frame) -> None:
        paragraph = self._new_paragraph(frame)
        self._render_inlines(block.inlines, paragraph, frame.run_format, frame)

    def _block_header(self, block: Header, frame: _Frame) -> None:
        paragraph = self._new_paragraph(frame, style=f"Heading {block.level}")
        self._render_inlines(block.inlines, paragraph, RunFormat(), frame)
        if block.identifier:
            frame.state.bookmark_id += 1
            add_bookmark(paragraph, frame.state.bookmark_id, self._bookmark_name(block.identifier))

    def _block_code_block(self, block: CodeBlock, frame: _Frame) -> None:
        paragraph = self._new_paragraph(replace(frame, indent=frame.indent + 1))
        fmt = RunFormat(monospace=True)
        for number, line in enumerate(block.text.split("\n")):
            if number:
                paragraph.add_run().add_break()
            run = paragraph.add_run(line)
            self._apply_format(run, fmt)
        frame.state.last_run = None

    def _block_block_quote(self, block: BlockQuote, frame: _Frame) -> None:
        quoted = replace(
            frame,
            indent=frame.indent + 1,
            run_format=replace(frame.run_format, color=self._styles.quote_color),
        )
        self._render_blocks(block.blocks, quoted)

    def _block_bullet_list(self, block: BulletList, frame: _Frame) -> None:
        nested = replace(frame, indent=frame.indent + 1, list_depth=frame.list_depth + 1)
        for item in block.items:
            frame.state.pending_marker = bullet_marker(frame.list_depth)
            self._render_blocks(item, nested)

    def _block_ordered_list(self, block: OrderedList, frame: _Frame) -> None:
        nested = replace(frame, indent=frame.indent + 1, list_depth=frame.list_depth + 1)
        for offset, item in enumerate(block.items):
            frame.state.pending_marker = list_marker(block.start + offset, block.style, block.delimiter)
            self._render_blocks(item, nested)

    def _block_table(self, block: Table, frame: _Frame) -> None:
        model = block.model
        rows = tuple(model.all_rows())
        if not rows or not model.column_count:
            return
        table_style = self._styles.table
        table = frame.container.add_table(rows=len(rows), cols=model.column_count)
        set_table_borders(table, table_style.border_width, table_style.border_color)
        set_cell_margins(table, table_style.cell_padding)

        placed = [entry for entry in place_cells(rows, model.column_count) if entry[1] < model.column_count]
        for row_index, column, cell in placed:
            if cell.row_span > 1 or cell.col_span > 1:
                last_row = min(row_index + cell.row_span, len(rows)) - 1
                last_column = min(column + cell.col_span, model.column_count) - 1
                table.cell(row_index, column).merge(table.cell(last_row, last_column))

        widths = self._column_widths(model, frame)
        if widths is not None:
            table.autofit = False
            for index, width in enumerate(widths):
                table.columns[index].width = width

        head_count = len(model.head or ())
        body_count = len(model.body)
        for row_index in range(head_count):
            mark_header_row(table.rows[row_index])

        for row_index, column, cell in placed:
            target = table.cell(row_index, column)
            is_header = row_index < head_count
            fmt = frame.run_format
            if is_header:
                fmt = replace(fmt, bold=True, color=table_style.header_text_color)
                shade_cell(target, table_style.header_fill)
            elif row_index < head_count + body_count and (row_index - head_count) % 2 == 1:
                shade_cell(target, table_style.banded_fill)
            if widths is not None:
                target.width = Emu(sum(widths[column:column + cell.col_span]))

            first = target.paragraphs[0]
            cell_frame = _Frame(state=frame.state, container=target, run_format=fmt)
            self._render_blocks(cell.blocks, cell_frame)
            if len(target.paragraphs) + len(target.tables) > 1 and not first.runs:
                first._p.getparent().remove(first._p)

            alignment = PARAGRAPH_ALIGNMENT.get(model.col_specs[column].alignment)
            if alignment is not None:
                for paragraph in target.paragraphs:
                    paragraph.alignment = alignment
        frame.state.last_run = None

    def _column_widths(self, model, frame: _Frame) -> Optional[List[int]]:
        if any(spec.width is None for spec in model.col_specs):
            return None
        available = self._available_width(frame.state.doc) - Pt(self._styles.indent_step * frame.indent)
        return [Emu(int(available * spec.width)) for spec in model.col_specs]

    def _block_horizontal_rule(self, block: HorizontalRule, frame: _Frame) -> None:
        set_bottom_border(self._new_paragraph(frame), self._styles.rule_color)

    def _block_raw_block(self, block: RawBlock, frame: _Frame) -> None:
        if not self._accepts_raw(block.format):
            return
        container = getattr(frame.container, "_body", frame.container)._element
        section = container.find(qn("w:sectPr"))
        for element in parse_fragment(block.text):
            if section is not None:
                section.addprevious(element)
            else:
                container.append(element)
        frame.state.last_run = None

    def _block_div(self, block: Div, frame: _Frame) -> None:
        custom_style = block.attr.get("custom-style")
        if custom_style:
            self._paragraph_style(frame.state.doc, custom_style)
            frame = replace(frame, style=custom_style)
        self._render_blocks(block.blocks, frame)

    def _block_line_block(self, block: LineBlock, frame: _Frame) -> None:
        paragraph = self._new_paragraph(frame)
        for number, line in enumerate(block.lines):
            if number:
                paragraph.add_run().add_break()
                frame.state.last_run = None
            self._render_inlines(line, paragraph, frame.run_format, frame)

    def _block_definition_list(self, block: DefinitionList, frame: _Frame) -> None:
        nested = replace(frame, indent=frame.indent + 1)
        for item in block.items:
            term = self._new_paragraph(frame)
            self._render_inlines(item.term, term, replace(frame.run_format, bold=True), frame)
            for definition in item.definitions:
                self._render_blocks(definition, nested)

    def _block_page_break(self, block: PageBreak, frame: _Frame) -> None:
        self._new_paragraph(frame).add_run().add_break(WD_BREAK.PAGE)

    # ------------------------------------------------------------------
    # Inlines
    def _inline_str(self, inline: Str, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        self._add_text(paragraph, inline.text, fmt, frame)

    def _inline_space(self, inline: Space, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        self._add_text(paragraph, " ", fmt, frame)

    def _inline_soft_break(self, inline: SoftBreak, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        self._add_text(paragraph, " ", fmt, frame)

    def _inline_line_break(self, inline: LineBreak, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        paragraph.add_run().add_break()
        frame.state.last_run = None

    def _inline_emph(self, inline: Emph, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        self._render_inlines(inline.inlines, paragraph, replace(fmt, italic=not fmt.italic), frame)

    def _inline_strong(self, inline: Strong, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        self._render_inlines(inline.inlines, paragraph, replace(fmt, bold=True), frame)

    def _inline_strikeout(self, inline: Strikeout, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        self._render_inlines(inline.inlines, paragraph, replace(fmt, strike=True), frame)

    def _inline_superscript(self, inline: Superscript, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        self._render_inlines(inline.inlines, paragraph, replace(fmt, superscript=True, subscript=False), frame)

    def _inline_subscript(self, inline: Subscript, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        self._render_inlines(inline.inlines, paragraph, replace(fmt, subscript=True, superscript=False), frame)

    def _inline_small_caps(self, inline: SmallCaps, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        self._render_inlines(inline.inlines, paragraph, replace(fmt, small_caps=True), frame)

    def _inline_code(self, inline: Code, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        self._add_text(paragraph, inline.text, replace(fmt, monospace=True), frame)

    def _inline_quoted(self, inline: Quoted, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        opening, closing = ("‘", "’") if inline.quote_type is QuoteType.SINGLE else ("“", "”")
        self._add_text(paragraph, opening, fmt, frame)
        self._render_inlines(inline.inlines, paragraph, fmt, frame)
        self._add_text(paragraph, closing, fmt, frame)

    def _inline_link(self, inline: Link, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        content = inline.inlines or (Str(inline.url),)
        if not inline.url:
            self._render_inlines(content, paragraph, fmt, frame)
            return
        if inline.url.startswith("#"):
            hyperlink = start_hyperlink(paragraph, anchor=self._bookmark_name(inline.url[1:]))
        else:
            r_id = paragraph.part.relate_to(inline.url, RT.HYPERLINK, is_external=True)
            hyperlink = start_hyperlink(paragraph, r_id=r_id)
        frame.state.last_run = None
        link_format = replace(fmt, underline=True, color=self._styles.link_color)
        self._render_inlines(content, paragraph, link_format, frame)
        adopt_following_runs(paragraph, hyperlink)
        frame.state.last_run = None

    def _inline_image(self, inline: Image, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        path = self._resolve_image(inline.url)
        if path is not None:
            try:
                shape = paragraph.add_run().add_picture(str(path))
            except (UnrecognizedImageError, OSError) as exc:
                LOGGER.warning("Could not embed image %s: %s", inline.url, exc)
            else:
                available = self._available_width(frame.state.doc)
                if shape.width > available:
                    shape.height = int(shape.height * available / shape.width)
                    shape.width = available
                frame.state.last_run = None
                return
        alt = stringify(inline.alt) or inline.url
        self._add_text(paragraph, f"[{alt}]", replace(fmt, italic=True), frame)

    def _resolve_image(self, url: str) -> Optional[Path]:
        if not url or "://" in url:
            return None
        path = Path(url)
        if not path.is_absolute() and self._resource_dir is not None:
            path = self._resource_dir / path
        return path if path.is_file() else None

    def _inline_math(self, inline: Math, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        if inline.math_type is MathType.DISPLAY:
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        self._add_text(paragraph, inline.text, replace(fmt, italic=True), frame)

    def _inline_raw_inline(self, inline: RawInline, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        if not self._accepts_raw(inline.format):
            return
        for element in parse_fragment(inline.text):
            paragraph._p.append(element)
        frame.state.last_run = None

    def _inline_note(self, inline: Note, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        frame.state.notes.append(inline.blocks)
        self._add_text(paragraph, str(len(frame.state.notes)), replace(fmt, superscript=True), frame)

    def _inline_span(self, inline: Span, paragraph, fmt: RunFormat, frame: _Frame) -> None:
        if "smallcaps" in inline.attr.classes:
            fmt = replace(fmt, small_caps=True)
        self._render_inlines(inline.inlines, paragraph, fmt, frame)
