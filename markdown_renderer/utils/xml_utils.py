"""Helpers for WordprocessingML details python-docx has no API for."""
from __future__ import annotations

from typing import List

from docx.oxml import OxmlElement, parse_xml
from docx.oxml.ns import nsdecls, qn
from lxml import etree

from markdown_renderer.utils.errors import EncodingError
from markdown_renderer.utils.units import points_to_eighths, points_to_twips

THEME_FONT_ATTRIBUTES = ("w:asciiTheme", "w:hAnsiTheme", "w:eastAsiaTheme", "w:cstheme")
BORDER_EDGES = ("top", "left", "bottom", "right", "insideH", "insideV")

# Elements that must follow the inserted one, in schema order
PPR_AFTER_BORDER = (
    "w:shd", "w:tabs", "w:suppressAutoHyphens", "w:kinsoku", "w:wordWrap", "w:overflowPunct",
    "w:topLinePunct", "w:autoSpaceDE", "w:autoSpaceDN", "w:bidi", "w:adjustRightInd", "w:snapToGrid",
    "w:spacing", "w:ind", "w:contextualSpacing", "w:mirrorIndents", "w:suppressOverlap", "w:jc",
    "w:textDirection", "w:textAlignment", "w:textboxTightWrap", "w:outlineLvl", "w:divId", "w:cnfStyle",
    "w:rPr", "w:sectPr", "w:pPrChange",
)
TCPR_AFTER_SHADING = (
    "w:noWrap", "w:tcMar", "w:textDirection", "w:tcFitText", "w:vAlign", "w:hideMark", "w:headers",
    "w:cellIns", "w:cellDel", "w:cellMerge", "w:tcPrChange",
)
TBLPR_AFTER_BORDERS = ("w:shd", "w:tblLayout", "w:tblCellMar", "w:tblLook", "w:tblCaption", "w:tblDescription", "w:tblPrChange")
TBLPR_AFTER_MARGINS = ("w:tblLook", "w:tblCaption", "w:tblDescription", "w:tblPrChange")


def shade_cell(cell, fill: str) -> None:
    """Give a table cell a solid background fill."""
    tc_pr = cell._tc.get_or_add_tcPr()
    existing = tc_pr.find(qn("w:shd"))
    if existing is not None:
        tc_pr.remove(existing)
    shading = parse_xml(f'<w:shd {nsdecls("w")} w:val="clear" w:color="auto" w:fill="{fill}"/>')
    tc_pr.insert_element_before(shading, *TCPR_AFTER_SHADING)


def set_table_borders(table, width_pt: float, color: str) -> None:
    tbl_pr = table._tbl.tblPr
    existing = tbl_pr.find(qn("w:tblBorders"))
    if existing is not None:
        tbl_pr.remove(existing)
    size = points_to_eighths(width_pt)
    edges = "".join(
        f'<w:{edge} w:val="single" w:sz="{size}" w:space="0" w:color="{color}"/>' for edge in BORDER_EDGES
    )
    borders = parse_xml(f'<w:tblBorders {nsdecls("w")}>{edges}</w:tblBorders>')
    tbl_pr.insert_element_before(borders, *TBLPR_AFTER_BORDERS)


def set_cell_margins(table, padding_pt: float) -> None:
    tbl_pr = table._tbl.tblPr
    existing = tbl_pr.find(qn("w:tblCellMar"))
    if existing is not None:
        tbl_pr.remove(existing)
    width = points_to_twips(padding_pt)
    sides = "".join(f'<w:{side} w:w="{width}" w:type="dxa"/>' for side in ("top", "left", "bottom", "right"))
    margins = parse_xml(f'<w:tblCellMar {nsdecls("w")}>{sides}</w:tblCellMar>')
    tbl_pr.insert_element_before(margins, *TBLPR_AFTER_MARGINS)


def mark_header_row(row) -> None:
    """Repeat ``row`` at the top of each page the table spans."""
    tr_pr = row._tr.get_or_add_trPr()
    header = OxmlElement("w:tblHeader")
    header.set(qn("w:val"), "true")
    tr_pr.append(header)


def set_bottom_border(paragraph, color: str, width_pt: float = 0.75) -> None:
    p_pr = paragraph._p.get_or_add_pPr()
    border = parse_xml(
        f'<w:pBdr {nsdecls("w")}>'
        f'<w:bottom w:val="single" w:sz="{points_to_eighths(width_pt)}" w:space="1" w:color="{color}"/>'
        f"</w:pBdr>"
    )
    p_pr.insert_element_before(border, *PPR_AFTER_BORDER)


def clear_theme_fonts(style) -> None:
    """Drop theme font references so explicit font names take effect."""
    r_pr = style.element.rPr
    if r_pr is None or r_pr.rFonts is None:
        return
    for attribute in THEME_FONT_ATTRIBUTES:
        key = qn(attribute)
        if key in r_pr.rFonts.attrib:
            del r_pr.rFonts.attrib[key]


def start_hyperlink(paragraph, *, r_id: str | None = None, anchor: str | None = None):
    """Append an empty ``w:hyperlink`` to ``paragraph`` and return it."""
    hyperlink = OxmlElement("w:hyperlink")
    if r_id is not None:
        hyperlink.set(qn("r:id"), r_id)
    if anchor is not None:
        hyperlink.set(qn("w:anchor"), anchor)
    paragraph._p.append(hyperlink)
    return hyperlink


def adopt_following_runs(paragraph, hyperlink) -> None:
    """Move every element appended to ``paragraph`` after ``hyperlink`` into it."""
    children = list(paragraph._p)
    for child in children[children.index(hyperlink) + 1:]:
        hyperlink.append(child)


def add_bookmark(paragraph, bookmark_id: int, name: str) -> None:
    """Wrap the paragraph content in a bookmark named ``name``."""
    start = OxmlElement("w:bookmarkStart")
    start.set(qn("w:id"), str(bookmark_id))
    start.set(qn("w:name"), name)
    end = OxmlElement("w:bookmarkEnd")
    end.set(qn("w:id"), str(bookmark_id))
    p_pr = paragraph._p.pPr
    if p_pr is not None:
        p_pr.addnext(start)
    else:
        paragraph._p.insert(0, start)
    paragraph._p.append(end)


def parse_fragment(text: str) -> List:
    """Parse raw OpenXML markup (namespace prefixes may be undeclared).

    Raises ``EncodingError`` when the markup is not well-formed.
    """
    try:
        wrapper = parse_xml(f'<w:fragment {nsdecls("w", "r", "wp", "a", "pic")}>{text}</w:fragment>')
    except etree.XMLSyntaxError as exc:
        raise EncodingError(f"raw openxml is not well-formed: {exc}", context=text) from exc
    return list(wrapper)
