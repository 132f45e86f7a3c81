"""Common helpers shared by renderer implementations."""
from __future__ import annotations

from typing import Dict, Iterable, Tuple

from markdown_renderer.model.elements import ListNumberDelim, ListNumberStyle
from markdown_renderer.model.style_model import StyleSheet
from markdown_renderer.model.table_model import Alignment

GENERIC_FONT_FAMILIES = frozenset({"serif", "sans-serif", "monospace", "cursive", "fantasy", "system-ui"})
BULLETS = ("•", "◦", "▪")
ROMAN_NUMERALS = (
    (1000, "m"), (900, "cm"), (500, "d"), (400, "cd"), (100, "c"), (90, "xc"),
    (50, "l"), (40, "xl"), (10, "x"), (9, "ix"), (5, "v"), (4, "iv"), (1, "i"),
)

CssRules = Iterable[Tuple[str, Dict[str, str]]]


def bullet_marker(depth: int) -> str:
    return BULLETS[depth % len(BULLETS)]


def _roman(number: int) -> str:
    digits = []
    for value, numeral in ROMAN_NUMERALS:
        count, number = divmod(number, value)
        digits.append(numeral * count)
    return "".join(digits)


def _alpha(number: int) -> str:
    letters = ""
    while number > 0:
        number, remainder = divmod(number - 1, 26)
        letters = chr(ord("a") + remainder) + letters
    return letters


def list_marker(number: int, style: ListNumberStyle, delimiter: ListNumberDelim) -> str:
    """Format an ordered-list label such as ``3.``, ``c)`` or ``(iv)``."""
    if number <= 0 or style is ListNumberStyle.DECIMAL:
        label = str(number)
    elif style in (ListNumberStyle.LOWER_ROMAN, ListNumberStyle.UPPER_ROMAN):
        label = _roman(number)
    else:
        label = _alpha(number)
    if style in (ListNumberStyle.UPPER_ALPHA, ListNumberStyle.UPPER_ROMAN):
        label = label.upper()

    if delimiter is ListNumberDelim.TWO_PARENS:
        return f"({label})"
    if delimiter is ListNumberDelim.ONE_PAREN:
        return f"{label})"
    return f"{label}."


def hex_color(value: str) -> str:
    return f"#{value.lstrip('#').upper()}"


def font_stack(families: Iterable[str]) -> str:
    """Quote family names for CSS, leaving generic families bare."""
    return ", ".join(name if name in GENERIC_FONT_FAMILIES else f'"{name}"' for name in families)


def alignment_to_css(alignment: Alignment) -> Dict[str, str]:
    if alignment is Alignment.DEFAULT:
        return {}
    return {"text-align": alignment.value}


def declarations(style: Dict[str, str]) -> str:
    """Convert a property mapping into an inline CSS declaration list."""
    return "; ".join(f"{key}: {value}" for key, value in style.items())


def rules_to_css(rules: CssRules, indent: str = "    ") -> str:
    return "\n".join(f"{indent}{selector} {{ {declarations(style)}; }}" for selector, style in rules)


def stylesheet_rules(styles: StyleSheet) -> CssRules:
    """CSS rules equivalent to the resolved ``StyleSheet``."""
    table = styles.table
    border = f"{table.border_width}pt solid {hex_color(table.border_color)}"
    rules = [
        ("body", {
            "font-family": font_stack((styles.font_family, *styles.font_fallbacks)),
            "font-size": f"{styles.base_font_size}pt",
            "color": hex_color(styles.text_color),
        }),
        ("p", {"margin": f"0 0 {styles.paragraph_space_after}pt 0"}),
    ]
    for heading in styles.headings:
        rules.append((f"h{heading.level}", {
            "font-size": f"{heading.font_size}pt",
            "font-weight": "bold" if heading.bold else "normal",
            "color": hex_color(heading.color),
            "margin-top": f"{heading.space_before}pt",
            "margin-bottom": f"{heading.space_after}pt",
        }))
    rules.extend([
        ("header.title-block", {"text-align": "center"}),
        ("header.title-block .title", {"font-size": f"{styles.title_font_size}pt", "font-weight": "bold"}),
        ("header.title-block .subtitle", {"font-size": f"{styles.subtitle_font_size}pt"}),
        ("code, pre", {"font-family": font_stack((styles.code_font_family, "monospace"))}),
        ("a", {"color": hex_color(styles.link_color)}),
        ("blockquote", {"margin-left": f"{styles.indent_step}pt", "color": hex_color(styles.quote_color)}),
        ("dd", {"margin-left": f"{styles.indent_step}pt"}),
        ("hr", {"border": "none", "border-top": f"1px solid {hex_color(styles.rule_color)}"}),
        ("table", {"border-collapse": "collapse"}),
        ("th, td", {"border": border, "padding": f"{table.cell_padding}pt"}),
        ("thead th", {
            "background-color": hex_color(table.header_fill),
            "color": hex_color(table.header_text_color),
        }),
        ("tbody tr:nth-child(even)", {"background-color": hex_color(table.banded_fill)}),
        (".smallcaps", {"font-variant": "small-caps"}),
        (".footnote", {"font-size": "smaller", "vertical-align": "super"}),
        (".line-block", {"white-space": "pre-line"}),
        (".page-break", {"page-break-after": "always", "break-after": "page"}),
    ])
    return rules
