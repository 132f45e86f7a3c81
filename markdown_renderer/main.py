"""Entry-point for the Markdown rendering pipeline."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from markdown_renderer.model.document_model import Document
from markdown_renderer.model.style_model import StyleSheet
from markdown_renderer.parser.markdown_reader import MarkdownReader, ReaderOptions
from markdown_renderer.parser.style_resolver import resolve_stylesheet
from markdown_renderer.renderer.base import DocumentRenderer
from markdown_renderer.renderer.docx_renderer import DocxRenderer
from markdown_renderer.renderer.html_renderer import HtmlRenderer
from markdown_renderer.utils.debug import DebugDumper
from markdown_renderer.utils.errors import ConversionError, UnsupportedFormatError
from markdown_renderer.utils.logger import get_logger, set_verbosity

LOGGER = get_logger(__name__)

INPUT_FORMATS: Dict[str, tuple] = {"markdown": (".md", ".markdown", ".mdown", ".mkd", ".txt")}
INPUT_ALIASES = {"md": "markdown"}
OUTPUT_FORMATS: Dict[str, tuple] = {"html": (".html", ".htm"), "docx": (".docx",)}
DEFAULT_OUTPUT_FORMAT = "html"


def build_document(source: str, options: Optional[ReaderOptions] = None) -> Document:
    """Read Markdown text (with optional front matter) into the document model."""
    reader = MarkdownReader(options)
    return reader.read(source)


def resolve_styles(document: Document) -> StyleSheet:
    return resolve_stylesheet(document.meta)


def create_renderer(target: str, stylesheet: StyleSheet, resource_dir: Optional[Path] = None) -> DocumentRenderer:
    if target == "html":
        return HtmlRenderer(stylesheet)
    if target == "docx":
        return DocxRenderer(stylesheet, resource_dir=resource_dir)
    raise UnsupportedFormatError(f"unknown output format {target!r}; expected one of {', '.join(OUTPUT_FORMATS)}")


def render_document(
    document: Document,
    target: str,
    stylesheet: Optional[StyleSheet] = None,
    *,
    resource_dir: Optional[Path] = None,
) -> bytes:
    """Render ``document`` into the ``target`` format and return the bytes."""
    stylesheet = stylesheet or resolve_styles(document)
    return create_renderer(target, stylesheet, resource_dir).render(document)


def render_outputs(
    document: Document,
    output_dir: Path,
    *,
    stem: str = "document",
    html: bool = True,
    docx: bool = False,
    resource_dir: Optional[Path] = None,
) -> List[Path]:
    """Render the requested formats into ``output_dir``.

    Every format is rendered to memory before anything is written, so a
    failing renderer leaves no partial output behind.
    """
    stylesheet = resolve_styles(document)
    targets = [name for name, wanted in (("html", html), ("docx", docx)) if wanted]
    rendered = {
        target: render_document(document, target, stylesheet, resource_dir=resource_dir) for target in targets
    }

    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for target, data in rendered.items():
        path = output_dir / f"{stem}.{target}"
        path.write_bytes(data)
        written.append(path)
    return written


def detect_format(path: Path, formats: Dict[str, tuple]) -> Optional[str]:
    suffix = path.suffix.lower()
    for name, suffixes in formats.items():
        if suffix in suffixes:
            return name
    return None


def normalize_input_format(name: Optional[str], path: Optional[Path]) -> str:
    if name is None:
        detected = detect_format(path, INPUT_FORMATS) if path is not None else None
        return detected or "markdown"
    resolved = INPUT_ALIASES.get(name.lower(), name.lower())
    if resolved not in INPUT_FORMATS:
        raise UnsupportedFormatError(f"unknown input format {name!r}; expected one of {', '.join(INPUT_FORMATS)}")
    return resolved


def normalize_output_format(name: Optional[str], path: Optional[Path]) -> str:
    if name is None:
        if path is None:
            return DEFAULT_OUTPUT_FORMAT
        detected = detect_format(path, OUTPUT_FORMATS)
        if detected is None:
            raise UnsupportedFormatError(f"cannot infer an output format from {path.name!r}; pass --to")
        return detected
    if name.lower() not in OUTPUT_FORMATS:
        raise UnsupportedFormatError(f"unknown output format {name!r}; expected one of {', '.join(OUTPUT_FORMATS)}")
    return name.lower()


def convert(
    source: str,
    target: str,
    *,
    options: Optional[ReaderOptions] = None,
    resource_dir: Optional[Path] = None,
    debug_dir: Optional[Path] = None,
) -> bytes:
    """Run the Markdown -> document model -> renderer pipeline on ``source``."""
    LOGGER.info("Reading Markdown source (%d characters)", len(source))
    document = build_document(source, options)
    stylesheet = resolve_styles(document)
    if debug_dir is not None:
        DebugDumper(debug_dir).dump(document, stylesheet)
    LOGGER.info("Rendering %d blocks as %s", len(document.blocks), target)
    return render_document(document, target, stylesheet, resource_dir=resource_dir)


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markdown-renderer",
        description="Render Markdown with YAML front matter and grid tables into HTML or DOCX",
    )
    parser.add_argument("input", nargs="?", help="Path to the input Markdown file, or '-' for stdin")
    parser.add_argument("-o", "--output", help="Output file (defaults to stdout for stdin input)")
    parser.add_argument("-f", "--from", dest="input_format", help="Input format (markdown)")
    parser.add_argument("-t", "--to", dest="output_format", help="Output format (html, docx)")
    parser.add_argument("--list-formats", action="store_true", help="List supported formats and exit")
    parser.add_argument("--strict-tables", action="store_true", help="Fail on malformed grid tables")
    parser.add_argument("--debug-dir", help="Directory to write the document model and stylesheet as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)
    set_verbosity(args.verbose)

    if args.list_formats:
        print("Input formats:  " + ", ".join(INPUT_FORMATS))
        print("Output formats: " + ", ".join(OUTPUT_FORMATS))
        return 0
    if args.input is None:
        parser.error("an input file (or '-') is required")

    input_path = None if args.input == "-" else Path(args.input)
    output_path = Path(args.output) if args.output else None
    try:
        normalize_input_format(args.input_format, input_path)
        target = normalize_output_format(args.output_format, output_path)
        if input_path is None:
            source = sys.stdin.read()
            resource_dir = Path.cwd()
        else:
            source = input_path.read_text(encoding="utf-8")
            resource_dir = input_path.resolve().parent
            if output_path is None:
                output_path = input_path.with_suffix(OUTPUT_FORMATS[target][0])

        options = ReaderOptions(strict_tables=args.strict_tables)
        debug_dir = Path(args.debug_dir) if args.debug_dir else None
        data = convert(source, target, options=options, resource_dir=resource_dir, debug_dir=debug_dir)
    except (ConversionError, OSError, UnicodeDecodeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if output_path is None:
        sys.stdout.buffer.write(data)
        sys.stdout.flush()
    else:
        try:
            output_path.write_bytes(data)
        except OSError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        LOGGER.info("Wrote %s", output_path)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(cli())
