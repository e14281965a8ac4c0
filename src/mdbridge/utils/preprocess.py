#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/utils/preprocess.py
"""Text rewrites applied to Markdown before tokenization.

The preprocessor normalizes content produced by other tools into the
Markdown subset the parser understands:

1. ``<img>`` tags become Markdown images
2. evidence badges become emphasized glyph-prefixed text
3. remaining HTML tags and comments are stripped, keeping inner text
4. footnote definitions become list items, footnote references become
   bracket citations
5. lines starting with a ``[N]`` citation get their own paragraph

Fenced code blocks are never rewritten, and the HTML steps skip inline
code spans. Escaped syntax (``\\<b>``, ``\\[^1]``) is left alone so that
serializer output passes through unchanged.

"""

from __future__ import annotations

import html
import logging
import re
from typing import Callable, Optional

from mdbridge.constants import BADGE_CLASS_MARKER, BADGE_COLOR_GLYPHS, DEFAULT_BADGE_GLYPH
from mdbridge.options.markdown import MarkdownParserOptions
from mdbridge.utils.escape import escape_markdown_text, format_link_target
from mdbridge.utils.frontmatter import normalize_newlines

logger = logging.getLogger(__name__)

_FENCE_OPEN_RE = re.compile(
    r"^(?:[ \t]*>)*[ \t]*(?:(?:[-+*]|\d{1,9}[.)])[ \t]+)*(?P<fence>`{3,}|~{3,})(?P<info>[^\n]*)$"
)
_FENCE_CLOSE_RE = re.compile(r"^(?:[ \t]*>)*[ \t]*(?P<fence>`{3,}|~{3,})[ \t]*$")
_CODE_SPAN_RE = re.compile(r"(?<!`)(`+)(?!`)[\s\S]*?(?<!`)\1(?!`)")

_IMG_TAG_RE = re.compile(r"(?<!\\)<img\b[^>]*>", re.IGNORECASE)
_IMG_ATTR_RE = re.compile(
    r"(?<![\w-])(?P<name>src|alt|title)\s*=\s*(?:\"(?P<dq>[^\"]*)\"|'(?P<sq>[^']*)')", re.IGNORECASE
)
_BADGE_RE = re.compile(
    r"(?<!\\)<(?P<tag>div|span)\b[^>]*\bclass\s*=\s*([\"'])[^\"']*"
    + re.escape(BADGE_CLASS_MARKER)
    + r"[^\"']*\2[^>]*>[\s\S]*?</(?P=tag)\s*>",
    re.IGNORECASE,
)
_HTML_COMMENT_RE = re.compile(r"(?<!\\)<!--[\s\S]*?-->")
_HTML_TAG_RE = re.compile(r"(?<!\\)</?[A-Za-z][A-Za-z0-9-]*(?:\s[^<>]*)?/?>")

_FOOTNOTE_DEF_RE = re.compile(r"^\[\^(?P<label>[^\]\s]+)\]:[ \t]*(?P<content>.*)$")
_FOOTNOTE_REF_RE = re.compile(r"(?<!\\)\[\^(?P<label>[^\]\s]+)\](?![:({])")
_CITATION_LINE_RE = re.compile(r"^\[\d+\]")


# ============================================================================
# Segmentation
# ============================================================================


def split_code_fences(text: str) -> list[tuple[bool, str]]:
    """Split text into fenced-code and other segments.

    Parameters
    ----------
    text : str
        Markdown text with ``\\n`` line endings

    Returns
    -------
    list of tuple of (bool, str)
        ``(is_code, chunk)`` pairs; joining the chunks gives back ``text``.
        An unclosed fence runs to the end of the text.

    """
    segments: list[tuple[bool, str]] = []
    current: list[str] = []
    fence: Optional[str] = None

    for line in text.split("\n"):
        if fence is None:
            m = _FENCE_OPEN_RE.match(line)
            if m and not (m.group("fence")[0] == "`" and "`" in m.group("info")):
                if current:
                    segments.append((False, "\n".join(current)))
                current = [line]
                fence = m.group("fence")
                continue
            current.append(line)
        else:
            current.append(line)
            m = _FENCE_CLOSE_RE.match(line)
            if m and m.group("fence")[0] == fence[0] and len(m.group("fence")) >= len(fence):
                segments.append((True, "\n".join(current)))
                current = []
                fence = None

    if current or not segments:
        segments.append((fence is not None, "\n".join(current)))

    # Re-attach the newlines consumed by the join between segments
    return [(is_code, chunk + "\n") for is_code, chunk in segments[:-1]] + [segments[-1]]


def map_outside_code_spans(text: str, func: Callable[[str], str]) -> str:
    """Apply ``func`` to the parts of ``text`` outside inline code spans."""
    parts: list[str] = []
    pos = 0
    for m in _CODE_SPAN_RE.finditer(text):
        parts.append(func(text[pos : m.start()]))
        parts.append(m.group(0))
        pos = m.end()
    parts.append(func(text[pos:]))
    return "".join(parts)


# ============================================================================
# HTML rewrites
# ============================================================================


def _img_tag_to_markdown(m: re.Match[str]) -> str:
    attrs: dict[str, str] = {}
    for attr in _IMG_ATTR_RE.finditer(m.group(0)):
        name = attr.group("name").lower()
        if name not in attrs:
            value = attr.group("dq") if attr.group("dq") is not None else attr.group("sq")
            attrs[name] = html.unescape(value)
    if "src" not in attrs:
        # Left for the tag stripper
        return m.group(0)
    alt = escape_markdown_text(attrs.get("alt", ""))
    return f"![{alt}]{format_link_target(attrs['src'], attrs.get('title') or None)}"


def convert_html_images(text: str) -> str:
    """Rewrite ``<img>`` tags as Markdown images.

    Attribute order does not matter and ``alt`` defaults to an empty
    string. Only ``src``, ``alt`` and ``title`` are read; a tag without
    ``src`` is left in place.

    Examples
    --------
    >>> convert_html_images('<img src="a.png" alt="A">')
    '![A](a.png)'
    >>> convert_html_images("<IMG SRC='b.png' title='Fig'>")
    '![](b.png "Fig")'

    """
    return _IMG_TAG_RE.sub(_img_tag_to_markdown, text)


def _badge_to_markdown(m: re.Match[str]) -> str:
    from bs4 import BeautifulSoup

    soup = BeautifulSoup(m.group(0), "html.parser")
    tag = soup.find(m.group("tag").lower())
    if tag is None:
        return m.group(0)

    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()

    glyph = DEFAULT_BADGE_GLYPH
    for color, color_glyph in BADGE_COLOR_GLYPHS.items():
        if any(color in name.lower() for name in classes):
            glyph = color_glyph
            break

    label = " ".join(tag.get_text(" ").split())
    if not label:
        return f"*{glyph}*"
    return f"*{glyph} {escape_markdown_text(label)}*"


def convert_badges(text: str) -> str:
    """Rewrite evidence badges as emphasized glyph-prefixed text.

    A badge is a ``<div>`` or ``<span>`` whose class list contains
    ``evidence-badge``. The glyph is picked from the first badge color
    (green, yellow, red, blue) found in the class list.

    Examples
    --------
    >>> convert_badges('<span class="evidence-badge badge-green">Strong</span>')
    '*\U0001f7e2 Strong*'

    """
    return _BADGE_RE.sub(_badge_to_markdown, text)


def strip_html(text: str) -> str:
    """Remove HTML tags and comments, keeping their inner text.

    Autolinks such as ``<https://example.com>`` are not tags and are kept.

    Examples
    --------
    >>> strip_html("Some <b>bold</b> text<!-- note -->")
    'Some bold text'

    """
    text = _HTML_COMMENT_RE.sub("", text)
    return _HTML_TAG_RE.sub("", text)


# ============================================================================
# Footnotes and citations
# ============================================================================


def _continuation(line: str) -> Optional[str]:
    """Return the line without its footnote indentation, or None if not indented."""
    if line.startswith("\t"):
        return line[1:]
    if line.startswith("    "):
        return line[4:]
    return None


def _next_is_continuation(lines: list[str], start: int) -> bool:
    """Whether the blank run starting at ``start`` is followed by an indented line."""
    i = start
    while i < len(lines) and not lines[i].strip():
        i += 1
    return i < len(lines) and _continuation(lines[i]) is not None


def rewrite_footnote_references(text: str) -> str:
    """Rewrite ``[^label]`` references as ``[label]`` citations.

    Definitions, and links or spans whose text starts with ``^``, are
    left alone.

    Examples
    --------
    >>> rewrite_footnote_references("See [^1] and [^note].")
    'See [1] and [note].'

    """
    return _FOOTNOTE_REF_RE.sub(r"[\g<label>]", text)


def rewrite_footnote_definitions(text: str) -> str:
    """Turn footnote definitions into list items.

    ``[^3]: text`` becomes ``3. text`` and ``[^key]: text`` becomes
    ``- [key] text``. Indented continuation lines, and blank lines followed
    by such lines, are folded into the item, indented to its content
    column. A blank line is inserted before a new footnote list when the
    previous line is not blank, and after a definition when the next line
    is ordinary text.

    Examples
    --------
    >>> rewrite_footnote_definitions("Text\\n[^1]: Some note.")
    'Text\\n\\n1. Some note.'

    """
    lines = text.split("\n")
    out: list[str] = []
    previous_kind: Optional[str] = None
    i = 0

    while i < len(lines):
        m = _FOOTNOTE_DEF_RE.match(lines[i])
        if m is None:
            out.append(lines[i])
            previous_kind = None
            i += 1
            continue

        label = m.group("label")
        kind = "ordered" if label.isdigit() else "bullet"
        if kind != previous_kind and out and out[-1].strip():
            out.append("")
        marker = f"{label}." if kind == "ordered" else "-"
        head = f"{marker} {m.group('content')}" if kind == "ordered" else f"- [{label}] {m.group('content')}"
        out.append(head.rstrip())
        indent = " " * max(3, len(marker) + 1)
        previous_kind = kind
        i += 1

        while i < len(lines):
            line = lines[i]
            if not line.strip():
                if not _next_is_continuation(lines, i):
                    break
                out.append("")
                i += 1
                continue
            body = _continuation(line)
            if body is None:
                break
            out.append(indent + body)
            i += 1

        # An unindented line right after the item would be a lazy continuation
        if i < len(lines) and lines[i].strip() and _FOOTNOTE_DEF_RE.match(lines[i]) is None:
            out.append("")

    return "\n".join(out)


def separate_citation_lines(text: str) -> str:
    """Start a new paragraph before every line that begins with ``[N]``.

    Examples
    --------
    >>> separate_citation_lines("Sources:\\n[1] First\\n[2] Second")
    'Sources:\\n\\n[1] First\\n\\n[2] Second'

    """
    out: list[str] = []
    for line in text.split("\n"):
        if _CITATION_LINE_RE.match(line) and out and out[-1].strip():
            out.append("")
        out.append(line)
    return "\n".join(out)


# ============================================================================
# Pipeline
# ============================================================================


def _preprocess_segment(text: str, options: MarkdownParserOptions) -> str:
    if options.convert_html_images:
        text = map_outside_code_spans(text, convert_html_images)
    if options.convert_badges:
        text = map_outside_code_spans(text, convert_badges)
    if options.strip_html:
        text = map_outside_code_spans(text, strip_html)
    if options.normalize_footnotes:
        text = map_outside_code_spans(text, rewrite_footnote_references)
        text = rewrite_footnote_definitions(text)
    if options.separate_citation_lines:
        text = separate_citation_lines(text)
    return text


def preprocess_markdown(text: str, options: Optional[MarkdownParserOptions] = None) -> str:
    """Rewrite raw Markdown into the subset the parser understands.

    Parameters
    ----------
    text : str
        Markdown body (frontmatter already removed)
    options : MarkdownParserOptions, optional
        Which rewrites to apply; all are enabled by default

    Returns
    -------
    str
        Rewritten Markdown. Line endings are always normalized to ``\\n``,
        even when preprocessing is disabled.

    Examples
    --------
    >>> preprocess_markdown("See [^1].\\n[^1]: Some note.")
    'See [1].\\n\\n1. Some note.'

    """
    options = options or MarkdownParserOptions()
    text = normalize_newlines(text)
    if not options.preprocess:
        return text

    parts = []
    for is_code, chunk in split_code_fences(text):
        if is_code:
            parts.append(chunk)
            continue
        # Keep the newline that separates this chunk from the next fence
        trailing = "\n" if chunk.endswith("\n") else ""
        body = chunk[:-1] if trailing else chunk
        parts.append(_preprocess_segment(body, options) + trailing)

    result = "".join(parts)
    logger.debug("Preprocessed %d characters into %d", len(text), len(result))
    return result
