#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/utils/attributes.py
"""Attribute annotation grammar and its tokenizer extension.

An annotation is a brace-delimited list of tokens on a single line::

    {.lead .wide width=320 align="center" style="text-align:right"}

Recognized tokens are ``.class``, ``#id`` (accepted and ignored),
``key=value``, ``key="value"`` and ``key='value'``. Any other brace body is
not an annotation and stays literal text.

Two inline rules are added to the mistune inline parser:

- ``attr_annotation`` emits an ``{"type": "attr_annotation", "raw": ...}``
  token for every valid annotation. Deciding what the annotation attaches
  to (block, image or preceding word) is left to the tree builder, which
  sees the whole block.
- ``bracketed_span`` turns ``[inline text]{.cls}`` into a
  ``{"type": "bracketed_span", "children": [...], "attrs": {"class": ...}}``
  token.

"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping, Optional

from mdbridge.constants import ALIGNMENTS

if TYPE_CHECKING:
    from mistune.core import InlineState
    from mistune.inline_parser import InlineParser
    from mistune.markdown import Markdown

logger = logging.getLogger(__name__)

ANNOTATION_PATTERN = r"\{[^{}\n]*\}"

# One level of nested brackets is allowed so spans can wrap links and images
_SPAN_TEXT = r"(?:\\[\s\S]|[^\[\]\\]|\[(?:\\[\s\S]|[^\[\]\\])*\])+"
BRACKETED_SPAN_PATTERN = r"\[" + _SPAN_TEXT + r"\]\{[^{}\n]*\}"

_BRACKETED_SPAN_RE = re.compile(r"\[(" + _SPAN_TEXT + r")\]\{([^{}\n]*)\}")

_NAME_CHARS = r"[^\s{}.#=\"']+"
_ATTRIBUTE_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"\.(?P<cls>" + _NAME_CHARS + r")"
    r"|\#(?P<id>" + _NAME_CHARS + r")"
    r"|(?P<key>[A-Za-z_][\w:-]*)=(?:\"(?P<dq>[^\"]*)\"|'(?P<sq>[^']*)'|(?P<bare>[^\s{}\"']+))"
    r")"
)
_TEXT_ALIGN_RE = re.compile(r"text-align\s*:\s*([A-Za-z]+)", re.IGNORECASE)
_BARE_VALUE_RE = re.compile(r"[^\s{}\"']+")


@dataclass(frozen=True)
class Annotation:
    """Parsed attribute annotation.

    Parameters
    ----------
    classes : tuple of str
        Class names in source order
    identifier : str or None
        Value of a ``#id`` token; kept for completeness, never attached
    values : dict
        ``key=value`` pairs; quoted values are unquoted

    """

    classes: tuple[str, ...] = ()
    identifier: Optional[str] = None
    values: dict[str, str] = field(default_factory=dict, hash=False)

    @property
    def class_name(self) -> Optional[str]:
        """Space-joined class list, or None when there are no classes."""
        return " ".join(self.classes) if self.classes else None

    @property
    def text_align(self) -> Optional[str]:
        """Alignment from a ``style="text-align:VALUE"`` entry."""
        style = self.values.get("style")
        if not style:
            return None
        m = _TEXT_ALIGN_RE.search(style)
        if m and m.group(1).lower() in ALIGNMENTS:
            return m.group(1).lower()
        return None


def parse_annotation(text: str) -> Optional[Annotation]:
    """Parse ``{...}`` annotation text.

    Parameters
    ----------
    text : str
        Annotation text including the braces

    Returns
    -------
    Annotation or None
        The parsed annotation, or None if the text is not a valid annotation

    Examples
    --------
    >>> parse_annotation("{.a .b width=10}").class_name
    'a b'
    >>> parse_annotation("{not an annotation}") is None
    True

    """
    if len(text) < 2 or text[0] != "{" or text[-1] != "}":
        return None
    body = text[1:-1]
    if not body.strip() or "\n" in body:
        return None

    classes: list[str] = []
    identifier: Optional[str] = None
    values: dict[str, str] = {}
    pos = 0
    while pos < len(body):
        if not body[pos:].strip():
            break
        m = _ATTRIBUTE_TOKEN_RE.match(body, pos)
        if m is None:
            return None
        # Tokens must be separated by whitespace
        if m.end() < len(body) and not body[m.end()].isspace():
            return None
        if m.group("cls") is not None:
            if m.group("cls") not in classes:
                classes.append(m.group("cls"))
        elif m.group("id") is not None:
            identifier = m.group("id")
        else:
            value = next(v for v in (m.group("dq"), m.group("sq"), m.group("bare")) if v is not None)
            values[m.group("key")] = value
        pos = m.end()

    return Annotation(classes=tuple(classes), identifier=identifier, values=values)


def format_number(value: Any) -> str:
    """Format a dimension so it parses back to the same number.

    Floats keep their decimal point (``120.0``), so an integral float does
    not come back as an int.
    """
    return repr(value) if isinstance(value, float) else str(value)


def _format_value(value: str) -> str:
    if value and _BARE_VALUE_RE.fullmatch(value):
        return value
    if '"' in value:
        return f"'{value}'"
    return f'"{value}"'


def format_annotation(class_name: Optional[str] = None, values: Optional[Mapping[str, Any]] = None) -> str:
    """Build annotation text from a class list and key/value pairs.

    Parameters
    ----------
    class_name : str or None
        Space-separated class list
    values : mapping, optional
        Key/value pairs; None values are skipped

    Returns
    -------
    str
        The annotation, or an empty string when there is nothing to emit

    Examples
    --------
    >>> format_annotation("lead wide", {"width": 320, "align": None})
    '{.lead .wide width=320}'

    """
    parts = [f".{name}" for name in (class_name or "").split()]
    for key, value in (values or {}).items():
        if value is None:
            continue
        text = format_number(value) if isinstance(value, (int, float)) else str(value)
        parts.append(f"{key}={_format_value(text)}")
    if not parts:
        return ""
    return "{" + " ".join(parts) + "}"


# ============================================================================
# Tokenizer extension
# ============================================================================


def parse_attr_annotation(inline: InlineParser, m: re.Match[str], state: InlineState) -> Optional[int]:
    """Emit an annotation token, or fall back to literal text."""
    raw = m.group(0)
    if parse_annotation(raw) is None:
        return None
    state.append_token({"type": "attr_annotation", "raw": raw})
    return m.end()


def parse_bracketed_span(inline: InlineParser, m: re.Match[str], state: InlineState) -> Optional[int]:
    """Emit a span token for ``[inline text]{.cls}``."""
    match = _BRACKETED_SPAN_RE.match(state.src, m.start())
    if match is None:
        return None
    annotation = parse_annotation("{" + match.group(2) + "}")
    if annotation is None or not annotation.classes:
        return None

    new_state = state.copy()
    new_state.src = match.group(1)
    children = inline.render(new_state)
    state.append_token(
        {"type": "bracketed_span", "children": children, "attrs": {"class": annotation.class_name}}
    )
    return match.end()


def attributes(md: Markdown) -> None:
    """Mistune plugin adding attribute annotations and bracketed spans.

    Both rules run before the link rule so that ``[text]{.cls}`` is read as
    a span rather than as literal brackets.
    """
    md.inline.register("bracketed_span", BRACKETED_SPAN_PATTERN, parse_bracketed_span, before="link")
    md.inline.register("attr_annotation", ANNOTATION_PATTERN, parse_attr_annotation, before="link")


def install_attribute_syntax(md: Any) -> bool:
    """Install :func:`attributes` on a mistune instance if it supports it.

    Parameters
    ----------
    md : mistune.Markdown
        Markdown instance to extend

    Returns
    -------
    bool
        True if the rules are active, False if the inline parser cannot
        register rules (annotations then stay literal text)

    """
    inline = getattr(md, "inline", None)
    if inline is None or not callable(getattr(inline, "register", None)):
        logger.debug("Inline parser does not support rule registration; attribute annotations disabled")
        return False
    try:
        attributes(md)
    except (AttributeError, TypeError, ValueError) as e:
        logger.debug("Could not install attribute annotation rules: %s", e)
        return False
    return True
