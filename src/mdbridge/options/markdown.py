#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Configuration options for Markdown parsing and rendering.

This module defines the options for converting Markdown text into the
document tree and serializing the tree back to Markdown.
"""
# src/mdbridge/options/markdown.py


from __future__ import annotations

from dataclasses import dataclass, field

from mdbridge.constants import (
    DEFAULT_BULLET_MARKER,
    DEFAULT_CODE_FENCE_MIN,
    DEFAULT_CONVERT_BADGES,
    DEFAULT_CONVERT_HTML_IMAGES,
    DEFAULT_EMIT_ATTRIBUTES,
    DEFAULT_ESCAPE_SPECIAL,
    DEFAULT_NORMALIZE_FOOTNOTES,
    DEFAULT_PARSE_ATTRIBUTES,
    DEFAULT_PARSE_TABLES,
    DEFAULT_PREPROCESS,
    DEFAULT_SEPARATE_CITATION_LINES,
    DEFAULT_STRIP_HTML,
    BulletMarker,
)
from mdbridge.options.base import BaseParserOptions, BaseRendererOptions


@dataclass(frozen=True)
class MarkdownParserOptions(BaseParserOptions):
    """Configuration options for Markdown-to-tree parsing.

    Parameters
    ----------
    preprocess : bool, default True
        Whether to run the text preprocessor at all. When False every
        rewrite below is skipped.
    convert_html_images : bool, default True
        Rewrite ``<img>`` tags as Markdown image syntax.
    convert_badges : bool, default True
        Rewrite evidence-badge ``<div>``/``<span>`` tags as emphasized
        glyph-prefixed text.
    strip_html : bool, default True
        Remove remaining HTML tags and comments, keeping their inner text.
    normalize_footnotes : bool, default True
        Turn footnote definitions into list items and footnote references
        into bracket citations.
    separate_citation_lines : bool, default True
        Start a new paragraph before lines that begin with a ``[N]`` citation.
    parse_attributes : bool, default True
        Recognize ``{.class key=value}`` annotations and bracketed spans.
    parse_tables : bool, default True
        Recognize pipe tables.

    """

    preprocess: bool = field(
        default=DEFAULT_PREPROCESS,
        metadata={"help": "Run the text preprocessor before tokenizing", "cli_name": "no-preprocess", "importance": "core"},
    )
    convert_html_images: bool = field(
        default=DEFAULT_CONVERT_HTML_IMAGES,
        metadata={
            "help": "Rewrite <img> tags as Markdown images",
            "cli_name": "no-convert-html-images",
            "importance": "advanced",
        },
    )
    convert_badges: bool = field(
        default=DEFAULT_CONVERT_BADGES,
        metadata={
            "help": "Rewrite evidence badges as emphasized glyph text",
            "cli_name": "no-convert-badges",
            "importance": "advanced",
        },
    )
    strip_html: bool = field(
        default=DEFAULT_STRIP_HTML,
        metadata={"help": "Strip remaining HTML tags and comments", "cli_name": "no-strip-html", "importance": "advanced"},
    )
    normalize_footnotes: bool = field(
        default=DEFAULT_NORMALIZE_FOOTNOTES,
        metadata={
            "help": "Rewrite footnotes as list items and bracket citations",
            "cli_name": "no-normalize-footnotes",
            "importance": "core",
        },
    )
    separate_citation_lines: bool = field(
        default=DEFAULT_SEPARATE_CITATION_LINES,
        metadata={
            "help": "Start a new paragraph before lines beginning with [N]",
            "cli_name": "no-separate-citation-lines",
            "importance": "advanced",
        },
    )
    parse_attributes: bool = field(
        default=DEFAULT_PARSE_ATTRIBUTES,
        metadata={
            "help": "Recognize {.class} attribute annotations and bracketed spans",
            "cli_name": "no-parse-attributes",
            "importance": "core",
        },
    )
    parse_tables: bool = field(
        default=DEFAULT_PARSE_TABLES,
        metadata={"help": "Parse table syntax (pipe tables)", "cli_name": "no-parse-tables", "importance": "core"},
    )

    def __post_init__(self) -> None:
        """Validate options by calling parent validation."""
        super().__post_init__()


@dataclass(frozen=True)
class MarkdownRendererOptions(BaseRendererOptions):
    r"""Markdown rendering options for converting the tree to Markdown text.

    Parameters
    ----------
    escape_special : bool, default True
        Whether to escape special Markdown characters in text content.
        When True, characters like \*, \`, \[, \], \{, \} and \\ are escaped
        so that the output re-parses to the same text.
    bullet_marker : {"-", "\*", "+"}, default "-"
        Marker used for bullet list items.
    emit_attributes : bool, default True
        Whether to emit ``{.class}`` annotations for classes, image
        dimensions/alignment and cell alignment overrides.
    code_fence_min : int, default 3
        Minimum number of backticks in a code block fence.

    """

    escape_special: bool = field(
        default=DEFAULT_ESCAPE_SPECIAL,
        metadata={
            "help": "Escape special Markdown characters in text content",
            "cli_name": "no-escape-special",
            "importance": "core",
        },
    )
    bullet_marker: BulletMarker = field(
        default=DEFAULT_BULLET_MARKER,
        metadata={"help": "Marker for bullet list items", "choices": ["-", "*", "+"], "importance": "core"},
    )
    emit_attributes: bool = field(
        default=DEFAULT_EMIT_ATTRIBUTES,
        metadata={
            "help": "Emit {.class} attribute annotations",
            "cli_name": "no-emit-attributes",
            "importance": "core",
        },
    )
    code_fence_min: int = field(
        default=DEFAULT_CODE_FENCE_MIN,
        metadata={"help": "Minimum number of backticks in a code fence", "type": int, "importance": "advanced"},
    )

    def __post_init__(self) -> None:
        """Validate option values.

        Raises
        ------
        ValueError
            If any field value is outside its valid range.

        """
        super().__post_init__()
        if self.bullet_marker not in ("-", "*", "+"):
            raise ValueError(f"bullet_marker must be one of '-', '*', '+', got {self.bullet_marker!r}")
        if self.code_fence_min < 3:
            raise ValueError(f"code_fence_min must be at least 3, got {self.code_fence_min}")
