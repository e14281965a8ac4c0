"""mdbridge - bidirectional Markdown and document tree conversion.

mdbridge converts Markdown into a typed, ProseMirror-compatible document
tree and back. On top of CommonMark it understands a YAML frontmatter
block, ``{.class}`` attribute annotations, pipe tables with per-cell
alignment, extended image attributes and span marks. Footnote syntax and
inline HTML are normalized away before tokenizing.

Key Features
------------
- Total parsing: malformed input degrades to plain-text paragraphs
- Round-trip stable serialization for the supported syntax subset
- Integer document positions and immutable positional edits
- JSON persistence of the tree
- Image source resolution for viewers

Examples
--------
Parse, edit and re-serialize:

    >>> from mdbridge import parse_markdown, serialize_markdown, set_node_attrs
    >>> doc = parse_markdown("# Title\\n\\nBody text")
    >>> doc = set_node_attrs(doc, 0, **{"class": "lead"})
    >>> serialize_markdown(doc)
    '# Title {.lead}\\n\\nBody text\\n'

Map a plain-text range onto the tree:

    >>> from mdbridge import map_text_range_to_doc_range
    >>> map_text_range_to_doc_range(doc, 5, 4)
    DocRange(start=8, end=12)

See Also
--------
mdbridge.ast : Tree node definitions and utilities

"""

#  Copyright (c) 2025 Tom Villani, Ph.D.

# Check Python version before any imports
import sys

if sys.version_info < (3, 10):
    raise ImportError(
        "mdbridge requires Python 3.10 or later. "
        f"You are using Python {sys.version_info.major}.{sys.version_info.minor}."
    )

__version__ = "1.0.0"

from mdbridge.api import normalize_markdown, parse_for_display, parse_markdown, serialize_markdown
from mdbridge.ast import (
    DocRange,
    Document,
    delete_node,
    dict_to_doc,
    doc_to_dict,
    doc_to_json,
    json_to_doc,
    map_text_range_to_doc_range,
    node_at,
    replace_text,
    set_node_attrs,
    text_between,
    text_content,
    validate_document,
)
from mdbridge.exceptions import (
    InvalidOptionsError,
    MdBridgeError,
    ParsingError,
    PositionError,
    RenderingError,
    SchemaError,
    ValidationError,
)
from mdbridge.options import MarkdownParserOptions, MarkdownRendererOptions, ResolverContext
from mdbridge.utils.frontmatter import split_frontmatter
from mdbridge.utils.images import resolve_image_sources, resolve_image_url
from mdbridge.utils.preprocess import preprocess_markdown

__all__ = [
    "__version__",
    # Conversion
    "parse_markdown",
    "serialize_markdown",
    "normalize_markdown",
    "parse_for_display",
    "preprocess_markdown",
    "split_frontmatter",
    "resolve_image_url",
    "resolve_image_sources",
    # Tree
    "Document",
    "DocRange",
    "text_content",
    "text_between",
    "map_text_range_to_doc_range",
    "node_at",
    "set_node_attrs",
    "replace_text",
    "delete_node",
    "validate_document",
    # Persistence
    "doc_to_dict",
    "dict_to_doc",
    "doc_to_json",
    "json_to_doc",
    # Options
    "MarkdownParserOptions",
    "MarkdownRendererOptions",
    "ResolverContext",
    # Exceptions
    "MdBridgeError",
    "ValidationError",
    "InvalidOptionsError",
    "SchemaError",
    "ParsingError",
    "RenderingError",
    "PositionError",
]
