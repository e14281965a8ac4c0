#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Constants and default values for the mdbridge library.

Constants are organized by category:
1. Type Definitions - Literal types shared by the tree and options
2. Tree Schema - Node and mark names, mark ordering
3. Parsing Defaults - Preprocessor and tokenizer settings
4. Rendering Defaults - Serializer settings
5. Image Resolution - Resolver endpoint layout
"""

from __future__ import annotations

from typing import Literal

# =============================================================================
# Type Definitions
# =============================================================================

Alignment = Literal["left", "center", "right"]
BulletMarker = Literal["-", "*", "+"]
MarkType = Literal["span", "link", "em", "strong", "code"]

# =============================================================================
# Tree Schema
# =============================================================================

ALIGNMENTS: frozenset[str] = frozenset({"left", "center", "right"})

# Opening order for marks that start and end together (outermost first)
MARK_PRIORITY: tuple[str, ...] = ("span", "link", "em", "strong", "code")

# Marks whose delimiters cannot sit next to whitespace on the inner side
DELIMITER_MARKS: frozenset[str] = frozenset({"em", "strong"})

INLINE_NODE_TYPES: frozenset[str] = frozenset({"text", "image", "hard_break"})
TEXTBLOCK_NODE_TYPES: frozenset[str] = frozenset({"paragraph", "heading", "code_block", "table_cell", "table_header"})

# Image attributes that can be carried by an attribute annotation
IMAGE_ANNOTATION_KEYS: tuple[str, ...] = ("width", "height", "maxWidth", "align")

# =============================================================================
# Parsing Defaults
# =============================================================================

DEFAULT_PREPROCESS = True
DEFAULT_CONVERT_HTML_IMAGES = True
DEFAULT_CONVERT_BADGES = True
DEFAULT_STRIP_HTML = True
DEFAULT_NORMALIZE_FOOTNOTES = True
DEFAULT_SEPARATE_CITATION_LINES = True
DEFAULT_PARSE_ATTRIBUTES = True
DEFAULT_PARSE_FRONTMATTER = True
DEFAULT_PARSE_TABLES = True

FALLBACK_DIAGNOSTIC_MESSAGE = (
    "This document could not be displayed because its Markdown content could not be parsed."
)

BADGE_CLASS_MARKER = "evidence-badge"

# Badge color name -> glyph, checked in this order against the badge's classes
BADGE_COLOR_GLYPHS: dict[str, str] = {
    "green": "\U0001f7e2",
    "yellow": "\U0001f7e1",
    "red": "\U0001f534",
    "blue": "\U0001f535",
}
DEFAULT_BADGE_GLYPH = "⚪"

# =============================================================================
# Rendering Defaults
# =============================================================================

DEFAULT_ESCAPE_SPECIAL = True
DEFAULT_BULLET_MARKER: BulletMarker = "-"
DEFAULT_EMIT_ATTRIBUTES = True
DEFAULT_CODE_FENCE_MIN = 3
DEFAULT_STRICT_RENDERING = False

# =============================================================================
# Image Resolution
# =============================================================================

DEFAULT_API_BASE_URL = "/api"
IMAGE_ENDPOINT_TEMPLATE = "{base}/tickets/{context_id}/pr/file-bytes?file_path={path}"
ABSOLUTE_SOURCE_PREFIXES: tuple[str, ...] = ("http", "data:")

# Unreserved characters kept as is when quoting a URI component
URI_COMPONENT_SAFE = "-_.!~*'()"
