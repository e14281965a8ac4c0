#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/utils/__init__.py
"""Utility modules for the mdbridge package.

This package contains the text-level helpers used around the parser and
serializer: frontmatter splitting, preprocessing, escaping, attribute
annotations and image source resolution.
"""

from mdbridge.utils.frontmatter import (
    frontmatter_pairs,
    load_frontmatter,
    pairs_to_frontmatter,
    render_frontmatter,
    split_frontmatter,
)
from mdbridge.utils.images import resolve_image_sources, resolve_image_url
from mdbridge.utils.preprocess import preprocess_markdown

__all__ = [
    "frontmatter_pairs",
    "load_frontmatter",
    "pairs_to_frontmatter",
    "render_frontmatter",
    "split_frontmatter",
    "preprocess_markdown",
    "resolve_image_url",
    "resolve_image_sources",
]
