#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/parsers/__init__.py
"""Parsers package initialization.

This package contains the parsers that build the mdbridge document tree
from text.
"""

from mdbridge.parsers.base import BaseParser
from mdbridge.parsers.markdown import MarkdownToTreeConverter, markdown_to_tree

__all__ = [
    "BaseParser",
    "MarkdownToTreeConverter",
    "markdown_to_tree",
]
