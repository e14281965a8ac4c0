#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/renderers/__init__.py
"""Renderers package initialization.

This package contains the renderers that turn the mdbridge document tree
back into text.
"""

from mdbridge.renderers.base import BaseRenderer
from mdbridge.renderers.markdown import MarkdownRenderer, tree_to_markdown

__all__ = [
    "BaseRenderer",
    "MarkdownRenderer",
    "tree_to_markdown",
]
