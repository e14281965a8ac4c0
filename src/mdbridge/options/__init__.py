#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Configuration options for mdbridge.

Every option class is a frozen dataclass. Use ``create_updated`` (or
:func:`create_updated_options`) to derive a modified copy.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from mdbridge.options.base import BaseParserOptions, BaseRendererOptions, CloneFrozenMixin
from mdbridge.options.markdown import MarkdownParserOptions, MarkdownRendererOptions
from mdbridge.options.resolver import ResolverContext


def create_updated_options(options: Any, **kwargs: Any) -> Any:
    """Create a new options instance with updated values.

    Parameters
    ----------
    options : Any
        The original options instance (must be a dataclass)
    **kwargs : Any
        Field names and their new values

    Returns
    -------
    Any
        New options instance with the updated values

    """
    return replace(options, **kwargs)


__all__ = [
    "CloneFrozenMixin",
    "BaseParserOptions",
    "BaseRendererOptions",
    "MarkdownParserOptions",
    "MarkdownRendererOptions",
    "ResolverContext",
    "create_updated_options",
]
