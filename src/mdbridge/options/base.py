#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Base classes for parser and renderer options.

This module defines the foundation classes for the option dataclasses used
by the Markdown parser, the Markdown renderer and the image resolver.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, replace
from typing import Any

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

from mdbridge.constants import DEFAULT_PARSE_FRONTMATTER, DEFAULT_STRICT_RENDERING


@dataclass(frozen=True)
class CloneFrozenMixin:
    """Mixin providing frozen dataclass cloning capabilities.

    This mixin adds the ability to create modified copies of frozen dataclass
    instances, which is useful for immutable configuration objects.
    """

    def create_updated(self, **kwargs: Any) -> Self:
        """Create a new instance with updated field values.

        Parameters
        ----------
        **kwargs : Any
            Field names and their new values

        Returns
        -------
        Self
            New instance with specified fields updated

        """
        return replace(self, **kwargs)


@dataclass(frozen=True)
class BaseRendererOptions(CloneFrozenMixin):
    """Base class for renderer options.

    Parameters
    ----------
    strict : bool, default=False
        Whether to raise RenderingError when a node cannot be emitted.
        If False (default), the node is skipped with a warning and
        rendering continues.

    """

    strict: bool = field(
        default=DEFAULT_STRICT_RENDERING,
        metadata={
            "help": "Raise RenderingError when a node cannot be rendered instead of skipping it",
            "importance": "advanced",
        },
    )

    def __post_init__(self) -> None:
        """Hook for subclass validation."""
        pass


@dataclass(frozen=True)
class BaseParserOptions(CloneFrozenMixin):
    """Base class for parser options.

    Parameters
    ----------
    parse_frontmatter : bool
        Whether to split a leading ``---`` block off the input and keep it
        as a frontmatter node

    """

    parse_frontmatter: bool = field(
        default=DEFAULT_PARSE_FRONTMATTER,
        metadata={
            "help": "Keep a leading --- delimited block as a frontmatter node",
            "cli_name": "no-parse-frontmatter",
            "importance": "core",
        },
    )

    def __post_init__(self) -> None:
        """Hook for subclass validation."""
        pass
