#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Context for image URL resolution.

The resolver never reads session state on its own. Whatever credentials or
defaults the host application has are passed in through ResolverContext.
"""
# src/mdbridge/options/resolver.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from mdbridge.options.base import CloneFrozenMixin


@dataclass(frozen=True)
class ResolverContext(CloneFrozenMixin):
    """Read-only context consulted by the image URL resolver.

    Parameters
    ----------
    access_token : str or None, default None
        Token appended to resolved URLs as a ``token`` query parameter.
        None means an unauthenticated URL.
    api_base_url : str or None, default None
        API base used when the caller does not pass one explicitly.
        Falls back to ``/api`` when both are None.

    """

    access_token: Optional[str] = field(
        default=None,
        metadata={"help": "Access token appended to resolved image URLs", "importance": "core"},
    )
    api_base_url: Optional[str] = field(
        default=None,
        metadata={"help": "Default API base URL for resolved image URLs", "importance": "core"},
    )
