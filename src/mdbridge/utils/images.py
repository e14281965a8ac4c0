#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/utils/images.py
"""Image source resolution.

Stored documents reference images by repository-relative path. Before a
tree is handed to a viewer, those paths are mapped to a servable API
endpoint. Absolute URLs and data URIs pass through untouched.

"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

from mdbridge.ast.nodes import Document, Image, Node
from mdbridge.ast.visitors import NodeTransformer
from mdbridge.constants import (
    ABSOLUTE_SOURCE_PREFIXES,
    DEFAULT_API_BASE_URL,
    IMAGE_ENDPOINT_TEMPLATE,
    URI_COMPONENT_SAFE,
)
from mdbridge.options.resolver import ResolverContext

logger = logging.getLogger(__name__)

_RELATIVE_PREFIXES = ("/", "./", "../")


def is_absolute_source(src: str) -> bool:
    """Whether ``src`` is an absolute (``http``/``https``) URL or a data URI."""
    return src.startswith(ABSOLUTE_SOURCE_PREFIXES)


def clean_relative_path(path: str) -> str:
    """Strip any number of leading ``/``, ``./`` and ``../`` tokens.

    Examples
    --------
    >>> clean_relative_path("../../img/./a.png")
    'img/./a.png'

    """
    while path.startswith(_RELATIVE_PREFIXES):
        for prefix in ("../", "./", "/"):
            if path.startswith(prefix):
                path = path[len(prefix) :]
                break
    return path


def resolve_image_url(
    src: str,
    context_id: Optional[str] = None,
    api_base_url: Optional[str] = None,
    context: Optional[ResolverContext] = None,
) -> str:
    """Map a stored image path to a servable URL.

    Parameters
    ----------
    src : str
        Image source as stored in the document
    context_id : str, optional
        Identifier of the ticket the document belongs to. Without it the
        source is returned unchanged.
    api_base_url : str, optional
        API base; defaults to the context's base URL, then ``/api``
    context : ResolverContext, optional
        Read-only session context supplying the access token. Without it
        the URL is unauthenticated.

    Returns
    -------
    str
        The resolved URL

    Examples
    --------
    >>> resolve_image_url("https://x/y.png", "ticket1", "/api")
    'https://x/y.png'
    >>> resolve_image_url("../img/a.png", "ticket1", "/api")
    '/api/tickets/ticket1/pr/file-bytes?file_path=img%2Fa.png'

    """
    if not src or is_absolute_source(src):
        return src
    if not context_id:
        return src

    context = context or ResolverContext()
    base = api_base_url or context.api_base_url or DEFAULT_API_BASE_URL
    url = IMAGE_ENDPOINT_TEMPLATE.format(
        base=base,
        context_id=context_id,
        path=quote(clean_relative_path(src), safe=URI_COMPONENT_SAFE),
    )

    if context.access_token:
        separator = "&" if "?" in url else "?"
        url = f"{url}{separator}token={quote(context.access_token, safe=URI_COMPONENT_SAFE)}"
    return url


class _ImageSourceResolver(NodeTransformer):
    """Rewrite every image source through :func:`resolve_image_url`."""

    def __init__(self, context_id: Optional[str], api_base_url: Optional[str], context: Optional[ResolverContext]):
        self.context_id = context_id
        self.api_base_url = api_base_url
        self.context = context

    def visit_image(self, node: Image) -> Node:
        resolved = resolve_image_url(node.src, self.context_id, self.api_base_url, self.context)
        if resolved == node.src:
            return node
        logger.debug("Resolved image source %s -> %s", node.src, resolved)
        return node.with_attrs(src=resolved)


def resolve_image_sources(
    doc: Document,
    context_id: Optional[str] = None,
    api_base_url: Optional[str] = None,
    context: Optional[ResolverContext] = None,
) -> Document:
    """Return a copy of ``doc`` with every image source resolved.

    The input tree is not modified; subtrees without images are shared
    between the input and the result.

    Parameters
    ----------
    doc : Document
        Parsed document
    context_id, api_base_url, context
        Passed through to :func:`resolve_image_url`

    Returns
    -------
    Document
        The updated document

    """
    result = _ImageSourceResolver(context_id, api_base_url, context).transform(doc)
    assert isinstance(result, Document)
    return result
