#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/api.py
"""High-level entry points for Markdown conversion.

The functions here wire the pieces together: frontmatter splitting,
preprocessing, tokenizing, serialization and image resolution. Parsing and
serialization are total for content problems; only misuse (wrong options
type, unsupported input type) raises.

"""

from __future__ import annotations

import logging
from dataclasses import fields
from pathlib import Path
from typing import IO, Any, Optional, TypeVar, Union

from mdbridge.ast import Document
from mdbridge.options.base import CloneFrozenMixin
from mdbridge.options.markdown import MarkdownParserOptions, MarkdownRendererOptions
from mdbridge.options.resolver import ResolverContext
from mdbridge.parsers.markdown import MarkdownToTreeConverter
from mdbridge.renderers.markdown import MarkdownRenderer
from mdbridge.utils.images import resolve_image_sources

logger = logging.getLogger(__name__)

OptionsT = TypeVar("OptionsT", bound=CloneFrozenMixin)


def _create_options_from_kwargs(
    options: Optional[OptionsT],
    options_class: type[OptionsT],
    options_type_name: str,
    **kwargs: Any,
) -> Optional[OptionsT]:
    """Apply keyword overrides to an options object.

    Parameters
    ----------
    options : OptionsT or None
        Pre-configured options; None starts from the defaults
    options_class : type
        Options class to instantiate when ``options`` is None
    options_type_name : str
        Name of the options type for logging (e.g., "parser" or "renderer")
    **kwargs
        Individual option overrides

    Returns
    -------
    OptionsT or None
        The updated options, or ``options`` unchanged when there are no
        overrides

    """
    if not kwargs:
        return options

    option_names = {field.name for field in fields(options_class)}
    valid_kwargs = {k: v for k, v in kwargs.items() if k in option_names}
    missing = [k for k in kwargs if k not in option_names]
    if missing:
        logger.debug(f"Skipping unknown {options_type_name} options: {missing}")

    if options is None:
        return options_class(**valid_kwargs)
    return options.create_updated(**valid_kwargs)


def parse_markdown(
    source: Union[str, Path, IO[bytes], IO[str], bytes],
    options: Optional[MarkdownParserOptions] = None,
    **kwargs: Any,
) -> Document:
    r"""Parse Markdown into a document tree.

    Runs the whole input pipeline: frontmatter split, preprocessing,
    tokenizing and tree building. Malformed content never raises; the
    parser falls back to plain-text paragraphs instead.

    Parameters
    ----------
    source : str, Path, IO or bytes
        Markdown text, a path to read, or an open stream. A ``str`` is
        always content, never a path.
    options : MarkdownParserOptions, optional
        Parser configuration
    kwargs : Any
        Individual parser options that override settings in ``options``

    Returns
    -------
    Document
        The parsed document

    Examples
    --------
    >>> doc = parse_markdown("---\nkey: v\n---\n\n# Hi")
    >>> doc.children[0].raw_yaml
    'key: v'
    >>> doc = parse_markdown("<b>raw</b>", preprocess=False)

    """
    options = _create_options_from_kwargs(options, MarkdownParserOptions, "parser", **kwargs)
    return MarkdownToTreeConverter(options).parse(source)


def serialize_markdown(
    doc: Document,
    options: Optional[MarkdownRendererOptions] = None,
    output: Union[str, Path, IO[bytes], IO[str], None] = None,
    **kwargs: Any,
) -> str:
    r"""Serialize a document tree to Markdown.

    Parameters
    ----------
    doc : Document
        Document to serialize
    options : MarkdownRendererOptions, optional
        Rendering configuration
    output : str, Path, IO or None, default None
        Where to also write the Markdown; None only returns it
    kwargs : Any
        Individual renderer options that override settings in ``options``

    Returns
    -------
    str
        Markdown text ending with a single newline (``""`` for an empty
        document)

    Raises
    ------
    RenderingError
        Only when ``strict`` rendering is enabled and a node cannot be
        rendered

    Examples
    --------
    >>> serialize_markdown(parse_markdown("# Hi {.lead}"))
    '# Hi {.lead}\n'

    """
    options = _create_options_from_kwargs(options, MarkdownRendererOptions, "renderer", **kwargs)
    renderer = MarkdownRenderer(options)
    markdown = renderer.render_to_string(doc)
    if output is not None:
        renderer.write_text_output(markdown, output)
    return markdown


def normalize_markdown(
    source: Union[str, Path, IO[bytes], IO[str], bytes],
    parser_options: Optional[MarkdownParserOptions] = None,
    renderer_options: Optional[MarkdownRendererOptions] = None,
) -> str:
    """Parse and re-serialize Markdown, producing its canonical form.

    Applying this twice gives the same result as applying it once.

    Parameters
    ----------
    source : str, Path, IO or bytes
        Markdown input
    parser_options : MarkdownParserOptions, optional
        Parser configuration
    renderer_options : MarkdownRendererOptions, optional
        Rendering configuration

    Returns
    -------
    str
        Normalized Markdown

    """
    return serialize_markdown(parse_markdown(source, parser_options), renderer_options)


def parse_for_display(
    source: Union[str, Path, IO[bytes], IO[str], bytes],
    context_id: Optional[str] = None,
    api_base_url: Optional[str] = None,
    context: Optional[ResolverContext] = None,
    options: Optional[MarkdownParserOptions] = None,
) -> Document:
    """Parse Markdown and resolve every image source for a viewer.

    Parameters
    ----------
    source : str, Path, IO or bytes
        Markdown input
    context_id, api_base_url, context
        Passed through to :func:`mdbridge.utils.images.resolve_image_url`
    options : MarkdownParserOptions, optional
        Parser configuration

    Returns
    -------
    Document
        Parsed document whose image sources point at servable URLs

    """
    doc = parse_markdown(source, options)
    return resolve_image_sources(doc, context_id=context_id, api_base_url=api_base_url, context=context)
