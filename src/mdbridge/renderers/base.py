#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/renderers/base.py
"""Base classes for document tree renderers.

This module defines the abstract base class for renderers that turn the
mdbridge document tree back into text.

"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, Union

from mdbridge.ast import Document
from mdbridge.exceptions import InvalidOptionsError
from mdbridge.options.base import BaseRendererOptions


class BaseRenderer(ABC):
    """Abstract base class for document tree renderers.

    Parameters
    ----------
    options : BaseRendererOptions or None, default = None
        Format-specific rendering options

    """

    def __init__(self, options: BaseRendererOptions | None = None):
        """Initialize the renderer with optional configuration."""
        self.options = options

    @abstractmethod
    def render_to_string(self, doc: Document) -> str:
        """Render the document to a string.

        Parameters
        ----------
        doc : Document
            Document to render

        Returns
        -------
        str
            Rendered text

        """
        pass

    def render(self, doc: Document, output: Union[str, Path, IO[bytes], IO[str]]) -> None:
        """Render the document and write it to a path or stream.

        Parameters
        ----------
        doc : Document
            Document to render
        output : str, Path, IO[bytes] or IO[str]
            File path, or a binary or text stream

        """
        self.write_text_output(self.render_to_string(doc), output)

    @staticmethod
    def _validate_options_type(options: BaseRendererOptions | None, expected_type: type, renderer_name: str) -> None:
        """Validate that options are of the correct type for this renderer.

        Raises
        ------
        InvalidOptionsError
            If options are not None and not an instance of expected_type

        """
        if options is not None and not isinstance(options, expected_type):
            raise InvalidOptionsError(
                converter_name=renderer_name,
                expected_type=expected_type,
                received_type=type(options),
            )

    @staticmethod
    def write_text_output(text: str, output: Union[str, Path, IO[bytes], IO[str]]) -> None:
        """Write text to a file path or a text/binary stream.

        Raises
        ------
        TypeError
            If the output type is not supported

        """
        if isinstance(output, (str, Path)):
            Path(output).write_text(text, encoding="utf-8")
        elif hasattr(output, "write"):
            if hasattr(output, "mode") and "b" in getattr(output, "mode", ""):
                output.write(text.encode("utf-8"))  # type: ignore[arg-type]
            else:
                try:
                    output.write(text)  # type: ignore[arg-type]
                except TypeError:
                    output.write(text.encode("utf-8"))  # type: ignore[arg-type]
        else:
            raise TypeError(f"Unsupported output type: {type(output).__name__}")
