#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/parsers/base.py
"""Base classes for document parsers.

This module defines the abstract base class for parsers that turn text into
the mdbridge document tree.

"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, Union

from mdbridge.ast import Document
from mdbridge.exceptions import InvalidOptionsError, ValidationError
from mdbridge.options.base import BaseParserOptions

logger = logging.getLogger(__name__)

ParserInput = Union[str, Path, IO[bytes], IO[str], bytes]


class BaseParser(ABC):
    """Abstract base class for document parsers.

    Parameters
    ----------
    options : BaseParserOptions or None, default = None
        Format-specific parsing options

    Examples
    --------
    Creating a custom parser:

        >>> from mdbridge.parsers.base import BaseParser
        >>> from mdbridge.ast import Document
        >>>
        >>> class EmptyParser(BaseParser):
        ...     def parse(self, input_data):
        ...         return Document(children=[])

    Notes
    -----
    A plain ``str`` is always treated as document content, never as a path.
    Pass a ``Path`` to read from a file.

    """

    def __init__(self, options: BaseParserOptions | None = None):
        """Initialize the parser with optional configuration."""
        self.options: BaseParserOptions | None = options

    @staticmethod
    def _validate_options_type(options: BaseParserOptions | None, expected_type: type, parser_name: str) -> None:
        """Validate that options are of the correct type for this parser.

        Parameters
        ----------
        options : BaseParserOptions or None
            The options object to validate
        expected_type : type
            The expected options class type
        parser_name : str
            Name of the parser (for error messages)

        Raises
        ------
        InvalidOptionsError
            If options are not None and not an instance of expected_type

        """
        if options is not None and not isinstance(options, expected_type):
            raise InvalidOptionsError(
                converter_name=parser_name,
                expected_type=expected_type,
                received_type=type(options),
            )

    @abstractmethod
    def parse(self, input_data: ParserInput) -> Document:
        """Parse the input into a document tree.

        Parameters
        ----------
        input_data : str, Path, IO or bytes
            Document content, a path to read, or an open stream

        Returns
        -------
        Document
            The parsed document

        """
        pass

    @staticmethod
    def _load_text_content(input_data: ParserInput) -> str:
        """Load text from the supported input types.

        Bytes are decoded as UTF-8; undecodable bytes are replaced rather
        than rejected.

        Raises
        ------
        ValidationError
            If the input type is not supported

        """
        if isinstance(input_data, str):
            return input_data
        if isinstance(input_data, bytes):
            return input_data.decode("utf-8", errors="replace")
        if isinstance(input_data, Path):
            return input_data.read_bytes().decode("utf-8", errors="replace")
        if hasattr(input_data, "read"):
            data = input_data.read()
            if isinstance(data, bytes):
                return data.decode("utf-8", errors="replace")
            return str(data)
        raise ValidationError(
            f"Unsupported input type: {type(input_data).__name__}",
            parameter_name="input_data",
            parameter_value=input_data,
        )
