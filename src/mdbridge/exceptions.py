#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Custom exceptions for the mdbridge library.

This module defines specialized exception classes for the error conditions
that can occur while converting between Markdown text and the document tree.
Most content problems never surface as exceptions: parsing and serialization
degrade locally instead. The classes here cover the failures a caller can
actually act on (wrong options, invalid positions, schema violations).

Exception Hierarchy
-------------------
- MdBridgeError (base exception)

  - ValidationError (parameter/option validation)
    - InvalidOptionsError (wrong options class for parser/renderer)
    - SchemaError (document tree violates the content model)

  - ParsingError (tokenizer failures, recovered by the fallback ladder)

  - RenderingError (serializer failures in strict mode)

  - PositionError (invalid document position for an edit)

"""

from typing import Any


class MdBridgeError(Exception):
    """Base exception class for all mdbridge-specific errors.

    Catching this will catch all library-specific errors.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(MdBridgeError):
    """Exception raised for invalid input parameters or options.

    Parameters
    ----------
    message : str
        Description of the validation error
    parameter_name : str, optional
        Name of the invalid parameter
    parameter_value : any, optional
        The invalid value that was provided
    original_error : Exception, optional
        The original exception that caused this error

    Attributes
    ----------
    parameter_name : str or None
        The name of the problematic parameter
    parameter_value : any
        The value that caused the error

    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any = None,
        original_error: Exception | None = None,
    ):
        """Initialize the validation error with parameter details."""
        super().__init__(message, original_error=original_error)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value


class InvalidOptionsError(ValidationError):
    """Exception raised when an incorrect options class is provided.

    For example, passing MarkdownRendererOptions to the parser.

    Parameters
    ----------
    converter_name : str
        Name of the parser or renderer that received invalid options
    expected_type : type
        The expected options class type
    received_type : type
        The actual options class type that was received
    message : str, optional
        Custom error message. If not provided, generates a helpful message
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(
        self,
        converter_name: str,
        expected_type: type,
        received_type: type,
        message: str | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize the invalid options error."""
        if message is None:
            message = (
                f"{converter_name} expected options of type '{expected_type.__name__}' "
                f"but received '{received_type.__name__}'."
            )
        super().__init__(
            message, parameter_name="options", parameter_value=received_type, original_error=original_error
        )
        self.converter_name = converter_name
        self.expected_type = expected_type
        self.received_type = received_type


class SchemaError(ValidationError):
    """Exception raised when a document tree violates the content model.

    Parameters
    ----------
    errors : list of str
        Every violation found, in document order
    message : str, optional
        Custom error message. Defaults to the first violation

    Attributes
    ----------
    errors : list of str
        The collected violations

    """

    def __init__(self, errors: list[str], message: str | None = None):
        """Initialize the schema error from the collected violations."""
        if message is None:
            first = errors[0] if errors else "unknown violation"
            extra = f" (and {len(errors) - 1} more)" if len(errors) > 1 else ""
            message = f"Document tree violates the schema: {first}{extra}"
        super().__init__(message, parameter_name="document")
        self.errors = list(errors)


class ParsingError(MdBridgeError):
    """Exception raised when the Markdown tokenizer fails.

    Public parse entry points catch this and fall back to plain-text
    reconstruction, so callers normally never see it.

    Parameters
    ----------
    message : str
        Description of the parsing failure
    parsing_stage : str, optional
        The stage of parsing where the error occurred
    original_error : Exception, optional
        The underlying exception that caused the parsing failure

    """

    def __init__(self, message: str, parsing_stage: str | None = None, original_error: Exception | None = None):
        """Initialize the parsing error."""
        super().__init__(message, original_error)
        self.parsing_stage = parsing_stage


class RenderingError(MdBridgeError):
    """Exception raised when serialization fails in strict mode.

    Parameters
    ----------
    message : str
        Description of the rendering failure
    rendering_stage : str, optional
        The node type or stage where the error occurred
    original_error : Exception, optional
        The underlying exception that caused the rendering failure

    """

    def __init__(self, message: str, rendering_stage: str | None = None, original_error: Exception | None = None):
        """Initialize the rendering error."""
        super().__init__(message, original_error)
        self.rendering_stage = rendering_stage


class PositionError(MdBridgeError):
    """Exception raised for a document position that does not address a node.

    Parameters
    ----------
    position : int
        The offending document position
    message : str, optional
        Custom error message

    Attributes
    ----------
    position : int
        The offending document position

    """

    def __init__(self, position: int, message: str | None = None):
        """Initialize the position error."""
        if message is None:
            message = f"No node starts at document position {position}"
        super().__init__(message)
        self.position = position


__all__ = [
    "MdBridgeError",
    "ValidationError",
    "InvalidOptionsError",
    "SchemaError",
    "ParsingError",
    "RenderingError",
    "PositionError",
]
