#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/cli/__init__.py
"""Command-line interface for mdbridge.

Subcommands
-----------
parse
    Print the document tree of a Markdown file as JSON
format
    Parse and re-serialize, producing normalized Markdown
preprocess
    Print the preprocessed Markdown body
text
    Print the plain text content
validate
    Check the parsed tree (or a tree JSON file) against the schema
resolve-image
    Resolve a stored image path to a servable URL

"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any

from mdbridge.cli.config import CONFIG_ENV_VAR, build_options, load_config_with_priority
from mdbridge.cli.output import (
    should_use_rich_output,
    write_json,
    write_markdown,
    write_text,
    write_validation_report,
)
from mdbridge.exceptions import (
    MdBridgeError,
    ParsingError,
    RenderingError,
    ValidationError,
)
from mdbridge.logging_utils import configure_logging

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_VALIDATION_ERROR = 3
EXIT_FILE_ERROR = 4
EXIT_PARSING_ERROR = 6
EXIT_RENDERING_ERROR = 7


def get_exit_code_for_exception(exception: Exception) -> int:
    """Map an exception to an appropriate CLI exit code.

    Parameters
    ----------
    exception : Exception
        The exception to map to an exit code

    Returns
    -------
    int
        The appropriate exit code for the exception type

    """
    if isinstance(exception, (ValidationError, argparse.ArgumentTypeError, ValueError)):
        return EXIT_VALIDATION_ERROR

    if isinstance(exception, OSError):
        return EXIT_FILE_ERROR

    if isinstance(exception, ParsingError):
        return EXIT_PARSING_ERROR

    if isinstance(exception, RenderingError):
        return EXIT_RENDERING_ERROR

    return EXIT_ERROR


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="mdbridge",
        description="Convert Markdown to a typed document tree and back.",
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument("--log-file", help="Also write log messages to this file")
    parser.add_argument(
        "--log-file-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Level for --log-file (default: same as --log-level)",
    )
    parser.add_argument("--trace", action="store_true", help="Debug logging with timestamps and logger names")
    parser.add_argument("--config", help=f"Configuration file (default: ${CONFIG_ENV_VAR} or discovered)")
    parser.add_argument("--no-config", action="store_true", help="Ignore configuration files")
    parser.add_argument("--rich", action="store_true", help="Pretty output with Rich when writing to a terminal")
    parser.add_argument("--force-rich", action="store_true", help="Use Rich output even when not on a terminal")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    parse_cmd = subparsers.add_parser("parse", help="Print the document tree as JSON")
    parse_cmd.add_argument("input", help="Markdown file, or - for stdin")
    parse_cmd.add_argument("--indent", type=int, default=2, help="JSON indentation (default: 2)")

    format_cmd = subparsers.add_parser("format", help="Parse and re-serialize Markdown")
    format_cmd.add_argument("input", help="Markdown file, or - for stdin")
    format_cmd.add_argument("-o", "--out", help="Write the result to this file instead of stdout")

    preprocess_cmd = subparsers.add_parser("preprocess", help="Print the preprocessed Markdown body")
    preprocess_cmd.add_argument("input", help="Markdown file, or - for stdin")

    text_cmd = subparsers.add_parser("text", help="Print the plain text content")
    text_cmd.add_argument("input", help="Markdown file, or - for stdin")

    validate_cmd = subparsers.add_parser("validate", help="Validate the document tree")
    validate_cmd.add_argument("input", help="Markdown file (or tree JSON with --json), or - for stdin")
    validate_cmd.add_argument("--json", action="store_true", help="Input is a tree JSON document")

    resolve_cmd = subparsers.add_parser("resolve-image", help="Resolve an image path to a servable URL")
    resolve_cmd.add_argument("src", help="Image source as stored in the document")
    resolve_cmd.add_argument("--context-id", help="Ticket identifier")
    resolve_cmd.add_argument("--api-base", help="API base URL (default: /api)")
    resolve_cmd.add_argument("--token", help="Access token appended as a token query parameter")

    return parser


def _setup_logging_level(parsed_args: argparse.Namespace) -> None:
    """Set up logging level based on command-line arguments."""
    # --trace takes precedence over --log-level
    log_level = logging.DEBUG if parsed_args.trace else getattr(logging, parsed_args.log_level.upper())
    configure_logging(
        log_level,
        log_file=parsed_args.log_file,
        trace_mode=parsed_args.trace,
        file_level=parsed_args.log_file_level,
    )


def _read_input(source: str) -> str:
    """Read an input file, or stdin for ``-``."""
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_bytes().decode("utf-8", errors="replace")


def _load_options(parsed_args: argparse.Namespace) -> tuple[Any, Any, Any]:
    """Load configuration files and build option objects."""
    env_path = None if parsed_args.no_config else os.environ.get(CONFIG_ENV_VAR)
    config = load_config_with_priority(
        explicit_path=parsed_args.config,
        env_var_path=env_path,
        discover=not parsed_args.no_config,
    )
    if config:
        logger.debug("Loaded configuration sections: %s", ", ".join(sorted(config)))
    return build_options(config)


def _run_command(parsed_args: argparse.Namespace) -> int:
    """Execute the selected subcommand."""
    # Lazy imports keep --help fast
    from mdbridge.api import parse_markdown, serialize_markdown
    from mdbridge.ast import doc_to_json, json_to_doc, text_content, validate_document
    from mdbridge.utils.images import resolve_image_url
    from mdbridge.utils.preprocess import preprocess_markdown

    parser_options, renderer_options, resolver_context = _load_options(parsed_args)
    use_rich = should_use_rich_output(parsed_args)
    command = parsed_args.command

    if command == "resolve-image":
        context = resolver_context
        if parsed_args.token:
            context = context.create_updated(access_token=parsed_args.token)
        url = resolve_image_url(
            parsed_args.src,
            context_id=parsed_args.context_id,
            api_base_url=parsed_args.api_base,
            context=context,
        )
        write_text(url, use_rich)
        return EXIT_SUCCESS

    content = _read_input(parsed_args.input)

    if command == "preprocess":
        from mdbridge.utils.frontmatter import split_frontmatter

        _frontmatter, body = split_frontmatter(content) if parser_options.parse_frontmatter else (None, content)
        write_markdown(preprocess_markdown(body, parser_options), use_rich)
        return EXIT_SUCCESS

    if command == "validate" and parsed_args.json:
        doc = json_to_doc(content, validate_schema=False)
    else:
        doc = parse_markdown(content, parser_options)

    if command == "parse":
        write_json(doc_to_json(doc, indent=parsed_args.indent), use_rich)
    elif command == "format":
        markdown = serialize_markdown(doc, renderer_options)
        if parsed_args.out:
            Path(parsed_args.out).write_text(markdown, encoding="utf-8")
        else:
            write_markdown(markdown, use_rich)
    elif command == "text":
        write_text(text_content(doc), use_rich)
    elif command == "validate":
        errors = validate_document(doc, raise_on_error=False)
        write_validation_report(errors, use_rich)
        return EXIT_VALIDATION_ERROR if errors else EXIT_SUCCESS

    return EXIT_SUCCESS


def main(args: list[str] | None = None) -> int:
    """Execute main CLI entry point.

    Parameters
    ----------
    args : list of str, optional
        Command-line arguments; defaults to ``sys.argv[1:]``

    Returns
    -------
    int
        Process exit code

    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.version:
        from mdbridge import __version__

        print(f"mdbridge {__version__}")
        return EXIT_SUCCESS

    if not parsed_args.command:
        parser.print_help(sys.stderr)
        return EXIT_VALIDATION_ERROR

    _setup_logging_level(parsed_args)

    try:
        return _run_command(parsed_args)
    except (MdBridgeError, argparse.ArgumentTypeError, OSError, ValueError) as e:
        exit_code = get_exit_code_for_exception(e)
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return exit_code


__all__ = ["main", "create_parser", "get_exit_code_for_exception"]
