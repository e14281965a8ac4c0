"""Utility functions for cli output."""

#  Copyright (c) 2025 Tom Villani, Ph.D.

# src/mdbridge/cli/output.py
import argparse
import sys
from typing import IO, Optional


def should_use_rich_output(args: argparse.Namespace, stream: Optional[IO[str]] = None) -> bool:
    """Determine if Rich output should be used based on TTY and args.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command line arguments
    stream : optional, default None
        Uses sys.stdout unless otherwise specified.

    Returns
    -------
    bool
        True if Rich output should be used

    Notes
    -----
    Rich output is used when the --rich flag is set and either --force-rich
    is set or the stream is a TTY.

    """
    if not getattr(args, "rich", False):
        return False

    if getattr(args, "force_rich", False):
        return True

    target = stream or sys.stdout
    isatty = getattr(target, "isatty", None)
    return bool(callable(isatty) and isatty())


def _console(stream: Optional[IO[str]] = None):  # type: ignore[no-untyped-def]
    from rich.console import Console

    return Console(file=stream or sys.stdout, soft_wrap=True)


def write_json(text: str, use_rich: bool, stream: Optional[IO[str]] = None) -> None:
    """Write a JSON document, highlighted when Rich output is enabled."""
    if use_rich:
        _console(stream).print_json(text)
        return
    target = stream or sys.stdout
    target.write(text if text.endswith("\n") else text + "\n")


def write_markdown(text: str, use_rich: bool, stream: Optional[IO[str]] = None) -> None:
    """Write Markdown source, syntax-highlighted when Rich output is enabled."""
    if use_rich:
        from rich.syntax import Syntax

        _console(stream).print(Syntax(text, "markdown", word_wrap=True))
        return
    (stream or sys.stdout).write(text)


def write_text(text: str, use_rich: bool, stream: Optional[IO[str]] = None) -> None:
    """Write plain text followed by a newline."""
    if use_rich:
        _console(stream).print(text, markup=False, highlight=False)
        return
    (stream or sys.stdout).write(text + "\n")


def write_validation_report(errors: list[str], use_rich: bool, stream: Optional[IO[str]] = None) -> None:
    """Report schema validation results.

    Parameters
    ----------
    errors : list of str
        Violations; empty when the document is valid
    use_rich : bool
        Render a table with Rich
    stream : optional, default None
        Uses sys.stdout unless otherwise specified.

    """
    if use_rich:
        from rich.table import Table

        console = _console(stream)
        if not errors:
            console.print("[green]Document is valid[/green]")
            return
        table = Table(title="Schema violations")
        table.add_column("#", justify="right")
        table.add_column("Violation")
        for index, error in enumerate(errors, start=1):
            table.add_row(str(index), error)
        console.print(table)
        return

    target = stream or sys.stdout
    if not errors:
        target.write("Document is valid\n")
        return
    for error in errors:
        target.write(f"{error}\n")
