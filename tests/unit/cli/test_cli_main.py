#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/cli/test_cli_main.py
"""Unit tests for the mdbridge command-line entry point."""

import argparse
import io
import json
import logging

import pytest

from mdbridge.cli import (
    EXIT_ERROR,
    EXIT_FILE_ERROR,
    EXIT_PARSING_ERROR,
    EXIT_RENDERING_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    get_exit_code_for_exception,
    main,
)
from mdbridge.cli.output import should_use_rich_output, write_validation_report
from mdbridge.exceptions import MdBridgeError, ParsingError, RenderingError, ValidationError


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Keep CLI logging setup from leaking into other tests."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
def no_config_env(monkeypatch):
    monkeypatch.delenv("MDBRIDGE_CONFIG", raising=False)


@pytest.fixture
def markdown_file(tmp_path):
    def _write(text, name="doc.md"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)

    return _write


@pytest.mark.cli
class TestMainBasics:
    """Tests for global flags."""

    def test_version(self, capsys):
        """Test --version output."""
        assert main(["--version"]) == EXIT_SUCCESS
        assert capsys.readouterr().out.strip() == "mdbridge 1.0.0"

    def test_no_command(self, capsys):
        """Test that a missing subcommand prints help."""
        assert main([]) == EXIT_VALIDATION_ERROR
        assert "usage:" in capsys.readouterr().err

    def test_missing_file(self, capsys, tmp_path):
        """Test the exit code for an unreadable input."""
        assert main(["--no-config", "parse", str(tmp_path / "missing.md")]) == EXIT_FILE_ERROR
        assert capsys.readouterr().err.startswith("Error:")

    def test_log_file(self, capsys, markdown_file, tmp_path):
        """Test that --log-file creates the log file."""
        log_path = tmp_path / "run.log"
        path = markdown_file("# Hi\n")
        assert main(["--no-config", "--log-level", "INFO", "--log-file", str(log_path), "text", path]) == 0
        assert log_path.exists()


@pytest.mark.cli
class TestParseCommand:
    """Tests for the parse subcommand."""

    def test_tree_json(self, capsys, markdown_file):
        """Test printing the tree as JSON."""
        path = markdown_file("# Title {.lead}\n\nBody text.\n")
        assert main(["--no-config", "parse", path]) == EXIT_SUCCESS
        data = json.loads(capsys.readouterr().out)
        assert data["type"] == "doc"
        heading = data["content"][0]
        assert heading["type"] == "heading"
        assert heading["attrs"]["class"] == "lead"
        assert data["content"][1]["type"] == "paragraph"

    def test_stdin(self, capsys, monkeypatch):
        """Test reading from stdin."""
        monkeypatch.setattr("sys.stdin", io.StringIO("Hello"))
        assert main(["--no-config", "parse", "-"]) == EXIT_SUCCESS
        data = json.loads(capsys.readouterr().out)
        assert data["content"][0]["content"][0] == {"type": "text", "text": "Hello"}

    def test_indent(self, capsys, markdown_file):
        """Test the --indent option."""
        path = markdown_file("Hello")
        main(["--no-config", "parse", path, "--indent", "0"])
        out = capsys.readouterr().out
        assert json.loads(out)["type"] == "doc"


@pytest.mark.cli
class TestFormatCommand:
    """Tests for the format subcommand."""

    def test_normalizes(self, capsys, markdown_file):
        """Test Markdown normalization."""
        path = markdown_file("# Title {.lead}\n\n* a\n* b\n")
        assert main(["--no-config", "format", path]) == EXIT_SUCCESS
        assert capsys.readouterr().out == "# Title {.lead}\n\n- a\n- b\n"

    def test_config_file(self, capsys, markdown_file, tmp_path):
        """Test renderer settings from an explicit config file."""
        config = tmp_path / "settings.toml"
        config.write_text('[renderer]\nbullet_marker = "*"\n', encoding="utf-8")
        path = markdown_file("- a\n- b\n")
        assert main(["--config", str(config), "format", path]) == EXIT_SUCCESS
        assert capsys.readouterr().out == "* a\n* b\n"

    def test_config_from_env(self, capsys, markdown_file, tmp_path, monkeypatch):
        """Test the config path environment variable."""
        config = tmp_path / "settings.yaml"
        config.write_text("renderer:\n  bullet_marker: '+'\n", encoding="utf-8")
        monkeypatch.setenv("MDBRIDGE_CONFIG", str(config))
        path = markdown_file("- a\n")
        assert main(["format", path]) == EXIT_SUCCESS
        assert capsys.readouterr().out == "+ a\n"

    def test_no_config_ignores_env(self, capsys, markdown_file, tmp_path, monkeypatch):
        """Test that --no-config skips the environment variable."""
        config = tmp_path / "settings.yaml"
        config.write_text("renderer:\n  bullet_marker: '+'\n", encoding="utf-8")
        monkeypatch.setenv("MDBRIDGE_CONFIG", str(config))
        path = markdown_file("- a\n")
        assert main(["--no-config", "format", path]) == EXIT_SUCCESS
        assert capsys.readouterr().out == "- a\n"

    def test_output_file(self, capsys, markdown_file, tmp_path):
        """Test writing to a file with -o."""
        path = markdown_file("Some *text*\n")
        out = tmp_path / "out.md"
        assert main(["--no-config", "format", path, "-o", str(out)]) == EXIT_SUCCESS
        assert out.read_text(encoding="utf-8") == "Some *text*\n"
        assert capsys.readouterr().out == ""

    def test_missing_config(self, capsys, markdown_file, tmp_path):
        """Test a config path that does not exist."""
        path = markdown_file("x")
        assert main(["--config", str(tmp_path / "nope.toml"), "format", path]) == EXIT_VALIDATION_ERROR
        assert "does not exist" in capsys.readouterr().err

    def test_invalid_config(self, capsys, markdown_file, tmp_path):
        """Test a config with an unknown option."""
        config = tmp_path / "settings.json"
        config.write_text('{"renderer": {"colour": "red"}}', encoding="utf-8")
        path = markdown_file("x")
        assert main(["--config", str(config), "format", path]) == EXIT_VALIDATION_ERROR
        assert "Unknown renderer option" in capsys.readouterr().err


@pytest.mark.cli
class TestOtherCommands:
    """Tests for preprocess, text, validate and resolve-image."""

    def test_preprocess(self, capsys, markdown_file):
        """Test printing the preprocessed body without frontmatter."""
        path = markdown_file("---\na: 1\n---\nSee [^1].\n[^1]: Note.")
        assert main(["--no-config", "preprocess", path]) == EXIT_SUCCESS
        assert capsys.readouterr().out == "See [1].\n\n1. Note."

    def test_text(self, capsys, markdown_file):
        """Test plain text output."""
        path = markdown_file("# Title\n\nBody")
        assert main(["--no-config", "text", path]) == EXIT_SUCCESS
        assert capsys.readouterr().out == "TitleBody\n"

    def test_text_rich_forced(self, capsys, markdown_file):
        """Test Rich output when forced."""
        path = markdown_file("# Title\n\nBody")
        assert main(["--no-config", "--rich", "--force-rich", "text", path]) == EXIT_SUCCESS
        assert "TitleBody" in capsys.readouterr().out

    def test_validate_markdown(self, capsys, markdown_file):
        """Test validating parsed Markdown."""
        path = markdown_file("| a |\n| - |\n| 1 |\n")
        assert main(["--no-config", "validate", path]) == EXIT_SUCCESS
        assert capsys.readouterr().out == "Document is valid\n"

    def test_validate_invalid_tree(self, capsys, markdown_file):
        """Test validating a tree JSON file with violations."""
        path = markdown_file('{"type": "doc", "content": [{"type": "blockquote"}]}', name="tree.json")
        assert main(["--no-config", "validate", "--json", path]) == EXIT_VALIDATION_ERROR
        assert "BlockQuote must contain at least one block" in capsys.readouterr().out

    def test_validate_malformed_json(self, capsys, markdown_file):
        """Test a tree file that is not JSON."""
        path = markdown_file("{not json", name="tree.json")
        assert main(["--no-config", "validate", "--json", path]) == EXIT_VALIDATION_ERROR
        assert capsys.readouterr().err.startswith("Error:")

    def test_resolve_image(self, capsys):
        """Test resolving a relative image path."""
        args = ["--no-config", "resolve-image", "../img/a.png", "--context-id", "t1", "--token", "abc"]
        assert main(args) == EXIT_SUCCESS
        assert capsys.readouterr().out == "/api/tickets/t1/pr/file-bytes?file_path=img%2Fa.png&token=abc\n"

    def test_resolve_image_api_base(self, capsys):
        """Test an explicit API base."""
        args = ["--no-config", "resolve-image", "a.png", "--context-id", "t1", "--api-base", "https://h/api"]
        assert main(args) == EXIT_SUCCESS
        assert capsys.readouterr().out == "https://h/api/tickets/t1/pr/file-bytes?file_path=a.png\n"

    def test_resolve_image_without_context(self, capsys):
        """Test that a path without a context id is unchanged."""
        assert main(["--no-config", "resolve-image", "img/a.png"]) == EXIT_SUCCESS
        assert capsys.readouterr().out == "img/a.png\n"


@pytest.mark.unit
class TestExitCodes:
    """Tests for exception to exit code mapping."""

    @pytest.mark.parametrize(
        "exception,expected",
        [
            (ValidationError("bad"), EXIT_VALIDATION_ERROR),
            (argparse.ArgumentTypeError("bad"), EXIT_VALIDATION_ERROR),
            (ValueError("bad"), EXIT_VALIDATION_ERROR),
            (FileNotFoundError("gone"), EXIT_FILE_ERROR),
            (ParsingError("bad"), EXIT_PARSING_ERROR),
            (RenderingError("bad"), EXIT_RENDERING_ERROR),
            (MdBridgeError("bad"), EXIT_ERROR),
            (RuntimeError("bad"), EXIT_ERROR),
        ],
    )
    def test_mapping(self, exception, expected):
        """Test each exception category."""
        assert get_exit_code_for_exception(exception) == expected


@pytest.mark.unit
class TestOutputHelpers:
    """Tests for CLI output helpers."""

    def test_rich_requires_flag(self):
        """Test that Rich is off without --rich."""
        assert should_use_rich_output(argparse.Namespace(rich=False, force_rich=True)) is False

    def test_rich_forced(self):
        """Test --force-rich without a terminal."""
        args = argparse.Namespace(rich=True, force_rich=True)
        assert should_use_rich_output(args, io.StringIO()) is True

    def test_rich_needs_tty(self):
        """Test that a non-terminal stream disables Rich."""
        args = argparse.Namespace(rich=True, force_rich=False)
        assert should_use_rich_output(args, io.StringIO()) is False

    def test_validation_report_plain(self):
        """Test plain validation output."""
        stream = io.StringIO()
        write_validation_report(["first", "second"], False, stream)
        assert stream.getvalue() == "first\nsecond\n"

    def test_validation_report_rich(self):
        """Test the Rich violation table."""
        stream = io.StringIO()
        write_validation_report(["first problem"], True, stream)
        assert "first problem" in stream.getvalue()
