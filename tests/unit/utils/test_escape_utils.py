#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/utils/test_escape_utils.py
"""Unit tests for Markdown escaping helpers."""

import pytest

from mdbridge.utils.escape import (
    escape_inline_code,
    escape_line_start,
    escape_line_starts,
    escape_link_destination,
    escape_link_title,
    escape_markdown_text,
    escape_table_cell,
    format_link_target,
    longest_run,
    normalize_soft_breaks,
)


@pytest.mark.unit
class TestEscapeMarkdownText:
    """Tests for escape_markdown_text."""

    def test_special_characters(self):
        """Test the characters that are always escaped."""
        assert escape_markdown_text("a*b [c] snake_case _x_") == "a\\*b \\[c\\] snake_case \\_x\\_"

    def test_literal_bracket_pairs(self):
        """Test keeping bracket pairs that cannot start any syntax."""
        assert escape_markdown_text("See [1]. and [a](b)", strict_brackets=False) == "See [1]. and \\[a\\](b)"
        assert escape_markdown_text("x [note], y", strict_brackets=False) == "x [note], y"

    @pytest.mark.parametrize("text", ["[a]", "[^1] x", "[1] x", "x\n[1] y", "[a]: x", "[a]{.c}", "[a][b]"])
    def test_bracket_pairs_still_escaped(self, text):
        """Test bracket pairs that could open a link, footnote, citation or span."""
        escaped = escape_markdown_text(text, strict_brackets=False)
        assert escaped.count("\\[") >= 1

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("back\\slash", "back\\\\slash"),
            ("`tick`", "\\`tick\\`"),
            ("{.cls}", "\\{.cls\\}"),
            ("<tag>", "\\<tag>"),
        ],
    )
    def test_individual_characters(self, text, expected):
        """Test each escaped character."""
        assert escape_markdown_text(text) == expected

    def test_intraword_underscore_kept(self):
        """Test that underscores between word characters are kept."""
        assert escape_markdown_text("max_value_2") == "max_value_2"

    def test_edge_underscores_escaped(self):
        """Test underscores at word edges."""
        assert escape_markdown_text("_lead") == "\\_lead"
        assert escape_markdown_text("trail_") == "trail\\_"
        assert escape_markdown_text("a _ b") == "a \\_ b"

    def test_plain_text_unchanged(self):
        """Test that text without syntax passes through."""
        assert escape_markdown_text("Plain text, 100% fine.") == "Plain text, 100% fine."
        assert escape_markdown_text("") == ""


@pytest.mark.unit
class TestEscapeLineStart:
    """Tests for block marker escaping."""

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("# x", "\\# x"),
            ("> x", "\\> x"),
            ("- x", "\\- x"),
            ("+ x", "\\+ x"),
            ("| x", "\\| x"),
            ("1. x", "1\\. x"),
            ("12) x", "12\\) x"),
        ],
    )
    def test_block_markers(self, line, expected):
        """Test lines starting with a block marker."""
        assert escape_line_start(line) == expected

    def test_plain_lines(self):
        """Test lines that need no escape."""
        assert escape_line_start("plain") == "plain"
        assert escape_line_start("2024 was a year") == "2024 was a year"
        assert escape_line_start("") == ""

    def test_every_line(self):
        """Test escaping each line of a block."""
        assert escape_line_starts("a\n# b\n- c") == "a\n\\# b\n\\- c"


@pytest.mark.unit
class TestEscapeTableCell:
    """Tests for table cell escaping."""

    def test_pipes_and_newlines(self):
        """Test escaping pipes and joining lines."""
        assert escape_table_cell("a | b\nc") == "a \\| b c"

    def test_backslashes_untouched(self):
        """Test that already escaped text is not escaped twice."""
        assert escape_table_cell("a\\*b") == "a\\*b"

    def test_empty(self):
        """Test empty cell text."""
        assert escape_table_cell("") == ""


@pytest.mark.unit
class TestEscapeInlineCode:
    """Tests for inline code fencing."""

    def test_simple(self):
        """Test code without backticks."""
        assert escape_inline_code("simple code") == ("simple code", "`")

    def test_inner_backticks(self):
        """Test that the fence outgrows inner backtick runs."""
        assert escape_inline_code("code with ` backtick") == ("code with ` backtick", "``")
        assert escape_inline_code("a ``` b")[1] == "````"

    def test_padding_for_edge_backtick(self):
        """Test padding when the code starts with a backtick."""
        assert escape_inline_code("`x") == (" `x ", "``")

    def test_padding_for_surrounding_spaces(self):
        """Test padding when the code is wrapped in spaces."""
        assert escape_inline_code(" x ") == ("  x  ", "`")
        assert escape_inline_code("  ") == ("  ", "`")

    def test_newlines_become_spaces(self):
        """Test that code spans stay on one line."""
        assert escape_inline_code("a\nb") == ("a b", "`")

    def test_longest_run(self):
        """Test run length measurement."""
        assert longest_run("a```b``", "`") == 3
        assert longest_run("abc", "`") == 0


@pytest.mark.unit
class TestLinkEscaping:
    """Tests for link destinations and titles."""

    def test_destination(self):
        """Test percent-encoding and paren escaping."""
        assert escape_link_destination("my image (1).png") == "my%20image%20\\(1\\).png"

    def test_destination_keeps_encoded_octets(self):
        """Test that existing percent escapes are kept."""
        assert escape_link_destination("a%20b.png?x=1&y=2") == "a%20b.png?x=1&y=2"

    def test_destination_empty(self):
        """Test an empty destination."""
        assert escape_link_destination("") == ""

    def test_title(self):
        """Test title escaping."""
        assert escape_link_title('say "hi"') == 'say \\"hi\\"'
        assert escape_link_title("a\\b<c\nd") == "a\\\\b\\<c d"

    def test_format_link_target(self):
        """Test the assembled target."""
        assert format_link_target("a.png") == "(a.png)"
        assert format_link_target("a.png", "T") == '(a.png "T")'

    def test_normalize_soft_breaks(self):
        """Test whitespace collapsing around newlines."""
        assert normalize_soft_breaks("a  \n   b\n\tc") == "a\nb\nc"
