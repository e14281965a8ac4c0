#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/utils/escape.py
"""Markdown escaping utilities.

The serializer escapes text so that re-parsing it yields the same text
runs. Escaping is split in two passes: :func:`escape_markdown_text` handles
characters that are special anywhere on a line, while
:func:`escape_line_start` handles characters that only matter at the start
of a line (block markers). The second pass runs over the rendered lines of
a paragraph, after inline markup has been emitted.

"""

from __future__ import annotations

import re
from urllib.parse import quote

# Special anywhere in inline content
ALWAYS_ESCAPED = "\\`*{}[]<"

# Special only as the first character of a line
LINE_START_ESCAPED = "#>+=|~-:"

# Characters the tokenizer leaves unencoded in link destinations
LINK_DESTINATION_SAFE = ":/?#@!$&()*+,;=%"

_ORDERED_MARKER_RE = re.compile(r"(\d{1,9})([.)])")
_SOFT_BREAK_RE = re.compile(r"[ \t]*\n\s*")
_BRACKET_PAIR_RE = re.compile(r"\[(?P<inner>[^\[\]]*)\]")


def _is_word_char(char: str) -> bool:
    return char.isalnum()


def _literal_bracket_pairs(text: str) -> set[int]:
    """Find ``[...]`` pairs in ``text`` that cannot open any bracket syntax.

    A pair is literal when its text holds no other ``[``, does not start
    with ``^`` (a footnote reference), is not a numeric citation at the
    start of a line, and is followed by a character other than ``(``,
    ``[``, ``{`` or ``:``. A pair at the end of the text is never literal,
    because the next run could start with any of those.

    Returns
    -------
    set of int
        Indices of both brackets of every literal pair

    """
    indices: set[int] = set()
    for m in _BRACKET_PAIR_RE.finditer(text):
        start, end = m.start(), m.end()
        inner = m.group("inner")
        if end >= len(text) or text[end] in "([{:" or inner.startswith("^"):
            continue
        if (start == 0 or text[start - 1] == "\n") and inner.isdigit():
            continue
        indices.update((start, end - 1))
    return indices


def escape_markdown_text(text: str, strict_brackets: bool = True) -> str:
    r"""Escape inline Markdown syntax in a text run.

    Backslashes, backticks, asterisks, braces, square brackets and ``<`` are
    always escaped. Underscores are escaped unless they sit between two word
    characters, where they cannot open or close emphasis.

    Parameters
    ----------
    text : str
        Text to escape
    strict_brackets : bool, default True
        Escape every square bracket. When False, a ``[...]`` pair that
        cannot start a link, footnote, citation line, reference definition
        or bracketed span is kept as written.

    Returns
    -------
    str
        Escaped text

    Examples
    --------
        >>> escape_markdown_text("a*b [c] snake_case _x_")
        'a\\*b \\[c\\] snake_case \\_x\\_'
        >>> escape_markdown_text("See [1]. and [a](b)", strict_brackets=False)
        'See [1]. and \\[a\\](b)'

    """
    if not text:
        return text

    literal = set() if strict_brackets else _literal_bracket_pairs(text)
    result: list[str] = []
    for i, char in enumerate(text):
        if i in literal:
            result.append(char)
        elif char in ALWAYS_ESCAPED:
            result.append("\\" + char)
        elif char == "_":
            before = text[i - 1] if i > 0 else ""
            after = text[i + 1] if i + 1 < len(text) else ""
            if before and after and _is_word_char(before) and _is_word_char(after):
                result.append(char)
            else:
                result.append("\\_")
        else:
            result.append(char)
    return "".join(result)


def escape_line_start(line: str) -> str:
    r"""Escape a character that would start a block construct.

    Parameters
    ----------
    line : str
        One rendered line of a paragraph

    Returns
    -------
    str
        The line with its block marker (if any) escaped

    Examples
    --------
        >>> escape_line_start("# not a heading")
        '\\# not a heading'
        >>> escape_line_start("1. not a list")
        '1\\. not a list'

    """
    if not line:
        return line
    if line[0] in LINE_START_ESCAPED:
        return "\\" + line
    m = _ORDERED_MARKER_RE.match(line)
    if m:
        return m.group(1) + "\\" + line[m.end(1) :]
    return line


def escape_line_starts(text: str) -> str:
    """Apply :func:`escape_line_start` to every line of a rendered block."""
    return "\n".join(escape_line_start(line) for line in text.split("\n"))


def normalize_soft_breaks(text: str) -> str:
    """Collapse whitespace around newlines to a single newline.

    The tokenizer consumes the same whitespace around soft breaks, so text
    normalized this way re-parses unchanged.
    """
    return _SOFT_BREAK_RE.sub("\n", text)


def escape_table_cell(text: str) -> str:
    r"""Make rendered inline content safe for a single table row.

    Newlines collapse to single spaces and pipes are escaped. Backslashes
    are left alone: the inline renderer has already escaped the text.

    Examples
    --------
        >>> escape_table_cell("a | b\\nc")
        'a \\| b c'

    """
    if not text:
        return text
    return re.sub(r"\s*\n\s*", " ", text).replace("|", r"\|")


def escape_inline_code(code: str, delimiter: str = "`") -> tuple[str, str]:
    """Determine the fence for an inline code span.

    The fence is one backtick longer than the longest backtick run in the
    code. A space is added on both sides when the code starts or ends with
    a backtick, or when it starts and ends with a space (the tokenizer
    strips one space from each side in that case).

    Parameters
    ----------
    code : str
        Code content
    delimiter : str, default = '`'
        Fence character

    Returns
    -------
    tuple[str, str]
        (padded_code, fence)

    Examples
    --------
        >>> escape_inline_code("simple code")
        ('simple code', '`')
        >>> escape_inline_code("code with ` backtick")
        ('code with ` backtick', '``')

    """
    code = code.replace("\n", " ")
    if not code:
        return code, delimiter

    max_consecutive = 0
    current_consecutive = 0
    for char in code:
        if char == delimiter:
            current_consecutive += 1
            max_consecutive = max(max_consecutive, current_consecutive)
        else:
            current_consecutive = 0

    fence = delimiter * (max_consecutive + 1)
    needs_padding = code.startswith(delimiter) or code.endswith(delimiter)
    if code.startswith(" ") and code.endswith(" ") and code.strip(" "):
        needs_padding = True
    if needs_padding:
        code = " " + code + " "
    return code, fence


def longest_run(text: str, char: str) -> int:
    """Return the length of the longest run of ``char`` in ``text``."""
    longest = 0
    for match in re.finditer(re.escape(char) + "+", text):
        longest = max(longest, len(match.group(0)))
    return longest


def escape_link_destination(url: str) -> str:
    r"""Make a URL usable as a link or image destination.

    The URL is percent-encoded with the same safe set the tokenizer applies
    to destinations (so spaces become ``%20`` and existing ``%XX`` octets are
    kept), then parentheses are backslash-escaped.

    Examples
    --------
        >>> escape_link_destination("my image (1).png")
        'my%20image%20\\(1\\).png'

    """
    if not url:
        return url
    return quote(url, safe=LINK_DESTINATION_SAFE).replace("(", r"\(").replace(")", r"\)")


def escape_link_title(title: str) -> str:
    r"""Escape a link or image title for the double-quoted title form."""
    return title.replace("\\", "\\\\").replace('"', r"\"").replace("<", r"\<").replace("\n", " ")


def format_link_target(url: str, title: str | None = None) -> str:
    """Build the ``(destination "title")`` part of a link or image."""
    target = escape_link_destination(url)
    if title:
        target += f' "{escape_link_title(title)}"'
    return f"({target})"
