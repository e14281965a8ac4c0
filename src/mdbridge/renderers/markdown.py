#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/renderers/markdown.py
"""Markdown rendering from the document tree.

This module provides the MarkdownRenderer class which converts a document
tree back to Markdown text that re-parses to the same tree.

The renderer uses the visitor pattern: every block ``visit_*`` method
returns the block's text, and the document joins blocks with blank lines.
Inline content is a flat run sequence, so marks are opened and closed
from a stack while walking the runs:

- a mark that continues further is opened outside one that ends sooner,
  with ties broken by the fixed priority ``span, link, em, strong, code``
- marks are closed innermost first; a mark that outlives a closed outer
  mark is reopened
- whitespace at the edges of an emphasis run is moved outside the
  delimiters

Serialization is total. A node that cannot be rendered is logged and
skipped, unless the renderer runs in ``strict`` mode.

"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from mdbridge.ast.nodes import (
    BlockQuote,
    BulletList,
    CodeBlock,
    Document,
    Frontmatter,
    HardBreak,
    Heading,
    HorizontalRule,
    Image,
    ListItem,
    Mark,
    Node,
    OrderedList,
    Paragraph,
    Table,
    TableBody,
    TableCell,
    TableHead,
    TableHeader,
    TableRow,
    Text,
    normalize_inline,
)
from mdbridge.ast.visitors import NodeVisitor
from mdbridge.constants import DELIMITER_MARKS, IMAGE_ANNOTATION_KEYS
from mdbridge.exceptions import RenderingError
from mdbridge.options.markdown import MarkdownRendererOptions
from mdbridge.renderers.base import BaseRenderer
from mdbridge.utils.attributes import format_annotation
from mdbridge.utils.escape import (
    escape_inline_code,
    escape_line_starts,
    escape_markdown_text,
    escape_table_cell,
    format_link_target,
    longest_run,
    normalize_soft_breaks,
)
from mdbridge.utils.frontmatter import render_frontmatter

logger = logging.getLogger(__name__)

_SEPARATOR_TOKENS = {"left": ":---", "right": "---:", "center": ":---:"}

# Marker for a list that directly follows a sibling list using the key
_ALTERNATE_MARKERS = {"-": "*", "*": "-", "+": "-", ".": ")", ")": "."}


class MarkdownRenderer(NodeVisitor, BaseRenderer):
    r"""Render the document tree to Markdown text.

    Parameters
    ----------
    options : MarkdownRendererOptions or None, default = None
        Markdown formatting options

    Examples
    --------
    Basic usage:

        >>> from mdbridge.ast import Document, Heading, Text
        >>> from mdbridge.renderers.markdown import MarkdownRenderer
        >>> doc = Document(children=[Heading(level=1, content=[Text("Title")], class_="lead")])
        >>> MarkdownRenderer().render_to_string(doc)
        '# Title {.lead}\n'

    """

    def __init__(self, options: MarkdownRendererOptions | None = None):
        """Initialize the Markdown renderer with options."""
        BaseRenderer._validate_options_type(options, MarkdownRendererOptions, "markdown")
        options = options or MarkdownRendererOptions()
        BaseRenderer.__init__(self, options)
        self.options: MarkdownRendererOptions = options
        self._at_document_start: bool = False
        self._container_depth: int = 0
        # (list type, marker) of the list emitted just before the block being rendered
        self._previous_list: Optional[tuple[type, str]] = None
        self._last_list_marker: str = ""
        self._star_items: int = 0

    def render_to_string(self, doc: Document) -> str:
        """Render the document to a Markdown string.

        Parameters
        ----------
        doc : Document
            Document to render

        Returns
        -------
        str
            Markdown text ending with a single newline, or ``""`` for an
            empty document

        """
        self._at_document_start = True
        self._container_depth = 0
        self._previous_list = None
        self._star_items = 0
        text = self._render_node(doc)
        return text + "\n" if text else ""

    # ------------------------------------------------------------------
    # Block helpers
    # ------------------------------------------------------------------

    def _render_node(self, node: Node) -> str:
        """Render one node, degrading to nothing when it cannot be rendered.

        Raises
        ------
        RenderingError
            In strict mode, if the node cannot be rendered

        """
        try:
            result = node.accept(self)
        except RenderingError:
            raise
        except Exception as e:
            if self.options.strict:
                raise RenderingError(
                    f"Failed to render {type(node).__name__}: {e}",
                    rendering_stage="render",
                    original_error=e,
                ) from e
            logger.warning("Skipping %s that could not be rendered: %s", type(node).__name__, e)
            return ""
        return result if isinstance(result, str) else ""

    def _render_blocks(self, blocks: Sequence[Node], separator: str = "\n\n") -> str:
        """Render a sequence of blocks, joined by ``separator``."""
        parts: list[str] = []
        previous: Optional[tuple[type, str]] = None
        for block in blocks:
            text, previous = self._render_sibling(block, previous)
            if text:
                parts.append(text)
        return separator.join(parts)

    def _render_sibling(
        self, block: Node, previous: Optional[tuple[type, str]]
    ) -> tuple[str, Optional[tuple[type, str]]]:
        """Render a block after the sibling list ``previous`` (if any).

        Returns the text and what the next sibling should see as its
        predecessor: the list type and marker when this block is a list
        that rendered, ``previous`` when it rendered nothing.
        """
        self._previous_list = previous
        text = self._render_node(block)
        self._previous_list = None
        if not text:
            return text, previous
        if isinstance(block, (BulletList, OrderedList)):
            return text, (type(block), self._last_list_marker)
        return text, None

    def _block_annotation(self, class_name: Optional[str]) -> str:
        """Return ``{.classes}`` for a block class, or ``""``."""
        if not self.options.emit_attributes:
            return ""
        return format_annotation(class_name)

    def _rule_marker(self) -> str:
        """Pick the thematic break characters for the current position.

        A leading ``---`` would be read as a frontmatter opener, and inside
        a list item the rule must not repeat the bullet character.
        """
        if self._container_depth == 0:
            return "***" if self._at_document_start else "---"
        if self._star_items or self.options.bullet_marker == "*":
            return "___"
        return "***"

    @staticmethod
    def _indent(text: str, width: int) -> str:
        """Indent every non-empty line after the first by ``width`` spaces."""
        lines = text.split("\n")
        pad = " " * width
        return "\n".join([lines[0]] + [pad + line if line else line for line in lines[1:]])

    # ------------------------------------------------------------------
    # Inline rendering
    # ------------------------------------------------------------------

    def _prepare_inline(self, items: Sequence[Node], single_line: bool) -> list[Node]:
        """Normalize inline runs before rendering.

        Soft breaks are collapsed, whitespace next to line breaks is dropped
        and the block is trimmed at both ends; the tokenizer discards all of
        that whitespace on re-parse. In ``single_line`` mode (headings and
        table cells) every line break becomes a space.
        """
        prepared: list[Node] = []
        for item in items:
            if isinstance(item, Text):
                if not item.text:
                    continue
                if _has_code(item):
                    text = item.text.replace("\n", " ")
                else:
                    text = normalize_soft_breaks(item.text)
                    if single_line:
                        text = text.replace("\n", " ")
                prepared.append(Text(text, marks=item.marks))
            elif isinstance(item, HardBreak):
                prepared.append(Text(" ", marks=item.marks) if single_line else item)
            elif isinstance(item, Image):
                prepared.append(item)
            else:
                if self.options.strict:
                    raise RenderingError(
                        f"Unexpected {type(item).__name__} in inline content", rendering_stage="inline"
                    )
                logger.warning("Skipping %s in inline content", type(item).__name__)

        prepared = normalize_inline(prepared)

        # Whitespace around line breaks
        for i, item in enumerate(prepared):
            if not isinstance(item, Text) or _has_code(item):
                continue
            text = item.text
            previous = prepared[i - 1] if i > 0 else None
            following = prepared[i + 1] if i + 1 < len(prepared) else None
            if isinstance(previous, HardBreak) or (isinstance(previous, Text) and previous.text.endswith("\n")):
                text = text.lstrip(" \t")
            if isinstance(following, HardBreak) or (isinstance(following, Text) and following.text.startswith("\n")):
                text = text.rstrip(" \t")
            prepared[i] = Text(text, marks=item.marks)

        # Block edges
        while prepared:
            first = prepared[0]
            if isinstance(first, HardBreak):
                prepared.pop(0)
            elif isinstance(first, Text) and not _has_code(first) and first.text != first.text.lstrip():
                prepared[0] = Text(first.text.lstrip(), marks=first.marks)
            else:
                break
            prepared = normalize_inline(prepared)
        while prepared:
            last = prepared[-1]
            if isinstance(last, HardBreak):
                prepared.pop()
            elif isinstance(last, Text) and not _has_code(last) and last.text != last.text.rstrip():
                prepared[-1] = Text(last.text.rstrip(), marks=last.marks)
            else:
                break
            prepared = normalize_inline(prepared)

        return prepared

    def _render_inline(self, items: Sequence[Node], single_line: bool = False) -> str:
        """Render inline runs, opening and closing marks from a stack.

        Parameters
        ----------
        items : sequence of Node
            Text, Image and HardBreak runs
        single_line : bool, default False
            Replace line breaks with spaces

        Returns
        -------
        str
            Rendered inline Markdown

        """
        runs = self._prepare_inline(items, single_line)
        out: list[str] = []
        # Open marks, outermost first, with the text that closes each
        stack: list[tuple[Mark, str]] = []
        pending_space = ""

        for index, run in enumerate(runs):
            marks = [m for m in run.marks if self._is_stack_mark(m)]  # type: ignore[attr-defined]

            keep = 0
            while keep < len(stack) and stack[keep][0] in marks:
                keep += 1
            self._close_marks(out, stack, keep, pending_space)
            pending_space = ""

            body, leading, trailing = self._render_run(run)
            open_marks = [m for m in marks if all(m != entry[0] for entry in stack)]
            if not body:
                # Emphasis around nothing but whitespace would be literal text
                open_marks = [m for m in open_marks if m.type not in DELIMITER_MARKS]
            open_marks.sort(key=lambda m: (-_extent(runs, index, m), m.priority))

            self._open_marks(out, stack, open_marks, runs, index, leading)
            if body.startswith("^") and self.options.escape_special and _follows_opener(out):
                # "[^label]" would be read as a footnote reference
                body = "\\" + body
            out.append(body)
            pending_space = trailing

        self._close_marks(out, stack, 0, pending_space)
        return "".join(out).strip(" \t\n")

    def _is_stack_mark(self, mark: Mark) -> bool:
        """Whether the mark is emitted through the open/close stack."""
        if mark.type in ("em", "strong", "link"):
            return True
        if mark.type == "span":
            return self.options.emit_attributes and bool(format_annotation(mark.attrs.get("class")))
        return False

    def _render_run(self, run: Node) -> tuple[str, str, str]:
        """Render one run; returns (body, leading space, trailing space).

        Edge whitespace is split off plain text so that it can be placed
        outside emphasis delimiters.
        """
        if isinstance(run, HardBreak):
            return "\\\n", "", ""
        if isinstance(run, Image):
            return self.visit_image(run), "", ""
        if not isinstance(run, Text):
            return "", "", ""

        if _has_code(run):
            code, fence = escape_inline_code(run.text)
            return f"{fence}{code}{fence}", "", ""

        text = run.text
        stripped = text.strip(" \t\n")
        if not stripped:
            return "", "", text
        start = text.index(stripped[0])
        leading, trailing = text[:start], text[start + len(stripped) :]
        if not self.options.escape_special:
            return stripped, leading, trailing
        # Text inside link or span brackets keeps every bracket escaped
        strict = any(mark.type in ("link", "span") for mark in run.marks)
        body = escape_markdown_text(stripped, strict_brackets=strict)
        return body, leading, trailing

    def _open_marks(
        self,
        out: list[str],
        stack: list[tuple[Mark, str]],
        marks: list[Mark],
        runs: list[Node],
        index: int,
        leading: str,
    ) -> None:
        """Open ``marks`` (already sorted outermost first) at ``runs[index]``.

        Leading whitespace of the run goes just before the first emphasis
        delimiter so that the delimiter stays left-flanking.
        """
        first_delimiter = next((i for i, m in enumerate(marks) if m.type in DELIMITER_MARKS), len(marks))
        for i, mark in enumerate(marks):
            if i == first_delimiter:
                out.append(leading)
                leading = ""
            opener, closer = self._mark_delimiters(mark, runs, index)
            if opener.startswith("["):
                _escape_trailing_bang(out)
            out.append(opener)
            stack.append((mark, closer))
        out.append(leading)

    def _close_marks(self, out: list[str], stack: list[tuple[Mark, str]], keep: int, trailing: str) -> None:
        """Close every mark above ``keep``, innermost first.

        Trailing whitespace of the previous run goes after the outermost
        emphasis delimiter being closed, so that delimiter stays
        right-flanking.
        """
        closing = stack[keep:]
        del stack[keep:]
        outermost_delimiter = next((i for i, (m, _) in enumerate(closing) if m.type in DELIMITER_MARKS), None)
        if outermost_delimiter is None:
            out.append(trailing)
            trailing = ""
        for i in range(len(closing) - 1, -1, -1):
            out.append(closing[i][1])
            if i == outermost_delimiter:
                out.append(trailing)
                trailing = ""
        out.append(trailing)

    def _mark_delimiters(self, mark: Mark, runs: list[Node], index: int) -> tuple[str, str]:
        """Return the (opening, closing) text for a mark starting at ``runs[index]``."""
        if mark.type == "em":
            return "*", "*"
        if mark.type == "strong":
            return "**", "**"
        if mark.type == "link":
            return "[", "]" + format_link_target(mark.attrs.get("href") or "", mark.attrs.get("title"))
        # span
        annotation = format_annotation(mark.attrs.get("class"))
        if _can_use_bare_span(runs, index, mark):
            return "", annotation
        return "[", "]" + annotation

    # ------------------------------------------------------------------
    # Document and blocks
    # ------------------------------------------------------------------

    def visit_document(self, node: Document) -> str:
        """Render the document's blocks separated by blank lines."""
        parts: list[str] = []
        previous: Optional[tuple[type, str]] = None
        for index, child in enumerate(node.children):
            if isinstance(child, Frontmatter) and index != 0:
                if self.options.strict:
                    raise RenderingError("Frontmatter must be the first block", rendering_stage="document")
                logger.warning("Skipping frontmatter that is not the first block")
                continue
            self._at_document_start = not parts
            text, previous = self._render_sibling(child, previous)
            if text:
                parts.append(text)
        return "\n\n".join(parts)

    def visit_frontmatter(self, node: Frontmatter) -> str:
        """Render a frontmatter block between ``---`` delimiters."""
        return render_frontmatter(node.raw_yaml).rstrip("\n")

    def visit_paragraph(self, node: Paragraph) -> str:
        """Render a paragraph; an empty paragraph renders as nothing."""
        text = self._render_inline(node.content)
        if not text:
            return ""
        if self.options.escape_special:
            text = escape_line_starts(text)
        annotation = self._block_annotation(node.class_)
        return f"{text} {annotation}" if annotation else text

    def visit_heading(self, node: Heading) -> str:
        """Render an ATX heading."""
        text = self._render_inline(node.content, single_line=True)
        # A trailing run of '#' would be read as a closing sequence
        if text.endswith("#") and self.options.escape_special:
            text = text[:-1] + "\\#"
        parts = ["#" * node.level]
        if text:
            parts.append(text)
        annotation = self._block_annotation(node.class_)
        if annotation:
            parts.append(annotation)
        return " ".join(parts)

    def visit_block_quote(self, node: BlockQuote) -> str:
        """Render a block quote, with its class on a line after a blank line."""
        self._container_depth += 1
        try:
            inner = self._render_blocks(node.children)
        finally:
            self._container_depth -= 1

        quoted = "\n".join(f"> {line}" if line else ">" for line in inner.split("\n"))
        annotation = self._block_annotation(node.class_)
        return f"{quoted}\n\n{annotation}" if annotation else quoted

    def visit_bullet_list(self, node: BulletList) -> str:
        """Render a bullet list.

        A list that directly follows another bullet list switches to a
        different marker, since the same marker would continue the first list.
        """
        marker = self._sibling_marker(BulletList, self.options.bullet_marker)
        self._star_items += marker == "*"
        try:
            items = [self._render_list_item(item, marker, node.tight) for item in node.items]
        finally:
            self._star_items -= marker == "*"
        self._last_list_marker = marker
        return ("\n" if node.tight else "\n\n").join(items)

    def visit_ordered_list(self, node: OrderedList) -> str:
        """Render an ordered list counting up from ``order``.

        The delimiter is ``.``, or ``)`` directly after another ordered list.
        """
        delimiter = self._sibling_marker(OrderedList, ".")
        items = [
            self._render_list_item(item, f"{node.order + i}{delimiter}", node.tight)
            for i, item in enumerate(node.items)
        ]
        self._last_list_marker = delimiter
        return ("\n" if node.tight else "\n\n").join(items)

    def _sibling_marker(self, list_type: type, marker: str) -> str:
        """Return ``marker``, or its alternate when the previous sibling list used it."""
        if self._previous_list == (list_type, marker):
            return _ALTERNATE_MARKERS[marker]
        return marker

    def visit_list_item(self, node: ListItem) -> str:
        """Render a list item outside of a list, using the bullet marker."""
        return self._render_list_item(node, self.options.bullet_marker, tight=True)

    def _render_list_item(self, node: Node, marker: str, tight: bool) -> str:
        """Render one list item with continuation lines indented to its content."""
        children = node.children if isinstance(node, ListItem) else [node]
        self._container_depth += 1
        try:
            inner = self._render_blocks(children, "\n" if tight else "\n\n")
        finally:
            self._container_depth -= 1

        if not inner:
            return marker
        return f"{marker} " + self._indent(inner, len(marker) + 1)

    def visit_code_block(self, node: CodeBlock) -> str:
        """Render a fenced code block.

        The fence is longer than any backtick run in the code. An info
        string containing a backtick needs a tilde fence.
        """
        params = " ".join(node.params.split())
        fence_char = "~" if "`" in params else "`"
        fence = fence_char * max(self.options.code_fence_min, longest_run(node.text, fence_char) + 1)
        if node.text:
            return f"{fence}{params}\n{node.text}\n{fence}"
        return f"{fence}{params}\n{fence}"

    def visit_horizontal_rule(self, node: HorizontalRule) -> str:
        """Render a thematic break."""
        return self._rule_marker()

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def visit_table(self, node: Table) -> str:
        """Render a pipe table.

        The header row fixes the column count. Other rows are padded with
        empty cells or truncated. A table whose header row has no cells
        renders as nothing.
        """
        header = node.header_row
        if header is None or not header.cells:
            logger.warning("Skipping table without header cells")
            return ""

        columns = len(header.cells)
        aligns = [cell.align if isinstance(cell, TableCell) else None for cell in header.cells]

        lines = [
            self._render_row(header, aligns),
            "| " + " | ".join(_SEPARATOR_TOKENS.get(align or "", "---") for align in aligns) + " |",
        ]
        for row in node.body_rows:
            lines.append(self._render_row(row, aligns))

        table = "\n".join(lines)
        annotation = self._block_annotation(node.class_)
        if columns and annotation:
            table += "\n" + annotation
        return table

    def _render_row(self, row: TableRow, aligns: list[Optional[str]]) -> str:
        """Render a row padded or truncated to the column count."""
        cells: list[str] = []
        for column, column_align in enumerate(aligns):
            cell = row.cells[column] if column < len(row.cells) else None
            if isinstance(cell, TableCell):
                cells.append(self._render_cell(cell, column_align))
            else:
                cells.append("")
        return "| " + " | ".join(cells) + " |"

    def _render_cell(self, cell: TableCell, column_align: Optional[str]) -> str:
        """Render a cell's inline content on one line.

        A body cell whose alignment differs from its column carries a
        ``style`` override in its annotation.
        """
        text = escape_table_cell(self._render_inline(cell.content, single_line=True))
        if not self.options.emit_attributes:
            return text

        values: dict[str, str] = {}
        if cell.align and cell.align != column_align:
            values["style"] = f"text-align:{cell.align}"
        annotation = format_annotation(cell.class_, values)
        if not annotation:
            return text
        return f"{text} {annotation}" if text else annotation

    def visit_table_head(self, node: TableHead) -> str:
        """Render head rows without column context."""
        return "\n".join(self.visit_table_row(row) for row in node.rows if isinstance(row, TableRow))

    def visit_table_body(self, node: TableBody) -> str:
        """Render body rows without column context."""
        return "\n".join(self.visit_table_row(row) for row in node.rows if isinstance(row, TableRow))

    def visit_table_row(self, node: TableRow) -> str:
        """Render a single row without column context."""
        return self._render_row(node, [cell.align if isinstance(cell, TableCell) else None for cell in node.cells])

    def visit_table_cell(self, node: TableCell) -> str:
        """Render a single cell's content."""
        return self._render_cell(node, node.align)

    def visit_table_header(self, node: TableHeader) -> str:
        """Render a single header cell's content."""
        return self._render_cell(node, node.align)

    # ------------------------------------------------------------------
    # Inline nodes
    # ------------------------------------------------------------------

    def visit_text(self, node: Text) -> str:
        """Render a text run with its marks."""
        return self._render_inline([node])

    def visit_image(self, node: Image) -> str:
        """Render an image followed by its attribute annotation."""
        alt = node.alt or ""
        if self.options.escape_special:
            alt = escape_markdown_text(alt)
        result = f"![{alt}]{format_link_target(node.src, node.title)}"

        if self.options.emit_attributes:
            values = {key: node.attrs.get(key) for key in IMAGE_ANNOTATION_KEYS}
            result += format_annotation(node.class_, values)
        return result

    def visit_hard_break(self, node: HardBreak) -> str:
        """Render a hard line break."""
        return "\\\n"


# ============================================================================
# Helpers
# ============================================================================


def _has_code(run: Node) -> bool:
    return any(mark.type == "code" for mark in getattr(run, "marks", ()))


def _follows_opener(out: list[str]) -> bool:
    """Whether the last non-empty piece written so far ends with ``[``."""
    last = next((piece for piece in reversed(out) if piece), "")
    return last.endswith("[")


def _extent(runs: list[Node], index: int, mark: Mark) -> int:
    """Count consecutive runs from ``index`` that carry ``mark``."""
    count = 0
    for run in runs[index:]:
        if mark not in getattr(run, "marks", ()):
            break
        count += 1
    return count


def _can_use_bare_span(runs: list[Node], index: int, mark: Mark) -> bool:
    """Whether a span can be written as ``word{.cls}``.

    The marked runs must be one whitespace-free word, and the word must start
    after whitespace, an inline leaf or the start of the block, since that is
    how far back a trailing annotation reaches.
    """
    covered = runs[index : index + _extent(runs, index, mark)]
    if not covered or not all(isinstance(run, Text) for run in covered):
        return False
    word = "".join(run.text for run in covered)  # type: ignore[attr-defined]
    if not word or any(char.isspace() for char in word):
        return False

    previous = runs[index - 1] if index > 0 else None
    if previous is None or isinstance(previous, (Image, HardBreak)):
        return True
    return isinstance(previous, Text) and previous.text[-1:].isspace()


def _escape_trailing_bang(out: list[str]) -> None:
    """Escape an unescaped ``!`` before ``[`` so it does not start an image."""
    for i in range(len(out) - 1, -1, -1):
        if not out[i]:
            continue
        chunk = out[i]
        if not chunk.endswith("!"):
            return
        backslashes = len(chunk[:-1]) - len(chunk[:-1].rstrip("\\"))
        if backslashes % 2 == 0:
            out[i] = chunk[:-1] + "\\!"
        return


def tree_to_markdown(doc: Document, options: MarkdownRendererOptions | None = None) -> str:
    r"""Render a document tree to Markdown.

    This is a convenience function that creates a renderer and renders the
    document in one step.

    Parameters
    ----------
    doc : Document
        Document to render
    options : MarkdownRendererOptions or None, default = None
        Rendering options

    Returns
    -------
    str
        Markdown text

    Examples
    --------
    >>> from mdbridge.ast import Document, Paragraph, Text
    >>> tree_to_markdown(Document(children=[Paragraph(content=[Text("a*b")])]))
    'a\\*b\n'

    """
    return MarkdownRenderer(options).render_to_string(doc)
