#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/parsers/markdown.py
"""Markdown to document tree converter.

This module converts Markdown text into the mdbridge document tree using
the mistune tokenizer. The pipeline is:

1. split off a leading ``---`` frontmatter block
2. preprocess the body (HTML images, badges, tag stripping, footnotes)
3. tokenize with mistune, extended with attribute annotations and
   bracketed spans
4. map tokens to tree nodes, attaching annotations to blocks, images and
   words
5. prepend the frontmatter node

Parsing is total: when the tokenizer fails, the body is rebuilt as plain
text paragraphs, and if even that yields nothing a single diagnostic
paragraph is returned.

"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from mdbridge.ast import (
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
    add_mark,
    coerce_number,
    merge_class_names,
    normalize_inline,
)
from mdbridge.constants import ALIGNMENTS, FALLBACK_DIAGNOSTIC_MESSAGE, IMAGE_ANNOTATION_KEYS
from mdbridge.exceptions import ParsingError
from mdbridge.options.markdown import MarkdownParserOptions
from mdbridge.parsers.base import BaseParser, ParserInput
from mdbridge.utils.attributes import Annotation, install_attribute_syntax, parse_annotation
from mdbridge.utils.frontmatter import load_frontmatter, normalize_newlines, split_frontmatter
from mdbridge.utils.preprocess import preprocess_markdown, strip_html

logger = logging.getLogger(__name__)

# Block-level tables, plus tables nested in quotes and list items
_TABLE_PLUGINS = (
    "table",
    "mistune.plugins.table.table_in_quote",
    "mistune.plugins.table.table_in_list",
)


@dataclass
class _PendingAnnotation:
    """Annotation found in inline content, not yet attached to anything."""

    raw: str
    annotation: Annotation
    marks: tuple[Mark, ...] = ()


InlineItem = Union[Node, _PendingAnnotation]


class MarkdownToTreeConverter(BaseParser):
    r"""Convert Markdown to the document tree.

    Parameters
    ----------
    options : MarkdownParserOptions or None, default = None
        Parser configuration options

    Examples
    --------
    Basic parsing:

        >>> converter = MarkdownToTreeConverter()
        >>> doc = converter.parse("# Hello {.title}\\n\\nThis is **bold**.")
        >>> doc.children[0].class_
        'title'

    Without preprocessing:

        >>> options = MarkdownParserOptions(preprocess=False)
        >>> doc = MarkdownToTreeConverter(options).parse("<b>kept</b>")

    """

    def __init__(self, options: MarkdownParserOptions | None = None):
        """Initialize the Markdown parser with options."""
        BaseParser._validate_options_type(options, MarkdownParserOptions, "markdown")
        options = options or MarkdownParserOptions()
        super().__init__(options)
        self.options: MarkdownParserOptions = options
        self._attributes_enabled = False

    def parse(self, input_data: ParserInput) -> Document:
        """Parse Markdown input into a document tree.

        Parameters
        ----------
        input_data : str, Path, IO or bytes
            Markdown content, a path to read, or an open stream

        Returns
        -------
        Document
            The parsed document; never raises for malformed content

        """
        text = normalize_newlines(self._load_text_content(input_data))

        frontmatter: Optional[str] = None
        body = text
        if self.options.parse_frontmatter:
            frontmatter, body = split_frontmatter(text)

        try:
            body = preprocess_markdown(body, self.options)
        except Exception as e:
            logger.warning("Preprocessing failed, tokenizing the raw body instead: %s", e)

        try:
            children = self._parse_body(body)
        except ParsingError as e:
            logger.warning("Markdown parsing failed, falling back to plain text: %s", e.original_error or e)
            children = self._fallback_children(body)

        if frontmatter is not None:
            children.insert(0, Frontmatter(raw_yaml=frontmatter))
        return Document(children=children)

    def extract_metadata(self, document: Document) -> dict[str, Any]:
        """Return the document's frontmatter as a mapping.

        Parameters
        ----------
        document : Document
            A parsed document

        Returns
        -------
        dict
            Parsed YAML frontmatter; empty when there is none or it is invalid

        """
        frontmatter = document.frontmatter
        return load_frontmatter(frontmatter.raw_yaml) if frontmatter else {}

    # ------------------------------------------------------------------
    # Tokenizing
    # ------------------------------------------------------------------

    def _create_markdown(self) -> Any:
        """Create a mistune instance configured from the options."""
        import mistune

        plugins = list(_TABLE_PLUGINS) if self.options.parse_tables else []
        markdown = mistune.create_markdown(renderer=None, plugins=plugins)

        self._attributes_enabled = False
        if self.options.parse_attributes:
            self._attributes_enabled = install_attribute_syntax(markdown)
        return markdown

    def _parse_body(self, body: str) -> list[Node]:
        """Tokenize the body and build block nodes.

        Raises
        ------
        ParsingError
            If the tokenizer or the tree builder fails

        """
        try:
            markdown = self._create_markdown()
            tokens, _state = markdown.parse(body)
            if not isinstance(tokens, list):
                raise TypeError(f"Expected a token list, got {type(tokens).__name__}")
            return self._process_blocks(tokens)
        except Exception as e:
            raise ParsingError("Failed to tokenize Markdown", parsing_stage="tokenize", original_error=e) from e

    def _fallback_children(self, body: str) -> list[Node]:
        """Rebuild the body as one plain paragraph per non-blank line."""
        children: list[Node] = []
        for line in body.split("\n"):
            text = strip_html(line).strip()
            if text:
                children.append(Paragraph(content=[Text(text)]))
        if not children:
            children.append(Paragraph(content=[Text(FALLBACK_DIAGNOSTIC_MESSAGE)]))
        return children

    # ------------------------------------------------------------------
    # Block tokens
    # ------------------------------------------------------------------

    def _process_blocks(self, tokens: list[dict[str, Any]]) -> list[Node]:
        """Process a list of block tokens into block nodes.

        A paragraph holding nothing but an annotation sets the class of a
        directly preceding table or block quote and is dropped.
        """
        nodes: list[Node] = []

        for token in tokens:
            token_type = token.get("type", "")
            if token_type == "blank_line":
                continue

            if token_type in ("paragraph", "block_text"):
                content, pending = self._process_inline(token.get("children", []))
                if pending is not None and not content:
                    previous = nodes[-1] if nodes else None
                    if isinstance(previous, (Table, BlockQuote)) and pending.annotation.classes:
                        class_name = merge_class_names(previous.class_, pending.annotation.class_name)
                        nodes[-1] = previous.with_attrs({"class": class_name})
                        continue
                    nodes.append(Paragraph(content=normalize_inline([Text(pending.raw, marks=pending.marks)])))
                    continue
                nodes.append(Paragraph(content=content, class_=pending.annotation.class_name if pending else None))
                continue

            node = self._process_token(token)
            if node is not None:
                nodes.append(node)

        return nodes

    def _process_token(self, token: dict[str, Any]) -> Node | None:
        """Process a single non-paragraph block token."""
        token_type = token.get("type", "")

        if token_type == "heading":
            return self._process_heading(token)
        elif token_type == "block_code":
            return self._process_code_block(token)
        elif token_type == "block_quote":
            children = self._process_blocks(token.get("children", []))
            return BlockQuote(children=children or [Paragraph()])
        elif token_type == "list":
            return self._process_list(token)
        elif token_type == "table":
            return self._process_table(token)
        elif token_type == "thematic_break":
            return HorizontalRule()
        elif token_type == "block_html":
            logger.debug("Dropping HTML block left after preprocessing")
            return None

        logger.debug("Skipping unsupported block token '%s'", token_type)
        return None

    def _process_heading(self, token: dict[str, Any]) -> Heading:
        """Process heading token."""
        attrs = token.get("attrs") or {}
        level = attrs.get("level", 1)
        if not isinstance(level, int) or not 1 <= level <= 6:
            level = 1

        content, pending = self._process_inline(token.get("children", []))
        content = _single_line(content)
        return Heading(level=level, content=content, class_=pending.annotation.class_name if pending else None)

    def _process_code_block(self, token: dict[str, Any]) -> CodeBlock:
        """Process code block token; the final newline belongs to the fence."""
        code = token.get("raw", "")
        if code.endswith("\n"):
            code = code[:-1]
        attrs = token.get("attrs") or {}
        return CodeBlock(text=code, params=(attrs.get("info") or "").strip())

    def _process_list(self, token: dict[str, Any]) -> Node | None:
        """Process list token."""
        items: list[Node] = []
        for child in token.get("children", []):
            if child.get("type") == "list_item":
                children = self._process_blocks(child.get("children", []))
                items.append(ListItem(children=children or [Paragraph()]))
        if not items:
            return None

        attrs = token.get("attrs") or {}
        tight = bool(token.get("tight", True))
        # A lone empty item has nothing to separate, and is written back tight
        if len(items) == 1 and all(isinstance(c, Paragraph) and not c.content for c in items[0].children):
            tight = True
        if attrs.get("ordered"):
            return OrderedList(items=items, order=attrs.get("start", 1), tight=tight)
        return BulletList(items=items, tight=tight)

    def _process_table(self, token: dict[str, Any]) -> Table | None:
        """Process table token.

        The tokenizer delivers header cells directly under ``table_head``.
        A table without body rows keeps its header row as the only body
        row, so that it still satisfies the table content model.
        """
        head_row: Optional[TableRow] = None
        body_rows: list[Node] = []

        for part in token.get("children", []):
            part_type = part.get("type", "")
            if part_type == "table_head":
                cells = [
                    self._process_table_cell(cell, header=True)
                    for cell in part.get("children", [])
                    if cell.get("type") == "table_cell"
                ]
                if cells:
                    head_row = TableRow(cells=cells)
            elif part_type == "table_body":
                for row_token in part.get("children", []):
                    cells = [
                        self._process_table_cell(cell, header=False)
                        for cell in row_token.get("children", [])
                        if cell.get("type") == "table_cell"
                    ]
                    if cells:
                        body_rows.append(TableRow(cells=cells))

        if head_row is None:
            return Table(body=TableBody(rows=body_rows)) if body_rows else None
        if not body_rows:
            return Table(head=None, body=TableBody(rows=[head_row]))
        return Table(head=TableHead(rows=[head_row]), body=TableBody(rows=body_rows))

    def _process_table_cell(self, token: dict[str, Any], header: bool) -> TableCell:
        """Process a table cell; a trailing annotation may override alignment."""
        content, pending = self._process_inline(token.get("children", []))
        content = _single_line(content)
        attrs = token.get("attrs") or {}
        align = attrs.get("align")
        if align not in ALIGNMENTS:
            align = None

        class_name: Optional[str] = None
        if pending is not None:
            class_name = pending.annotation.class_name
            align = pending.annotation.text_align or align

        cell_class = TableHeader if header else TableCell
        return cell_class(content=content, align=align, class_=class_name)

    # ------------------------------------------------------------------
    # Inline tokens
    # ------------------------------------------------------------------

    def _process_inline(self, tokens: list[dict[str, Any]]) -> tuple[list[Node], Optional[_PendingAnnotation]]:
        """Build inline content for a block.

        Returns
        -------
        tuple
            The normalized inline items and the block-level annotation, if
            the block ends with one

        """
        items = self._flatten_inline(tokens, ())
        return self._attach_annotations(items)

    def _flatten_inline(self, tokens: list[dict[str, Any]], marks: tuple[Mark, ...]) -> list[InlineItem]:
        """Flatten nested inline tokens into runs carrying their marks."""
        items: list[InlineItem] = []

        for token in tokens:
            token_type = token.get("type", "")

            if token_type == "text":
                items.append(Text(token.get("raw", ""), marks=marks))
            elif token_type == "softbreak":
                items.append(Text("\n", marks=marks))
            elif token_type == "linebreak":
                items.append(HardBreak(marks=marks))
            elif token_type == "emphasis":
                items.extend(self._flatten_inline(token.get("children", []), add_mark(marks, Mark.em())))
            elif token_type == "strong":
                items.extend(self._flatten_inline(token.get("children", []), add_mark(marks, Mark.strong())))
            elif token_type == "codespan":
                items.append(Text(token.get("raw", ""), marks=add_mark(marks, Mark.code())))
            elif token_type == "link":
                attrs = token.get("attrs") or {}
                link = Mark.link(attrs.get("url", ""), attrs.get("title") or None)
                items.extend(self._flatten_inline(token.get("children", []), add_mark(marks, link)))
            elif token_type == "image":
                items.append(self._make_image(token, marks))
            elif token_type == "bracketed_span":
                attrs = token.get("attrs") or {}
                items.extend(self._flatten_inline(token.get("children", []), _with_span(marks, attrs.get("class"))))
            elif token_type == "attr_annotation":
                raw = token.get("raw", "")
                annotation = parse_annotation(raw)
                if annotation is None:
                    items.append(Text(raw, marks=marks))
                else:
                    items.append(_PendingAnnotation(raw=raw, annotation=annotation, marks=marks))
            elif token_type == "inline_html":
                logger.debug("Dropping inline HTML left after preprocessing")
            elif "children" in token:
                items.extend(self._flatten_inline(token.get("children", []), marks))
            elif token.get("raw"):
                items.append(Text(token["raw"], marks=marks))

        return items

    def _make_image(self, token: dict[str, Any], marks: tuple[Mark, ...]) -> Image:
        """Build an image; the alt text is the plain text of its children."""
        attrs = token.get("attrs") or {}
        alt = "".join(_plain_text(child) for child in token.get("children", []))
        return Image(
            src=attrs.get("url") or "",
            alt=alt or None,
            title=attrs.get("title") or None,
            marks=marks,
        )

    def _attach_annotations(self, items: list[InlineItem]) -> tuple[list[Node], Optional[_PendingAnnotation]]:
        """Attach each annotation to the block, an image, or the preceding word.

        Rules, in order:

        1. last in the block and preceded by whitespace or nothing: block
        2. directly after an image: image attributes
        3. directly after non-whitespace text: span over the preceding word
        4. otherwise: literal text

        """
        result: list[Node] = []
        block_annotation: Optional[_PendingAnnotation] = None
        last_index = len(items) - 1

        for index, item in enumerate(items):
            if not isinstance(item, _PendingAnnotation):
                result.append(item)
                continue

            previous = result[-1] if result else None
            if index == last_index and (previous is None or _ends_with_whitespace(previous)):
                block_annotation = item
                _trim_trailing_whitespace(result)
            elif isinstance(previous, Image):
                result[-1] = _apply_image_annotation(previous, item.annotation)
            elif (
                isinstance(previous, Text)
                and previous.text
                and not previous.text[-1].isspace()
                and item.annotation.classes
            ):
                _apply_word_span(result, item.annotation.class_name)
            else:
                result.append(Text(item.raw, marks=item.marks))

        return normalize_inline(result), block_annotation


# ============================================================================
# Inline helpers
# ============================================================================


def _plain_text(token: dict[str, Any]) -> str:
    if "children" in token:
        return "".join(_plain_text(child) for child in token["children"])
    if token.get("type") == "softbreak":
        return "\n"
    return token.get("raw", "")


def _single_line(items: list[Node]) -> list[Node]:
    """Turn line breaks into spaces; headings and table cells are one line."""
    flattened: list[Node] = []
    for item in items:
        if isinstance(item, HardBreak):
            flattened.append(Text(" ", marks=item.marks))
        elif isinstance(item, Text) and "\n" in item.text:
            flattened.append(Text(item.text.replace("\n", " "), marks=item.marks))
        else:
            flattened.append(item)
    return normalize_inline(flattened)


def _with_span(marks: tuple[Mark, ...], class_name: Optional[str]) -> tuple[Mark, ...]:
    """Add a span mark, merging classes with an existing span."""
    existing = next((m for m in marks if m.type == "span"), None)
    merged = merge_class_names(existing.attrs.get("class") if existing else None, class_name)
    if merged is None:
        return marks
    return add_mark(marks, Mark.span(merged))


def _ends_with_whitespace(item: Node) -> bool:
    return isinstance(item, Text) and item.text[-1:].isspace()


def _trim_trailing_whitespace(items: list[Node]) -> None:
    while items and isinstance(items[-1], Text):
        last = items[-1]
        trimmed = last.text.rstrip()
        if trimmed:
            items[-1] = Text(trimmed, marks=last.marks)
            return
        items.pop()


def _apply_image_annotation(image: Image, annotation: Annotation) -> Image:
    """Apply ``class``, dimensions and ``align`` from an annotation to an image."""
    changes: dict[str, Any] = {}
    if annotation.classes:
        changes["class"] = merge_class_names(image.class_, annotation.class_name)

    for key in IMAGE_ANNOTATION_KEYS:
        value = annotation.values.get(key)
        if value is None:
            continue
        if key == "align":
            if value in ALIGNMENTS:
                changes[key] = value
            else:
                logger.debug("Ignoring invalid image align %r", value)
            continue
        try:
            changes[key] = coerce_number(value, key)
        except ValueError as e:
            logger.debug("Ignoring image attribute: %s", e)

    if not changes:
        return image
    result = image.with_attrs(changes)
    assert isinstance(result, Image)
    return result


def _apply_word_span(items: list[Node], class_name: Optional[str]) -> None:
    """Put a span mark on the word that ends the item list.

    The word runs back to the last whitespace, an inline leaf, or the start
    of the block, crossing mark boundaries.
    """
    start = 0
    for i in range(len(items) - 1, -1, -1):
        item = items[i]
        if not isinstance(item, Text):
            start = i + 1
            break
        cut = max((k for k, char in enumerate(item.text) if char.isspace()), default=-1)
        if cut >= 0:
            head, tail = item.text[: cut + 1], item.text[cut + 1 :]
            if tail:
                items[i : i + 1] = [Text(head, marks=item.marks), Text(tail, marks=item.marks)]
            start = i + 1
            break

    for j in range(start, len(items)):
        item = items[j]
        if isinstance(item, Text):
            items[j] = Text(item.text, marks=_with_span(item.marks, class_name))


def markdown_to_tree(markdown_content: str, options: MarkdownParserOptions | None = None) -> Document:
    r"""Convert a Markdown string to a document tree.

    This is a convenience function that creates a converter and parses
    the markdown in one step.

    Parameters
    ----------
    markdown_content : str
        Markdown text to parse
    options : MarkdownParserOptions or None, default = None
        Parser configuration

    Returns
    -------
    Document
        The parsed document

    Examples
    --------
    >>> from mdbridge.parsers.markdown import markdown_to_tree
    >>> doc = markdown_to_tree("# Hello\\n\\nWorld")
    >>> len(doc.children)
    2

    """
    return MarkdownToTreeConverter(options).parse(markdown_content)
