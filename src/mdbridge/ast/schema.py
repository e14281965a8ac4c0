#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/ast/schema.py
"""Content-model validation for document trees.

The schema mirrors the ProseMirror node specs the tree is exchanged with:

- ``doc``: ``frontmatter? block*``
- ``paragraph``, ``heading``, ``table_cell``, ``table_header``: ``inline*``
- ``blockquote``, ``list_item``: ``block+`` (no frontmatter)
- ``bullet_list``, ``ordered_list``: ``list_item+``
- ``table``: ``table_head? table_body``
- ``table_head``: exactly one ``table_row``; ``table_body``: ``table_row+``
- ``table_row``: ``(table_cell | table_header)+``
- ``code_block``: unmarked text

Text runs must be non-empty and carry at most one mark of each type.

"""

from __future__ import annotations

import logging
from typing import Any

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
    is_inline,
)
from mdbridge.ast.visitors import NodeVisitor
from mdbridge.constants import ALIGNMENTS, MARK_PRIORITY
from mdbridge.exceptions import SchemaError

logger = logging.getLogger(__name__)

BLOCK_NODES: frozenset[type[Node]] = frozenset(
    {Frontmatter, Paragraph, Heading, BlockQuote, BulletList, OrderedList, CodeBlock, HorizontalRule, Table}
)


class ValidationVisitor(NodeVisitor):
    """Visitor that checks a document tree against the content model.

    Parameters
    ----------
    strict : bool, default = True
        Whether to raise on the first violation instead of collecting them

    Attributes
    ----------
    errors : list of str
        Violations found so far, in document order

    Examples
    --------
    Collect every violation:
        >>> validator = ValidationVisitor(strict=False)
        >>> doc.accept(validator)
        >>> validator.errors
        []

    """

    def __init__(self, strict: bool = True):
        """Initialize the validator with its strictness."""
        self.strict = strict
        self.errors: list[str] = []

    def _add_error(self, message: str) -> None:
        """Add a validation error.

        Parameters
        ----------
        message : str
            Error message

        """
        self.errors.append(message)
        if self.strict:
            raise ValueError(message)

    def _validate_inline_content(self, content: list[Node], context: str) -> None:
        for i, child in enumerate(content):
            if not is_inline(child):
                self._add_error(f"{context} can only contain inline nodes, but child {i} is {type(child).__name__}")
                continue
            child.accept(self)

    def _validate_block_content(self, children: list[Node], context: str, allow_empty: bool = False) -> None:
        if not children and not allow_empty:
            self._add_error(f"{context} must contain at least one block")
        for i, child in enumerate(children):
            if type(child) not in BLOCK_NODES:
                self._add_error(f"{context} can only contain block nodes, but child {i} is {type(child).__name__}")
                continue
            if isinstance(child, Frontmatter) and (context != "Document" or i != 0):
                self._add_error(f"{context} child {i}: frontmatter is only allowed as the first child of the document")
                continue
            child.accept(self)

    def _validate_class(self, value: Any, context: str) -> None:
        if value is not None and not isinstance(value, str):
            self._add_error(f"{context} class must be a string or None, got {type(value).__name__}")

    def _validate_marks(self, marks: tuple[Mark, ...], context: str) -> None:
        seen: set[str] = set()
        for mark in marks:
            if not isinstance(mark, Mark):
                self._add_error(f"{context} has a mark that is not a Mark: {mark!r}")
                continue
            if mark.type not in MARK_PRIORITY:
                self._add_error(f"{context} has unknown mark type '{mark.type}'")
            if mark.type in seen:
                self._add_error(f"{context} carries more than one '{mark.type}' mark")
            seen.add(mark.type)
            if mark.type == "link" and not isinstance(mark.attrs.get("href"), str):
                self._add_error(f"{context} link mark requires a string href")
            if mark.type == "span" and not (isinstance(mark.attrs.get("class"), str) and mark.attrs["class"].strip()):
                self._add_error(f"{context} span mark requires a non-empty class")

    def visit_document(self, node: Document) -> None:
        """Validate a Document node."""
        self._validate_block_content(node.children, "Document", allow_empty=True)

    def visit_frontmatter(self, node: Frontmatter) -> None:
        """Validate a Frontmatter node."""
        if not isinstance(node.raw_yaml, str):
            self._add_error("Frontmatter rawYaml must be a string")

    def visit_paragraph(self, node: Paragraph) -> None:
        """Validate a Paragraph node."""
        self._validate_class(node.class_, "Paragraph")
        self._validate_inline_content(node.content, "Paragraph")

    def visit_heading(self, node: Heading) -> None:
        """Validate a Heading node."""
        if not isinstance(node.level, int) or not 1 <= node.level <= 6:
            self._add_error(f"Invalid heading level: {node.level}")
        self._validate_class(node.class_, "Heading")
        self._validate_inline_content(node.content, "Heading")

    def visit_block_quote(self, node: BlockQuote) -> None:
        """Validate a BlockQuote node."""
        self._validate_class(node.class_, "BlockQuote")
        self._validate_block_content(node.children, "BlockQuote")

    def _validate_list(self, items: list[Node], context: str) -> None:
        if not items:
            self._add_error(f"{context} must contain at least one list item")
        for i, item in enumerate(items):
            if not isinstance(item, ListItem):
                self._add_error(f"{context} can only contain ListItem nodes, but child {i} is {type(item).__name__}")
                continue
            item.accept(self)

    def visit_bullet_list(self, node: BulletList) -> None:
        """Validate a BulletList node."""
        self._validate_list(node.items, "BulletList")

    def visit_ordered_list(self, node: OrderedList) -> None:
        """Validate an OrderedList node."""
        if not isinstance(node.order, int) or node.order < 0:
            self._add_error(f"OrderedList order must be a non-negative integer, got {node.order!r}")
        self._validate_list(node.items, "OrderedList")

    def visit_list_item(self, node: ListItem) -> None:
        """Validate a ListItem node."""
        self._validate_block_content(node.children, "ListItem")

    def visit_code_block(self, node: CodeBlock) -> None:
        """Validate a CodeBlock node."""
        if not isinstance(node.text, str):
            self._add_error("CodeBlock text must be a string")
        if not isinstance(node.params, str):
            self._add_error("CodeBlock params must be a string")

    def visit_horizontal_rule(self, node: HorizontalRule) -> None:
        """Validate a HorizontalRule node."""
        pass

    def visit_table(self, node: Table) -> None:
        """Validate a Table node, including its column count."""
        self._validate_class(node.class_, "Table")
        if node.head is not None:
            if not isinstance(node.head, TableHead):
                self._add_error(f"Table head must be a TableHead, got {type(node.head).__name__}")
            else:
                node.head.accept(self)
        if not isinstance(node.body, TableBody):
            self._add_error(f"Table body must be a TableBody, got {type(node.body).__name__}")
            return
        node.body.accept(self)

        header = node.header_row
        if header is None:
            return
        columns = len(header.cells)
        for i, row in enumerate(node.body_rows):
            if len(row.cells) != columns:
                self._add_error(f"Table row {i} has {len(row.cells)} cells, expected {columns}")

    def _validate_rows(self, rows: list[Node], context: str) -> None:
        for i, row in enumerate(rows):
            if not isinstance(row, TableRow):
                self._add_error(f"{context} can only contain TableRow nodes, but child {i} is {type(row).__name__}")
                continue
            row.accept(self)

    def visit_table_head(self, node: TableHead) -> None:
        """Validate a TableHead node."""
        if len(node.rows) != 1:
            self._add_error(f"TableHead must contain exactly one row, got {len(node.rows)}")
        self._validate_rows(node.rows, "TableHead")

    def visit_table_body(self, node: TableBody) -> None:
        """Validate a TableBody node."""
        if not node.rows:
            self._add_error("TableBody must contain at least one row")
        self._validate_rows(node.rows, "TableBody")

    def visit_table_row(self, node: TableRow) -> None:
        """Validate a TableRow node."""
        if not node.cells:
            self._add_error("TableRow must contain at least one cell")
        for i, cell in enumerate(node.cells):
            if not isinstance(cell, TableCell):
                self._add_error(f"TableRow can only contain cells, but child {i} is {type(cell).__name__}")
                continue
            cell.accept(self)

    def _validate_cell(self, node: TableCell, context: str) -> None:
        if node.align is not None and node.align not in ALIGNMENTS:
            self._add_error(f"{context} has invalid align {node.align!r}")
        self._validate_class(node.class_, context)
        self._validate_inline_content(node.content, context)

    def visit_table_cell(self, node: TableCell) -> None:
        """Validate a TableCell node."""
        self._validate_cell(node, "TableCell")

    def visit_table_header(self, node: TableHeader) -> None:
        """Validate a TableHeader node."""
        self._validate_cell(node, "TableHeader")

    def visit_text(self, node: Text) -> None:
        """Validate a Text node."""
        if not isinstance(node.text, str) or not node.text:
            self._add_error("Text nodes must hold a non-empty string")
        self._validate_marks(node.marks, "Text")

    def visit_image(self, node: Image) -> None:
        """Validate an Image node."""
        if not isinstance(node.src, str):
            self._add_error("Image src must be a string")
        for name in ("alt", "title"):
            value = getattr(node, name)
            if value is not None and not isinstance(value, str):
                self._add_error(f"Image {name} must be a string or None")
        for name in ("width", "height", "max_width"):
            value = getattr(node, name)
            if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
                self._add_error(f"Image {name} must be a number or None")
        if node.align is not None and node.align not in ALIGNMENTS:
            self._add_error(f"Image has invalid align {node.align!r}")
        self._validate_class(node.class_, "Image")
        self._validate_marks(node.marks, "Image")

    def visit_hard_break(self, node: HardBreak) -> None:
        """Validate a HardBreak node."""
        self._validate_marks(node.marks, "HardBreak")


def validate_document(doc: Node, raise_on_error: bool = True) -> list[str]:
    """Check a document tree against the content model.

    Parameters
    ----------
    doc : Node
        Tree to check; normally a Document
    raise_on_error : bool, default = True
        Raise SchemaError when violations are found

    Returns
    -------
    list of str
        The violations found (empty when the tree is valid)

    Raises
    ------
    SchemaError
        If violations are found and ``raise_on_error`` is True

    """
    validator = ValidationVisitor(strict=False)
    if not isinstance(doc, Document):
        validator.errors.append(f"Root node must be a Document, got {type(doc).__name__}")
    else:
        doc.accept(validator)

    if validator.errors:
        logger.debug("Schema validation found %d violation(s)", len(validator.errors))
        if raise_on_error:
            raise SchemaError(validator.errors)
    return validator.errors


def is_valid_document(doc: Node) -> bool:
    """Return True when the tree satisfies the content model."""
    return not validate_document(doc, raise_on_error=False)
