#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/ast/nodes.py
"""Document tree node classes.

This module defines the typed node hierarchy used to represent a Markdown
document. The tree follows the ProseMirror content model: block nodes hold
either further blocks or a flat run of inline items, and inline formatting
is expressed as marks attached to each run rather than as wrapper nodes.

Node Hierarchy
--------------
All nodes inherit from the base Node class and support the visitor pattern.

Block-level nodes:
    - Document, Frontmatter, Paragraph, Heading, BlockQuote
    - BulletList, OrderedList, ListItem, CodeBlock, HorizontalRule
    - Table, TableHead, TableBody, TableRow, TableCell, TableHeader

Inline nodes (each carries a tuple of Mark values):
    - Text, Image, HardBreak

Marks:
    - em, strong, code, link (href, title), span (class)

Every node exposes its attributes under their tree names through ``attrs``
(``rawYaml``, ``class``, ``maxWidth``...) and produces updated copies with
``with_attrs``. Nodes are treated as immutable values: edits build new nodes
and share untouched subtrees.

"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Mapping, Optional, Sequence

from mdbridge.constants import ALIGNMENTS, MARK_PRIORITY

# ============================================================================
# Marks
# ============================================================================


@dataclass(frozen=True)
class Mark:
    """Inline annotation applied to a run of inline content.

    Marks compare by type and attributes. Only one mark of each type can be
    active on a run, so hashing uses the type alone.

    Parameters
    ----------
    type : str
        Mark type: ``em``, ``strong``, ``code``, ``link`` or ``span``
    attrs : dict, default = empty dict
        Mark attributes (``href``/``title`` for links, ``class`` for spans)

    Examples
    --------
    >>> Mark.span("tag-biomarker")
    Mark(type='span', attrs={'class': 'tag-biomarker'})

    """

    type: str
    attrs: dict[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def em(cls) -> Mark:
        """Create an emphasis mark."""
        return cls("em")

    @classmethod
    def strong(cls) -> Mark:
        """Create a strong mark."""
        return cls("strong")

    @classmethod
    def code(cls) -> Mark:
        """Create an inline code mark."""
        return cls("code")

    @classmethod
    def link(cls, href: str, title: str | None = None) -> Mark:
        """Create a link mark."""
        return cls("link", {"href": href, "title": title})

    @classmethod
    def span(cls, class_: str) -> Mark:
        """Create a span mark carrying a space-separated class list."""
        return cls("span", {"class": class_})

    @property
    def priority(self) -> int:
        """Position of this mark type in the fixed opening order."""
        try:
            return MARK_PRIORITY.index(self.type)
        except ValueError:
            return len(MARK_PRIORITY)


def sort_marks(marks: Sequence[Mark]) -> tuple[Mark, ...]:
    """Return marks in canonical priority order, one per type.

    When several marks of the same type are present the last one wins,
    matching how a mark set replaces an existing mark of the same type.

    Parameters
    ----------
    marks : sequence of Mark
        Marks in any order

    Returns
    -------
    tuple of Mark
        Deduplicated marks ordered by priority

    """
    by_type: dict[str, Mark] = {}
    for mark in marks:
        by_type[mark.type] = mark
    return tuple(sorted(by_type.values(), key=lambda m: (m.priority, m.type)))


def add_mark(marks: Sequence[Mark], mark: Mark) -> tuple[Mark, ...]:
    """Add a mark to a mark set, replacing any mark of the same type."""
    return sort_marks([m for m in marks if m.type != mark.type] + [mark])


def merge_class_names(*values: str | None) -> str | None:
    """Space-join class lists, dropping duplicates and empty entries.

    Parameters
    ----------
    *values : str or None
        Space-separated class lists

    Returns
    -------
    str or None
        Merged class list, or None when nothing remains

    Examples
    --------
    >>> merge_class_names("a b", None, "b c")
    'a b c'

    """
    seen: list[str] = []
    for value in values:
        if not value:
            continue
        for name in value.split():
            if name not in seen:
                seen.append(name)
    return " ".join(seen) if seen else None


# ============================================================================
# Base Node
# ============================================================================


class Node(ABC):
    """Base class for all document tree nodes.

    Subclasses declare their tree type name in ``type_name`` and the mapping
    from tree attribute names to dataclass fields in ``attr_fields``.

    """

    type_name: ClassVar[str] = ""
    attr_fields: ClassVar[dict[str, str]] = {}

    @abstractmethod
    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this node.

        Parameters
        ----------
        visitor : Any
            A visitor object with visit_* methods

        Returns
        -------
        Any
            Result from the visitor's processing

        """
        pass

    @property
    def attrs(self) -> dict[str, Any]:
        """Return the node's attributes keyed by their tree names."""
        return {name: getattr(self, attr) for name, attr in self.attr_fields.items()}

    def with_attrs(self, attrs: Mapping[str, Any] | None = None, **changes: Any) -> Node:
        """Return a copy of this node with updated attributes.

        Attribute names may be given either as tree names (``class``,
        ``maxWidth``, ``rawYaml``) or as the Python field names.

        Parameters
        ----------
        attrs : mapping, optional
            Attribute changes, useful for names that are Python keywords
        **changes : Any
            Further attribute changes

        Returns
        -------
        Node
            Updated copy; the original node is left untouched

        Raises
        ------
        ValueError
            If an attribute is unknown for this node type or a value is invalid

        """
        merged: dict[str, Any] = dict(attrs or {})
        merged.update(changes)
        field_values: dict[str, Any] = {}
        known_fields = set(self.attr_fields.values())
        for name, value in merged.items():
            target = self.attr_fields.get(name, name)
            if target not in known_fields:
                raise ValueError(f"Unknown attribute '{name}' for node type '{self.type_name}'")
            field_values[target] = value
        return replace(self, **field_values)  # type: ignore[type-var]


def coerce_number(value: Any, name: str = "value") -> Optional[float]:
    """Coerce a dimension attribute to int or float.

    Parameters
    ----------
    value : Any
        None, a number, or a numeric string such as ``"120"`` or ``"0.5"``
    name : str, default = "value"
        Attribute name used in error messages

    Returns
    -------
    int, float or None
        The coerced number

    Raises
    ------
    ValueError
        If the value is not numeric

    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number, got {value!r}")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            raise ValueError(f"{name} must be a number, got {value!r}") from None
        if not math.isfinite(number):
            raise ValueError(f"{name} must be finite, got {value!r}")
        return number
    raise ValueError(f"{name} must be a number, got {value!r}")


def _validate_align(align: Optional[str], type_name: str) -> None:
    if align is not None and align not in ALIGNMENTS:
        raise ValueError(f"{type_name} align must be one of {sorted(ALIGNMENTS)} or None, got {align!r}")


# ============================================================================
# Block-level Nodes
# ============================================================================


@dataclass
class Document(Node):
    """Root document node containing block-level children.

    Parameters
    ----------
    children : list of Node, default = empty list
        Block-level nodes; a Frontmatter node, when present, comes first

    """

    type_name: ClassVar[str] = "doc"

    children: list[Node] = field(default_factory=list)

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this document."""
        return visitor.visit_document(self)

    @property
    def frontmatter(self) -> Optional[Frontmatter]:
        """Return the leading frontmatter node, if any."""
        if self.children and isinstance(self.children[0], Frontmatter):
            return self.children[0]
        return None


@dataclass
class Frontmatter(Node):
    """Atomic block holding the raw YAML text of a ``---`` delimited header.

    Parameters
    ----------
    raw_yaml : str, default = ""
        Verbatim text between the delimiters, without the closing ``---``

    """

    type_name: ClassVar[str] = "frontmatter"
    attr_fields: ClassVar[dict[str, str]] = {"rawYaml": "raw_yaml"}

    raw_yaml: str = ""

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this frontmatter block."""
        return visitor.visit_frontmatter(self)


@dataclass
class Paragraph(Node):
    """Paragraph node containing inline content.

    Parameters
    ----------
    content : list of Node, default = empty list
        Inline items (Text, Image, HardBreak)
    class_ : str or None, default = None
        Space-separated class list from an attribute annotation

    """

    type_name: ClassVar[str] = "paragraph"
    attr_fields: ClassVar[dict[str, str]] = {"class": "class_"}

    content: list[Node] = field(default_factory=list)
    class_: Optional[str] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this paragraph."""
        return visitor.visit_paragraph(self)


@dataclass
class Heading(Node):
    """Heading node (h1-h6).

    Parameters
    ----------
    level : int
        Heading level (1-6, where 1 is most important)
    content : list of Node, default = empty list
        Inline items representing heading text
    class_ : str or None, default = None
        Space-separated class list from an attribute annotation

    """

    type_name: ClassVar[str] = "heading"
    attr_fields: ClassVar[dict[str, str]] = {"level": "level", "class": "class_"}

    level: int = 1
    content: list[Node] = field(default_factory=list)
    class_: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate heading level is between 1 and 6."""
        if not 1 <= self.level <= 6:
            raise ValueError(f"Heading level must be 1-6, got {self.level}")

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this heading."""
        return visitor.visit_heading(self)


@dataclass
class BlockQuote(Node):
    """Block quote node containing block-level children.

    Parameters
    ----------
    children : list of Node, default = empty list
        Block-level nodes inside the quote
    class_ : str or None, default = None
        Space-separated class list from an attribute annotation

    """

    type_name: ClassVar[str] = "blockquote"
    attr_fields: ClassVar[dict[str, str]] = {"class": "class_"}

    children: list[Node] = field(default_factory=list)
    class_: Optional[str] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this block quote."""
        return visitor.visit_block_quote(self)


@dataclass
class BulletList(Node):
    """Unordered list node.

    Parameters
    ----------
    items : list of ListItem, default = empty list
        List items
    tight : bool, default = False
        Whether items are separated by single newlines rather than blank lines

    """

    type_name: ClassVar[str] = "bullet_list"
    attr_fields: ClassVar[dict[str, str]] = {"tight": "tight"}

    items: list[Node] = field(default_factory=list)
    tight: bool = False

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this list."""
        return visitor.visit_bullet_list(self)


@dataclass
class OrderedList(Node):
    """Ordered list node.

    Parameters
    ----------
    items : list of ListItem, default = empty list
        List items
    order : int, default = 1
        Number of the first item
    tight : bool, default = False
        Whether items are separated by single newlines rather than blank lines

    """

    type_name: ClassVar[str] = "ordered_list"
    attr_fields: ClassVar[dict[str, str]] = {"order": "order", "tight": "tight"}

    items: list[Node] = field(default_factory=list)
    order: int = 1
    tight: bool = False

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this list."""
        return visitor.visit_ordered_list(self)


@dataclass
class ListItem(Node):
    """List item node; its first child is normally a paragraph."""

    type_name: ClassVar[str] = "list_item"

    children: list[Node] = field(default_factory=list)

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this list item."""
        return visitor.visit_list_item(self)


@dataclass
class CodeBlock(Node):
    """Code block node holding unmarked text.

    Parameters
    ----------
    text : str, default = ""
        Code content without the trailing newline
    params : str, default = ""
        Fence info string (usually the language)

    """

    type_name: ClassVar[str] = "code_block"
    attr_fields: ClassVar[dict[str, str]] = {"params": "params"}

    text: str = ""
    params: str = ""

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this code block."""
        return visitor.visit_code_block(self)


@dataclass
class HorizontalRule(Node):
    """Thematic break (horizontal rule)."""

    type_name: ClassVar[str] = "horizontal_rule"

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this rule."""
        return visitor.visit_horizontal_rule(self)


# ============================================================================
# Tables
# ============================================================================


@dataclass
class TableCell(Node):
    """Table body cell with inline content.

    Parameters
    ----------
    content : list of Node, default = empty list
        Inline items of the cell
    align : {'left', 'center', 'right'} or None, default = None
        Cell alignment
    class_ : str or None, default = None
        Space-separated class list from an attribute annotation

    """

    type_name: ClassVar[str] = "table_cell"
    attr_fields: ClassVar[dict[str, str]] = {"align": "align", "class": "class_"}

    content: list[Node] = field(default_factory=list)
    align: Optional[str] = None
    class_: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the alignment value."""
        _validate_align(self.align, self.type_name)

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this cell."""
        return visitor.visit_table_cell(self)


@dataclass
class TableHeader(TableCell):
    """Table header cell; same attributes as TableCell."""

    type_name: ClassVar[str] = "table_header"

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this header cell."""
        return visitor.visit_table_header(self)


@dataclass
class TableRow(Node):
    """Table row containing TableCell or TableHeader nodes."""

    type_name: ClassVar[str] = "table_row"

    cells: list[Node] = field(default_factory=list)

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this row."""
        return visitor.visit_table_row(self)


@dataclass
class TableHead(Node):
    """Table head section; holds exactly one header row."""

    type_name: ClassVar[str] = "table_head"

    rows: list[Node] = field(default_factory=list)

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this table head."""
        return visitor.visit_table_head(self)


@dataclass
class TableBody(Node):
    """Table body section; holds one or more rows."""

    type_name: ClassVar[str] = "table_body"

    rows: list[Node] = field(default_factory=list)

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this table body."""
        return visitor.visit_table_body(self)


@dataclass
class Table(Node):
    """Table node with an optional head section and a body section.

    Parameters
    ----------
    head : TableHead or None, default = None
        Header section with a single row
    body : TableBody, default = empty body
        Body rows
    class_ : str or None, default = None
        Space-separated class list from a trailing attribute annotation

    Notes
    -----
    The column count is fixed by the header row (the first row of ``head``,
    or the first body row when there is no head). Rows of other lengths are
    padded or truncated when serialized.

    """

    type_name: ClassVar[str] = "table"
    attr_fields: ClassVar[dict[str, str]] = {"class": "class_"}

    head: Optional[TableHead] = None
    body: TableBody = field(default_factory=TableBody)
    class_: Optional[str] = None

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this table."""
        return visitor.visit_table(self)

    @property
    def header_row(self) -> Optional[TableRow]:
        """Return the row that defines the table's columns."""
        if self.head is not None and self.head.rows:
            row = self.head.rows[0]
        elif self.body.rows:
            row = self.body.rows[0]
        else:
            return None
        return row if isinstance(row, TableRow) else None

    @property
    def body_rows(self) -> list[TableRow]:
        """Return the data rows, excluding a header row borrowed from the body."""
        rows = [row for row in self.body.rows if isinstance(row, TableRow)]
        if self.head is None or not self.head.rows:
            return rows[1:]
        return rows


# ============================================================================
# Inline Nodes
# ============================================================================


@dataclass
class Text(Node):
    """Run of text sharing one set of marks.

    Parameters
    ----------
    text : str
        The text content
    marks : tuple of Mark, default = ()
        Marks applied to the whole run

    """

    type_name: ClassVar[str] = "text"

    text: str = ""
    marks: tuple[Mark, ...] = ()

    def __post_init__(self) -> None:
        """Normalize marks to canonical order."""
        self.marks = sort_marks(self.marks)

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this text run."""
        return visitor.visit_text(self)


@dataclass
class Image(Node):
    """Atomic inline image.

    Parameters
    ----------
    src : str
        Image source; required, never None
    alt : str or None, default = None
        Alternative text
    title : str or None, default = None
        Title text
    width : int, float or None, default = None
        Display width
    height : int, float or None, default = None
        Display height
    max_width : int, float or None, default = None
        Maximum display width (``maxWidth`` in the tree)
    align : {'left', 'center', 'right'} or None, default = None
        Image alignment
    class_ : str or None, default = None
        Space-separated class list
    marks : tuple of Mark, default = ()
        Marks applied to the image (for example a link)

    """

    type_name: ClassVar[str] = "image"
    attr_fields: ClassVar[dict[str, str]] = {
        "src": "src",
        "alt": "alt",
        "title": "title",
        "width": "width",
        "height": "height",
        "maxWidth": "max_width",
        "align": "align",
        "class": "class_",
    }

    src: str = ""
    alt: Optional[str] = None
    title: Optional[str] = None
    width: Optional[float] = None
    height: Optional[float] = None
    max_width: Optional[float] = None
    align: Optional[str] = None
    class_: Optional[str] = None
    marks: tuple[Mark, ...] = ()

    def __post_init__(self) -> None:
        """Validate required source and alignment; normalize marks."""
        if self.src is None:
            raise ValueError("Image src must not be None")
        self.width = coerce_number(self.width, "width")
        self.height = coerce_number(self.height, "height")
        self.max_width = coerce_number(self.max_width, "maxWidth")
        _validate_align(self.align, self.type_name)
        self.marks = sort_marks(self.marks)

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this image."""
        return visitor.visit_image(self)

    @property
    def has_extended_attrs(self) -> bool:
        """Whether any attribute beyond src/alt/title is set."""
        return any(v is not None for v in (self.width, self.height, self.max_width, self.align, self.class_))


@dataclass
class HardBreak(Node):
    """Hard line break inside inline content."""

    type_name: ClassVar[str] = "hard_break"

    marks: tuple[Mark, ...] = ()

    def __post_init__(self) -> None:
        """Normalize marks to canonical order."""
        self.marks = sort_marks(self.marks)

    def accept(self, visitor: Any) -> Any:
        """Accept a visitor for processing this break."""
        return visitor.visit_hard_break(self)


# ============================================================================
# Structural helpers
# ============================================================================

NODE_CLASSES: dict[str, type[Node]] = {
    cls.type_name: cls
    for cls in (
        Document,
        Frontmatter,
        Paragraph,
        Heading,
        BlockQuote,
        BulletList,
        OrderedList,
        ListItem,
        CodeBlock,
        HorizontalRule,
        Table,
        TableHead,
        TableBody,
        TableRow,
        TableCell,
        TableHeader,
        Text,
        Image,
        HardBreak,
    )
}

_CHILD_FIELDS: dict[type[Node], str] = {
    Document: "children",
    BlockQuote: "children",
    ListItem: "children",
    Paragraph: "content",
    Heading: "content",
    TableCell: "content",
    TableHeader: "content",
    BulletList: "items",
    OrderedList: "items",
    TableHead: "rows",
    TableBody: "rows",
    TableRow: "cells",
}


def is_inline(node: Node) -> bool:
    """Whether the node is an inline item."""
    return isinstance(node, (Text, Image, HardBreak))


def is_textblock(node: Node) -> bool:
    """Whether the node directly holds inline content (or code text)."""
    return isinstance(node, (Paragraph, Heading, TableCell, CodeBlock))


def is_leaf(node: Node) -> bool:
    """Whether the node is atomic (has no content at all)."""
    return isinstance(node, (Image, HardBreak, Frontmatter, HorizontalRule))


def get_node_children(node: Node) -> list[Node]:
    """Get all child nodes from a node.

    Parameters
    ----------
    node : Node
        The node to get children from

    Returns
    -------
    list of Node
        Child nodes in document order (empty for leaves, text and code blocks)

    Examples
    --------
    >>> heading = Heading(level=1, content=[Text("Hello"), Text("world", marks=(Mark.strong(),))])
    >>> len(get_node_children(heading))
    2

    """
    if isinstance(node, Table):
        children: list[Node] = []
        if node.head is not None:
            children.append(node.head)
        children.append(node.body)
        return children

    attr = _CHILD_FIELDS.get(type(node))
    if attr is None:
        return []
    return list(getattr(node, attr))


def replace_node_children(node: Node, new_children: list[Node]) -> Node:
    """Create a copy of a node with replaced children.

    Parameters
    ----------
    node : Node
        The node to copy
    new_children : list of Node
        New children in the order returned by :func:`get_node_children`

    Returns
    -------
    Node
        New node with the replaced children

    Raises
    ------
    ValueError
        If a Table receives children other than an optional TableHead
        followed by a TableBody

    Notes
    -----
    For tables the children are the head (when present) and the body.
    Passing only a TableBody removes the head.

    """
    if isinstance(node, Table):
        head: Optional[TableHead] = None
        body: Optional[TableBody] = None
        for child in new_children:
            if isinstance(child, TableHead) and head is None and body is None:
                head = child
            elif isinstance(child, TableBody) and body is None:
                body = child
            else:
                raise ValueError(
                    f"Table children must be an optional TableHead followed by a TableBody, "
                    f"got {type(child).__name__}"
                )
        return replace(node, head=head, body=body if body is not None else TableBody())

    attr = _CHILD_FIELDS.get(type(node))
    if attr is None:
        return node
    return replace(node, **{attr: list(new_children)})  # type: ignore[type-var]


def normalize_inline(items: Sequence[Node]) -> list[Node]:
    """Merge adjacent text runs with equal marks and drop empty runs.

    Parameters
    ----------
    items : sequence of Node
        Inline items

    Returns
    -------
    list of Node
        Normalized inline items; unchanged items are reused

    """
    result: list[Node] = []
    for item in items:
        if isinstance(item, Text):
            if not item.text:
                continue
            previous = result[-1] if result else None
            if isinstance(previous, Text) and previous.marks == item.marks:
                result[-1] = Text(previous.text + item.text, marks=previous.marks)
                continue
        result.append(item)
    return result
