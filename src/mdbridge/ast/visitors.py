#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/ast/visitors.py
"""Visitor pattern implementation for document tree traversal.

This module provides the visitor base class used to walk document trees.
Visitors keep algorithms (serialization, validation, text extraction)
separate from the node structure itself.

"""

from __future__ import annotations

from abc import ABC, abstractmethod
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
    get_node_children,
    replace_node_children,
)


class NodeVisitor(ABC):
    """Abstract base class for document tree visitors.

    Subclasses implement a ``visit_*`` method for every node type. Each
    method receives the node and returns whatever the visitor accumulates
    (typically None for side-effect visitors).

    Examples
    --------
    Collect every image source in a document:

        >>> class ImageCollector(NodeVisitor):
        ...     def __init__(self):
        ...         self.sources = []
        ...     def visit_image(self, node):
        ...         self.sources.append(node.src)
        ...     # remaining visit_* methods call self.generic_visit(node)

    """

    @abstractmethod
    def visit_document(self, node: Document) -> Any:
        """Visit a Document node.

        Parameters
        ----------
        node : Document
            The document node to visit

        Returns
        -------
        Any
            Result of processing this node

        """
        pass

    @abstractmethod
    def visit_frontmatter(self, node: Frontmatter) -> Any:
        """Visit a Frontmatter node."""
        pass

    @abstractmethod
    def visit_paragraph(self, node: Paragraph) -> Any:
        """Visit a Paragraph node."""
        pass

    @abstractmethod
    def visit_heading(self, node: Heading) -> Any:
        """Visit a Heading node.

        Parameters
        ----------
        node : Heading
            The heading node to visit

        Returns
        -------
        Any
            Result of processing this node

        """
        pass

    @abstractmethod
    def visit_block_quote(self, node: BlockQuote) -> Any:
        """Visit a BlockQuote node."""
        pass

    @abstractmethod
    def visit_bullet_list(self, node: BulletList) -> Any:
        """Visit a BulletList node."""
        pass

    @abstractmethod
    def visit_ordered_list(self, node: OrderedList) -> Any:
        """Visit an OrderedList node."""
        pass

    @abstractmethod
    def visit_list_item(self, node: ListItem) -> Any:
        """Visit a ListItem node."""
        pass

    @abstractmethod
    def visit_code_block(self, node: CodeBlock) -> Any:
        """Visit a CodeBlock node."""
        pass

    @abstractmethod
    def visit_horizontal_rule(self, node: HorizontalRule) -> Any:
        """Visit a HorizontalRule node."""
        pass

    @abstractmethod
    def visit_table(self, node: Table) -> Any:
        """Visit a Table node.

        Parameters
        ----------
        node : Table
            The table node to visit

        Returns
        -------
        Any
            Result of processing this node

        """
        pass

    @abstractmethod
    def visit_table_head(self, node: TableHead) -> Any:
        """Visit a TableHead node."""
        pass

    @abstractmethod
    def visit_table_body(self, node: TableBody) -> Any:
        """Visit a TableBody node."""
        pass

    @abstractmethod
    def visit_table_row(self, node: TableRow) -> Any:
        """Visit a TableRow node."""
        pass

    @abstractmethod
    def visit_table_cell(self, node: TableCell) -> Any:
        """Visit a TableCell node."""
        pass

    @abstractmethod
    def visit_table_header(self, node: TableHeader) -> Any:
        """Visit a TableHeader node."""
        pass

    @abstractmethod
    def visit_text(self, node: Text) -> Any:
        """Visit a Text node."""
        pass

    @abstractmethod
    def visit_image(self, node: Image) -> Any:
        """Visit an Image node.

        Parameters
        ----------
        node : Image
            The image node to visit

        Returns
        -------
        Any
            Result of processing this node

        """
        pass

    @abstractmethod
    def visit_hard_break(self, node: HardBreak) -> Any:
        """Visit a HardBreak node."""
        pass

    def generic_visit(self, node: Node) -> Any:
        """Visit every child of a node in document order.

        Subclasses call this from ``visit_*`` methods that only need to
        descend into the node.

        Parameters
        ----------
        node : Node
            The node whose children are visited

        Returns
        -------
        Any
            Always None

        """
        for child in get_node_children(node):
            child.accept(self)
        return None


class NodeTransformer(NodeVisitor):
    """Base class for visitors that build a transformed copy of a tree.

    ``visit_*`` methods return the replacement node, or None to remove the
    node. Subtrees in which nothing changed are returned as-is, so the new
    tree shares them with the original.

    Examples
    --------
    >>> class UppercaseTransformer(NodeTransformer):
    ...     def visit_text(self, node):
    ...         return Text(node.text.upper(), marks=node.marks)
    >>>
    >>> new_doc = UppercaseTransformer().transform(doc)

    """

    def transform(self, node: Node) -> Node | None:
        """Transform a node.

        Parameters
        ----------
        node : Node
            Node to transform

        Returns
        -------
        Node or None
            Transformed node or None to remove

        """
        return node.accept(self)

    def _generic_transform(self, node: Node) -> Node:
        """Transform the children of a node and rebuild it when any changed."""
        children = get_node_children(node)
        if not children:
            return node

        new_children: list[Node] = []
        changed = False
        for child in children:
            transformed = self.transform(child)
            if transformed is not child:
                changed = True
            if transformed is not None:
                new_children.append(transformed)

        if not changed:
            return node
        return replace_node_children(node, new_children)

    def visit_document(self, node: Document) -> Node | None:
        """Transform a Document node."""
        return self._generic_transform(node)

    def visit_frontmatter(self, node: Frontmatter) -> Node | None:
        """Transform a Frontmatter node."""
        return node

    def visit_paragraph(self, node: Paragraph) -> Node | None:
        """Transform a Paragraph node."""
        return self._generic_transform(node)

    def visit_heading(self, node: Heading) -> Node | None:
        """Transform a Heading node."""
        return self._generic_transform(node)

    def visit_block_quote(self, node: BlockQuote) -> Node | None:
        """Transform a BlockQuote node."""
        return self._generic_transform(node)

    def visit_bullet_list(self, node: BulletList) -> Node | None:
        """Transform a BulletList node."""
        return self._generic_transform(node)

    def visit_ordered_list(self, node: OrderedList) -> Node | None:
        """Transform an OrderedList node."""
        return self._generic_transform(node)

    def visit_list_item(self, node: ListItem) -> Node | None:
        """Transform a ListItem node."""
        return self._generic_transform(node)

    def visit_code_block(self, node: CodeBlock) -> Node | None:
        """Transform a CodeBlock node."""
        return node

    def visit_horizontal_rule(self, node: HorizontalRule) -> Node | None:
        """Transform a HorizontalRule node."""
        return node

    def visit_table(self, node: Table) -> Node | None:
        """Transform a Table node."""
        return self._generic_transform(node)

    def visit_table_head(self, node: TableHead) -> Node | None:
        """Transform a TableHead node."""
        return self._generic_transform(node)

    def visit_table_body(self, node: TableBody) -> Node | None:
        """Transform a TableBody node."""
        return self._generic_transform(node)

    def visit_table_row(self, node: TableRow) -> Node | None:
        """Transform a TableRow node."""
        return self._generic_transform(node)

    def visit_table_cell(self, node: TableCell) -> Node | None:
        """Transform a TableCell node."""
        return self._generic_transform(node)

    def visit_table_header(self, node: TableHeader) -> Node | None:
        """Transform a TableHeader node."""
        return self._generic_transform(node)

    def visit_text(self, node: Text) -> Node | None:
        """Transform a Text node."""
        return node

    def visit_image(self, node: Image) -> Node | None:
        """Transform an Image node."""
        return node

    def visit_hard_break(self, node: HardBreak) -> Node | None:
        """Transform a HardBreak node."""
        return node
