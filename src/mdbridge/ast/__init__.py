#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/ast/__init__.py
"""Document tree module.

The tree is the typed, ProseMirror-compatible representation of a Markdown
document exchanged with editing surfaces. The module consists of:

- nodes: node and mark classes
- visitors: visitor and transformer base classes for traversal
- schema: content-model validation
- serialization: ProseMirror JSON persistence
- positions: integer document positions and positional edits

Examples
--------
Basic usage:

    >>> from mdbridge.ast import Document, Heading, Paragraph, Text, Mark
    >>> doc = Document(children=[
    ...     Heading(level=1, content=[Text("Title")], class_="lead"),
    ...     Paragraph(content=[Text("Hello "), Text("world", marks=(Mark.strong(),))]),
    ... ])
    >>> text_content(doc)
    'TitleHello world'

"""

from mdbridge.ast.nodes import (
    NODE_CLASSES,
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
    get_node_children,
    is_inline,
    is_leaf,
    is_textblock,
    merge_class_names,
    normalize_inline,
    replace_node_children,
    sort_marks,
)
from mdbridge.ast.positions import (
    DocRange,
    content_size,
    delete_node,
    descendants,
    map_text_range_to_doc_range,
    node_at,
    node_size,
    replace_text,
    set_node_attrs,
    text_between,
    text_content,
)
from mdbridge.ast.schema import ValidationVisitor, is_valid_document, validate_document
from mdbridge.ast.serialization import dict_to_doc, doc_to_dict, doc_to_json, json_to_doc
from mdbridge.ast.visitors import NodeTransformer, NodeVisitor

__all__ = [
    # Nodes
    "Node",
    "Mark",
    "Document",
    "Frontmatter",
    "Paragraph",
    "Heading",
    "BlockQuote",
    "BulletList",
    "OrderedList",
    "ListItem",
    "CodeBlock",
    "HorizontalRule",
    "Table",
    "TableHead",
    "TableBody",
    "TableRow",
    "TableCell",
    "TableHeader",
    "Text",
    "Image",
    "HardBreak",
    "NODE_CLASSES",
    # Node helpers
    "add_mark",
    "coerce_number",
    "get_node_children",
    "is_inline",
    "is_leaf",
    "is_textblock",
    "merge_class_names",
    "normalize_inline",
    "replace_node_children",
    "sort_marks",
    # Visitors
    "NodeVisitor",
    "NodeTransformer",
    "ValidationVisitor",
    "validate_document",
    "is_valid_document",
    # Serialization
    "doc_to_dict",
    "dict_to_doc",
    "doc_to_json",
    "json_to_doc",
    # Positions
    "DocRange",
    "content_size",
    "node_size",
    "descendants",
    "node_at",
    "text_content",
    "text_between",
    "map_text_range_to_doc_range",
    "set_node_attrs",
    "delete_node",
    "replace_text",
]
