#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/ast/serialization.py
"""JSON serialization and deserialization for document trees.

The JSON form is the ProseMirror document format, so a tree can be handed
to an editing surface and persisted by it without conversion:

- every node is ``{"type": ..., "attrs": {...}, "content": [...]}``;
  ``attrs`` is present for node types that declare attributes and
  ``content`` is omitted when empty
- text runs are ``{"type": "text", "text": ..., "marks": [...]}``;
  marks are ``{"type": ..., "attrs": {...}}`` and omitted when empty
- a code block holds its text as a single text child

Examples
--------
Serialize a tree to JSON:

    >>> from mdbridge.ast import Document, Heading, Text
    >>> from mdbridge.ast.serialization import doc_to_json
    >>> doc = Document(children=[Heading(level=1, content=[Text("Title")])])
    >>> json_str = doc_to_json(doc, indent=2)

Deserialize JSON back to a tree:

    >>> from mdbridge.ast.serialization import json_to_doc
    >>> json_to_doc(json_str).children[0].level
    1

"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from mdbridge.ast.nodes import (
    NODE_CLASSES,
    CodeBlock,
    Document,
    HardBreak,
    Image,
    Mark,
    Node,
    Table,
    TableBody,
    TableHead,
    Text,
    get_node_children,
    replace_node_children,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# ============================================================================
# Serialization
# ============================================================================


def _serialize_mark(mark: Mark) -> dict[str, Any]:
    result: dict[str, Any] = {"type": mark.type}
    if mark.attrs:
        result["attrs"] = dict(mark.attrs)
    return result


def _add_marks(result: dict[str, Any], marks: tuple[Mark, ...]) -> dict[str, Any]:
    if marks:
        result["marks"] = [_serialize_mark(mark) for mark in marks]
    return result


def _serialize_generic(node: Node) -> dict[str, Any]:
    """Serialize a node through its declared attributes and children."""
    result: dict[str, Any] = {"type": node.type_name}
    if node.attr_fields:
        result["attrs"] = node.attrs
    children = get_node_children(node)
    if children:
        result["content"] = [doc_to_dict(child) for child in children]
    return result


def _serialize_text(node: Text) -> dict[str, Any]:
    return _add_marks({"type": "text", "text": node.text}, node.marks)


def _serialize_image(node: Image) -> dict[str, Any]:
    return _add_marks({"type": "image", "attrs": node.attrs}, node.marks)


def _serialize_hard_break(node: HardBreak) -> dict[str, Any]:
    return _add_marks({"type": "hard_break"}, node.marks)


def _serialize_code_block(node: CodeBlock) -> dict[str, Any]:
    result: dict[str, Any] = {"type": "code_block", "attrs": node.attrs}
    if node.text:
        result["content"] = [{"type": "text", "text": node.text}]
    return result


_SERIALIZATION_DISPATCH: dict[type, Any] = {
    Text: _serialize_text,
    Image: _serialize_image,
    HardBreak: _serialize_hard_break,
    CodeBlock: _serialize_code_block,
}


def doc_to_dict(node: Node) -> dict[str, Any]:
    """Convert a tree node to its ProseMirror JSON dictionary.

    Parameters
    ----------
    node : Node
        The node to convert

    Returns
    -------
    dict
        Dictionary representation of the node

    Raises
    ------
    ValueError
        If the node is not a known tree node type

    Examples
    --------
    >>> doc_to_dict(Text("Hello", marks=(Mark.em(),)))
    {'type': 'text', 'text': 'Hello', 'marks': [{'type': 'em'}]}

    """
    serializer = _SERIALIZATION_DISPATCH.get(type(node))
    if serializer:
        return serializer(node)
    if isinstance(node, Node) and node.type_name in NODE_CLASSES:
        return _serialize_generic(node)

    raise ValueError(f"Unknown node type for serialization: {type(node).__name__}")


def doc_to_json(node: Node, indent: int | None = None) -> str:
    """Serialize a tree to a JSON string with a schema version.

    Parameters
    ----------
    node : Node
        The tree to serialize
    indent : int or None, default = None
        Number of spaces for indentation (None for compact format)

    Returns
    -------
    str
        JSON string; the root object carries ``schema_version``

    Notes
    -----
    ProseMirror's ``Node.fromJSON`` ignores the extra ``schema_version`` key,
    so the output stays loadable by the editor.

    """
    node_dict = doc_to_dict(node)
    versioned_dict = {"schema_version": SCHEMA_VERSION, **node_dict}
    return json.dumps(versioned_dict, indent=indent, ensure_ascii=False)


# ============================================================================
# Deserialization
# ============================================================================


def _deserialize_marks(data: dict[str, Any], strict_mode: bool) -> tuple[Mark, ...]:
    marks: list[Mark] = []
    for mark_data in data.get("marks") or []:
        if not isinstance(mark_data, dict) or not mark_data.get("type"):
            if strict_mode:
                raise ValueError(f"Invalid mark: {mark_data!r}")
            logger.warning("Skipping invalid mark %r", mark_data)
            continue
        attrs = dict(mark_data.get("attrs") or {})
        if mark_data["type"] == "link":
            attrs.setdefault("title", None)
        marks.append(Mark(mark_data["type"], attrs))
    return tuple(marks)


def _deserialize_children(data: dict[str, Any], strict_mode: bool) -> list[Node]:
    children: list[Node] = []
    for child_data in data.get("content") or []:
        child = dict_to_doc(child_data, strict_mode=strict_mode)
        if child is not None:
            children.append(child)
    return children


def _deserialize_attrs(cls: type[Node], data: dict[str, Any], strict_mode: bool) -> dict[str, Any]:
    """Map tree attribute names onto dataclass field names."""
    kwargs: dict[str, Any] = {}
    for name, value in (data.get("attrs") or {}).items():
        field_name = cls.attr_fields.get(name)
        if field_name is None:
            if strict_mode:
                raise ValueError(f"Unknown attribute '{name}' for node type '{cls.type_name}'")
            logger.warning("Ignoring unknown attribute '%s' on node type '%s'", name, cls.type_name)
            continue
        kwargs[field_name] = value
    return kwargs


def _deserialize_text(data: dict[str, Any], strict_mode: bool) -> Text:
    return Text(text=str(data.get("text", "")), marks=_deserialize_marks(data, strict_mode))


def _deserialize_image(data: dict[str, Any], strict_mode: bool) -> Image:
    kwargs = _deserialize_attrs(Image, data, strict_mode)
    kwargs.setdefault("src", "")
    return Image(marks=_deserialize_marks(data, strict_mode), **kwargs)


def _deserialize_hard_break(data: dict[str, Any], strict_mode: bool) -> HardBreak:
    return HardBreak(marks=_deserialize_marks(data, strict_mode))


def _deserialize_code_block(data: dict[str, Any], strict_mode: bool) -> CodeBlock:
    kwargs = _deserialize_attrs(CodeBlock, data, strict_mode)
    text = "".join(str(child.get("text", "")) for child in data.get("content") or [] if isinstance(child, dict))
    return CodeBlock(text=text, **kwargs)


def _deserialize_table(data: dict[str, Any], strict_mode: bool) -> Table:
    kwargs = _deserialize_attrs(Table, data, strict_mode)
    children = _deserialize_children(data, strict_mode)
    head = next((child for child in children if isinstance(child, TableHead)), None)
    body = next((child for child in children if isinstance(child, TableBody)), TableBody())
    return Table(head=head, body=body, **kwargs)


_DESERIALIZATION_DISPATCH: dict[str, Any] = {
    "text": _deserialize_text,
    "image": _deserialize_image,
    "hard_break": _deserialize_hard_break,
    "code_block": _deserialize_code_block,
    "table": _deserialize_table,
}


def dict_to_doc(data: dict[str, Any], strict_mode: bool = True) -> Optional[Node]:
    """Convert a ProseMirror JSON dictionary back to a tree node.

    Parameters
    ----------
    data : dict
        Dictionary representation of a node
    strict_mode : bool, default True
        If True, raise ValueError on unknown node types or attributes.
        If False, log a warning and skip them (useful for forward compatibility).

    Returns
    -------
    Node or None
        Reconstructed node; None for a skipped node in lenient mode

    Raises
    ------
    ValueError
        If the dictionary contains an unknown node type and strict_mode is True

    Examples
    --------
    >>> dict_to_doc({"type": "text", "text": "Hello"})
    Text(text='Hello', marks=())

    """
    node_type = data.get("type") if isinstance(data, dict) else None
    if not node_type:
        if strict_mode:
            raise ValueError("Dictionary must contain a 'type' field")
        logger.warning("Dictionary missing 'type' field, skipping")
        return None

    deserializer = _DESERIALIZATION_DISPATCH.get(node_type)
    if deserializer:
        return deserializer(data, strict_mode)

    cls = NODE_CLASSES.get(node_type)
    if cls is None:
        if strict_mode:
            raise ValueError(f"Unknown node type: {node_type}")
        logger.warning("Unknown node type '%s', skipping", node_type)
        return None

    node = cls(**_deserialize_attrs(cls, data, strict_mode))
    children = _deserialize_children(data, strict_mode)
    if children:
        node = replace_node_children(node, children)
    return node


def json_to_doc(json_str: str, validate_schema: bool = True, strict_mode: bool = True) -> Document:
    """Deserialize a JSON string to a Document.

    Parameters
    ----------
    json_str : str
        JSON string representation
    validate_schema : bool, default True
        If True, reject unsupported schema versions.
        If False, skip the version check.
    strict_mode : bool, default True
        If True, raise ValueError on unknown node types or attributes.
        If False, log warnings and skip unknown elements.

    Returns
    -------
    Document
        Reconstructed document

    Raises
    ------
    ValueError
        If JSON is invalid, the root is not a document, contains unknown node
        types (strict mode), or has an unsupported schema version

    """
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("JSON root must be an object")

    schema_version = data.pop("schema_version", SCHEMA_VERSION)
    if validate_schema and schema_version != SCHEMA_VERSION:
        raise ValueError(f"Unsupported schema version: {schema_version} (supported: {SCHEMA_VERSION})")

    node = dict_to_doc(data, strict_mode=strict_mode)
    if not isinstance(node, Document):
        raise ValueError(f"JSON root must be a 'doc' node, got {data.get('type')!r}")
    return node
