#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdbridge/ast/positions.py
"""Integer document positions and positional edits.

Positions follow the ProseMirror addressing scheme so that offsets
computed here match the ones an editor computes for the same tree:

- a text run occupies ``len(text)`` positions
- a leaf (image, hard break, frontmatter, horizontal rule) occupies 1
- any other node occupies its content size plus 2 (opening and closing
  token); a code block's content is its text
- position 0 is the start of the document's content

Edits never mutate the input. They rebuild the ancestors of the edited node
and share every other subtree with the original document.

Examples
--------
Replace the text between two plain-text offsets:

    >>> rng = map_text_range_to_doc_range(doc, start=6, length=5)
    >>> doc = replace_text(doc, rng.start, rng.end, "there")

"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterator, Mapping, Optional, Union

from mdbridge.ast.nodes import (
    BlockQuote,
    BulletList,
    CodeBlock,
    Document,
    ListItem,
    Node,
    OrderedList,
    Paragraph,
    Table,
    TableBody,
    TableCell,
    TableHead,
    TableRow,
    Text,
    get_node_children,
    is_inline,
    is_leaf,
    is_textblock,
    normalize_inline,
    replace_node_children,
)
from mdbridge.exceptions import PositionError

logger = logging.getLogger(__name__)

LeafText = Union[str, Callable[[Node], str], None]


@dataclass(frozen=True)
class DocRange:
    """Half-open range of document positions."""

    start: int
    end: int


# ============================================================================
# Sizes and traversal
# ============================================================================


def _has_child_nodes(node: Node) -> bool:
    return not isinstance(node, (Text, CodeBlock)) and not is_leaf(node)


def content_size(node: Node) -> int:
    """Return the number of positions inside a node's content."""
    if isinstance(node, Text):
        return len(node.text)
    if isinstance(node, CodeBlock):
        return len(node.text)
    if is_leaf(node):
        return 0
    return sum(node_size(child) for child in get_node_children(node))


def node_size(node: Node) -> int:
    """Return the number of positions a node occupies in its parent.

    Parameters
    ----------
    node : Node
        Any tree node

    Returns
    -------
    int
        ``len(text)`` for text, 1 for leaves, content size plus 2 otherwise

    """
    if isinstance(node, Text):
        return len(node.text)
    if is_leaf(node):
        return 1
    return content_size(node) + 2


def descendants(node: Node, content_start: int = 0) -> Iterator[tuple[Node, int, Node, int]]:
    """Yield every descendant of a node in document order.

    Parameters
    ----------
    node : Node
        Root of the walk, normally a Document
    content_start : int, default = 0
        Position of the start of ``node``'s content

    Yields
    ------
    tuple of (Node, int, Node, int)
        The descendant, the position before it, its parent and its index

    """
    pos = content_start
    for index, child in enumerate(get_node_children(node)):
        yield child, pos, node, index
        if _has_child_nodes(child):
            yield from descendants(child, pos + 1)
        pos += node_size(child)


def _path_to(doc: Node, pos: int) -> Optional[list[tuple[Node, int, Node, int]]]:
    """Find the chain of (parent, index, child, child_pos) leading to the node at ``pos``."""
    path: list[tuple[Node, int, Node, int]] = []
    current = doc
    content_start = 0
    while True:
        offset = content_start
        for index, child in enumerate(get_node_children(current)):
            size = node_size(child)
            if offset == pos and size > 0:
                path.append((current, index, child, offset))
                return path
            if offset < pos < offset + size and _has_child_nodes(child):
                path.append((current, index, child, offset))
                current = child
                content_start = offset + 1
                break
            offset += size
        else:
            return None


def node_at(doc: Node, pos: int) -> Optional[Node]:
    """Return the outermost node that starts at ``pos``.

    Parameters
    ----------
    doc : Node
        Document to search
    pos : int
        Document position

    Returns
    -------
    Node or None
        The node starting at the position, or None when no node starts there

    """
    path = _path_to(doc, pos)
    return path[-1][2] if path else None


# ============================================================================
# Text extraction
# ============================================================================


def text_content(node: Node) -> str:
    """Concatenate all text under a node without separators.

    Leaves (images, breaks, frontmatter, rules) contribute nothing.

    """
    if isinstance(node, (Text, CodeBlock)):
        return node.text
    return "".join(text_content(child) for child in get_node_children(node))


def _nodes_between(
    node: Node, start: int, end: int, callback: Callable[[Node, int], None], node_start: int = 0
) -> None:
    pos = 0
    for child in get_node_children(node):
        if pos >= end:
            break
        child_end = pos + node_size(child)
        if child_end > start:
            callback(child, node_start + pos)
            if _has_child_nodes(child):
                inner = pos + 1
                _nodes_between(
                    child, max(0, start - inner), min(content_size(child), end - inner), callback, node_start + inner
                )
        pos = child_end


def text_between(
    doc: Node, start: int, end: int, block_separator: str = "\n", leaf_text: LeafText = None
) -> str:
    """Return the text between two document positions.

    Parameters
    ----------
    doc : Node
        Document to read from
    start, end : int
        Document positions delimiting the range
    block_separator : str, default = "\\n"
        Inserted between the text of consecutive textblocks
    leaf_text : str or callable, optional
        Text emitted for leaf nodes (a fixed string or a function of the node)

    Returns
    -------
    str
        The text in the range

    """
    parts: list[str] = []
    first = True

    def collect(node: Node, pos: int) -> None:
        nonlocal first
        if isinstance(node, Text):
            node_text = node.text[max(start, pos) - pos : end - pos]
        elif is_leaf(node):
            node_text = (leaf_text(node) if callable(leaf_text) else leaf_text) or ""
        else:
            node_text = ""

        if not is_inline(node) and ((is_leaf(node) and node_text) or is_textblock(node)) and block_separator:
            if first:
                first = False
            else:
                parts.append(block_separator)
        parts.append(node_text)

        if isinstance(node, CodeBlock):
            code_start = pos + 1
            if end > code_start and start < code_start + len(node.text):
                parts.append(node.text[max(start, code_start) - code_start : end - code_start])

    _nodes_between(doc, start, end, collect)
    return "".join(parts)


def _text_segments(doc: Node) -> list[tuple[int, int, int]]:
    """Return (text offset, document position, length) for every text run."""
    segments: list[tuple[int, int, int]] = []
    offset = 0
    for node, pos, _parent, _index in descendants(doc):
        if isinstance(node, Text) and node.text:
            segments.append((offset, pos, len(node.text)))
            offset += len(node.text)
        elif isinstance(node, CodeBlock) and node.text:
            segments.append((offset, pos + 1, len(node.text)))
            offset += len(node.text)
    return segments


def map_text_range_to_doc_range(doc: Node, start: int, length: int) -> Optional[DocRange]:
    """Map a range of plain-text offsets onto document positions.

    Offsets index into :func:`text_content` of the document. A boundary that
    falls between two text runs resolves into the run containing the next
    character for the start, and to the end of the previous run for the end,
    so a mapped range never spans a block boundary it does not need to.

    Parameters
    ----------
    doc : Node
        Document the offsets refer to
    start : int
        Offset of the first character
    length : int
        Number of characters

    Returns
    -------
    DocRange or None
        The document range, or None when the offsets fall outside the text

    Examples
    --------
    >>> doc = Document(children=[Paragraph(content=[Text("ab")]), Paragraph(content=[Text("cd")])])
    >>> map_text_range_to_doc_range(doc, 1, 2)
    DocRange(start=2, end=6)

    """
    segments = _text_segments(doc)
    total = segments[-1][0] + segments[-1][2] if segments else 0
    if start < 0 or length < 0 or start + length > total:
        return None

    if not segments:
        for node, pos, _parent, _index in descendants(doc):
            if is_textblock(node):
                return DocRange(pos + 1, pos + 1)
        return None

    def resolve_start(offset: int) -> int:
        for seg_offset, seg_pos, seg_len in segments:
            if seg_offset <= offset < seg_offset + seg_len:
                return seg_pos + offset - seg_offset
        last_offset, last_pos, last_len = segments[-1]
        return last_pos + last_len

    def resolve_end(offset: int) -> int:
        for seg_offset, seg_pos, seg_len in segments:
            if seg_offset < offset <= seg_offset + seg_len:
                return seg_pos + offset - seg_offset
        return segments[0][1]

    doc_start = resolve_start(start)
    if length == 0:
        return DocRange(doc_start, doc_start)
    return DocRange(doc_start, resolve_end(start + length))


# ============================================================================
# Edits
# ============================================================================

_REQUIRES_CONTENT = (BlockQuote, ListItem, BulletList, OrderedList, TableHead, TableBody, TableRow)


def _normalize_container(node: Node) -> Optional[Node]:
    """Repair a rebuilt container; None when it has to disappear."""
    if isinstance(node, Document):
        if not node.children:
            return replace(node, children=[Paragraph()])
        return node
    if isinstance(node, Table):
        if not node.body.rows:
            if node.head is not None and node.head.rows:
                return replace(node, head=None, body=TableBody(rows=list(node.head.rows)))
            return None
        if node.head is not None and not node.head.rows:
            return replace(node, head=None)
        return node
    if isinstance(node, _REQUIRES_CONTENT) and not get_node_children(node):
        return None
    return node


def _rebuild(path: list[tuple[Node, int, Node, int]], new_node: Optional[Node]) -> Document:
    current = new_node
    for parent, index, _child, _pos in reversed(path):
        children = get_node_children(parent)
        if current is None:
            del children[index]
        else:
            children[index] = current
        current = _normalize_container(replace_node_children(parent, children))
    assert isinstance(current, Document)
    return current


def _require_path(doc: Document, pos: int) -> list[tuple[Node, int, Node, int]]:
    path = _path_to(doc, pos)
    if not path:
        raise PositionError(pos)
    return path


def set_node_attrs(doc: Document, pos: int, attrs: Mapping[str, Any] | None = None, **changes: Any) -> Document:
    """Return a document in which the node at ``pos`` has updated attributes.

    Parameters
    ----------
    doc : Document
        Source document (left untouched)
    pos : int
        Position where the node starts
    attrs : mapping, optional
        Attribute changes keyed by tree name (``class``, ``maxWidth``...)
    **changes : Any
        Further attribute changes

    Returns
    -------
    Document
        The updated document

    Raises
    ------
    PositionError
        If no node starts at ``pos``
    ValueError
        If an attribute is unknown for the node or a value is invalid

    """
    path = _require_path(doc, pos)
    node = path[-1][2]
    return _rebuild(path, node.with_attrs(attrs, **changes))


def delete_node(doc: Document, pos: int) -> Document:
    """Return a document without the node that starts at ``pos``.

    Containers left without required content are removed as well; a
    document left empty receives an empty paragraph.

    Raises
    ------
    PositionError
        If no node starts at ``pos``

    """
    path = _require_path(doc, pos)
    logger.debug("Deleting %s at position %d", path[-1][2].type_name, pos)
    return _rebuild(path, None)


def _resolve_textblock(doc: Node, pos: int) -> Optional[tuple[int, Node, int]]:
    """Find the textblock whose content contains ``pos``.

    Returns the textblock's position, the textblock and the offset of
    ``pos`` within its content.
    """
    current = doc
    content_start = 0
    while True:
        offset = content_start
        for child in get_node_children(current):
            size = node_size(child)
            if offset < pos < offset + size:
                if is_textblock(child):
                    return offset, child, pos - offset - 1
                if _has_child_nodes(child):
                    current = child
                    content_start = offset + 1
                    break
                return None
            offset += size
        else:
            return None


def _inline_items(block: Node) -> list[Node]:
    if isinstance(block, CodeBlock):
        return [Text(block.text)] if block.text else []
    return list(get_node_children(block))


def _split_inline(block: Node, offset: int) -> tuple[list[Node], list[Node]]:
    before: list[Node] = []
    after: list[Node] = []
    pos = 0
    for item in _inline_items(block):
        size = node_size(item)
        if pos + size <= offset:
            before.append(item)
        elif pos >= offset:
            after.append(item)
        else:
            assert isinstance(item, Text)
            cut = offset - pos
            before.append(Text(item.text[:cut], marks=item.marks))
            after.append(Text(item.text[cut:], marks=item.marks))
        pos += size
    return before, after


def _with_inline(block: Node, items: list[Node]) -> Node:
    if isinstance(block, CodeBlock):
        return replace(block, text="".join(item.text for item in items if isinstance(item, Text)))
    return replace_node_children(block, normalize_inline(items))


def _rewrite_range(
    node: Node, content_start: int, start: int, end: int, replacements: dict[int, Optional[Node]], in_table: bool
) -> Optional[Node]:
    new_children: list[Node] = []
    changed = False
    pos = content_start
    for child in get_node_children(node):
        child_end = pos + node_size(child)
        inside = pos >= start and child_end <= end
        if child_end <= start or pos >= end:
            new_children.append(child)
        elif pos in replacements:
            changed = True
            replacement = replacements[pos]
            if replacement is not None:
                new_children.append(replacement)
        elif isinstance(child, TableCell) and inside:
            changed = True
            new_children.append(replace(child, content=[]))
        elif inside and not in_table:
            changed = True
        elif _has_child_nodes(child):
            rewritten = _rewrite_range(
                child, pos + 1, start, end, replacements, in_table or isinstance(child, Table)
            )
            if rewritten is not child:
                changed = True
            if rewritten is not None:
                new_children.append(rewritten)
        else:
            new_children.append(child)
        pos = child_end

    if not changed:
        return node
    return _normalize_container(replace_node_children(node, new_children))


def replace_text(doc: Document, start: int, end: int, text: str) -> Document:
    """Replace the content between two positions with an unmarked text run.

    Both positions must lie inside textblock content (paragraph, heading,
    code block or table cell), which is what
    :func:`map_text_range_to_doc_range` produces.

    - Within one textblock the inline content is spliced.
    - Across textblocks the start block keeps its head, followed by the new
      text and the end block's tail; the end block is removed.
    - When either end lies in a table cell the blocks are not joined: the
      start cell keeps its head plus the new text and the end cell keeps its
      tail.
    - Blocks strictly inside the range are removed; table cells inside a
      partially covered table are emptied instead.

    Parameters
    ----------
    doc : Document
        Source document (left untouched)
    start, end : int
        Document positions delimiting the replaced range
    text : str
        Replacement text; may be empty

    Returns
    -------
    Document
        The edited document

    Raises
    ------
    PositionError
        If the range is reversed or a position is not inside a textblock

    """
    if start > end:
        raise PositionError(start, f"Range start {start} is after range end {end}")
    start_block = _resolve_textblock(doc, start)
    if start_block is None:
        raise PositionError(start, f"Position {start} is not inside a textblock")
    end_block = _resolve_textblock(doc, end)
    if end_block is None:
        raise PositionError(end, f"Position {end} is not inside a textblock")

    start_pos, start_node, start_offset = start_block
    end_pos, end_node, end_offset = end_block
    inserted: list[Node] = [Text(text)] if text else []
    head, _ = _split_inline(start_node, start_offset)
    _, tail = _split_inline(end_node, end_offset)

    replacements: dict[int, Optional[Node]]
    if start_pos == end_pos:
        replacements = {start_pos: _with_inline(start_node, head + inserted + tail)}
    elif isinstance(start_node, TableCell) or isinstance(end_node, TableCell):
        replacements = {
            start_pos: _with_inline(start_node, head + inserted),
            end_pos: _with_inline(end_node, tail),
        }
    else:
        replacements = {start_pos: _with_inline(start_node, head + inserted + tail), end_pos: None}

    result = _rewrite_range(doc, 0, start, end, replacements, in_table=False)
    assert isinstance(result, Document)
    return result
