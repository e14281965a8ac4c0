#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/ast/test_tree_positions.py
"""Unit tests for document positions, text offsets and positional edits.

Test Coverage:
- Node sizes and traversal
- Text extraction with block separators and leaf text
- Mapping plain-text ranges to document ranges
- Attribute updates, deletion and text replacement
- Structural sharing of untouched subtrees
"""

import pytest

from mdbridge.ast import (
    BulletList,
    CodeBlock,
    DocRange,
    Document,
    HardBreak,
    Heading,
    Image,
    ListItem,
    Mark,
    Paragraph,
    Table,
    TableBody,
    TableCell,
    TableHead,
    TableHeader,
    TableRow,
    Text,
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
from mdbridge.exceptions import PositionError


@pytest.fixture
def two_paragraphs() -> Document:
    return Document(children=[Paragraph(content=[Text("ab")]), Paragraph(content=[Text("cd")])])


@pytest.fixture
def table_doc() -> Document:
    head = TableHead(rows=[TableRow(cells=[TableHeader(content=[Text("h")])])])
    body = TableBody(rows=[TableRow(cells=[TableCell(content=[Text("v")])])])
    return Document(children=[Table(head=head, body=body)])


@pytest.mark.unit
class TestSizes:
    """Tests for node sizes."""

    def test_text_and_leaves(self):
        """Test text length and leaf size."""
        assert node_size(Text("hello")) == 5
        assert node_size(Image(src="a")) == 1
        assert node_size(HardBreak()) == 1

    def test_containers(self, two_paragraphs):
        """Test container sizes add the two boundary tokens."""
        assert node_size(two_paragraphs.children[0]) == 4
        assert content_size(two_paragraphs) == 8

    def test_code_block_counts_text(self):
        """Test that code text is content."""
        assert content_size(CodeBlock(text="abc")) == 3
        assert node_size(CodeBlock(text="abc")) == 5

    def test_table_size(self, table_doc):
        """Test nested table sections."""
        assert node_size(table_doc.children[0]) == 16


@pytest.mark.unit
class TestTraversal:
    """Tests for descendants and node_at."""

    def test_descendants_positions(self, two_paragraphs):
        """Test positions reported by descendants."""
        positions = [(node.type_name, pos) for node, pos, _parent, _index in descendants(two_paragraphs)]
        assert positions == [("paragraph", 0), ("text", 1), ("paragraph", 4), ("text", 5)]

    def test_node_at(self, two_paragraphs):
        """Test lookup of the node starting at a position."""
        assert node_at(two_paragraphs, 0) is two_paragraphs.children[0]
        assert node_at(two_paragraphs, 4) is two_paragraphs.children[1]
        assert isinstance(node_at(two_paragraphs, 1), Text)

    def test_node_at_without_node(self, two_paragraphs):
        """Test positions where no node starts."""
        assert node_at(two_paragraphs, 2) is None
        assert node_at(two_paragraphs, 8) is None

    def test_node_at_in_table(self, table_doc):
        """Test lookup inside table sections."""
        assert isinstance(node_at(table_doc, 3), TableHeader)
        assert isinstance(node_at(table_doc, 10), TableCell)


@pytest.mark.unit
class TestTextExtraction:
    """Tests for text_content and text_between."""

    def test_text_content(self, two_paragraphs):
        """Test concatenation without separators."""
        assert text_content(two_paragraphs) == "abcd"

    def test_leaves_contribute_nothing(self):
        """Test that images and breaks add no text."""
        doc = Document(children=[Paragraph(content=[Text("a"), Image(src="x"), HardBreak(), Text("b")])])
        assert text_content(doc) == "ab"

    def test_text_between_whole_document(self, two_paragraphs):
        """Test block separators between textblocks."""
        assert text_between(two_paragraphs, 0, 8) == "ab\ncd"

    def test_text_between_partial(self, two_paragraphs):
        """Test a range starting and ending inside text runs."""
        assert text_between(two_paragraphs, 2, 6) == "b\nc"

    def test_custom_separator(self, two_paragraphs):
        """Test a custom block separator."""
        assert text_between(two_paragraphs, 0, 8, block_separator=" | ") == "ab | cd"

    def test_leaf_text(self):
        """Test text emitted for leaf nodes."""
        doc = Document(children=[Paragraph(content=[Text("a"), Image(src="x"), Text("b")])])
        assert text_between(doc, 0, 5, leaf_text="[img]") == "a[img]b"
        assert text_between(doc, 0, 5, leaf_text=lambda node: node.type_name) == "aimageb"

    def test_code_block_text(self):
        """Test that code text is extracted."""
        doc = Document(children=[CodeBlock(text="xy")])
        assert text_between(doc, 0, 4) == "xy"


@pytest.mark.unit
class TestMapTextRange:
    """Tests for mapping plain-text offsets to document ranges."""

    def test_range_across_blocks(self, two_paragraphs):
        """Test a range spanning a block boundary."""
        assert map_text_range_to_doc_range(two_paragraphs, 1, 2) == DocRange(2, 6)

    def test_end_on_run_boundary(self, two_paragraphs):
        """Test that an end on a boundary stays in the earlier block."""
        assert map_text_range_to_doc_range(two_paragraphs, 0, 2) == DocRange(1, 3)

    def test_start_on_run_boundary(self, two_paragraphs):
        """Test that a start on a boundary moves into the next block."""
        assert map_text_range_to_doc_range(two_paragraphs, 2, 2) == DocRange(5, 7)

    def test_collapsed_range(self, two_paragraphs):
        """Test zero-length ranges."""
        assert map_text_range_to_doc_range(two_paragraphs, 2, 0) == DocRange(5, 5)
        assert map_text_range_to_doc_range(two_paragraphs, 4, 0) == DocRange(7, 7)

    def test_out_of_bounds(self, two_paragraphs):
        """Test offsets outside the text."""
        assert map_text_range_to_doc_range(two_paragraphs, 3, 5) is None
        assert map_text_range_to_doc_range(two_paragraphs, -1, 1) is None
        assert map_text_range_to_doc_range(two_paragraphs, 0, -1) is None

    def test_skips_atomic_nodes(self):
        """Test that leaves between runs shift positions but not offsets."""
        doc = Document(children=[Paragraph(content=[Text("a"), Image(src="x"), Text("bc")])])
        assert map_text_range_to_doc_range(doc, 1, 2) == DocRange(3, 5)

    def test_marked_runs(self):
        """Test a range crossing mark boundaries in one block."""
        doc = Document(children=[Paragraph(content=[Text("ab"), Text("cd", marks=(Mark.strong(),))])])
        assert map_text_range_to_doc_range(doc, 1, 2) == DocRange(2, 4)

    def test_empty_document(self):
        """Test mapping in a document without text."""
        assert map_text_range_to_doc_range(Document(children=[Paragraph()]), 0, 0) == DocRange(1, 1)
        assert map_text_range_to_doc_range(Document(), 0, 0) is None


@pytest.mark.unit
class TestSetNodeAttrs:
    """Tests for attribute updates at a position."""

    def test_updates_copy(self, two_paragraphs):
        """Test that the input is untouched and siblings are shared."""
        updated = set_node_attrs(two_paragraphs, 0, {"class": "lead"})
        assert updated.children[0].class_ == "lead"
        assert two_paragraphs.children[0].class_ is None
        assert updated.children[1] is two_paragraphs.children[1]

    def test_nested_image(self):
        """Test updating an image inside a list item."""
        image = Image(src="a.png")
        doc = Document(children=[BulletList(items=[ListItem(children=[Paragraph(content=[image])])])])
        updated = set_node_attrs(doc, 3, width=200, maxWidth=400)
        new_image = updated.children[0].items[0].children[0].content[0]
        assert (new_image.width, new_image.max_width) == (200, 400)
        assert image.width is None

    def test_invalid_position(self, two_paragraphs):
        """Test a position where no node starts."""
        with pytest.raises(PositionError) as exc_info:
            set_node_attrs(two_paragraphs, 2, {"class": "x"})
        assert exc_info.value.position == 2

    def test_invalid_attribute(self, two_paragraphs):
        """Test an attribute the node does not have."""
        with pytest.raises(ValueError):
            set_node_attrs(two_paragraphs, 0, level=2)


@pytest.mark.unit
class TestDeleteNode:
    """Tests for node deletion."""

    def test_delete_block(self, two_paragraphs):
        """Test removing a paragraph."""
        updated = delete_node(two_paragraphs, 4)
        assert updated.children == [two_paragraphs.children[0]]

    def test_last_block_leaves_empty_paragraph(self):
        """Test that a document never becomes empty."""
        doc = Document(children=[Heading(level=1, content=[Text("x")])])
        assert delete_node(doc, 0) == Document(children=[Paragraph()])

    def test_empty_containers_removed(self):
        """Test that emptied items and lists disappear."""
        doc = Document(
            children=[
                BulletList(items=[ListItem(children=[Paragraph(content=[Text("x")])])]),
                Paragraph(content=[Text("after")]),
            ]
        )
        updated = delete_node(doc, 2)
        assert updated.children == [Paragraph(content=[Text("after")])]

    def test_delete_inline(self):
        """Test removing an image from a paragraph."""
        doc = Document(children=[Paragraph(content=[Text("a"), Image(src="x"), Text("b")])])
        assert delete_node(doc, 2).children[0].content == [Text("a"), Text("b")]

    def test_invalid_position(self, two_paragraphs):
        """Test deletion where no node starts."""
        with pytest.raises(PositionError):
            delete_node(two_paragraphs, 3)


@pytest.mark.unit
class TestReplaceText:
    """Tests for text replacement between positions."""

    def test_within_block(self):
        """Test replacing a word located through its text offsets."""
        doc = Document(children=[Paragraph(content=[Text("hello world")])])
        rng = map_text_range_to_doc_range(doc, 6, 5)
        updated = replace_text(doc, rng.start, rng.end, "there")
        assert updated.children[0].content == [Text("hello there")]
        assert doc.children[0].content == [Text("hello world")]

    def test_replacement_is_unmarked(self):
        """Test that inserted text carries no marks."""
        doc = Document(children=[Paragraph(content=[Text("bold", marks=(Mark.strong(),))])])
        updated = replace_text(doc, 2, 4, "XY")
        assert updated.children[0].content == [
            Text("b", marks=(Mark.strong(),)),
            Text("XY"),
            Text("d", marks=(Mark.strong(),)),
        ]

    def test_insert_at_collapsed_range(self):
        """Test inserting at a single position."""
        doc = Document(children=[Paragraph(content=[Text("ac")])])
        assert replace_text(doc, 2, 2, "b").children[0].content == [Text("abc")]

    def test_delete_text(self):
        """Test replacing with an empty string."""
        doc = Document(children=[Paragraph(content=[Text("abc")])])
        assert replace_text(doc, 2, 3, "").children[0].content == [Text("ac")]

    def test_across_blocks_joins(self, two_paragraphs):
        """Test joining the start and end blocks."""
        updated = replace_text(two_paragraphs, 2, 6, "X")
        assert updated.children == [Paragraph(content=[Text("aXd")])]

    def test_inner_blocks_removed(self):
        """Test that fully covered blocks disappear."""
        doc = Document(
            children=[
                Paragraph(content=[Text("ab")]),
                Heading(level=2, content=[Text("mid")]),
                Paragraph(content=[Text("cd")]),
            ]
        )
        updated = replace_text(doc, 2, 11, "")
        assert updated.children == [Paragraph(content=[Text("ad")])]

    def test_within_table_cell(self, table_doc):
        """Test replacing text inside a body cell."""
        updated = replace_text(table_doc, 11, 12, "w")
        table = updated.children[0]
        assert table.body.rows[0].cells[0].content == [Text("w")]
        assert table.head is table_doc.children[0].head

    def test_across_table_cells(self, table_doc):
        """Test that table cells are not joined."""
        updated = replace_text(table_doc, 4, 12, "Z")
        table = updated.children[0]
        assert table.head.rows[0].cells[0].content == [Text("Z")]
        assert isinstance(table.head.rows[0].cells[0], TableHeader)
        assert table.body.rows[0].cells[0].content == []

    def test_code_block(self):
        """Test replacing text inside a code block."""
        doc = Document(children=[CodeBlock(text="x = 1", params="python")])
        updated = replace_text(doc, 5, 6, "2")
        assert updated.children[0] == CodeBlock(text="x = 2", params="python")

    def test_reversed_range(self, two_paragraphs):
        """Test a range whose start is after its end."""
        with pytest.raises(PositionError):
            replace_text(two_paragraphs, 3, 2, "x")

    def test_position_outside_textblock(self, two_paragraphs):
        """Test a position between blocks."""
        with pytest.raises(PositionError):
            replace_text(two_paragraphs, 0, 2, "x")
