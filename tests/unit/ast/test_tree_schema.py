#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/ast/test_tree_schema.py
"""Unit tests for content-model validation."""

import pytest

from mdbridge.ast import (
    BlockQuote,
    BulletList,
    Document,
    Frontmatter,
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
    ValidationVisitor,
    is_valid_document,
    validate_document,
)
from mdbridge.exceptions import SchemaError


def _table(head_cells, *body_cells):
    head = TableHead(rows=[TableRow(cells=[TableHeader(content=[Text(t)]) for t in head_cells])])
    body = TableBody(rows=[TableRow(cells=[TableCell(content=[Text(t)]) for t in row]) for row in body_cells])
    return Table(head=head, body=body)


@pytest.mark.unit
class TestValidDocuments:
    """Trees that satisfy the content model."""

    def test_empty_document(self):
        """Test that an empty document is valid."""
        assert validate_document(Document()) == []

    def test_sample_document(self, sample_document):
        """Test the shared sample tree."""
        assert is_valid_document(sample_document)

    def test_leading_frontmatter(self):
        """Test frontmatter as the first child."""
        doc = Document(children=[Frontmatter(raw_yaml=""), Paragraph()])
        assert validate_document(doc) == []

    def test_table_without_head(self):
        """Test a table whose header row lives in the body."""
        table = Table(body=TableBody(rows=[TableRow(cells=[TableCell(content=[Text("a")])])]))
        assert is_valid_document(Document(children=[table]))


@pytest.mark.unit
class TestInvalidDocuments:
    """Trees that violate the content model."""

    def test_frontmatter_not_first(self):
        """Test that frontmatter must come first."""
        doc = Document(children=[Paragraph(), Frontmatter(raw_yaml="a: 1")])
        errors = validate_document(doc, raise_on_error=False)
        assert any("frontmatter" in error for error in errors)

    def test_frontmatter_inside_quote(self):
        """Test that frontmatter is not allowed in containers."""
        doc = Document(children=[BlockQuote(children=[Frontmatter()])])
        assert not is_valid_document(doc)

    def test_empty_containers(self):
        """Test that quotes, lists and items need content."""
        assert not is_valid_document(Document(children=[BlockQuote()]))
        assert not is_valid_document(Document(children=[BulletList()]))
        assert not is_valid_document(Document(children=[BulletList(items=[ListItem()])]))

    def test_inline_node_in_block_position(self):
        """Test that text cannot be a direct document child."""
        assert not is_valid_document(Document(children=[Text("x")]))

    def test_block_in_inline_position(self):
        """Test that a paragraph cannot hold blocks."""
        assert not is_valid_document(Document(children=[Paragraph(content=[Paragraph()])]))

    def test_empty_text_run(self):
        """Test that text runs must be non-empty."""
        assert not is_valid_document(Document(children=[Paragraph(content=[Text("")])]))

    def test_duplicate_mark_types(self):
        """Test that a run carries at most one mark of each type."""
        text = Text("x")
        # Bypass the constructor normalization
        text.marks = (Mark.span("a"), Mark.span("b"))
        assert not is_valid_document(Document(children=[Paragraph(content=[text])]))

    def test_unknown_mark_type(self):
        """Test that only the known mark types are accepted."""
        doc = Document(children=[Paragraph(content=[Text("x", marks=(Mark("underline"),))])])
        errors = validate_document(doc, raise_on_error=False)
        assert any("underline" in error for error in errors)

    def test_span_requires_class(self):
        """Test that a span mark needs a class."""
        doc = Document(children=[Paragraph(content=[Text("x", marks=(Mark.span(""),))])])
        assert not is_valid_document(doc)

    def test_column_count_mismatch(self):
        """Test that every row has the header's column count."""
        doc = Document(children=[_table(["a", "b"], ["1", "2"], ["3"])])
        errors = validate_document(doc, raise_on_error=False)
        assert errors == ["Table row 1 has 1 cells, expected 2"]

    def test_table_body_required_rows(self):
        """Test that a table body needs at least one row."""
        assert not is_valid_document(Document(children=[Table()]))

    def test_invalid_heading_level(self):
        """Test that a mutated heading level is reported."""
        heading = Heading(level=2)
        heading.level = 9
        assert not is_valid_document(Document(children=[heading]))

    def test_non_numeric_image_width(self):
        """Test image dimensions must be numbers."""
        image = Image(src="a.png")
        image.width = "wide"
        assert not is_valid_document(Document(children=[Paragraph(content=[image])]))

    def test_root_must_be_document(self):
        """Test validation of a non-document root."""
        assert validate_document(Paragraph(), raise_on_error=False) == ["Root node must be a Document, got Paragraph"]


@pytest.mark.unit
class TestValidationErrors:
    """Tests for error reporting modes."""

    def test_raises_schema_error(self):
        """Test that violations raise SchemaError by default."""
        with pytest.raises(SchemaError) as exc_info:
            validate_document(Document(children=[BlockQuote(), BulletList()]))
        assert len(exc_info.value.errors) == 2
        assert "and 1 more" in str(exc_info.value)

    def test_strict_visitor_raises_first(self):
        """Test the strict visitor stopping at the first violation."""
        visitor = ValidationVisitor(strict=True)
        with pytest.raises(ValueError):
            Document(children=[BlockQuote()]).accept(visitor)
        assert len(visitor.errors) == 1
