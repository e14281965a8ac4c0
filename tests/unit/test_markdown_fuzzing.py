"""Property-based fuzzing tests for Markdown conversion.

This test module uses Hypothesis to generate random Markdown text and
random document trees, checking that conversion is total and stable.

Test Coverage:
- Arbitrary text always parses to a schema-valid tree
- Serialization never raises for parsed trees
- Every plain-text offset maps back onto the same character
- Generated trees survive serialize-then-parse unchanged
- Annotation formatting and parsing agree
"""

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from mdbridge import parse_markdown, serialize_markdown, validate_document
from mdbridge.ast import (
    BulletList,
    Document,
    Heading,
    ListItem,
    Mark,
    Paragraph,
    Text,
    map_text_range_to_doc_range,
    text_between,
    text_content,
)
from mdbridge.utils.attributes import format_annotation, parse_annotation

markdown_alphabet = st.sampled_from(list("abc XYZ019\n\t*_`#>-+|:[](){}!.=\"'\\<>^~"))
markdown_text = st.text(alphabet=markdown_alphabet, max_size=80)

words = st.from_regex(r"[a-z]{1,8}", fullmatch=True)
phrases = st.lists(words, min_size=1, max_size=5).map(" ".join)
class_names = st.from_regex(r"[a-z][a-z0-9-]{0,6}", fullmatch=True)
whole_marks = st.sampled_from([(), (Mark.em(),), (Mark.strong(),)])

paragraphs = st.builds(lambda text, marks: Paragraph(content=[Text(text, marks=marks)]), phrases, whole_marks)
headings = st.builds(
    lambda level, text, class_: Heading(level=level, content=[Text(text)], class_=class_),
    st.integers(min_value=1, max_value=6),
    phrases,
    st.none() | class_names,
)
bullet_lists = st.builds(
    lambda texts: BulletList(items=[ListItem(children=[Paragraph(content=[Text(t)])]) for t in texts], tight=True),
    st.lists(phrases, min_size=1, max_size=4),
)


@st.composite
def documents(draw):
    """Build a document of paragraphs and headings with an optional trailing list."""
    blocks = draw(st.lists(paragraphs | headings, max_size=5))
    if draw(st.booleans()):
        blocks.append(draw(bullet_lists))
    return Document(children=blocks)


@pytest.mark.unit
@pytest.mark.fuzzing
class TestParserFuzzing:
    """Property-based tests for parsing arbitrary text."""

    @given(markdown_text)
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture], deadline=None)
    def test_parse_is_total_and_valid(self, text):
        """Test that any text parses to a valid tree."""
        doc = parse_markdown(text)
        assert validate_document(doc, raise_on_error=False) == []

    @given(st.text(max_size=60))
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture], deadline=None)
    def test_parse_unicode_text(self, text):
        """Test that arbitrary unicode never raises."""
        assert isinstance(parse_markdown(text), Document)

    @given(markdown_text)
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture], deadline=None)
    def test_serialize_parsed_tree(self, text):
        """Test that parsed trees always serialize."""
        markdown = serialize_markdown(parse_markdown(text))
        assert markdown == "" or markdown.endswith("\n")

    @given(markdown_text)
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture], deadline=None)
    def test_offsets_map_to_same_character(self, text):
        """Test that each plain-text character maps back onto itself."""
        doc = parse_markdown(text)
        plain = text_content(doc)
        for offset, char in enumerate(plain):
            doc_range = map_text_range_to_doc_range(doc, offset, 1)
            assert doc_range is not None
            assert text_between(doc, doc_range.start, doc_range.end) == char


@pytest.mark.unit
@pytest.mark.fuzzing
class TestTreeFuzzing:
    """Property-based tests for generated trees."""

    @given(documents())
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture], deadline=None)
    def test_serialize_then_parse(self, doc):
        """Test that generated trees come back unchanged."""
        assert parse_markdown(serialize_markdown(doc)) == doc

    @given(documents())
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture], deadline=None)
    def test_serialization_is_stable(self, doc):
        """Test that re-serializing the re-parsed tree gives the same text."""
        markdown = serialize_markdown(doc)
        assert serialize_markdown(parse_markdown(markdown)) == markdown

    @given(
        st.lists(class_names, max_size=3, unique=True),
        st.dictionaries(
            st.from_regex(r"[A-Za-z_][A-Za-z0-9_-]{0,6}", fullmatch=True),
            st.from_regex(r"[a-z0-9][a-z0-9 :;-]{0,10}", fullmatch=True),
            max_size=3,
        ),
    )
    @settings(suppress_health_check=[HealthCheck.function_scoped_fixture], deadline=None)
    def test_annotation_format_then_parse(self, classes, values):
        """Test that formatted annotations parse to the same classes and values."""
        text = format_annotation(" ".join(classes) or None, values)
        if not classes and not values:
            assert text == ""
            return
        annotation = parse_annotation(text)
        assert annotation is not None
        assert list(annotation.classes) == classes
        assert annotation.values == values
