#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# tests/unit/utils/test_image_resolver.py
"""Unit tests for image URL resolution."""

import pytest

from mdbridge.ast import BlockQuote, Document, Image, Paragraph, Text
from mdbridge.options import ResolverContext
from mdbridge.utils.images import (
    clean_relative_path,
    is_absolute_source,
    resolve_image_sources,
    resolve_image_url,
)

ENDPOINT = "/api/tickets/ticket1/pr/file-bytes?file_path="


@pytest.mark.unit
class TestCleanRelativePath:
    """Tests for leading path token removal."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("../../img/./a.png", "img/./a.png"),
            ("/abs/a.png", "abs/a.png"),
            ("./a.png", "a.png"),
            (".././/a.png", "a.png"),
            ("img/a.png", "img/a.png"),
            ("", ""),
        ],
    )
    def test_paths(self, path, expected):
        """Test stripping leading tokens."""
        assert clean_relative_path(path) == expected

    def test_absolute_sources(self):
        """Test absolute URL and data URI detection."""
        assert is_absolute_source("https://x/y.png")
        assert is_absolute_source("http://x/y.png")
        assert is_absolute_source("data:image/png;base64,AAAA")
        assert not is_absolute_source("img/a.png")


@pytest.mark.unit
class TestResolveImageUrl:
    """Tests for resolve_image_url."""

    def test_absolute_unchanged(self):
        """Test that absolute URLs pass through."""
        assert resolve_image_url("https://x/y.png", "ticket1", "/api") == "https://x/y.png"
        assert resolve_image_url("data:image/png;base64,AAAA", "ticket1") == "data:image/png;base64,AAAA"

    def test_relative_path(self):
        """Test the file endpoint URL."""
        assert resolve_image_url("../img/a.png", "ticket1", "/api") == ENDPOINT + "img%2Fa.png"

    def test_path_is_uri_encoded(self):
        """Test component encoding of the file path."""
        assert resolve_image_url("img/my file (1).png", "ticket1") == ENDPOINT + "img%2Fmy%20file%20(1).png"

    def test_without_context_id(self):
        """Test that sources are unchanged without an id."""
        assert resolve_image_url("img/a.png") == "img/a.png"
        assert resolve_image_url("img/a.png", "") == "img/a.png"

    def test_empty_source(self):
        """Test an empty source."""
        assert resolve_image_url("", "ticket1") == ""

    def test_default_base(self):
        """Test the default API base."""
        assert resolve_image_url("a.png", "ticket1") == ENDPOINT + "a.png"

    def test_base_from_context(self):
        """Test the base URL taken from the context."""
        context = ResolverContext(api_base_url="https://host/api")
        url = resolve_image_url("a.png", "t2", context=context)
        assert url == "https://host/api/tickets/t2/pr/file-bytes?file_path=a.png"

    def test_explicit_base_wins(self):
        """Test that an explicit base overrides the context."""
        context = ResolverContext(api_base_url="https://host/api")
        assert resolve_image_url("a.png", "t2", "/v2", context).startswith("/v2/tickets/t2/")

    def test_token_appended(self):
        """Test the access token query parameter."""
        context = ResolverContext(access_token="abc")
        assert resolve_image_url("a.png", "ticket1", context=context) == ENDPOINT + "a.png&token=abc"

    def test_token_is_quoted(self):
        """Test that special characters in the token are encoded."""
        context = ResolverContext(access_token="a+b/c")
        assert resolve_image_url("a.png", "ticket1", context=context).endswith("&token=a%2Bb%2Fc")

    def test_token_ignored_for_absolute(self):
        """Test that absolute URLs never get a token."""
        context = ResolverContext(access_token="abc")
        assert resolve_image_url("https://x/y.png", "ticket1", context=context) == "https://x/y.png"


@pytest.mark.unit
class TestResolveImageSources:
    """Tests for rewriting every image in a tree."""

    def test_images_rewritten(self):
        """Test nested images are resolved and others shared."""
        text_para = Paragraph(content=[Text("x")])
        image_para = Paragraph(content=[Image(src="a.png", alt="A", width=10)])
        quoted = BlockQuote(children=[Paragraph(content=[Image(src="https://x/b.png")])])
        doc = Document(children=[text_para, image_para, quoted])

        result = resolve_image_sources(doc, "ticket1")

        assert result.children[0] is text_para
        image = result.children[1].content[0]
        assert image.src == ENDPOINT + "a.png"
        assert image.alt == "A"
        assert image.width == 10
        assert result.children[2] is quoted

    def test_input_not_modified(self):
        """Test that the input tree is left untouched."""
        doc = Document(children=[Paragraph(content=[Image(src="a.png")])])
        resolve_image_sources(doc, "ticket1")
        assert doc.children[0].content[0].src == "a.png"

    def test_no_context_id(self):
        """Test that nothing changes without an id."""
        doc = Document(children=[Paragraph(content=[Image(src="a.png")])])
        assert resolve_image_sources(doc) == doc
