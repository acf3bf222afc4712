"""Tests for rewriting embedded image references."""

import pytest

from ugcmigrate.services.image_rewriter import find_image_references, rewrite_images

STAGED = "/content/usergenerated/tmp/social/images"


class FakeImporter:
    """Returns a fixed new path per URL and records every call."""

    def __init__(self, paths: dict[str, str] | None = None) -> None:
        self.paths = paths or {}
        self.calls: list[str] = []

    async def import_asset(self, url: str) -> str | None:
        self.calls.append(url)
        return self.paths.get(url)


class TestFindImageReferences:
    """Tests for the img tag scanner."""

    def test_finds_src_value(self):
        """The span covers exactly the characters between the quotes."""
        text = 'a <img src="http://x/a.png"> b'
        [ref] = list(find_image_references(text))
        assert ref.tag_start == 2
        assert ref.url == "http://x/a.png"
        assert text[ref.value_start : ref.value_end] == "http://x/a.png"

    def test_case_insensitive(self):
        """Tag and attribute names match regardless of case."""
        refs = list(find_image_references('<IMG SRC="http://x/a.png">'))
        assert [r.url for r in refs] == ["http://x/a.png"]

    def test_attributes_before_src(self):
        """Other attributes before src are passed over."""
        refs = list(find_image_references('<img alt="pic" src="http://x/a.png">'))
        # The first quote after src= is used, not the alt value
        assert [r.url for r in refs] == ["http://x/a.png"]

    def test_missing_closing_quote(self):
        """A src value without a closing quote is skipped."""
        assert list(find_image_references('<img src="http://x/a.png>')) == []

    def test_opening_quote_after_tag_end(self):
        """A quote found past the tag's > is not treated as the src value."""
        assert list(find_image_references('<img src=http://x/a.png> "quoted"')) == []

    def test_missing_tag_end(self):
        """A tag without a closing > is skipped."""
        assert list(find_image_references('<img src="http://x/a.png"')) == []

    def test_missing_src(self):
        """A tag without src is skipped."""
        assert list(find_image_references('<img alt="a">')) == []

    def test_single_quotes_not_supported(self):
        """Only double-quoted src values are recognized."""
        assert list(find_image_references("<img src='http://x/a.png'>")) == []

    def test_closing_quote_past_tag_end(self):
        """The closing quote may lie after the first >."""
        [ref] = list(find_image_references('<img src="a>b">'))
        assert ref.url == "a>b"

    def test_nested_tags_share_span(self):
        """A tag token inside a malformed tag is still visited."""
        refs = list(find_image_references('<img <img src="http://x/a.png">'))
        assert [r.tag_start for r in refs] == [0, 5]
        assert refs[0].span == refs[1].span


class TestRewriteImages:
    """Tests for rewrite_images."""

    @pytest.mark.asyncio
    async def test_no_images_is_identity(self):
        """Text without img tags is returned unchanged."""
        importer = FakeImporter()
        text = "<p>Just some text</p>"
        assert await rewrite_images(text, None, importer) == text
        assert importer.calls == []

    @pytest.mark.asyncio
    async def test_empty_text(self):
        """Empty text is returned unchanged."""
        assert await rewrite_images("", None, FakeImporter()) == ""

    @pytest.mark.asyncio
    async def test_replaces_src(self):
        """The URL is replaced by the imported path and nothing else changes."""
        importer = FakeImporter({"http://x/a.png": f"{STAGED}/ID.png"})
        result = await rewrite_images('The pic <img src="http://x/a.png"> end', None, importer)
        assert result == f'The pic <img src="{STAGED}/ID.png"> end'

    @pytest.mark.asyncio
    async def test_import_failure_leaves_tag(self):
        """When the importer returns None the tag is unchanged."""
        importer = FakeImporter()
        text = '<img src="http://x/a.png">'
        assert await rewrite_images(text, None, importer) == text
        assert importer.calls == ["http://x/a.png"]

    @pytest.mark.asyncio
    async def test_multiple_images_in_order(self):
        """Every image is imported in document order with differing path lengths."""
        importer = FakeImporter(
            {
                "http://x/a.png": "/short.png",
                "http://x/b.gif": f"{STAGED}/a-much-longer-generated-name.gif",
            }
        )
        text = '<p><img src="http://x/a.png">one</p><p><img src="http://x/b.gif" alt="b">two</p>'
        result = await rewrite_images(text, None, importer)
        assert importer.calls == ["http://x/a.png", "http://x/b.gif"]
        assert result == (
            '<p><img src="/short.png">one</p>'
            f'<p><img src="{STAGED}/a-much-longer-generated-name.gif" alt="b">two</p>'
        )

    @pytest.mark.asyncio
    async def test_malformed_tag_is_skipped(self):
        """A malformed tag does not stop later tags from being rewritten."""
        importer = FakeImporter({"http://x/b.png": "/b.png"})
        text = '<img src=bad> <img src="http://x/b.png">'
        result = await rewrite_images(text, None, importer)
        assert result == '<img src=bad> <img src="/b.png">'

    @pytest.mark.asyncio
    async def test_unterminated_src_terminates(self):
        """A src without a closing quote is left alone."""
        importer = FakeImporter({"http://x/a.png": "/a.png"})
        text = 'x <img src="http://x/a.png> y'
        assert await rewrite_images(text, None, importer) == text
        assert importer.calls == []

    @pytest.mark.asyncio
    async def test_filter_skips_non_matching(self):
        """URLs not containing the filter are not imported."""
        importer = FakeImporter({"http://other/a.png": "/a.png"})
        text = '<img src="http://other/a.png">'
        assert await rewrite_images(text, "cdn.example.com", importer) == text
        assert importer.calls == []

    @pytest.mark.asyncio
    async def test_filter_imports_matching(self):
        """URLs containing the filter are imported."""
        importer = FakeImporter({"http://cdn.example.com/a.png": "/a.png"})
        text = '<img src="http://other/b.png"><img src="http://cdn.example.com/a.png">'
        result = await rewrite_images(text, "cdn.example.com", importer)
        assert importer.calls == ["http://cdn.example.com/a.png"]
        assert result == '<img src="http://other/b.png"><img src="/a.png">'

    @pytest.mark.asyncio
    async def test_empty_filter_imports_all(self):
        """An empty filter behaves like no filter."""
        importer = FakeImporter({"http://x/a.png": "/a.png"})
        assert await rewrite_images('<img src="http://x/a.png">', "", importer) == '<img src="/a.png">'

    @pytest.mark.asyncio
    async def test_unescapes_html_entities(self):
        """The importer receives the unescaped URL and the escaped value is replaced."""
        importer = FakeImporter({"http://x/a.png?w=1&h=2": "/a.png"})
        result = await rewrite_images('<img src="http://x/a.png?w=1&amp;h=2">', None, importer)
        assert importer.calls == ["http://x/a.png?w=1&h=2"]
        assert result == '<img src="/a.png">'

    @pytest.mark.asyncio
    async def test_nested_tag_sees_rewritten_value(self):
        """A second tag over an already rewritten span sees the new path."""
        new_path = f"{STAGED}/ID.png"
        importer = FakeImporter({"http://x/a.png": new_path})
        result = await rewrite_images('<img <img src="http://x/a.png">', None, importer)
        assert importer.calls == ["http://x/a.png", new_path]
        assert result == f'<img <img src="{new_path}">'

    @pytest.mark.asyncio
    async def test_tag_inside_replaced_value_is_dropped(self):
        """A tag token inside a rewritten src value is not imported."""
        importer = FakeImporter({"abc> text <img src=": "/P", "def": "/Q"})
        result = await rewrite_images('<img src="abc> text <img src="def">', None, importer)
        assert importer.calls == ["abc> text <img src="]
        assert result == '<img src="/P"def">'

    @pytest.mark.asyncio
    async def test_tag_inside_unreplaced_value_is_visited(self):
        """A tag token inside a src value that was not rewritten is still scanned."""
        importer = FakeImporter({"def": "/Q"})
        result = await rewrite_images('<img src="abc> text <img src="def">', None, importer)
        assert importer.calls == ["abc> text <img src=", "def"]
        assert result == '<img src="abc> text <img src="/Q">'
