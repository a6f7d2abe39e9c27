"""Tests for serializing documents back to markup."""

import pytest

from blockmark.markup_parser import parse_markup
from blockmark.markup_serializer import serialize
from blockmark.model import Block, BlockType, Document


def test_text_blocks():
    document = Document([
        Block(BlockType.PARAGRAPH, "a"),
        Block(BlockType.HEADING1, "b"),
        Block(BlockType.QUOTE, "c"),
    ])
    assert serialize(document, include_ids=False) == "<p>a</p>\n<h1>b</h1>\n<blockquote>c</blockquote>"


def test_list_items_are_grouped():
    document = Document([
        Block(BlockType.BULLET_ITEM, "a"),
        Block(BlockType.BULLET_ITEM, "b"),
        Block(BlockType.PARAGRAPH, "x"),
        Block(BlockType.BULLET_ITEM, "c"),
    ])
    assert serialize(document, include_ids=False) == (
        "<ul><li>a</li><li>b</li></ul>\n<p>x</p>\n<ul><li>c</li></ul>"
    )


def test_different_list_kinds_are_separate_lists():
    document = Document([
        Block(BlockType.BULLET_ITEM, "a"),
        Block(BlockType.NUMBERED_ITEM, "b"),
    ])
    assert serialize(document, include_ids=False) == "<ul><li>a</li></ul>\n<ol><li>b</li></ol>"


def test_passthrough_is_emitted_verbatim():
    table = '<table class="note-table"><tr><td>1</td></tr></table>'
    document = Document([Block(BlockType.TABLE, table)])
    assert serialize(document) == table


def test_block_ids_are_written():
    document = Document([Block(BlockType.PARAGRAPH, "a", id="abc")])
    assert serialize(document) == '<p data-block-id="abc">a</p>'


class TestRoundTrip:
    """Parsing serialized output gives back the same blocks."""

    @pytest.mark.parametrize("markup", [
        "<p>Hello <b>world</b></p>",
        "<h1>T</h1><p>a</p><ul><li>x</li><li>y</li></ul><ol><li>z</li></ol>",
        "<blockquote>quoted <i>text</i></blockquote>",
        '<p>a</p><table class="note-table"><tr><td>1</td></tr></table><p>b</p>',
        '<div class="sketch-container"></div><img src="a.png">',
        "<pre>code</pre>",
        "<p>&lt;tag&gt; &amp; more</p>",
    ])
    def test_structure_survives(self, markup):
        document = parse_markup(markup)
        again = parse_markup(serialize(document))
        assert again.structure() == document.structure()

    def test_ids_survive(self):
        document = parse_markup("<h2>a</h2><ul><li>b</li></ul><p>c</p>")
        again = parse_markup(serialize(document))
        assert [block.id for block in again] == [block.id for block in document]

    def test_without_ids_structure_survives(self):
        document = parse_markup("<p>a</p><ol><li>b</li><li>c</li></ol>")
        again = parse_markup(serialize(document, include_ids=False))
        assert again.structure() == document.structure()
        assert "data-block-id" not in serialize(document, include_ids=False)
