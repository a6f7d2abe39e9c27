"""Tests for parsing markup into blocks."""

import pytest

from blockmark.constants import EditorConstants
from blockmark.markup_parser import parse_markup
from blockmark.model import BlockType


P = BlockType.PARAGRAPH


class TestEmptyInput:
    @pytest.mark.parametrize("markup", [None, "", "   \n  "])
    def test_empty_input_gives_one_empty_paragraph(self, markup):
        document = parse_markup(markup)
        assert document.structure() == [(P, "")]

    def test_only_stray_end_tags(self):
        assert parse_markup("</p></div>").structure() == [(P, "")]


class TestMappingRules:
    def test_paragraphs_and_headings(self):
        document = parse_markup("<p>Hello</p><h1>Title</h1><h2>Sub</h2><h3>Small</h3>")
        assert document.structure() == [
            (P, "Hello"),
            (BlockType.HEADING1, "Title"),
            (BlockType.HEADING2, "Sub"),
            (BlockType.HEADING3, "Small"),
        ]

    def test_lists_yield_one_block_per_item(self):
        document = parse_markup("<ul><li>a</li><li>b</li></ul><ol><li>c</li></ol>")
        assert document.structure() == [
            (BlockType.BULLET_ITEM, "a"),
            (BlockType.BULLET_ITEM, "b"),
            (BlockType.NUMBERED_ITEM, "c"),
        ]

    def test_whitespace_between_items_is_ignored(self):
        document = parse_markup("<ul>\n  <li>a</li>\n  <li>b</li>\n</ul>")
        assert document.structure() == [
            (BlockType.BULLET_ITEM, "a"),
            (BlockType.BULLET_ITEM, "b"),
        ]

    def test_blockquote_keeps_inner_markup(self):
        document = parse_markup("<blockquote><p>q</p></blockquote>")
        assert document.structure() == [(BlockType.QUOTE, "<p>q</p>")]

    def test_inline_formatting_is_kept(self):
        document = parse_markup('<p>a <b>bold</b> <span style="color: red">x</span></p>')
        assert document.structure() == [(P, 'a <b>bold</b> <span style="color: red">x</span>')]

    def test_bare_text_becomes_paragraph(self):
        assert parse_markup("plain text").structure() == [(P, "plain text")]

    def test_minor_headings_become_paragraphs(self):
        assert parse_markup("<h4>minor</h4>").structure() == [(P, "minor")]

    def test_container_with_blocks_is_flattened(self):
        document = parse_markup("<div><p>a</p><p>b</p></div>")
        assert document.structure() == [(P, "a"), (P, "b")]

    def test_container_with_text_becomes_paragraph(self):
        assert parse_markup("<div>just text</div>").structure() == [(P, "just text")]

    def test_text_runs_between_blocks(self):
        document = parse_markup("intro <b>bold</b><p>para</p>tail")
        assert document.structure() == [
            (P, "intro <b>bold</b>"),
            (P, "para"),
            (P, "tail"),
        ]

    def test_line_breaks_between_blocks_are_dropped(self):
        document = parse_markup("<p>a</p><br><p>b</p>")
        assert document.structure() == [(P, "a"), (P, "b")]

    def test_document_head_is_skipped(self):
        document = parse_markup(
            "<html><head><title>T</title></head><body><h2>x</h2></body></html>"
        )
        assert document.structure() == [(BlockType.HEADING2, "x")]

    def test_inline_image_stays_in_paragraph(self):
        document = parse_markup('<p>see <img src="a.png"> here</p>')
        assert document.structure() == [(P, 'see <img src="a.png"> here')]


class TestPassthrough:
    """Embedded content is stored exactly as written."""

    def test_table(self):
        markup = '<table class="x"><tr><td>1</td></tr></table>'
        assert parse_markup(markup).structure() == [(BlockType.TABLE, markup)]

    def test_note_table_class(self):
        markup = f'<div class="{EditorConstants.TABLE_CLASS}"><span>cell</span></div>'
        assert parse_markup(markup).structure() == [(BlockType.TABLE, markup)]

    def test_top_level_image(self):
        markup = '<img src="a.png">'
        assert parse_markup(markup).structure() == [(BlockType.IMAGE, markup)]

    def test_image_container(self):
        markup = '<div class="image-container"><img src="x"></div>'
        assert parse_markup(markup).structure() == [(BlockType.IMAGE, markup)]

    def test_sketch(self):
        markup = '<div class="sketch-container"><canvas></canvas></div>'
        assert parse_markup(markup).structure() == [(BlockType.SKETCH, markup)]

    def test_opaque_elements(self):
        document = parse_markup("<pre>code\n  indented</pre><hr>")
        assert document.structure() == [
            (BlockType.OPAQUE, "<pre>code\n  indented</pre>"),
            (BlockType.OPAQUE, "<hr>"),
        ]

    def test_offsets_survive_multiple_lines(self):
        table = '<table>\n<tr><td>1</td></tr>\n</table>'
        document = parse_markup(f"<p>a</p>\n{table}\n<p>b</p>")
        assert document.structure() == [(P, "a"), (BlockType.TABLE, table), (P, "b")]

    def test_passthrough_between_text(self):
        document = parse_markup('<p>a</p><img src="x.png"><p>b</p>')
        assert [block.type for block in document] == [P, BlockType.IMAGE, P]


class TestMalformedInput:
    def test_implicitly_closed_paragraphs(self):
        assert parse_markup("<p>one<p>two").structure() == [(P, "one"), (P, "two")]

    def test_empty_paragraph_wrapping_paragraphs(self):
        document = parse_markup('<p data-block-id="x"><p>a</p><p>b</p></p>')
        assert document.structure() == [(P, "a"), (P, "b")]
        assert "x" not in [block.id for block in document]

    def test_unclosed_inline_element(self):
        document = parse_markup("<p>unclosed <b>bold")
        assert document.structure() == [(P, "unclosed <b>bold")]

    def test_unclosed_list_items(self):
        document = parse_markup("<ul><li>a<li>b</ul>")
        assert document.structure() == [
            (BlockType.BULLET_ITEM, "a"),
            (BlockType.BULLET_ITEM, "b"),
        ]


class TestBlockIds:
    def test_ids_are_reused(self):
        document = parse_markup('<p data-block-id="abc">x</p><h1 data-block-id="def">y</h1>')
        assert [block.id for block in document] == ["abc", "def"]

    def test_duplicate_ids_are_replaced(self):
        document = parse_markup('<p data-block-id="abc">x</p><p data-block-id="abc">y</p>')
        assert document[0].id == "abc"
        assert document[1].id != "abc"

    def test_new_blocks_get_unique_ids(self):
        document = parse_markup("<p>a</p><p>b</p><p>c</p>")
        assert len({block.id for block in document}) == 3
