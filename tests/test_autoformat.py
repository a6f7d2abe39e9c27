"""Markdown shortcuts and smart arrows."""

import pytest

from blockmark import BlockEditor, BlockType, CursorLocation, MemorySurface
from blockmark.autoformat import apply_autoformat, is_horizontal_rule, match_trigger, replace_arrow
from blockmark.keyboard import KeyEvent, KeyType

ENTER = KeyEvent(KeyType.SPECIAL, 'enter', '\r')


def make_editor(markup, **kwargs):
    surface = MemorySurface()
    changes = []
    editor = BlockEditor(surface, markup, on_change=changes.append, **kwargs)
    return editor, surface, changes


def type_text(editor, surface, text, offset=None):
    """Simulate the surface reporting new content for the first block."""
    block = editor.document[0]
    surface.type_into(block.id, text)
    editor.handle_input(CursorLocation(block.id, len(text) if offset is None else offset))
    return block


class TestTriggers:
    @pytest.mark.parametrize("text,expected", [
        ("# Title", BlockType.HEADING1),
        ("## Title", BlockType.HEADING2),
        ("### Title", BlockType.HEADING3),
        ("> Title", BlockType.QUOTE),
        ("- Title", BlockType.BULLET_ITEM),
        ("* Title", BlockType.BULLET_ITEM),
        ("1. Title", BlockType.NUMBERED_ITEM),
    ])
    def test_each_trigger(self, text, expected):
        editor, surface, changes = make_editor("")
        block = type_text(editor, surface, text)

        assert editor.document.structure() == [(expected, "Title")]
        assert surface.location == CursorLocation(block.id, 5)
        assert len(changes) == 1

    def test_trigger_alone_leaves_empty_block(self):
        editor, surface, changes = make_editor("")
        type_text(editor, surface, "# ")
        assert editor.document.structure() == [(BlockType.HEADING1, "")]

    def test_non_breaking_space_counts(self):
        editor, surface, changes = make_editor("")
        type_text(editor, surface, "#&nbsp;Title", offset=7)
        assert editor.document.structure() == [(BlockType.HEADING1, "Title")]

    def test_prefix_inside_formatting(self):
        assert apply_autoformat("<b># Title</b>") == (BlockType.HEADING1, "<b>Title</b>")

    def test_prefix_removed_once(self):
        assert apply_autoformat("# # x") == (BlockType.HEADING1, "# x")

    def test_no_trigger(self):
        assert apply_autoformat("#Title") is None
        assert apply_autoformat("2. two") is None
        assert match_trigger("-") is None

    def test_only_paragraphs_are_converted(self):
        editor, surface, changes = make_editor("<h1>x</h1>")
        type_text(editor, surface, "# again")
        assert editor.document.structure() == [(BlockType.HEADING1, "# again")]

    def test_disabled(self):
        editor, surface, changes = make_editor("", autoformat=False)
        type_text(editor, surface, "# Title")
        assert editor.document.structure() == [(BlockType.PARAGRAPH, "# Title")]


class TestArrows:
    @pytest.mark.parametrize("text,expected", [
        ("a -> ", "a → "),
        ("a <- ", "a ← "),
        ("x <-> ", "x ↔ "),
    ])
    def test_arrow_before_space(self, text, expected):
        assert replace_arrow(text, len(text))[0] == expected

    def test_caret_moves_back(self):
        assert replace_arrow("a -> ", 5) == ("a → ", 4)
        assert replace_arrow("x <-> ", 6) == ("x ↔ ", 4)

    def test_needs_trailing_whitespace(self):
        assert replace_arrow("a ->", 4) is None

    def test_only_text_before_caret_counts(self):
        assert replace_arrow("a -> b", 2) is None

    def test_arrow_inside_formatting(self):
        assert replace_arrow("<b>go -&gt; </b>", 6) == ("<b>go → </b>", 5)

    def test_editor_replaces_arrow(self):
        editor, surface, changes = make_editor("")
        block = type_text(editor, surface, "a -> ")

        assert editor.document.structure() == [(BlockType.PARAGRAPH, "a → ")]
        assert surface.contents[block.id] == "a → "
        assert surface.location == CursorLocation(block.id, 4)
        assert len(changes) == 1

    def test_editor_arrows_disabled(self):
        editor, surface, changes = make_editor("", smart_arrows=False)
        type_text(editor, surface, "a -> ")
        assert editor.document.structure() == [(BlockType.PARAGRAPH, "a -> ")]


class TestHorizontalRules:
    @pytest.mark.parametrize("text", ["---", "___", "***", "-----", " --- ", "<b>***</b>"])
    def test_rule_patterns(self, text):
        assert is_horizontal_rule(text)

    @pytest.mark.parametrize("text", ["--", "-*-", "--- x", "", "- - -"])
    def test_not_rules(self, text):
        assert not is_horizontal_rule(text)

    def test_enter_turns_paragraph_into_rule(self):
        editor, surface, changes = make_editor("<p>a</p>")
        block = editor.document[0]
        surface.type_into(block.id, "---")

        assert editor.handle_key(ENTER, CursorLocation(block.id, 3))

        assert editor.document.structure() == [
            (BlockType.OPAQUE, "<hr>"),
            (BlockType.PARAGRAPH, ""),
        ]
        assert surface.location == CursorLocation(editor.document[1].id, 0)
        assert editor.get_markup().startswith("<hr>")
        assert len(changes) == 1

    def test_rule_survives_reload(self):
        editor, surface, changes = make_editor("<p>***</p>")
        editor.handle_key(ENTER, CursorLocation(editor.document[0].id, 3))

        editor.load(editor.get_markup())
        assert [block.type for block in editor.document] == [BlockType.OPAQUE, BlockType.PARAGRAPH]

    def test_only_paragraphs(self):
        editor, surface, changes = make_editor("<h1>---</h1>")
        editor.handle_key(ENTER, CursorLocation(editor.document[0].id, 3))
        assert editor.document.structure() == [
            (BlockType.HEADING1, "---"),
            (BlockType.PARAGRAPH, ""),
        ]

    def test_disabled(self):
        editor, surface, changes = make_editor("<p>---</p>", autoformat=False)
        editor.handle_key(ENTER, CursorLocation(editor.document[0].id, 3))
        assert editor.document.structure() == [
            (BlockType.PARAGRAPH, "---"),
            (BlockType.PARAGRAPH, ""),
        ]


def test_plain_input_commits_without_redraw():
    editor, surface, changes = make_editor("")
    renders = surface.render_count

    type_text(editor, surface, "hello")

    assert editor.document.structure() == [(BlockType.PARAGRAPH, "hello")]
    assert surface.render_count == renders
    assert surface.block_render_count == 0
    assert len(changes) == 1
    assert editor.history.can_undo()


def test_input_for_unknown_block_is_ignored():
    editor, surface, changes = make_editor("<p>a</p>")
    editor.handle_input(CursorLocation("missing", 0))
    assert changes == []
