"""Snapshot undo/redo."""

import unittest

from blockmark import BlockEditor, BlockType, CursorLocation, Document, MemorySurface
from blockmark.keyboard import KeyEvent, KeyType
from blockmark.model import Block
from blockmark.undo import HistoryManager


def doc(*contents):
    return Document([Block(BlockType.PARAGRAPH, c) for c in contents])


class TestHistoryManager(unittest.TestCase):
    def test_initial_state_cannot_be_undone(self):
        history = HistoryManager()
        history.reset(doc("a"))
        self.assertFalse(history.can_undo())
        self.assertFalse(history.can_redo())
        self.assertIsNone(history.undo())
        self.assertIsNone(history.redo())

    def test_push_skips_identical_structure(self):
        history = HistoryManager()
        history.reset(doc("a"))
        self.assertFalse(history.push(doc("a")))
        self.assertTrue(history.push(doc("b")))
        self.assertFalse(history.push(doc("b")))

    def test_type_change_is_recorded(self):
        history = HistoryManager()
        document = doc("a")
        history.reset(document)
        document[0].type = BlockType.HEADING1
        self.assertTrue(history.push(document))

    def test_undo_and_redo(self):
        history = HistoryManager()
        history.reset(doc("a"))
        history.push(doc("b"))
        history.push(doc("c"))

        self.assertEqual(history.undo().structure(), doc("b").structure())
        self.assertEqual(history.undo().structure(), doc("a").structure())
        self.assertIsNone(history.undo())
        self.assertEqual(history.redo().structure(), doc("b").structure())
        self.assertEqual(history.redo().structure(), doc("c").structure())
        self.assertIsNone(history.redo())

    def test_new_push_clears_redo(self):
        history = HistoryManager()
        history.reset(doc("a"))
        history.push(doc("b"))
        history.undo()
        self.assertTrue(history.can_redo())
        history.push(doc("c"))
        self.assertFalse(history.can_redo())

    def test_capacity_evicts_oldest(self):
        history = HistoryManager(capacity=3)
        history.reset(doc("0"))
        for content in ("1", "2", "3"):
            history.push(doc(content))

        self.assertEqual(history.undo().structure(), doc("2").structure())
        self.assertEqual(history.undo().structure(), doc("1").structure())
        # "0" was evicted
        self.assertIsNone(history.undo())

    def test_restore_keeps_block_ids(self):
        history = HistoryManager()
        document = Document([Block(BlockType.QUOTE, "q", id="keep")])
        history.reset(document)
        history.push(doc("other"))
        restored = history.undo()
        self.assertEqual(restored[0].id, "keep")
        self.assertEqual(restored[0].type, BlockType.QUOTE)

    def test_snapshots_are_independent_of_document(self):
        history = HistoryManager()
        document = doc("a")
        history.reset(document)
        document[0].content = "changed"
        history.push(document)
        self.assertEqual(history.undo().structure(), doc("a").structure())


class TestEditorHistory(unittest.TestCase):
    def setUp(self):
        self.surface = MemorySurface()
        self.changes = []
        self.editor = BlockEditor(self.surface, "<p>a</p>", on_change=self.changes.append)
        self.block_id = self.editor.document[0].id

    def type(self, content):
        self.surface.type_into(self.block_id, content)
        self.editor.handle_input(CursorLocation(self.block_id, len(content)))

    def contents(self):
        return [block.content for block in self.editor.document]

    def test_undo_restores_previous_snapshots(self):
        self.type("ab")
        self.type("abc")

        self.assertTrue(self.editor.undo())
        self.assertEqual(self.contents(), ["ab"])
        self.assertEqual(self.surface.contents[self.block_id], "ab")
        self.assertTrue(self.editor.undo())
        self.assertEqual(self.contents(), ["a"])
        self.assertFalse(self.editor.undo())

        self.assertTrue(self.editor.redo())
        self.assertTrue(self.editor.redo())
        self.assertEqual(self.contents(), ["abc"])
        self.assertFalse(self.editor.redo())

    def test_undo_notifies_once_and_does_not_record(self):
        self.type("ab")
        count = len(self.changes)

        self.editor.undo()

        self.assertEqual(len(self.changes), count + 1)
        self.assertEqual(self.changes[-1], f'<p data-block-id="{self.block_id}">a</p>')
        self.assertTrue(self.editor.history.can_redo())

    def test_undo_after_redo_returns_same_state(self):
        for content in ("ab", "abc", "abcd"):
            self.type(content)
        final = self.editor.document.structure()

        for _ in range(3):
            self.editor.undo()
        for _ in range(3):
            self.editor.redo()

        self.assertEqual(self.editor.document.structure(), final)

    def test_undo_of_split(self):
        enter = KeyEvent(KeyType.SPECIAL, 'enter', '\r')
        self.editor.handle_key(enter, CursorLocation(self.block_id, 1))
        self.assertEqual(len(self.editor.document), 2)

        self.editor.undo()

        self.assertEqual(self.editor.document.structure(), [(BlockType.PARAGRAPH, "a")])
        self.assertEqual(self.editor.document[0].id, self.block_id)
        self.assertEqual(self.surface.order, [self.block_id])

    def test_undo_and_redo_keys(self):
        self.type("ab")
        ctrl_z = KeyEvent(KeyType.CTRL, 'z', '\x1a', is_ctrl=True)
        ctrl_y = KeyEvent(KeyType.CTRL, 'y', '\x19', is_ctrl=True)
        location = CursorLocation(self.block_id, 2)

        self.assertTrue(self.editor.handle_key(ctrl_z, location))
        self.assertEqual(self.contents(), ["a"])
        self.assertTrue(self.editor.handle_key(ctrl_y, location))
        self.assertEqual(self.contents(), ["ab"])

    def test_undo_through_inline_action(self):
        self.type("ab")
        self.assertTrue(self.editor.apply_inline_action('undo'))
        self.assertEqual(self.contents(), ["a"])
        self.assertTrue(self.editor.apply_inline_action('redo'))
        self.assertEqual(self.contents(), ["ab"])

    def test_caret_stays_in_surviving_block(self):
        self.type("abc")
        self.editor.undo()
        self.assertEqual(self.surface.location, CursorLocation(self.block_id, 1))

    def test_load_resets_history(self):
        self.type("ab")
        self.editor.load("<h1>new</h1>")
        self.assertFalse(self.editor.history.can_undo())
        self.assertEqual(self.editor.document.structure(), [(BlockType.HEADING1, "new")])

    def test_history_capacity_option(self):
        editor = BlockEditor(MemorySurface(), "", history_capacity=5000)
        self.assertEqual(editor.history.capacity, 1000)


if __name__ == '__main__':
    unittest.main()
