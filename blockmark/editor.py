"""Block editing engine.

``BlockEditor`` owns the Document and its history. The host surface
forwards key, input and click events together with a ``CursorLocation``;
the editor resolves the block, reads its live content back from the
surface, applies the change, asks the surface to redraw, records one
history snapshot and calls ``on_change`` once with the new markup.
"""

import logging
from typing import Callable, Optional

from . import tables
from .autoformat import apply_autoformat, replace_arrow
from .commands import CommandRegistry
from .constants import EditorConstants
from .errors import SelectionWrapError
from .fragment import delete_text, insert_text, split_fragment, text_length, wrap_fragment
from .keyboard import KeyEvent
from .markup_parser import parse_markup
from .markup_serializer import serialize
from .model import Block, BlockType, CursorLocation, Document
from .surface import Surface
from .undo import HistoryManager

logger = logging.getLogger(__name__)

# Inline actions the editor can apply itself when the surface cannot
INLINE_WRAPPERS = {
    'bold': 'b',
    'italic': 'i',
    'underline': 'u',
    'strikeThrough': 's',
}

COLOR_ACTIONS = {
    'foreColor': 'color',
    'hiliteColor': 'background-color',
    'backColor': 'background-color',
}


class BlockEditor:
    """Structured block editor bound to one host surface."""

    def __init__(self, surface: Surface, initial_markup: str = "",
                 on_change: Optional[Callable[[str], None]] = None,
                 history_capacity: Optional[int] = None,
                 autoformat: bool = True,
                 smart_arrows: bool = True,
                 include_ids: bool = True):
        self.surface = surface
        self.on_change = on_change
        self.autoformat = autoformat
        self.smart_arrows = smart_arrows
        self.include_ids = include_ids
        self.command_registry = CommandRegistry()
        capacity = history_capacity or EditorConstants.HISTORY_CAPACITY
        self.history = HistoryManager(min(capacity, EditorConstants.MAX_HISTORY_CAPACITY))
        self.location: Optional[CursorLocation] = None
        self.document = parse_markup(initial_markup)
        self.history.reset(self.document)
        self.surface.render(self.document)

    # --- Document ---

    def get_markup(self) -> str:
        return serialize(self.document, include_ids=self.include_ids)

    def load(self, markup: str):
        """Replace the document and start a fresh history."""
        self.document = parse_markup(markup)
        self.history.reset(self.document)
        self.location = None
        self.surface.render(self.document)

    def refresh(self):
        """Re-derive the blocks from the current markup and redraw.

        Used after out-of-band edits to the surface, such as pasted markup
        that should be split into blocks.
        """
        for block in self.document:
            self._sync_block(block)
        self.document = parse_markup(serialize(self.document, include_ids=True))
        self.surface.render(self.document)
        self._refocus()
        self.history.push(self.document)
        self._notify()

    def current_block(self, location: Optional[CursorLocation] = None) -> Optional[Block]:
        location = location or self.location
        if location is None:
            return None
        return self.document.get(location.block_id)

    # --- Host events ---

    def handle_key(self, event: KeyEvent, location: CursorLocation) -> bool:
        """Handle a key press; return True if the host should not apply its default."""
        self.location = location
        consumed = self.command_registry.execute(self, event, location)
        if not consumed:
            logger.debug(f"Key {event.key_type.value}:{event.value} left to the surface")
        return consumed

    def handle_input(self, location: CursorLocation):
        """The surface changed a block's content; sync it and run shortcuts."""
        self.location = location
        block = self._resolve(location)
        if block is None:
            return
        self._sync_block(block)
        if self.autoformat and block.type == BlockType.PARAGRAPH:
            result = apply_autoformat(block.content)
            if result is not None:
                block_type, block.content = result
                self._convert(block, block_type)
                return
        if (self.smart_arrows and not block.type.is_passthrough
                and not location.has_selection):
            replaced = replace_arrow(block.content, location.offset)
            if replaced is not None:
                block.content, offset = replaced
                self._commit(location.collapsed_at(offset), changed=block)
                return
        self._commit(None, rerender=False)

    def handle_click(self, location: Optional[CursorLocation] = None):
        """A click on a block records the caret; a click elsewhere focuses the end."""
        if location is not None and self.document.get(location.block_id) is not None:
            self.location = location
            return
        self.focus()

    def focus(self):
        """Put the caret at the end of the last block."""
        last = self.document[len(self.document) - 1]
        self._focus(CursorLocation(last.id, text_length(last.content)))

    # --- Block actions ---

    def convert(self, block_id: str, block_type: BlockType) -> bool:
        block = self.document.get(block_id)
        if block is None:
            logger.debug(f"Cannot convert unknown block {block_id}")
            return False
        if block.type.is_passthrough or block_type.is_passthrough:
            logger.debug(f"Ignoring conversion of {block.type.value} to {block_type.value}")
            return False
        self._sync_block(block)
        self._convert(block, block_type)
        return True

    def apply_block_action(self, block_type: BlockType,
                           location: Optional[CursorLocation] = None) -> bool:
        """Toggle the focused block to block_type, or back to a paragraph."""
        block = self._resolve(location or self.location)
        if block is None:
            return False
        if block_type.is_passthrough or block.type.is_passthrough:
            logger.debug(f"Ignoring block action {block_type.value} on {block.type.value}")
            return False
        self._sync_block(block)
        target = BlockType.PARAGRAPH if block.type == block_type else block_type
        self._convert(block, target)
        return True

    def apply_inline_action(self, action: str, value: Optional[str] = None,
                            location: Optional[CursorLocation] = None) -> bool:
        """Apply inline formatting to the selection.

        The surface's own formatting is tried first. When it refuses, bold,
        italic, underline, strike-through and colours are applied by
        wrapping the selected text in a new element.
        """
        if action == 'undo':
            return self.undo()
        if action == 'redo':
            return self.redo()
        location = location or self.location
        block = self._resolve(location)
        if block is None or block.type.is_passthrough:
            return False
        try:
            self.surface.exec_inline(action, value)
        except SelectionWrapError:
            return self._wrap_selection(block, location, action, value)
        self._sync_block(block)
        self._commit(location, rerender=False)
        return True

    def _wrap_selection(self, block: Block, location: CursorLocation,
                        action: str, value: Optional[str]) -> bool:
        if not location.has_selection:
            logger.debug(f"No selection for inline action {action}")
            return False
        if action in INLINE_WRAPPERS:
            tag, attributes = INLINE_WRAPPERS[action], None
        elif action in COLOR_ACTIONS and value:
            tag, attributes = 'span', {'style': f"{COLOR_ACTIONS[action]}: {value}"}
        else:
            logger.debug(f"Inline action {action} is not supported by the surface")
            return False
        self._sync_block(block)
        block.content = wrap_fragment(block.content, location.start, location.end, tag, attributes)
        self._commit(location, changed=block)
        return True

    def insert_block(self, block_type: BlockType, content: str = "",
                     after_id: Optional[str] = None) -> Optional[Block]:
        """Insert a block after after_id, or at the end of the document.

        Sketches, tables and opaque blocks without content get a default
        embed. Passthrough content that would not read back as one block of
        the same type is refused.
        """
        if block_type.is_passthrough:
            content = (content or self._default_passthrough(block_type)).strip()
            if not self._is_single_block(block_type, content):
                logger.debug(f"Refusing {block_type.value} block with content {content!r}")
                return None
        block = Block(block_type, content)
        if after_id is None:
            self.document.append(block)
        elif self.document.insert_after(after_id, block) is None:
            logger.debug(f"Cannot insert after unknown block {after_id}")
            return None
        self._commit(CursorLocation(block.id, text_length(block.content)))
        return block

    @staticmethod
    def _default_passthrough(block_type: BlockType) -> str:
        if block_type == BlockType.SKETCH:
            return EditorConstants.SKETCH_MARKUP
        if block_type == BlockType.TABLE:
            return tables.empty_table(1, 1)
        if block_type == BlockType.OPAQUE:
            return EditorConstants.RULE_MARKUP
        return ""

    @staticmethod
    def _is_single_block(block_type: BlockType, content: str) -> bool:
        structure = parse_markup(content).structure()
        return structure == [(block_type, content)]

    def insert_sketch(self, after_id: Optional[str] = None) -> Optional[Block]:
        return self.insert_block(BlockType.SKETCH, EditorConstants.SKETCH_MARKUP, after_id)

    def insert_table(self, rows: int, cols: int, after_id: Optional[str] = None) -> Optional[Block]:
        return self.insert_block(BlockType.TABLE, tables.empty_table(rows, cols), after_id)

    def insert_markdown_table(self, text: str, after_id: Optional[str] = None) -> Optional[Block]:
        table = tables.parse_markdown_table(text)
        if table is None:
            logger.debug("Text is not a markdown table")
            return None
        return self.insert_block(BlockType.TABLE, tables.table_markup(table), after_id)

    def update_passthrough(self, block_id: str, markup: str) -> bool:
        """Store the finished markup reported by a passthrough block's owner."""
        block = self.document.get(block_id)
        if block is None or not block.type.is_passthrough:
            logger.debug(f"No passthrough block {block_id} to update")
            return False
        if block.content == markup:
            return False
        block.content = markup
        self._commit(None, changed=block)
        return True

    def remove_block(self, block_id: str) -> bool:
        index = self.document.index_of(block_id)
        if index == -1:
            logger.debug(f"Cannot remove unknown block {block_id}")
            return False
        self.document.remove(block_id)
        neighbour = self.document[max(0, index - 1)]
        self._commit(CursorLocation(neighbour.id, text_length(neighbour.content)))
        return True

    def paste_text(self, text: str, location: Optional[CursorLocation] = None) -> bool:
        """Insert plain text at the caret; each extra line starts a new block."""
        location = location or self.location
        block = self._resolve(location)
        if block is None or block.type.is_passthrough or not text:
            return False
        self._sync_block(block)
        content = block.content
        if location.has_selection:
            content = delete_text(content, location.start, location.end)
        lines = text.replace('\r\n', '\n').replace('\r', '\n').split('\n')
        if len(lines) == 1:
            block.content = insert_text(content, location.start, text)
            self._commit(location.collapsed_at(location.start + len(text)), changed=block)
            return True
        before, after = split_fragment(content, location.start)
        block.content = insert_text(before, text_length(before), lines[0])
        new_type = block.type if block.type.is_list else BlockType.PARAGRAPH
        anchor = block
        for line in lines[1:-1]:
            anchor = self.document.insert_after(anchor.id, Block(new_type, insert_text("", 0, line)))
        last = self.document.insert_after(anchor.id, Block(new_type, insert_text(after, 0, lines[-1])))
        self._commit(CursorLocation(last.id, len(lines[-1])))
        return True

    # --- History ---

    def undo(self) -> bool:
        document = self.history.undo()
        if document is None:
            return False
        self._restore(document)
        return True

    def redo(self) -> bool:
        document = self.history.redo()
        if document is None:
            return False
        self._restore(document)
        return True

    def _restore(self, document: Document):
        self.document = document
        self.surface.render(self.document)
        self._refocus()
        self._notify()

    # --- Internals ---

    def _resolve(self, location: Optional[CursorLocation]) -> Optional[Block]:
        if location is None:
            return None
        block = self.document.get(location.block_id)
        if block is None:
            logger.debug(f"Ignoring event for unknown block {location.block_id}")
        return block

    def _sync_block(self, block: Block):
        """Copy the surface's live content into the model."""
        if block.type.is_passthrough:
            return
        live = self.surface.read_block(block.id)
        if live is not None:
            block.content = live

    def _convert(self, block: Block, block_type: BlockType):
        block.type = block_type
        self._commit(CursorLocation(block.id, text_length(block.content)), changed=block)

    def _focus(self, location: CursorLocation):
        self.location = location
        self.surface.focus(location)

    def _refocus(self):
        """Keep the caret in the same block if it survived, else go to the end."""
        block = self.current_block()
        if block is None:
            self.focus()
            return
        offset = min(self.location.offset, text_length(block.content))
        self._focus(CursorLocation(block.id, offset))

    def _commit(self, focus: Optional[CursorLocation], changed: Optional[Block] = None,
                rerender: bool = True):
        """Redraw, move the caret, record a snapshot and notify once."""
        if rerender:
            if changed is not None:
                self.surface.render_block(changed)
            else:
                self.surface.render(self.document)
        if focus is not None:
            self._focus(focus)
        self.history.push(self.document)
        self._notify()

    def _notify(self):
        if self.on_change is not None:
            self.on_change(self.get_markup())
