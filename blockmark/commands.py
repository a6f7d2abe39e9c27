"""Command pattern implementation for block editing keys."""

from abc import ABC, abstractmethod
from typing import Dict, Tuple, Optional, TYPE_CHECKING

from .autoformat import is_horizontal_rule
from .constants import EditorConstants
from .fragment import delete_text, is_empty, split_fragment, text_length
from .keyboard import KeyType
from .model import Block, BlockType, CursorLocation

if TYPE_CHECKING:
    from .editor import BlockEditor
    from .keyboard import KeyEvent


class EditorCommand(ABC):
    """Base class for editor commands."""

    @abstractmethod
    def execute(self, editor: 'BlockEditor', key_event: 'KeyEvent',
                location: CursorLocation) -> bool:
        """Execute the command.

        Args:
            editor: BlockEditor instance
            key_event: The key event that triggered this command
            location: Caret position reported by the surface

        Returns:
            True if the key was consumed and the host should not apply
            its default behaviour
        """
        pass


class BlockCommand(EditorCommand):
    """Base class for commands that act on the block under the caret.

    The block's live content is read back from the surface before the
    command looks at it.
    """

    def execute(self, editor: 'BlockEditor', key_event: 'KeyEvent',
                location: CursorLocation) -> bool:
        block = editor._resolve(location)
        if block is None:
            return False
        editor._sync_block(block)
        return self._edit(editor, block, location)

    @abstractmethod
    def _edit(self, editor: 'BlockEditor', block: Block, location: CursorLocation) -> bool:
        """Perform the edit; return True if the key was consumed."""
        pass


class SplitBlockCommand(BlockCommand):
    """Enter: split the block at the caret, or leave an empty list.

    A paragraph holding only `---`, `___` or `***` becomes a horizontal
    rule, with the caret moved to a new paragraph below it.
    """

    def _edit(self, editor, block, location):
        if block.type.is_passthrough:
            return True
        content = block.content
        if location.has_selection:
            content = delete_text(content, location.start, location.end)
        if block.type.is_list and is_empty(content):
            block.content = content
            block.type = BlockType.PARAGRAPH
            editor._commit(location.collapsed_at(0), changed=block)
            return True
        if (editor.autoformat and block.type == BlockType.PARAGRAPH
                and is_horizontal_rule(content)):
            block.type = BlockType.OPAQUE
            block.content = EditorConstants.RULE_MARKUP
            new_block = editor.document.insert_after(block.id, Block(BlockType.PARAGRAPH))
            editor._commit(CursorLocation(new_block.id, 0))
            return True
        before, after = split_fragment(content, location.start)
        block.content = before
        new_type = block.type if block.type.is_list else BlockType.PARAGRAPH
        new_block = editor.document.insert_after(block.id, Block(new_type, after))
        editor._commit(CursorLocation(new_block.id, 0))
        return True


class BackspaceCommand(BlockCommand):
    """Backspace at the start of a block: exit list, delete or merge."""

    def _edit(self, editor, block, location):
        if location.has_selection or location.offset > 0 or block.type.is_passthrough:
            return False
        document = editor.document
        empty = is_empty(block.content)
        if empty and block.type.is_list:
            block.type = BlockType.PARAGRAPH
            editor._commit(location.collapsed_at(0), changed=block)
            return True
        previous = document.previous(block.id)
        if previous is None:
            # Clearing the only heading or quote leaves a plain paragraph
            if empty and block.type != BlockType.PARAGRAPH:
                block.type = BlockType.PARAGRAPH
                editor._commit(location.collapsed_at(0), changed=block)
                return True
            return False
        if empty:
            document.remove(block.id)
            editor._commit(CursorLocation(previous.id, text_length(previous.content)))
            return True
        if previous.type.is_passthrough:
            return False
        join = text_length(previous.content)
        if is_empty(previous.content):
            previous.content = block.content
        else:
            previous.content += block.content
        document.remove(block.id)
        editor._commit(CursorLocation(previous.id, join))
        return True


class IndentCommand(BlockCommand):
    """Tab on a paragraph turns it into a bullet item."""

    def _edit(self, editor, block, location):
        if block.type != BlockType.PARAGRAPH:
            return False
        editor._convert(block, BlockType.BULLET_ITEM)
        return True


class OutdentCommand(BlockCommand):
    """Shift-Tab on a list item turns it back into a paragraph."""

    def _edit(self, editor, block, location):
        if not block.type.is_list:
            return False
        editor._convert(block, BlockType.PARAGRAPH)
        return True


class MoveUpCommand(EditorCommand):
    def execute(self, editor, key_event, location):
        block = editor._resolve(location)
        if block is None:
            return False
        previous = editor.document.previous(block.id)
        if previous is None:
            return False
        offset = min(location.offset, text_length(previous.content))
        editor._focus(CursorLocation(previous.id, offset))
        return True


class MoveDownCommand(EditorCommand):
    def execute(self, editor, key_event, location):
        block = editor._resolve(location)
        if block is None:
            return False
        following = editor.document.next(block.id)
        if following is None:
            return False
        editor._focus(CursorLocation(following.id, 0))
        return True


class UndoCommand(EditorCommand):
    def execute(self, editor, key_event, location):
        editor.undo()
        return True


class RedoCommand(EditorCommand):
    def execute(self, editor, key_event, location):
        editor.redo()
        return True


class CommandRegistry:
    """Registry for mapping key combinations to commands."""

    def __init__(self):
        self._commands: Dict[Tuple[KeyType, str], EditorCommand] = {}
        self._setup_default_commands()

    def _setup_default_commands(self):
        """Set up the default command mappings."""
        # Structure
        self.register((KeyType.SPECIAL, 'enter'), SplitBlockCommand())
        self.register((KeyType.SPECIAL, 'backspace'), BackspaceCommand())
        self.register((KeyType.SPECIAL, 'tab'), IndentCommand())
        self.register((KeyType.SHIFT_SPECIAL, 'tab'), OutdentCommand())

        # Moving between blocks
        self.register((KeyType.SPECIAL, 'up'), MoveUpCommand())
        self.register((KeyType.SPECIAL, 'down'), MoveDownCommand())

        # Undo/redo
        self.register((KeyType.CTRL, 'z'), UndoCommand())
        self.register((KeyType.CTRL, 'y'), RedoCommand())

    def register(self, key: Tuple[KeyType, str], command: EditorCommand):
        """Register a command for a key combination."""
        self._commands[key] = command

    def get_command(self, key_type: KeyType, value: str) -> Optional[EditorCommand]:
        """Get the command for a key combination."""
        return self._commands.get((key_type, value))

    def execute(self, editor: 'BlockEditor', key_event: 'KeyEvent',
                location: CursorLocation) -> bool:
        """Execute the command for the given key event.

        Returns:
            True if the key was consumed
        """
        if key_event.is_alt:
            command = self.get_command(KeyType.ALT, key_event.value)
        else:
            command = self.get_command(key_event.key_type, key_event.value)
        if command is None:
            return False
        return command.execute(editor, key_event, location)
