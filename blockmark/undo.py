from dataclasses import dataclass
from typing import Optional

from .constants import EditorConstants
from .model import Block, BlockType, Document


@dataclass(frozen=True)
class BlockSnapshot:
    id: str
    type: BlockType
    content: str


@dataclass(frozen=True)
class HistoryEntry:
    blocks: tuple[BlockSnapshot, ...]

    @classmethod
    def capture(cls, document: Document) -> "HistoryEntry":
        return cls(tuple(BlockSnapshot(b.id, b.type, b.content) for b in document))

    def structure(self) -> tuple[tuple[BlockType, str], ...]:
        return tuple((b.type, b.content) for b in self.blocks)

    def restore(self) -> Document:
        return Document([Block(b.type, b.content, b.id) for b in self.blocks])


class HistoryManager:
    """Bounded snapshot history.

    The top of the undo stack always mirrors the current document. Undo
    pops it onto the redo stack and hands back the entry below.
    """

    def __init__(self, capacity: int = EditorConstants.HISTORY_CAPACITY):
        self._undo_stack: list[HistoryEntry] = []
        self._redo_stack: list[HistoryEntry] = []
        self._capacity = max(1, capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def clear(self):
        self._undo_stack.clear()
        self._redo_stack.clear()

    def reset(self, document: Document):
        """Forget everything and record document as the initial state."""
        self.clear()
        self._undo_stack.append(HistoryEntry.capture(document))

    def push(self, document: Document) -> bool:
        """Record document if it differs from the last snapshot."""
        entry = HistoryEntry.capture(document)
        if self._undo_stack and self._undo_stack[-1].structure() == entry.structure():
            return False
        self._undo_stack.append(entry)
        # Cap history
        if len(self._undo_stack) > self._capacity:
            self._undo_stack.pop(0)
        # Any new edit invalidates redo history
        self._redo_stack.clear()
        return True

    def can_undo(self) -> bool:
        return len(self._undo_stack) > 1

    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def undo(self) -> Optional[Document]:
        if not self.can_undo():
            return None
        self._redo_stack.append(self._undo_stack.pop())
        return self._undo_stack[-1].restore()

    def redo(self) -> Optional[Document]:
        if not self._redo_stack:
            return None
        entry = self._redo_stack.pop()
        self._undo_stack.append(entry)
        return entry.restore()
