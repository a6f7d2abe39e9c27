import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional


class BlockType(Enum):
    """Block types. Values are the names used on the wire."""
    PARAGRAPH = "paragraph"
    HEADING1 = "heading1"
    HEADING2 = "heading2"
    HEADING3 = "heading3"
    QUOTE = "quote"
    BULLET_ITEM = "bulletItem"
    NUMBERED_ITEM = "numberedItem"
    TABLE = "table"
    IMAGE = "image"
    SKETCH = "sketch"
    OPAQUE = "opaque"

    @property
    def is_list(self) -> bool:
        return self in LIST_TYPES

    @property
    def is_passthrough(self) -> bool:
        return self in PASSTHROUGH_TYPES


LIST_TYPES = frozenset({BlockType.BULLET_ITEM, BlockType.NUMBERED_ITEM})
PASSTHROUGH_TYPES = frozenset({
    BlockType.TABLE,
    BlockType.IMAGE,
    BlockType.SKETCH,
    BlockType.OPAQUE,
})


def new_block_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class Block:
    type: BlockType = BlockType.PARAGRAPH
    content: str = ""
    id: str = field(default_factory=new_block_id)

    def copy(self) -> "Block":
        return Block(type=self.type, content=self.content, id=self.id)


@dataclass(frozen=True)
class CursorLocation:
    """Where the caret is, as reported by the host surface.

    Offsets count characters of the block's plain text, not of its markup.
    A selection, when present, is confined to the same block and runs from
    ``offset`` to ``selection_end`` in either direction.
    """
    block_id: str
    offset: int = 0
    selection_end: Optional[int] = None

    @property
    def has_selection(self) -> bool:
        return self.selection_end is not None and self.selection_end != self.offset

    @property
    def start(self) -> int:
        if self.selection_end is None:
            return self.offset
        return min(self.offset, self.selection_end)

    @property
    def end(self) -> int:
        if self.selection_end is None:
            return self.offset
        return max(self.offset, self.selection_end)

    def collapsed_at(self, offset: int) -> "CursorLocation":
        return CursorLocation(self.block_id, offset)


class Document:
    """Ordered, never-empty sequence of blocks."""

    def __init__(self, blocks: Optional[list[Block]] = None):
        self.blocks: list[Block] = []
        for block in blocks or []:
            self._append_unique(block)
        self._ensure_not_empty()

    def _append_unique(self, block: Block):
        if self.index_of(block.id) != -1:
            block.id = new_block_id()
        self.blocks.append(block)

    def _ensure_not_empty(self):
        if not self.blocks:
            self.blocks.append(Block(BlockType.PARAGRAPH, ""))

    def __len__(self) -> int:
        return len(self.blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self.blocks)

    def __getitem__(self, index: int) -> Block:
        return self.blocks[index]

    def index_of(self, block_id: str) -> int:
        for i, block in enumerate(self.blocks):
            if block.id == block_id:
                return i
        return -1

    def get(self, block_id: str) -> Optional[Block]:
        index = self.index_of(block_id)
        return self.blocks[index] if index != -1 else None

    def previous(self, block_id: str) -> Optional[Block]:
        index = self.index_of(block_id)
        if index > 0:
            return self.blocks[index - 1]
        return None

    def next(self, block_id: str) -> Optional[Block]:
        index = self.index_of(block_id)
        if index != -1 and index + 1 < len(self.blocks):
            return self.blocks[index + 1]
        return None

    def insert(self, index: int, block: Block) -> Block:
        if self.index_of(block.id) != -1:
            block.id = new_block_id()
        self.blocks.insert(index, block)
        return block

    def insert_after(self, block_id: str, block: Block) -> Optional[Block]:
        index = self.index_of(block_id)
        if index == -1:
            return None
        return self.insert(index + 1, block)

    def append(self, block: Block) -> Block:
        return self.insert(len(self.blocks), block)

    def remove(self, block_id: str) -> Optional[Block]:
        index = self.index_of(block_id)
        if index == -1:
            return None
        removed = self.blocks.pop(index)
        self._ensure_not_empty()
        return removed

    def replace_all(self, blocks: list[Block]):
        self.blocks = []
        for block in blocks:
            self._append_unique(block)
        self._ensure_not_empty()

    def structure(self) -> list[tuple[BlockType, str]]:
        """Return the (type, content) sequence used for structural equality."""
        return [(block.type, block.content) for block in self.blocks]

    def copy(self) -> "Document":
        return Document([block.copy() for block in self.blocks])

    def __repr__(self) -> str:
        return f"Document({self.structure()!r})"
