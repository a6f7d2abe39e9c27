"""Host rendering surface contract."""

from abc import ABC, abstractmethod
from typing import Optional

from .errors import SelectionWrapError
from .model import Block, CursorLocation, Document


class Surface(ABC):
    """What the editor needs from whatever displays the blocks.

    The surface owns presentation and the live editing buffer of each
    block. The editor pushes blocks to it, reads back the content the user
    has typed, and moves the caret through it. It never inspects rendering
    internals.
    """

    @abstractmethod
    def render(self, document: Document):
        """Redraw every block; called after structural changes."""

    @abstractmethod
    def render_block(self, block: Block):
        """Redraw a single block whose type or content changed in place."""

    @abstractmethod
    def read_block(self, block_id: str) -> Optional[str]:
        """Return the live content of a text block, or None if unknown."""

    @abstractmethod
    def focus(self, location: CursorLocation):
        """Place the caret (and optional selection) at location."""

    def exec_inline(self, action: str, value: Optional[str] = None):
        """Apply an inline formatting action to the current selection.

        Surfaces without native formatting leave this alone; the editor
        then wraps the selection itself.
        """
        raise SelectionWrapError(action)


class MemorySurface(Surface):
    """Headless surface that keeps block content in a dict."""

    def __init__(self, native_actions: Optional[set[str]] = None):
        self.contents: dict[str, str] = {}
        self.order: list[str] = []
        self.location: Optional[CursorLocation] = None
        self.render_count = 0
        self.block_render_count = 0
        self.native_actions = set(native_actions or ())
        self.inline_calls: list[tuple[str, Optional[str]]] = []

    def render(self, document: Document):
        self.contents = {block.id: block.content for block in document}
        self.order = [block.id for block in document]
        self.render_count += 1

    def render_block(self, block: Block):
        self.contents[block.id] = block.content
        self.block_render_count += 1

    def read_block(self, block_id: str) -> Optional[str]:
        return self.contents.get(block_id)

    def focus(self, location: CursorLocation):
        self.location = location

    def exec_inline(self, action: str, value: Optional[str] = None):
        if action not in self.native_actions:
            raise SelectionWrapError(action)
        self.inline_calls.append((action, value))

    def type_into(self, block_id: str, content: str):
        """Simulate the user editing a block directly."""
        self.contents[block_id] = content
