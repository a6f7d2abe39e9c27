"""Terminal rendering surface.

``TerminalSurface`` is the reference host for ``BlockEditor``: it keeps the
live content of every block, a caret, and lays the document out as wrapped
text lines with a marker in front of each block ("# ", "• ", "1. ", ...).
It has no native inline formatting, so the editor wraps selections itself.
"""

from typing import Optional

from .constants import EditorConstants
from .fragment import delete_text, insert_text, plain_text, text_length
from .model import Block, BlockType, CursorLocation, Document
from .surface import Surface

BLOCK_PREFIXES = {
    BlockType.PARAGRAPH: "",
    BlockType.HEADING1: "# ",
    BlockType.HEADING2: "## ",
    BlockType.HEADING3: "### ",
    BlockType.QUOTE: "> ",
    BlockType.BULLET_ITEM: "• ",
}

PASSTHROUGH_LABELS = {
    BlockType.TABLE: "[table]",
    BlockType.IMAGE: "[image]",
    BlockType.SKETCH: "[sketch]",
    BlockType.OPAQUE: "[embedded content]",
}


def render_paragraph(paragraph: str, num_columns: int, prefix: str = "") -> tuple[list[str], list[int]]:
    """Render into a list of lines, with word wrap and a hanging indent.

    The prefix is drawn in front of the first line and wrapped lines are
    indented by its width. Returns (lines, cumulative_counts) where
    cumulative_counts are character counts in the original paragraph at the
    end of each visual line; prefix and indent columns are not counted.
    """
    hanging_width = len(prefix)
    indent_prefix = " " * hanging_width
    width = max(1, num_columns - hanging_width)
    if not paragraph:
        return ([prefix], [0])

    lines: list[str] = []
    cumulative_counts: list[int] = []
    char_count = 0
    current_line: Optional[str] = None

    def commit(text: str, consumed: int):
        nonlocal char_count
        lines.append((prefix if not lines else indent_prefix) + text)
        char_count += consumed
        cumulative_counts.append(char_count)

    for word in paragraph.split(" "):
        if current_line is not None:
            if len(current_line) + 1 + len(word) < width:
                current_line += " " + word
                continue
            # +1 for the space swallowed by the line break
            commit(current_line, len(current_line) + 1)
        # Break long word across as many lines as needed
        while len(word) >= width:
            commit(word[:width], width)
            word = word[width:]
        current_line = word

    assert current_line is not None
    commit(current_line, len(current_line))
    return (lines, cumulative_counts)


def display_text(content: str) -> str:
    """Plain text of a fragment with one display column per character."""
    return plain_text(content).replace('\xa0', ' ').replace('\n', ' ').replace('\t', ' ')


class TerminalSurface(Surface):
    num_columns: int = EditorConstants.DOCUMENT_WIDTH

    def __init__(self, num_columns: int = EditorConstants.DOCUMENT_WIDTH):
        self.num_columns = num_columns
        self.order: list[str] = []
        self.types: dict[str, BlockType] = {}
        self.contents: dict[str, str] = {}
        self.cursor_block: Optional[str] = None
        self.cursor_offset = 0
        self.anchor: Optional[int] = None  # Selection anchor within the cursor block
        self.first_line = 0  # Scroll position
        self.lines: list[str] = []
        self.visual_cursor_y = 0
        self.visual_cursor_x = 0

    # --- Surface contract ---

    def render(self, document: Document):
        self.order = [block.id for block in document]
        self.types = {block.id: block.type for block in document}
        self.contents = {block.id: block.content for block in document}
        if self.cursor_block not in self.types:
            self.cursor_block = self.order[0]
            self.cursor_offset = 0
            self.anchor = None
        self._clamp_cursor()

    def render_block(self, block: Block):
        if block.id not in self.types:
            self.order.append(block.id)
        self.types[block.id] = block.type
        self.contents[block.id] = block.content
        self._clamp_cursor()

    def read_block(self, block_id: str) -> Optional[str]:
        return self.contents.get(block_id)

    def focus(self, location: CursorLocation):
        if location.block_id not in self.types:
            return
        self.cursor_block = location.block_id
        self.cursor_offset = location.offset
        self.anchor = location.selection_end
        self._clamp_cursor()

    # --- Caret ---

    @property
    def location(self) -> Optional[CursorLocation]:
        if self.cursor_block is None:
            return None
        return CursorLocation(self.cursor_block, self.cursor_offset, self.anchor)

    def _length(self, block_id: str) -> int:
        if self.types[block_id].is_passthrough:
            return 0
        return text_length(self.contents[block_id])

    def _clamp_cursor(self):
        if self.cursor_block is None:
            return
        length = self._length(self.cursor_block)
        self.cursor_offset = max(0, min(self.cursor_offset, length))
        if self.anchor is not None:
            self.anchor = max(0, min(self.anchor, length))

    def _editable(self) -> bool:
        return self.cursor_block is not None and not self.types[self.cursor_block].is_passthrough

    def selected_text(self) -> str:
        if not self._editable() or self.anchor is None:
            return ""
        start, end = sorted((self.anchor, self.cursor_offset))
        return plain_text(self.contents[self.cursor_block])[start:end]

    def current_text(self) -> str:
        if not self._editable():
            return ""
        return plain_text(self.contents[self.cursor_block])

    def _delete_selection(self) -> bool:
        if self.anchor is None or self.anchor == self.cursor_offset:
            self.anchor = None
            return False
        start, end = sorted((self.anchor, self.cursor_offset))
        self.contents[self.cursor_block] = delete_text(self.contents[self.cursor_block], start, end)
        self.cursor_offset = start
        self.anchor = None
        return True

    def insert_text(self, text: str) -> bool:
        if not self._editable():
            return False
        self._delete_selection()
        block_id = self.cursor_block
        self.contents[block_id] = insert_text(self.contents[block_id], self.cursor_offset, text)
        self.cursor_offset += len(text)
        return True

    def delete_backward(self) -> bool:
        if not self._editable():
            return False
        if self._delete_selection():
            return True
        if self.cursor_offset == 0:
            return False
        block_id = self.cursor_block
        self.contents[block_id] = delete_text(self.contents[block_id], self.cursor_offset - 1, self.cursor_offset)
        self.cursor_offset -= 1
        return True

    def delete_forward(self) -> bool:
        if not self._editable():
            return False
        if self._delete_selection():
            return True
        if self.cursor_offset >= self._length(self.cursor_block):
            return False
        block_id = self.cursor_block
        self.contents[block_id] = delete_text(self.contents[block_id], self.cursor_offset, self.cursor_offset + 1)
        return True

    def _neighbour(self, step: int) -> Optional[str]:
        index = self.order.index(self.cursor_block) + step
        if 0 <= index < len(self.order):
            return self.order[index]
        return None

    def move_left(self, select: bool = False):
        if select:
            if self.anchor is None:
                self.anchor = self.cursor_offset
            self.cursor_offset = max(0, self.cursor_offset - 1)
            return
        self.anchor = None
        if self.cursor_offset > 0:
            self.cursor_offset -= 1
            return
        previous = self._neighbour(-1)
        if previous is not None:
            self.cursor_block = previous
            self.cursor_offset = self._length(previous)

    def move_right(self, select: bool = False):
        length = self._length(self.cursor_block)
        if select:
            if self.anchor is None:
                self.anchor = self.cursor_offset
            self.cursor_offset = min(length, self.cursor_offset + 1)
            return
        self.anchor = None
        if self.cursor_offset < length:
            self.cursor_offset += 1
            return
        following = self._neighbour(1)
        if following is not None:
            self.cursor_block = following
            self.cursor_offset = 0

    def move_home(self):
        self.anchor = None
        self.cursor_offset = 0

    def move_end(self):
        self.anchor = None
        self.cursor_offset = self._length(self.cursor_block)

    # --- Layout ---

    def _prefix(self, block_id: str, number: int) -> str:
        block_type = self.types[block_id]
        if block_type == BlockType.NUMBERED_ITEM:
            return f"{number}. "
        return BLOCK_PREFIXES.get(block_type, "")

    def layout(self) -> tuple[list[str], int, int]:
        """Lay out every block; return (lines, cursor_y, cursor_x)."""
        lines: list[str] = []
        cursor_y = cursor_x = 0
        number = 0
        single_empty = len(self.order) == 1 and not self.current_text()
        for block_id in self.order:
            block_type = self.types[block_id]
            number = number + 1 if block_type == BlockType.NUMBERED_ITEM else 0
            if block_type.is_passthrough:
                if block_id == self.cursor_block:
                    cursor_y, cursor_x = len(lines), 0
                lines.append(PASSTHROUGH_LABELS[block_type])
                continue
            prefix = self._prefix(block_id, number)
            text = display_text(self.contents[block_id])
            block_lines, counts = render_paragraph(text, self.num_columns, prefix)
            if block_id == self.cursor_block:
                row = next((i for i, c in enumerate(counts) if self.cursor_offset < c), len(counts) - 1)
                line_start = counts[row - 1] if row > 0 else 0
                cursor_y = len(lines) + row
                cursor_x = len(prefix) + self.cursor_offset - line_start
            if single_empty and block_type == BlockType.PARAGRAPH:
                block_lines = [EditorConstants.EMPTY_BLOCK_PLACEHOLDER]
            lines.extend(block_lines)
        self.lines = lines
        self.visual_cursor_y = cursor_y
        self.visual_cursor_x = min(cursor_x, self.num_columns)
        return lines, cursor_y, self.visual_cursor_x

    def visible_lines(self, num_rows: int) -> tuple[list[str], int, int]:
        """Layout scrolled so the cursor row is on screen."""
        lines, cursor_y, cursor_x = self.layout()
        num_rows = max(1, num_rows)
        if cursor_y < self.first_line:
            self.first_line = cursor_y
        elif cursor_y >= self.first_line + num_rows:
            self.first_line = cursor_y - num_rows + 1
        return lines[self.first_line:self.first_line + num_rows], cursor_y - self.first_line, cursor_x
