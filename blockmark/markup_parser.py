"""Parse HTML markup into a block Document.

The markup tree is walked depth-first. Lists yield one block per item,
headings and quotes map one to one, tables, images, sketches and other
self-contained embeds are kept verbatim as passthrough blocks, and generic
containers are either flattened (when they hold block-level children) or
turned into a single paragraph.

Source offsets are tracked for every element so that passthrough blocks
store the element's outer markup exactly as it appeared in the input.
"""

import logging
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Optional

from .constants import EditorConstants
from .fragment import VOID_ELEMENTS, tokenize
from .model import Block, BlockType, Document

logger = logging.getLogger(__name__)

HEADING_TAGS = {
    'h1': BlockType.HEADING1,
    'h2': BlockType.HEADING2,
    'h3': BlockType.HEADING3,
}

LIST_TAGS = {
    'ul': BlockType.BULLET_ITEM,
    'ol': BlockType.NUMBERED_ITEM,
}

# Self-contained embeds stored as opaque passthrough blocks
OPAQUE_TAGS = frozenset({
    'pre', 'hr', 'figure', 'video', 'audio', 'iframe', 'svg', 'canvas',
    'object', 'embed', 'details', 'form', 'math', 'script', 'style',
})

# Paragraph-like containers: flattened when they hold block-level children
CONTAINER_TAGS = frozenset({
    'p', 'div', 'section', 'article', 'main', 'header', 'footer', 'aside',
    'nav', 'address', 'center', 'h4', 'h5', 'h6', 'html', 'body',
})

SKIPPED_TAGS = frozenset({'head', 'title', 'meta', 'link'})

BLOCK_TAGS = (
    CONTAINER_TAGS
    | OPAQUE_TAGS
    | frozenset(HEADING_TAGS)
    | frozenset(LIST_TAGS)
    | frozenset({'li', 'blockquote', 'table'})
) - frozenset({'script', 'style'})

BLOCK_CLASSES = frozenset({'image-container', 'sketch-container', EditorConstants.TABLE_CLASS})


@dataclass
class _Element:
    tag: str
    attrs: dict[str, str]
    start: int  # Offset of the opening '<'
    inner_start: int  # Offset just past the start tag
    inner_end: int = -1  # Offset of the closing tag
    end: int = -1  # Offset just past the closing tag
    children: list["_Element"] = field(default_factory=list)

    @property
    def classes(self) -> set[str]:
        return set((self.attrs.get('class') or '').split())


class _TreeBuilder(HTMLParser):
    """Build a lightweight element tree with source offsets."""

    def __init__(self, source: str):
        super().__init__(convert_charrefs=True)
        self.source = source
        self._line_starts = [0] + [i + 1 for i, ch in enumerate(source) if ch == '\n']
        self.root = _Element('#root', {}, 0, 0)
        self._stack = [self.root]

    def _offset(self) -> int:
        line, col = self.getpos()
        return self._line_starts[line - 1] + col

    def _close(self, depth: int, inner_end: int, end: Optional[int] = None):
        """Close the element at depth and everything opened above it."""
        while len(self._stack) > depth + 1:
            element = self._stack.pop()
            element.inner_end = element.end = inner_end
        element = self._stack.pop()
        element.inner_end = inner_end
        element.end = inner_end if end is None else end

    def _wraps_blocks(self, paragraph: _Element, offset: int) -> bool:
        if any(child.tag == 'p' for child in paragraph.children):
            return True
        return not _has_content(self.source[paragraph.inner_start:offset])

    def handle_starttag(self, tag, attrs):
        start = self._offset()
        raw = self.get_starttag_text() or f"<{tag}>"
        attributes = {name: value or '' for name, value in attrs}
        element = _Element(tag, attributes, start, start + len(raw))
        if tag in VOID_ELEMENTS:
            element.inner_end = element.end = element.inner_start
            self._stack[-1].children.append(element)
            return
        # A new paragraph or list item implicitly closes an open one, unless
        # the open paragraph is still empty and wraps the new blocks
        top = self._stack[-1]
        if (tag in ('p', 'li') and top.tag == tag
                and not (tag == 'p' and self._wraps_blocks(top, start))):
            self._close(len(self._stack) - 1, start)
        self._stack[-1].children.append(element)
        self._stack.append(element)

    def handle_startendtag(self, tag, attrs):
        start = self._offset()
        raw = self.get_starttag_text() or f"<{tag}/>"
        attributes = {name: value or '' for name, value in attrs}
        element = _Element(tag, attributes, start, start + len(raw))
        element.inner_end = element.end = element.inner_start
        self._stack[-1].children.append(element)

    def handle_endtag(self, tag):
        start = self._offset()
        close = self.source.find('>', start)
        end = close + 1 if close != -1 else len(self.source)
        for depth in range(len(self._stack) - 1, 0, -1):
            if self._stack[depth].tag == tag:
                self._close(depth, start, end)
                return
        # Stray end tag with nothing to close

    def build(self) -> _Element:
        self.feed(self.source)
        self.close()
        if len(self._stack) > 1:
            self._close(1, len(self.source))
        self.root.inner_end = self.root.end = len(self.source)
        return self.root


def _has_content(markup: str) -> bool:
    for token in tokenize(markup):
        if token.kind == 'text' and token.value.strip():
            return True
        if token.kind == 'void' and token.value not in ('br', '!--'):
            return True
    return False


class _BlockCollector:
    """Turn an element tree into a flat list of blocks."""

    def __init__(self, source: str):
        self.source = source
        self.blocks: list[Block] = []
        self._used_ids: set[str] = set()

    def _outer(self, element: _Element) -> str:
        return self.source[element.start:element.end]

    def _inner(self, element: _Element) -> str:
        return self.source[element.inner_start:element.inner_end]

    def _add(self, block_type: BlockType, content: str, element: Optional[_Element] = None):
        block = Block(block_type, content)
        if element is not None:
            block_id = element.attrs.get(EditorConstants.BLOCK_ID_ATTRIBUTE)
            if block_id and block_id not in self._used_ids:
                block.id = block_id
        self._used_ids.add(block.id)
        self.blocks.append(block)

    def _is_block(self, element: _Element) -> bool:
        return element.tag in BLOCK_TAGS or bool(element.classes & BLOCK_CLASSES)

    def _breaks_run(self, element: _Element) -> bool:
        return (
            element.tag in ('br', 'img')
            or element.tag in SKIPPED_TAGS
            or element.tag in OPAQUE_TAGS
            or self._is_block(element)
        )

    def _passthrough_type(self, element: _Element) -> Optional[BlockType]:
        classes = element.classes
        if element.tag == 'table' or EditorConstants.TABLE_CLASS in classes:
            return BlockType.TABLE
        if element.tag == 'img' or 'image-container' in classes:
            return BlockType.IMAGE
        if element.tag == 'div' and 'sketch-container' in classes:
            return BlockType.SKETCH
        if element.tag in OPAQUE_TAGS:
            return BlockType.OPAQUE
        return None

    def _flush_run(self, start: Optional[int], end: int):
        if start is None:
            return
        markup = self.source[start:end]
        if _has_content(markup):
            self._add(BlockType.PARAGRAPH, markup.strip())

    def collect(self, parent: _Element):
        """Flatten the children of parent into blocks.

        Text and inline elements between block-level children are gathered
        into runs; each run with visible content becomes one paragraph.
        """
        run_start: Optional[int] = None
        cursor = parent.inner_start
        for child in parent.children:
            if self._breaks_run(child):
                self._flush_run(run_start, child.start)
                run_start = None
                if child.tag != 'br':
                    self._visit(child)
            elif run_start is None:
                run_start = cursor
            cursor = child.end
        if run_start is None and cursor < parent.inner_end:
            run_start = cursor
        self._flush_run(run_start, parent.inner_end)

    def _visit(self, element: _Element):
        tag = element.tag
        passthrough = self._passthrough_type(element)
        if passthrough is not None:
            self._add(passthrough, self._outer(element))
        elif tag in LIST_TAGS:
            self._visit_list(element, LIST_TAGS[tag])
        elif tag == 'li':
            self._add(BlockType.BULLET_ITEM, self._inner(element), element)
        elif tag in HEADING_TAGS:
            self._add(HEADING_TAGS[tag], self._inner(element), element)
        elif tag == 'blockquote':
            self._add(BlockType.QUOTE, self._inner(element), element)
        elif tag in SKIPPED_TAGS:
            return
        elif any(self._is_block(child) for child in element.children):
            self.collect(element)
        else:
            self._add(BlockType.PARAGRAPH, self._inner(element), element)

    def _visit_list(self, element: _Element, item_type: BlockType):
        for child in element.children:
            if child.tag == 'li':
                self._add(item_type, self._inner(child), child)
            elif self._is_block(child):
                self._visit(child)


def parse_markup(markup: Optional[str]) -> Document:
    """Parse markup into a Document.

    Empty or unparseable input yields the default document of one empty
    paragraph; this never raises.
    """
    if not markup or not markup.strip():
        return Document()
    try:
        root = _TreeBuilder(markup).build()
    except (AssertionError, ValueError) as e:
        logger.warning(f"Could not parse markup, starting from an empty document: {e}")
        return Document()
    collector = _BlockCollector(markup)
    collector.collect(root)
    return Document(collector.blocks)
