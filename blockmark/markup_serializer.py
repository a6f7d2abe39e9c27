"""Serialize a block Document back to HTML markup."""

import html

from .constants import EditorConstants
from .model import Block, BlockType, Document

TEXT_TAGS = {
    BlockType.PARAGRAPH: 'p',
    BlockType.HEADING1: 'h1',
    BlockType.HEADING2: 'h2',
    BlockType.HEADING3: 'h3',
    BlockType.QUOTE: 'blockquote',
}

LIST_TAGS = {
    BlockType.BULLET_ITEM: 'ul',
    BlockType.NUMBERED_ITEM: 'ol',
}


def _open_tag(tag: str, block: Block, include_ids: bool) -> str:
    if not include_ids:
        return f"<{tag}>"
    block_id = html.escape(block.id, quote=True)
    return f'<{tag} {EditorConstants.BLOCK_ID_ATTRIBUTE}="{block_id}">'


def _element(tag: str, block: Block, include_ids: bool) -> str:
    return f"{_open_tag(tag, block, include_ids)}{block.content}</{tag}>"


def serialize(document: Document, include_ids: bool = True) -> str:
    """Render the document as markup.

    Consecutive list items of the same kind are grouped into a single
    ``<ul>`` or ``<ol>``. Passthrough blocks are emitted unchanged.
    """
    pieces: list[str] = []
    blocks = list(document)
    i = 0
    while i < len(blocks):
        block = blocks[i]
        if block.type in LIST_TAGS:
            items = []
            while i < len(blocks) and blocks[i].type == block.type:
                items.append(_element('li', blocks[i], include_ids))
                i += 1
            tag = LIST_TAGS[block.type]
            pieces.append(f"<{tag}>{''.join(items)}</{tag}>")
            continue
        if block.type.is_passthrough:
            pieces.append(block.content)
        else:
            pieces.append(_element(TEXT_TAGS[block.type], block, include_ids))
        i += 1
    return '\n'.join(pieces)
