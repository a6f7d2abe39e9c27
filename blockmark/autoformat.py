"""Markdown-style shortcuts applied while typing."""

import re
from typing import Optional

from .fragment import delete_text, insert_text, plain_text, split_fragment
from .model import BlockType

# Checked in order, first match wins
TRIGGERS: tuple[tuple[str, BlockType], ...] = (
    ("# ", BlockType.HEADING1),
    ("## ", BlockType.HEADING2),
    ("### ", BlockType.HEADING3),
    ("> ", BlockType.QUOTE),
    ("- ", BlockType.BULLET_ITEM),
    ("* ", BlockType.BULLET_ITEM),
    ("1. ", BlockType.NUMBERED_ITEM),
)

ARROWS: tuple[tuple[str, str], ...] = (
    ("<->", "↔"),
    ("->", "→"),
    ("<-", "←"),
)

HORIZONTAL_RULE = re.compile(r"^(-{3,}|_{3,}|\*{3,})$")


def _normalize(text: str) -> str:
    return text.replace('\xa0', ' ')


def match_trigger(text: str) -> Optional[tuple[str, BlockType]]:
    """Return the (prefix, block type) whose prefix starts text, if any."""
    text = _normalize(text)
    for prefix, block_type in TRIGGERS:
        if text.startswith(prefix):
            return prefix, block_type
    return None


def strip_prefix(content: str, prefix: str) -> str:
    """Remove a trigger prefix from the start of a fragment, once."""
    if content.startswith(prefix):
        return content[len(prefix):]
    return split_fragment(content, len(prefix))[1]


def apply_autoformat(content: str) -> Optional[tuple[BlockType, str]]:
    """Return the target type and remaining content when content opens with a trigger."""
    match = match_trigger(plain_text(content))
    if match is None:
        return None
    prefix, block_type = match
    return block_type, strip_prefix(content, prefix)


def replace_arrow(content: str, offset: int) -> Optional[tuple[str, int]]:
    """Turn ``->``, ``<-`` or ``<->`` typed before a space into an arrow.

    Returns the new content and caret offset, or None when the text before
    the caret does not end in an arrow pattern followed by whitespace.
    """
    before = _normalize(plain_text(content)[:offset])
    trimmed = before.rstrip()
    if trimmed == before:
        return None
    for pattern, replacement in ARROWS:
        if trimmed.endswith(pattern):
            start = len(trimmed) - len(pattern)
            content = delete_text(content, start, len(trimmed))
            content = insert_text(content, start, replacement)
            return content, offset - len(pattern) + len(replacement)
    return None


def is_horizontal_rule(content: str) -> bool:
    """True when the fragment's text is only ``---``, ``___`` or ``***``."""
    return bool(HORIZONTAL_RULE.match(_normalize(plain_text(content)).strip()))
