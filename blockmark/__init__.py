"""blockmark - a structured block-document editing engine."""

from .editor import BlockEditor
from .errors import BlockmarkError, SelectionWrapError
from .markup_parser import parse_markup
from .markup_serializer import serialize
from .model import Block, BlockType, CursorLocation, Document
from .surface import MemorySurface, Surface

__all__ = [
    'Block',
    'BlockEditor',
    'BlockType',
    'BlockmarkError',
    'CursorLocation',
    'Document',
    'MemorySurface',
    'SelectionWrapError',
    'Surface',
    'parse_markup',
    'serialize',
]
