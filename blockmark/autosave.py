"""Swap-file autosave.

After every change the editor's markup is written next to the document as
``.<name>.swp``, so a crash loses at most the last keystroke. The swap file
is removed once the document is saved.
"""

import logging
import os
import tempfile
from typing import Optional

from .constants import EditorConstants

logger = logging.getLogger(__name__)


def get_swap_path(filename: str) -> str:
    """For /path/to/notes.html return /path/to/.notes.html.swp"""
    dir_name = os.path.dirname(filename) or '.'
    swap_name = (
        EditorConstants.AUTOSAVE_SWAP_PREFIX
        + os.path.basename(filename)
        + EditorConstants.AUTOSAVE_SWAP_SUFFIX
    )
    return os.path.join(dir_name, swap_name)


def write_swap_file(filename: str, content: str) -> bool:
    """Write content to the swap file atomically."""
    swap_path = get_swap_path(filename)
    dir_name = os.path.dirname(swap_path) or '.'
    temp_filename = None
    try:
        with tempfile.NamedTemporaryFile(
            mode='w',
            encoding='utf-8',
            dir=dir_name,
            suffix=EditorConstants.AUTOSAVE_SWAP_SUFFIX + EditorConstants.ATOMIC_SAVE_SUFFIX,
            delete=False
        ) as temp_file:
            temp_filename = temp_file.name
            temp_file.write(content)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.replace(temp_filename, swap_path)
        return True
    except OSError as e:
        logger.warning(f"Could not write swap file {swap_path}: {e}")
        if temp_filename is not None:
            try:
                os.remove(temp_filename)
            except OSError:
                pass
        return False


def delete_swap_file(filename: str) -> None:
    swap_path = get_swap_path(filename)
    try:
        os.remove(swap_path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not delete swap file {swap_path}: {e}")


def read_swap_file(filename: str) -> Optional[str]:
    """Return the swap file content, or None if it doesn't exist or is unreadable."""
    try:
        with open(get_swap_path(filename), 'r', encoding='utf-8') as f:
            return f.read()
    except OSError:
        return None


class SwapFile:
    """Swap file bound to one document, used as an ``on_change`` callback."""

    def __init__(self, filename: str, enabled: bool = True):
        self.filename = filename
        self.enabled = enabled

    @property
    def path(self) -> str:
        return get_swap_path(self.filename)

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def write(self, markup: str) -> bool:
        if not self.enabled:
            return False
        return write_swap_file(self.filename, markup)

    __call__ = write

    def read(self) -> Optional[str]:
        return read_swap_file(self.filename)

    def delete(self) -> None:
        delete_swap_file(self.filename)
