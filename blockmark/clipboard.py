"""System clipboard integration (plain text only)."""

import logging

import pyperclip

logger = logging.getLogger(__name__)


def copy_text(text: str) -> bool:
    """Copy text to the system clipboard; return False if no clipboard is available."""
    try:
        pyperclip.copy(text)
        return True
    except pyperclip.PyperclipException as e:
        logger.warning(f"Could not copy to clipboard: {e}")
        return False


def paste_text() -> str:
    """Return the clipboard text, or an empty string if it cannot be read."""
    try:
        return pyperclip.paste() or ""
    except pyperclip.PyperclipException as e:
        logger.warning(f"Could not paste from clipboard: {e}")
        return ""
