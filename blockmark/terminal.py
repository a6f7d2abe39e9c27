"""Terminal interface using Blessed for display and Curtsies for input."""

import logging
import select
import sys
import termios
from typing import Optional

import blessed
from curtsies import Input

logger = logging.getLogger(__name__)

HELP_HINT = "Ctrl-S save  Ctrl-Q quit"


class TerminalInterface:
    """Handles terminal I/O using Blessed."""

    def __init__(self, terminal: Optional[blessed.Terminal] = None):
        """Initialize with a terminal instance (or create one)."""
        self.term = terminal or blessed.Terminal()
        self.is_fullscreen = False
        self._input: Optional[Input] = None

    def setup(self):
        """Enter fullscreen mode and start reading keys."""
        print(self.term.enter_fullscreen)
        print(self.term.hide_cursor)
        print(self.term.clear)
        self.is_fullscreen = True
        if self._input is None:
            try:
                self._input = Input(keynames='curtsies')
                self._input.__enter__()
            except (OSError, termios.error) as e:
                # Not a terminal (CI, pipes); no keys will be read
                logger.warning(f"Could not put the terminal in raw mode: {e}")
                self._input = None

    def cleanup(self):
        """Exit fullscreen mode and restore terminal."""
        if self.is_fullscreen:
            print(self.term.exit_fullscreen)
            print(self.term.normal_cursor)
            self.is_fullscreen = False
        if self._input is not None:
            try:
                self._input.__exit__(None, None, None)
            except (OSError, termios.error) as e:
                logger.warning(f"Could not restore terminal mode: {e}")
            finally:
                self._input = None

    def draw_lines(self, lines: list[str], cursor_y: int, cursor_x: int,
                   left_margin: int = 0, view_width: int = 65,
                   status_override: Optional[str] = None):
        """Draw text lines and position the cursor.

        Args:
            lines: List of strings to display
            cursor_y: Cursor row position (0-based)
            cursor_x: Cursor column position (0-based)
            left_margin: Number of spaces to indent from left
            view_width: Width of the view area
            status_override: Message shown on the status line instead of the hint
        """
        print(self.term.home + self.term.clear, end='')

        for y, line in enumerate(lines):
            print(self.term.move(y, left_margin) + line[:view_width].ljust(view_width), end='')

        print(self.term.move(self.term.height - 1, 0), end='')
        if status_override:
            print(status_override.ljust(self.term.width), end='')
        else:
            print(' ' * self.term.width, end='')
            print(self.term.move(self.term.height - 1, self.term.width - len(HELP_HINT) - 1), end='')
            print(HELP_HINT, end='')

        if status_override and (": " in status_override):
            # Prompt input: cursor at the end of what was typed
            print(self.term.move(self.term.height - 1, len(status_override)) + self.term.normal_cursor,
                  end='', flush=True)
        else:
            print(self.term.move(cursor_y, cursor_x + left_margin) + self.term.normal_cursor,
                  end='', flush=True)

    def draw_error_message(self, message1: str, message2: str = ""):
        """Draw an error message in the center of the screen."""
        print(self.term.home + self.term.clear, end='')

        center_y = self.term.height // 2
        box_width = max(len(message1), len(message2)) + 4
        left_margin = (self.term.width - box_width) // 2

        print(self.term.move(center_y - 2, left_margin) + "╔" + "═" * (box_width - 2) + "╗", end='')
        print(self.term.move(center_y - 1, left_margin) + "║ " + message1.center(box_width - 4) + " ║", end='')
        if message2:
            print(self.term.move(center_y, left_margin) + "║ " + message2.center(box_width - 4) + " ║", end='')
            print(self.term.move(center_y + 1, left_margin) + "╚" + "═" * (box_width - 2) + "╝", end='')
        else:
            print(self.term.move(center_y, left_margin) + "╚" + "═" * (box_width - 2) + "╝", end='')

        help_text = "Ctrl-Q to quit | Resize terminal to continue"
        print(self.term.move(self.term.height - 1, (self.term.width - len(help_text)) // 2), end='')
        print(help_text, end='', flush=True)

    def get_key(self, timeout=None) -> Optional[str]:
        """Return the next curtsies key name, or None on timeout.

        Args:
            timeout: Timeout in seconds (None for blocking, 0 for non-blocking)
        """
        if self._input is None:
            return None
        if timeout is not None:
            ready, _, _ = select.select([sys.stdin], [], [], float(timeout))
            if not ready:
                return None
        return str(next(self._input))

    @property
    def width(self):
        """Terminal width in columns."""
        return self.term.width

    @property
    def height(self):
        """Terminal height in rows (excluding status line)."""
        return self.term.height - 1
