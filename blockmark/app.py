"""Terminal editor application built on BlockEditor."""

import errno
import logging
import os
import select
import signal
import sys
import tempfile
import termios
from typing import Optional

from . import clipboard
from .autosave import SwapFile
from .constants import EditorConstants
from .editor import BlockEditor
from .keyboard import KeyboardHandler, KeyEvent, KeyType
from .model import BlockType
from .settings_persistence import get_persistence
from .terminal import TerminalInterface
from .view import TerminalSurface

logger = logging.getLogger(__name__)

# Alt-<key> block toggles
BLOCK_SHORTCUTS = {
    '1': BlockType.HEADING1,
    '2': BlockType.HEADING2,
    '3': BlockType.HEADING3,
    'q': BlockType.QUOTE,
    'l': BlockType.BULLET_ITEM,
    'n': BlockType.NUMBERED_ITEM,
}

INLINE_SHORTCUTS = {
    (KeyType.CTRL, 'b'): 'bold',
    (KeyType.CTRL, 'u'): 'underline',
    (KeyType.ALT, 'i'): 'italic',
    (KeyType.ALT, 's'): 'strikeThrough',
}


class TerminalApp:
    """Main application controller: terminal loop, files and key routing."""

    def __init__(self, terminal: Optional[TerminalInterface] = None):
        self.terminal = terminal or TerminalInterface()
        self.keyboard = KeyboardHandler(self.terminal)
        self.view_width = EditorConstants.DOCUMENT_WIDTH
        self.surface = TerminalSurface(self.view_width)
        self.settings = get_persistence().effective_settings(None)
        self.swap: Optional[SwapFile] = None
        self.editor = self._create_editor("")
        self.running = False
        self.error_mode = False  # True when terminal is too narrow
        self.filename: Optional[str] = None
        self.modified = False
        self.status_message: Optional[str] = None
        self.prompt_mode: Optional[str] = None  # 'save_filename', 'save_filename_quit' or 'quit_confirm'
        self.prompt_input = ""
        self._resize_pipe_r: Optional[int] = None
        self._resize_pipe_w: Optional[int] = None
        self._ctrl_c_pressed = False

    def _create_editor(self, markup: str) -> BlockEditor:
        return BlockEditor(
            self.surface,
            markup,
            on_change=self._on_change,
            history_capacity=self.settings['history_capacity'],
            autoformat=self.settings['autoformat'],
            smart_arrows=self.settings['smart_arrows'],
            include_ids=self.settings['include_block_ids'],
        )

    def _on_change(self, markup: str):
        self.modified = True
        if self.swap is not None:
            self.swap.write(markup)

    # --- Files ---

    def load_file(self, filename: str):
        """Open a file, recovering from its swap file if one is left over."""
        self.filename = filename
        self.settings = get_persistence().effective_settings(filename)
        self.swap = SwapFile(filename, enabled=self.settings['autosave'])
        markup = ""
        try:
            with open(filename, 'r', encoding='utf-8') as f:
                markup = f.read()
        except FileNotFoundError:
            pass
        recovered = self.swap.read() if self.swap.enabled else None
        self.modified = recovered is not None and recovered != markup
        if self.modified:
            markup = recovered
            self.status_message = "Recovered unsaved changes from swap file"
        self.editor = self._create_editor(markup)

    def save_file(self, filename: str) -> bool:
        """Save the current markup atomically (temp file + rename)."""
        temp_filename = None
        try:
            dir_name = os.path.dirname(filename) or '.'
            with tempfile.NamedTemporaryFile(mode='w', encoding='utf-8', dir=dir_name,
                                             prefix=EditorConstants.ATOMIC_SAVE_PREFIX,
                                             suffix=EditorConstants.ATOMIC_SAVE_SUFFIX,
                                             delete=False) as temp_file:
                temp_filename = temp_file.name
                temp_file.write(self.editor.get_markup())
                temp_file.flush()
                os.fsync(temp_file.fileno())
            os.replace(temp_filename, filename)
        except OSError as e:
            if isinstance(e, PermissionError):
                self.status_message = f"Error: Permission denied saving {filename}"
            elif e.errno == errno.ENOSPC:
                self.status_message = "Error: No space left on device"
            else:
                self.status_message = f"Error: Cannot save to {filename}"
            logger.warning(f"Could not save {filename}: {e}")
            if temp_filename is not None and os.path.exists(temp_filename):
                try:
                    os.remove(temp_filename)
                except OSError:
                    pass
            return False

        if self.swap is not None and self.swap.filename != filename:
            self.swap.delete()
        self.filename = filename
        self.swap = SwapFile(filename, enabled=self.settings['autosave'])
        self.swap.delete()
        self.modified = False
        return True

    def _handle_save(self):
        if self.filename:
            if self.save_file(self.filename):
                self.status_message = f"Saved to {self.filename}"
        else:
            self.prompt_mode = 'save_filename'
            self.prompt_input = ""

    # --- Keys ---

    def handle_key_event(self, key_event: KeyEvent):
        """Route one key: prompts, app shortcuts, the editor, then the surface."""
        if self.status_message and not self.prompt_mode:
            self.status_message = None

        if self._handle_prompt_mode(key_event):
            return
        if self.error_mode:
            if key_event.key_type == KeyType.CTRL and key_event.value == 'q':
                self.running = False
            return
        if self._handle_app_shortcut(key_event):
            return

        location = self.surface.location
        if location is not None and self.editor.handle_key(key_event, location):
            return
        self._apply_surface_default(key_event)

    def _handle_app_shortcut(self, key_event: KeyEvent) -> bool:
        key = (key_event.key_type, key_event.value)
        if key == (KeyType.CTRL, 'q'):
            if self.modified:
                self.prompt_mode = 'quit_confirm'
            else:
                self.running = False
        elif key == (KeyType.CTRL, 's'):
            self._handle_save()
        elif key == (KeyType.CTRL, 'c'):
            text = self.surface.selected_text() or self.surface.current_text()
            if clipboard.copy_text(text):
                self.status_message = "Copied"
            else:
                self.status_message = "Clipboard unavailable"
        elif key == (KeyType.CTRL, 'v'):
            text = clipboard.paste_text()
            if text:
                self.editor.paste_text(text, self.surface.location)
        elif key in INLINE_SHORTCUTS:
            if not self.editor.apply_inline_action(INLINE_SHORTCUTS[key], location=self.surface.location):
                self.status_message = "Select some text first"
        elif key_event.key_type == KeyType.ALT and key_event.value in BLOCK_SHORTCUTS:
            self.editor.apply_block_action(BLOCK_SHORTCUTS[key_event.value], self.surface.location)
        elif key == (KeyType.ALT, 't'):
            block = self.editor.current_block(self.surface.location)
            self.editor.insert_table(2, 2, after_id=block.id if block else None)
        else:
            return False
        return True

    def _apply_surface_default(self, key_event: KeyEvent):
        """Keys the editor left alone edit or move inside the current block."""
        changed = False
        key = (key_event.key_type, key_event.value)
        if key_event.key_type == KeyType.REGULAR:
            if key_event.value and ord(key_event.value[0]) >= 32:
                changed = self.surface.insert_text(key_event.value)
        elif key == (KeyType.SPECIAL, 'backspace'):
            changed = self.surface.delete_backward()
        elif key in ((KeyType.SPECIAL, 'delete'), (KeyType.CTRL, 'd')):
            changed = self.surface.delete_forward()
        elif key == (KeyType.SPECIAL, 'left'):
            self.surface.move_left()
        elif key == (KeyType.SPECIAL, 'right'):
            self.surface.move_right()
        elif key == (KeyType.SHIFT_SPECIAL, 'left'):
            self.surface.move_left(select=True)
        elif key == (KeyType.SHIFT_SPECIAL, 'right'):
            self.surface.move_right(select=True)
        elif key in ((KeyType.SPECIAL, 'home'), (KeyType.CTRL, 'a')):
            self.surface.move_home()
        elif key in ((KeyType.SPECIAL, 'end'), (KeyType.CTRL, 'e')):
            self.surface.move_end()
        if changed:
            self.editor.handle_input(self.surface.location)

    def _handle_prompt_mode(self, key_event: KeyEvent) -> bool:
        if self.prompt_mode in ('save_filename', 'save_filename_quit'):
            self._handle_filename_prompt(key_event)
            return True
        if self.prompt_mode == 'quit_confirm':
            self._handle_quit_confirm(key_event)
            return True
        return False

    def _handle_filename_prompt(self, key_event: KeyEvent):
        if (key_event.key_type == KeyType.SPECIAL and key_event.value == 'escape') or \
           (key_event.key_type == KeyType.CTRL and key_event.value == 'g'):
            self.prompt_mode = None
            self.prompt_input = ""
        elif key_event.key_type == KeyType.SPECIAL and key_event.value == 'enter':
            if self.prompt_input:
                if self.save_file(self.prompt_input):
                    self.status_message = f"Saved to {self.prompt_input}"
                    if self.prompt_mode == 'save_filename_quit':
                        self.running = False
                self.prompt_mode = None
                self.prompt_input = ""
        elif key_event.key_type == KeyType.SPECIAL and key_event.value == 'backspace':
            self.prompt_input = self.prompt_input[:-1]
        elif key_event.key_type == KeyType.REGULAR and ord(key_event.value[0]) >= 32:
            self.prompt_input += key_event.value

    def _handle_quit_confirm(self, key_event: KeyEvent):
        if key_event.key_type != KeyType.REGULAR:
            return
        char = key_event.value.lower()
        if char == 'y':
            if self.filename:
                if self.save_file(self.filename):
                    self.running = False
                self.prompt_mode = None
            else:
                self.prompt_mode = 'save_filename_quit'
                self.prompt_input = ""
        elif char == 'n':
            self.running = False
        else:
            self.prompt_mode = None

    # --- Drawing ---

    def _status_line(self) -> Optional[str]:
        if self.prompt_mode in ('save_filename', 'save_filename_quit'):
            return f" File to save in: {self.prompt_input}"
        if self.prompt_mode == 'quit_confirm':
            return " Save file? (y, n) "
        if self.status_message:
            return f" {self.status_message}"
        return None

    def _draw(self):
        if self.terminal.width < EditorConstants.MIN_TERMINAL_WIDTH:
            self.error_mode = True
            self.terminal.draw_error_message(
                EditorConstants.TERMINAL_TOO_NARROW_MESSAGE.format(EditorConstants.MIN_TERMINAL_WIDTH),
                EditorConstants.CURRENT_WIDTH_MESSAGE.format(self.terminal.width)
            )
            return
        self.error_mode = False
        lines, cursor_y, cursor_x = self.surface.visible_lines(self.terminal.height)
        self.terminal.draw_lines(
            lines,
            cursor_y,
            cursor_x,
            left_margin=(self.terminal.width - self.view_width) // 2,
            view_width=self.view_width,
            status_override=self._status_line(),
        )

    # --- Loop ---

    def _handle_resize(self, signum, frame):
        del signum, frame  # Unused
        os.write(self._resize_pipe_w, b'R')

    def _handle_sigint(self, signum, frame):
        """Ctrl-C arrives as SIGINT; turn it back into a copy key."""
        del signum, frame  # Unused
        self._ctrl_c_pressed = True
        os.write(self._resize_pipe_w, b'C')

    def run(self):
        """Run the main loop until the user quits."""
        self._resize_pipe_r, self._resize_pipe_w = os.pipe()
        self._ctrl_c_pressed = False
        self.terminal.setup()
        self.running = True
        original_winch_handler = signal.signal(signal.SIGWINCH, self._handle_resize)
        original_int_handler = signal.signal(signal.SIGINT, self._handle_sigint)
        old_settings = None
        try:
            try:
                # Let Ctrl-S, Ctrl-Q and Ctrl-V through as keys
                old_settings = termios.tcgetattr(sys.stdin)
                new_settings = list(old_settings)
                new_settings[0] &= ~(termios.IXON | termios.IXOFF)
                new_settings[3] &= ~termios.IEXTEN
                termios.tcsetattr(sys.stdin, termios.TCSANOW, new_settings)
            except (termios.error, OSError) as e:
                logger.warning(f"Could not adjust terminal flags: {e}")
                old_settings = None

            while self.running:
                self._draw()
                ready, _, _ = select.select([sys.stdin, self._resize_pipe_r], [], [])
                if self._resize_pipe_r in ready:
                    os.read(self._resize_pipe_r, 1024)
                    if self._ctrl_c_pressed:
                        self._ctrl_c_pressed = False
                        self.handle_key_event(KeyEvent(key_type=KeyType.CTRL, value='c',
                                                       raw='\x03', is_ctrl=True))
                    continue
                key_event = self.keyboard.get_key_event(timeout=0)
                if key_event:
                    self.handle_key_event(key_event)
        except KeyboardInterrupt:
            pass
        finally:
            if old_settings is not None:
                try:
                    termios.tcsetattr(sys.stdin, termios.TCSANOW, old_settings)
                except (termios.error, OSError):
                    pass
            signal.signal(signal.SIGWINCH, original_winch_handler)
            signal.signal(signal.SIGINT, original_int_handler)
            os.close(self._resize_pipe_r)
            os.close(self._resize_pipe_w)
            self.terminal.cleanup()
