"""Constants and configuration for the blockmark editor."""

class EditorConstants:
    """Central configuration constants for the editor."""

    # History
    HISTORY_CAPACITY = 100  # Undo snapshots kept before the oldest is evicted
    MAX_HISTORY_CAPACITY = 1000

    # Blocks
    EMPTY_BLOCK_PLACEHOLDER = "Type to write..."
    SKETCH_MARKUP = '<div class="sketch-container"></div>'
    RULE_MARKUP = "<hr>"
    TABLE_CLASS = "note-table"
    BLOCK_ID_ATTRIBUTE = "data-block-id"

    # Terminal host layout
    DOCUMENT_WIDTH = 65  # Width of the text column
    MIN_TERMINAL_WIDTH = 65

    # File operations
    ATOMIC_SAVE_PREFIX = "."  # Prefix for temporary save files
    ATOMIC_SAVE_SUFFIX = ".tmp"  # Suffix for temporary save files
    AUTOSAVE_SWAP_PREFIX = "."
    AUTOSAVE_SWAP_SUFFIX = ".swp"

    # Status messages
    TERMINAL_TOO_NARROW_MESSAGE = "Terminal too narrow! Need at least {} columns."
    CURRENT_WIDTH_MESSAGE = "Current width: {} columns."
