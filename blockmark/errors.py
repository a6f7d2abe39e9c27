"""Exceptions raised by blockmark."""


class BlockmarkError(Exception):
    """Base class for blockmark errors."""


class SelectionWrapError(BlockmarkError):
    """The host surface could not apply an inline action to the selection.

    The editor catches this and wraps the selected text itself.
    """

    def __init__(self, action: str, message: str = ""):
        self.action = action
        super().__init__(message or f"Surface cannot apply inline action '{action}'")
