"""Clipboard utilities for xml changes."""

import pyperclip


def copy_to_clipboard(text: str) -> None:
    """
    Copy text to clipboard.
    
    Args:
        text: The text to copy.
    """
    pyperclip.copy(text)


def read_from_clipboard() -> str:
    """
    Read text from the clipboard.

    Returns:
        The clipboard text, or an empty string if the clipboard is empty.
    """
    return pyperclip.paste() or ""
