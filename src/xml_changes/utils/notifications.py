"""Notification utilities for xml changes."""

from rich.console import Console

console = Console()


def show_toast(message: str, style: str = "bold green") -> None:
    """
    Show a toast notification.
    
    Args:
        message: The message to display.
        style: Rich style for the message.
    """
    console.print(f"[{style}]{message}[/{style}]")
