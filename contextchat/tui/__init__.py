"""
TUI (Terminal User Interface) for contextchat.

Provides an interactive terminal chat with:
- Streamed replies
- Live context usage in the status bar
- Slash commands for clearing history and attaching images
"""

from .app import ContextChatApp, run_tui

__all__ = [
    "ContextChatApp",
    "run_tui",
]
