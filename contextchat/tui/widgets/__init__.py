"""
TUI widget components for contextchat.
"""

from .statusbar import StatusBar

__all__ = [
    "StatusBar",
]
