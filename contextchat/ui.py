"""
Console output utilities for contextchat.

Provides:
- ANSI color support with graceful fallback
- Message, stream and context usage display for the CLI
"""

import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, TextIO

from .compat import supports_color, supports_unicode

if TYPE_CHECKING:
    from .context import ContextStatus
    from .session.models import Message

__all__ = [
    "ConsoleUI",
    "Colors",
    "Symbols",
]


@dataclass
class Colors:
    """ANSI codes for console output; empty strings when disabled."""

    RED: str = "\033[31m"
    GREEN: str = "\033[32m"
    CYAN: str = "\033[36m"
    BOLD: str = "\033[1m"
    RESET: str = "\033[0m"

    # Semantic colors
    WARNING: str = "\033[33m"  # Yellow, near-limit and warnings
    INFO: str = "\033[36m"     # Cyan, context usage
    MUTED: str = "\033[90m"    # Gray, timestamps

    @classmethod
    def disabled(cls) -> "Colors":
        return cls(**{name: "" for name in cls.__dataclass_fields__})


@dataclass
class Symbols:
    """Status symbols, with ASCII stand-ins for limited terminals."""

    CHECK: str = "✓"
    CROSS: str = "✗"
    BULLET: str = "•"
    IMAGE: str = "🖼"

    @classmethod
    def ascii(cls) -> "Symbols":
        return cls(CHECK="[OK]", CROSS="[X]", BULLET="*", IMAGE="[image]")


class ConsoleUI:
    """
    Plain console output for the non-interactive commands.

    Replies go to stdout so they can be piped; everything else goes to
    stderr.
    """

    def __init__(
        self,
        no_color: bool = False,
        stream: TextIO | None = None,
        out: TextIO | None = None,
    ):
        """
        Initialize console UI.

        Args:
            no_color: Disable colors even if terminal supports them
            stream: Status stream (defaults to stderr)
            out: Reply stream (defaults to stdout)
        """
        self.stream = stream or sys.stderr
        self.out = out or sys.stdout

        use_color = supports_color(self.stream) and not no_color
        self.colors = Colors() if use_color else Colors.disabled()
        self.symbols = Symbols() if supports_unicode(self.stream) else Symbols.ascii()

    def _write(self, text: str, newline: bool = True) -> None:
        """Write to status stream."""
        self.stream.write(text)
        if newline:
            self.stream.write("\n")
        self.stream.flush()

    # === Conversation output ===

    def fragment(self, text: str) -> None:
        """Write one streamed reply fragment."""
        self.out.write(text)
        self.out.flush()

    def end_reply(self) -> None:
        self.out.write("\n")
        self.out.flush()

    def message(self, message: "Message") -> None:
        """Display a stored message."""
        c = self.colors
        s = self.symbols
        stamp = message.timestamp.strftime("%Y-%m-%d %H:%M")
        if message.role == "user":
            header = f"{c.BOLD}{c.CYAN}You{c.RESET}"
        else:
            header = f"{c.BOLD}{c.GREEN}Assistant{c.RESET}"
        image = f" {c.MUTED}{s.IMAGE}{c.RESET}" if message.has_image else ""
        self._write(f"{header} {c.MUTED}{stamp}{c.RESET}{image}")
        if message.content:
            self._write(f"  {message.content}")
        self._write("")

    def status(self, status: "ContextStatus") -> None:
        """Display context usage."""
        c = self.colors
        s = self.symbols
        color = c.WARNING if status.near_limit else c.INFO
        self._write(
            f"{color}Context: {status.used_tokens:,}/{status.limit_tokens:,} tokens "
            f"({status.usage_percent * 100:.0f}%, {status.status}){c.RESET}"
        )
        self._write(
            f"{c.MUTED}{s.BULLET} {status.message_count} messages, "
            f"{status.remaining_tokens:,} tokens left under the "
            f"{status.safe_limit:,} safe limit{c.RESET}"
        )
        if status.near_limit:
            self.warning("Context is close to the limit. Consider clearing the history.")

    # === General output ===

    def info(self, message: str) -> None:
        """Display info message."""
        c = self.colors
        self._write(f"{c.INFO}{message}{c.RESET}")

    def success(self, message: str) -> None:
        """Display success message."""
        c = self.colors
        s = self.symbols
        self._write(f"{c.GREEN}{s.CHECK} {message}{c.RESET}")

    def error(self, message: str) -> None:
        """Display error message."""
        c = self.colors
        s = self.symbols
        self._write(f"{c.RED}{s.CROSS} {message}{c.RESET}")

    def warning(self, message: str) -> None:
        """Display warning message."""
        c = self.colors
        self._write(f"{c.WARNING}Warning: {message}{c.RESET}")
