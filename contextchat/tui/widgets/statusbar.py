"""
Status bar widget for the contextchat TUI.

Displays context usage, the near-limit warning and pending state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual.reactive import reactive
from textual.widgets import Static

if TYPE_CHECKING:
    from ...context import ContextStatus


class StatusBar(Static):
    """
    Status bar showing context usage.

    Displays:
    - Used / nominal tokens with a usage bar
    - Near-limit warning
    - Attached image and streaming indicators
    """

    DEFAULT_CSS = """
    StatusBar {
        background: #2b2b2b;
        color: #9a9a9a;
        padding: 0 1;
        height: 1;
    }
    """

    used_tokens: reactive[int] = reactive(0)
    limit_tokens: reactive[int] = reactive(0)
    usage_percent: reactive[float] = reactive(0.0)
    near_limit: reactive[bool] = reactive(False)
    image_attached: reactive[bool] = reactive(False)
    busy: reactive[bool] = reactive(False)

    def render(self) -> str:
        """Render the status bar content."""
        parts = []

        bar = self._progress_bar(self.usage_percent, 1.0, width=8)
        parts.append(
            f"Context: {self.used_tokens:,}/{self.limit_tokens:,} tokens "
            f"{bar} {self.usage_percent * 100:.0f}%"
        )

        if self.near_limit:
            parts.append("⚠ Close to the limit, consider /clear")

        if self.image_attached:
            parts.append("🖼 image attached")

        if self.busy:
            parts.append("● replying")

        return " │ ".join(parts)

    def update_status(
        self,
        status: "ContextStatus | None" = None,
        image_attached: bool | None = None,
        busy: bool | None = None,
    ) -> None:
        """
        Update the status bar.

        Args:
            status: Latest context usage snapshot
            image_attached: Whether an image waits for the next message
            busy: Whether a reply is streaming
        """
        if status is not None:
            self.used_tokens = status.used_tokens
            self.limit_tokens = status.limit_tokens
            self.usage_percent = status.usage_percent
            self.near_limit = status.near_limit

        if image_attached is not None:
            self.image_attached = image_attached

        if busy is not None:
            self.busy = busy

        self.refresh()

    def _progress_bar(
        self,
        current: float,
        total: float,
        width: int = 10,
    ) -> str:
        """Create a text progress bar."""
        if total == 0:
            return "░" * width

        ratio = min(current / total, 1.0)
        filled = int(width * ratio)
        empty = width - filled

        return "█" * filled + "░" * empty
