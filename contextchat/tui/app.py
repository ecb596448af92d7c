"""
contextchat TUI.
"""

from __future__ import annotations

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, ScrollableContainer
from textual.widgets import Input, Static

from .. import __version__
from ..context.eviction import FULL_CLEAR
from ..exceptions import (
    ChatInputError,
    ContextChatError,
    ContextError,
    ImageProcessingError,
    TransportError,
)
from ..images import encode_image
from ..session import ConversationManager
from ..session.models import Message
from .widgets import StatusBar

LOGO = "◈"

HELP_TEXT = (
    "/clear [percent]  forget the oldest messages (default 100)\n"
    "/image <path>     attach an image to the next message\n"
    "/status           show context usage\n"
    "/quit             exit\n"
    "ctrl+l            clear everything"
)

BORDER_COLORS = {
    "user": "#5c9cf5",
    "assistant": "#fab283",
    "system": "#4b4c5c",
}


class ChatMessage(Static):
    """Chat message with left border."""

    def __init__(self, role: str, content: str, has_image: bool = False):
        self.role = role
        self._text = content
        self._has_image = has_image
        super().__init__(self._display_text(), markup=False)

    def _display_text(self) -> str:
        prefix = "[image] " if self._has_image else ""
        return prefix + (self._text or "…")

    def on_mount(self) -> None:
        self.styles.border_left = ("thick", BORDER_COLORS.get(self.role, "#4b4c5c"))
        self.styles.padding = (0, 0, 0, 1)
        if self.role == "system":
            self.styles.color = "#6a6a6a"

    def append(self, fragment: str) -> None:
        """Append a streamed fragment."""
        self._text += fragment
        self.update(self._display_text())


class ChatMessages(ScrollableContainer):
    """Message list."""

    def add(self, role: str, content: str, has_image: bool = False) -> ChatMessage:
        widget = ChatMessage(role, content, has_image=has_image)
        self.mount(widget)
        self.scroll_end(animate=False)
        return widget

    def show(self, history: list[Message]) -> None:
        """Replace the displayed messages with ``history``."""
        self.remove_children()
        for msg in history:
            self.add(msg.role, msg.content, has_image=msg.has_image)


class ContextChatApp(App):
    """contextchat TUI."""

    CSS = """
    Screen {
        background: #212121;
    }

    #messages {
        background: #212121;
        padding: 1 1 0 1;
        height: 1fr;
    }

    ChatMessage {
        height: auto;
        margin-bottom: 1;
        background: #212121;
        color: #e0e0e0;
    }

    #input-area {
        dock: bottom;
        height: 5;
        background: #212121;
        border-top: solid #4b4c5c;
        padding: 0 1;
    }

    #prompt {
        background: #212121;
        color: #e0e0e0;
        border: none;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("ctrl+l", "clear", "Clear"),
    ]

    def __init__(self, manager: ConversationManager, model: str = ""):
        super().__init__()
        self.manager = manager
        self.model = model
        self._pending_image: str | None = None

    def compose(self) -> ComposeResult:
        yield ChatMessages(id="messages")
        with Container(id="input-area"):
            yield StatusBar(id="status")
            yield Input(placeholder="Message, or /help", id="prompt")

    def on_mount(self) -> None:
        self._render_history()
        self.query_one("#prompt", Input).focus()

    def _render_history(self) -> None:
        msgs = self.query_one("#messages", ChatMessages)
        msgs.show(self.manager.history)
        if not self.manager.history:
            msgs.add(
                "system",
                f"{LOGO} contextchat v{__version__}  {self.model or ''}\n/help for commands",
            )
        self._refresh_status()

    def _refresh_status(self) -> None:
        self.query_one("#status", StatusBar).update_status(
            status=self.manager.status(),
            image_attached=self._pending_image is not None,
            busy=self.manager.busy,
        )

    def _notice(self, text: str) -> None:
        self.query_one("#messages", ChatMessages).add("system", text)

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        text = event.value.strip()
        event.input.value = ""
        if not text and self._pending_image is None:
            return

        if text.startswith("/"):
            self._cmd(text)
            return

        if self.manager.busy:
            self._notice("Wait for the previous reply to finish")
            return

        image, self._pending_image = self._pending_image, None
        self.run_worker(self._chat(text, image), group="chat")

    async def _chat(self, text: str, image: str | None) -> None:
        """Send one turn and stream the reply into the message list."""
        msgs = self.query_one("#messages", ChatMessages)
        user_widget = msgs.add("user", text, has_image=image is not None)
        reply_widget: ChatMessage | None = None

        def on_fragment(fragment: str) -> None:
            nonlocal reply_widget
            if reply_widget is None:
                reply_widget = msgs.add("assistant", "")
            reply_widget.append(fragment)
            msgs.scroll_end(animate=False)

        self.query_one("#status", StatusBar).update_status(busy=True)
        try:
            await self.manager.send(text, image=image, on_fragment=on_fragment)
        except TransportError as e:
            self._render_history()
            self._notice(e.user_message)
            return
        except (ChatInputError, ContextError) as e:
            user_widget.remove()
            if reply_widget is not None:
                reply_widget.remove()
            self._notice(e.message)
            self._refresh_status()
            return

        self._render_history()

    def _cmd(self, text: str) -> None:
        parts = text[1:].split(maxsplit=1)
        cmd = parts[0] if parts else ""
        arg = parts[1] if len(parts) > 1 else ""

        if cmd == "help":
            self._notice(HELP_TEXT)
        elif cmd in ("quit", "q"):
            self.exit()
        elif cmd == "status":
            status = self.manager.status()
            self._notice(
                f"Context: {status.used_tokens:,}/{status.limit_tokens:,} tokens "
                f"({status.usage_percent * 100:.0f}%, {status.status}), "
                f"{status.message_count} messages"
            )
        elif cmd == "clear":
            self._clear(arg)
        elif cmd == "image":
            self._attach(arg)
        else:
            self._notice(f"Unknown: /{cmd}")

    def _clear(self, arg: str) -> None:
        if self.manager.busy:
            self._notice("Wait for the reply to finish before clearing")
            return
        try:
            percent = float(arg) if arg else FULL_CLEAR
            removed = self.manager.clear(percent)
        except ValueError:
            self._notice(f"Invalid clear percentage: {arg!r}")
            return
        except ContextChatError as e:
            self._notice(e.message)
            return
        self._render_history()
        self._notice(f"Removed {removed} messages")

    def _attach(self, path: str) -> None:
        if not path:
            self._notice("Usage: /image <path>")
            return
        try:
            self._pending_image = encode_image(path)
        except ImageProcessingError as e:
            self._notice(str(e))
            return
        self._notice(f"Image attached: {path}")
        self._refresh_status()

    def action_clear(self) -> None:
        self._clear("")


def run_tui(manager: ConversationManager, model: str = "") -> None:
    ContextChatApp(manager, model=model).run()
