"""
Command-line interface for contextchat.

Entry point for the contextchat command.

Usage:
    contextchat                          # Launch the chat TUI
    contextchat --ask "..."              # One-shot streamed answer
    contextchat --ask "..." --image x.png
    contextchat --status                 # Context usage
    contextchat --history                # Stored conversation
    contextchat --clear 50               # Forget the oldest 50% of messages
    contextchat --init                   # Initialize config
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .compat import get_config_dir
from .config import (
    build_budget_config,
    build_chat_config,
    build_estimator_config,
    build_threshold_config,
    get_chat_config,
    get_context_config,
    get_logging_config,
    get_storage_config,
    get_transport_config,
    init_config,
    load_config_or_defaults,
)
from .context import ContextMonitor, ContextSelector, TokenCounter
from .exceptions import ContextChatError, TransportError
from .images import encode_image
from .logging_config import setup_logging
from .session import ConversationManager, MemoryHistoryStore, SQLiteHistoryStore
from .session.store import HistoryStore
from .transport import BaseTransport, OpenAITransport
from .ui import ConsoleUI

__all__ = ["main", "create_parser", "build_manager"]

logger = logging.getLogger(__name__)


def parse_percent(value: str) -> float:
    """argparse type for --clear; range is checked by the eviction policy."""
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for contextchat CLI."""
    parser = argparse.ArgumentParser(
        prog="contextchat",
        description="contextchat - terminal chat with a token-budgeted context window",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
    contextchat                         Launch the chat TUI
    contextchat --ask "What is RAG?"    Stream one answer to stdout
    contextchat --clear 50              Forget the oldest half of the history

Config: {get_config_dir()}
""",
    )

    # Setup commands
    parser.add_argument(
        "--init",
        action="store_true",
        help="Initialize configuration in ~/.config/contextchat/",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        type=Path,
        help="Use a specific config.toml",
    )

    # Chat
    parser.add_argument(
        "--ask",
        metavar="PROMPT",
        help="Send one message and stream the reply to stdout",
    )
    parser.add_argument(
        "--image",
        metavar="PATH",
        help="Attach an image to --ask",
    )

    # History management
    parser.add_argument(
        "--status",
        action="store_true",
        help="Show context usage of the stored conversation",
    )
    parser.add_argument(
        "--history",
        action="store_true",
        help="Print the stored conversation",
    )
    parser.add_argument(
        "--clear",
        metavar="PERCENT",
        type=parse_percent,
        help="Forget the oldest PERCENT of messages (100 clears everything)",
    )

    # Options
    parser.add_argument(
        "--no-persist",
        action="store_true",
        help="Keep history in memory only",
    )
    parser.add_argument(
        "--log-level",
        metavar="LEVEL",
        help="Override logging.level (DEBUG, INFO, WARNING, ...)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output --status and --history as JSON",
    )

    return parser


def build_store(config: dict[str, Any], persist: bool = True) -> HistoryStore:
    """Create the history store from the [storage] section."""
    storage_config = get_storage_config(config)
    if not persist or not storage_config["enabled"]:
        return MemoryHistoryStore()
    return SQLiteHistoryStore(storage_config["db_path"])


def build_manager(
    config: dict[str, Any],
    transport: BaseTransport | None = None,
    store: HistoryStore | None = None,
) -> ConversationManager:
    """
    Create a ConversationManager from a config dictionary.

    Args:
        config: Configuration dict (from config.toml)
        transport: Chat transport, None for history-only commands
        store: History store (SQLite per [storage] if omitted)

    Returns:
        Manager with the stored history loaded

    Raises:
        ContextBudgetError: If the system prompt does not fit the budget
    """
    context_config = get_context_config(config)
    selector = ContextSelector(
        counter=TokenCounter(build_estimator_config(context_config)),
        budget=build_budget_config(context_config),
    )
    manager = ConversationManager(
        transport=transport,
        store=store if store is not None else build_store(config),
        config=build_chat_config(get_chat_config(config)),
        selector=selector,
        monitor=ContextMonitor(selector, build_threshold_config(context_config)),
        conversation_id=get_storage_config(config)["conversation_id"],
    )
    manager.load()
    return manager


def build_transport(config: dict[str, Any]) -> OpenAITransport:
    """Create the chat transport from the [transport] section."""
    chat_config = get_chat_config(config)
    return OpenAITransport.from_config(
        get_transport_config(config),
        timeout=float(chat_config["request_timeout"]),
    )


def cmd_init(args: argparse.Namespace) -> int:
    """Handle --init command."""
    try:
        init_config()
        return 0
    except (ContextChatError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_status(
    args: argparse.Namespace,
    manager: ConversationManager,
    ui: ConsoleUI,
) -> int:
    """Handle --status command."""
    status = manager.status()
    if args.json:
        print(json.dumps(status.to_dict(), indent=2))
    else:
        ui.status(status)
    return 0


def cmd_history(
    args: argparse.Namespace,
    manager: ConversationManager,
    ui: ConsoleUI,
) -> int:
    """Handle --history command."""
    history = manager.history

    if args.json:
        print(json.dumps([m.to_dict() for m in history], indent=2, ensure_ascii=False))
        return 0

    if not history:
        print("No stored messages.")
        return 0

    for message in history:
        ui.message(message)
    return 0


def cmd_clear(
    args: argparse.Namespace,
    manager: ConversationManager,
    ui: ConsoleUI,
) -> int:
    """Handle --clear command."""
    try:
        removed = manager.clear(args.clear)
    except ContextChatError as e:
        ui.error(str(e))
        return 1

    ui.success(f"Removed {removed} messages, {len(manager.history)} remain")
    return 0


def cmd_ask(
    args: argparse.Namespace,
    config: dict[str, Any],
    ui: ConsoleUI,
) -> int:
    """Handle --ask command."""
    try:
        image = encode_image(args.image) if args.image else None
        manager = build_manager(
            config,
            transport=build_transport(config),
            store=build_store(config, persist=not args.no_persist),
        )
    except ContextChatError as e:
        ui.error(str(e))
        return 1

    try:
        asyncio.run(manager.send(args.ask, image=image, on_fragment=ui.fragment))
    except TransportError as e:
        ui.end_reply()
        ui.error(e.user_message)
        logger.debug("Transport failure details: %s", e)
        return 1
    except ContextChatError as e:
        ui.error(str(e))
        return 1

    ui.end_reply()
    status = manager.status()
    if status.near_limit:
        ui.warning("Context is close to the limit. Consider clearing the history.")
    return 0


def cmd_tui(
    args: argparse.Namespace,
    config: dict[str, Any],
    ui: ConsoleUI,
) -> int:
    """Handle the default interactive mode."""
    from .tui import run_tui

    try:
        manager = build_manager(
            config,
            transport=build_transport(config),
            store=build_store(config, persist=not args.no_persist),
        )
    except ContextChatError as e:
        ui.error(str(e))
        return 1

    run_tui(manager, model=get_transport_config(config)["model"])
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for contextchat CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.image and args.ask is None:
        parser.error("--image requires --ask (use --ask \"\" to send the image alone)")

    # Handle --init before loading config
    if args.init:
        return cmd_init(args)

    ui = ConsoleUI(no_color=args.no_color)

    try:
        config = load_config_or_defaults(args.config)
    except ContextChatError as e:
        ui.error(str(e))
        return 1

    interactive = not (
        args.ask is not None or args.status or args.history or args.clear is not None
    )
    logging_config = get_logging_config(config)
    setup_logging(
        level=args.log_level or logging_config["level"],
        log_file=logging_config["file"],
        console=not interactive,
    )

    if args.ask is not None:
        return cmd_ask(args, config, ui)

    if args.status or args.history or args.clear is not None:
        try:
            manager = build_manager(
                config, store=build_store(config, persist=not args.no_persist)
            )
        except ContextChatError as e:
            ui.error(str(e))
            return 1

        if args.clear is not None:
            return cmd_clear(args, manager, ui)
        if args.history:
            return cmd_history(args, manager, ui)
        return cmd_status(args, manager, ui)

    # Default: TUI mode
    return cmd_tui(args, config, ui)


if __name__ == "__main__":
    sys.exit(main())
