"""
Platform and terminal helpers for contextchat.

Handles:
- Where config and history live (CONTEXTCHAT_CONFIG_DIR, XDG, AppData)
- Whether a given output stream can take ANSI colors and Unicode symbols
"""

import os
import sys
from pathlib import Path
from typing import TextIO

__all__ = [
    "CONFIG_DIR_ENV",
    "get_config_dir",
    "supports_color",
    "supports_unicode",
    "is_windows",
]

# Overrides the platform config directory, config.toml and history.db included
CONFIG_DIR_ENV = "CONTEXTCHAT_CONFIG_DIR"


def is_windows() -> bool:
    return sys.platform == "win32"


def get_config_dir() -> Path:
    """
    Directory holding config.toml and the history database.

    Resolution order:
    - $CONTEXTCHAT_CONFIG_DIR
    - Windows: %APPDATA%/contextchat
    - elsewhere: $XDG_CONFIG_HOME/contextchat, or ~/.config/contextchat
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()

    if is_windows():
        base = Path(os.environ.get("APPDATA") or Path.home() / "AppData" / "Roaming")
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    return base / "contextchat"


def supports_color(stream: TextIO | None = None) -> bool:
    """
    Check whether ANSI colors should be written to ``stream``.

    NO_COLOR wins over FORCE_COLOR; otherwise the stream must be a TTY
    on a terminal other than "dumb".

    Args:
        stream: Output stream to check (defaults to stdout)
    """
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True

    stream = stream or sys.stdout
    isatty = getattr(stream, "isatty", None)
    if isatty is None or not isatty():
        return False

    return is_windows() or os.environ.get("TERM", "") != "dumb"


def supports_unicode(stream: TextIO | None = None) -> bool:
    """Check whether ``stream`` can encode the status symbols."""
    stream = stream or sys.stdout
    encoding = (getattr(stream, "encoding", None) or "").lower().replace("-", "")
    if encoding == "utf8":
        return True

    lang = os.environ.get("LANG", "").lower().replace("-", "")
    # Windows Terminal always renders Unicode
    return "utf8" in lang or bool(os.environ.get("WT_SESSION"))
