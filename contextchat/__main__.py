"""
Entry point for running contextchat as a module.

Usage:
    python -m contextchat [args...]
"""

import sys
from .cli import main

if __name__ == "__main__":
    sys.exit(main())
