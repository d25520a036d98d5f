"""CLI output helpers."""

import sys
from typing import Any

from pydantic import TypeAdapter

# ANSI color codes
GREEN = "\033[32m"
RED = "\033[31m"
RESET = "\033[0m"
CHECK = "\u2713"  # ✓
CROSS = "\u2717"  # ✗

_ANY = TypeAdapter(Any)


def _supports_color(stream: Any) -> bool:
    return hasattr(stream, "isatty") and stream.isatty()


def _colorize(text: str, color: str, stream: Any) -> str:
    if _supports_color(stream):
        return f"{color}{text}{RESET}"
    return text


def success(message: str) -> None:
    """Print success message with green checkmark to stderr."""
    print(f"{_colorize(CHECK, GREEN, sys.stderr)} {message}", file=sys.stderr)


def error(message: str) -> None:
    """Print error message with red cross to stderr."""
    print(f"{_colorize(CROSS, RED, sys.stderr)} {message}", file=sys.stderr)


def to_json(value: Any) -> str:
    """Serialise models, dataclasses, dates and durations as indented JSON."""
    return _ANY.dump_json(value, indent=2).decode()


def emit(value: Any) -> None:
    """Print a command result as JSON on stdout."""
    print(to_json(value))
