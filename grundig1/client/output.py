#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
CLI output styling with semantic tokens.

Exposes only semantic methods (key, value, level, etc.), never raw
colors. Respects the NO_COLOR env var and TTY detection.
"""

import os
import re
import sys
from enum import Enum, auto

# ─────────────────────────────────────────────────────────────────────────────
# Tokens (internal)
# ─────────────────────────────────────────────────────────────────────────────


class _Token(Enum):
    """Semantic tokens, mapped to colors by the theme."""

    KEY = auto()  # Parameter names, labels
    VALUE = auto()  # Parameter values
    URL = auto()  # Device address
    HEADER = auto()  # Section titles (bold only)
    BAR = auto()  # Level meters

    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    MUTED = auto()  # Metadata, less important
    ACTIVE = auto()  # Current selection


_THEME: dict[_Token, tuple[int, int, int] | None] = {
    _Token.KEY: (255, 176, 59),  # Amber
    _Token.VALUE: (236, 236, 236),  # Off-white
    _Token.URL: (102, 204, 255),  # Sky
    _Token.HEADER: None,
    _Token.BAR: (255, 176, 59),
    _Token.SUCCESS: (80, 250, 123),
    _Token.ERROR: (255, 99, 99),
    _Token.WARNING: (241, 250, 140),
    _Token.MUTED: (128, 128, 128),
    _Token.ACTIVE: (80, 250, 123),
}


CHECKMARK = "\u2713"  # ✓
CROSS = "\u2717"  # ✗
SEPARATOR = "\u2500"  # ─
PIPE = "\u2502"  # │
BLOCK = "\u2588"  # █
SHADE = "\u2591"  # ░

ANSI_PATTERN = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text."""
    return ANSI_PATTERN.sub("", str(text))


class Output:
    """
    CLI output with semantic styling.
    """

    def __init__(self, force_color: bool | None = None):
        self._color_enabled = self._detect_color(force_color)

    @property
    def color_enabled(self) -> bool:
        return self._color_enabled

    def _detect_color(self, force: bool | None) -> bool:
        if force is not None:
            return force
        if os.environ.get("NO_COLOR"):
            return False
        if not hasattr(sys.stdout, "isatty") or not sys.stdout.isatty():
            return False
        return os.environ.get("TERM") != "dumb"

    def _rgb(self, r: int, g: int, b: int, text: str) -> str:
        if not self._color_enabled:
            return text
        return f"\x1b[38;2;{r};{g};{b}m{text}\x1b[0m"

    def _bold(self, text: str) -> str:
        if not self._color_enabled:
            return text
        return f"\x1b[1m{text}\x1b[0m"

    def _apply(self, token: _Token, text: str, bold: bool = False) -> str:
        rgb = _THEME.get(token)
        result = str(text)
        if rgb is not None:
            result = self._rgb(*rgb, result)
        if bold:
            result = self._bold(result)
        return result

    # ─────────────────────────────────────────────────────────────────────────
    # Content
    # ─────────────────────────────────────────────────────────────────────────

    def key(self, text: str) -> str:
        return self._apply(_Token.KEY, text)

    def value(self, text) -> str:
        return self._apply(_Token.VALUE, text)

    def url(self, text: str) -> str:
        return self._apply(_Token.URL, text)

    def header(self, text: str) -> str:
        return self._apply(_Token.HEADER, text, bold=True)

    def muted(self, text: str) -> str:
        return self._apply(_Token.MUTED, text)

    def active(self, text: str) -> str:
        return self._apply(_Token.ACTIVE, text)

    # ─────────────────────────────────────────────────────────────────────────
    # States
    # ─────────────────────────────────────────────────────────────────────────

    def success(self, message: str) -> str:
        """Format a success message with checkmark."""
        return f"{self._apply(_Token.SUCCESS, CHECKMARK)} {message}"

    def error(self, message: str) -> str:
        """Format an error message with cross."""
        return f"{self._apply(_Token.ERROR, CROSS)} {message}"

    def warning(self, message: str) -> str:
        return f"{self._apply(_Token.WARNING, '!')} {message}"

    # ─────────────────────────────────────────────────────────────────────────
    # Compound formatters
    # ─────────────────────────────────────────────────────────────────────────

    def level_bar(self, value: float, min_: float, max_: float, width: int = 20) -> str:
        """
        Format a horizontal meter for a value within a range
        """
        span = max_ - min_
        fraction = 0.0 if span <= 0 else (value - min_) / span
        filled = round(max(0.0, min(fraction, 1.0)) * width)
        return self._apply(_Token.BAR, BLOCK * filled) + self.muted(SHADE * (width - filled))

    def kv(self, k: str, v) -> str:
        """Format a key-value pair inline."""
        return f"{self.key(k)} {self.value(v)}"

    def columns(self, items: list[tuple[str, str]], key_width: int = 0) -> list[str]:
        """Format key-value pairs as aligned columns."""
        if not key_width:
            key_width = max(len(k) for k, _ in items) if items else 0

        return [f"  {self._bold(k.rjust(key_width))} {PIPE} {v}" for k, v in items]

    def separator(self, width: int = 40) -> str:
        return self.muted(SEPARATOR * width)
