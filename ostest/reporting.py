"""Indented, optionally coloured progress messages for the test runner.

Messages are written to a text stream. Every line starts at the current
indentation, which is managed as a stack: ``indent`` moves it right by a
fixed step, ``tab`` moves it to the column just past the text already
printed on the current line, and ``unindent`` restores the previous one.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from typing import Optional, TextIO

INDENT_STEP = 8
"""How many columns ``indent`` moves the indentation to the right."""

INDENT_STACK_MAX = 128
"""The largest number of indentations that may be saved at once."""


class Color(str, Enum):
    """ANSI escape sequences used to colour terminal output."""

    BLACK = "\033[30;7m"
    RED = "\033[31;1m"
    GREEN = "\033[32;1m"
    YELLOW = "\033[33;1m"
    BLUE = "\033[34;1m"
    MAGENTA = "\033[35;1m"
    CYAN = "\033[36;1m"
    WHITE = "\033[37;1m"
    NORMAL = "\033[0m"


class Reporter:
    """Writes indented messages to a stream, standard error by default."""

    def __init__(
        self, stream: Optional[TextIO] = None, use_color: bool = True
    ) -> None:
        self._stream = stream
        self.use_color = use_color
        self._saved: list[int] = []
        self._indent = 0
        self._column = 0
        self._emit_indent = True

    @property
    def stream(self) -> TextIO:
        """The stream messages are written to."""
        return self._stream if self._stream is not None else sys.stderr

    @property
    def indentation(self) -> int:
        """The column at which new lines currently start."""
        return self._indent

    @property
    def depth(self) -> int:
        """Number of saved indentations."""
        return len(self._saved)

    def msg(self, text: str) -> None:
        """Write ``text``, starting every line at the current indentation."""
        out: list[str] = []
        for char in text:
            if self._emit_indent:
                out.append(" " * self._indent)
                self._emit_indent = False
            if char == "\n":
                self._emit_indent = True
                self._column = 0
            else:
                self._column += 1
            out.append(char)
        stream = self.stream
        stream.write("".join(out))
        stream.flush()

    def _push(self, amount: int) -> None:
        if len(self._saved) >= INDENT_STACK_MAX:
            raise RuntimeError("too many nested indentations")
        self._saved.append(self._indent)
        self._indent += amount

    def indent(self) -> None:
        """Move the indentation right by ``INDENT_STEP`` columns."""
        self._push(INDENT_STEP)

    def tab(self) -> None:
        """Move the indentation to just past the text on the current line."""
        self._push(self._column)

    def unindent(self) -> None:
        """Restore the indentation saved by the last ``indent`` or ``tab``."""
        if not self._saved:
            raise RuntimeError("no indentation to restore")
        self._indent = self._saved.pop()

    @contextmanager
    def indented(self) -> Iterator[Reporter]:
        """Indent for the duration of a ``with`` block."""
        self.indent()
        try:
            yield self
        finally:
            self.unindent()

    def color(self, text: str, color: Color) -> str:
        """Wrap ``text`` in ``color`` if colour is on and the stream is a tty."""
        if not self.use_color or not self._is_tty():
            return text
        return f"{Color(color).value}{text}{Color.NORMAL.value}"

    def _is_tty(self) -> bool:
        isatty = getattr(self.stream, "isatty", None)
        if isatty is None:
            return False
        try:
            return bool(isatty())
        except (ValueError, OSError):
            return False