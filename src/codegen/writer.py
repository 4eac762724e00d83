"""Indentation-aware text builder for generated source."""

from contextlib import contextmanager
from typing import List

INDENT = "    "


class Writer:
    """Collects lines of Python source."""

    def __init__(self):
        self._lines: List[str] = []
        self._level = 0

    def wln(self, text: str = "") -> None:
        """Write one line at the current indentation. Empty text writes a blank line."""
        if text:
            self._lines.append(INDENT * self._level + text)
        else:
            self._lines.append("")

    def newline(self) -> None:
        self._lines.append("")

    def indent(self) -> None:
        self._level += 1

    def dedent(self) -> None:
        if self._level == 0:
            raise ValueError("dedent below column 0")
        self._level -= 1

    @contextmanager
    def block(self, header: str):
        """Write ``header`` and indent everything written inside the ``with``."""
        self.wln(header)
        self.indent()
        try:
            yield self
        finally:
            self.dedent()

    def getvalue(self) -> str:
        # Collapse trailing blank lines to a single final newline
        lines = list(self._lines)
        while lines and not lines[-1]:
            lines.pop()
        return "\n".join(lines) + "\n"
