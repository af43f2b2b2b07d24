"""In-place terminal progress lines.

Each generation task owns one line.  Lines are addressed by the position
they had when registered, and updates move the cursor up from the current
bottom of output, rewrite that line and move back down.  The distance is
computed at update time, so lines registered later never shift an older
handle's target.

Output goes through a rich :class:`~rich.console.Console`, the same one the
CLI prints with.  When the console is not a terminal (piped or redirected
output) no cursor movement is emitted and every update becomes a new line.

All writes happen on the event loop thread, one after another; no lock is
needed.
"""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.control import Control


@dataclass(frozen=True)
class LineHandle:
    """A registered line: its 0-based position and its padded width."""

    index: int
    width: int


class ProgressRenderer:
    """Writes progress lines and rewrites them in place.

    Args:
        console: Destination console; a stdout console is created if
            omitted.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console if console is not None else Console()
        self._line_count = 0

    @property
    def console(self) -> Console:
        return self._console

    @property
    def line_count(self) -> int:
        """Number of lines written so far, including noted external ones."""
        return self._line_count

    def _write(self, text: str, end: str = "\n") -> None:
        self._console.print(
            text,
            markup=False,
            highlight=False,
            emoji=False,
            soft_wrap=True,
            end=end,
        )

    def register_line(self, text: str, *, width: int | None = None) -> LineHandle:
        """Write a new line and return a handle for later updates.

        Args:
            text: Initial line content.
            width: Width every version of this line is padded to.  Callers
                pass the longest text the line will ever show so shorter
                updates fully overwrite longer ones.
        """
        handle = LineHandle(index=self._line_count, width=max(width or 0, len(text)))
        self._line_count += 1
        self._write(text.ljust(handle.width))
        return handle

    def update_line(self, handle: LineHandle, text: str) -> None:
        """Rewrite the line identified by *handle* and return to the bottom."""
        if not self._console.is_terminal:
            self.log(text)
            return

        distance = self._line_count - handle.index
        with self._console:
            if distance > 0:
                self._console.control(Control.move(0, -distance))
            self._console.control(Control.move_to_column(0))
            self._write(text.ljust(handle.width), end="")
            if distance > 0:
                self._console.control(Control.move(0, distance))
            self._console.control(Control.move_to_column(0))

    def log(self, message: str) -> None:
        """Write a free-standing line below all progress lines."""
        self._line_count += message.count("\n") + 1
        self._write(message)

    def note_external_lines(self, count: int) -> None:
        """Account for *count* lines written to the terminal by someone else.

        Interactive prompts write straight to the terminal; without this the
        next update would land *count* rows too low.
        """
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        self._line_count += count


def task_line_width(*variants: str) -> int:
    """Width that fits every text variant of a task line."""
    return max((len(v) for v in variants), default=0)
