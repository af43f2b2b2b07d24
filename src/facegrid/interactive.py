"""Interactive prompts that gate costly steps.

Both prompts resolve to a default without asking when stdin is not a
terminal, so piped and CI runs never block.

The confirm prompt is a small state machine (:class:`ConfirmSelector`)
driven by keys pulled one chunk at a time from a raw-mode terminal.
"""

from __future__ import annotations

import contextlib
import math
import os
import sys
from collections.abc import Callable, Iterator
from enum import Enum
from typing import TextIO

from facegrid.logging import get_logger

logger = get_logger("interactive")

KEY_CTRL_C = "\x03"
KEY_ENTER = ("\r", "\n")
KEYS_LEFT = ("\x1b[D", "\x1b[A")  # left, up
KEYS_RIGHT = ("\x1b[C", "\x1b[B")  # right, down


class SelectorState(str, Enum):
    """Which of the two options is highlighted."""

    LEFT_SELECTED = "left"
    RIGHT_SELECTED = "right"


class KeyOutcome(str, Enum):
    """Result of feeding one key to the selector."""

    MOVED = "moved"
    COMMIT = "commit"
    IGNORED = "ignored"


_STATES = (SelectorState.LEFT_SELECTED, SelectorState.RIGHT_SELECTED)


class ConfirmSelector:
    """Horizontal ``Yes``/``No`` selector.

    Left/up and right/down move the highlight one step with wraparound,
    Enter commits, Ctrl-C raises :class:`KeyboardInterrupt`.
    """

    OPTIONS = ("Yes", "No")

    def __init__(self) -> None:
        self.state = SelectorState.LEFT_SELECTED

    @property
    def selected_index(self) -> int:
        return _STATES.index(self.state)

    @property
    def accepted(self) -> bool:
        """True when ``Yes`` is highlighted."""
        return self.state is SelectorState.LEFT_SELECTED

    def _shift(self, step: int) -> None:
        self.state = _STATES[(self.selected_index + step) % len(_STATES)]

    def handle_key(self, key: str) -> KeyOutcome:
        """Apply one key press and report what happened.

        Raises:
            KeyboardInterrupt: On Ctrl-C.
        """
        if key == KEY_CTRL_C:
            raise KeyboardInterrupt
        if key in KEYS_LEFT:
            self._shift(-1)
            return KeyOutcome.MOVED
        if key in KEYS_RIGHT:
            self._shift(1)
            return KeyOutcome.MOVED
        if key in KEY_ENTER:
            return KeyOutcome.COMMIT
        return KeyOutcome.IGNORED

    def render(self, message: str) -> str:
        """Return the full prompt line, highlighted option in brackets."""
        display = "  ".join(
            f"[{option}]" if index == self.selected_index else f" {option} "
            for index, option in enumerate(self.OPTIONS)
        )
        return f"\r{message} {display}"


def is_interactive(stream: TextIO) -> bool:
    """True when *stream* is attached to a terminal."""
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


@contextlib.contextmanager
def _raw_mode(fd: int) -> Iterator[None]:
    import termios
    import tty

    original = termios.tcgetattr(fd)
    tty.setraw(fd)
    try:
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, original)


def _read_raw_key(fd: int) -> str:
    # An arrow key arrives as one three-byte chunk.
    chunk = os.read(fd, 8)
    if not chunk:
        raise EOFError("stdin closed while waiting for a key")
    return chunk.decode("utf-8", errors="ignore")


def _run_selector(
    selector: ConfirmSelector,
    message: str,
    stdout: TextIO,
    read_key: Callable[[], str],
) -> bool:
    stdout.write(selector.render(message))
    stdout.flush()
    while True:
        outcome = selector.handle_key(read_key())
        if outcome is KeyOutcome.COMMIT:
            return selector.accepted
        if outcome is KeyOutcome.MOVED:
            stdout.write(selector.render(message))
            stdout.flush()


def confirm(
    message: str,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    read_key: Callable[[], str] | None = None,
) -> bool:
    """Ask a yes/no question with an arrow-key selector.

    Args:
        message: Question shown before the options.
        stdin: Input stream (default ``sys.stdin``).
        stdout: Output stream (default ``sys.stdout``).
        read_key: Returns the next key press.  Defaults to raw reads from
            *stdin*'s file descriptor.

    Returns:
        True for ``Yes``; also True without asking when *stdin* is not a
        terminal.

    Raises:
        KeyboardInterrupt: If the user presses Ctrl-C.
    """
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout

    if not is_interactive(stdin):
        logger.debug("No terminal attached, auto-confirming: %s", message)
        return True

    selector = ConfirmSelector()
    if read_key is None:
        fd = stdin.fileno()
        with _raw_mode(fd):
            accepted = _run_selector(selector, message, stdout, lambda: _read_raw_key(fd))
    else:
        accepted = _run_selector(selector, message, stdout, read_key)

    stdout.write("\n")
    stdout.flush()
    logger.debug("%s -> %s", message, "yes" if accepted else "no")
    return accepted


def parse_number(text: str) -> int | float | None:
    """Parse user input as a positive finite number.

    Returns:
        An ``int`` for integral input, a ``float`` otherwise, or ``None``
        when the text is empty, not numeric, non-finite or not positive.
    """
    text = text.strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return int(value) if value.is_integer() else value


def prompt_number(
    message: str,
    default: int | float,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    on_invalid: Callable[[str], None] | None = None,
) -> int | float:
    """Read one positive number from the terminal.

    Args:
        message: Prompt text, written without a trailing newline.
        default: Value used when not interactive or input is invalid.
        stdin: Input stream (default ``sys.stdin``).
        stdout: Output stream (default ``sys.stdout``).
        on_invalid: Receives the fallback notice; defaults to writing it
            to *stdout*.

    Returns:
        The parsed number, or *default*.
    """
    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout

    if not is_interactive(stdin):
        return default

    stdout.write(message)
    stdout.flush()
    answer = stdin.readline()

    value = parse_number(answer)
    if value is None:
        notice = f"Invalid value. Using default: {default}"
        if on_invalid is not None:
            on_invalid(notice)
        else:
            stdout.write(f"{notice}\n")
            stdout.flush()
        return default
    return value
