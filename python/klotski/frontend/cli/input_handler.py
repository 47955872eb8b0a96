"""Single-keypress reader for the replay viewer.

Arrow keys and WASD step through the solution; a few letters drive the
player without requiring Enter. Works on macOS / Linux (tty+termios) and
Windows (msvcrt).
"""

from __future__ import annotations

import os
import sys
import time

_KEY_MAP: dict[str, str] = {
    "d": "forward",
    "l": "forward",
    "a": "back",
    "h": "back",
    " ": "play",
    "p": "play",
    "r": "rewind",
    "e": "end",
    "g": "end",
    "q": "quit",
    "\x03": "quit",  # Ctrl-C
    "\r": "play",
    "\n": "play",
    "?": "help",
}

# Third byte of ESC [ A/B/C/D
_ARROW_MAP: dict[str, str] = {
    "A": "forward",
    "B": "back",
    "C": "forward",
    "D": "back",
}


def _resolve(ch: str) -> str:
    return _KEY_MAP.get(ch.lower(), "")


# -- Windows --------------------------------------------------------------------


def _read_windows(timeout: float | None) -> str | None:
    import msvcrt  # type: ignore[import-not-found]

    if timeout is not None:
        end = time.monotonic() + timeout
        while not msvcrt.kbhit():
            if time.monotonic() >= end:
                return None
            time.sleep(0.02)
    ch = msvcrt.getwch()
    if ch in ("\x00", "\xe0"):  # arrow prefix
        return {"M": "forward", "K": "back", "H": "forward", "P": "back"}.get(
            msvcrt.getwch(), ""
        )
    return _resolve(ch)


# -- Unix -----------------------------------------------------------------------


def _read_unix(timeout: float | None) -> str | None:
    import select
    import termios
    import tty

    fd = sys.stdin.fileno()
    old = termios.tcgetattr(fd)

    def pending(wait: float | None) -> bool:
        ready, _, _ = select.select([fd], [], [], wait)
        return bool(ready)

    def read1() -> str:
        # os.read is unbuffered, so select() still sees the rest of an
        # escape sequence.
        return os.read(fd, 1).decode("utf-8", errors="ignore")

    try:
        tty.setraw(fd)
        if timeout is not None and not pending(timeout):
            return None
        ch = read1()
        if ch != "\x1b":
            return _resolve(ch)
        if not pending(0.1):
            return "quit"  # bare Escape
        if read1() != "[":
            return "quit"
        if not pending(0.1):
            return ""
        return _ARROW_MAP.get(read1(), "")
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old)


_read = _read_windows if os.name == "nt" else _read_unix


# -- public API -----------------------------------------------------------------


def get_key() -> str:
    """Block for one keypress and return a normalised action.

    Possible return values:
        "forward", "back"  — step through the solution
        "play"             — start / pause auto-play
        "rewind", "end"    — jump to the first / last step
        "quit"             — q / Ctrl-C / Escape
        "help"             — ?
        ""                 — unrecognised key
    """
    key = _read(None)
    return key or ""


def get_key_timeout(timeout: float) -> str | None:
    """Like :func:`get_key`, but return ``None`` after *timeout* seconds."""
    return _read(timeout)
