"""Interactive terminal view of a pipeline."""

from __future__ import annotations

import os
import select
import sys
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import timedelta

from ..pipeline.model import Pipeline
from .dashboard import Dashboard

try:
    import termios
    import tty
except ImportError:  # non-POSIX terminals
    termios = None  # type: ignore[assignment]
    tty = None  # type: ignore[assignment]

KeyReader = Callable[[float | None], "str | None"]

_KEY_NAMES = {
    "\x1b[A": "up",
    "\x1bOA": "up",
    "\x1b[B": "down",
    "\x1bOB": "down",
    "\x03": "ctrl+c",
}

_CLEAR = "\x1b[H\x1b[2J"


def _trim_fraction(value: int, unit: int) -> str:
    whole, frac = divmod(value, unit)
    if not frac:
        return str(whole)
    digits = len(str(unit)) - 1
    return f"{whole}.{frac:0{digits}d}".rstrip("0")


def _format_duration(seconds: float) -> str:
    ns = round(seconds * 1_000_000_000)
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    if ns < 1_000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return f"{sign}{_trim_fraction(ns, 1_000)}µs"
    if ns < 1_000_000_000:
        return f"{sign}{_trim_fraction(ns, 1_000_000)}ms"
    hours, rest = divmod(ns, 3_600_000_000_000)
    minutes, rest = divmod(rest, 60_000_000_000)
    text = f"{_trim_fraction(rest, 1_000_000_000)}s"
    if hours:
        return f"{sign}{hours}h{minutes}m{text}"
    if minutes:
        return f"{sign}{minutes}m{text}"
    return sign + text


@contextmanager
def _terminal_key_reader() -> Iterator[KeyReader]:
    stream = sys.stdin
    if termios is None or not stream.isatty():

        def read_line(timeout: float | None) -> str | None:
            line = stream.readline()
            if not line:
                raise EOFError
            return line.strip()

        yield read_line
        return

    fd = stream.fileno()
    saved = termios.tcgetattr(fd)
    tty.setcbreak(fd)

    def read_key(timeout: float | None) -> str | None:
        ready, _, _ = select.select([fd], [], [], timeout)
        if not ready:
            return None
        data = os.read(fd, 16).decode(errors="replace")
        if not data:
            raise EOFError
        return _KEY_NAMES.get(data, data)

    try:
        yield read_key
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


class App:
    """Root TUI state: the dashboard plus live-refresh settings."""

    def __init__(
        self, live: bool = False, refresh: float | timedelta = 5.0, pipe: Pipeline | None = None
    ) -> None:
        self.live = live
        self.refresh = refresh.total_seconds() if isinstance(refresh, timedelta) else float(refresh)
        self.dashboard = Dashboard(pipe)
        self.ticks = 0

    def handle_key(self, key: str) -> bool:
        """Apply one key press; return False when the app should quit."""
        if key in ("q", "ctrl+c"):
            return False
        if key == "up":
            self.dashboard.move_up()
        elif key == "down":
            self.dashboard.move_down()
        return True

    def tick(self) -> bool:
        """Handle a refresh tick; return whether another tick is due."""
        if not self.live:
            return False
        self.ticks += 1
        return True

    def view(self) -> str:
        """Render the whole screen."""
        header = "agent-cli TUI"
        if self.live:
            header = f"{header} (live every {_format_duration(self.refresh)})"
        return f"{header}\n\n{self.dashboard.view()}\n\n(q to quit, r to refresh)"

    def _draw(self) -> None:
        out = sys.stdout
        prefix = _CLEAR if out.isatty() else ""
        out.write(prefix + self.view() + "\n")
        out.flush()

    def _loop(self, read_key: KeyReader) -> None:
        next_tick = time.monotonic() + self.refresh if self.live else None
        while True:
            self._draw()
            timeout = None if next_tick is None else max(0.0, next_tick - time.monotonic())
            try:
                key = read_key(timeout)
            except (EOFError, KeyboardInterrupt):
                return
            if key is None:
                if next_tick is not None and time.monotonic() >= next_tick:
                    next_tick = time.monotonic() + self.refresh if self.tick() else None
                continue
            if not self.handle_key(key):
                return

    def run(self, read_key: KeyReader | None = None) -> None:
        """Draw and process keys until quit; read_key(timeout) returns None on timeout."""
        if read_key is not None:
            self._loop(read_key)
            return
        with _terminal_key_reader() as reader:
            self._loop(reader)