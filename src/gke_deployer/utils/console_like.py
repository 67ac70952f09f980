from __future__ import annotations

import sys
from typing import Protocol

from rich.console import ConsoleRenderable
from rich.text import Text


class ConsoleLike(Protocol):
    def print(self, msg: ConsoleRenderable | str | None = None) -> None: ...

    def info(self, msg: str) -> None: ...

    def warn(self, msg: str) -> None: ...

    def error(self, msg: str) -> None: ...

    def ok(self, msg: str) -> None: ...


class StdoutConsole:
    """Plain-text console fallback.

    Lets deployment components run without the CLI console. Rich markup is
    stripped so pipeline logs stay readable.
    """

    def _write(self, prefix: str, msg: ConsoleRenderable | str | None) -> None:
        text = Text.from_markup(msg).plain if isinstance(msg, str) else msg
        line = f"{prefix}{text}" if text is not None else prefix.rstrip()
        sys.stdout.write(f"{line}\n")

    def print(self, msg: ConsoleRenderable | str | None = None) -> None:
        self._write("", msg if msg is not None else "")

    def info(self, msg: str) -> None:
        self._write("", msg)

    def warn(self, msg: str) -> None:
        self._write("WARNING: ", msg)

    def error(self, msg: str) -> None:
        self._write("ERROR: ", msg)

    def ok(self, msg: str) -> None:
        self._write("", msg)


def coalesce_console(console: ConsoleLike | None) -> ConsoleLike:
    return console if console is not None else StdoutConsole()
