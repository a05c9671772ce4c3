"""Progress/status display used while talking to the remote API.

Two implementations share one contract: ``ConsoleProgressBar`` writes to the
terminal for interactive sessions, ``LoggerProgressBar`` forwards messages to
the structured logger for batch runs. Both are context managers and must be
closed on every exit path.
"""

from __future__ import annotations

import sys
from typing import Protocol, TextIO

from okta_setup.utils.logger import get_logger

logger = get_logger(__name__)


class ProgressBar(Protocol):
    def start(self, message: str | None = None) -> ProgressBar: ...

    def info(self, message: str | None) -> None: ...

    def close(self) -> None: ...

    def __enter__(self) -> ProgressBar: ...

    def __exit__(self, *exc_info: object) -> None: ...


class _BaseProgressBar:
    def start(self, message: str | None = None) -> _BaseProgressBar:
        if message:
            self.info(message)
        return self

    def info(self, message: str | None) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self) -> _BaseProgressBar:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class LoggerProgressBar(_BaseProgressBar):
    def info(self, message: str | None) -> None:
        if message is not None:
            logger.info(str(message), event="okta_setup.progress")


class ConsoleProgressBar(_BaseProgressBar):
    """Plain terminal output; an active task is marked until the bar closes."""

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream or sys.stderr
        self.active = False
        self.closed = False

    def start(self, message: str | None = None) -> ConsoleProgressBar:
        super().start(message)
        self.active = True
        return self

    def info(self, message: str | None) -> None:
        if message is None:
            return
        prefix = "  " if self.active else ""
        self.stream.write(f"{prefix}{message}\n")
        self.stream.flush()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.active = False
        self.stream.flush()


def create_progress_bar(interactive: bool, stream: TextIO | None = None) -> ProgressBar:
    if interactive:
        return ConsoleProgressBar(stream)
    return LoggerProgressBar()
