"""Loggers: a console logger, a fan-out logger and an in-memory log view."""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime
from typing import Callable, Iterable

MAX_LOG_MESSAGES = 100


class Logger(ABC):
    """Something that accepts debug, info and error messages."""

    @abstractmethod
    def debug(self, message: str) -> None:
        """Record a debug message."""

    @abstractmethod
    def info(self, message: str) -> None:
        """Record an informational message."""

    @abstractmethod
    def error(self, message: str) -> None:
        """Record an error message."""


class StdoutLogger(Logger):
    """Writes each message as a line on standard output."""

    def __init__(self, debug_mode: bool = True) -> None:
        self.debug_mode = debug_mode

    @staticmethod
    def _write(prefix: str, message: str) -> None:
        print(f"{prefix}{message}", file=sys.stdout, flush=True)

    def debug(self, message: str) -> None:
        if self.debug_mode:
            self._write("DEBUG: ", message)

    def info(self, message: str) -> None:
        self._write("INFO : ", message)

    def error(self, message: str) -> None:
        self._write("ERROR: ", message)


class MultiLogger(Logger):
    """Passes every message on to each of several loggers, in order."""

    def __init__(self, loggers: Iterable[Logger]) -> None:
        self._loggers = list(loggers)

    def debug(self, message: str) -> None:
        for logger in self._loggers:
            logger.debug(message)

    def info(self, message: str) -> None:
        for logger in self._loggers:
            logger.info(message)

    def error(self, message: str) -> None:
        for logger in self._loggers:
            logger.error(message)


class LogBuffer(Logger):
    """Keeps recent timestamped messages, newest first, for display.

    Debug messages are dropped unless the debug level is switched on.
    While paused, the displayed text stays as it was when paused.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or datetime.now
        self._messages: deque[str] = deque()
        self._content = ""
        self._frozen = ""
        self.playing = True
        self.debug_level = False

    @property
    def messages(self) -> tuple[str, ...]:
        """The stored lines, newest first."""
        return tuple(self._messages)

    @property
    def content(self) -> str:
        """All stored lines joined, each ending in a newline."""
        return self._content

    def debug(self, message: str) -> None:
        if self.debug_level:
            self._log("DEBUG", message)

    def info(self, message: str) -> None:
        self._log("INFO", message)

    def error(self, message: str) -> None:
        self._log("ERROR", message)

    def toggle_debug_level(self) -> bool:
        """Switch debug messages on or off; returns the new setting."""
        self.debug_level = not self.debug_level
        return self.debug_level

    def toggle_playing(self) -> bool:
        """Pause or resume the displayed text; returns whether it is live."""
        self.playing = not self.playing
        if not self.playing:
            self._frozen = self._content
        return self.playing

    def displayed_text(self) -> str:
        """The text currently shown: live while playing, frozen while paused."""
        return self._content if self.playing else self._frozen

    def _log(self, level: str, message: str) -> None:
        if len(self._messages) > MAX_LOG_MESSAGES:
            self._messages.pop()
        stamp = self._clock().strftime("%H:%M:%S")
        self._messages.appendleft(f"{stamp} {level} {message}")
        self._content = "".join(f"{line}\n" for line in self._messages)