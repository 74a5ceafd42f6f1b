"""Logging sinks a scan reports its progress to."""

import logging
import sys
from typing import Protocol


class ScanLogger(Protocol):
    """Anything with ``info`` and ``error`` taking a single string."""

    def info(self, text: str) -> None: ...

    def error(self, text: str) -> None: ...


class ConsoleLogger:
    """Default sink: info to stdout, errors to stderr."""

    def info(self, text: str) -> None:
        print(text)

    def error(self, text: str) -> None:
        print(text, file=sys.stderr)


class LoggingSink:
    """Route scan messages to a stdlib logger."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def info(self, text: str) -> None:
        self.logger.info(text)

    def error(self, text: str) -> None:
        self.logger.error(text)


class NullLogger:
    def info(self, text: str) -> None:
        pass

    def error(self, text: str) -> None:
        pass
