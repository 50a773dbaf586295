"""
status.py – Fire-and-forget status delivery from the background migration
back to whoever drives it (console, GUI, tests).
"""

from __future__ import annotations

import logging
import queue
from typing import Protocol

logger = logging.getLogger("tc-migrator")

COMPLETE_MARKER = "PROCESSING COMPLETE."


class StatusSink(Protocol):
    def post_status(self, message: str) -> None:
        ...


class QueueStatusSink:
    """Buffers messages for the caller's thread; ``post_status`` never blocks."""

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[str] = queue.SimpleQueue()

    def post_status(self, message: str) -> None:
        self._queue.put_nowait(message)

    def drain(self) -> list[str]:
        """Return every message posted since the last drain, oldest first."""
        messages: list[str] = []
        while True:
            try:
                messages.append(self._queue.get_nowait())
            except queue.Empty:
                return messages


class LoggingStatusSink:
    """Sends status lines to the package logger."""

    def post_status(self, message: str) -> None:
        logger.info(message)


def is_complete(message: str) -> bool:
    return message.endswith(COMPLETE_MARKER)
