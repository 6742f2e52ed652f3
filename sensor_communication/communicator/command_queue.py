"""
command_queue.py

FIFO of pending sensor commands with a single in-flight slot.
At most one command is on the wire at any time; the next one is dispatched only
after the reply to the current one has been routed.
"""

import logging
from collections import deque
from typing import Deque, List, Optional

from sensor_communication.models import SensorCommand, SendBytes, LogEntry, Effect


class CommandQueue:
    """
    Pending commands plus the in-flight slot.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._pending: Deque[SensorCommand] = deque()
        self._in_flight: Optional[SensorCommand] = None

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def in_flight(self) -> Optional[SensorCommand]:
        return self._in_flight

    @property
    def busy(self) -> bool:
        return self._in_flight is not None

    def pending(self) -> List[SensorCommand]:
        return list(self._pending)

    def enqueue(self, command: SensorCommand) -> None:
        """Appends a command to the tail."""
        self._pending.append(command)

    def enqueue_bounded(self, command: SensorCommand, limit: int) -> bool:
        """
        Appends a command only while fewer than `limit` commands are pending.
        Used by periodic producers so an unresponsive device cannot grow the queue.

        Returns:
            True if the command was queued.
        """
        if len(self._pending) >= limit:
            self.logger.debug(f"Queue full ({len(self._pending)}), dropping {command.text}")
            return False
        self._pending.append(command)
        return True

    def try_dispatch(self) -> List[Effect]:
        """
        Moves the head of the queue into the in-flight slot and returns the
        effects that transmit it. No-op while a command is in flight or the
        queue is empty.
        """
        if self._in_flight is not None or not self._pending:
            return []
        command = self._pending.popleft()
        self._in_flight = command
        self.logger.debug(f"Sending command: {command.text}")
        return [SendBytes(command.payload), LogEntry(f"CMD: {command.text}")]

    def release(self) -> Optional[SensorCommand]:
        """Empties the in-flight slot and returns what was in it."""
        command, self._in_flight = self._in_flight, None
        return command

    def clear_pending(self) -> None:
        self._pending.clear()

    def flush(self) -> None:
        """Drops all pending commands and the in-flight one."""
        self._pending.clear()
        self._in_flight = None
