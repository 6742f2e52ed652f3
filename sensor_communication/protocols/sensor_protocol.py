#!/usr/bin/env python3
"""
sensor_protocol.py

This module defines the abstract base class for line-oriented sensor protocols.
All sensor-specific protocol implementations must inherit from this class and
implement methods for:
  - Initializing command definitions.
  - Creating command payloads.
  - Interpreting reply lines (identity, numeric values).

It also provides the keyword matching shared by every ASCII protocol.

Usage Example:
    protocol = AnritsuProtocol()
    cmd = protocol.create_command(CommandTag.SET_FREQUENCY, 2.4)
    value = protocol.parse_decimal("-12.34")
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from sensor_communication.models import SensorCommand
from sensor_communication.param_types import CommandDefinition, CommandTag


class SensorProtocol(ABC):
    """
    Abstract base class for sensor protocols.
    Provides a standardized interface for creating commands and classifying replies.
    """

    terminator: bytes = b"\n"
    retry_reply: str = ""
    ok_reply: str = ""

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initializes the SensorProtocol.

        Args:
            logger (Optional[logging.Logger]): A logger instance for debugging.
        """
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self._command_defs: Dict[CommandTag, CommandDefinition] = {}
        self._initialize_commands()

    @abstractmethod
    def _initialize_commands(self) -> None:
        """
        Initializes command definitions specific to this protocol.
        Subclasses must populate the _command_defs dictionary.
        """
        pass

    @abstractmethod
    def create_command(self, tag: CommandTag, value: Optional[float] = None) -> SensorCommand:
        """
        Creates a SensorCommand carrying the exact bytes to transmit.

        Args:
            tag (CommandTag): The command kind.
            value (Optional[float]): Argument for commands that take one.

        Returns:
            SensorCommand: The command ready for transmission.
        """
        pass

    @abstractmethod
    def parse_identity(self, reply: str) -> Optional[Tuple[str, str]]:
        """
        Extracts (device id, firmware) from an identity reply.

        Returns:
            The pair, or None if the reply does not have the expected shape.
        """
        pass

    @abstractmethod
    def parse_decimal(self, reply: str) -> Optional[float]:
        """
        Parses a numeric reply.

        Returns:
            The value, or None if the reply is not a number.
        """
        pass

    def definition(self, tag: CommandTag) -> CommandDefinition:
        """
        Returns the definition for a command tag.

        Raises:
            ValueError: If the protocol does not know the command.
        """
        cmd_def = self._command_defs.get(tag)
        if not cmd_def:
            raise ValueError(f"Unknown command: {tag}")
        return cmd_def

    @staticmethod
    def matches_keyword(reply: str, keyword: str) -> bool:
        """
        Case-insensitive comparison of a reply against a keyword reply.
        """
        return bool(keyword) and reply.strip().upper() == keyword.upper()

    def is_retry_request(self, reply: str) -> bool:
        return self.matches_keyword(reply, self.retry_reply)

    def is_ok(self, reply: str) -> bool:
        return self.matches_keyword(reply, self.ok_reply)
