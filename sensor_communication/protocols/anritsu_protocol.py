#!/usr/bin/env python3
"""
anritsu_protocol.py

Implements the ASCII line protocol of ANRITSU power sensors.
Commands are a keyword plus an optional argument, terminated by a linefeed.
Replies are single lines: an identity record, a decimal number, OK, or NO TERM.
"""

import math
import re
from typing import Optional, Tuple

from sensor_communication.commands import get_command_definition
from sensor_communication.config import (
    LINE_TERMINATOR, VENDOR_TOKEN, NO_TERM_REPLY, OK_REPLY, IDENTITY_MIN_FIELDS
)
from sensor_communication.models import SensorCommand
from sensor_communication.param_types import CommandTag
from sensor_communication.protocols.sensor_protocol import SensorProtocol

# Decimal point only; no thousands separators, no decimal comma.
_DECIMAL_RE = re.compile(r'[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')


class AnritsuProtocol(SensorProtocol):
    """
    Protocol implementation for ANRITSU power sensors.
    """

    terminator = LINE_TERMINATOR
    retry_reply = NO_TERM_REPLY
    ok_reply = OK_REPLY

    def _initialize_commands(self) -> None:
        self._command_defs = {tag: get_command_definition(tag) for tag in CommandTag}

    def create_command(self, tag: CommandTag, value: Optional[float] = None) -> SensorCommand:
        """
        Builds the payload for a command.

        Returns:
            SensorCommand: e.g. CFFREQ 2.4 -> b"CFFREQ 2.4\\n".

        Raises:
            ValueError: If the command is unknown or its argument is missing.
        """
        cmd_def = self.definition(tag)
        text = cmd_def.keyword
        if cmd_def.takes_value:
            if value is None:
                raise ValueError(f"{cmd_def.keyword} requires a value")
            text = f"{text} {self.format_value(value)}"
            self.logger.debug(f"{cmd_def.description}: {self.format_value(value)} {cmd_def.units}")
        else:
            self.logger.debug(f"{cmd_def.description} ({cmd_def.keyword})")
        return SensorCommand(tag=tag, payload=text.encode("ascii") + self.terminator, value=value)

    def set_frequency_command(self, frequency_mhz: float) -> SensorCommand:
        """
        Creates the CFFREQ command for a frequency given in MHz.
        The device expects GHz.
        """
        return self.create_command(CommandTag.SET_FREQUENCY, frequency_mhz / 1000.0)

    @staticmethod
    def format_value(value: float) -> str:
        """
        Formats an argument with up to six significant digits and no trailing zeros.
        """
        return f"{value:g}"

    def parse_identity(self, reply: str) -> Optional[Tuple[str, str]]:
        """
        Parses "ANRITSU,<model>,<id>,<hw>,<firmware>,...".

        Returns:
            (id, firmware) taken from fields 2 and 4, or None.
        """
        if not reply.startswith(VENDOR_TOKEN):
            return None
        parts = reply.split(',')
        if len(parts) < IDENTITY_MIN_FIELDS:
            self.logger.debug(f"Identity reply has {len(parts)} fields: {reply}")
            return None
        return parts[2].strip(), parts[4].strip()

    def parse_decimal(self, reply: str) -> Optional[float]:
        """
        Locale-invariant decimal parser for TEMP? and POW? replies.
        """
        text = reply.strip()
        if not _DECIMAL_RE.fullmatch(text):
            return None
        value = float(text)
        if not math.isfinite(value):
            return None
        return value
