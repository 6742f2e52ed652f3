"""
param_types.py

Defines the closed enumerations shared by the protocol engine and a data class
for command definitions.
"""

from enum import Enum
from dataclasses import dataclass


class CommandTag(Enum):
    """
    The kinds of command the sensor understands.
    """
    IDENTIFY = "identify"
    TEMPERATURE = "temperature"
    POWER = "power"
    SET_FREQUENCY = "set_frequency"
    ZERO = "zero"


class TimerKind(Enum):
    """
    Timers owned by the scheduler.
    """
    POWER_POLL = "power_poll"
    TEMPERATURE_POLL = "temperature_poll"
    ZERO_DELAY = "zero_delay"
    FREQUENCY_DELAY = "frequency_delay"
    ZERO_TIMEOUT = "zero_timeout"


class UserActionKind(Enum):
    """
    Operator requests accepted by the session.
    """
    TOGGLE_MEASUREMENT = "toggle_measurement"
    SET_FREQUENCY = "set_frequency"
    SET_ATTENUATION = "set_attenuation"
    REQUEST_ZERO = "request_zero"
    APPLY_RANGE = "apply_range"
    SELECT_PRESET = "select_preset"
    DISCONNECT = "disconnect"


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    IDENTIFIED = "identified"


class ZeroState(Enum):
    IDLE = "idle"
    PENDING_DELAY = "pending_delay"
    AWAITING_ACK = "awaiting_ack"


class ZeroAckPolicy(Enum):
    """
    What to do when ZERO is answered with anything but OK.
    """
    WAIT = "wait"
    RETRY = "retry"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class CommandDefinition:
    """
    Data class representing a command definition for the sensor.

    Attributes:
        tag: The command kind.
        keyword: The ASCII keyword sent on the wire.
        description: A human-readable description of what the command does.
        retry_on_no_term: True if a NO TERM reply triggers a resend.
        takes_value: True if the keyword is followed by a numeric argument.
        units: Unit of the reply value, if any.
    """
    tag: CommandTag
    keyword: str
    description: str
    retry_on_no_term: bool = False
    takes_value: bool = False
    units: str = ""
