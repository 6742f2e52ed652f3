"""
models.py

Defines core data models used throughout the application: commands, the events
fed into a session, and the effects a session asks its driver to carry out.
Utilizes dataclasses to enforce structure and type safety.
"""

from dataclasses import dataclass
from typing import Optional, Any, Union

from sensor_communication.param_types import CommandTag, TimerKind, UserActionKind


@dataclass(frozen=True)
class SensorCommand:
    """
    A command ready for transmission.
    """
    tag: CommandTag          # Command kind (e.g., CommandTag.POWER)
    payload: bytes           # Exact bytes to transmit, terminator included
    value: Optional[float] = None  # Argument, for commands that take one

    @property
    def text(self) -> str:
        """The payload without its line terminator, for logs."""
        return self.payload.decode("ascii", errors="replace").strip()


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PortOpened:
    port: str


@dataclass(frozen=True)
class PortOpenFailed:
    port: str
    reason: str


@dataclass(frozen=True)
class BytesReceived:
    data: bytes


@dataclass(frozen=True)
class LineReceived:
    line: str                # Framed reply, stripped; may be empty


@dataclass(frozen=True)
class TimerFired:
    kind: TimerKind
    generation: int          # Echo of StartTimer.generation


@dataclass(frozen=True)
class TransportError:
    message: str


@dataclass(frozen=True)
class UserAction:
    kind: UserActionKind
    value: Any = None        # MHz, dB, (start, end) or preset name


Event = Union[PortOpened, PortOpenFailed, BytesReceived, LineReceived,
              TimerFired, TransportError, UserAction]


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SendBytes:
    data: bytes


@dataclass(frozen=True)
class StartTimer:
    kind: TimerKind
    interval_ms: int
    single_shot: bool
    generation: int


@dataclass(frozen=True)
class StopTimer:
    kind: TimerKind


@dataclass(frozen=True)
class LogEntry:
    text: str


@dataclass(frozen=True)
class PowerDisplay:
    dbm_text: str
    watt_text: str


@dataclass(frozen=True)
class IdentityDisplay:
    text: str


@dataclass(frozen=True)
class TemperatureDisplay:
    text: str


@dataclass(frozen=True)
class ControlsEnabled:
    enabled: bool


@dataclass(frozen=True)
class MeasuringChanged:
    active: bool


@dataclass(frozen=True)
class AttenuationChanged:
    db: float


@dataclass(frozen=True)
class FrequencyChanged:
    mhz: float


@dataclass(frozen=True)
class PresetSelected:
    name: str
    start_mhz: float
    end_mhz: float


@dataclass(frozen=True)
class Notification:
    level: str               # "info", "warning" or "error"
    title: str
    message: str


Effect = Union[SendBytes, StartTimer, StopTimer, LogEntry, PowerDisplay,
               IdentityDisplay, TemperatureDisplay, ControlsEnabled,
               MeasuringChanged, AttenuationChanged, FrequencyChanged,
               PresetSelected, Notification]
