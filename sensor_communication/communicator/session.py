"""
session.py

Implements the SensorSession class: the protocol engine for one sensor
connection. All session state lives here (command queue, in-flight slot, line
buffer, timers, power model, zero calibration) and the only way to change it is
handle(event), which returns the effects the driver has to carry out
(bytes to send, timers to start or stop, texts to present).

Usage Example:
    session = SensorSession()
    effects = session.handle(PortOpened("COM3"))        # sends IDN?
    effects = session.handle(BytesReceived(b"ANRITSU,MA24106A,SER42,R1,FW9.9\\n"))
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sensor_communication.attenuation_table import AttenuationTable
from sensor_communication.communicator.command_queue import CommandQueue
from sensor_communication.communicator.line_framer import LineFramer
from sensor_communication.communicator.response_router import Disposition, ResponseRouter, RouteResult
from sensor_communication.communicator.scheduler import Scheduler
from sensor_communication.config import (
    merge_settings, IDENTITY_PLACEHOLDER, TEMPERATURE_PLACEHOLDER, TEMPERATURE_ERROR
)
from sensor_communication.frequency_presets import PresetStore
from sensor_communication.models import (
    Event, Effect, PortOpened, PortOpenFailed, BytesReceived, LineReceived, TimerFired,
    TransportError, UserAction, LogEntry, PowerDisplay, IdentityDisplay, TemperatureDisplay,
    ControlsEnabled, MeasuringChanged, AttenuationChanged, FrequencyChanged, PresetSelected,
    Notification, SensorCommand
)
from sensor_communication.param_types import (
    CommandTag, ConnectionState, TimerKind, UserActionKind, ZeroAckPolicy, ZeroState
)
from sensor_communication.power_model import PowerModel
from sensor_communication.protocols.anritsu_protocol import AnritsuProtocol
from sensor_communication.protocols.sensor_protocol import SensorProtocol


@dataclass
class ZeroCalibrationSession:
    state: ZeroState = ZeroState.IDLE
    was_measuring: bool = False

    @property
    def active(self) -> bool:
        return self.state is not ZeroState.IDLE

    def reset(self) -> None:
        self.state = ZeroState.IDLE
        self.was_measuring = False


def _to_float(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class SensorSession:
    """
    Single-threaded reactor for one sensor connection.
    Events are processed one at a time, fully, in the order they are handed in.
    """

    def __init__(self, settings: Optional[Dict[str, Any]] = None,
                 protocol: Optional[SensorProtocol] = None,
                 attenuation_table: Optional[AttenuationTable] = None,
                 presets: Optional[PresetStore] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Args:
            settings: Overrides of DEFAULT_SESSION_SETTINGS.
            protocol: Wire protocol; defaults to AnritsuProtocol.
            attenuation_table: Table used by APPLY_RANGE.
            presets: Store used by SELECT_PRESET.
            logger: Optional logger.
        """
        self.logger = logger or logging.getLogger(__name__)
        self.settings = merge_settings(settings, self.logger)
        self.protocol = protocol or AnritsuProtocol(logger=self.logger)
        self.attenuation_table = attenuation_table if attenuation_table is not None else AttenuationTable()
        self.presets = presets if presets is not None else PresetStore()
        self.zero_ack_policy = ZeroAckPolicy(self.settings["zero_ack_policy"])

        self.router = ResponseRouter(self.protocol, self.zero_ack_policy, self.logger)
        self.queue = CommandQueue(self.logger)
        self.framer = LineFramer(self.protocol.terminator)
        self.scheduler = Scheduler({
            TimerKind.POWER_POLL: self.settings["power_poll_ms"],
            TimerKind.TEMPERATURE_POLL: self.settings["temperature_poll_ms"],
            TimerKind.ZERO_DELAY: self.settings["zero_delay_ms"],
            TimerKind.FREQUENCY_DELAY: self.settings["frequency_delay_ms"],
            TimerKind.ZERO_TIMEOUT: self.settings["zero_ack_timeout_ms"],
        }, self.logger)
        self.power = PowerModel()
        self.zero = ZeroCalibrationSession()

        self.connection = ConnectionState.DISCONNECTED
        self.port: Optional[str] = None
        self.device_id: Optional[str] = None
        self.firmware: Optional[str] = None
        self.temperature: Optional[float] = None
        self.measuring = False
        self._pending_frequency: Optional[SensorCommand] = None

    # ---------------------------
    # State queries
    # ---------------------------
    @property
    def is_open(self) -> bool:
        return self.connection is not ConnectionState.DISCONNECTED

    @property
    def controls_enabled(self) -> bool:
        return not self.zero.active

    # ---------------------------
    # Event intake
    # ---------------------------
    def handle(self, event: Event) -> List[Effect]:
        """
        Processes one event and returns the resulting effects, in order.

        Raises:
            TypeError: If the event type is not part of the event set.
        """
        if isinstance(event, BytesReceived):
            return self._on_bytes(event.data)
        elif isinstance(event, LineReceived):
            return self._on_line(event.line)
        elif isinstance(event, TimerFired):
            return self._on_timer(event.kind, event.generation)
        elif isinstance(event, UserAction):
            return self._on_user_action(event)
        elif isinstance(event, PortOpened):
            return self._on_port_opened(event.port)
        elif isinstance(event, PortOpenFailed):
            return self._on_port_open_failed(event.port, event.reason)
        elif isinstance(event, TransportError):
            return self._on_transport_error(event.message)
        raise TypeError(f"Unsupported event: {event!r}")

    # ---------------------------
    # Connection lifecycle
    # ---------------------------
    def _on_port_opened(self, port: str) -> List[Effect]:
        effects = self._teardown()
        self.connection = ConnectionState.CONNECTING
        self.port = port
        self.logger.info(f"Connected to sensor on {port}")
        effects += [LogEntry(f"Connected to {port}"), ControlsEnabled(True)]
        self.queue.enqueue(self.protocol.create_command(CommandTag.IDENTIFY))
        effects += self.queue.try_dispatch()
        return effects

    def _on_port_open_failed(self, port: str, reason: str) -> List[Effect]:
        self.logger.error(f"Could not open {port}: {reason}")
        return [Notification("error", "Error", f"Could not open {port}: {reason}")]

    def _on_transport_error(self, message: str) -> List[Effect]:
        self.logger.error(f"Serial error: {message}")
        effects: List[Effect] = [Notification("error", "Serial Error", message)]
        if not self.is_open:
            return effects
        # Free the slot so the queue does not stall on a reply that will never come
        self.queue.release()
        effects += self.queue.try_dispatch()
        return effects

    def _teardown(self) -> List[Effect]:
        """
        Stops every timer and drops all per-connection state. Safe to call repeatedly.
        """
        effects = self.scheduler.stop_all()
        self.queue.flush()
        self.framer.clear()
        self.power.reset()
        self.zero.reset()
        self.measuring = False
        self._pending_frequency = None
        self.connection = ConnectionState.DISCONNECTED
        self.port = None
        self.device_id = None
        self.firmware = None
        self.temperature = None
        effects += [
            ControlsEnabled(True),
            MeasuringChanged(False),
            IdentityDisplay(IDENTITY_PLACEHOLDER),
            TemperatureDisplay(TEMPERATURE_PLACEHOLDER),
            self._power_display(),
        ]
        return effects

    # ---------------------------
    # Incoming data
    # ---------------------------
    def _on_bytes(self, data: bytes) -> List[Effect]:
        if not self.is_open:
            self.logger.debug(f"Discarding {len(data)} bytes received while disconnected")
            return []
        effects: List[Effect] = []
        for line in self.framer.feed(data):
            effects += self._on_line(line)
        return effects

    def _on_line(self, line: str) -> List[Effect]:
        if not self.is_open:
            return []
        if not line:
            return [LogEntry("RSP: [empty message]")]
        self.logger.debug(f"Received response: {line}")
        effects: List[Effect] = [LogEntry(f"RSP: {line}")]

        in_flight = self.queue.in_flight
        result = self.router.route(line, in_flight)
        if result.disposition is Disposition.IGNORE:
            return effects

        if result.disposition is Disposition.RETRY:
            if result.tag is CommandTag.SET_FREQUENCY:
                effects.append(LogEntry("Failed to set frequency, retrying..."))
            self.queue.enqueue(in_flight)
        else:
            effects += self._apply(result)

        self.queue.release()
        effects += self.queue.try_dispatch()
        return effects

    def _apply(self, result: RouteResult) -> List[Effect]:
        """
        Applies an accepted reply to the session state.
        """
        effects: List[Effect] = []
        if result.tag is CommandTag.IDENTIFY:
            if result.identity is None:
                return effects
            self.device_id, self.firmware = result.identity
            self.connection = ConnectionState.IDENTIFIED
            self.logger.info(f"Identified sensor {self.device_id}, firmware {self.firmware}")
            effects.append(IdentityDisplay(f"ID: {self.device_id} | FW: {self.firmware}"))
            if not self.scheduler.is_active(TimerKind.TEMPERATURE_POLL):
                effects += self.scheduler.start(TimerKind.TEMPERATURE_POLL)
                self.queue.enqueue(self.protocol.create_command(CommandTag.TEMPERATURE))

        elif result.tag is CommandTag.TEMPERATURE:
            if result.value is None:
                effects.append(TemperatureDisplay(TEMPERATURE_ERROR))
            else:
                self.temperature = result.value
                effects.append(TemperatureDisplay(f"Temp: {result.value:.1f} °C"))

        elif result.tag is CommandTag.POWER:
            if result.value is not None:
                self.power.record(result.value)
                effects.append(self._power_display())

        elif result.tag is CommandTag.SET_FREQUENCY:
            effects.append(LogEntry("Frequency set successfully."))
            if self.measuring:
                effects += self.scheduler.start(TimerKind.POWER_POLL)

        elif result.tag is CommandTag.ZERO:
            if result.acknowledged and self.zero.state is ZeroState.AWAITING_ACK:
                effects += self._finish_zero(success=True)
        return effects

    # ---------------------------
    # Timers
    # ---------------------------
    def _on_timer(self, kind: TimerKind, generation: int) -> List[Effect]:
        if not self.is_open or not self.scheduler.accept(kind, generation):
            return []

        effects: List[Effect] = []
        if kind is TimerKind.POWER_POLL:
            if self.zero.active:
                return effects
            self.queue.enqueue_bounded(self.protocol.create_command(CommandTag.POWER),
                                       self.settings["power_queue_limit"])

        elif kind is TimerKind.TEMPERATURE_POLL:
            self.queue.enqueue(self.protocol.create_command(CommandTag.TEMPERATURE))

        elif kind is TimerKind.ZERO_DELAY:
            if self.zero.state is not ZeroState.PENDING_DELAY:
                return effects
            self.zero.state = ZeroState.AWAITING_ACK
            self.queue.enqueue(self.protocol.create_command(CommandTag.ZERO))
            if self.zero_ack_policy is ZeroAckPolicy.TIMEOUT:
                effects += self.scheduler.start(TimerKind.ZERO_TIMEOUT)

        elif kind is TimerKind.FREQUENCY_DELAY:
            command, self._pending_frequency = self._pending_frequency, None
            if command is not None:
                self.queue.enqueue(command)

        elif kind is TimerKind.ZERO_TIMEOUT:
            if self.zero.state is not ZeroState.AWAITING_ACK:
                return effects
            in_flight = self.queue.in_flight
            if in_flight is not None and in_flight.tag is CommandTag.ZERO:
                self.queue.release()
            effects += self._finish_zero(success=False)

        effects += self.queue.try_dispatch()
        return effects

    # ---------------------------
    # User actions
    # ---------------------------
    def _on_user_action(self, action: UserAction) -> List[Effect]:
        kind = action.kind
        if kind is UserActionKind.DISCONNECT:
            return self._disconnect()

        # Everything but disconnect is locked while zero calibration runs
        if self.zero.active:
            self.logger.warning(f"Ignoring {kind.value} during zero calibration")
            return [Notification("warning", "Warning", "Zero calibration in progress!")]

        if kind is UserActionKind.SET_ATTENUATION:
            return self._set_attenuation(action.value)
        elif kind is UserActionKind.APPLY_RANGE:
            return self._apply_range(action.value)
        elif kind is UserActionKind.SELECT_PRESET:
            return self._select_preset(action.value)

        if not self.is_open:
            return [Notification("warning", "Warning", "Port not open!")]

        if kind is UserActionKind.TOGGLE_MEASUREMENT:
            return self._toggle_measurement()
        elif kind is UserActionKind.SET_FREQUENCY:
            frequency_mhz = _to_float(action.value)
            if frequency_mhz is None or frequency_mhz <= 0:
                return [Notification("warning", "Warning", "Invalid frequency value!")]
            return self._request_frequency(frequency_mhz)
        elif kind is UserActionKind.REQUEST_ZERO:
            return self._request_zero()
        raise ValueError(f"Unsupported user action: {kind}")

    def _disconnect(self) -> List[Effect]:
        was_open = self.is_open
        effects = self._teardown()
        if was_open:
            self.logger.info("Disconnected from sensor")
            effects.append(LogEntry("Disconnected"))
        return effects

    def _toggle_measurement(self) -> List[Effect]:
        self.measuring = not self.measuring
        if self.measuring:
            effects = self.scheduler.start(TimerKind.POWER_POLL)
        else:
            effects = self.scheduler.stop(TimerKind.POWER_POLL)
        effects += [MeasuringChanged(self.measuring), self._power_display()]
        return effects

    def _request_frequency(self, frequency_mhz: float) -> List[Effect]:
        """
        Pauses power polling and sends CFFREQ after the settle delay.
        """
        effects = self.scheduler.stop(TimerKind.POWER_POLL)
        effects.append(LogEntry("Pausing measurements to set frequency..."))
        command = self.protocol.set_frequency_command(frequency_mhz)
        if self.settings["frequency_delay_ms"] <= 0:
            self.queue.enqueue(command)
            effects += self.queue.try_dispatch()
            return effects
        self._pending_frequency = command
        effects += self.scheduler.start(TimerKind.FREQUENCY_DELAY)
        return effects

    def _set_attenuation(self, value: Any) -> List[Effect]:
        attenuation_db = _to_float(value)
        if attenuation_db is None:
            return [Notification("warning", "Warning", "Invalid attenuation value!"),
                    AttenuationChanged(self.power.attenuation_db)]
        self.power.set_attenuation(attenuation_db)
        return [AttenuationChanged(attenuation_db), self._power_display()]

    def _apply_range(self, value: Any) -> List[Effect]:
        """
        Sets the attenuation from the table average over a MHz range and, with a
        device connected, tunes the sensor to the middle of the range.
        """
        if not self.attenuation_table:
            return [Notification("warning", "Warning", "Please load a CSV file first!")]
        try:
            start_mhz, end_mhz = (_to_float(v) for v in value)
        except (TypeError, ValueError):
            start_mhz = end_mhz = None
        if start_mhz is None or end_mhz is None:
            return [Notification("warning", "Warning", "Invalid frequency values!")]
        if start_mhz >= end_mhz:
            return [Notification("warning", "Warning", "Start frequency must be less than end frequency!")]

        attenuation_db = self.attenuation_table.attenuation_for_range(start_mhz, end_mhz)
        if attenuation_db is None:
            return [Notification("warning", "Warning", "No data points found in the specified frequency range!")]

        self.power.set_attenuation(attenuation_db)
        effects: List[Effect] = [
            AttenuationChanged(attenuation_db),
            self._power_display(),
            LogEntry(f"Average attenuation calculated: {attenuation_db:.3f} dB "
                     f"(freq range: {start_mhz:g}-{end_mhz:g} MHz)"),
        ]
        if self.is_open:
            middle_mhz = (start_mhz + end_mhz) / 2.0
            effects += [FrequencyChanged(middle_mhz),
                        LogEntry(f"Setting frequency to average: {middle_mhz:.1f} MHz")]
            effects += self._request_frequency(middle_mhz)
        return effects

    def _select_preset(self, name: Any) -> List[Effect]:
        span = self.presets.lookup(name)
        if span is None:
            return [Notification("warning", "Warning", f"Unknown preset: {name}")]
        start_mhz, end_mhz = span
        return [PresetSelected(name, start_mhz, end_mhz),
                LogEntry(f"Selected preset: {name} ({start_mhz:g}-{end_mhz:g} MHz)")]

    # ---------------------------
    # Zero calibration
    # ---------------------------
    def _request_zero(self) -> List[Effect]:
        """
        Starts a zero calibration: power polling stops at once, controls are
        locked, and ZERO goes out after the settle delay.
        """
        effects: List[Effect] = []
        self.zero.was_measuring = self.measuring
        if self.measuring:
            self.measuring = False
            effects += self.scheduler.stop(TimerKind.POWER_POLL)
            effects.append(MeasuringChanged(False))
        if self._pending_frequency is not None:
            self.logger.warning(f"Dropping pending {self._pending_frequency.text} for zero calibration")
            self._pending_frequency = None
            effects += self.scheduler.stop(TimerKind.FREQUENCY_DELAY)
        self.queue.clear_pending()
        self.zero.state = ZeroState.PENDING_DELAY
        effects += [ControlsEnabled(False), LogEntry("Zero calibration requested")]
        effects += self.scheduler.start(TimerKind.ZERO_DELAY)
        return effects

    def _finish_zero(self, success: bool) -> List[Effect]:
        effects = self.scheduler.stop(TimerKind.ZERO_TIMEOUT)
        was_measuring = self.zero.was_measuring
        self.zero.reset()
        effects.append(ControlsEnabled(True))
        if success:
            self.logger.info("Zero calibration completed")
            effects += [LogEntry("Zero calibration completed"),
                        Notification("info", "Success", "Zero calibration completed successfully!")]
        else:
            self.logger.error("Zero calibration was not acknowledged")
            effects += [LogEntry("Zero calibration timed out"),
                        Notification("error", "Error", "Zero calibration was not acknowledged by the sensor")]
        if was_measuring:
            self.measuring = True
            effects += self.scheduler.start(TimerKind.POWER_POLL)
            effects += [MeasuringChanged(True), self._power_display()]
        return effects

    def _power_display(self) -> PowerDisplay:
        return PowerDisplay(*self.power.display(self.measuring))
