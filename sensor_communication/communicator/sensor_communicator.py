"""
sensor_communicator.py

Implements the SensorCommunicator class that drives a SensorSession from a
single thread: it polls the transport for incoming bytes, fires due timers,
and carries out the effects the session returns (writes, timer changes), while
presentation effects go to an optional listener.
"""

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Optional

import serial

from sensor_communication.attenuation_table import AttenuationTable
from sensor_communication.communicator.base_communication import SerialTransport
from sensor_communication.communicator.session import SensorSession
from sensor_communication.config import SIMULATED_PORT
from sensor_communication.device_simulator import DeviceSimulator
from sensor_communication.frequency_presets import PresetStore
from sensor_communication.models import (
    Effect, Event, BytesReceived, PortOpened, PortOpenFailed, SendBytes, StartTimer,
    StopTimer, TimerFired, TransportError, UserAction
)
from sensor_communication.param_types import TimerKind, UserActionKind


@dataclass
class ScheduledTimer:
    deadline: float
    interval_s: float
    single_shot: bool
    generation: int


class SensorCommunicator:
    """
    Manages the serial connection to one power sensor and runs its session.
    """

    def __init__(self, port: str,
                 settings: Optional[Dict[str, Any]] = None,
                 serial_settings: Optional[Dict[str, Any]] = None,
                 attenuation_table: Optional[AttenuationTable] = None,
                 presets: Optional[PresetStore] = None,
                 listener: Optional[Callable[[Effect], None]] = None,
                 transport: Optional[Any] = None,
                 clock: Callable[[], float] = time.monotonic,
                 logger: Optional[logging.Logger] = None):
        """
        Initializes the SensorCommunicator.

        Args:
            port: The serial port (e.g., "COM3", "/dev/ttyUSB0", or "SIM").
            settings: Session setting overrides (timer periods, queue limit, zero policy).
            serial_settings: pyserial setting overrides.
            attenuation_table: Table for range-averaged attenuation.
            presets: Named frequency ranges.
            listener: Called with every presentation effect.
            transport: Transport to use instead of opening `port`.
            clock: Monotonic clock in seconds.
            logger: Optional logger for debugging.
        """
        self.port = port
        self.logger = logger or logging.getLogger(__name__)
        self.serial_settings = serial_settings
        self.listener = listener
        self.clock = clock
        self.transport = transport
        self.session = SensorSession(settings, attenuation_table=attenuation_table,
                                     presets=presets, logger=self.logger)
        self._timers: Dict[TimerKind, ScheduledTimer] = {}
        self._events: Deque[Event] = deque()
        self._processing = False

    def _create_transport(self):
        if self.port.upper() == SIMULATED_PORT:
            return DeviceSimulator(self.port, logger=self.logger)
        return SerialTransport(self.port, self.serial_settings, self.logger)

    def is_connected(self) -> bool:
        return bool(self.transport and self.transport.is_open and self.session.is_open)

    def connect(self) -> bool:
        """
        Opens the port and starts the session (which sends IDN?).

        Returns:
            True if the port was opened, False otherwise.
        """
        if self.is_connected():
            return True
        if self.transport is None:
            self.transport = self._create_transport()
        if not self.transport.open():
            self.dispatch(PortOpenFailed(self.port, self.transport.last_error or "unknown error"))
            return False
        self.dispatch(PortOpened(self.port))
        return True

    def disconnect(self) -> bool:
        """
        Tears the session down and closes the port.

        Returns:
            True if a port was closed, False otherwise.
        """
        self.dispatch(UserAction(UserActionKind.DISCONNECT))
        self._timers.clear()
        if self.transport is None:
            return False
        return self.transport.close()

    def submit(self, kind: UserActionKind, value: Any = None) -> None:
        """Hands an operator action to the session."""
        self.dispatch(UserAction(kind, value))

    def dispatch(self, event: Event) -> None:
        """
        Processes an event and everything it cascades into.
        Events raised while handling (write faults) are queued, never nested.
        """
        self._events.append(event)
        if self._processing:
            return
        self._processing = True
        try:
            while self._events:
                for effect in self.session.handle(self._events.popleft()):
                    self._apply(effect)
        finally:
            self._processing = False

    def _apply(self, effect: Effect) -> None:
        if isinstance(effect, SendBytes):
            try:
                self.transport.write(effect.data)
            except (serial.SerialException, OSError) as e:
                self.logger.error(f"Write failed: {str(e)}")
                self._events.append(TransportError(f"Write failed: {e}"))
        elif isinstance(effect, StartTimer):
            interval_s = effect.interval_ms / 1000.0
            self._timers[effect.kind] = ScheduledTimer(self.clock() + interval_s, interval_s,
                                                       effect.single_shot, effect.generation)
        elif isinstance(effect, StopTimer):
            self._timers.pop(effect.kind, None)
        elif self.listener is not None:
            self.listener(effect)

    def poll(self) -> None:
        """
        One reactor step: hands over any received bytes, then fires due timers
        in deadline order.
        """
        if self.transport is not None and self.transport.is_open:
            try:
                data = self.transport.read_available()
            except (serial.SerialException, OSError) as e:
                self.logger.error(f"Read failed: {str(e)}")
                self.dispatch(TransportError(f"Read failed: {e}"))
                data = b""
            if data:
                self.dispatch(BytesReceived(data))

        now = self.clock()
        due = sorted(((timer.deadline, kind) for kind, timer in self._timers.items() if timer.deadline <= now),
                     key=lambda item: item[0])
        for _, kind in due:
            timer = self._timers.get(kind)
            # An earlier fire in this step may have stopped or restarted it
            if timer is None or timer.deadline > now:
                continue
            if timer.single_shot:
                del self._timers[kind]
            else:
                timer.deadline += timer.interval_s
                if timer.deadline <= now:
                    timer.deadline = now + timer.interval_s
            self.dispatch(TimerFired(kind, timer.generation))

    def run(self, duration: Optional[float] = None, interval: float = 0.01,
            should_stop: Optional[Callable[[], bool]] = None) -> None:
        """
        Polls until `duration` seconds have passed or `should_stop` returns True.

        Args:
            duration: How long to run; None runs until stopped.
            interval: Sleep between polls, in seconds.
            should_stop: Optional stop predicate checked every step.
        """
        started = self.clock()
        while self.transport is not None and self.transport.is_open:
            if duration is not None and self.clock() - started >= duration:
                break
            if should_stop is not None and should_stop():
                break
            self.poll()
            time.sleep(interval)
