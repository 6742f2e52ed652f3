"""
base_communication.py

Implements the SerialTransport class that provides the raw serial I/O used by
the sensor communicator: opening and closing the port, non-blocking reads of
whatever has arrived, and writes.
"""

import logging
from typing import Optional, Dict, Any, List

import serial
from serial.tools import list_ports

from sensor_communication.config import SERIAL_SETTINGS, SIMULATED_PORT


class SerialTransport:
    """
    Byte-stream transport over a pyserial port.
    """

    def __init__(self, port: str, settings: Optional[Dict[str, Any]] = None,
                 logger: Optional[logging.Logger] = None):
        """
        Initializes the transport.

        Args:
            port: The serial port identifier (e.g., "COM3" or "/dev/ttyUSB0").
            settings: Overrides of SERIAL_SETTINGS.
            logger: Optional logger instance.
        """
        self.port = port
        self.logger = logger or logging.getLogger(__name__)
        self.ser: Optional[serial.Serial] = None
        self.current_settings = dict(SERIAL_SETTINGS)
        if settings:
            self.current_settings.update(settings)
        self.last_error: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return bool(self.ser and self.ser.is_open)

    def open(self) -> bool:
        """
        Opens the serial port with the current settings.

        Returns:
            True if the port was opened, False otherwise (see last_error).
        """
        try:
            self.ser = serial.Serial(port=self.port, **self.current_settings)
            self.ser.reset_input_buffer()
            self.ser.reset_output_buffer()
            self.last_error = None
            self.logger.info(f"Opened {self.port} at {self.current_settings['baudrate']} baud")
            return True
        except (serial.SerialException, OSError, ValueError) as e:
            self.last_error = str(e)
            self.logger.error(f"Connection failed: {str(e)}")
            self.ser = None
            return False

    def close(self) -> bool:
        """
        Safely closes the serial port.

        Returns:
            True if a port was closed, False otherwise.
        """
        try:
            if self.ser and self.ser.is_open:
                self.ser.close()
                self.logger.info(f"Closed {self.port}")
                return True
            return False
        except (serial.SerialException, OSError) as e:
            self.logger.error(f"Error disconnecting: {str(e)}")
            return False
        finally:
            self.ser = None

    def write(self, data: bytes) -> None:
        """
        Writes bytes to the port.

        Raises:
            serial.SerialException: If the port is closed or the write fails.
        """
        if not self.is_open:
            raise serial.SerialException("Port not open")
        self.ser.write(data)
        self.ser.flush()

    def read_available(self) -> bytes:
        """
        Returns the bytes currently waiting in the input buffer without blocking.

        Raises:
            serial.SerialException: If the port is closed or the read fails.
        """
        if not self.is_open:
            raise serial.SerialException("Port not open")
        waiting = self.ser.in_waiting
        if not waiting:
            return b""
        return self.ser.read(waiting)

    @staticmethod
    def list_ports() -> List[str]:
        """
        Lists available serial ports; the simulator port is always offered.

        Returns:
            A list of available port names.
        """
        return [p.device for p in list_ports.comports()] + [SIMULATED_PORT]
