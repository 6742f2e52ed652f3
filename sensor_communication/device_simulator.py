#!/usr/bin/env python3
"""
device_simulator.py

This module implements the DeviceSimulator class which emulates an ANRITSU power
sensor on the other end of a serial line, for use without physical hardware.
It answers the line protocol the way the device does and keeps an internal
state so that set commands affect later readings.

Features:
  - IDN? returns "ANRITSU,<model>,<serial>,<hardware>,<firmware>".
  - POW? returns a power reading within a configurable range plus noise,
    shifted as if the sensor had been zeroed.
  - TEMP? returns a temperature within a configurable range.
  - CFFREQ <GHz> stores the frequency and answers OK; the first
    `frequency_reject_count` requests are answered with ERR instead.
  - ZERO answers OK.
  - Any command may be answered with NO TERM with a configurable probability.

Interface:
  Implements open(), close(), write(), read_available(), is_open, list_ports()
  and last_error, matching SerialTransport so the communicator can use either.

Usage Example:
    simulator = DeviceSimulator(config={"power_range": (-30.0, -20.0), "seed": 1})
    simulator.open()
    simulator.write(b"POW?\\n")
    print(simulator.read_available())
"""

import logging
import random
from typing import Any, Dict, List, Optional

from sensor_communication.config import SIMULATED_PORT


class DeviceSimulator:
    """
    Simulated sensor port. Replies become readable as soon as a command line is written.
    """

    DEFAULT_CONFIG: Dict[str, Any] = {
        "model": "MA24106A",
        "serial_number": "SIM0001",
        "hardware": "HW1",
        "firmware": "FW1.00",
        "power_range": (-50.0, -40.0),   # dBm
        "temp_range": (22.0, 30.0),      # °C
        "noise_level": 0.05,             # dB
        "no_term_probability": 0.0,
        "frequency_reject_count": 0,
        "seed": None
    }

    def __init__(self, port: str = SIMULATED_PORT, config: Optional[Dict[str, Any]] = None,
                 logger: Optional[logging.Logger] = None):
        self.port = port
        self.config = dict(self.DEFAULT_CONFIG)
        if config:
            self.config.update(config)
        self.logger = logger or logging.getLogger("DeviceSimulator")
        self._random = random.Random(self.config["seed"])
        self.state = {
            "frequency_ghz": 1.0,
            "zero_offset": 0.0,
            "frequency_rejects_left": int(self.config["frequency_reject_count"])
        }
        self.connected = False
        self.last_error: Optional[str] = None
        self.received: List[str] = []
        self._rx = bytearray()
        self._tx = bytearray()

    @property
    def is_open(self) -> bool:
        return self.connected

    def open(self) -> bool:
        self.connected = True
        self.logger.info("Simulated sensor connected.")
        return True

    def close(self) -> bool:
        was_connected = self.connected
        self.connected = False
        self._rx.clear()
        self._tx.clear()
        self.logger.info("Simulated sensor disconnected.")
        return was_connected

    def write(self, data: bytes) -> None:
        if not self.connected:
            raise OSError("Simulated sensor not connected")
        self._rx.extend(data)
        while b"\n" in self._rx:
            index = self._rx.index(b"\n")
            line = self._rx[:index].decode("ascii", errors="replace").strip()
            del self._rx[:index + 1]
            self.received.append(line)
            reply = self._reply(line)
            self.logger.debug(f"Simulated response to {line!r}: {reply!r}")
            self._tx.extend(reply.encode("ascii") + b"\n")

    def read_available(self) -> bytes:
        if not self.connected:
            raise OSError("Simulated sensor not connected")
        data = bytes(self._tx)
        self._tx.clear()
        return data

    @staticmethod
    def list_ports() -> List[str]:
        return [SIMULATED_PORT]

    def _reply(self, line: str) -> str:
        if self._random.random() < self.config["no_term_probability"]:
            return "NO TERM"

        keyword, _, argument = line.partition(" ")
        keyword = keyword.upper()
        if keyword == "IDN?":
            return ",".join(["ANRITSU", self.config["model"], self.config["serial_number"],
                             self.config["hardware"], self.config["firmware"]])
        elif keyword == "POW?":
            base = self._random.uniform(*self.config["power_range"])
            noise = self.config["noise_level"]
            reading = base + self._random.uniform(-noise, noise) - self.state["zero_offset"]
            return f"{reading:.3f}"
        elif keyword == "TEMP?":
            return f"{self._random.uniform(*self.config['temp_range']):.2f}"
        elif keyword == "CFFREQ":
            if self.state["frequency_rejects_left"] > 0:
                self.state["frequency_rejects_left"] -= 1
                return "ERR"
            try:
                self.state["frequency_ghz"] = float(argument)
            except ValueError:
                return "ERR"
            return "OK"
        elif keyword == "ZERO":
            self.state["zero_offset"] = self._random.uniform(-0.01, 0.01)
            return "OK"
        return "ERR"
