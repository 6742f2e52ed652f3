"""
power_model.py

Holds the last measured power and the operator's attenuation offset, and turns
them into the dBm and watt texts shown to the operator.
"""

import math
from typing import Tuple

from sensor_communication.config import POWER_PLACEHOLDER_DBM, POWER_PLACEHOLDER_WATTS

# (lower bound in W, scale, suffix, decimals), most significant unit first
WATT_UNITS = [
    (1e3, 1e-3, "kW", 2),
    (1.0, 1.0, "W", 2),
    (1e-3, 1e3, "mW", 3),
    (1e-6, 1e6, "µW", 3),
    (1e-9, 1e9, "nW", 3),
    (1e-12, 1e12, "pW", 3),
    (1e-15, 1e15, "fW", 3),
]


def dbm_to_watts(dbm: float) -> float:
    """Readings too large for a float come out as infinity."""
    try:
        return 10 ** (dbm / 10.0) / 1000.0
    except OverflowError:
        return math.inf


def format_watts(watts: float) -> str:
    """
    Picks the largest unit the value reaches; below a femtowatt the value is
    shown in watts in scientific notation.
    """
    for lower, scale, suffix, decimals in WATT_UNITS:
        if watts >= lower:
            return f"{watts * scale:.{decimals}f} {suffix}"
    return f"{watts:.3e} W"


class PowerModel:
    """
    Last reading plus attenuation offset. Attenuation in dB adds to the dBm reading.
    """

    def __init__(self):
        self.last_measured_dbm = 0.0
        self.attenuation_db = 0.0
        self.has_reading = False

    def record(self, dbm: float) -> None:
        self.last_measured_dbm = dbm
        self.has_reading = True

    def set_attenuation(self, db: float) -> None:
        self.attenuation_db = db

    def reset(self) -> None:
        """Forgets the reading; the attenuation offset is an operator setting and is kept."""
        self.last_measured_dbm = 0.0
        self.has_reading = False

    @property
    def final_power_dbm(self) -> float:
        return self.last_measured_dbm + self.attenuation_db

    @property
    def power_watts(self) -> float:
        return dbm_to_watts(self.final_power_dbm)

    def display(self, measuring: bool) -> Tuple[str, str]:
        """
        Returns (dBm text, watt text). Placeholders are shown when nothing has been
        measured yet and measurement is not running.
        """
        if not self.has_reading and not measuring:
            return POWER_PLACEHOLDER_DBM, POWER_PLACEHOLDER_WATTS
        return f"{self.final_power_dbm:.2f} dBm", format_watts(self.power_watts)
