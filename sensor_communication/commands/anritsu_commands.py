# sensor_communication/commands/anritsu_commands.py
"""
Defines command definitions for the ANRITSU USB/serial power sensor family.
"""
from sensor_communication.param_types import CommandDefinition, CommandTag


class AnritsuCommand:
    """
    Holds command definitions for the ANRITSU power sensor.
    """
    IDENTIFY = CommandDefinition(
        tag=CommandTag.IDENTIFY,
        keyword="IDN?",
        description="Read identity (vendor, model, serial number, hardware, firmware)",
        retry_on_no_term=True
    )

    TEMPERATURE = CommandDefinition(
        tag=CommandTag.TEMPERATURE,
        keyword="TEMP?",
        description="Read sensor temperature",
        retry_on_no_term=True,
        units="°C"
    )

    POWER = CommandDefinition(
        tag=CommandTag.POWER,
        keyword="POW?",
        description="Read measured power",
        units="dBm"
    )

    SET_FREQUENCY = CommandDefinition(
        tag=CommandTag.SET_FREQUENCY,
        keyword="CFFREQ",
        description="Set calibration factor frequency",
        retry_on_no_term=True,
        takes_value=True,
        units="GHz"
    )

    ZERO = CommandDefinition(
        tag=CommandTag.ZERO,
        keyword="ZERO",
        description="Execute zero calibration"
    )
