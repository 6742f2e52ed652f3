#main.py
"""
Main entry point for the RF Power Monitor.
Connects to an ANRITSU power sensor, applies the requested settings and prints
readings until the run time is over or the user presses Ctrl-C.
"""

import argparse           # Parses the command line
import logging            # Handles application logging
import sys                # Exit codes
from pathlib import Path  # Cross-platform path handling
from typing import List, Optional

from sensor_communication.attenuation_table import AttenuationTable
from sensor_communication.communicator.base_communication import SerialTransport
from sensor_communication.communicator.sensor_communicator import SensorCommunicator
from sensor_communication.config import APP_DIR_NAME, SETTINGS_FILE_NAME, load_session_settings, setup_logging
from sensor_communication.frequency_presets import PresetStore
from sensor_communication.models import (
    Effect, LogEntry, PowerDisplay, IdentityDisplay, TemperatureDisplay, Notification, PresetSelected
)
from sensor_communication.param_types import UserActionKind


def create_app_directories():
    """
    Creates necessary application directories if they don't exist.
    Returns a tuple of (app_dir, log_dir, config_dir).
    """
    app_dir = Path.home() / APP_DIR_NAME
    log_dir = app_dir / "logs"
    config_dir = app_dir / "config"

    for directory in [app_dir, log_dir, config_dir]:
        directory.mkdir(parents=True, exist_ok=True)

    return app_dir, log_dir, config_dir


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Read an ANRITSU RF power sensor over a serial port.")
    parser.add_argument("--list-ports", action="store_true", help="list serial ports and exit")
    parser.add_argument("--port", help="serial port, or SIM for the simulated sensor")
    parser.add_argument("--measure", action="store_true", help="start power measurement")
    parser.add_argument("--frequency", type=float, metavar="MHZ", help="set the sensor frequency")
    parser.add_argument("--attenuation", type=float, metavar="DB", help="attenuation offset added to readings")
    parser.add_argument("--table", type=Path, metavar="CSV", help="frequency/S21 table (Hz, dB)")
    parser.add_argument("--presets", type=Path, metavar="JSON", help="named frequency ranges (MHz)")
    parser.add_argument("--preset", metavar="NAME", help="use the range of a named preset")
    parser.add_argument("--range", type=float, nargs=2, metavar=("START", "END"),
                        help="average the table over START-END MHz and tune to the middle")
    parser.add_argument("--zero", action="store_true", help="run a zero calibration first")
    parser.add_argument("--duration", type=float, metavar="S", help="stop after S seconds")
    parser.add_argument("--settings", type=Path, metavar="JSON", help="session settings file")
    parser.add_argument("--debug", action="store_true", help="show debug messages")
    return parser


class ConsolePrinter:
    """
    Prints presentation effects and remembers the last preset range.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.selected_range = None

    def __call__(self, effect: Effect) -> None:
        if isinstance(effect, PowerDisplay):
            print(f"{effect.dbm_text:>14}  {effect.watt_text:>12}")
        elif isinstance(effect, (IdentityDisplay, TemperatureDisplay)):
            print(effect.text)
        elif isinstance(effect, Notification):
            if effect.level == "error":
                self.logger.error(f"{effect.title}: {effect.message}")
            elif effect.level == "warning":
                self.logger.warning(f"{effect.title}: {effect.message}")
            else:
                self.logger.info(f"{effect.title}: {effect.message}")
        elif isinstance(effect, PresetSelected):
            self.selected_range = (effect.start_mhz, effect.end_mhz)
        elif isinstance(effect, LogEntry):
            self.logger.debug(effect.text)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function to start the monitor.
    Creates directories, sets up logging, connects and runs the reactor loop.
    """
    args = build_parser().parse_args(argv)

    if args.list_ports:
        for name in SerialTransport.list_ports():
            print(name)
        return 0
    if not args.port:
        print("A port is required (see --list-ports)", file=sys.stderr)
        return 2

    app_dir, log_dir, config_dir = create_app_directories()
    logger = setup_logging("RFPowerMonitor", log_dir / "rf_power_monitor.log")
    package_logger = setup_logging("sensor_communication")
    level = logging.DEBUG if args.debug else logging.INFO
    for handler in logger.handlers + package_logger.handlers:
        handler.setLevel(level)
    logger.info("Starting RF Power Monitor")

    try:
        settings = load_session_settings(args.settings or config_dir / SETTINGS_FILE_NAME)
        table = AttenuationTable()
        if args.table:
            table.load_csv(args.table)
        presets = PresetStore()
        if args.presets:
            presets.load_json(args.presets)
    except ValueError as e:
        logger.error(str(e))
        return 1

    printer = ConsolePrinter(logger)
    communicator = SensorCommunicator(args.port, settings=settings, attenuation_table=table,
                                      presets=presets, listener=printer)
    if not communicator.connect():
        return 1

    try:
        if args.attenuation is not None:
            communicator.submit(UserActionKind.SET_ATTENUATION, args.attenuation)
        if args.preset:
            communicator.submit(UserActionKind.SELECT_PRESET, args.preset)
        span = tuple(args.range) if args.range else printer.selected_range
        if span:
            communicator.submit(UserActionKind.APPLY_RANGE, span)
        elif args.frequency is not None:
            communicator.submit(UserActionKind.SET_FREQUENCY, args.frequency)
        if args.measure:
            communicator.submit(UserActionKind.TOGGLE_MEASUREMENT)
        if args.zero:
            communicator.submit(UserActionKind.REQUEST_ZERO)
        communicator.run(duration=args.duration)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        communicator.disconnect()
        logger.info("Stopped RF Power Monitor")
    return 0


if __name__ == "__main__":
    # Entry point to run the main function
    sys.exit(main())
