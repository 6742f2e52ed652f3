import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional

import serial

# Line settings used by the ANRITSU sensor family.
SERIAL_SETTINGS = {
    "baudrate": 9600,
    "bytesize": serial.EIGHTBITS,
    "parity": serial.PARITY_NONE,
    "stopbits": serial.STOPBITS_ONE,
    "xonxoff": False,
    "rtscts": False,
    "timeout": 0,  # Non-blocking reads; the reactor polls in_waiting
    "write_timeout": 1.0
}

# Name of the in-memory simulated port
SIMULATED_PORT = "SIM"

# Wire protocol tokens
LINE_TERMINATOR = b"\n"
VENDOR_TOKEN = "ANRITSU"
NO_TERM_REPLY = "NO TERM"
OK_REPLY = "OK"
IDENTITY_MIN_FIELDS = 5

# Placeholders shown before any data is available
POWER_PLACEHOLDER_DBM = "- dBm"
POWER_PLACEHOLDER_WATTS = "- W"
IDENTITY_PLACEHOLDER = "ID: -- | FW: --"
TEMPERATURE_PLACEHOLDER = "Temp: -- °C"
TEMPERATURE_ERROR = "Temp: Error"

# Accepted values for the zero acknowledgement policy
ZERO_ACK_POLICIES = ["wait", "retry", "timeout"]

# Defaults for a SensorSession. Periods are in milliseconds.
DEFAULT_SESSION_SETTINGS: Dict[str, Any] = {
    "power_poll_ms": 250,
    "temperature_poll_ms": 10000,
    "zero_delay_ms": 1000,
    "frequency_delay_ms": 1000,
    "power_queue_limit": 5,
    "zero_ack_policy": "wait",
    "zero_ack_timeout_ms": 5000
}

APP_DIR_NAME = ".rf_power_monitor"
SETTINGS_FILE_NAME = "settings.json"


def merge_settings(overrides: Optional[Dict[str, Any]] = None,
                   logger: Optional[logging.Logger] = None) -> Dict[str, Any]:
    """
    Returns the default session settings updated with the given overrides.

    Args:
        overrides: Setting values to apply on top of the defaults.
        logger: Optional logger used to report ignored keys.

    Returns:
        A new settings dictionary.

    Raises:
        ValueError: If a value has the wrong type or the policy is unknown.
    """
    logger = logger or logging.getLogger(__name__)
    settings = dict(DEFAULT_SESSION_SETTINGS)
    for key, value in (overrides or {}).items():
        if key not in DEFAULT_SESSION_SETTINGS:
            logger.warning(f"Ignoring unknown setting: {key}")
            continue
        if key == "zero_ack_policy":
            if value not in ZERO_ACK_POLICIES:
                raise ValueError(f"Invalid zero_ack_policy: {value!r} (expected one of {ZERO_ACK_POLICIES})")
        elif isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(f"Setting {key} must be a non-negative integer, got {value!r}")
        settings[key] = value
    return settings


def default_settings_path() -> Path:
    """
    Returns the default location of the settings file in the user's home folder.
    """
    return Path.home() / APP_DIR_NAME / "config" / SETTINGS_FILE_NAME


def load_session_settings(path: Optional[Path] = None,
                          logger: Optional[logging.Logger] = None) -> Dict[str, Any]:
    """
    Loads session settings overrides from a JSON file.
    A missing file yields the defaults.

    Raises:
        ValueError: If the file is not a JSON object or holds invalid values.
    """
    logger = logger or logging.getLogger(__name__)
    path = Path(path) if path else default_settings_path()
    if not path.exists():
        logger.debug(f"No settings file at {path}; using defaults")
        return dict(DEFAULT_SESSION_SETTINGS)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid settings file {path}: {e}")
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a JSON object")
    logger.info(f"Loaded settings from {path}")
    return merge_settings(data, logger)


def setup_logging(name: str, log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configures logging for the application.
    Console output always; a log file as well when a path is given.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)

    # Removes old handlers if any
    if logger.hasHandlers():
        logger.handlers.clear()
    logger.addHandler(console_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
