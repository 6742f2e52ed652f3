"""
frequency_presets.py

Named frequency ranges (MHz) loaded from a JSON array such as:

    [{"name": "ISM 2.4", "start": 2400, "end": 2483.5}, ...]

An entry is kept only if it has a name, start and end, and 0 < start < end.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


class PresetStore:
    """
    Named frequency ranges, in insertion order.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._presets: Dict[str, Tuple[float, float]] = {}

    def __len__(self) -> int:
        return len(self._presets)

    def __contains__(self, name: str) -> bool:
        return name in self._presets

    def names(self) -> List[str]:
        return list(self._presets)

    def add(self, name: str, start_mhz: float, end_mhz: float) -> None:
        if not (0 < start_mhz < end_mhz):
            raise ValueError(f"Invalid range for preset {name!r}: {start_mhz}-{end_mhz} MHz")
        self._presets[name] = (float(start_mhz), float(end_mhz))

    def lookup(self, name: str) -> Optional[Tuple[float, float]]:
        """
        Returns:
            (start MHz, end MHz) for the preset, or None if unknown.
        """
        if not isinstance(name, str):
            return None
        return self._presets.get(name)

    def load_entries(self, entries: List[Any]) -> int:
        """
        Replaces the store contents with the valid entries of a parsed JSON array.

        Returns:
            The number of presets accepted.
        """
        self._presets.clear()
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict) or not {"name", "start", "end"} <= entry.keys():
                self.logger.warning(f"Skipping preset #{index}: missing name/start/end")
                continue
            try:
                self.add(str(entry["name"]), float(entry["start"]), float(entry["end"]))
            except (TypeError, ValueError) as e:
                self.logger.warning(f"Skipping preset #{index}: {e}")
        return len(self._presets)

    def load_json(self, path: Path) -> int:
        """
        Loads presets from a JSON file.

        Raises:
            ValueError: If the file cannot be read, is not valid JSON, or is not an array.
        """
        try:
            with open(path, encoding="utf-8") as handle:
                document = json.load(handle)
        except OSError as e:
            raise ValueError(f"Cannot open file {path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"JSON parse error in {path}: {e}")
        if not isinstance(document, list):
            raise ValueError("JSON file should contain an array of frequency ranges")
        valid = self.load_entries(document)
        if valid:
            self.logger.info(f"Loaded {valid} frequency presets")
        else:
            self.logger.warning(f"No valid presets found in {path}")
        return valid
