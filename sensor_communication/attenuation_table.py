"""
attenuation_table.py

Frequency -> S21 lookup table used to derive an attenuation offset for a
frequency range, plus ingestion from a two-column CSV file
(frequency in Hz, S21 in dB) with an optional header row.
"""

import csv
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple


def _parse_row(row: List[str]) -> Optional[Tuple[float, float]]:
    if len(row) < 2:
        return None
    try:
        return float(row[0].strip()), float(row[1].strip())
    except ValueError:
        return None


class AttenuationTable:
    """
    S21 samples keyed by frequency in Hz. A later sample for the same frequency
    replaces the earlier one.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._samples: Dict[float, float] = {}

    def __len__(self) -> int:
        return len(self._samples)

    def __bool__(self) -> bool:
        return bool(self._samples)

    def add(self, frequency_hz: float, s21_db: float) -> None:
        self._samples[float(frequency_hz)] = float(s21_db)

    def clear(self) -> None:
        self._samples.clear()

    def frequency_range(self) -> Optional[Tuple[float, float]]:
        if not self._samples:
            return None
        return min(self._samples), max(self._samples)

    def average_in_range(self, start_hz: float, end_hz: float) -> Optional[float]:
        """
        Averages the S21 samples whose frequency lies within [start_hz, end_hz].

        Returns:
            The mean in dB, or None if no sample qualifies.
        """
        values = [s21 for freq, s21 in self._samples.items() if start_hz <= freq <= end_hz]
        if not values:
            return None
        average = sum(values) / len(values)
        self.logger.debug(f"Found {len(values)} points in range {start_hz:g}-{end_hz:g} Hz, average S21: {average} dB")
        return average

    def attenuation_for_range(self, start_mhz: float, end_mhz: float) -> Optional[float]:
        """
        Attenuation (positive dB) for a range given in MHz: the negated mean S21.
        """
        average = self.average_in_range(start_mhz * 1e6, end_mhz * 1e6)
        if average is None:
            return None
        return -average

    def load_rows(self, rows: Iterable[List[str]]) -> int:
        """
        Replaces the table contents with the numeric rows of a CSV reader.
        A non-numeric first row is taken as a header; other invalid rows are
        skipped and logged.

        Returns:
            The number of samples accepted.
        """
        self._samples.clear()
        valid = 0
        for line_number, row in enumerate(rows, start=1):
            if not row or not any(cell.strip() for cell in row):
                continue
            parsed = _parse_row(row)
            if parsed is None:
                if line_number == 1:
                    self.logger.debug(f"Skipping header row: {row}")
                else:
                    self.logger.warning(f"Invalid data at line {line_number}: {','.join(row)}")
                continue
            self.add(*parsed)
            valid += 1
        return valid

    def load_csv(self, path: Path) -> int:
        """
        Loads the table from a CSV file.

        Returns:
            The number of samples accepted.

        Raises:
            ValueError: If the file cannot be read.
        """
        try:
            with open(path, newline="", encoding="utf-8-sig") as handle:
                valid = self.load_rows(csv.reader(handle))
        except OSError as e:
            raise ValueError(f"Cannot open file {path}: {e}")
        span = self.frequency_range()
        if span:
            self.logger.info(f"Attenuation table loaded: {valid} entries, "
                             f"frequency range: {span[0]:.2e} Hz - {span[1]:.2e} Hz")
        else:
            self.logger.warning(f"No valid data found in {path}")
        return valid
