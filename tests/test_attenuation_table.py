import pytest

from sensor_communication.attenuation_table import AttenuationTable


def make_table() -> AttenuationTable:
    table = AttenuationTable()
    table.add(1e9, -2.0)
    table.add(2e9, -3.0)
    table.add(3e9, -4.0)
    return table


def test_average_over_inclusive_range() -> None:
    table = make_table()
    assert table.average_in_range(1e9, 2e9) == pytest.approx(-2.5)
    assert table.attenuation_for_range(1000, 2000) == pytest.approx(2.5)


def test_range_without_samples() -> None:
    table = make_table()
    assert table.attenuation_for_range(1100, 1900) is None
    assert AttenuationTable().attenuation_for_range(1000, 2000) is None


def test_duplicate_frequency_replaces_sample() -> None:
    table = make_table()
    table.add(1e9, -6.0)
    assert len(table) == 3
    assert table.average_in_range(1e9, 1e9) == pytest.approx(-6.0)


def test_header_row_is_skipped() -> None:
    table = AttenuationTable()
    accepted = table.load_rows([["Frequency (Hz)", "S21 (dB)"], ["1e9", "-2"], ["2000000000", "-3"]])
    assert accepted == 2
    assert table.frequency_range() == (1e9, 2e9)


def test_invalid_rows_are_skipped(caplog) -> None:
    table = AttenuationTable()
    accepted = table.load_rows([["1e9", "-2"], ["oops", "-3"], ["3e9"], [], ["3e9", "-4"]])
    assert accepted == 2
    assert "Invalid data at line 2" in caplog.text


def test_load_csv(tmp_path) -> None:
    path = tmp_path / "s21.csv"
    path.write_text("freq,s21\n1000000000,-2.0\n2000000000,-3.0\n3000000000,-4.0\n", encoding="utf-8")
    table = AttenuationTable()
    assert table.load_csv(path) == 3
    assert table.attenuation_for_range(1000, 3000) == pytest.approx(3.0)


def test_load_replaces_previous_contents(tmp_path) -> None:
    path = tmp_path / "s21.csv"
    path.write_text("5000000000,-9\n", encoding="utf-8")
    table = make_table()
    table.load_csv(path)
    assert len(table) == 1


def test_missing_csv_raises_value_error(tmp_path) -> None:
    with pytest.raises(ValueError):
        AttenuationTable().load_csv(tmp_path / "missing.csv")
