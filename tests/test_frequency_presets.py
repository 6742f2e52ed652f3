import json

import pytest

from sensor_communication.frequency_presets import PresetStore


def test_load_json(tmp_path) -> None:
    path = tmp_path / "presets.json"
    path.write_text(json.dumps([
        {"name": "ISM 2.4", "start": 2400, "end": 2483.5},
        {"name": "GPS L1", "start": 1570, "end": 1580},
    ]), encoding="utf-8")
    store = PresetStore()
    assert store.load_json(path) == 2
    assert store.names() == ["ISM 2.4", "GPS L1"]
    assert store.lookup("ISM 2.4") == (2400.0, 2483.5)
    assert "GPS L1" in store


def test_invalid_entries_are_skipped() -> None:
    store = PresetStore()
    accepted = store.load_entries([
        {"name": "ok", "start": 100, "end": 200},
        {"name": "reversed", "start": 200, "end": 100},
        {"name": "zero", "start": 0, "end": 100},
        {"name": "text", "start": "a", "end": 100},
        {"start": 100, "end": 200},
        "not an object",
    ])
    assert accepted == 1
    assert store.lookup("reversed") is None


def test_add_rejects_bad_range() -> None:
    with pytest.raises(ValueError):
        PresetStore().add("bad", 300, 300)


def test_non_array_document(tmp_path) -> None:
    path = tmp_path / "presets.json"
    path.write_text('{"name": "x"}', encoding="utf-8")
    with pytest.raises(ValueError):
        PresetStore().load_json(path)


def test_malformed_json(tmp_path) -> None:
    path = tmp_path / "presets.json"
    path.write_text("[{", encoding="utf-8")
    with pytest.raises(ValueError):
        PresetStore().load_json(path)


def test_missing_file(tmp_path) -> None:
    with pytest.raises(ValueError):
        PresetStore().load_json(tmp_path / "none.json")
