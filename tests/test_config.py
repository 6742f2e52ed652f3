import json
import logging

import pytest

from sensor_communication.config import (
    DEFAULT_SESSION_SETTINGS, load_session_settings, merge_settings, setup_logging
)


def test_merge_defaults() -> None:
    assert merge_settings() == DEFAULT_SESSION_SETTINGS
    assert merge_settings() is not DEFAULT_SESSION_SETTINGS


def test_merge_overrides_and_ignores_unknown_keys(caplog) -> None:
    settings = merge_settings({"power_poll_ms": 500, "colour": "blue"})
    assert settings["power_poll_ms"] == 500
    assert "colour" not in settings
    assert "Ignoring unknown setting: colour" in caplog.text


@pytest.mark.parametrize(
    "overrides",
    [{"zero_ack_policy": "forever"}, {"power_poll_ms": -1}, {"power_queue_limit": "5"}, {"zero_delay_ms": True}],
)
def test_merge_rejects_invalid_values(overrides) -> None:
    with pytest.raises(ValueError):
        merge_settings(overrides)


def test_missing_settings_file_gives_defaults(tmp_path) -> None:
    assert load_session_settings(tmp_path / "settings.json") == DEFAULT_SESSION_SETTINGS


def test_settings_file(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"zero_ack_policy": "timeout", "zero_ack_timeout_ms": 2000}), encoding="utf-8")
    settings = load_session_settings(path)
    assert settings["zero_ack_policy"] == "timeout"
    assert settings["zero_ack_timeout_ms"] == 2000
    assert settings["power_poll_ms"] == 250


@pytest.mark.parametrize("content", ["[1, 2]", "{not json"])
def test_invalid_settings_file(tmp_path, content) -> None:
    path = tmp_path / "settings.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError):
        load_session_settings(path)


def test_setup_logging_replaces_handlers(tmp_path) -> None:
    log_file = tmp_path / "app.log"
    logger = setup_logging("rf_test_logger", log_file)
    assert len(logger.handlers) == 2
    logger = setup_logging("rf_test_logger")
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
