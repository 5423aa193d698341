# tests/test_config_and_logging.py
import json
import logging

import pytest
from pydantic import ValidationError

from rentwise.adapters.config import AppConfig
from rentwise.adapters.logging_utils import JsonLogFormatter, get_logger


def test_defaults():
    cfg = AppConfig(_env_file=None)
    assert cfg.provider_weights() == {"hud_fmr": 0.45, "zori": 0.35, "rentcast_listings": 0.20}
    assert cfg.provider_timeouts()["zori"] == 2.0


def test_env_overrides_with_percent_weights(monkeypatch):
    monkeypatch.setenv("RENTWISE_WEIGHT_HUD", "60%")
    monkeypatch.setenv("RENTWISE_WEIGHT_ZORI", "0.3")
    monkeypatch.setenv("RENTWISE_TIMEOUT_LISTINGS_S", "3")
    cfg = AppConfig(_env_file=None)

    assert cfg.WEIGHT_HUD == pytest.approx(0.6)
    assert cfg.WEIGHT_ZORI == pytest.approx(0.3)
    assert cfg.TIMEOUT_LISTINGS_S == 3.0


def test_bad_timeout_is_rejected(monkeypatch):
    monkeypatch.setenv("RENTWISE_TIMEOUT_HUD_S", "0")
    with pytest.raises(ValidationError):
        AppConfig(_env_file=None)


def test_json_formatter_merges_context():
    record = logging.makeLogRecord(
        {"name": "rentwise.test", "levelname": "WARNING", "msg": "provider_unavailable", "context": {"provider_id": "zori"}}
    )
    payload = json.loads(JsonLogFormatter().format(record))

    assert payload["event"] == "provider_unavailable"
    assert payload["provider_id"] == "zori"
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "rentwise.test"


def test_get_logger_is_idempotent():
    a = get_logger("rentwise.test.idempotent")
    b = get_logger("rentwise.test.idempotent")
    assert a is b
    assert len(a.handlers) == 1
