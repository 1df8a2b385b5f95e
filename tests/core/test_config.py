# tests/core/test_config.py

import logging

import pytest

from rfid_bridge.core.config import BridgeConfig, DEFAULT_STATUS_INTERVAL
from rfid_bridge.core.exceptions import ConfigurationError


def test_defaults():
    config = BridgeConfig()
    assert config.mock_mode is False
    assert config.status_interval == DEFAULT_STATUS_INTERVAL
    assert config.rf_power_on_dbm == 30
    assert config.rf_power_off_dbm == 0
    assert config.connection_details == {'port': None, 'baudrate': 115200}
    assert config.port is None

def test_connection_details_merge_with_defaults():
    config = BridgeConfig(connection_details={'port': '/dev/ttyS1'})
    assert config.port == '/dev/ttyS1'
    assert config.connection_details['baudrate'] == 115200

@pytest.mark.parametrize("kwargs, key", [
    ({"mock_mode": "yes"}, "mock_mode"),
    ({"status_interval": 0}, "status_interval"),
    ({"status_interval": -1.5}, "status_interval"),
    ({"status_interval": True}, "status_interval"),
    ({"status_interval": "1"}, "status_interval"),
    ({"rf_power_on_dbm": 34}, "rf_power_on_dbm"),
    ({"rf_power_on_dbm": 30.0}, "rf_power_on_dbm"),
    ({"rf_power_off_dbm": -1}, "rf_power_off_dbm"),
    ({"rf_power_off_dbm": False}, "rf_power_off_dbm"),
    ({"connection_details": {'baudrate': 0}}, "connection_details.baudrate"),
    ({"connection_details": {'baudrate': "fast"}}, "connection_details.baudrate"),
])
def test_invalid_values(kwargs, key):
    with pytest.raises(ConfigurationError) as exc_info:
        BridgeConfig(**kwargs)
    assert exc_info.value.key == key

def test_from_dict_ignores_unknown_keys(caplog):
    with caplog.at_level(logging.WARNING):
        config = BridgeConfig.from_dict({"mock_mode": True, "status_interval": 0.25, "theme": "dark"})
    assert config.mock_mode is True
    assert config.status_interval == 0.25
    assert "Ignoring unknown configuration key 'theme'" in caplog.text

def test_from_dict_validates():
    with pytest.raises(ConfigurationError):
        BridgeConfig.from_dict({"status_interval": 0})
