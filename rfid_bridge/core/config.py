# rfid_bridge/core/config.py
"""Runtime configuration for an RFID bridge session."""

import logging
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional

from rfid_bridge.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION_SETTINGS: Dict[str, Any] = {
    'port': None,       # None: pick the first accessible serial port
    'baudrate': 115200,
}

DEFAULT_STATUS_INTERVAL = 1.0 # Seconds between status snapshots
DEFAULT_RF_POWER_ON_DBM = 30
DEFAULT_RF_POWER_OFF_DBM = 0


@dataclass
class BridgeConfig:
    """Settings selecting the driver mode and tuning the status stream."""
    mock_mode: bool = False
    status_interval: float = DEFAULT_STATUS_INTERVAL
    rf_power_on_dbm: int = DEFAULT_RF_POWER_ON_DBM
    rf_power_off_dbm: int = DEFAULT_RF_POWER_OFF_DBM
    connection_details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        merged = DEFAULT_CONNECTION_SETTINGS.copy()
        merged.update(self.connection_details or {})
        self.connection_details = merged
        self.validate()

    def validate(self) -> None:
        """Checks value ranges, raising ConfigurationError on the first bad key."""
        if not isinstance(self.mock_mode, bool):
            raise ConfigurationError("must be a boolean", key="mock_mode")
        if isinstance(self.status_interval, bool) or not isinstance(self.status_interval, (int, float)):
            raise ConfigurationError("must be a number", key="status_interval")
        if self.status_interval <= 0:
            raise ConfigurationError("must be greater than zero", key="status_interval")
        for key in ("rf_power_on_dbm", "rf_power_off_dbm"):
            value = getattr(self, key)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError("must be an integer", key=key)
            if not (0 <= value <= 33):
                raise ConfigurationError("must be between 0 and 33 dBm", key=key)
        baudrate = self.connection_details.get('baudrate')
        if not isinstance(baudrate, int) or baudrate <= 0:
            raise ConfigurationError("must be a positive integer", key="connection_details.baudrate")

    @property
    def port(self) -> Optional[str]:
        return self.connection_details.get('port')

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BridgeConfig":
        """Builds a config from a plain mapping (e.g. parsed JSON), ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key in known:
                kwargs[key] = value
            else:
                logger.warning(f"Ignoring unknown configuration key '{key}'")
        return cls(**kwargs)
