"""Reader driver implementations for the rfid_bridge library."""

import logging
from typing import Any, Optional

from .base import (
    BaseDriver,
    StatusSampler,
    PollingSampler,
    AntennaId,
    AntennaDescriptor,
    LineState,
    StatusSnapshot,
    TagInfo,
)
from .simulated import SimulatedDriver, ToggleSampler
from .hardware import HardwareDriver

logger = logging.getLogger(__name__)


def create_driver(config, sdk: Optional[Any] = None) -> BaseDriver:
    """Selects the driver variant for a session from `config.mock_mode`."""
    if config.mock_mode:
        logger.info("Mock mode enabled: using SimulatedDriver")
        return SimulatedDriver(config.connection_details)
    logger.info(f"Hardware mode: reader port {config.port or 'auto-detect'}")
    return HardwareDriver(sdk, config.connection_details)


__all__ = [
    'BaseDriver',
    'StatusSampler',
    'PollingSampler',
    'AntennaId',
    'AntennaDescriptor',
    'LineState',
    'StatusSnapshot',
    'TagInfo',
    'SimulatedDriver',
    'ToggleSampler',
    'HardwareDriver',
    'create_driver',
]
