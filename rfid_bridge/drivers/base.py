# rfid_bridge/drivers/base.py

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from rfid_bridge.core.exceptions import DriverNotInitializedError

logger = logging.getLogger(__name__)

# Output channels exposed by the reader's digital output block
OUTPUT_CHANNELS = (1, 2)


class AntennaId(Enum):
    """Antenna port identifiers as addressed by the reader SDK."""
    ANT1 = 1
    ANT2 = 2
    ANT3 = 3
    ANT4 = 4
    ANT5 = 5
    ANT6 = 6
    ANT7 = 7
    ANT8 = 8
    ANT9 = 9
    ANT10 = 10
    ANT11 = 11
    ANT12 = 12
    ANT13 = 13
    ANT14 = 14
    ANT15 = 15
    ANT16 = 16

    @classmethod
    def from_index(cls, index: int) -> Optional["AntennaId"]:
        """Maps a 1-based antenna index onto its identifier, or None if there is none."""
        return cls.__members__.get(f"ANT{index}")


@dataclass(frozen=True)
class TagInfo:
    """A single tag seen by an inventory round."""
    epc: str
    tid: Optional[str] = None
    rssi: Optional[float] = None
    antenna: Optional[int] = None


@dataclass(frozen=True)
class AntennaDescriptor:
    antenna_id: AntennaId
    enabled: bool
    power_dbm: Optional[int] = None


@dataclass(frozen=True)
class LineState:
    """State of one digital input (GPI) line."""
    name: str
    active: bool


@dataclass(frozen=True)
class StatusSnapshot:
    """Point-in-time view of the reader's input, output and antenna lines."""
    input: bool
    output: bool
    antenna: bool

    def as_dict(self) -> Dict[str, bool]:
        return {"input": self.input, "output": self.output, "antenna": self.antenna}


class StatusSampler(ABC):
    """
    Produces status snapshots for the broadcaster. A fresh sampler is created
    on every activation so that sequences always restart from the beginning.
    """

    def initial(self) -> Optional[StatusSnapshot]:
        """Snapshot emitted immediately on activation, or None to wait for the first tick."""
        return None

    @abstractmethod
    async def sample(self) -> Optional[StatusSnapshot]:
        """Returns the snapshot for the current tick, or None to skip it."""
        pass


class PollingSampler(StatusSampler):
    """Polls the driver's line status under the session lock on every tick."""

    def __init__(self, driver: "BaseDriver", lock: asyncio.Lock):
        self._driver = driver
        self._lock = lock

    async def sample(self) -> Optional[StatusSnapshot]:
        try:
            async with self._lock:
                return await self._driver.read_status()
        except Exception as e:
            # A failed poll skips this tick; the subscription stays alive
            logger.debug(f"Status poll failed, skipping snapshot: {e}")
            return None


class BaseDriver(ABC):
    """
    Abstract base class for all reader drivers.

    Defines the capability set consumed by the command dispatcher and the
    status broadcaster. Concrete implementations either talk to hardware
    through a vendor SDK or fabricate synthetic data.
    """

    def __init__(self, connection_details: Optional[Dict[str, Any]] = None):
        """
        Args:
            connection_details: Parameters needed to reach the reader
                                (e.g. {'port': '/dev/ttyS1', 'baudrate': 115200}).
        """
        self._connection_details = dict(connection_details or {})
        self._initialized = False

    @property
    def connection_details(self) -> Dict[str, Any]:
        return self._connection_details

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def _require_initialized(self, operation: str) -> None:
        """Raises DriverNotInitializedError unless init() succeeded and release() has not run."""
        if not self._initialized:
            raise DriverNotInitializedError(operation)

    @abstractmethod
    async def init(self) -> bool:
        """Opens the reader. Returns True when the reader is ready for commands."""
        pass

    @abstractmethod
    async def inventory_single_tag(self) -> Optional[TagInfo]:
        """Runs one inventory round and returns the first tag found, if any."""
        pass

    @abstractmethod
    async def write_epc(self, current_epc: str, new_epc: str) -> bool:
        """Overwrites the EPC of the tag currently reporting `current_epc`."""
        pass

    @abstractmethod
    async def list_antennas(self) -> List[AntennaDescriptor]:
        pass

    @abstractmethod
    async def set_antenna_power(self, antenna_id: AntennaId, power_dbm: int) -> bool:
        pass

    @abstractmethod
    async def read_input_status(self) -> List[LineState]:
        pass

    @abstractmethod
    async def set_output(self, channel: int, on: bool) -> None:
        pass

    @abstractmethod
    async def start_inventory(self) -> bool:
        pass

    @abstractmethod
    async def stop_inventory(self) -> bool:
        pass

    @abstractmethod
    async def release(self) -> None:
        """Frees the reader handle. Safe to call more than once."""
        pass

    @abstractmethod
    async def read_status(self) -> StatusSnapshot:
        """Reads the current input/output/antenna line states."""
        pass

    def create_status_sampler(self, lock: asyncio.Lock) -> StatusSampler:
        """Returns the sampler the broadcaster uses for this driver."""
        return PollingSampler(self, lock)

    async def __aenter__(self):
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.release()
