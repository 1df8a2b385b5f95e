# rfid_bridge/drivers/simulated.py

import asyncio
import logging
import random
from typing import Any, Dict, List, Optional

from rfid_bridge.drivers.base import (
    BaseDriver, StatusSampler, AntennaId, AntennaDescriptor, LineState,
    StatusSnapshot, TagInfo, OUTPUT_CHANNELS
)

logger = logging.getLogger(__name__)

FAKE_TAG_PREFIX = "FAKE_TAG_"
SIMULATED_ANTENNAS = (AntennaId.ANT1, AntennaId.ANT2, AntennaId.ANT3, AntennaId.ANT4)


class ToggleSampler(StatusSampler):
    """
    Synthetic status sequence: all lines active on activation, then on every
    tick `input` and `antenna` share a toggled value and `output` is its
    complement. The toggle starts at False on the first tick.
    """

    def __init__(self):
        self._toggle = False

    def initial(self) -> Optional[StatusSnapshot]:
        return StatusSnapshot(input=True, output=True, antenna=True)

    async def sample(self) -> Optional[StatusSnapshot]:
        snapshot = StatusSnapshot(input=self._toggle, output=not self._toggle, antenna=self._toggle)
        self._toggle = not self._toggle
        return snapshot


class SimulatedDriver(BaseDriver):
    """
    A driver that needs no hardware.

    Returns randomized tag identifiers of a fixed shape and accepts every
    write, power and antenna request, so all dispatcher paths can be
    exercised without a reader attached. Like the hardware driver, every
    operation except init() and release() raises DriverNotInitializedError
    while the handle is not open.
    """

    def __init__(self, connection_details: Optional[Dict[str, Any]] = None, name: str = "Simulated",
                 rng: Optional[random.Random] = None):
        super().__init__(connection_details)
        self._name = name
        self._rng = rng or random.Random()
        self._outputs: Dict[int, bool] = {channel: False for channel in OUTPUT_CHANNELS}
        self._antenna_power: Dict[AntennaId, int] = {}
        self._inventory_running = False
        self._written: List[tuple[str, str]] = [] # Inspected by tests
        logger.info(f"SimulatedDriver '{self._name}' created.")

    @property
    def inventory_running(self) -> bool:
        return self._inventory_running

    @property
    def outputs(self) -> Dict[int, bool]:
        return dict(self._outputs)

    @property
    def antenna_power(self) -> Dict[AntennaId, int]:
        return dict(self._antenna_power)

    @property
    def written(self) -> List[tuple[str, str]]:
        return list(self._written)

    async def init(self) -> bool:
        logger.info(f"[{self._name}] Simulated reader initialized.")
        self._initialized = True
        return True

    async def inventory_single_tag(self) -> Optional[TagInfo]:
        self._require_initialized("inventory_single_tag")
        await asyncio.sleep(0) # Yield like a real round trip would
        epc = f"{FAKE_TAG_PREFIX}{self._rng.randint(1000, 9999)}"
        logger.debug(f"[{self._name}] Returning fake tag {epc}")
        return TagInfo(epc=epc, antenna=1)

    async def write_epc(self, current_epc: str, new_epc: str) -> bool:
        self._require_initialized("write_epc")
        logger.debug(f"[{self._name}] Pretending to write EPC '{current_epc}' -> '{new_epc}'")
        self._written.append((current_epc, new_epc))
        return True

    async def list_antennas(self) -> List[AntennaDescriptor]:
        self._require_initialized("list_antennas")
        return [
            AntennaDescriptor(antenna_id=ant, enabled=self._antenna_power.get(ant, 0) > 0,
                              power_dbm=self._antenna_power.get(ant))
            for ant in SIMULATED_ANTENNAS
        ]

    async def set_antenna_power(self, antenna_id: AntennaId, power_dbm: int) -> bool:
        self._require_initialized("set_antenna_power")
        logger.debug(f"[{self._name}] Pretending to set {antenna_id.name} to {power_dbm} dBm")
        self._antenna_power[antenna_id] = power_dbm
        return True

    async def read_input_status(self) -> List[LineState]:
        self._require_initialized("read_input_status")
        return [LineState(name="gpio1", active=True), LineState(name="gpio2", active=False)]

    async def set_output(self, channel: int, on: bool) -> None:
        self._require_initialized("set_output")
        if channel not in self._outputs:
            logger.warning(f"[{self._name}] Ignoring unknown output channel {channel}")
            return
        self._outputs[channel] = on

    async def start_inventory(self) -> bool:
        self._require_initialized("start_inventory")
        self._inventory_running = True
        return True

    async def stop_inventory(self) -> bool:
        self._require_initialized("stop_inventory")
        self._inventory_running = False
        return True

    async def release(self) -> None:
        if self._initialized:
            logger.info(f"[{self._name}] Simulated reader released.")
        self._initialized = False
        self._inventory_running = False

    async def read_status(self) -> StatusSnapshot:
        inputs = await self.read_input_status()
        return StatusSnapshot(
            input=any(line.active for line in inputs),
            output=any(self._outputs.values()),
            antenna=any(power > 0 for power in self._antenna_power.values()),
        )

    def create_status_sampler(self, lock: asyncio.Lock) -> StatusSampler:
        return ToggleSampler()
