# rfid_bridge/drivers/hardware.py

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from rfid_bridge.core.exceptions import DriverError, ConfigurationError
from rfid_bridge.drivers.base import (
    BaseDriver, AntennaId, AntennaDescriptor, LineState, StatusSnapshot, TagInfo, OUTPUT_CHANNELS
)
from rfid_bridge.utils.serial_scanner import find_reader_port

logger = logging.getLogger(__name__)

# Vendor SDK method names for each output channel toggle
_OUTPUT_METHODS = {
    (1, True): "output1_on",
    (1, False): "output1_off",
    (2, True): "output2_on",
    (2, False): "output2_off",
}


class HardwareDriver(BaseDriver):
    """
    Driver for a physical UHF reader, backed by the vendor SDK handle.

    The SDK object is used duck-typed and is expected to expose:
    ``init(port, baudrate) -> bool``, ``inventory_single_tag() -> tag | None``
    (tag has ``.epc``, optionally ``.tid``/``.rssi``/``.ant``),
    ``write_data_to_epc(current, new) -> bool``, ``get_ant() -> list``
    (items have ``.antenna`` and ``.enabled``), ``set_antenna_power(name, dbm) -> bool``,
    ``input_status() -> list`` (items have ``.name`` and ``.state``),
    ``output1_on()`` .. ``output2_off()``, ``start_inventory_tag() -> bool``,
    ``stop_inventory() -> bool`` and ``free()``.

    SDK calls block on serial I/O, so each one runs in a worker thread. Every
    exception the SDK raises is wrapped in DriverError.
    """

    def __init__(self, sdk: Any, connection_details: Optional[Dict[str, Any]] = None):
        if sdk is None:
            raise ConfigurationError("HardwareDriver requires a vendor SDK handle", key="sdk")
        super().__init__(connection_details)
        self._sdk = sdk
        self._outputs: Dict[int, bool] = {channel: False for channel in OUTPUT_CHANNELS}
        logger.debug(f"HardwareDriver created with SDK {type(sdk).__name__}")

    async def _call(self, operation: str, func: Callable[..., Any], *args, require_init: bool = True) -> Any:
        """Runs a blocking SDK call in a worker thread and wraps its faults."""
        if require_init:
            self._require_initialized(operation)
        logger.debug(f"SDK call {operation}{args}")
        try:
            return await asyncio.to_thread(func, *args)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"SDK call {operation} failed: {e}")
            raise DriverError(f"Reader operation '{operation}' failed.", original_exception=e) from e

    async def _resolve_port(self) -> str:
        port = self._connection_details.get('port')
        if port:
            return port
        # Checking access opens every candidate port
        port = await asyncio.to_thread(find_reader_port)
        if not port:
            raise DriverError("No serial port configured and none could be detected.")
        self._connection_details['port'] = port
        return port

    async def init(self) -> bool:
        port = await self._resolve_port()
        baudrate = self._connection_details.get('baudrate', 115200)
        logger.info(f"Initializing reader on {port} @ {baudrate} baud...")
        success = bool(await self._call("init", self._sdk.init, port, baudrate, require_init=False))
        self._initialized = success
        logger.info(f"Reader init result: {success}")
        return success

    async def inventory_single_tag(self) -> Optional[TagInfo]:
        tag = await self._call("inventory_single_tag", self._sdk.inventory_single_tag)
        if tag is None or not getattr(tag, "epc", None):
            return None
        return TagInfo(
            epc=str(tag.epc),
            tid=getattr(tag, "tid", None),
            rssi=getattr(tag, "rssi", None),
            antenna=getattr(tag, "ant", None),
        )

    async def write_epc(self, current_epc: str, new_epc: str) -> bool:
        return bool(await self._call("write_data_to_epc", self._sdk.write_data_to_epc, current_epc, new_epc))

    async def list_antennas(self) -> List[AntennaDescriptor]:
        entries = await self._call("get_ant", self._sdk.get_ant) or []
        antennas: List[AntennaDescriptor] = []
        for entry in entries:
            raw = getattr(entry, "antenna", None)
            antenna_id = AntennaId.from_index(raw) if isinstance(raw, int) else AntennaId.__members__.get(str(raw))
            if antenna_id is None:
                logger.warning(f"Skipping unknown antenna entry from SDK: {entry!r}")
                continue
            antennas.append(AntennaDescriptor(
                antenna_id=antenna_id,
                enabled=bool(getattr(entry, "enabled", False)),
                power_dbm=getattr(entry, "power", None),
            ))
        return antennas

    async def set_antenna_power(self, antenna_id: AntennaId, power_dbm: int) -> bool:
        return bool(await self._call("set_antenna_power", self._sdk.set_antenna_power, antenna_id.name, power_dbm))

    async def read_input_status(self) -> List[LineState]:
        entries = await self._call("input_status", self._sdk.input_status) or []
        return [
            LineState(name=str(getattr(entry, "name", f"gpi{index}")), active=bool(getattr(entry, "state", False)))
            for index, entry in enumerate(entries, start=1)
        ]

    async def set_output(self, channel: int, on: bool) -> None:
        method_name = _OUTPUT_METHODS.get((channel, on))
        if method_name is None:
            raise DriverError(f"Unknown output channel {channel}.")
        await self._call(method_name, getattr(self._sdk, method_name))
        self._outputs[channel] = on

    async def start_inventory(self) -> bool:
        return bool(await self._call("start_inventory_tag", self._sdk.start_inventory_tag))

    async def stop_inventory(self) -> bool:
        return bool(await self._call("stop_inventory", self._sdk.stop_inventory))

    async def release(self) -> None:
        if not self._initialized:
            logger.debug("Release requested but reader is not initialized; nothing to free.")
            return
        try:
            await self._call("free", self._sdk.free)
            logger.info("Reader handle freed.")
        finally:
            # The handle is unusable after free(), even a failed one
            self._initialized = False

    async def read_status(self) -> StatusSnapshot:
        inputs = await self.read_input_status()
        antennas = await self.list_antennas()
        return StatusSnapshot(
            input=any(line.active for line in inputs),
            output=any(self._outputs.values()),
            antenna=any(ant.enabled for ant in antennas),
        )
