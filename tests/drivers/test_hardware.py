# tests/drivers/test_hardware.py

import asyncio
import time
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from rfid_bridge.core.exceptions import ConfigurationError, DriverError, DriverNotInitializedError
from rfid_bridge.drivers.base import AntennaId, LineState, PollingSampler, StatusSnapshot, TagInfo
from rfid_bridge.drivers.hardware import HardwareDriver


@pytest.fixture
def sdk() -> MagicMock:
    sdk = MagicMock()
    sdk.init.return_value = True
    sdk.inventory_single_tag.return_value = SimpleNamespace(epc="E200001", tid="T1", rssi=-52.5, ant=2)
    sdk.write_data_to_epc.return_value = True
    sdk.get_ant.return_value = [
        SimpleNamespace(antenna="ANT1", enabled=True, power=30),
        SimpleNamespace(antenna=2, enabled=False, power=0),
        SimpleNamespace(antenna="ANT99", enabled=True),
    ]
    sdk.set_antenna_power.return_value = True
    sdk.input_status.return_value = [
        SimpleNamespace(name="gpi1", state=False),
        SimpleNamespace(name="gpi2", state=True),
    ]
    sdk.start_inventory_tag.return_value = True
    sdk.stop_inventory.return_value = True
    return sdk

@pytest.fixture
def driver(sdk: MagicMock) -> HardwareDriver:
    return HardwareDriver(sdk, {'port': '/dev/ttyS1', 'baudrate': 115200})

@pytest.fixture
def ready_driver(driver: HardwareDriver) -> HardwareDriver:
    """A driver whose SDK handle counts as opened."""
    driver._initialized = True
    return driver


def test_requires_sdk():
    with pytest.raises(ConfigurationError) as exc_info:
        HardwareDriver(None)
    assert exc_info.value.key == "sdk"

@pytest.mark.asyncio
async def test_init_uses_configured_port(driver: HardwareDriver, sdk: MagicMock):
    assert await driver.init() is True
    sdk.init.assert_called_once_with('/dev/ttyS1', 115200)
    assert driver.is_initialized

@pytest.mark.asyncio
async def test_init_failure_leaves_driver_uninitialized(driver: HardwareDriver, sdk: MagicMock):
    sdk.init.return_value = False
    assert await driver.init() is False
    assert not driver.is_initialized

@pytest.mark.asyncio
async def test_init_detects_port(sdk: MagicMock):
    driver = HardwareDriver(sdk, {'baudrate': 57600})
    with patch("rfid_bridge.drivers.hardware.find_reader_port", return_value="/dev/ttyUSB0") as finder:
        assert await driver.init() is True
    finder.assert_called_once()
    sdk.init.assert_called_once_with('/dev/ttyUSB0', 57600)
    assert driver.connection_details['port'] == '/dev/ttyUSB0'

@pytest.mark.asyncio
async def test_port_detection_does_not_block_event_loop(sdk: MagicMock):
    driver = HardwareDriver(sdk, {})
    ticks = 0

    def slow_scan():
        time.sleep(0.1)
        return "/dev/ttyUSB1"

    async def ticker():
        nonlocal ticks
        while True:
            await asyncio.sleep(0.01)
            ticks += 1

    ticker_task = asyncio.create_task(ticker())
    try:
        with patch("rfid_bridge.drivers.hardware.find_reader_port", side_effect=slow_scan):
            assert await driver.init() is True
    finally:
        ticker_task.cancel()
    # A scan running on the loop thread would freeze the ticker for the whole 0.1 s
    assert ticks >= 3
    sdk.init.assert_called_once_with('/dev/ttyUSB1', 115200)

@pytest.mark.asyncio
async def test_init_without_any_port(sdk: MagicMock):
    driver = HardwareDriver(sdk, {})
    with patch("rfid_bridge.drivers.hardware.find_reader_port", return_value=None):
        with pytest.raises(DriverError):
            await driver.init()
    sdk.init.assert_not_called()

@pytest.mark.asyncio
async def test_calls_require_initialization(driver: HardwareDriver, sdk: MagicMock):
    with pytest.raises(DriverNotInitializedError) as exc_info:
        await driver.inventory_single_tag()
    assert exc_info.value.operation == "inventory_single_tag"
    sdk.inventory_single_tag.assert_not_called()

@pytest.mark.asyncio
async def test_sdk_exception_is_wrapped(ready_driver: HardwareDriver, sdk: MagicMock):
    sdk.write_data_to_epc.side_effect = IOError("serial timeout")
    with pytest.raises(DriverError) as exc_info:
        await ready_driver.write_epc("A", "B")
    assert isinstance(exc_info.value.original_exception, IOError)
    assert "serial timeout" in str(exc_info.value)

@pytest.mark.asyncio
async def test_sdk_calls_run_off_the_event_loop(ready_driver: HardwareDriver, sdk: MagicMock):
    loop_thread = []

    def blocking_inventory():
        try:
            asyncio.get_running_loop()
            loop_thread.append(True)
        except RuntimeError:
            loop_thread.append(False)
        return None

    sdk.inventory_single_tag.side_effect = blocking_inventory
    assert await ready_driver.inventory_single_tag() is None
    assert loop_thread == [False]

@pytest.mark.asyncio
async def test_inventory_maps_tag(ready_driver: HardwareDriver):
    assert await ready_driver.inventory_single_tag() == TagInfo(epc="E200001", tid="T1", rssi=-52.5, antenna=2)

@pytest.mark.asyncio
async def test_inventory_without_epc(ready_driver: HardwareDriver, sdk: MagicMock):
    sdk.inventory_single_tag.return_value = SimpleNamespace(epc="")
    assert await ready_driver.inventory_single_tag() is None

@pytest.mark.asyncio
async def test_write_epc(ready_driver: HardwareDriver, sdk: MagicMock):
    assert await ready_driver.write_epc("OLD", "NEW") is True
    sdk.write_data_to_epc.assert_called_once_with("OLD", "NEW")

@pytest.mark.asyncio
async def test_list_antennas_skips_unknown(ready_driver: HardwareDriver):
    antennas = await ready_driver.list_antennas()
    assert [(a.antenna_id, a.enabled, a.power_dbm) for a in antennas] == [
        (AntennaId.ANT1, True, 30),
        (AntennaId.ANT2, False, 0),
    ]

@pytest.mark.asyncio
async def test_set_antenna_power_uses_identifier_name(ready_driver: HardwareDriver, sdk: MagicMock):
    assert await ready_driver.set_antenna_power(AntennaId.ANT3, 30) is True
    sdk.set_antenna_power.assert_called_once_with("ANT3", 30)

@pytest.mark.asyncio
async def test_read_input_status(ready_driver: HardwareDriver):
    assert await ready_driver.read_input_status() == [
        LineState(name="gpi1", active=False), LineState(name="gpi2", active=True)
    ]

@pytest.mark.asyncio
@pytest.mark.parametrize("channel, on, method", [
    (1, True, "output1_on"),
    (1, False, "output1_off"),
    (2, True, "output2_on"),
    (2, False, "output2_off"),
])
async def test_set_output(ready_driver: HardwareDriver, sdk: MagicMock, channel, on, method):
    await ready_driver.set_output(channel, on)
    getattr(sdk, method).assert_called_once_with()

@pytest.mark.asyncio
async def test_set_output_unknown_channel(ready_driver: HardwareDriver):
    with pytest.raises(DriverError):
        await ready_driver.set_output(3, True)

@pytest.mark.asyncio
async def test_inventory_start_stop(ready_driver: HardwareDriver, sdk: MagicMock):
    assert await ready_driver.start_inventory() is True
    assert await ready_driver.stop_inventory() is True
    sdk.start_inventory_tag.assert_called_once_with()
    sdk.stop_inventory.assert_called_once_with()

@pytest.mark.asyncio
async def test_release_frees_once(ready_driver: HardwareDriver, sdk: MagicMock):
    await ready_driver.release()
    await ready_driver.release()
    sdk.free.assert_called_once_with()
    assert not ready_driver.is_initialized

@pytest.mark.asyncio
async def test_release_before_init_does_nothing(driver: HardwareDriver, sdk: MagicMock):
    await driver.release()
    sdk.free.assert_not_called()

@pytest.mark.asyncio
async def test_failed_free_still_drops_handle(ready_driver: HardwareDriver, sdk: MagicMock):
    sdk.free.side_effect = RuntimeError("port vanished")
    with pytest.raises(DriverError):
        await ready_driver.release()
    assert not ready_driver.is_initialized

@pytest.mark.asyncio
async def test_read_status_aggregates_lines(ready_driver: HardwareDriver):
    assert await ready_driver.read_status() == StatusSnapshot(input=True, output=False, antenna=True)
    await ready_driver.set_output(2, True)
    assert (await ready_driver.read_status()).output is True

def test_uses_polling_sampler(driver: HardwareDriver):
    assert isinstance(driver.create_status_sampler(asyncio.Lock()), PollingSampler)
