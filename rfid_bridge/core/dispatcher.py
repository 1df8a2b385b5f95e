# rfid_bridge/core/dispatcher.py

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from rfid_bridge.core.broadcaster import StatusBroadcaster
from rfid_bridge.core.commands import (
    Command, CommandName, AntennaPowerSetting, Success, Failure, NotImplementedResponse,
    CommandResult, Response, ResultValue, NATIVE_EXCEPTION
)
from rfid_bridge.core.config import DEFAULT_RF_POWER_ON_DBM, DEFAULT_RF_POWER_OFF_DBM
from rfid_bridge.core.exceptions import CommandValidationError, DriverError
from rfid_bridge.core.session import Session

logger = logging.getLogger(__name__)

CommandHandler = Callable[[Command], Awaitable[ResultValue]]


class CommandDispatcher:
    """
    Routes method-channel commands to the session's driver and turns every
    outcome into exactly one response.

    Commands are processed one at a time in arrival order. Validation
    failures become ``Success(False)``, unexpected faults become a
    ``NATIVE_EXCEPTION`` failure and unknown method names get a
    ``NotImplementedResponse``.
    """

    def __init__(self, session: Session, broadcaster: Optional[StatusBroadcaster] = None,
                 power_on_dbm: int = DEFAULT_RF_POWER_ON_DBM, power_off_dbm: int = DEFAULT_RF_POWER_OFF_DBM):
        self._session = session
        self._broadcaster = broadcaster
        self._power_on_dbm = power_on_dbm
        self._power_off_dbm = power_off_dbm
        # Orders whole commands; the session lock only covers single driver calls
        self._command_lock = asyncio.Lock()

        self._handlers: Dict[CommandName, CommandHandler] = {
            CommandName.INITIALIZE_READER: self._initialize_reader,
            CommandName.READ_TAG: self._read_tag,
            CommandName.READ_SINGLE_TAG: self._read_tag,
            CommandName.WRITE_TAG: self._write_tag,
            CommandName.WRITE_TAG_DATA: self._write_tag,
            CommandName.SET_ANTENNA_CONFIGURATION: self._set_antenna_configuration,
            CommandName.SET_RF_POWER: self._set_rf_power,
            CommandName.READ_GPIO_VALUES: self._read_gpio_values,
            CommandName.RELEASE_READER: self._release_reader,
            CommandName.OUTPUT1_ON: self._output(1, True),
            CommandName.OUTPUT1_OFF: self._output(1, False),
            CommandName.OUTPUT2_ON: self._output(2, True),
            CommandName.OUTPUT2_OFF: self._output(2, False),
            CommandName.START_READING: self._start_reading,
            CommandName.STOP_READING: self._stop_reading,
        }

    @property
    def session(self) -> Session:
        return self._session

    async def handle(self, method: str, arguments: Optional[Mapping[str, Any]] = None) -> Response:
        """Handles one raw method-channel request."""
        async with self._command_lock:
            try:
                command = Command.from_call(method, arguments)
            except CommandValidationError as e:
                logger.warning(f"Rejected arguments for '{method}': {e}")
                return Success(False)
            if command is None:
                logger.warning(f"Method '{method}' is not implemented")
                return NotImplementedResponse(method)
            return await self._dispatch(command)

    async def dispatch(self, command: Command) -> CommandResult:
        """Handles an already-built Command."""
        async with self._command_lock:
            return await self._dispatch(command)

    async def _dispatch(self, command: Command) -> CommandResult:
        handler = self._handlers[command.name]
        logger.debug(f"Dispatching {command.name.value} with {dict(command.arguments)}")
        try:
            value = await handler(command)
        except CommandValidationError as e:
            logger.warning(f"Validation failed for {command.name.value}: {e}")
            return Success(False)
        except Exception as e:
            logger.exception(f"Unhandled fault while handling {command.name.value}: {e}")
            return Failure(code=NATIVE_EXCEPTION, message=f"Native exception: {e}")
        logger.debug(f"{command.name.value} -> {value!r}")
        return Success(value)

    # --- Command handlers ---

    async def _initialize_reader(self, command: Command) -> bool:
        logger.info("Attempting to initialize reader...")
        try:
            success = await self._session.initialize()
        except Exception as e:
            logger.error(f"Exception during reader init: {e}")
            return False
        logger.info(f"Reader init result: {success}")
        return success

    async def _read_tag(self, command: Command) -> str:
        driver = self._session.driver
        tag = await self._session.call(driver.inventory_single_tag)
        return tag.epc if tag is not None else ""

    async def _write_tag(self, command: Command) -> bool:
        current_epc = command.get_str("currentEpc")
        if command.name == CommandName.WRITE_TAG:
            # writeTag historically carried the new EPC as 'tagId'
            new_epc = command.get_str("newEpc", "", "tagId")
        else:
            new_epc = command.get_str("newEpc")
        driver = self._session.driver
        return bool(await self._session.call(driver.write_epc, current_epc, new_epc))

    async def _set_antenna_configuration(self, command: Command) -> bool:
        antenna = command.arguments.get("antenna", 1)
        driver = self._session.driver
        try:
            antennas = await self._session.call(driver.list_antennas)
        except DriverError as e:
            logger.warning(f"Antenna enumeration failed: {e}")
            antennas = []
        logger.debug(f"Antenna configuration requested for antenna {antenna}; {len(antennas)} antennas reported")
        for descriptor in antennas:
            logger.debug(f"Antenna {descriptor.antenna_id.name}: enabled={descriptor.enabled} power={descriptor.power_dbm}")
        return True

    async def _set_rf_power(self, command: Command) -> bool:
        setting = AntennaPowerSetting(
            antenna_index=command.get_int("antenna", 1),
            enabled=command.get_bool("enabled", True),
        )
        try:
            antenna_id, power_dbm = setting.resolve(self._power_on_dbm, self._power_off_dbm)
        except CommandValidationError as e:
            logger.error(f"Invalid antenna for RF power: {setting.antenna_index} ({e})")
            return False
        driver = self._session.driver
        try:
            return bool(await self._session.call(driver.set_antenna_power, antenna_id, power_dbm))
        except DriverError as e:
            logger.error(f"Setting RF power on {antenna_id.name} failed: {e}")
            return False

    async def _read_gpio_values(self, command: Command) -> Dict[str, bool]:
        driver = self._session.driver
        lines = await self._session.call(driver.read_input_status)
        for line in lines:
            logger.debug(f"GPI line {line.name}: active={line.active}")
        # Line states are only logged for now; the reported mapping stays empty
        return {}

    async def _release_reader(self, command: Command) -> bool:
        await self._session.release()
        return True

    def _output(self, channel: int, on: bool) -> CommandHandler:
        async def handler(command: Command) -> bool:
            driver = self._session.driver
            try:
                await self._session.call(driver.set_output, channel, on)
            except DriverError as e:
                logger.warning(f"Output {channel} {'on' if on else 'off'} failed: {e}")
            return True
        handler.__name__ = f"output{channel}_{'on' if on else 'off'}"
        return handler

    async def _start_reading(self, command: Command) -> bool:
        driver = self._session.driver
        try:
            started = bool(await self._session.call(driver.start_inventory))
        except DriverError as e:
            logger.error(f"Error starting RFID reading: {e}")
            return False
        if started:
            await self._session.mark_reading()
            if self._broadcaster is not None:
                self._broadcaster.start()
        return started

    async def _stop_reading(self, command: Command) -> bool:
        if self._broadcaster is not None:
            self._broadcaster.stop()
        driver = self._session.driver
        try:
            stopped = bool(await self._session.call(driver.stop_inventory))
        except DriverError as e:
            logger.error(f"Error stopping RFID reading: {e}")
            return False
        await self._session.mark_ready()
        return stopped
