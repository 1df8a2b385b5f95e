# rfid_bridge/core/bridge.py

import logging
from typing import Any, Mapping, Optional

from rfid_bridge.core.broadcaster import StatusBroadcaster, StatusSink
from rfid_bridge.core.commands import Response
from rfid_bridge.core.config import BridgeConfig
from rfid_bridge.core.dispatcher import CommandDispatcher
from rfid_bridge.core.exceptions import SessionError
from rfid_bridge.core.session import Session
from rfid_bridge.core.status import SessionState
from rfid_bridge.drivers import BaseDriver, create_driver

logger = logging.getLogger(__name__)


class RfidBridge:
    """
    Main entry point: wires one Session, its StatusBroadcaster and its
    CommandDispatcher together behind a method channel (`invoke`) and an
    event channel (`listen` / `cancel`).
    """

    def __init__(self, config: Optional[BridgeConfig] = None, sdk: Optional[Any] = None,
                 driver: Optional[BaseDriver] = None):
        """
        Args:
            config: Bridge settings; defaults to BridgeConfig().
            sdk: Vendor SDK handle, required in hardware mode.
            driver: Pre-built driver, overriding the mode switch (mainly for tests).
        """
        self._config = config or BridgeConfig()
        self._driver = driver or create_driver(self._config, sdk=sdk)
        self._session = Session(self._driver)
        self._broadcaster = StatusBroadcaster(self._session, interval=self._config.status_interval)
        self._dispatcher = CommandDispatcher(
            self._session,
            broadcaster=self._broadcaster,
            power_on_dbm=self._config.rf_power_on_dbm,
            power_off_dbm=self._config.rf_power_off_dbm,
        )
        # Ending the session always ends the status subscription
        self._session.add_teardown_hook(self._broadcaster.cancel)
        self._closed = False
        logger.debug(f"RfidBridge created (mock_mode={self._config.mock_mode}, driver={type(self._driver).__name__})")

    @property
    def config(self) -> BridgeConfig:
        return self._config

    @property
    def session(self) -> Session:
        return self._session

    @property
    def broadcaster(self) -> StatusBroadcaster:
        return self._broadcaster

    @property
    def dispatcher(self) -> CommandDispatcher:
        return self._dispatcher

    @property
    def state(self) -> SessionState:
        return self._session.state

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionError("Bridge is closed.")

    async def invoke(self, method: str, arguments: Optional[Mapping[str, Any]] = None) -> Response:
        """Sends one method-channel request and returns its response."""
        self._ensure_open()
        return await self._dispatcher.handle(method, arguments)

    async def listen(self, sink: StatusSink) -> None:
        """Subscribes `sink` to the status event channel."""
        self._ensure_open()
        await self._broadcaster.listen(sink)

    async def cancel(self) -> None:
        """Cancels the status subscription."""
        await self._broadcaster.cancel()

    async def close(self) -> None:
        """Stops the status stream and releases the reader handle."""
        if self._closed:
            return
        self._closed = True
        await self._broadcaster.cancel()
        await self._session.release()
        logger.info("RfidBridge closed.")

    async def __aenter__(self):
        self._ensure_open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            logger.warning(f"Bridge exiting on {exc_type.__name__}; releasing reader.")
        await self.close()
