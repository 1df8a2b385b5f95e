# rfid_bridge/core/session.py

import asyncio
import logging
from typing import Any, Awaitable, Callable, Coroutine, List

from rfid_bridge.core.exceptions import DriverError
from rfid_bridge.core.status import SessionState
from rfid_bridge.drivers.base import BaseDriver, StatusSampler

logger = logging.getLogger(__name__)

StateChangeCallback = Callable[[SessionState], Any]
TeardownHook = Callable[[], Coroutine[Any, Any, None]]


class Session:
    """
    Owns the single shared driver handle and tracks its lifecycle:
    UNINITIALIZED -> READY -> (READING <-> READY) -> RELEASED.

    The dispatcher and the broadcaster both receive the same Session and
    access the driver only through `call()` (or the session lock), so no two
    hardware calls ever overlap.
    """

    def __init__(self, driver: BaseDriver):
        if not isinstance(driver, BaseDriver):
            raise TypeError("driver must be an instance of BaseDriver")
        self._driver = driver
        self._state = SessionState.UNINITIALIZED
        self._lock = asyncio.Lock()
        self._state_callbacks: List[StateChangeCallback] = []
        self._teardown_hooks: List[TeardownHook] = []
        logger.debug(f"Session created with driver {type(driver).__name__}")

    @property
    def driver(self) -> BaseDriver:
        return self._driver

    @property
    def lock(self) -> asyncio.Lock:
        """Guards every access to the driver handle."""
        return self._lock

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state in (SessionState.READY, SessionState.READING)

    @property
    def is_reading(self) -> bool:
        return self._state == SessionState.READING

    # --- Callbacks ---

    def add_state_callback(self, callback: StateChangeCallback) -> None:
        """Registers a sync or async callback invoked with each new SessionState."""
        if not callable(callback):
            raise TypeError("Callback must be callable")
        self._state_callbacks.append(callback)

    def remove_state_callback(self, callback: StateChangeCallback) -> None:
        try:
            self._state_callbacks.remove(callback)
        except ValueError:
            logger.warning(f"State callback {getattr(callback, '__name__', repr(callback))} was not registered")

    def add_teardown_hook(self, hook: TeardownHook) -> None:
        """Registers an async hook run on release (e.g. stopping the status stream)."""
        if not asyncio.iscoroutinefunction(hook):
            raise TypeError("Teardown hook must be an async function (defined with 'async def')")
        self._teardown_hooks.append(hook)

    async def _set_state(self, new_state: SessionState) -> None:
        if self._state == new_state:
            return
        logger.info(f"Session state changed: {self._state.name} -> {new_state.name}")
        self._state = new_state
        for callback in list(self._state_callbacks):
            try:
                result = callback(new_state)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(f"Error in state callback {getattr(callback, '__name__', repr(callback))}: {e}")

    # --- Driver access ---

    async def call(self, func: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        """Runs one driver coroutine function while holding the session lock."""
        async with self._lock:
            return await func(*args)

    def create_status_sampler(self) -> StatusSampler:
        return self._driver.create_status_sampler(self._lock)

    # --- Lifecycle ---

    async def initialize(self) -> bool:
        """Initializes the driver handle. Returns the driver's readiness."""
        if self._state == SessionState.RELEASED:
            logger.info("Re-initializing a released session.")
        if self.is_ready:
            logger.warning("Session already initialized; re-running driver init.")
        ready = bool(await self.call(self._driver.init))
        await self._set_state(SessionState.READY if ready else SessionState.UNINITIALIZED)
        return ready

    async def mark_reading(self) -> None:
        if self._state == SessionState.RELEASED:
            logger.warning("Inventory started on a released session; state left as RELEASED.")
            return
        await self._set_state(SessionState.READING)

    async def mark_ready(self) -> None:
        if self._state == SessionState.READING:
            await self._set_state(SessionState.READY)

    async def release(self) -> None:
        """
        Releases the driver handle. Teardown hooks run on every call; the
        driver itself is freed only once per initialization.
        """
        for hook in list(self._teardown_hooks):
            try:
                await hook()
            except Exception as e:
                logger.exception(f"Error in session teardown hook: {e}")

        if self._state == SessionState.RELEASED:
            logger.debug("Session already released; driver handle left alone.")
            return

        try:
            async with self._lock:
                if self._state == SessionState.READING:
                    try:
                        await self._driver.stop_inventory()
                    except Exception as e:
                        logger.warning(f"Failed to stop inventory during release: {e}")
                await self._driver.release()
        except DriverError as e:
            logger.error(f"Error releasing driver handle: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error releasing driver handle: {e}")
        finally:
            # The handle is considered gone even if free() failed
            await self._set_state(SessionState.RELEASED)

    async def close(self) -> None:
        await self.release()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            logger.warning(f"Session ending abnormally ({exc_type.__name__}); releasing reader handle.")
        await self.release()
