# rfid_bridge/core/broadcaster.py

import asyncio
import logging
from typing import Any, Callable, Coroutine, Optional

from rfid_bridge.core.session import Session
from rfid_bridge.core.status import BroadcasterState
from rfid_bridge.drivers.base import StatusSampler, StatusSnapshot

logger = logging.getLogger(__name__)

# Sink receives each StatusSnapshot in emission order
StatusSink = Callable[[StatusSnapshot], Coroutine[Any, Any, None]]

DEFAULT_STATUS_INTERVAL = 1.0


class StatusBroadcaster:
    """
    Streams reader status snapshots to a single subscriber.

    IDLE: no timer task. ACTIVE: exactly one timer task emitting a snapshot
    every `interval` seconds. The snapshots come from a sampler provided by
    the session's driver (synthetic toggler or real polling).
    """

    def __init__(self, session: Session, interval: float = DEFAULT_STATUS_INTERVAL):
        if interval <= 0:
            raise ValueError("interval must be greater than zero")
        self._session = session
        self._interval = interval
        self._sink: Optional[StatusSink] = None
        self._task: Optional[asyncio.Task] = None
        # Bumped on every start/stop; deliveries from an older generation are dropped
        self._generation = 0

    @property
    def state(self) -> BroadcasterState:
        if self._task is not None and not self._task.done():
            return BroadcasterState.ACTIVE
        return BroadcasterState.IDLE

    @property
    def is_active(self) -> bool:
        return self.state == BroadcasterState.ACTIVE

    @property
    def has_listener(self) -> bool:
        return self._sink is not None

    @property
    def interval(self) -> float:
        return self._interval

    async def listen(self, sink: StatusSink) -> None:
        """Attaches `sink` as the subscriber (replacing any previous one) and starts the stream."""
        if not asyncio.iscoroutinefunction(sink):
            raise TypeError("Status sink must be an async function (defined with 'async def')")
        if self._sink is not None and self._sink is not sink:
            logger.info("Replacing existing status listener.")
        self._sink = sink
        self.start()

    async def cancel(self) -> None:
        """Detaches the subscriber and stops the stream."""
        self._sink = None
        await self.shutdown()
        logger.debug("Status listener cancelled.")

    def start(self) -> None:
        """Starts the timer task. A second start while active is a no-op."""
        if self.is_active:
            logger.debug("Status broadcaster already active; start ignored.")
            return
        sampler = self._session.create_status_sampler()
        self._generation += 1
        self._task = asyncio.create_task(self._run(sampler, self._generation))
        logger.info(f"Status broadcaster started (interval={self._interval}s, sampler={type(sampler).__name__})")

    def stop(self) -> None:
        """
        Cancels the timer task and drops its handle. No snapshot is delivered
        after this returns, even if a tick was already due.
        """
        self._generation += 1
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.info("Status broadcaster stopped.")

    async def shutdown(self) -> None:
        """Stops the timer task and waits for it to finish unwinding."""
        task = self._task
        self.stop()
        if task is not None and task is not asyncio.current_task():
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def publish(self, snapshot: StatusSnapshot) -> None:
        """Pushes an externally observed snapshot to the current subscriber."""
        await self._deliver(snapshot, self._generation)

    async def _deliver(self, snapshot: StatusSnapshot, generation: int) -> None:
        sink = self._sink
        if sink is None or generation != self._generation:
            return
        try:
            await sink(snapshot)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error in status sink {getattr(sink, '__name__', repr(sink))}: {e}")

    async def _run(self, sampler: StatusSampler, generation: int) -> None:
        try:
            initial = sampler.initial()
            if initial is not None:
                await self._deliver(initial, generation)
            while True:
                await asyncio.sleep(self._interval)
                snapshot = await sampler.sample()
                if snapshot is None:
                    continue
                await self._deliver(snapshot, generation)
        except asyncio.CancelledError:
            logger.debug("Status timer task cancelled.")
            raise
        except Exception as e:
            logger.exception(f"Status sampler failed, stopping stream: {e}")
