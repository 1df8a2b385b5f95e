# examples/simulated_session.py
import asyncio
import logging

from rfid_bridge import RfidBridge, BridgeConfig, StatusSnapshot, Success, Failure

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s"
)
logger = logging.getLogger("SimulatedSessionExample")


async def on_status(snapshot: StatusSnapshot):
    """Receives each status snapshot from the event channel."""
    logger.info(f"Status: {snapshot.as_dict()}")


def describe(method: str, response) -> None:
    if isinstance(response, Success):
        logger.info(f"{method} -> {response.value!r}")
    elif isinstance(response, Failure):
        logger.error(f"{method} failed: [{response.code}] {response.message}")
    else:
        logger.warning(f"{method} is not implemented")


async def main():
    # Mock mode needs no reader; set mock_mode=False and pass sdk=... for hardware
    config = BridgeConfig(mock_mode=True, status_interval=0.5)

    async with RfidBridge(config) as bridge:
        describe("initializeReader", await bridge.invoke("initializeReader"))

        await bridge.listen(on_status)

        describe("readTag", await bridge.invoke("readTag"))
        describe("writeTagData", await bridge.invoke(
            "writeTagData", {"currentEpc": "E2000017221101441890", "newEpc": "E2000017221101441891"}
        ))
        describe("setRfPower", await bridge.invoke("setRfPower", {"antenna": 1, "enabled": True}))
        describe("setRfPower(99)", await bridge.invoke("setRfPower", {"antenna": 99}))
        describe("output1On", await bridge.invoke("output1On"))
        describe("startReading", await bridge.invoke("startReading"))

        logger.info("Streaming status for 3 seconds...")
        await asyncio.sleep(3)

        describe("stopReading", await bridge.invoke("stopReading"))
        describe("formatDisk", await bridge.invoke("formatDisk"))
        describe("releaseReader", await bridge.invoke("releaseReader"))

    logger.info("Bridge closed.")


if __name__ == "__main__":
    asyncio.run(main())
