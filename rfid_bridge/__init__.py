"""RFID Bridge - asynchronous command/event bridge for UHF RFID readers."""

from .core import (
    RfidBridge,
    BridgeConfig,
    Session,
    SessionState,
    CommandDispatcher,
    StatusBroadcaster,
    Command,
    CommandName,
    Success,
    Failure,
    NotImplementedResponse,
    NATIVE_EXCEPTION,
    RfidBridgeError,
    DriverError,
    DriverNotInitializedError,
    CommandValidationError,
    SessionError,
    ConfigurationError,
)
from .drivers import (
    BaseDriver,
    SimulatedDriver,
    HardwareDriver,
    StatusSnapshot,
    create_driver,
)

__version__ = '0.1.0'

__all__ = [
    # Core components
    'RfidBridge',
    'BridgeConfig',
    'Session',
    'SessionState',
    'CommandDispatcher',
    'StatusBroadcaster',
    'Command',
    'CommandName',
    'Success',
    'Failure',
    'NotImplementedResponse',
    'NATIVE_EXCEPTION',
    # Exceptions
    'RfidBridgeError',
    'DriverError',
    'DriverNotInitializedError',
    'CommandValidationError',
    'SessionError',
    'ConfigurationError',
    # Drivers
    'BaseDriver',
    'SimulatedDriver',
    'HardwareDriver',
    'StatusSnapshot',
    'create_driver',
]
