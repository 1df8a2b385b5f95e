"""Core components of the rfid_bridge library."""

# Import order matters: later modules depend on the earlier ones
from .exceptions import (
    RfidBridgeError,
    DriverError,
    DriverNotInitializedError,
    CommandValidationError,
    SessionError,
    ConfigurationError,
)
from .status import SessionState, BroadcasterState
from .config import BridgeConfig
from .commands import (
    Command,
    CommandName,
    AntennaPowerSetting,
    Success,
    Failure,
    NotImplementedResponse,
    NATIVE_EXCEPTION,
)
from .session import Session
from .broadcaster import StatusBroadcaster
from .dispatcher import CommandDispatcher
from .bridge import RfidBridge

__all__ = [
    'RfidBridgeError',
    'DriverError',
    'DriverNotInitializedError',
    'CommandValidationError',
    'SessionError',
    'ConfigurationError',
    'SessionState',
    'BroadcasterState',
    'BridgeConfig',
    'Command',
    'CommandName',
    'AntennaPowerSetting',
    'Success',
    'Failure',
    'NotImplementedResponse',
    'NATIVE_EXCEPTION',
    'Session',
    'StatusBroadcaster',
    'CommandDispatcher',
    'RfidBridge',
]
