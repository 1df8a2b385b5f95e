# rfid_bridge/core/exceptions.py

"""Custom exceptions for the rfid_bridge library."""

from typing import Optional


class RfidBridgeError(Exception):
    """Base exception class for all rfid_bridge errors."""
    def __init__(self, message="An unspecified RFID bridge error occurred."):
        super().__init__(message)


# --- Driver Layer Exceptions ---

class DriverError(RfidBridgeError):
    """
    Base exception for errors raised by a device driver (hardware SDK or
    simulation). It often wraps the lower-level exception thrown by the
    vendor SDK.
    """
    def __init__(self, message="Device driver error.", original_exception: Exception | None = None):
        """
        Args:
            message: A description of the driver error.
            original_exception: The underlying exception raised by the vendor SDK.
        """
        super().__init__(message)
        self.original_exception = original_exception

    def __str__(self):
        base_msg = super().__str__()
        if self.original_exception:
            orig_exc_type = type(self.original_exception).__name__
            orig_exc_msg = str(self.original_exception)
            return f"{base_msg} Original exception: [{orig_exc_type}] {orig_exc_msg}"
        return base_msg


class DriverNotInitializedError(DriverError):
    """
    Raised when a hardware call is attempted on a driver handle that was never
    initialized or has already been released.
    """
    def __init__(self, operation: Optional[str] = None):
        msg = "Reader handle is not initialized"
        if operation:
            msg += f" (operation: {operation})"
        super().__init__(msg)
        self.operation = operation


# --- Command Layer Exceptions ---

class CommandValidationError(RfidBridgeError):
    """
    Raised when command arguments are malformed or cannot be mapped onto a
    driver value (for example an antenna index with no antenna identifier).
    The dispatcher reports these as a boolean ``False`` result, not as a fault.
    """
    def __init__(self, message="Invalid command arguments.", argument: Optional[str] = None):
        msg = message
        if argument:
            msg = f"Invalid argument '{argument}': {message}"
        super().__init__(msg)
        self.argument = argument


# --- Session / Configuration Exceptions ---

class SessionError(RfidBridgeError):
    """Raised on invalid session lifecycle usage (e.g. reusing a released session)."""
    def __init__(self, message="Session error."):
        super().__init__(message)


class ConfigurationError(RfidBridgeError):
    """Raised when the bridge configuration is invalid or incomplete."""
    def __init__(self, message="Invalid bridge configuration.", key: Optional[str] = None):
        msg = message
        if key:
            msg = f"Configuration key '{key}': {message}"
        super().__init__(msg)
        self.key = key
