# rfid_bridge/core/commands.py
"""Command and response types for the method channel."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from rfid_bridge.core.exceptions import CommandValidationError
from rfid_bridge.drivers.base import AntennaId

# Error code reported for any fault caught at the dispatcher boundary
NATIVE_EXCEPTION = "NATIVE_EXCEPTION"

ArgumentValue = Union[str, int, bool]
ResultValue = Union[bool, str, Dict[str, bool]]


class CommandName(str, Enum):
    """Method names accepted on the command channel."""
    INITIALIZE_READER = "initializeReader"
    READ_TAG = "readTag"
    READ_SINGLE_TAG = "readSingleTag"
    WRITE_TAG = "writeTag"
    WRITE_TAG_DATA = "writeTagData"
    SET_ANTENNA_CONFIGURATION = "setAntennaConfiguration"
    SET_RF_POWER = "setRfPower"
    READ_GPIO_VALUES = "readGpioValues"
    RELEASE_READER = "releaseReader"
    OUTPUT1_ON = "output1On"
    OUTPUT1_OFF = "output1Off"
    OUTPUT2_ON = "output2On"
    OUTPUT2_OFF = "output2Off"
    START_READING = "startReading"
    STOP_READING = "stopReading"

    @classmethod
    def lookup(cls, method: str) -> Optional["CommandName"]:
        try:
            return cls(method)
        except ValueError:
            return None


@dataclass(frozen=True)
class Command:
    """One invocation on the command channel."""
    name: CommandName
    arguments: Mapping[str, ArgumentValue] = field(default_factory=dict)

    @classmethod
    def from_call(cls, method: str, arguments: Optional[Mapping[str, Any]] = None) -> Optional["Command"]:
        """Builds a Command from a raw request; None if the method is unknown."""
        name = CommandName.lookup(method)
        if name is None:
            return None
        if arguments is not None and not isinstance(arguments, Mapping):
            raise CommandValidationError(f"arguments must be a mapping, got {type(arguments).__name__}")
        return cls(name=name, arguments=dict(arguments or {}))

    def _get(self, expected: type, keys: tuple, default: Any) -> Any:
        for key in keys:
            value = self.arguments.get(key)
            if value is None:
                continue
            # bool is an int subclass; keep them apart
            if isinstance(value, bool) and expected is not bool:
                raise CommandValidationError(f"expected {expected.__name__}, got bool", argument=key)
            if not isinstance(value, expected):
                raise CommandValidationError(
                    f"expected {expected.__name__}, got {type(value).__name__}", argument=key
                )
            return value
        return default

    def get_str(self, key: str, default: str = "", *fallback_keys: str) -> str:
        return self._get(str, (key,) + fallback_keys, default)

    def get_int(self, key: str, default: int = 0) -> int:
        return self._get(int, (key,), default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        return self._get(bool, (key,), default)


@dataclass(frozen=True)
class AntennaPowerSetting:
    """Requested power state for one antenna port."""
    antenna_index: int
    enabled: bool

    def resolve(self, on_dbm: int, off_dbm: int) -> tuple[AntennaId, int]:
        """Maps the setting onto an SDK antenna identifier and a power level."""
        antenna_id = AntennaId.from_index(self.antenna_index) if self.antenna_index > 0 else None
        if antenna_id is None:
            raise CommandValidationError(f"no antenna identifier ANT{self.antenna_index}", argument="antenna")
        return antenna_id, on_dbm if self.enabled else off_dbm


# --- Responses ---

@dataclass(frozen=True)
class Success:
    value: ResultValue

    def to_message(self) -> Dict[str, Any]:
        return {"ok": True, "value": self.value}


@dataclass(frozen=True)
class Failure:
    code: str
    message: str
    details: Any = None

    def to_message(self) -> Dict[str, Any]:
        return {"ok": False, "error": {"code": self.code, "message": self.message, "details": self.details}}


@dataclass(frozen=True)
class NotImplementedResponse:
    method: str

    def to_message(self) -> Dict[str, Any]:
        return {"ok": False, "notImplemented": True, "method": self.method}


CommandResult = Union[Success, Failure]
Response = Union[Success, Failure, NotImplementedResponse]
