# tests/core/test_commands.py

import pytest

from rfid_bridge.core.commands import (
    AntennaPowerSetting, Command, CommandName, Failure, NATIVE_EXCEPTION,
    NotImplementedResponse, Success
)
from rfid_bridge.core.exceptions import CommandValidationError
from rfid_bridge.drivers.base import AntennaId


def test_all_channel_methods_are_known():
    methods = {
        "initializeReader", "readTag", "readSingleTag", "writeTag", "writeTagData",
        "setAntennaConfiguration", "setRfPower", "readGpioValues", "releaseReader",
        "output1On", "output1Off", "output2On", "output2Off", "startReading", "stopReading",
    }
    assert {name.value for name in CommandName} == methods

def test_lookup_unknown_method():
    assert CommandName.lookup("formatDisk") is None
    assert CommandName.lookup("readtag") is None # Case-sensitive

def test_from_call_unknown_returns_none():
    assert Command.from_call("formatDisk", {"x": 1}) is None

def test_from_call_copies_arguments():
    args = {"antenna": 2}
    command = Command.from_call("setRfPower", args)
    args["antenna"] = 3
    assert command.name == CommandName.SET_RF_POWER
    assert command.get_int("antenna") == 2

def test_from_call_rejects_non_mapping():
    with pytest.raises(CommandValidationError):
        Command.from_call("setRfPower", ["antenna", 1])

def test_from_call_without_arguments():
    command = Command.from_call("readTag")
    assert command.arguments == {}

def test_get_str_fallback_key():
    command = Command.from_call("writeTag", {"currentEpc": "A", "tagId": "B"})
    assert command.get_str("newEpc", "", "tagId") == "B"
    assert command.get_str("currentEpc") == "A"
    assert command.get_str("missing") == ""

def test_get_str_prefers_primary_key():
    command = Command.from_call("writeTag", {"newEpc": "C", "tagId": "B"})
    assert command.get_str("newEpc", "", "tagId") == "C"

@pytest.mark.parametrize("arguments, getter", [
    ({"antenna": "1"}, lambda c: c.get_int("antenna")),
    ({"antenna": True}, lambda c: c.get_int("antenna")),
    ({"enabled": 1}, lambda c: c.get_bool("enabled")),
    ({"currentEpc": 42}, lambda c: c.get_str("currentEpc")),
])
def test_wrong_argument_types(arguments, getter):
    command = Command.from_call("setRfPower", arguments)
    with pytest.raises(CommandValidationError) as exc_info:
        getter(command)
    assert exc_info.value.argument in arguments

def test_defaults_when_absent():
    command = Command.from_call("setRfPower", {"antenna": None})
    assert command.get_int("antenna") == 0
    assert command.get_bool("enabled") is False
    assert command.get_bool("enabled", True) is True


# --- Antenna power mapping ---

def test_antenna_power_enabled():
    assert AntennaPowerSetting(1, True).resolve(30, 0) == (AntennaId.ANT1, 30)

def test_antenna_power_disabled():
    assert AntennaPowerSetting(16, False).resolve(30, 0) == (AntennaId.ANT16, 0)

@pytest.mark.parametrize("index", [0, -1, 17, 99])
def test_antenna_power_without_identifier(index):
    with pytest.raises(CommandValidationError) as exc_info:
        AntennaPowerSetting(index, True).resolve(30, 0)
    assert f"ANT{index}" in str(exc_info.value)
    assert exc_info.value.argument == "antenna"


# --- Responses ---

def test_success_message():
    assert Success({"gpio1": True}).to_message() == {"ok": True, "value": {"gpio1": True}}

def test_failure_message():
    failure = Failure(NATIVE_EXCEPTION, "Native exception: boom")
    assert failure.to_message() == {
        "ok": False,
        "error": {"code": "NATIVE_EXCEPTION", "message": "Native exception: boom", "details": None},
    }

def test_not_implemented_message():
    assert NotImplementedResponse("formatDisk").to_message() == {
        "ok": False, "notImplemented": True, "method": "formatDisk"
    }
