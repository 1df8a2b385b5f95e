# rfid_bridge/utils/serial_scanner.py
"""Serial port discovery used to locate an RS232/USB-serial reader."""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import serial
import serial.tools.list_ports

logger = logging.getLogger(__name__)


@dataclass
class PortInfo:
    """A serial port candidate for the reader connection."""
    device: str                   # e.g. /dev/ttyS1, COM3
    description: str
    hwid: str
    vid: Optional[int] = None
    pid: Optional[int] = None
    manufacturer: Optional[str] = None
    accessible: bool = False      # Port could be opened
    error: Optional[str] = None   # Why it could not be opened


def _optional_str(value) -> Optional[str]:
    return str(value) if value is not None else None


def _optional_int(value, label: str, device: str) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        logger.warning(f"Could not parse {label} '{value}' for port {device}")
        return None


def check_port_access(device: str) -> tuple[bool, Optional[str]]:
    """Opens and closes `device` to see whether the reader port is usable.

    Returns:
        (accessible, reason) where reason is None when the port opened.
    """
    try:
        handle = serial.Serial(port=device, timeout=0.1)
        handle.close()
        return True, None
    except serial.SerialException as e:
        err_msg = str(e)
        if "Permission denied" in err_msg or "Access is denied" in err_msg:
            return False, "Permission denied"
        if "Device or resource busy" in err_msg:
            return False, "Busy"
        if "could not open port" in err_msg or "No such file" in err_msg:
            return False, "Device not found"
        logger.debug(f"SerialException opening {device}: {e}")
        return False, f"Cannot open ({type(e).__name__})"
    except OSError as e:
        logger.warning(f"OS error opening port {device}: {e}")
        return False, f"OS error ({type(e).__name__})"


def scan_serial_ports(check_access: bool = True) -> List[PortInfo]:
    """Lists serial ports, optionally opening each one to check access."""
    ports: List[PortInfo] = []
    for port in serial.tools.list_ports.comports():
        device = str(port.device) if port.device is not None else ""
        info = PortInfo(
            device=device,
            description=str(port.description or ""),
            hwid=str(port.hwid or ""),
            vid=_optional_int(port.vid, "VID", device),
            pid=_optional_int(port.pid, "PID", device),
            manufacturer=_optional_str(port.manufacturer),
        )
        if check_access:
            info.accessible, info.error = check_port_access(device)
        logger.debug(f"Found port {device}: accessible={info.accessible} error={info.error}")
        ports.append(info)

    logger.info(f"Serial scan complete. Found {len(ports)} ports.")
    return ports


def find_reader_port(vid_pid: Optional[Iterable[tuple[int, int]]] = None) -> Optional[str]:
    """Returns the first accessible port, preferring known reader VID/PID pairs."""
    candidates = [p for p in scan_serial_ports(check_access=True) if p.accessible]
    if vid_pid:
        wanted = set(vid_pid)
        for port in candidates:
            if (port.vid, port.pid) in wanted:
                logger.info(f"Selected reader port {port.device} by VID:PID match")
                return port.device
    if candidates:
        logger.info(f"Selected reader port {candidates[0].device}")
        return candidates[0].device
    logger.warning("No accessible serial port found for the reader.")
    return None
