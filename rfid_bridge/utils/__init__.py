"""Helper utilities for the rfid_bridge library."""

from .serial_scanner import PortInfo, scan_serial_ports, find_reader_port, check_port_access

__all__ = [
    'PortInfo',
    'scan_serial_ports',
    'find_reader_port',
    'check_port_access',
]
