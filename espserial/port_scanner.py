"""
Serial port enumeration.

Lists the serial devices visible to the host with whatever USB metadata
the OS reports.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import serial
import serial.tools.list_ports

logger = logging.getLogger(__name__)


@dataclass
class PortInfo:
    """One serial device as reported by pyserial."""
    device: str
    description: str = ""
    manufacturer: Optional[str] = None
    serial_number: Optional[str] = None
    vid: Optional[int] = None

    @property
    def vendor_id(self) -> Optional[str]:
        """Vendor id as a 4-digit hex string (e.g. '1a86'), if known."""
        if self.vid is None:
            return None
        return f"{self.vid:04x}"


def list_ports() -> List[PortInfo]:
    """
    Enumerate available serial ports

    Returns:
        PortInfo list sorted by device name
        Example: [PortInfo(device="/dev/ttyUSB0", ...), ...]
    """
    ports = []
    for port_info in serial.tools.list_ports.comports():
        ports.append(PortInfo(
            device=port_info.device,
            description=port_info.description or "",
            manufacturer=port_info.manufacturer,
            serial_number=port_info.serial_number,
            vid=port_info.vid,
        ))

    ports.sort(key=lambda p: p.device)
    return ports


def scan_ports() -> List[PortInfo]:
    """Print a numbered listing of the available ports and return them."""
    try:
        ports = list_ports()
    except (serial.SerialException, OSError) as e:
        logger.error("Error scanning ports: %s", e)
        return []

    print("Available serial ports:")
    for index, port in enumerate(ports, start=1):
        print(f"{index}. {port.device}")
        if port.manufacturer:
            print(f"   Manufacturer: {port.manufacturer}")
        if port.serial_number:
            print(f"   Serial: {port.serial_number}")
        if port.vendor_id:
            print(f"   Vendor ID: {port.vendor_id}")
        print("---")
    return ports
