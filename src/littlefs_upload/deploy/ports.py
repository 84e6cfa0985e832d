"""
Serial port discovery.

Lists the serial ports pyserial can see so users can pick the `--port` value.
"""

from dataclasses import dataclass
from typing import List

import serial.tools.list_ports

# Substrings that usually identify a USB-serial bridge or a native USB board
KNOWN_DEVICE_HINTS = ["cp210", "ch340", "usb-serial", "uart", "pico", "rp2040", "esp"]


@dataclass
class SerialPortInfo:
    """A serial port reported by the OS."""

    device: str
    description: str = ""
    manufacturer: str = ""

    @property
    def likely_board(self) -> bool:
        text = f"{self.description} {self.manufacturer}".lower()
        return any(hint in text for hint in KNOWN_DEVICE_HINTS)


def list_serial_ports() -> List[SerialPortInfo]:
    """Return available serial ports, likely boards first."""
    ports = [
        SerialPortInfo(
            device=port.device,
            description=port.description or "",
            manufacturer=port.manufacturer or "",
        )
        for port in serial.tools.list_ports.comports()
    ]
    return sorted(ports, key=lambda p: (not p.likely_board, p.device))
