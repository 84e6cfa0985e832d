"""
Image deployment for littlefs-upload.

This module writes built filesystem images to devices over serial.
"""

from .ports import SerialPortInfo, list_serial_ports
from .uploader import (
    ESP8266Uploader,
    IUploader,
    RP2040Uploader,
    create_uploader,
)

__all__ = [
    "IUploader",
    "RP2040Uploader",
    "ESP8266Uploader",
    "create_uploader",
    "SerialPortInfo",
    "list_serial_ports",
]
