"""
littlefs-upload - LittleFS filesystem uploader for Arduino boards.

Packs a sketch's data folder into a LittleFS image sized from the board's
flash menu and writes it to RP2040 or ESP8266 boards over serial.
"""

__version__ = "0.1.0"
