"""Configuration parsing modules for littlefs-upload."""

from .arduino_cli import ArduinoCli
from .board_metadata import BoardMetadata, ConfigOption, OptionValue
from .ini_parser import UploadConfig, UploadConfigError, UploadSettings
from .layout_resolver import (
    ConfigResolver,
    FamilyProfile,
    FilesystemLayout,
    PortInfo,
    UploadTarget,
    get_family_profile,
)

__all__ = [
    "ArduinoCli",
    "BoardMetadata",
    "ConfigOption",
    "OptionValue",
    "UploadConfig",
    "UploadConfigError",
    "UploadSettings",
    "ConfigResolver",
    "FamilyProfile",
    "FilesystemLayout",
    "PortInfo",
    "UploadTarget",
    "get_family_profile",
]
