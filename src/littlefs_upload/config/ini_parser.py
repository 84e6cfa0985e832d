"""
Project configuration file parser.

A sketch may carry a `littlefs_upload.ini` next to its sources so the board,
port and tool locations do not have to be repeated on every invocation.
"""

import configparser
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

CONFIG_FILENAME = "littlefs_upload.ini"
UPLOAD_SECTION = "upload"


class UploadConfigError(Exception):
    """Exception raised for littlefs_upload.ini errors."""

    pass


@dataclass
class UploadSettings:
    """Settings for one upload run.

    Values left as None are filled in from defaults or from the board
    details themselves.
    """

    fqbn: Optional[str] = None
    port: Optional[str] = None
    protocol: str = "serial"
    board_details: Optional[Path] = None
    arduino_cli: str = "arduino-cli"
    data_dir: str = "data"

    def merged(self, **overrides: Optional[object]) -> "UploadSettings":
        """Return a copy with every non-None override applied."""
        values = dict(self.__dict__)
        for key, value in overrides.items():
            if key not in values:
                raise UploadConfigError(f"Unknown setting: {key}")
            if value is not None:
                values[key] = value
        return UploadSettings(**values)


class UploadConfig:
    """
    Parser for littlefs_upload.ini.

    Example littlefs_upload.ini:
        [upload]
        fqbn = rp2040:rp2040:rpipico:flash=2097152_1048576
        port = /dev/ttyACM0
        board_details = build/board_details.json

    Usage:
        config = UploadConfig(Path("sketch/littlefs_upload.ini"))
        settings = config.get_settings()
    """

    KNOWN_KEYS = {"fqbn", "port", "protocol", "board_details", "arduino_cli", "data_dir"}

    def __init__(self, ini_path: Path):
        """
        Initialize the parser.

        Args:
            ini_path: Path to the littlefs_upload.ini file

        Raises:
            UploadConfigError: If the file doesn't exist or cannot be parsed
        """
        self.ini_path = ini_path

        if not ini_path.exists():
            raise UploadConfigError(f"Configuration file not found: {ini_path}")

        self.config = configparser.ConfigParser(
            interpolation=configparser.ExtendedInterpolation()
        )

        try:
            self.config.read(ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise UploadConfigError(f"Failed to parse {ini_path}: {e}") from e

    def get_section(self) -> Dict[str, str]:
        """Return the raw [upload] section, or an empty dict.

        Raises:
            UploadConfigError: On keys this tool does not understand
        """
        if UPLOAD_SECTION not in self.config:
            return {}

        section = {
            key: value.strip() for key, value in self.config[UPLOAD_SECTION].items()
        }
        unknown = set(section) - self.KNOWN_KEYS
        if unknown:
            raise UploadConfigError(
                f"Unknown keys in [{UPLOAD_SECTION}] of {self.ini_path}: "
                + ", ".join(sorted(unknown))
            )
        return section

    def get_settings(self) -> UploadSettings:
        """Return settings from the file; relative paths are resolved
        against the file's directory."""
        section = self.get_section()
        settings = UploadSettings()

        board_details = section.get("board_details")
        return settings.merged(
            fqbn=section.get("fqbn") or None,
            port=section.get("port") or None,
            protocol=section.get("protocol") or None,
            board_details=(
                self.ini_path.parent / board_details if board_details else None
            ),
            arduino_cli=section.get("arduino_cli") or None,
            data_dir=section.get("data_dir") or None,
        )


def load_project_settings(sketch_dir: Path) -> UploadSettings:
    """Load settings for a sketch, falling back to defaults when the sketch
    has no littlefs_upload.ini."""
    ini_path = sketch_dir / CONFIG_FILENAME
    if not ini_path.exists():
        return UploadSettings()
    return UploadConfig(ini_path).get_settings()
