"""
Filesystem layout resolution from board metadata.

Board packages describe the filesystem partition through menu-dependent build
properties. For the selected value of the family's sizing option the start
and end addresses live under:

    menu.<option>.<selected value>.build.<marker>

Example (rp2040, "flash" option set to 2097152_1048576):
    menu.flash.2097152_1048576.build.fs_start=0x10100000
    menu.flash.2097152_1048576.build.fs_end=0x10200000
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from littlefs_upload.config.board_metadata import BoardMetadata
from littlefs_upload.errors import (
    MissingFilesystemConfig,
    UnsupportedBoard,
    UnsupportedPort,
)

DEFAULT_UPLOAD_BAUD = 115200


@dataclass(frozen=True)
class FamilyProfile:
    """Property names and tool keys for one supported device family."""

    family: str
    sizing_option: str
    start_marker: str
    end_marker: str
    mklittlefs_key: str
    python3_key: str
    upload_script: str
    fixed_page_size: Optional[int] = None
    fixed_block_size: Optional[int] = None
    page_size_marker: Optional[str] = None
    block_size_marker: Optional[str] = None


# The RP2040 LittleFS driver is built with fixed 256 byte pages and 4K blocks
FAMILY_PROFILES: Dict[str, FamilyProfile] = {
    "rp2040": FamilyProfile(
        family="rp2040",
        sizing_option="flash",
        start_marker="fs_start",
        end_marker="fs_end",
        mklittlefs_key="runtime.tools.pqt-mklittlefs",
        python3_key="runtime.tools.pqt-python3",
        upload_script="tools/uf2conv.py",
        fixed_page_size=256,
        fixed_block_size=4096,
    ),
    "esp8266": FamilyProfile(
        family="esp8266",
        sizing_option="eesz",
        start_marker="spiffs_start",
        end_marker="spiffs_end",
        mklittlefs_key="runtime.tools.mklittlefs",
        python3_key="runtime.tools.python3",
        upload_script="tools/upload.py",
        page_size_marker="spiffs_pagesize",
        block_size_marker="spiffs_blocksize",
    ),
}


@dataclass(frozen=True)
class FilesystemLayout:
    """Filesystem geometry; `end` is exclusive."""

    start: int
    end: int
    page_size: int
    block_size: int

    @property
    def size(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class PortInfo:
    """Port selected by the user."""

    address: Optional[str]
    protocol: str = "serial"


@dataclass(frozen=True)
class UploadTarget:
    """Where and how the image is written."""

    family: str
    serial_port: str
    baud: int = DEFAULT_UPLOAD_BAUD


def parse_board_number(value: Optional[str]) -> Optional[int]:
    """
    Parse a numeric build property.

    Accepts decimal and 0x-prefixed hexadecimal. Returns None for missing,
    empty or unparseable values.

    Example:
        parse_board_number("0x300000")  # 3145728
        parse_board_number("256")       # 256
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    try:
        if text.lower().startswith("0x"):
            return int(text, 16)
        return int(text, 10)
    except ValueError:
        return None


def get_family_profile(board: BoardMetadata) -> FamilyProfile:
    """Return the profile for the board's family.

    Raises:
        UnsupportedBoard: If the family is not rp2040 or esp8266
    """
    profile = FAMILY_PROFILES.get(board.family)
    if profile is None:
        raise UnsupportedBoard("Only Arduino-Pico RP2040 and ESP8266 supported.")
    return profile


class ConfigResolver:
    """Computes filesystem geometry and upload parameters for a board."""

    def resolve(
        self, board: BoardMetadata, port: Optional[PortInfo] = None
    ) -> Tuple[FilesystemLayout, UploadTarget]:
        """
        Resolve the filesystem layout and upload target.

        Args:
            board: Board metadata with the current menu selection
            port: Selected port; validated when given

        Returns:
            Tuple of (FilesystemLayout, UploadTarget)

        Raises:
            UnsupportedBoard: If the board family is not supported
            MissingFilesystemConfig: If any geometry field is unresolved
            UnsupportedPort: If no serial port is selected
        """
        profile = get_family_profile(board)
        layout = self.resolve_layout(board, profile)
        baud = self.resolve_baud(board)
        serial_port = self.validate_port(port)

        logging.debug(
            f"Resolved {profile.family} layout: start=0x{layout.start:x} "
            f"end=0x{layout.end:x} page={layout.page_size} block={layout.block_size}"
        )
        return layout, UploadTarget(
            family=profile.family, serial_port=serial_port, baud=baud
        )

    def resolve_layout(
        self, board: BoardMetadata, profile: FamilyProfile
    ) -> FilesystemLayout:
        """Look up the filesystem geometry for the selected sizing option.

        Raises:
            MissingFilesystemConfig: Listing every unresolved field
        """
        start = end = page = block = None

        opt = board.get_option(profile.sizing_option)
        selected = opt.selected_value() if opt else None
        if selected is not None:
            menu = f"menu.{profile.sizing_option}.{selected}.build."
            props = board.build_properties

            start = parse_board_number(props.get(menu + profile.start_marker))
            end = parse_board_number(props.get(menu + profile.end_marker))
            if profile.fixed_page_size is not None:
                page = profile.fixed_page_size
                block = profile.fixed_block_size
            else:
                page = parse_board_number(props.get(menu + str(profile.page_size_marker)))
                block = parse_board_number(props.get(menu + str(profile.block_size_marker)))

        missing: List[str] = [
            name
            for name, value in (
                ("start", start),
                ("end", end),
                ("page size", page),
                ("block size", block),
            )
            if not value or value < 0
        ]
        if missing:
            raise MissingFilesystemConfig(
                "No filesystem specified, check flash size menu "
                + f"(unresolved: {', '.join(missing)})"
            )

        layout = FilesystemLayout(
            start=start, end=end, page_size=page, block_size=block  # type: ignore[arg-type]
        )
        if layout.end <= layout.start:
            raise MissingFilesystemConfig(
                "No filesystem specified, check flash size menu "
                + f"(end 0x{layout.end:x} is not after start 0x{layout.start:x})"
            )
        return layout

    def resolve_baud(self, board: BoardMetadata) -> int:
        """Return the selected upload baud, or the default."""
        opt = board.get_option("baud")
        selected = opt.selected_value() if opt else None
        if selected is None:
            return DEFAULT_UPLOAD_BAUD

        baud = parse_board_number(selected)
        if not baud or baud < 0:
            logging.warning(
                f"Ignoring invalid baud selection '{selected}', "
                f"using {DEFAULT_UPLOAD_BAUD}"
            )
            return DEFAULT_UPLOAD_BAUD
        return baud

    @staticmethod
    def validate_port(port: Optional[PortInfo]) -> str:
        """Return the serial port address.

        Raises:
            UnsupportedPort: If no port is given or it is not a serial port
        """
        if port is None or not port.address:
            raise UnsupportedPort("No port specified, check IDE menus.")
        if port.protocol != "serial":
            raise UnsupportedPort("Only serial port upload supported at this time.")
        return port.address
