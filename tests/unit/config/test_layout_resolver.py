"""
Unit tests for filesystem layout resolution.
"""

import pytest

from littlefs_upload.config.board_metadata import (
    BoardMetadata,
    ConfigOption,
    OptionValue,
)
from littlefs_upload.config.layout_resolver import (
    DEFAULT_UPLOAD_BAUD,
    ConfigResolver,
    FilesystemLayout,
    PortInfo,
    parse_board_number,
)
from littlefs_upload.errors import (
    MissingFilesystemConfig,
    UnsupportedBoard,
    UnsupportedPort,
)

SERIAL = PortInfo("/dev/ttyACM0")


class TestParseBoardNumber:
    """Tests for numeric build property parsing."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("0x300000", 3145728),
            ("0X2FB000", 0x2FB000),
            ("256", 256),
            (" 8192 ", 8192),
            ("0", 0),
        ],
    )
    def test_valid(self, text, expected):
        assert parse_board_number(text) == expected

    @pytest.mark.parametrize("text", [None, "", "   ", "abc", "0xZZ", "12k"])
    def test_invalid(self, text):
        assert parse_board_number(text) is None


class TestConfigResolverRP2040:
    """Tests for the rp2040 family."""

    def test_scenario_layout(self, rp2040_board):
        """fs_start=0x300000, fs_end=0x400000 with fixed page/block sizes."""
        layout, target = ConfigResolver().resolve(rp2040_board, SERIAL)

        assert layout == FilesystemLayout(
            start=3145728, end=4194304, page_size=256, block_size=4096
        )
        assert layout.size == 1048576
        assert target.family == "rp2040"
        assert target.serial_port == "/dev/ttyACM0"

    def test_page_and_block_are_fixed(self, rp2040_board):
        """Board properties cannot override the rp2040 page/block sizes."""
        rp2040_board.build_properties[
            "menu.flash.2097152_1048576.build.spiffs_pagesize"
        ] = "512"
        layout, _ = ConfigResolver().resolve(rp2040_board, SERIAL)
        assert layout.page_size == 256
        assert layout.block_size == 4096

    def test_no_selected_flash_value(self, rp2040_board):
        """A flash option with nothing selected is unconfigured."""
        for value in rp2040_board.config_options[0].values:
            value.selected = False

        with pytest.raises(MissingFilesystemConfig, match="check flash size menu"):
            ConfigResolver().resolve(rp2040_board, SERIAL)

    def test_selected_value_without_filesystem(self, rp2040_board):
        """Selecting a layout with no filesystem carved out fails."""
        rp2040_board.config_options[0].select("2097152_0")

        with pytest.raises(MissingFilesystemConfig, match="start, end"):
            ConfigResolver().resolve(rp2040_board, SERIAL)

    def test_missing_flash_option(self, rp2040_board):
        rp2040_board.config_options = []
        with pytest.raises(MissingFilesystemConfig):
            ConfigResolver().resolve(rp2040_board, SERIAL)

    def test_end_not_after_start(self, rp2040_board):
        rp2040_board.build_properties[
            "menu.flash.2097152_1048576.build.fs_end"
        ] = "0x300000"
        with pytest.raises(MissingFilesystemConfig, match="not after start"):
            ConfigResolver().resolve(rp2040_board, SERIAL)

    def test_baud_defaults(self, rp2040_board):
        _, target = ConfigResolver().resolve(rp2040_board, SERIAL)
        assert target.baud == DEFAULT_UPLOAD_BAUD


class TestConfigResolverESP8266:
    """Tests for the esp8266 family."""

    def test_scenario_layout(self, esp8266_board):
        layout, target = ConfigResolver().resolve(esp8266_board, SERIAL)

        assert layout.start == 0x200000
        assert layout.end == 0x2FB000
        assert layout.page_size == 256
        assert layout.block_size == 8192
        assert layout.size == 0x2FB000 - 0x200000
        assert target.family == "esp8266"
        assert target.baud == 460800

    def test_missing_block_size_is_reported(self, esp8266_board):
        del esp8266_board.build_properties["menu.eesz.4M2M.build.spiffs_blocksize"]

        with pytest.raises(MissingFilesystemConfig) as exc_info:
            ConfigResolver().resolve(esp8266_board, SERIAL)
        assert "block size" in str(exc_info.value)
        assert "page size" not in str(exc_info.value)

    def test_baud_not_selected(self, esp8266_board):
        esp8266_board.config_options[1].values[1].selected = False
        _, target = ConfigResolver().resolve(esp8266_board, SERIAL)
        assert target.baud == 115200

    def test_invalid_baud_keeps_default(self, esp8266_board):
        esp8266_board.config_options[1] = ConfigOption(
            option="baud", values=[OptionValue("fast", selected=True)]
        )
        _, target = ConfigResolver().resolve(esp8266_board, SERIAL)
        assert target.baud == 115200


class TestConfigResolverBoardAndPort:
    """Tests for family and port validation."""

    def test_unsupported_family(self):
        board = BoardMetadata(fqbn="vendor:unsupported_family:board")
        with pytest.raises(UnsupportedBoard, match="RP2040 and ESP8266"):
            ConfigResolver().resolve(board, SERIAL)

    def test_fqbn_without_family(self):
        with pytest.raises(UnsupportedBoard):
            ConfigResolver().resolve(BoardMetadata(fqbn="justaname"), SERIAL)

    def test_missing_port(self, rp2040_board):
        with pytest.raises(UnsupportedPort, match="No port specified"):
            ConfigResolver().resolve(rp2040_board, None)

    def test_empty_port_address(self, rp2040_board):
        with pytest.raises(UnsupportedPort):
            ConfigResolver().resolve(rp2040_board, PortInfo(""))

    def test_network_port(self, esp8266_board):
        port = PortInfo("192.168.1.20", protocol="network")
        with pytest.raises(UnsupportedPort, match="Only serial port"):
            ConfigResolver().resolve(esp8266_board, port)

    def test_board_checked_before_port(self):
        """An unsupported board is reported even when no port is selected."""
        board = BoardMetadata(fqbn="arduino:avr:uno")
        with pytest.raises(UnsupportedBoard):
            ConfigResolver().resolve(board, None)
