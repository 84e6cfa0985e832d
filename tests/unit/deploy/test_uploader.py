"""Unit tests for the filesystem image uploaders."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from littlefs_upload.config.layout_resolver import FilesystemLayout, UploadTarget
from littlefs_upload.deploy.ports import SerialPortInfo, list_serial_ports
from littlefs_upload.deploy.uploader import (
    ESP8266Uploader,
    RP2040Uploader,
    create_uploader,
)
from littlefs_upload.errors import UnsupportedBoard, UploadFailure
from littlefs_upload.output import BufferSink
from littlefs_upload.packages.tool_locator import ToolReference

IMAGE = Path("/tmp/littlefs_x.littlefs.bin")
PYTHON3 = ToolReference("python3", "/opt/py")


class TestRP2040Uploader:
    LAYOUT = FilesystemLayout(start=3145728, end=4194304, page_size=256, block_size=4096)
    TARGET = UploadTarget(family="rp2040", serial_port="/dev/ttyACM0")

    def test_upload_args(self):
        args = RP2040Uploader().upload_args(IMAGE, self.LAYOUT, self.TARGET, "/opt/pico")
        assert args == [
            "/opt/pico/tools/uf2conv.py",
            "--base",
            "3145728",
            "--serial",
            "/dev/ttyACM0",
            "--family",
            "RP2040",
            str(IMAGE),
        ]

    def test_relative_script_without_platform_path(self):
        args = RP2040Uploader().upload_args(IMAGE, self.LAYOUT, self.TARGET, None)
        assert args[0] == "tools/uf2conv.py"

    def test_upload_runs_interpreter(self, make_runner):
        runner = make_runner([0])
        sink = BufferSink()

        RP2040Uploader(runner).upload(
            IMAGE, self.LAYOUT, self.TARGET, PYTHON3, "/opt/pico", sink
        )

        command, args = runner.calls[0]
        assert command == "/opt/py/python3"
        assert args[0] == "/opt/pico/tools/uf2conv.py"
        assert "Uploading LittleFS filesystem" in sink.text

    def test_upload_failure(self, make_runner):
        with pytest.raises(UploadFailure, match="error code: 1") as exc_info:
            RP2040Uploader(make_runner([1])).upload(
                IMAGE, self.LAYOUT, self.TARGET, PYTHON3, None, BufferSink()
            )
        assert exc_info.value.exit_code == 1


class TestESP8266Uploader:
    LAYOUT = FilesystemLayout(start=0x200000, end=0x2FB000, page_size=256, block_size=8192)

    def test_upload_args(self):
        target = UploadTarget(family="esp8266", serial_port="/dev/ttyUSB0", baud=460800)
        args = ESP8266Uploader().upload_args(IMAGE, self.LAYOUT, target, "/opt/esp")
        assert args == [
            "/opt/esp/tools/upload.py",
            "--chip",
            "esp8266",
            "--port",
            "/dev/ttyUSB0",
            "--baud",
            "460800",
            "write_flash",
            "2097152",
            str(IMAGE),
        ]

    def test_default_baud(self):
        target = UploadTarget(family="esp8266", serial_port="COM4")
        args = ESP8266Uploader().upload_args(IMAGE, self.LAYOUT, target, None)
        assert args[args.index("--baud") + 1] == "115200"


class TestCreateUploader:
    def test_families(self):
        assert isinstance(create_uploader("rp2040"), RP2040Uploader)
        assert isinstance(create_uploader("esp8266"), ESP8266Uploader)

    def test_shares_runner(self, make_runner):
        runner = make_runner()
        assert create_uploader("esp8266", runner).runner is runner

    def test_unknown_family(self):
        with pytest.raises(UnsupportedBoard):
            create_uploader("avr")


class TestListSerialPorts:
    def test_likely_boards_first(self):
        ports = [
            MagicMock(device="/dev/ttyS0", description="n/a", manufacturer=None),
            MagicMock(device="/dev/ttyACM0", description="Pico", manufacturer="Raspberry Pi"),
        ]
        with patch("serial.tools.list_ports.comports", return_value=ports):
            result = list_serial_ports()

        assert [p.device for p in result] == ["/dev/ttyACM0", "/dev/ttyS0"]
        assert result[0].likely_board
        assert result[1].manufacturer == ""

    def test_likely_board(self):
        assert SerialPortInfo("COM3", "Silicon Labs CP210x USB to UART Bridge").likely_board
        assert not SerialPortInfo("COM1", "Communications Port").likely_board
