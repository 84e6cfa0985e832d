"""Shared fixtures: board metadata for both supported families and a
process runner that records invocations instead of spawning them."""

from typing import List, Optional, Sequence, Tuple

import pytest

from littlefs_upload.build.process_runner import ProcessRunner
from littlefs_upload.config.board_metadata import (
    BoardMetadata,
    ConfigOption,
    OptionValue,
)
from littlefs_upload.output import OutputSink


class RecordingRunner(ProcessRunner):
    """ProcessRunner double returning scripted exit codes."""

    def __init__(self, exit_codes: Optional[List[int]] = None):
        self.exit_codes = list(exit_codes or [])
        self.calls: List[Tuple[str, List[str]]] = []

    def run(self, command: str, args: Sequence[str], sink: OutputSink) -> int:
        self.calls.append((command, list(args)))
        sink.write(f"ran {command}\n")
        return self.exit_codes.pop(0) if self.exit_codes else 0


@pytest.fixture
def make_runner():
    """Factory for RecordingRunner doubles with scripted exit codes."""
    return RecordingRunner


@pytest.fixture
def linux_host(monkeypatch):
    """Pretend to run on Linux so executables have no suffix."""
    monkeypatch.setattr("platform.system", lambda: "Linux")


@pytest.fixture
def rp2040_board():
    """Arduino-Pico board with a 1MB filesystem selected."""
    return BoardMetadata(
        fqbn="vendor:rp2040:boardX",
        build_properties={
            "menu.flash.2097152_0.build.fs_start": "0",
            "menu.flash.2097152_0.build.fs_end": "0",
            "menu.flash.2097152_1048576.build.fs_start": "0x300000",
            "menu.flash.2097152_1048576.build.fs_end": "0x400000",
            "runtime.tools.pqt-mklittlefs.path": "/opt/pico/mklittlefs",
            "runtime.tools.pqt-python3.path": "/opt/pico/python3",
            "runtime.platform.path": "/opt/pico/hardware/rp2040",
        },
        config_options=[
            ConfigOption(
                option="flash",
                values=[
                    OptionValue("2097152_0"),
                    OptionValue("2097152_1048576", selected=True),
                ],
            ),
        ],
    )


@pytest.fixture
def esp8266_board():
    """ESP8266 board with the 4M/2M layout and 460800 upload baud."""
    return BoardMetadata(
        fqbn="vendor:esp8266:boardY",
        build_properties={
            "menu.eesz.4M2M.build.spiffs_start": "0x200000",
            "menu.eesz.4M2M.build.spiffs_end": "0x2FB000",
            "menu.eesz.4M2M.build.spiffs_pagesize": "256",
            "menu.eesz.4M2M.build.spiffs_blocksize": "8192",
            "menu.eesz.4M.build.spiffs_start": "",
            "runtime.tools.mklittlefs.path": "/opt/esp8266/mklittlefs",
            "runtime.tools.python3.path": "/opt/esp8266/python3",
            "runtime.platform.path": "/opt/esp8266/hardware/esp8266",
        },
        config_options=[
            ConfigOption(
                option="eesz",
                values=[OptionValue("4M"), OptionValue("4M2M", selected=True)],
            ),
            ConfigOption(
                option="baud",
                values=[OptionValue("115200"), OptionValue("460800", selected=True)],
            ),
        ],
    )


@pytest.fixture
def sketch_dir(tmp_path):
    """Sketch directory with a populated data folder."""
    data = tmp_path / "data"
    data.mkdir()
    (data / "index.html").write_text("<h1>hello</h1>")
    return tmp_path
