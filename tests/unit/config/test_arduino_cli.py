"""Unit tests for the arduino-cli board details wrapper."""

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from littlefs_upload.config.arduino_cli import ArduinoCli
from littlefs_upload.errors import BoardDetailsError

DETAILS = {
    "fqbn": "esp8266:esp8266:d1_mini",
    "build_properties": ["menu.eesz.4M2M.build.spiffs_start=0x200000"],
    "config_options": [
        {
            "option": "eesz",
            "values": [{"value": "4M", "selected": True}, {"value": "4M2M"}],
        }
    ],
}


def completed(returncode=0, stdout="", stderr=""):
    result = MagicMock()
    result.returncode = returncode
    result.stdout = stdout
    result.stderr = stderr
    return result


class TestArduinoCli:
    """Tests for ArduinoCli.board_details."""

    def test_command_line(self):
        with patch("subprocess.run", return_value=completed(stdout=json.dumps(DETAILS))) as run:
            ArduinoCli("/opt/arduino-cli").board_details("esp8266:esp8266:d1_mini")

        cmd = run.call_args[0][0]
        assert cmd == [
            "/opt/arduino-cli",
            "board",
            "details",
            "-b",
            "esp8266:esp8266:d1_mini",
            "--format",
            "json",
        ]

    def test_parses_details(self):
        with patch("subprocess.run", return_value=completed(stdout=json.dumps(DETAILS))):
            board = ArduinoCli().board_details("esp8266:esp8266:d1_mini")

        assert board.family == "esp8266"
        assert board.build_properties["menu.eesz.4M2M.build.spiffs_start"] == "0x200000"

    def test_applies_options_not_echoed_back(self):
        """Options in the requested fqbn are applied when the reply omits them."""
        with patch("subprocess.run", return_value=completed(stdout=json.dumps(DETAILS))):
            board = ArduinoCli().board_details("esp8266:esp8266:d1_mini:eesz=4M2M")

        assert board.get_option("eesz").selected_value() == "4M2M"

    def test_not_installed(self):
        with patch("subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(BoardDetailsError, match="arduino-cli not found"):
                ArduinoCli().board_details("esp8266:esp8266:d1_mini")

    def test_timeout(self):
        with patch(
            "subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="arduino-cli", timeout=1),
        ):
            with pytest.raises(BoardDetailsError, match="did not answer"):
                ArduinoCli(timeout=1).board_details("esp8266:esp8266:d1_mini")

    def test_failure(self):
        with patch(
            "subprocess.run",
            return_value=completed(returncode=1, stderr="Error: unknown board"),
        ):
            with pytest.raises(BoardDetailsError, match="unknown board"):
                ArduinoCli().board_details("nope:nope:nope")

    def test_invalid_json(self):
        with patch("subprocess.run", return_value=completed(stdout="Board not found")):
            with pytest.raises(BoardDetailsError, match="Invalid JSON"):
                ArduinoCli().board_details("esp8266:esp8266:d1_mini")
