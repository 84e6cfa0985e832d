"""
Board details lookup through arduino-cli.

arduino-cli resolves build properties and menu selections for an fqbn,
including any option=value pairs appended to it, so it is the closest
command-line equivalent of the IDE's board context.
"""

import json
import logging
import subprocess

from littlefs_upload.config.board_metadata import BoardMetadata
from littlefs_upload.errors import BoardDetailsError


class ArduinoCli:
    """Thin wrapper around the arduino-cli executable."""

    def __init__(self, executable: str = "arduino-cli", timeout: int = 60):
        """Initialize wrapper.

        Args:
            executable: arduino-cli command or path
            timeout: Seconds to wait for arduino-cli to answer
        """
        self.executable = executable
        self.timeout = timeout

    def board_details(self, fqbn: str) -> BoardMetadata:
        """
        Fetch board details for an fqbn.

        Args:
            fqbn: Fully qualified board name, optionally with menu options

        Returns:
            BoardMetadata with arduino-cli's selection applied

        Raises:
            BoardDetailsError: If arduino-cli is missing, fails or returns
                unparseable output
        """
        cmd = [self.executable, "board", "details", "-b", fqbn, "--format", "json"]
        logging.debug(f"Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise BoardDetailsError(
                f"arduino-cli not found ({self.executable}). "
                + "Install it or pass --board-details."
            ) from e
        except subprocess.TimeoutExpired as e:
            raise BoardDetailsError(
                f"arduino-cli did not answer within {self.timeout}s"
            ) from e

        if result.returncode != 0:
            error_msg = result.stderr.strip() or result.stdout.strip()
            raise BoardDetailsError(
                f"arduino-cli board details failed for {fqbn}: {error_msg}"
            )

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise BoardDetailsError(f"Invalid JSON from arduino-cli: {e}") from e

        if not isinstance(data, dict):
            raise BoardDetailsError("Unexpected board details format from arduino-cli")

        board = BoardMetadata.from_dict(data)
        # Older arduino-cli releases do not echo the options back in "fqbn"
        if fqbn.count(":") > board.fqbn.count(":"):
            board.apply_fqbn_options(fqbn)
        return board
