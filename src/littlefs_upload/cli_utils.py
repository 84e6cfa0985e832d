"""CLI utility functions for littlefs-upload.

This module provides common utilities used across CLI commands including:
- Logging setup
- Board details loading from the configured source
- Error handling and formatting
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from littlefs_upload.config import ArduinoCli, BoardMetadata, UploadSettings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


_console_handler: Optional[logging.Handler] = None


def setup_logging(verbose: bool = False) -> None:
    """Send log records to stderr.

    Tool output already goes to stdout, so only warnings and errors are shown
    unless verbose.
    """
    global _console_handler

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    if _console_handler is not None:
        logger.removeHandler(_console_handler)

    _console_handler = logging.StreamHandler(sys.stderr)
    _console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    _console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(_console_handler)


class BoardLoader:
    """Loads board metadata from the source named in the settings."""

    @staticmethod
    def load(settings: UploadSettings) -> Optional[BoardMetadata]:
        """Load board metadata.

        A board details file wins over an arduino-cli lookup. Menu options
        appended to the fqbn are applied to file-based details too.

        Args:
            settings: Merged settings

        Returns:
            BoardMetadata, or None when neither a file nor an fqbn is set

        Raises:
            BoardDetailsError: If the selected source cannot be read
        """
        if settings.board_details is not None:
            board = BoardMetadata.from_json_file(Path(settings.board_details))
            if settings.fqbn:
                board.apply_fqbn_options(settings.fqbn)
            return board

        if settings.fqbn:
            return ArduinoCli(settings.arduino_cli).board_details(settings.fqbn)

        return None


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Upload failed")
            message: Error message details
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        print()
        print(f"{ErrorFormatter.YELLOW}✗ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def handle_file_not_found(error: FileNotFoundError) -> None:
        """Handle FileNotFoundError with standard formatting."""
        ErrorFormatter.print_error("Error: File not found", str(error))
        sys.exit(1)

    @staticmethod
    def handle_permission_error(error: PermissionError) -> None:
        """Handle PermissionError with standard formatting."""
        ErrorFormatter.print_error("Error: Permission denied", str(error))
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Upload interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


class PathValidator:
    """Validates sketch paths."""

    @staticmethod
    def validate_sketch_dir(sketch_dir: Path) -> None:
        """Validate that the sketch directory exists and is a directory.

        Raises:
            SystemExit: If path doesn't exist or isn't a directory
        """
        if not sketch_dir.exists():
            print(
                f"{ErrorFormatter.RED}✗ Error: Path does not exist: {sketch_dir}{ErrorFormatter.RESET}"
            )
            sys.exit(2)
        if not sketch_dir.is_dir():
            print(
                f"{ErrorFormatter.RED}✗ Error: Path is not a directory: {sketch_dir}{ErrorFormatter.RESET}"
            )
            sys.exit(2)
