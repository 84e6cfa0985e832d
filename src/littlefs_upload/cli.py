"""
Command-line interface for littlefs-upload.

This module provides the `littlefs-upload` CLI tool for packing a sketch's
data folder into a LittleFS image and writing it to the board.
"""

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from littlefs_upload import __version__
from littlefs_upload.cli_utils import (
    BoardLoader,
    ErrorFormatter,
    PathValidator,
    setup_logging,
)
from littlefs_upload.config import PortInfo, UploadConfigError, UploadSettings
from littlefs_upload.config.ini_parser import load_project_settings
from littlefs_upload.deploy import list_serial_ports
from littlefs_upload.errors import UploadPipelineError
from littlefs_upload.orchestrator import UploadOrchestrator
from littlefs_upload.output import TerminalSink

IMAGE_PLACEHOLDER = Path("<image>")


@dataclass
class UploadArgs:
    """Arguments for the upload and layout commands."""

    sketch_dir: Path
    fqbn: Optional[str] = None
    port: Optional[str] = None
    protocol: Optional[str] = None
    board_details: Optional[Path] = None
    arduino_cli: Optional[str] = None
    data_dir: Optional[str] = None
    clear: bool = True
    verbose: bool = False

    def settings(self) -> UploadSettings:
        """Project file settings with command-line values on top."""
        return load_project_settings(self.sketch_dir).merged(
            fqbn=self.fqbn,
            port=self.port,
            protocol=self.protocol,
            board_details=self.board_details,
            arduino_cli=self.arduino_cli,
            data_dir=self.data_dir,
        )


def upload_command(args: UploadArgs) -> None:
    """Build the data folder image and upload it.

    Examples:
        littlefs-upload upload -b rp2040:rp2040:rpipico:flash=2097152_1048576 -p /dev/ttyACM0
        littlefs-upload upload sketches/blink --board-details details.json -p COM3
    """
    try:
        settings = args.settings()

        sink = TerminalSink(clear_screen=args.clear)
        result = UploadOrchestrator().run(
            lambda: BoardLoader.load(settings),
            args.sketch_dir,
            PortInfo(settings.port, settings.protocol),
            sink,
            data_dir=settings.data_dir,
        )

        if result.success:
            ErrorFormatter.print_success(result.message)
            sys.exit(0)
        else:
            # The pipeline already printed the error
            sys.exit(1)

    except (UploadPipelineError, UploadConfigError) as e:
        ErrorFormatter.print_error("Upload failed!", str(e))
        sys.exit(1)
    except FileNotFoundError as e:
        ErrorFormatter.handle_file_not_found(e)
    except PermissionError as e:
        ErrorFormatter.handle_permission_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def layout_command(args: UploadArgs) -> None:
    """Show the resolved filesystem layout and tool commands without running them.

    Examples:
        littlefs-upload layout -b esp8266:esp8266:d1_mini:eesz=4M2M -p /dev/ttyUSB0
    """
    try:
        settings = args.settings()
        plan = UploadOrchestrator().plan(
            lambda: BoardLoader.load(settings),
            args.sketch_dir,
            PortInfo(settings.port, settings.protocol),
            data_dir=settings.data_dir,
        )

        layout = plan.layout
        print(f"Family:      {plan.target.family}")
        print(f"Start:       0x{layout.start:08x} ({layout.start})")
        print(f"End:         0x{layout.end:08x} ({layout.end})")
        print(f"Size:        {layout.size} bytes")
        print(f"Page size:   {layout.page_size}")
        print(f"Block size:  {layout.block_size}")
        print(f"Port:        {plan.target.serial_port}")
        if plan.target.family == "esp8266":
            print(f"Baud:        {plan.target.baud}")
        print()
        print("Build:  " + " ".join(plan.build_command(IMAGE_PLACEHOLDER)))
        print("Upload: " + " ".join(plan.upload_command(IMAGE_PLACEHOLDER)))
        sys.exit(0)

    except (UploadPipelineError, UploadConfigError) as e:
        ErrorFormatter.print_error("Layout resolution failed!", str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def ports_command() -> None:
    """List serial ports."""
    ports = list_serial_ports()
    if not ports:
        print("No serial ports found.")
        sys.exit(0)

    for port in ports:
        details = " - ".join(p for p in (port.description, port.manufacturer) if p)
        marker = "*" if port.likely_board else " "
        print(f"{marker} {port.device}" + (f"  ({details})" if details else ""))
    sys.exit(0)


def _add_board_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "sketch_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Sketch directory (default: current directory)",
    )
    parser.add_argument(
        "-b",
        "--fqbn",
        default=None,
        help="Fully qualified board name, optionally with menu options "
        + "(e.g., rp2040:rp2040:rpipico:flash=2097152_1048576)",
    )
    parser.add_argument(
        "-p",
        "--port",
        default=None,
        help="Serial port the board is connected to",
    )
    parser.add_argument(
        "--protocol",
        default=None,
        help="Port protocol (default: serial)",
    )
    parser.add_argument(
        "--board-details",
        type=Path,
        default=None,
        help="JSON from 'arduino-cli board details --format json' (skips arduino-cli)",
    )
    parser.add_argument(
        "--arduino-cli",
        default=None,
        help="arduino-cli executable (default: arduino-cli)",
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Data folder name inside the sketch (default: data)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )


def main() -> None:
    """littlefs-upload - LittleFS filesystem uploader for RP2040 and ESP8266."""
    parser = argparse.ArgumentParser(
        prog="littlefs-upload",
        description="Build a LittleFS image from a sketch's data folder and upload it",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"littlefs-upload {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    upload_parser = subparsers.add_parser(
        "upload",
        help="Build and upload the filesystem image",
    )
    _add_board_arguments(upload_parser)
    upload_parser.add_argument(
        "--no-clear",
        action="store_true",
        help="Do not clear the terminal before uploading",
    )

    layout_parser = subparsers.add_parser(
        "layout",
        help="Show the resolved filesystem layout and commands",
    )
    _add_board_arguments(layout_parser)

    subparsers.add_parser(
        "ports",
        help="List serial ports",
    )

    parsed_args = parser.parse_args()

    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    setup_logging(getattr(parsed_args, "verbose", False))

    if parsed_args.command == "ports":
        ports_command()
        return

    PathValidator.validate_sketch_dir(parsed_args.sketch_dir)

    upload_args = UploadArgs(
        sketch_dir=parsed_args.sketch_dir,
        fqbn=parsed_args.fqbn,
        port=parsed_args.port,
        protocol=parsed_args.protocol,
        board_details=parsed_args.board_details,
        arduino_cli=parsed_args.arduino_cli,
        data_dir=parsed_args.data_dir,
        clear=not getattr(parsed_args, "no_clear", False),
        verbose=parsed_args.verbose,
    )
    if parsed_args.command == "upload":
        upload_command(upload_args)
    elif parsed_args.command == "layout":
        layout_command(upload_args)


if __name__ == "__main__":
    main()
