"""Filesystem image uploaders.

Both supported cores write the image with a Python helper script that ships
inside the board package, run with the core's own python3:

    rp2040:  tools/uf2conv.py  (converts to UF2 and sends it over serial)
    esp8266: tools/upload.py   (esptool wrapper)
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Type

from littlefs_upload.build.process_runner import ProcessRunner
from littlefs_upload.config.layout_resolver import FilesystemLayout, UploadTarget
from littlefs_upload.errors import UnsupportedBoard, UploadFailure
from littlefs_upload.output import OutputSink
from littlefs_upload.packages.tool_locator import ToolReference


class IUploader(ABC):
    """Interface for filesystem image uploaders.

    Uploaders only build the helper invocation; running it and checking the
    exit code is shared.
    """

    script: str = ""

    def __init__(self, runner: Optional[ProcessRunner] = None):
        self.runner = runner or ProcessRunner()

    def script_path(self, platform_path: Optional[str]) -> str:
        """Helper script path, relative when the platform path is unknown."""
        if platform_path:
            return f"{platform_path}/{self.script}"
        return self.script

    @abstractmethod
    def upload_args(
        self,
        image: Path,
        layout: FilesystemLayout,
        target: UploadTarget,
        platform_path: Optional[str],
    ) -> List[str]:
        """Return interpreter arguments for writing `image`."""
        pass

    def upload(
        self,
        image: Path,
        layout: FilesystemLayout,
        target: UploadTarget,
        interpreter: ToolReference,
        platform_path: Optional[str],
        sink: OutputSink,
    ) -> None:
        """
        Write the image to the device.

        Args:
            image: Built filesystem image
            layout: Filesystem geometry; the image goes to layout.start
            target: Serial port and baud
            interpreter: python3 used to run the helper script
            platform_path: Root of the installed board package, if known
            sink: Output sink for progress

        Raises:
            SpawnFailure: If the interpreter cannot be started
            UploadFailure: If the helper exits with a non-zero code
        """
        args = self.upload_args(image, layout, target, platform_path)

        sink.write("\r\n\r\nUploading LittleFS filesystem\r\n")
        sink.write(interpreter.command + " " + " ".join(args) + "\r\n")

        exit_code = self.runner.run(interpreter.command, args, sink)
        if exit_code != 0:
            raise UploadFailure(exit_code)

        logging.info(f"Uploaded {image} to {target.serial_port}")


class RP2040Uploader(IUploader):
    """Uploads through uf2conv.py's serial mode."""

    script = "tools/uf2conv.py"

    def upload_args(
        self,
        image: Path,
        layout: FilesystemLayout,
        target: UploadTarget,
        platform_path: Optional[str],
    ) -> List[str]:
        return [
            self.script_path(platform_path),
            "--base",
            str(layout.start),
            "--serial",
            target.serial_port,
            "--family",
            "RP2040",
            str(image),
        ]


class ESP8266Uploader(IUploader):
    """Uploads through the core's esptool wrapper."""

    script = "tools/upload.py"

    def upload_args(
        self,
        image: Path,
        layout: FilesystemLayout,
        target: UploadTarget,
        platform_path: Optional[str],
    ) -> List[str]:
        return [
            self.script_path(platform_path),
            "--chip",
            "esp8266",
            "--port",
            target.serial_port,
            "--baud",
            str(target.baud),
            "write_flash",
            str(layout.start),
            str(image),
        ]


UPLOADERS: Dict[str, Type[IUploader]] = {
    "rp2040": RP2040Uploader,
    "esp8266": ESP8266Uploader,
}


def create_uploader(family: str, runner: Optional[ProcessRunner] = None) -> IUploader:
    """Return the uploader for a device family.

    Raises:
        UnsupportedBoard: If the family has no uploader
    """
    uploader_class = UPLOADERS.get(family)
    if uploader_class is None:
        raise UnsupportedBoard(f"No uploader for board family: {family}")
    return uploader_class(runner)
