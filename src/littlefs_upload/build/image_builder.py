"""
LittleFS image generation.

This module packs a sketch's data folder into a filesystem image with
mklittlefs. Every supported core ships a mklittlefs that accepts the same
options:

    mklittlefs -c <dir> -p <page> -b <block> -s <size> <image>
"""

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from littlefs_upload.build.process_runner import ProcessRunner
from littlefs_upload.config.layout_resolver import FilesystemLayout
from littlefs_upload.errors import BuildFailure
from littlefs_upload.output import OutputSink
from littlefs_upload.packages.tool_locator import ToolReference

IMAGE_SUFFIX = ".littlefs.bin"


class ImageBuilder:
    """Builds LittleFS images with mklittlefs."""

    def __init__(self, runner: Optional[ProcessRunner] = None):
        self.runner = runner or ProcessRunner()

    @staticmethod
    def build_args(
        data_folder: Path, layout: FilesystemLayout, image_path: Path
    ) -> List[str]:
        """Return mklittlefs arguments for a layout."""
        return [
            "-c",
            str(data_folder),
            "-p",
            str(layout.page_size),
            "-b",
            str(layout.block_size),
            "-s",
            str(layout.size),
            str(image_path),
        ]

    @contextmanager
    def temporary_image(self) -> Iterator[Path]:
        """Allocate a uniquely named image file and remove it on exit.

        The sketch build directory is not always known, so images go to the
        system temp directory.
        """
        fd, name = tempfile.mkstemp(prefix="littlefs_", suffix=IMAGE_SUFFIX)
        os.close(fd)
        image_path = Path(name)
        try:
            yield image_path
        finally:
            try:
                image_path.unlink(missing_ok=True)
            except OSError as e:
                logging.warning(f"Failed to remove temporary image {image_path}: {e}")

    def build(
        self,
        data_folder: Path,
        layout: FilesystemLayout,
        tool: ToolReference,
        sink: OutputSink,
        image_path: Path,
    ) -> Path:
        """
        Build the filesystem image.

        Args:
            data_folder: Directory to pack
            layout: Resolved filesystem geometry
            tool: mklittlefs executable
            sink: Output sink for progress
            image_path: Output image path (see temporary_image())

        Returns:
            Path to the built image

        Raises:
            SpawnFailure: If mklittlefs cannot be started
            BuildFailure: If mklittlefs exits with a non-zero code
        """
        args = self.build_args(data_folder, layout, image_path)

        sink.write("Building LittleFS filesystem\r\n")
        sink.write(tool.command + " " + " ".join(args) + "\r\n")

        exit_code = self.runner.run(tool.command, args, sink)
        if exit_code != 0:
            raise BuildFailure(exit_code)

        logging.info(f"Built {layout.size} byte image at {image_path}")
        return image_path
