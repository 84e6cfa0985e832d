"""Tool Locator Utilities.

This module finds the external executables the pipeline runs (mklittlefs and
the Python interpreter shipped with the board package) from the board's build
properties.

Property Naming Conventions:
    - runtime.tools.<tool>.path: directory of the version the core selected
    - runtime.tools.<tool>-<version>.path: directory of one installed version
    - runtime.platform.path: root of the installed board package

Several versions of a tool may be installed side by side, so more than one
key can match a prefix. The unversioned `.path` key wins; otherwise the
highest version does.
"""

import logging
import platform
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from littlefs_upload.config.board_metadata import BoardMetadata


def executable_suffix() -> str:
    """Return the executable suffix for the host (".exe" on Windows)."""
    return ".exe" if platform.system() == "Windows" else ""


@dataclass(frozen=True)
class ToolReference:
    """An executable found in a board package, or a bare name for PATH."""

    name: str
    directory: Optional[str] = None
    suffix: str = ""

    @property
    def command(self) -> str:
        """Command string to spawn."""
        executable = f"{self.name}{self.suffix}"
        if self.directory:
            return f"{self.directory}/{executable}"
        return executable


def _version_key(text: str) -> Tuple[int, ...]:
    return tuple(int(part) for part in re.findall(r"\d+", text))


class ToolLocator:
    """Finds tool directories in a board's build properties."""

    def find(self, board: BoardMetadata, key_prefix: str) -> Optional[str]:
        """
        Find a directory for keys starting with `key_prefix`.

        Args:
            board: Board metadata
            key_prefix: Property prefix (e.g., "runtime.tools.pqt-mklittlefs")

        Returns:
            Directory path, or None if no key with a value matches
        """
        matches: List[Tuple[str, str]] = [
            (key, value)
            for key, value in board.build_properties.items()
            if key.startswith(key_prefix) and value
        ]
        if not matches:
            return None

        for key, value in matches:
            if key == f"{key_prefix}.path":
                return value

        if len(matches) > 1:
            logging.debug(
                f"{len(matches)} properties match {key_prefix}: "
                + ", ".join(key for key, _ in matches)
            )

        # max() keeps the first of equal versions
        _, directory = max(
            matches, key=lambda kv: _version_key(kv[0][len(key_prefix) :])
        )
        return directory

    def locate(self, board: BoardMetadata, key_prefix: str, name: str) -> ToolReference:
        """
        Resolve an executable, falling back to a bare name on PATH.

        Args:
            board: Board metadata
            key_prefix: Property prefix of the tool directory
            name: Executable name without suffix (e.g., "mklittlefs")

        Returns:
            ToolReference for the executable
        """
        directory = self.find(board, key_prefix)
        tool = ToolReference(name=name, directory=directory, suffix=executable_suffix())
        if directory is None:
            logging.info(f"No {key_prefix} property, using {tool.command} from PATH")
        return tool
