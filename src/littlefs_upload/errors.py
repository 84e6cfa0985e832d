"""
Error taxonomy for the filesystem upload pipeline.

Every error aborts the current run and carries the single message shown to
the user. None of them is retried.
"""

from typing import Optional


class UploadPipelineError(Exception):
    """Base exception for all pipeline failures."""

    pass


class MissingBoardDetails(UploadPipelineError):
    """Raised when board metadata or the board identifier is unavailable."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message or "Board details not available. Compile the sketch once."
        )


class BoardDetailsError(MissingBoardDetails):
    """Raised when a board metadata source cannot be read or parsed."""

    pass


class MissingDataFolder(UploadPipelineError):
    """Raised when the sketch has no data folder to pack."""

    pass


class UnsupportedBoard(UploadPipelineError):
    """Raised when the board family is neither rp2040 nor esp8266."""

    pass


class MissingFilesystemConfig(UploadPipelineError):
    """Raised when the filesystem geometry cannot be resolved."""

    pass


class UnsupportedPort(UploadPipelineError):
    """Raised when no port is selected or the port is not a serial port."""

    pass


class SpawnFailure(UploadPipelineError):
    """Raised when an external tool cannot be launched."""

    def __init__(self, command: str, reason: str):
        self.command = command
        super().__init__(f"Unable to run {command}: {reason}")


class BuildFailure(UploadPipelineError):
    """Raised when mklittlefs exits with a non-zero code."""

    def __init__(self, exit_code: int):
        self.exit_code = exit_code
        super().__init__(f"Mklittlefs failed, error code: {exit_code}")


class UploadFailure(UploadPipelineError):
    """Raised when the upload helper exits with a non-zero code."""

    def __init__(self, exit_code: int):
        self.exit_code = exit_code
        super().__init__(f"Upload failed, error code: {exit_code}")


class PipelineBusy(UploadPipelineError):
    """Raised when another upload is already in flight."""

    pass
