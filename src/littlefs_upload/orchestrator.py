"""
Upload orchestration.

Runs the filesystem upload as a strict linear sequence of stages. Each stage
is a gate: the first failure is reported once on the sink and ends the run.

    ValidatePreconditions -> ResolveConfiguration -> LocateTools
        -> BuildImage -> UploadImage -> ReportSuccess

Nothing is retried and nothing already written to the device is rolled back.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

from littlefs_upload.build.image_builder import ImageBuilder
from littlefs_upload.build.process_runner import ProcessRunner
from littlefs_upload.config.board_metadata import BoardMetadata
from littlefs_upload.config.layout_resolver import (
    ConfigResolver,
    FilesystemLayout,
    PortInfo,
    UploadTarget,
    get_family_profile,
)
from littlefs_upload.deploy.uploader import IUploader, create_uploader
from littlefs_upload.errors import (
    MissingBoardDetails,
    MissingDataFolder,
    PipelineBusy,
    UploadPipelineError,
)
from littlefs_upload.output import OutputSink
from littlefs_upload.packages.tool_locator import ToolLocator, ToolReference
from littlefs_upload.pipeline_lock import PipelineLock

PLATFORM_PATH_KEY = "runtime.platform.path"

# Board metadata, or a loader called once the data folder is known to exist
BoardSource = Union[BoardMetadata, None, Callable[[], Optional[BoardMetadata]]]


class PipelineState(Enum):
    VALIDATE_PRECONDITIONS = "validate_preconditions"
    RESOLVE_CONFIGURATION = "resolve_configuration"
    LOCATE_TOOLS = "locate_tools"
    BUILD_IMAGE = "build_image"
    UPLOAD_IMAGE = "upload_image"
    REPORT_SUCCESS = "report_success"


@dataclass
class UploadResult:
    """Result of an upload run."""

    success: bool
    message: str
    state: PipelineState
    image_size: Optional[int] = None


@dataclass
class UploadPlan:
    """Everything resolved before the first process is spawned."""

    data_folder: Path
    layout: FilesystemLayout
    target: UploadTarget
    mklittlefs: ToolReference
    python3: ToolReference
    platform_path: Optional[str]
    uploader: IUploader

    def build_command(self, image: Path) -> List[str]:
        return [self.mklittlefs.command] + ImageBuilder.build_args(
            self.data_folder, self.layout, image
        )

    def upload_command(self, image: Path) -> List[str]:
        return [self.python3.command] + self.uploader.upload_args(
            image, self.layout, self.target, self.platform_path
        )


class UploadOrchestrator:
    """Sequences validation, resolution, image build and upload."""

    def __init__(
        self,
        resolver: Optional[ConfigResolver] = None,
        locator: Optional[ToolLocator] = None,
        runner: Optional[ProcessRunner] = None,
        builder: Optional[ImageBuilder] = None,
        uploader_factory: Callable[..., IUploader] = create_uploader,
        lock: Optional[PipelineLock] = None,
        ready_timeout: Optional[float] = None,
    ):
        """Initialize orchestrator.

        Args:
            resolver: Layout resolver
            locator: Tool locator
            runner: Process runner shared by builder and uploader
            builder: Image builder (default: uses `runner`)
            uploader_factory: Returns the uploader for a family
            lock: Single-flight guard
            ready_timeout: Seconds to wait for the sink; None waits forever
        """
        self.resolver = resolver or ConfigResolver()
        self.locator = locator or ToolLocator()
        self.runner = runner or ProcessRunner()
        self.builder = builder or ImageBuilder(self.runner)
        self.uploader_factory = uploader_factory
        self.lock = lock or PipelineLock()
        self.ready_timeout = ready_timeout

    def plan(
        self,
        board: BoardSource,
        sketch_dir: Path,
        port: Optional[PortInfo],
        data_dir: str = "data",
    ) -> UploadPlan:
        """
        Run every stage up to (not including) the image build.

        Raises:
            UploadPipelineError: From the first failing stage
        """
        return self._plan(board, sketch_dir, port, data_dir, _StateTracker())

    def run(
        self,
        board: BoardSource,
        sketch_dir: Path,
        port: Optional[PortInfo],
        sink: OutputSink,
        data_dir: str = "data",
    ) -> UploadResult:
        """
        Build the sketch's filesystem image and upload it.

        Args:
            board: Board metadata (None when unknown) or a loader for it
            sketch_dir: Sketch directory holding the data folder
            port: Selected port
            sink: Receives progress, tool output and the error message
            data_dir: Name of the data folder inside the sketch

        Returns:
            UploadResult; failures are reported, never raised
        """
        if not sink.wait_ready(self.ready_timeout):
            logging.error("Output sink did not become ready")
            return UploadResult(
                success=False,
                message="Output not ready",
                state=PipelineState.VALIDATE_PRECONDITIONS,
            )

        try:
            self.lock.acquire()
        except PipelineBusy as e:
            sink.write(f"ERROR: {e}\r\n")
            return UploadResult(
                success=False,
                message=str(e),
                state=PipelineState.VALIDATE_PRECONDITIONS,
            )

        try:
            sink.clear()
            sink.write("LittleFS Filesystem Uploader\r\n\r\n")
            return self._run_locked(board, sketch_dir, port, sink, data_dir)
        finally:
            self.lock.release()

    def _run_locked(
        self,
        board: BoardSource,
        sketch_dir: Path,
        port: Optional[PortInfo],
        sink: OutputSink,
        data_dir: str,
    ) -> UploadResult:
        tracker = _StateTracker()
        try:
            plan = self._plan(board, sketch_dir, port, data_dir, tracker)

            with self.builder.temporary_image() as image:
                tracker.state = PipelineState.BUILD_IMAGE
                self.builder.build(
                    plan.data_folder, plan.layout, plan.mklittlefs, sink, image
                )

                tracker.state = PipelineState.UPLOAD_IMAGE
                plan.uploader.upload(
                    image,
                    plan.layout,
                    plan.target,
                    plan.python3,
                    plan.platform_path,
                    sink,
                )
        except UploadPipelineError as e:
            logging.info(f"Upload aborted during {tracker.state.value}: {e}")
            sink.write(f"ERROR: {e}\r\n\r\n")
            return UploadResult(success=False, message=str(e), state=tracker.state)

        tracker.state = PipelineState.REPORT_SUCCESS
        sink.write("\r\nCompleted upload.\r\n\r\n")
        return UploadResult(
            success=True,
            message="LittleFS upload completed!",
            state=tracker.state,
            image_size=plan.layout.size,
        )

    def _plan(
        self,
        board: BoardSource,
        sketch_dir: Path,
        port: Optional[PortInfo],
        data_dir: str,
        tracker: "_StateTracker",
    ) -> UploadPlan:
        tracker.state = PipelineState.VALIDATE_PRECONDITIONS
        data_folder = sketch_dir / data_dir
        if not data_folder.is_dir():
            raise MissingDataFolder("No data folder found")
        if callable(board):
            board = board()
        if board is None or not board.fqbn:
            raise MissingBoardDetails()

        tracker.state = PipelineState.RESOLVE_CONFIGURATION
        layout, target = self.resolver.resolve(board, port)
        profile = get_family_profile(board)

        tracker.state = PipelineState.LOCATE_TOOLS
        mklittlefs = self.locator.locate(board, profile.mklittlefs_key, "mklittlefs")
        python3 = self.locator.locate(board, profile.python3_key, "python3")
        platform_path = self.locator.find(board, PLATFORM_PATH_KEY)
        uploader = self.uploader_factory(profile.family, self.runner)

        return UploadPlan(
            data_folder=data_folder,
            layout=layout,
            target=target,
            mklittlefs=mklittlefs,
            python3=python3,
            platform_path=platform_path,
            uploader=uploader,
        )


class _StateTracker:
    """Current stage, kept outside the stage code so errors can name it."""

    def __init__(self) -> None:
        self.state = PipelineState.VALIDATE_PRECONDITIONS
