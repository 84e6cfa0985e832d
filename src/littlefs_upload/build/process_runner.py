"""Process execution with streamed output.

The image builder and the upload helpers print progress while they run
(esptool and uf2conv draw progress without trailing newlines), so output is
forwarded in raw chunks as soon as it arrives rather than line by line.
"""

import codecs
import logging
import subprocess
from threading import Thread
from typing import IO, List, Optional, Sequence

import psutil

from littlefs_upload.errors import SpawnFailure
from littlefs_upload.output import OutputSink

READ_CHUNK_SIZE = 4096


def normalize_newlines(text: str) -> str:
    """Rewrite bare line feeds as CRLF for terminal-like sinks."""
    return text.replace("\n", "\r\n")


class ProcessRunner:
    """Runs an external tool and streams both output channels to a sink."""

    def run(self, command: str, args: Sequence[str], sink: OutputSink) -> int:
        """
        Run `command` with `args` and wait for it to finish.

        stdout and stderr are drained concurrently and both are fully consumed
        before the exit code is returned.

        Args:
            command: Executable path or bare name
            args: Arguments, passed verbatim
            sink: Receives decoded, CRLF-normalized output

        Returns:
            Process exit code; non-zero is not raised

        Raises:
            SpawnFailure: If the command cannot be started
        """
        cmd: List[str] = [command, *args]
        logging.debug(f"Running: {' '.join(cmd)}")

        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise SpawnFailure(command, "command not found") from e
        except PermissionError as e:
            raise SpawnFailure(command, "permission denied") from e
        except OSError as e:
            raise SpawnFailure(command, str(e)) from e

        readers = [
            Thread(target=self._pump, args=(process.stdout, sink), daemon=True),
            Thread(target=self._pump, args=(process.stderr, sink), daemon=True),
        ]
        for reader in readers:
            reader.start()

        try:
            return_code = process.wait()
            for reader in readers:
                reader.join()
        except KeyboardInterrupt:
            self._kill_tree(process.pid)
            raise

        logging.debug(f"{command} exited with code {return_code}")
        return return_code

    @staticmethod
    def _pump(stream: Optional[IO[bytes]], sink: OutputSink) -> None:
        """Forward a pipe to the sink until EOF."""
        if stream is None:
            return
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        read = getattr(stream, "read1", stream.read)
        try:
            while True:
                chunk = read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                text = decoder.decode(chunk)
                if text:
                    sink.write(normalize_newlines(text))
            tail = decoder.decode(b"", final=True)
            if tail:
                sink.write(normalize_newlines(tail))
        finally:
            stream.close()

    @staticmethod
    def _kill_tree(pid: int) -> None:
        """Terminate a process and all of its children."""
        try:
            root = psutil.Process(pid)
        except psutil.NoSuchProcess:
            return

        procs = root.children(recursive=True) + [root]
        for proc in procs:
            try:
                proc.terminate()
            except psutil.NoSuchProcess:
                pass

        _gone, alive = psutil.wait_procs(procs, timeout=3)
        for proc in alive:
            try:
                proc.kill()
                logging.warning(f"Force killed stubborn process {proc.pid}")
            except psutil.NoSuchProcess:
                pass
