"""Capture of xcodebuild output."""

import subprocess
from contextlib import suppress
from pathlib import Path
from typing import IO

import structlog

logger = structlog.get_logger()


class XcodeLogger:
    """Drains a process's stdout into structlog and, optionally, a file.

    Meant to run on a background thread; returns once the stream hits EOF.
    The stream is always read to EOF, even when the log file is unusable,
    so the child never blocks on a full pipe.
    """

    def __init__(self, process: subprocess.Popen, log_file: Path | None = None):
        self.process = process
        self.log_file = log_file

    def __call__(self) -> int:
        """Read output until EOF.

        Returns:
            Number of lines captured.
        """
        stream = self.process.stdout
        if stream is None:
            logger.debug("xcodebuild_output_not_piped", pid=self.process.pid)
            return 0

        sink = self._open_sink()

        count = 0
        try:
            for line in stream:
                if isinstance(line, bytes):
                    line = line.decode("utf-8", errors="replace")
                line = line.rstrip("\n")
                count += 1
                logger.debug("xcodebuild_output", pid=self.process.pid, line=line)
                if sink:
                    sink = self._write(sink, line)
        finally:
            if sink:
                sink.close()

        logger.debug("xcodebuild_output_closed", pid=self.process.pid, lines=count)
        return count

    def _open_sink(self) -> IO | None:
        if not self.log_file:
            return None
        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            return open(self.log_file, "a", encoding="utf-8")
        except OSError as e:
            logger.warning(
                "xcodebuild_log_file_unavailable", path=str(self.log_file), error=str(e)
            )
            return None

    def _write(self, sink: IO, line: str) -> IO | None:
        """Append a line; on failure close the sink and stop writing."""
        try:
            sink.write(line + "\n")
            sink.flush()
            return sink
        except OSError as e:
            logger.warning(
                "xcodebuild_log_write_failed", path=str(self.log_file), error=str(e)
            )
            with suppress(OSError):
                sink.close()
            return None
