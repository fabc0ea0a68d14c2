"""
Screen capture lifecycle for termreel.

Runs macOS `screencapture -v` as a background process, stops it with SIGINT
so it can finalize the .mov container, and validates what it left behind.
"""

import logging
import math
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import (
    CaptureFileMissing,
    CaptureFileTooSmall,
    CaptureStartFailed,
    RecordingTooShort,
)

logger = logging.getLogger(__name__)

START_GRACE_PERIOD = 2.0  # seconds before checking the process survived launch
STOP_TIMEOUT = 30  # seconds to wait for screencapture to exit after SIGINT
MIN_RECORDING_SECONDS = 5.0
MIN_CAPTURE_BYTES = 1000


@dataclass
class CaptureConfig:
    """Settings for the capture process and its validation."""

    start_grace: float = START_GRACE_PERIOD
    stop_timeout: float = STOP_TIMEOUT
    min_duration: float = MIN_RECORDING_SECONDS
    min_bytes: int = MIN_CAPTURE_BYTES


@dataclass
class CaptureResult:
    """A validated raw recording."""

    path: Path
    size_bytes: int
    duration_seconds: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "size_bytes": self.size_bytes,
            "duration_seconds": self.duration_seconds,
        }


def build_capture_command(output_path: Path, max_duration: Optional[float] = None) -> List[str]:
    """
    Build the screencapture command line.

    With max_duration the capture also stops on its own, so a process that
    outlives its parent does not record forever. It must be longer than the
    run, which stops the capture with SIGINT well before the limit.
    """
    cmd = ["screencapture", "-v", "-x"]
    if max_duration:
        cmd.extend(["-V", str(int(math.ceil(max_duration)))])
    cmd.append(str(output_path))
    return cmd


class CaptureSessionManager:
    """Starts, stops and validates a single screen recording process."""

    def __init__(self, config: Optional[CaptureConfig] = None):
        self.config = config or CaptureConfig()

    def start(self, output_path: Path, max_duration: Optional[float] = None) -> subprocess.Popen:
        """
        Launch the capture in the background.

        Raises:
            CaptureStartFailed: the process could not be spawned or exited
                within the grace period
        """
        output_path = Path(output_path)
        cmd = build_capture_command(output_path, max_duration)
        logger.info(f"Starting screen capture: {' '.join(cmd)}")

        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            raise CaptureStartFailed(f"Could not launch screencapture: {e}") from e

        time.sleep(self.config.start_grace)

        if process.poll() is not None:
            stderr = process.stderr.read() if process.stderr else ""
            raise CaptureStartFailed(
                f"screencapture exited with code {process.returncode} right after "
                f"starting: {stderr.strip() or 'no output'}"
            )

        logger.info(f"Screen capture running (pid {process.pid})")
        return process

    def is_alive(self, handle: Optional[subprocess.Popen]) -> bool:
        return handle is not None and handle.poll() is None

    def stop(self, handle: Optional[subprocess.Popen]) -> None:
        """
        Ask the capture to finish by sending SIGINT, then wait for it to exit.

        Never kills the process; screencapture finalizes the .mov on SIGINT.
        """
        if not self.is_alive(handle):
            return

        logger.info(f"Stopping screen capture (pid {handle.pid})")
        handle.send_signal(signal.SIGINT)
        try:
            handle.wait(timeout=self.config.stop_timeout)
        except subprocess.TimeoutExpired:
            logger.warning(
                f"screencapture (pid {handle.pid}) still running "
                f"{self.config.stop_timeout}s after SIGINT"
            )

    def validate(self, output_path: Path, elapsed: float) -> CaptureResult:
        """
        Check the recording is long enough and the file is real.

        Raises:
            RecordingTooShort: elapsed below the minimum duration
            CaptureFileMissing: no file at output_path
            CaptureFileTooSmall: file below the minimum size
        """
        output_path = Path(output_path)

        if elapsed < self.config.min_duration:
            raise RecordingTooShort(
                f"Recording lasted {elapsed:.1f}s, minimum is "
                f"{self.config.min_duration:.0f}s"
            )

        if not output_path.exists():
            raise CaptureFileMissing(f"Recording file not found: {output_path}")

        size = output_path.stat().st_size
        if size < self.config.min_bytes:
            raise CaptureFileTooSmall(
                f"Recording file {output_path} is only {size} bytes "
                f"(minimum {self.config.min_bytes})"
            )

        return CaptureResult(path=output_path, size_bytes=size, duration_seconds=elapsed)
