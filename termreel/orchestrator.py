"""
Playback orchestration: setup, recording, teardown.

A run moves through these states:

    IDLE -> SETTING_UP -> RECORDING -> STOPPING_CAPTURE
         -> VALIDATING -> TRANSCODING -> DONE

and drops to FAILED from any of them on error. Setup commands are typed with
no capture running. Then screencapture starts, each runtime step is typed
and followed by its sleep, a completion message is typed, and the capture is
stopped, validated and transcoded.

The live capture process is held by the Session, which is passed explicitly
to cleanup() so an error anywhere in the run can still stop it.
"""

import logging
import math
import subprocess
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from .capture import CaptureResult, CaptureSessionManager
from .config import RecorderConfig
from .errors import TranscodeError
from .input_driver import InputDriver
from .playbook import Playbook
from .progress import ProgressTracker
from .terminal import TerminalController
from .transcoder import transcode

logger = logging.getLogger(__name__)

RECORDING_PREFIX = "screen_recording"
RAW_SUFFIX = ".mov"
FINAL_SUFFIX = ".mp4"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

# screencapture -V limit padding; the run stops the capture long before it
TYPING_ALLOWANCE_PER_CHAR = 0.25  # seconds, covers osascript round-trips
CAPTURE_LIMIT_MARGIN = 30  # seconds


class PlaybackState(Enum):
    """Phases of a playback run."""
    IDLE = "idle"
    SETTING_UP = "setting_up"
    RECORDING = "recording"
    STOPPING_CAPTURE = "stopping_capture"
    VALIDATING = "validating"
    TRANSCODING = "transcoding"
    DONE = "done"
    FAILED = "failed"


_NEXT_STATE = {
    PlaybackState.IDLE: PlaybackState.SETTING_UP,
    PlaybackState.SETTING_UP: PlaybackState.RECORDING,
    PlaybackState.RECORDING: PlaybackState.STOPPING_CAPTURE,
    PlaybackState.STOPPING_CAPTURE: PlaybackState.VALIDATING,
    PlaybackState.VALIDATING: PlaybackState.TRANSCODING,
    PlaybackState.TRANSCODING: PlaybackState.DONE,
}

TERMINAL_STATES = (PlaybackState.DONE, PlaybackState.FAILED)


def estimate_duration(
    playbook: Playbook,
    setup_cost: int = 1,
    buffer: int = 10,
) -> int:
    """
    Expected length of a run in whole seconds.

    N setup commands at setup_cost each, plus every runtime sleep, plus a
    fixed buffer. Fractional sleeps round the total up.
    """
    total = len(playbook.setup) * setup_cost + playbook.total_sleep + buffer
    return max(0, int(math.ceil(total)))


def capture_time_limit(
    playbook: Playbook,
    expected_duration: int,
    start_grace: float = 0,
    completion_command: str = "",
    completion_pause: float = 0,
) -> int:
    """
    Upper bound for the screencapture -V flag, in whole seconds.

    expected_duration only budgets the sleeps. While the capture runs there
    is also the start grace, the typing of every runtime command and of the
    completion message, and the completion pause.
    """
    typed_chars = sum(len(step.command) for step in playbook.runtime) + len(completion_command)
    limit = (
        expected_duration
        + start_grace
        + completion_pause
        + typed_chars * TYPING_ALLOWANCE_PER_CHAR
        + CAPTURE_LIMIT_MARGIN
    )
    return int(math.ceil(limit))


def make_run_timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def artifact_paths(output_dir: Path, timestamp: str) -> Tuple[str, Path, Path]:
    """
    Derive raw and final recording paths for a run.

    If artifacts for this timestamp already exist (two runs in the same
    second), a numeric suffix is added rather than overwriting them.

    Returns:
        (run_id, raw_path, final_path)
    """
    output_dir = Path(output_dir)
    run_id = timestamp
    counter = 0
    while True:
        stem = f"{RECORDING_PREFIX}_{run_id}"
        raw_path = output_dir / f"{stem}{RAW_SUFFIX}"
        final_path = output_dir / f"{stem}{FINAL_SUFFIX}"
        if not raw_path.exists() and not final_path.exists():
            return run_id, raw_path, final_path
        counter += 1
        run_id = f"{timestamp}_{counter}"


@dataclass
class Session:
    """Mutable state of one playback run."""

    terminal_app: str
    run_id: str
    raw_path: Path
    final_path: Path
    expected_duration: int = 0
    capture_handle: Optional[subprocess.Popen] = None
    start_timestamp: Optional[float] = None
    stop_timestamp: Optional[float] = None
    state: PlaybackState = PlaybackState.IDLE
    failed_in: Optional[PlaybackState] = None

    def advance(self, state: PlaybackState) -> None:
        """Move to the next phase, refusing out-of-order transitions."""
        if state is PlaybackState.FAILED:
            if self.state in TERMINAL_STATES:
                raise RuntimeError(f"Cannot fail a run that is already {self.state.value}")
            self.failed_in = self.state
        elif _NEXT_STATE.get(self.state) is not state:
            raise RuntimeError(
                f"Invalid transition {self.state.value} -> {state.value}"
            )
        logger.debug(f"Run {self.run_id}: {self.state.value} -> {state.value}")
        self.state = state

    @property
    def recording_seconds(self) -> Optional[float]:
        if self.start_timestamp is None or self.stop_timestamp is None:
            return None
        return self.stop_timestamp - self.start_timestamp


@dataclass
class PlaybackResult:
    """Outcome of a completed run."""

    status: str  # success, transcode_failed
    run_id: str
    video_path: Path
    raw_path: Optional[Path] = None
    expected_duration: int = 0
    recording_seconds: Optional[float] = None
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "run_id": self.run_id,
            "video_path": str(self.video_path),
            "raw_path": str(self.raw_path) if self.raw_path else None,
            "expected_duration": self.expected_duration,
            "recording_seconds": self.recording_seconds,
            "warning": self.warning,
        }


class PlaybackOrchestrator:
    """
    Drives a playbook through the terminal while recording the screen.

    Collaborators are injected so the whole run can be exercised against
    fakes; the CLI wires up the real osascript/screencapture/ffmpeg ones.
    """

    def __init__(
        self,
        terminal: TerminalController,
        driver: InputDriver,
        capture: CaptureSessionManager,
        config: Optional[RecorderConfig] = None,
        transcoder: Callable[[Path, Path], Path] = transcode,
        clock: Callable[[], float] = time.time,
        show_progress: Optional[bool] = None,
    ):
        self.terminal = terminal
        self.driver = driver
        self.capture = capture
        self.config = config or RecorderConfig()
        self.transcoder = transcoder
        self.clock = clock
        self.show_progress = show_progress
        self._cancelled = threading.Event()

    def new_session(self, now: Optional[datetime] = None) -> Session:
        """Create the session and output directory for a new run."""
        output_dir = Path(self.config.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        run_id, raw_path, final_path = artifact_paths(output_dir, make_run_timestamp(now))
        return Session(
            terminal_app=self.terminal.terminal_app,
            run_id=run_id,
            raw_path=raw_path,
            final_path=final_path,
        )

    def cancel(self) -> None:
        """End the post-recording deadline wait early."""
        self._cancelled.set()

    def run(self, playbook: Playbook, session: Optional[Session] = None) -> PlaybackResult:
        """
        Execute a full playback run.

        Any error moves the session to FAILED, stops a live capture, leaves
        the raw recording in place and re-raises. A transcode failure is
        not an error: the result carries a warning and the raw path.
        """
        session = session or self.new_session()
        try:
            self._set_up(playbook, session)
            self._record(playbook, session)
            self._stop_capture(session)
            capture_result = self._validate(session)
            return self._transcode(session, capture_result)
        except BaseException:
            if session.state not in TERMINAL_STATES:
                session.advance(PlaybackState.FAILED)
            self.cleanup(session)
            raise

    def cleanup(self, session: Session) -> None:
        """Stop the capture process if it is still running. Never raises."""
        handle = session.capture_handle
        if handle is None:
            return
        try:
            if self.capture.is_alive(handle):
                logger.warning("Stopping screen capture left running by failed run")
                self.capture.stop(handle)
        except Exception as e:
            logger.error(f"Could not stop screen capture (pid {handle.pid}): {e}")
        else:
            session.capture_handle = None

    def _set_up(self, playbook: Playbook, session: Session) -> None:
        session.advance(PlaybackState.SETTING_UP)
        self.terminal.ensure_running()

        logger.info(f"Running {len(playbook.setup)} setup commands")
        for command in playbook.setup:
            self.driver.type_command(command)
            time.sleep(self.config.setup_cost)

    def _record(self, playbook: Playbook, session: Session) -> None:
        session.advance(PlaybackState.RECORDING)
        session.expected_duration = estimate_duration(
            playbook,
            setup_cost=self.config.setup_cost,
            buffer=self.config.duration_buffer,
        )
        logger.info(f"Expected recording duration: {session.expected_duration}s")

        self.terminal.clear_screen()
        time.sleep(self.config.clear_settle)

        limit = capture_time_limit(
            playbook,
            session.expected_duration,
            start_grace=self.capture.config.start_grace,
            completion_command=self.config.completion_command,
            completion_pause=self.config.completion_pause,
        )
        session.capture_handle = self.capture.start(session.raw_path, limit)
        session.start_timestamp = self.clock()

        progress = ProgressTracker(
            len(playbook.runtime),
            estimated_duration=session.expected_duration,
            enabled=self.show_progress,
        )
        for index, step in enumerate(playbook.runtime):
            progress.update(index, step.command)
            self.driver.type_command(step.command)
            time.sleep(step.sleep)
        progress.finish()

        if self.config.completion_command:
            self.driver.type_command(self.config.completion_command)
            time.sleep(self.config.completion_pause)

    def _stop_capture(self, session: Session) -> None:
        session.advance(PlaybackState.STOPPING_CAPTURE)
        self.capture.stop(session.capture_handle)
        session.stop_timestamp = self.clock()
        # a capture that ignored SIGINT stays on the session for cleanup()
        if not self.capture.is_alive(session.capture_handle):
            session.capture_handle = None

        deadline = session.start_timestamp + session.expected_duration
        self._wait_until(deadline)
        time.sleep(self.config.finalize_delay)

    def _wait_until(self, deadline: float) -> None:
        remaining = deadline - self.clock()
        if remaining <= 0:
            return
        logger.debug(f"Waiting {remaining:.1f}s for the expected duration to pass")
        if self._cancelled.wait(timeout=remaining):
            logger.info("Deadline wait cancelled")

    def _validate(self, session: Session) -> CaptureResult:
        session.advance(PlaybackState.VALIDATING)
        # elapsed since capture start, including the deadline wait and finalize delay
        elapsed = self.clock() - session.start_timestamp
        result = self.capture.validate(session.raw_path, elapsed)
        logger.info(
            f"Recording OK: {result.size_bytes} bytes, {result.duration_seconds:.1f}s"
        )
        return result

    def _transcode(self, session: Session, capture_result: CaptureResult) -> PlaybackResult:
        session.advance(PlaybackState.TRANSCODING)
        try:
            self.transcoder(capture_result.path, session.final_path)
        except TranscodeError as e:
            logger.warning(f"Transcoding failed, keeping {capture_result.path}: {e}")
            session.advance(PlaybackState.DONE)
            return PlaybackResult(
                status="transcode_failed",
                run_id=session.run_id,
                video_path=capture_result.path,
                raw_path=capture_result.path,
                expected_duration=session.expected_duration,
                recording_seconds=session.recording_seconds,
                warning=str(e),
            )

        capture_result.path.unlink()
        session.advance(PlaybackState.DONE)
        logger.info(f"Recording saved to {session.final_path}")
        return PlaybackResult(
            status="success",
            run_id=session.run_id,
            video_path=session.final_path,
            expected_duration=session.expected_duration,
            recording_seconds=session.recording_seconds,
        )
