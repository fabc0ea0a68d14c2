#!/usr/bin/env python3
"""
termreel - record a terminal demo video from a JSON playbook

Types the playbook's commands into a live terminal with human-like timing
while macOS screencapture records the screen, then converts the recording
to MP4.

Usage:
    termreel demo.json
    termreel demo.json --terminal Terminal
    termreel demo.json -o videos --typing normal
    termreel demo.json --dry-run

Playbook format:
    {
        "setup": ["cd ~/project"],
        "runtime": [
            {"command": "ls -la", "sleep": 3},
            "git status"
        ]
    }

Setup commands run before recording. Each runtime step is followed by its
sleep in seconds (default 5).

Ctrl-C while steps are being typed aborts the run. Once the recording has
stopped, Ctrl-C skips the rest of the wait for the expected duration.
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from .automation import AppleScriptAutomation
from .capture import CaptureSessionManager
from .config import TYPING_MODES, RecorderConfig, load_config
from .dependencies import check_dependencies
from .errors import DependencyMissing, ParseError, PlaybackError, format_error
from .input_driver import InputDriver, make_strategy
from .orchestrator import PlaybackOrchestrator, PlaybackState, Session, estimate_duration
from .playbook import Playbook, load_playbook
from .terminal import TerminalController

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="termreel",
        description="Record a terminal demo video from a JSON playbook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument("playbook", type=Path, help="JSON playbook file")
    parser.add_argument(
        "-t",
        "--terminal",
        help="Terminal application to type into (default: iTerm)",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        help="Directory for recordings (default: recordings)",
    )
    parser.add_argument(
        "--typing",
        choices=TYPING_MODES,
        help="Typing style: chunked bursts, or fast/normal per character",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Config file (default: ~/.config/termreel/config.yaml)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the playbook and print the plan without typing or recording",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )

    return parser.parse_args(argv)


def apply_overrides(config: RecorderConfig, args: argparse.Namespace) -> RecorderConfig:
    """Command-line flags take precedence over file and environment."""
    if args.terminal:
        config.terminal_app = args.terminal
    if args.output_dir:
        config.output_dir = str(args.output_dir)
    if args.typing:
        config.typing = args.typing
    return config


def build_orchestrator(config: RecorderConfig) -> PlaybackOrchestrator:
    """Wire the real osascript, screencapture and ffmpeg collaborators."""
    automation = AppleScriptAutomation()
    terminal = TerminalController(
        automation,
        terminal_app=config.terminal_app,
        settle_delay=config.launch_settle_delay,
    )
    driver = InputDriver(
        automation,
        terminal,
        strategy=make_strategy(config.typing, chunk_delay=config.chunk_delay),
    )
    capture = CaptureSessionManager(config.capture)
    return PlaybackOrchestrator(terminal, driver, capture, config=config)


def print_plan(playbook: Playbook, config: RecorderConfig) -> None:
    """Print what a run would do."""
    print("=" * 60)
    print("PLAYBACK PLAN")
    print("=" * 60)
    print(f"\nTerminal: {config.terminal_app}")
    print(f"Output directory: {config.output_dir}")
    print(f"Typing: {config.typing}")

    print(f"\nSetup ({len(playbook.setup)}):")
    for command in playbook.setup:
        print(f"  $ {command}")

    print(f"\nRuntime ({len(playbook.runtime)}):")
    for step in playbook.runtime:
        print(f"  $ {step.command}  (then wait {step.sleep}s)")

    if config.completion_command:
        print(f"\nCompletion: $ {config.completion_command}")

    expected = estimate_duration(
        playbook,
        setup_cost=config.setup_cost,
        buffer=config.duration_buffer,
    )
    print(f"\nExpected duration: {expected}s")
    print("=" * 60)


def _raise_on_sigterm(signum, frame):
    raise SystemExit(128 + signum)


def make_interrupt_handler(orchestrator: PlaybackOrchestrator, session: Session):
    """
    SIGINT handler for a run.

    Once the capture is stopped, Ctrl-C only cuts the deadline wait short.
    Before that it interrupts the run as usual.
    """
    def handler(signum, frame):
        if session.state is PlaybackState.STOPPING_CAPTURE:
            logger.info("Skipping the rest of the deadline wait")
            orchestrator.cancel()
            return
        raise KeyboardInterrupt

    return handler


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = apply_overrides(load_config(args.config), args)

    try:
        playbook = load_playbook(args.playbook)
    except ParseError as e:
        print(format_error(e, stage="load playbook"), file=sys.stderr)
        return 1

    if args.dry_run:
        print_plan(playbook, config)
        return 0

    try:
        check_dependencies()
    except DependencyMissing as e:
        print(format_error(e, stage="preflight"), file=sys.stderr)
        return 1

    orchestrator = build_orchestrator(config)
    # SIGTERM unwinds through the orchestrator's cleanup like any other error
    signal.signal(signal.SIGTERM, _raise_on_sigterm)

    try:
        session = orchestrator.new_session()
    except OSError as e:
        print(format_error(e, stage="create output directory"), file=sys.stderr)
        return 1
    signal.signal(signal.SIGINT, make_interrupt_handler(orchestrator, session))
    print(f"Recording {args.playbook} as run {session.run_id}...")

    try:
        result = orchestrator.run(playbook, session)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        if session.raw_path.exists():
            print(f"Partial recording left at: {session.raw_path}", file=sys.stderr)
        return 130
    except (PlaybackError, OSError) as e:
        stage = session.failed_in.value if session.failed_in else None
        print(format_error(e, stage=stage), file=sys.stderr)
        if session.raw_path.exists():
            print(f"Partial recording left at: {session.raw_path}", file=sys.stderr)
        return 1

    if result.warning:
        print(f"\nWarning: {result.warning}", file=sys.stderr)
        print(f"Raw recording kept at: {result.raw_path}")
        return 0

    print(f"\nRecording saved to: {result.video_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
