"""
Recorder configuration for termreel.

Handles loading settings from ~/.config/termreel/config.yaml and
environment variables. Command-line flags are applied on top by the CLI.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .capture import CaptureConfig
from .input_driver import DEFAULT_CHUNK_DELAY
from .terminal import DEFAULT_TERMINAL_APP, LAUNCH_SETTLE_DELAY

logger = logging.getLogger(__name__)

TYPING_MODES = ("chunked", "fast", "normal")
DEFAULT_COMPLETION_COMMAND = 'echo "Demo complete"'


@dataclass
class RecorderConfig:
    """All knobs for a playback run."""

    terminal_app: str = DEFAULT_TERMINAL_APP
    output_dir: str = "recordings"
    typing: str = "chunked"
    chunk_delay: float = DEFAULT_CHUNK_DELAY
    launch_settle_delay: float = LAUNCH_SETTLE_DELAY
    completion_command: str = DEFAULT_COMPLETION_COMMAND
    completion_pause: float = 2.0  # seconds to linger on the completion message
    setup_cost: int = 1  # seconds to wait after each setup command
    clear_settle: float = 1.0  # seconds between clearing the screen and starting capture
    duration_buffer: int = 10  # seconds added to the duration estimate
    finalize_delay: float = 3.0  # seconds to let screencapture flush after stop
    capture: CaptureConfig = field(default_factory=CaptureConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "terminal": {"app": self.terminal_app},
            "typing": {"mode": self.typing, "chunk_delay": self.chunk_delay},
            "recording": {
                "output_dir": self.output_dir,
                "completion_command": self.completion_command,
                "completion_pause": self.completion_pause,
                "setup_cost": self.setup_cost,
                "clear_settle": self.clear_settle,
                "buffer": self.duration_buffer,
                "finalize_delay": self.finalize_delay,
                "min_duration": self.capture.min_duration,
                "min_bytes": self.capture.min_bytes,
            },
        }


def get_config_path() -> Path:
    """Get path to the user config file."""
    return Path.home() / ".config" / "termreel" / "config.yaml"


def _apply_file_settings(config: RecorderConfig, data: Dict[str, Any]) -> None:
    terminal = data.get("terminal") or {}
    if "app" in terminal:
        config.terminal_app = str(terminal["app"])

    typing = data.get("typing") or {}
    if "mode" in typing:
        config.typing = typing["mode"]
    if "chunk_delay" in typing:
        config.chunk_delay = float(typing["chunk_delay"])

    recording = data.get("recording") or {}
    if "output_dir" in recording:
        config.output_dir = str(recording["output_dir"])
    if "completion_command" in recording:
        config.completion_command = recording["completion_command"]
    if "completion_pause" in recording:
        config.completion_pause = float(recording["completion_pause"])
    if "setup_cost" in recording:
        config.setup_cost = int(recording["setup_cost"])
    if "clear_settle" in recording:
        config.clear_settle = float(recording["clear_settle"])
    if "buffer" in recording:
        config.duration_buffer = int(recording["buffer"])
    if "finalize_delay" in recording:
        config.finalize_delay = float(recording["finalize_delay"])
    if "min_duration" in recording:
        config.capture.min_duration = float(recording["min_duration"])
    if "min_bytes" in recording:
        config.capture.min_bytes = int(recording["min_bytes"])


def load_config(path: Optional[Path] = None) -> RecorderConfig:
    """
    Load configuration from file and environment variables.

    Priority: Environment variables > Config file > Defaults

    Args:
        path: Config file to read (defaults to get_config_path())

    Returns:
        RecorderConfig with loaded values
    """
    config = RecorderConfig()

    config_path = Path(path) if path else get_config_path()
    if config_path.exists():
        try:
            import yaml

            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
            _apply_file_settings(config, data)
        except Exception as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")

    if os.getenv("TERMREEL_TERMINAL_APP"):
        config.terminal_app = os.getenv("TERMREEL_TERMINAL_APP")
    if os.getenv("TERMREEL_OUTPUT_DIR"):
        config.output_dir = os.getenv("TERMREEL_OUTPUT_DIR")
    if os.getenv("TERMREEL_TYPING"):
        config.typing = os.getenv("TERMREEL_TYPING")

    if config.typing not in TYPING_MODES:
        logger.warning(f"Unknown typing mode {config.typing!r}, using 'chunked'")
        config.typing = "chunked"

    return config


def save_config(config: RecorderConfig, path: Optional[Path] = None) -> Path:
    """Write configuration to the config file."""
    import yaml

    config_path = Path(path) if path else get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)

    logger.info(f"Config saved to {config_path}")
    return config_path


def get_config_template() -> str:
    """Get template for the config file."""
    return """# termreel configuration

terminal:
  app: iTerm            # application that receives the keystrokes

typing:
  mode: chunked         # chunked, fast (~150 WPM) or normal (~50 WPM)
  chunk_delay: 0.05

recording:
  output_dir: recordings
  completion_command: 'echo "Demo complete"'
  completion_pause: 2
  setup_cost: 1         # seconds to wait after each setup command
  clear_settle: 1       # seconds between clearing the screen and recording
  buffer: 10            # extra seconds in the duration estimate
  finalize_delay: 3     # seconds to let screencapture flush
  min_duration: 5       # shorter recordings are rejected
  min_bytes: 1000       # smaller capture files are rejected
"""
