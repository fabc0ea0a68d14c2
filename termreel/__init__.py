"""termreel: record terminal demo videos from JSON playbooks."""

from .errors import (
    CaptureError,
    CaptureFileMissing,
    CaptureFileTooSmall,
    CaptureStartFailed,
    DependencyMissing,
    FocusBlockedFullscreen,
    FocusMismatch,
    ParseError,
    PlaybackError,
    RecordingTooShort,
    TranscodeError,
)
from .playbook import Playbook, RuntimeStep, load_playbook, parse_playbook

__version__ = "0.1.0"

# Re-export for convenience
__all__ = [
    # Playbook
    "Playbook",
    "RuntimeStep",
    "load_playbook",
    "parse_playbook",
    # Errors
    "PlaybackError",
    "ParseError",
    "DependencyMissing",
    "FocusBlockedFullscreen",
    "FocusMismatch",
    "CaptureError",
    "CaptureStartFailed",
    "RecordingTooShort",
    "CaptureFileMissing",
    "CaptureFileTooSmall",
    "TranscodeError",
]


# Lazy imports for modules that shell out
def __getattr__(name):
    """Lazy import for orchestration classes."""
    if name == "PlaybackOrchestrator":
        from .orchestrator import PlaybackOrchestrator
        return PlaybackOrchestrator
    elif name == "RecorderConfig":
        from .config import RecorderConfig
        return RecorderConfig
    elif name == "load_config":
        from .config import load_config
        return load_config
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
