"""
Error types and actionable error reporting for termreel.

Every failure a playback run can hit has its own exception class so callers
(and tests) can tell a focus problem from a capture problem without string
matching. ErrorHandler turns any of them into a structured RunError with
suggestions the operator can act on.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """Categories of errors for appropriate handling."""
    PLAYBOOK = "playbook"
    DEPENDENCY = "dependency"
    FOCUS = "focus"
    AUTOMATION = "automation"
    CAPTURE = "capture"
    TRANSCODE = "transcode"
    UNKNOWN = "unknown"


class PlaybackError(Exception):
    """Base class for all termreel failures."""

    category = ErrorCategory.UNKNOWN
    fatal = True


class ParseError(PlaybackError):
    """The playbook document is malformed."""

    category = ErrorCategory.PLAYBOOK


class DependencyMissing(PlaybackError):
    """
    A required external tool is not installed.

    install_commands maps a missing tool to the command that installs it,
    or to None when the tool ships with the OS.
    """

    category = ErrorCategory.DEPENDENCY

    def __init__(
        self,
        message: str,
        missing: Optional[List[str]] = None,
        install_commands: Optional[Dict[str, Optional[str]]] = None,
    ):
        super().__init__(message)
        self.missing = missing or []
        self.install_commands = install_commands or {}


class AutomationError(PlaybackError):
    """A UI-automation call (osascript) failed."""

    category = ErrorCategory.AUTOMATION

    def __init__(self, message: str, stderr: Optional[str] = None):
        super().__init__(message)
        self.stderr = stderr


class FocusError(PlaybackError):
    """The terminal does not hold keyboard focus."""

    category = ErrorCategory.FOCUS

    def __init__(self, message: str, frontmost: Optional[str] = None):
        super().__init__(message)
        self.frontmost = frontmost


class FocusBlockedFullscreen(FocusError):
    """A fullscreen window is frontmost, keystrokes would be misrouted."""


class FocusMismatch(FocusError):
    """Some other application is frontmost."""


class CaptureError(PlaybackError):
    """The screen capture did not produce a usable recording."""

    category = ErrorCategory.CAPTURE


class CaptureStartFailed(CaptureError):
    """The capture process exited right after launch."""


class RecordingTooShort(CaptureError):
    """The recording ran for less than the minimum duration."""


class CaptureFileMissing(CaptureError):
    """The capture process did not leave a file behind."""


class CaptureFileTooSmall(CaptureError):
    """The capture file is too small to hold any video."""


class TranscodeError(PlaybackError):
    """ffmpeg could not convert the raw recording. Not fatal to a run."""

    category = ErrorCategory.TRANSCODE
    fatal = False

    def __init__(self, message: str, output: Optional[str] = None):
        super().__init__(message)
        self.output = output


@dataclass
class ActionableSuggestion:
    """A specific action the user can take to fix an error."""

    description: str
    command: Optional[str] = None  # Shell command to run
    link: Optional[str] = None  # Documentation link


@dataclass
class RunError:
    """
    A structured error with actionable suggestions.

    Provides clear explanation of what went wrong and
    specific steps to resolve it.
    """

    category: ErrorCategory
    message: str
    details: Optional[str] = None
    stage: Optional[str] = None
    suggestions: List[ActionableSuggestion] = field(default_factory=list)
    fatal: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "message": self.message,
            "details": self.details,
            "stage": self.stage,
            "suggestions": [
                {
                    "description": s.description,
                    "command": s.command,
                    "link": s.link,
                }
                for s in self.suggestions
            ],
            "fatal": self.fatal,
        }

    def format(self) -> str:
        """Format error for display."""
        label = "ERROR" if self.fatal else "WARNING"
        lines = [
            f"{self.category.value.upper()} {label}: {self.message}",
        ]

        if self.details:
            lines.append(f"\n   {self.details}")

        if self.stage:
            lines.append(f"\n   Stage: {self.stage}")

        if self.suggestions:
            lines.append("\n   Suggestions:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"      {i}. {suggestion.description}")
                if suggestion.command:
                    lines.append(f"         $ {suggestion.command}")
                if suggestion.link:
                    lines.append(f"         {suggestion.link}")

        return "\n".join(lines)


class ErrorHandler:
    """
    Maps termreel exceptions to actionable errors.

    Lookup walks the exception's MRO, so a subclass without its own entry
    inherits the suggestions of its parent.
    """

    def __init__(self):
        self.error_info = self._build_error_info()

    def _build_error_info(self) -> Dict[type, Dict[str, Any]]:
        """Build mapping of exception types to messages and suggestions."""
        return {
            ParseError: {
                "message": "Playbook could not be parsed",
                "suggestions": [
                    ActionableSuggestion(
                        description="Validate the document structure",
                        command="jq . playbook.json",
                    ),
                    ActionableSuggestion(
                        description=(
                            'Expected shape: {"setup": ["cmd"], '
                            '"runtime": [{"command": "cmd", "sleep": 5}]}'
                        ),
                    ),
                ],
            },
            DependencyMissing: {
                "message": "Required tool is not installed",
                "suggestions": [
                    ActionableSuggestion(
                        description="Check your setup",
                        command="python3 scripts/check_recording_setup.py",
                    ),
                ],
            },
            FocusBlockedFullscreen: {
                "message": "A fullscreen window is in front of the terminal",
                "suggestions": [
                    ActionableSuggestion(
                        description="Exit fullscreen mode (Ctrl+Cmd+F) and re-run",
                    ),
                    ActionableSuggestion(
                        description="Make sure the terminal window is not fullscreen either",
                    ),
                ],
            },
            FocusMismatch: {
                "message": "Another application took keyboard focus",
                "suggestions": [
                    ActionableSuggestion(
                        description="Avoid touching the keyboard or mouse during playback",
                    ),
                    ActionableSuggestion(
                        description="Check the --terminal name matches the running app",
                    ),
                ],
            },
            AutomationError: {
                "message": "macOS UI automation failed",
                "suggestions": [
                    ActionableSuggestion(
                        description=(
                            "Grant Accessibility permission to your terminal in "
                            "System Settings > Privacy & Security > Accessibility"
                        ),
                    ),
                    ActionableSuggestion(
                        description="Verify osascript can talk to System Events",
                        command="osascript -e 'tell application \"System Events\" to get name of processes'",
                    ),
                ],
            },
            CaptureError: {
                "message": "Screen recording failed",
                "suggestions": [
                    ActionableSuggestion(
                        description=(
                            "Grant Screen Recording permission in "
                            "System Settings > Privacy & Security > Screen Recording"
                        ),
                    ),
                    ActionableSuggestion(
                        description="Check available disk space",
                        command="df -h",
                    ),
                ],
            },
            RecordingTooShort: {
                "message": "Recording is shorter than the minimum duration",
                "suggestions": [
                    ActionableSuggestion(
                        description="Add runtime steps or increase their sleep values",
                    ),
                ],
            },
            TranscodeError: {
                "message": "Could not convert recording to MP4",
                "suggestions": [
                    ActionableSuggestion(
                        description="The raw .mov recording was kept; convert it manually",
                        command="ffmpeg -i recording.mov -c:v libx264 -pix_fmt yuv420p recording.mp4",
                    ),
                ],
            },
        }

    def _install_suggestions(self, error: DependencyMissing) -> List[ActionableSuggestion]:
        """One suggestion per missing tool."""
        suggestions = []
        for tool in error.missing:
            command = error.install_commands.get(tool)
            if command or tool not in error.install_commands:
                suggestions.append(
                    ActionableSuggestion(description=f"Install {tool}", command=command)
                )
            else:
                suggestions.append(
                    ActionableSuggestion(
                        description=f"{tool} ships with macOS; run termreel on a Mac",
                    )
                )
        return suggestions

    def analyze(
        self,
        error: Exception,
        stage: Optional[str] = None,
    ) -> RunError:
        """
        Analyze an exception and generate actionable error.

        Args:
            error: The exception that occurred
            stage: Optional stage name where error occurred

        Returns:
            RunError with suggestions
        """
        category = getattr(error, "category", ErrorCategory.UNKNOWN)
        fatal = getattr(error, "fatal", True)

        for cls in type(error).__mro__:
            info = self.error_info.get(cls)
            if info is not None:
                suggestions = info["suggestions"]
                if isinstance(error, DependencyMissing):
                    suggestions = self._install_suggestions(error) + suggestions
                return RunError(
                    category=category,
                    message=info["message"],
                    details=str(error),
                    stage=stage,
                    suggestions=suggestions,
                    fatal=fatal,
                )

        return RunError(
            category=ErrorCategory.UNKNOWN,
            message=f"An error occurred: {type(error).__name__}",
            details=str(error),
            stage=stage,
            suggestions=[
                ActionableSuggestion(
                    description="Check the error details above",
                ),
                ActionableSuggestion(
                    description="Re-run with --verbose for the full log",
                ),
            ],
            fatal=fatal,
        )

    def format_error(
        self,
        error: Exception,
        stage: Optional[str] = None,
    ) -> str:
        """Format an exception as an actionable error message."""
        return self.analyze(error, stage).format()


# Global error handler
_handler = ErrorHandler()


def handle_error(
    error: Exception,
    stage: Optional[str] = None,
) -> RunError:
    """
    Handle an exception and return structured error.

    Args:
        error: The exception
        stage: Optional stage name

    Returns:
        RunError with suggestions
    """
    return _handler.analyze(error, stage)


def format_error(
    error: Exception,
    stage: Optional[str] = None,
) -> str:
    """Format an exception as actionable error message."""
    return _handler.format_error(error, stage)
