"""
macOS UI automation via osascript.

Everything platform specific about driving the desktop sits behind the
Automation interface: activating an app, asking which app is frontmost (and
whether it is fullscreen), and injecting keystrokes. The orchestration code
only ever talks to this interface, so tests substitute a fake.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import List

from .errors import AutomationError

logger = logging.getLogger(__name__)

OSASCRIPT_TIMEOUT = 30  # seconds

# macOS virtual keycode for Return
_RETURN_KEYCODE = 36

_FRONTMOST_SCRIPT = """
tell application "System Events"
    set frontApp to first application process whose frontmost is true
    set appName to name of frontApp
    set isFull to false
    try
        repeat with w in windows of frontApp
            if value of attribute "AXFullScreen" of w is true then
                set isFull to true
            end if
        end repeat
    end try
    return appName & "|" & (isFull as text)
end tell
"""


@dataclass(frozen=True)
class FrontmostApp:
    """What the window server reports as holding keyboard focus."""

    name: str
    is_fullscreen: bool = False


def applescript_string(text: str) -> str:
    """Quote text as an AppleScript string literal."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def parse_frontmost(output: str) -> FrontmostApp:
    """Parse the 'name|true' line printed by the frontmost query."""
    name, _, fullscreen = output.strip().rpartition("|")
    if not name:
        raise AutomationError(f"Unexpected frontmost query output: {output!r}")
    return FrontmostApp(name=name, is_fullscreen=fullscreen.strip() == "true")


class Automation:
    """Capability interface for desktop automation."""

    def activate(self, app: str) -> None:
        """Bring app to the front, launching it if needed."""
        raise NotImplementedError

    def query_frontmost(self) -> FrontmostApp:
        raise NotImplementedError

    def send_keystrokes(self, text: str) -> None:
        """Type text into whatever holds focus."""
        raise NotImplementedError

    def press_return(self) -> None:
        raise NotImplementedError

    def is_running(self, app: str) -> bool:
        raise NotImplementedError

    def window_count(self, app: str) -> int:
        raise NotImplementedError

    def open_window(self, app: str) -> None:
        """Open a new window (and shell session) in app."""
        raise NotImplementedError

    def maximize(self, app: str) -> None:
        raise NotImplementedError

    def clear_screen(self) -> None:
        """Clear the focused terminal's screen and scrollback."""
        raise NotImplementedError


class AppleScriptAutomation(Automation):
    """
    Automation backed by osascript and System Events.

    Each call is a synchronous osascript run; a non-zero exit is the only
    error signal and becomes AutomationError.
    """

    def __init__(self, timeout: int = OSASCRIPT_TIMEOUT):
        self.timeout = timeout

    def run_script(self, script: str) -> str:
        """Run an AppleScript and return its stdout."""
        return self._osascript(["-e", script])

    def _osascript(self, args: List[str]) -> str:
        try:
            result = subprocess.run(
                ["osascript", *args],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise AutomationError("osascript not found (macOS only)") from e
        except subprocess.TimeoutExpired as e:
            raise AutomationError(f"osascript timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise AutomationError(
                f"osascript failed: {result.stderr.strip()}",
                stderr=result.stderr,
            )
        return result.stdout.strip()

    def activate(self, app: str) -> None:
        self.run_script(f"tell application {applescript_string(app)} to activate")

    def query_frontmost(self) -> FrontmostApp:
        return parse_frontmost(self.run_script(_FRONTMOST_SCRIPT))

    def send_keystrokes(self, text: str) -> None:
        self.run_script(
            f'tell application "System Events" to keystroke {applescript_string(text)}'
        )

    def press_return(self) -> None:
        self.run_script(
            f'tell application "System Events" to key code {_RETURN_KEYCODE}'
        )

    def is_running(self, app: str) -> bool:
        output = self.run_script(f"application {applescript_string(app)} is running")
        return output == "true"

    def window_count(self, app: str) -> int:
        output = self.run_script(f"tell application {applescript_string(app)} to count windows")
        try:
            return int(output)
        except ValueError as e:
            raise AutomationError(f"Unexpected window count from {app}: {output!r}") from e

    def open_window(self, app: str) -> None:
        if app.lower().startswith("iterm"):
            self.run_script(
                f"tell application {applescript_string(app)} to create window with default profile"
            )
            return
        # Terminal and most other terminals open a window on Cmd+N
        self.activate(app)
        self.run_script(
            'tell application "System Events" to keystroke "n" using command down'
        )

    def maximize(self, app: str) -> None:
        # Zoom, not AXFullScreen: ensure_focused refuses fullscreen windows
        self.run_script(
            'tell application "System Events"\n'
            f"    tell process {applescript_string(app)}\n"
            '        click menu item "Zoom" of menu "Window" of menu bar 1\n'
            "    end tell\n"
            "end tell"
        )

    def clear_screen(self) -> None:
        self.run_script(
            'tell application "System Events" to keystroke "k" using command down'
        )
