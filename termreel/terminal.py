"""
Terminal application control: launching, focusing, and focus verification.

Keystrokes are injected into whatever app holds focus, so before every typed
command the controller re-checks that the configured terminal is frontmost
and not stuck behind (or inside) a fullscreen Space.
"""

import logging
import time

from .automation import Automation, FrontmostApp
from .errors import AutomationError, FocusBlockedFullscreen, FocusMismatch

logger = logging.getLogger(__name__)

DEFAULT_TERMINAL_APP = "iTerm"
LAUNCH_SETTLE_DELAY = 1.0  # seconds


def matches_terminal(process_name: str, terminal_app: str) -> bool:
    """
    Check a frontmost process name against the configured terminal.

    The app is "iTerm" but its process is "iTerm2", so a prefix match
    (case-insensitive) is accepted.
    """
    process = process_name.strip().lower()
    wanted = terminal_app.strip().lower()
    return bool(wanted) and process.startswith(wanted)


def check_focus(frontmost: FrontmostApp, terminal_app: str) -> None:
    """
    Apply the focus policy to a frontmost-app report.

    Raises:
        FocusBlockedFullscreen: any fullscreen window is frontmost
        FocusMismatch: frontmost app is not the terminal
    """
    if frontmost.is_fullscreen:
        raise FocusBlockedFullscreen(
            f"'{frontmost.name}' has a fullscreen window in front; "
            "keystrokes cannot reach the terminal",
            frontmost=frontmost.name,
        )
    if not matches_terminal(frontmost.name, terminal_app):
        raise FocusMismatch(
            f"Expected '{terminal_app}' to be frontmost, found '{frontmost.name}'",
            frontmost=frontmost.name,
        )


class TerminalController:
    """Keeps the configured terminal app running and in focus."""

    def __init__(
        self,
        automation: Automation,
        terminal_app: str = DEFAULT_TERMINAL_APP,
        settle_delay: float = LAUNCH_SETTLE_DELAY,
    ):
        self.automation = automation
        self._terminal_app = terminal_app
        self.settle_delay = settle_delay

    @property
    def terminal_app(self) -> str:
        return self._terminal_app

    def ensure_running(self) -> bool:
        """
        Make sure the terminal is running and activated.

        A freshly launched terminal is maximized (best effort) and given a
        short settle delay; this is a heuristic, not a readiness check.

        Either way the terminal is left with at least one window, since a
        running terminal with no window still reports itself frontmost and
        silently drops every keystroke.

        Returns:
            True if the terminal had to be launched
        """
        if self.automation.is_running(self._terminal_app):
            self.automation.activate(self._terminal_app)
            self.ensure_window()
            return False

        logger.info(f"Launching {self._terminal_app}")
        self.automation.activate(self._terminal_app)
        self.ensure_window()
        try:
            self.automation.maximize(self._terminal_app)
        except AutomationError as e:
            logger.warning(f"Could not maximize {self._terminal_app}: {e}")
        time.sleep(self.settle_delay)
        return True

    def ensure_window(self) -> bool:
        """Open a terminal window if none exists. Returns True if one was opened."""
        if self.automation.window_count(self._terminal_app) > 0:
            return False

        logger.info(f"{self._terminal_app} has no windows, opening one")
        self.automation.open_window(self._terminal_app)
        time.sleep(self.settle_delay)
        return True

    def ensure_focused(self) -> None:
        """Activate the terminal and verify it really holds focus."""
        self.automation.activate(self._terminal_app)
        frontmost = self.automation.query_frontmost()
        logger.debug(
            f"Frontmost: {frontmost.name} (fullscreen={frontmost.is_fullscreen})"
        )
        check_focus(frontmost, self._terminal_app)

    def clear_screen(self) -> None:
        self.ensure_focused()
        self.automation.clear_screen()
