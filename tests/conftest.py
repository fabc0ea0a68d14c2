"""Pytest configuration and fixtures for termreel tests."""

import json
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from termreel.automation import Automation, FrontmostApp  # noqa: E402


class FakeAutomation(Automation):
    """In-memory desktop: records every call, reports a configurable frontmost app."""

    def __init__(self, frontmost="iTerm2", fullscreen=False, running=True, windows=1):
        self.frontmost = FrontmostApp(frontmost, fullscreen)
        self.running = running
        self.windows = windows
        self.calls = []
        self.typed = []

    def activate(self, app):
        self.calls.append(("activate", app))
        self.running = True

    def query_frontmost(self):
        self.calls.append(("query_frontmost",))
        return self.frontmost

    def send_keystrokes(self, text):
        self.calls.append(("keystrokes", text))
        self.typed.append(text)

    def press_return(self):
        self.calls.append(("return",))
        self.typed.append("\n")

    def is_running(self, app):
        self.calls.append(("is_running", app))
        return self.running

    def window_count(self, app):
        self.calls.append(("window_count", app))
        return self.windows

    def open_window(self, app):
        self.calls.append(("open_window", app))
        self.windows += 1

    def maximize(self, app):
        self.calls.append(("maximize", app))

    def clear_screen(self):
        self.calls.append(("clear_screen",))

    @property
    def text(self):
        """Everything typed so far, as one string."""
        return "".join(self.typed)


class FakeClock:
    """Monotonic fake time that only moves when sleep() is called."""

    def __init__(self, start=1_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


@pytest.fixture
def fake_automation():
    """A fake automation backend with iTerm focused."""
    return FakeAutomation()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def no_sleep(monkeypatch):
    """Make time.sleep a no-op everywhere."""
    sleep = MagicMock()
    monkeypatch.setattr("time.sleep", sleep)
    return sleep


@pytest.fixture
def sample_playbook_data():
    """Playbook document with both runtime entry forms."""
    return {
        "setup": ["cd ~/project", "export DEMO=1"],
        "runtime": [
            {"command": "ls -la", "sleep": 3},
            "git status",
            {"command": "make test"},
        ],
    }


@pytest.fixture
def playbook_file(tmp_path, sample_playbook_data):
    """Sample playbook written to disk as JSON."""
    path = tmp_path / "demo.json"
    path.write_text(json.dumps(sample_playbook_data))
    return path


@pytest.fixture(autouse=True)
def cleanup_env(monkeypatch):
    """Clean up environment variables that might affect tests."""
    for key in ["TERMREEL_TERMINAL_APP", "TERMREEL_OUTPUT_DIR", "TERMREEL_TYPING"]:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def make_automation():
    """Factory for fake automation backends with a chosen frontmost app."""
    return FakeAutomation
