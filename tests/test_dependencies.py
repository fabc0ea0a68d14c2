"""Tests for external tool checks."""

from unittest.mock import patch

import pytest

from termreel.dependencies import REQUIRED_TOOLS, check_dependencies, find_missing
from termreel.errors import DependencyMissing


class TestFindMissing:
    @patch("termreel.dependencies.shutil.which")
    def test_reports_missing(self, mock_which):
        mock_which.side_effect = lambda tool: None if tool == "ffmpeg" else f"/usr/bin/{tool}"

        assert find_missing(REQUIRED_TOOLS) == ["ffmpeg"]


class TestCheckDependencies:
    """Tests for check_dependencies function."""

    @patch("termreel.dependencies.shutil.which", return_value="/usr/bin/tool")
    def test_all_present(self, mock_which):
        check_dependencies()

        assert mock_which.call_count == 3

    @patch("termreel.dependencies.shutil.which", return_value=None)
    def test_lists_every_missing_tool(self, mock_which):
        with pytest.raises(DependencyMissing) as exc_info:
            check_dependencies()

        assert exc_info.value.missing == ["ffmpeg", "osascript", "screencapture"]
        assert "brew install ffmpeg" in str(exc_info.value)

    @patch("termreel.dependencies.shutil.which", return_value=None)
    def test_unknown_tool_without_hint(self, mock_which):
        with pytest.raises(DependencyMissing, match="Required tools not found: sox") as exc_info:
            check_dependencies(["sox"])

        assert exc_info.value.install_commands == {}

    @patch("termreel.dependencies.shutil.which")
    def test_install_commands_only_for_missing(self, mock_which):
        mock_which.side_effect = lambda tool: None if tool == "screencapture" else f"/usr/bin/{tool}"

        with pytest.raises(DependencyMissing) as exc_info:
            check_dependencies()

        assert exc_info.value.install_commands == {"screencapture": None}
        assert "brew" not in str(exc_info.value)
