"""
External tool checks.
"""

import logging
import shutil
from typing import Dict, Iterable, List, Optional

from .errors import DependencyMissing

logger = logging.getLogger(__name__)

# tool -> install command (None for tools that ship with macOS)
REQUIRED_TOOLS: Dict[str, Optional[str]] = {
    "ffmpeg": "brew install ffmpeg",
    "osascript": None,
    "screencapture": None,
}


def install_hint(tool: str) -> str:
    if tool not in REQUIRED_TOOLS:
        return "install it"
    return REQUIRED_TOOLS[tool] or "ships with macOS"


def find_missing(tools: Iterable[str]) -> List[str]:
    """Return the tools that are not on PATH."""
    return [tool for tool in tools if shutil.which(tool) is None]


def check_dependencies(tools: Iterable[str] = tuple(REQUIRED_TOOLS)) -> None:
    """
    Verify required tools are installed.

    Raises:
        DependencyMissing: listing every missing tool
    """
    missing = find_missing(tools)
    if not missing:
        return

    hints = ", ".join(f"{tool} ({install_hint(tool)})" for tool in missing)
    raise DependencyMissing(
        f"Required tools not found: {hints}",
        missing=missing,
        install_commands={tool: REQUIRED_TOOLS[tool] for tool in missing if tool in REQUIRED_TOOLS},
    )
