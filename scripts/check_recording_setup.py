#!/usr/bin/env python3
"""
Check if the recording environment is properly configured.

This script verifies:
- ffmpeg, osascript and screencapture are available
- PyYAML is installed
- osascript can talk to System Events (Accessibility permission)
- the configured terminal app and output directory

Usage:
    python3 check_recording_setup.py
"""

import subprocess
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from termreel.config import get_config_path, load_config  # noqa: E402
from termreel.dependencies import REQUIRED_TOOLS, find_missing, install_hint  # noqa: E402


def check_python_package(package_name: str, import_name: str = None) -> bool:
    """Check if a Python package is installed."""
    if import_name is None:
        import_name = package_name

    try:
        __import__(import_name)
        print(f"  ✓ {package_name}: Installed")
        return True
    except ImportError:
        print(f"  ✗ {package_name}: Not installed")
        return False


def check_tool(tool: str) -> bool:
    """Check if a system command is on PATH."""
    if find_missing([tool]):
        print(f"  ✗ {tool}: Not found ({install_hint(tool)})")
        return False
    print(f"  ✓ {tool}: Found")
    return True


def check_accessibility() -> bool:
    """Check osascript may query System Events."""
    try:
        result = subprocess.run(
            [
                "osascript", "-e",
                'tell application "System Events" to get name of first application process whose frontmost is true',
            ],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (subprocess.SubprocessError, FileNotFoundError):
        print("  ✗ System Events: osascript unavailable")
        return False

    if result.returncode == 0:
        print(f"  ✓ System Events: frontmost app is {result.stdout.strip()}")
        return True

    print(f"  ✗ System Events: {result.stderr.strip()}")
    return False


def main():
    """Run all checks."""
    print("=== Recording Environment Check ===\n")

    all_ok = True

    print("System Dependencies:")
    for tool in REQUIRED_TOOLS:
        all_ok &= check_tool(tool)
    print()

    print("Python Dependencies:")
    all_ok &= check_python_package("PyYAML", "yaml")
    print()

    print("Permissions:")
    all_ok &= check_accessibility()
    print()

    config = load_config()
    print("Configuration:")
    config_path = get_config_path()
    if config_path.exists():
        print(f"  ✓ Config file: {config_path}")
    else:
        print(f"  ○ Config file: {config_path} (optional, using defaults)")
    print(f"  Terminal app: {config.terminal_app}")
    print(f"  Output directory: {config.output_dir}")
    print()

    print("=" * 50)
    if all_ok:
        print("✓ All checks passed! Ready to record.")
        print("\nRun:")
        print("  termreel playbook.json")
        return 0
    else:
        print("✗ Some checks failed. Please fix the issues above.")
        print("\nSetup instructions:")
        print("  1. Install ffmpeg: brew install ffmpeg")
        print("  2. Install dependencies: pip install -e .")
        print("  3. Grant Accessibility and Screen Recording permissions to your terminal:")
        print("     System Settings > Privacy & Security")
        return 1


if __name__ == "__main__":
    sys.exit(main())
