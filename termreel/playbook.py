"""
Playbook loading for termreel.

A playbook is a small JSON document (YAML is accepted for .yaml files):

    {
        "setup": ["cd ~/project", "export DEMO=1"],
        "runtime": [
            {"command": "ls -la", "sleep": 3},
            "git status"
        ]
    }

Setup commands run before recording starts. Runtime steps are recorded, each
followed by its sleep (5 seconds when omitted).
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Union

import yaml

from .errors import ParseError

logger = logging.getLogger(__name__)

DEFAULT_STEP_SLEEP = 5


@dataclass(frozen=True)
class RuntimeStep:
    """A recorded command and how long to linger on it afterwards."""

    command: str
    sleep: float = DEFAULT_STEP_SLEEP


@dataclass
class Playbook:
    """Parsed playbook: setup commands and runtime steps, in order."""

    setup: List[str] = field(default_factory=list)
    runtime: List[RuntimeStep] = field(default_factory=list)

    @property
    def total_sleep(self) -> float:
        return sum(step.sleep for step in self.runtime)


def _get_list(data: dict, key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseError(f"'{key}' must be a list, got {type(value).__name__}")
    return value


def _parse_command(value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise ParseError(f"{where} must be a string, got {type(value).__name__}")
    return value


def _parse_sleep(value: Any, where: str) -> float:
    # bool is an int subclass; "sleep": true is almost certainly a typo
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"{where} must be a number, got {value!r}")
    if value < 0:
        raise ParseError(f"{where} must not be negative, got {value!r}")
    return value


def parse_step(data: Union[str, dict], index: int) -> RuntimeStep:
    """Parse a runtime entry, either a bare command or a command/sleep mapping."""
    where = f"runtime[{index}]"

    if isinstance(data, str):
        return RuntimeStep(command=data)

    if not isinstance(data, dict):
        raise ParseError(
            f"{where} must be a string or an object, got {type(data).__name__}"
        )

    if "command" not in data:
        raise ParseError(f"{where} is missing 'command'")

    command = _parse_command(data["command"], f"{where}.command")
    sleep = data.get("sleep")
    if sleep is None:
        return RuntimeStep(command=command)
    return RuntimeStep(command=command, sleep=_parse_sleep(sleep, f"{where}.sleep"))


def parse_playbook(data: Any) -> Playbook:
    """
    Build a Playbook from already-decoded document data.

    Blank commands are dropped. Raises ParseError on anything that does
    not match the setup/runtime schema.
    """
    if data is None:
        return Playbook()
    if not isinstance(data, dict):
        raise ParseError(
            f"Playbook must be an object with 'setup' and 'runtime', got {type(data).__name__}"
        )

    setup = []
    for i, entry in enumerate(_get_list(data, "setup")):
        command = _parse_command(entry, f"setup[{i}]")
        if command.strip():
            setup.append(command)

    runtime = []
    for i, entry in enumerate(_get_list(data, "runtime")):
        step = parse_step(entry, i)
        if step.command.strip():
            runtime.append(step)

    return Playbook(setup=setup, runtime=runtime)


def load_playbook(path: Path) -> Playbook:
    """Load and parse a playbook file (JSON, or YAML for .yaml/.yml)."""
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
        raise ParseError(f"Could not parse {path}: {e}") from e
    except OSError as e:
        raise ParseError(f"Could not read {path}: {e}") from e

    playbook = parse_playbook(data)
    logger.info(
        f"Loaded {len(playbook.setup)} setup commands and "
        f"{len(playbook.runtime)} runtime steps from {path}"
    )
    return playbook
