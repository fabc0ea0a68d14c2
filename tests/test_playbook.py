"""Tests for playbook loading."""

import json

import pytest

from termreel.errors import ParseError
from termreel.playbook import (
    DEFAULT_STEP_SLEEP,
    Playbook,
    RuntimeStep,
    load_playbook,
    parse_playbook,
    parse_step,
)


class TestRuntimeStep:
    """Tests for RuntimeStep dataclass."""

    def test_default_sleep(self):
        """Should default to a 5 second sleep."""
        step = RuntimeStep(command="ls")

        assert step.sleep == 5
        assert DEFAULT_STEP_SLEEP == 5

    def test_is_immutable(self):
        """Should not allow changes after parsing."""
        step = RuntimeStep(command="ls", sleep=2)

        with pytest.raises(AttributeError):
            step.command = "rm -rf /"


class TestParseStep:
    """Tests for parse_step function."""

    def test_bare_string(self):
        """Should treat a bare string as a command with default sleep."""
        assert parse_step("git status", 0) == RuntimeStep("git status", 5)

    def test_mapping_with_sleep(self):
        """Should read command and sleep from a mapping."""
        assert parse_step({"command": "ls", "sleep": 2}, 0) == RuntimeStep("ls", 2)

    def test_mapping_without_sleep(self):
        """Should default sleep when omitted from a mapping."""
        assert parse_step({"command": "ls"}, 0).sleep == 5

    def test_null_sleep_uses_default(self):
        """Should treat an explicit null sleep as omitted."""
        assert parse_step({"command": "ls", "sleep": None}, 0).sleep == 5

    def test_fractional_sleep(self):
        """Should accept fractional sleeps."""
        assert parse_step({"command": "ls", "sleep": 0.5}, 0).sleep == 0.5

    def test_missing_command(self):
        """Should reject a mapping without a command."""
        with pytest.raises(ParseError, match=r"runtime\[3\] is missing 'command'"):
            parse_step({"sleep": 2}, 3)

    def test_non_string_command(self):
        """Should reject a non-string command."""
        with pytest.raises(ParseError, match=r"runtime\[0\]\.command"):
            parse_step({"command": 42}, 0)

    def test_non_numeric_sleep(self):
        """Should reject a string sleep."""
        with pytest.raises(ParseError, match=r"runtime\[1\]\.sleep"):
            parse_step({"command": "ls", "sleep": "5"}, 1)

    def test_boolean_sleep(self):
        """Should reject a boolean sleep."""
        with pytest.raises(ParseError):
            parse_step({"command": "ls", "sleep": True}, 0)

    def test_negative_sleep(self):
        """Should reject a negative sleep."""
        with pytest.raises(ParseError, match="negative"):
            parse_step({"command": "ls", "sleep": -1}, 0)

    def test_wrong_entry_type(self):
        """Should reject entries that are neither string nor mapping."""
        with pytest.raises(ParseError):
            parse_step(["ls"], 0)


class TestParsePlaybook:
    """Tests for parse_playbook function."""

    def test_parses_both_sections(self, sample_playbook_data):
        """Should keep setup and runtime in document order."""
        playbook = parse_playbook(sample_playbook_data)

        assert playbook.setup == ["cd ~/project", "export DEMO=1"]
        assert playbook.runtime == [
            RuntimeStep("ls -la", 3),
            RuntimeStep("git status", 5),
            RuntimeStep("make test", 5),
        ]

    def test_empty_document(self):
        """Should produce empty sequences for an empty object."""
        playbook = parse_playbook({})

        assert playbook.setup == []
        assert playbook.runtime == []

    def test_empty_arrays(self):
        """Should accept empty arrays."""
        playbook = parse_playbook({"setup": [], "runtime": []})

        assert playbook == Playbook()

    def test_null_sections(self):
        """Should treat null sections as absent."""
        playbook = parse_playbook({"setup": None, "runtime": None})

        assert playbook == Playbook()

    def test_none_document(self):
        """Should treat an empty file as an empty playbook."""
        assert parse_playbook(None) == Playbook()

    def test_skips_blank_commands(self):
        """Should drop blank setup and runtime commands."""
        playbook = parse_playbook({
            "setup": ["", "  ", "echo hi"],
            "runtime": ["", {"command": "   ", "sleep": 1}, "ls"],
        })

        assert playbook.setup == ["echo hi"]
        assert playbook.runtime == [RuntimeStep("ls")]

    def test_rejects_non_object(self):
        """Should reject a top-level array."""
        with pytest.raises(ParseError, match="must be an object"):
            parse_playbook(["echo a"])

    def test_rejects_non_list_setup(self):
        """Should reject setup given as a string."""
        with pytest.raises(ParseError, match="'setup' must be a list"):
            parse_playbook({"setup": "echo a"})

    def test_rejects_non_string_setup_entry(self):
        """Should reject non-string setup commands."""
        with pytest.raises(ParseError, match=r"setup\[1\]"):
            parse_playbook({"setup": ["echo a", {"command": "b"}]})

    def test_total_sleep(self, sample_playbook_data):
        """Should sum step sleeps, counting defaults."""
        assert parse_playbook(sample_playbook_data).total_sleep == 13


class TestLoadPlaybook:
    """Tests for load_playbook function."""

    def test_loads_json_file(self, playbook_file):
        """Should load a JSON playbook from disk."""
        playbook = load_playbook(playbook_file)

        assert len(playbook.setup) == 2
        assert len(playbook.runtime) == 3

    def test_loads_yaml_file(self, tmp_path):
        """Should load a YAML playbook from disk."""
        path = tmp_path / "demo.yaml"
        path.write_text(
            "setup:\n"
            "  - cd /tmp\n"
            "runtime:\n"
            "  - command: ls\n"
            "    sleep: 1\n"
            "  - pwd\n"
        )

        playbook = load_playbook(path)

        assert playbook.setup == ["cd /tmp"]
        assert playbook.runtime == [RuntimeStep("ls", 1), RuntimeStep("pwd")]

    def test_malformed_json(self, tmp_path):
        """Should raise ParseError for broken JSON."""
        path = tmp_path / "broken.json"
        path.write_text('{"setup": ["echo a",')

        with pytest.raises(ParseError, match="Could not parse"):
            load_playbook(path)

    def test_malformed_yaml(self, tmp_path):
        """Should raise ParseError for broken YAML."""
        path = tmp_path / "broken.yaml"
        path.write_text("setup: [unclosed\n")

        with pytest.raises(ParseError):
            load_playbook(path)

    def test_missing_file(self, tmp_path):
        """Should raise ParseError for a missing file."""
        with pytest.raises(ParseError, match="Could not read"):
            load_playbook(tmp_path / "nope.json")

    def test_schema_error_from_file(self, tmp_path):
        """Should surface schema errors from file contents."""
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"runtime": [{"sleep": 1}]}))

        with pytest.raises(ParseError, match="missing 'command'"):
            load_playbook(path)

    @pytest.mark.parametrize("name", ["latin1.json", "latin1.yaml"])
    def test_non_utf8_file(self, tmp_path, name):
        """Should raise ParseError for bytes that are not UTF-8."""
        path = tmp_path / name
        path.write_bytes(b'{"setup": ["echo caf\xe9"]}')

        with pytest.raises(ParseError, match="Could not parse"):
            load_playbook(path)
