"""Tests for cli_extensions/settings_commands.py - configuration layer CLI commands."""

import argparse
import json
from pathlib import Path
from unittest.mock import Mock

import pytest

from clubhouse.cli_extensions.settings_commands import SettingsCommands
from clubhouse.core import create_durable, read_project_settings
from clubhouse.core.registry import clubhouse_dir
from clubhouse.core.settings import read_local_layer


@pytest.fixture
def parser():
    parser = argparse.ArgumentParser()
    subparsers = parser.add_subparsers(dest="command")
    SettingsCommands.add_cli_arguments(subparsers)
    return parser


def _run(parser, project, *argv):
    SettingsCommands.process_cli_command(parser.parse_args(["settings", *argv]), project)


class TestSettingsCommandsAddCliArguments:

    def test_set_default_needs_a_value(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args(["settings", "set-default", "claudeMd"])

    def test_local_and_quick_exclusive(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args(["settings", "clear-default", "claudeMd", "--local", "--quick"])

    def test_directory_items_not_layer_items(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args(["settings", "set-default", "skills", "--value", "x"])

    def test_set_source(self, parser):
        assert parser.parse_args(["settings", "set-source", "skills", "shared/skills"]).path == "shared/skills"
        assert parser.parse_args(["settings", "set-source", "agents", "--unset"]).unset is True


class TestSettingsCommandsProcessCliCommand:

    def test_no_subcommand_shows_usage(self, project, capsys):
        SettingsCommands.process_cli_command(Mock(settings_command=None), project)
        assert "Usage: clubhouse settings <command>" in capsys.readouterr().out

    def test_set_default_syncs_agents(self, parser, project, shell):
        agent = create_durable(project, "a", "red", shell=shell)

        _run(parser, project, "set-default", "claudeMd", "--value", "# Team")

        assert read_project_settings(project).defaults == {"claudeMd": "# Team"}
        assert (Path(agent.workspace_path) / "CLAUDE.md").read_text() == "# Team"

    def test_set_default_json_from_file(self, parser, project, tmp_path):
        source = tmp_path / "mcp.json"
        source.write_text(json.dumps({"mcpServers": {"docs": {}}}))

        _run(parser, project, "set-default", "mcpConfig", "--file", str(source))

        assert read_project_settings(project).defaults["mcpConfig"] == {"mcpServers": {"docs": {}}}

    @pytest.mark.parametrize("value", ["not json", "[1, 2]"])
    def test_invalid_json_exits(self, parser, project, value):
        with pytest.raises(SystemExit):
            _run(parser, project, "set-default", "permissions", "--value", value)

    def test_missing_file_exits(self, parser, project, tmp_path):
        with pytest.raises(SystemExit):
            _run(parser, project, "set-default", "claudeMd", "--file", str(tmp_path / "nope.md"))

    def test_local_layer(self, parser, project):
        _run(parser, project, "set-default", "claudeMd", "--value", "mine", "--local")
        assert read_local_layer(project) == {"claudeMd": "mine"}
        assert read_project_settings(project).defaults == {}

    def test_quick_layer(self, parser, project):
        _run(parser, project, "set-default", "claudeMd", "--value", "quick", "--quick")
        assert read_project_settings(project).quick_overrides == {"claudeMd": "quick"}

    def test_clear_vs_inherit(self, parser, project):
        _run(parser, project, "set-default", "claudeMd", "--value", "x")

        _run(parser, project, "clear-default", "claudeMd")
        assert read_project_settings(project).defaults == {"claudeMd": None}

        _run(parser, project, "clear-default", "claudeMd", "--inherit")
        assert read_project_settings(project).defaults == {}

    def test_set_source(self, parser, project, shell):
        agent = create_durable(project, "a", "red", shell=shell)
        source = clubhouse_dir(project) / "shared" / "skills"
        source.mkdir(parents=True)
        (source / "test.md").write_text("run tests")

        _run(parser, project, "set-source", "skills", "shared/skills")

        assert (Path(agent.workspace_path) / ".claude" / "skills" / "test.md").exists()

        _run(parser, project, "set-source", "skills", "--unset")
        assert read_project_settings(project).default_skills_path is None

    def test_migrate_rewrites_legacy_files(self, parser, project):
        settings = clubhouse_dir(project) / "settings.json"
        settings.parent.mkdir(parents=True)
        settings.write_text(json.dumps({"defaultClaudeMd": "old"}))

        _run(parser, project, "migrate")

        assert json.loads(settings.read_text())["defaults"] == {"claudeMd": "old"}


class TestSettingsCommandsOutput:

    def test_format_value(self):
        assert SettingsCommands.format_value(None) == "(cleared)"
        assert SettingsCommands.format_value("one\ntwo") == "'one' ..."
        assert SettingsCommands.format_value({"a": 1}) == '{"a": 1}'

    def test_display(self, parser, project, capsys):
        _run(parser, project, "set-default", "claudeMd", "--value", "shared")
        _run(parser, project, "set-default", "claudeMd", "--value", "mine", "--local")
        capsys.readouterr()

        SettingsCommands.display(project)

        out = capsys.readouterr().out
        assert "=== Resolved for durable agents ===" in out
        assert "claudeMd: 'mine'" in out
        assert "skills: (not set)" in out
