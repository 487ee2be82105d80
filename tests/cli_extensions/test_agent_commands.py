"""Tests for cli_extensions/agent_commands.py - durable agent CLI commands."""

import argparse
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from clubhouse.cli_extensions.agent_commands import AgentCommands
from clubhouse.config.config import DEFAULT_CONFIG, Config
from clubhouse.core import create_durable, get_durable, list_durable


@pytest.fixture
def parser():
    parser = argparse.ArgumentParser()
    subparsers = parser.add_subparsers(dest="command")
    AgentCommands.add_cli_arguments(subparsers)
    return parser


@pytest.fixture
def config(shell):
    """Config stand-in that hands out the recording shell."""
    config = Mock(spec=Config)
    config.read.return_value = DEFAULT_CONFIG
    config.default_color.return_value = "indigo"
    config.create_shell.return_value = shell
    return config


def _run(parser, config, project, *argv):
    args = parser.parse_args(["agents", *argv])
    AgentCommands.process_cli_command(args, config, project)


class TestAgentCommandsAddCliArguments:

    def test_subcommands(self, parser):
        for argv in (["list"], ["create", "x"], ["status", "x"], ["repair", "x"], ["reorder", "a", "b"]):
            assert parser.parse_args(["agents", *argv]).agents_command == argv[0]

    def test_delete_defaults_to_unregister(self, parser):
        args = parser.parse_args(["agents", "delete", "x"])
        assert args.strategy == "unregister"
        assert args.patch_file is None

    def test_delete_rejects_unknown_strategy(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args(["agents", "delete", "x", "--strategy", "shred"])

    def test_pin_rejects_unknown_item(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args(["agents", "pin", "x", "hooks"])

    def test_create_flags(self, parser):
        args = parser.parse_args(["agents", "create", "x", "--no-worktree", "--local", "--model", "opus"])
        assert args.no_worktree and args.local
        assert args.model == "opus"


class TestAgentCommandsProcessCliCommand:

    def test_no_subcommand_exits(self, config, project):
        with pytest.raises(SystemExit):
            AgentCommands.process_cli_command(Mock(agents_command=None), config, project)

    def test_create_uses_configured_color_and_shell(self, parser, config, project, shell):
        _run(parser, config, project, "create", "fix-login")

        (agent,) = list_durable(project)
        assert agent.name == "fix-login"
        assert agent.color == "indigo"
        assert shell.ran("worktree", "add")

    def test_create_without_worktree(self, parser, config, project, shell):
        _run(parser, config, project, "create", "notes", "--no-worktree", "--color", "red")

        (agent,) = list_durable(project)
        assert agent.workspace_path is None
        assert agent.color == "red"

    def test_rename_by_name(self, parser, config, project, shell):
        agent = create_durable(project, "old", "red", shell=shell)
        _run(parser, config, project, "rename", "old", "new")
        assert get_durable(project, agent.id).name == "new"

    def test_update_by_id(self, parser, config, project, shell):
        agent = create_durable(project, "a", "red", model="opus", shell=shell)

        _run(parser, config, project, "update", agent.id, "--emoji", "🔧", "--model", "default")

        stored = get_durable(project, agent.id)
        assert stored.emoji == "🔧"
        assert stored.model is None

    def test_reorder(self, parser, config, project, shell):
        a = create_durable(project, "a", "red", shell=shell)
        b = create_durable(project, "b", "red", shell=shell)
        _run(parser, config, project, "reorder", "b")
        assert [x.id for x in list_durable(project)] == [b.id, a.id]

    def test_unknown_agent_exits(self, parser, config, project):
        with pytest.raises(SystemExit):
            _run(parser, config, project, "rename", "ghost", "x")

    def test_ambiguous_name_exits(self, parser, config, project, shell):
        create_durable(project, "twin", "red", use_worktree=False, shell=shell)
        create_durable(project, "twin", "red", use_worktree=False, shell=shell)
        with pytest.raises(SystemExit):
            _run(parser, config, project, "status", "twin")

    def test_pin_and_unpin(self, parser, config, project, shell):
        agent = create_durable(project, "a", "red", shell=shell)
        _run(parser, config, project, "pin", "a", "permissions")
        assert get_durable(project, agent.id).overrides["permissions"] is True
        _run(parser, config, project, "unpin", "a", "permissions")
        assert get_durable(project, agent.id).overrides["permissions"] is False

    def test_delete_default_keeps_files(self, parser, config, project, shell):
        agent = create_durable(project, "a", "red", shell=shell)
        _run(parser, config, project, "delete", "a")
        assert list_durable(project) == []
        assert Path(agent.workspace_path).is_dir()

    def test_delete_force(self, parser, config, project, shell):
        agent = create_durable(project, "a", "red", shell=shell)
        _run(parser, config, project, "delete", "a", "--strategy", "force")
        assert not Path(agent.workspace_path).exists()

    def test_delete_patch_requires_file(self, parser, config, project, shell):
        create_durable(project, "a", "red", shell=shell)
        with pytest.raises(SystemExit):
            _run(parser, config, project, "delete", "a", "--strategy", "patch")
        assert len(list_durable(project)) == 1

    def test_delete_patch(self, parser, config, project, shell, tmp_path):
        create_durable(project, "a", "red", shell=shell)
        patch_file = tmp_path / "a.patch"
        _run(parser, config, project, "delete", "a", "--strategy", "patch", "--patch-file", str(patch_file))
        assert patch_file.exists()
        assert list_durable(project) == []

    def test_failed_delete_exits(self, parser, config, project, shell):
        create_durable(project, "a", "red", shell=shell)
        shell.fail("add", "-A")
        with pytest.raises(SystemExit):
            _run(parser, config, project, "delete", "a", "--strategy", "commit-push")
        assert len(list_durable(project)) == 1

    def test_repair_reports_restored(self, parser, config, project, shell):
        agent = create_durable(project, "a", "red", shell=shell)
        messages = []

        def capture_message(text, *args_inner, **kwargs):
            messages.append(text)

        with patch(
            "clubhouse.cli_extensions.agent_commands.repair_durable", return_value={"claudeMd": True}
        ) as mock_repair, patch("clubhouse.cli_extensions.agent_commands.message", side_effect=capture_message):
            _run(parser, config, project, "repair", "a")

        mock_repair.assert_called_once_with(project, agent.id)
        assert "  Restored claudeMd" in messages


class TestAgentCommandsOutput:

    def test_list_empty(self, project, capsys):
        AgentCommands.list_agents(project)
        assert "No durable agents found." in capsys.readouterr().out

    def test_list_shows_agents(self, project, shell, capsys):
        agent = create_durable(project, "a", "red", shell=shell)
        AgentCommands.list_agents(project)
        out = capsys.readouterr().out
        assert agent.id in out
        assert "Total: 1 agent(s)" in out

    def test_status(self, parser, config, project, shell, capsys):
        create_durable(project, "a", "red", shell=shell)
        shell.respond("status", "--porcelain", output="?? new.txt\n")

        _run(parser, config, project, "status", "a")

        out = capsys.readouterr().out
        assert "branch: a/standby" in out
        assert "new.txt" in out
        assert "Uncommitted files (1)" in out
