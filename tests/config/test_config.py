"""Tests for config/config.py - user configuration management."""

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from clubhouse.config.config import DEFAULT_CONFIG, Config, ConfigError


def _write_config(config_obj: Config, data) -> None:
    """Write raw YAML data to the config file without validation."""
    config_obj.config_directory.mkdir(parents=True, exist_ok=True)
    with open(config_obj.config_file, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# ===========================================================================
# ConfigError
# ===========================================================================
class TestConfigError:

    def test_single_error_message(self):
        error = ConfigError("Single error")
        assert error.errors == ["Single error"]
        assert str(error) == "Single error"

    def test_multiple_error_messages(self):
        error = ConfigError(["First", "Second"])
        assert "Configuration has 2 errors" in str(error)
        assert "  - First" in str(error)
        assert "  - Second" in str(error)


# ===========================================================================
# Config.__init__
# ===========================================================================
class TestConfigInitialization:

    def test_default_initialization(self):
        config = Config()
        assert config.config_directory == Path.home() / ".clubhouse"
        assert config.config_file == Path.home() / ".clubhouse" / "config.yaml"

    def test_custom_config_directory(self, tmp_path):
        config = Config(config_dir=tmp_path / "custom")
        assert config.config_file == tmp_path / "custom" / "config.yaml"


# ===========================================================================
# ensure_directories
# ===========================================================================
class TestConfigEnsureDirectories:

    def test_creates_directory(self, tmp_path):
        config = Config(config_dir=tmp_path / "cfg")
        config.ensure_directories()
        config.ensure_directories()
        assert config.config_directory.is_dir()

    def test_handles_permission_error(self, tmp_path):
        config = Config(config_dir=tmp_path / "cfg")
        with (
            patch("pathlib.Path.mkdir", side_effect=PermissionError),
            patch("clubhouse.config.config.message"),
            pytest.raises(SystemExit),
        ):
            config.ensure_directories()


# ===========================================================================
# validate
# ===========================================================================
class TestConfigValidate:

    def test_empty_config_is_valid(self):
        assert Config.validate({}) == []

    def test_defaults_are_valid(self):
        assert Config.validate(DEFAULT_CONFIG) == []

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError, match="mapping"):
            Config.validate(["git"])

    def test_unknown_section_warns(self):
        warnings = Config.validate({"repos": []})
        assert any("repos" in w for w in warnings)

    def test_collects_all_errors(self):
        config = {
            "git": {"executable": "", "max_output_bytes": "big", "base_branches": ["main", 3]},
            "agents": {"default_color": 7},
        }
        with pytest.raises(ConfigError) as exc_info:
            Config.validate(config)
        assert len(exc_info.value.errors) == 4

    @pytest.mark.parametrize("limit", [0, -1, True])
    def test_invalid_output_limit(self, limit):
        with pytest.raises(ConfigError):
            Config.validate({"git": {"max_output_bytes": limit}})

    def test_empty_base_branches_warns(self):
        warnings = Config.validate({"git": {"base_branches": []}})
        assert any("HEAD" in w for w in warnings)

    def test_section_must_be_dict(self):
        with pytest.raises(ConfigError, match="'git' must be a dictionary"):
            Config.validate({"git": "yes"})


# ===========================================================================
# read / write
# ===========================================================================
class TestConfigReadWrite:

    def test_missing_file_gives_defaults(self, tmp_path):
        assert Config(config_dir=tmp_path).read() == DEFAULT_CONFIG

    def test_empty_file_gives_defaults(self, tmp_path):
        config = Config(config_dir=tmp_path)
        config.config_file.write_text("")
        assert config.read() == DEFAULT_CONFIG

    def test_partial_sections_filled_from_defaults(self, tmp_path):
        config = Config(config_dir=tmp_path)
        _write_config(config, {"git": {"base_branches": ["develop"]}})

        data = config.read()

        assert data["git"]["base_branches"] == ["develop"]
        assert data["git"]["executable"] == "git"
        assert data["agents"]["default_color"] == "indigo"

    def test_invalid_file_exits(self, tmp_path):
        config = Config(config_dir=tmp_path)
        _write_config(config, {"git": {"max_output_bytes": "huge"}})
        with pytest.raises(SystemExit):
            config.read()

    def test_malformed_yaml_exits(self, tmp_path):
        config = Config(config_dir=tmp_path)
        config.config_file.write_text("git: [unclosed")
        with pytest.raises(SystemExit):
            config.read()

    def test_initialized_file_reads_back_defaults(self, tmp_path):
        config = Config(config_dir=tmp_path / "cfg")
        config.initialize()
        assert config.read() == DEFAULT_CONFIG


# ===========================================================================
# initialize / template
# ===========================================================================
class TestConfigInitialize:

    def test_template_parses_to_defaults(self):
        assert yaml.safe_load(Config.generate_template()) == DEFAULT_CONFIG

    def test_initialize_writes_template(self, tmp_path):
        config = Config(config_dir=tmp_path / "cfg")
        config.initialize()
        assert config.config_file.read_text() == Config.generate_template()

    def test_initialize_refuses_overwrite(self, tmp_path):
        config = Config(config_dir=tmp_path)
        config.config_file.write_text("agents: {}\n")
        with pytest.raises(SystemExit):
            config.initialize()
        assert config.config_file.read_text() == "agents: {}\n"

    def test_initialize_force(self, tmp_path):
        config = Config(config_dir=tmp_path)
        config.config_file.write_text("agents: {}\n")
        config.initialize(force=True)
        assert "default_color" in config.config_file.read_text()


# ===========================================================================
# derived objects
# ===========================================================================
class TestConfigDerived:

    def test_create_shell_from_config(self, tmp_path):
        config = Config(config_dir=tmp_path)
        _write_config(config, {"git": {"executable": "/opt/git", "base_branches": ["trunk"]}})

        shell = config.create_shell()

        assert shell.executable == "/opt/git"
        assert shell.base_branches == ["trunk"]

    def test_default_color(self, tmp_path):
        config = Config(config_dir=tmp_path)
        assert config.default_color() == "indigo"
        assert config.default_color({"agents": {"default_color": "red"}}) == "red"
