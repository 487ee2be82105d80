"""Tests for core/settings.py - project settings and migrations."""

import json

from clubhouse.core.registry import clubhouse_dir
from clubhouse.core.settings import (
    ProjectSettings,
    migrate_settings,
    read_local_layer,
    read_project_settings,
    write_local_layer,
    write_project_settings,
)


def _settings_file(project):
    return clubhouse_dir(project) / "settings.json"


def _write_settings(project, data):
    path = _settings_file(project)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))
    return path


class TestReadProjectSettings:

    def test_missing_file(self, tmp_path):
        settings = read_project_settings(tmp_path)
        assert settings.defaults == {}
        assert settings.quick_overrides == {}

    def test_malformed_file(self, tmp_path, capsys):
        path = _settings_file(tmp_path)
        path.parent.mkdir(parents=True)
        path.write_text("[broken")
        assert read_project_settings(tmp_path) == ProjectSettings()
        assert "could not read" in capsys.readouterr().err

    def test_reads_current_shape(self, tmp_path):
        _write_settings(tmp_path, {
            "defaults": {"claudeMd": "# Rules", "permissions": {"allow": ["Read"]}},
            "quickOverrides": {"mcpConfig": None},
            "defaultSkillsPath": "skills",
        })
        settings = read_project_settings(tmp_path)
        assert settings.defaults["claudeMd"] == "# Rules"
        assert settings.quick_overrides == {"mcpConfig": None}
        assert settings.default_skills_path == "skills"

    def test_unknown_layer_keys_dropped(self, tmp_path):
        _write_settings(tmp_path, {"defaults": {"claudeMd": "x", "hooks": {}}})
        assert read_project_settings(tmp_path).defaults == {"claudeMd": "x"}


class TestLegacyMigration:

    def test_migrates_and_rewrites_before_returning(self, tmp_path):
        path = _write_settings(tmp_path, {"defaultClaudeMd": "X", "quickAgentClaudeMd": "Q"})

        settings = read_project_settings(tmp_path)

        assert settings.defaults == {"claudeMd": "X"}
        assert settings.quick_overrides == {"claudeMd": "Q"}
        on_disk = json.loads(path.read_text())
        assert on_disk["defaults"] == {"claudeMd": "X"}
        assert on_disk["quickOverrides"] == {"claudeMd": "Q"}
        assert "defaultClaudeMd" not in on_disk

    def test_null_legacy_values_not_carried(self):
        data, changed = migrate_settings({"defaultClaudeMd": None})
        assert changed
        assert data["defaults"] == {}

    def test_current_shape_needs_no_rewrite(self):
        data = {"defaults": {}, "quickOverrides": {}}
        assert migrate_settings(data) == (data, False)

    def test_defaults_present_wins(self):
        data = {"defaultClaudeMd": "old", "defaults": {"claudeMd": "new"}}
        migrated, changed = migrate_settings(data)
        assert not changed
        assert migrated["defaults"] == {"claudeMd": "new"}


class TestWriteProjectSettings:

    def test_preserves_unknown_top_level_keys(self, tmp_path):
        _write_settings(tmp_path, {"defaults": {}, "quickOverrides": {}, "theme": "dark"})
        settings = read_project_settings(tmp_path)
        settings.defaults["claudeMd"] = "hi"
        write_project_settings(tmp_path, settings)

        on_disk = json.loads(_settings_file(tmp_path).read_text())
        assert on_disk["theme"] == "dark"
        assert on_disk["defaults"] == {"claudeMd": "hi"}
        assert "defaultSkillsPath" not in on_disk


class TestLocalLayer:

    def test_missing(self, tmp_path):
        assert read_local_layer(tmp_path) == {}

    def test_round_trip_filters_keys(self, tmp_path):
        write_local_layer(tmp_path, {"claudeMd": None, "other": 1})
        assert read_local_layer(tmp_path) == {"claudeMd": None}
