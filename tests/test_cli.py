"""Tests for the ocm CLI commands via click's CliRunner."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from ocm.__main__ import cli


@pytest.fixture
def env(tmp_path, monkeypatch):
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    monkeypatch.setenv("OCM_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("OCM_SKILLS_PATH", str(tmp_path / "agents"))
    return tmp_path


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def demo(make_plugin):
    return make_plugin(
        "demo",
        {
            "commands/review.md": "# Review",
            "commands/explain.md": "# Explain",
            "agents/helper.md": "# Helper",
            "skills/lint/SKILL.md": "# Lint",
        },
    )


class TestInstallCommand:
    def test_install_reports_components(self, runner, env, demo):
        result = runner.invoke(cli, ["install", str(demo)])
        assert result.exit_code == 0, result.output
        assert "→ command/demo--review.md" in result.output
        assert "→ skill/demo--lint" in result.output
        assert "Installed demo [" in result.output
        assert "(2 commands, 1 agent, 1 skill) to user scope." in result.output
        assert (env / "config" / "commands" / "demo--review.md").is_file()
        assert (env / "agents" / "skills" / "demo--lint" / "SKILL.md").is_file()

    def test_project_scope(self, runner, env, demo):
        result = runner.invoke(cli, ["install", str(demo), "--scope", "project"])
        assert result.exit_code == 0, result.output
        assert (env / "project" / ".opencode" / "agents" / "demo--helper.md").is_file()

    def test_conflict_exits_nonzero(self, runner, env, demo):
        target = env / "config" / "commands" / "demo--review.md"
        target.parent.mkdir(parents=True)
        target.write_text("mine")

        result = runner.invoke(cli, ["install", str(demo)])
        assert result.exit_code == 1
        assert "error:" in result.output
        assert "exists but is untracked" in result.output
        assert "--force" in result.output
        assert target.read_text() == "mine"

    def test_force_reports_override(self, runner, env, demo):
        target = env / "config" / "commands" / "demo--review.md"
        target.parent.mkdir(parents=True)
        target.write_text("mine")

        result = runner.invoke(cli, ["install", str(demo), "--force"])
        assert result.exit_code == 0, result.output
        assert "overriding command/demo--review.md" in result.output

    def test_update_on_changed_source(self, runner, env, demo):
        runner.invoke(cli, ["install", str(demo)])
        (demo / "agents" / "helper.md").write_text("# Helper v2")
        result = runner.invoke(cli, ["install", str(demo)])
        assert "Updated demo [" in result.output

    def test_verbose_traces_through_logger(self, runner, env, demo):
        result = runner.invoke(cli, ["install", str(demo), "-v"])
        assert result.exit_code == 0, result.output
        assert "Resolved plugin name: demo" in result.output
        assert "Installed demo [" in result.output

    def test_copy_failure_is_reported(self, runner, env, demo):
        (env / "config").mkdir()
        (env / "config" / "commands").write_text("not a directory")

        result = runner.invoke(cli, ["install", str(demo)])
        assert result.exit_code == 1
        assert "error: Failed to copy plugin files" in result.output
        assert "already copied files stay in place" in result.output

    def test_missing_source(self, runner, env, tmp_path):
        result = runner.invoke(cli, ["install", str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestUninstallCommand:
    def test_uninstall(self, runner, env, demo):
        runner.invoke(cli, ["install", str(demo)])
        (env / "config" / "agents" / "demo--helper.md").unlink()

        result = runner.invoke(cli, ["uninstall", "demo"])
        assert result.exit_code == 0, result.output
        assert "Uninstalling demo..." in result.output
        assert "✗ command/demo--review.md" in result.output
        assert "agent/demo--helper.md was already deleted" in result.output
        assert "Uninstalled demo (2 commands, 1 agent, 1 skill) from user scope." in result.output

    def test_registry_write_failure_is_reported(self, runner, env, demo):
        runner.invoke(cli, ["install", str(demo)])
        with patch(
            "ocm.plugins.registry.os.replace", side_effect=PermissionError("registry is read-only")
        ):
            result = runner.invoke(cli, ["uninstall", "demo"])
        assert result.exit_code == 1
        assert "error: registry is read-only" in result.output

    def test_not_installed(self, runner, env):
        result = runner.invoke(cli, ["uninstall", "ghost"])
        assert result.exit_code == 1
        assert 'Plugin "ghost" is not installed in user scope.' in result.output


class TestListCommand:
    def test_empty(self, runner, env):
        result = runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        assert "no plugins installed" in result.output

    def test_grouped_by_scope(self, runner, env, demo, make_plugin):
        other = make_plugin("other", {"command/x.md": "x"})
        runner.invoke(cli, ["install", str(demo)])
        runner.invoke(cli, ["install", str(other), "--scope", "project"])

        result = runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        assert result.output.index("User scope:") < result.output.index("Project scope:")
        assert "demo [" in result.output
        assert "other [" in result.output

    def test_scope_filter_and_verbose(self, runner, env, demo):
        runner.invoke(cli, ["install", str(demo)])
        result = runner.invoke(cli, ["list", "--scope", "project"])
        assert "no plugins installed" in result.output

        result = runner.invoke(cli, ["list", "-v"])
        assert "source:" in result.output
        assert "command/demo--explain.md" in result.output


class TestScanCommand:
    def test_scan(self, runner, env, demo):
        result = runner.invoke(cli, ["scan", str(demo)])
        assert result.exit_code == 0, result.output
        assert "Scanning demo [" in result.output
        assert "→ skill/demo--lint/" in result.output
        assert "Found 2 commands, 1 agent, 1 skill" in result.output
        assert not (env / "config").exists()

    def test_scan_empty(self, runner, env, make_plugin):
        root = make_plugin("bare", {"README.md": "x"})
        result = runner.invoke(cli, ["scan", str(root)])
        assert result.exit_code == 0
        assert "No components found." in result.output
        assert "Expected directories:" in result.output


class TestUpdateCommand:
    def test_local_plugin_rejected(self, runner, env, demo):
        runner.invoke(cli, ["install", str(demo)])
        result = runner.invoke(cli, ["update", "demo"])
        assert result.exit_code == 1
        assert "Cannot update local plugin" in result.output


class TestImportCommand:
    def test_import_summary(self, runner, env, demo, tmp_path):
        conf = tmp_path / "ocm-import.json"
        conf.write_text(json.dumps({"plugins": [str(demo), str(tmp_path / "missing")]}))

        result = runner.invoke(cli, ["import", str(conf)])
        assert result.exit_code == 1
        assert "[1/2]" in result.output
        assert "installed demo [" in result.output
        assert "Installed: 1" in result.output
        assert "Failed:    1" in result.output

    def test_default_path_under_config_dir(self, runner, env, demo):
        (env / "config").mkdir()
        (env / "config" / "ocm-import.json").write_text(json.dumps({"plugins": [str(demo)]}))

        result = runner.invoke(cli, ["import"])
        assert result.exit_code == 0, result.output
        assert "Installed: 1" in result.output

        result = runner.invoke(cli, ["import"])
        assert "Skipped:   1" in result.output

    def test_missing_config(self, runner, env):
        result = runner.invoke(cli, ["import"])
        assert result.exit_code == 1
        assert "Import configuration file not found" in result.output

    def test_empty_config(self, runner, env, tmp_path):
        conf = tmp_path / "ocm-import.json"
        conf.write_text(json.dumps({"plugins": []}))
        result = runner.invoke(cli, ["import", str(conf)])
        assert result.exit_code == 0
        assert "No plugins found in configuration." in result.output
